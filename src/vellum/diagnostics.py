from __future__ import annotations

import logging
from collections.abc import Iterable

from lsprotocol.types import Diagnostic, DiagnosticSeverity, Position, Range
from pydantic import ValidationError

from vellum.schema import CompilerDiagnostic

logger = logging.getLogger(__name__)

DIAGNOSTIC_SOURCE = "vellum"


def _severity(value: int) -> DiagnosticSeverity | None:
    """Map a raw severity to the LSP enum; values outside 1-4 leave it unset."""
    try:
        return DiagnosticSeverity(value)
    except ValueError:
        return None


def to_editor_diagnostic(
    message: CompilerDiagnostic, *, source: str = DIAGNOSTIC_SOURCE
) -> Diagnostic:
    # The end position reuses the raw 1-indexed line and the raw length as
    # the end column. Hosts depend on this exact shape.
    location = message.location
    text = message.text
    if message.hint:
        text = f"{text}\n\n{message.hint}"
    return Diagnostic(
        range=Range(
            start=Position(
                line=max(0, location.line - 1),
                character=max(0, location.column - 1),
            ),
            end=Position(line=max(0, location.line), character=max(0, location.length)),
        ),
        message=text,
        code=message.code,
        severity=_severity(message.severity),
        source=source,
    )


def to_editor_diagnostics(
    messages: Iterable[CompilerDiagnostic | dict], *, source: str = DIAGNOSTIC_SOURCE
) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for message in messages:
        try:
            record = (
                message
                if isinstance(message, CompilerDiagnostic)
                else CompilerDiagnostic.model_validate(message)
            )
        except ValidationError as exc:
            logger.warning("Skipping malformed compiler diagnostic: %s", exc)
            continue
        diagnostics.append(to_editor_diagnostic(record, source=source))
    return diagnostics
