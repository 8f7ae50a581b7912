from __future__ import annotations

from lsprotocol.types import DiagnosticSeverity, Position

from vellum.diagnostics import to_editor_diagnostic, to_editor_diagnostics
from vellum.schema import CompilerDiagnostic, DiagnosticLocation


def _message(**overrides) -> CompilerDiagnostic:
    payload = {
        "text": "Unexpected token",
        "location": {"line": 5, "column": 3, "length": 7},
        "code": 1001,
        "severity": 1,
    }
    payload.update(overrides)
    return CompilerDiagnostic.model_validate(payload)


def test_range_uses_raw_line_and_length_for_end() -> None:
    diagnostic = to_editor_diagnostic(_message())
    assert diagnostic.range.start == Position(line=4, character=2)
    assert diagnostic.range.end == Position(line=5, character=7)


def test_code_severity_and_source_pass_through() -> None:
    diagnostic = to_editor_diagnostic(_message(code=2003, severity=2))
    assert diagnostic.code == 2003
    assert diagnostic.severity == DiagnosticSeverity.Warning
    assert diagnostic.source == "vellum"


def test_hint_is_appended_after_blank_line() -> None:
    diagnostic = to_editor_diagnostic(_message(hint="Did you forget a quote?"))
    assert diagnostic.message == "Unexpected token\n\nDid you forget a quote?"


def test_empty_hint_is_ignored() -> None:
    assert to_editor_diagnostic(_message(hint="")).message == "Unexpected token"


def test_zero_location_is_clamped() -> None:
    message = CompilerDiagnostic(
        text="bad",
        location=DiagnosticLocation(line=0, column=0, length=-2),
        code=1,
        severity=1,
    )
    diagnostic = to_editor_diagnostic(message)
    assert diagnostic.range.start == Position(line=0, character=0)
    assert diagnostic.range.end == Position(line=0, character=0)


def test_batch_skips_malformed_records() -> None:
    records = [
        {"text": "ok", "location": {"line": 1, "column": 1, "length": 2}, "code": 1, "severity": 1},
        {"text": "missing location", "code": 2, "severity": 1},
        _message(),
    ]
    diagnostics = to_editor_diagnostics(records)
    assert [diagnostic.message for diagnostic in diagnostics] == ["ok", "Unexpected token"]


def test_custom_source() -> None:
    assert to_editor_diagnostic(_message(), source="custom").source == "custom"


def test_out_of_range_severity_is_left_unset() -> None:
    assert to_editor_diagnostic(_message(severity=9)).severity is None
    assert to_editor_diagnostic(_message(severity=0)).severity is None
