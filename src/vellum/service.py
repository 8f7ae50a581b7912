from __future__ import annotations

import logging

from lsprotocol.types import (
    CodeLens,
    Command,
    CompletionList,
    Diagnostic,
    Position,
    Range,
)

from vellum.cancellation import CancellationToken
from vellum.completion import frontmatter_completion, line_prefix
from vellum.diagnostics import DIAGNOSTIC_SOURCE, to_editor_diagnostics
from vellum.document import DocumentModel
from vellum.globlens import DEFAULT_GLOB_LOADER, scan_glob_calls
from vellum.invariants import never
from vellum.model import Document, DocumentKind, GlobAnnotation

logger = logging.getLogger(__name__)

FRONTMATTER_TRIGGER = "-"


def _cancelled(token: CancellationToken | None) -> bool:
    return token is not None and token.is_cancellation_requested


def glob_code_lens(annotation: GlobAnnotation) -> CodeLens:
    position = Position(line=annotation.line, character=annotation.character)
    return CodeLens(
        range=Range(start=position, end=position),
        command=Command(title=f"Matches {annotation.match_count} files", command=""),
    )


class TemplateLanguageService:
    """Request entry points for Vellum templates.

    Each entry point checks cancellation first, then the document kind, and
    only then asks the document model for anything. No state is kept between
    requests.
    """

    def __init__(
        self,
        model: DocumentModel,
        *,
        glob_loader: str = DEFAULT_GLOB_LOADER,
        source: str = DIAGNOSTIC_SOURCE,
    ) -> None:
        if not glob_loader or not glob_loader.strip():
            never("empty glob loader name", glob_loader=glob_loader)
        self.model = model
        self.glob_loader = glob_loader
        self.source = source

    def completions(
        self,
        document: Document,
        position: Position,
        trigger_character: str | None,
        token: CancellationToken | None = None,
    ) -> CompletionList | None:
        if _cancelled(token):
            return None
        if document.kind is not DocumentKind.TEMPLATE:
            logger.debug("Completion skipped for %s document %s", document.kind.value, document.uri)
            return None
        items = []
        if trigger_character == FRONTMATTER_TRIGGER:
            item = frontmatter_completion(
                self.model.frontmatter_status(document),
                line_prefix(document.text, position),
                position,
            )
            if item is not None:
                items.append(item)
        return CompletionList(is_incomplete=False, items=items)

    def diagnostics(
        self, document: Document, token: CancellationToken | None = None
    ) -> list[Diagnostic]:
        if _cancelled(token):
            return []
        if document.kind is not DocumentKind.TEMPLATE:
            return []
        return to_editor_diagnostics(
            self.model.compiler_diagnostics(document), source=self.source
        )

    def glob_annotations(
        self, document: Document, token: CancellationToken | None = None
    ) -> list[GlobAnnotation]:
        if _cancelled(token):
            return []
        if document.kind is not DocumentKind.SCRIPT:
            logger.debug("Code lens skipped for %s document %s", document.kind.value, document.uri)
            return []
        return scan_glob_calls(
            self.model.script_syntax_tree(document),
            document.directory,
            loader=self.glob_loader,
            token=token,
        )

    def code_lenses(
        self, document: Document, token: CancellationToken | None = None
    ) -> list[CodeLens]:
        return [glob_code_lens(annotation) for annotation in self.glob_annotations(document, token)]

    def script_view(self, document: Document) -> Document:
        if document.kind is DocumentKind.TEMPLATE:
            return document.as_kind(DocumentKind.SCRIPT)
        return document
