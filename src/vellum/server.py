from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from pygls.lsp.server import LanguageServer
from lsprotocol.types import (
    INITIALIZED,
    TEXT_DOCUMENT_CODE_LENS,
    TEXT_DOCUMENT_COMPLETION,
    TEXT_DOCUMENT_DIAGNOSTIC,
    CodeLens,
    CodeLensParams,
    CompletionList,
    CompletionOptions,
    CompletionParams,
    DiagnosticOptions,
    DocumentDiagnosticParams,
    InitializedParams,
    RelatedFullDocumentDiagnosticReport,
)

from vellum import __version__
from vellum.cancellation import CancellationToken
from vellum.config import ServerSettings, load_settings
from vellum.diagnostics import DIAGNOSTIC_SOURCE
from vellum.document import TemplateDocumentModel
from vellum.model import (
    SCRIPT_LANGUAGE_ID,
    TEMPLATE_LANGUAGE_ID,
    Document,
    DocumentKind,
    uri_to_path,
)
from vellum.service import FRONTMATTER_TRIGGER, TemplateLanguageService

logger = logging.getLogger(__name__)


class VellumLanguageServer(LanguageServer):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.config_path: Path | None = None
        self.apply_settings(ServerSettings())

    def apply_settings(self, settings: ServerSettings) -> None:
        self.settings = settings
        self.service = TemplateLanguageService(
            TemplateDocumentModel(template_extensions=settings.template_extensions),
            glob_loader=settings.glob_loader,
            source=DIAGNOSTIC_SOURCE,
        )


server = VellumLanguageServer("vellum", __version__)


def document_kind(language_id: str | None, path: Path, settings: ServerSettings) -> DocumentKind:
    suffix = path.suffix.lower()
    if language_id == TEMPLATE_LANGUAGE_ID or suffix in settings.template_extensions:
        return DocumentKind.TEMPLATE
    if language_id == SCRIPT_LANGUAGE_ID or suffix in settings.script_extensions:
        return DocumentKind.SCRIPT
    return DocumentKind.OTHER


def _snapshot(ls: VellumLanguageServer, uri: str) -> Document:
    text_document = ls.workspace.get_text_document(uri)
    language_id = text_document.language_id or ""
    return Document(
        uri=uri,
        text=text_document.source,
        kind=document_kind(language_id, uri_to_path(uri), ls.settings),
        language_id=language_id,
    )


@server.feature(INITIALIZED)
def initialized(ls: VellumLanguageServer, params: InitializedParams) -> None:
    root = Path(ls.workspace.root_path) if ls.workspace.root_path else None
    ls.apply_settings(load_settings(root=root, config_path=ls.config_path))
    logger.info(
        "Vellum language server ready (glob loader %s, templates %s)",
        ls.settings.glob_loader,
        ", ".join(ls.settings.template_extensions),
    )


def _request_token() -> CancellationToken:
    # pygls does not route $/cancelRequest to synchronous handlers.
    return CancellationToken()


@server.feature(
    TEXT_DOCUMENT_COMPLETION,
    CompletionOptions(trigger_characters=[FRONTMATTER_TRIGGER]),
)
def completion(ls: VellumLanguageServer, params: CompletionParams) -> CompletionList | None:
    document = _snapshot(ls, params.text_document.uri)
    trigger = params.context.trigger_character if params.context else None
    result = ls.service.completions(document, params.position, trigger, _request_token())
    if result is not None:
        logger.debug("Completion at %s: %d item(s)", params.position, len(result.items))
    return result


@server.feature(
    TEXT_DOCUMENT_DIAGNOSTIC,
    DiagnosticOptions(
        identifier=DIAGNOSTIC_SOURCE,
        inter_file_dependencies=False,
        workspace_diagnostics=False,
    ),
)
def diagnostic(
    ls: VellumLanguageServer, params: DocumentDiagnosticParams
) -> RelatedFullDocumentDiagnosticReport:
    document = _snapshot(ls, params.text_document.uri)
    items = ls.service.diagnostics(document, _request_token())
    return RelatedFullDocumentDiagnosticReport(items=items)


@server.feature(TEXT_DOCUMENT_CODE_LENS)
def code_lens(ls: VellumLanguageServer, params: CodeLensParams) -> list[CodeLens]:
    document = _snapshot(ls, params.text_document.uri)
    return ls.service.code_lenses(ls.service.script_view(document), _request_token())


def start(start_fn: Callable[[], None] | None = None) -> None:
    """Start the language server on stdio."""
    (start_fn or server.start_io)()


if __name__ == "__main__":  # pragma: no cover
    start()  # pragma: no cover
