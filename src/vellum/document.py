"""Document model for Vellum templates.

A template is an optional Python preamble fenced by ``---`` lines followed by
markup::

    ---
    posts = Vellum.glob("./posts/*.md")
    ---
    <ul>...</ul>

This module owns everything the language service reads from a document:
the frontmatter status, the script syntax tree and the compiler
diagnostics. Script trees are parsed so that AST line numbers are document
line numbers; the frontmatter body is padded with blank lines before it is
handed to :func:`ast.parse`.
"""

from __future__ import annotations

import ast
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol

from vellum.model import (
    TEMPLATE_LANGUAGE_ID,
    Document,
    FrontmatterStatus,
    LineIndex,
)
from vellum.schema import CompilerDiagnostic, DiagnosticLocation

logger = logging.getLogger(__name__)

SCRIPT_SYNTAX_ERROR = 1001
UNCLOSED_FRONTMATTER = 1002

_SEVERITY_ERROR = 1
_SEVERITY_WARNING = 2
_DELIMITER = "---"


class DocumentModel(Protocol):
    def frontmatter_status(self, document: Document) -> FrontmatterStatus: ...

    def compiler_diagnostics(self, document: Document) -> list[CompilerDiagnostic]: ...

    def script_syntax_tree(self, document: Document) -> "ScriptTree | None": ...

    def line_index(self, document: Document) -> LineIndex: ...


@dataclass(frozen=True)
class ScriptTree:
    """A parsed script together with the document coordinates it came from."""

    module: ast.Module
    source: str
    index: LineIndex

    def segment(self, node: ast.AST) -> str | None:
        return ast.get_source_segment(self.source, node)

    def offset_of(self, lineno: int, col_offset: int) -> int:
        """Convert an AST (1-based line, UTF-8 column) pair to a document offset."""
        line = lineno - 1
        encoded = self.index.line_text(line).encode("utf-8")
        prefix = encoded[:col_offset].decode("utf-8", errors="ignore")
        return self.index.offset_at(line, 0) + len(prefix)


@dataclass(frozen=True)
class Frontmatter:
    status: FrontmatterStatus
    opener_line: int | None = None
    closer_line: int | None = None


@dataclass(frozen=True)
class ParsedDocument:
    index: LineIndex
    frontmatter: Frontmatter
    tree: ScriptTree | None
    diagnostics: tuple[CompilerDiagnostic, ...]


def scan_frontmatter(index: LineIndex) -> Frontmatter:
    opener: int | None = None
    for line in range(index.line_count):
        content = index.line_text(line).strip()
        if not content:
            continue
        if content == _DELIMITER:
            opener = line
        break
    if opener is None:
        return Frontmatter(FrontmatterStatus.ABSENT)
    for line in range(opener + 1, index.line_count):
        if index.line_text(line).strip() == _DELIMITER:
            return Frontmatter(FrontmatterStatus.CLOSED, opener, line)
    return Frontmatter(FrontmatterStatus.OPEN, opener)


def _script_source(index: LineIndex, frontmatter: Frontmatter) -> str:
    if frontmatter.opener_line is None:
        return ""
    first = frontmatter.opener_line + 1
    if frontmatter.closer_line is None:
        body = index.text[index.offset_at(first, 0) :] if first < index.line_count else ""
    else:
        body = index.text[index.offset_at(first, 0) : index.offset_at(frontmatter.closer_line, 0)]
    return "\n" * first + body


def _syntax_error_diagnostic(exc: SyntaxError) -> CompilerDiagnostic:
    line = exc.lineno or 1
    column = exc.offset or 1
    end_offset = getattr(exc, "end_offset", None)
    end_lineno = getattr(exc, "end_lineno", None)
    length = 1
    if end_offset and (end_lineno is None or end_lineno == line) and end_offset > column:
        length = end_offset - column
    return CompilerDiagnostic(
        text=exc.msg,
        location=DiagnosticLocation(line=line, column=column, length=length),
        code=SCRIPT_SYNTAX_ERROR,
        severity=_SEVERITY_ERROR,
    )


def _parse_script(source: str, index: LineIndex) -> tuple[ScriptTree | None, SyntaxError | None]:
    try:
        module = ast.parse(source)
    except SyntaxError as exc:
        return None, exc
    except ValueError as exc:
        # Null bytes in the source.
        logger.debug("Script could not be parsed: %s", exc)
        return None, None
    return ScriptTree(module=module, source=source, index=index), None


@lru_cache(maxsize=64)
def parse_template(text: str) -> ParsedDocument:
    index = LineIndex(text)
    frontmatter = scan_frontmatter(index)
    diagnostics: list[CompilerDiagnostic] = []
    if frontmatter.status is FrontmatterStatus.ABSENT:
        return ParsedDocument(index, frontmatter, None, ())
    tree, error = _parse_script(_script_source(index, frontmatter), index)
    if frontmatter.status is FrontmatterStatus.OPEN:
        opener = index.line_text(frontmatter.opener_line)
        diagnostics.append(
            CompilerDiagnostic(
                text="Component script block is not closed",
                hint="Add a `---` line after the component script.",
                location=DiagnosticLocation(
                    line=frontmatter.opener_line + 1,
                    column=len(opener) - len(opener.lstrip()) + 1,
                    length=len(_DELIMITER),
                ),
                code=UNCLOSED_FRONTMATTER,
                severity=_SEVERITY_WARNING,
            )
        )
    elif error is not None:
        diagnostics.append(_syntax_error_diagnostic(error))
    return ParsedDocument(index, frontmatter, tree, tuple(diagnostics))


@lru_cache(maxsize=64)
def parse_script(text: str) -> ParsedDocument:
    index = LineIndex(text)
    tree, error = _parse_script(text, index)
    diagnostics = (_syntax_error_diagnostic(error),) if error is not None else ()
    return ParsedDocument(index, Frontmatter(FrontmatterStatus.ABSENT), tree, diagnostics)


class TemplateDocumentModel:
    """Default :class:`DocumentModel` backed by :mod:`ast`.

    Documents whose language id is ``vellum`` or whose path carries one of
    ``template_extensions`` are parsed as templates, whatever their
    :class:`~vellum.model.DocumentKind`. Everything else is parsed as a
    plain script.
    """

    def __init__(self, template_extensions: tuple[str, ...] = (".vellum",)) -> None:
        self.template_extensions = tuple(ext.lower() for ext in template_extensions)

    def is_template_source(self, document: Document) -> bool:
        if document.language_id == TEMPLATE_LANGUAGE_ID:
            return True
        return document.path.suffix.lower() in self.template_extensions

    def parsed(self, document: Document) -> ParsedDocument:
        if self.is_template_source(document):
            return parse_template(document.text)
        return parse_script(document.text)

    def frontmatter_status(self, document: Document) -> FrontmatterStatus:
        return self.parsed(document).frontmatter.status

    def compiler_diagnostics(self, document: Document) -> list[CompilerDiagnostic]:
        return list(self.parsed(document).diagnostics)

    def script_syntax_tree(self, document: Document) -> ScriptTree | None:
        return self.parsed(document).tree

    def line_index(self, document: Document) -> LineIndex:
        return self.parsed(document).index
