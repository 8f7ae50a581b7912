from __future__ import annotations

import bisect
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from urllib.parse import unquote, urlparse

TEMPLATE_LANGUAGE_ID = "vellum"
SCRIPT_LANGUAGE_ID = "python"

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class DocumentKind(Enum):
    TEMPLATE = "template"
    SCRIPT = "script"
    OTHER = "other"


class FrontmatterStatus(Enum):
    ABSENT = "absent"
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class Document:
    """Immutable per-request snapshot of an editor document."""

    uri: str
    text: str
    kind: DocumentKind
    language_id: str = ""

    @property
    def path(self) -> Path:
        return uri_to_path(self.uri)

    @property
    def directory(self) -> Path:
        return self.path.parent

    def as_kind(self, kind: DocumentKind) -> "Document":
        return Document(uri=self.uri, text=self.text, kind=kind, language_id=self.language_id)


@dataclass(frozen=True)
class GlobAnnotation:
    line: int
    character: int
    match_count: int
    pattern: str = ""


@dataclass(frozen=True)
class LineIndex:
    """Offset table mapping string offsets to zero-based line/character pairs.

    Offsets are Python string indices. Characters are UTF-16 code units,
    the default LSP position encoding, so a character outside the Basic
    Multilingual Plane counts as two. Line breaks follow the editor
    convention: ``\\r\\n``, ``\\r`` and ``\\n`` each end a line.
    """

    text: str
    line_starts: tuple[int, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        starts = [0]
        starts.extend(match.end() for match in _LINE_BREAK.finditer(self.text))
        object.__setattr__(self, "line_starts", tuple(starts))

    @property
    def line_count(self) -> int:
        return len(self.line_starts)

    def position_at(self, offset: int) -> tuple[int, int]:
        offset = max(0, min(offset, len(self.text)))
        line = bisect.bisect_right(self.line_starts, offset) - 1
        return line, _utf16_length(self.text[self.line_starts[line] : offset])

    def offset_at(self, line: int, character: int) -> int:
        if line < 0:
            return 0
        if line >= len(self.line_starts):
            return len(self.text)
        start = self.line_starts[line]
        end = self._content_end(line)
        units = 0
        for offset in range(start, end):
            if units >= character:
                return offset
            units += 2 if ord(self.text[offset]) > 0xFFFF else 1
        return end

    def line_text(self, line: int) -> str:
        if line < 0 or line >= len(self.line_starts):
            return ""
        return self.text[self.line_starts[line] : self._content_end(line)]

    def _content_end(self, line: int) -> int:
        if line + 1 < len(self.line_starts):
            end = self.line_starts[line + 1]
            if self.text[end - 2 : end] == "\r\n":
                return end - 2
            return end - 1
        return len(self.text)


def _utf16_length(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


def uri_to_path(uri: str) -> Path:
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return Path(uri)
