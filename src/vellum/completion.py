from __future__ import annotations

import re

from lsprotocol.types import (
    CompletionItem,
    CompletionItemKind,
    InsertTextFormat,
    Position,
    Range,
    TextEdit,
)

from vellum.model import FrontmatterStatus, LineIndex

FRONTMATTER_DELIMITER = "---"
FRONTMATTER_SNIPPET = "---\n$0\n---"
CREATE_DETAIL = "Create component script block"
CLOSE_DETAIL = "Close component script block"

_LEADING_HYPHENS = re.compile(r"^\s*-+")


def line_prefix(text: str, position: Position) -> str:
    """Return the text of ``position``'s line from column 0 up to the cursor."""
    index = LineIndex(text)
    offset = index.offset_at(position.line, position.character)
    line, _ = index.position_at(offset)
    return index.text[index.line_starts[line] : offset]


def _replace_prefix_edit(prefix: str, position: Position, insert_text: str) -> TextEdit | None:
    if not _LEADING_HYPHENS.match(prefix):
        return None
    return TextEdit(
        range=Range(start=Position(line=position.line, character=0), end=position),
        new_text=insert_text,
    )


def _proposal(insert_text: str, detail: str, text_edit: TextEdit | None) -> CompletionItem:
    return CompletionItem(
        label=FRONTMATTER_DELIMITER,
        kind=CompletionItemKind.Snippet,
        detail=detail,
        sort_text="\0",
        preselect=True,
        insert_text=insert_text,
        insert_text_format=InsertTextFormat.Snippet,
        text_edit=text_edit,
        commit_characters=[],
    )


def frontmatter_completion(
    status: FrontmatterStatus,
    prefix: str,
    position: Position,
) -> CompletionItem | None:
    """Propose a frontmatter delimiter completion for the ``-`` trigger.

    A document without frontmatter gets the full two-delimiter snippet. An
    open block gets the bare closer, except when the line already reads
    ``---`` exactly, where the user is starting a block and expects the
    full snippet. A closed block gets nothing. When the line so far is
    only hyphens (optionally indented), the proposal replaces it instead of
    appending to it.
    """
    if status is FrontmatterStatus.ABSENT:
        return _proposal(
            FRONTMATTER_SNIPPET,
            CREATE_DETAIL,
            _replace_prefix_edit(prefix, position, FRONTMATTER_SNIPPET),
        )
    if status is FrontmatterStatus.OPEN:
        insert_text = FRONTMATTER_SNIPPET if prefix == FRONTMATTER_DELIMITER else FRONTMATTER_DELIMITER
        detail = CLOSE_DETAIL if insert_text == FRONTMATTER_DELIMITER else CREATE_DETAIL
        return _proposal(insert_text, detail, _replace_prefix_edit(prefix, position, insert_text))
    return None
