from __future__ import annotations

import ast
import logging
from collections.abc import Iterator
from pathlib import Path

from wcmatch import glob

from vellum.cancellation import CancellationToken
from vellum.document import ScriptTree
from vellum.model import GlobAnnotation

logger = logging.getLogger(__name__)

DEFAULT_GLOB_LOADER = "Vellum.glob"

GLOB_FLAGS = glob.BRACE | glob.GLOBSTAR | glob.NODIR


def iter_nodes(module: ast.AST) -> Iterator[ast.AST]:
    """Yield every node of ``module`` depth-first in source order."""
    stack: list[ast.AST] = [module]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(ast.iter_child_nodes(current))))


def iter_glob_calls(tree: ScriptTree, loader: str) -> Iterator[tuple[ast.Call, str]]:
    for node in iter_nodes(tree.module):
        if not isinstance(node, ast.Call):
            continue
        if tree.segment(node.func) != loader:
            continue
        if not node.args:
            continue
        argument = node.args[0]
        if not (isinstance(argument, ast.Constant) and isinstance(argument.value, str)):
            continue
        yield node, argument.value


def argument_list_offset(tree: ScriptTree, call: ast.Call) -> int:
    """Offset just past the opening parenthesis of ``call``'s argument list."""
    func = call.func
    start = tree.offset_of(func.end_lineno, func.end_col_offset)
    paren = tree.index.text.find("(", start)
    if paren < 0:
        return start
    return paren + 1


def count_glob_matches(pattern: str, base_dir: Path) -> int:
    """Count regular files matching ``pattern`` relative to ``base_dir``.

    ``**`` matches across directories and ``{a,b}`` expands to alternatives.
    Wildcards do not match hidden names.
    """
    try:
        matches = glob.glob(pattern, flags=GLOB_FLAGS, root_dir=str(base_dir))
    except OSError as exc:
        logger.warning("Glob %r in %s failed: %s", pattern, base_dir, exc)
        return 0
    files = {match for match in matches if (base_dir / match).is_file()}
    logger.debug("Glob %r in %s matched %d file(s)", pattern, base_dir, len(files))
    return len(files)


def scan_glob_calls(
    tree: ScriptTree | None,
    base_dir: Path,
    *,
    loader: str = DEFAULT_GLOB_LOADER,
    token: CancellationToken | None = None,
) -> list[GlobAnnotation]:
    if tree is None:
        return []
    if token is not None and token.is_cancellation_requested:
        return []
    annotations: list[GlobAnnotation] = []
    for call, pattern in iter_glob_calls(tree, loader):
        if token is not None and token.is_cancellation_requested:
            logger.debug("Glob scan cancelled after %d call(s)", len(annotations))
            return []
        line, character = tree.index.position_at(argument_list_offset(tree, call))
        annotations.append(
            GlobAnnotation(
                line=line,
                character=character,
                match_count=count_glob_matches(pattern, base_dir),
                pattern=pattern,
            )
        )
    return annotations
