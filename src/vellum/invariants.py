"""Invariant markers for the Vellum language server."""

from __future__ import annotations

from typing import NoReturn

from vellum.exceptions import NeverThrown


def never(reason: str = "", **env: object) -> NoReturn:
    """Mark a code path as unreachable for well-formed collaborator input.

    The env payload is diagnostic metadata attached to the raised exception.
    """
    raise NeverThrown(reason or "never() marker reached", env=env)
