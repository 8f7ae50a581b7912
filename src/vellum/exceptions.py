"""Contract-violation exceptions for the Vellum language server."""

from __future__ import annotations


class NeverRaise(RuntimeError):
    """Raised when a caller breaks a contract the service relies on.

    Request handlers never raise for ordinary "not applicable" outcomes
    (cancellation, wrong document kind, missing syntax tree). Reaching this
    exception means an upstream collaborator produced a value outside its
    declared domain.
    """

    def __init__(self, message: str, *, env: dict[str, object] | None = None):
        super().__init__(message)
        self.env = dict(env or {})


class NeverThrown(NeverRaise):
    """Alias for NeverRaise used by the explicit never() marker."""
