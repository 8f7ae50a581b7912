from __future__ import annotations

import threading
from dataclasses import dataclass, field


@dataclass
class CancellationToken:
    """Cooperative cancellation flag shared between a request and its host.

    Work is never interrupted; each stage polls ``is_cancellation_requested``
    before it starts.
    """

    _event: threading.Event = field(default_factory=threading.Event, repr=False)

    @classmethod
    def cancelled(cls) -> "CancellationToken":
        token = cls()
        token.cancel()
        return token

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event.is_set()
