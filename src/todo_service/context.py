from __future__ import annotations

import threading
import time
from typing import Optional

from .errors import RequestCancelledError


# PUBLIC_INTERFACE
class RequestContext:
    """
    Cancellation token carried by one inbound request.

    The token is cancelled explicitly (client went away) or implicitly once its
    deadline passes. Every service and store call receives it and must stop
    working as soon as ``cancelled`` turns true.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout else None

    @classmethod
    def background(cls) -> "RequestContext":
        """A context that never expires and is never cancelled by a client."""
        return cls(timeout=None)

    def cancel(self) -> None:
        self._event.set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self.expired

    def raise_if_cancelled(self) -> None:
        """Raise RequestCancelledError if the request should stop."""
        if self._event.is_set():
            raise RequestCancelledError("request cancelled")
        if self.expired:
            raise RequestCancelledError("request deadline exceeded")
