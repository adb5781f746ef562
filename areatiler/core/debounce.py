"""
areatiler.core.debounce - Trailing-edge debounce for continuous input.

The engine itself is synchronous. A caller driving a live drag or a live
resize wraps the high-frequency update in a TrailingDebouncer so that
only the last position of each ~16 ms window reaches the engine, and
calls flush() on pointer release so the final state is never dropped:

    update = TrailingDebouncer(engine.update_area_to_open_position)
    ...
    update(pos)           # on every pointer move
    ...
    update.flush()        # on release, before finalize_area_placement()

The engine is not thread-safe: every call into it must come from the
same thread. The default debouncer fires from a threading.Timer thread,
which is only safe when *fn* hands the call back to the owner's thread
(an event-loop callback, a queue). To stay on one thread, build it with
threaded=False and call poll() from the caller's own loop; poll() and
flush() both run *fn* on the calling thread.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any, Optional

from areatiler.config.defaults import DEBOUNCE_SECONDS

log = logging.getLogger(__name__)


class TrailingDebouncer:
    """
    Calls *fn* with the most recent arguments once no call arrived for
    *delay* seconds.

    With *threaded* the call runs on a threading.Timer thread. Without
    it no thread is started and the caller delivers the call itself
    through poll() or flush().
    """

    def __init__(
        self,
        fn: Callable[..., Any],
        delay: float = DEBOUNCE_SECONDS,
        threaded: bool = True,
    ) -> None:
        self._fn = fn
        self._delay = delay
        self._threaded = threaded
        self._due = 0.0
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[tuple[tuple[Any, ...], dict[str, Any]]] = None

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        """True while a call is waiting for its window to close."""
        with self._lock:
            return self._pending is not None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            self._pending = (args, kwargs)
            self._due = time.monotonic() + self._delay
            if not self._threaded:
                return
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _take(self) -> Optional[tuple[tuple[Any, ...], dict[str, Any]]]:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            pending, self._pending = self._pending, None
            return pending

    def _fire(self) -> None:
        pending = self._take()
        if pending is None:
            return
        args, kwargs = pending
        try:
            self._fn(*args, **kwargs)
        except Exception:
            log.exception("Error in debounced call %s", getattr(self._fn, "__name__", self._fn))

    def poll(self) -> bool:
        """
        Run the pending call on the calling thread if its window closed.

        Returns:
            True if the call ran.
        """
        with self._lock:
            if self._pending is None or time.monotonic() < self._due:
                return False
        return self.flush()

    def flush(self) -> bool:
        """
        Run the pending call now, on the calling thread.

        Returns:
            True if there was a pending call.
        """
        pending = self._take()
        if pending is None:
            return False
        args, kwargs = pending
        self._fn(*args, **kwargs)
        return True

    def cancel(self) -> bool:
        """Drop the pending call. Returns True if there was one."""
        return self._take() is not None
