import itertools
import time
from typing import Any, Callable, Optional


class Debouncer:
    """Coalesce bursts of updates, keeping only the latest.

    `submit` replaces any pending value and restarts the window; `pop_ready`
    hands the value out once, after `window` seconds without a new submit.
    """

    def __init__(self, window: float, clock: Callable[[], float] = time.monotonic):
        self.window = window
        self._clock = clock
        self._tokens = itertools.count(1)
        self._pending: Optional[Any] = None
        self._token: Optional[int] = None
        self._submitted_at = 0.0

    @property
    def pending(self) -> bool:
        return self._token is not None

    @property
    def token(self) -> Optional[int]:
        return self._token

    def submit(self, value: Any) -> int:
        self._pending = value
        self._token = next(self._tokens)
        self._submitted_at = self._clock()
        return self._token

    def pop_ready(self) -> Optional[Any]:
        if self._token is None:
            return None
        if self._clock() - self._submitted_at < self.window:
            return None
        value = self._pending
        self.cancel()
        return value

    def cancel(self) -> None:
        self._pending = None
        self._token = None
