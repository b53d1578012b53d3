from __future__ import annotations

"""
Transient status notices ("Encrypted proposal submitted securely!", ...).

One current notice at a time. A notice posted with a ttl expires lazily on
read and, when an event loop is running, a scheduled callback clears it and
notifies listeners.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

PENDING = "pending"
SUCCESS = "success"
ERROR = "error"

STATUSES = (PENDING, SUCCESS, ERROR)

MSG_ENCRYPTING = "Encrypting vote data with Zama FHE..."
MSG_PROCESSING = "Processing encrypted votes with FHE..."
MSG_SUBMITTED = "Encrypted proposal submitted securely!"
MSG_APPROVED = "FHE approval completed successfully!"
MSG_REJECTED = "FHE rejection completed successfully!"
MSG_USER_REJECTED = "Transaction rejected by user"


@dataclass(frozen=True)
class Notice:
    status: str
    message: str
    expires_at: Optional[float] = None

    def expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class NotificationBoard:
    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self.clock = clock
        self._current: Optional[Notice] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._listeners: List[Callable[[Optional[Notice]], None]] = []

    def subscribe(self, fn: Callable[[Optional[Notice]], None]) -> None:
        self._listeners.append(fn)

    def _emit(self) -> None:
        for fn in list(self._listeners):
            fn(self._current)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def post(self, status: str, message: str, ttl: Optional[float] = None) -> Notice:
        if status not in STATUSES:
            raise ValueError(f"unknown notice status: {status}")
        self._cancel_timer()
        expires_at = self.clock() + ttl if ttl is not None else None
        notice = Notice(status=status, message=message, expires_at=expires_at)
        self._current = notice

        if ttl is not None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
            if loop is not None:
                self._timer = loop.call_later(ttl, self._expire, notice)

        self._emit()
        return notice

    def _expire(self, notice: Notice) -> None:
        # A newer notice may have replaced this one already.
        if self._current is notice:
            self.clear()

    def clear(self) -> None:
        self._cancel_timer()
        self._current = None
        self._emit()

    def current(self) -> Optional[Notice]:
        notice = self._current
        if notice is not None and notice.expired(self.clock()):
            self._current = None
            return None
        return notice
