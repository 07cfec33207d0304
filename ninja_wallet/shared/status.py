"""Single-slot, self-expiring status line shared by every wallet component."""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Callable

from ninja_wallet.models import StatusKind, StatusMessage

logger = logging.getLogger(__name__)

StatusListener = Callable[[StatusMessage | None], None]

DEFAULT_STATUS_DURATION = 5.0


class StatusNotifier:
    """Holds at most one live message.

    Publishing replaces the current message and restarts the expiry timer.
    Expiry is keyed to the message id, so a timer belonging to an older
    message never clears a newer one.
    """

    def __init__(
        self,
        duration: float = DEFAULT_STATUS_DURATION,
        on_change: StatusListener | None = None,
    ):
        self.duration = duration
        self._listeners: list[StatusListener] = [on_change] if on_change else []
        self._current: StatusMessage | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._ids = itertools.count(1)

    @property
    def current(self) -> StatusMessage | None:
        return self._current

    def subscribe(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    def publish(self, text: str, kind: StatusKind = StatusKind.INFO) -> StatusMessage:
        loop = asyncio.get_running_loop()
        self._cancel_timer()

        message = StatusMessage(
            id=next(self._ids),
            text=text,
            kind=kind,
            expires_at=loop.time() + self.duration,
        )
        self._current = message
        self._timer = loop.call_later(self.duration, self._expire, message.id)

        if kind == StatusKind.ERROR:
            logger.warning("Status [%s]: %s", kind.value, text)
        else:
            logger.info("Status [%s]: %s", kind.value, text)

        self._notify()
        return message

    def info(self, text: str) -> StatusMessage:
        return self.publish(text, StatusKind.INFO)

    def success(self, text: str) -> StatusMessage:
        return self.publish(text, StatusKind.SUCCESS)

    def error(self, text: str) -> StatusMessage:
        return self.publish(text, StatusKind.ERROR)

    def clear(self) -> None:
        self._cancel_timer()
        if self._current is not None:
            self._current = None
            self._notify()

    def close(self) -> None:
        """Cancel the pending timer and drop listeners; used on shutdown."""
        self._cancel_timer()
        self._current = None
        self._listeners.clear()

    def _expire(self, message_id: int) -> None:
        if self._current is None or self._current.id != message_id:
            return
        self._current = None
        self._timer = None
        self._notify()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._current)
            except Exception as e:
                logger.error("Error in status listener: %s", e)
