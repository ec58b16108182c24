"""Single-fire signal marking that a session reached a runnable state."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import cast

from devlaunch.shared.models import utc_now

logger = logging.getLogger(__name__)


class AppStartedSignal:
    """Write-once signal with any number of readers.

    ``fire()`` records the time synchronously, so observers never see a
    fired signal without a timestamp. A second ``fire()`` raises. Waiters
    must tolerate the signal never firing (the session may fail before
    reaching a running state).
    """

    def __init__(self, *, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock
        self._fired_at: datetime | None = None
        self._event = asyncio.Event()
        self._callbacks: list[Callable[[datetime], None]] = []

    @property
    def fired(self) -> bool:
        return self._fired_at is not None

    @property
    def fired_at(self) -> datetime | None:
        return self._fired_at

    def fire(self) -> datetime:
        """Mark the app as started.

        Raises:
            RuntimeError: If the signal has already fired.
        """
        if self._fired_at is not None:
            raise RuntimeError("app started signal already fired")
        self._fired_at = self._clock()
        self._event.set()
        for callback in self._callbacks:
            callback(self._fired_at)
        return self._fired_at

    def add_listener(self, callback: Callable[[datetime], None]) -> None:
        """Run ``callback(fired_at)`` on fire, or immediately if already fired.

        Callbacks must not raise.
        """
        if self._fired_at is not None:
            callback(self._fired_at)
            return
        self._callbacks.append(callback)

    async def wait(self) -> datetime:
        """Block until fired. Never returns if the producer path is not reached."""
        await self._event.wait()
        return cast(datetime, self._fired_at)
