"""PID file support: external reload/restart triggers via SIGUSR1/SIGUSR2."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager

import aiofiles  # type: ignore[import-untyped]

from devlaunch.launcher.sessions import LiveReloadSession

logger = logging.getLogger(__name__)


async def write_pid_file(path: str | None) -> None:
    """Write the current process id to ``path`` (no-op when ``path`` is None)."""
    if not path:
        return
    async with aiofiles.open(path, "w") as f:
        await f.write(str(os.getpid()))
    logger.debug("wrote pid %d to %s", os.getpid(), path)


@contextmanager
def reload_signals(session: object, *, enabled: bool) -> Iterator[None]:
    """While active, SIGUSR1 reloads and SIGUSR2 restarts a live-reload session.

    Does nothing for one-shot sessions, when disabled, or on platforms
    without these signals.
    """
    if not enabled or not isinstance(session, LiveReloadSession) or not hasattr(signal, "SIGUSR1"):
        yield
        return

    loop = asyncio.get_running_loop()
    pending: set[asyncio.Task[None]] = set()

    def _trigger(action: Callable[[], Awaitable[None]], kind: str) -> None:
        logger.info("received signal, performing hot %s", kind)
        task = loop.create_task(_guarded(action, kind))
        pending.add(task)
        task.add_done_callback(pending.discard)

    handlers = {
        signal.SIGUSR1: (session.reload, "reload"),
        signal.SIGUSR2: (session.restart, "restart"),
    }
    for signum, (action, kind) in handlers.items():
        loop.add_signal_handler(signum, _trigger, action, kind)
    try:
        yield
    finally:
        for signum in handlers:
            loop.remove_signal_handler(signum)


async def _guarded(action: Callable[[], Awaitable[None]], kind: str) -> None:
    try:
        await action()
    except Exception as exc:
        logger.error("hot %s failed: %s", kind, exc)
