"""Continuous camera scan handling.

A camera decodes the same static QR image many times per second. The scan
session debounces those frames before anything reaches the validator, and
lets in-flight check-ins finish when the scanner is closed.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterable, Awaitable, Callable
from typing import Any

from campus_checkin.core.settings import settings

ScanHandler = Callable[[str], Awaitable[Any]]

logger = logging.getLogger(__name__)


class ScanSession:
    """Feeds decoded camera frames to a handler, at most once per debounce window."""

    def __init__(
        self,
        handler: ScanHandler,
        *,
        debounce_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        on_close: Callable[[], None] | None = None,
    ) -> None:
        self.handler = handler
        self.debounce_seconds = (
            settings.scan_debounce_seconds if debounce_seconds is None else debounce_seconds
        )
        self._clock = clock
        self._on_close = on_close
        self._last_accepted: float | None = None
        self._closed = asyncio.Event()
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def pending(self) -> int:
        """Number of handler calls still running."""
        return len(self._tasks)

    def submit(self, raw: str) -> asyncio.Task[Any] | None:
        """Offer one decoded frame; returns the handler task if it was accepted."""
        if self.closed or not raw or not raw.strip():
            return None

        now = self._clock()
        if self._last_accepted is not None and now - self._last_accepted < self.debounce_seconds:
            return None
        self._last_accepted = now

        task = asyncio.create_task(self._handle(raw))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _handle(self, raw: str) -> Any:
        try:
            return await self.handler(raw)
        except Exception:
            logger.exception("Scan handler failed")
            return None

    async def run(self, frames: AsyncIterable[str]) -> None:
        """Consume frames until the source ends or the session is closed."""
        iterator = frames.__aiter__()
        while not self.closed:
            next_frame = asyncio.ensure_future(iterator.__anext__())
            closing = asyncio.ensure_future(self._closed.wait())
            done, _ = await asyncio.wait(
                {next_frame, closing}, return_when=asyncio.FIRST_COMPLETED
            )
            if next_frame not in done:
                next_frame.cancel()
                break
            closing.cancel()
            try:
                raw = next_frame.result()
            except StopAsyncIteration:
                break
            self.submit(raw)

    def close(self) -> None:
        """Stop accepting frames and release the camera.

        In-flight handler calls are left to finish so no write is cut short.
        """
        if self.closed:
            return
        self._closed.set()
        if self._on_close is not None:
            self._on_close()
        logger.debug("Scan session closed with %d check-ins in flight", len(self._tasks))

    async def drain(self) -> None:
        """Wait for every in-flight handler call to complete."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
