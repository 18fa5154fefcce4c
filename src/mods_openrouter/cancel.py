"""Cancellation tokens and the single-slot holder a session keeps them in.

A session owns one :class:`CancelSlot`. Installing a new token cancels the
token it replaces and waits for that request to wind down, so at most one
request per session is ever in flight.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable
from uuid import uuid4

from .errors import RequestCancelled

logger = logging.getLogger(__name__)


class CancelToken:
    def __init__(self, request_id: str | None = None):
        self.request_id = request_id or uuid4().hex
        self._cancelled = asyncio.Event()
        self._done = asyncio.Event()
        self._task: asyncio.Future | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def cancel(self) -> None:
        if self._cancelled.is_set():
            return
        logger.debug("cancelling request %s", self.request_id)
        self._cancelled.set()
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def finish(self) -> None:
        self._done.set()

    async def wait(self) -> None:
        await self._done.wait()

    async def run(self, aw: Awaitable[Any]) -> Any:
        """Await ``aw`` as a task that :meth:`cancel` can interrupt.

        Raises :class:`RequestCancelled` if the token is cancelled before or
        while the work runs. An outer cancellation of the caller still
        surfaces as ``asyncio.CancelledError``.
        """
        if self.cancelled:
            if asyncio.iscoroutine(aw):
                aw.close()
            raise RequestCancelled(self.request_id)
        task = asyncio.ensure_future(aw)
        self._task = task
        try:
            return await task
        except asyncio.CancelledError:
            if self.cancelled and task.cancelled():
                raise RequestCancelled(self.request_id) from None
            raise
        finally:
            self._task = None


class CancelSlot:
    def __init__(self):
        self._current: CancelToken | None = None
        self._lock = asyncio.Lock()

    @property
    def current(self) -> CancelToken | None:
        return self._current

    async def replace(self, token: CancelToken) -> None:
        async with self._lock:
            previous, self._current = self._current, token
            if previous is None or previous.done:
                return
            previous.cancel()
            await previous.wait()

    def cancel(self) -> bool:
        token = self._current
        if token is None or token.done:
            return False
        token.cancel()
        return True

    async def cancel_and_wait(self) -> None:
        async with self._lock:
            token = self._current
            if token is None or token.done:
                return
            token.cancel()
            await token.wait()
