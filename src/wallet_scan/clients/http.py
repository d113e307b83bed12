"""Blocking ``requests`` calls exposed as coroutines.

This is the only place that talks to the network. Adapters receive an
``HttpClient`` and never import ``requests`` themselves.

Requests run on a dedicated thread pool guarded by a semaphore of the same
size, so a request that holds a slot always has a worker thread. A slot is
freed when its worker thread finishes, not when the awaiting coroutine
gives up, so abandoned requests keep counting against the limit.
"""

from __future__ import annotations

import asyncio
import contextvars
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable

import requests

from ..constants import DEFAULT_MAX_CONCURRENT_REQUESTS, DEFAULT_REQUEST_TIMEOUT
from ..logger import TRACE, get_logger

logger = get_logger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "wallet-scan",
}


class _Reservation:
    __slots__ = ("handed_off",)

    def __init__(self) -> None:
        self.handed_off = False


_reservation: contextvars.ContextVar[_Reservation | None] = contextvars.ContextVar(
    "wallet_scan_http_reservation", default=None
)


class HttpClient:
    """Perform an HTTP request and return the decoded JSON body, or raise.

    ``request_timeout`` is the default socket-level timeout handed to
    ``requests``; callers with their own deadline pass ``timeout=``.
    ``max_concurrency`` bounds the requests in flight across all sources.
    """

    def __init__(
        self,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        max_concurrency: int = DEFAULT_MAX_CONCURRENT_REQUESTS,
    ):
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
        self._request_timeout = request_timeout
        self.max_concurrency = max_concurrency
        self._slots = asyncio.Semaphore(max_concurrency)
        self._executor = ThreadPoolExecutor(
            max_workers=max_concurrency, thread_name_prefix="wallet-scan-http"
        )

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Wait for a free request slot before entering the block.

        The next request issued inside the block uses the reserved slot, so
        a deadline started inside the block does not count the wait.
        """
        await self._slots.acquire()
        reservation = _Reservation()
        token = _reservation.set(reservation)
        try:
            yield
        finally:
            _reservation.reset(token)
            if not reservation.handed_off:
                self._slots.release()

    async def get_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        return await self._run(
            lambda: self._request(
                "GET", url, params=params, headers=headers, timeout=timeout
            )
        )

    async def post_json(
        self,
        url: str,
        payload: Any,
        *,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        return await self._run(
            lambda: self._request(
                "POST", url, json=payload, headers=headers, timeout=timeout
            )
        )

    async def _run(self, fn: Callable[[], Any]) -> Any:
        reservation = _reservation.get()
        if reservation is not None and not reservation.handed_off:
            reservation.handed_off = True
        else:
            await self._slots.acquire()

        loop = asyncio.get_running_loop()
        try:
            future = self._executor.submit(fn)
        except BaseException:
            self._slots.release()
            raise

        def _free_slot(_: Future) -> None:
            try:
                loop.call_soon_threadsafe(self._slots.release)
            except RuntimeError:
                # event loop already closed; nobody is waiting for the slot
                pass

        future.add_done_callback(_free_slot)
        return await asyncio.wrap_future(future)

    def _request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> Any:
        response = requests.request(
            method,
            url,
            headers={**DEFAULT_HEADERS, **(headers or {})},
            timeout=timeout or self._request_timeout,
            **kwargs,
        )
        # URL omitted: it may embed a provider key
        logger.log(TRACE, "%s request -> HTTP %d", method, response.status_code)
        response.raise_for_status()
        return response.json()
