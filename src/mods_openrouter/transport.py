"""httpx transports that stamp a fixed header set onto every request.

The wrapped request is always a clone: the caller keeps an untouched
``httpx.Request`` it can inspect or resend. Headers are appended, never
replaced, so a name the caller already set ends up carrying both values.
"""

from __future__ import annotations

from typing import Mapping

import httpx

HTTP_REFERER = "https://github.com/charmbracelet/mods"
X_TITLE = "Mods CLI"


def openrouter_headers() -> httpx.Headers:
    headers = httpx.Headers()
    headers["HTTP-Referer"] = HTTP_REFERER
    headers["X-Title"] = X_TITLE
    return headers


def _clone(request: httpx.Request, headers: httpx.Headers) -> httpx.Request:
    return httpx.Request(
        request.method,
        request.url,
        headers=request.headers.raw + headers.raw,
        stream=request.stream,
        extensions=dict(request.extensions),
    )


class HeaderTransport(httpx.BaseTransport):
    def __init__(self, transport: httpx.BaseTransport | None = None,
                 headers: Mapping[str, str] | httpx.Headers | None = None):
        self._transport = transport
        self._owned = False
        self._headers = httpx.Headers(headers)

    @property
    def headers(self) -> httpx.Headers:
        return httpx.Headers(self._headers)

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        if self._transport is None:
            self._transport = httpx.HTTPTransport()
            self._owned = True
        return self._transport.handle_request(_clone(request, self._headers))

    def close(self) -> None:
        # a borrowed inner transport belongs to the client it came from
        if self._owned:
            self._transport.close()


class AsyncHeaderTransport(httpx.AsyncBaseTransport):
    def __init__(self, transport: httpx.AsyncBaseTransport | None = None,
                 headers: Mapping[str, str] | httpx.Headers | None = None):
        self._transport = transport
        self._owned = False
        self._headers = httpx.Headers(headers)

    @property
    def headers(self) -> httpx.Headers:
        return httpx.Headers(self._headers)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if self._transport is None:
            self._transport = httpx.AsyncHTTPTransport()
            self._owned = True
        return await self._transport.handle_async_request(_clone(request, self._headers))

    async def aclose(self) -> None:
        if self._owned:
            await self._transport.aclose()
