from __future__ import annotations

import logging
import os
from dataclasses import replace
from typing import Any, Callable, Coroutine

import httpx
import openai

from .cancel import CancelSlot, CancelToken
from .conversation import Conversation
from .errors import RequestCancelled, RequestErrorHandler
from .llm import invoke
from .stream import StreamReceiver
from .transport import AsyncHeaderTransport, HeaderTransport, openrouter_headers
from .types import (
    OPENROUTER_BASE_URL,
    ClientConfig,
    CompletionOutput,
    Config,
    ErrorHandler,
    ErrorMessage,
    Message,
    Model,
    StreamHandler,
)

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30.0


def _inner_transport(http_client: httpx.AsyncClient | None) -> httpx.AsyncBaseTransport | None:
    if http_client is None:
        return None
    # httpx keeps the client's transport private
    return getattr(http_client, "_transport", None)


def build_http_client(ccfg: ClientConfig, headers: httpx.Headers | None = None) -> httpx.AsyncClient:
    transport = AsyncHeaderTransport(
        _inner_transport(ccfg.http_client),
        openrouter_headers() if headers is None else headers,
    )
    return httpx.AsyncClient(transport=transport, timeout=REQUEST_TIMEOUT)


def new_openrouter_client(ccfg: ClientConfig) -> openai.AsyncOpenAI:
    return openai.AsyncOpenAI(
        api_key=ccfg.auth_token,
        base_url=ccfg.base_url,
        http_client=ccfg.http_client,
        max_retries=0,
    )


def build_completion_request(model: Model, messages: list[dict[str, str]],
                             cfg: Config, user: str = "") -> dict[str, Any]:
    # temperature/top_p are always sent; some backends treat a missing value
    # differently from 0
    request: dict[str, Any] = {
        "model": model.name,
        "messages": list(messages),
        "stream": True,
        "temperature": cfg.temperature or 0.0,
        "top_p": cfg.top_p or 0.0,
    }
    user = cfg.user or user
    if user:
        request["user"] = user
    if cfg.stop:
        request["stop"] = list(cfg.stop)
    if cfg.max_tokens:
        request["max_tokens"] = cfg.max_tokens
    return request


class OpenRouterSession:
    """Issues streaming chat completions against OpenRouter, one at a time.

    The conversation, error handler and stream handler are collaborators;
    each may be a plain callable or a coroutine function. Starting a request
    cancels the previous one and waits for it to finish first.
    """

    def __init__(self, config: Config | None = None,
                 conversation: Conversation | None = None,
                 error_handler: ErrorHandler | None = None,
                 stream_handler: StreamHandler | None = None):
        self.config = config or Config()
        self.conversation = conversation or Conversation(self.config)
        self.error_handler = error_handler or RequestErrorHandler(self.config.max_retries)
        self.stream_handler = stream_handler or StreamReceiver(self.conversation)
        self._cancel = CancelSlot()

    @property
    def cancel_token(self) -> CancelToken | None:
        return self._cancel.current

    @property
    def streaming(self) -> bool:
        token = self._cancel.current
        return token is not None and not token.done

    def cancel_request(self) -> bool:
        return self._cancel.cancel()

    async def cancel_and_wait(self) -> None:
        await self._cancel.cancel_and_wait()

    async def create_stream(self, content: str, ccfg: ClientConfig, model: Model) -> Message:
        token = CancelToken()
        client: openai.AsyncOpenAI | None = None
        failure: Exception | None = None
        try:
            await self._cancel.replace(token)
            ccfg = replace(ccfg, http_client=build_http_client(ccfg))
            client = new_openrouter_client(ccfg)

            await invoke(self.conversation.setup, content, model)
            request = build_completion_request(model, self.conversation.messages, self.config, ccfg.user)
            logger.debug("request %s: streaming %s from %s", token.request_id, model.name, ccfg.base_url)
            try:
                stream = await token.run(client.chat.completions.create(**request))
            except Exception as exc:
                failure = exc
            else:
                try:
                    result = await token.run(invoke(self.stream_handler, CompletionOutput(stream=stream)))
                except RequestCancelled as exc:
                    logger.debug("request %s cancelled while streaming", token.request_id)
                    return ErrorMessage(exc, "Request cancelled.")
                if isinstance(result, CompletionOutput) and isinstance(self.error_handler, RequestErrorHandler):
                    self.error_handler.reset()
                return result
        finally:
            if client is not None:
                await client.close()
            token.finish()
        # the token is finished first so the handler may start a new request
        return await invoke(self.error_handler, failure, model, content)


def create_openrouter_client(model: str, api_key: str | None = None,
                             base_url: str = OPENROUTER_BASE_URL) -> Callable[[str], str]:
    key = api_key or os.environ["OPENROUTER_API_KEY"]
    client = openai.OpenAI(
        api_key=key,
        base_url=base_url,
        http_client=httpx.Client(transport=HeaderTransport(None, openrouter_headers()), timeout=REQUEST_TIMEOUT),
    )

    def call(prompt: str) -> str:
        resp = client.chat.completions.create(
            model=model, messages=[{"role": "user", "content": prompt}]
        )
        return resp.choices[0].message.content or ""

    return call


def create_openrouter_async_client(model: str, api_key: str | None = None,
                                   base_url: str = OPENROUTER_BASE_URL) -> Callable[[str], Coroutine]:
    key = api_key or os.environ["OPENROUTER_API_KEY"]
    ccfg = ClientConfig(auth_token=key, base_url=base_url)

    async def call(prompt: str) -> str:
        async with build_http_client(ccfg) as http_client:
            client = openai.AsyncOpenAI(api_key=key, base_url=base_url, http_client=http_client)
            resp = await client.chat.completions.create(
                model=model, messages=[{"role": "user", "content": prompt}]
            )
            return resp.choices[0].message.content or ""

    return call
