import json

import httpx
import pytest

from mods_openrouter.types import ClientConfig


def make_chunk(content: str | None = None, finish_reason: str | None = None, model: str = "gpt-x") -> dict:
    delta = {"role": "assistant", "content": content} if content is not None else {}
    return {
        "id": "gen-test",
        "object": "chat.completion.chunk",
        "created": 1700000000,
        "model": model,
        "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
    }


def sse_body(*parts: str, finish_reason: str = "stop") -> bytes:
    """Builds a server-sent-events body as OpenRouter streams it."""
    events = [make_chunk(p) for p in parts]
    events.append(make_chunk(finish_reason=finish_reason))
    lines = [f"data: {json.dumps(e)}\n\n" for e in events]
    lines.append("data: [DONE]\n\n")
    return "".join(lines).encode()


def stream_response(*parts: str) -> httpx.Response:
    return httpx.Response(
        200,
        headers={"content-type": "text/event-stream"},
        content=sse_body(*parts),
    )


def error_response(status: int, message: str = "boom", code: str | None = None) -> httpx.Response:
    return httpx.Response(status, json={"error": {"message": message, "code": code}})


class Recorder:
    """httpx.MockTransport handler that remembers every request it serves."""

    def __init__(self, responder=None):
        self.requests: list[httpx.Request] = []
        self._responder = responder or (lambda request: stream_response("Hel", "lo"))

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        return self._responder(request)

    @property
    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def ccfg(recorder):
    return ClientConfig(
        auth_token="test-key",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(recorder)),
    )


@pytest.fixture
def default_transport(monkeypatch, recorder):
    """Routes the lazily created platform transports to the recorder."""
    created = []

    def factory(*args, **kwargs):
        transport = httpx.MockTransport(recorder)
        created.append(transport)
        return transport

    monkeypatch.setattr(httpx, "AsyncHTTPTransport", factory)
    monkeypatch.setattr(httpx, "HTTPTransport", factory)
    return created
