import httpx
import openai
import pytest

from mods_openrouter.errors import RequestCancelled, RequestErrorHandler
from mods_openrouter.types import ErrorMessage, Model, RetryMessage

URL = "https://openrouter.ai/api/v1/chat/completions"


def api_error(status: int, code: str | None = None) -> openai.APIStatusError:
    response = httpx.Response(status, request=httpx.Request("POST", URL))
    return openai.APIStatusError("boom", response=response, body={"message": "boom", "code": code})


@pytest.fixture
def model():
    return Model(name="gpt-x")


def test_cancellation_is_terminal(model):
    msg = RequestErrorHandler()(RequestCancelled("r1"), model, "hi")
    assert isinstance(msg, ErrorMessage)
    assert isinstance(msg.err, RequestCancelled)
    assert msg.reason == "Request cancelled."


def test_missing_model_without_fallback(model):
    msg = RequestErrorHandler()(api_error(404), model, "hi")
    assert isinstance(msg, ErrorMessage)
    assert msg.reason == "Missing model 'gpt-x' for API 'openrouter'."


def test_missing_model_falls_back():
    model = Model(name="gpt-x", fallback="gpt-y", max_chars=100)
    msg = RequestErrorHandler()(api_error(404), model, "hi")
    assert isinstance(msg, RetryMessage)
    assert msg.model.name == "gpt-y"
    assert msg.model.max_chars == 100
    assert msg.content == "hi"
    assert msg.attempt == 1


def test_context_length(model):
    msg = RequestErrorHandler()(api_error(400, "context_length_exceeded"), model, "hi")
    assert msg.reason == "Maximum prompt size exceeded."


@pytest.mark.parametrize("status,reason", [
    (400, "openrouter API request error."),
    (401, "Invalid openrouter API key."),
    (500, "Error loading model 'gpt-x' for API 'openrouter'."),
])
def test_terminal_statuses(model, status, reason):
    msg = RequestErrorHandler()(api_error(status), model, "hi")
    assert isinstance(msg, ErrorMessage)
    assert msg.reason == reason


def test_rate_limit_retries_until_exhausted(model):
    handler = RequestErrorHandler(max_retries=3)
    first = handler(api_error(429), model, "hi")
    second = handler(api_error(429), model, "hi")
    third = handler(api_error(429), model, "hi")
    assert isinstance(first, RetryMessage)
    assert isinstance(second, RetryMessage)
    assert first.delay == 0.2
    assert second.attempt == 2
    assert second.delay == 0.4
    assert isinstance(third, ErrorMessage)
    assert third.reason == "You've hit your openrouter API rate limit."

    handler.reset()
    assert isinstance(handler(api_error(429), model, "hi"), RetryMessage)


def test_unknown_status_retries(model):
    msg = RequestErrorHandler()(api_error(503), model, "hi")
    assert isinstance(msg, RetryMessage)
    assert msg.err.reason == "Unknown API error."


def test_connection_error(model):
    err = openai.APIConnectionError(request=httpx.Request("POST", URL))
    msg = RequestErrorHandler()(err, model, "hi")
    assert isinstance(msg, ErrorMessage)
    assert msg.reason == "There was a problem with the openrouter API request."
