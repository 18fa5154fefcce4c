"""Exceptions and the default classifier for failed completion requests."""

from __future__ import annotations

import logging

import openai

from .types import ErrorMessage, Message, Model, RetryMessage

logger = logging.getLogger(__name__)


class ModsOpenRouterError(Exception):
    pass


class ConversationError(ModsOpenRouterError):
    def __init__(self, message: str, reason: str = ""):
        super().__init__(message)
        self.reason = reason


class RequestCancelled(ModsOpenRouterError):
    def __init__(self, request_id: str = ""):
        super().__init__(f"request {request_id} cancelled" if request_id else "request cancelled")
        self.request_id = request_id


class RequestErrorHandler:
    """Turns a failed stream request into a terminal error or a retry.

    Retries are only *proposed* via :class:`RetryMessage`, together with the
    delay to wait first; re-issuing the request is up to whoever consumes the
    message. Proposals stop once ``max_retries`` have been handed out since
    the last :meth:`reset` and the error is returned instead.
    """

    def __init__(self, max_retries: int = 5):
        self.max_retries = max_retries
        self.retries = 0

    def reset(self) -> None:
        self.retries = 0

    def __call__(self, err: BaseException, model: Model, content: str) -> Message:
        if isinstance(err, RequestCancelled):
            return ErrorMessage(err, "Request cancelled.")
        if isinstance(err, openai.APIStatusError):
            return self._api_error(err, model, content)
        logger.debug("request to %s failed: %r", model.api, err)
        return ErrorMessage(err, f"There was a problem with the {model.api} API request.")

    def _api_error(self, err: openai.APIStatusError, model: Model, content: str) -> Message:
        status = err.status_code
        logger.warning("%s API returned %s for model %s", model.api, status, model.name)
        if status == 404:
            if model.fallback:
                fallback = Model(name=model.fallback, api=model.api, max_chars=model.max_chars)
                return self._retry(content, fallback, ErrorMessage(err, f"{model.api} API server error."))
            return ErrorMessage(err, f"Missing model '{model.name}' for API '{model.api}'.")
        if status == 400:
            if err.code == "context_length_exceeded":
                return ErrorMessage(err, "Maximum prompt size exceeded.")
            return ErrorMessage(err, f"{model.api} API request error.")
        if status == 401:
            return ErrorMessage(err, f"Invalid {model.api} API key.")
        if status == 429:
            return self._retry(content, model, ErrorMessage(err, f"You've hit your {model.api} API rate limit."))
        if status == 500:
            return ErrorMessage(err, f"Error loading model '{model.name}' for API '{model.api}'.")
        return self._retry(content, model, ErrorMessage(err, "Unknown API error."))

    def _retry(self, content: str, model: Model, err: ErrorMessage) -> Message:
        self.retries += 1
        if self.retries >= self.max_retries:
            return err
        # 100ms doubled per attempt
        delay = 0.1 * 2 ** self.retries
        return RetryMessage(content=content, model=model, err=err, attempt=self.retries, delay=delay)
