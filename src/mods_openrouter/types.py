from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Union

import httpx

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

ROLE_SYSTEM = "system"
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"


@dataclass(frozen=True)
class ClientConfig:
    auth_token: str = ""
    base_url: str = OPENROUTER_BASE_URL
    http_client: httpx.AsyncClient | None = None
    user: str = ""

    @classmethod
    def from_env(cls) -> "ClientConfig":
        return default_openrouter_config(
            os.environ["OPENROUTER_API_KEY"],
            base_url=os.getenv("OPENROUTER_BASE_URL") or OPENROUTER_BASE_URL,
        )


def default_openrouter_config(auth_token: str, base_url: str = OPENROUTER_BASE_URL) -> ClientConfig:
    return ClientConfig(auth_token=auth_token, base_url=base_url, http_client=httpx.AsyncClient())


@dataclass
class Model:
    name: str = ""
    api: str = "openrouter"
    max_chars: int = 0
    fallback: str = ""
    aliases: list[str] = field(default_factory=list)


@dataclass
class Config:
    model: str = ""
    temperature: float | None = None
    top_p: float | None = None
    stop: list[str] = field(default_factory=list)
    max_tokens: int = 0
    user: str = ""
    max_retries: int = 5
    no_limit: bool = False
    prefix: str = ""
    role: str = ""
    roles: dict[str, list[str]] = field(default_factory=dict)
    format: bool = False
    format_as: str = "markdown"
    format_text: dict[str, str] = field(default_factory=dict)


@dataclass
class ChatMessage:
    role: str = ROLE_USER
    content: str = ""

    def as_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class CompletionOutput:
    stream: Any = None
    content: str = ""
    finish_reason: str | None = None


@dataclass
class ErrorMessage:
    err: BaseException
    reason: str = ""

    def __str__(self) -> str:
        return f"{self.reason} {self.err}".strip()


@dataclass
class RetryMessage:
    content: str
    model: Model
    err: ErrorMessage
    attempt: int = 1
    delay: float = 0.0


Message = Union[CompletionOutput, ErrorMessage, RetryMessage]

ErrorHandler = Callable[[BaseException, Model, str], Union[Message, Awaitable[Message]]]
StreamHandler = Callable[[CompletionOutput], Union[Message, Awaitable[Message]]]
