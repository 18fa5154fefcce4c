from .cancel import CancelSlot, CancelToken
from .conversation import Conversation
from .errors import ConversationError, ModsOpenRouterError, RequestCancelled, RequestErrorHandler
from .openrouter import (
    OpenRouterSession,
    build_completion_request,
    build_http_client,
    create_openrouter_async_client,
    create_openrouter_client,
    new_openrouter_client,
)
from .stream import StreamReceiver
from .transport import AsyncHeaderTransport, HeaderTransport, openrouter_headers
from .types import (
    OPENROUTER_BASE_URL,
    ChatMessage,
    ClientConfig,
    CompletionOutput,
    Config,
    ErrorMessage,
    Model,
    RetryMessage,
    default_openrouter_config,
)

__all__ = [
    "OpenRouterSession",
    "build_completion_request",
    "build_http_client",
    "new_openrouter_client",
    "create_openrouter_client",
    "create_openrouter_async_client",
    "AsyncHeaderTransport",
    "HeaderTransport",
    "openrouter_headers",
    "CancelSlot",
    "CancelToken",
    "Conversation",
    "StreamReceiver",
    "RequestErrorHandler",
    "ModsOpenRouterError",
    "ConversationError",
    "RequestCancelled",
    "OPENROUTER_BASE_URL",
    "ClientConfig",
    "default_openrouter_config",
    "Config",
    "Model",
    "ChatMessage",
    "CompletionOutput",
    "ErrorMessage",
    "RetryMessage",
]
