from __future__ import annotations

import logging
from typing import Callable

import httpx
import openai

from .conversation import Conversation
from .types import CompletionOutput, ErrorMessage, Message

logger = logging.getLogger(__name__)


class StreamReceiver:
    """Drains a chat-completion stream into a single :class:`CompletionOutput`.

    A failure partway through the stream closes it and comes back as an
    :class:`ErrorMessage`; nothing is added to the conversation in that case.
    """

    def __init__(self, conversation: Conversation | None = None,
                 on_chunk: Callable[[str], None] | None = None):
        self._conversation = conversation
        self._on_chunk = on_chunk

    async def __call__(self, output: CompletionOutput) -> Message:
        parts: list[str] = []
        finish_reason = None
        try:
            async for chunk in output.stream:
                for choice in chunk.choices:
                    text = choice.delta.content if choice.delta else None
                    if text:
                        parts.append(text)
                        if self._on_chunk:
                            self._on_chunk(text)
                    if choice.finish_reason:
                        finish_reason = choice.finish_reason
        except (openai.APIError, httpx.HTTPError) as exc:
            logger.debug("stream failed after %d fragments: %r", len(parts), exc)
            await output.stream.close()
            return ErrorMessage(exc, "There was an error when streaming the API response.")
        content = "".join(parts)
        if self._conversation is not None:
            self._conversation.add_reply(content)
        return CompletionOutput(stream=output.stream, content=content, finish_reason=finish_reason)
