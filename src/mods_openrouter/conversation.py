from __future__ import annotations

import logging

from .errors import ConversationError
from .types import ROLE_ASSISTANT, ROLE_SYSTEM, ROLE_USER, ChatMessage, Config, Model

logger = logging.getLogger(__name__)


class Conversation:
    def __init__(self, config: Config | None = None):
        self.config = config or Config()
        self._messages: list[ChatMessage] = []

    @property
    def messages(self) -> list[dict[str, str]]:
        return [m.as_dict() for m in self._messages]

    def append(self, role: str, content: str) -> None:
        self._messages.append(ChatMessage(role=role, content=content))

    def reset(self) -> None:
        self._messages = []

    def setup(self, content: str, model: Model) -> None:
        """Start a fresh history for one request, ending in the user turn."""
        cfg = self.config
        self.reset()
        if cfg.format:
            text = cfg.format_text.get(cfg.format_as, "")
            if text:
                self.append(ROLE_SYSTEM, text)
        if cfg.role:
            if cfg.role not in cfg.roles:
                raise ConversationError(f"role {cfg.role!r} does not exist", reason="Could not use role")
            for line in cfg.roles[cfg.role]:
                self.append(ROLE_SYSTEM, line)
        if cfg.prefix:
            content = f"{cfg.prefix}\n\n{content}".strip()
        if not cfg.no_limit and model.max_chars and len(content) > model.max_chars:
            logger.debug("truncating prompt from %d to %d chars", len(content), model.max_chars)
            content = content[:model.max_chars]
        self.append(ROLE_USER, content)

    def add_reply(self, content: str) -> None:
        self.append(ROLE_ASSISTANT, content)
