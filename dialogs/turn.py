"""TurnContext — one inbound turn and the channel to answer on."""
from __future__ import annotations

from typing import Optional

from channels.base import ActivityChannel
from dialogs.errors import ConfigurationError


class TurnContext:
    """
    Ephemeral per-turn value. Holds the inbound text (None for turns that
    carry no text) and sends replies for exactly one conversation.
    """

    def __init__(self, conversation_key: str, text: Optional[str], channel: ActivityChannel):
        if not conversation_key:
            raise ConfigurationError("conversation_key is required")
        if channel is None:
            raise ConfigurationError("channel is required")
        self.conversation_key = conversation_key
        self.text = text
        self.channel = channel
        self.sent_count = 0

    async def send(self, text: str) -> None:
        await self.channel.emit(self.conversation_key, text)
        self.sent_count += 1

    @property
    def responded(self) -> bool:
        return self.sent_count > 0

    def __repr__(self):
        return f"<TurnContext conv={self.conversation_key[:8]} text={self.text!r}>"
