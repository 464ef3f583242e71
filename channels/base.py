"""
Activity Channels — where the bot's outbound messages go.

Provides:
- InputSanitizer: cleans inbound text before it reaches a prompt
- ActivityChannel: abstract base; emit(conversation_key, text)
- InMemoryChannel: buffers activities per conversation, drained by the host
- ConsoleChannel: prints activities, for the terminal runner

Emission is fire-and-forget from the engine's point of view. Within one
conversation, activities keep the order in which they were emitted.
"""
from __future__ import annotations

import abc
import sys
import structlog
from collections import defaultdict
from typing import Any, TextIO

from models.schemas import Activity

logger = structlog.get_logger()


# ══════════════════════════════════════════════════════════════
#  INPUT SANITIZER
# ══════════════════════════════════════════════════════════════

class InputSanitizer:
    def __init__(self, max_length: int = 10000):
        self.max_length = max_length

    def sanitize(self, content: str) -> str:
        if not content:
            return ""
        content = "".join(
            c for c in content if c in ("\n", "\t", "\r") or (ord(c) >= 32)
        )
        if len(content) > self.max_length:
            content = content[: self.max_length] + "... [truncated]"
        return content


# ══════════════════════════════════════════════════════════════
#  ACTIVITY CHANNEL — Abstract Base
# ══════════════════════════════════════════════════════════════

class ActivityChannel(abc.ABC):
    """
    Base class for outbound channels.

    Subclasses implement _deliver. The base class stamps each activity with
    a per-conversation sequence number so ordering survives any transport.
    """

    name: str = "base"

    def __init__(self):
        self._sequence: dict[str, int] = defaultdict(int)
        self._sent = 0

    @abc.abstractmethod
    async def _deliver(self, activity: Activity) -> None:
        ...

    async def emit(self, conversation_key: str, text: str) -> Activity:
        self._sequence[conversation_key] += 1
        activity = Activity(
            conversation_key=conversation_key,
            text=text,
            sequence=self._sequence[conversation_key],
        )
        await self._deliver(activity)
        self._sent += 1
        logger.debug("activity_emitted",
                     channel=self.name,
                     conversation_key=conversation_key,
                     sequence=activity.sequence)
        return activity

    def stats(self) -> dict[str, Any]:
        return {"channel": self.name, "sent": self._sent,
                "conversations": len(self._sequence)}


class InMemoryChannel(ActivityChannel):
    """Keeps undelivered activities per conversation until the host drains them."""

    name = "memory"

    def __init__(self):
        super().__init__()
        self._outbox: dict[str, list[Activity]] = defaultdict(list)

    async def _deliver(self, activity: Activity) -> None:
        self._outbox[activity.conversation_key].append(activity)

    def peek(self, conversation_key: str) -> list[Activity]:
        return list(self._outbox.get(conversation_key, []))

    def drain(self, conversation_key: str) -> list[Activity]:
        return self._outbox.pop(conversation_key, [])

    def texts(self, conversation_key: str) -> list[str]:
        return [a.text for a in self._outbox.get(conversation_key, [])]


class ConsoleChannel(ActivityChannel):
    """Writes every activity as a line of text."""

    name = "console"

    def __init__(self, stream: TextIO = None, prefix: str = "bot> "):
        super().__init__()
        self._stream = stream or sys.stdout
        self._prefix = prefix

    async def _deliver(self, activity: Activity) -> None:
        for line in activity.text.splitlines() or [""]:
            self._stream.write(f"{self._prefix}{line.strip()}\n")
        self._stream.flush()
