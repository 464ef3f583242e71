"""
SupportBot — the turn handler a host calls once per inbound message.

Architecture:
  Inbound:  host → on_turn(conversation_key, text, dialog_id?)
            → load DialogState → DialogContext
            → continue the active dialog, or begin `dialog_id` / the default
            → save DialogState → DialogTurnResult back to the host

  Outbound: steps and prompts emit through the ActivityChannel during the turn;
            the host drains or streams them as it sees fit.

Turns of one conversation are serialised with a per-conversation lock.
A DialogError aborts the turn: it is logged, re-raised to the host, and the
dialog state from before the turn is left in the store.
"""
from __future__ import annotations

import asyncio
import structlog
from contextlib import asynccontextmanager
from typing import Any, Optional

from backend.lookup import ServiceTagLookup, create_service_tag_lookup
from channels.base import ActivityChannel, InMemoryChannel, InputSanitizer
from config.settings import Settings, get_settings
from dialogs.errors import DialogError
from dialogs.stack import DialogContext, DialogSet
from dialogs.turn import TurnContext
from models.schemas import DialogState, DialogTurnResult, DialogTurnStatus, UserProfile
from state.store_base import BaseStateStore
from state.store_factory import create_state_store

logger = structlog.get_logger()

DIALOG_STATE_PROPERTY = "dialog_state"
USER_PROFILE_PROPERTY = "user_profile"


class SupportBot:

    def __init__(
        self,
        dialogs: DialogSet,
        store: BaseStateStore,
        channel: ActivityChannel,
        default_dialog: str = "greeting",
        sanitizer: InputSanitizer = None,
        lookup: ServiceTagLookup = None,
    ):
        self.dialogs = dialogs
        self.store = store
        self.channel = channel
        self.default_dialog = default_dialog
        self.sanitizer = sanitizer or InputSanitizer()
        self.lookup = lookup
        self.dialog_state = store.create_property(DIALOG_STATE_PROPERTY, DialogState)
        self.user_profile = store.create_property(USER_PROFILE_PROPERTY, UserProfile)
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self._turns = 0

    # ══════════════════════════════════════════════════════════
    #  TURN HANDLING
    # ══════════════════════════════════════════════════════════

    @asynccontextmanager
    async def _conversation_lock(self, conversation_key: str):
        """Hold the conversation's lock; it is dropped once no turn holds or awaits it."""
        lock = self._locks.setdefault(conversation_key, asyncio.Lock())
        self._lock_users[conversation_key] = self._lock_users.get(conversation_key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[conversation_key] -= 1
            if not self._lock_users[conversation_key]:
                del self._lock_users[conversation_key]
                del self._locks[conversation_key]

    async def on_turn(
        self,
        conversation_key: str,
        text: Optional[str] = None,
        dialog_id: str = None,
        options: dict[str, Any] = None,
    ) -> DialogTurnResult:
        """
        Run one turn. With a dialog already on the stack the input goes to
        it and `dialog_id` is ignored; otherwise `dialog_id` (or the default
        dialog) is started with `options`.
        """
        if text is not None:
            text = self.sanitizer.sanitize(text)

        async with self._conversation_lock(conversation_key):
            state = await self.dialog_state.get(conversation_key) or DialogState()
            turn = TurnContext(conversation_key, text, self.channel)
            dc = DialogContext(self.dialogs, turn, state)

            try:
                if dc.stack:
                    result = await dc.continue_dialog()
                else:
                    result = await dc.begin_dialog(dialog_id or self.default_dialog, options)
            except DialogError as e:
                logger.error("turn_failed",
                             conversation_key=conversation_key,
                             error_type=type(e).__name__,
                             dialog_id=e.dialog_id,
                             error=str(e))
                raise

            await self.dialog_state.set(conversation_key, dc.state)
            self._turns += 1
            logger.info("turn_completed",
                        conversation_key=conversation_key,
                        status=result.status.value,
                        activities=turn.sent_count,
                        dialog_stack=[i.dialog_id for i in dc.stack])
            return result

    async def reset(self, conversation_key: str) -> DialogTurnResult:
        """Cancel every dialog of a conversation. The profile is kept."""
        async with self._conversation_lock(conversation_key):
            state = await self.dialog_state.get(conversation_key) or DialogState()
            dc = DialogContext(self.dialogs, TurnContext(conversation_key, None, self.channel), state)
            result = await dc.cancel_all()
            await self.dialog_state.set(conversation_key, dc.state)
            return result

    async def get_profile(self, conversation_key: str) -> Optional[UserProfile]:
        return await self.user_profile.get(conversation_key)

    async def is_active(self, conversation_key: str) -> bool:
        state = await self.dialog_state.get(conversation_key)
        return bool(state and state.dialog_stack)

    def stats(self) -> dict[str, Any]:
        return {
            "dialogs": self.dialogs.list_ids(),
            "turns": self._turns,
            "active_locks": len(self._locks),
            "channel": self.channel.stats(),
        }


def create_support_bot(
    settings: Settings = None,
    store: BaseStateStore = None,
    channel: ActivityChannel = None,
    lookup: ServiceTagLookup = None,
) -> SupportBot:
    """Wire a SupportBot with all support flows registered."""
    from flows import register_support_flows

    settings = settings or get_settings()
    store = store or create_state_store(settings.state)
    channel = channel or InMemoryChannel()
    lookup = lookup or create_service_tag_lookup(settings.lookup)

    bot = SupportBot(
        dialogs=DialogSet(),
        store=store,
        channel=channel,
        default_dialog=settings.bot.default_dialog,
        lookup=lookup,
    )
    register_support_flows(bot.dialogs, bot.user_profile, lookup, settings)
    logger.info("support_bot_ready", dialogs=bot.dialogs.list_ids(), channel=channel.name)
    return bot
