"""Shared test fixtures for SupportBot."""
import pytest
from typing import Any

from backend.lookup import MockServiceTagLookup
from channels.base import InMemoryChannel
from config.settings import BotConfig, LookupConfig, Settings
from core.bot import create_support_bot
from dialogs.stack import DialogContext, DialogSet
from dialogs.turn import TurnContext
from models.schemas import DialogState, UserProfile
from state.store_memory import InMemoryStateStore


@pytest.fixture
def store() -> InMemoryStateStore:
    return InMemoryStateStore()


@pytest.fixture
def channel() -> InMemoryChannel:
    return InMemoryChannel()


@pytest.fixture
def profile_accessor(store):
    return store.create_property("user_profile", UserProfile)


@pytest.fixture
def bot_config() -> BotConfig:
    return BotConfig()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def mock_lookup() -> MockServiceTagLookup:
    return MockServiceTagLookup(LookupConfig())


@pytest.fixture
def dialogs() -> DialogSet:
    return DialogSet()


@pytest.fixture
def bot(settings, store, channel, mock_lookup):
    return create_support_bot(settings=settings, store=store, channel=channel, lookup=mock_lookup)


@pytest.fixture
def say(bot, channel):
    """Run one bot turn and return (result, texts emitted during the turn)."""
    async def _say(text: str = None, dialog_id: str = None, key: str = "conv-1",
                   options: dict[str, Any] = None):
        result = await bot.on_turn(key, text, dialog_id=dialog_id, options=options)
        return result, [a.text for a in channel.drain(key)]
    return _say


class EngineHarness:
    """Drives a DialogSet directly, one DialogContext per turn, sharing one DialogState."""

    def __init__(self, dialogs: DialogSet, channel: InMemoryChannel, key: str = "conv-1"):
        self.dialogs = dialogs
        self.channel = channel
        self.key = key
        self.state = DialogState()

    def context(self, text: str = None) -> DialogContext:
        return DialogContext(self.dialogs, TurnContext(self.key, text, self.channel), self.state)

    async def begin(self, dialog_id: str, options: dict[str, Any] = None):
        return await self.context().begin_dialog(dialog_id, options)

    async def send(self, text: str):
        return await self.context(text).continue_dialog()

    def drain(self) -> list[str]:
        return [a.text for a in self.channel.drain(self.key)]

    @property
    def stack_ids(self) -> list[str]:
        return [i.dialog_id for i in self.state.dialog_stack]


@pytest.fixture
def harness(dialogs, channel) -> EngineHarness:
    return EngineHarness(dialogs, channel)
