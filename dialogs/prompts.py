"""
Prompts and validators.

A prompt sends a question, waits for the next turn, hands the raw reply to
its validator, and either re-asks (rejected) or returns the accepted value
(accepted). There is no retry ceiling: a prompt keeps asking until it gets an
acceptable answer.

Validators are async callables taking a PromptValidatorContext and returning
a bool. They may emit clarification messages through ctx.emit and may
replace ctx.value to transform what the resuming step receives.

Usage:
    ask_name = TextPrompt("name", min_length(3, "Names need to be at least {minimum} characters long."))
"""
from __future__ import annotations

import structlog
from typing import Awaitable, Callable, Optional

from dialogs.errors import ConfigurationError
from dialogs.turn import TurnContext
from models.schemas import PromptRecord

logger = structlog.get_logger()


class PromptValidatorContext:
    """What a validator sees for one inbound reply."""

    def __init__(self, turn: TurnContext, prompt_id: str, attempts: int = 0):
        self.turn = turn
        self.prompt_id = prompt_id
        self.raw_input = turn.text or ""
        self.value = self.raw_input.strip()
        self.attempts = attempts

    async def emit(self, text: str) -> None:
        await self.turn.send(text)


Validator = Callable[[PromptValidatorContext], Awaitable[bool]]


def min_length(minimum: int, *rejection_messages: str) -> Validator:
    """
    Accept a reply whose trimmed length is at least `minimum`.
    On rejection each message is emitted in order; `{minimum}` is filled in.
    """
    if minimum < 0:
        raise ConfigurationError(f"minimum length must be >= 0, got {minimum}")

    async def validate(ctx: PromptValidatorContext) -> bool:
        if len(ctx.value) >= minimum:
            return True
        for message in rejection_messages:
            await ctx.emit(message.format(minimum=minimum))
        return False

    validate.minimum = minimum
    return validate


async def _accept_non_empty(ctx: PromptValidatorContext) -> bool:
    return bool(ctx.value)


class TextPrompt:
    """Asks for free text and validates the reply."""

    def __init__(self, prompt_id: str, validator: Optional[Validator] = None):
        if not prompt_id:
            raise ConfigurationError("prompt_id is required")
        self.id = prompt_id
        self.validator = validator or _accept_non_empty

    async def ask(self, turn: TurnContext, record: PromptRecord, is_retry: bool = False) -> None:
        if is_retry and record.retry_message:
            await turn.send(record.retry_message)
        else:
            await turn.send(record.message)

    async def recognize(self, turn: TurnContext, record: PromptRecord) -> tuple[bool, Optional[str]]:
        """Run the validator over this turn's input. Returns (accepted, value)."""
        ctx = PromptValidatorContext(turn, self.id, record.attempts)
        accepted = await self.validator(ctx)
        logger.debug("prompt_recognized",
                     prompt_id=self.id,
                     accepted=accepted,
                     attempts=record.attempts)
        return accepted, (ctx.value if accepted else None)

    def __repr__(self):
        minimum = getattr(self.validator, "minimum", None)
        return f"<TextPrompt {self.id} min={minimum}>"
