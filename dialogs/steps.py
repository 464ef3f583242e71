"""
Reusable step helpers.

Every flow is built from the same few moves:

  collect_if_missing   field already on the profile → Next(value); else prompt
  persist_result       store the resumed answer once, only if still unset
  branch_on_answer     route on a yes/no answer (case-insensitive)
  end_with             emit closing lines and end the dialog

Helpers that build steps return plain async functions closed over their
arguments, so a flow is just a list of functions.
"""
from __future__ import annotations

import structlog
from typing import Any, Callable, Optional

from dialogs.waterfall import Step, StepResult, WaterfallStepContext
from models.schemas import UserProfile
from state.accessor import StatePropertyAccessor

logger = structlog.get_logger()

AFFIRMATIVE_TOKEN = "YES"


def is_affirmative(answer: Any, token: str = AFFIRMATIVE_TOKEN) -> bool:
    if not isinstance(answer, str):
        return False
    return answer.strip().upper() == token.strip().upper()


def capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:] if text else text


async def load_profile(
    accessor: StatePropertyAccessor[UserProfile],
    step: WaterfallStepContext,
) -> UserProfile:
    profile = await accessor.get(step.conversation_key)
    return profile if profile is not None else UserProfile()


async def persist_result(
    accessor: StatePropertyAccessor[UserProfile],
    step: WaterfallStepContext,
    field: str,
    transform: Optional[Callable[[str], str]] = None,
) -> UserProfile:
    """Write step.result into `field` unless the field already has a value."""
    profile = await load_profile(accessor, step)
    value = step.result
    if value and transform is not None:
        value = transform(value)
    if profile.set_once(field, value):
        await accessor.set(step.conversation_key, profile)
        logger.info("profile_field_saved",
                    conversation_key=step.conversation_key,
                    dialog_id=step.dialog.id,
                    field=field)
    return profile


def initialize_profile(accessor: StatePropertyAccessor[UserProfile]) -> Step:
    """Create the profile on first touch, seeded from options["user_profile"] when given."""

    async def initialize_profile_step(step: WaterfallStepContext) -> StepResult:
        if await accessor.get(step.conversation_key) is None:
            seed = step.options.get("user_profile")
            profile = UserProfile.model_validate(seed) if seed else UserProfile()
            await accessor.set(step.conversation_key, profile)
        return step.next()

    return initialize_profile_step


def collect_if_missing(
    accessor: StatePropertyAccessor[UserProfile],
    field: str,
    prompt_id: str,
    question: str,
    retry_message: str = "",
) -> Step:

    async def collect_step(step: WaterfallStepContext) -> StepResult:
        profile = await load_profile(accessor, step)
        if profile.is_set(field):
            return step.next(getattr(profile, field))
        return step.prompt(prompt_id, question, retry_message)

    collect_step.__name__ = f"collect_{field}"
    return collect_step


async def advance(step: WaterfallStepContext) -> StepResult:
    """Pass the current result straight through to the next step."""
    return step.next(step.result)


def branch_on_answer(
    accessor: StatePropertyAccessor[UserProfile],
    on_yes: Step,
    on_no: Step,
    field: Optional[str] = "replay",
    token: str = AFFIRMATIVE_TOKEN,
) -> Step:
    """
    Route on the answer just given. With `field` set, the answer is saved
    (once) first, and the saved value is used when the step was reached
    without a fresh answer.
    """

    async def branch_step(step: WaterfallStepContext) -> StepResult:
        answer = step.result
        if field:
            profile = await persist_result(accessor, step, field)
            if answer is None:
                answer = getattr(profile, field)
        affirmative = is_affirmative(answer, token)
        logger.debug("answer_branch",
                     dialog_id=step.dialog.id,
                     step_index=step.index,
                     affirmative=affirmative)
        return await (on_yes if affirmative else on_no)(step)

    return branch_step


def end_with(*messages: str, result: Any = None) -> Step:
    """Terminal step: emit each message in order, then end the dialog."""

    async def end_step(step: WaterfallStepContext) -> StepResult:
        for message in messages:
            await step.emit(message)
        return step.end_dialog(result)

    return end_step
