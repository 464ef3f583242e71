"""
Greeting flow — learn the user's name and say hello.

    initialize profile → ask name (≥ 3 chars) → store capitalised → greet → end

The dialog result is the stored name.
"""
from __future__ import annotations

from dialogs.builder import FlowBuilder
from dialogs.errors import ConfigurationError
from dialogs.steps import capitalize_first, collect_if_missing, initialize_profile, persist_result
from dialogs.waterfall import StepResult, WaterfallDialog, WaterfallStepContext
from models.schemas import UserProfile
from state.accessor import StatePropertyAccessor

GREETING_DIALOG = "greeting"
NAME_PROMPT = "name"
NAME_LENGTH_MIN = 3


def build_greeting_dialog(
    profile_accessor: StatePropertyAccessor[UserProfile],
    dialog_id: str = GREETING_DIALOG,
) -> WaterfallDialog:
    if profile_accessor is None:
        raise ConfigurationError("profile_accessor is required", dialog_id=dialog_id)

    async def greet(step: WaterfallStepContext) -> StepResult:
        profile = await persist_result(profile_accessor, step, "name", transform=capitalize_first)
        await step.emit(f"Hi {profile.name}, nice to meet you!")
        await step.emit("How can I help you today?")
        return step.end_dialog(profile.name)

    return (
        FlowBuilder(dialog_id)
        .text_prompt(NAME_PROMPT, NAME_LENGTH_MIN, "Names need to be at least {minimum} characters long.")
        .steps(
            initialize_profile(profile_accessor),
            collect_if_missing(profile_accessor, "name", NAME_PROMPT, "What is your name?"),
            greet,
        )
        .build()
    )
