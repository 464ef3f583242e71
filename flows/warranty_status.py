"""
Warranty status flow.

    ask service tag (≥ 3) → look up warranty → report → "anything else?" → sign off
"""
from __future__ import annotations

from backend.lookup import ServiceTagLookup
from config.settings import BotConfig, get_settings
from dialogs.builder import FlowBuilder
from dialogs.errors import ConfigurationError
from dialogs.steps import collect_if_missing, end_with, persist_result
from dialogs.waterfall import StepResult, WaterfallDialog, WaterfallStepContext
from flows.common import add_reply_prompt, sign_off
from models.schemas import UserProfile
from state.accessor import StatePropertyAccessor

WARRANTY_STATUS_DIALOG = "warranty_status"
SERVICE_TAG_PROMPT = "service_tag"
ANYTHING_ELSE_PROMPT = "anything_else"
SERVICE_TAG_LENGTH_MIN = 3


def build_warranty_status_dialog(
    profile_accessor: StatePropertyAccessor[UserProfile],
    lookup: ServiceTagLookup,
    bot_config: BotConfig = None,
    dialog_id: str = WARRANTY_STATUS_DIALOG,
) -> WaterfallDialog:
    if profile_accessor is None:
        raise ConfigurationError("profile_accessor is required", dialog_id=dialog_id)
    if lookup is None:
        raise ConfigurationError("lookup is required", dialog_id=dialog_id)
    bot_config = bot_config or get_settings().bot

    async def report_warranty(step: WaterfallStepContext) -> StepResult:
        profile = await persist_result(profile_accessor, step, "service_tag_id")
        await step.emit("Thanks! Please hold until I find your product details")
        warranty = await lookup.get_warranty(profile.service_tag_id)
        await step.emit(f"Your warranty {warranty.warranty_type} {warranty.status_text}")
        return step.prompt(ANYTHING_ELSE_PROMPT, "Do you need anything else?")

    builder = FlowBuilder(dialog_id).text_prompt(
        SERVICE_TAG_PROMPT, SERVICE_TAG_LENGTH_MIN, "Service tags need to be at least {minimum} characters long.",
    )
    add_reply_prompt(builder, ANYTHING_ELSE_PROMPT)

    return builder.steps(
        collect_if_missing(profile_accessor, "service_tag_id", SERVICE_TAG_PROMPT,
                           "Ok, I got it! What is your service tag?"),
        report_warranty,
        end_with(*sign_off(bot_config.company_name)),
    ).build()
