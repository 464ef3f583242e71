"""
Service request flow.

    ask service request number (≥ 3) → report status → subscribe for updates?
        yes → ask phone → "All set!" + sign off
        no  → sign off
"""
from __future__ import annotations

from config.settings import BotConfig, get_settings
from dialogs.builder import FlowBuilder
from dialogs.errors import ConfigurationError
from dialogs.steps import branch_on_answer, collect_if_missing, end_with, persist_result
from dialogs.waterfall import StepResult, WaterfallDialog, WaterfallStepContext
from flows.common import add_phone_prompt, add_reply_prompt, ask_phone, sign_off
from models.schemas import UserProfile
from state.accessor import StatePropertyAccessor

SERVICE_REQUEST_DIALOG = "service_request"
SERVICE_REQUEST_PROMPT = "service_request_number"
SUBSCRIBE_PROMPT = "subscribe"
SERVICE_REQUEST_LENGTH_MIN = 3


def build_service_request_dialog(
    profile_accessor: StatePropertyAccessor[UserProfile],
    bot_config: BotConfig = None,
    dialog_id: str = SERVICE_REQUEST_DIALOG,
) -> WaterfallDialog:
    if profile_accessor is None:
        raise ConfigurationError("profile_accessor is required", dialog_id=dialog_id)
    bot_config = bot_config or get_settings().bot
    closing = sign_off(bot_config.company_name)

    async def report_status(step: WaterfallStepContext) -> StepResult:
        profile = await persist_result(profile_accessor, step, "service_request_number")
        await step.emit(f"Your service request {profile.service_request_number} is Submitted")
        return step.prompt(SUBSCRIBE_PROMPT, "Do you want to subscribe for updates?")

    async def confirm_subscription(step: WaterfallStepContext) -> StepResult:
        await persist_result(profile_accessor, step, "phone_number")
        for message in ("All set! You will get updates about your service request by SMS.", *closing):
            await step.emit(message)
        return step.end_dialog()

    builder = FlowBuilder(dialog_id).text_prompt(
        SERVICE_REQUEST_PROMPT, SERVICE_REQUEST_LENGTH_MIN,
        "Service request numbers need to be at least {minimum} characters long.",
    )
    add_reply_prompt(builder, SUBSCRIBE_PROMPT)
    add_phone_prompt(builder)

    return builder.steps(
        collect_if_missing(profile_accessor, "service_request_number", SERVICE_REQUEST_PROMPT,
                           "Ok, I got it! What is your service request number?"),
        report_status,
        branch_on_answer(profile_accessor, on_yes=ask_phone(profile_accessor),
                         on_no=end_with(*closing), token=bot_config.affirmative_token),
        confirm_subscription,
    ).build()
