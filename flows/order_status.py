"""
Order status flow.

    ask order number (≥ 3) → report status → subscribe for updates?
        yes → ask phone ──────────────────────────────┐
        no  → "anything else?" + call back? ─ yes → ask phone
                                            └ no  → sign off
    phone stored → "All set!" + sign off
"""
from __future__ import annotations

from config.settings import BotConfig, get_settings
from dialogs.builder import FlowBuilder
from dialogs.errors import ConfigurationError
from dialogs.steps import advance, branch_on_answer, collect_if_missing, end_with, persist_result
from dialogs.waterfall import StepResult, WaterfallDialog, WaterfallStepContext
from flows.common import add_phone_prompt, add_reply_prompt, ask_phone, sign_off
from models.schemas import UserProfile
from state.accessor import StatePropertyAccessor

ORDER_STATUS_DIALOG = "order_status"
ORDER_PROMPT = "order_number"
SUBSCRIBE_PROMPT = "subscribe"
CALL_BACK_PROMPT = "call_back"
ORDER_LENGTH_MIN = 3


def build_order_status_dialog(
    profile_accessor: StatePropertyAccessor[UserProfile],
    bot_config: BotConfig = None,
    dialog_id: str = ORDER_STATUS_DIALOG,
) -> WaterfallDialog:
    if profile_accessor is None:
        raise ConfigurationError("profile_accessor is required", dialog_id=dialog_id)
    bot_config = bot_config or get_settings().bot
    token = bot_config.affirmative_token
    closing = sign_off(bot_config.company_name)

    async def report_status(step: WaterfallStepContext) -> StepResult:
        profile = await persist_result(profile_accessor, step, "order_number")
        await step.emit("Ok, I already found your order status.")
        await step.emit(f"Your order {profile.order_number} is in processing payment")
        return step.prompt(SUBSCRIBE_PROMPT, "Do you want to subscribe for updates?")

    async def offer_call_back(step: WaterfallStepContext) -> StepResult:
        await step.emit("Ok. Do you need anything else?")
        return step.prompt(
            CALL_BACK_PROMPT,
            "Would you like to schedule call back once we get an update about your issue?",
        )

    async def confirm_subscription(step: WaterfallStepContext) -> StepResult:
        await persist_result(profile_accessor, step, "phone_number")
        for message in ("All set! You will get updates about your order by SMS.", *closing):
            await step.emit(message)
        return step.end_dialog()

    builder = FlowBuilder(dialog_id).text_prompt(
        ORDER_PROMPT, ORDER_LENGTH_MIN, "Order numbers need to be at least {minimum} characters long.",
    )
    add_reply_prompt(builder, SUBSCRIBE_PROMPT)
    add_reply_prompt(builder, CALL_BACK_PROMPT)
    add_phone_prompt(builder)

    return builder.steps(
        collect_if_missing(profile_accessor, "order_number", ORDER_PROMPT,
                           "Ok, I got it! What is your order number?"),
        report_status,
        branch_on_answer(profile_accessor, on_yes=advance, on_no=offer_call_back, token=token),
        branch_on_answer(profile_accessor, on_yes=ask_phone(profile_accessor),
                         on_no=end_with(*closing), field=None, token=token),
        confirm_subscription,
    ).build()
