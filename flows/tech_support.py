"""
Tech support flow.

    ask service tag (≥ 3) → look up product → diagnostic link → open a ticket?
        no  → sign off
        yes → ask issue detail (≥ 20) → ticket created → specialist call back?
                yes ──────────────────────────────────────┐
                no  → "anything else?" + call back? ─ yes ┤
                                                    └ no  → sign off
              offer time slots → ask slot → ask phone → call back scheduled
              → "anything else?" → sign off

The product lookup never blocks the flow: a failed lookup announces the
configured fallback product line.
"""
from __future__ import annotations

from backend.lookup import ServiceTagLookup
from config.settings import BotConfig, get_settings
from dialogs.builder import FlowBuilder
from dialogs.errors import ConfigurationError
from dialogs.steps import advance, branch_on_answer, collect_if_missing, end_with, persist_result
from dialogs.waterfall import StepResult, WaterfallDialog, WaterfallStepContext
from flows.common import NOT_UNDERSTOOD, add_phone_prompt, add_reply_prompt, ask_phone, sign_off
from models.schemas import UserProfile
from state.accessor import StatePropertyAccessor

TECH_SUPPORT_DIALOG = "tech_support"
SERVICE_TAG_PROMPT = "service_tag"
PROCEED_PROMPT = "proceed"
ISSUE_DETAIL_PROMPT = "issue_detail"
CALL_BACK_PROMPT = "call_back"
SCHEDULE_PROMPT = "schedule"
ANYTHING_ELSE_PROMPT = "anything_else"

SERVICE_TAG_LENGTH_MIN = 3
ISSUE_DETAIL_LENGTH_MIN = 20
CALL_BACK_LENGTH_MIN = 2

CALL_BACK_SLOTS = ("10am to 11am CST", "1pm to 2pm CST", "4pm to 5pm CST")


def format_slots(slots: tuple[str, ...] = CALL_BACK_SLOTS) -> str:
    lines = [f"({n}) {slot}" for n, slot in enumerate(slots, start=1)]
    return "I have found the following possibilities:\n" + "\n".join(lines)


def build_tech_support_dialog(
    profile_accessor: StatePropertyAccessor[UserProfile],
    lookup: ServiceTagLookup,
    bot_config: BotConfig = None,
    dialog_id: str = TECH_SUPPORT_DIALOG,
) -> WaterfallDialog:
    if profile_accessor is None:
        raise ConfigurationError("profile_accessor is required", dialog_id=dialog_id)
    if lookup is None:
        raise ConfigurationError("lookup is required", dialog_id=dialog_id)
    bot_config = bot_config or get_settings().bot
    token = bot_config.affirmative_token
    closing = end_with(*sign_off(bot_config.company_name))

    async def find_product(step: WaterfallStepContext) -> StepResult:
        profile = await persist_result(profile_accessor, step, "service_tag_id")
        await step.emit("Thanks! Please hold until I find your product details")
        product = await lookup.get_product_line(profile.service_tag_id)
        await step.emit(f"Great, I found your {product} product.")
        url = bot_config.diagnostic_url_template.replace("{service_tag}", profile.service_tag_id)
        await step.emit(f"This link might help you: {url}")
        return step.prompt(
            PROCEED_PROMPT,
            "If it doesn't, I can create a ticket for your product issue. Would you like to proceed?",
        )

    async def create_ticket(step: WaterfallStepContext) -> StepResult:
        await persist_result(profile_accessor, step, "issue_detail")
        await step.emit("Thanks. A ticket was created! :)")
        return step.prompt(CALL_BACK_PROMPT, "Would you like to schedule a call back to talk to a specialist about it?")

    async def offer_later_call_back(step: WaterfallStepContext) -> StepResult:
        await step.emit("I'm very happy to help you. Do you need anything else?")
        return step.prompt(
            CALL_BACK_PROMPT,
            "Would you like to schedule call back once we get an update about your issue?",
        )

    async def offer_slots(step: WaterfallStepContext) -> StepResult:
        await step.emit(format_slots())
        return step.prompt(SCHEDULE_PROMPT, "Which time is best for you? (type the number or the time)")

    ask_confirmation_phone = ask_phone(
        profile_accessor, "Please enter your phone number (you'll soon receive a confirmation by SMS)",
    )

    async def save_slot(step: WaterfallStepContext) -> StepResult:
        await persist_result(profile_accessor, step, "schedule")
        return await ask_confirmation_phone(step)

    async def confirm_call_back(step: WaterfallStepContext) -> StepResult:
        await persist_result(profile_accessor, step, "phone_number")
        await step.emit("Call back scheduled! :-) You will receive a confirmation by SMS.")
        return step.prompt(ANYTHING_ELSE_PROMPT, "Can I help you with anything else?")

    builder = (
        FlowBuilder(dialog_id)
        .text_prompt(SERVICE_TAG_PROMPT, SERVICE_TAG_LENGTH_MIN,
                     "Service tags need to be at least {minimum} characters long.", "Can you type it again?")
        .text_prompt(ISSUE_DETAIL_PROMPT, ISSUE_DETAIL_LENGTH_MIN, "Please provide more detailed information.")
    )
    add_reply_prompt(builder, PROCEED_PROMPT, 1, *NOT_UNDERSTOOD)
    add_reply_prompt(builder, CALL_BACK_PROMPT, CALL_BACK_LENGTH_MIN, *NOT_UNDERSTOOD)
    add_reply_prompt(builder, SCHEDULE_PROMPT)
    add_reply_prompt(builder, ANYTHING_ELSE_PROMPT)
    add_phone_prompt(builder)

    return builder.steps(
        collect_if_missing(profile_accessor, "service_tag_id", SERVICE_TAG_PROMPT,
                           "Ok, I got it! What is your service tag?"),
        find_product,
        branch_on_answer(
            profile_accessor,
            on_yes=collect_if_missing(profile_accessor, "issue_detail", ISSUE_DETAIL_PROMPT,
                                      "Ok! Please describe the problem briefly"),
            on_no=closing, field=None, token=token,
        ),
        create_ticket,
        branch_on_answer(profile_accessor, on_yes=advance, on_no=offer_later_call_back, token=token),
        branch_on_answer(profile_accessor, on_yes=offer_slots, on_no=closing, field=None, token=token),
        save_slot,
        confirm_call_back,
        closing,
    ).build()
