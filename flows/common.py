"""
Prompts and messages shared by several flows.
"""
from __future__ import annotations

from dialogs.builder import FlowBuilder
from dialogs.steps import collect_if_missing
from dialogs.waterfall import Step
from models.schemas import UserProfile
from state.accessor import StatePropertyAccessor

PHONE_PROMPT = "phone_number"
PHONE_NUMBER_MIN = 9
REPLY_MIN = 1

NOT_UNDERSTOOD = ("Sorry, I couldn't understand", "You can say Yes or No")


def add_phone_prompt(builder: FlowBuilder) -> FlowBuilder:
    return builder.text_prompt(PHONE_PROMPT, PHONE_NUMBER_MIN, "Please enter a valid phone number")


def add_reply_prompt(builder: FlowBuilder, prompt_id: str, minimum: int = REPLY_MIN,
                     *rejection_messages: str) -> FlowBuilder:
    return builder.text_prompt(prompt_id, minimum, *(rejection_messages or ("I didn't get you",)))


def ask_phone(accessor: StatePropertyAccessor[UserProfile],
              question: str = "Please enter your phone number") -> Step:
    return collect_if_missing(accessor, "phone_number", PHONE_PROMPT, question)


def sign_off(company_name: str) -> tuple[str, str]:
    return ("It was a pleasure to help you!", f"Thanks for contacting {company_name}.")
