"""
FlowBuilder — assembles a WaterfallDialog from step functions and prompts.

    dialog = (
        FlowBuilder("order_status")
        .text_prompt("order", 3, "Order numbers need to be at least {minimum} characters long.")
        .step(ask_order_number)
        .step(show_status)
        .build()
    )
"""
from __future__ import annotations

from typing import Optional

from dialogs.errors import ConfigurationError
from dialogs.prompts import TextPrompt, Validator, min_length
from dialogs.stack import DialogSet
from dialogs.waterfall import Step, WaterfallDialog


class FlowBuilder:

    def __init__(self, dialog_id: str):
        if not dialog_id:
            raise ConfigurationError("dialog_id is required")
        self.dialog_id = dialog_id
        self._steps: list[Step] = []
        self._prompts: list[TextPrompt] = []

    def step(self, fn: Step) -> "FlowBuilder":
        if not callable(fn):
            raise ConfigurationError(f"step {fn!r} is not callable", dialog_id=self.dialog_id)
        self._steps.append(fn)
        return self

    def steps(self, *fns: Step) -> "FlowBuilder":
        for fn in fns:
            self.step(fn)
        return self

    def prompt(self, prompt_id: str, validator: Optional[Validator] = None) -> "FlowBuilder":
        self._prompts.append(TextPrompt(prompt_id, validator))
        return self

    def text_prompt(self, prompt_id: str, minimum: int, *rejection_messages: str) -> "FlowBuilder":
        return self.prompt(prompt_id, min_length(minimum, *rejection_messages))

    def build(self) -> WaterfallDialog:
        return WaterfallDialog(self.dialog_id, self._steps, self._prompts)

    def register(self, dialogs: DialogSet) -> WaterfallDialog:
        return dialogs.add(self.build())
