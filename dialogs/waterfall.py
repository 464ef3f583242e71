"""
Waterfall Dialog — runs an ordered list of step functions across turns.

Each step is an async function that receives a WaterfallStepContext and
returns what should happen next:

    Next(result)            advance the cursor, run the next step with `result`
    Prompt(id, message)     ask, suspend here; the following step gets the answer
    EndDialog(result)       finish this dialog, hand `result` to the parent
    BeginDialog(id, opts)   push a child dialog; the following step gets its result

Lifecycle of one waterfall instance:

    Idle ──begin──▶ Running(step=i) ──Prompt──▶ suspended at i
                        ▲                          │ accepted reply
                        └────── resume(i+1) ◀──────┘
    Running ──EndDialog──▶ Completed        cancel_all ──▶ Cancelled

The waterfall holds no business state. All it persists is the cursor and
the pending prompt on its DialogInstance.
"""
from __future__ import annotations

import structlog
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable, Optional, Union

from dialogs.errors import (
    ConfigurationError, InvalidStepResultError, UnknownPromptError, WaterfallOverrunError,
)
from dialogs.prompts import TextPrompt
from models.schemas import DialogInstance, DialogTurnResult, DialogTurnStatus, PromptRecord

if TYPE_CHECKING:
    from dialogs.stack import DialogContext

logger = structlog.get_logger()


# ──────────────────────────────────────────────────────────────
#  Step results
# ──────────────────────────────────────────────────────────────

@dataclass
class Next:
    result: Any = None


@dataclass
class Prompt:
    prompt_id: str
    message: str
    retry_message: str = ""


@dataclass
class EndDialog:
    result: Any = None


@dataclass
class BeginDialog:
    dialog_id: str
    options: dict[str, Any] = field(default_factory=dict)


StepResult = Union[Next, Prompt, EndDialog, BeginDialog]


# ──────────────────────────────────────────────────────────────
#  Step context
# ──────────────────────────────────────────────────────────────

class WaterfallStepContext:
    """Everything a step function may look at or do."""

    def __init__(
        self,
        dc: "DialogContext",
        dialog: "WaterfallDialog",
        instance: DialogInstance,
        index: int,
        result: Any = None,
    ):
        self.dc = dc
        self.dialog = dialog
        self.instance = instance
        self.index = index
        self.result = result

    @property
    def conversation_key(self) -> str:
        return self.dc.turn.conversation_key

    @property
    def options(self) -> dict[str, Any]:
        return self.instance.options

    async def emit(self, text: str) -> None:
        await self.dc.turn.send(text)

    def next(self, result: Any = None) -> Next:
        return Next(result)

    def prompt(self, prompt_id: str, message: str, retry_message: str = "") -> Prompt:
        return Prompt(prompt_id, message, retry_message)

    def end_dialog(self, result: Any = None) -> EndDialog:
        return EndDialog(result)

    def begin_dialog(self, dialog_id: str, options: dict[str, Any] = None) -> BeginDialog:
        return BeginDialog(dialog_id, options or {})

    def __repr__(self):
        return f"<Step {self.dialog.id}[{self.index}] result={self.result!r}>"


Step = Callable[[WaterfallStepContext], Awaitable[StepResult]]


# ──────────────────────────────────────────────────────────────
#  Waterfall Dialog
# ──────────────────────────────────────────────────────────────

class WaterfallDialog:
    """
    A dialog made of ordered steps plus the prompts those steps may issue.
    Built once per flow and shared by every conversation; per-conversation
    progress lives only on the DialogInstance.
    """

    def __init__(self, dialog_id: str, steps: Iterable[Step], prompts: Iterable[TextPrompt] = ()):
        if not dialog_id:
            raise ConfigurationError("dialog_id is required")
        self.id = dialog_id
        self.steps: list[Step] = list(steps)
        if not self.steps:
            raise ConfigurationError(f"Dialog '{dialog_id}' needs at least one step", dialog_id=dialog_id)
        self.prompts: dict[str, TextPrompt] = {}
        for prompt in prompts:
            self.add_prompt(prompt)

    def add_prompt(self, prompt: TextPrompt) -> "WaterfallDialog":
        if prompt.id in self.prompts:
            raise ConfigurationError(
                f"Prompt '{prompt.id}' registered twice on '{self.id}'",
                dialog_id=self.id, prompt_id=prompt.id,
            )
        self.prompts[prompt.id] = prompt
        return self

    def find_prompt(self, prompt_id: str) -> TextPrompt:
        prompt = self.prompts.get(prompt_id)
        if prompt is None:
            raise UnknownPromptError(prompt_id, self.id)
        return prompt

    # ── Dialog protocol ───────────────────────────────────────

    async def begin(self, dc: "DialogContext", options: Optional[dict[str, Any]] = None) -> DialogTurnResult:
        return await self._run_from(dc, dc.active_instance, 0, None)

    async def continue_(self, dc: "DialogContext") -> DialogTurnResult:
        instance = dc.active_instance
        record = instance.pending_prompt
        if record is None:
            # Suspended on a child dialog; nothing for this waterfall to do.
            return DialogTurnResult(status=DialogTurnStatus.WAITING)

        prompt = self.find_prompt(record.prompt_id)
        accepted, value = await prompt.recognize(dc.turn, record)
        if not accepted:
            record.attempts += 1
            logger.info("prompt_rejected",
                        dialog_id=self.id,
                        prompt_id=record.prompt_id,
                        step_index=instance.step_index,
                        attempts=record.attempts)
            await prompt.ask(dc.turn, record, is_retry=True)
            return DialogTurnResult(status=DialogTurnStatus.WAITING)

        instance.pending_prompt = None
        logger.info("prompt_accepted",
                    dialog_id=self.id,
                    prompt_id=record.prompt_id,
                    step_index=instance.step_index,
                    attempts=record.attempts)
        return await self.resume(dc, value)

    async def resume(self, dc: "DialogContext", result: Any = None) -> DialogTurnResult:
        instance = dc.active_instance
        return await self._run_from(dc, instance, instance.step_index + 1, result)

    # ── Step loop ─────────────────────────────────────────────

    async def _run_from(
        self,
        dc: "DialogContext",
        instance: DialogInstance,
        index: int,
        result: Any,
    ) -> DialogTurnResult:
        while True:
            if index >= len(self.steps):
                logger.error("waterfall_overrun",
                             dialog_id=self.id,
                             step_index=index,
                             step_count=len(self.steps))
                raise WaterfallOverrunError(self.id, index, len(self.steps))

            instance.step_index = index
            step_ctx = WaterfallStepContext(dc, self, instance, index, result)
            outcome = await self.steps[index](step_ctx)

            if isinstance(outcome, Next):
                index += 1
                result = outcome.result
                continue

            if isinstance(outcome, Prompt):
                prompt = self.find_prompt(outcome.prompt_id)
                record = PromptRecord(
                    prompt_id=outcome.prompt_id,
                    message=outcome.message,
                    retry_message=outcome.retry_message,
                )
                instance.pending_prompt = record
                await prompt.ask(dc.turn, record)
                logger.debug("waterfall_suspended",
                             dialog_id=self.id,
                             step_index=index,
                             prompt_id=outcome.prompt_id)
                return DialogTurnResult(status=DialogTurnStatus.WAITING)

            if isinstance(outcome, EndDialog):
                return await dc.end_dialog(outcome.result)

            if isinstance(outcome, BeginDialog):
                return await dc.begin_dialog(outcome.dialog_id, outcome.options)

            raise InvalidStepResultError(self.id, index, outcome)

    def __repr__(self):
        return f"<WaterfallDialog {self.id} steps={len(self.steps)} prompts={sorted(self.prompts)}>"
