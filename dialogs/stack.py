"""
Dialog Stack — dialog registry plus per-turn stack operations.

DialogSet is built once at startup and holds every registered dialog.
DialogContext wraps one turn and one conversation's DialogState:

    begin_dialog(id, options)   push a new instance at cursor 0 and run it
    continue_dialog()           hand this turn's input to the top instance
    end_dialog(result)          pop; resume the parent with `result`, if any
    cancel_all()                clear the stack, no result propagated

Pushing onto a non-empty stack suspends the parent until the child ends.
The caller owns loading and saving DialogState; DialogContext only mutates
the instance it was given.
"""
from __future__ import annotations

import structlog
from typing import Any, Iterable, Optional

from dialogs.errors import ConfigurationError, NoActiveDialogError, UnknownDialogError
from dialogs.prompts import TextPrompt
from dialogs.turn import TurnContext
from dialogs.waterfall import Step, WaterfallDialog
from models.schemas import DialogInstance, DialogState, DialogTurnResult, DialogTurnStatus

logger = structlog.get_logger()


class DialogSet:
    """Registry of dialogs, addressable by id."""

    def __init__(self):
        self._dialogs: dict[str, WaterfallDialog] = {}

    # ── Registration ──────────────────────────────────────────

    def add(self, dialog: WaterfallDialog) -> WaterfallDialog:
        if dialog is None:
            raise ConfigurationError("dialog is required")
        if dialog.id in self._dialogs:
            raise ConfigurationError(f"Dialog '{dialog.id}' is already registered", dialog_id=dialog.id)
        self._dialogs[dialog.id] = dialog
        logger.info("dialog_registered",
                    dialog_id=dialog.id,
                    steps=len(dialog.steps),
                    prompts=sorted(dialog.prompts))
        return dialog

    def register_dialog(
        self,
        dialog_id: str,
        steps: Iterable[Step],
        prompts: Iterable[TextPrompt] = (),
    ) -> WaterfallDialog:
        return self.add(WaterfallDialog(dialog_id, steps, prompts))

    # ── Lookup ────────────────────────────────────────────────

    def find(self, dialog_id: str) -> Optional[WaterfallDialog]:
        return self._dialogs.get(dialog_id)

    def get(self, dialog_id: str) -> WaterfallDialog:
        dialog = self._dialogs.get(dialog_id)
        if dialog is None:
            raise UnknownDialogError(dialog_id)
        return dialog

    def list_ids(self) -> list[str]:
        return list(self._dialogs.keys())

    def __contains__(self, dialog_id: str) -> bool:
        return dialog_id in self._dialogs

    def __len__(self) -> int:
        return len(self._dialogs)


class DialogContext:
    """Stack operations for one turn of one conversation."""

    def __init__(self, dialogs: DialogSet, turn: TurnContext, state: DialogState):
        if dialogs is None:
            raise ConfigurationError("dialogs is required")
        self.dialogs = dialogs
        self.turn = turn
        self.state = state if state is not None else DialogState()

    @property
    def stack(self) -> list[DialogInstance]:
        return self.state.dialog_stack

    @property
    def active_instance(self) -> Optional[DialogInstance]:
        return self.state.active

    @property
    def active_dialog(self) -> Optional[WaterfallDialog]:
        instance = self.active_instance
        return self.dialogs.get(instance.dialog_id) if instance else None

    # ── Stack operations ──────────────────────────────────────

    async def begin_dialog(self, dialog_id: str, options: dict[str, Any] = None) -> DialogTurnResult:
        dialog = self.dialogs.get(dialog_id)
        instance = DialogInstance(dialog_id=dialog_id, step_index=0, options=dict(options or {}))
        self.stack.append(instance)
        logger.info("dialog_started",
                    conversation_key=self.turn.conversation_key,
                    dialog_id=dialog_id,
                    depth=len(self.stack))
        return await dialog.begin(self, instance.options)

    async def continue_dialog(self) -> DialogTurnResult:
        if not self.stack:
            raise NoActiveDialogError("continue_dialog")
        return await self.active_dialog.continue_(self)

    async def end_dialog(self, result: Any = None) -> DialogTurnResult:
        if not self.stack:
            raise NoActiveDialogError("end_dialog")
        finished = self.stack.pop()
        logger.info("dialog_completed",
                    conversation_key=self.turn.conversation_key,
                    dialog_id=finished.dialog_id,
                    depth=len(self.stack))

        if self.stack:
            return await self.active_dialog.resume(self, result)
        return DialogTurnResult(status=DialogTurnStatus.COMPLETE, result=result)

    async def cancel_all(self) -> DialogTurnResult:
        if not self.stack:
            return DialogTurnResult(status=DialogTurnStatus.EMPTY)
        cancelled = [i.dialog_id for i in self.stack]
        self.stack.clear()
        logger.info("dialogs_cancelled",
                    conversation_key=self.turn.conversation_key,
                    dialog_ids=cancelled)
        return DialogTurnResult(status=DialogTurnStatus.CANCELLED)

    def __repr__(self):
        return f"<DialogContext conv={self.turn.conversation_key[:8]} stack={[i.dialog_id for i in self.stack]}>"
