"""
Dialog engine errors.

Every error here is a wiring mistake (a flow asked for something that was
never registered, or ran off the end of its steps). They abort the current
turn and propagate to the host. A rejected prompt input is not an error and
never raises.
"""
from __future__ import annotations


class DialogError(Exception):
    """Base exception for all dialog engine failures."""

    def __init__(self, message: str, dialog_id: str = "", prompt_id: str = ""):
        self.dialog_id = dialog_id
        self.prompt_id = prompt_id
        super().__init__(message)


class ConfigurationError(DialogError):
    """A required constructor argument is missing or invalid."""


class UnknownDialogError(DialogError):
    def __init__(self, dialog_id: str):
        super().__init__(f"Dialog '{dialog_id}' is not registered", dialog_id=dialog_id)


class UnknownPromptError(DialogError):
    def __init__(self, prompt_id: str, dialog_id: str = ""):
        super().__init__(
            f"Prompt '{prompt_id}' is not registered on dialog '{dialog_id}'",
            dialog_id=dialog_id, prompt_id=prompt_id,
        )


class NoActiveDialogError(DialogError):
    def __init__(self, operation: str = "continue_dialog"):
        self.operation = operation
        super().__init__(f"{operation}() called with an empty dialog stack")


class WaterfallOverrunError(DialogError):
    def __init__(self, dialog_id: str, step_index: int, step_count: int):
        self.step_index = step_index
        self.step_count = step_count
        super().__init__(
            f"Dialog '{dialog_id}' advanced to step {step_index} but has only "
            f"{step_count} steps; the last step must end the dialog",
            dialog_id=dialog_id,
        )


class InvalidStepResultError(DialogError):
    def __init__(self, dialog_id: str, step_index: int, returned: object):
        self.step_index = step_index
        super().__init__(
            f"Step {step_index} of '{dialog_id}' returned {returned!r}; "
            f"expected Next, Prompt, EndDialog or BeginDialog",
            dialog_id=dialog_id,
        )
