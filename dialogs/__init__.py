"""
Multi-turn dialog engine.

A dialog is an ordered list of async step functions plus the prompts they
may issue. The engine runs steps until one asks a question, persists the
cursor, and picks up at the following step when a valid answer arrives.
Dialogs can start child dialogs; the parent resumes with the child's result.
"""
from dialogs.errors import (
    DialogError, ConfigurationError, UnknownDialogError, UnknownPromptError,
    NoActiveDialogError, WaterfallOverrunError, InvalidStepResultError,
)
from dialogs.turn import TurnContext
from dialogs.prompts import TextPrompt, PromptValidatorContext, Validator, min_length
from dialogs.waterfall import (
    WaterfallDialog, WaterfallStepContext, Step, StepResult,
    Next, Prompt, EndDialog, BeginDialog,
)
from dialogs.stack import DialogSet, DialogContext
from dialogs.builder import FlowBuilder
