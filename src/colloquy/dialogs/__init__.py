"""Dialog stack, dialogs and prompts."""

from .dialog import (
    Dialog,
    DialogConsultation,
    DialogConsultationDesire,
    DialogEvent,
    DialogInstance,
    DialogReason,
    DialogTurnResult,
    DialogTurnStatus,
    prefer_consultation,
)
from .dialog_set import DialogSet
from .prompts import (
    ActivityPrompt,
    Prompt,
    PromptOptions,
    PromptRecognizerResult,
    PromptValidatorContext,
    TextPrompt,
)
from .dialog_context import DialogContext, DialogState
from .component import ComponentDialog
from .waterfall import WaterfallDialog, WaterfallStepContext
from .runner import run_dialog_turn

__all__ = [
    "ActivityPrompt",
    "ComponentDialog",
    "Dialog",
    "DialogConsultation",
    "DialogConsultationDesire",
    "DialogContext",
    "DialogEvent",
    "DialogInstance",
    "DialogReason",
    "DialogSet",
    "DialogState",
    "DialogTurnResult",
    "DialogTurnStatus",
    "Prompt",
    "PromptOptions",
    "PromptRecognizerResult",
    "PromptValidatorContext",
    "TextPrompt",
    "WaterfallDialog",
    "WaterfallStepContext",
    "prefer_consultation",
    "run_dialog_turn",
]
