"""colloquy - turn-based dialog orchestration."""

from .dialogs import (
    ActivityPrompt,
    ComponentDialog,
    Dialog,
    DialogContext,
    DialogSet,
    DialogState,
    DialogTurnResult,
    DialogTurnStatus,
    TextPrompt,
    WaterfallDialog,
)
from .framework import DialogFramework
from .turn import TurnContext

__version__ = "0.1.0"

__all__ = [
    "ActivityPrompt",
    "ComponentDialog",
    "Dialog",
    "DialogContext",
    "DialogFramework",
    "DialogSet",
    "DialogState",
    "DialogTurnResult",
    "DialogTurnStatus",
    "TextPrompt",
    "TurnContext",
    "WaterfallDialog",
]
