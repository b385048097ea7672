"""Prompt dialogs."""

from .activity_prompt import ActivityPrompt
from .prompt import (
    Prompt,
    PromptOptions,
    PromptRecognizer,
    PromptRecognizerResult,
    PromptValidator,
    PromptValidatorContext,
)
from .text_prompt import TextPrompt

__all__ = [
    "ActivityPrompt",
    "Prompt",
    "PromptOptions",
    "PromptRecognizer",
    "PromptRecognizerResult",
    "PromptValidator",
    "PromptValidatorContext",
    "TextPrompt",
]
