"""Prompt that waits for any activity accepted by its validator."""

from __future__ import annotations

from typing import Any

from colloquy.dialogs.prompts.prompt import (
    Prompt,
    PromptOptions,
    PromptRecognizer,
    PromptRecognizerResult,
    PromptValidator,
)
from colloquy.errors import ConfigurationError
from colloquy.turn import TurnContext


class ActivityPrompt(Prompt):
    """Waits for an activity to be received.

    Useful when waiting for non-message activities such as events: the
    validator decides which activity ends the wait, so a validator is required.
    """

    def __init__(
        self,
        dialog_id: str,
        validator: PromptValidator,
        *,
        recognizer: PromptRecognizer | None = None,
    ) -> None:
        if validator is None:
            raise ConfigurationError("ActivityPrompt requires a validator")
        super().__init__(dialog_id, validator, recognizer=recognizer)

    async def on_recognize(
        self,
        context: TurnContext,
        state: dict[str, Any],
        options: PromptOptions,
    ) -> PromptRecognizerResult:
        return PromptRecognizerResult(succeeded=True, value=context.activity, allow_interruption=True)
