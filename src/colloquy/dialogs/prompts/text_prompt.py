"""Prompt for a line of free text."""

from __future__ import annotations

from typing import Any

from colloquy.activity import ActivityTypes
from colloquy.dialogs.prompts.prompt import Prompt, PromptOptions, PromptRecognizerResult
from colloquy.turn import TurnContext


class TextPrompt(Prompt):
    async def on_recognize(
        self,
        context: TurnContext,
        state: dict[str, Any],
        options: PromptOptions,
    ) -> PromptRecognizerResult:
        if context.activity_type != ActivityTypes.MESSAGE:
            return PromptRecognizerResult(succeeded=False)
        text = context.text.strip()
        if not text:
            return PromptRecognizerResult(succeeded=False)
        return PromptRecognizerResult(succeeded=True, value=text)
