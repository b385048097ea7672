"""Base class for dialogs that wait for and validate user input."""

from __future__ import annotations

import inspect
from abc import abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeAlias

from pydantic import BaseModel, ConfigDict

from colloquy.activity import ActivityTypes, InputHints
from colloquy.dialogs.dialog import Dialog, DialogEvent, DialogInstance, DialogReason, DialogTurnResult
from colloquy.state import StateMap
from colloquy.turn import TurnContext

if TYPE_CHECKING:
    from colloquy.dialogs.dialog_context import DialogContext

PERSISTED_OPTIONS = "options"
PERSISTED_STATE = "state"
ATTEMPT_COUNT = "attempt_count"


class PromptOptions(BaseModel):
    """Texts (or partial activities) a prompt sends, plus caller extras."""

    model_config = ConfigDict(extra="allow")

    prompt: str | dict[str, Any] | None = None
    retry_prompt: str | dict[str, Any] | None = None
    validations: Any = None


@dataclass
class PromptRecognizerResult:
    succeeded: bool
    value: Any = None
    allow_interruption: bool = True


@dataclass
class PromptValidatorContext:
    context: TurnContext
    recognized: PromptRecognizerResult
    state: dict[str, Any]
    options: PromptOptions
    attempt_count: int = field(default=0)


PromptValidator: TypeAlias = Callable[[PromptValidatorContext], Awaitable[bool] | bool]
PromptRecognizer: TypeAlias = Callable[
    [TurnContext, dict[str, Any], PromptOptions],
    Awaitable[PromptRecognizerResult] | PromptRecognizerResult,
]


def coerce_options(options: Any) -> PromptOptions:
    """Accept PromptOptions, a mapping, plain prompt text, or nothing."""

    if isinstance(options, PromptOptions):
        return options.model_copy(deep=True)
    if isinstance(options, dict):
        return PromptOptions.model_validate(options)
    if options is None:
        return PromptOptions()
    return PromptOptions(prompt=str(options))


class Prompt(Dialog):
    """Sends a prompt, then recognizes and validates each reply.

    Options and recognition state are kept in the frame's dialog scope so a
    prompt can be persisted between turns and reloaded on the next one.
    """

    def __init__(
        self,
        dialog_id: str,
        validator: PromptValidator | None = None,
        *,
        recognizer: PromptRecognizer | None = None,
    ) -> None:
        super().__init__(dialog_id)
        self._validator = validator
        self._recognizer = recognizer

    async def begin_dialog(self, dc: DialogContext, options: Any = None) -> DialogTurnResult:
        opts = coerce_options(options)
        for name in ("prompt", "retry_prompt"):
            value = getattr(opts, name)
            if isinstance(value, dict) and not isinstance(value.get("input_hint"), str):
                setattr(opts, name, {**value, "input_hint": InputHints.EXPECTING_INPUT})

        state = dc.state.dialog
        state.set(PERSISTED_OPTIONS, opts.model_dump(exclude_none=True))
        state.set(PERSISTED_STATE, {ATTEMPT_COUNT: 0})

        await self.on_prompt(dc.context, state.get(PERSISTED_STATE), opts, False)
        return Dialog.end_of_turn

    async def continue_dialog(self, dc: DialogContext) -> DialogTurnResult:
        state = dc.state.dialog
        prompt_state = state.get(PERSISTED_STATE)
        if not isinstance(prompt_state, dict):
            prompt_state = {ATTEMPT_COUNT: 0}
            state.set(PERSISTED_STATE, prompt_state)
        options = PromptOptions.model_validate(state.get(PERSISTED_OPTIONS, {}))

        recognized = await self.recognize(dc.context, prompt_state, options)
        prompt_state[ATTEMPT_COUNT] = int(prompt_state.get(ATTEMPT_COUNT, 0)) + 1

        is_valid = await self.validate(
            PromptValidatorContext(
                context=dc.context,
                recognized=recognized,
                state=prompt_state,
                options=options,
                attempt_count=prompt_state[ATTEMPT_COUNT],
            )
        )
        if is_valid:
            return await dc.end_dialog(recognized.value)

        if dc.context.activity_type == ActivityTypes.MESSAGE and not dc.context.responded:
            await self.on_prompt(dc.context, prompt_state, options, True)
        return Dialog.end_of_turn

    async def resume_dialog(self, dc: DialogContext, reason: DialogReason, result: Any = None) -> DialogTurnResult:
        # A foreign dialog was pushed above this prompt and has now ended.
        await self.reprompt_dialog(dc, dc.active_dialog)
        return Dialog.end_of_turn

    async def reprompt_dialog(self, dc: DialogContext, instance: DialogInstance | None) -> None:
        if instance is None:
            return
        state = StateMap(instance.state)
        options = PromptOptions.model_validate(state.get(PERSISTED_OPTIONS, {}))
        await self.on_prompt(dc.context, state.get(PERSISTED_STATE, {}), options, True)

    async def on_dialog_event(self, dc: DialogContext, event: DialogEvent, instance: DialogInstance) -> bool:
        if event.name != "consultDialog":
            return await super().on_dialog_event(dc, event, instance)
        state = StateMap(instance.state)
        options = PromptOptions.model_validate(state.get(PERSISTED_OPTIONS, {}))
        recognized = await self.recognize(dc.context, state.get(PERSISTED_STATE, {}), options)
        return recognized.succeeded and not recognized.allow_interruption

    async def on_prompt(
        self,
        context: TurnContext,
        state: dict[str, Any],
        options: PromptOptions,
        is_retry: bool,
    ) -> None:
        if is_retry and options.retry_prompt is not None:
            await context.send_activity(options.retry_prompt, InputHints.EXPECTING_INPUT)
        elif options.prompt is not None:
            await context.send_activity(options.prompt, InputHints.EXPECTING_INPUT)

    async def recognize(
        self,
        context: TurnContext,
        state: dict[str, Any],
        options: PromptOptions,
    ) -> PromptRecognizerResult:
        """Run the injected recognizer when given, else `on_recognize`."""

        if self._recognizer is None:
            return await self.on_recognize(context, state, options)
        recognized = self._recognizer(context, state, options)
        if inspect.isawaitable(recognized):
            recognized = await recognized
        return recognized

    async def validate(self, prompt_context: PromptValidatorContext) -> bool:
        if self._validator is None:
            return prompt_context.recognized.succeeded
        verdict = self._validator(prompt_context)
        if inspect.isawaitable(verdict):
            verdict = await verdict
        return bool(verdict)

    @abstractmethod
    async def on_recognize(
        self,
        context: TurnContext,
        state: dict[str, Any],
        options: PromptOptions,
    ) -> PromptRecognizerResult:
        """Extract a value from the current activity."""
