"""Dialog that runs a fixed sequence of async steps across turns."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeAlias

from loguru import logger
from pydantic import BaseModel

from colloquy.activity import ActivityTypes
from colloquy.dialogs.dialog import Dialog, DialogReason, DialogTurnResult
from colloquy.dialogs.dialog_context import DialogContext

PERSISTED_OPTIONS = "options"
PERSISTED_VALUES = "values"
STEP_INDEX = "step_index"

WaterfallStep: TypeAlias = Callable[["WaterfallStepContext"], Awaitable[DialogTurnResult]]


class WaterfallStepContext(DialogContext):
    """Dialog context for one waterfall step.

    Shares the stack and scopes of the context that ran the step, and adds the
    step's index, the reason it runs, the result handed to it, and the
    waterfall's persisted `values`.
    """

    def __init__(
        self,
        waterfall: WaterfallDialog,
        dc: DialogContext,
        *,
        index: int,
        options: Any,
        values: dict[str, Any],
        reason: DialogReason,
        result: Any,
    ) -> None:
        super().__init__(
            dc.dialogs,
            dc.context,
            dc.dialog_state,
            user=dc.state.user,
            conversation=dc.state.conversation,
            parent=dc.parent,
        )
        self._waterfall = waterfall
        self._next_called = False
        self.index = index
        self.options = options
        self.values = values
        self.reason = reason
        self.result = result

    async def next(self, result: Any = None) -> DialogTurnResult:
        """Skip to the following step without waiting for input."""

        if self._next_called:
            raise RuntimeError(f"next() called more than once in step {self.index} of '{self._waterfall.id}'")
        self._next_called = True
        return await self._waterfall.resume_dialog(self, DialogReason.NEXT_CALLED, result)


class WaterfallDialog(Dialog):
    """Runs its steps in order; each step usually begins a prompt and the
    prompt's result is handed to the next step.
    """

    def __init__(self, dialog_id: str, steps: list[WaterfallStep] | None = None) -> None:
        super().__init__(dialog_id)
        self._steps: list[WaterfallStep] = list(steps or [])

    def add_step(self, step: WaterfallStep) -> WaterfallDialog:
        self._steps.append(step)
        return self

    async def begin_dialog(self, dc: DialogContext, options: Any = None) -> DialogTurnResult:
        if isinstance(options, BaseModel):
            options = options.model_dump(exclude_none=True)
        state = dc.state.dialog
        state.set(PERSISTED_OPTIONS, options)
        state.set(PERSISTED_VALUES, {})
        return await self._run_step(dc, 0, DialogReason.BEGIN_CALLED, None)

    async def continue_dialog(self, dc: DialogContext) -> DialogTurnResult:
        if dc.context.activity_type != ActivityTypes.MESSAGE:
            return Dialog.end_of_turn
        return await self.resume_dialog(dc, DialogReason.CONTINUE_CALLED, dc.context.text)

    async def resume_dialog(self, dc: DialogContext, reason: DialogReason, result: Any = None) -> DialogTurnResult:
        index = int(dc.state.dialog.get(STEP_INDEX, 0))
        return await self._run_step(dc, index + 1, reason, result)

    async def on_step(self, step: WaterfallStepContext) -> DialogTurnResult:
        return await self._steps[step.index](step)

    async def _run_step(self, dc: DialogContext, index: int, reason: DialogReason, result: Any) -> DialogTurnResult:
        if index >= len(self._steps):
            return await dc.end_dialog(result)

        state = dc.state.dialog
        state.set(STEP_INDEX, index)
        step = WaterfallStepContext(
            self,
            dc,
            index=index,
            options=state.get(PERSISTED_OPTIONS),
            values=state.get(PERSISTED_VALUES),
            reason=reason,
            result=result,
        )
        logger.debug("waterfall.step id={} index={} reason={}", self.id, index, reason.value)
        return await self.on_step(step)
