"""Dialog stack and the context that drives it for one turn."""

from __future__ import annotations

from typing import Any

from loguru import logger
from pydantic import BaseModel, Field

from colloquy.dialogs.dialog import (
    Dialog,
    DialogConsultation,
    DialogInstance,
    DialogReason,
    DialogTurnResult,
    DialogTurnStatus,
    prefer_consultation,
)
from colloquy.dialogs.dialog_set import DialogSet
from colloquy.dialogs.prompts.prompt import PromptOptions
from colloquy.state import DialogStateScopes, StateMap
from colloquy.turn import TurnContext
from colloquy.types import State


class DialogState(BaseModel):
    """Persisted dialog stack. The last frame is the top of the stack."""

    dialog_stack: list[DialogInstance] = Field(default_factory=list)


class DialogContext:
    """Drives one dialog stack against the dialogs of one `DialogSet`.

    All frame pushes and pops go through this class and happen one at a time,
    in the order they are awaited.
    """

    def __init__(
        self,
        dialogs: DialogSet,
        context: TurnContext,
        state: DialogState | None = None,
        *,
        user: StateMap | None = None,
        conversation: StateMap | None = None,
        parent: DialogContext | None = None,
    ) -> None:
        self.dialogs = dialogs
        self.context = context
        self.parent = parent
        self._dialog_state = state if state is not None else DialogState()
        self.state = DialogStateScopes(
            self._active_state,
            user=user if user is not None else StateMap(),
            conversation=conversation if conversation is not None else StateMap(),
        )

    @property
    def dialog_state(self) -> DialogState:
        return self._dialog_state

    @property
    def stack(self) -> list[DialogInstance]:
        return self._dialog_state.dialog_stack

    @property
    def active_dialog(self) -> DialogInstance | None:
        stack = self.stack
        return stack[-1] if stack else None

    def find_dialog(self, dialog_id: str) -> Dialog | None:
        return self.dialogs.find(dialog_id)

    async def begin_dialog(self, dialog_id: str, options: Any = None) -> DialogTurnResult:
        """Push a new frame for `dialog_id` and start it."""

        dialog = self.dialogs.resolve(dialog_id)
        instance = DialogInstance(id=dialog_id)
        self.stack.append(instance)
        logger.debug("dialog.begin id={} depth={}", dialog_id, len(self.stack))
        result = await dialog.begin_dialog(self, options)
        return await self._settle(instance, result)

    async def prompt(
        self,
        dialog_id: str,
        prompt: Any,
        retry_prompt: Any = None,
        **extra: Any,
    ) -> DialogTurnResult:
        """Begin a prompt dialog with the given prompt texts."""

        options = PromptOptions(prompt=prompt, retry_prompt=retry_prompt, **extra)
        return await self.begin_dialog(dialog_id, options)

    async def continue_dialog(self) -> DialogTurnResult:
        """Route the current turn to the dialog that should process it."""

        active = self.active_dialog
        if active is None:
            return DialogTurnResult(DialogTurnStatus.EMPTY)

        consultation, owner = await self._arbitrate()
        if consultation is not None and owner is not None:
            logger.debug("dialog.consulted id={} desire={}", owner.id, consultation.desire.name)
            result = await consultation.processor(self)
            if result.status in (DialogTurnStatus.WAITING, DialogTurnStatus.EMPTY) or not self.contains_frame(owner):
                return result
            await self.cancel_dialogs_above(owner)
            return await self._settle(owner, result)

        dialog = self._dialog_for(active)
        result = await dialog.continue_dialog(self)
        return await self._settle(active, result)

    async def consult_dialog(self) -> DialogConsultation | None:
        """Ask every frame, innermost first, whether it wants this turn.

        A higher desire always replaces the current winner. On equal desire the
        frame closer to the root wins.
        """

        consultation, _ = await self._arbitrate()
        return consultation

    def contains_frame(self, instance: DialogInstance) -> bool:
        return any(frame is instance for frame in self.stack)

    async def cancel_dialogs_above(self, instance: DialogInstance) -> None:
        """Pop, with the cancel reason, every frame pushed above `instance`.

        Does nothing when `instance` is not on this stack.
        """

        if not self.contains_frame(instance):
            return
        while self.active_dialog is not instance:
            await self._end_active(DialogReason.CANCEL_CALLED)

    async def end_dialog(self, result: Any = None) -> DialogTurnResult:
        """Pop the top frame and hand `result` to the frame below it."""

        await self._end_active(DialogReason.END_CALLED)
        return await self._resume_active(DialogReason.END_CALLED, result)

    async def replace_dialog(self, dialog_id: str, options: Any = None) -> DialogTurnResult:
        """Swap the top frame for a new frame of `dialog_id`."""

        await self._end_active(DialogReason.REPLACE_CALLED)
        return await self.begin_dialog(dialog_id, options)

    async def cancel_all_dialogs(self) -> DialogTurnResult:
        """Pop every frame, top to bottom, with the cancel reason."""

        if not self.stack:
            return DialogTurnResult(DialogTurnStatus.EMPTY)
        while self.stack:
            await self._end_active(DialogReason.CANCEL_CALLED)
        return DialogTurnResult(DialogTurnStatus.CANCELLED)

    async def reprompt_dialog(self) -> None:
        active = self.active_dialog
        if active is None:
            return
        await self._dialog_for(active).reprompt_dialog(self, active)

    async def _arbitrate(self) -> tuple[DialogConsultation | None, DialogInstance | None]:
        winner: DialogConsultation | None = None
        owner: DialogInstance | None = None
        for instance in reversed(list(self.stack)):
            candidate = await self._dialog_for(instance).consult_dialog(self, instance)
            preferred = prefer_consultation(winner, candidate)
            if preferred is not winner:
                winner, owner = preferred, instance
        return winner, owner

    def _active_state(self) -> State | None:
        active = self.active_dialog
        return active.state if active is not None else None

    def _dialog_for(self, instance: DialogInstance) -> Dialog:
        return self.dialogs.resolve(instance.id)

    async def _settle(self, instance: DialogInstance, result: DialogTurnResult) -> DialogTurnResult:
        # Dialogs that already popped themselves (via end_dialog and friends)
        # are no longer on top, so their result passes through untouched.
        if result.status in (DialogTurnStatus.WAITING, DialogTurnStatus.EMPTY):
            return result
        if self.active_dialog is not instance:
            return result
        if result.status is DialogTurnStatus.CANCELLED:
            await self._end_active(DialogReason.CANCEL_CALLED)
            return await self._resume_active(DialogReason.CANCEL_CALLED, result.result)
        return await self.end_dialog(result.result)

    async def _end_active(self, reason: DialogReason) -> None:
        instance = self.active_dialog
        if instance is None:
            return
        dialog = self._dialog_for(instance)
        await dialog.end_dialog(self, instance, reason)
        self.stack.pop()
        logger.debug("dialog.end id={} reason={} depth={}", instance.id, reason.value, len(self.stack))

    async def _resume_active(self, reason: DialogReason, result: Any) -> DialogTurnResult:
        active = self.active_dialog
        if active is None:
            status = DialogTurnStatus.CANCELLED if reason is DialogReason.CANCEL_CALLED else DialogTurnStatus.COMPLETE
            return DialogTurnResult(status, result)
        logger.debug("dialog.resume id={} reason={}", active.id, reason.value)
        resumed = await self._dialog_for(active).resume_dialog(self, reason, result)
        return await self._settle(active, resumed)
