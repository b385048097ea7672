"""Dialog that runs a private dialog stack inside one outer frame."""

from __future__ import annotations

from typing import Any

from loguru import logger

from colloquy.dialogs.dialog import (
    Dialog,
    DialogConsultation,
    DialogInstance,
    DialogReason,
    DialogTurnResult,
    DialogTurnStatus,
)
from colloquy.dialogs.dialog_context import DialogContext, DialogState
from colloquy.dialogs.dialog_set import DialogSet
from colloquy.errors import ConfigurationError

PERSISTED_DIALOG_STATE = "dialogs"


class ComponentDialog(Dialog):
    """Composite dialog owning its own `DialogSet` and inner stack.

    The inner stack is stored in the outer frame's state under the
    ``"dialogs"`` key, so persisting the outer stack persists the whole tree.
    Outer dialogs only ever see the component's own frame.

    Subclasses add child dialogs in their constructor and override the
    ``on_*`` hooks to customize behavior::

        class ProfileDialog(ComponentDialog):
            def __init__(self) -> None:
                super().__init__("profile")
                self.add_dialog(WaterfallDialog("steps", [self.ask_name, self.finish]))
                self.add_dialog(TextPrompt("name"))
    """

    def __init__(self, dialog_id: str, *, initial_dialog_id: str | None = None) -> None:
        super().__init__(dialog_id)
        self.dialogs = DialogSet()
        self.initial_dialog_id = initial_dialog_id

    def add_dialog(self, dialog: Dialog) -> ComponentDialog:
        """Add a child dialog; the first one added becomes the initial dialog."""

        self.dialogs.add(dialog)
        if self.initial_dialog_id is None:
            self.initial_dialog_id = dialog.id
        return self

    def find_dialog(self, dialog_id: str) -> Dialog | None:
        return self.dialogs.find(dialog_id)

    async def begin_dialog(self, dc: DialogContext, options: Any = None) -> DialogTurnResult:
        inner_dc = self.create_inner_context(dc, dc.active_dialog)
        result = await self.on_begin_dialog(inner_dc, options)
        return await self._complete_if_done(dc, result)

    async def continue_dialog(self, dc: DialogContext) -> DialogTurnResult:
        inner_dc = self.create_inner_context(dc, dc.active_dialog)
        result = await self.on_continue_dialog(inner_dc)
        return await self._complete_if_done(dc, result)

    async def consult_dialog(self, dc: DialogContext, instance: DialogInstance) -> DialogConsultation | None:
        inner_dc = self.create_inner_context(dc, instance)
        inner = await self.on_consult_dialog(inner_dc)
        if inner is None:
            return None

        async def process(outer_dc: DialogContext) -> DialogTurnResult:
            result = await inner.processor(inner_dc)
            if result.status is DialogTurnStatus.WAITING or not outer_dc.contains_frame(instance):
                return result
            await outer_dc.cancel_dialogs_above(instance)
            return await self._complete_if_done(outer_dc, result)

        return DialogConsultation(inner.desire, process)

    async def resume_dialog(self, dc: DialogContext, reason: DialogReason, result: Any = None) -> DialogTurnResult:
        # Something was pushed above the component and has ended; the inner
        # stack is still mid-flight, so ask it to prompt again.
        await self.reprompt_dialog(dc, dc.active_dialog)
        return Dialog.end_of_turn

    async def reprompt_dialog(self, dc: DialogContext, instance: DialogInstance | None) -> None:
        if instance is None:
            return
        inner_dc = self.create_inner_context(dc, instance)
        await inner_dc.reprompt_dialog()
        await self.on_reprompt_dialog(dc, instance)

    async def end_dialog(self, dc: DialogContext, instance: DialogInstance, reason: DialogReason) -> None:
        if reason is DialogReason.CANCEL_CALLED:
            inner_dc = self.create_inner_context(dc, instance)
            await inner_dc.cancel_all_dialogs()
        await self.on_end_dialog(dc, instance, reason)

    def create_inner_context(self, dc: DialogContext, instance: DialogInstance | None) -> DialogContext:
        """Bind a context to the inner stack stored in `instance`."""

        if instance is None:
            raise ValueError(f"component '{self.id}' has no frame on the stack")
        return DialogContext(
            self.dialogs,
            dc.context,
            self._inner_state(instance),
            user=dc.state.user,
            conversation=dc.state.conversation,
            parent=dc,
        )

    async def on_begin_dialog(self, inner_dc: DialogContext, options: Any = None) -> DialogTurnResult:
        if self.initial_dialog_id is None:
            raise ConfigurationError(f"component '{self.id}' has no child dialogs")
        return await inner_dc.begin_dialog(self.initial_dialog_id, options)

    async def on_continue_dialog(self, inner_dc: DialogContext) -> DialogTurnResult:
        return await inner_dc.continue_dialog()

    async def on_consult_dialog(self, inner_dc: DialogContext) -> DialogConsultation | None:
        """Consultation of the inner stack; override to add interruption rules."""

        return await inner_dc.consult_dialog()

    async def on_end_dialog(self, dc: DialogContext, instance: DialogInstance, reason: DialogReason) -> None:
        """Called when the component is ending, after any inner cancellation."""

    async def on_reprompt_dialog(self, dc: DialogContext, instance: DialogInstance) -> None:
        """Called after the active inner dialog was asked to re-prompt."""

    async def end_component(self, outer_dc: DialogContext, result: Any) -> DialogTurnResult:
        """Called when the last inner dialog ended; ends the outer frame."""

        return await outer_dc.end_dialog(result)

    async def _complete_if_done(self, outer_dc: DialogContext, result: DialogTurnResult) -> DialogTurnResult:
        if result.status is DialogTurnStatus.WAITING:
            return Dialog.end_of_turn
        logger.debug("component.end id={} inner_status={}", self.id, result.status.value)
        return await self.end_component(outer_dc, result.result)

    @staticmethod
    def _inner_state(instance: DialogInstance) -> DialogState:
        raw = instance.state.get(PERSISTED_DIALOG_STATE)
        if isinstance(raw, DialogState):
            return raw
        state = DialogState.model_validate(raw) if isinstance(raw, dict) else DialogState()
        instance.state[PERSISTED_DIALOG_STATE] = state
        return state
