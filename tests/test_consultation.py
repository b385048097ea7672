from __future__ import annotations

from typing import Any

import pytest
from dialog_helpers import ConsultingDialog, RecordingDialog, make_dc
from loguru import logger

from colloquy.dialogs import (
    ComponentDialog,
    Dialog,
    DialogConsultation,
    DialogConsultationDesire,
    DialogContext,
    DialogInstance,
    DialogReason,
    DialogSet,
    DialogTurnResult,
    DialogTurnStatus,
    PromptOptions,
    PromptRecognizerResult,
    TextPrompt,
    prefer_consultation,
)

CAN = DialogConsultationDesire.CAN_PROCESS
SHOULD = DialogConsultationDesire.SHOULD_PROCESS
NONE = DialogConsultationDesire.NO_INTEREST


async def _stack(log: list[tuple[Any, ...]], outer: Any, inner: Any) -> DialogContext:
    dc = make_dc(DialogSet([ConsultingDialog("outer", log, outer), ConsultingDialog("inner", log, inner)]))
    await dc.begin_dialog("outer")
    await dc.begin_dialog("inner")
    log.clear()
    return dc


@pytest.mark.asyncio
async def test_ancestor_should_process_interrupts_descendant(log: list[tuple[Any, ...]]) -> None:
    dc = await _stack(log, SHOULD, CAN)

    await dc.continue_dialog()

    assert log == [("processed", "outer")]
    assert [frame.id for frame in dc.stack] == ["outer", "inner"]


@pytest.mark.asyncio
async def test_descendant_should_process_beats_ancestor_can_process(log: list[tuple[Any, ...]]) -> None:
    dc = await _stack(log, CAN, SHOULD)

    await dc.continue_dialog()

    assert log == [("processed", "inner")]


@pytest.mark.asyncio
async def test_equal_desire_goes_to_frame_nearer_root(log: list[tuple[Any, ...]]) -> None:
    dc = await _stack(log, SHOULD, SHOULD)

    await dc.continue_dialog()

    assert log == [("processed", "outer")]


@pytest.mark.asyncio
@pytest.mark.parametrize(("outer", "inner"), [(None, None), (NONE, NONE), (NONE, None)])
async def test_no_interest_falls_through_to_innermost_continue(
    log: list[tuple[Any, ...]], outer: Any, inner: Any
) -> None:
    dc = await _stack(log, outer, inner)

    await dc.continue_dialog()

    assert log == [("continue", "inner")]


def test_prefer_consultation_ignores_no_interest() -> None:
    async def noop(dc: DialogContext) -> DialogTurnResult:
        return Dialog.end_of_turn

    can = DialogConsultation(CAN, noop)
    ignored = DialogConsultation(NONE, noop)

    assert prefer_consultation(None, ignored) is None
    assert prefer_consultation(can, ignored) is can
    assert prefer_consultation(can, None) is can


class CancellingParent(Dialog):
    """Pushes a child prompt and claims any "cancel" utterance."""

    def __init__(self, log: list[tuple[Any, ...]]) -> None:
        super().__init__("parent")
        self.log = log

    async def begin_dialog(self, dc: DialogContext, options: Any = None) -> DialogTurnResult:
        return await dc.prompt("child", "Say something")

    async def consult_dialog(self, dc: DialogContext, instance: DialogInstance) -> DialogConsultation | None:
        if dc.context.text != "cancel":
            return None

        async def cancel(dc: DialogContext) -> DialogTurnResult:
            self.log.append(("parent", "cancel"))
            return await dc.cancel_all_dialogs()

        return DialogConsultation(SHOULD, cancel)


def _parent_and_child(log: list[tuple[Any, ...]]) -> DialogSet:
    async def record(prompt: Any) -> bool:
        log.append(("child", "validated", prompt.recognized.value))
        return prompt.recognized.succeeded

    return DialogSet([CancellingParent(log), TextPrompt("child", record)])


@pytest.mark.asyncio
async def test_parent_claims_cancel_ahead_of_child_prompt(log: list[tuple[Any, ...]]) -> None:
    dialogs = _parent_and_child(log)
    first = make_dc(dialogs)
    await first.begin_dialog("parent")
    state = first.dialog_state

    dc = make_dc(dialogs, state, "cancel")
    result = await dc.continue_dialog()

    assert log == [("parent", "cancel")]
    assert result.status is DialogTurnStatus.CANCELLED
    assert state.dialog_stack == []


@pytest.mark.asyncio
async def test_child_prompt_handles_other_input(log: list[tuple[Any, ...]]) -> None:
    dialogs = _parent_and_child(log)
    first = make_dc(dialogs)
    await first.begin_dialog("parent")

    dc = make_dc(dialogs, first.dialog_state, "hello")
    await dc.continue_dialog()

    assert log == [("child", "validated", "hello")]


@pytest.mark.asyncio
async def test_prompt_blocking_interruption_beats_can_process_ancestor(log: list[tuple[Any, ...]]) -> None:
    def critical(context: Any, state: dict[str, Any], options: PromptOptions) -> PromptRecognizerResult:
        return PromptRecognizerResult(succeeded=True, value=context.text, allow_interruption=False)

    dialogs = DialogSet([ConsultingDialog("outer", log, CAN), TextPrompt("child", recognizer=critical)])
    dc = make_dc(dialogs)
    await dc.begin_dialog("outer")
    await dc.prompt("child", "Code?")
    log.clear()

    turn = make_dc(dialogs, dc.dialog_state, "1234")
    consultation = await turn.consult_dialog()
    assert consultation is not None
    assert consultation.desire is SHOULD

    await turn.continue_dialog()

    assert [frame.id for frame in turn.stack] == ["outer"]
    assert log[-1][:2] == ("resume", "outer")
    assert log[-1][3] == "1234"


def _critical(context: Any, state: dict[str, Any], options: PromptOptions) -> PromptRecognizerResult:
    return PromptRecognizerResult(succeeded=True, value=context.text, allow_interruption=False)


@pytest.mark.asyncio
async def test_blocking_prompt_below_foreign_frame_consumes_turn(log: list[tuple[Any, ...]]) -> None:
    dialogs = DialogSet([TextPrompt("code", recognizer=_critical), RecordingDialog("foreign", log)])
    dc = make_dc(dialogs)
    await dc.prompt("code", "Code?")
    await dc.begin_dialog("foreign")
    log.clear()

    turn = make_dc(dialogs, dc.dialog_state, "1234")
    result = await turn.continue_dialog()

    assert log == [("end", "foreign", DialogReason.CANCEL_CALLED)]
    assert result.status is DialogTurnStatus.COMPLETE
    assert result.result == "1234"
    assert turn.stack == []
    assert turn.context.outbounds == []


@pytest.mark.asyncio
async def test_blocking_prompt_below_foreign_frame_keeps_its_own_state(log: list[tuple[Any, ...]]) -> None:
    def reject(prompt: Any) -> bool:
        return False

    dialogs = DialogSet([TextPrompt("code", reject, recognizer=_critical), RecordingDialog("foreign", log)])
    dc = make_dc(dialogs)
    await dc.prompt("code", "Code?", "Code again?")
    await dc.begin_dialog("foreign")

    turn = make_dc(dialogs, dc.dialog_state, "1234")
    result = await turn.continue_dialog()

    assert result.status is DialogTurnStatus.WAITING
    assert [frame.id for frame in turn.stack] == ["code"]
    assert turn.stack[0].state["state"]["attempt_count"] == 1
    assert [outbound["text"] for outbound in turn.context.outbounds] == ["Code again?"]


@pytest.mark.asyncio
async def test_component_below_foreign_frame_settles_its_frame(log: list[tuple[Any, ...]]) -> None:
    component = ComponentDialog("comp").add_dialog(TextPrompt("code", recognizer=_critical))
    dialogs = DialogSet([component, RecordingDialog("foreign", log)])
    dc = make_dc(dialogs)
    await dc.begin_dialog("comp", PromptOptions(prompt="Code?"))
    await dc.begin_dialog("foreign")
    log.clear()

    turn = make_dc(dialogs, dc.dialog_state, "1234")
    result = await turn.continue_dialog()

    assert log == [("end", "foreign", DialogReason.CANCEL_CALLED)]
    assert result.status is DialogTurnStatus.COMPLETE
    assert result.result == "1234"
    assert turn.stack == []


@pytest.mark.asyncio
async def test_consulted_log_names_winning_frame(log: list[tuple[Any, ...]]) -> None:
    messages: list[str] = []
    sink_id = logger.add(messages.append, level="DEBUG", format="{message}")
    try:
        dc = await _stack(log, SHOULD, None)
        await dc.continue_dialog()
    finally:
        logger.remove(sink_id)

    assert any(message.startswith("dialog.consulted id=outer ") for message in messages)
