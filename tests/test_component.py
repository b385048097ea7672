from __future__ import annotations

from typing import Any

import pytest
from dialog_helpers import ConsultingDialog, RecordingComponent, RecordingDialog, make_dc, make_turn

from colloquy.dialogs import (
    ComponentDialog,
    DialogConsultationDesire,
    DialogReason,
    DialogSet,
    DialogState,
    DialogTurnStatus,
    PromptOptions,
    TextPrompt,
    run_dialog_turn,
)
from colloquy.errors import ConfigurationError


def _component_a() -> ComponentDialog:
    return ComponentDialog("componentA").add_dialog(TextPrompt("promptX"))


def test_first_child_becomes_initial_dialog() -> None:
    component = ComponentDialog("c").add_dialog(TextPrompt("one")).add_dialog(TextPrompt("two"))

    assert component.initial_dialog_id == "one"
    assert component.find_dialog("two") is not None


@pytest.mark.asyncio
async def test_component_prompt_scenario_completes_outer_stack() -> None:
    dialogs = DialogSet([_component_a()])
    state = DialogState()
    options = PromptOptions(prompt="Name?", retry_prompt="Please answer.")

    turn1 = make_turn(activity_type="conversationUpdate")
    first = await run_dialog_turn(dialogs, "componentA", turn1, state, options=options)

    assert first.status is DialogTurnStatus.WAITING
    assert [outbound["text"] for outbound in turn1.outbounds] == ["Name?"]
    assert [frame.id for frame in state.dialog_stack] == ["componentA"]

    turn2 = make_turn("Ada")
    second = await run_dialog_turn(dialogs, "componentA", turn2, state, options=options)

    assert second.status is DialogTurnStatus.COMPLETE
    assert second.result == "Ada"
    assert state.dialog_stack == []
    assert turn2.outbounds == []


@pytest.mark.asyncio
async def test_inner_frames_stay_inside_component_frame() -> None:
    dialogs = DialogSet([_component_a()])
    dc = make_dc(dialogs)

    await dc.begin_dialog("componentA", PromptOptions(prompt="Name?"))

    assert [frame.id for frame in dc.stack] == ["componentA"]
    inner = dc.stack[0].state["dialogs"]
    assert [frame.id for frame in inner.dialog_stack] == ["promptX"]
    assert dc.find_dialog("promptX") is None


@pytest.mark.asyncio
async def test_cancel_cascades_inner_frames_before_component(log: list[tuple[Any, ...]]) -> None:
    component = RecordingComponent("comp", log)
    component.add_dialog(RecordingDialog("inner1", log)).add_dialog(RecordingDialog("inner2", log))
    dialogs = DialogSet([RecordingDialog("root", log), component])
    dc = make_dc(dialogs)
    await dc.begin_dialog("root")
    await dc.begin_dialog("comp")
    await component.create_inner_context(dc, dc.active_dialog).begin_dialog("inner2")

    await dc.cancel_all_dialogs()

    ends = [entry for entry in log if entry[0] == "end"]
    assert ends == [
        ("end", "inner2", DialogReason.CANCEL_CALLED),
        ("end", "inner1", DialogReason.CANCEL_CALLED),
        ("end", "comp", DialogReason.CANCEL_CALLED),
        ("end", "root", DialogReason.CANCEL_CALLED),
    ]


@pytest.mark.asyncio
async def test_normal_end_does_not_cancel_inner_stack(log: list[tuple[Any, ...]]) -> None:
    component = RecordingComponent("comp", log).add_dialog(RecordingDialog("inner", log))
    dc = make_dc(DialogSet([component]))
    await dc.begin_dialog("comp")

    result = await dc.end_dialog("done")

    assert result.status is DialogTurnStatus.COMPLETE
    assert [entry for entry in log if entry[0] == "end"] == [("end", "comp", DialogReason.END_CALLED)]


@pytest.mark.asyncio
async def test_reprompt_forwards_into_inner_stack(log: list[tuple[Any, ...]]) -> None:
    component = RecordingComponent("comp", log).add_dialog(RecordingDialog("inner", log))
    dc = make_dc(DialogSet([component]))
    await dc.begin_dialog("comp")

    await dc.reprompt_dialog()

    assert [entry for entry in log if entry[0] == "reprompt"] == [("reprompt", "inner"), ("reprompt", "comp")]


@pytest.mark.asyncio
async def test_unexpected_resume_reprompts_instead_of_ending(log: list[tuple[Any, ...]]) -> None:
    component = RecordingComponent("comp", log).add_dialog(RecordingDialog("inner", log))
    dc = make_dc(DialogSet([component, RecordingDialog("foreign", log)]))
    await dc.begin_dialog("comp")
    await dc.begin_dialog("foreign")

    result = await dc.end_dialog("ignored")

    assert result.status is DialogTurnStatus.WAITING
    assert [frame.id for frame in dc.stack] == ["comp"]
    assert ("reprompt", "inner") in log


@pytest.mark.asyncio
async def test_inner_consultation_surfaces_through_component(log: list[tuple[Any, ...]]) -> None:
    component = ComponentDialog("comp")
    component.add_dialog(ConsultingDialog("inner", log, DialogConsultationDesire.SHOULD_PROCESS))
    dialogs = DialogSet([ConsultingDialog("outer", log, DialogConsultationDesire.CAN_PROCESS), component])
    dc = make_dc(dialogs)
    await dc.begin_dialog("outer")
    await dc.begin_dialog("comp")
    log.clear()

    await dc.continue_dialog()

    assert log == [("processed", "inner")]


@pytest.mark.asyncio
async def test_continue_forwards_to_inner_dialog(log: list[tuple[Any, ...]]) -> None:
    component = ComponentDialog("comp").add_dialog(RecordingDialog("inner", log))
    dc = make_dc(DialogSet([component]))
    await dc.begin_dialog("comp")

    result = await dc.continue_dialog()

    assert result.status is DialogTurnStatus.WAITING
    assert log[-1] == ("continue", "inner")


@pytest.mark.asyncio
async def test_nested_components_complete_outward() -> None:
    inner = ComponentDialog("inner").add_dialog(TextPrompt("ask"))
    outer = ComponentDialog("outer").add_dialog(inner)
    dialogs = DialogSet([outer])
    state = DialogState()

    await run_dialog_turn(dialogs, "outer", make_turn("hi"), state, options=PromptOptions(prompt="Q?"))
    result = await run_dialog_turn(dialogs, "outer", make_turn("answer"), state)

    assert result.status is DialogTurnStatus.COMPLETE
    assert result.result == "answer"
    assert state.dialog_stack == []


@pytest.mark.asyncio
async def test_component_without_children_cannot_begin() -> None:
    dc = make_dc(DialogSet([ComponentDialog("empty")]))

    with pytest.raises(ConfigurationError):
        await dc.begin_dialog("empty")
