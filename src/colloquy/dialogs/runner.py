"""Single-turn entry point over an explicit persisted stack."""

from __future__ import annotations

from typing import Any

from loguru import logger

from colloquy.dialogs.dialog import DialogTurnResult, DialogTurnStatus
from colloquy.dialogs.dialog_context import DialogContext, DialogState
from colloquy.dialogs.dialog_set import DialogSet
from colloquy.state import StateMap
from colloquy.turn import TurnContext


async def run_dialog_turn(
    dialogs: DialogSet,
    root_dialog_id: str,
    context: TurnContext,
    state: DialogState,
    *,
    user: StateMap | None = None,
    conversation: StateMap | None = None,
    options: Any = None,
) -> DialogTurnResult:
    """Process one turn against `state`, mutating it in place.

    The active stack is continued; when it is empty the root dialog is begun.
    The caller persists `state` afterwards.
    """

    dc = DialogContext(dialogs, context, state, user=user, conversation=conversation)
    result = await dc.continue_dialog()
    if result.status is DialogTurnStatus.EMPTY:
        logger.debug("turn.begin_root id={} conversation={}", root_dialog_id, context.conversation_id)
        result = await dc.begin_dialog(root_dialog_id, options)
    logger.debug(
        "turn.done conversation={} status={} depth={}",
        context.conversation_id,
        result.status.value,
        len(dc.stack),
    )
    return result
