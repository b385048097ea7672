"""Dialog lifecycle contract and the records it exchanges."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any, ClassVar, TypeAlias

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from colloquy.dialogs.dialog_context import DialogContext


class DialogTurnStatus(str, Enum):
    EMPTY = "empty"
    WAITING = "waiting"
    COMPLETE = "complete"
    CANCELLED = "cancelled"


class DialogReason(str, Enum):
    BEGIN_CALLED = "beginCalled"
    CONTINUE_CALLED = "continueCalled"
    END_CALLED = "endCalled"
    REPLACE_CALLED = "replaceCalled"
    CANCEL_CALLED = "cancelCalled"
    NEXT_CALLED = "nextCalled"


class DialogConsultationDesire(IntEnum):
    """How strongly a dialog wants to process the current turn."""

    NO_INTEREST = 0
    CAN_PROCESS = 1
    SHOULD_PROCESS = 2


class DialogInstance(BaseModel):
    """One frame of a dialog stack."""

    id: str
    state: dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class DialogTurnResult:
    status: DialogTurnStatus
    result: Any = None


DialogProcessor: TypeAlias = Callable[["DialogContext"], Awaitable[DialogTurnResult]]


@dataclass(frozen=True)
class DialogConsultation:
    """A dialog's claim on the current turn and the action that honours it."""

    desire: DialogConsultationDesire
    processor: DialogProcessor


def prefer_consultation(
    current: DialogConsultation | None,
    candidate: DialogConsultation | None,
) -> DialogConsultation | None:
    """Pick between the winner so far and a consultation from a frame further out.

    The outer candidate wins unless the current winner has a strictly higher
    desire. No-interest consultations never win.
    """

    if candidate is None or candidate.desire is DialogConsultationDesire.NO_INTEREST:
        return current
    if current is None or candidate.desire >= current.desire:
        return candidate
    return current


@dataclass(frozen=True)
class DialogEvent:
    name: str
    value: Any = None


class Dialog(ABC):
    """Base class for all dialogs.

    Subclasses must implement `begin_dialog`. Every other operation has a
    default suited to a single-turn dialog. Any operation may be invoked while
    a foreign dialog sits above this one on the stack, so overrides should fall
    back to re-prompting instead of failing.
    """

    end_of_turn: ClassVar[DialogTurnResult] = DialogTurnResult(DialogTurnStatus.WAITING)

    def __init__(self, dialog_id: str) -> None:
        if not dialog_id:
            raise ValueError("dialog id must be a non-empty string")
        self.id = dialog_id

    @abstractmethod
    async def begin_dialog(self, dc: DialogContext, options: Any = None) -> DialogTurnResult:
        """Called when a frame for this dialog is pushed onto the stack."""

    async def continue_dialog(self, dc: DialogContext) -> DialogTurnResult:
        """Called when a new turn arrives while this dialog is on top of the stack."""

        return await dc.end_dialog()

    async def resume_dialog(self, dc: DialogContext, reason: DialogReason, result: Any = None) -> DialogTurnResult:
        """Called when a dialog pushed above this one has ended."""

        return await dc.end_dialog(result)

    async def reprompt_dialog(self, dc: DialogContext, instance: DialogInstance) -> None:
        """Re-issue the last output without evaluating input."""

    async def end_dialog(self, dc: DialogContext, instance: DialogInstance, reason: DialogReason) -> None:
        """Cleanup hook run just before the frame is popped."""

    async def consult_dialog(self, dc: DialogContext, instance: DialogInstance) -> DialogConsultation | None:
        """Declare interest in the current turn; None means no interest.

        The default claim continues this dialog on its own frame: frames
        interposed above it are cancelled first.
        """

        if not await self.on_dialog_event(dc, DialogEvent("consultDialog"), instance):
            return None

        async def process(owner_dc: DialogContext) -> DialogTurnResult:
            await owner_dc.cancel_dialogs_above(instance)
            return await self.continue_dialog(owner_dc)

        return DialogConsultation(DialogConsultationDesire.SHOULD_PROCESS, process)

    async def on_dialog_event(self, dc: DialogContext, event: DialogEvent, instance: DialogInstance) -> bool:
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"
