"""Named state scopes exposed to dialogs."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

from colloquy.errors import NoActiveDialogError
from colloquy.types import State

MISSING: Any = object()


class StateMap:
    """Key/value view over one backing dict.

    The map never copies its backing dict, so writes land directly in the
    storage object that owns it (a frame's state, or a loaded user or
    conversation record).
    """

    def __init__(self, data: State | None = None) -> None:
        self._data: State = data if data is not None else {}

    @property
    def data(self) -> State:
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def has(self, key: str) -> bool:
        return key in self._data

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"StateMap({self._data!r})"


class DialogStateScopes:
    """The dialog, user and conversation scopes of one dialog context."""

    def __init__(
        self,
        active_state: Callable[[], State | None],
        *,
        user: StateMap,
        conversation: StateMap,
    ) -> None:
        self._active_state = active_state
        self.user = user
        self.conversation = conversation

    @property
    def dialog(self) -> StateMap:
        """Scope private to the frame on top of the stack."""

        state = self._active_state()
        if state is None:
            raise NoActiveDialogError("dialog scope requires an active dialog")
        return StateMap(state)
