"""Registry of dialogs addressable by id."""

from __future__ import annotations

from collections.abc import Iterator

from loguru import logger

from colloquy.dialogs.dialog import Dialog
from colloquy.errors import DialogNotFoundError, DuplicateDialogError


class DialogSet:
    """Dialogs of one level of an orchestration tree, keyed by id."""

    def __init__(self, dialogs: list[Dialog] | None = None) -> None:
        self._dialogs: dict[str, Dialog] = {}
        self._initial_dialog_id: str | None = None
        for dialog in dialogs or []:
            self.add(dialog)

    @property
    def initial_dialog_id(self) -> str | None:
        """Id of the first dialog registered."""

        return self._initial_dialog_id

    def add(self, dialog: Dialog) -> DialogSet:
        if dialog.id in self._dialogs:
            raise DuplicateDialogError(dialog.id)
        self._dialogs[dialog.id] = dialog
        if self._initial_dialog_id is None:
            self._initial_dialog_id = dialog.id
        logger.debug("dialogs.add id={} kind={}", dialog.id, type(dialog).__name__)
        return self

    def find(self, dialog_id: str) -> Dialog | None:
        return self._dialogs.get(dialog_id)

    def resolve(self, dialog_id: str) -> Dialog:
        dialog = self._dialogs.get(dialog_id)
        if dialog is None:
            raise DialogNotFoundError(dialog_id)
        return dialog

    def ids(self) -> list[str]:
        return list(self._dialogs)

    def __contains__(self, dialog_id: object) -> bool:
        return dialog_id in self._dialogs

    def __iter__(self) -> Iterator[Dialog]:
        return iter(list(self._dialogs.values()))

    def __len__(self) -> int:
        return len(self._dialogs)
