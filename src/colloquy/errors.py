"""Application-level exception types for colloquy."""

from __future__ import annotations


class ColloquyError(Exception):
    """Base exception for colloquy."""


class ConfigurationError(ColloquyError):
    """Base exception for configuration and startup validation errors."""


class DialogNotFoundError(ColloquyError):
    """Raised when a frame or a begin call names a dialog missing from its set."""

    def __init__(self, dialog_id: str) -> None:
        super().__init__(f"dialog '{dialog_id}' not found")
        self.dialog_id = dialog_id


class DuplicateDialogError(ColloquyError):
    """Raised when two dialogs are registered under the same id."""

    def __init__(self, dialog_id: str) -> None:
        super().__init__(f"dialog '{dialog_id}' already registered")
        self.dialog_id = dialog_id


class NoActiveDialogError(ColloquyError):
    """Raised when the dialog scope is read while the stack is empty."""
