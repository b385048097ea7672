"""Pluggy hook namespace and framework hook specifications."""

from __future__ import annotations

from typing import Any

import pluggy

from colloquy.storage import Storage
from colloquy.types import Activity

COLLOQUY_HOOK_NAMESPACE = "colloquy"
hookspec = pluggy.HookspecMarker(COLLOQUY_HOOK_NAMESPACE)
hookimpl = pluggy.HookimplMarker(COLLOQUY_HOOK_NAMESPACE)


class ColloquyHookSpecs:
    """Hook contract for the collaborators around the dialog engine."""

    @hookspec(firstresult=True)
    def provide_storage(self) -> Storage | None:
        """Provide the storage backing conversation and user records."""

    @hookspec(firstresult=True)
    def normalize_inbound(self, message: Activity) -> Activity | None:
        """Normalize or rewrite one inbound activity."""

    @hookspec(firstresult=True)
    def resolve_conversation(self, message: Activity) -> str | None:
        """Resolve the conversation id for one inbound activity."""

    @hookspec(firstresult=True)
    def resolve_user(self, message: Activity) -> str | None:
        """Resolve the user id for one inbound activity."""

    @hookspec
    def dispatch_outbound(self, message: Activity) -> bool | None:
        """Deliver one outbound activity to external channel(s)."""

    @hookspec
    def register_cli_commands(self, app: Any) -> None:
        """Register CLI commands onto the root Typer application."""

    @hookspec
    def on_error(self, stage: str, error: Exception, message: Activity | None) -> None:
        """Observe framework errors from any stage."""
