"""Builtin hook implementations."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from colloquy.activity import ActivityTypes, normalize_activity, text_of
from colloquy.config import Settings, get_settings
from colloquy.hookspecs import hookimpl
from colloquy.storage import FileStorage, Storage
from colloquy.types import Activity


class BuiltinPlugin:
    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    @hookimpl
    def provide_storage(self) -> Storage | None:
        if self._settings.storage == "file":
            return FileStorage(self._settings.home)
        return None

    @hookimpl
    def normalize_inbound(self, message: Activity) -> Activity:
        activity = normalize_activity(message)
        if "text" not in activity and "content" in activity:
            activity["text"] = activity.pop("content")
        if activity["type"] == ActivityTypes.MESSAGE:
            activity["text"] = str(activity.get("text", "")).strip()
        return activity

    @hookimpl
    def register_cli_commands(self, app: typer.Typer) -> None:
        @app.command("run")
        def run(
            message: str = typer.Argument("", help="Inbound message text"),
            home: Path | None = typer.Option(None, "--home", help="State directory"),  # noqa: B008
            chat_id: str = typer.Option("local", "--chat-id", help="Chat id"),
            sender_id: str = typer.Option("human", "--sender-id", help="Sender id"),
            activity_type: str = typer.Option(ActivityTypes.MESSAGE, "--type", help="Activity type"),
        ) -> None:
            """Run one inbound activity through the sample bot, keeping state on disk."""

            overrides: dict[str, Any] = {"storage": "file"}
            if home is not None:
                overrides["home"] = home
            framework = _load_framework(get_settings(**overrides))
            inbound = {
                "type": activity_type,
                "channel": "cli",
                "chat_id": chat_id,
                "sender_id": sender_id,
                "text": message,
            }
            result = asyncio.run(framework.process_turn(inbound))
            for outbound in result.outbounds:
                typer.echo(text_of(outbound))
            typer.echo(f"[{result.status}]")

        @app.command("chat")
        def chat() -> None:
            """Talk to the sample bot interactively. Ctrl-D to quit."""

            asyncio.run(_chat_loop(_load_framework(get_settings())))

        @app.command("hooks")
        def list_hooks() -> None:
            """Show hook implementation mapping."""

            framework = _load_framework(get_settings())
            report = framework.hook_report()
            if not report:
                typer.echo("(no hook implementations)")
                return
            for hook_name, plugins in report.items():
                typer.echo(f"{hook_name}: {', '.join(plugins)}")


async def _chat_loop(framework: Any) -> None:
    console = Console()
    while True:
        try:
            line = await asyncio.to_thread(console.input, "[bold cyan]you[/] > ")
        except (EOFError, KeyboardInterrupt):
            console.print()
            return
        result = await framework.process_turn({"channel": "cli", "chat_id": "chat", "sender_id": "human", "text": line})
        for outbound in result.outbounds:
            console.print(f"[bold green]bot[/] > {text_of(outbound)}")
        if result.status == "complete":
            console.print(f"[dim]dialog complete: {result.result}[/]")


def _load_framework(settings: Settings) -> Any:
    from colloquy.builtin.sample import build_sample_bot
    from colloquy.framework import DialogFramework

    framework = DialogFramework(build_sample_bot(), settings=settings)
    framework.load_hooks()
    return framework
