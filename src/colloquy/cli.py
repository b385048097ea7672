"""colloquy CLI bootstrap."""

from __future__ import annotations

import typer

from colloquy.builtin.sample import build_sample_bot
from colloquy.framework import DialogFramework
from colloquy.logging_utils import configure_logging


def create_cli_app() -> typer.Typer:
    app = typer.Typer(name="colloquy", help="Turn-based dialog orchestration engine", add_completion=False)
    framework = DialogFramework(build_sample_bot())
    framework.load_hooks()
    framework.register_cli_commands(app)

    @app.callback()
    def _configure() -> None:
        configure_logging(profile=framework.settings.log_profile, level=framework.settings.log_level)

    if not app.registered_commands:

        @app.command("help")
        def _help() -> None:
            typer.echo("No CLI command plugins loaded.")

    return app


app = create_cli_app()

if __name__ == "__main__":
    app()
