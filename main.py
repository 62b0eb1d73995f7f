from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

import click
import uvicorn
from rich.console import Console
from rich.table import Table

from api.app import create_app
from services.auto_reply import TickResult
from services.responder import VacationResponder, connect_gmail
from utils.config import AppConfig, load_config
from utils.logger import configure_logging


LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class AppContext:
    config: AppConfig
    responder: VacationResponder
    console: Console


def build_context(env_file: str) -> AppContext:
    config = load_config(env_file)
    configure_logging(config.log_dir, config.log_level)
    return AppContext(
        config=config,
        responder=VacationResponder(config),
        console=Console(),
    )


@click.group()
@click.option("--env-file", default="config.env", show_default=True, help="Path to the env file")
@click.pass_context
def cli(ctx: click.Context, env_file: str) -> None:
    """Gmail vacation auto-responder."""

    try:
        ctx.obj = build_context(env_file)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--env-file") from exc


@cli.command("serve")
@click.option("--host", default=None, help="Bind address (defaults to HTTP_HOST)")
@click.option("--port", type=int, default=None, help="Bind port (defaults to HTTP_PORT)")
@click.pass_obj
def serve(app: AppContext, host: Optional[str], port: Optional[int]) -> None:
    """Serve the HTTP trigger; GET / starts the responder."""

    bind_host = host or app.config.http_host
    bind_port = port or app.config.http_port
    app.console.print(f"Listening on http://{bind_host}:{bind_port}/ (GET / to start, POST /stop to stop)")
    uvicorn.run(create_app(app.responder), host=bind_host, port=bind_port, log_config=None)


@cli.command("run")
@click.pass_obj
def run_loop(app: AppContext) -> None:
    """Start polling in the foreground until interrupted."""

    app.responder.start()
    label = app.responder.label
    app.console.print(
        f"Auto-replying every {app.config.min_interval_seconds}-{app.config.max_interval_seconds}s, "
        f"tagging with '{label.name if label else app.config.label_name}'. Press Ctrl+C to stop."
    )
    try:
        while app.responder.is_running:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        app.responder.stop()
        app.console.print("Responder stopped.")


@cli.command("tick")
@click.pass_obj
def run_tick(app: AppContext) -> None:
    """Run a single poll-and-reply pass now."""

    result = app.responder.run_once()
    if not result.seen:
        app.console.print("[bold green]No unread inbox messages.[/bold green]")
        return
    app.console.print(_build_tick_table(result))


@cli.command("ensure-label")
@click.argument("name", required=False)
@click.pass_obj
def ensure_label(app: AppContext, name: Optional[str]) -> None:
    """Create or look up a label, by default the configured vacation label."""

    gmail = connect_gmail(app.config)
    label = gmail.resolve_label(name or app.config.label_name)
    app.console.print(f"Label {label.name} is ready (id: {label.id}).")


def _build_tick_table(result: TickResult) -> Table:
    table = Table(title=f"Tick summary ({result.seen} unread)")
    table.add_column("Message ID", overflow="fold")
    table.add_column("Outcome")
    for message_id in result.replied:
        table.add_row(message_id, "[green]replied[/green]")
    for message_id in result.skipped:
        table.add_row(message_id, "[dim]skipped[/dim]")
    return table


def main() -> None:
    cli(standalone_mode=True)


if __name__ == "__main__":
    main()
