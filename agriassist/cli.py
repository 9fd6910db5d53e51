"""Command line entry point: ``agriassist-realtime``."""

from __future__ import annotations

import time
from typing import Optional

import click

from agriassist.commands.login_command import LoginCommand
from agriassist.config import get_settings
from agriassist.core.errors import ApiRequestError
from agriassist.core.session_scope import ClientState
from agriassist.infra.logging_config import LoggingConfig
from agriassist.schemas.message import RawMessage
from agriassist.schemas.notification import NotificationRecord
from agriassist.schemas.push import StockUpdate


def _print_notification(record: NotificationRecord) -> None:
    click.echo(f"[{record.type.value}] {record.title}: {record.message}")


def _print_message(raw: RawMessage) -> None:
    sender = raw.sender.name or raw.sender.id
    click.echo(f"<{sender}> {raw.text}")


def _print_stock(update: StockUpdate) -> None:
    name = update.product_name or update.product_id
    click.echo(f"stock {name}: {update.new_stock}")


@click.group()
@click.option("--log-level", default=None, help="Overrides LOG_LEVEL.")
def cli(log_level: Optional[str]) -> None:
    LoggingConfig(level=log_level)


@cli.command("tail")
@click.option("--email", required=True)
@click.option("--password", required=True, prompt=True, hide_input=True)
@click.option(
    "--duration",
    type=float,
    default=None,
    help="Stop after this many seconds (default: run until interrupted).",
)
@click.option("--once", is_flag=True, help="Print history and exit.")
def tail(email: str, password: str, duration: Optional[float], once: bool) -> None:
    """Log in and print notifications and messages as they arrive."""
    settings = get_settings()
    login = LoginCommand(settings=settings)
    try:
        session = login.execute(email, password)
    except ApiRequestError as e:
        raise click.ClickException(str(e)) from e
    finally:
        login.close()

    with ClientState(settings=settings) as state:
        state.start(session)
        notifications = state.notifications
        conversations = state.conversations
        click.echo(
            f"{len(notifications)} notifications "
            f"({notifications.unread_count} unread), "
            f"{len(conversations)} conversations"
        )
        for thread in conversations.threads():
            click.echo(
                f"  {thread.display_name}: {thread.last_message or ''} "
                f"({thread.unread_count} unread)"
            )
        if once:
            return

        state.router.on_notification.append(_print_notification)
        state.router.on_message.append(_print_message)
        state.router.on_stock_changed.append(_print_stock)

        deadline = time.monotonic() + duration if duration is not None else None
        try:
            while deadline is None or time.monotonic() < deadline:
                state.drain(timeout=1.0)
        except KeyboardInterrupt:
            click.echo("Stopping")


if __name__ == "__main__":
    cli()
