"""CLI entry point for agent-handoff-coordinator.

Invoked as::

    agent-handoff-coordinator [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m agent_handoff_coordinator.cli.main

Commands
--------
- version  — Show version information
- status   — Show coordinator counters and store connectivity
- send     — Send a message from one agent to another
- message  — Look up a message by id
- handoff  — Look up a handoff record by id

Lookups go through the shared store, so they only find records written by
other processes when a Redis URL is configured.
"""
from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any, Awaitable, Callable, TypeVar

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from agent_handoff_coordinator.config import CoordinatorConfig
from agent_handoff_coordinator.coordinator import AgentCoordinator

console = Console()

ResultT = TypeVar("ResultT")


# ---------------------------------------------------------------------------
# Coordinator factory
# ---------------------------------------------------------------------------


def _make_coordinator(config: CoordinatorConfig) -> AgentCoordinator:
    """Build the coordinator used by a single CLI invocation."""
    return AgentCoordinator.from_config(config)


def _run(
    ctx: click.Context,
    action: Callable[[AgentCoordinator], Awaitable[ResultT]],
) -> ResultT:
    """Run ``action`` against an initialised coordinator, then shut it down."""
    config: CoordinatorConfig = ctx.obj["config"]

    async def runner() -> ResultT:
        coordinator = _make_coordinator(config)
        async with coordinator:
            return await action(coordinator)

    return asyncio.run(runner())


def _record_table(title: str, record: dict[str, Any]) -> Table:
    table = Table(title=title, show_lines=True)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    for field_name, value in record.items():
        table.add_row(field_name, "" if value is None else str(value))
    return table


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="agent-handoff-coordinator")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file with coordinator settings.",
)
@click.option(
    "--redis-url",
    default=None,
    help="Redis URL for the shared store (overrides config and environment).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    config_path: str | None,
    redis_url: str | None,
) -> None:
    """Messaging and transactional handoffs between agents"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    try:
        config = (
            CoordinatorConfig.from_yaml(config_path)
            if config_path
            else CoordinatorConfig.from_env()
        )
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--config") from exc
    ctx.ensure_object(dict)
    ctx.obj["config"] = config.with_overrides(redis_url=redis_url)


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from agent_handoff_coordinator import __version__

    console.print(f"[bold]agent-handoff-coordinator[/bold] v{__version__}")


# ---------------------------------------------------------------------------
# status
# ---------------------------------------------------------------------------


@cli.command(name="status")
@click.option("--json-output", is_flag=True, help="Output raw JSON instead of a table.")
@click.pass_context
def status_command(ctx: click.Context, json_output: bool) -> None:
    """Connect to the configured store and show coordinator status."""

    async def action(coordinator: AgentCoordinator) -> Any:
        return coordinator.get_status()

    status = _run(ctx, action)
    if json_output:
        console.print_json(status.model_dump_json(by_alias=True))
        return
    console.print(_record_table("Coordinator status", status.to_dict()))


# ---------------------------------------------------------------------------
# send
# ---------------------------------------------------------------------------


@cli.command(name="send")
@click.argument("from_agent")
@click.argument("to_agent")
@click.argument("content")
@click.option(
    "--priority",
    default="normal",
    show_default=True,
    type=click.Choice(["low", "normal", "high"], case_sensitive=False),
    help="Informational message priority.",
)
@click.pass_context
def send_command(
    ctx: click.Context,
    from_agent: str,
    to_agent: str,
    content: str,
    priority: str,
) -> None:
    """Send CONTENT from FROM_AGENT to TO_AGENT and print the message id."""

    async def action(coordinator: AgentCoordinator) -> str:
        return await coordinator.send_message(from_agent, to_agent, content, priority.lower())

    message_id = _run(ctx, action)
    console.print(f"[green]Message sent:[/green] {message_id}")


# ---------------------------------------------------------------------------
# message
# ---------------------------------------------------------------------------


@cli.command(name="message")
@click.argument("message_id")
@click.option("--json-output", is_flag=True, help="Output raw JSON instead of a table.")
@click.pass_context
def message_command(ctx: click.Context, message_id: str, json_output: bool) -> None:
    """Look up the message with MESSAGE_ID."""

    async def action(coordinator: AgentCoordinator) -> Any:
        return await coordinator.get_message(message_id)

    message = _run(ctx, action)
    if message is None:
        console.print(f"[red]Message not found:[/red] {message_id}")
        sys.exit(1)
    if json_output:
        console.print_json(message.to_json())
        return
    record = message.model_dump(by_alias=True, mode="json")
    console.print(_record_table(f"Message {message.id[:8]}", record))


# ---------------------------------------------------------------------------
# handoff
# ---------------------------------------------------------------------------


@cli.command(name="handoff")
@click.argument("handoff_id")
@click.option("--json-output", is_flag=True, help="Output raw JSON instead of a table.")
@click.pass_context
def handoff_command(ctx: click.Context, handoff_id: str, json_output: bool) -> None:
    """Look up the handoff with HANDOFF_ID."""

    async def action(coordinator: AgentCoordinator) -> Any:
        return await coordinator.get_handoff(handoff_id)

    handoff = _run(ctx, action)
    if handoff is None:
        console.print(f"[red]Handoff not found:[/red] {handoff_id}")
        sys.exit(1)
    if json_output:
        console.print_json(handoff.to_json())
        return
    record = handoff.model_dump(by_alias=True, mode="json")
    record["deliverables"] = ", ".join(handoff.required_names)
    console.print(_record_table(f"Handoff {handoff.id[:8]}", record))


if __name__ == "__main__":
    cli()
