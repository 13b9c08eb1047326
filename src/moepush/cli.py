"""
CLI — operator tooling for moepush.

Commands:
    moepush render       — Render a rule against a sample body
    moepush push         — Push a body to one endpoint
    moepush push-group   — Push a body to every endpoint in a group
    moepush channels     — List supported channel types
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from moepush import __version__

console = Console()


def _read_body(body_file: str | None) -> Any:
    if not body_file:
        return {}
    text = sys.stdin.read() if body_file == "-" else Path(body_file).read_text()
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        console.print(f"[red]Error: body is not valid JSON: {exc}[/red]")
        sys.exit(1)


def _endpoints_file(endpoints: str | None) -> Path:
    from moepush.config import load_config

    path = endpoints or load_config().relay.endpoints_file
    if not path:
        console.print("[red]Error: Provide --endpoints or set relay.endpoints_file in config.[/red]")
        sys.exit(1)
    return Path(path)


def _service(endpoints: str | None):
    from moepush.config import load_config
    from moepush.relay import PushService
    from moepush.store import load_store

    store = load_store(_endpoints_file(endpoints))
    return PushService(store, config=load_config().relay)


def _headers(header: tuple[str, ...]) -> dict[str, str]:
    headers: dict[str, str] = {"user-agent": f"moepush-cli/{__version__}"}
    for item in header:
        name, _, value = item.partition(":")
        headers[name.strip().lower()] = value.strip()
    return headers


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def main(verbose: bool) -> None:
    """moepush — relay webhooks to chat and notification channels."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Rule preview
# ---------------------------------------------------------------------------


@main.command()
@click.argument("rule_file", type=click.Path(exists=True))
@click.option("--body", "body_file", help="JSON body file ('-' for stdin)")
def render(rule_file: str, body_file: str | None) -> None:
    """Render RULE_FILE against a sample body and print the message."""
    from moepush.errors import PushError
    from moepush.relay import build_push_context, render_message

    rule = Path(rule_file).read_text()
    context = build_push_context(_read_body(body_file), _headers(()))
    try:
        message = render_message(rule, context.template_vars())
    except PushError as exc:
        console.print(f"[red]{exc.kind.value}[/red] ({exc.stage.value}): {escape(exc.message)}")
        sys.exit(1)
    console.print_json(json.dumps(message, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Push
# ---------------------------------------------------------------------------


@main.command()
@click.argument("endpoint_id")
@click.option("--body", "body_file", help="JSON body file ('-' for stdin)")
@click.option("--endpoints", type=click.Path(exists=True), help="Endpoints YAML file")
@click.option("-H", "--header", multiple=True, help="Extra header, 'Name: value'")
@click.option("--deadline", type=float, default=None, help="Overall deadline in seconds")
def push(endpoint_id: str, body_file: str | None, endpoints: str | None,
         header: tuple[str, ...], deadline: float | None) -> None:
    """Push a JSON body to ENDPOINT_ID."""
    service = _service(endpoints)
    body = _read_body(body_file)

    async def _run():
        await service.connect()
        try:
            return await service.push(endpoint_id, body, _headers(header), deadline=deadline)
        finally:
            await service.disconnect()

    result = asyncio.run(_run())
    if result.success:
        console.print(f"[green]>[/green] Delivered to {endpoint_id} (HTTP {result.status_code})")
        return
    console.print(
        f"[red]x[/red] {result.error_kind.value} at {result.stage.value}: {escape(result.message)}"
    )
    sys.exit(1)


@main.command("push-group")
@click.argument("group_id")
@click.option("--body", "body_file", help="JSON body file ('-' for stdin)")
@click.option("--endpoints", type=click.Path(exists=True), help="Endpoints YAML file")
@click.option("-H", "--header", multiple=True, help="Extra header, 'Name: value'")
@click.option("--deadline", type=float, default=None, help="Per-endpoint deadline in seconds")
def push_group(group_id: str, body_file: str | None, endpoints: str | None,
               header: tuple[str, ...], deadline: float | None) -> None:
    """Push a JSON body to every endpoint in GROUP_ID."""
    service = _service(endpoints)
    body = _read_body(body_file)

    async def _run():
        await service.connect()
        try:
            return await service.push_group(group_id, body, _headers(header), deadline=deadline)
        finally:
            await service.disconnect()

    outcome = asyncio.run(_run())
    if outcome.error:
        console.print(f"[red]x[/red] {escape(outcome.error.message)}")
        sys.exit(1)

    table = Table(title=f"Group {group_id}")
    table.add_column("Endpoint")
    table.add_column("Result")
    table.add_column("Detail")
    for endpoint_id, result in outcome.results.items():
        status = "[green]delivered[/green]" if result.success else f"[red]{result.error_kind.value}[/red]"
        table.add_row(endpoint_id, status, escape(result.message))
    console.print(table)
    if not outcome.success:
        sys.exit(1)


# ---------------------------------------------------------------------------
# Channels
# ---------------------------------------------------------------------------


@main.command()
def channels() -> None:
    """List supported channel types and their required credentials."""
    from moepush.relay import default_registry

    registry = default_registry()
    table = Table(title="Channel types")
    table.add_column("Type", style="bold")
    table.add_column("Credentials")
    table.add_column("Message fields")
    for channel_type in registry.types():
        channel = registry.get(channel_type)
        table.add_row(
            channel_type,
            ", ".join(channel.required_credentials),
            ", ".join(channel.required_message_fields) or "-",
        )
    console.print(table)


if __name__ == "__main__":
    main()
