"""Webhook Platform CLI - sign and verify webhook payloads."""

import json
import sys
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from webhook_platform.common.clock import Clock, fixed_clock
from webhook_platform.common.errors import WebhookError
from webhook_platform.common.logging import setup_logging
from webhook_platform.common.settings import Settings
from webhook_platform.webhook import construct_event, generate_signature, verify_signature

console = Console()


def _read_payload(payload: str | None, payload_file: str | None) -> bytes:
    if payload is not None and payload_file is not None:
        raise click.UsageError("Use either --payload or --payload-file, not both")
    if payload_file is not None:
        path = Path(payload_file).expanduser()
        if not path.exists():
            console.print(f"[red]Payload file not found: {path}[/red]")
            sys.exit(1)
        # Signed verbatim, so keep the exact bytes.
        return path.read_bytes()
    if payload is not None:
        return payload.encode("utf-8")
    raise click.UsageError("One of --payload or --payload-file is required")


def _resolve_secret(ctx: click.Context, secret: str | None) -> str:
    settings: Settings = ctx.obj["settings"]
    secret = secret or settings.secret
    if not secret:
        console.print("[red]No secret given (use --secret or WEBHOOK_SECRET)[/red]")
        sys.exit(1)
    return secret


def _parse_headers(values: tuple[str, ...]) -> dict[str, list[str]]:
    headers: dict[str, list[str]] = {}
    for value in values:
        name, sep, header_value = value.partition(":")
        if not sep or not name.strip():
            raise click.BadParameter(f"Expected 'Name: value', got {value!r}", param_hint="--header")
        headers.setdefault(name.strip(), []).append(header_value.strip())
    return headers


def _clock(now: int | None) -> Clock | None:
    return fixed_clock(now) if now is not None else None


def _fail(exc: WebhookError) -> None:
    console.print(f"[red]✗ {exc.message} ({exc.code})[/red]")
    sys.exit(1)


payload_options = [
    click.option("--payload", "-p", help="Payload string"),
    click.option(
        "--payload-file",
        "-f",
        type=click.Path(dir_okay=False),
        help="Read payload bytes from a file",
    ),
    click.option("--secret", "-s", help="Webhook secret (default: WEBHOOK_SECRET)"),
]


def with_payload_options(f: Any) -> Any:
    for option in reversed(payload_options):
        f = option(f)
    return f


@click.group()
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--json-logs", is_flag=True, help="Emit JSON log lines")
@click.pass_context
def cli(ctx: click.Context, log_level: str | None, json_logs: bool) -> None:
    """Webhook Platform CLI - Sign and verify webhook payloads."""
    settings = Settings()
    setup_logging(
        level=log_level or settings.log_level,
        json_logs=json_logs or settings.log_json,
    )
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command("sign")
@with_payload_options
@click.option("--timestamp", "-t", type=int, help="Timestamp in milliseconds (default: now)")
@click.pass_context
def sign_cmd(
    ctx: click.Context,
    payload: str | None,
    payload_file: str | None,
    secret: str | None,
    timestamp: int | None,
) -> None:
    """Generate a signature token for a payload."""
    body = _read_payload(payload, payload_file)
    token = generate_signature(body, _resolve_secret(ctx, secret), timestamp)
    click.echo(token)


@cli.command("verify")
@with_payload_options
@click.option("--signature", required=True, help="Signature token (t=...,v1=...)")
@click.option("--tolerance-ms", type=int, default=None, help="Allowed drift in milliseconds")
@click.option("--now", type=int, default=None, help="Override current time (ms)")
@click.pass_context
def verify_cmd(
    ctx: click.Context,
    payload: str | None,
    payload_file: str | None,
    secret: str | None,
    signature: str,
    tolerance_ms: int | None,
    now: int | None,
) -> None:
    """Verify a signature token against a payload."""
    settings: Settings = ctx.obj["settings"]
    body = _read_payload(payload, payload_file)
    tolerance = settings.tolerance_ms if tolerance_ms is None else tolerance_ms

    try:
        verify_signature(body, signature, _resolve_secret(ctx, secret), tolerance, clock=_clock(now))
    except WebhookError as exc:
        _fail(exc)

    console.print("[green]✓ Signature valid[/green]")


@cli.command("construct-event")
@with_payload_options
@click.option(
    "--header",
    "-H",
    "headers",
    multiple=True,
    help="Request header as 'Name: value' (repeatable)",
)
@click.option("--tolerance-ms", type=int, default=None, help="Allowed drift in milliseconds")
@click.option("--now", type=int, default=None, help="Override current time (ms)")
@click.option("--as-json", is_flag=True, help="Print the event as JSON")
@click.pass_context
def construct_event_cmd(
    ctx: click.Context,
    payload: str | None,
    payload_file: str | None,
    secret: str | None,
    headers: tuple[str, ...],
    tolerance_ms: int | None,
    now: int | None,
    as_json: bool,
) -> None:
    """Verify a webhook request and show its event envelope."""
    settings: Settings = ctx.obj["settings"]
    body = _read_payload(payload, payload_file)
    tolerance = settings.tolerance_ms if tolerance_ms is None else tolerance_ms

    try:
        event = construct_event(
            body,
            _parse_headers(headers),
            _resolve_secret(ctx, secret),
            tolerance,
            clock=_clock(now),
        )
    except WebhookError as exc:
        _fail(exc)

    if as_json:
        click.echo(json.dumps(event.to_dict()))
        return

    table = Table(title="Webhook Event")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Event ID", event.event_id or "-")
    table.add_row("Delivery ID", event.delivery_id or "-")
    table.add_row("Timestamp", str(event.timestamp))
    table.add_row("Type", event.type or "-")
    table.add_row("Data", json.dumps(event.data))
    console.print(table)


@cli.command("serve")
@click.option("--host", default=None, help="Bind host")
@click.option("--port", type=int, default=None, help="Bind port")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Run a receiver that verifies and logs inbound webhooks."""
    import uvicorn

    from webhook_platform.webhook.middleware import create_webhook_app

    settings: Settings = ctx.obj["settings"]
    try:
        app = create_webhook_app(settings)
    except WebhookError as exc:
        _fail(exc)

    uvicorn.run(app, host=host or settings.host, port=port or settings.port)


def main() -> None:
    """CLI entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
