# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Command-line interface for the Postal client.

Credentials come from ``--key``/``--url``, a ``[postal]`` section in the
file given with ``--config``, or the ``POSTAL_API_KEY``/``POSTAL_URL``
environment variables.

Usage:
    postal-client send --to you@example.com --subject Hi --plain-body "Hello"
    postal-client send-raw message.eml --mail-from me@example.com --rcpt-to you@example.com
    postal-client details 1234 --expand status --expand headers
    postal-client delivery 1234

The response envelope is printed as JSON. The exit code is 1 when the
server rejects the request or the call fails.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click
from pydantic import BaseModel, ValidationError
from rich.console import Console

from . import __version__
from .client import PostalClient
from .config_loader import load_credentials
from .exceptions import PostalError
from .models import (
    Attachment,
    Expansion,
    MessageDeliveryRequest,
    MessageDetailsRequest,
    RawMessageRequest,
    SendMessageRequest,
)

console = Console()
err_console = Console(stderr=True)


def run_async(coro):
    """Run an async coroutine synchronously."""
    return asyncio.run(coro)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[red]Error:[/red] {message}")


def print_json(data: Any) -> None:
    """Print data as formatted JSON."""
    console.print_json(json.dumps(data, indent=2, default=str))


def _get_client(ctx: click.Context) -> PostalClient:
    try:
        credentials = load_credentials(
            ctx.obj.get("config_path"), key=ctx.obj.get("key"), url=ctx.obj.get("url")
        )
    except PostalError as exc:
        print_error(str(exc))
        sys.exit(1)
    return PostalClient(credentials=credentials)


def _execute(ctx: click.Context, operation: str, build_request: Callable[[], BaseModel]) -> None:
    """Build the request, run one client operation and print the envelope."""
    client = _get_client(ctx)
    try:
        request = build_request()
    except ValidationError as exc:
        print_error(f"Invalid request: {exc}")
        sys.exit(1)

    try:
        result = run_async(getattr(client, operation)(request))
    except PostalError as exc:
        print_error(str(exc))
        sys.exit(1)

    print_json(result.model_dump(mode="json", exclude_none=True))
    if not result.success:
        sys.exit(1)


@click.group()
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="INI file with a [postal] section.",
)
@click.option("--key", default=None, help="Server API key (overrides config/env).")
@click.option("--url", default=None, help="Server host or URL (overrides config/env).")
@click.option("-v", "--verbose", is_flag=True, help="Log requests to stderr.")
@click.version_option(__version__, prog_name="postal-client")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, key: str | None, url: str | None, verbose: bool) -> None:
    """Send and inspect messages on a Postal mail server."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
    ctx.ensure_object(dict)
    ctx.obj.update(config_path=config_path, key=key, url=url)


@main.command("send")
@click.option("--to", multiple=True, help="Recipient (repeatable).")
@click.option("--cc", multiple=True, help="CC recipient (repeatable).")
@click.option("--bcc", multiple=True, help="BCC recipient (repeatable).")
@click.option("--from", "from_", default=None, help="From address.")
@click.option("--sender", default=None, help="Sender address.")
@click.option("--subject", default=None)
@click.option("--tag", default=None)
@click.option("--reply-to", default=None)
@click.option("--plain-body", default=None)
@click.option("--html-body", default=None)
@click.option("--bounce", is_flag=True, help="Mark the message as a bounce.")
@click.option(
    "--attach",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="File to attach (repeatable).",
)
@click.pass_context
def send_cmd(
    ctx: click.Context,
    to: tuple[str, ...],
    cc: tuple[str, ...],
    bcc: tuple[str, ...],
    from_: str | None,
    sender: str | None,
    subject: str | None,
    tag: str | None,
    reply_to: str | None,
    plain_body: str | None,
    html_body: str | None,
    bounce: bool,
    attach: tuple[Path, ...],
) -> None:
    """Send a structured message."""
    def build() -> SendMessageRequest:
        return SendMessageRequest(
            to=list(to) or None,
            cc=list(cc) or None,
            bcc=list(bcc) or None,
            from_=from_,
            sender=sender,
            subject=subject,
            tag=tag,
            reply_to=reply_to,
            plain_body=plain_body,
            html_body=html_body,
            bounce=True if bounce else None,
            attachments=[Attachment.from_bytes(p.name, p.read_bytes()) for p in attach] or None,
        )

    _execute(ctx, "send_message", build)


@main.command("send-raw")
@click.argument("message_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--mail-from", required=True, help="Envelope sender.")
@click.option("--rcpt-to", multiple=True, required=True, help="Envelope recipient (repeatable).")
@click.option("--bounce", is_flag=True, help="Mark the message as a bounce.")
@click.pass_context
def send_raw_cmd(
    ctx: click.Context,
    message_file: Path,
    mail_from: str,
    rcpt_to: tuple[str, ...],
    bounce: bool,
) -> None:
    """Send an RFC2822 message file (.eml) as-is."""
    def build() -> RawMessageRequest:
        return RawMessageRequest.from_message(
            message_file.read_bytes(),
            mail_from=mail_from,
            rcpt_to=list(rcpt_to),
            bounce=True if bounce else None,
        )

    _execute(ctx, "send_raw_message", build)


@main.command("details")
@click.argument("message_id", type=int)
@click.option(
    "--expand",
    multiple=True,
    type=click.Choice([e.value for e in Expansion]),
    help="Detail category to include (repeatable).",
)
@click.option("--all", "expand_all", is_flag=True, help="Include every detail category.")
@click.pass_context
def details_cmd(ctx: click.Context, message_id: int, expand: tuple[str, ...], expand_all: bool) -> None:
    """Show a message and the requested details."""
    def build() -> MessageDetailsRequest:
        expansions: list[Expansion] | bool = True if expand_all else [Expansion(e) for e in expand]
        return MessageDetailsRequest(id=message_id, expansions=expansions)

    _execute(ctx, "message_details", build)


@main.command("delivery")
@click.argument("message_id", type=int)
@click.pass_context
def delivery_cmd(ctx: click.Context, message_id: int) -> None:
    """List delivery attempts for a message."""
    _execute(ctx, "message_delivery", lambda: MessageDeliveryRequest(id=message_id))


if __name__ == "__main__":
    main()
