"""
``fizzy-pop`` command line entry point.
"""

from __future__ import annotations

import logging
import signal
from pathlib import Path
from typing import Optional

import typer

from .agent import Agent
from .breadcrumbs import BreadcrumbTrail
from .config import ConfigError, Settings, load_settings
from .delivery import DeliveryQueue, Dispatcher
from .fizzy import FizzyClient
from .logs import configure_logging
from .scheduler import Scheduler
from .webhook import WebhookClient

logger = logging.getLogger(__name__)

app = typer.Typer(
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def build_scheduler(settings: Settings) -> Scheduler:
    trail = BreadcrumbTrail()
    queue = DeliveryQueue()
    agents = [
        Agent(
            a.name,
            FizzyClient(settings.url, a.token, verbose=settings.verbose),
            dry_run=settings.dry_run,
        )
        for a in settings.agents
    ]
    webhook = WebhookClient(
        settings.webhook_url or "", settings.webhook_token, verbose=settings.verbose
    )
    dispatcher = Dispatcher(queue, webhook, trail, dry_run=settings.dry_run)
    return Scheduler(
        agents,
        queue,
        dispatcher,
        trail,
        interval_polling=settings.interval_polling,
        interval_webhook=settings.interval_webhook,
        interval_agent_poll=settings.interval_agent_poll,
    )


@app.command()
def main(
    url: Optional[str] = typer.Option(
        None, "--url", help="Fizzy base URL (e.g. https://app.fizzy.do)"
    ),
    token: Optional[str] = typer.Option(
        None, "--token", help="Fizzy personal access token (single agent mode)"
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", help="YAML config file for multi-agent mode"
    ),
    webhook_url: Optional[str] = typer.Option(
        None, "--webhook-url", help="OpenClaw webhook base URL"
    ),
    webhook_token: Optional[str] = typer.Option(
        None, "--webhook-token", help="OpenClaw webhook token"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Log webhook requests and read marks instead of sending them"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", help="Log full request/response headers and body"
    ),
) -> None:
    """Poll Fizzy notifications and forward them to OpenClaw."""
    configure_logging(verbose)
    try:
        settings = load_settings(
            url=url,
            token=token,
            config_path=config,
            webhook_url=webhook_url,
            webhook_token=webhook_token,
            dry_run=dry_run,
            verbose=verbose,
        )
        scheduler = build_scheduler(settings)
        scheduler.start()
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    signal.signal(signal.SIGTERM, lambda *_: scheduler.stop())
    typer.echo(
        f"Polling {len(scheduler.agents)} agent(s) every {settings.interval_polling}s... "
        "(Ctrl+C to stop)"
    )
    scheduler.run_forever()
    typer.echo("Shutting down...")
