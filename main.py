#!/usr/bin/env python3
"""
CoWIN Vaccination Slot Bot - Main Entry Point

Usage:
    python main.py --config config/config.yaml run [--start-time HH:MM:SS|--now]
    python main.py --config config/config.yaml check
    python main.py --config config/config.yaml info
"""
import asyncio
import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from vaxslot.common.config import load_config, ConfigError
from vaxslot.common.prompts import HumanPrompt
from vaxslot.common.scheduler import LaunchGate

console = Console()
logger = logging.getLogger("vaxslot")


def setup_logging(level: str = "INFO", log_file: str = None):
    """Configure logging"""
    handlers = [RichHandler(console=console, rich_tracebacks=True)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(message)s",
        handlers=handlers
    )


@click.group()
@click.option("--config", "-c", default=None, help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx, config, verbose):
    """
    CoWIN Vaccination Slot Bot

    Books a vaccination slot as soon as it is released.
    """
    ctx.ensure_object(dict)

    try:
        cfg = load_config(config)
        ctx.obj["config"] = cfg
        setup_logging(
            level="DEBUG" if verbose else cfg.logging.level,
            log_file=cfg.logging.file
        )
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config}[/red]")
        console.print("Create a config file from config/config.example.yaml")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Error loading config: {e}[/red]")
        sys.exit(1)


@cli.command()
@click.option("--start-time", "-s", default=None, help="Slot release time, HH:MM:SS")
@click.option("--now", is_flag=True, help="Skip the launch gate and search immediately")
@click.pass_context
def run(ctx, start_time, now):
    """Wait for the release, then search and book"""
    from vaxslot.api import CoWinAPIClient, CoWinAuth, AuthenticationError
    from vaxslot.booking import BookingFlow, RetryDeclined

    cfg = ctx.obj["config"]
    prompt = HumanPrompt(console)
    gate = LaunchGate(cfg.schedule.timezone, cfg.schedule.otp_buffer_seconds)

    async def main():
        mobile = cfg.credentials.mobile or await prompt.ask("Enter Mobile Number")

        target = None
        if not now:
            text = start_time or cfg.schedule.start_time
            if not text:
                text = await prompt.ask("Enter start time in HH:mm:ss 24hour format")
            target = gate.parse_start_time(text)
            console.print(Panel(
                f"⏰ Scheduled Booking\n\n"
                f"Slots release: {target.strftime('%Y-%m-%d %H:%M:%S %Z')}\n"
                f"Countdown: {gate.format_countdown(target)}\n\n"
                f"Press Ctrl+C to cancel",
                style="blue"
            ))

        async with CoWinAuth(cfg.api, prompt) as auth, CoWinAPIClient(cfg.api) as client:
            flow = BookingFlow.from_config(cfg, auth, client, prompt)
            return await flow.run(mobile, target)

    try:
        confirmation = asyncio.run(main())
    except RetryDeclined:
        console.print("Exiting...")
        sys.exit(0)
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled[/yellow]")
        sys.exit(0)
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    except AuthenticationError as e:
        console.print(f"[red]Login failed: {e}[/red]")
        sys.exit(1)
    except Exception:
        logger.exception("Run failed")
        sys.exit(1)

    console.print(Panel(
        f"[bold green]🎉 Successfully booked![/bold green]\n\n"
        f"Appointment Confirmation Number: {confirmation}",
        style="green"
    ))


@cli.command()
@click.pass_context
def check(ctx):
    """Log in and list sessions that match the search criteria right now"""
    from vaxslot.api import APIError, CoWinAPIClient, CoWinAuth, AuthenticationError
    from vaxslot.booking import AvailabilityPoller

    cfg = ctx.obj["config"]
    prompt = HumanPrompt(console)
    criteria = cfg.search.to_criteria()

    async def main():
        mobile = cfg.credentials.mobile or await prompt.ask("Enter Mobile Number")
        async with CoWinAuth(cfg.api, prompt) as auth, CoWinAPIClient(cfg.api) as client:
            credential = await auth.authenticate(mobile)
            poller = AvailabilityPoller(client, timezone=cfg.schedule.timezone)
            return await poller.check_once(criteria, credential)

    console.print(Panel("🔍 Checking Availability", style="blue"))
    try:
        matches = asyncio.run(main())
    except AuthenticationError as e:
        console.print(f"[red]Login failed: {e}[/red]")
        sys.exit(1)
    except APIError as e:
        console.print(f"[red]Availability check failed: {e}[/red]")
        sys.exit(1)

    if not matches:
        console.print("[yellow]No matching sessions right now[/yellow]")
        return

    table = Table(title=f"Matching Sessions ({len(matches)} total)")
    table.add_column("Center")
    table.add_column("Pincode")
    table.add_column("Date")
    table.add_column("Vaccine")
    table.add_column("Age")
    table.add_column(f"Dose {criteria.dose} Capacity")

    for center, session in matches[:20]:
        table.add_row(
            center.name or str(center.id),
            str(center.pincode),
            session.date or "-",
            session.vaccine or "-",
            f"{session.min_age_limit}+",
            str(session.capacity_for(criteria.dose))
        )

    if len(matches) > 20:
        table.add_row("...", f"{len(matches) - 20} more", "", "", "", "")

    console.print(table)


@cli.command()
@click.pass_context
def info(ctx):
    """Show current configuration"""
    cfg = ctx.obj["config"]
    search = cfg.search

    console.print(Panel("📋 Current Configuration", style="blue"))

    table = Table(show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("Mobile", cfg.credentials.mobile or "(prompted)")
    table.add_row("Pincodes", ", ".join(str(p) for p in search.pincodes) if search.pincodes else "Any")
    table.add_row("District", str(search.district_id) if search.district_id else "395 (default)")
    table.add_row("Fee", search.fee.value)
    table.add_row("Vaccine", search.vaccine or "Any")
    table.add_row("Age Tier", search.age_tier.value)
    table.add_row("Dose", str(search.dose))
    table.add_row("Start Time", cfg.schedule.start_time or "(prompted)")
    table.add_row("Timezone", cfg.schedule.timezone)
    table.add_row("Search Window", f"{cfg.timing.search_window_seconds:g}s")
    table.add_row("Booking Window", f"{cfg.timing.booking_window_seconds:g}s")

    console.print(table)


if __name__ == "__main__":
    cli()
