#!/usr/bin/env python3
"""
Tale Vesting CLI - deployment and schedule management

Commands operate on the deployment state file of the selected network:
- deploy-token / deploy-factory: deploy the PTL token and the schedule factory
- transfer: move tokens, e.g. to fund a schedule
- create-schedule / schedules / show: manage and inspect schedules
- release: release vested tokens to the beneficiary
- serve: run the HTTP API over the same state file
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict, Optional

import click
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from talevest.core.config import ConfigurationError, load_config
from talevest.core.constants import INITIAL_SUPPLY_TOKENS, ONE_TOKEN
from talevest.core.contracts.exceptions import ContractError
from talevest.core.deployment import Deployment
from talevest.core.logging_config import setup_logging

logger = logging.getLogger(__name__)

console = Console()


def _emit_payload(ctx: click.Context, payload: Dict[str, Any], title: str) -> None:
    """Emit a payload honoring the --json-output flag."""
    if ctx.obj.get("json_output"):
        click.echo(json.dumps(payload, indent=2))
        return

    table = Table(show_header=False, box=box.ROUNDED, title=title)
    for key, value in payload.items():
        table.add_row(f"[bold cyan]{key.replace('_', ' ').title()}[/]", str(value))
    console.print(Panel(table, border_style="cyan"))


def _deployment(ctx: click.Context) -> Deployment:
    return ctx.obj["deployment"]


def _resolve_deployer(ctx: click.Context, deployer: Optional[str]) -> str:
    resolved = deployer or ctx.obj["config"].deployer_address
    if not resolved:
        raise click.UsageError("No deployer address: pass --deployer or set TALE_DEPLOYER_ADDRESS")
    return resolved


def _run(ctx: click.Context, action, *args, **kwargs):
    """Run a contract operation in a host transaction; it persists or rolls back."""
    deployment = _deployment(ctx)
    try:
        with deployment.transaction():
            return action(*args, **kwargs)
    except (ContractError, OSError) as exc:
        logger.warning("CLI operation failed: %s", exc, extra={"event": "cli.failed"})
        raise click.ClickException(f"{type(exc).__name__}: {exc}") from exc


@click.group()
@click.option(
    "--network",
    type=click.Choice(["testnet", "mainnet"]),
    default=None,
    help="Network to operate on (defaults to TALE_NETWORK).",
)
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Deployment state file (defaults to TALE_STATE_FILE or the network default).",
)
@click.option("--json-output", is_flag=True, help="Output raw JSON")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Log level (defaults to TALE_LOG_LEVEL).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    network: Optional[str],
    state_file: Optional[str],
    json_output: bool,
    log_level: Optional[str],
):
    """
    Tale Vesting CLI

    Deploy the PrompTale token and vesting factory, and manage
    per-beneficiary vesting schedules.
    """
    try:
        config = load_config(network=network)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc

    setup_logging(
        name="talevest",
        log_file=config.log_file,
        level=log_level or config.log_level,
        network=config.network.value,
    )

    path = state_file or config.state_file
    try:
        deployment = Deployment.load(path, network=config.network.value)
    except (ContractError, ValueError, OSError) as exc:
        raise click.ClickException(f"Could not load deployment state {path}: {exc}") from exc

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["deployment"] = deployment
    ctx.obj["json_output"] = json_output


@cli.command("deploy-token")
@click.option("--deployer", help="Deployer address (defaults to TALE_DEPLOYER_ADDRESS)")
@click.option(
    "--initial-supply",
    type=click.IntRange(min=0),
    default=INITIAL_SUPPLY_TOKENS,
    show_default=True,
    help="Initial supply in whole tokens, minted to the deployer",
)
@click.pass_context
def deploy_token(ctx: click.Context, deployer: Optional[str], initial_supply: int):
    """Deploy the PrompTale token."""
    deployer = _resolve_deployer(ctx, deployer)
    deployment = _deployment(ctx)
    token = _run(ctx, deployment.deploy_token, deployer, initial_supply * ONE_TOKEN)
    _emit_payload(
        ctx,
        {"deployer": token.owner, "address": token.address, "total_supply": token.total_supply},
        "Token deployed",
    )


@cli.command("deploy-factory")
@click.option("--deployer", help="Deployer address (defaults to TALE_DEPLOYER_ADDRESS)")
@click.option("--token", "token_address", help="Token address (defaults to TALE_TOKEN_ADDRESS)")
@click.pass_context
def deploy_factory(ctx: click.Context, deployer: Optional[str], token_address: Optional[str]):
    """Deploy the vesting schedule factory for the deployed token."""
    deployer = _resolve_deployer(ctx, deployer)
    deployment = _deployment(ctx)
    token_address = token_address or ctx.obj["config"].token_address or None
    factory = _run(ctx, deployment.deploy_factory, deployer, token_address)
    _emit_payload(
        ctx,
        {"deployer": factory.owner, "address": factory.address, "token": factory.token.address},
        "Factory deployed",
    )


@cli.command("transfer")
@click.option("--sender", required=True, help="Sending address")
@click.option("--recipient", required=True, help="Receiving address (e.g. a schedule)")
@click.option("--amount", required=True, type=click.IntRange(min=0), help="Amount in base units")
@click.pass_context
def transfer(ctx: click.Context, sender: str, recipient: str, amount: int):
    """Transfer tokens between addresses."""
    deployment = _deployment(ctx)
    try:
        token = deployment.require_token()
    except ContractError as exc:
        raise click.ClickException(str(exc)) from exc
    _run(ctx, token.transfer, sender, recipient, amount)
    _emit_payload(
        ctx,
        {
            "from": sender.lower(),
            "to": recipient.lower(),
            "amount": amount,
            "sender_balance": token.balance_of(sender),
        },
        "Transfer complete",
    )


@cli.command("create-schedule")
@click.option("--caller", required=True, help="Factory owner; becomes the schedule admin")
@click.option("--beneficiary", required=True, help="Beneficiary address")
@click.option("--start-time", required=True, type=int, help="Unix timestamp accrual starts at")
@click.option("--interval-length", required=True, type=int, help="Seconds per interval")
@click.option("--intervals", "total_intervals", required=True, type=int, help="Number of intervals")
@click.option("--amount", "total_amount", required=True, type=int, help="Total amount in base units")
@click.pass_context
def create_schedule(
    ctx: click.Context,
    caller: str,
    beneficiary: str,
    start_time: int,
    interval_length: int,
    total_intervals: int,
    total_amount: int,
):
    """Create a vesting schedule."""
    deployment = _deployment(ctx)
    try:
        factory = deployment.require_factory()
    except ContractError as exc:
        raise click.ClickException(str(exc)) from exc
    address = _run(
        ctx,
        factory.create_schedule,
        caller,
        beneficiary,
        start_time,
        interval_length,
        total_intervals,
        total_amount,
    )
    _emit_payload(
        ctx,
        {"address": address, **factory.get_schedule_summary_for(address).to_dict()},
        "Schedule created",
    )


@cli.command("schedules")
@click.option("--beneficiary", default=None, help="Only schedules created for this beneficiary")
@click.pass_context
def list_schedules(ctx: click.Context, beneficiary: Optional[str]):
    """List schedule addresses in creation order."""
    try:
        factory = _deployment(ctx).require_factory()
    except ContractError as exc:
        raise click.ClickException(str(exc)) from exc
    if beneficiary:
        schedules = factory.get_schedules_for(beneficiary)
    else:
        schedules = factory.get_all_schedules()

    if ctx.obj.get("json_output"):
        click.echo(json.dumps({"schedules": schedules}, indent=2))
        return

    table = Table(title="Vesting Schedules", box=box.ROUNDED)
    table.add_column("#", justify="right")
    table.add_column("Address", style="cyan")
    table.add_column("Beneficiary")
    table.add_column("Released", justify="right")
    table.add_column("Total", justify="right")
    for index, address in enumerate(schedules, start=1):
        summary = factory.get_schedule_summary_for(address)
        table.add_row(
            str(index),
            address,
            summary.beneficiary,
            str(summary.released_amount),
            str(summary.total_amount),
        )
    console.print(table)


@cli.command("show")
@click.argument("address")
@click.pass_context
def show(ctx: click.Context, address: str):
    """Show one schedule."""
    try:
        schedule = _deployment(ctx).require_factory().get_schedule(address)
    except ContractError as exc:
        raise click.ClickException(str(exc)) from exc
    payload = {
        "address": schedule.address,
        "admin": schedule.admin,
        "beneficiary_consent": schedule.beneficiary_consent,
        "held_balance": schedule.held_balance(),
        **schedule.get_vesting_schedule().to_dict(),
    }
    _emit_payload(ctx, payload, "Vesting Schedule")


@cli.command("release")
@click.argument("address")
@click.option("--caller", required=True, help="Beneficiary address")
@click.pass_context
def release(ctx: click.Context, address: str, caller: str):
    """Release vested tokens to the beneficiary."""
    try:
        schedule = _deployment(ctx).require_factory().get_schedule(address)
    except ContractError as exc:
        raise click.ClickException(str(exc)) from exc
    amount = _run(ctx, schedule.release, caller)
    _emit_payload(
        ctx,
        {
            "address": schedule.address,
            "released": amount,
            "released_amount": schedule.released_amount,
            "released_ticks": schedule.released_ticks,
        },
        "Tokens released",
    )


@cli.command("serve")
@click.option("--host", default=None, help="Bind host (defaults to TALE_API_HOST)")
@click.option("--port", default=None, type=int, help="Bind port (defaults to TALE_API_PORT)")
@click.pass_context
def serve(ctx: click.Context, host: Optional[str], port: Optional[int]):
    """Serve the HTTP API over the deployment state."""
    from talevest.core.api_blueprints import create_app

    config = ctx.obj["config"]
    app = create_app(_deployment(ctx))
    bind_host = host or config.api_host
    bind_port = port or config.api_port
    logger.info(
        "Starting API server",
        extra={"event": "cli.serve", "host": bind_host, "port": bind_port},
    )
    app.run(host=bind_host, port=bind_port, threaded=True)


def main() -> int:
    """Console script entry point."""
    return cli(obj={})


if __name__ == "__main__":
    sys.exit(main() or 0)
