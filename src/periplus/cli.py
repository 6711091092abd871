"""
Periplus CLI

Command-line interface for the Periplus multi-network EVM client.

Networks, keys and RPC overrides come from the environment (optionally
seeded from ~/.periplus/.env).  ``--network`` selects the network for a
single invocation without touching configuration.

Commands:
  networks  - List configured networks
  wallets   - List wallet addresses
  balance   - Show a native balance
  block     - Show a block
  tx        - Show a transaction
  gas       - Show fee data
  ens       - Resolve an ENS name
  send      - Send native currency
  estimate  - Estimate gas for a transaction
  call      - Call a read-only contract function
  sign      - Sign a message
  verify    - Recover a message signer
  tools     - List agent tools
  tool      - Execute an agent tool
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .theurgy.context import CliState


# ============ Constants ============

VERSION = "0.3.0"


# ============ Banner ============


def _print_banner() -> None:
    border = click.style("  ◆ ═══════════════════════════════════════ ◆", fg="cyan")
    click.echo()
    click.echo(border)
    click.echo()
    click.echo(
        click.style("        P E R I P L U S", fg="bright_white", bold=True)
        + click.style(f"        v{VERSION}", dim=True)
    )
    click.secho("        ─── Multi-network EVM Client ───", fg="cyan")
    click.echo()
    click.echo(border)
    click.echo()


# ============ Main CLI Group ============


@click.group(invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="periplus")
@click.option("--network", "-n", default=None, help="Network for this invocation")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Load settings from this .env file",
)
@click.pass_context
def cli(
    ctx: click.Context,
    network: Optional[str],
    verbose: bool,
    env_file: Optional[Path],
) -> None:
    """Periplus: multi-network EVM client and agent tools."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    state = ctx.ensure_object(CliState)
    if network is not None:
        state.network = network
    if env_file is not None:
        state.env_file = env_file
    ctx.call_on_close(state.close)

    if ctx.invoked_subcommand is None:
        _print_banner()
        click.echo(ctx.get_help())


# ============ Top-level Commands ============

from .theurgy.divine import balance, block, ens, gas, networks, tx
from .theurgy.invoke import call, estimate, send
from .theurgy.seal import sign, verify, wallets
from .theurgy.conjure import tool, tools

cli.add_command(networks)
cli.add_command(wallets)
cli.add_command(balance)
cli.add_command(block)
cli.add_command(tx)
cli.add_command(gas)
cli.add_command(ens)
cli.add_command(send)
cli.add_command(estimate)
cli.add_command(call)
cli.add_command(sign)
cli.add_command(verify)
cli.add_command(tools)
cli.add_command(tool)


# ============ Entry Points ============


def main() -> None:
    """Periplus CLI entry point."""
    # Ensure UTF-8 output on Windows (for Unicode box-drawing / symbols)
    if sys.platform == "win32":
        try:
            sys.stdout.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
            sys.stderr.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
        except (AttributeError, OSError):
            pass  # Fallback: old Python or non-tty
    cli()


if __name__ == "__main__":
    main()
