"""
Theurgy Seal - Wallet listing and EIP-191 message signatures.
"""

from __future__ import annotations

from typing import Optional

import click

from .context import CliState, pass_state, reports_errors


@click.command()
@pass_state
@reports_errors
def wallets(state: CliState) -> None:
    """List configured wallet addresses."""
    addresses = state.client.get_wallet_addresses()
    if not addresses:
        click.echo("No wallets configured.")
        click.echo("Set EVM_PRIVATE_KEYS or EVM_MNEMONIC.")
        return
    for index, address in enumerate(addresses):
        click.echo(f"  [{index}] {address}")


@click.command()
@click.argument("message")
@click.option("--address", default=None, help="Signing address (default: first wallet)")
@pass_state
@reports_errors
def sign(state: CliState, message: str, address: Optional[str]) -> None:
    """Sign MESSAGE with a wallet."""
    click.echo(state.client.sign_message(message, address))


@click.command()
@click.argument("message")
@click.argument("signature")
@pass_state
@reports_errors
def verify(state: CliState, message: str, signature: str) -> None:
    """Recover the signer of MESSAGE from SIGNATURE."""
    click.echo(state.client.verify_message(message, signature))
