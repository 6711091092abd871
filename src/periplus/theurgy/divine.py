"""
Theurgy Divine - Read-only chain queries.

Balances, blocks, transactions, fee data, ENS names and the configured
networks.  No wallet is required.
"""

from __future__ import annotations

from typing import Optional

import click

from .context import CliState, echo_json, pass_state, reports_errors


@click.command()
@pass_state
@reports_errors
def networks(state: CliState) -> None:
    """List configured networks."""
    client = state.client
    current = client.current_network
    for name in client.connections.names():
        descriptor = client.registry.get(name)
        marker = click.style("*", fg="green") if name == current else " "
        click.echo(
            f"{marker} {name:<10} chainId={descriptor.chain_id:<9} "
            f"{descriptor.native_currency_symbol:<5} {descriptor.rpc_url}"
        )


@click.command()
@click.argument("address")
@pass_state
@reports_errors
def balance(state: CliState, address: str) -> None:
    """Show the native balance of ADDRESS."""
    result = state.client.get_balance(address, network=state.network)
    descriptor = state.client.registry.get(state.network or state.client.current_network)
    symbol = descriptor.native_currency_symbol if descriptor else ""
    click.echo(f"  Address: {result.address}")
    click.echo(f"  Balance: {result.formatted_balance} {symbol}".rstrip())
    click.echo(f"  Wei:     {result.balance}")
    click.echo(f"  Nonce:   {result.nonce}")


@click.command()
@click.argument("number", required=False, type=int)
@pass_state
@reports_errors
def block(state: CliState, number: Optional[int]) -> None:
    """Show block NUMBER (latest if omitted)."""
    info = state.client.get_block(number, network=state.network)
    if info is None:
        click.secho(f"Block not found: {number}", fg="yellow")
        return
    echo_json(info.to_dict())


@click.command()
@click.argument("tx_hash", metavar="HASH")
@pass_state
@reports_errors
def tx(state: CliState, tx_hash: str) -> None:
    """Show transaction HASH with its receipt status."""
    result = state.client.get_transaction(tx_hash, network=state.network)
    if result is None:
        click.secho(f"Transaction not found: {tx_hash}", fg="yellow")
        return
    echo_json(result.to_dict())


@click.command()
@pass_state
@reports_errors
def gas(state: CliState) -> None:
    """Show current fee data."""
    fees = state.client.get_gas_prices(network=state.network)
    if fees.gas_price is not None:
        click.echo(f"  Gas price:         {fees.gas_price} wei")
    if fees.supports_eip1559:
        click.echo(f"  Max fee:           {fees.max_fee_per_gas} wei")
        click.echo(f"  Max priority fee:  {fees.max_priority_fee_per_gas} wei")


@click.command()
@click.argument("name")
@pass_state
@reports_errors
def ens(state: CliState, name: str) -> None:
    """Resolve ENS NAME."""
    info = state.client.resolve_ens(name, network=state.network)
    click.echo(f"  Name:     {info.name}")
    click.echo(f"  Address:  {info.address or '(unresolved)'}")
    if info.resolver:
        click.echo(f"  Resolver: {info.resolver}")
    if info.avatar:
        click.echo(f"  Avatar:   {info.avatar}")
