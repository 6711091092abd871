"""
Theurgy Invoke - Transfers, gas estimates and contract calls.

``send`` signs with a configured wallet and waits for one confirmation.
``call`` is read-only and never needs a wallet.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import click

from ..spec.models import TransactionRequest
from .context import CliState, echo_json, parse_json_option, pass_state, reports_errors


@click.command()
@click.option("--to", required=True, help="Recipient address")
@click.option("--value", required=True, help='Amount in native units (e.g. "0.1")')
@click.option("--from", "from_", default=None, help="Sender address (default: first wallet)")
@click.option("--data", default=None, help="Calldata in hex")
@click.option("--gas-limit", default=None, help="Gas limit")
@click.option("--gas-price", default=None, help="Legacy gas price in wei")
@click.option("--max-fee", default=None, help="EIP-1559 max fee per gas in wei")
@click.option("--max-priority-fee", default=None, help="EIP-1559 max priority fee per gas in wei")
@pass_state
@reports_errors
def send(
    state: CliState,
    to: str,
    value: str,
    from_: Optional[str],
    data: Optional[str],
    gas_limit: Optional[str],
    gas_price: Optional[str],
    max_fee: Optional[str],
    max_priority_fee: Optional[str],
) -> None:
    """Send native currency and wait for confirmation."""
    request = TransactionRequest(
        to=to,
        from_=from_,
        value=value,
        data=data,
        gas_limit=gas_limit,
        gas_price=gas_price,
        max_fee_per_gas=max_fee,
        max_priority_fee_per_gas=max_priority_fee,
    )
    network = state.network or state.client.current_network
    click.echo(f"  Network: {network}")
    click.echo(f"  To:      {to}")
    click.echo(f"  Value:   {value}")
    click.echo("")

    result = state.client.send_transaction(request, network=state.network)
    click.secho("SUCCESS: Transaction confirmed!", fg="green")
    click.echo(f"  TX:    {result.hash}")
    click.echo(f"  From:  {result.from_}")
    click.echo(f"  Block: {result.block_number}")


@click.command()
@click.option("--to", required=True, help="Recipient address")
@click.option("--value", default=None, help="Amount in native units")
@click.option("--from", "from_", default=None, help="Sender address")
@click.option("--data", default=None, help="Calldata in hex")
@pass_state
@reports_errors
def estimate(
    state: CliState,
    to: str,
    value: Optional[str],
    from_: Optional[str],
    data: Optional[str],
) -> None:
    """Estimate gas and cost of a transaction."""
    request = TransactionRequest(to=to, from_=from_, value=value, data=data)
    echo_json(state.client.estimate_gas(request, network=state.network).to_dict())


@click.command()
@click.option("--address", required=True, help="Contract address")
@click.option(
    "--abi",
    "abi_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to the contract ABI (JSON array)",
)
@click.option("--method", required=True, help="Function name to call")
@click.option("--args", "args_json", default="[]", help="Function args as JSON array")
@pass_state
@reports_errors
def call(
    state: CliState,
    address: str,
    abi_path: Path,
    method: str,
    args_json: str,
) -> None:
    """Call a read-only contract function."""
    args = parse_json_option(args_json, "--args", list)
    try:
        abi = json.loads(abi_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"invalid ABI JSON: {exc}", param_hint="--abi") from None
    if isinstance(abi, dict) and "abi" in abi:
        abi = abi["abi"]

    result = state.client.call_contract(address, abi, method, args, network=state.network)
    echo_json(result.to_dict())
    if result.error is not None:
        sys.exit(1)
