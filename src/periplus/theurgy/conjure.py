"""
Theurgy Conjure - Run agent tools from the command line.

``tools`` lists the registered ``evm_*`` tools; ``tool`` executes one with a
JSON parameter object, exactly as an agent would.
"""

from __future__ import annotations

import click

from ..plugin import EVMPlugin
from .context import CliState, echo_json, parse_json_option, pass_state, reports_errors


@click.command()
def tools() -> None:
    """List available agent tools."""
    plugin = EVMPlugin()
    for definition in plugin.get_tools():
        click.echo(
            click.style(f"  {definition.name:<32}", fg="bright_white", bold=True)
            + click.style(definition.description, dim=True)
        )


@click.command()
@click.argument("name")
@click.option("--params", "params_json", default="{}", help="Tool parameters as JSON object")
@pass_state
@reports_errors
def tool(state: CliState, name: str, params_json: str) -> None:
    """Execute tool NAME."""
    params = parse_json_option(params_json, "--params", dict)
    if state.network and name != "evm_switch_network":
        state.client.switch_network(state.network)
    plugin = EVMPlugin(client=state.client)
    echo_json(plugin.execute(name, params))
