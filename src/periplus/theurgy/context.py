"""
Shared CLI state: the lazily built client and error reporting.
"""

from __future__ import annotations

import functools
import json
import sys
from pathlib import Path
from typing import Any, Callable, Optional

import click

from ..client import EVMClient
from ..config import EVMConfig
from ..errors import PeriplusError


class CliState:
    """Per-invocation state carried on the click context."""

    def __init__(
        self,
        network: Optional[str] = None,
        env_file: Optional[Path] = None,
        client: Optional[EVMClient] = None,
    ) -> None:
        self.network = network
        self.env_file = env_file
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> EVMClient:
        if self._client is None:
            self._client = EVMClient(EVMConfig.from_env(self.env_file))
        return self._client

    def close(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()


pass_state = click.make_pass_decorator(CliState, ensure=True)


def fail(exc: PeriplusError) -> None:
    click.secho(f"ERROR: {exc}", fg="red", err=True)
    sys.exit(exc.exit_code)


def reports_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Turn ``PeriplusError`` into a red message and the error's exit code."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except PeriplusError as exc:
            fail(exc)

    return wrapper


def echo_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2))


def parse_json_option(raw: str, name: str, expected: type) -> Any:
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"invalid JSON: {exc}", param_hint=name) from None
    if not isinstance(value, expected):
        raise click.BadParameter(f"must be a JSON {expected.__name__}", param_hint=name)
    return value
