"""
avpauthz - CLI Utilities
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from avpauthz.authz.base import EntityRef


console = Console()
err_console = Console(stderr=True)


def _status(marker: str, message: str, target: Console = console) -> None:
    target.print(f"{marker} {message}")


def success(message: str):
    _status("[green]✓[/green]", message)


def error(message: str):
    """Errors go to stderr so stdout stays parseable."""
    _status("[red]✗[/red]", message, err_console)


def warning(message: str):
    _status("[yellow]⚠[/yellow]", message)


def info(message: str):
    _status("[blue]ℹ[/blue]", message)


def print_json(data: Any, title: Optional[str] = None):
    """Pretty print ``data`` as JSON, optionally inside a titled panel."""
    renderable = Syntax(json.dumps(data, indent=2), "json", theme="monokai")
    if title:
        renderable = Panel(renderable, title=title, border_style="blue")
    console.print(renderable)


def print_key_value(data: Dict[str, Any], title: Optional[str] = None):
    """Two-column table of ``key: value`` rows."""
    table = Table(title=title, show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()
    for key, value in data.items():
        table.add_row(f"{key}:", str(value))
    console.print(table)


class EntityRefParamType(click.ParamType):
    """Click parameter accepting ``Type::id``."""

    name = "entity_ref"

    def convert(self, value, param, ctx):
        if isinstance(value, EntityRef):
            return value
        try:
            return EntityRef.parse(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


ENTITY_REF = EntityRefParamType()


def load_json_option(value: Optional[str], what: str) -> Any:
    """
    Parse a JSON option value, or the contents of a file given as ``@path``.

    Raises:
        click.BadParameter: If the value is not valid JSON
    """
    if value is None:
        return None
    try:
        if value.startswith("@"):
            return json.loads(Path(value[1:]).read_text())
        return json.loads(value)
    except (OSError, json.JSONDecodeError) as e:
        raise click.BadParameter(f"Invalid {what}: {e}") from e
