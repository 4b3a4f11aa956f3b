"""
Strategy Runtime CLI.

Terminal tooling for exercising interaction specs without a host player.

Commands:
- strategy-runtime resolve     - Resolve a spec through the fallback chain
- strategy-runtime strategies  - List discoverable strategies
- strategy-runtime preview     - Mount a spec, make selections, show the result
"""
from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.json import JSON
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from config import get_settings

from .config_resolver import ConfigResolver
from .controller import InteractionController
from .dom import Element, create_mount_point
from .errors import ConfigurationError
from .models import HostConfig
from .registry import default_registry

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="strategy-runtime",
    help="Strategy Runtime: resolve, list and preview interaction strategies",
    no_args_is_help=True,
)
console = Console()


# =============================================================================
# Helpers
# =============================================================================

def _parse_properties(pairs: list[str] | None) -> dict[str, str] | None:
    if not pairs:
        return None
    properties = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got {pair!r}", param_hint="--property")
        properties[key.strip()] = value
    return properties


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise typer.BadParameter(f"Cannot read {path}: {e}") from e


def _element_label(element: Element) -> str:
    label = f"[cyan]{element.tag}[/cyan]"
    if element.classes:
        label += "[dim]." + ".".join(element.classes) + "[/dim]"
    for name in ("data-choice-id", "type", "value"):
        if name in element.attributes:
            label += f" [yellow]{name}[/yellow]={element.attributes[name]}"
    if element.input_type in ("checkbox", "radio"):
        label += " [green]✓[/green]" if element.checked else " [dim]○[/dim]"
    if element.text and element.tag != "script":
        label += f"  {element.text}"
    return label


def element_tree(element: Element, tree: Tree | None = None) -> Tree:
    """Render an element subtree as a rich Tree."""
    node = tree.add(_element_label(element)) if tree else Tree(_element_label(element))
    for child in element.children:
        element_tree(child, node)
    return node


# =============================================================================
# Commands
# =============================================================================

@app.command()
def resolve(
    spec_file: Optional[Path] = typer.Option(
        None,
        "--spec", "-f",
        help="JSON spec used as the primary configuration",
    ),
    href: Optional[str] = typer.Option(
        None,
        "--href",
        help="Config URL placed on the mount point (data-config-href)",
    ),
    inline_file: Optional[Path] = typer.Option(
        None,
        "--inline",
        help="File whose text is embedded as inline JSON config",
    ),
    properties: Optional[list[str]] = typer.Option(
        None,
        "--property", "-p",
        help="Host property key=value (repeatable)",
    ),
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        help="Base URL for relative config hrefs",
    ),
) -> None:
    """Resolve an interaction spec and show which source produced it."""
    host_config = HostConfig(
        properties=_parse_properties(properties),
        primary_configuration=_read_json(spec_file) if spec_file else None,
    )
    mount_point = create_mount_point(
        config_href=href,
        inline_config=inline_file.read_text(encoding="utf-8") if inline_file else None,
    )

    async def _run():
        async with ConfigResolver(base_url=base_url) as resolver:
            return await resolver.resolve_with_source(host_config, mount_point)

    try:
        spec, source = asyncio.run(_run())
    except ConfigurationError as e:
        console.print(f"[bold red]✗ {e}[/bold red]")
        raise typer.Exit(1)

    console.print(
        Panel(
            JSON.from_data(spec.to_payload()),
            title=f"[bold cyan]{spec.strategy_name}[/bold cyan]  [dim]from {source.value}[/dim]",
            border_style="cyan",
            padding=(1, 2),
        )
    )


@app.command()
def strategies() -> None:
    """List strategies discoverable in the configured packages."""
    registry = default_registry()
    names = registry.available()
    if not names:
        console.print("[yellow]No strategies found[/yellow]")
        raise typer.Exit(1)

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Strategy")
    table.add_column("Module", style="dim")
    for name in names:
        table.add_row(name, registry.module_name(name))
    console.print(table)


@app.command()
def preview(
    spec_file: Path = typer.Argument(..., help="JSON spec to mount"),
    select: Optional[list[str]] = typer.Option(
        None,
        "--select", "-s",
        help="Choice id to click (repeatable, in order)",
    ),
    check: bool = typer.Option(
        False,
        "--check", "-c",
        help="Press 'Check Answer' after selecting",
    ),
    state: Optional[str] = typer.Option(
        None,
        "--state",
        help="Prior state as JSON",
    ),
) -> None:
    """Run a full controller lifecycle against an in-memory mount point."""
    host_config = HostConfig(
        primary_configuration=_read_json(spec_file),
        response_identifier="RESPONSE",
        oncheck=lambda correct: console.print(
            "[bold green]✓ Correct[/bold green]" if correct else "[bold red]✗ Incorrect[/bold red]"
        ),
    )
    prior_state = json.loads(state) if state else None
    mount_point = create_mount_point()

    async def _run() -> InteractionController:
        controller = InteractionController(mount_point, host_config, prior_state)
        await controller.initialize()
        return controller

    controller = asyncio.run(_run())
    if controller.error is not None:
        console.print(f"[bold red]✗ {controller.error}[/bold red]")
        raise typer.Exit(1)

    for choice_id in select or []:
        wrapper = mount_point.query_selector(f'[data-choice-id="{choice_id}"]')
        if wrapper is None:
            console.print(f"[yellow]No choice '{choice_id}'[/yellow]")
            continue
        wrapper.click()

    if check:
        button = mount_point.query_selector(".qti-check-button")
        if button is None:
            console.print("[yellow]Strategy has no check button[/yellow]")
        else:
            button.click()

    console.print(element_tree(mount_point))

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="dim")
    table.add_column("Value", style="bold")
    table.add_row("Strategy", controller.spec.strategy_name)
    table.add_row("Response", controller.get_response() or "")
    table.add_row("State", json.dumps(controller.get_state()))
    table.add_row("Valid", "yes" if controller.check_validity() else "no")
    table.add_row("Message", controller.get_custom_validity() or "-")
    console.print(table)

    controller.dispose()


# =============================================================================
# Entry Point
# =============================================================================

def main() -> None:
    """CLI entry point."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=get_settings().log_level,
        format="<level>{message}</level>",
    )

    app()


if __name__ == "__main__":
    main()
