"""Shared Rich consoles and renderers for CLI output."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.theme import Theme

from map_forge.core.diagnostics import Diagnostic
from map_forge.mapping.enums import EnumMappingPlan
from map_forge.mapping.plan import MappingPlan

MAP_FORGE_THEME = Theme(
    {
        "info": "cyan",
        "success": "bold green",
        "warning": "bold yellow",
        "error": "bold red",
        "dim": "dim",
    }
)

console = Console(theme=MAP_FORGE_THEME)
err_console = Console(theme=MAP_FORGE_THEME, stderr=True)


def configure_logging(verbose: bool) -> None:
    """Route map_forge logging through Rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, markup=False)],
        force=True,
    )


def diagnostics_table(diagnostics: tuple[Diagnostic, ...]) -> Table:
    table = Table(title="Diagnostics", border_style="dim")
    table.add_column("Code", style="info", no_wrap=True)
    table.add_column("Severity", no_wrap=True)
    table.add_column("Location")
    table.add_column("Message")
    for diagnostic in diagnostics:
        style = "error" if diagnostic.is_error else "warning"
        table.add_row(
            diagnostic.code,
            f"[{style}]{diagnostic.severity.value}[/{style}]",
            str(diagnostic.location or ""),
            diagnostic.message,
        )
    return table


def plan_table(plan: MappingPlan | EnumMappingPlan) -> Table:
    """One row per slot (object plans) or per source member (enum plans)."""
    direction = " (reverse)" if plan.reverse else ""
    table = Table(title=f"{plan.function_name}{direction}", border_style="dim")

    if isinstance(plan, EnumMappingPlan):
        table.add_column("Source", style="info")
        table.add_column("Target")
        table.add_column("Match", style="dim")
        for match in plan.matches:
            table.add_row(match.source_member, match.target_member, "synonym" if match.via_synonym else "exact")
        for member in plan.unmapped:
            table.add_row(member, "[warning]unmapped[/warning]", "")
        return table

    table.add_column("Slot", style="info")
    table.add_column("Source")
    table.add_column("Conversion")
    table.add_column("Delegate", style="dim")
    for corr in plan.correspondences:
        table.add_row(
            corr.slot.name,
            corr.source_path,
            corr.conversion.kind.value,
            corr.conversion.function_name or "",
        )
    for slot in plan.unresolved:
        marker = "[warning]unresolved[/warning]" if slot.required else "[dim]unresolved[/dim]"
        table.add_row(slot.name, "", marker, "")
    return table
