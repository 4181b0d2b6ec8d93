"""map-forge CLI - generate mapping modules from declared directives."""

from __future__ import annotations

from pathlib import Path

import click

from map_forge.cli.console import configure_logging, console, diagnostics_table, err_console, plan_table
from map_forge.core.config import GeneratorConfig
from map_forge.core.engine import GenerationResult, MappingEngine
from map_forge.core.exceptions import MapForgeError
from map_forge.core.registry import MappingRegistry


def _run(modules: tuple[str, ...], config: GeneratorConfig) -> GenerationResult:
    try:
        registry = MappingRegistry(*modules)
    except MapForgeError as e:
        raise click.ClickException(str(e)) from e
    if not registry.types:
        err_console.print("[warning]No classes with mapping directives found.[/warning]")
    return MappingEngine(config).generate(registry.types)


@click.group()
@click.version_option(package_name="map-forge")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """map-forge - ahead-of-time object mapping generator."""
    configure_logging(verbose)


@cli.command("generate")
@click.argument("modules", nargs=-1, required=True)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    help="Write the generated module to FILE instead of stdout.",
)
@click.option("--strict", is_flag=True, help="Treat warnings as failures.")
@click.option("--workers", type=click.IntRange(min=1), help="Plan and render on N threads.")
@click.option("--no-docstrings", is_flag=True, help="Omit docstrings from generated functions.")
def generate_command(
    modules: tuple[str, ...],
    output: Path | None,
    strict: bool,
    workers: int | None,
    no_docstrings: bool,
) -> None:
    """Generate conversion functions for the classes declared in MODULES."""
    config = GeneratorConfig(
        max_workers=workers,
        emit_docstrings=not no_docstrings,
        fail_on_warnings=strict,
    )
    result = _run(modules, config)

    if output is not None:
        output.write_text(result.source, encoding="utf-8")
        err_console.print(
            f"[success]Wrote {len(result.functions)} functions to {output}[/success]"
        )
    else:
        click.echo(result.source, nl=False)

    if result.diagnostics:
        err_console.print(diagnostics_table(result.diagnostics))
    if not result.passed(strict=config.fail_on_warnings):
        raise SystemExit(1)


@cli.command("plan")
@click.argument("modules", nargs=-1, required=True)
def plan_command(modules: tuple[str, ...]) -> None:
    """Show the resolved mapping plans for the classes declared in MODULES."""
    result = _run(modules, GeneratorConfig())
    for plan in result.plans:
        console.print(plan_table(plan))
    if result.diagnostics:
        console.print(diagnostics_table(result.diagnostics))
    if result.has_errors:
        raise SystemExit(1)
