#!/usr/bin/env python3
"""
driver.py - Rebalancing Simulation CLI

Runs the rebalancing engine for one silo count or a sweep of silo counts,
explores the adaptive damping surface and validates config files.

Exit codes:
  - 0: success
  - 1: actionable issue (invalid config, run did not converge when required)
  - 2: fatal error (missing file, bad input)

Examples:
  rebalance-sim run -n 2 --no-damping
  rebalance-sim run -n 5 -p activation_memory --skewed-weights -o json
  rebalance-sim sweep -p size_only --min-nodes 1 --max-nodes 8 --workers 4
  rebalance-sim damping --max-cycles 20 --min-silos 2 --max-silos 10
  rebalance-sim validate-config configs/two_silos.yaml
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import replace
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

import config_schema
from receipts import InvalidArgument, append_receipts
from rebalance import (
    EngineState,
    SimResult,
    DampingParams,
    VARIANT_PRESETS,
    UNIT_WEIGHT_TABLE,
    SKEWED_WEIGHT_TABLE,
    preset_for,
    run_simulation,
    run_sweep,
    damping_surface,
    summarize,
    export_result,
    check_conservation,
)

console = Console()

PRESET_CHOICE = click.Choice(sorted(VARIANT_PRESETS), case_sensitive=False)
OUTPUT_CHOICE = click.Choice(["rich", "json"])


# =============================================================================
# Output helpers
# =============================================================================

def print_success(message: str) -> None:
    """Print a success message with green checkmark."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message with red X."""
    console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message with yellow warning sign."""
    console.print(f"[yellow]⚠[/yellow] {message}")


def _parse_weights(raw: Optional[str]) -> Optional[Tuple[float, ...]]:
    if raw is None:
        return None
    try:
        return tuple(float(w) for w in raw.split(",") if w.strip())
    except ValueError:
        raise click.BadParameter(f"expected comma-separated numbers, got '{raw}'", param_hint="--weights")


def _fail(output: str, message: str, code: int, **extra) -> None:
    if output == "json":
        click.echo(json.dumps({"error": message, **extra}))
    else:
        print_error(message)
    sys.exit(code)


def _format_loads(loads) -> str:
    return " | ".join(f"{x:.0f}" for x in loads)


def _result_panel(result: SimResult) -> Panel:
    s = summarize(result)
    style = "green" if result.termination is EngineState.CONVERGED else "yellow"
    content = (
        f"silos:          {s['node_count']}\n"
        f"cycles:         {s['total_cycles']} ({s['termination']})\n"
        f"entropy:        {s['initial_entropy']:.4f} → {s['final_entropy']:.4f}  (max {s['max_entropy']:.4f})\n"
        f"alpha:          {s['alpha_start']:.4f} → {s['alpha_end']:.4f}\n"
        f"ideal load:     {s['ideal_load']:.0f}\n"
        f"initial loads:  {_format_loads(result.initial_loads)}\n"
        f"final loads:    {_format_loads(result.final_loads)}"
    )
    return Panel(
        content,
        title=f"[bold {style}]{s['scenario']}: {s['termination']}[/bold {style}]",
        border_style=style,
    )


# =============================================================================
# CLI group
# =============================================================================

@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log every cycle")
def cli(verbose: bool) -> None:
    """Silo rebalancing convergence simulator."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s"
    )


# --- run ---

@cli.command("run")
@click.option("--nodes", "-n", type=int, help="Silo count (required without --config)")
@click.option("--preset", "-p", type=PRESET_CHOICE, default="ACTIVATION", show_default=True)
@click.option("--config", "-c", "config_path", type=click.Path(), help="JSON/YAML config file")
@click.option("--weights", "-w", help="Comma-separated capacity weights")
@click.option("--skewed-weights", is_flag=True, help="Use the skewed weight table")
@click.option("--damping/--no-damping", default=None, help="Override adaptive damping")
@click.option("--max-cycles", type=int, help="Override max cycles")
@click.option("--export", "export_path", type=click.Path(), help="Write full JSON result")
@click.option("--receipts", "receipts_path", type=click.Path(), help="Append receipts as JSONL")
@click.option("--require-convergence", is_flag=True, help="Exit 1 if the run is EXHAUSTED")
@click.option("--output", "-o", type=OUTPUT_CHOICE, default="rich")
def run_cmd(
    nodes: Optional[int],
    preset: str,
    config_path: Optional[str],
    weights: Optional[str],
    skewed_weights: bool,
    damping: Optional[bool],
    max_cycles: Optional[int],
    export_path: Optional[str],
    receipts_path: Optional[str],
    require_convergence: bool,
    output: str,
) -> None:
    """Run one simulation."""
    try:
        if config_path:
            config = config_schema.load(config_path)
            if nodes is not None and nodes != config.node_count:
                print_warning(f"--nodes {nodes} ignored; config sets node_count={config.node_count}")
        elif nodes is None:
            _fail(output, "--nodes is required without --config", 2)
        else:
            table = SKEWED_WEIGHT_TABLE if skewed_weights else UNIT_WEIGHT_TABLE
            config = preset_for(preset, nodes, table)

        changes = {}
        parsed = _parse_weights(weights)
        if parsed is not None:
            changes["capacity_weights"] = parsed
        if damping is not None:
            changes["use_adaptive_damping"] = damping
        if max_cycles is not None:
            changes["max_cycles"] = max_cycles
        if changes:
            config = replace(config, **changes)

        result = run_simulation(config)
        _, conservation = check_conservation(result.initial_loads, result.final_loads)
        receipts = result.receipts + (conservation,)

        if export_path:
            export_result(result, export_path)
        if receipts_path:
            append_receipts(receipts, receipts_path)

        if output == "json":
            click.echo(json.dumps({
                "summary": summarize(result),
                "initial_loads": list(result.initial_loads),
                "final_loads": list(result.final_loads),
                "conservation": {
                    "drift": conservation["drift"],
                    "passed": conservation["passed"],
                },
            }, indent=2))
        else:
            console.print(_result_panel(result))
            if not conservation["passed"]:
                print_warning(f"Total load drifted by {conservation['drift']:+.0f}")
            if export_path:
                print_success(f"Saved: {export_path}")

        if require_convergence and result.termination is not EngineState.CONVERGED:
            sys.exit(1)

    except InvalidArgument as e:
        _fail(output, str(e), 1)
    except FileNotFoundError as e:
        _fail(output, str(e), 2)


# --- sweep ---

@cli.command("sweep")
@click.option("--preset", "-p", type=PRESET_CHOICE, default="ACTIVATION", show_default=True)
@click.option("--min-nodes", type=int, default=1, show_default=True)
@click.option("--max-nodes", type=int, default=5, show_default=True)
@click.option("--skewed-weights", is_flag=True, help="Use the skewed weight table")
@click.option("--workers", type=int, default=1, show_default=True, help="Parallel runs")
@click.option("--output", "-o", type=OUTPUT_CHOICE, default="rich")
def sweep_cmd(
    preset: str, min_nodes: int, max_nodes: int, skewed_weights: bool, workers: int, output: str
) -> None:
    """Run a preset across a range of silo counts."""
    if min_nodes > max_nodes:
        _fail(output, f"--min-nodes {min_nodes} exceeds --max-nodes {max_nodes}", 2)

    table_src = SKEWED_WEIGHT_TABLE if skewed_weights else UNIT_WEIGHT_TABLE
    try:
        results = run_sweep(preset, min_nodes, max_nodes, table_src, max_workers=workers)
    except InvalidArgument as e:
        _fail(output, str(e), 1)

    summaries = [summarize(r) for r in results]

    if output == "json":
        click.echo(json.dumps(summaries, indent=2))
        return

    table = Table(title=f"Sweep: {preset.upper()}")
    table.add_column("silos", justify="right", style="cyan")
    table.add_column("cycles", justify="right")
    table.add_column("state", justify="center")
    table.add_column("H start", justify="right", style="blue")
    table.add_column("H end", justify="right", style="blue")
    table.add_column("H max", justify="right", style="red")
    table.add_column("alpha end", justify="right", style="magenta")

    for s in summaries:
        state_style = "green" if s["termination"] == EngineState.CONVERGED.value else "yellow"
        table.add_row(
            str(s["node_count"]),
            str(s["total_cycles"]),
            f"[{state_style}]{s['termination']}[/{state_style}]",
            f"{s['initial_entropy']:.4f}",
            f"{s['final_entropy']:.4f}",
            f"{s['max_entropy']:.4f}",
            f"{s['alpha_end']:.4f}",
        )
    console.print(table)


# --- damping ---

@cli.command("damping")
@click.option("--max-cycles", type=int, default=20, show_default=True)
@click.option("--min-silos", type=int, default=2, show_default=True)
@click.option("--max-silos", type=int, default=10, show_default=True)
@click.option("--cycle-rate", type=float, default=0.2, show_default=True)
@click.option("--silo-rate", type=float, default=0.5, show_default=True)
@click.option("--output", "-o", type=OUTPUT_CHOICE, default="rich")
def damping_cmd(
    max_cycles: int, min_silos: int, max_silos: int, cycle_rate: float, silo_rate: float, output: str
) -> None:
    """Tabulate the adaptive damping factor over cycles and silo counts."""
    if max_cycles < 1 or min_silos < 1 or min_silos > max_silos:
        _fail(output, "need --max-cycles >= 1 and 1 <= --min-silos <= --max-silos", 2)

    surface = damping_surface(
        cycles=range(1, max_cycles + 1),
        silos=range(min_silos, max_silos + 1),
        params=DampingParams(cycle_rate=cycle_rate, silo_rate=silo_rate),
    )

    if output == "json":
        click.echo(json.dumps({
            "cycles": list(surface.cycles),
            "silos": list(surface.silos),
            "growth": list(surface.growth),
            "attenuation": list(surface.attenuation),
            "grid": surface.grid.tolist(),
        }, indent=2))
        return

    table = Table(title="Adaptive Damping (rows: silos, columns: cycle)")
    table.add_column("silos", justify="right", style="cyan")
    for c in surface.cycles:
        table.add_column(str(c), justify="right")
    for s, row in zip(surface.silos, surface.grid):
        table.add_row(str(s), *(f"{v:.2f}" for v in row))
    console.print(table)


# --- validate-config ---

@cli.command("validate-config")
@click.argument("config_path", type=click.Path())
@click.option("--output", "-o", type=OUTPUT_CHOICE, default="rich")
def validate_config_cmd(config_path: str, output: str) -> None:
    """Validate a JSON/YAML simulation config."""
    try:
        is_valid, errors, warns = config_schema.check_file(config_path)
    except FileNotFoundError as e:
        _fail(output, str(e), 2, path=config_path)

    if output == "json":
        click.echo(json.dumps({
            "path": config_path,
            "valid": is_valid,
            "errors": errors,
            "warnings": warns,
        }, indent=2))
    else:
        status, style = ("VALID", "green") if is_valid else ("INVALID", "red")
        lines = [f"File: {config_path}"]
        lines += [f"[red]✗[/red] {e}" for e in errors]
        lines += [f"[yellow]⚠[/yellow] {w}" for w in warns]
        console.print(Panel(
            "\n".join(lines),
            title=f"[bold {style}]Config Validation: {status}[/bold {style}]",
            border_style=style,
        ))

    if not is_valid:
        sys.exit(1)


# --- entry point ---

def main() -> int:
    """Entry point for the rebalance-sim console script."""
    try:
        cli(standalone_mode=False)
        return 0
    except click.ClickException as e:
        e.show()
        return 2
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 0


if __name__ == "__main__":
    sys.exit(main())
