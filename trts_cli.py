"""
trts_cli.py - TRTS Command Line

Entry points over the propagation core:

    trts simulate        events.csv / values.csv into an output directory
    trts go-time         minimal register CSV to stdout or a file
    trts analyze         run statistics as a rich table or JSON
    trts refine          configuration search
    trts validate-config check a JSON/YAML configuration file

Configuration problems exit with status 2 before any run starts. Runs
themselves never fail: arithmetic failures inside the engine only skip a
step.
"""

import json
import sys
from dataclasses import replace
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

import config_schema
import self_refine
from receipts import write_receipt_jsonl
from trts.analysis import analyze_run, psi_type_label
from trts.constants import EngineMode, KoppaTrigger, PsiMode
from trts.cycle import run_simulation, simulate_stream
from trts.export import CsvSink, MinimalCsvSink, generate_report, summary_to_dict
from trts.rational import Rational
from trts.types_config import SCENARIOS, TRTSConfig

console = Console()

DEFAULT_TICKS = 1  # bare command line runs; components grow ~1000x in digits per tick


# =============================================================================
# OUTPUT HELPERS
# =============================================================================

def print_success(message: str) -> None:
    """Print a success message with green checkmark."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message with red X."""
    console.print(f"[red]✗[/red] {message}")


def print_next(command: str) -> None:
    """Print suggested next command."""
    console.print(f"\n[dim]Next:[/dim] [cyan]{command}[/cyan]")


# =============================================================================
# OPTION PARSING
# =============================================================================

def _rational_option(ctx, param, value: Optional[str]) -> Optional[Rational]:
    if value is None:
        return None
    try:
        return Rational.parse(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc), ctx=ctx, param=param)


def _enum_choice(enum_type) -> click.Choice:
    return click.Choice([member.name.lower() for member in enum_type], case_sensitive=False)


def config_options(func):
    """Options shared by every command that runs a single configuration."""
    options = [
        click.option("--config", "config_path", type=click.Path(), default=None,
                     help="JSON/YAML configuration file"),
        click.option("--scenario", type=click.Choice(sorted(SCENARIOS), case_sensitive=False),
                     default=None, help="Start from a scenario preset"),
        click.option("--ticks", type=click.IntRange(min=1), default=None, help="Tick count"),
        click.option("--ups", callback=_rational_option, default=None, help="Upsilon seed N/D"),
        click.option("--beta", callback=_rational_option, default=None, help="Beta seed N/D"),
        click.option("--koppa", callback=_rational_option, default=None, help="Koppa seed N/D"),
        click.option("--engine-mode", type=_enum_choice(EngineMode), default=None),
        click.option("--psi-mode", type=_enum_choice(PsiMode), default=None),
        click.option("--triple-psi", is_flag=True, default=False, help="Enable three-way psi"),
        click.option("--multi-level", is_flag=True, default=False,
                     help="Keep a koppa history stack"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_config(config_path: Optional[str] = None, scenario: Optional[str] = None,
                 ticks: Optional[int] = None, ups: Optional[Rational] = None,
                 beta: Optional[Rational] = None, koppa: Optional[Rational] = None,
                 engine_mode: Optional[str] = None, psi_mode: Optional[str] = None,
                 triple_psi: bool = False, multi_level: bool = False) -> TRTSConfig:
    """
    Resolve a TRTSConfig from a file or preset plus command line overrides.

    With neither a file nor a preset the run is TRTSConfig() shortened to
    DEFAULT_TICKS unless --ticks says otherwise.

    Raises:
        FileNotFoundError: config_path does not exist
        ValueError: config file fails to parse or validate
    """
    if config_path is not None:
        config = config_schema.load(config_path)
    elif scenario is not None:
        config = SCENARIOS[scenario.upper()]
    else:
        config = TRTSConfig(ticks=DEFAULT_TICKS)

    changes = {}
    if ticks is not None:
        changes["ticks"] = ticks
    if ups is not None:
        changes["upsilon_seed"] = ups
    if beta is not None:
        changes["beta_seed"] = beta
    if koppa is not None:
        changes["koppa_seed"] = koppa
    if engine_mode is not None:
        changes["engine_mode"] = EngineMode[engine_mode.upper()]
    if psi_mode is not None:
        changes["psi_mode"] = PsiMode[psi_mode.upper()]
    if triple_psi:
        changes["triple_psi"] = True
    if multi_level:
        changes["multi_level_koppa"] = True
    return replace(config, **changes)


def _resolve_config(**kwargs) -> TRTSConfig:
    """build_config, exiting with status 2 on configuration errors."""
    try:
        return build_config(**kwargs)
    except FileNotFoundError as e:
        print_error(str(e))
        sys.exit(2)
    except ValueError as e:
        print_error(f"Invalid configuration: {e}")
        sys.exit(2)


# =============================================================================
# CLI GROUP
# =============================================================================

@click.group()
def cli():
    """TRTS exact-rational propagation engine."""
    pass


# --- simulate ---

@cli.command("simulate")
@config_options
@click.option("--output-dir", "-o", type=click.Path(file_okay=False), default="trts_output",
              help="Directory for events.csv and values.csv")
@click.option("--receipts", "receipts_path", type=click.Path(dir_okay=False), default=None,
              help="Append run receipts as JSONL")
def simulate_cmd(output_dir: str, receipts_path: Optional[str], **kwargs) -> None:
    """Run one configuration and write events.csv / values.csv."""
    config = _resolve_config(**kwargs)

    with CsvSink(output_dir) as sink:
        result = run_simulation(config, observers=[sink], record=False)

    if receipts_path:
        with open(receipts_path, "a") as fh:
            for receipt in result.receipts:
                write_receipt_jsonl(receipt, fh)

    status_style = "green" if not result.violations else "red"
    console.print(Panel(generate_report(result),
                        title=f"[bold]{config.scenario_name}[/bold]",
                        border_style=status_style))
    print_success(f"Wrote {sink.rows_written} rows: {sink.events_path}, {sink.values_path}")
    print_next(f"trts analyze --ticks {config.ticks}")


# --- go-time ---

@cli.command("go-time")
@click.option("--ticks", type=click.IntRange(min=1), default=DEFAULT_TICKS, help="Tick count")
@click.option("--ups", callback=_rational_option, default="1/1", help="Upsilon seed N/D")
@click.option("--beta", callback=_rational_option, default="1/1", help="Beta seed N/D")
@click.option("--koppa", callback=_rational_option, default="1/1", help="Koppa seed N/D")
@click.option("--output", "-o", type=click.File("w"), default="-",
              help="CSV destination (default stdout)")
def go_time_cmd(ticks: int, ups: Rational, beta: Rational, koppa: Rational, output) -> None:
    """Pure propagation with a minimal CSV (no history stack, no wrapping)."""
    config = TRTSConfig(
        ticks=ticks,
        upsilon_seed=ups,
        beta_seed=beta,
        koppa_seed=koppa,
        koppa_trigger=KoppaTrigger.ON_ALL_MU,
        multi_level_koppa=False,
        modular_wrap=False,
        scenario_name="GO_TIME",
    )
    simulate_stream(config, MinimalCsvSink(output))


# --- analyze ---

@cli.command("analyze")
@config_options
@click.option("--json", "as_json", is_flag=True, help="Emit the summary as JSON")
def analyze_cmd(as_json: bool, **kwargs) -> None:
    """Simulate and print run statistics."""
    config = _resolve_config(**kwargs)
    summary = analyze_run(config)

    if as_json:
        data = summary_to_dict(summary)
        data["scenario"] = config.scenario_name
        data["psi_type"] = psi_type_label(config)
        click.echo(json.dumps(data, indent=2))
        return

    table = Table(title=f"TRTS Analysis: {config.scenario_name}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Psi type", psi_type_label(config))
    table.add_row("Final ratio", summary.final_ratio_str if summary.ratio_defined else "undefined")
    table.add_row("Ratio (float)", f"{summary.final_ratio_snapshot:.12g}")
    table.add_row("Closest constant", summary.closest_constant)
    table.add_row("Closest delta", f"{summary.closest_delta:.3e}")
    table.add_row("Convergence tick",
                  str(summary.convergence_tick) if summary.convergence_tick is not None else "-")
    table.add_row("Pattern", summary.pattern)
    table.add_row("Classification", summary.classification)
    table.add_row("Psi events", str(summary.psi_events))
    table.add_row("Triple psi", str(summary.psi_triple_count))
    table.add_row("Rho events", str(summary.rho_events))
    table.add_row("Mu zero", str(summary.mu_zero_events))
    table.add_row("Psi spacing", f"{summary.psi_spacing_mean:.2f} ± {summary.psi_spacing_stddev:.2f}")
    table.add_row("Ratio mean / stddev", f"{summary.ratio_mean:.6g} / {summary.ratio_stddev:.6g}")
    table.add_row("Stack depth", summary.stack_summary)
    console.print(table)


# --- refine ---

@cli.command("refine")
@click.option("--generations", type=click.IntRange(min=1), default=self_refine.DEFAULT_GENERATIONS)
@click.option("--population", type=click.IntRange(min=1), default=self_refine.DEFAULT_POPULATION)
@click.option("--elite", type=click.IntRange(min=0), default=self_refine.DEFAULT_ELITE)
@click.option("--seed", type=int, default=None, help="Random seed")
@click.option("--strategy", type=click.Choice(self_refine.STRATEGIES), default="hill-climb")
@click.option("--target", default=self_refine.DEFAULT_TARGET, help="Target constant name")
@click.option("--max-ticks", type=click.IntRange(min=1), default=self_refine.DEFAULT_TICK_RANGE[1],
              help="Longest candidate run in ticks")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None,
              help="Write the best candidate as JSON")
def refine_cmd(generations: int, population: int, elite: int, seed: Optional[int],
               strategy: str, target: str, max_ticks: int, output: Optional[str]) -> None:
    """Search the configuration space for high-scoring runs."""
    options = self_refine.EvolutionOptions(
        generations=generations,
        population=population,
        elite=elite,
        seed=seed,
        strategy=strategy,
        target=target,
        tick_range=(1, max_ticks),
    )
    bests = self_refine.evolve(options)

    table = Table(title=f"Refine: target {target}")
    table.add_column("Gen", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Ratio")
    table.add_column("Psi", justify="right")
    table.add_column("Rho", justify="right")
    table.add_column("Modes")
    for generation, candidate in enumerate(bests[:-1]):
        summary = candidate.summary
        config = candidate.config
        table.add_row(
            str(generation),
            f"{candidate.score:.4f}",
            summary.final_ratio_str if summary.ratio_defined else "undefined",
            str(summary.psi_events),
            str(summary.rho_events),
            f"{config.engine_mode.value}/{config.psi_mode.value}/{config.koppa_mode.value}",
        )
    console.print(table)

    best = bests[-1]
    print_success(f"Best score {best.score:.4f}")
    if output:
        self_refine.save_best(best, output)
        print_success(f"Saved: {output}")


# --- validate-config ---

@cli.command("validate-config")
@click.argument("config_path", type=click.Path())
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
def validate_config_cmd(config_path: str, output: str) -> None:
    """Validate a TRTS config file."""
    try:
        config = config_schema.load(config_path)
    except FileNotFoundError:
        if output == "json":
            click.echo(json.dumps({"error": "config not found", "path": config_path}))
        else:
            print_error(f"Config file not found: {config_path}")
        sys.exit(2)
    except ValueError as e:
        if output == "json":
            click.echo(json.dumps({"path": config_path, "valid": False, "error": str(e)}))
        else:
            console.print(Panel(f"File: {config_path}\n\n[red]✗[/red] {e}",
                                title="[bold red]Config Validation: FAILED[/bold red]",
                                border_style="red"))
        sys.exit(2)

    if output == "json":
        click.echo(json.dumps({"path": config_path, "valid": True,
                               "config": config_schema.to_dict(config)}, indent=2))
        return

    content = (
        f"File: {config_path}\n"
        f"Scenario: {config.scenario_name}    Ticks: {config.ticks}\n"
        f"Engine: {config.engine_mode.value}    Psi: {config.psi_mode.value}    "
        f"Koppa: {config.koppa_mode.value}\n"
        f"Seeds: upsilon={config.upsilon_seed} beta={config.beta_seed} koppa={config.koppa_seed}"
    )
    console.print(Panel(content, title="[bold green]Config Validation: PASSED[/bold green]",
                        border_style="green"))
    print_next(f"trts simulate --config {config_path}")


if __name__ == "__main__":
    cli()
