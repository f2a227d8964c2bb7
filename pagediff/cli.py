"""CLI entry point for pagediff."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from pagediff.models.config import RunConfig
from pagediff.models.results import RunReport, TaskFailure
from pagediff.orchestrator import Orchestrator
from pagediff.reporter.aggregator import NoResults
from pagediff.targets import TargetListError, read_targets

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(config: str) -> RunConfig:
    try:
        return RunConfig.load(config)
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config}[/red]")
        console.print("Run 'pagediff init' to create a default config.")
        sys.exit(1)


def _print_failures(failures: list[TaskFailure]) -> None:
    if not failures:
        return
    table = Table(title="Failed Targets")
    table.add_column("Target", style="bold")
    table.add_column("Attempts")
    table.add_column("Reason", style="red")
    for f in failures:
        table.add_row(f.target, str(f.attempts), f.reason)
    console.print(table)


def _print_summary(report: RunReport, reports: dict[str, str]) -> None:
    s = report.summary
    console.print("\n[bold green]Comparison Complete[/bold green]")
    table = Table(title="Results Summary")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Run ID", report.run_id)
    table.add_row("URLs compared", str(s.total_urls))
    table.add_row("Matched", f"[green]{s.matched}[/green]")
    table.add_row("Differ", f"[red]{s.mismatched}[/red]")
    table.add_row("Failed", f"[red]{s.failed}[/red]")
    table.add_row("Average task duration", f"{s.average_duration_seconds:.2f}s")
    table.add_row("Total time", f"{s.total_duration_seconds:.2f}s ({s.total_duration_seconds / 60:.2f} min)")
    console.print(table)

    diffs = [r for r in report.results if not r.matched]
    if diffs:
        diff_table = Table(title="Visual Differences")
        diff_table.add_column("Target", style="bold")
        diff_table.add_column("Pixels", justify="right")
        diff_table.add_column("Diff image")
        for r in diffs:
            diff_table.add_row(r.target, f"{r.diff_pixel_count:,}", r.artifact_paths.diff)
        console.print(diff_table)

    _print_failures(report.failures)

    for fmt, path in reports.items():
        console.print(f"  {fmt.upper()} report: [blue]{path}[/blue]")


def _run_and_report(action) -> None:
    try:
        results = action()
    except (FileNotFoundError, TargetListError) as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    except NoResults as e:
        console.print(f"[red]{e}[/red]")
        _print_failures(e.failures)
        sys.exit(1)
    _print_summary(results["report"], results["reports"])


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Visual regression comparison between two deployments of a site"""
    setup_logging(verbose)


@cli.command()
@click.option("--config", "-c", default="pagediff.json", help="Config file path")
@click.option("--input", "-i", "input_file", default=None, help="Override the target list file")
@click.option("--concurrency", "-n", type=int, default=None, help="Override the concurrency limit")
def run(config: str, input_file: str | None, concurrency: int | None) -> None:
    """Capture every target from both environments, diff, and report."""
    cfg = _load_config(config)
    updates = {}
    if input_file:
        updates["input_file"] = input_file
    if concurrency:
        updates["concurrency"] = concurrency
        updates["pool_size"] = concurrency
    if updates:
        cfg = RunConfig(**{**cfg.model_dump(), **updates})

    orchestrator = Orchestrator(cfg)
    _run_and_report(orchestrator.run_full_pipeline)


@cli.command()
@click.argument("baseline_dir", type=click.Path(exists=True, file_okay=False))
@click.argument("candidate_dir", type=click.Path(exists=True, file_okay=False))
@click.option("--diff-dir", "-d", default=None, help="Where to write diff images")
@click.option("--config", "-c", default="pagediff.json", help="Config file path")
def compare(baseline_dir: str, candidate_dir: str, diff_dir: str | None, config: str) -> None:
    """Diff screenshots already saved in two directories."""
    if Path(config).exists():
        cfg = RunConfig.load(config)
    else:
        cfg = RunConfig(baseline_url=baseline_dir, candidate_url=candidate_dir)

    orchestrator = Orchestrator(cfg)
    _run_and_report(lambda: orchestrator.run_compare_only(
        Path(baseline_dir), Path(candidate_dir), Path(diff_dir) if diff_dir else None,
    ))


@cli.command()
@click.option("--config", "-c", default="pagediff.json", help="Config file path")
@click.option("--input", "-i", "input_file", default=None, help="Target list file to inspect")
def targets(config: str, input_file: str | None) -> None:
    """List the targets the input file resolves to."""
    if not input_file:
        input_file = _load_config(config).input_file
    try:
        paths = read_targets(input_file)
    except (FileNotFoundError, TargetListError) as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    for i, path in enumerate(paths, 1):
        console.print(f"  {i}. {path}")
    console.print(f"[green]{len(paths)} targets[/green]")


@cli.command()
@click.option("--baseline", "-b", prompt="Baseline URL", help="Reference environment base URL")
@click.option("--candidate", "-t", prompt="Candidate URL", help="Environment under test base URL")
def init(baseline: str, candidate: str) -> None:
    """Create a default configuration file."""
    config_path = Path("pagediff.json")
    if config_path.exists():
        if not click.confirm("pagediff.json already exists. Overwrite?"):
            return

    cfg = RunConfig(baseline_url=baseline, candidate_url=candidate)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nAdd your page paths to the input file and run:")
    console.print("  [blue]pagediff run[/blue]")


if __name__ == "__main__":
    cli()
