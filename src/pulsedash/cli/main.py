"""PulseDash CLI implementation.

Provides the command-line interface for inspecting pulse reports.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from pulsedash.config import ConfigLoader
from pulsedash.exceptions import PulseDashError
from pulsedash.persistence import ReportStore

if TYPE_CHECKING:
    from pulsedash.analysis import FlakyTestDetail, StatusDistribution
    from pulsedash.models.report import RunReport, TestStep

app = typer.Typer(
    name="pulsedash",
    help="Insights over Playwright pulse reports.",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

STATUS_STYLES = {
    "passed": "green",
    "failed": "red",
    "timedOut": "red",
    "skipped": "yellow",
    "pending": "blue",
    "flaky": "magenta",
}

ReportDirOption = Annotated[
    Path | None,
    typer.Option(
        "--report-dir",
        "-d",
        help="Directory containing pulse reports (default: ./pulse-report).",
    ),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to pulsedash.yaml configuration file.",
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging."),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Print machine-readable JSON."),
]


def _configure_logging(verbose: bool) -> None:
    """Route library logging through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _open_store(report_dir: Path | None, config: Path | None, verbose: bool) -> ReportStore:
    """Resolve configuration and build the report store.

    Raises:
        typer.Exit: If the configuration is invalid.
    """
    _configure_logging(verbose)
    try:
        file_config = ConfigLoader.load_config(config)
    except PulseDashError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e

    resolved_dir = ConfigLoader.resolve_report_dir(file_config, cli_report_dir=report_dir)
    logging.getLogger(__name__).debug("Using report directory %s", resolved_dir)

    if file_config is None:
        return ReportStore(resolved_dir)
    return ReportStore(
        resolved_dir,
        current_file=file_config.report.current_file,
        history_dir=file_config.report.history_dir,
    )


def _load_current(store: ReportStore) -> RunReport:
    """Load the current run, exiting with the underlying error on failure."""
    try:
        report = store.load_current_run(strict=True)
    except PulseDashError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e
    if report is None:
        console.print("[yellow]No current run report found.[/yellow]")
        raise typer.Exit(code=1)
    return report


def _styled(status: str) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status}[/{style}]"


@app.command()
def summary(
    report_dir: ReportDirOption = None,
    config: ConfigOption = None,
    as_json: JsonOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Show summary metrics for the current run.

    Example:
        pulsedash summary --report-dir ./pulse-report
    """
    from pulsedash.analysis import summarize_run  # noqa: PLC0415

    store = _open_store(report_dir, config, verbose)
    report = _load_current(store)
    run_summary = summarize_run(report)

    if as_json:
        typer.echo(run_summary.model_dump_json(indent=2))
        return

    if run_summary.total == 0:
        console.print("[yellow]No test results in the current run.[/yellow]")
        raise typer.Exit(code=0)

    table = Table(title=f"Run Summary ({report.timestamp.isoformat()})")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Rate", justify="right")

    table.add_row("Total Tests", str(run_summary.total), "")
    table.add_row("Passed", str(run_summary.passed), f"{run_summary.pass_rate:.1%}")
    table.add_row("Flaky", str(run_summary.flaky), f"{run_summary.flaky_rate:.1%}")
    table.add_row("Failed", str(run_summary.failed), f"{run_summary.fail_rate:.1%}")
    table.add_row("Skipped", str(run_summary.skipped), f"{run_summary.skip_rate:.1%}")
    table.add_row("Pending", str(run_summary.pending), "")
    table.add_row(
        "Retries",
        str(run_summary.total_retries),
        f"{run_summary.retried_tests} tests retried",
    )
    table.add_row("Avg Duration", f"{run_summary.avg_duration / 1000:.2f}s", "")

    console.print(table)


@app.command()
def tests(  # noqa: PLR0913 - Typer requires CLI args as function parameters
    status: Annotated[
        str,
        typer.Option(
            "--status",
            "-s",
            help="Effective status: all, passed, failed, skipped, flaky, pending, timedOut.",
        ),
    ] = "all",
    search: Annotated[
        str,
        typer.Option("--search", "-q", help="Case-insensitive match on test or suite name."),
    ] = "",
    tag: Annotated[
        list[str] | None,
        typer.Option("--tag", "-t", help="Keep tests carrying any of these tags."),
    ] = None,
    browser: Annotated[
        str,
        typer.Option("--browser", "-b", help="Browser name to keep."),
    ] = "all",
    suite: Annotated[
        str,
        typer.Option("--suite", help="Suite name to keep."),
    ] = "all",
    retries_only: Annotated[
        bool,
        typer.Option("--retries-only", help="Only tests that needed retries."),
    ] = False,
    report_dir: ReportDirOption = None,
    config: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """List current run results grouped by suite.

    Example:
        pulsedash tests --status failed --tag @smoke
    """
    from pulsedash.analysis import (  # noqa: PLC0415
        ResultFilter,
        effective_status,
        filter_results,
        group_by_suite,
    )

    store = _open_store(report_dir, config, verbose)
    report = _load_current(store)

    criteria = ResultFilter(
        status=status,
        search=search,
        tags=tag or [],
        browser=browser,
        suite=suite,
        retries_only=retries_only,
    )
    groups = group_by_suite(filter_results(report.results, criteria))

    if not groups:
        console.print("[yellow]No test results match the current filters.[/yellow]")
        raise typer.Exit(code=0)

    for group in groups:
        stats = group.stats
        table = Table(
            title=(
                f"{escape(group.title)} - {stats.total} tests: "
                f"{stats.passed} passed, {stats.failed} failed, "
                f"{stats.flaky} flaky, {stats.skipped} skipped"
            ),
        )
        table.add_column("Test", style="cyan")
        table.add_column("Status", justify="center")
        table.add_column("Browser")
        table.add_column("Duration", justify="right")

        for test in group.tests:
            table.add_row(
                escape(test.name),
                _styled(effective_status(test).value),
                escape(test.browser or "-"),
                f"{test.duration / 1000:.2f}s",
            )
        console.print(table)


@app.command()
def trends(
    report_dir: ReportDirOption = None,
    config: ConfigOption = None,
    as_json: JsonOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Show per-run trends from the report history.

    Example:
        pulsedash trends --report-dir ./pulse-report
    """
    from pulsedash.analysis import TrendAnalyzer  # noqa: PLC0415

    store = _open_store(report_dir, config, verbose)
    trend_report = TrendAnalyzer(store).summarize()

    if not trend_report.success:
        error = escape(trend_report.error or "")
        console.print(f"[red]Error processing historical trends:[/red] {error}")
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(trend_report.model_dump_json(indent=2))
        return

    if not trend_report.points:
        console.print("[yellow]No historical trend data available.[/yellow]")
        raise typer.Exit(code=0)

    table = Table(title="Historical Trends")
    table.add_column("Date", style="cyan")
    table.add_column("Total", justify="right")
    table.add_column("Passed", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_column("Flaky", justify="right", style="magenta")
    table.add_column("Duration", justify="right")
    table.add_column("Workers", justify="right")

    for point in trend_report.points:
        table.add_row(
            point.date.strftime("%Y-%m-%d %H:%M"),
            str(point.total_tests),
            str(point.passed),
            str(point.failed),
            str(point.skipped),
            str(point.flaky),
            f"{point.duration / 1000:.1f}s",
            str(point.worker_count) if point.worker_count is not None else "-",
        )

    console.print(table)


@app.command()
def flaky(
    report_dir: ReportDirOption = None,
    config: ConfigOption = None,
    fail_on_flaky: Annotated[
        bool,
        typer.Option(
            "--fail-on-flaky",
            help="Exit with error code if flaky tests are detected.",
        ),
    ] = False,
    as_json: JsonOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Detect flaky tests in the current run and across history.

    Example:
        pulsedash flaky --fail-on-flaky
    """
    from pulsedash.analysis import FlakyDetector  # noqa: PLC0415

    store = _open_store(report_dir, config, verbose)
    analysis = FlakyDetector(store).analyze()

    if as_json:
        typer.echo(analysis.model_dump_json(indent=2))
    else:
        if not analysis.success:
            error = escape(analysis.error or "")
            console.print(f"[red]Error analyzing flakiness:[/red] {error}")

        if analysis.is_empty:
            console.print("[green]No flaky tests found.[/green]")
        else:
            _print_current_flaky(analysis.current_flaky)
            _print_historical_flaky(analysis.historical_flaky)

    if not analysis.success:
        raise typer.Exit(code=1)
    if fail_on_flaky and not analysis.is_empty:
        raise typer.Exit(code=1)


def _print_current_flaky(details: list[FlakyTestDetail]) -> None:
    if not details:
        console.print("[green]No flaky tests in the current run.[/green]")
        return

    table = Table(title="Flaky in Current Run")
    table.add_column("Test", style="cyan")
    table.add_column("Suite")
    for detail in details:
        table.add_row(escape(detail.name), escape(detail.suite_name))
    console.print(table)


def _print_historical_flaky(details: list[FlakyTestDetail]) -> None:
    if not details:
        console.print("[green]No historically flaky tests.[/green]")
        return

    table = Table(title="Historically Flaky")
    table.add_column("Test", style="cyan")
    table.add_column("Suite")
    table.add_column("Passed", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Runs", justify="right")
    table.add_column("Fail Rate", justify="right")
    table.add_column("Last Seen")
    for detail in details:
        table.add_row(
            escape(detail.name),
            escape(detail.suite_name),
            str(detail.passed_count),
            str(detail.failed_count),
            str(detail.total_runs),
            f"{detail.failure_rate:.0%}",
            detail.last_seen.strftime("%Y-%m-%d %H:%M") if detail.last_seen else "-",
        )
    console.print(table)
    console.print(f"\n[yellow]Found {len(details)} historically flaky test(s)[/yellow]")


@app.command()
def failures(
    report_dir: ReportDirOption = None,
    config: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Group failed tests of the current run by error category.

    Example:
        pulsedash failures
    """
    from pulsedash.analysis import categorize_failures  # noqa: PLC0415
    from pulsedash.analysis.failures import strip_ansi  # noqa: PLC0415

    store = _open_store(report_dir, config, verbose)
    report = _load_current(store)
    categorization = categorize_failures(report.results)

    if categorization.total_failed == 0:
        console.print("[green]No failed tests in the current run.[/green]")
        raise typer.Exit(code=0)

    console.print(
        Panel(
            f"[bold]{categorization.total_failed} failed test(s) in "
            f"{len(categorization.categories)} categories[/bold]"
        )
    )
    for category in categorization.categories:
        table = Table(title=f"{category.category_name} ({category.count})")
        table.add_column("Test", style="cyan")
        table.add_column("Error")
        for test in category.tests:
            first_line = strip_ansi(test.error_message).strip().splitlines()
            table.add_row(escape(test.name), escape(first_line[0]) if first_line else "-")
        console.print(table)


@app.command()
def overview(
    report_dir: ReportDirOption = None,
    config: ConfigOption = None,
    as_json: JsonOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Break the current run down by browser, suite and worker.

    Example:
        pulsedash overview
    """
    from pulsedash.analysis import build_overview, effective_status  # noqa: PLC0415

    store = _open_store(report_dir, config, verbose)
    report = _load_current(store)
    run_overview = build_overview(report)

    if as_json:
        typer.echo(run_overview.model_dump_json(indent=2))
        return

    if run_overview.summary.total == 0:
        console.print("[yellow]No test results in the current run.[/yellow]")
        raise typer.Exit(code=0)

    _print_distribution("Browser Distribution", "Browser", run_overview.browsers)
    _print_distribution("Tests per Suite", "Suite", run_overview.suites)

    slowest = Table(title="Slowest Tests")
    slowest.add_column("Test", style="cyan")
    slowest.add_column("Status", justify="center")
    slowest.add_column("Duration", justify="right")
    for test in run_overview.slowest:
        slowest.add_row(
            escape(test.name),
            _styled(effective_status(test).value),
            f"{test.duration / 1000:.2f}s",
        )
    console.print(slowest)

    if not run_overview.workers:
        console.print("[yellow]No worker information in the current run.[/yellow]")
        return

    workers = Table(title="Tests per Worker")
    workers.add_column("Worker", style="cyan")
    workers.add_column("Tests", justify="right")
    workers.add_column("Total Duration", justify="right")
    for load in run_overview.workers:
        workers.add_row(
            escape(load.worker_id),
            str(len(load.tests)),
            f"{load.total_duration / 1000:.2f}s",
        )
    console.print(workers)


def _print_distribution(title: str, label: str, rows: list[StatusDistribution]) -> None:
    table = Table(title=title)
    table.add_column(label, style="cyan")
    table.add_column("Passed", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Flaky", justify="right", style="magenta")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_column("Pending", justify="right", style="blue")
    table.add_column("Total", justify="right")
    for row in rows:
        table.add_row(
            escape(row.name),
            str(row.passed),
            str(row.failed),
            str(row.flaky),
            str(row.skipped),
            str(row.pending),
            str(row.total),
        )
    console.print(table)


@app.command()
def show(  # noqa: PLR0913 - Typer requires CLI args as function parameters
    test_id: Annotated[str, typer.Argument(help="Id of the test in the current run.")],
    suite: Annotated[
        str | None,
        typer.Option("--suite", help="Suite name, when the id is not unique."),
    ] = None,
    report_dir: ReportDirOption = None,
    config: ConfigOption = None,
    as_json: JsonOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Show one test of the current run with its steps and history.

    Example:
        pulsedash show 3f2a9c --suite Checkout
    """
    from pulsedash.analysis import describe_result, find_test  # noqa: PLC0415
    from pulsedash.analysis.failures import strip_ansi  # noqa: PLC0415

    store = _open_store(report_dir, config, verbose)
    report = _load_current(store)

    test = find_test(report, test_id, suite)
    if test is None:
        console.print(f"[red]Error:[/red] Test not found: {escape(test_id)}")
        raise typer.Exit(code=1)

    historical_runs: list[RunReport] = []
    history_error: str | None = None
    try:
        historical_runs = store.load_historical_runs()
    except PulseDashError as e:
        logging.getLogger(__name__).error("Error loading test history: %s", e)
        history_error = str(e)

    detail = describe_result(test, report, historical_runs, history_error)

    if as_json:
        typer.echo(detail.model_dump_json(indent=2))
        return

    info = Table(title=escape(test.name), show_header=False)
    info.add_column("Field", style="cyan")
    info.add_column("Value")
    info.add_row("Id", escape(test.id))
    info.add_row("Suite", escape(test.suite_name or "-"))
    info.add_row("Status", _styled(detail.status.value))
    info.add_row("Browser", escape(test.browser or "-"))
    info.add_row("Duration", f"{test.duration / 1000:.2f}s")
    info.add_row("Retries", str(detail.retry_count))
    if test.tags:
        info.add_row("Tags", escape(", ".join(test.tags)))
    console.print(info)

    if test.steps:
        tree = Tree("[bold]Steps[/bold]")
        _add_steps(tree, test.steps)
        console.print(tree)

    if test.retry_history:
        retries = Table(title="Retry History")
        retries.add_column("Attempt", justify="right")
        retries.add_column("Status", justify="center")
        retries.add_column("Duration", justify="right")
        for number, attempt in enumerate(test.retry_history, start=1):
            duration = attempt.duration
            retries.add_row(
                str(number),
                _styled(attempt.status),
                f"{duration / 1000:.2f}s" if duration is not None else "-",
            )
        console.print(retries)

    error = strip_ansi(test.error_message).strip()
    if error:
        console.print(Panel(escape(error), title="Error", border_style="red"))

    if detail.history_error:
        console.print(f"[red]Error loading test history:[/red] {escape(detail.history_error)}")

    history = Table(title="Run History")
    history.add_column("Date", style="cyan")
    history.add_column("Status", justify="center")
    history.add_column("Duration", justify="right")
    for entry in detail.history:
        history.add_row(
            entry.date.strftime("%Y-%m-%d %H:%M"),
            _styled(entry.status.value),
            f"{entry.duration / 1000:.2f}s",
        )
    console.print(history)


def _add_steps(tree: Tree, steps: list[TestStep]) -> None:
    for step in steps:
        label = f"{_styled(step.status)} {escape(step.title)} [dim]{step.duration:.0f}ms[/dim]"
        branch = tree.add(label)
        if step.steps:
            _add_steps(branch, step.steps)


@app.command()
def env(
    report_dir: ReportDirOption = None,
    config: ConfigOption = None,
    as_json: JsonOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Show the system environment the current run executed in.

    Example:
        pulsedash env
    """
    from pulsedash.analysis import (  # noqa: PLC0415
        environment_label,
        environment_shards,
        format_environment_value,
    )

    store = _open_store(report_dir, config, verbose)
    report = _load_current(store)
    shards = environment_shards(report)

    if as_json:
        typer.echo(json.dumps(shards, indent=2))
        return

    if not shards:
        console.print("[yellow]No environment information in the current run.[/yellow]")
        raise typer.Exit(code=0)

    for number, shard in enumerate(shards, start=1):
        title = "System Information" if len(shards) == 1 else f"Shard {number}"
        table = Table(title=title, show_header=False)
        table.add_column("Key", style="cyan")
        table.add_column("Value")
        for key, value in shard.items():
            table.add_row(escape(environment_label(key)), escape(format_environment_value(value)))
        console.print(table)


@app.command(name="show-config")
def show_config(
    report_dir: ReportDirOption = None,
    config: ConfigOption = None,
) -> None:
    """Print the resolved report locations."""
    store = _open_store(report_dir, config, verbose=False)
    typer.echo(
        json.dumps(
            {
                "report_dir": str(store.report_dir),
                "current_report": str(store.current_path),
                "history_dir": str(store.history_dir),
            },
            indent=2,
        )
    )


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
