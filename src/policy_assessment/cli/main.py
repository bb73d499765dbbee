import logging
import traceback
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
import yaml
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.table import Table

from ..audit import registry
from ..catalog import YamlProfileSource, load_policies
from ..config.settings import Settings, load_settings
from ..core.assessment import Assessment
from ..core.dispatcher import Dispatcher
from ..core.models import AuditResponse, ReportingPeriod, Severity
from ..core.reporter import Reporter
from ..core.snapshot import AssessmentSnapshot
from ..core.storage import AssessmentStore
from ..core.target import Target
from ..utils.exceptions import AssessmentError
from ..utils.logger import create_run_logger, get_logger, setup_logger_from_settings

console = Console()
logger = get_logger(__name__)

EXIT_UNSUCCESSFUL = 1
EXIT_USAGE = 2

app = typer.Typer(
    name="policy-assessment",
    help="Policy Assessment - run policies against a target and report the verdict",
    no_args_is_help=True
)


def version_callback(value: bool):
    if value:
        from .. import __version__
        console.print(f"Policy Assessment v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None, "--version", callback=version_callback, is_eager=True,
        help="Show version and exit"
    )
):
    """Policy Assessment - run policies against a target and report the verdict."""
    pass


@app.command()
def version():
    """Show version information."""
    from .. import __version__
    console.print(f"Policy Assessment v{__version__}")


@app.command()
def audits():
    """List the registered audits."""
    table = Table(title="Registered Audits")
    table.add_column("Audit", style="cyan")
    table.add_column("Class")
    table.add_column("Description", style="green")

    for item in registry.get_registry_info()["available_audits"]:
        table.add_row(item["name"], item["class"], item["description"])

    console.print(table)


def _load_settings_or_exit(config_file: Optional[Path]) -> Settings:
    try:
        return load_settings(config_file)
    except AssessmentError as e:
        console.print(f"[red]Configuration error: {e}")
        raise typer.Exit(EXIT_USAGE)


def _setup_logging(settings: Settings, verbose: bool, quiet: bool) -> None:
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = None

    setup_logger_from_settings(settings, level=level, console_output=verbose)


def _positive_hours(value: Optional[float]) -> Optional[float]:
    if value is not None and value <= 0:
        raise typer.BadParameter("Must be greater than 0")
    return value


def _parse_properties(values: Optional[List[str]]) -> Dict[str, Any]:
    properties: Dict[str, Any] = {}
    for item in values or []:
        key, sep, raw = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected KEY=VALUE, got '{item}'", param_hint="--property")
        properties[key.strip()] = yaml.safe_load(raw) if raw else ""
    return properties


def _display_summary(assessment: Assessment) -> None:
    table = Table(title=f"Assessment of {assessment.uri}")
    table.add_column("Policy", style="cyan")
    table.add_column("Severity")
    table.add_column("Outcome")
    table.add_column("Message")

    for response in assessment.get_results():
        style = "green" if response.is_successful() else "red"
        outcome = response.outcome.value + (" (remediated)" if response.remediated else "")
        table.add_row(
            response.policy.name,
            Severity.label(response.severity),
            f"[{style}]{outcome}[/{style}]",
            response.message,
        )

    console.print(table)

    verdict = "[green]successful" if assessment.is_successful() else "[red]unsuccessful"
    console.print(f"Assessment {assessment.id}: {verdict}[/] "
                  f"(severity {Severity.label(assessment.severity_code)})")
    if assessment.error_code is not None:
        console.print(f"[red]Dispatcher error code {assessment.error_code}: "
                      f"{assessment.accepted_count}/{assessment.total} responses returned")


@app.command()
def run(
    uri: str = typer.Argument(..., help="URI of the target to assess"),
    profile: List[Path] = typer.Option(
        ..., "--profile", "-p", help="YAML profile of policies (later profiles win)"
    ),
    policy: Optional[List[str]] = typer.Option(
        None, "--policy", help="Only run these policies (can be used multiple times)"
    ),
    prop: Optional[List[str]] = typer.Option(
        None, "--property", "-P", help="Target property as KEY=VALUE (can be used multiple times)"
    ),
    hours: Optional[float] = typer.Option(
        None, "--hours", callback=_positive_hours, help="Length of the reporting period ending now"
    ),
    remediate: bool = typer.Option(
        False, "--remediate", help="Let audits remediate failing policies"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Report file path"
    ),
    format: str = typer.Option(
        "json", "--format", "-f", help="Report format (json, csv, html)"
    ),
    snapshot: Optional[Path] = typer.Option(
        None, "--snapshot", help="Write the assessment snapshot to this file"
    ),
    store: bool = typer.Option(
        False, "--store/--no-store", help="Save the assessment in the assessment store"
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to configuration file"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose output"
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Quiet mode - minimal output"
    )
):
    """Assess a target against the policies of one or more profiles."""
    settings = _load_settings_or_exit(config_file)
    _setup_logging(settings, verbose, quiet)

    try:
        sources = [YamlProfileSource(path, weight=index) for index, path in enumerate(profile)]
        policies = load_policies(sources, policy or None)
    except AssessmentError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(EXIT_USAGE)

    target = Target(name=uri, uri=uri, properties=_parse_properties(prop))
    period = ReportingPeriod.last(hours if hours is not None else settings.reporting_window_hours)

    try:
        with Progress(
            TextColumn("{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
            disable=quiet,
            transient=True,
        ) as progress:
            task = progress.add_task("Assessing", total=len(policies))

            def advance(response: AuditResponse) -> None:
                progress.update(task, advance=1,
                                description=f"Audit response of {response.policy_name} received")

            run_id = uuid.uuid4()
            run_logger = (
                create_run_logger(str(run_id), settings.log_file.parent) if settings.log_file else None
            )
            assessment = Assessment(uri, id_factory=lambda: run_id, listener=advance, logger=run_logger)
            assessment.run(
                target,
                policies,
                period=period,
                remediate=remediate,
                dispatcher=Dispatcher.from_settings(settings),
            )

        if not quiet:
            _display_summary(assessment)

        if output:
            report_path = Reporter(report_dir=settings.report_dir).generate_report(assessment, format, output)
            if not quiet:
                console.print(f"[green]Report saved to: {report_path}")

        if snapshot:
            assessment.to_snapshot().save(snapshot)
            if not quiet:
                console.print(f"[green]Snapshot saved to: {snapshot}")

        if store:
            assessment_id = AssessmentStore(settings=settings).store(assessment)
            if not quiet:
                console.print(f"[green]Stored assessment {assessment_id}")

    except AssessmentError as e:
        logger.error(f"Assessment error: {e}")
        console.print(f"[red]Assessment failed: {e}")
        if verbose:
            console.print(f"[red]Traceback:\n{traceback.format_exc()}")
        raise typer.Exit(EXIT_USAGE)

    if not assessment.is_successful():
        raise typer.Exit(EXIT_UNSUCCESSFUL)


@app.command()
def show(
    snapshot: Path = typer.Argument(..., help="Snapshot file written by 'run --snapshot'"),
    format: Optional[str] = typer.Option(
        None, "--format", "-f", help="Print a report (json, csv, html) instead of the summary"
    ),
):
    """Show a saved assessment without re-running it."""
    try:
        assessment = Assessment.from_snapshot(AssessmentSnapshot.load(snapshot))
        if format:
            console.print(Reporter().render(assessment, format), markup=False, highlight=False)
        else:
            _display_summary(assessment)
    except AssessmentError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(EXIT_USAGE)


@app.command()
def history(
    uri: Optional[str] = typer.Option(None, "--uri", help="Only assessments of this target"),
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum number of assessments"),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to configuration file"
    ),
):
    """List stored assessments, newest first."""
    settings = _load_settings_or_exit(config_file)

    try:
        rows = AssessmentStore(settings=settings).list(uri, limit=limit)
    except AssessmentError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(EXIT_USAGE)

    table = Table(title="Stored Assessments")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("URI")
    table.add_column("Result")
    table.add_column("Severity")
    table.add_column("Created")

    for row in rows:
        result = "[green]successful" if row["successful"] else "[red]unsuccessful"
        table.add_row(row["id"], row["uri"], result, Severity.label(row["severity_code"]), row["created_at"])

    console.print(table)
