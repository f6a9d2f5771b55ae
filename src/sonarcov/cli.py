"""sonarcov CLI — top-level command group."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler

from sonarcov import __version__
from sonarcov.config import load_config, validate_config
from sonarcov.coverage.istanbul import CoverageLoadError, find_coverage_file, load_coverage_file
from sonarcov.reporters.base import create_report, list_report_types
from sonarcov.reporters.sonar import SonarReport
from sonarcov.reporters.terminal import reporter
from sonarcov.utils.file_writer import ReportWriteError

logger = logging.getLogger(__name__)
console = Console()

_PACKAGE_LOGGER = "sonarcov"


def _configure_logging(level: str) -> None:
    """Route package logs through a rich handler on stderr."""
    package_logger = logging.getLogger(_PACKAGE_LOGGER)
    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        handler = RichHandler(console=Console(stderr=True), show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        package_logger.addHandler(handler)
    package_logger.setLevel(level)


def _config_to_dict(config: Any) -> dict[str, Any]:
    """Convert SonarcovConfig to dictionary for display."""
    result = asdict(config)
    result.pop("raw", None)
    return result


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="sonarcov")
@click.pass_context
def cli(ctx: click.Context, *, verbose: bool) -> None:
    """sonarcov — Istanbul coverage to SonarQube generic coverage XML."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _configure_logging("DEBUG" if verbose else "WARNING")


@cli.command()
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
@click.option(
    "--coverage-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Istanbul JSON coverage file (default: input.coverage_file from config).",
)
@click.option(
    "--dir",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output directory (default: project root).",
)
@click.option("--file", "output_file", default=None, help="Output file name.")
@click.option("--async", "use_async", is_flag=True, help="Write on the background writer.")
@click.option("--summary", is_flag=True, help="Print a per-package coverage table.")
@click.pass_context
def report(
    ctx: click.Context,
    path: str,
    coverage_file: Path | None,
    output_dir: Path | None,
    output_file: str | None,
    *,
    use_async: bool,
    summary: bool,
) -> None:
    """Write a SonarQube generic coverage report from Istanbul coverage.

    Example:
      sonarcov report
      sonarcov report --coverage-file coverage/coverage-final.json --dir build
    """
    try:
        config = load_config(path)
    except yaml.YAMLError as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    errors = validate_config(config)
    if errors:
        for error in errors:
            reporter.print_error(error)
        raise click.Abort

    if not ctx.obj.get("verbose"):
        _configure_logging(config.logging.level)

    coverage_path = coverage_file or config.coverage_path
    if coverage_file is None and not coverage_path.is_file():
        fallback = find_coverage_file(Path(config.project.root))
        if fallback is not None:
            reporter.print_warning(f"Coverage file not found, using {fallback}")
            coverage_path = fallback

    try:
        collector = load_coverage_file(coverage_path)
    except CoverageLoadError as e:
        reporter.print_error(str(e))
        raise click.Abort from e

    logger.debug("Loaded %d file(s) from %s", len(collector), coverage_path)
    if len(collector) == 0:
        reporter.print_info(f"No file coverage in {coverage_path}, writing an empty report")

    sonar = SonarReport(
        output_dir=output_dir or config.output_dir,
        output_file=output_file or config.report.file,
        project_root=config.project.root,
    )

    try:
        if config.report.sync and not use_async:
            written = sonar.write_report(collector)
        else:
            written = sonar.write_report_async(collector).result()
    except ReportWriteError as e:
        reporter.print_error(str(e))
        raise click.Abort from e

    reporter.print_success(f"Wrote coverage for {len(collector)} file(s) to {written}")

    if summary:
        reporter.print_package_summary(sonar.build_tree(collector))


@cli.command("types")
def report_types() -> None:
    """List available report types."""
    for report_type in list_report_types():
        console.print(f"[bold]{report_type}[/bold]  {create_report(report_type).synopsis()}")


@cli.group("config")
def config_group() -> None:
    """Inspect `.sonarcov.yml` configuration."""


@config_group.command("show")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
@click.option(
    "--json-output",
    "as_json",
    is_flag=True,
    help="Output as JSON instead of YAML.",
)
def config_show(path: str, *, as_json: bool) -> None:
    """Display the resolved configuration."""
    try:
        config = load_config(path)
    except yaml.YAMLError as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    config_dict = _config_to_dict(config)
    if as_json:
        click.echo(json.dumps(config_dict, indent=2))
    else:
        click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
def config_validate(path: str) -> None:
    """Validate `.sonarcov.yml` configuration."""
    try:
        config = load_config(path)
    except yaml.YAMLError as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    errors = validate_config(config)
    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{error}[/red]")
    raise click.Abort


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
