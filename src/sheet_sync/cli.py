"""sheet-sync command line interface."""

from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

import click

from sheet_sync.config import settings, validate_settings_on_startup
from sheet_sync.services.conversion import json_to_xlsx, xlsx_to_json
from sheet_sync.services.inspector import inspect_workbook, render_report
from sheet_sync.services.workspace import Workspace, base_name
from sheet_sync.utils.exceptions import SheetSyncError
from sheet_sync.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

DEFAULT_DATASET = "店铺数据统计"

_root_option = click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Project root holding data/, render-template/ and render-data/.",
)


@contextmanager
def _reporting_errors() -> Generator[None, None, None]:
    """Turn package errors into a one-line message and an exit status."""
    try:
        yield
    except SheetSyncError as e:
        if settings.debug:
            logger.exception("Command failed", error_code=e.error_code.value)
        click.echo(str(e), err=True)
        for message in e.details.get("validation_errors", []):
            click.echo(f"  - {message}", err=True)
        raise click.exceptions.Exit(e.get_exit_status()) from e


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Override SHEETSYNC_LOG_LEVEL.",
)
def cli(log_level: str | None) -> None:
    """Keep JSON sheet datasets and spreadsheet workbooks in sync."""
    configure_logging(log_level or settings.log_level)
    validate_settings_on_startup(settings)


@cli.command("to-xlsx")
@click.argument("name", required=False)
@click.option("--all", "all_datasets", is_flag=True, help="Convert every dataset.")
@_root_option
def to_xlsx(name: str | None, all_datasets: bool, root: Path) -> None:
    """Generate render-template/NAME-模板.xlsx from data/NAME.json."""
    workspace = Workspace.from_settings(root)
    names = workspace.list_datasets() if all_datasets else [name or DEFAULT_DATASET]
    if not names:
        click.echo(f"No datasets found in {workspace.data_dir}", err=True)
        raise click.exceptions.Exit(1)
    with _reporting_errors():
        for dataset_name in names:
            output = json_to_xlsx(
                workspace.json_path(dataset_name),
                workspace.template_path(dataset_name),
            )
            click.echo(f"Generated: {output}")


@cli.command("to-json")
@click.argument("file_name", required=False)
@_root_option
def to_json(file_name: str | None, root: Path) -> None:
    """Read render-data/FILE into data/BASE.json, backing up the old file."""
    workspace = Workspace.from_settings(root)
    file_name = file_name or f"{DEFAULT_DATASET}.xlsx"
    with _reporting_errors():
        output = xlsx_to_json(
            workspace.render_data_path(file_name),
            workspace.json_path(base_name(file_name)),
            backup_dir=workspace.backup_dir,
        )
    click.echo(f"Generated: {output}")


@cli.command("inspect")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--rows", default=2, show_default=True, help="Data rows to preview.")
def inspect(path: Path, rows: int) -> None:
    """Print ranges, headers, first rows and formula columns of a workbook."""
    with _reporting_errors():
        reports = inspect_workbook(path, preview_rows=rows)
    click.echo(f"Workbook: {path}")
    click.echo(render_report(reports))


def main() -> None:
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
