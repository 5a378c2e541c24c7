"""
Suite running commands.
"""

import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from jasper.cli.utils import display_table, handle_error, load_runners, pass_settings
from jasper.core.config import Settings


def _save_path(save: Optional[Path], test_file: Path, index: int, many: bool) -> Optional[Path]:
    """xUnit file for one runner; several runners get one file each."""
    if save is None or not many:
        return save
    suffix = f"-{test_file.stem}" + (f"-{index}" if index else "")
    return save.with_name(f"{save.stem}{suffix}{save.suffix}")


@click.command("run")
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--teamcity/--no-teamcity", default=None,
              help="Emit TeamCity service messages (overrides settings)")
@click.option("--screenshots-dir", type=click.Path(file_okay=False, path_type=Path),
              help="Directory for screenshots and HTML dumps")
@click.option("--save", type=click.Path(dir_okay=False, path_type=Path),
              help="Write xUnit results to this file")
@click.option("--url", help="Page to open before the first describe block")
@click.option("--headless/--no-headless", default=None,
              help="Run in headless mode (overrides settings)")
@pass_settings
@handle_error
def run_command(
    settings: Settings,
    files: Tuple[Path, ...],
    teamcity: Optional[bool],
    screenshots_dir: Optional[Path],
    save: Optional[Path],
    url: Optional[str],
    headless: Optional[bool],
):
    """Run the suites defined in FILES."""
    if teamcity is not None:
        settings.teamcity = teamcity
    if screenshots_dir:
        settings.screenshots_dir = screenshots_dir
    if save:
        settings.save = save
    if url:
        settings.start_url = url
    if headless is not None:
        settings.browser.headless = headless

    loaded = [(path, load_runners(path)) for path in files]
    many = sum(len(runners) for _, runners in loaded) > 1

    exit_code = 0
    for path, runners in loaded:
        for index, runner in enumerate(runners):
            runner_settings = settings.model_copy(update={
                "save": _save_path(settings.save, path, index, many)
            })
            runner.configure(runner_settings)
            click.secho(f"Running {path}", bold=True)
            exit_code = max(exit_code, runner.execute())

    sys.exit(exit_code)


@click.command("list")
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@handle_error
def list_command(files: Tuple[Path, ...]):
    """List the suites defined in FILES without running them."""
    table_data = []
    for path in files:
        for runner in load_runners(path):
            for suite in runner.suites:
                table_data.append([str(path), suite.description, suite.kind.value])

    if not table_data:
        click.echo("No suites found.")
        return

    display_table(table_data, ["File", "Suite", "Kind"])
