"""
Command-line interface for Jasper.
"""

import logging
import sys
from pathlib import Path

import click

from jasper import __version__
from jasper.cli.run import list_command, run_command
from jasper.cli.utils import format_dict, handle_error, pass_settings
from jasper.core.config import LogLevel, Settings
from jasper.core.logging import setup_logging

logger = logging.getLogger(__name__)


@click.group(context_settings=dict(help_option_names=['-h', '--help']))
@click.version_option(__version__, prog_name="jasper")
@click.option(
    '--debug/--no-debug',
    default=False,
    help='Enable debug mode with verbose logging.',
)
@click.option(
    '--config', '-c',
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    help='Path to configuration file.',
)
@click.pass_context
def cli(ctx, debug, config):
    """Jasper - describe-style remote dependency tests for the browser."""
    if isinstance(ctx.obj, Settings):
        return

    try:
        settings = Settings(config_file=config)
    except Exception as e:
        click.echo(f"Initialization error: {str(e)}", err=True)
        sys.exit(1)

    if debug:
        settings.logging.level = LogLevel.DEBUG

    setup_logging(settings)
    ctx.obj = settings


cli.add_command(run_command)
cli.add_command(list_command)


@cli.command()
@pass_settings
@handle_error
def config(settings):
    """Show current configuration."""
    click.echo("\nCurrent Configuration:")
    click.echo("-" * 50)

    for line in format_dict(settings.model_dump(mode="json")):
        click.echo(line)


def main():
    """Entry point for the CLI."""
    cli(prog_name="jasper")


if __name__ == "__main__":
    main()
