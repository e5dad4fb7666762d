"""faultline CLI - Main Entry Point.

Commands:
    run        - Run a Python script with fault hooks installed
    severities - List severity codes and their categories
    trace      - Print a reconstructed trace of the current stack
    version    - Show version information
"""

import runpy
import sys
from typing import Optional

import click

from . import __version__, __cli_name__
from .utils import success, error, dim, kv, table
from ..config import ConfigError, load_config
from ..core import Severity, severity_name
from ..hooks import bootstrap
from ..trace import reconstruct


@click.group()
@click.version_option(version=__version__, prog_name=__cli_name__)
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.pass_context
def cli(ctx, verbose: bool):
    """Intercept and dispatch runtime faults."""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose


@cli.command(context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.argument('script', type=click.Path(exists=True, dir_okay=False))
@click.argument('args', nargs=-1, type=click.UNPROCESSED)
@click.option('--display/--no-display', default=None, help='Display faults on stdout')
@click.option('--log', 'log_faults', is_flag=True, default=None, help='Log faults through logging')
@click.option('--reporting', type=str, help='Severity mask escalated to exceptions (e.g. "WARNING|NOTICE")')
@click.option('--config', 'config_paths', multiple=True, help='YAML/JSON config file')
@click.option('--env-file', type=str, help='.env file with FAULTLINE_* settings')
@click.pass_context
def run(
    ctx,
    script: str,
    args: tuple,
    display: Optional[bool],
    log_faults: Optional[bool],
    reporting: Optional[str],
    config_paths: tuple,
    env_file: Optional[str],
):
    """
    Run a Python script with fault hooks installed.

    Examples:
      faultline run app.py
      faultline run --display --reporting "ALL" app.py --port 8000
    """
    overrides = {}
    if display is not None:
        overrides['display_errors'] = display
    if log_faults:
        overrides['log_faults'] = True
    if reporting is not None:
        overrides['error_reporting'] = reporting

    try:
        config = load_config(list(config_paths), env_file, overrides)
    except ConfigError as e:
        error(f"Invalid configuration: {e}")
        sys.exit(2)

    if ctx.obj.get('verbose'):
        for key, value in config.to_dict().items():
            kv(key, value)

    hooks = bootstrap(config)
    saved_argv = sys.argv
    sys.argv = [script, *args]
    try:
        runpy.run_path(script, run_name='__main__')
    except Exception as e:
        hooks.excepthook(type(e), e, e.__traceback__)
        sys.exit(1)
    finally:
        sys.argv = saved_argv
        # The script is over: report what it left behind, then restore hooks.
        hooks.dispatcher.catch_shutdown()
        hooks.uninstall()


@cli.command()
def severities():
    """List severity codes and their categories."""
    rows = [
        (str(int(member)), member.name, severity_name(member))
        for member in Severity
    ]
    table(["Code", "Name", "Category"], rows)


@cli.command()
@click.option('--start', type=int, default=1, help='Number of the first frame')
def trace(start: int):
    """Print a reconstructed trace of the current stack."""
    click.echo(reconstruct(start), nl=False)


@cli.command()
def version():
    """Show version information."""
    success(f"{__cli_name__} {__version__}")
    dim(f"Python {sys.version.split()[0]}")


def main():
    """Entry point for `faultline` command."""
    cli(obj={})


if __name__ == '__main__':
    main()
