"""
elfshrink CLI
==============

Click-based command-line interface for the ELF footprint reducer.

Usage::

    # Truncate in place
    elfshrink ./a.out libfoo.so

    # Also drop trailing zero bytes
    elfshrink -z ./a.out

    # Keep the original, write the reduced file elsewhere
    elfshrink -z ./a.out -o ./a.small

    # Machine-readable summary
    elfshrink --json ./a.out

References:
    - Click documentation: https://click.palletsprojects.com/
"""

from __future__ import annotations

import json
import sys

import click

from shared.config import ShrinkConfig
from shared.console import ShrinkConsole
from shared.logger import ShrinkLogger

from shrink import __version__
from shrink.core.engine import ShrinkEngine
from shrink.output.console import ShrinkConsoleOutput


def _load_config(config_path: str | None) -> ShrinkConfig:
    if config_path is not None:
        try:
            return ShrinkConfig.load(config_path)
        except (OSError, ValueError) as exc:
            raise click.BadParameter(str(exc), param_hint="'--config'") from exc
    try:
        return ShrinkConfig.load()
    except (OSError, ValueError):
        return ShrinkConfig()


@click.command("elfshrink")
@click.argument("files", nargs=-1, type=click.Path(dir_okay=False))
@click.option(
    "--zeros", "-z",
    "strip_zeros",
    is_flag=True,
    default=False,
    help="Also discard trailing zero bytes.",
)
@click.option(
    "--output", "-o",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Save the reduced result to a new file, keeping the original intact.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable verbose/debug output.",
)
@click.option(
    "--json", "json_output",
    is_flag=True,
    default=False,
    help="Print results as JSON to stdout.",
)
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to a TOML configuration file.",
)
@click.version_option(__version__, prog_name="elfshrink")
@click.pass_context
def shrink_cli(
    ctx: click.Context,
    files: tuple[str, ...],
    strip_zeros: bool,
    output_path: str | None,
    verbose: bool,
    json_output: bool,
    config_path: str | None,
) -> None:
    """Remove nonessential bytes from ELF executables and shared objects.

    Each FILE is truncated to the smallest length that still holds its
    ELF header, program header table and every segment the loader maps.
    Section headers that fall past the new end are dropped.

    Examples:

    \b
        elfshrink -z /tmp/hello
        elfshrink /tmp/hello -o /tmp/hello.small
    """
    if not files:
        click.echo(ctx.get_help())
        ctx.exit(0)

    if output_path is not None and len(files) > 1:
        raise click.UsageError(
            "-o/--output option can only be used with a single input file"
        )

    config = _load_config(config_path)
    settings = config.global_settings

    logger = ShrinkLogger(
        "engine",
        log_level="DEBUG" if verbose else settings.log_level,
        log_file=settings.log_file or None,
        json_logs=settings.log_json,
        color=settings.color,
    )
    engine = ShrinkEngine(config=config, logger=logger)

    # An absent flag falls back to the configured default
    summary = engine.strip_many(
        files, strip_zeros=strip_zeros or None, output_path=output_path
    )

    if json_output:
        click.echo(json.dumps(summary.to_report(), indent=2))
    else:
        console = ShrinkConsole(color=settings.color)
        ShrinkConsoleOutput(console=console).display(summary)

    sys.exit(0 if summary.ok else 1)


# ---------------------------------------------------------------------------
# Module entry point
# ---------------------------------------------------------------------------

def main() -> None:
    """Entry point for the ``elfshrink`` script and ``python -m shrink``."""
    shrink_cli()


if __name__ == "__main__":
    main()
