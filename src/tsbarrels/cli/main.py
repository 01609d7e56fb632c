"""
ts-barrels CLI

Command-line interface for generating TypeScript barrel files.

Usage::

    ts-barrels ./src/components           # barrel for one directory
    ts-barrels ./src --all                # every directory, leaves first
    ts-barrels ./src --all --force        # overwrite existing barrels
    ts-barrels ./src --name barrel.ts     # custom barrel filename
    ts-barrels-mcp                        # start the MCP server

Exit codes: 0 success, 1 some directory or module failed, 2 fatal error
(missing or unreadable target, unwritable root, bad configuration), 130 interrupted.
"""

import json
import logging
from pathlib import Path

import click

from tsbarrels.core.config import BarrelConfig
from tsbarrels.core.generator import GenerationOptions, GenerationPipeline
from tsbarrels.exceptions import ConfigError, NotFoundError, ScanPermissionError, WriteError

EXIT_FATAL = 2
EXIT_INTERRUPTED = 130


# ---------------------------------------------------------------------------
# Logging helpers
# ---------------------------------------------------------------------------

def _configure_logging(verbose: bool, config: BarrelConfig) -> None:
    """Set up logging for the CLI session."""
    level = logging.DEBUG if verbose else getattr(logging, config.log_level, logging.WARNING)
    logging.basicConfig(level=level, format=config.log_format)


# ---------------------------------------------------------------------------
# ts-barrels
# ---------------------------------------------------------------------------

@click.command()
@click.version_option(package_name="ts-barrels")
@click.argument("target", type=click.Path(path_type=Path))
@click.option("--all", "recursive", is_flag=True,
              help="Generate barrels recursively, from the deepest directories up.")
@click.option("--force", is_flag=True,
              help="Overwrite existing barrel files unconditionally.")
@click.option("--name", "barrel_name", default=None,
              help="Barrel filename (default: $TS_BARRELS_NAME or 'index.ts').")
@click.option("--dry-run", is_flag=True, help="Compute barrels without writing them.")
@click.option("-e", "--exclude", multiple=True, metavar="PATTERN",
              help="Extra glob pattern of module files to leave out (repeatable).")
@click.option("-j", "--jobs", type=click.IntRange(min=1), default=None,
              help="Worker threads for sibling directories.")
@click.option("--fail-fast", is_flag=True, help="Stop after the first failure.")
@click.option("--progress", is_flag=True, help="Show a progress bar.")
@click.option("-f", "--format", "fmt", type=click.Choice(["text", "json"]),
              default="text", help="Summary format.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(target: Path, recursive: bool, force: bool, barrel_name: str | None,
        dry_run: bool, exclude: tuple, jobs: int | None, fail_fast: bool,
        progress: bool, fmt: str, verbose: bool):
    """Generate TypeScript barrel files (index.ts re-exports) in TARGET."""
    try:
        config = BarrelConfig.from_env()
        config = config.with_overrides(
            exclude_patterns=config.exclude_patterns | frozenset(exclude) if exclude else None,
        )
        options = GenerationOptions(
            recursive=recursive,
            force=force,
            barrel_name=barrel_name,
            dry_run=dry_run,
            fail_fast=fail_fast,
            jobs=jobs,
        )
        pipeline = GenerationPipeline(
            root_dir=target.resolve(),
            options=options,
            config=config,
            show_progress=progress,
        )
        pipeline.config.validate()
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(EXIT_FATAL)

    _configure_logging(verbose, pipeline.config)

    try:
        result = pipeline.run()
    except (NotFoundError, ScanPermissionError) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(EXIT_FATAL)
    except WriteError as exc:
        if exc.result is not None:
            _echo_result(exc.result, fmt)
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(EXIT_FATAL)
    except KeyboardInterrupt:
        click.echo("\nInterrupted. Barrels already written are complete.", err=True)
        raise SystemExit(EXIT_INTERRUPTED)

    _echo_result(result, fmt)
    if result.exit_code:
        raise SystemExit(result.exit_code)


# ---------------------------------------------------------------------------
# ts-barrels-mcp
# ---------------------------------------------------------------------------

@click.command()
@click.option("--transport", type=click.Choice(["stdio", "sse", "streamable-http"]),
              default="stdio", help="MCP transport (default: stdio).")
@click.option("-v", "--verbose", is_flag=True)
def mcp(transport: str, verbose: bool):
    """Start the ts-barrels MCP server for agent integration."""
    config = BarrelConfig.from_env()
    _configure_logging(verbose, config)
    try:
        from tsbarrels.mcp.server import create_server  # noqa: E402
    except ImportError:
        click.echo(
            "Error: MCP dependencies not installed.\n"
            "Install with:  pip install 'ts-barrels[mcp]'",
            err=True,
        )
        raise SystemExit(1)

    server = create_server(config)
    server.run(transport=transport)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _echo_result(result, fmt: str) -> None:
    if fmt == "json":
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        click.echo(result.summary())


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cli()
