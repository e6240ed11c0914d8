#!/usr/bin/env python3
"""
Mapbox Choropleth Examples with Click CLI

This script runs the choropleth examples with the ability to override
configuration values via command line arguments, eliminating the need for
manual config.yaml editing.

Usage:
    choropleth-examples [OPTIONS] [COMMAND]

    # Run every example:
    choropleth-examples

    # Run selected examples and open them in a browser:
    choropleth-examples run county-unemployment montreal-election --show

    # Override config values:
    choropleth-examples --config maps.counties.zoom=4 run county-unemployment

    # Verbose logging:
    choropleth-examples --verbose
"""

import os
import sys
from typing import Any, Tuple

import click
import requests
from loguru import logger

from analysis.examples import EXAMPLES, run_examples
from ops.config_loader import Config


class ConfigOverride(click.ParamType):
    """Custom parameter type for config overrides."""

    name = "config_override"

    def convert(self, value, param, ctx) -> Tuple[str, Any]:
        if isinstance(value, tuple):
            return value
        if "=" not in value:
            self.fail(f"Invalid format: {value}. Use KEY=VALUE", param, ctx)

        key, val = value.split("=", 1)

        # Auto-parse value type
        if val.lower() in ("true", "false"):
            parsed_val: Any = val.lower() == "true"
        else:
            try:
                parsed_val = int(val)
            except ValueError:
                try:
                    parsed_val = float(val)
                except ValueError:
                    parsed_val = val

        return key, parsed_val


def setup_logging(verbose: bool = False, enable_trace: bool = False) -> None:
    """
    Configure loguru logging with appropriate levels.

    Args:
        verbose: If True, set log level to DEBUG
        enable_trace: If True, enable TRACE level logging for deep debugging
    """
    # Remove default logger
    logger.remove()

    # Determine log level
    if enable_trace:
        log_level = "TRACE"
        log_format = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>"
    elif verbose:
        log_level = "DEBUG"
        log_format = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>"
    else:
        log_level = "INFO"
        log_format = (
            "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
        )

    logger.add(
        sys.stderr,
        format=log_format,
        level=log_level,
        colorize=True,
        backtrace=enable_trace,
        diagnose=enable_trace,
    )

    if verbose:
        logger.debug("🔧 Verbose logging enabled (DEBUG level)")
    if enable_trace:
        logger.trace("🔍 Trace logging enabled - maximum detail mode")


@click.group(invoke_without_command=True)
@click.option(
    "--config-file",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to config.yaml (defaults to the bundled configuration)",
)
@click.option(
    "--config",
    "config_overrides",
    multiple=True,
    type=ConfigOverride(),
    help="Set config values using dot notation (e.g., maps.counties.zoom=4)",
)
@click.option("--output-dir", type=click.Path(file_okay=False), help="Override HTML output directory")
@click.option("--token-file", type=click.Path(dir_okay=False), help="Override mapbox token file")
@click.option("-v", "--verbose", is_flag=True, help="Enable DEBUG level logging")
@click.option(
    "--trace", is_flag=True, help="Enable TRACE level logging for deep debugging (maximum detail)"
)
@click.option("--log-file", type=str, help="Also log to specified file")
@click.pass_context
def cli(ctx, **kwargs):
    """
    Mapbox Choropleth Examples

    Fetch public datasets and render them as plotly choropleth maps on
    mapbox base layers. Without a command, every example is run.

    \b
    Examples:
      choropleth-examples list                                   # Show available examples
      choropleth-examples run county-unemployment --show         # Build and open one map
      choropleth-examples --output-dir maps                      # Write HTML to ./maps
      choropleth-examples --token-file ~/.mapbox_token           # Token for mapbox styles
      choropleth-examples --config maps.election.zoom=10         # Override any config value
    """
    setup_logging(verbose=kwargs.get("verbose", False), enable_trace=kwargs.get("trace", False))

    if kwargs.get("log_file"):
        log_level = (
            "TRACE" if kwargs.get("trace") else ("DEBUG" if kwargs.get("verbose") else "INFO")
        )
        logger.add(
            kwargs["log_file"],
            level=log_level,
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}",
            rotation="10 MB",
            retention="7 days",
        )
        logger.info(f"📄 Also logging to file: {kwargs['log_file']}")

    logger.debug(f"🔧 CLI arguments received: {kwargs}")

    try:
        config = Config(kwargs.get("config_file"))
    except Exception as e:
        logger.critical(f"Configuration error: {e}")
        logger.info("💡 Make sure config.yaml exists and is valid")
        ctx.exit(1)

    if kwargs.get("output_dir"):
        config.set("directories.html", os.path.abspath(kwargs["output_dir"]))
    if kwargs.get("token_file"):
        config.set("mapbox.token_file", os.path.abspath(kwargs["token_file"]))
    for key, value in kwargs["config_overrides"]:
        config.set(key, value)

    config.print_config_summary()
    ctx.obj = config

    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


@cli.command("list")
def list_examples():
    """List available examples."""
    for name, fn in EXAMPLES.items():
        summary = (fn.__doc__ or "").strip().splitlines()
        click.echo(f"{name:<32} {summary[0] if summary else ''}")


@cli.command()
@click.argument("names", nargs=-1, type=click.Choice(list(EXAMPLES)))
@click.option("--show", is_flag=True, help="Open each figure after writing it")
@click.pass_context
def run(ctx, names=(), show=False):
    """Run the named examples (all when none are given)."""
    config = ctx.obj
    names = list(names) or list(EXAMPLES)

    logger.info(f"🗺️ Mapbox Choropleth Examples: {config.get('project_name')}")
    logger.info(f"📋 Running {len(names)} example(s)")

    with requests.Session() as session:
        results = run_examples(names, config, show=show, session=session)

    failed = [name for name, path in results.items() if path is None]
    for name, path in results.items():
        if path is not None:
            logger.info(f"   📄 {name}: {path}")

    if failed:
        logger.error(f"❌ {len(failed)} of {len(results)} example(s) failed: {', '.join(failed)}")
        ctx.exit(1)

    logger.success(f"✅ All {len(results)} example(s) completed")


def main():
    cli()


if __name__ == "__main__":
    main()
