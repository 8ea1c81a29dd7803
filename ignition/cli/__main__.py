"""Ignition CLI - Main Entry Point.

The `ign` command boots dependency-driven service graphs.

Commands:
    run      - Start every service and keep them running until interrupted
    validate - Static validation of a service configuration
    graph    - Print the dependency graph in DOT format
"""

import asyncio
import logging
import sys
from typing import Optional

import click

from . import __version__, __cli_name__
from ..config import ConfigLoader, IgnitionConfig
from ..faults import Fault
from ..graph import DependencyGraph
from .utils.colors import (
    success, error, info, dim,
    banner, section, kv, bullet,
    _CHECK, _CROSS,
)


# ═══════════════════════════════════════════════════════════════════════════
# Custom Click help formatter
# ═══════════════════════════════════════════════════════════════════════════


class IgnitionGroup(click.Group):
    """Click group subclass with branded help output."""

    def format_help(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Override to add Ignition branding to the top-level help."""
        if ctx.parent is None:
            banner("Ignition", subtitle=f"v{__version__}  {_CHECK}  dependency-driven service boot")
            click.echo()

        super().format_help(ctx, formatter)


@click.group(cls=IgnitionGroup)
@click.version_option(version=__version__, prog_name=__cli_name__)
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.option('--quiet', '-q', is_flag=True, help='Minimal output')
@click.pass_context
def cli(ctx, verbose: bool, quiet: bool):
    """Boot a graph of interdependent services.

    \b
    Quick start:
      ign validate services.yaml
      ign graph services.yaml | dot -Tsvg > services.svg
      ign run services.yaml
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet

    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(level=level, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')


def _load_config(
    config_path: str,
    env_file: Optional[str] = None,
    overrides: Optional[dict] = None,
) -> IgnitionConfig:
    try:
        return ConfigLoader.load(config_path, env_file=env_file, overrides=overrides)
    except Fault as e:
        error(f"  {_CROSS} {e.message}")
        sys.exit(1)


# ============================================================================
# Commands
# ============================================================================

@cli.command('run')
@click.argument('config_path', type=click.Path(dir_okay=False))
@click.option('--env-file', type=click.Path(dir_okay=False), help='Load IGN_* settings from a .env file')
@click.option('--base-path', type=str, help='Directory relative service paths resolve against')
@click.option('--startup-timeout', type=int, help='Per-service startup timeout (ms)')
@click.option('--shutdown-timeout', type=int, help='Global shutdown timeout (ms)')
@click.option('--once', is_flag=True, help='Shut down right after a successful start')
@click.pass_context
def run(
    ctx,
    config_path: str,
    env_file: Optional[str],
    base_path: Optional[str],
    startup_timeout: Optional[int],
    shutdown_timeout: Optional[int],
    once: bool,
):
    """
    Start every service and keep them running.

    Examples:
      ign run services.yaml
      ign run services.yaml --startup-timeout=10000
      ign run services.yaml --once
    """
    from .commands.run import run_services

    overrides = {
        key: value
        for key, value in (
            ("base_path", base_path),
            ("startup_timeout", startup_timeout),
            ("shutdown_timeout", shutdown_timeout),
        )
        if value is not None
    }
    config = _load_config(config_path, env_file, overrides)
    quiet = ctx.obj['quiet']

    def on_started(resolved):
        if quiet:
            return
        click.echo()
        success(f"  {_CHECK} {len(resolved)} services started")
        for name in resolved:
            bullet(name)
        if not once:
            dim("  Press Ctrl+C to stop")

    try:
        asyncio.run(run_services(config, once=once, on_started=on_started))
    except Fault as e:
        error(f"  {_CROSS} {e}")
        sys.exit(1)
    except Exception as e:
        error(f"  {_CROSS} {type(e).__name__}: {e}")
        sys.exit(1)

    if not quiet:
        success(f"  {_CHECK} Services stopped")


@cli.command('validate')
@click.argument('config_path', type=click.Path(dir_okay=False))
@click.option('--env-file', type=click.Path(dir_okay=False), help='Load IGN_* settings from a .env file')
@click.pass_context
def validate(ctx, config_path: str, env_file: Optional[str]):
    """
    Validate a service configuration without running it.

    Examples:
      ign validate services.yaml
    """
    from .commands.validate import validate_config

    config = _load_config(config_path, env_file)
    result = validate_config(config)

    if result.is_valid:
        if not ctx.obj['quiet']:
            success(f"  {_CHECK} Validation passed")
            kv("Services", str(result.service_count))
            kv("Ignored", str(result.ignored_count))
            kv("Startup timeout", f"{config.startup_timeout}ms")
            kv("Shutdown timeout", f"{config.shutdown_timeout}ms")
            if ctx.obj['verbose']:
                click.echo()
                section("Startup rounds")
                for index, layer in enumerate(result.layers, 1):
                    kv(f"Round {index}", ", ".join(layer))
    else:
        error(f"  {_CROSS} Validation failed")
        for fault in result.faults:
            bullet(fault, fg="red")
        sys.exit(1)


@cli.command('graph')
@click.argument('config_path', type=click.Path(dir_okay=False))
@click.option('--order', is_flag=True, help='Print dependency-first start order instead of DOT')
def graph(config_path: str, order: bool):
    """
    Print the service dependency graph.

    Examples:
      ign graph services.yaml
      ign graph services.yaml --order
    """
    config = _load_config(config_path)

    try:
        dependency_graph = DependencyGraph.from_services(config.services)
        if order:
            for name in dependency_graph.topological_sort():
                click.echo(name)
        else:
            click.echo(dependency_graph.to_dot())
    except Fault as e:
        error(f"  {_CROSS} {e.message}")
        sys.exit(1)


def main():
    """Main entry point."""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        info("\nInterrupted")
        sys.exit(130)


if __name__ == '__main__':
    main()
