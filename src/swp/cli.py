"""Command line interface for swp."""

from __future__ import annotations

import difflib
import re
import sys
from pathlib import Path
from typing import Any, List

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from swp.config import ConfigError, ConfigManager, SwpConfig, resolve_with_precedence
from swp.logging_setup import configure_logging
from swp.plugins.errors import CleanupError, ConfigurationError, PluginError, ScanError
from swp.plugins.large_files import plugin_from_settings
from swp.plugins.models import ScanResult
from swp.plugins.ui import RISK_STYLES
from swp.plugins.utils import format_size

console = Console()

_PLUGIN_ERROR_CODES = {
    ConfigurationError: "configuration_error",
    ScanError: "scan_error",
    CleanupError: "cleanup_error",
}


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Conditionally print CLI output according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """

    if quiet and mode != "error":
        return

    important_modes = {"summary", "warning", "error"}
    if summary_only and mode not in important_modes:
        return

    console.print(message)


def _format_summary_line(command: str, roots: List[Path], metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands."""

    formatted_roots = ", ".join(str(root) for root in roots)
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {formatted_roots}: {parts}.[/green]"


def _results_table(results: List[ScanResult]) -> Table:
    table = Table(title="Large files", expand=True)
    table.add_column("Risk", no_wrap=True)
    table.add_column("Size", justify="right", no_wrap=True)
    table.add_column("Path", overflow="fold")
    table.add_column("Details")
    for result in results:
        table.add_row(
            Text(result.risk_level.label, style=RISK_STYLES[result.risk_level]),
            format_size(result.size),
            str(result.path),
            result.description,
        )
    return table


def _cli_overrides(**values: Any) -> dict[str, Any]:
    return {f"large_files.{key}": value for key, value in values.items() if value is not None}


def _commandline_flag(ctx: click.Context, name: str, value: bool) -> bool | None:
    """Return ``value`` only when the flag was given explicitly, so config defaults apply."""
    if ctx.get_parameter_source(name) == ParameterSource.COMMANDLINE:
        return value
    return None


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="swp")
def cli() -> None:
    """swp finds large files, rates how risky they are to delete, and cleans them up.

    Returns:
        None: This function is invoked for its side effects.
    """


@cli.command("large-files")
@click.argument("paths", nargs=-1, type=click.Path(exists=True, path_type=str))
@click.option("--size-threshold", type=str, help="Minimum file size, e.g. 100MB or 1.5GB.")
@click.option(
    "--older-than",
    "older_than",
    type=click.IntRange(min=0),
    help="Only report files not accessed for more than DAYS days.",
)
@click.option(
    "--include-git-tracked",
    is_flag=True,
    help="Also report git-tracked and protected files.",
)
@click.option("--enhanced", is_flag=True, help="Show the riskiest files first.")
@click.option("--ignore", "ignore_pattern", type=str, help="Drop results whose path matches REGEX.")
@click.option("--workers", type=click.IntRange(min=1), help="Number of scanner threads.")
@click.option("--dry-run", is_flag=True, help="Report what would be deleted without deleting.")
@click.option("-f", "--force", is_flag=True, help="Skip the final confirmation prompt.")
@click.option("--json", "json_output", is_flag=True, help="Emit scan results as JSON.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def large_files(
    ctx: click.Context,
    paths: tuple[str, ...],
    size_threshold: str | None,
    older_than: int | None,
    include_git_tracked: bool,
    enhanced: bool,
    ignore_pattern: str | None,
    workers: int | None,
    dry_run: bool,
    force: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Find large files under PATHS, pick some interactively, and delete them.

    Args:
        ctx: Click context used for parameter source inspection.
        paths: Directories (or files) to scan; defaults to the current directory.
        size_threshold: Minimum size override.
        older_than: Minimum days since last access.
        include_git_tracked: Whether git-tracked and protected files are reported.
        enhanced: Whether results are ordered by risk first.
        ignore_pattern: Regular expression excluding matching paths.
        workers: Scanner thread count.
        dry_run: If True, skip making filesystem mutations.
        force: If True, do not ask for confirmation before deleting.
        json_output: If True, emit JSON describing scan results and exit.
        summary_mode: When True, limit output to summary lines and warnings.
        quiet: When True, suppress non-error CLI output entirely.

    Raises:
        click.ClickException: If configuration, scanning, or cleanup fails.
    """

    json_enabled = json_output
    try:
        manager = ConfigManager()
        config = manager.load(
            cli_overrides=_cli_overrides(
                size_threshold=size_threshold,
                older_than_days=older_than,
                include_git_tracked=_commandline_flag(ctx, "include_git_tracked", include_git_tracked),
                enhanced_sort=_commandline_flag(ctx, "enhanced", enhanced),
                max_workers=workers,
                ignore=ignore_pattern,
            )
        )
        configure_logging(config.logging)

        explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
        explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE

        quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
        summary_only = summary_mode if explicit_summary else config.cli.summary_default

        if json_output:
            if explicit_quiet and quiet_enabled:
                raise click.ClickException("--json cannot be combined with --quiet.")
            if explicit_summary and summary_only:
                raise click.ClickException("--json cannot be combined with --summary.")
            quiet_enabled = False
            summary_only = False

        if quiet_enabled and summary_only:
            raise click.ClickException(
                "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
            )

        settings = config.large_files
        plugin = plugin_from_settings(
            settings,
            show_progress=not (json_output or quiet_enabled or summary_only),
            console=console,
        )
        roots = [Path(path).expanduser().resolve() for path in (paths or (".",))]

        results: List[ScanResult] = []
        for root in roots:
            results.extend(plugin.scan(root))

        if settings.ignore:
            pattern = re.compile(settings.ignore)
            results = [result for result in results if not pattern.search(str(result.path))]

        total_size = sum(result.size for result in results)

        if json_output:
            console.print_json(
                data={
                    "plugin": {"name": plugin.name, "version": plugin.version},
                    "roots": [str(root) for root in roots],
                    "count": len(results),
                    "total_size": total_size,
                    "results": [result.to_payload() for result in results],
                }
            )
            return

        if not results:
            _emit_message(
                _format_summary_line("Large files", roots, {"found": 0}),
                mode="summary",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            return

        _emit_message(
            _results_table(results),
            mode="detail",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )

        if sys.stdin.isatty():
            selected = plugin.interactive_select(results)
        else:
            _emit_message(
                "[yellow]stdin is not a terminal; skipping interactive selection.[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            selected = []

        metrics: dict[str, Any] = {
            "found": len(results),
            "total_size": format_size(total_size),
            "selected": len(selected),
        }
        if not selected:
            _emit_message(
                _format_summary_line("Large files", roots, metrics),
                mode="summary",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            return

        selected_size = format_size(sum(result.size for result in selected))
        if not force and not dry_run:
            if not click.confirm(f"Delete {len(selected)} file(s) ({selected_size})?", default=False):
                _emit_message(
                    "[yellow]Cleanup cancelled; no files were removed.[/yellow]",
                    mode="warning",
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )
                return

        report = plugin.clean(selected, dry_run=dry_run)
        if report.errors:
            _emit_message(
                "[red]Errors encountered:[/red]",
                mode="error",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            for entry in report.errors:
                _emit_message(f"  - {entry}", mode="error", quiet=quiet_enabled, summary_only=summary_only)

        metrics.update(
            {
                "dry_run": dry_run,
                "cleaned": report.items_cleaned,
                "freed": format_size(report.space_freed),
                "errors": len(report.errors),
            }
        )
        _emit_message(
            _format_summary_line("Large files", roots, metrics),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_enabled, original=exc)
    except PluginError as exc:
        code = _PLUGIN_ERROR_CODES.get(type(exc), "plugin_error")
        _handle_cli_error(str(exc), code=code, json_output=json_enabled, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_enabled, original=exc)
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error while scanning for large files: {exc}",
            code="internal_error",
            json_output=json_enabled,
            details={"exception": type(exc).__name__},
            original=exc,
        )


@cli.group()
def config() -> None:
    """Manage swp configuration files and overrides.

    Returns:
        None: This function is invoked for its side effects.
    """


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Args:
        no_env: If True, ignore environment-derived overrides.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        config = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(config.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


def _config_lines(manager: ConfigManager) -> list[str]:
    """Return the config file lines, minus the timestamp that changes on every save."""
    return [
        line for line in manager.read_text().splitlines() if not line.startswith("# Last updated:")
    ]


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        key: Dotted path describing the configuration field to update.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    manager.ensure_exists()
    before = _config_lines(manager)

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        manager.set_value(key, parsed_value)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    after = _config_lines(manager)
    diff = list(
        difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    if not diff:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {key.strip()}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an interactive editor session.

    Raises:
        click.ClickException: If edited content is invalid or cannot be saved.
    """
    manager = ConfigManager()
    manager.ensure_exists()
    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")
    if edited is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return
    if edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc
    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        resolve_with_precedence(defaults=SwpConfig(), file_overrides=parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point.

    Returns:
        None: This function is invoked for its side effects.
    """
    cli()


if __name__ == "__main__":
    main()
