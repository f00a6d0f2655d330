"""CLI interface for cachedetect."""

from __future__ import annotations

import json
import logging
import signal
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import click

from cachedetect import __version__
from cachedetect.core.control import CancelToken
from cachedetect.core.engine import CacheEngine
from cachedetect.core.traverser import ScanRootError
from cachedetect.models.category import CacheCategory
from cachedetect.models.scan_result import ScanReport
from cachedetect.settings import Settings
from cachedetect.utils import bytes_to_human, format_elapsed

_SIZE_COLORS = {"TB": "red", "GB": "yellow", "MB": "green", "KB": "blue", "B": "magenta"}
_PROGRESS_INTERVAL = 0.1  # seconds between progress redraws


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _styled_size(size_bytes: int) -> str:
    """Human-readable size colored by its unit."""
    text = bytes_to_human(size_bytes)
    unit = text.rsplit(" ", 1)[-1]
    return click.style(text, fg=_SIZE_COLORS.get(unit, "cyan"))


@contextmanager
def _cancel_on_interrupt(token: CancelToken) -> Iterator[None]:
    """Turn Ctrl-C into a cooperative cancel for the duration of a scan.

    Only the first interrupt is intercepted; a second one reaches the
    previous handler and aborts as usual.
    """
    previous = signal.getsignal(signal.SIGINT)
    if previous is None:
        previous = signal.SIG_DFL

    def _handler(signum, frame) -> None:
        token.cancel()
        signal.signal(signal.SIGINT, previous)

    try:
        signal.signal(signal.SIGINT, _handler)
    except ValueError:
        # Not on the main thread; leave the default handler in place.
        yield
        return
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


@click.group()
@click.version_option(__version__, prog_name="cachedetect")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
@click.pass_context
def main(ctx: click.Context, verbose: int) -> None:
    """cachedetect — find and remove cache files under a directory."""
    _setup_logging(verbose)
    ctx.obj = Settings()


# ── detect ───────────────────────────────────────────────────────────────

@main.command()
@click.argument("path", required=False, default=".", type=click.Path(path_type=Path))
@click.option("--workers", "-w", type=int, default=None, help="Number of scanning threads")
@click.option("--json", "as_json", is_flag=True, help="Output the report as JSON (never deletes)")
@click.option("--list/--no-list", "show_files", default=None, help="Show or hide the full file list")
@click.option("--yes", "-y", is_flag=True, help="Delete without asking for confirmation")
@click.option("--dry-run", is_flag=True, help="Report only, never delete")
@click.pass_obj
def detect(
    settings: Settings,
    path: Path,
    workers: int | None,
    as_json: bool,
    show_files: bool | None,
    yes: bool,
    dry_run: bool,
) -> None:
    """Scan PATH for cache files and optionally delete them."""
    engine = CacheEngine.from_settings(settings)
    if workers is None:
        workers = settings.get("scan.workers")
    if workers is not None and (not isinstance(workers, int) or isinstance(workers, bool) or workers < 1):
        raise click.BadParameter(f"must be a positive integer, got {workers!r}", param_hint="--workers")

    if not as_json:
        click.echo(f"{click.style('[Scan]', fg='yellow')} Scanning for cache files in {path}")

    token = CancelToken()
    last_draw = 0.0

    def on_progress(count: int) -> None:
        nonlocal last_draw
        if as_json:
            return
        now = time.monotonic()
        if now - last_draw >= _PROGRESS_INTERVAL:
            last_draw = now
            click.echo(f"\r  Scanned {count:,} entries", nl=False, err=True)

    try:
        with _cancel_on_interrupt(token):
            report = engine.scan(path, workers=workers, token=token, on_progress=on_progress)
    except ScanRootError as e:
        raise click.ClickException(str(e)) from None

    if as_json:
        click.echo(json.dumps(_report_to_dict(report), indent=2))
        return

    click.echo("\r", nl=False, err=True)
    _print_summary(report)

    if not report.matches:
        return

    if show_files is None:
        default = bool(settings.get("scan.show_files", False))
        if yes or dry_run:
            show_files = default
        else:
            show_files = click.confirm("\nDo you want to see the full list of cache files?", default=default)
    if show_files:
        _print_file_list(report)

    if dry_run:
        click.echo("\n(dry run — no files were deleted)")
        return

    if not yes:
        question = click.style("\nDo you want to delete these cache files?", fg="red", bold=True)
        if not click.confirm(question, default=False):
            click.echo(f"\n{click.style('[OK]', fg='green')} Deletion canceled")
            return

    click.echo(f"\n{click.style('Deleting cache files...', fg='red')}\n")

    def on_deleted(file_path: Path, error: str | None) -> None:
        if error is None:
            click.echo(f"  {click.style('✓', fg='green')} Deleted {file_path}")
        else:
            click.echo(f"  {click.style('✗', fg='red')} Failed to delete {file_path}: {click.style(error, fg='red')}")

    result = engine.delete(report.matches, on_result=on_deleted)

    click.echo(
        f"\n{click.style('[OK]', fg='green')} Deleted "
        f"{click.style(str(result.files_removed), fg='cyan')} files totaling {_styled_size(result.freed_bytes)}"
    )
    if result.failures:
        click.echo(f"  {click.style('!', fg='yellow')} {len(result.failures)} file(s) could not be deleted")


def _print_summary(report: ScanReport) -> None:
    click.echo(
        f"\n{click.style('[OK]', fg='green')} Found "
        f"{click.style(str(report.total_matched), fg='cyan')} cache files totaling "
        f"{_styled_size(report.total_bytes)} in {format_elapsed(report.elapsed)}"
    )
    if report.truncated:
        click.echo(click.style("  Scan was interrupted; results are partial.", fg="yellow"))

    if report.categories:
        click.echo(f"\n{click.style('Category Summary:', fg='blue', bold=True)}")
        for category in CacheCategory:
            totals = report.categories.get(category)
            if totals is None:
                continue
            click.echo(
                f"  {click.style(category.value, fg='cyan'):22s} "
                f"{totals.count:>7,} files  ({_styled_size(totals.total_bytes)})"
            )

    click.echo(
        f"\n  Files scanned:  {report.total_scanned:,}"
        f"\n  Files matched:  {report.total_matched:,}"
        f"\n  Entries skipped due to errors: {report.skipped:,}"
    )
    if report.errors and logging.getLogger().isEnabledFor(logging.INFO):
        for error in report.errors:
            click.echo(f"    {click.style('✗', fg='bright_black')} {error.path}: {error.message}")


def _print_file_list(report: ScanReport) -> None:
    click.echo(f"\n{click.style('Cache files:', fg='blue', bold=True)}")
    for match in report.matches:
        click.echo(
            f"  {click.style(match.entry.name, fg='yellow')} ({_styled_size(match.size_bytes)}) "
            f"[{click.style(match.category.value, fg='magenta')}]\n    {match.path}"
        )


def _report_to_dict(report: ScanReport) -> dict:
    return {
        "root": str(report.root),
        "total_scanned": report.total_scanned,
        "total_matched": report.total_matched,
        "total_bytes": report.total_bytes,
        "skipped": report.skipped,
        "truncated": report.truncated,
        "categories": {
            category.value: {"count": totals.count, "total_bytes": totals.total_bytes}
            for category, totals in report.categories.items()
        },
        "files": [
            {
                "path": str(m.path),
                "size_bytes": m.size_bytes,
                "category": m.category.value,
            }
            for m in report.matches
        ],
        "errors": [{"path": str(e.path), "message": e.message} for e in report.errors],
    }


# ── rules ────────────────────────────────────────────────────────────────

@main.command("rules")
@click.option("--category", "-c", default=None, help="Only show rules for this category")
@click.pass_obj
def rules_cmd(settings: Settings, category: str | None) -> None:
    """List detection rules in evaluation order."""
    engine = CacheEngine.from_settings(settings)

    if category:
        try:
            categories = [CacheCategory.from_name(category)]
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--category") from None
    else:
        categories = list(engine.classifier.priority)

    for cat in categories:
        rules = engine.rule_set.rules_for(cat)
        if not rules:
            continue
        click.echo(f"\n  {click.style(cat.value, fg='blue', bold=True)}")
        for rule in rules:
            patterns = ", ".join(rule.patterns)
            within = click.style(f" (inside {', '.join(rule.within)})", fg="bright_black") if rule.within else ""
            click.echo(f"    {click.style(rule.kind.value, fg='cyan'):20s} {rule.description}")
            click.echo(f"      {patterns}{within}")
    click.echo()


# ── config ───────────────────────────────────────────────────────────────

@main.group()
def config() -> None:
    """Inspect and change settings."""


@config.command("show")
@click.pass_obj
def config_show(settings: Settings) -> None:
    """Print all settings as JSON."""
    click.echo(f"# {settings.path}")
    click.echo(json.dumps(settings.as_dict(), indent=2))


@config.command("get")
@click.argument("key")
@click.pass_obj
def config_get(settings: Settings, key: str) -> None:
    """Print a single setting."""
    value = settings.get(key)
    if value is None:
        raise click.ClickException(f"Setting '{key}' is not set")
    click.echo(json.dumps(value))


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_obj
def config_set(settings: Settings, key: str, value: str) -> None:
    """Set KEY to VALUE (parsed as JSON, else stored as a string)."""
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        parsed = value
    settings.set(key, parsed)
    click.echo(f"{key} = {json.dumps(parsed)}")
