"""diffgate CLI — Typer application with analyze and init commands."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from diffgate import __version__

app = typer.Typer(
    name="diffgate",
    help="Gate the size of Rust changes by production-code surface area.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)

EXIT_OK = 0
EXIT_LIMIT_EXCEEDED = 1
EXIT_ERROR = 2


def _configure_logging(verbose: bool, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=debug)],
        force=True,
    )


def _fail(label: str, exc: Exception) -> typer.Exit:
    console.print(f"[bold red]{label}:[/bold red] {escape(str(exc))}")
    return typer.Exit(code=EXIT_ERROR)


def _read_stdin() -> str:
    """Read piped diff text without newline translation."""
    buffer = getattr(sys.stdin, "buffer", None)
    if buffer is None:
        return sys.stdin.read()
    return buffer.read().decode("utf-8", errors="replace")


def _resolve_repo_root(base_dir: Optional[Path]) -> Path:
    """Find the git repo root, exit 2 on failure."""
    from diffgate.git.adapter import GitError, get_repo_root

    try:
        return get_repo_root(base_dir)
    except GitError as exc:
        raise _fail("Error", exc) from exc


# ── analyze ───────────────────────────────────────────────────────────────────


@app.command()
def analyze(
    diff_file: Optional[str] = typer.Option(None, "--diff-file", "-d", help="Read the diff from a file ('-' for stdin)"),
    staged: bool = typer.Option(False, "--staged", help="Analyze staged changes"),
    from_ref: Optional[str] = typer.Option(None, "--from", help="Base commit of a range"),
    to_ref: Optional[str] = typer.Option(None, "--to", help="Head commit of a range (default HEAD)"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .diffgate.toml / .diffgate.yaml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: github | json | human | comment"),
    base_dir: Optional[Path] = typer.Option(None, "--base-dir", help="Directory source files are read from"),
    max_units: Optional[int] = typer.Option(None, "--max-units", help="Override limits.max_prod_units"),
    max_score: Optional[int] = typer.Option(None, "--max-score", help="Override limits.max_weighted_score"),
    max_lines: Optional[int] = typer.Option(None, "--max-lines", help="Override limits.max_prod_lines"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write report to file"),
    workers: Optional[int] = typer.Option(None, "--workers", "-j", help="Analyze files on N threads"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output with timing"),
) -> None:
    """Analyze a diff and report production vs. test changes."""
    from diffgate.analysis.engine import analyze as run_analysis
    from diffgate.analysis.sources import (
        GitRevisionReader,
        SourceAccessError,
        SourceReader,
        WorkingTreeReader,
    )
    from diffgate.config.loader import ConfigError, load_config, validate_config
    from diffgate.config.schema import OUTPUT_FORMATS
    from diffgate.git.adapter import GitError, get_range_diff, get_staged_diff
    from diffgate.git.diff_parser import DiffParseError
    from diffgate.output import render_output, terminal

    _configure_logging(verbose, debug)

    uses_git = staged or from_ref is not None or to_ref is not None
    if diff_file is not None and uses_git:
        console.print("[bold red]Error:[/bold red] --diff-file cannot be combined with --staged/--from/--to")
        raise typer.Exit(code=EXIT_ERROR)
    if diff_file is None and not uses_git and sys.stdin.isatty():
        # Nothing piped in: fall back to the staged changes.
        staged = uses_git = True

    root = base_dir or Path.cwd()
    if uses_git:
        root = _resolve_repo_root(base_dir)

    # --- Load config ---
    try:
        cfg = load_config(root, config)
        if format:
            if format not in OUTPUT_FORMATS:
                raise ConfigError(f"unknown format '{format}'")
            cfg.output.format = format  # type: ignore[assignment]
        if max_units is not None:
            cfg.limits.max_prod_units = max_units
        if max_score is not None:
            cfg.limits.max_weighted_score = max_score
        if max_lines is not None:
            cfg.limits.max_prod_lines = max_lines
        if workers is not None:
            cfg.analysis.workers = workers
        validate_config(cfg)
    except ConfigError as exc:
        raise _fail("Config error", exc) from exc

    if verbose or debug:
        console.print(f"[dim]Config: {cfg.source or 'defaults'}[/dim]")
        console.print(f"[dim]Source root: {root}[/dim]")

    # --- Get diff ---
    reader: SourceReader
    try:
        if diff_file is not None and diff_file != "-":
            with open(diff_file, encoding="utf-8", errors="replace", newline="") as f:
                diff_text = f.read()
            reader = WorkingTreeReader(root)
        elif not uses_git:
            diff_text = _read_stdin()
            reader = WorkingTreeReader(root)
        elif staged:
            diff_text = get_staged_diff(root)
            reader = GitRevisionReader(root, "")  # ":path" reads the index
        else:
            if from_ref is None:
                raise GitError("--to requires --from")
            head = to_ref or "HEAD"
            diff_text = get_range_diff(root, from_ref, head)
            reader = GitRevisionReader(root, head)
    except GitError as exc:
        raise _fail("Git error", exc) from exc
    except OSError as exc:
        raise _fail("Error", exc) from exc

    # --- Run analysis ---
    try:
        result = run_analysis(diff_text, cfg, reader)
    except DiffParseError as exc:
        raise _fail("Diff error", exc) from exc
    except SourceAccessError as exc:
        raise _fail("Source error", exc) from exc

    # --- Output ---
    fmt = cfg.output.format
    if fmt == "human" and output is None:
        terminal.render(result, cfg, console=Console())
    else:
        report_text = render_output(result, cfg, fmt)
        if output:
            Path(output).write_text(report_text, encoding="utf-8")
            if verbose:
                console.print(f"[dim]Report written to {output}[/dim]")
        else:
            typer.echo(report_text, nl=not report_text.endswith("\n"))

    # --- Exit code ---
    if result.exceeds_limit and cfg.limits.fail_on_exceed:
        raise typer.Exit(code=EXIT_LIMIT_EXCEEDED)
    raise typer.Exit(code=EXIT_OK)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init(
    base_dir: Optional[Path] = typer.Option(None, "--base-dir", help="Directory to write .diffgate.toml into"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Generate a starter .diffgate.toml."""
    from diffgate.config.defaults import DEFAULT_TOML

    root = base_dir or Path.cwd()
    config_path = root / ".diffgate.toml"

    if config_path.exists() and not force:
        console.print(f"[yellow]⚠[/yellow]  .diffgate.toml already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"diffgate {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """diffgate — gate Rust change size by production-code surface area."""
