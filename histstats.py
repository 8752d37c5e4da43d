#!/usr/bin/env uv run
# /// script
# requires-python = ">=3.11"
# dependencies = ["rich", "pygments"]
# ///
"""
histstats.py - Recency and frequency views of a zsh history file

Parses the history with `histparse` and prints two tables:
  - the last N entries, each split into command and arguments (with the
    EXTENDED_HISTORY timestamp and duration when the line has them);
  - the top K base commands by number of uses.

Ranking ties are broken by first appearance in the file, so the output is
stable across runs.

Usage
-----
    uv run histstats.py                     # ~/.zsh_history
    uv run histstats.py path/to/history -n 20 -k 5 --raw
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from histparse import Entry, parse_history
from zsh_lexer import HistoryTheme, ZshLexer

# ============================================================================
# CONFIGURATION & CONSTANTS
# ============================================================================

HISTORY_FILENAME = ".zsh_history"
DEFAULT_LAST_COUNT = 10
DEFAULT_TOP_COUNT = 10
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

CUSTOM_THEME = Theme({
    "title": "bold #C678DD",
    "command": "bold #98C379",
    "argument": "#ABB2BF",
    "timestamp": "#61AFEF",
    "count": "bold #E5C07B",
    "context": "#5C6370",
    "info": "#61AFEF",
    "error": "#E06C75",
})

# Diagnostics go to stderr, reports to stdout
console = Console(stderr=True, theme=CUSTOM_THEME)
report_console = Console(theme=CUSTOM_THEME)


@dataclass(frozen=True)
class ReportConfig:
    """Settings for a single report run"""

    history_path: Path
    last: int = DEFAULT_LAST_COUNT
    top: int = DEFAULT_TOP_COUNT
    show_raw: bool = False


# ============================================================================
# UTILITIES
# ============================================================================


def _console_print(string="", *args, **kwargs) -> None:
    """→ Safe console printing with fallback"""
    try:
        console.print(string, *args, **kwargs)
    except Exception:
        kwargs_clean = {k: v for k, v in kwargs.items() if k in ["sep", "end", "flush"]}
        print(string, *args, file=sys.stderr, **kwargs_clean)


def default_history_path() -> Path:
    """→ ~/.zsh_history; raises RuntimeError/KeyError if HOME can't be resolved"""
    return Path.home() / HISTORY_FILENAME


def format_timestamp(ts: datetime | None) -> str:
    """Format a timestamp in local time, or "" when the entry has none."""
    if ts is None:
        return ""
    return ts.astimezone().strftime(TIMESTAMP_FORMAT)


# ============================================================================
# ANALYSIS
# ============================================================================


def last_entries(entries: Sequence[Entry], n: int) -> list[Entry]:
    """→ The last `n` entries, in file order"""
    if n <= 0:
        return []
    return list(entries[-n:])


def rank_commands(entries: Sequence[Entry], k: int | None = None) -> list[tuple[str, int]]:
    """Count base commands and rank them by use, most frequent first.

    Empty commands are not counted. Equal counts keep the order in which the
    commands first appeared. `k=None` returns the whole ranking.
    """
    counts: dict[str, int] = {}
    for entry in entries:
        command = entry.parsed.command
        if command:
            counts[command] = counts.get(command, 0) + 1

    # dicts keep first-seen order and sorted() is stable
    ranking = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    if k is None:
        return ranking
    return ranking[: max(k, 0)]


# ============================================================================
# TERMINAL OUTPUT
# ============================================================================


def render_recent(entries: Sequence[Entry], show_raw: bool = False) -> Table:
    """Render entries as a table of timestamp, command and arguments."""
    table = Table(
        title=f"[title]Last {len(entries)} Entries[/title]",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold",
    )
    table.add_column("Time", style="timestamp", no_wrap=True)
    table.add_column("Dur", justify="right", style="context")
    table.add_column("Command", style="command")
    table.add_column("Arguments", style="argument")
    if show_raw:
        table.add_column("Raw")

    for entry in entries:
        parsed = entry.parsed
        duration = "" if entry.duration is None else f"{entry.duration}s"
        row = [
            Text(format_timestamp(entry.timestamp)),
            Text(duration),
            Text(parsed.command),
            Text(" ".join(repr(arg) for arg in parsed.arguments)),
        ]
        if show_raw:
            row.append(Syntax(parsed.raw, ZshLexer(), theme=HistoryTheme(), word_wrap=True))
        table.add_row(*row)

    return table


def render_ranking(ranking: Sequence[tuple[str, int]]) -> Table:
    """Render a command ranking as a table."""
    table = Table(
        title=f"[title]Top {len(ranking)} Commands[/title]",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold",
    )
    table.add_column("#", justify="right", style="context")
    table.add_column("Count", justify="right", style="count")
    table.add_column("Command", style="command")

    for position, (command, count) in enumerate(ranking, start=1):
        table.add_row(str(position), str(count), Text(command))

    return table


def output_report(entries: Sequence[Entry], config: ReportConfig) -> None:
    """Print the recency and frequency views to stdout."""
    report_console.print(f"Parsed [bold]{len(entries)}[/bold] history entries")
    report_console.print()
    report_console.print(render_recent(last_entries(entries, config.last), config.show_raw))
    report_console.print()
    report_console.print(render_ranking(rank_commands(entries, config.top)))


# ============================================================================
# MAIN
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Show recent entries and most-used commands from a zsh history file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    ap.add_argument(
        "history_file",
        nargs="?",
        type=Path,
        help=f"History file to read (default: ~/{HISTORY_FILENAME})",
    )
    ap.add_argument(
        "-n",
        "--last",
        type=int,
        default=DEFAULT_LAST_COUNT,
        metavar="N",
        help=f"Number of recent entries to show (default: {DEFAULT_LAST_COUNT})",
    )
    ap.add_argument(
        "-k",
        "--top",
        type=int,
        default=DEFAULT_TOP_COUNT,
        metavar="K",
        help=f"Number of top commands to show (default: {DEFAULT_TOP_COUNT})",
    )
    ap.add_argument(
        "--raw",
        action="store_true",
        help="Also show each raw command line, syntax highlighted",
    )
    return ap


def build_config(args: argparse.Namespace) -> ReportConfig:
    """→ Resolves CLI arguments into a ReportConfig (may raise on HOME lookup)"""
    if args.history_file is not None:
        history_path = args.history_file.expanduser()
    else:
        history_path = default_history_path()
        _console_print(f"[context]Reading {escape(str(history_path))}[/context]")
    return ReportConfig(
        history_path=history_path,
        last=args.last,
        top=args.top,
        show_raw=args.raw,
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = build_config(args)
    except (RuntimeError, KeyError) as e:
        _console_print(f"[error]Error finding home dir: {escape(str(e))}[/error]", soft_wrap=True)
        return 1

    try:
        entries = parse_history(config.history_path)
    except OSError as e:
        _console_print(f"[error]Error parsing history: {escape(str(e))}[/error]", soft_wrap=True)
        return 1

    output_report(entries, config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
