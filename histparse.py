"""
histparse.py - Zsh history parsing and command tokenizing

Turns a zsh history file into a list of `Entry` records. Each record carries
the optional EXTENDED_HISTORY metadata (timestamp, duration) and the command
line split into a command name and its arguments.

Pipeline
--------
1. Physical lines ending in a backslash are joined with the next line
   (`iter_logical_lines`). The backslash is dropped and a newline kept.
2. Each logical line is matched against ": <epoch>:<duration>;command"
   (`parse_logical_line`). Lines that don't fit are kept verbatim as plain
   commands; empty plain lines are dropped.
3. The command text is tokenized with shell quoting rules (`shell_split`) and
   classified into command + arguments (`classify_command`), skipping leading
   `NAME=value` assignments.

Nothing here is evaluated: no globbing, expansion or substitution. Only
quotes and backslashes change how a line is split.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Iterator

# ============================================================================
# CONSTANTS & PATTERNS
# ============================================================================

EXTENDED_PREFIX = ": "
CONTINUATION = "\\"

# Characters a backslash may escape inside double quotes
DOUBLE_QUOTE_ESCAPABLE = frozenset('"\\$`\n')

INTEGER_RE = re.compile(r"[+-]?[0-9]+")


# ============================================================================
# DATA STRUCTURES
# ============================================================================


@dataclass(frozen=True)
class ParsedCommand:
    """A command line split into its base command (argv[0]) and arguments."""

    raw: str
    command: str = ""
    arguments: tuple[str, ...] = ()


@dataclass(frozen=True)
class Entry:
    """A single history entry.

    `timestamp` and `duration` come from the same EXTENDED_HISTORY header, so
    they are either both set or both None.
    """

    timestamp: datetime | None
    duration: int | None
    parsed: ParsedCommand

    @property
    def has_metadata(self) -> bool:
        return self.timestamp is not None


# ============================================================================
# TOKENIZER
# ============================================================================


def shell_split(s: str) -> list[str]:
    """Split a command string into argv-like tokens.

    Single quotes keep everything literal. Inside double quotes a backslash
    only escapes ``" \\ $ ` `` and newline. Outside quotes a backslash escapes
    any following character. Unterminated quotes are not an error: whatever
    was collected becomes the last token.
    """
    tokens: list[str] = []
    current: list[str] = []
    in_single = False
    in_double = False
    i = 0
    n = len(s)

    while i < n:
        c = s[i]

        if in_single:
            if c == "'":
                in_single = False
            else:
                current.append(c)
            i += 1

        elif in_double:
            if c == "\\" and i + 1 < n and s[i + 1] in DOUBLE_QUOTE_ESCAPABLE:
                current.append(s[i + 1])
                i += 2
            elif c == '"':
                in_double = False
                i += 1
            else:
                # Includes a backslash before a non-escapable char
                current.append(c)
                i += 1

        elif c == "\\" and i + 1 < n:
            current.append(s[i + 1])
            i += 2

        elif c == "'":
            in_single = True
            i += 1

        elif c == '"':
            in_double = True
            i += 1

        elif c.isspace():
            if current:
                tokens.append("".join(current))
                current = []
            i += 1

        else:
            current.append(c)
            i += 1

    if current:
        tokens.append("".join(current))

    return tokens


# ============================================================================
# COMMAND CLASSIFIER
# ============================================================================


def is_assignment(token: str) -> bool:
    """→ True for a `NAME=value` environment prefix (but not `--opt=value`)"""
    return "=" in token and not token.startswith("-")


def classify_command(raw: str) -> ParsedCommand:
    """Split `raw` into command and arguments, skipping leading assignments.

    If the whole line is assignments (`FOO=1 BAR=2`), the first assignment is
    reported as the command with no arguments. Callers counting commands will
    see it as such; this matches how the line was historically reported.
    """
    tokens = shell_split(raw.strip())
    if not tokens:
        return ParsedCommand(raw=raw)

    start = 0
    while start < len(tokens) and is_assignment(tokens[start]):
        start += 1

    if start >= len(tokens):
        return ParsedCommand(raw=raw, command=tokens[0])

    return ParsedCommand(
        raw=raw,
        command=tokens[start],
        arguments=tuple(tokens[start + 1 :]),
    )


# ============================================================================
# HISTORY RECONSTRUCTOR
# ============================================================================


def iter_logical_lines(lines: Iterable[str]) -> Iterator[str]:
    """→ Joins backslash-continued physical lines, yielding complete records"""
    pending = ""
    for line in lines:
        if line.endswith(CONTINUATION):
            pending += line[: -len(CONTINUATION)] + "\n"
            continue

        if pending:
            yield pending + line
            pending = ""
        else:
            yield line

    # File ended mid-continuation
    if pending:
        yield pending


def _parse_integer(field: str) -> int | None:
    field = field.strip()
    if not INTEGER_RE.fullmatch(field):
        return None
    return int(field)


def _parse_extended(line: str) -> Entry | None:
    """→ Parses ": <epoch>:<duration>;command", returning None if it doesn't fit"""
    if not line.startswith(EXTENDED_PREFIX):
        return None

    meta, sep, command = line.partition(";")
    if not sep:
        return None

    ts_field, sep, duration_field = meta[len(EXTENDED_PREFIX) :].partition(":")
    if not sep:
        return None

    epoch = _parse_integer(ts_field)
    duration = _parse_integer(duration_field)
    if epoch is None or duration is None:
        return None

    try:
        timestamp = datetime.fromtimestamp(epoch, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        # Outside what the platform can represent; keep the line as plain text
        return None

    return Entry(timestamp=timestamp, duration=duration, parsed=classify_command(command))


def parse_logical_line(line: str) -> Entry | None:
    """Turn one logical line into an Entry.

    Extended-format lines get their metadata; anything else (including a
    malformed header) is treated as a plain command. Empty plain lines yield
    None.
    """
    entry = _parse_extended(line)
    if entry is not None:
        return entry

    if not line:
        return None
    return Entry(timestamp=None, duration=None, parsed=classify_command(line))


def iter_history_entries(lines: Iterable[str]) -> Iterator[Entry]:
    """→ Parses history lines (without line terminators) into entries, in order"""
    for logical_line in iter_logical_lines(lines):
        entry = parse_logical_line(logical_line)
        if entry is not None:
            yield entry


def _strip_terminator(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


def parse_history(path: str | os.PathLike[str]) -> list[Entry]:
    """Read and parse a whole history file.

    Raises OSError if the file can't be opened or read; no partial result is
    returned in that case.
    """
    with open(path, "r", encoding="utf-8", errors="replace", newline="\n") as f:
        return list(iter_history_entries(_strip_terminator(line) for line in f))
