# ============================================================================
# ZSH COMMAND-LINE LEXER
# ============================================================================

from __future__ import annotations

import re

from pygments.lexer import RegexLexer, bygroups, default, include
from pygments.token import (
    Comment,
    Error,
    Name,
    Number,
    Operator,
    String,
    Text,
    Token,
)
from rich.style import Style
from rich.syntax import SyntaxTheme

# Define custom token types so Rich and Pygments know about them
Name.Argument = Token.Name.Argument


class ZshLexer(RegexLexer):
    """
    Highlights a single history command line the way `histparse` reads it:
    leading `NAME=value` assignments, then the command, then its arguments.
    Use like so:
    ```python
    syntax = Syntax(entry.parsed.raw, ZshLexer(), theme=HistoryTheme())
    console.print(syntax)
    ```
    """

    name = "Z-shell history"
    aliases = ["zsh-history"]
    filenames = [".zsh_history"]

    flags = re.MULTILINE | re.DOTALL

    tokens = {
        # Quoting rules shared by every word
        "quoted": [
            (r"\\.", String.Escape),
            (r"'[^']*'?", String.Single),
            (r'"', String.Double, "string_double"),
        ],
        "root": [
            (r"\s+", Text),
            (r"#.*?$", Comment),
            (r"\|\||&&|[;|&]", Operator),
            (r"([a-zA-Z_][a-zA-Z0-9_]*)(=)", bygroups(Name.Variable, Operator), "assignment"),
            include("quoted"),
            (r"[^\s;|&'\"\\]+", Name.Function, "cmdtail"),
        ],
        "assignment": [
            include("quoted"),
            (r"[^\s;|&'\"\\]+", String),
            default("#pop"),
        ],
        "cmdtail": [
            (r"\n", Text, "#pop"),
            (r"\|\||&&|[;|&]", Operator, "#pop"),
            (r"[^\S\n]+", Text),
            (r"--?[a-zA-Z0-9][\w-]*", Name.Attribute),
            (r"\b[0-9]+\b", Number.Integer),
            include("quoted"),
            (r"[^\s;|&'\"\\]+", Name.Argument),
        ],
        "string_double": [
            (r'"', String.Double, "#pop"),
            (r'\\["\\$`\n]', String.Escape),
            (r'[^"\\]+', String.Double),
            (r"\\", String.Double),
        ],
    }


class HistoryTheme(SyntaxTheme):
    """Rich syntax theme for history command lines (Monokai Pro palette)."""

    _BLACK = "#2d2a2e"
    _RED = "#ff6188"
    _GREEN = "#a9dc76"
    _YELLOW = "#ffd866"
    _ORANGE = "#fc9867"
    _PURPLE = "#ab9df2"
    _CYAN = "#78dce8"
    _WHITE = "#fcfcfa"
    _COMMENT_GRAY = "#727072"

    background_color = _BLACK
    default_style = Style(color=_WHITE)

    styles = {
        Name.Function: Style(color=_GREEN, bold=True),  # git, curl
        Name.Attribute: Style(color=_ORANGE),  # --long, -l
        Name.Argument: Style(color=_PURPLE),  # a filename
        Name.Variable: Style(color=_CYAN, italic=True),  # FOO= prefix
        Number: Style(color=_CYAN),
        Comment: Style(color=_COMMENT_GRAY, italic=True),
        Operator: Style(color=_RED),
        String: Style(color=_YELLOW),
        String.Escape: Style(color=_PURPLE),
        Error: Style(color=_RED, bold=True),
        Text: Style(color=_WHITE),
    }

    @classmethod
    def get_style_for_token(cls, t):
        # Fall back to the closest styled parent (String.Single -> String)
        while t is not None:
            if t in cls.styles:
                return cls.styles[t]
            t = t.parent
        return cls.default_style

    @classmethod
    def get_background_style(cls):
        return Style(bgcolor=cls._BLACK)
