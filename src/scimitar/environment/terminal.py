"""Terminal colour helpers for error messages.

ANSI colours with TTY detection. ``NO_COLOR`` disables colours and
``FORCE_COLOR`` forces them on (https://no-color.org/).
"""

from __future__ import annotations

import os
import re
import sys
from typing import Literal

_CODES = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "bright_red": "\033[91m",
}

ColorName = Literal["reset", "bold", "dim", "cyan", "green", "yellow", "bright_red"]

_ANSI_RE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


def _should_use_colors() -> bool:
    if os.environ.get("FORCE_COLOR"):
        return True
    if os.environ.get("NO_COLOR"):
        return False
    return sys.stderr.isatty()


_USE_COLORS = _should_use_colors()


def supports_color() -> bool:
    return _USE_COLORS


def colorize(text: str, *colors: ColorName) -> str:
    """Wrap ``text`` in ANSI codes when colours are enabled."""
    if not _USE_COLORS or not colors:
        return text
    prefix = "".join(_CODES[color] for color in colors)
    return f"{prefix}{text}{_CODES['reset']}"


def strip_colors(text: str) -> str:
    return _ANSI_RE.sub("", text)


def location(text: str) -> str:
    return colorize(text, "cyan")


def hint(text: str) -> str:
    return colorize(text, "green")


def dim_text(text: str) -> str:
    return colorize(text, "dim")


def error_text(text: str) -> str:
    return colorize(text, "bright_red")


def error_code(text: str) -> str:
    return colorize(text, "bright_red", "bold")


def format_source_line(lineno: int, content: str, is_error: bool = False) -> str:
    """Format one numbered line of a source snippet.

    Example:
        >>> strip_colors(format_source_line(7, "@Model.Nme", is_error=True))
        '>  7 | @Model.Nme'
    """
    marker = ">" if is_error else " "
    number = colorize(f"{marker}{lineno:>3}", "yellow")
    body = error_text(content) if is_error else dim_text(content)
    return f"{number} | {body}"
