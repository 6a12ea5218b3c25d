"""Terminal output helpers for the red-flag-radar CLI.

ANSI colors are disabled when stdout is not a TTY or when the
``NO_COLOR`` environment variable is set.
"""

from __future__ import annotations

import os
import sys


def _supports_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    if not hasattr(sys.stdout, "isatty"):
        return False
    return sys.stdout.isatty()


_COLOR = _supports_color()


def _ansi(code: str, text: str) -> str:
    if not _COLOR:
        return text
    return f"\033[{code}m{text}\033[0m"


def bold(text: str) -> str:
    return _ansi("1", text)


def dim(text: str) -> str:
    return _ansi("2", text)


def green(text: str) -> str:
    return _ansi("32", text)


def yellow(text: str) -> str:
    return _ansi("33", text)


def red(text: str) -> str:
    return _ansi("31", text)


def magenta(text: str) -> str:
    return _ansi("35", text)


# ── Risk coloring ───────────────────────────────────────────────────

_SEVERITY_COLORS = {
    "low": green,
    "medium": yellow,
    "high": red,
    "critical": magenta,
}


def severity(level: str) -> str:
    paint = _SEVERITY_COLORS.get(level, dim)
    return paint(level.upper())


def risk_score(score: int) -> str:
    """Render a 0-100 score in its risk band's color."""
    if score <= 20:
        paint = green
    elif score <= 40:
        paint = yellow
    elif score <= 80:
        paint = red
    else:
        paint = magenta
    return bold(paint(f"{score}/100"))


# ── Structured output ───────────────────────────────────────────────


def header(title: str) -> None:
    """Print a section header."""
    print(f"\n{bold(title)}")


def success(msg: str) -> None:
    print(f"  {green('✓')} {msg}")


def warn(msg: str) -> None:
    print(f"  {yellow('!')} {msg}")


def error(msg: str) -> None:
    print(f"  {red('✗')} {msg}", file=sys.stderr)


def info(msg: str) -> None:
    print(f"  {msg}")


def kv(key: str, value: object, indent: int = 2) -> None:
    """Print a key-value pair."""
    pad = " " * indent
    print(f"{pad}{dim(str(key) + ':')}  {value}")


def bullet(text: str, indent: int = 4) -> None:
    print(f"{' ' * indent}- {text}")
