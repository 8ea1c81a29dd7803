"""
Ignition CLI - UI toolkit.

Styled output primitives built on Click:

    Output helpers:
        success(), error(), info(), dim()

    Structural elements:
        banner()        - branded header with box drawing
        section()       - section divider with title
        kv()            - key-value pair, aligned
        bullet()        - bulleted list item

All output degrades gracefully on non-colour terminals (click.style
handles NO_COLOR / TERM=dumb).
"""

from __future__ import annotations

import shutil
from typing import Optional

import click

# ═══════════════════════════════════════════════════════════════════════════
# Terminal helpers
# ═══════════════════════════════════════════════════════════════════════════

_TERM_WIDTH: Optional[int] = None


def _tw() -> int:
    """Terminal width, cached and clamped to a sane range."""
    global _TERM_WIDTH
    if _TERM_WIDTH is None:
        _TERM_WIDTH = max(40, min(shutil.get_terminal_size((80, 24)).columns, 120))
    return _TERM_WIDTH


# ═══════════════════════════════════════════════════════════════════════════
# Basic styled output
# ═══════════════════════════════════════════════════════════════════════════


def success(message: str) -> None:
    """Print success message in green."""
    click.echo(click.style(message, fg="green"))


def error(message: str) -> None:
    """Print error message in red."""
    click.echo(click.style(message, fg="red"), err=True)


def info(message: str) -> None:
    """Print info message in cyan."""
    click.echo(click.style(message, fg="cyan"))


def dim(message: str) -> None:
    """Print dimmed message."""
    click.echo(click.style(message, dim=True))


# ═══════════════════════════════════════════════════════════════════════════
# Box-drawing characters
# ═══════════════════════════════════════════════════════════════════════════

_H_TL = "┏"
_H_TR = "┓"
_H_BL = "┗"
_H_BR = "┛"
_H_H  = "━"
_H_V  = "┃"
_L_H  = "─"

_BULLET = "•"
_CHECK  = "✓"
_CROSS  = "✗"


# ═══════════════════════════════════════════════════════════════════════════
# Structure
# ═══════════════════════════════════════════════════════════════════════════


def banner(
    title: str = "Ignition",
    subtitle: str = "",
    *,
    width: Optional[int] = None,
    fg: str = "cyan",
) -> None:
    """
    Print a bordered banner with centred title.

        ┏━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━┓
        ┃                     Ignition                        ┃
        ┃           dependency-driven service boot            ┃
        ┗━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━┛
    """
    w = width or min(_tw(), 60)
    inner = w - 2
    top = f"{_H_TL}{_H_H * inner}{_H_TR}"
    bot = f"{_H_BL}{_H_H * inner}{_H_BR}"
    title_line = f"{_H_V}{title.center(inner)}{_H_V}"

    click.echo(click.style(top, fg=fg))
    click.echo(click.style(title_line, fg=fg, bold=True))
    if subtitle:
        sub_line = f"{_H_V}{subtitle.center(inner)}{_H_V}"
        click.echo(click.style(sub_line, fg=fg))
    click.echo(click.style(bot, fg=fg))


def section(title: str, *, width: Optional[int] = None, fg: str = "cyan") -> None:
    """
    Print a section header with a ruled line.

        ── Services ───────────────────────────────
    """
    w = width or _tw()
    dashes = max(4, w - len(title) - 6)
    line = f"{_L_H}{_L_H} {title} {_L_H * dashes}"
    click.echo(click.style(line, fg=fg, bold=True))


def kv(
    key: str,
    value: str,
    *,
    key_width: int = 20,
    indent: int = 2,
    key_fg: str = "white",
    val_fg: str = "cyan",
) -> None:
    """
    Print an aligned key-value pair.

        Services:         8
        Startup timeout:  5000ms
    """
    prefix = " " * indent
    k = click.style(f"{key}:", fg=key_fg)
    v = click.style(str(value), fg=val_fg)
    padding = " " * max(1, key_width - len(key) - 1)
    click.echo(f"{prefix}{k}{padding}{v}")


def bullet(text: str, *, indent: int = 2, fg: str = "white") -> None:
    """Print a bulleted list item."""
    prefix = " " * indent
    click.echo(f"{prefix}{click.style(_BULLET, fg='cyan')} {click.style(text, fg=fg)}")
