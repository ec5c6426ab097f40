#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Terminal formatting utilities for review output."""

import sys


class Colors:
    """ANSI color codes."""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'

    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    CYAN = '\033[36m'

    BRIGHT_BLACK = '\033[90m'
    BRIGHT_RED = '\033[91m'
    BRIGHT_GREEN = '\033[92m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_CYAN = '\033[96m'
    BRIGHT_WHITE = '\033[97m'

    @staticmethod
    def is_tty():
        """Check if output is a TTY (supports colors)."""
        return sys.stdout.isatty()


class Symbols:
    """Unicode symbols for formatted output."""
    BULLET = '●'
    ARROW = '→'
    CHECK = '✓'
    CROSS = '✗'
    WARNING = '⚠'
    BOX_H = '─'
    PROMPT = '$'


def colorize(text: str, color: str, bold: bool = False) -> str:
    """Colorize text if TTY supports it.

    Args:
        text: Text to colorize
        color: Color code from Colors class
        bold: Whether to make text bold

    Returns:
        Formatted text
    """
    if not Colors.is_tty():
        return text

    prefix = Colors.BOLD if bold else ''
    return f"{prefix}{color}{text}{Colors.RESET}"


def create_header(title: str, width: int = 60) -> str:
    """Create a styled header.

    Args:
        title: Header title
        width: Width of the rule under the title

    Returns:
        Formatted header
    """
    separator = Symbols.BOX_H * width
    return f"\n{colorize(title, Colors.BRIGHT_CYAN, bold=True)}\n{colorize(separator, Colors.BRIGHT_BLACK)}"


def create_section(title: str) -> str:
    return f"\n{colorize(title, Colors.BRIGHT_WHITE, bold=True)}"


def create_bullet_item(text: str, bullet_type: str = 'bullet', indent: int = 2) -> str:
    """Create a bullet list item.

    Args:
        text: Item text
        bullet_type: One of 'bullet', 'check', 'cross', 'warning', 'arrow'
        indent: Number of spaces before the bullet

    Returns:
        Formatted line
    """
    bullets = {
        'bullet': (Symbols.BULLET, Colors.BRIGHT_CYAN),
        'check': (Symbols.CHECK, Colors.BRIGHT_GREEN),
        'cross': (Symbols.CROSS, Colors.BRIGHT_RED),
        'warning': (Symbols.WARNING, Colors.BRIGHT_YELLOW),
        'arrow': (Symbols.ARROW, Colors.BRIGHT_BLACK),
    }
    symbol, color = bullets.get(bullet_type, bullets['bullet'])
    return f"{' ' * indent}{colorize(symbol, color)} {text}"


def format_command(command: str, indent: int = 2) -> str:
    return f"{' ' * indent}{colorize(Symbols.PROMPT, Colors.BRIGHT_BLACK)} {colorize(command, Colors.BRIGHT_WHITE, bold=True)}"
