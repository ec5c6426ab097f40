#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Terminal output and REPL utilities for patchwise."""

from patchwise.terminal.formatting import (
    colorize, create_header, create_section, create_bullet_item, Colors, Symbols
)

__all__ = [
    "colorize",
    "create_header",
    "create_section",
    "create_bullet_item",
    "Colors",
    "Symbols",
]
