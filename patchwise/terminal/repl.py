#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Interactive REPL: one orchestrated turn per line of input."""

import sys
from typing import Callable, Optional

from patchwise.execution.orchestrator import ActionOrchestrator
from patchwise.terminal.formatting import Colors, Symbols, colorize, create_bullet_item, create_section
from patchwise.tools.error_parser import looks_like_error, parse_error, suggest_fix


EXIT_COMMANDS = {"exit", "quit"}


def _show_history(orchestrator: ActionOrchestrator, output: Callable[[str], None]) -> None:
    entries = orchestrator.history.recent(orchestrator.history.max_entries)
    if not entries:
        output("No conversation history yet.")
        return
    output(create_section("Conversation history:"))
    for entry in entries:
        stamp = entry.timestamp.strftime("%H:%M:%S")
        output(f"  {colorize(stamp, Colors.BRIGHT_BLACK)} {entry.user_input} {Symbols.ARROW} {entry.outcome.value}")


def _show_patterns(orchestrator: ActionOrchestrator, output: Callable[[str], None]) -> None:
    patterns = orchestrator.history.user_patterns()
    if not patterns:
        output("No patterns detected yet.")
        return
    output(create_section("Detected patterns:"))
    for pattern in patterns:
        output(create_bullet_item(pattern))


def _show_parsed_error(text: str, output: Callable[[str], None]) -> None:
    parsed = parse_error(text)
    output(create_section(f"Detected {parsed.type} error"))
    if parsed.file:
        location = f"{parsed.file}:{parsed.line}" if parsed.line else parsed.file
        output(create_bullet_item(f"Location: {location}", "arrow"))
    output(create_bullet_item(suggest_fix(parsed), "warning"))
    for suggestion in parsed.suggestions:
        output(create_bullet_item(suggestion))


def handle_line(line: str, orchestrator: ActionOrchestrator, output: Callable[[str], None] = print) -> bool:
    """Handle one line of REPL input.

    Returns:
        False when the session should end, True otherwise.
    """
    text = line.strip()
    if not text:
        return True

    command = text.lower()
    if command in EXIT_COMMANDS:
        output(colorize("Goodbye!", Colors.BRIGHT_CYAN))
        return False
    if command == "history":
        _show_history(orchestrator, output)
        return True
    if command == "patterns":
        _show_patterns(orchestrator, output)
        return True

    if looks_like_error(line):
        _show_parsed_error(line, output)
        return True

    orchestrator.handle(text)
    return True


def repl_mode(orchestrator: ActionOrchestrator, read_input: Optional[Callable[[str], str]] = None) -> None:
    """Run the interactive loop until exit, EOF or Ctrl-C.

    Without ``read_input`` the loop reads from the terminal and refuses to
    start when stdin is not a TTY, so automated runs never block on input.
    """
    if read_input is None:
        if not sys.stdin.isatty():
            print("[patchwise] Non-interactive environment detected - exiting REPL.")
            return
        read_input = input

    print(f"{colorize('patchwise interactive session', Colors.BRIGHT_CYAN, bold=True)}")
    print(f"{colorize('-' * 60, Colors.BRIGHT_BLACK)}")
    print(f"  {colorize('[i] Commands: history, patterns, exit', Colors.BRIGHT_BLACK)}")
    print(f"  {colorize(f'[i] Project root: {orchestrator.context.root}', Colors.BRIGHT_BLACK)}")

    prompt = f"\n{colorize('patchwise', Colors.BRIGHT_CYAN)}{colorize('>', Colors.BRIGHT_BLACK)} "
    while True:
        try:
            sys.stdout.flush()
            line = read_input(prompt)
        except (KeyboardInterrupt, EOFError):
            print("\nExiting REPL")
            break

        if not handle_line(line, orchestrator, orchestrator.output):
            break
