#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Review rendering.

Builds the single consolidated view the user approves or rejects: pending
shell commands followed by a unified diff of every proposal, plus any
validator warnings. Nothing here touches the filesystem except reading the
files being diffed.
"""

import difflib
from typing import List, Optional, Sequence, Tuple

from patchwise.models import Proposal, ValidationResult
from patchwise.terminal.formatting import (
    Colors,
    colorize,
    create_bullet_item,
    create_header,
    create_section,
    format_command,
)
from patchwise.tools.file_ops import preview_edits
from patchwise.workspace import ProjectContext


ACCEPT_WORDS = {"y", "yes"}
REJECT_WORDS = {"", "n", "no"}

_PATCH_INDENT = "  "


def _color_line(line: str) -> str:
    """Apply simple coloring to diff lines for terminal display."""

    if line.startswith("+++") or line.startswith("---"):
        return colorize(line, Colors.CYAN)
    if line.startswith("@@"):
        return colorize(line, Colors.CYAN)
    if line.startswith("+"):
        return colorize(line, Colors.GREEN)
    if line.startswith("-"):
        return colorize(line, Colors.RED)
    return line


def parse_decision(answer: str) -> Tuple[str, str]:
    """Interpret a review answer.

    Returns:
        ("accept", ""), ("reject", "") or ("feedback", <text>).
    """
    text = (answer or "").strip()
    lowered = text.lower()
    if lowered in ACCEPT_WORDS:
        return "accept", ""
    if lowered in REJECT_WORDS:
        return "reject", ""
    return "feedback", text


def diff_lines(rel_path: str, before: str, after: str, is_new: bool = False) -> List[str]:
    """Unified diff between two versions of one file, without line endings."""
    fromfile = "/dev/null" if is_new else f"a/{rel_path}"
    return [
        line.rstrip("\n")
        for line in difflib.unified_diff(
            before.splitlines(keepends=True),
            after.splitlines(keepends=True),
            fromfile=fromfile,
            tofile=f"b/{rel_path}",
        )
    ]


def render_diff(proposals: Sequence[Proposal], context: ProjectContext) -> str:
    """Colorized unified diff of all proposals, one block per file."""
    blocks = []
    total_add = total_del = 0

    for path, (before, after) in preview_edits(proposals, context).items():
        rel = context.relative(path)
        lines = diff_lines(rel, before, after, is_new=not path.exists())
        if not lines:
            blocks.append(f"{_PATCH_INDENT}(no change to {rel})")
            continue
        for line in lines:
            if line.startswith("+") and not line.startswith("+++"):
                total_add += 1
            elif line.startswith("-") and not line.startswith("---"):
                total_del += 1
            blocks.append(f"{_PATCH_INDENT}{_color_line(line)}")

    explanations = [p.explanation for p in proposals if p.explanation]
    for explanation in explanations:
        blocks.append(create_bullet_item(explanation, "arrow"))

    blocks.append(f"{_PATCH_INDENT}Totals: +{total_add}/-{total_del}")
    return "\n".join(blocks)


def render_review(
    commands: Sequence[str],
    proposals: Sequence[Proposal],
    context: ProjectContext,
    results: Optional[Sequence[ValidationResult]] = None,
    title: str = "Proposed changes",
) -> str:
    """Consolidated review: commands, then diffs, then validator warnings."""
    parts = [create_header(title)]

    if commands:
        parts.append(create_section("Commands to run (in order):"))
        parts.extend(format_command(cmd) for cmd in commands)

    if proposals:
        parts.append(create_section(f"File changes ({len(proposals)}):"))
        parts.append(render_diff(proposals, context))

    warnings = render_warnings(proposals, results or [])
    if warnings:
        parts.append(create_section("Warnings:"))
        parts.append(warnings)

    return "\n".join(parts)


def render_warnings(proposals: Sequence[Proposal], results: Sequence[ValidationResult]) -> str:
    lines = []
    for proposal, result in zip(proposals, results):
        for warning in result.warnings:
            lines.append(create_bullet_item(f"{proposal.file}: {warning}", "warning"))
    return "\n".join(lines)


def render_validation_errors(proposals: Sequence[Proposal], results: Sequence[ValidationResult]) -> str:
    """List every violated rule, naming the file it applies to."""
    lines = []
    for proposal, result in zip(proposals, results):
        for error in result.errors:
            lines.append(create_bullet_item(f"{proposal.file}: {error}", "cross"))
    return "\n".join(lines)
