#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Edit application for patchwise.

Proposals are applied as whole-file rewrites. The patching itself is a pure
function over file content so the same logic drives previews, validation
and the real write.
"""

from collections import OrderedDict
from pathlib import Path
from typing import List, Sequence, Tuple

from patchwise.debug_logger import get_logger
from patchwise.models import Proposal
from patchwise.tools.errors import OriginalNotFoundError, PartialApplyError, PatchwiseError
from patchwise.workspace import ProjectContext


def read_text(path: Path) -> str:
    """Read a file for patching; a missing file reads as empty."""
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            return f.read()
    except FileNotFoundError:
        return ""


def _append(content: str, addition: str) -> str:
    if content:
        content = content.rstrip("\n") + "\n"
    result = content + addition
    if not result.endswith("\n"):
        result += "\n"
    return result


def patch_content(content: str, proposal: Proposal) -> str:
    """Return ``content`` with ``proposal`` applied.

    - no line number: append the replacement
    - the addressed line contains the original: replace its first occurrence
      on that line only
    - otherwise replace the first occurrence anywhere in the file

    Raises:
        OriginalNotFoundError: If the original snippet cannot be located.
    """
    if proposal.line_number is None:
        return _append(content, proposal.replacement)

    original = proposal.original or ""
    lines = content.splitlines(keepends=True)
    idx = proposal.line_number - 1

    if 0 <= idx < len(lines) and original in lines[idx]:
        lines[idx] = lines[idx].replace(original, proposal.replacement, 1)
        return "".join(lines)

    if not original:
        # out-of-range line with nothing to match
        return _append(content, proposal.replacement)

    pos = content.find(original)
    if pos == -1:
        raise OriginalNotFoundError(proposal.file, proposal.line_number)
    return content[:pos] + proposal.replacement + content[pos + len(original):]


def preview_edits(
    proposals: Sequence[Proposal], context: ProjectContext
) -> "OrderedDict[Path, Tuple[str, str]]":
    """Simulate proposals in order and return ``{path: (before, after)}``.

    Several proposals against one file are applied on top of each other, the
    same way apply_edits would write them.
    """
    previews: "OrderedDict[Path, Tuple[str, str]]" = OrderedDict()
    for proposal in proposals:
        path = context.resolve_path(proposal.file)
        before, current = previews.get(path, (None, None))
        if before is None:
            before = read_text(path)
            current = before
        previews[path] = (before, patch_content(current, proposal))
    return previews


def apply_edit(proposal: Proposal, context: ProjectContext) -> Path:
    """Apply one proposal to disk, creating parent directories as needed.

    Returns:
        Absolute path of the written file.
    """
    path = context.resolve_path(proposal.file)
    updated = patch_content(read_text(path), proposal)

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(updated)

    get_logger().log("edit", "EDIT_APPLIED", {
        "file": context.relative(path),
        "line_number": proposal.line_number,
        "bytes": len(updated),
    })
    return path


def apply_edits(proposals: Sequence[Proposal], context: ProjectContext) -> List[Path]:
    """Apply proposals in order.

    Raises:
        PartialApplyError: On the first failure; files written before it stay
            written and are listed on the error.
    """
    applied: List[Path] = []
    for proposal in proposals:
        try:
            applied.append(apply_edit(proposal, context))
        except (PatchwiseError, OSError, UnicodeDecodeError) as exc:
            get_logger().log_error("edit", exc, {"file": proposal.file})
            raise PartialApplyError([context.relative(p) for p in applied], exc) from exc
    return applied

