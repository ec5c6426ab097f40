#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Proposal validation.

Three layers, in order:
1. Preflight: hard rules that are never retried or overridden (path stays in
   the project root, no denylisted content).
2. Local sanity checks against the current file content (bracket balance,
   JSON parse of the simulated result, locatable original snippet).
3. Semantic review by the reasoning service, batched by character budget.
   An unreadable answer degrades to a warning instead of blocking.
"""

import json
from typing import List, Optional, Sequence

from patchwise import config
from patchwise.debug_logger import get_logger
from patchwise.models import Proposal, ValidationResult
from patchwise.tools.errors import DangerousContentError, OriginalNotFoundError, PathEscapeError
from patchwise.tools.file_ops import patch_content, read_text
from patchwise.tools.search import detect_file_type
from patchwise.workspace import ProjectContext


PARSE_FAILURE_WARNING = "Validator failed to parse response; proceed with caution"
NO_RESULT_WARNING = "Validator returned no result; proceed with caution"

_BRACKET_PAIRS = (("(", ")"), ("[", "]"), ("{", "}"))
_BRACKET_FILE_TYPES = {"javascript", "python", "java", "cpp"}


def preflight(proposal: Proposal, context: ProjectContext) -> Optional[ValidationResult]:
    """Hard checks. Returns an invalid result, or None if the proposal passes."""
    try:
        context.resolve_path(proposal.file)
    except PathEscapeError:
        return ValidationResult.invalid(PathEscapeError(proposal.file).message)

    lowered = (proposal.replacement or "").lower()
    for substring in config.DANGEROUS_CONTENT:
        if substring.lower() in lowered:
            return ValidationResult.invalid(DangerousContentError(substring).message)

    return None


def _bracket_balance(text: str) -> tuple:
    return tuple(text.count(open_) - text.count(close) for open_, close in _BRACKET_PAIRS)


def local_checks(proposal: Proposal, context: ProjectContext) -> ValidationResult:
    """Cheap checks that need no reasoning service."""
    errors: List[str] = []
    warnings: List[str] = []

    path = context.resolve_path(proposal.file)
    file_type = detect_file_type(path)
    replacement = proposal.replacement or ""

    try:
        current = read_text(path)
    except (OSError, UnicodeDecodeError) as e:
        return ValidationResult.invalid(f"File {proposal.file} is not readable: {e}")

    if proposal.line_number is not None and proposal.original and not path.exists():
        errors.append(f"File {proposal.file} does not exist or is not readable")

    simulated: Optional[str] = None
    if not errors:
        try:
            simulated = patch_content(current, proposal)
        except OriginalNotFoundError as e:
            errors.append(f"Original snippet not found: {e}")
        else:
            if proposal.line_number is not None and proposal.original:
                lines = current.splitlines()
                idx = proposal.line_number - 1
                if not (0 <= idx < len(lines) and proposal.original in lines[idx]):
                    warnings.append(
                        f"Original text not found at line {proposal.line_number}; "
                        "the first occurrence in the file will be replaced"
                    )

    if file_type in _BRACKET_FILE_TYPES and _bracket_balance(replacement) != _bracket_balance(proposal.original or ""):
        errors.append("Unmatched brackets detected")

    if path.suffix.lower() == ".json" and simulated is not None:
        try:
            json.loads(simulated)
        except ValueError:
            errors.append("Invalid JSON syntax")

    if file_type == "javascript" and "import" in replacement and "from" not in replacement and "require" not in replacement:
        warnings.append("Import statement may be incomplete")

    if file_type == "python":
        rep_lines = replacement.split("\n")
        for i in range(1, len(rep_lines)):
            line = rep_lines[i]
            if line.strip() and not line[:1].isspace() and rep_lines[i - 1].strip().endswith(":"):
                warnings.append(f"Line {i + 1} may need indentation")

    if path.name == ".gitignore" and any("\\" in p for p in replacement.split("\n") if p.strip()):
        warnings.append("Backslashes in .gitignore patterns may not work as expected")

    if len(replacement) > config.LARGE_CHANGE_CHARS:
        warnings.append("Very large change detected - please review carefully")

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


def chunk_proposals(proposals: Sequence[Proposal], max_chars: Optional[int] = None) -> List[List[Proposal]]:
    """Split proposals into batches whose summed size stays under ``max_chars``.

    A single proposal larger than the budget still gets a batch of its own.
    """
    max_chars = max_chars or config.VALIDATION_BATCH_CHARS
    chunks: List[List[Proposal]] = []
    current: List[Proposal] = []
    size = 0

    for proposal in proposals:
        p_size = proposal.size() + config.VALIDATION_ITEM_OVERHEAD
        if current and size + p_size > max_chars:
            chunks.append(current)
            current = []
            size = 0
        current.append(proposal)
        size += p_size

    if current:
        chunks.append(current)
    return chunks


class ProposalValidator:
    """Validates proposals; results line up index-for-index with the input."""

    def __init__(self, reasoning=None, max_chars: Optional[int] = None):
        self.reasoning = reasoning
        self.max_chars = max_chars or config.VALIDATION_BATCH_CHARS

    def validate(self, proposals: Sequence[Proposal], context: ProjectContext) -> List[ValidationResult]:
        results: List[Optional[ValidationResult]] = [None] * len(proposals)
        pending: List[int] = []

        for i, proposal in enumerate(proposals):
            hard = preflight(proposal, context)
            if hard is not None:
                results[i] = hard
                continue
            local = local_checks(proposal, context)
            results[i] = local
            if local.is_valid:
                pending.append(i)

        if pending and self.reasoning is not None:
            to_review = [proposals[i] for i in pending]
            semantic: List[ValidationResult] = []
            for batch in chunk_proposals(to_review, self.max_chars):
                verdicts = self.reasoning.validate_batch(batch)
                if verdicts is None:
                    semantic.extend(ValidationResult(True, warnings=[PARSE_FAILURE_WARNING]) for _ in batch)
                    continue
                for j in range(len(batch)):
                    if j < len(verdicts):
                        semantic.append(verdicts[j])
                    else:
                        semantic.append(ValidationResult(True, warnings=[NO_RESULT_WARNING]))

            for idx, verdict in zip(pending, semantic):
                results[idx] = results[idx].merged(verdict)

        final = [r if r is not None else ValidationResult(True, warnings=[NO_RESULT_WARNING]) for r in results]

        get_logger().log("validator", "VALIDATION_COMPLETE", {
            "count": len(final),
            "invalid": [proposals[i].file for i, r in enumerate(final) if not r.is_valid],
        }, "DEBUG")
        return final
