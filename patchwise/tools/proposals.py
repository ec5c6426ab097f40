#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Proposal deduplication."""

import hashlib
from pathlib import Path
from typing import List, Sequence, Union

from patchwise.models import Proposal


def _sha256(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def proposal_key(proposal: Proposal, root: Union[str, Path]) -> str:
    """Identity of a proposal: resolved path, line number, and content hashes."""
    file_key = (Path(root) / proposal.file).resolve(strict=False)
    line = "null" if proposal.line_number is None else str(proposal.line_number)
    return f"{file_key}|{line}|{_sha256(proposal.original or '')}|{_sha256(proposal.replacement or '')}"


def dedupe_proposals(proposals: Sequence[Proposal], root: Union[str, Path]) -> List[Proposal]:
    """Drop exact duplicates, keeping the first occurrence and the input order."""
    seen = set()
    result: List[Proposal] = []
    for proposal in proposals:
        key = proposal_key(proposal, root)
        if key in seen:
            continue
        seen.add(key)
        result.append(proposal)
    return result
