#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Data models for patchwise."""

from patchwise.models.proposal import (
    CompoundStep,
    EditAction,
    EditIntent,
    INTENT_ADAPTER,
    Intent,
    PROPOSAL_LIST_ADAPTER,
    Proposal,
    QuestionIntent,
    StepAction,
    VERDICT_LIST_ADAPTER,
    ValidationVerdict,
)
from patchwise.models.results import (
    FILE_TYPES,
    OutputChunk,
    SafetyVerdict,
    SearchMatch,
    ShellResult,
    ValidationResult,
)

__all__ = [
    "CompoundStep",
    "EditAction",
    "EditIntent",
    "INTENT_ADAPTER",
    "Intent",
    "PROPOSAL_LIST_ADAPTER",
    "Proposal",
    "QuestionIntent",
    "StepAction",
    "VERDICT_LIST_ADAPTER",
    "ValidationVerdict",
    "FILE_TYPES",
    "OutputChunk",
    "SafetyVerdict",
    "SearchMatch",
    "ShellResult",
    "ValidationResult",
]
