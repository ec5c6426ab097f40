#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""patchwise - interactive agent that proposes, reviews and applies project edits."""

from patchwise._version import PATCHWISE_VERSION

__version__ = PATCHWISE_VERSION

from patchwise.workspace import ProjectContext
from patchwise.models import (
    Proposal,
    EditIntent,
    QuestionIntent,
    CompoundStep,
    SearchMatch,
    ValidationResult,
    ShellResult,
)
from patchwise.tools.errors import (
    ErrorKind,
    PatchwiseError,
    PathEscapeError,
    DangerousContentError,
    UnsafeCommandError,
    OriginalNotFoundError,
    SchemaInvalidError,
    PartialApplyError,
    ReasoningServiceError,
)
from patchwise.execution.orchestrator import ActionOrchestrator, TurnOutcome, TurnState

__all__ = [
    "__version__",
    "ProjectContext",
    "Proposal",
    "EditIntent",
    "QuestionIntent",
    "CompoundStep",
    "SearchMatch",
    "ValidationResult",
    "ShellResult",
    "ErrorKind",
    "PatchwiseError",
    "PathEscapeError",
    "DangerousContentError",
    "UnsafeCommandError",
    "OriginalNotFoundError",
    "SchemaInvalidError",
    "PartialApplyError",
    "ReasoningServiceError",
    "ActionOrchestrator",
    "TurnOutcome",
    "TurnState",
]
