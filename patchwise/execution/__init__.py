"""
Execution package for patchwise.

This package contains the per-turn workflow:
- Validation: preflight, local and semantic checks of proposed edits
- Review: consolidated diff and command preview shown before anything runs
- Orchestration: the turn state machine tying search, reasoning and apply together
"""

from patchwise.execution.validator import ProposalValidator, chunk_proposals
from patchwise.execution.review import parse_decision, render_review
from patchwise.execution.orchestrator import ActionOrchestrator, TurnOutcome, TurnState

__all__ = [
    # Validator
    "ProposalValidator",
    "chunk_proposals",
    # Review
    "parse_decision",
    "render_review",
    # Orchestrator
    "ActionOrchestrator",
    "TurnOutcome",
    "TurnState",
]
