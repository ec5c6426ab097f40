#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Action orchestrator.

Drives one user turn at a time through the state machine

    IDLE -> INTENT_RESOLVED -> {QUESTION_ANSWERED | SHELL_PENDING |
    COMPOUND_PENDING | EDIT_PENDING} -> REVIEWED ->
    {APPLIED | REVISED | REJECTED | ERRORED} -> IDLE

Nothing touches the filesystem or runs a command before the user has seen a
single consolidated review and accepted it. Compound actions are fully
prepared (every command safety-checked, every code step searched, proposed
and validated) before that review; the first failing step aborts the whole
turn.

Accepted compound actions run their commands first and apply edits after.
Neither is rolled back when a later part fails; the failure is reported with
what had already been done.
"""

import os
import shlex
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

from patchwise import config
from patchwise.debug_logger import get_logger
from patchwise.execution.review import (
    parse_decision,
    render_review,
    render_validation_errors,
)
from patchwise.execution.validator import ProposalValidator
from patchwise.memory import ConversationHistory, Outcome
from patchwise.models import (
    EditIntent,
    Proposal,
    QuestionIntent,
    SearchMatch,
    ShellResult,
    ValidationResult,
)
from patchwise.terminal.formatting import Colors, colorize, create_bullet_item
from patchwise.tools.command_runner import CHAINING_RE, execute_command, is_command_safe
from patchwise.tools.errors import (
    PartialApplyError,
    PatchwiseError,
    SchemaInvalidError,
    UnsafeCommandError,
)
from patchwise.tools.file_ops import apply_edits, read_text
from patchwise.tools.proposals import dedupe_proposals
from patchwise.tools.search import RelevanceSearchEngine, SearchQuery, invalidate_file_cache
from patchwise.workspace import ProjectContext


EXCERPT_RADIUS = 20


class TurnState(Enum):
    IDLE = "idle"
    INTENT_RESOLVED = "intent_resolved"
    QUESTION_ANSWERED = "question_answered"
    SHELL_PENDING = "shell_pending"
    COMPOUND_PENDING = "compound_pending"
    EDIT_PENDING = "edit_pending"
    REVIEWED = "reviewed"
    APPLIED = "applied"
    REVISED = "revised"
    REJECTED = "rejected"
    ERRORED = "errored"


@dataclass
class TurnOutcome:
    """What happened during one turn.

    ``state`` is the terminal state reached before the orchestrator went back
    to IDLE; ``transitions`` is the full path through the state machine.
    """
    state: TurnState = TurnState.IDLE
    message: str = ""
    intent: Optional[Any] = None
    proposals: List[Proposal] = field(default_factory=list)
    results: List[ValidationResult] = field(default_factory=list)
    commands: List[ShellResult] = field(default_factory=list)
    applied: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    feedback: str = ""
    reviewed: bool = False
    revised: bool = False
    transitions: List[TurnState] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.state in (TurnState.APPLIED, TurnState.QUESTION_ANSWERED)


@dataclass
class _EditUnit:
    """Proposals generated for one (intent or step, match) pair."""
    intent: EditIntent
    match: SearchMatch
    excerpt: str
    proposals: List[Proposal]


class _TurnAborted(Exception):
    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or [message]


def _cd_target(command: str) -> Optional[str]:
    """Directory argument of a bare ``cd`` command, or None for anything else."""
    if CHAINING_RE.search(command):
        return None
    try:
        tokens = shlex.split(command)
    except ValueError:
        return None
    if not tokens or tokens[0] != "cd" or len(tokens) > 2:
        return None
    return tokens[1] if len(tokens) == 2 else "~"


def _command_base(command: str) -> str:
    try:
        tokens = shlex.split(command)
    except ValueError:
        tokens = command.split()
    return os.path.basename(tokens[0]).lower() if tokens else ""


class ActionOrchestrator:
    """Coordinates search, reasoning, validation, review and application.

    Collaborators are injected so the whole flow can be driven without a
    terminal or an LLM; ``ask`` and ``output`` default to ``input`` and
    ``print``.
    """

    def __init__(
        self,
        reasoning,
        context: Optional[ProjectContext] = None,
        search_engine: Optional[RelevanceSearchEngine] = None,
        validator: Optional[ProposalValidator] = None,
        execute: Optional[Callable[..., ShellResult]] = None,
        ask: Optional[Callable[[str], str]] = None,
        output: Optional[Callable[[str], None]] = None,
        history: Optional[ConversationHistory] = None,
        auto_approve: bool = False,
    ):
        self.reasoning = reasoning
        self.context = context or ProjectContext.from_cwd()
        self.search_engine = search_engine or RelevanceSearchEngine()
        self.validator = validator or ProposalValidator(reasoning)
        self.execute = execute or execute_command
        self.ask = ask or input
        self.output = output or print
        self.history = history if history is not None else ConversationHistory()
        self.auto_approve = auto_approve
        self.state = TurnState.IDLE
        self._outcome = TurnOutcome()

    # ------------------------------------------------------------------
    # Turn lifecycle
    # ------------------------------------------------------------------

    def handle(self, user_input: str) -> TurnOutcome:
        """Process one user turn to completion."""
        outcome = TurnOutcome()
        self._outcome = outcome
        self._transition(TurnState.IDLE)

        history_context = self.history.context_for_prompt()
        try:
            intent = self._resolve_intent(user_input, history_context)
            outcome.intent = intent
            self._transition(TurnState.INTENT_RESOLVED, {
                "intent_type": intent.intent_type,
                "action": getattr(intent, "action", None),
            })

            if isinstance(intent, QuestionIntent):
                self._answer(intent, history_context)
            elif intent.action == "shell_command":
                self._run_shell(intent)
            elif intent.action == "compound_action":
                self._run_compound(intent)
            else:
                self._run_edit(intent)
        except _TurnAborted as e:
            self._fail(e.message, e.errors)
        except PatchwiseError as e:
            get_logger().log_error("orchestrator", e, {"kind": e.kind.value})
            self._fail(e.message)
        finally:
            self.state = TurnState.IDLE

        self._record(user_input, outcome)
        self._transition(TurnState.IDLE)
        get_logger().log("orchestrator", "TURN_COMPLETE", {
            "state": outcome.state.value,
            "applied": outcome.applied,
            "commands": [r.command for r in outcome.commands],
        })
        return outcome

    def _transition(self, state: TurnState, details: Optional[dict] = None) -> None:
        self.state = state
        self._outcome.transitions.append(state)
        get_logger().log_workflow_phase(state.value, details)

    def _finish(self, state: TurnState, message: str = "") -> None:
        self._outcome.state = state
        self._outcome.message = message
        self._transition(state)

    def _fail(self, message: str, errors: Optional[List[str]] = None) -> None:
        self._outcome.errors.extend(errors or [message])
        self._finish(TurnState.ERRORED, message)
        self.output(create_bullet_item(colorize(message, Colors.BRIGHT_RED), "cross", indent=0))
        for error in errors or []:
            if error != message:
                self.output(create_bullet_item(error, "cross"))

    def _confirm(self, prompt: str) -> str:
        if self.auto_approve:
            return "y"
        try:
            return self.ask(prompt)
        except (KeyboardInterrupt, EOFError):
            self.output("\n[Cancelled by user]")
            return "n"

    def _record(self, user_input: str, outcome: TurnOutcome) -> None:
        if outcome.state == TurnState.APPLIED:
            result = Outcome.MODIFIED if outcome.revised else Outcome.ACCEPTED
        elif outcome.state == TurnState.QUESTION_ANSWERED:
            result = Outcome.ACCEPTED
        elif outcome.state == TurnState.REJECTED:
            result = Outcome.REJECTED
        else:
            result = Outcome.ERROR

        self.history.add(
            user_input,
            outcome=result,
            intent=outcome.intent,
            files=outcome.applied or [p.file for p in outcome.proposals],
            context=outcome.feedback or (outcome.message if result == Outcome.ERROR else ""),
        )

    # ------------------------------------------------------------------
    # Intent
    # ------------------------------------------------------------------

    def _resolve_intent(self, user_input: str, history_context: str):
        try:
            return self.reasoning.classify_intent(user_input, history_context)
        except SchemaInvalidError as e:
            get_logger().log_error("orchestrator", e, {"fallback": "question"})
            return QuestionIntent(intent_type="question", question=user_input)

    def _answer(self, intent: QuestionIntent, history_context: str) -> None:
        answer = self.reasoning.answer_question(intent.question, history_context)
        self.output(answer)
        self._finish(TurnState.QUESTION_ANSWERED, answer)

    # ------------------------------------------------------------------
    # Shell
    # ------------------------------------------------------------------

    def _check_command(self, command: str) -> None:
        verdict = is_command_safe(command)
        if not verdict.safe:
            raise UnsafeCommandError(command, verdict.reason or "blocked by shell safety policy")

    def _execute(self, command: str) -> ShellResult:
        interactive = _command_base(command) in config.LONG_RUNNING_COMMANDS
        timeout = config.INTERACTIVE_TIMEOUT if interactive else config.COMMAND_TIMEOUT
        self.output(colorize(f"$ {command}", Colors.BRIGHT_BLACK))

        result = self.execute(command, self.context.root, timeout=timeout, interactive=interactive)
        self._outcome.commands.append(result)

        if not interactive:
            if result.stdout:
                self.output(result.stdout.rstrip("\n"))
            if result.stderr:
                self.output(colorize(result.stderr.rstrip("\n"), Colors.YELLOW))
        return result

    def _run_shell(self, intent: EditIntent) -> None:
        command = intent.command.strip()
        self._transition(TurnState.SHELL_PENDING, {"command": command})

        target = _cd_target(command)
        if target is not None:
            self._change_directory(target)
            return

        self._check_command(command)
        self.output(render_review([command], [], self.context, title="Command preview"))
        decision, _ = parse_decision(self._confirm("Run this command? [y/N]: "))
        self._outcome.reviewed = True
        self._transition(TurnState.REVIEWED)

        if decision != "accept":
            self._finish(TurnState.REJECTED, "Command not run")
            return

        result = self._execute(command)
        if not result.ok:
            raise _TurnAborted(f"Command exited with code {result.exit_code}: {command}")
        self._finish(TurnState.APPLIED, f"Ran: {command}")

    def _change_directory(self, target: str) -> None:
        new_root = self.context.resolve_directory(target)
        if new_root is None:
            raise _TurnAborted(f"Directory not found: {target}")

        self.output(f"Change working directory to {new_root}")
        decision, _ = parse_decision(self._confirm("Change directory? [y/N]: "))
        self._outcome.reviewed = True
        self._transition(TurnState.REVIEWED)
        if decision != "accept":
            self._finish(TurnState.REJECTED, "Directory unchanged")
            return

        self.context = self.context.change_directory(target)
        os.chdir(self.context.root)
        invalidate_file_cache()
        self._finish(TurnState.APPLIED, f"Working directory: {self.context.root}")

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def _excerpt(self, match: SearchMatch) -> str:
        if match.is_new_file:
            return ""
        try:
            lines = read_text(self.context.resolve_path(match.file)).splitlines()
        except (PatchwiseError, OSError, UnicodeDecodeError):
            return ""
        start = max(match.line_number - 1 - EXCERPT_RADIUS, 0)
        end = min(match.line_number + EXCERPT_RADIUS, len(lines))
        return "\n".join(f"{n:>5}| {lines[n - 1]}" for n in range(start + 1, end + 1))

    def _prepare_unit(self, intent: EditIntent) -> _EditUnit:
        keyword = intent.target or intent.description
        query = SearchQuery(action=intent.action, target=intent.target, description=intent.description)
        matches = self.search_engine.search(keyword, query, self.context)
        if not matches:
            raise _TurnAborted(f"No matching location found for '{keyword}'")

        match = matches[0]
        excerpt = self._excerpt(match)
        proposals = self.reasoning.propose_edits(intent, match, excerpt)
        return _EditUnit(intent, match, excerpt, dedupe_proposals(proposals, self.context.root))

    def _combined(self, units: Sequence[_EditUnit]) -> List[Proposal]:
        return dedupe_proposals([p for unit in units for p in unit.proposals], self.context.root)

    def _validate(self, proposals: List[Proposal]) -> List[ValidationResult]:
        results = self.validator.validate(proposals, self.context)
        self._outcome.proposals = list(proposals)
        self._outcome.results = results
        if not all(r.is_valid for r in results):
            details = render_validation_errors(proposals, results)
            errors = [f"{p.file}: {e}" for p, r in zip(proposals, results) for e in r.errors]
            self.output(details)
            raise _TurnAborted("Proposed changes failed validation", errors)
        return results

    def _present(self, commands, proposals, results, title: str) -> None:
        try:
            view = render_review(commands, proposals, self.context, results, title=title)
        except PatchwiseError as e:
            raise _TurnAborted(f"Could not render proposed changes: {e}") from e
        self.output(view)
        self._outcome.reviewed = True
        self._transition(TurnState.REVIEWED, {"commands": len(commands), "proposals": len(proposals)})

    def _run_edit(self, intent: EditIntent) -> None:
        self._transition(TurnState.EDIT_PENDING, {"action": intent.action, "target": intent.target})
        unit = self._prepare_unit(intent)
        self._review_and_apply([], [unit])

    def _run_compound(self, intent: EditIntent) -> None:
        steps = intent.steps or []
        self._transition(TurnState.COMPOUND_PENDING, {"steps": len(steps)})

        commands: List[str] = []
        units: List[_EditUnit] = []
        for index, step in enumerate(steps, 1):
            try:
                if step.action == "shell_command":
                    command = step.command.strip()
                    self._check_command(command)
                    commands.append(command)
                else:
                    step_intent = EditIntent(
                        intent_type="edit",
                        action=step.action,
                        target=step.target,
                        description=step.description,
                    )
                    units.append(self._prepare_unit(step_intent))
            except (_TurnAborted, PatchwiseError) as e:
                reason = e.message
                raise _TurnAborted(
                    f"Compound action aborted at step {index}/{len(steps)}: {reason}"
                ) from e

        self._review_and_apply(commands, units)

    def _review_and_apply(self, commands: List[str], units: List[_EditUnit]) -> None:
        proposals = self._combined(units)
        results = self._validate(proposals)
        self._present(commands, proposals, results, title="Proposed changes")

        answer = self._confirm("Apply these changes? [y/N, or type feedback]: ")
        decision, feedback = parse_decision(answer)

        if decision == "reject":
            self._finish(TurnState.REJECTED, "Changes discarded")
            return

        if decision == "feedback":
            self._outcome.feedback = feedback
            self._outcome.revised = True
            self._transition(TurnState.REVISED, {"feedback": feedback[:200]})

            units = [self._revise(unit, feedback) for unit in units]
            proposals = self._combined(units)
            results = self._validate(proposals)
            self._present(commands, proposals, results, title="Revised changes")

            decision, _ = parse_decision(self._confirm("Apply revised changes? [y/N]: "))
            if decision != "accept":
                self._finish(TurnState.REJECTED, "Revised changes discarded")
                return

        self._commit(commands, proposals)

    def _revise(self, unit: _EditUnit, feedback: str) -> _EditUnit:
        revised = self.reasoning.revise_proposals(
            feedback, unit.intent, unit.match, unit.proposals, unit.excerpt
        )
        return _EditUnit(unit.intent, unit.match, unit.excerpt, dedupe_proposals(revised, self.context.root))

    def _commit(self, commands: List[str], proposals: List[Proposal]) -> None:
        for position, command in enumerate(commands, 1):
            result = self._execute(command)
            if not result.ok:
                skipped = len(commands) - position
                raise _TurnAborted(
                    f"Command exited with code {result.exit_code}: {command} "
                    f"({skipped} remaining command(s) and {len(proposals)} edit(s) skipped)"
                )

        try:
            written = apply_edits(proposals, self.context)
        except PartialApplyError as e:
            self._outcome.applied = list(e.applied)
            raise
        finally:
            if proposals:
                invalidate_file_cache()

        self._outcome.applied = [self.context.relative(p) for p in written]
        for rel in self._outcome.applied:
            self.output(create_bullet_item(f"Updated {rel}", "check"))
        self._finish(TurnState.APPLIED, f"Applied {len(proposals)} change(s)")
