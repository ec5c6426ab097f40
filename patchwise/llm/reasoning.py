#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Reasoning service: the JSON contract between the agent core and the LLM.

Every structured call strips code fences from the reply, validates it
against the schema models, and on failure re-asks exactly once with the
invalid output appended. A second failure raises SchemaInvalidError.
"""

import json
import re
from typing import Any, Callable, Dict, List, Optional, Sequence

from patchwise.debug_logger import get_logger
from patchwise.llm import client
from patchwise.models import (
    INTENT_ADAPTER,
    EditIntent,
    Intent,
    Proposal,
    SearchMatch,
    ValidationResult,
    VERDICT_LIST_ADAPTER,
)
from patchwise.tools.errors import ReasoningServiceError, SchemaInvalidError


ChatFn = Callable[..., Dict[str, Any]]

_FENCE_RE = re.compile(r"```[a-zA-Z0-9_-]*\n?")

SYSTEM_PROMPT = (
    "You are the planning component of a coding agent that edits a local project. "
    "When asked for JSON, reply with raw JSON only: no markdown, no commentary."
)

INTENT_PROMPT = """{history}Classify the user input as either an edit intent or a question.

User input: {user_input!r}

Rules:
- Requests to modify, add, fix, refactor or configure code, or to run shell/terminal commands, are EDIT intents.
- Requests for information or explanations are QUESTION intents.
- Package installs ("install X", "add X", "setup X") or mentions of npm/yarn/pnpm/npx/pip are EDIT with action "shell_command".
- For EDIT, "action" must be exactly one of:
  "add_code" | "modify_code" | "fix_error" | "refactor" | "config_change" | "shell_command" | "compound_action"
- "shell_command" requires a concrete "command" string.
- "compound_action" requires a non-empty "steps" array; each step has "action"
  ("add_code" | "modify_code" | "shell_command"), "target", "description" and, for shell steps, "command".
- To change directory use action "shell_command" with command "cd <dir>".

Examples:
Input: "install express please"
Output: {{"intentType":"edit","action":"shell_command","target":"project","description":"Install express","command":"npm install express"}}

Input: "what does the auth middleware do?"
Output: {{"intentType":"question","question":"what does the auth middleware do?"}}

Return exactly one JSON object of the form
{{"intentType":"edit","action":"...","target":"...","description":"...","command":"...","steps":[...]}}
or
{{"intentType":"question","question":"..."}}
"""

PROPOSAL_PROMPT = """Generate code change proposals for the request below.

Return ONLY a JSON array of proposal objects with exactly these keys:
{{"file": "relative/path", "original": "exact existing text", "replacement": "new text", "lineNumber": 12, "explanation": "why"}}

Rules:
- "original" must be copied verbatim from the file; it is replaced by "replacement".
- "lineNumber" is the 1-based line where "original" starts.
- To append to a file (or create a new one) use "original": "" and "lineNumber": null.
- Paths are relative to the project root and must not leave it.

Intent:
{intent}

Best matching location:
{match}

File excerpt:
{excerpt}
"""

REVISION_PROMPT = """Revise the proposed code changes using the user's feedback.

Feedback: {feedback!r}

Intent:
{intent}

Location:
{match}

File excerpt:
{excerpt}

Previous proposals:
{previous}

Return ONLY a JSON array of revised proposals using the same keys
("file", "original", "replacement", "lineNumber", "explanation").
"""

VALIDATION_PROMPT = """You are a strict but pragmatic code change validator. Review each proposed
file edit for internal consistency and obvious mistakes. Do NOT rewrite code.

Return ONLY a JSON array with one element per proposal, in the same order:
{{"isValid": true, "errors": [], "warnings": []}}

Guidelines:
- If "lineNumber" is set and "original" is empty, warn that the location may be ambiguous.
- Malformed JSON or configuration content is invalid.
- Flag destructive content that slipped through.
- Prefer warnings over failures unless a change is clearly unsafe or malformed.
- New-file scaffolding and example content are valid; warn at most.

Proposals:
{proposals}
"""

CORRECTION_SUFFIX = """

Your previous output was invalid or did not match the schema:
{previous}

Problem: {problem}

Correct it and return ONLY the corrected JSON."""


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences (```json ... ```) around a reply."""
    return _FENCE_RE.sub("", text or "").strip()


def _clip(text: str, limit: int = 800) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + f"...[{len(text) - limit} more chars]"


def _parse_intent(text: str) -> Intent:
    return INTENT_ADAPTER.validate_json(text)


def _parse_proposals(text: str) -> List[Proposal]:
    data = json.loads(text)
    if isinstance(data, dict):
        data = data.get("proposals", [data]) if "file" not in data else [data]
    if not isinstance(data, list) or not data:
        raise ValueError("expected a non-empty JSON array of proposals")
    return [Proposal.model_validate_json(json.dumps(item)) for item in data]


class ReasoningService:
    """LLM-backed implementation of the agent's reasoning operations."""

    def __init__(
        self,
        chat_fn: Optional[ChatFn] = None,
        model: Optional[str] = None,
        provider: Optional[str] = None,
    ):
        self._chat = chat_fn or client.chat
        self.model = model
        self.provider = provider

    def _complete(self, prompt: str, json_mode: bool = False) -> str:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        response = self._chat(messages, model=self.model, provider=self.provider, json_mode=json_mode)
        if not isinstance(response, dict) or "error" in response:
            error = response.get("error") if isinstance(response, dict) else response
            raise ReasoningServiceError(f"Reasoning service request failed: {error}")
        return str((response.get("message") or {}).get("content") or "")

    def _complete_structured(self, prompt: str, parse: Callable[[str], Any], what: str) -> Any:
        """Ask for JSON, retrying once with the invalid reply appended."""
        text = self._complete(prompt)
        try:
            return parse(strip_code_fences(text))
        except ValueError as first_error:
            get_logger().log("reasoning", "SCHEMA_RETRY", {
                "what": what,
                "error": str(first_error)[:500],
                "raw": text[:500],
            }, "WARNING")
            correction = prompt + CORRECTION_SUFFIX.format(previous=text, problem=str(first_error)[:1000])

        retry_text = self._complete(correction)
        try:
            return parse(strip_code_fences(retry_text))
        except ValueError as e:
            raise SchemaInvalidError(f"Invalid {what} from reasoning service: {e}", raw=retry_text) from e

    def classify_intent(self, user_input: str, history_context: str = "") -> Intent:
        prompt = INTENT_PROMPT.format(history=history_context, user_input=user_input)
        intent = self._complete_structured(prompt, _parse_intent, "intent")
        get_logger().log("reasoning", "INTENT_CLASSIFIED", {
            "intent_type": intent.intent_type,
            "action": getattr(intent, "action", None),
        })
        return intent

    def propose_edits(self, intent: EditIntent, match: SearchMatch, excerpt: str = "") -> List[Proposal]:
        prompt = PROPOSAL_PROMPT.format(
            intent=intent.model_dump_json(by_alias=True, exclude_none=True, indent=2),
            match=json.dumps(match.to_dict(), indent=2),
            excerpt=excerpt or "(new file)",
        )
        return self._complete_structured(prompt, _parse_proposals, "proposals")

    def revise_proposals(
        self,
        feedback: str,
        intent: EditIntent,
        match: SearchMatch,
        previous: Sequence[Proposal],
        excerpt: str = "",
    ) -> List[Proposal]:
        prompt = REVISION_PROMPT.format(
            feedback=feedback,
            intent=intent.model_dump_json(by_alias=True, exclude_none=True, indent=2),
            match=json.dumps(match.to_dict(), indent=2),
            excerpt=excerpt or "(new file)",
            previous=json.dumps([p.to_wire() for p in previous], indent=2),
        )
        return self._complete_structured(prompt, _parse_proposals, "revised proposals")

    def validate_batch(self, proposals: Sequence[Proposal]) -> Optional[List[ValidationResult]]:
        """Semantic validation of a batch.

        Returns:
            One result per proposal (possibly fewer if the service dropped
            some), or None if the reply could not be parsed after the retry
            or the service could not be reached.
        """
        prepared = []
        for proposal in proposals:
            wire = proposal.to_wire()
            wire["original"] = _clip(wire["original"])
            wire["replacement"] = _clip(wire["replacement"])
            prepared.append(wire)

        prompt = VALIDATION_PROMPT.format(proposals=json.dumps(prepared, indent=2))
        try:
            verdicts = self._complete_structured(prompt, VERDICT_LIST_ADAPTER.validate_json, "validation")
        except (SchemaInvalidError, ReasoningServiceError) as e:
            get_logger().log_error("reasoning", e, {"batch_size": len(proposals)})
            return None

        results = []
        for verdict in verdicts:
            errors = list(verdict.errors)
            if not verdict.is_valid and not errors:
                errors.append("Validator rejected the change without giving a reason")
            results.append(ValidationResult(
                is_valid=verdict.is_valid,
                errors=errors,
                warnings=list(verdict.warnings),
            ))
        return results

    def answer_question(self, question: str, history_context: str = "") -> str:
        prompt = f"{history_context}{question}" if history_context else question
        return self._complete(prompt).strip()
