#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Bounded in-memory log of conversation turns.

The most recent turns and a few derived user patterns are fed back into
intent classification so the agent can pick up on repeated preferences.
"""

from __future__ import annotations

import uuid
from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import PurePosixPath
from typing import Any, Deque, List, Optional

from patchwise import config


class Outcome(Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    MODIFIED = "modified"
    ERROR = "error"


@dataclass
class ConversationEntry:
    user_input: str
    outcome: Outcome = Outcome.ERROR
    intent: Optional[Any] = None
    files: List[str] = field(default_factory=list)
    context: str = ""
    id: str = field(default_factory=lambda: f"conv_{uuid.uuid4().hex[:12]}")
    timestamp: datetime = field(default_factory=datetime.now)


class ConversationHistory:
    """Keeps the last ``max_entries`` turns; older ones fall off."""

    def __init__(self, max_entries: Optional[int] = None):
        self.max_entries = max_entries or config.HISTORY_SIZE
        self._entries: Deque[ConversationEntry] = deque(maxlen=self.max_entries)

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, user_input: str, outcome: Outcome = Outcome.ERROR, **kwargs: Any) -> ConversationEntry:
        entry = ConversationEntry(user_input=user_input, outcome=outcome, **kwargs)
        self._entries.append(entry)
        return entry

    def recent(self, limit: int = 5) -> List[ConversationEntry]:
        if limit <= 0:
            return []
        return list(self._entries)[-limit:]

    def related_to(self, file: str) -> List[ConversationEntry]:
        return [entry for entry in self._entries if file in entry.files]

    def user_patterns(self) -> List[str]:
        patterns = []

        rejections = [
            e.context for e in self._entries
            if e.outcome == Outcome.REJECTED and e.context
        ]
        if rejections:
            patterns.append(f"User often rejects changes because: {', '.join(rejections[-3:])}")

        extensions = Counter(
            PurePosixPath(f).suffix.lstrip(".")
            for e in self._entries
            if e.outcome in (Outcome.ACCEPTED, Outcome.MODIFIED)
            for f in e.files
            if PurePosixPath(f).suffix
        )
        if extensions:
            top, _ = extensions.most_common(1)[0]
            patterns.append(f"User frequently works with .{top} files")

        return patterns

    def context_for_prompt(self, limit: Optional[int] = None) -> str:
        """Render recent turns and patterns as a prompt preamble ('' when empty)."""
        recent = self.recent(limit or config.HISTORY_PROMPT_ENTRIES)
        patterns = self.user_patterns()

        lines = []
        if recent:
            lines.append("Recent conversation context:")
            lines.extend(f"- {e.user_input} -> {e.outcome.value}" for e in recent)
            lines.append("")
        if patterns:
            lines.append("User patterns:")
            lines.extend(f"- {p}" for p in patterns)
            lines.append("")

        return "\n".join(lines) + "\n" if lines else ""
