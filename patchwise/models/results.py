#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Result records produced by search, validation and shell execution."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


FILE_TYPES = ("config", "javascript", "python", "java", "cpp", "documentation", "data", "unknown")


@dataclass
class SearchMatch:
    file: str
    line: str
    line_number: int
    file_type: str
    relevance_score: int
    is_new_file: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "line": self.line,
            "lineNumber": self.line_number,
            "fileType": self.file_type,
            "relevanceScore": self.relevance_score,
            "isNewFile": self.is_new_file,
        }


@dataclass
class ValidationResult:
    """Verdict for one proposal. Warnings never block application."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.is_valid and not self.errors:
            raise ValueError("invalid ValidationResult must carry at least one error")

    @classmethod
    def invalid(cls, *errors: str) -> "ValidationResult":
        return cls(is_valid=False, errors=list(errors))

    def merged(self, other: "ValidationResult") -> "ValidationResult":
        errors = self.errors + [e for e in other.errors if e not in self.errors]
        warnings = self.warnings + [w for w in other.warnings if w not in self.warnings]
        return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


@dataclass
class ShellResult:
    command: str
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cmd": self.command,
            "rc": self.exit_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "timed_out": self.timed_out,
        }


@dataclass(frozen=True)
class OutputChunk:
    """A piece of live process output; ``stream`` is "stdout" or "stderr"."""

    stream: str
    data: bytes


@dataclass(frozen=True)
class SafetyVerdict:
    safe: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.safe
