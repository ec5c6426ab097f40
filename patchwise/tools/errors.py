#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Error taxonomy for patchwise.

Every failure surfaced to the user maps onto an ErrorKind, which is logged
with the turn that failed.
"""

from enum import Enum
from typing import List, Optional


class ErrorKind(Enum):
    """Error categories raised by the agent core.

    - PATH_ESCAPE: a proposal targets a file outside the project root
    - DANGEROUS_CONTENT: replacement text contains a denylisted substring
    - UNSAFE_COMMAND: a shell command was rejected by the safety classifier
    - ORIGINAL_NOT_FOUND: the snippet to replace is not in the file
    - COMMAND_TIMEOUT: a command exceeded its time budget
    - NON_ZERO_EXIT: a command finished with a failing exit code
    - SCHEMA_INVALID: the reasoning service returned a non-conforming shape
    - VALIDATOR_PARSE_FAILURE: the semantic validator answer was unreadable
    """

    PATH_ESCAPE = "path_escape"
    DANGEROUS_CONTENT = "dangerous_content"
    UNSAFE_COMMAND = "unsafe_command"
    ORIGINAL_NOT_FOUND = "original_not_found"
    COMMAND_TIMEOUT = "command_timeout"
    NON_ZERO_EXIT = "non_zero_exit"
    SCHEMA_INVALID = "schema_invalid"
    VALIDATOR_PARSE_FAILURE = "validator_parse_failure"
    PARTIAL_APPLY = "partial_apply"
    REASONING_SERVICE = "reasoning_service"


class PatchwiseError(Exception):
    """Base class for errors raised by the agent core."""

    kind: ErrorKind = ErrorKind.REASONING_SERVICE

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PathEscapeError(PatchwiseError, ValueError):
    """Raised when a path resolves outside the project root."""

    kind = ErrorKind.PATH_ESCAPE

    def __init__(self, path: str, message: Optional[str] = None):
        super().__init__(message or f"File path escapes project root: {path}")
        self.path = path


class DangerousContentError(PatchwiseError):
    kind = ErrorKind.DANGEROUS_CONTENT

    def __init__(self, substring: str):
        super().__init__(f"Potentially dangerous operation detected: {substring}")
        self.substring = substring


class UnsafeCommandError(PatchwiseError):
    kind = ErrorKind.UNSAFE_COMMAND

    def __init__(self, command: str, reason: str):
        super().__init__(f"Unsafe command blocked ({reason}): {command}")
        self.command = command
        self.reason = reason


class OriginalNotFoundError(PatchwiseError):
    kind = ErrorKind.ORIGINAL_NOT_FOUND

    def __init__(self, file: str, line_number: Optional[int] = None):
        where = f" near line {line_number}" if line_number else ""
        super().__init__(f"original snippet not found in {file}{where}")
        self.file = file
        self.line_number = line_number


class SchemaInvalidError(PatchwiseError):
    """Reasoning service output did not match the expected schema."""

    kind = ErrorKind.SCHEMA_INVALID

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class ReasoningServiceError(PatchwiseError):
    """The LLM transport failed or returned an error payload."""

    kind = ErrorKind.REASONING_SERVICE


class PartialApplyError(PatchwiseError):
    """An edit failed after earlier edits in the same batch were written.

    Already-written files are left in place; ``applied`` lists them.
    """

    kind = ErrorKind.PARTIAL_APPLY

    def __init__(self, applied: List[str], cause: Exception):
        done = ", ".join(applied) if applied else "none"
        super().__init__(f"{cause} (already applied: {done})")
        self.applied = list(applied)
        self.cause = cause
