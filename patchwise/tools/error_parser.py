#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Classify pasted compiler/runtime errors and suggest next steps."""

import re
from dataclasses import dataclass, field
from typing import List, Optional


_FILE_LINE_RE = re.compile(r"([^\s\"'()]+\.(?:ts|tsx|js|jsx|py|java|cpp|c|h)):(\d+)")
_PY_TRACEBACK_RE = re.compile(r'File "([^"]+)", line (\d+)')

ERROR_MARKERS = (
    "Traceback (most recent call last)",
    "Error:",
    "error TS",
    "MODULE_NOT_FOUND",
    "ModuleNotFoundError",
    "SyntaxError",
    "TypeError",
)


@dataclass
class ParsedError:
    type: str = "unknown"
    message: str = ""
    file: Optional[str] = None
    line: Optional[int] = None
    suggestions: List[str] = field(default_factory=list)


def looks_like_error(text: str) -> bool:
    """True when user input reads like a pasted error rather than a request."""
    return any(marker in text for marker in ERROR_MARKERS) and (
        "\n" in text.strip() or bool(_FILE_LINE_RE.search(text)) or bool(_PY_TRACEBACK_RE.search(text))
    )


def parse_error(error_text: str) -> ParsedError:
    result = ParsedError(message=error_text.strip())

    if "ts(" in error_text or re.search(r"error TS\d+", error_text):
        result.type = "type"
        if "Cannot find module" in error_text:
            result.type = "import"
            result.suggestions += [
                "Install the missing package with npm/yarn/pnpm",
                "Check the import path is correct",
                "Add type definitions if it's a TypeScript project",
            ]
        if "Property" in error_text and "does not exist" in error_text:
            result.suggestions += [
                "Check the property name spelling",
                "Verify the object type/interface",
                "Add the property to the type definition",
            ]

    if "MODULE_NOT_FOUND" in error_text:
        result.type = "import"
        result.suggestions += [
            "Run 'npm install' to install dependencies",
            "Check if the module name is correct",
            "Verify the module is listed in package.json",
        ]

    if "ModuleNotFoundError" in error_text or "ImportError" in error_text:
        result.type = "import"
        result.suggestions += [
            "Install the module with pip",
            "Check if the module name is correct",
            "Verify your virtual environment is activated",
        ]

    if "SyntaxError" in error_text or "IndentationError" in error_text:
        result.type = "syntax"
        result.suggestions += [
            "Check for missing brackets, quotes, or colons",
            "Verify indentation is correct",
        ]

    if result.type == "unknown" and ("TypeError" in error_text or "Traceback" in error_text):
        result.type = "runtime"

    # The innermost frame of a Python traceback is the last one
    frames = _PY_TRACEBACK_RE.findall(error_text)
    if frames:
        result.file, line = frames[-1]
        result.line = int(line)
    else:
        match = _FILE_LINE_RE.search(error_text)
        if match:
            result.file = match.group(1)
            result.line = int(match.group(2))

    return result


def suggest_fix(parsed: ParsedError) -> str:
    if parsed.type == "import":
        return "Missing dependency detected. Install the package or fix the import path."
    if parsed.type == "syntax":
        return "Syntax error detected. Check brackets, quotes, and formatting."
    if parsed.type == "type":
        return "Type error detected. Check property names and type definitions."
    if parsed.type == "runtime":
        return "Runtime error detected. Inspect the failing frame and its inputs."
    return f"Error detected: {parsed.message}"
