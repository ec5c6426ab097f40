#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Configuration constants and settings for patchwise."""

import os
import pathlib
from typing import Optional

# Configuration
ROOT = pathlib.Path(os.getcwd()).resolve()
PATCHWISE_DIR = ROOT / ".patchwise"
LOGS_DIR = PATCHWISE_DIR / "logs"

# LLM provider settings
LLM_PROVIDER = os.getenv("PATCHWISE_LLM_PROVIDER", "ollama").lower()
OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "qwen3-coder:480b-cloud")
OLLAMA_TEMPERATURE = float(os.getenv("OLLAMA_TEMPERATURE", "0.1"))
OLLAMA_NUM_CTX = int(os.getenv("OLLAMA_NUM_CTX", "16384"))
OLLAMA_TIMEOUT = int(os.getenv("OLLAMA_TIMEOUT", "300"))
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4-turbo-preview")
OPENAI_TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", "0.1"))
LLM_MAX_RETRIES = int(os.getenv("PATCHWISE_LLM_MAX_RETRIES", "3"))

# Search
MAX_FILE_BYTES = int(os.getenv("PATCHWISE_MAX_FILE_BYTES", str(1024 * 1024)))
SEARCH_CONFIDENCE_FLOOR = int(os.getenv("PATCHWISE_SEARCH_MIN_SCORE", "20"))
SEARCH_WORKERS = int(os.getenv("PATCHWISE_SEARCH_WORKERS", "8"))

EXCLUDE_DIRS = {
    ".git", ".hg", ".svn", ".idea", ".vscode", "__pycache__", ".pytest_cache",
    "node_modules", "dist", "build", ".next", "out", "coverage", ".cache",
    ".venv", "venv", "target", ".patchwise", ".mypy_cache", ".tox",
}

SEARCH_EXTENSIONS = {
    ".ts", ".js", ".tsx", ".jsx", ".py", ".java", ".cpp", ".c", ".h",
    ".json", ".md", ".txt", ".yaml", ".yml", ".toml", ".env",
}

SPECIAL_FILES = {".gitignore", "Dockerfile", "Makefile"}

CONFIG_FILE_NAMES = {
    "package.json", "tsconfig.json", ".env", ".gitignore", "Dockerfile",
    "Makefile", "pyproject.toml", "setup.cfg", "requirements.txt",
}

# Validation
VALIDATION_BATCH_CHARS = int(os.getenv("PATCHWISE_VALIDATION_BATCH_CHARS", "18000"))
VALIDATION_ITEM_OVERHEAD = 64
LARGE_CHANGE_CHARS = 10000

DANGEROUS_CONTENT = [
    "rm -rf",
    "sudo",
    "delete from",
    "drop table",
    "drop database",
    "truncate table",
    "mkfs",
    "chmod -r 777",
    "dd if=",
    ":(){ :|:& };:",
]

# Shell
SHELL_SAFETY_MODES = ("strict", "relaxed", "off")
DEFAULT_SHELL_SAFETY = "strict"
ENFORCE_COMMAND_ALLOWLIST = os.getenv("PATCHWISE_ENFORCE_ALLOWLIST", "true").lower() == "true"

ALLOW_CMDS = {
    "python", "python3", "pip", "pip3", "pytest", "ruff", "black", "isort", "mypy",
    "node", "npm", "npx", "pnpm", "yarn", "tsc", "prettier", "eslint", "jest",
    "git", "make", "ls", "cat", "head", "tail", "echo", "pwd", "grep", "find",
    "wc", "diff", "mkdir", "touch", "cp", "mv", "which", "env", "go", "cargo",
    "mvn", "gradle", "java", "javac", "tree",
}

DESTRUCTIVE_COMMANDS = {
    "rm", "rmdir", "del", "rd", "sudo", "su", "doas", "chmod", "chown", "chgrp",
    "mkfs", "fdisk", "dd", "format", "kill", "killall", "pkill", "shutdown",
    "reboot", "halt", "poweroff", "mount", "umount",
}

# Commands that run another command given as their arguments
WRAPPER_COMMANDS = {"env", "nice", "nohup", "time", "timeout", "xargs", "npx"}

# find actions that delete files or run arbitrary commands
FIND_ACTION_FLAGS = {"-delete", "-exec", "-execdir", "-ok", "-okdir"}

PACKAGE_MANAGERS = {"npm", "pnpm", "yarn", "npx", "pip", "pip3"}
PACKAGE_SCRIPT_SUBCOMMANDS = {"run", "run-script", "exec"}

# Commands whose output is streamed to the terminal rather than captured
LONG_RUNNING_COMMANDS = {"npm", "pnpm", "yarn", "npx", "pip", "pip3", "make", "tsc", "pytest", "jest"}

COMMAND_TIMEOUT = int(os.getenv("PATCHWISE_COMMAND_TIMEOUT", "120"))
INTERACTIVE_TIMEOUT = int(os.getenv("PATCHWISE_INTERACTIVE_TIMEOUT", "600"))
TERMINATE_GRACE_SECONDS = float(os.getenv("PATCHWISE_TERMINATE_GRACE", "5"))
OUTPUT_LIMIT = int(os.getenv("PATCHWISE_OUTPUT_LIMIT", "12000"))

# Conversation history
HISTORY_SIZE = int(os.getenv("PATCHWISE_HISTORY_SIZE", "50"))
HISTORY_PROMPT_ENTRIES = int(os.getenv("PATCHWISE_HISTORY_PROMPT_ENTRIES", "5"))

# Logging
LOG_RETENTION_LIMIT = int(os.getenv("PATCHWISE_LOG_RETENTION", "7"))

_SHELL_SAFETY_OVERRIDE: Optional[str] = None


def set_shell_safety_mode(mode: Optional[str]) -> bool:
    """Override the shell safety mode for this process (None clears it)."""
    global _SHELL_SAFETY_OVERRIDE
    if mode is None:
        _SHELL_SAFETY_OVERRIDE = None
        return True

    normalized = mode.strip().lower()
    if normalized not in SHELL_SAFETY_MODES:
        return False

    _SHELL_SAFETY_OVERRIDE = normalized
    return True


def get_shell_safety_mode() -> str:
    """Return the active shell safety mode.

    PATCHWISE_SHELL_SAFETY is read at call time; unknown values fall back to strict.
    """
    if _SHELL_SAFETY_OVERRIDE:
        return _SHELL_SAFETY_OVERRIDE

    mode = os.getenv("PATCHWISE_SHELL_SAFETY", DEFAULT_SHELL_SAFETY).strip().lower()
    if mode not in SHELL_SAFETY_MODES:
        return DEFAULT_SHELL_SAFETY
    return mode
