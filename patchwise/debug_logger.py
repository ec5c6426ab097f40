#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Centralized debug logging for patchwise.

Debug logging is off unless the CLI is started with --debug. When enabled,
structured events are written to a timestamped file under .patchwise/logs/
so a session can be replayed after the fact.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from patchwise import config


def prune_old_logs(log_dir: Path, keep: int) -> None:
    """Remove old log files beyond the configured retention limit."""

    if keep < 1 or not log_dir.exists():
        return

    log_files = sorted(
        [path for path in log_dir.glob("*.log") if path.is_file()],
        key=lambda path: path.stat().st_mtime,
        reverse=True,
    )

    for stale_file in log_files[keep:]:
        try:
            stale_file.unlink()
        except OSError:
            continue


class DebugLogger:
    """Process-wide structured logger keyed by component name."""

    _instance: Optional['DebugLogger'] = None
    _enabled: bool = False
    _log_file: Optional[Path] = None
    _loggers: Dict[str, logging.Logger] = {}

    def __init__(self, enabled: bool = False, log_dir: Optional[Path] = None):
        """Initialize the debug logger.

        Args:
            enabled: Whether debug logging is enabled
            log_dir: Directory to store log files (defaults to .patchwise/logs/)
        """
        self._enabled = enabled

        if enabled:
            if log_dir is None:
                log_dir = config.LOGS_DIR
            log_dir.mkdir(exist_ok=True, parents=True)

            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self._log_file = log_dir / f"patchwise_debug_{timestamp}.log"

            self._setup_logging()

            prune_old_logs(log_dir, config.LOG_RETENTION_LIMIT)

            self.log("system", "DEBUG_SESSION_START", {
                "timestamp": datetime.now().isoformat(),
                "log_file": str(self._log_file),
                "cwd": str(Path.cwd())
            })

    @classmethod
    def initialize(cls, enabled: bool = False, log_dir: Optional[Path] = None) -> 'DebugLogger':
        """Initialize the global debug logger instance."""
        if cls._instance is None:
            cls._instance = cls(enabled, log_dir)
        return cls._instance

    @classmethod
    def get_instance(cls) -> 'DebugLogger':
        """Get the global debug logger instance."""
        if cls._instance is None:
            cls._instance = cls(enabled=False)
        return cls._instance

    def _setup_logging(self):
        formatter = logging.Formatter(
            '%(asctime)s | %(name)-24s | %(levelname)-8s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        file_handler = logging.FileHandler(self._log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)

        root_logger = logging.getLogger('patchwise')
        root_logger.setLevel(logging.DEBUG)
        root_logger.addHandler(file_handler)
        root_logger.propagate = False

    def get_logger(self, component: str) -> logging.Logger:
        """Get or create a logger for a specific component.

        Args:
            component: Component name (e.g., 'search', 'shell', 'orchestrator')

        Returns:
            Logger instance for the component
        """
        if component not in self._loggers:
            self._loggers[component] = logging.getLogger(f'patchwise.{component}')
        return self._loggers[component]

    def log(self, component: str, event: str, data: Optional[Dict[str, Any]] = None, level: str = "INFO"):
        """Log a structured event.

        Args:
            component: Component name
            event: Event type/name
            data: Optional dictionary of event data
            level: Log level (DEBUG, INFO, WARNING, ERROR)
        """
        if not self._enabled:
            return

        logger = self.get_logger(component)

        message = f"[{event}]"
        if data:
            message += f" {json.dumps(data, indent=2, default=str)}"

        log_level = getattr(logging, level.upper(), logging.INFO)
        logger.log(log_level, message)

    def log_llm_request(self, model: str, messages: list):
        """Log an LLM API request."""
        if not self._enabled:
            return

        data = {
            "model": model,
            "message_count": len(messages),
            "messages": [
                {
                    "role": msg.get("role"),
                    "content": str(msg.get("content", ""))[:500]
                }
                for msg in messages
            ],
        }
        self.log("llm", "LLM_REQUEST", data, "DEBUG")

    def log_llm_response(self, model: str, response: dict):
        """Log an LLM API response."""
        if not self._enabled:
            return

        data = {
            "model": model,
            "response_type": type(response).__name__,
        }
        if isinstance(response, dict):
            if "error" in response:
                data["error"] = str(response["error"])[:500]
            msg = response.get("message") or {}
            if msg:
                data["role"] = msg.get("role")
                data["content_preview"] = str(msg.get("content", ""))[:500]

        self.log("llm", "LLM_RESPONSE", data, "DEBUG")

    def log_command(self, command: str, cwd: str, exit_code: Optional[int] = None, timed_out: bool = False):
        """Log a shell command execution."""
        if not self._enabled:
            return

        data = {"command": command, "cwd": cwd, "exit_code": exit_code, "timed_out": timed_out}
        level = "INFO" if exit_code == 0 else "WARNING"
        self.log("shell", "COMMAND_EXECUTION", data, level)

    def log_error(self, component: str, error: Exception, context: Optional[Dict[str, Any]] = None):
        """Log an error with context."""
        if not self._enabled:
            return

        data = {
            "error_type": type(error).__name__,
            "error_message": str(error),
        }
        if context:
            data["context"] = context

        self.log(component, "ERROR", data, "ERROR")

    def log_workflow_phase(self, phase: str, details: Optional[Dict[str, Any]] = None):
        """Log a workflow phase transition.

        Args:
            phase: Phase name (e.g., 'intent_resolved', 'reviewed', 'applied')
            details: Optional phase details
        """
        if not self._enabled:
            return

        data = {"phase": phase}
        if details:
            data.update(details)

        self.log("orchestrator", "WORKFLOW_PHASE", data, "INFO")

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def log_file_path(self) -> Optional[Path]:
        return self._log_file

    def close(self):
        """Close the logger and write session end marker."""
        if self._enabled:
            self.log("system", "DEBUG_SESSION_END", {
                "timestamp": datetime.now().isoformat()
            })

            root_logger = logging.getLogger('patchwise')
            for handler in root_logger.handlers[:]:
                handler.close()
                root_logger.removeHandler(handler)


def get_logger() -> DebugLogger:
    """Get the global debug logger instance."""
    return DebugLogger.get_instance()
