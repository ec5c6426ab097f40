"""Centralized version constant for patchwise."""

# PATCHWISE_GIT_COMMIT is populated at build time by setup.py.
PATCHWISE_VERSION = "0.3.0"
PATCHWISE_GIT_COMMIT = "unknown"

__all__ = ["PATCHWISE_VERSION", "PATCHWISE_GIT_COMMIT"]
