#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Main entry point for the patchwise CLI."""

import argparse
import sys

from . import config
from ._version import PATCHWISE_GIT_COMMIT, PATCHWISE_VERSION
from .debug_logger import DebugLogger
from .execution.orchestrator import ActionOrchestrator, TurnState
from .llm.provider_factory import detect_provider_from_model
from .llm.reasoning import ReasoningService
from .memory import ConversationHistory
from .terminal.repl import repl_mode
from .workspace import ProjectContext


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="patchwise - propose, review and apply project edits from plain-language requests"
    )
    parser.add_argument(
        "request",
        nargs="*",
        help="Request to handle (one-shot mode); omit for the interactive REPL"
    )
    parser.add_argument(
        "--provider",
        default=None,
        help=f"LLM provider: ollama or openai (default: {config.LLM_PROVIDER})"
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Model name (default depends on the provider)"
    )
    parser.add_argument(
        "--safety",
        choices=sorted(config.SHELL_SAFETY_MODES),
        default=None,
        help="Shell safety mode (default: PATCHWISE_SHELL_SAFETY or strict)"
    )
    parser.add_argument(
        "-y", "--yes",
        action="store_true",
        help="Automatically approve all reviews"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable detailed debug logging to file"
    )
    parser.add_argument(
        "-v", "--version",
        action="version",
        version=f"patchwise {PATCHWISE_VERSION} ({PATCHWISE_GIT_COMMIT})",
    )
    return parser


def main(argv=None):
    """Main entry point for the patchwise CLI."""
    args = build_parser().parse_args(argv)

    debug_logger = DebugLogger.initialize(enabled=args.debug)
    if debug_logger.enabled:
        print(f"Debug logging enabled: {debug_logger.log_file_path}")

    if args.safety:
        config.set_shell_safety_mode(args.safety)
        if args.safety != "strict":
            print(f"⚠️  Shell safety mode '{args.safety}': commands run without policy checks.")

    provider = args.provider
    if provider is None and args.model:
        provider = detect_provider_from_model(args.model)

    debug_logger.log("main", "CONFIGURATION", {
        "provider": provider or config.LLM_PROVIDER,
        "model": args.model,
        "safety": config.get_shell_safety_mode(),
        "auto_approve": args.yes,
        "mode": "one-shot" if args.request else "repl",
    })

    orchestrator = ActionOrchestrator(
        ReasoningService(model=args.model, provider=provider),
        context=ProjectContext.from_cwd(),
        history=ConversationHistory(),
        auto_approve=args.yes,
    )

    try:
        if args.request:
            outcome = orchestrator.handle(" ".join(args.request))
            sys.exit(1 if outcome.state == TurnState.ERRORED else 0)
        debug_logger.log_workflow_phase("repl", {})
        repl_mode(orchestrator)
    except KeyboardInterrupt:
        print("\n[Cancelled by user]")
        sys.exit(130)
    finally:
        debug_logger.close()


if __name__ == "__main__":
    main()
