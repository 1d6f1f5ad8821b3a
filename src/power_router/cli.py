#!/usr/bin/env python3
"""
Hook entry point for the UI Development Power router.

The ui-power-route command is called by a prompt-submit hook to route the
user's message and print the formatted context block. Each invocation is a
fresh process, so every call starts a new session.
"""

import json
import logging
import sys

from power_router.config import configure_logging, load_config
from power_router.formatter import format_routing_results
from power_router.router import build_router
from power_router.session import Session

logger = logging.getLogger(__name__)


def route_cli() -> None:
    """
    CLI entry point for hook-based routing.

    Hook sends JSON on stdin:
        {"prompt": "user message", "session_id": "..."}

    Usage:
        echo '{"prompt": "message"}' | ui-power-route
        ui-power-route "user message here"

    Exit codes:
        0: Success (output printed to stdout)
        1: Error during routing
    """
    session_id = None
    if len(sys.argv) > 1:
        message = " ".join(sys.argv[1:])
    else:
        stdin_data = sys.stdin.read().strip()
        try:
            input_data = json.loads(stdin_data)
        except json.JSONDecodeError:
            # Plain text on stdin
            input_data = {"prompt": stdin_data}
        if not isinstance(input_data, dict):
            input_data = {"prompt": stdin_data}
        # An empty prompt still gets the default module
        message = input_data.get("prompt") or ""
        session_id = input_data.get("session_id")

    try:
        config = load_config()
        configure_logging(config)
        router = build_router(config)

        session = Session(conversation_id=session_id) if session_id else Session()
        result = router.route(message, session)

        formatted = format_routing_results(result)
        if formatted:
            print(formatted)

    except Exception as e:
        # stderr only; stdout is injected into the assistant's context
        print(f"UI power routing error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    route_cli()
