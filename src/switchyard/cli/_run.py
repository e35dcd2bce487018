"""``switchyard run`` — development server command."""

import argparse
import sys

from switchyard.cli._resolve import resolve_app


def run_server(args: argparse.Namespace) -> None:
    """Resolve ``args.app`` and serve it with the development server.

    ``--host``, ``--port`` and ``--log-level`` override the app config.
    """
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    from switchyard.server.dev import run_dev_server

    app.freeze()
    run_dev_server(
        app,
        args.host or app.config.host,
        args.port or app.config.port,
        log_level=args.log_level or app.config.log_level,
    )
