"""``switchyard routes`` — list registered routes in the order they are scanned."""

import argparse
import sys

from switchyard.cli._resolve import resolve_app


def _link_name(link: object) -> str:
    return getattr(link, "__qualname__", None) or type(link).__name__


def run_routes(args: argparse.Namespace) -> None:
    """Print PREFIX, METHOD, PATH, AJAX and the middleware chain for each route."""
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    rows = [
        (
            prefix,
            route.method,
            route.path,
            "yes" if route.is_ajax else "no",
            " -> ".join(_link_name(link) for link in route.middleware) or "(empty)",
        )
        for prefix, route in app.dispatcher.routes()
    ]
    if not rows:
        print("No routes registered.")
        return

    header = ("PREFIX", "METHOD", "PATH", "AJAX", "CHAIN")
    widths = [max(len(header[i]), *(len(r[i]) for r in rows)) for i in range(4)]
    fmt = "  ".join(f"{{:<{w}}}" for w in widths) + "  {}"
    print(fmt.format(*header))
    print("-" * min(sum(widths) + 8 + max(len(r[4]) for r in rows), 80))
    for row in rows:
        print(fmt.format(*row))
