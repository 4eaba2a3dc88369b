"""
=============================================================================
PYNE CLI
=============================================================================

    pyne new NAME              create an instance directory
    pyne run PORT [PATH]       serve the instance at PATH (default: .)
    pyne serve                 serve with settings from PYNE_* variables

    python -m pyne run 8443 my-notes --log-level DEBUG

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import ServerConfig
from .errors import PyneError
from .instance import create_instance
from .server import NotesServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pyne",
        description="A personal notes server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pyne new my-notes                  # Create instance with cert, key, secret
  pyne run 8443 my-notes             # Serve it on 127.0.0.1:8443
  PYNE_SECRET=... pyne run 8443      # Secret from the environment
  PYNE_INSTANCE=my-notes pyne serve  # Everything from the environment
        """,
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"pyne {__version__}",
    )

    subcommands = parser.add_subparsers(dest="command", metavar="COMMAND")
    subcommands.required = True

    # ─────────────────────────────────────────────────────────────────────
    # new
    # ─────────────────────────────────────────────────────────────────────
    new = subcommands.add_parser("new", help="Create a new server instance")
    new.add_argument("name", metavar="NAME", help="Directory to create")

    # ─────────────────────────────────────────────────────────────────────
    # run
    # ─────────────────────────────────────────────────────────────────────
    run = subcommands.add_parser("run", help="Run the server for an instance")
    run.add_argument("port", metavar="PORT", type=int, help="Port to listen on")
    run.add_argument(
        "path",
        metavar="PATH",
        nargs="?",
        default=".",
        help="Instance directory (default: .)",
    )
    run.add_argument(
        "--host", "-H",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    run.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )
    run.add_argument(
        "--io-workers", "-w",
        type=int,
        default=4,
        help="Blocking-I/O threads (default: 4, max will be 2x this)",
    )
    run.add_argument(
        "--timeout", "-t",
        type=float,
        default=30.0,
        help="Per-connection socket timeout in seconds (default: 30)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # serve
    # ─────────────────────────────────────────────────────────────────────
    subcommands.add_parser(
        "serve",
        help="Run the server configured from PYNE_* environment variables",
    )

    return parser


def cmd_new(args: argparse.Namespace) -> int:
    path = create_instance(args.name)
    print(f"Created new server instance in {path}")
    print(f"  certificate: {path / 'server.crt'}")
    print(f"  secret:      {path / 'secret'}")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    config = ServerConfig.for_instance(
        args.path,
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        io_workers=args.io_workers,
        timeout=args.timeout,
    )
    server = NotesServer(config)
    server.run()
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    NotesServer(ServerConfig.from_env()).run()
    return 0


COMMANDS = {
    "new": cmd_new,
    "run": cmd_run,
    "serve": cmd_serve,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        return COMMANDS[args.command](args)
    except PyneError as e:
        print(f"pyne: error: {e.message}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"pyne: error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
