"""Subcommand dispatcher for photostrip.

Usage:
    photostrip compose  --output strip.png [--design KEY] photo ...
    photostrip designs  [--shots N] [--check]
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="photostrip",
        description="Photo-strip compositing and animated export.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("compose", help="Compose photos or clips into a strip")
    subparsers.add_parser("designs", help="List and validate registry designs")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        parser.print_help()
        sys.exit(1)

    if parsed.command == "compose":
        from .cli import main as compose_main
        compose_main(remaining)
    elif parsed.command == "designs":
        from .designs_cli import main as designs_main
        designs_main(remaining)


if __name__ == "__main__":
    main()
