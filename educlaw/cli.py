"""Command-line entry point."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

VERSION = "0.1.0"

_BANNER = r"""
  ___    _         ___  _
 | __|__| |_  _ / __|/ |_____ __ __
 | _|/ _` | || | || (__| |/ _ \ V  V /
 |___\__,_|\_,_|\___\_|\___/\_/\_/

 AI-powered Education Platform v{version}
"""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="educlaw",
        description=_BANNER.format(version=VERSION),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("version", help="Print the EduClaw version")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command line; returns the exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command == "version":
        print(f"EduClaw v{VERSION}")
        return 0
    parser.print_help()
    return 0