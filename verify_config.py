#!/usr/bin/env python3
"""Check a matcher configuration file without touching the environment."""

import argparse
import sys
from pathlib import Path

from tutormatch.config.loader import validate_config_file


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "config",
        nargs="?",
        type=Path,
        default=Path("config.example.yaml"),
        help="Configuration file to check (default: config.example.yaml)",
    )
    args = parser.parse_args()

    if not args.config.exists():
        print(f"✗ {args.config} not found")
        return 1

    return 0 if validate_config_file(args.config) else 1


if __name__ == "__main__":
    sys.exit(main())
