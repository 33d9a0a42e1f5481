# File: routegen/__main__.py
"""
RouteGen — Module entry point.

Allows running the generator directly via::

    python -m routegen --schema models.yaml --output ./app

This module simply delegates to the CLI entry point defined in ``routegen.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from routegen.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
