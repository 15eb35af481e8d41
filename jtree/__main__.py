"""
jtree.__main__ - Entry point for running jtree as a module.

Usage:
    python -m jtree <trace-id> [options]
"""

import sys

from jtree.cli import main

if __name__ == "__main__":
    sys.exit(main())
