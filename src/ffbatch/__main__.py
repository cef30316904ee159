"""
Entry point for running ffbatch as a module: python -m ffbatch

This allows the package to be executed directly:
    python -m ffbatch -src videos -dst out
    python -m ffbatch --help
"""

import sys

from ffbatch.cli import main

if __name__ == "__main__":
    sys.exit(main())
