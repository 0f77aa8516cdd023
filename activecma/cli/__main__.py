"""
Entry point for running activecma CLI as a module.

Usage:
    python -m activecma.cli rosenbrock --active --lower 0 --upper 2
"""

import sys
from .runner import main


if __name__ == "__main__":
    sys.exit(main())
