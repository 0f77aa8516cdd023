"""
Command line interface for running the CMA-ES engines on benchmark problems.
"""

from .runner import main, parse_args, build_problem, optimizer_name

__all__ = ["main", "parse_args", "build_problem", "optimizer_name"]
