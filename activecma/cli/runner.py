"""
Command line runner for the benchmark problems.

Usage:
    python -m activecma.cli rosenbrock
    python -m activecma.cli rosenbrock --active --lower 0 --upper 2 --popsize 32
    python -m activecma.cli logistic --approx --seed 7
    python -m activecma.cli ellipsoid --dim 10 --verbose
"""

from typing import Any, Dict, List, Optional, Tuple
import logging
import sys

import numpy as np
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..callbacks import RichConsoleCallback
from ..objective import Objective
from ..optimizers.registry import get_optimizer
from ..problems import (
    EllipsoidFunction,
    LogisticRegressionFunction,
    RosenbrockFunction,
    SphereFunction,
    make_classification_data,
)

PROBLEMS = ("rosenbrock", "sphere", "ellipsoid", "logistic")

USAGE = (
    "usage: python -m activecma.cli <problem> [--active] [--approx] [--popsize N]\n"
    "       [--lower L --upper U] [--step-size S] [--max-iterations N]\n"
    "       [--tolerance T] [--seed S] [--dim N] [--verbose]\n"
    f"problems: {', '.join(PROBLEMS)}"
)

# flag -> (option name, type)
VALUE_FLAGS = {
    "--popsize": ("population_size", int),
    "--lower": ("lower_bound", float),
    "--upper": ("upper_bound", float),
    "--step-size": ("step_size", float),
    "--max-iterations": ("max_iterations", int),
    "--tolerance": ("tolerance", float),
    "--seed": ("seed", int),
    "--dim": ("dimension", int),
}


def parse_args(args: List[str]) -> Dict[str, Any]:
    """
    Parse command line arguments.

    Raises:
        ValueError: On unknown flags, missing values or an unknown problem
    """
    parsed: Dict[str, Any] = {
        "problem": None,
        "active": False,
        "approx": False,
        "verbose": False,
        "options": {},
        "dimension": None,
    }

    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--active":
            parsed["active"] = True
            i += 1
        elif arg == "--approx":
            parsed["approx"] = True
            i += 1
        elif arg == "--verbose":
            parsed["verbose"] = True
            i += 1
        elif arg in VALUE_FLAGS:
            if i + 1 >= len(args):
                raise ValueError(f"{arg} requires a value")
            name, convert = VALUE_FLAGS[arg]
            try:
                value = convert(args[i + 1])
            except ValueError:
                raise ValueError(f"Invalid value for {arg}: {args[i + 1]}")
            if name == "dimension":
                parsed["dimension"] = value
            else:
                parsed["options"][name] = value
            i += 2
        elif arg.startswith("--"):
            raise ValueError(f"Unknown option: {arg}")
        elif parsed["problem"] is None:
            parsed["problem"] = arg.lower()
            i += 1
        else:
            raise ValueError(f"Unexpected argument: {arg}")

    if parsed["problem"] is None:
        raise ValueError("No problem given")
    if parsed["problem"] not in PROBLEMS:
        raise ValueError(f"Unknown problem '{parsed['problem']}'")
    return parsed


def build_problem(
    name: str,
    dimension: Optional[int] = None,
    seed: Optional[int] = None,
) -> Tuple[Objective, np.ndarray]:
    """Benchmark objective and its customary starting point."""
    if name == "rosenbrock":
        problem = RosenbrockFunction(dimension or 2)
    elif name == "sphere":
        problem = SphereFunction(dimension or 5)
    elif name == "ellipsoid":
        problem = EllipsoidFunction(dimension or 5)
    elif name == "logistic":
        predictors, responses = make_classification_data(
            n_samples=200, n_features=dimension or 2, seed=seed
        )
        problem = LogisticRegressionFunction(predictors, responses, regularization=0.1)
    else:
        raise ValueError(f"Unknown problem '{name}'")
    return problem, problem.initial_point()


def optimizer_name(active: bool, approx: bool) -> str:
    """Registry name for the requested variant."""
    name = "active-cmaes" if active else "cmaes"
    return f"approx-{name}" if approx else name


def print_result(console: Console, problem_name: str, result) -> None:
    table = Table(title=f"{problem_name}: {result.status.value}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("f(mean)", f"{result.mean_f:.6e}")
    table.add_row("best f", f"{result.best_f:.6e}")
    table.add_row("mean x", np.array2string(np.asarray(result.mean_x), precision=6))
    table.add_row("generations", str(result.n_iterations))
    table.add_row("evaluations", str(result.n_function_evals))
    console.print(table)
    style = "green" if result.success else "yellow"
    console.print(f"[{style}]{escape(result.message)}[/{style}]")


def main(argv: Optional[List[str]] = None, console: Optional[Console] = None) -> int:
    """Main entry point for CLI. Returns the process exit code."""
    console = console or Console()
    args = sys.argv[1:] if argv is None else argv

    if not args or args[0] in ("-h", "--help"):
        console.print(USAGE)
        return 0 if args else 2

    try:
        parsed = parse_args(args)
        problem, x0 = build_problem(
            parsed["problem"], parsed["dimension"], parsed["options"].get("seed")
        )
        callbacks = [RichConsoleCallback(verbose=parsed["verbose"], every=10, console=console)]
        optimizer = get_optimizer(
            optimizer_name(parsed["active"], parsed["approx"]),
            callbacks=callbacks,
            **parsed["options"],
        )
    except ValueError as e:
        console.print(f"[bold red]Error: {escape(str(e))}[/bold red]")
        console.print(USAGE)
        return 2

    if parsed["verbose"]:
        logging.basicConfig(level=logging.INFO)

    result = optimizer.optimize(problem, x0)
    print_result(console, parsed["problem"], result)
    return 0 if result.success else 1
