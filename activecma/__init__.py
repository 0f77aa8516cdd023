"""
activecma - CMA-ES optimizers with Active covariance updates, bound
constraints and random-subset fitness evaluation.

Quick start:
    >>> import numpy as np
    >>> from activecma import ActiveCMAES
    >>> from activecma.problems import RosenbrockFunction
    >>> optimizer = ActiveCMAES(population_size=32, lower_bound=0.0, upper_bound=2.0,
    ...                         tolerance=1e-3, step_size=0.075, seed=0)
    >>> result = optimizer.optimize(RosenbrockFunction(), np.array([-1.2, 1.0]))
    >>> result.mean_x
"""

__version__ = "0.1.0"

from .objective import Objective, SeparableObjective, FunctionObjective, as_objective
from .transformations import TransformationPolicy, EmptyTransformation, BoundaryBoxConstraint
from .selection import SelectionPolicy, FullSelection, RandomSelection
from .optimizers import (
    Optimizer,
    CMAESConfig,
    OptimizationResult,
    TerminationStatus,
    CMAES,
    ActiveCMAES,
    ApproxCMAES,
    ApproxActiveCMAES,
    NumericalInstabilityError,
    get_optimizer,
    list_optimizers,
)

__all__ = [
    "Objective",
    "SeparableObjective",
    "FunctionObjective",
    "as_objective",
    "TransformationPolicy",
    "EmptyTransformation",
    "BoundaryBoxConstraint",
    "SelectionPolicy",
    "FullSelection",
    "RandomSelection",
    "Optimizer",
    "CMAESConfig",
    "OptimizationResult",
    "TerminationStatus",
    "CMAES",
    "ActiveCMAES",
    "ApproxCMAES",
    "ApproxActiveCMAES",
    "NumericalInstabilityError",
    "get_optimizer",
    "list_optimizers",
]
