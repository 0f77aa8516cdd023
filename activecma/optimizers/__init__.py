"""
Optimizers: the CMA-ES engine family plus its configuration, results and registry.
"""

from .base import Optimizer
from .config import CMAESConfig
from .result import OptimizationResult, TerminationStatus
from .wrapper import ObjectiveWrapper
from .cmaes import (
    CMAES,
    ActiveCMAES,
    ApproxCMAES,
    ApproxActiveCMAES,
    StrategyParameters,
    SearchState,
    Population,
    NumericalInstabilityError,
)
from .registry import (
    OptimizerRegistry,
    get_registry,
    get_optimizer,
    list_optimizers,
    register_optimizer,
)

__all__ = [
    "Optimizer",
    "CMAESConfig",
    "OptimizationResult",
    "TerminationStatus",
    "ObjectiveWrapper",
    "CMAES",
    "ActiveCMAES",
    "ApproxCMAES",
    "ApproxActiveCMAES",
    "StrategyParameters",
    "SearchState",
    "Population",
    "NumericalInstabilityError",
    "OptimizerRegistry",
    "get_registry",
    "get_optimizer",
    "list_optimizers",
    "register_optimizer",
]
