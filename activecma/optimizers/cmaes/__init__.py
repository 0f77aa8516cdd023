"""
CMA-ES family: standard, Active and approximate (random-subset) engines.
"""

from .parameters import StrategyParameters, default_population_size
from .state import (
    SearchState,
    CovarianceDecomposition,
    DecompositionError,
    NumericalInstabilityError,
)
from .sampler import Population, PopulationSampler, rank_population
from .engine import CMAES, ActiveCMAES, ApproxCMAES, ApproxActiveCMAES

__all__ = [
    "StrategyParameters",
    "default_population_size",
    "SearchState",
    "CovarianceDecomposition",
    "DecompositionError",
    "NumericalInstabilityError",
    "Population",
    "PopulationSampler",
    "rank_population",
    "CMAES",
    "ActiveCMAES",
    "ApproxCMAES",
    "ApproxActiveCMAES",
]
