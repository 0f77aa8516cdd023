"""
Population sampling and ranking.

Candidates are drawn from N(mean, sigma^2 C) using the cached
eigendecomposition C = B D^2 B^T:

    x_k = mean + sigma * B D z_k,  z_k ~ N(0, I)

The whole (lambda, n) normal matrix is drawn in one call, so the random
stream is consumed in sample order.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import numpy as np

from .state import SearchState


@dataclass(eq=False)
class Population:
    """
    One generation of candidates.

    ``samples`` and ``steps`` live in the unconstrained search space;
    ``transformed`` holds the feasible points the objective was evaluated on.
    """

    samples: np.ndarray
    steps: np.ndarray
    transformed: List[np.ndarray] = field(default_factory=list)
    fitness: Optional[np.ndarray] = None
    order: Optional[np.ndarray] = None

    @property
    def size(self) -> int:
        return self.samples.shape[0]

    def rank(self) -> np.ndarray:
        """Sort candidates by fitness (stable); stores and returns the order."""
        if self.fitness is None:
            raise RuntimeError("Population has not been evaluated")
        self.order = rank_population(self.fitness)
        return self.order

    @property
    def ranked_steps(self) -> np.ndarray:
        return self.steps[self.order]

    @property
    def best_index(self) -> int:
        return int(self.order[0])

    @property
    def best_fitness(self) -> float:
        return float(self.fitness[self.order[0]])

    @property
    def median_fitness(self) -> float:
        return float(np.median(self.fitness))


def rank_population(fitness: np.ndarray) -> np.ndarray:
    """
    Indices that sort ``fitness`` ascending.

    Non-finite values rank last; ties keep sample order.
    """
    fitness = np.asarray(fitness, dtype=float)
    keys = np.where(np.isfinite(fitness), fitness, np.inf)
    return np.argsort(keys, kind="stable")


class PopulationSampler:
    """
    Draws lambda offspring from the current search distribution.
    """

    def __init__(self, population_size: int):
        if population_size < 2:
            raise ValueError("population_size must be at least 2")
        self.population_size = population_size

    def sample(self, state: SearchState, rng: np.random.Generator) -> Population:
        """
        Sample a population.

        The decomposition cached in ``state`` must be up to date.
        """
        samples, steps = self.draw(state, rng)
        return Population(samples=samples, steps=steps)

    def draw(self, state: SearchState, rng: np.random.Generator) -> Tuple[np.ndarray, np.ndarray]:
        decomposition = state.decomposition
        z = rng.standard_normal((self.population_size, state.dimension))
        steps = (z * decomposition.axis_lengths) @ decomposition.eigenbasis.T
        samples = state.mean + state.step_size * steps
        return samples, steps
