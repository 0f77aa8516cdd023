"""
Selection policies.

A selection policy decides how the fitness of each candidate in a population
is computed: on the whole objective (FullSelection) or on a random subsample
of a decomposable objective's addends (RandomSelection). The engine consults
the same policy instance every generation and never mutates it; all
randomness comes from the generator the engine passes in.
"""

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence
import logging
import math
import numpy as np

from .objective import Objective

logger = logging.getLogger(__name__)


class SelectionPolicy(ABC):
    """
    Abstract base class for selection policies.

    Candidate evaluations are independent; with ``n_workers > 1`` they run on
    a thread pool and are collected in candidate order before returning.
    """

    def __init__(self, n_workers: int = 1):
        if n_workers < 1:
            raise ValueError("n_workers must be at least 1")
        self.n_workers = n_workers

    @abstractmethod
    def select(
        self,
        objective: Objective,
        population: Sequence[np.ndarray],
        rng: np.random.Generator,
    ) -> np.ndarray:
        """
        Compute the fitness of every candidate.

        Args:
            objective: Objective to minimize
            population: Feasible candidate coordinates
            rng: Random generator of the current run

        Returns:
            Array of fitness values, one per candidate, in candidate order
        """
        pass

    def _evaluate_all(
        self,
        func: Callable[[np.ndarray], float],
        population: Sequence[np.ndarray],
    ) -> np.ndarray:
        if self.n_workers == 1 or len(population) < 2:
            values: List[float] = [func(x) for x in population]
        else:
            with ThreadPoolExecutor(max_workers=self.n_workers) as executor:
                values = list(executor.map(func, population))
        return np.asarray(values, dtype=float)


class FullSelection(SelectionPolicy):
    """
    Evaluate every candidate on the whole objective.

    For separable objectives the sum over all addends can be accumulated in
    consecutive batches of ``batch_size`` indices.
    """

    def __init__(self, batch_size: Optional[int] = None, n_workers: int = 1):
        super().__init__(n_workers=n_workers)
        if batch_size is not None and batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.batch_size = batch_size

    def select(
        self,
        objective: Objective,
        population: Sequence[np.ndarray],
        rng: np.random.Generator,
    ) -> np.ndarray:
        n_functions = objective.num_functions
        if self.batch_size is None or n_functions <= self.batch_size:
            return self._evaluate_all(objective.evaluate, population)

        batches = [
            np.arange(begin, min(begin + self.batch_size, n_functions))
            for begin in range(0, n_functions, self.batch_size)
        ]

        def evaluate_batched(x: np.ndarray) -> float:
            return sum(objective.evaluate_subset(x, batch) for batch in batches)

        return self._evaluate_all(evaluate_batched, population)

    def __repr__(self) -> str:
        return f"FullSelection(batch_size={self.batch_size})"


class RandomSelection(SelectionPolicy):
    """
    Evaluate candidates on a random subset of the objective's addends.

    One subset is drawn per call and shared by every candidate of the
    population, so candidates are ranked on the same data; the next call
    draws a fresh subset. The subset sum is rescaled by
    ``num_functions / subset size`` so it estimates the full objective.
    Objectives with a single addend are evaluated in full.
    """

    def __init__(
        self,
        fraction: float = 0.2,
        subset_size: Optional[int] = None,
        n_workers: int = 1,
    ):
        """
        Args:
            fraction: Fraction of addends evaluated per generation
            subset_size: Absolute number of addends (overrides ``fraction``)
            n_workers: Threads used to evaluate candidates
        """
        super().__init__(n_workers=n_workers)
        if not 0.0 < fraction <= 1.0:
            raise ValueError("fraction must be in (0, 1]")
        if subset_size is not None and subset_size < 1:
            raise ValueError("subset_size must be at least 1")
        self.fraction = fraction
        self.subset_size = subset_size

    def subset_length(self, num_functions: int) -> int:
        """Number of addends evaluated per generation."""
        if self.subset_size is not None:
            size = self.subset_size
        else:
            size = math.ceil(self.fraction * num_functions)
        return max(1, min(size, num_functions))

    def draw_subset(self, num_functions: int, rng: np.random.Generator) -> np.ndarray:
        """Draw the sorted addend indices used for one generation."""
        size = self.subset_length(num_functions)
        return np.sort(rng.choice(num_functions, size=size, replace=False))

    def select(
        self,
        objective: Objective,
        population: Sequence[np.ndarray],
        rng: np.random.Generator,
    ) -> np.ndarray:
        n_functions = objective.num_functions
        if n_functions <= 1:
            return self._evaluate_all(objective.evaluate, population)

        subset = self.draw_subset(n_functions, rng)
        scale = n_functions / len(subset)
        logger.debug(f"Evaluating {len(population)} candidates on {len(subset)}/{n_functions} addends")

        def evaluate_subset(x: np.ndarray) -> float:
            return scale * objective.evaluate_subset(x, subset)

        return self._evaluate_all(evaluate_subset, population)

    def __repr__(self) -> str:
        if self.subset_size is not None:
            return f"RandomSelection(subset_size={self.subset_size})"
        return f"RandomSelection(fraction={self.fraction})"
