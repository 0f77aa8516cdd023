"""
Objective wrapper utilities.

Provides evaluation counting and failure handling shared by all optimizers,
so individual engines do not duplicate that bookkeeping.
"""

from typing import Sequence
import logging
import math
import threading
import numpy as np

from ..objective import Objective, ObjectiveLike, as_objective

logger = logging.getLogger(__name__)


class ObjectiveWrapper(Objective):
    """
    Wraps an objective with evaluation counting and a failure guard.

    Provides:
    - Evaluation counting (full and subset evaluations, addends evaluated)
    - Non-finite results and arithmetic/value errors mapped to +inf, so a
      single failing candidate ranks last instead of aborting a generation

    Usage:
        wrapper = ObjectiveWrapper(objective_fn)
        fitness = selection.select(wrapper, population, rng)
        print(f"Evaluations: {wrapper.n_evals}")
    """

    def __init__(self, objective: ObjectiveLike):
        """
        Initialize objective wrapper.

        Args:
            objective: Objective or callable f(x) -> float to minimize
        """
        self.objective = as_objective(objective)

        # Tracking state
        self.n_evals = 0
        self.n_subset_evals = 0
        self.n_addend_evals = 0
        self.n_failures = 0
        self._lock = threading.Lock()

    @property
    def num_functions(self) -> int:
        return self.objective.num_functions

    def evaluate(self, x: np.ndarray) -> float:
        """
        Evaluate the full objective with tracking.

        Args:
            x: Design point

        Returns:
            Objective value f(x), or inf on failure
        """
        with self._lock:
            self.n_evals += 1
            self.n_addend_evals += self.objective.num_functions
        return self._guard(self.objective.evaluate, x)

    def evaluate_subset(self, x: np.ndarray, indices: Sequence[int]) -> float:
        """
        Evaluate a subset of the objective's addends with tracking.

        Args:
            x: Design point
            indices: Addend indices

        Returns:
            Sum of the selected addends, or inf on failure
        """
        with self._lock:
            self.n_subset_evals += 1
            self.n_addend_evals += len(indices)
        return self._guard(lambda point: self.objective.evaluate_subset(point, indices), x)

    def _guard(self, func, x: np.ndarray) -> float:
        try:
            f = float(func(x))
        except (ArithmeticError, ValueError) as e:
            self._record_failure()
            logger.warning(f"Objective evaluation failed, ranking candidate last: {e}")
            return math.inf

        if not math.isfinite(f):
            self._record_failure()
            logger.debug(f"Objective returned non-finite value {f}, ranking candidate last")
            return math.inf
        return f

    def _record_failure(self) -> None:
        with self._lock:
            self.n_failures += 1

    @property
    def n_total_evals(self) -> int:
        """Full and subset evaluations combined."""
        return self.n_evals + self.n_subset_evals
