"""
Objective collaborators for the optimizers.

An optimizer only needs ``evaluate(x) -> float``. Objectives that are a sum
over indexable addends (a per-sample loss over a dataset) additionally expose
``num_functions`` and ``evaluate_subset(x, indices)``, which the random
selection policy uses to evaluate a subsample per generation.
"""

from abc import ABC, abstractmethod
from typing import Callable, Sequence, Union
import numpy as np


class Objective(ABC):
    """
    Abstract objective function (minimized).

    Subclasses implement ``evaluate``. Decomposable objectives should derive
    from ``SeparableObjective`` instead.
    """

    @abstractmethod
    def evaluate(self, x: np.ndarray) -> float:
        """
        Evaluate the objective at a point.

        Args:
            x: Coordinates, in the shape the optimizer was started with

        Returns:
            Objective value f(x)
        """
        pass

    @property
    def num_functions(self) -> int:
        """Number of addends the objective decomposes into."""
        return 1

    def evaluate_subset(self, x: np.ndarray, indices: Sequence[int]) -> float:
        """
        Evaluate the sum of the addends listed in ``indices``.

        The default only handles objectives with a single addend.
        """
        if self.num_functions == 1:
            return self.evaluate(x)
        raise NotImplementedError(
            f"{type(self).__name__} does not support subset evaluation"
        )

    def __call__(self, x: np.ndarray) -> float:
        return self.evaluate(x)


class SeparableObjective(Objective):
    """
    Objective of the form f(x) = sum_i f_i(x), i = 0 .. num_functions - 1.
    """

    @property
    @abstractmethod
    def num_functions(self) -> int:
        pass

    @abstractmethod
    def evaluate_subset(self, x: np.ndarray, indices: Sequence[int]) -> float:
        pass

    def evaluate(self, x: np.ndarray) -> float:
        return self.evaluate_subset(x, np.arange(self.num_functions))


class FunctionObjective(Objective):
    """Adapts a plain callable f(x) -> float."""

    def __init__(self, func: Callable[[np.ndarray], float]):
        if not callable(func):
            raise TypeError(f"Objective must be callable, got {type(func).__name__}")
        self.func = func

    def evaluate(self, x: np.ndarray) -> float:
        return float(self.func(x))

    def __repr__(self) -> str:
        name = getattr(self.func, "__name__", repr(self.func))
        return f"FunctionObjective({name})"


ObjectiveLike = Union[Objective, Callable[[np.ndarray], float]]


def as_objective(objective: ObjectiveLike) -> Objective:
    """
    Normalize a callable or Objective to an Objective.

    Raises:
        TypeError: If ``objective`` is neither
    """
    if isinstance(objective, Objective):
        return objective
    if callable(objective):
        return FunctionObjective(objective)
    raise TypeError(
        f"Expected an Objective or a callable, got {type(objective).__name__}"
    )
