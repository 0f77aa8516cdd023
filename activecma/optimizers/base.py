"""
Abstract base class for optimizers.

Every optimizer in the package implements this interface, so callers and the
registry can drive them interchangeably.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any
import numpy as np

from ..objective import ObjectiveLike
from .result import OptimizationResult


class Optimizer(ABC):
    """
    Abstract base class for optimizers.

    Each optimizer provides:
    - Identification (name, family)
    - Capability info
    - Optimize method (run optimization to completion)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Optimizer identifier (e.g., 'cmaes', 'active-cmaes').

        Used for lookup in the optimizer registry.
        """
        pass

    @property
    def family(self) -> str:
        """Algorithm family ('evolutionary', 'gradient', ...)."""
        return "evolutionary"

    @property
    def supports_bounds(self) -> bool:
        """Whether this optimizer handles box constraints."""
        return True

    @property
    def supports_gradients(self) -> bool:
        """Whether this optimizer can use gradient information."""
        return False

    @abstractmethod
    def get_info(self) -> Dict[str, Any]:
        """
        Describe the optimizer and its configuration.

        Returns:
            Dict with at least ``name`` and ``family``
        """
        pass

    @abstractmethod
    def optimize(self, objective: ObjectiveLike, x0: np.ndarray) -> OptimizationResult:
        """
        Run optimization to completion.

        Args:
            objective: Objective or callable f(x) -> float to minimize
            x0: Initial coordinates (vector or matrix)

        Returns:
            OptimizationResult with solution, statistics, and history.
        """
        pass
