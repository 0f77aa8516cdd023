"""
Optimization result types.

Provides a unified result structure for all optimizers, with a terminal
status that separates convergence from hitting the iteration cap and from
numerical divergence.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Any, Optional
import numpy as np


class TerminationStatus(str, Enum):
    """Why a run stopped."""

    TOLERANCE_REACHED = "tolerance_reached"
    MAX_ITERATIONS = "max_iterations"
    DIVERGED = "diverged"


@dataclass
class OptimizationResult:
    """
    Result from an optimizer run.

    ``mean_x``/``mean_f`` hold the final (feasible) search distribution mean
    and its objective value on the full objective. ``best_x``/``best_f`` hold
    the best candidate evaluated during the run, with the fitness the
    selection policy assigned to it.
    """

    # Status
    success: bool
    message: str
    status: TerminationStatus

    # Best candidate seen (always present)
    best_x: np.ndarray
    best_f: float

    # Final distribution mean
    mean_x: Optional[np.ndarray] = None
    mean_f: float = float("inf")

    # Statistics
    n_iterations: int = 0
    n_function_evals: int = 0

    # History (generation-by-generation tracking)
    history: List[Dict[str, Any]] = field(default_factory=list)

    # Search state at termination (for advanced use)
    final_state: Any = None

    @property
    def x(self) -> np.ndarray:
        """Final coordinates: the mean if available, else the best candidate."""
        return self.mean_x if self.mean_x is not None else self.best_x

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to a plain dictionary.

        Truncates history to last 20 entries.
        """
        return {
            "success": self.success,
            "message": self.message,
            "status": self.status.value,
            "best_x": np.asarray(self.best_x).tolist(),
            "best_f": float(self.best_f),
            "mean_x": None if self.mean_x is None else np.asarray(self.mean_x).tolist(),
            "mean_f": float(self.mean_f),
            "n_iterations": self.n_iterations,
            "n_function_evals": self.n_function_evals,
            "history": self.history[-20:] if len(self.history) > 20 else self.history,
        }
