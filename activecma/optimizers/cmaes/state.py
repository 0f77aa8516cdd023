"""
Adaptive search state of CMA-ES.

``SearchState`` holds everything that changes from one generation to the
next: the distribution mean, the covariance matrix, the global step size and
the two evolution paths. ``CovarianceDecomposition`` caches the
eigendecomposition of the covariance matrix, which is only refreshed every
``refresh_interval`` generations.
"""

from dataclasses import dataclass
from typing import Optional
import logging
import numpy as np
from scipy import linalg

logger = logging.getLogger(__name__)


class DecompositionError(RuntimeError):
    """The covariance matrix could not be decomposed (not positive definite)."""


class NumericalInstabilityError(RuntimeError):
    """The covariance matrix kept failing after all allowed regularizations."""


@dataclass(eq=False)
class CovarianceDecomposition:
    """
    Cached eigendecomposition C = B diag(D^2) B^T.

    The cache is stale once ``refresh_interval`` generations have passed since
    the last update, or after ``invalidate()``.
    """

    dimension: int
    refresh_interval: int = 1
    eigenvalues: np.ndarray = None
    eigenbasis: np.ndarray = None
    invsqrt: np.ndarray = None
    condition_number: float = 1.0
    updated_generation: Optional[int] = None

    def __post_init__(self):
        if self.refresh_interval < 1:
            raise ValueError("refresh_interval must be at least 1")
        if self.eigenvalues is None:
            self.eigenvalues = np.ones(self.dimension)
            self.eigenbasis = np.eye(self.dimension)
            self.invsqrt = np.eye(self.dimension)

    def is_stale(self, generation: int) -> bool:
        """Whether the cache must be refreshed before sampling ``generation``."""
        if self.updated_generation is None:
            return True
        return generation - self.updated_generation >= self.refresh_interval

    def invalidate(self) -> None:
        """Force a refresh at the next generation."""
        self.updated_generation = None

    def update(self, covariance: np.ndarray, generation: int) -> None:
        """
        Recompute the decomposition of ``covariance``.

        Raises:
            DecompositionError: If the matrix is not finite or not positive definite
        """
        try:
            eigenvalues, eigenbasis = linalg.eigh(covariance)
        except (linalg.LinAlgError, ValueError) as e:
            raise DecompositionError(f"Eigendecomposition failed: {e}") from e

        if eigenvalues.min() <= 0:
            raise DecompositionError(
                f"Covariance matrix is not positive definite "
                f"(smallest eigenvalue {eigenvalues.min():.3e})"
            )

        self.eigenvalues = eigenvalues
        self.eigenbasis = eigenbasis
        self.condition_number = float(eigenvalues.max() / eigenvalues.min())
        self.invsqrt = (eigenbasis / np.sqrt(eigenvalues)) @ eigenbasis.T
        self.updated_generation = generation

    @property
    def axis_lengths(self) -> np.ndarray:
        """Square roots of the eigenvalues (D)."""
        return np.sqrt(self.eigenvalues)

    def mahalanobis_norms(self, steps: np.ndarray) -> np.ndarray:
        """Row-wise norms |C^(-1/2) y| of a (k, n) matrix of steps."""
        return np.linalg.norm(np.atleast_2d(steps) @ self.invsqrt, axis=1)


@dataclass(eq=False)
class SearchState:
    """
    Mutable CMA-ES state, updated once per generation.

    Invariants: ``covariance`` is symmetric positive definite after every
    update and ``step_size`` is positive.
    """

    mean: np.ndarray
    covariance: np.ndarray
    step_size: float
    path_sigma: np.ndarray
    path_c: np.ndarray
    decomposition: CovarianceDecomposition
    generation: int = 0
    regularizations: int = 0

    @classmethod
    def initial(
        cls,
        mean: np.ndarray,
        step_size: float,
        refresh_interval: int = 1,
    ) -> "SearchState":
        """Identity covariance, zero paths, generation 0."""
        if not step_size > 0:
            raise ValueError(f"step_size must be positive, got {step_size}")
        mean = np.array(mean, dtype=float).ravel()
        n = mean.size
        return cls(
            mean=mean,
            covariance=np.eye(n),
            step_size=float(step_size),
            path_sigma=np.zeros(n),
            path_c=np.zeros(n),
            decomposition=CovarianceDecomposition(n, refresh_interval=refresh_interval),
        )

    @property
    def dimension(self) -> int:
        return self.mean.size

    def reset_covariance(self) -> None:
        """Regularize: identity covariance scaled by the current step size."""
        n = self.dimension
        self.covariance = np.eye(n)
        self.path_c = np.zeros(n)
        self.decomposition.invalidate()
        self.regularizations += 1
        logger.warning(
            f"Covariance reset to identity at generation {self.generation} "
            f"(regularization {self.regularizations}, sigma={self.step_size:.3e})"
        )

    def enforce_positive_definite(self, relative_floor: float = 1e-14) -> bool:
        """
        Symmetrize the covariance and project it back onto the positive
        definite cone if a Cholesky factorization fails.

        Eigenvalues are clipped to ``relative_floor`` times the largest one.

        Returns:
            True if the matrix had to be repaired

        Raises:
            DecompositionError: If the matrix is not finite
        """
        self.covariance = (self.covariance + self.covariance.T) / 2.0
        if not np.all(np.isfinite(self.covariance)):
            raise DecompositionError("Covariance matrix contains non-finite values")

        try:
            linalg.cholesky(self.covariance, lower=True)
            return False
        except linalg.LinAlgError:
            pass

        eigenvalues, eigenbasis = linalg.eigh(self.covariance)
        floor = max(eigenvalues.max(), np.finfo(float).tiny) * relative_floor
        clipped = np.maximum(eigenvalues, floor)
        repaired = (eigenbasis * clipped) @ eigenbasis.T
        self.covariance = (repaired + repaired.T) / 2.0
        self.decomposition.invalidate()
        logger.debug(
            f"Projected covariance onto positive definite cone at generation "
            f"{self.generation} (min eigenvalue was {eigenvalues.min():.3e})"
        )
        return True

    def copy(self) -> "SearchState":
        """Deep copy (decomposition included)."""
        decomposition = CovarianceDecomposition(
            dimension=self.decomposition.dimension,
            refresh_interval=self.decomposition.refresh_interval,
            eigenvalues=self.decomposition.eigenvalues.copy(),
            eigenbasis=self.decomposition.eigenbasis.copy(),
            invsqrt=self.decomposition.invsqrt.copy(),
            condition_number=self.decomposition.condition_number,
            updated_generation=self.decomposition.updated_generation,
        )
        return SearchState(
            mean=self.mean.copy(),
            covariance=self.covariance.copy(),
            step_size=self.step_size,
            path_sigma=self.path_sigma.copy(),
            path_c=self.path_c.copy(),
            decomposition=decomposition,
            generation=self.generation,
            regularizations=self.regularizations,
        )
