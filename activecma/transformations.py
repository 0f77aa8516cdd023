"""
Transformation policies.

A transformation policy maps the unconstrained coordinates sampled by an
evolution strategy into the feasible region before the objective is
evaluated, and suggests an initial step size suited to that region. The
search distribution itself keeps living in the unconstrained space, so every
policy here must be continuous.

Policies:
- EmptyTransformation: identity, for unconstrained problems
- BoundaryBoxConstraint: box bounds [lower_bound, upper_bound]
"""

from abc import ABC, abstractmethod
from typing import Sequence, Tuple, Union
import numpy as np

BoundLike = Union[float, Sequence[float], Sequence[Sequence[float]], np.ndarray]


class TransformationPolicy(ABC):
    """
    Abstract base class for transformation policies.

    Policies are created once by the caller and shared read-only across all
    generations of a run.
    """

    @abstractmethod
    def transform(self, x: np.ndarray) -> np.ndarray:
        """
        Map coordinates into the feasible region.

        Args:
            x: Coordinates (vector or matrix)

        Returns:
            Feasible coordinates with the same shape as ``x``
        """
        pass

    @abstractmethod
    def initial_step_size(self) -> float:
        """Suggested initial step size (sigma) for this region."""
        pass

    def inverse(self, y: np.ndarray) -> np.ndarray:
        """Map feasible coordinates back into the unconstrained pre-image."""
        return np.array(y, dtype=float)

    def validate(self, shape: Tuple[int, ...]) -> None:
        """
        Check that the policy can handle coordinates of ``shape``.

        Raises:
            ValueError: On a dimensionality mismatch
        """
        pass


class EmptyTransformation(TransformationPolicy):
    """
    Identity transformation, for problems without constraints.
    """

    def transform(self, x: np.ndarray) -> np.ndarray:
        return np.array(x, dtype=float)

    def initial_step_size(self) -> float:
        return 1.0

    def __repr__(self) -> str:
        return "EmptyTransformation()"


class BoundaryBoxConstraint(TransformationPolicy):
    """
    Map coordinates into the box [lower_bound, upper_bound].

    Values are first folded periodically into the pre-image
    [lower - 2*al - diff, upper + 2*au + diff], reflected once into
    [lower - al, upper + au] and finally passed through a quadratic map inside
    the bands of width al/au next to each bound. Between lower + al and
    upper - au the transformation is the identity. The result is continuous
    and differentiable at the band edges.

    Bounds can be scalars, vectors or matrices. A scalar applies to every
    coordinate; when the bound is smaller than the coordinates, rows and
    columns beyond it reuse the last row/column of the bound.

    See N. Hansen's C implementation of CMA-ES (boundary_transformation.c).

    Example:
        >>> box = BoundaryBoxConstraint(0.0, 2.0)
        >>> box.transform(np.array([-1.2, 1.0]))
        array([1.1, 1. ])
    """

    def __init__(self, lower_bound: BoundLike, upper_bound: BoundLike):
        """
        Initialize the box.

        Args:
            lower_bound: Lower bound(s)
            upper_bound: Upper bound(s)

        Raises:
            ValueError: If shapes disagree, bounds are not finite, or a lower
                bound exceeds its upper bound
        """
        lower = self._as_bound_matrix(lower_bound, "lower_bound")
        upper = self._as_bound_matrix(upper_bound, "upper_bound")

        if lower.shape != upper.shape:
            if lower.size == 1:
                lower = np.full(upper.shape, lower.item())
            elif upper.size == 1:
                upper = np.full(lower.shape, upper.item())
            else:
                raise ValueError(
                    f"lower_bound shape {lower.shape} does not match "
                    f"upper_bound shape {upper.shape}"
                )

        if not (np.all(np.isfinite(lower)) and np.all(np.isfinite(upper))):
            raise ValueError("Bounds must be finite")
        if np.any(lower > upper):
            raise ValueError("lower_bound must not exceed upper_bound")

        lower.flags.writeable = False
        upper.flags.writeable = False
        self._lower_bound = lower
        self._upper_bound = upper

    @property
    def lower_bound(self) -> np.ndarray:
        """Lower bound as a (rows, cols) matrix."""
        return self._lower_bound

    @property
    def upper_bound(self) -> np.ndarray:
        """Upper bound as a (rows, cols) matrix."""
        return self._upper_bound

    @staticmethod
    def _as_bound_matrix(bound: BoundLike, name: str) -> np.ndarray:
        arr = np.array(bound, dtype=float)
        if arr.size == 0:
            raise ValueError(f"{name} must not be empty")
        if arr.ndim == 0:
            return arr.reshape(1, 1)
        if arr.ndim == 1:
            return arr.reshape(-1, 1)
        if arr.ndim == 2:
            return arr
        raise ValueError(f"{name} must be a scalar, vector or matrix, got {arr.ndim} dims")

    def validate(self, shape: Tuple[int, ...]) -> None:
        if len(shape) not in (1, 2):
            raise ValueError(f"Coordinates must be a vector or matrix, got shape {shape}")
        rows, cols = (shape[0], 1) if len(shape) == 1 else shape
        bound_rows, bound_cols = self._lower_bound.shape
        if bound_rows > rows or bound_cols > cols:
            raise ValueError(
                f"Bounds of shape {self._lower_bound.shape} do not match "
                f"coordinates of shape {tuple(shape)}"
            )

    def _broadcast_bounds(self, shape: Tuple[int, ...]) -> Tuple[np.ndarray, np.ndarray]:
        """Bounds aligned elementwise with coordinates of ``shape``."""
        if len(shape) not in (1, 2):
            raise ValueError(f"Coordinates must be a vector or matrix, got shape {shape}")
        rows, cols = (shape[0], 1) if len(shape) == 1 else shape
        row_idx = np.minimum(np.arange(rows), self._lower_bound.shape[0] - 1)
        col_idx = np.minimum(np.arange(cols), self._lower_bound.shape[1] - 1)
        index = np.ix_(row_idx, col_idx)
        return (
            self._lower_bound[index].reshape(shape),
            self._upper_bound[index].reshape(shape),
        )

    @staticmethod
    def _margins(lower: np.ndarray, upper: np.ndarray) -> Tuple[np.ndarray, ...]:
        diff = (upper - lower) / 2.0
        al = np.minimum(diff, (1.0 + np.abs(lower)) / 20.0)
        au = np.minimum(diff, (1.0 + np.abs(upper)) / 20.0)
        return diff, al, au

    def transform(self, x: np.ndarray) -> np.ndarray:
        y = np.array(x, dtype=float)
        lower, upper = self._broadcast_bounds(y.shape)
        diff, al, au = self._margins(lower, upper)

        xlow = lower - 2.0 * al - diff
        xup = upper + 2.0 * au + diff
        r = 2.0 * (2.0 * diff + al + au)

        # lower == upper collapses the box to a point
        degenerate = r <= 0.0
        r = np.where(degenerate, 1.0, r)

        # Fold into the pre-image [xlow, xup], whose width is r.
        y = np.where((y < xlow) | (y > xup), xlow + np.mod(y - xlow, r), y)

        # Reflect into [lower - al, upper + au].
        y = np.where(y < lower - al, y + 2.0 * (lower - al - y), y)
        y = np.where(y > upper + au, y - 2.0 * (y - upper - au), y)

        # Quadratic bands next to the bounds.
        al_safe = np.where(al > 0.0, al, 1.0)
        au_safe = np.where(au > 0.0, au, 1.0)
        low_band = y < lower + al
        high_band = ~low_band & (y > upper - au)
        y = np.where(low_band, lower + (y - (lower - al)) ** 2 / 4.0 / al_safe, y)
        y = np.where(high_band, upper - (y - (upper + au)) ** 2 / 4.0 / au_safe, y)

        return np.where(degenerate, lower, y)

    def inverse(self, y: np.ndarray) -> np.ndarray:
        """
        Map feasible coordinates back to the pre-image [lower - al, upper + au].

        For any y inside the box, ``transform(inverse(y))`` returns y.
        """
        x = np.array(y, dtype=float)
        lower, upper = self._broadcast_bounds(x.shape)
        _, al, au = self._margins(lower, upper)

        low_band = x < lower + al
        high_band = ~low_band & (x > upper - au)
        x_low = (lower - al) + 2.0 * np.sqrt(np.abs(al * (x - lower)))
        x_high = (upper + au) - 2.0 * np.sqrt(np.abs(au * (upper - x)))
        return np.where(low_band, x_low, np.where(high_band, x_high, x))

    def initial_step_size(self) -> float:
        """
        0.3 times the smallest non-degenerate range of the box.

        Dimensions with lower == upper are skipped rather than taken as a
        zero minimum, so a partially degenerate box still gets a usable step.
        """
        ranges = (self._upper_bound - self._lower_bound).ravel()
        ranges = ranges[ranges > 0.0]
        if ranges.size == 0:
            raise ValueError("Every dimension of the box is degenerate (lower == upper)")
        return float(0.3 * ranges.min())

    def __repr__(self) -> str:
        if self._lower_bound.size == 1:
            return (
                f"BoundaryBoxConstraint({self._lower_bound.item()}, "
                f"{self._upper_bound.item()})"
            )
        return f"BoundaryBoxConstraint(shape={self._lower_bound.shape})"
