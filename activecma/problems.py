"""
Benchmark objectives.

Classic test functions for the CMA-ES engines, plus a logistic regression
objective that is separable over its training samples and therefore usable
with RandomSelection.

Usage:
    from activecma.problems import RosenbrockFunction
    f = RosenbrockFunction()
    f(f.initial_point())  # 24.2
"""

from typing import Optional, Sequence, Tuple
import numpy as np

from .objective import Objective, SeparableObjective


class RosenbrockFunction(Objective):
    """
    Rosenbrock function (Banana function).

    f(x) = sum_i 100 (x_{i+1} - x_i^2)^2 + (1 - x_i)^2

    The global minimum is at (1, 1, ..., 1) with f(x*) = 0.

    Example:
        >>> RosenbrockFunction()(np.array([1.0, 1.0]))
        0.0
    """

    def __init__(self, dimension: int = 2):
        if dimension < 2:
            raise ValueError("Rosenbrock function requires at least 2 dimensions")
        self.dimension = dimension

    def initial_point(self) -> np.ndarray:
        """The customary start (-1.2, 1, -1.2, 1, ...)."""
        x0 = np.ones(self.dimension)
        x0[::2] = -1.2
        return x0

    def evaluate(self, x: np.ndarray) -> float:
        x = np.asarray(x, dtype=float).ravel()
        return float(np.sum(100.0 * (x[1:] - x[:-1] ** 2) ** 2 + (1.0 - x[:-1]) ** 2))


class SphereFunction(Objective):
    """Sum of squares. Global minimum at the origin with f(x*) = 0."""

    def __init__(self, dimension: int = 2):
        self.dimension = dimension

    def initial_point(self) -> np.ndarray:
        return np.ones(self.dimension)

    def evaluate(self, x: np.ndarray) -> float:
        x = np.asarray(x, dtype=float).ravel()
        return float(x @ x)


class EllipsoidFunction(Objective):
    """
    Axis-aligned ellipsoid with the given condition number.

    f(x) = sum_i condition^(i / (n - 1)) x_i^2

    Tests whether the covariance learns badly scaled axes.
    """

    def __init__(self, dimension: int = 5, condition: float = 1e6):
        if condition < 1:
            raise ValueError("condition must be at least 1")
        self.dimension = dimension
        self.condition = condition
        exponents = np.arange(dimension) / max(1, dimension - 1)
        self.scales = condition ** exponents

    def initial_point(self) -> np.ndarray:
        return np.ones(self.dimension)

    def evaluate(self, x: np.ndarray) -> float:
        x = np.asarray(x, dtype=float).ravel()
        return float(np.sum(self.scales * x ** 2))


class LogisticRegressionFunction(SeparableObjective):
    """
    Negative log-likelihood of L2-regularized logistic regression.

    Parameters are laid out as [intercept, w_1, ..., w_d]. Each training
    sample is one addend; the regularization term is spread evenly over the
    addends so that the addends sum to the full objective.

    Args:
        predictors: (n_samples, n_features) matrix
        responses: n_samples labels in {0, 1}
        regularization: L2 penalty strength (intercept excluded)
    """

    def __init__(
        self,
        predictors: np.ndarray,
        responses: Sequence[int],
        regularization: float = 0.0,
    ):
        predictors = np.asarray(predictors, dtype=float)
        responses = np.asarray(responses, dtype=float).ravel()
        if predictors.ndim != 2:
            raise ValueError("predictors must be a (n_samples, n_features) matrix")
        if predictors.shape[0] != responses.size:
            raise ValueError(
                f"{predictors.shape[0]} predictor rows but {responses.size} responses"
            )
        if not np.all((responses == 0) | (responses == 1)):
            raise ValueError("responses must be 0 or 1")
        if regularization < 0:
            raise ValueError("regularization must be non-negative")

        self.predictors = predictors
        self.responses = responses
        self.regularization = regularization

    @property
    def num_functions(self) -> int:
        return self.responses.size

    @property
    def dimension(self) -> int:
        return self.predictors.shape[1] + 1

    def initial_point(self) -> np.ndarray:
        return np.zeros(self.dimension)

    def _scores(self, x: np.ndarray, indices) -> np.ndarray:
        x = np.asarray(x, dtype=float).ravel()
        return x[0] + self.predictors[indices] @ x[1:]

    def evaluate_subset(self, x: np.ndarray, indices: Sequence[int]) -> float:
        indices = np.asarray(indices, dtype=int)
        scores = self._scores(x, indices)
        # -log(sigmoid(s)) for y = 1, -log(1 - sigmoid(s)) for y = 0
        loss = np.sum(np.logaddexp(0.0, scores) - self.responses[indices] * scores)

        weights = np.asarray(x, dtype=float).ravel()[1:]
        penalty = 0.5 * self.regularization * (weights @ weights)
        return float(loss + penalty * indices.size / self.num_functions)

    def predict(self, x: np.ndarray, predictors: Optional[np.ndarray] = None) -> np.ndarray:
        """Class labels (0/1) for ``predictors`` (training data by default)."""
        if predictors is None:
            scores = self._scores(x, slice(None))
        else:
            x = np.asarray(x, dtype=float).ravel()
            scores = x[0] + np.asarray(predictors, dtype=float) @ x[1:]
        return (scores >= 0).astype(int)

    def accuracy(self, x: np.ndarray) -> float:
        """Fraction of training samples classified correctly by ``x``."""
        return float(np.mean(self.predict(x) == self.responses))


def make_classification_data(
    n_samples: int = 200,
    n_features: int = 2,
    separation: float = 4.0,
    seed: Optional[int] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Two Gaussian clusters with unit variance, centered at -separation/2 and
    +separation/2 along every feature. Classes alternate 0, 1, 0, 1, ...

    Returns:
        (predictors, responses)
    """
    if n_samples < 2:
        raise ValueError("n_samples must be at least 2")
    rng = np.random.default_rng(seed)
    responses = np.arange(n_samples) % 2
    centers = np.where(responses[:, None] == 1, separation / 2, -separation / 2)
    predictors = centers + rng.standard_normal((n_samples, n_features))
    return predictors, responses
