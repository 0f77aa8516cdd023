"""
Static strategy parameters of CMA-ES.

Recombination weights, learning rates and damping depend only on the problem
dimension, the population size and the number of parents. They are computed
once per run and never change afterwards.

Reference: N. Hansen, "The CMA Evolution Strategy: A Tutorial" (2016),
default parameter table.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any
import math
import numpy as np


def default_population_size(dimension: int) -> int:
    """4 + floor(3 ln n)."""
    return 4 + int(math.floor(3 * math.log(dimension)))


@dataclass(frozen=True, eq=False)
class StrategyParameters:
    """
    Immutable weights and learning rates for one run.

    ``weights`` has one entry per rank: positive for the ``mu`` best
    candidates (summing to one), negative for the remaining ones in Active
    mode, zero otherwise.
    """

    dimension: int
    population_size: int
    mu: int
    active: bool
    weights: np.ndarray
    mu_eff: float
    mu_eff_neg: float
    c_sigma: float
    d_sigma: float
    c_c: float
    c1: float
    c_mu: float
    chi_n: float

    @classmethod
    def create(
        cls,
        dimension: int,
        population_size: int = 0,
        mu: Optional[int] = None,
        active: bool = False,
    ) -> "StrategyParameters":
        """
        Compute the parameters for a run.

        Args:
            dimension: Problem dimension n
            population_size: lambda; 0 derives the default from n
            mu: Number of parents; defaults to lambda // 2
            active: Whether to compute negative weights

        Raises:
            ValueError: On inconsistent sizes
        """
        n = dimension
        if n < 1:
            raise ValueError("dimension must be at least 1")
        lam = population_size or default_population_size(n)
        if lam < 2:
            raise ValueError("population_size must be at least 2")
        mu = mu if mu is not None else lam // 2
        if not 1 <= mu < lam:
            raise ValueError(f"mu must be in [1, {lam - 1}], got {mu}")

        ranks = np.arange(1, lam + 1, dtype=float)
        raw = math.log(mu + 0.5) - np.log(ranks)

        positive = raw[:mu]
        mu_eff = positive.sum() ** 2 / (positive ** 2).sum()
        negative = raw[mu:]
        mu_eff_neg = negative.sum() ** 2 / (negative ** 2).sum()

        c_sigma = (mu_eff + 2) / (n + mu_eff + 5)
        d_sigma = 1 + 2 * max(0.0, math.sqrt((mu_eff - 1) / (n + 1)) - 1) + c_sigma
        c_c = (4 + mu_eff / n) / (n + 4 + 2 * mu_eff / n)
        c1 = 2 / ((n + 1.3) ** 2 + mu_eff)
        c_mu = min(1 - c1, 2 * (mu_eff - 2 + 1 / mu_eff) / ((n + 2) ** 2 + mu_eff))
        chi_n = math.sqrt(n) * (1 - 1 / (4 * n) + 1 / (21 * n ** 2))

        weights = np.zeros(lam)
        weights[:mu] = positive / positive.sum()
        if active and c_mu > 0:
            alpha_mu = 1 + c1 / c_mu
            alpha_mu_eff = 1 + 2 * mu_eff_neg / (mu_eff + 2)
            alpha_pos_def = (1 - c1 - c_mu) / (n * c_mu)
            scale = min(alpha_mu, alpha_mu_eff, alpha_pos_def)
            weights[mu:] = scale * negative / np.abs(negative).sum()
        weights.flags.writeable = False

        return cls(
            dimension=n,
            population_size=lam,
            mu=mu,
            active=active,
            weights=weights,
            mu_eff=float(mu_eff),
            mu_eff_neg=float(mu_eff_neg),
            c_sigma=float(c_sigma),
            d_sigma=float(d_sigma),
            c_c=float(c_c),
            c1=float(c1),
            c_mu=float(c_mu),
            chi_n=float(chi_n),
        )

    @property
    def positive_weights(self) -> np.ndarray:
        """Recombination weights of the ``mu`` parents."""
        return self.weights[:self.mu]

    @property
    def weight_sum(self) -> float:
        """Sum of all weights (one in standard mode, smaller in Active mode)."""
        return float(self.weights.sum())

    def default_refresh_interval(self) -> int:
        """
        Generations between eigendecompositions.

        The covariance changes by roughly (c1 + c_mu) per generation, so the
        decomposition can lag behind by about 1 / (10 n (c1 + c_mu)) of them.
        """
        return max(1, int(1.0 / (10.0 * self.dimension * (self.c1 + self.c_mu))))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dimension": self.dimension,
            "population_size": self.population_size,
            "mu": self.mu,
            "active": self.active,
            "mu_eff": self.mu_eff,
            "c_sigma": self.c_sigma,
            "d_sigma": self.d_sigma,
            "c_c": self.c_c,
            "c1": self.c1,
            "c_mu": self.c_mu,
        }
