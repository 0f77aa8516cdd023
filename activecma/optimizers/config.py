"""
Pydantic configuration for the CMA-ES engines.

Options are validated at construction; invalid values raise
``pydantic.ValidationError`` (a ``ValueError``).
"""

from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Bound = Union[float, List[float]]


class CMAESConfig(BaseModel):
    """
    Configuration of a CMA-ES run.

    Example:
        >>> config = CMAESConfig(population_size=32, tolerance=1e-3,
        ...                      lower_bound=0.0, upper_bound=2.0)
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    population_size: int = Field(
        default=0,
        description="Offspring per generation (lambda); 0 derives 4 + floor(3 ln n)",
    )
    mu: Optional[int] = Field(
        default=None, ge=1, description="Number of parents; defaults to lambda // 2"
    )
    max_iterations: int = Field(
        default=1000, ge=0, description="Maximum generations; 0 means no limit"
    )
    tolerance: float = Field(
        default=1e-5, gt=0, description="Fitness range below which the run has converged"
    )
    x_tolerance: float = Field(
        default=1e-12, gt=0, description="Coordinate spread below which the run has converged"
    )
    step_size: Optional[float] = Field(
        default=None, gt=0, description="Initial sigma; defaults to the transformation's suggestion"
    )
    lower_bound: Optional[Bound] = Field(default=None, description="Lower bound(s)")
    upper_bound: Optional[Bound] = Field(default=None, description="Upper bound(s)")
    seed: Optional[int] = Field(default=None, description="Seed of the random generator")
    max_condition: float = Field(
        default=1e14, gt=1, description="Covariance condition number ceiling"
    )
    eigen_refresh_interval: Optional[int] = Field(
        default=None, ge=1, description="Generations between eigendecompositions"
    )
    max_regularizations: int = Field(
        default=3, ge=0, description="Covariance resets allowed before reporting divergence"
    )

    @field_validator("population_size")
    @classmethod
    def check_population_size(cls, v: int) -> int:
        if v == 1 or v < 0:
            raise ValueError("population_size must be 0 (automatic) or at least 2")
        return v

    @model_validator(mode="after")
    def check_consistency(self) -> "CMAESConfig":
        if (self.lower_bound is None) != (self.upper_bound is None):
            raise ValueError("lower_bound and upper_bound must be given together")
        if self.mu is not None and self.population_size and self.mu >= self.population_size:
            raise ValueError("mu must be smaller than population_size")
        return self

    @property
    def has_bounds(self) -> bool:
        return self.lower_bound is not None
