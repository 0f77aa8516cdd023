"""
CMA-ES engines.

One generation runs: sample -> transform -> evaluate (selection policy) ->
rank -> recombine -> adapt step size -> adapt covariance, followed by a
termination check. The same engine covers all four variants:

- CMAES: standard rank-one + rank-mu covariance update
- ActiveCMAES: additionally subtracts the outer products of the worst-ranked
  steps (negative weights)
- ApproxCMAES / ApproxActiveCMAES: same engines with RandomSelection as the
  default selection policy

The distribution (mean, covariance) lives in the unconstrained space; the
objective only ever sees transformed, feasible points.

References:
    N. Hansen, "The CMA Evolution Strategy: A Tutorial" (2016)
    G. Jastrebski, D. Arnold, "Improving Evolution Strategies through Active
    Covariance Matrix Adaptation" (2006)
"""

from collections import deque
from typing import Any, Deque, Dict, List, Optional, Tuple, Union
import logging
import math
import numpy as np

from ...callbacks import CallbackFunction, CallbackManager, EventType, create_event
from ...objective import ObjectiveLike, as_objective
from ...selection import FullSelection, RandomSelection, SelectionPolicy
from ...transformations import BoundaryBoxConstraint, EmptyTransformation, TransformationPolicy
from ..base import Optimizer
from ..config import CMAESConfig
from ..result import OptimizationResult, TerminationStatus
from ..wrapper import ObjectiveWrapper
from .parameters import StrategyParameters
from .sampler import Population, PopulationSampler
from .state import DecompositionError, NumericalInstabilityError, SearchState

logger = logging.getLogger(__name__)


class CMAES(Optimizer):
    """
    Covariance Matrix Adaptation Evolution Strategy.

    Minimizes an objective by sampling candidates from an adaptive
    multivariate normal distribution. Bound constraints are handled by the
    transformation policy, subsampled fitness by the selection policy.

    Example:
        >>> optimizer = CMAES(population_size=32, lower_bound=0.0, upper_bound=2.0,
        ...                   tolerance=1e-3, step_size=0.075, seed=42)
        >>> result = optimizer.optimize(rosenbrock, np.array([-1.2, 1.0]))
        >>> result.mean_x, result.mean_f, result.status
    """

    active = False
    _name = "cmaes"

    def __init__(
        self,
        config: Optional[Union[CMAESConfig, Dict[str, Any]]] = None,
        transformation: Optional[TransformationPolicy] = None,
        selection: Optional[SelectionPolicy] = None,
        callbacks: Optional[List[CallbackFunction]] = None,
        **options: Any,
    ):
        """
        Initialize the engine.

        Args:
            config: CMAESConfig or dict of its fields
            transformation: Transformation policy; built from
                lower_bound/upper_bound when omitted (identity without bounds)
            selection: Selection policy; FullSelection when omitted
            callbacks: Functions receiving OptimizerEvent instances
            **options: CMAESConfig fields, overriding ``config``

        Raises:
            ValueError: On invalid options, or bounds given together with a
                transformation instance
        """
        self.config = self._build_config(config, options)

        if transformation is not None and self.config.has_bounds:
            raise ValueError("Pass either lower_bound/upper_bound or a transformation, not both")
        if transformation is None:
            if self.config.has_bounds:
                transformation = BoundaryBoxConstraint(
                    self.config.lower_bound, self.config.upper_bound
                )
            else:
                transformation = EmptyTransformation()
        if not isinstance(transformation, TransformationPolicy):
            raise TypeError(
                f"transformation must be a TransformationPolicy, got {type(transformation).__name__}"
            )
        if selection is None:
            selection = self._default_selection()
        if not isinstance(selection, SelectionPolicy):
            raise TypeError(f"selection must be a SelectionPolicy, got {type(selection).__name__}")

        self.transformation = transformation
        self.selection = selection
        self.callbacks = CallbackManager()
        for callback in callbacks or []:
            self.callbacks.register(callback)

    @staticmethod
    def _build_config(
        config: Optional[Union[CMAESConfig, Dict[str, Any]]],
        options: Dict[str, Any],
    ) -> CMAESConfig:
        if config is None:
            return CMAESConfig(**options)
        if isinstance(config, CMAESConfig):
            if not options:
                return config
            return CMAESConfig(**{**config.model_dump(), **options})
        if isinstance(config, dict):
            return CMAESConfig(**{**config, **options})
        raise TypeError(f"config must be a CMAESConfig or dict, got {type(config).__name__}")

    def _default_selection(self) -> SelectionPolicy:
        return FullSelection()

    @property
    def name(self) -> str:
        return self._name

    def get_info(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "family": self.family,
            "active": self.active,
            "transformation": repr(self.transformation),
            "selection": repr(self.selection),
            "config": self.config.model_dump(),
        }

    def strategy_parameters(self, dimension: int) -> StrategyParameters:
        """Weights and learning rates for a problem of ``dimension``."""
        return StrategyParameters.create(
            dimension,
            population_size=self.config.population_size,
            mu=self.config.mu,
            active=self.active,
        )

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def optimize(self, objective: ObjectiveLike, x0: np.ndarray) -> OptimizationResult:
        """
        Minimize ``objective`` starting from ``x0``.

        Args:
            objective: Objective or callable f(x) -> float
            x0: Initial coordinates (vector or matrix); the objective receives
                points of the same shape

        Returns:
            OptimizationResult; ``mean_x`` is the transformed final mean

        Raises:
            ValueError: If ``x0`` is empty or does not fit the transformation
        """
        x0 = np.array(x0, dtype=float)
        shape = x0.shape
        wrapper = ObjectiveWrapper(objective)
        parameters = self.strategy_parameters(x0.size)
        state = self.initialize(x0, parameters)
        rng = np.random.default_rng(self.config.seed)

        window = 10 + math.ceil(30 * parameters.dimension / parameters.population_size)
        recent_best: Deque[float] = deque(maxlen=window)
        history: List[Dict[str, Any]] = []
        best_x = self.transformation.transform(x0)
        best_f = math.inf

        logger.info(
            f"{self.name}: n={parameters.dimension}, lambda={parameters.population_size}, "
            f"mu={parameters.mu}, sigma0={state.step_size:.3e}"
        )
        self._emit(EventType.OPTIMIZATION_START, 0, {
            "dimension": parameters.dimension,
            "population_size": parameters.population_size,
            "mu": parameters.mu,
            "step_size": state.step_size,
            "active": self.active,
        })

        status: Optional[TerminationStatus] = None
        message = ""
        while status is None:
            try:
                population = self.step(state, parameters, wrapper, rng, shape)
            except NumericalInstabilityError as e:
                status = TerminationStatus.DIVERGED
                message = f"Numerical divergence at generation {state.generation}: {e}"
                break

            if population.best_fitness < best_f:
                best_f = population.best_fitness
                best_x = population.transformed[population.best_index].copy()
            recent_best.append(population.best_fitness)

            record = {
                "generation": state.generation,
                "best_f": population.best_fitness,
                "median_f": population.median_fitness,
                "step_size": state.step_size,
                "condition_number": state.decomposition.condition_number,
            }
            history.append(record)
            logger.debug(
                f"Generation {state.generation}: best f={population.best_fitness:.6e}, "
                f"sigma={state.step_size:.3e}"
            )
            self._emit(EventType.GENERATION_COMPLETE, state.generation, {**record, "best_ever_f": best_f})

            status, message = self.check_termination(state, population, recent_best)

        mean_x = self.transformation.transform(state.mean.reshape(shape))
        mean_f = wrapper.evaluate(mean_x)

        result = OptimizationResult(
            success=status == TerminationStatus.TOLERANCE_REACHED,
            message=message,
            status=status,
            best_x=best_x,
            best_f=best_f,
            mean_x=mean_x,
            mean_f=mean_f,
            n_iterations=state.generation,
            n_function_evals=wrapper.n_total_evals,
            history=history,
            final_state=state,
        )

        log = logger.info if result.success else logger.warning
        log(f"{self.name} finished: {message} (f(mean)={mean_f:.6e}, best f={best_f:.6e})")
        self._emit(EventType.OPTIMIZATION_COMPLETE, state.generation, {
            "success": result.success,
            "status": status.value,
            "message": message,
            "best_f": best_f,
            "mean_f": mean_f,
            "n_function_evals": result.n_function_evals,
        })
        return result

    def initialize(
        self,
        x0: np.ndarray,
        parameters: Optional[StrategyParameters] = None,
    ) -> SearchState:
        """
        Create the initial search state.

        The step size is the configured one or the transformation policy's
        suggestion; the covariance starts as the identity.
        """
        x0 = np.array(x0, dtype=float)
        if x0.size == 0:
            raise ValueError("Initial coordinates must not be empty")
        if not np.all(np.isfinite(x0)):
            raise ValueError("Initial coordinates must be finite")
        self.transformation.validate(x0.shape)

        if parameters is None:
            parameters = self.strategy_parameters(x0.size)
        elif parameters.dimension != x0.size:
            raise ValueError(
                f"Parameters are for dimension {parameters.dimension}, coordinates have {x0.size}"
            )

        step_size = self.config.step_size
        if step_size is None:
            step_size = self.transformation.initial_step_size()
        refresh = self.config.eigen_refresh_interval or parameters.default_refresh_interval()
        return SearchState.initial(x0, step_size, refresh_interval=refresh)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def step(
        self,
        state: SearchState,
        parameters: StrategyParameters,
        objective: ObjectiveLike,
        rng: np.random.Generator,
        shape: Optional[Tuple[int, ...]] = None,
    ) -> Population:
        """
        Run one generation and update ``state`` in place.

        Args:
            state: Search state (mutated)
            parameters: Strategy parameters of the run
            objective: Objective to minimize
            rng: Random generator of the run
            shape: Coordinate shape the objective expects (vector by default)

        Returns:
            The evaluated and ranked population

        Raises:
            NumericalInstabilityError: When the covariance keeps failing after
                ``max_regularizations`` resets, or no candidate has a finite
                fitness
        """
        objective = as_objective(objective)
        shape = shape or (state.dimension,)

        self._refresh_decomposition(state)

        population = PopulationSampler(parameters.population_size).sample(state, rng)
        population.transformed = [
            self.transformation.transform(sample.reshape(shape)) for sample in population.samples
        ]
        fitness = np.asarray(self.selection.select(objective, population.transformed, rng), dtype=float)
        population.fitness = np.where(np.isfinite(fitness), fitness, np.inf)
        population.rank()

        if not np.isfinite(population.best_fitness):
            raise NumericalInstabilityError(
                f"No candidate produced a finite fitness at generation {state.generation}"
            )

        self._update_distribution(state, parameters, population)
        state.generation += 1
        return population

    def _refresh_decomposition(self, state: SearchState) -> None:
        """Refresh the cached eigendecomposition, regularizing on failure."""
        while state.decomposition.is_stale(state.generation):
            try:
                state.decomposition.update(state.covariance, state.generation)
            except DecompositionError as e:
                self._regularize(state, str(e))
                continue

            condition = state.decomposition.condition_number
            if condition > self.config.max_condition:
                self._regularize(
                    state,
                    f"condition number {condition:.3e} exceeds {self.config.max_condition:.3e}",
                )

    def _regularize(self, state: SearchState, reason: str) -> None:
        if state.regularizations >= self.config.max_regularizations:
            raise NumericalInstabilityError(
                f"{reason} (after {state.regularizations} covariance resets)"
            )
        state.reset_covariance()
        self._emit(EventType.REGULARIZATION, state.generation, {
            "reason": reason,
            "regularizations": state.regularizations,
        })

    def _update_distribution(
        self,
        state: SearchState,
        parameters: StrategyParameters,
        population: Population,
    ) -> None:
        """Recombination, step-size adaptation and covariance adaptation."""
        n = state.dimension
        mu = parameters.mu
        sigma = state.step_size
        steps = population.ranked_steps

        # Recombination: weighted mean of the mu best steps.
        mean_step = parameters.positive_weights @ steps[:mu]
        state.mean = state.mean + sigma * mean_step

        # Cumulative step-length adaptation path.
        cs = parameters.c_sigma
        state.path_sigma = (1 - cs) * state.path_sigma + math.sqrt(
            cs * (2 - cs) * parameters.mu_eff
        ) * (state.decomposition.invsqrt @ mean_step)
        path_sigma_norm = float(np.linalg.norm(state.path_sigma))

        # Stall the rank-one path while |p_sigma| is unusually large.
        start_correction = math.sqrt(1 - (1 - cs) ** (2 * (state.generation + 1)))
        h_sigma = float(
            path_sigma_norm / start_correction < (1.4 + 2 / (n + 1)) * parameters.chi_n
        )

        cc = parameters.c_c
        state.path_c = (1 - cc) * state.path_c + h_sigma * math.sqrt(
            cc * (2 - cc) * parameters.mu_eff
        ) * mean_step

        self._adapt_covariance(state, parameters, steps, h_sigma)

        exponent = (cs / parameters.d_sigma) * (path_sigma_norm / parameters.chi_n - 1)
        state.step_size = float(max(sigma * math.exp(min(1.0, exponent)), np.finfo(float).tiny))

    def _adapt_covariance(
        self,
        state: SearchState,
        parameters: StrategyParameters,
        steps: np.ndarray,
        h_sigma: float,
    ) -> None:
        n = state.dimension
        c1, c_mu, cc = parameters.c1, parameters.c_mu, parameters.c_c

        weights = np.array(parameters.weights)
        negative = weights < 0
        if np.any(negative):
            # Rescale so each negative step has squared Mahalanobis length n.
            norms = state.decomposition.mahalanobis_norms(steps[negative])
            weights[negative] *= n / np.maximum(norms ** 2, np.finfo(float).tiny)

        rank_one = np.outer(state.path_c, state.path_c)
        rank_mu = (steps * weights[:, None]).T @ steps
        variance_loss = (1 - h_sigma) * cc * (2 - cc)

        decay = 1 + c1 * variance_loss - c1 - c_mu * parameters.weight_sum
        state.covariance = decay * state.covariance + c1 * rank_one + c_mu * rank_mu

        try:
            state.enforce_positive_definite()
        except DecompositionError as e:
            self._regularize(state, str(e))

    # ------------------------------------------------------------------
    # Termination
    # ------------------------------------------------------------------

    def check_termination(
        self,
        state: SearchState,
        population: Population,
        recent_best: Deque[float],
    ) -> Tuple[Optional[TerminationStatus], str]:
        """
        Decide whether the run stops after the current generation.

        Returns:
            (status, message); status is None to continue
        """
        if recent_best.maxlen is not None and len(recent_best) == recent_best.maxlen:
            finite = population.fitness[np.isfinite(population.fitness)]
            values = np.concatenate([np.asarray(recent_best, dtype=float), finite])
            spread = float(values.max() - values.min())
            if spread < self.config.tolerance:
                return (
                    TerminationStatus.TOLERANCE_REACHED,
                    f"Fitness range {spread:.3e} below tolerance {self.config.tolerance:.3e} "
                    f"after {state.generation} generations",
                )

        coordinate_spread = state.step_size * math.sqrt(float(np.max(np.diag(state.covariance))))
        if coordinate_spread < self.config.x_tolerance:
            return (
                TerminationStatus.TOLERANCE_REACHED,
                f"Coordinate spread {coordinate_spread:.3e} below x_tolerance "
                f"{self.config.x_tolerance:.3e} after {state.generation} generations",
            )

        if self.config.max_iterations and state.generation >= self.config.max_iterations:
            return (
                TerminationStatus.MAX_ITERATIONS,
                f"Reached maximum of {self.config.max_iterations} generations without "
                f"meeting tolerance",
            )
        return None, ""

    def _emit(self, event_type: EventType, iteration: int, data: Dict[str, Any]) -> None:
        if len(self.callbacks):
            self.callbacks.emit(create_event(event_type, iteration, data, optimizer=self.name))


class ActiveCMAES(CMAES):
    """
    Active CMA-ES: the worst-ranked candidates contribute negative weights to
    the rank-mu update, shrinking the variance along unproductive directions.

    Negative weights are bounded so the update keeps the covariance positive
    definite; they are further rescaled per candidate by
    n / |C^(-1/2) y_i|^2.
    """

    active = True
    _name = "active-cmaes"


class ApproxCMAES(CMAES):
    """CMA-ES evaluating a random subset of a separable objective per generation."""

    _name = "approx-cmaes"

    def _default_selection(self) -> SelectionPolicy:
        return RandomSelection()


class ApproxActiveCMAES(ActiveCMAES):
    """Active CMA-ES evaluating a random subset of a separable objective per generation."""

    _name = "approx-active-cmaes"

    def _default_selection(self) -> SelectionPolicy:
        return RandomSelection()
