"""
Tests for the CMA-ES search state, covariance decomposition and sampler.
"""

import pytest
import numpy as np

from activecma.optimizers.cmaes import (
    CovarianceDecomposition,
    DecompositionError,
    PopulationSampler,
    SearchState,
    rank_population,
)


@pytest.fixture
def state():
    return SearchState.initial(np.array([1.0, 2.0, 3.0]), step_size=0.5)


class TestSearchState:
    def test_initial(self, state):
        np.testing.assert_array_equal(state.mean, [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(state.covariance, np.eye(3))
        np.testing.assert_array_equal(state.path_sigma, 0.0)
        np.testing.assert_array_equal(state.path_c, 0.0)
        assert state.step_size == 0.5
        assert state.generation == 0
        assert state.dimension == 3

    def test_initial_flattens_matrix(self):
        state = SearchState.initial(np.ones((2, 3)), step_size=1.0)
        assert state.mean.shape == (6,)

    def test_non_positive_step_size(self):
        with pytest.raises(ValueError):
            SearchState.initial(np.zeros(2), step_size=0.0)

    def test_reset_covariance(self, state):
        state.covariance = np.diag([4.0, 1.0, 0.25])
        state.path_c = np.ones(3)
        state.decomposition.update(state.covariance, 0)
        state.reset_covariance()
        np.testing.assert_array_equal(state.covariance, np.eye(3))
        np.testing.assert_array_equal(state.path_c, 0.0)
        assert state.regularizations == 1
        assert state.decomposition.is_stale(0)

    def test_enforce_positive_definite_keeps_valid_matrix(self, state):
        state.covariance = np.array([[2.0, 0.5, 0.0], [0.5, 1.0, 0.0], [0.0, 0.0, 1.0]])
        assert state.enforce_positive_definite() is False
        np.testing.assert_allclose(state.covariance[0, 1], 0.5)

    def test_enforce_positive_definite_repairs(self, state):
        state.covariance = np.diag([1.0, 1.0, -0.5])
        assert state.enforce_positive_definite() is True
        assert np.linalg.eigvalsh(state.covariance).min() > 0
        np.testing.assert_allclose(state.covariance, state.covariance.T)

    def test_enforce_positive_definite_symmetrizes(self, state):
        state.covariance = np.array([[1.0, 0.2, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]])
        state.enforce_positive_definite()
        np.testing.assert_allclose(state.covariance, state.covariance.T)

    def test_enforce_positive_definite_non_finite(self, state):
        state.covariance[0, 0] = np.nan
        with pytest.raises(DecompositionError):
            state.enforce_positive_definite()

    def test_copy_is_independent(self, state):
        clone = state.copy()
        clone.mean[0] = 100.0
        clone.covariance[0, 0] = 9.0
        assert state.mean[0] == 1.0
        assert state.covariance[0, 0] == 1.0


class TestCovarianceDecomposition:
    def test_update(self):
        decomposition = CovarianceDecomposition(2)
        covariance = np.array([[4.0, 0.0], [0.0, 1.0]])
        decomposition.update(covariance, generation=0)
        np.testing.assert_allclose(np.sort(decomposition.axis_lengths), [1.0, 2.0])
        assert decomposition.condition_number == pytest.approx(4.0)
        np.testing.assert_allclose(
            decomposition.invsqrt @ covariance @ decomposition.invsqrt, np.eye(2), atol=1e-12
        )

    def test_staleness(self):
        decomposition = CovarianceDecomposition(2, refresh_interval=3)
        assert decomposition.is_stale(0)
        decomposition.update(np.eye(2), generation=0)
        assert not decomposition.is_stale(2)
        assert decomposition.is_stale(3)
        decomposition.invalidate()
        assert decomposition.is_stale(0)

    def test_rejects_indefinite(self):
        with pytest.raises(DecompositionError):
            CovarianceDecomposition(2).update(np.diag([1.0, -1.0]), generation=0)

    def test_rejects_non_finite(self):
        with pytest.raises(DecompositionError):
            CovarianceDecomposition(2).update(np.full((2, 2), np.nan), generation=0)

    def test_mahalanobis_norms(self):
        decomposition = CovarianceDecomposition(2)
        decomposition.update(np.diag([4.0, 1.0]), generation=0)
        norms = decomposition.mahalanobis_norms(np.array([[2.0, 0.0], [0.0, 3.0]]))
        np.testing.assert_allclose(norms, [1.0, 3.0])

    def test_invalid_refresh_interval(self):
        with pytest.raises(ValueError):
            CovarianceDecomposition(2, refresh_interval=0)


class TestSampler:
    def test_shapes(self, state):
        population = PopulationSampler(10).sample(state, np.random.default_rng(0))
        assert population.samples.shape == (10, 3)
        assert population.steps.shape == (10, 3)
        assert population.size == 10

    def test_samples_follow_steps(self, state):
        population = PopulationSampler(6).sample(state, np.random.default_rng(0))
        np.testing.assert_allclose(
            population.samples, state.mean + state.step_size * population.steps
        )

    def test_covariance_shapes_steps(self):
        state = SearchState.initial(np.zeros(2), step_size=1.0)
        state.covariance = np.diag([9.0, 0.01])
        state.decomposition.update(state.covariance, 0)
        population = PopulationSampler(5000).sample(state, np.random.default_rng(1))
        std = population.steps.std(axis=0)
        assert std[0] == pytest.approx(3.0, rel=0.05)
        assert std[1] == pytest.approx(0.1, rel=0.05)

    def test_deterministic(self, state):
        a = PopulationSampler(4).sample(state, np.random.default_rng(9))
        b = PopulationSampler(4).sample(state, np.random.default_rng(9))
        np.testing.assert_array_equal(a.samples, b.samples)

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            PopulationSampler(1)


class TestRanking:
    def test_ascending(self):
        np.testing.assert_array_equal(rank_population([3.0, 1.0, 2.0]), [1, 2, 0])

    def test_stable_ties(self):
        np.testing.assert_array_equal(rank_population([1.0, 0.0, 1.0, 0.0]), [1, 3, 0, 2])

    def test_non_finite_last(self):
        order = rank_population([np.nan, 2.0, np.inf, -1.0])
        np.testing.assert_array_equal(order, [3, 1, 0, 2])

    def test_population_rank(self, state):
        population = PopulationSampler(3).sample(state, np.random.default_rng(0))
        population.fitness = np.array([5.0, 1.0, 3.0])
        population.rank()
        assert population.best_index == 1
        assert population.best_fitness == 1.0
        assert population.median_fitness == 3.0
        np.testing.assert_array_equal(population.ranked_steps[0], population.steps[1])

    def test_rank_requires_fitness(self, state):
        population = PopulationSampler(3).sample(state, np.random.default_rng(0))
        with pytest.raises(RuntimeError):
            population.rank()
