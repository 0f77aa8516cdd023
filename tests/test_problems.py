"""
Tests for the benchmark objectives.
"""

import pytest
import numpy as np

from activecma.problems import (
    EllipsoidFunction,
    LogisticRegressionFunction,
    RosenbrockFunction,
    SphereFunction,
    make_classification_data,
)


class TestRosenbrock:
    def test_optimum(self):
        assert RosenbrockFunction()(np.array([1.0, 1.0])) == 0.0

    def test_initial_point(self):
        f = RosenbrockFunction()
        np.testing.assert_array_equal(f.initial_point(), [-1.2, 1.0])
        assert f(f.initial_point()) == pytest.approx(24.2)

    def test_higher_dimension(self):
        f = RosenbrockFunction(4)
        np.testing.assert_array_equal(f.initial_point(), [-1.2, 1.0, -1.2, 1.0])
        assert f(np.ones(4)) == 0.0

    def test_requires_two_dimensions(self):
        with pytest.raises(ValueError):
            RosenbrockFunction(1)


class TestSphereAndEllipsoid:
    def test_sphere(self):
        assert SphereFunction(3)(np.array([1.0, 2.0, 2.0])) == 9.0

    def test_ellipsoid_scales(self):
        f = EllipsoidFunction(3, condition=100.0)
        np.testing.assert_allclose(f.scales, [1.0, 10.0, 100.0])
        assert f(np.ones(3)) == pytest.approx(111.0)

    def test_ellipsoid_single_dimension(self):
        assert EllipsoidFunction(1)(np.array([2.0])) == 4.0

    def test_ellipsoid_invalid_condition(self):
        with pytest.raises(ValueError):
            EllipsoidFunction(3, condition=0.5)


@pytest.fixture
def data():
    return make_classification_data(n_samples=40, n_features=3, seed=0)


class TestLogisticRegression:
    def test_shapes(self, data):
        predictors, responses = data
        assert predictors.shape == (40, 3)
        np.testing.assert_array_equal(np.unique(responses), [0, 1])

    def test_num_functions(self, data):
        f = LogisticRegressionFunction(*data)
        assert f.num_functions == 40
        assert f.dimension == 4

    def test_zero_parameters(self, data):
        # every sample contributes log(2) at the origin
        f = LogisticRegressionFunction(*data, regularization=1.0)
        assert f(f.initial_point()) == pytest.approx(40 * np.log(2.0))

    def test_addends_sum_to_full(self, data):
        f = LogisticRegressionFunction(*data, regularization=0.5)
        x = np.array([0.1, -0.3, 0.7, 0.2])
        parts = f.evaluate_subset(x, np.arange(0, 15)) + f.evaluate_subset(x, np.arange(15, 40))
        assert parts == pytest.approx(f.evaluate(x))

    def test_regularization_penalty(self, data):
        plain = LogisticRegressionFunction(*data)
        penalized = LogisticRegressionFunction(*data, regularization=2.0)
        x = np.array([5.0, 1.0, 2.0, 0.0])
        # intercept is not penalized
        assert penalized(x) - plain(x) == pytest.approx(0.5 * 2.0 * 5.0)

    def test_stable_for_large_scores(self, data):
        f = LogisticRegressionFunction(*data)
        assert np.isfinite(f(np.array([0.0, 1e4, 1e4, 1e4])))

    def test_accuracy(self):
        predictors = np.array([[-2.0], [-1.0], [1.0], [2.0]])
        f = LogisticRegressionFunction(predictors, [0, 0, 1, 1])
        assert f.accuracy(np.array([0.0, 1.0])) == 1.0
        assert f.accuracy(np.array([0.0, -1.0])) == 0.0
        np.testing.assert_array_equal(f.predict(np.array([0.0, 1.0]), [[3.0], [-3.0]]), [1, 0])

    @pytest.mark.parametrize("predictors,responses,reg", [
        (np.zeros(4), [0, 1, 0, 1], 0.0),
        (np.zeros((4, 2)), [0, 1, 0], 0.0),
        (np.zeros((3, 2)), [0, 1, 2], 0.0),
        (np.zeros((2, 2)), [0, 1], -1.0),
    ])
    def test_invalid(self, predictors, responses, reg):
        with pytest.raises(ValueError):
            LogisticRegressionFunction(predictors, responses, reg)

    def test_data_is_reproducible(self):
        a = make_classification_data(seed=5)
        b = make_classification_data(seed=5)
        np.testing.assert_array_equal(a[0], b[0])
