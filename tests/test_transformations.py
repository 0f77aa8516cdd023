"""
Tests for transformation policies.
"""

import pytest
import numpy as np

from activecma.transformations import BoundaryBoxConstraint, EmptyTransformation


@pytest.fixture
def box():
    return BoundaryBoxConstraint(0.0, 2.0)


class TestEmptyTransformation:
    def test_identity(self):
        x = np.array([[1.5, -2.0], [0.0, 3.0]])
        y = EmptyTransformation().transform(x)
        np.testing.assert_array_equal(y, x)
        assert y is not x

    def test_initial_step_size(self):
        assert EmptyTransformation().initial_step_size() == 1.0


class TestBoundaryBoxTransform:
    def test_rosenbrock_start_point(self, box):
        """(-1.2, 1) folds to (1.1, 1) in [0, 2]."""
        np.testing.assert_allclose(box.transform(np.array([-1.2, 1.0])), [1.1, 1.0])

    def test_identity_inside_band(self, box):
        # al = 0.05, au = 0.15 for [0, 2]
        x = np.linspace(0.05, 1.85, 37)
        np.testing.assert_allclose(box.transform(x), x)

    def test_output_within_bounds(self, box):
        rng = np.random.default_rng(0)
        x = rng.normal(scale=50.0, size=(200, 3))
        y = box.transform(x)
        assert np.all(y >= 0.0)
        assert np.all(y <= 2.0)

    def test_output_within_bounds_for_huge_inputs(self, box):
        x = np.array([1e17, -1e17, 3e18, -7.3e19, 1e300, -1e300])
        y = box.transform(x)
        assert np.all(np.isfinite(y))
        assert np.all(y >= 0.0)
        assert np.all(y <= 2.0)

    def test_huge_inputs_with_vector_bounds(self):
        box = BoundaryBoxConstraint([-3.0, 10.0], [5.0, 10.5])
        x = np.array([[1e200, -4e19], [-2.5e16, 1e300]])
        y = box.transform(x)
        # vector bounds are columns: row i uses bound i
        assert np.all((y[0] >= -3.0) & (y[0] <= 5.0))
        assert np.all((y[1] >= 10.0) & (y[1] <= 10.5))

    def test_keeps_shape(self, box):
        x = np.full((4, 3), 7.0)
        assert box.transform(x).shape == (4, 3)

    def test_bounds_reached_in_quadratic_band(self, box):
        np.testing.assert_allclose(box.transform(np.array([-0.05, 2.15])), [0.0, 2.0])

    def test_quadratic_band_values(self, box):
        # lower band: l + (y - (l - al))^2 / (4 al)
        np.testing.assert_allclose(box.transform(np.array([0.0])), [0.05 ** 2 / 0.2])
        # upper band: u - (y - (u + au))^2 / (4 au)
        np.testing.assert_allclose(box.transform(np.array([2.0])), [2.0 - 0.15 ** 2 / 0.6])

    @pytest.mark.parametrize("edge", [0.05, 1.85, -0.05, 2.15, -1.1, 3.3])
    def test_continuous_at_edges(self, box, edge):
        eps = 1e-9
        below, above = box.transform(np.array([edge - eps, edge + eps]))
        assert abs(above - below) < 1e-6

    def test_periodic(self, box):
        # period r = 2 * (2 * diff + al + au) = 4.4
        x = np.array([0.3, 1.0, 1.95])
        np.testing.assert_allclose(box.transform(x + 4.4), box.transform(x))
        np.testing.assert_allclose(box.transform(x - 3 * 4.4), box.transform(x))

    def test_reflection(self, box):
        # -1.0 reflects across l - al = -0.05 to 0.9
        np.testing.assert_allclose(box.transform(np.array([-1.0])), [0.9])

    def test_degenerate_dimension(self):
        box = BoundaryBoxConstraint([0.0, 1.0], [1.0, 1.0])
        y = box.transform(np.array([5.0, -3.0]))
        assert y[1] == 1.0
        assert 0.0 <= y[0] <= 1.0
        assert np.all(np.isfinite(y))

    def test_per_coordinate_bounds(self):
        box = BoundaryBoxConstraint([0.0, -10.0], [1.0, 10.0])
        y = box.transform(np.array([0.5, 0.5]))
        np.testing.assert_allclose(y, [0.5, 0.5])
        y = box.transform(np.array([100.0, 100.0]))
        assert 0.0 <= y[0] <= 1.0
        assert -10.0 <= y[1] <= 10.0


class TestBroadcast:
    def test_scalar_bounds_stored_as_matrix(self, box):
        assert box.lower_bound.shape == (1, 1)
        assert box.upper_bound.shape == (1, 1)

    def test_vector_bounds_stored_as_column(self):
        box = BoundaryBoxConstraint([0.0, 1.0, 2.0], [1.0, 2.0, 3.0])
        assert box.lower_bound.shape == (3, 1)

    def test_bounds_read_only(self, box):
        with pytest.raises(ValueError):
            box.lower_bound[0, 0] = 5.0

    def test_last_row_reused(self):
        box = BoundaryBoxConstraint([[0.0], [10.0]], [[1.0], [20.0]])
        x = np.array([[0.5, 0.5], [15.0, 15.0], [15.0, 15.0]])
        np.testing.assert_allclose(box.transform(x), x)

        y = box.transform(np.full((3, 2), 100.0))
        assert np.all((y[0] >= 0.0) & (y[0] <= 1.0))
        assert np.all((y[1:] >= 10.0) & (y[1:] <= 20.0))

    def test_last_column_reused(self):
        box = BoundaryBoxConstraint([[0.0, 5.0]], [[1.0, 6.0]])
        y = box.transform(np.full((2, 3), -40.0))
        assert np.all((y[:, 0] >= 0.0) & (y[:, 0] <= 1.0))
        assert np.all((y[:, 1:] >= 5.0) & (y[:, 1:] <= 6.0))

    def test_scalar_mixed_with_vector(self):
        box = BoundaryBoxConstraint(0.0, [1.0, 2.0])
        np.testing.assert_array_equal(box.lower_bound, [[0.0], [0.0]])

    def test_validate_accepts_smaller_bounds(self):
        BoundaryBoxConstraint([0.0, 0.0], [1.0, 1.0]).validate((5,))

    def test_validate_rejects_larger_bounds(self):
        box = BoundaryBoxConstraint([0.0, 0.0, 0.0], [1.0, 1.0, 1.0])
        with pytest.raises(ValueError):
            box.validate((2,))


class TestConfiguration:
    def test_lower_above_upper(self):
        with pytest.raises(ValueError, match="exceed"):
            BoundaryBoxConstraint([0.0, 3.0], [1.0, 2.0])

    def test_shape_mismatch(self):
        with pytest.raises(ValueError, match="shape"):
            BoundaryBoxConstraint([0.0, 0.0], [1.0, 1.0, 1.0])

    def test_non_finite_bounds(self):
        with pytest.raises(ValueError, match="finite"):
            BoundaryBoxConstraint(0.0, np.inf)

    def test_empty_bounds(self):
        with pytest.raises(ValueError):
            BoundaryBoxConstraint([], [])


class TestInitialStepSize:
    def test_scalar_box(self, box):
        assert box.initial_step_size() == pytest.approx(0.6)

    def test_smallest_range(self):
        box = BoundaryBoxConstraint([0.0, -5.0], [1.0, 5.0])
        assert box.initial_step_size() == pytest.approx(0.3)

    def test_ignores_degenerate_dimensions(self):
        box = BoundaryBoxConstraint([0.0, 1.0], [4.0, 1.0])
        assert box.initial_step_size() == pytest.approx(1.2)

    def test_all_degenerate(self):
        box = BoundaryBoxConstraint([1.0, 1.0], [1.0, 1.0])
        with pytest.raises(ValueError, match="degenerate"):
            box.initial_step_size()


class TestInverse:
    def test_round_trip(self, box):
        y = np.linspace(0.0, 2.0, 101)
        np.testing.assert_allclose(box.transform(box.inverse(y)), y, atol=1e-12)

    def test_round_trip_matrix_bounds(self):
        box = BoundaryBoxConstraint([[-1.0, 0.0]], [[1.0, 10.0]])
        rng = np.random.default_rng(1)
        y = np.column_stack([rng.uniform(-1, 1, 20), rng.uniform(0, 10, 20)])
        np.testing.assert_allclose(box.transform(box.inverse(y)), y, atol=1e-12)

    def test_identity_inside_band(self, box):
        y = np.array([0.5, 1.0, 1.5])
        np.testing.assert_allclose(box.inverse(y), y)
