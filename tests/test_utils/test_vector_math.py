import numpy as np
import pytest
from numpy.testing import assert_array_almost_equal, assert_array_equal

from posemap.utils.vector_math import normalize, row_wise_dot


class TestNormalize:
    """Test the function `normalize`."""

    def func(self, x):
        return normalize(x)

    def test_normalize_1d_array(self) -> None:
        """Test 1D array."""
        assert_array_equal(self.func(np.array([2.0, 0, 0])), np.array([1.0, 0, 0]))

    @pytest.mark.parametrize(
        ("v1", "v2"),
        [([0, 2.0, 0], [0, 1, 0]), ([2.0, 0, 0], [1.0, 0, 0]), ([0.5, 0.5, 0], [0.707107, 0.707107, 0])],
    )
    def test_normalize_2d_array(self, v1, v2) -> None:
        """Test 2D array."""
        assert_array_almost_equal(self.func(np.array(v1)), np.array(v2))

    def test_normalize_all_zeros(self) -> None:
        """Test vector [0, 0, 0]."""
        assert_array_equal(self.func(np.array([0.0, 0, 0])), [0.0, 0, 0])


class TestNormalizeVectorised:
    def test_multiple_rows(self):
        out = normalize(np.array([[2.0, 0, 0, 0], [0, 3.0, 0, 0], [0, 0, 0, 0]]))
        assert_array_equal(out, [[1.0, 0, 0, 0], [0, 1.0, 0, 0], [0, 0, 0, 0]])

    def test_input_not_modified(self):
        v = np.array([[2.0, 0, 0, 0]])
        normalize(v)
        assert_array_equal(v, [[2.0, 0, 0, 0]])


class TestRowWiseDot:
    def test_single_vectors(self):
        assert_array_equal(row_wise_dot(np.array([1, 2, 3]), np.array([1, 1, 1])), [6])
        assert row_wise_dot(np.array([1, 2, 3]), np.array([1, 1, 1]), squeeze=True) == 6

    def test_broadcast_against_single_vector(self):
        v1 = np.array([[1.0, 0, 0, 0], [-1.0, 0, 0, 0], [0, 1.0, 0, 0]])
        assert_array_equal(row_wise_dot(v1, np.array([1.0, 0, 0, 0])), [1.0, -1.0, 0.0])
