import numpy as np
import pytest
from numpy.testing import assert_almost_equal, assert_array_almost_equal, assert_array_equal
from scipy.spatial.transform import Rotation

from posemap.utils.fast_quaternion_math import (
    conjugate,
    dot,
    multiply,
    norm,
    normalize,
    quat_from_rotvec,
    rotate_vector,
)
from posemap.utils.rotations import from_rotation, to_rotation
from tests.test_utils.test_vector_math import TestNormalize


class TestMultiply:
    """Test the function `multiply`."""

    @pytest.mark.parametrize(
        "q1, q2",
        [
            ([1.0, 0.0, 0.0, 0.0], [1.0, 0.0, 0.0, 0.0]),
            ([1.0, 0.0, 0.0, 0.0], [0.0, 1.0, 0.0, 0.0]),
            ([0.5, 0.5, 0.5, 0.5], [0.707107, 0.0, 0.0, 0.707107]),
            ([0.0, 0.0, 0.707107, 0.707107], [0.5, -0.5, 0.5, 0.5]),
        ],
    )
    def test_quaternion_multiplication(self, q1, q2):
        q1 = np.array(q1)
        q2 = np.array(q2)
        assert_array_almost_equal(multiply(q1, q2), from_rotation(to_rotation(q1) * to_rotation(q2)))
        assert_array_almost_equal(multiply(q2, q1), from_rotation(to_rotation(q2) * to_rotation(q1)))

    def test_hamilton_convention(self):
        i = np.array([0.0, 1, 0, 0])
        j = np.array([0.0, 0, 1, 0])
        k = np.array([0.0, 0, 0, 1])
        assert_array_equal(multiply(i, j), k)
        assert_array_equal(multiply(j, i), -k)

    def test_identity(self):
        q = normalize(np.array([0.3, -0.2, 0.5, 0.1]))
        assert_array_almost_equal(multiply(np.array([1.0, 0, 0, 0]), q), q)
        assert_array_almost_equal(multiply(q, np.array([1.0, 0, 0, 0])), q)


class TestConjugate:
    def test_conjugate_is_inverse_for_unit_quaternions(self):
        q = normalize(np.array([0.3, -0.2, 0.5, 0.1]))
        assert_array_almost_equal(multiply(conjugate(q), q), [1.0, 0, 0, 0])
        assert_array_almost_equal(multiply(q, conjugate(q)), [1.0, 0, 0, 0])

    def test_conjugate_matches_scipy_inverse(self):
        rot = Rotation.from_euler("xyz", [10, 20, 30], degrees=True)
        assert_array_almost_equal(conjugate(from_rotation(rot)), from_rotation(rot.inv()))

    def test_input_not_modified(self):
        q = np.array([1.0, 2.0, 3.0, 4.0])
        conjugate(q)
        assert_array_equal(q, [1.0, 2.0, 3.0, 4.0])


class TestNormAndDot:
    def test_norm(self):
        assert_almost_equal(norm(np.array([1.0, 1.0, 1.0, 1.0])), 2.0)
        assert norm(np.zeros(4)) == 0

    def test_dot(self):
        assert dot(np.array([1.0, 2, 3, 4]), np.array([4.0, 3, 2, 1])) == 20.0

    def test_antipodal_dot_is_negative(self):
        q = normalize(np.array([0.3, -0.2, 0.5, 0.1]))
        assert_almost_equal(dot(q, -q), -1.0)


class TestRotateVector:
    """Test the function `rotate_vector`."""

    @pytest.mark.parametrize(
        "q, v",
        [
            ([1.0, 0.0, 0.0, 0.0], [1.0, 2.0, 3.0]),
            ([0.0, 0.707107, 0.707107, 0.0], [1.0, 2.0, 1.0]),
            ([0.5, 0.5, 0.5, 0.5], [1.0, 4.0, 0.4]),
        ],
    )
    def test_rotate_vector_by_quaternion(self, q, v):
        q = np.array(q)
        v = np.array(v)
        assert_array_almost_equal(rotate_vector(q, v), to_rotation(q).apply(v))


class TestQuatFromRotvec:
    """Test the function `quat_from_rotvec`."""

    @pytest.mark.parametrize(
        "v", [([1.0, 0.0, 0.0]), ([1.0, 1.0, 0.0]), ([1.0, 1.0, 1.0]), ([0.2, 0.1, 5.0]), ([10.0, 0.2, 0.0])]
    )
    def test_quat_from_rotation_vector(self, v):
        v = np.array(v)
        assert_array_almost_equal(quat_from_rotvec(v), from_rotation(Rotation.from_rotvec(v)))

    def test_zero_rotvec_is_identity(self):
        assert_array_equal(quat_from_rotvec(np.zeros(3)), [1.0, 0, 0, 0])


class TestFindNormalize(TestNormalize):
    def func(self, x):
        return normalize(x)

    def test_normalize_quaternion(self):
        assert_array_almost_equal(self.func(np.array([2.0, 0, 0, 0])), [1.0, 0, 0, 0])
        assert_almost_equal(norm(self.func(np.array([0.3, -7.0, 0.5, 100.0]))), 1.0)

    def test_normalize_all_zeros(self):
        """Test vector [0, 0, 0, 0]."""
        assert_array_equal(self.func(np.array([0.0, 0, 0, 0])), [0.0, 0, 0, 0])
