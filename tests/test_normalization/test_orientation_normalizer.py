import numpy as np
import pytest
from numpy.testing import assert_almost_equal, assert_array_almost_equal, assert_array_equal

from posemap.normalization import OrientationNormalizer
from posemap.utils.exceptions import OrientationAnomalyWarning
from tests.mixins.test_algorithm_mixin import TestAlgorithmMixin


class TestMetaFunctionality(TestAlgorithmMixin):
    algorithm_class = OrientationNormalizer
    __test__ = True

    @pytest.fixture()
    def after_action_instance(self) -> OrientationNormalizer:
        return OrientationNormalizer().normalize(np.array([2.0, 0, 0, 0]), label="RA")


class TestOrientationNormalizer:
    @pytest.mark.parametrize(
        "q", ([2.0, 0, 0, 0], [0.1, 0.2, 0.3, 0.4], [-5.0, 3.0, 100.0, 0.001], [0.5, 0.5, 0.5, 0.5])
    )
    def test_unit_norm(self, q):
        normalizer = OrientationNormalizer().normalize(np.array(q))
        assert_almost_equal(np.linalg.norm(normalizer.normalized_orientation_), 1.0)
        assert normalizer.is_degenerate_ is False

    def test_direction_is_kept(self):
        q = np.array([1.0, 2.0, 3.0, 4.0])
        normalizer = OrientationNormalizer().normalize(q)
        assert_array_almost_equal(normalizer.normalized_orientation_, q / np.sqrt(30))

    def test_idempotent(self):
        q = OrientationNormalizer().normalize(np.array([0.3, -0.1, 0.7, 0.2])).normalized_orientation_
        assert_array_almost_equal(OrientationNormalizer().normalize(q).normalized_orientation_, q)

    def test_list_input(self):
        normalizer = OrientationNormalizer().normalize([0.0, 0.0, 3.0, 0.0])
        assert_array_equal(normalizer.normalized_orientation_, [0.0, 0.0, 1.0, 0.0])

    def test_zero_norm_passes_through(self):
        with pytest.warns(OrientationAnomalyWarning) as w:
            normalizer = OrientationNormalizer().normalize(np.zeros(4), label="RA")
        assert_array_equal(normalizer.normalized_orientation_, np.zeros(4))
        assert normalizer.is_degenerate_ is True
        assert "RA" in str(w[0].message)

    def test_zero_norm_without_warning(self, recwarn):
        normalizer = OrientationNormalizer(warn_on_degenerate=False).normalize(np.zeros(4))
        assert normalizer.is_degenerate_ is True
        assert len([w for w in recwarn if issubclass(w.category, OrientationAnomalyWarning)]) == 0

    def test_input_not_modified(self):
        q = np.array([2.0, 0, 0, 0])
        OrientationNormalizer().normalize(q)
        assert_array_equal(q, [2.0, 0, 0, 0])
