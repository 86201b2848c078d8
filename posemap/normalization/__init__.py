"""Methods to enforce the unit-quaternion invariant on orientation samples."""
from posemap.normalization._orientation_normalizer import OrientationNormalizer

__all__ = ["OrientationNormalizer"]
