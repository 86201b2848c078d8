"""Enforce the unit-quaternion invariant on incoming orientation samples."""
import warnings
from typing import Optional

import numpy as np
from typing_extensions import Self

from posemap.base import BaseOrientationNormalization
from posemap.utils import fast_quaternion_math as fqm
from posemap.utils.exceptions import OrientationAnomalyWarning


class OrientationNormalizer(BaseOrientationNormalization):
    """Scale a quaternion sample to unit norm.

    The Euclidean norm is calculated over all four components (w, x, y, z).
    If it is larger than 0, the sample is divided by it.
    A sample with a norm of exactly 0 can not be normalized.
    It is considered degenerate: it is passed through unchanged, `is_degenerate_` is set and an
    :class:`~posemap.utils.exceptions.OrientationAnomalyWarning` is emitted.
    A degenerate sample never raises an error, as a single bad frame must not interrupt the stream.

    Parameters
    ----------
    warn_on_degenerate
        If True, a warning is emitted for every degenerate sample.
        The sample is flagged independent of this setting.

    Attributes
    ----------
    normalized_orientation_
        The normalized sample or the unchanged input, if it was degenerate
    is_degenerate_
        True, if the sample had a norm of 0

    Other Parameters
    ----------------
    orientation
        The raw quaternion passed to the normalize method
    label
        The optional label of the sensor the sample belongs to. Only used for the warning message.

    Examples
    --------
    >>> normalizer = OrientationNormalizer().normalize(np.array([2.0, 0, 0, 0]))
    >>> normalizer.normalized_orientation_
    array([1., 0., 0., 0.])

    """

    warn_on_degenerate: bool

    orientation: np.ndarray
    label: Optional[str]

    normalized_orientation_: np.ndarray
    is_degenerate_: bool

    def __init__(self, warn_on_degenerate: bool = True):
        self.warn_on_degenerate = warn_on_degenerate

    def normalize(self, orientation: np.ndarray, label: Optional[str] = None) -> Self:
        """Normalize a single orientation sample.

        Parameters
        ----------
        orientation
            A quaternion in scalar-first order (w, x, y, z)
        label
            The label of the sensor the sample belongs to

        Returns
        -------
        self
            The class instance with all result attributes populated

        """
        self.orientation = orientation
        self.label = label

        q = np.asarray(orientation, dtype=float)
        self.is_degenerate_ = bool(fqm.norm(q) == 0)
        if self.is_degenerate_:
            if self.warn_on_degenerate:
                warnings.warn(
                    f"Received a zero-norm orientation{f' for {label}' if label else ''}. "
                    "The sample can not be normalized and is passed through unchanged.",
                    OrientationAnomalyWarning,
                )
            self.normalized_orientation_ = q
        else:
            self.normalized_orientation_ = fqm.normalize(q)
        return self
