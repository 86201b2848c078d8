"""Express live samples relative to the orientation captured during calibration."""
from typing import Optional

import numpy as np
from typing_extensions import Self

from posemap.base import BaseCalibrationCorrection
from posemap.utils import fast_quaternion_math as fqm
from posemap.utils.datatype_helper import ReferenceTable


class CalibrationCorrector(BaseCalibrationCorrection):
    """Remove the static mounting bias of a sensor from a live sample.

    The corrected orientation is calculated as `conj(reference) * orientation` and normalized.
    If the sensor has no reference orientation (yet), the sample is passed through unchanged.
    The reference orientations are usually the result of a :class:`~posemap.calibration.CalibrationController`.

    Parameters
    ----------
    reference_orientations
        The reference orientation (scalar-first unit quaternion) per sensor label

    Attributes
    ----------
    corrected_orientation_
        The corrected sample
    is_calibrated_
        True, if a reference orientation was available for the label of the sample

    Other Parameters
    ----------------
    label
        The label of the sensor the sample belongs to
    orientation
        The (normalized) live sample in scalar-first order

    Examples
    --------
    >>> corrector = CalibrationCorrector(reference_orientations={"RA": np.array([0.0, 0, 0, 1])})
    >>> corrector.correct("RA", np.array([0.0, 0, 0, 1])).corrected_orientation_
    array([1., 0., 0., 0.])
    >>> corrector.correct("LA", np.array([0.0, 0, 0, 1])).is_calibrated_
    False

    """

    reference_orientations: Optional[ReferenceTable]

    label: str
    orientation: np.ndarray

    corrected_orientation_: np.ndarray
    is_calibrated_: bool

    def __init__(self, reference_orientations: Optional[ReferenceTable] = None):
        self.reference_orientations = reference_orientations

    def correct(self, label: str, orientation: np.ndarray) -> Self:
        """Correct a single live sample.

        Parameters
        ----------
        label
            The label of the sensor the sample belongs to
        orientation
            The live sample in scalar-first order

        Returns
        -------
        self
            The class instance with all result attributes populated

        """
        self.label = label
        self.orientation = orientation

        reference = (self.reference_orientations or {}).get(label)
        if reference is None:
            self.corrected_orientation_ = np.asarray(orientation, dtype=float)
            self.is_calibrated_ = False
            return self
        reference = np.asarray(reference, dtype=float)
        corrected = fqm.multiply(fqm.conjugate(reference), np.asarray(orientation, dtype=float))
        self.corrected_orientation_ = fqm.normalize(corrected)
        self.is_calibrated_ = True
        return self
