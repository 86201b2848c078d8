"""A timed calibration that removes the static mounting bias of each sensor."""
import time
import warnings
from enum import Enum
from typing import Dict, List, Optional

import numpy as np
from typing_extensions import Self

from posemap.base import BaseCalibration
from posemap.utils import fast_quaternion_math as fqm
from posemap.utils._algo_helper import invert_result_dictionary, set_params_from_dict
from posemap.utils.consts import DEFAULT_CALIBRATION_DURATION_MS
from posemap.utils.datatype_helper import ReferenceTable
from posemap.utils.exceptions import CalibrationStateError, OrientationAnomalyWarning
from posemap.utils.rotations import average_quaternions, find_angle_between_orientations


class CalibrationState(str, Enum):
    """The states of a calibration."""

    IDLE = "idle"
    COLLECTING = "collecting"
    COMPUTING = "computing"
    CALIBRATED = "calibrated"


def calculate_reference_orientation(
    samples: List[np.ndarray], align_hemisphere: bool, min_average_norm: float
) -> Optional[np.ndarray]:
    """Calculate the reference orientation of a single sensor from its calibration samples.

    Returns None, if the average of the samples is too close to zero to be normalized.
    """
    avg = average_quaternions(np.array(samples), align_hemisphere=align_hemisphere)
    if fqm.norm(avg) < min_average_norm:
        return None
    return fqm.normalize(avg)


class CalibrationController(BaseCalibration):
    """Collect orientation samples for a fixed time and derive a reference orientation per sensor.

    While the subject holds a known static pose (e.g. a T-Pose), all samples of each sensor are collected.
    After `duration_ms` the collection is closed and the reference orientation of each sensor is calculated as the
    normalized component-wise mean of its samples.
    Live samples can then be expressed relative to this reference using the
    :class:`~posemap.calibration.CalibrationCorrector`.

    The calibration runs through the states `IDLE -> COLLECTING -> COMPUTING -> CALIBRATED`.
    A new collection can be started from any state.
    Restarting discards all samples of an unfinished collection.
    The reference orientations of the previous calibration stay available until the new collection is finished.

    Completion is strictly time bounded.
    The controller itself does not keep time: `finish` is expected to be called once, `duration_ms` after `start`
    (e.g. by the timer of a :class:`~posemap.session.CaptureSession`).
    Sensors that stall or disconnect simply contribute fewer samples.

    Parameters
    ----------
    duration_ms
        The length of the collection window in ms
    align_hemisphere
        If True, all samples of a sensor are sign aligned to its first sample before averaging.
        As `q` and `-q` describe the same rotation, averaging without alignment can cancel samples out.
    min_average_norm
        If the norm of the (unnormalized) average is below this threshold, the samples do not describe a consistent
        orientation.
        No reference is calculated for such a sensor and an
        :class:`~posemap.utils.exceptions.OrientationAnomalyWarning` is emitted.

    Attributes
    ----------
    state_
        The current :class:`~posemap.calibration.CalibrationState`
    start_time_ms_
        The time the current or last collection was started
    expires_at_ms_
        The time the current or last collection window ends
    calibration_buffers_
        All samples collected in the current or last collection window per label
    reference_orientations_
        The reference orientation per label of the last completed calibration.
        Labels without samples or with a rejected average have no reference.
    sample_counts_
        Number of samples per label used in the last completed calibration
    sample_spread_deg_
        The largest angle (in deg) between any sample and the final reference per label.
        Large values indicate that the pose was not held still during the calibration.
    rejected_labels_
        Labels for which the average of the samples was too close to zero to calculate a reference

    Examples
    --------
    >>> calibration = CalibrationController(duration_ms=1000).start(now_ms=0)
    >>> calibration = calibration.collect("RA", np.array([1.0, 0, 0, 0])).collect("RA", np.array([1.0, 0, 0, 0]))
    >>> calibration.finish().reference_orientations_
    {'RA': array([1., 0., 0., 0.])}

    """

    duration_ms: float
    align_hemisphere: bool
    min_average_norm: float

    state_: CalibrationState
    start_time_ms_: float
    expires_at_ms_: float
    calibration_buffers_: Dict[str, List[np.ndarray]]
    reference_orientations_: ReferenceTable
    sample_counts_: Dict[str, int]
    sample_spread_deg_: Dict[str, float]
    rejected_labels_: List[str]

    def __init__(
        self,
        duration_ms: float = DEFAULT_CALIBRATION_DURATION_MS,
        align_hemisphere: bool = True,
        min_average_norm: float = 1e-3,
    ):
        self.duration_ms = duration_ms
        self.align_hemisphere = align_hemisphere
        self.min_average_norm = min_average_norm

    @property
    def current_state(self) -> CalibrationState:
        """The current state. `IDLE` if no calibration was started yet."""
        return getattr(self, "state_", CalibrationState.IDLE)

    @property
    def is_collecting(self) -> bool:
        return self.current_state == CalibrationState.COLLECTING

    @property
    def is_calibrated(self) -> bool:
        """True, if at least one calibration was completed."""
        return hasattr(self, "reference_orientations_")

    def is_expired(self, now_ms: float) -> bool:
        """Check if the current collection window is over."""
        return self.is_collecting and now_ms >= self.expires_at_ms_

    def start(self, now_ms: Optional[float] = None) -> Self:
        """Start a new collection window.

        The buffers of all known labels are cleared.
        An unfinished collection is discarded.
        Previous reference orientations stay untouched until `finish` is called.

        Parameters
        ----------
        now_ms
            The current time in ms. If None, the current system time is used.

        Returns
        -------
        self
            The class instance with all result attributes populated

        """
        if now_ms is None:
            now_ms = time.time() * 1000
        known_labels = set(getattr(self, "calibration_buffers_", {}))
        known_labels |= set(getattr(self, "reference_orientations_", {}))
        self.calibration_buffers_ = {label: [] for label in sorted(known_labels)}
        self.start_time_ms_ = now_ms
        self.expires_at_ms_ = now_ms + self.duration_ms
        self.state_ = CalibrationState.COLLECTING
        return self

    def collect(self, label: str, orientation: np.ndarray) -> Self:
        """Add a sample to the buffer of a label.

        Buffers are created on first use, so sensors that connect during the collection window are accepted.

        Parameters
        ----------
        label
            The label of the sensor
        orientation
            The (normalized) quaternion in scalar-first order

        Raises
        ------
        CalibrationStateError
            If no collection is running

        """
        if not self.is_collecting:
            raise CalibrationStateError("collect", self.current_state)
        self.calibration_buffers_.setdefault(label, []).append(np.array(orientation, dtype=float))
        return self

    def finish(self) -> Self:
        """Close the collection window and compute the reference orientations.

        The new reference table replaces the previous one entirely.

        Raises
        ------
        CalibrationStateError
            If no collection is running

        """
        if not self.is_collecting:
            raise CalibrationStateError("finish", self.current_state)
        self.state_ = CalibrationState.COMPUTING

        per_label = {}
        rejected = []
        for label, samples in self.calibration_buffers_.items():
            if len(samples) == 0:
                continue
            reference = calculate_reference_orientation(samples, self.align_hemisphere, self.min_average_norm)
            if reference is None:
                rejected.append(label)
                warnings.warn(
                    f"The calibration samples of {label} average to a near zero quaternion "
                    f"(norm < {self.min_average_norm}). "
                    "They do not describe a consistent orientation and no reference is calculated for this sensor. "
                    "Make sure the pose is held still during calibration.",
                    OrientationAnomalyWarning,
                )
                continue
            per_label[label] = {
                "reference_orientations": reference,
                "sample_counts": len(samples),
                "sample_spread_deg": float(
                    np.rad2deg(np.max(find_angle_between_orientations(np.array(samples), reference)))
                ),
            }

        results = {"reference_orientations": {}, "sample_counts": {}, "sample_spread_deg": {}}
        results.update(invert_result_dictionary(per_label))
        set_params_from_dict(self, results, result_formatting=True)
        self.rejected_labels_ = rejected
        self.state_ = CalibrationState.CALIBRATED
        return self
