"""The explicit context object that ties normalization, calibration and retargeting together."""
import threading
import time
import warnings
from collections import Counter
from functools import partial
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd
from tpcp import clone
from typing_extensions import Self

from posemap.calibration import CalibrationController, CalibrationCorrector, CalibrationState
from posemap.normalization import OrientationNormalizer
from posemap.retargeting import PoseRetargeter
from posemap.streaming import ControlToken, SensorLink, parse_sensor_message
from posemap.utils.consts import RECORD_COLS
from posemap.utils.datatype_helper import GlobalPose, OrientationRecordList, ReferenceTable
from posemap.utils.exceptions import MalformedSampleError, OrientationAnomalyWarning, SensorLinkWarning

#: Label used to count anomalies of messages that can not be attributed to any sensor
UNKNOWN_LABEL = "unknown"


class CaptureSession:
    """Process the live samples of multiple sensors into a calibrated skeleton pose.

    A session owns all mutable state of a capture: the latest global orientation per sensor, the calibration and its
    reference orientations, the current local rotations of the skeleton, and the exported records.
    All state changes happen under a single reentrant lock.
    This includes the callback of the calibration timer, which runs on its own thread.

    Each incoming sample is processed as follows:

    1. The sample is normalized. Zero-norm samples are counted as anomaly and returned as is.
    2. While a calibration is collecting, every valid sample is added to the calibration buffer of its label.
       Nothing else happens.
    3. Otherwise a valid sample is corrected by the reference orientation of its label, stored as the latest global
       orientation, and the skeleton pose is updated.
       A record `(label, w, x, y, z, timestamp)` is appended to the exported records.

    The algorithm instances passed to the session are cloned.
    Their results can be accessed via the attributes of the same name on the session.

    Parameters
    ----------
    normalizer
        The orientation normalization applied to every sample
    calibration
        The calibration controller
    corrector
        The calibration correction applied to every live sample.
        Its reference orientations are replaced, whenever a calibration is completed.
    retargeter
        The retargeting method that updates the skeleton pose
    clock
        Function returning the current time in seconds since epoch
    timer_factory
        Called as `timer_factory(seconds, callback)` to schedule the end of a calibration.
        The returned object needs a `start` and a `cancel` method (e.g. :class:`threading.Timer`).

    Attributes
    ----------
    global_pose
        The latest corrected global orientation per label
    anomaly_counts
        The number of dropped messages and zero-norm samples per label
    sequence_gaps
        The number of samples per label that were skipped according to the `count` field of the messages
    records
        All live samples as `(label, w, x, y, z, timestamp)` tuples
    links
        The registered control links per label

    Examples
    --------
    >>> session = CaptureSession()
    >>> generation = session.start_calibration()
    >>> session.deliver_message("RA", '{"count": 1, "quaternion": [0, 0, 0, 1]}')
    >>> session.finish_calibration()
    True
    >>> session.deliver_message("RA", '{"count": 2, "quaternion": [0, 0, 0, 1]}')
    array([1., 0., 0., 0.])
    >>> session.close()

    """

    normalizer: OrientationNormalizer
    calibration: CalibrationController
    corrector: CalibrationCorrector
    retargeter: PoseRetargeter

    global_pose: GlobalPose
    anomaly_counts: Counter
    sequence_gaps: Counter
    records: List[Tuple[str, float, float, float, float, float]]
    links: Dict[str, SensorLink]

    def __init__(
        self,
        *,
        normalizer: Optional[OrientationNormalizer] = None,
        calibration: Optional[CalibrationController] = None,
        corrector: Optional[CalibrationCorrector] = None,
        retargeter: Optional[PoseRetargeter] = None,
        clock: Callable[[], float] = time.time,
        timer_factory: Callable[[float, Callable[[], Any]], Any] = threading.Timer,
    ):
        self.normalizer = clone(normalizer) if normalizer is not None else OrientationNormalizer()
        self.calibration = clone(calibration) if calibration is not None else CalibrationController()
        self.corrector = clone(corrector) if corrector is not None else CalibrationCorrector()
        self.retargeter = clone(retargeter) if retargeter is not None else PoseRetargeter()
        self.clock = clock
        self.timer_factory = timer_factory

        self.global_pose = {}
        self.anomaly_counts = Counter()
        self.sequence_gaps = Counter()
        self.records = []
        self.links = {}

        self._lock = threading.RLock()
        self._generation = 0
        self._timer = None
        self._last_sequence: Dict[str, int] = {}

    def _now_ms(self) -> float:
        return self.clock() * 1000

    @property
    def calibration_state(self) -> CalibrationState:
        return self.calibration.current_state

    @property
    def reference_orientations(self) -> ReferenceTable:
        """The reference orientations that are currently used to correct live samples."""
        return dict(self.corrector.reference_orientations or {})

    @property
    def local_rotations(self) -> pd.DataFrame:
        """The current local rotation of every joint of the skeleton."""
        with self._lock:
            return self.retargeter.local_rotations_

    def records_frame(self) -> OrientationRecordList:
        """Export all records as dataframe with the columns :obj:`~posemap.utils.consts.RECORD_COLS`."""
        with self._lock:
            return pd.DataFrame(list(self.records), columns=RECORD_COLS)

    def register_link(self, label: str, link: SensorLink) -> Self:
        """Register the control link of a connected sensor.

        A link that is registered with an existing label replaces the old one.
        """
        with self._lock:
            self.links[label] = link
        return self

    def disconnect(self, label: str) -> Self:
        """Remove the control link of a sensor.

        All orientation data of the sensor is kept.
        The skeleton simply keeps the last local rotation of the joint.
        """
        with self._lock:
            self.links.pop(label, None)
        return self

    def broadcast(self, token: Union[str, ControlToken]) -> List[str]:
        """Send a control token to all registered sensors.

        A failing link does not affect any other link.
        Its error is reported as :class:`~posemap.utils.exceptions.SensorLinkWarning`.

        Returns
        -------
        labels
            The labels of all links the token was sent to successfully

        """
        token = ControlToken(token)
        with self._lock:
            links = list(self.links.items())
        sent = []
        for label, link in links:
            try:
                link.send(token.value)
            except Exception as e:  # noqa: broad-except
                warnings.warn(f"Sending `{token.value}` to {label} failed: {e!r}", SensorLinkWarning)
                continue
            sent.append(label)
        return sent

    def start_streaming(self) -> List[str]:
        return self.broadcast(ControlToken.START)

    def stop_streaming(self) -> List[str]:
        """Tell all sensors to stop sending and cancel a running calibration timer."""
        with self._lock:
            self._cancel_timer()
        return self.broadcast(ControlToken.STOP)

    def start_calibration(self) -> int:
        """Tell all sensors to calibrate and start a new calibration collection.

        A calibration that is still collecting is discarded and its timer is cancelled.
        After `calibration.duration_ms` the timer calls `finish_calibration`.

        Returns
        -------
        generation
            The id of the started calibration. Pass it to `finish_calibration` to finish exactly this calibration.

        """
        self.broadcast(ControlToken.CALIBRATE)
        with self._lock:
            self._cancel_timer()
            self.calibration.start(now_ms=self._now_ms())
            self._generation += 1
            generation = self._generation
            timer = self.timer_factory(
                self.calibration.duration_ms / 1000, partial(self.finish_calibration, generation)
            )
            if isinstance(timer, threading.Thread):
                timer.daemon = True
            self._timer = timer
            timer.start()
        return generation

    def finish_calibration(self, generation: Optional[int] = None) -> bool:
        """Finish the running calibration and install the new reference orientations.

        Parameters
        ----------
        generation
            If provided, the calibration is only finished, if it is still the calibration started with this
            generation id.
            This makes sure that the timer of an outdated calibration does not finish a newer one.

        Returns
        -------
        finished
            False, if no matching calibration was collecting

        """
        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            if not self.calibration.is_collecting:
                return False
            self._cancel_timer()
            self.calibration.finish()
            self.corrector.set_params(reference_orientations=dict(self.calibration.reference_orientations_))
            return True

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def deliver_message(
        self, label: Optional[str], payload: Union[str, bytes, Mapping[str, Any]]
    ) -> Optional[np.ndarray]:
        """Parse a raw sensor message and process the contained sample.

        Malformed messages are dropped.
        They are counted in `anomaly_counts` under the label of the link and reported as
        :class:`~posemap.utils.exceptions.OrientationAnomalyWarning`.

        Parameters
        ----------
        label
            The label of the link the message arrived on
        payload
            The raw message

        Returns
        -------
        corrected
            The corrected orientation or None, if the sample was used for calibration or the message was dropped

        """
        try:
            sample = parse_sensor_message(payload, default_label=label, arrival_time=self._now_ms())
        except MalformedSampleError as e:
            with self._lock:
                self.anomaly_counts[label or UNKNOWN_LABEL] += 1
            warnings.warn(f"Dropped a malformed message: {e}", OrientationAnomalyWarning)
            return None
        return self.deliver_sample(
            sample.label, sample.orientation, sequence=sample.sequence, arrival_time=sample.arrival_time
        )

    def deliver_sample(
        self,
        label: str,
        orientation: np.ndarray,
        sequence: Optional[int] = None,
        arrival_time: Optional[float] = None,
    ) -> Optional[np.ndarray]:
        """Process a single orientation sample.

        Parameters
        ----------
        label
            The label of the sensor
        orientation
            The raw quaternion in scalar-first order
        sequence
            The running counter of the sensor, if available
        arrival_time
            Time of arrival in ms since epoch. If None, the session clock is used.

        Returns
        -------
        corrected
            The corrected orientation or None, if the sample was used for calibration.
            A degenerate sample is returned as is, but never enters the pose or the records.

        """
        with self._lock:
            if arrival_time is None:
                arrival_time = self._now_ms()
            normalized = self.normalizer.normalize(orientation, label=label)
            q = normalized.normalized_orientation_
            if normalized.is_degenerate_:
                self.anomaly_counts[label] += 1
            self._track_sequence(label, sequence)

            if self.calibration.is_collecting:
                if not normalized.is_degenerate_:
                    self.calibration.collect(label, q)
                return None
            if normalized.is_degenerate_:
                # The last valid orientation of the label stays in the pose, so no other joint is affected
                return q

            corrected = self.corrector.correct(label, q).corrected_orientation_
            self.global_pose[label] = corrected
            self.retargeter.retarget(dict(self.global_pose))
            self.records.append((label, *(float(v) for v in corrected), float(arrival_time)))
            return corrected

    def _track_sequence(self, label: str, sequence: Optional[int]):
        if sequence is None:
            return
        last = self._last_sequence.get(label)
        if last is not None and sequence > last + 1:
            self.sequence_gaps[label] += sequence - last - 1
        self._last_sequence[label] = sequence

    def close(self):
        """Cancel a running calibration timer."""
        with self._lock:
            self._cancel_timer()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args):
        self.close()
