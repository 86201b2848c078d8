"""Parsing of the json messages sent by the sensors."""
import json
import numbers
import time
from typing import Any, Mapping, NamedTuple, Optional, Union

import numpy as np

from posemap.utils.datatype_helper import as_quaternion
from posemap.utils.exceptions import MalformedSampleError, ValidationError


class SensorSample(NamedTuple):
    """A single orientation sample of a sensor.

    Attributes
    ----------
    label
        The limb label of the sensor
    orientation
        The raw quaternion in scalar-first order (w, x, y, z). It is not normalized yet.
    sequence
        The running counter of the sensor (`count` field), if it was sent
    arrival_time
        Time of arrival in ms since epoch

    """

    label: str
    orientation: np.ndarray
    sequence: Optional[int]
    arrival_time: float


def parse_sensor_message(
    payload: Union[str, bytes, Mapping[str, Any]],
    default_label: Optional[str] = None,
    arrival_time: Optional[float] = None,
) -> SensorSample:
    """Parse a single message of a sensor.

    Sensors send json objects of the form `{"count": 12, "label": "RA", "quaternion": [w, x, y, z]}`.
    The `label` in the message takes precedence over the `default_label` (usually the label of the connection the
    message arrived on).
    The `count` field is optional.

    Parameters
    ----------
    payload
        The raw message or the already decoded json object
    default_label
        The label to use, if the message itself does not carry one
    arrival_time
        Time of arrival in ms since epoch. If None, the current system time is used.

    Raises
    ------
    MalformedSampleError
        If the message is not valid json, has no usable label, or does not contain a valid quaternion

    Examples
    --------
    >>> parse_sensor_message('{"count": 3, "quaternion": [1, 0, 0, 0]}', default_label="RA", arrival_time=0.0)
    SensorSample(label='RA', orientation=array([1., 0., 0., 0.]), sequence=3, arrival_time=0.0)

    """
    if isinstance(payload, (str, bytes, bytearray)):
        try:
            payload = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedSampleError(f"The message is not valid json: {e}") from e
    if not isinstance(payload, Mapping):
        raise MalformedSampleError(f"A sensor message must be a json object. Got {type(payload).__name__}.")

    label = payload.get("label", default_label)
    if label is None:
        label = default_label
    if not isinstance(label, str) or not label:
        raise MalformedSampleError(f"A sensor message needs a non-empty string label. Got {label!r}.")

    if "quaternion" not in payload:
        raise MalformedSampleError(f"The message of {label} does not contain a `quaternion`.")
    try:
        orientation = as_quaternion(payload["quaternion"])
    except ValidationError as e:
        raise MalformedSampleError(f"The message of {label} does not contain a valid quaternion: {e}") from e

    sequence = payload.get("count")
    if sequence is not None:
        if isinstance(sequence, bool) or not isinstance(sequence, numbers.Integral) or sequence < 0:
            raise MalformedSampleError(f"The `count` of a message must be a non-negative integer. Got {sequence!r}.")
        sequence = int(sequence)

    if arrival_time is None:
        arrival_time = time.time() * 1000
    return SensorSample(label, orientation, sequence, arrival_time)
