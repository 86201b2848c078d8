"""A couple of helper functions that ease the use of the typical posemap data formats."""
from typing import Any, Dict, Iterable, Sequence

import numpy as np
import pandas as pd

from posemap.utils.consts import RECORD_COLS
from posemap.utils.exceptions import ValidationError

Quaternion = np.ndarray
GlobalPose = Dict[str, Quaternion]
ReferenceTable = Dict[str, Quaternion]
OrientationRecordList = pd.DataFrame


def _assert_is_dtype(obj, dtype) -> None:
    """Check if an object has a specific dtype."""
    if not isinstance(obj, dtype):
        raise ValidationError(f"The dataobject is expected to be one of ({dtype},). But it is a {type(obj)}")


def _assert_has_columns(df: pd.DataFrame, columns: Iterable[str]) -> None:
    """Check if the dataframe has at least all the provided columns."""
    columns = list(columns)
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValidationError(
            f"The dataframe is expected to have the columns: {columns}. "
            f"Instead it has the following columns: {list(df.columns)}"
        )


def _assert_is_quaternion(value: Any) -> np.ndarray:
    if isinstance(value, (str, bytes)) or not isinstance(value, (Sequence, np.ndarray)):
        raise ValidationError(f"A quaternion is expected to be a sequence of 4 numbers. Got {type(value)}.")
    if len(value) != 4:
        raise ValidationError(f"A quaternion is expected to have exactly 4 components [w, x, y, z]. Got {len(value)}.")
    if any(isinstance(v, (bool, str, bytes)) for v in value):
        raise ValidationError(f"The components of a quaternion must be numbers. Got {value!r}.")
    try:
        q = np.asarray(value, dtype=float)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"The components of a quaternion must be numbers. Got {value!r}.") from e
    if q.shape != (4,):
        raise ValidationError(f"A quaternion must be a flat sequence of 4 numbers. Got shape {q.shape}.")
    if not np.all(np.isfinite(q)):
        raise ValidationError(f"All components of a quaternion must be finite. Got {value!r}.")
    return q


def is_quaternion(value: Any, raise_exception: bool = False) -> bool:
    """Check if an object can be used as a quaternion.

    A valid quaternion is a sequence (or 1D array) of exactly 4 finite numbers in scalar-first order (w, x, y, z).
    It does **not** need to have unit norm.

    Parameters
    ----------
    value
        Object that should be checked
    raise_exception
        If True an exception is raised if the object does not pass the validation.
        If False, the function will return simply True or False.

    Examples
    --------
    >>> is_quaternion([1, 0, 0, 0])
    True
    >>> is_quaternion([1, 0, 0])
    False

    """
    try:
        _assert_is_quaternion(value)
    except ValidationError as e:
        if raise_exception is True:
            raise ValidationError(
                "The passed object does not seem to be a quaternion. "
                "The validation failed with the following error:\n\n{}".format(str(e))
            ) from e
        return False
    return True


def as_quaternion(value: Any) -> Quaternion:
    """Validate an object as quaternion and return it as float array.

    Raises
    ------
    ValidationError
        If the object is not a valid quaternion (see :func:`~posemap.utils.datatype_helper.is_quaternion`).

    """
    return _assert_is_quaternion(value)


def is_orientation_record_list(records: OrientationRecordList, raise_exception: bool = False) -> bool:
    """Check if an object is a valid list of orientation records.

    A valid record list is:

    - a :class:`pandas.DataFrame`
    - has at least the columns listed in :obj:`RECORD_COLS <posemap.utils.consts.RECORD_COLS>`
    - has only finite values in the quaternion columns

    Such a list is produced by :meth:`posemap.session.CaptureSession.records_frame` and can be replayed using
    :func:`posemap.streaming.replay_records`.

    Parameters
    ----------
    records
        Object that should be checked
    raise_exception
        If True an exception is raised if the object does not pass the validation.
        If False, the function will return simply True or False.

    """
    try:
        _assert_is_dtype(records, pd.DataFrame)
        _assert_has_columns(records, RECORD_COLS)
        quats = records[RECORD_COLS[1:5]]
        try:
            values = quats.to_numpy(dtype=float)
        except (TypeError, ValueError) as e:
            raise ValidationError("The quaternion columns of a record list must be numeric.") from e
        if not np.all(np.isfinite(values)):
            raise ValidationError("The quaternion columns of a record list must not contain NaN or inf values.")
    except ValidationError as e:
        if raise_exception is True:
            raise ValidationError(
                "The passed object does not seem to be an OrientationRecordList. "
                "The validation failed with the following error:\n\n{}".format(str(e))
            ) from e
        return False
    return True
