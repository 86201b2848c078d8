"""Feed recorded samples back into a session."""
from typing import TYPE_CHECKING, List, Optional

import numpy as np
import pandas as pd

from posemap.utils.consts import QUAT_COLS
from posemap.utils.datatype_helper import OrientationRecordList, is_orientation_record_list

if TYPE_CHECKING:
    from posemap.session import CaptureSession


def replay_records(session: "CaptureSession", records: OrientationRecordList) -> List[Optional[np.ndarray]]:
    """Deliver all rows of a record list to a session as if they were live samples.

    This can be used to re-analyse a recording with a different calibration or skeleton.
    The rows are delivered in the order of the dataframe.
    The `timestamp` column is used as arrival time and an optional `count` column as sequence number.

    Parameters
    ----------
    session
        The session to deliver the samples to
    records
        A valid :obj:`~posemap.utils.datatype_helper.OrientationRecordList`

    Returns
    -------
    corrected
        The return value of :meth:`~posemap.session.CaptureSession.deliver_sample` for each row

    """
    is_orientation_record_list(records, raise_exception=True)
    quats = records[QUAT_COLS].to_numpy(dtype=float)
    if "count" in records.columns:
        sequences = [None if pd.isna(c) else int(c) for c in records["count"]]
    else:
        sequences = [None] * len(records)
    out = []
    for label, q, sequence, timestamp in zip(records["label"], quats, sequences, records["timestamp"]):
        out.append(session.deliver_sample(label, q, sequence=sequence, arrival_time=float(timestamp)))
    return out
