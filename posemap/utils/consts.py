"""Common constants used in the library."""

import numpy as np

#: The order of the quaternion components as they arrive on the wire and as they are stored internally
QUAT_COLS = ["w", "x", "y", "z"]
#: The columns of the exported record stream (one row per corrected sample)
RECORD_COLS = ["label", *QUAT_COLS, "timestamp"]

#: The identity rotation in scalar-first order
IDENTITY_QUAT = np.array([1.0, 0.0, 0.0, 0.0])
IDENTITY_QUAT.flags.writeable = False

#: Maximal allowed deviation of the norm of a stored or emitted quaternion from 1
NORM_TOLERANCE = 1e-6

#: Default length of the calibration collection window in ms
DEFAULT_CALIBRATION_DURATION_MS = 30000.0

#: All limb labels a skeleton joint or sensor can carry
LIMB_LABELS = ["HIPS", "SP", "SP2", "H", "RA", "RFA", "LA", "LFA", "RUL", "RL", "LUL", "LL"]
#: The labels that have a physical sensor in the reference deployment
SENSOR_LABELS = ["RA", "RFA", "LA", "LFA", "RUL", "RL", "LUL", "LL"]

#: Parent of each joint of the reference (Mixamo "Y Bot") skeleton. The root has no parent.
YBOT_PARENTS = {
    "HIPS": None,
    "SP": "HIPS",
    "SP2": "SP",
    "H": "SP2",
    "RA": "SP2",
    "RFA": "RA",
    "LA": "SP2",
    "LFA": "LA",
    "RUL": "HIPS",
    "RL": "RUL",
    "LUL": "HIPS",
    "LL": "LUL",
}

#: Name of the bone in the reference model asset each label is mapped to
YBOT_BONE_NAMES = {
    "HIPS": "mixamorigHips",
    "SP": "mixamorigSpine",
    "SP2": "mixamorigSpine2",
    "H": "mixamorigHead",
    "RA": "mixamorigRightArm",
    "RFA": "mixamorigRightForeArm",
    "LA": "mixamorigLeftArm",
    "LFA": "mixamorigLeftForeArm",
    "RUL": "mixamorigRightUpLeg",
    "RL": "mixamorigRightLeg",
    "LUL": "mixamorigLeftUpLeg",
    "LL": "mixamorigLeftLeg",
}
