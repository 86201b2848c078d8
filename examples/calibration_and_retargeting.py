r"""
.. _example_calibration_retargeting:

Calibration and Retargeting
===========================

This example shows the full processing chain of posemap on simulated sensor data.
Eight sensors are strapped to the arms and legs of a subject.
Each sensor is mounted with an unknown orientation relative to its limb.

The :class:`~posemap.session.CaptureSession` first removes this mounting bias with a calibration, while the subject
holds a T-Pose.
Afterwards, all samples are expressed relative to the calibration pose and retargeted onto the joints of a skeleton.
"""

# %%
# Simulating the sensors
# ----------------------
#
# We draw a random mounting orientation for each sensor.
# While the subject holds the T-Pose, each sensor reports its mounting orientation plus a little bit of noise.
# Sensors send json messages of the form `{"count": 1, "label": "RA", "quaternion": [w, x, y, z]}`.
import json

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from scipy.spatial.transform import Rotation

from posemap.calibration import CalibrationController
from posemap.session import CaptureSession
from posemap.utils.consts import SENSOR_LABELS
from posemap.utils.fast_quaternion_math import multiply
from posemap.utils.rotations import find_angle_between_orientations, from_rotation, quat_from_angle

np.random.seed(0)

mounting = {label: from_rotation(Rotation.random()) for label in SENSOR_LABELS}


def sensor_message(label, orientation, count):
    noise = from_rotation(Rotation.from_rotvec(np.random.normal(0, 0.005, 3)))
    return json.dumps({"count": count, "label": label, "quaternion": multiply(orientation, noise).tolist()})


# %%
# Calibration
# -----------
#
# By default, the calibration collects samples for 30 s and is finished by a timer.
# To keep this example fast, we finish the calibration manually after 100 samples per sensor.
session = CaptureSession(calibration=CalibrationController(duration_ms=30000))
session.start_calibration()

for count in range(100):
    for label in SENSOR_LABELS:
        session.deliver_message(label, sensor_message(label, mounting[label], count))

session.finish_calibration()

# %%
# The reference orientations match the mounting orientations of the sensors.
calibration_error_deg = pd.Series(
    {
        label: np.rad2deg(find_angle_between_orientations(session.reference_orientations[label], mounting[label]))
        for label in SENSOR_LABELS
    },
    name="calibration error [deg]",
)
calibration_error_deg

# %%
# Retargeting
# -----------
#
# The subject now bends the right elbow from 0 to 120 deg, while all other limbs stay in the T-Pose.
# The right forearm sensor measures this rotation on top of its mounting orientation.
# The local rotation of the `RFA` joint is calculated relative to the upper arm (`RA`) and is hence independent of the
# mounting orientations.
elbow_angles = np.deg2rad(np.linspace(0, 120, 50))
elbow_rotations = []
for i, angle in enumerate(elbow_angles):
    elbow = quat_from_angle(np.array([0, 0, 1.0]), angle)
    for label in SENSOR_LABELS:
        orientation = multiply(mounting[label], elbow) if label == "RFA" else mounting[label]
        session.deliver_message(label, sensor_message(label, orientation, 100 + i))
    elbow_rotations.append(session.local_rotations.loc["RFA"].to_numpy())

retargeted_elbow_deg = np.rad2deg(find_angle_between_orientations(np.array(elbow_rotations), np.array([1.0, 0, 0, 0])))

plt.figure()
plt.plot(np.rad2deg(elbow_angles), retargeted_elbow_deg)
plt.xlabel("true elbow angle [deg]")
plt.ylabel("retargeted elbow angle [deg]")
plt.show()

# %%
# All corrected samples are available as records.
# Each row contains the label, the corrected quaternion, and the time of arrival in ms.
records = session.records_frame()
session.close()
records.head()
