"""Hierarchical retargeting of global sensor orientations onto a joint tree."""
from typing import Dict, List, Mapping, Optional

import numpy as np
import pandas as pd
from numba import njit
from typing_extensions import Self

from posemap.base import BaseRetargeting
from posemap.skeleton import SkeletonModel, ybot_skeleton
from posemap.utils import fast_quaternion_math as fqm
from posemap.utils.consts import QUAT_COLS


@njit(cache=True)
def _joint_local_rotation(
    global_orientation: np.ndarray,
    parent_orientation: np.ndarray,
    has_parent: bool,
    bind_term: np.ndarray,
    local_offset: np.ndarray,
):
    if has_parent:
        parent_local = fqm.multiply(fqm.conjugate(parent_orientation), global_orientation)
    else:
        parent_local = global_orientation.copy()
    final = fqm.multiply(fqm.multiply(bind_term, parent_local), local_offset)
    return fqm.normalize(final), parent_local


class PoseRetargeter(BaseRetargeting):
    """Convert the global orientations of multiple sensors into local joint rotations of a skeleton.

    Every sensor reports its orientation in a shared global frame.
    A skeleton, however, is animated with rotations relative to the parent of each joint.
    For each joint with a global orientation `G[label]` the parent relative rotation is calculated as
    `conj(G[parent]) * G[label]`.
    If the parent has no global orientation (e.g. no sensor is attached to the spine), the global orientation of the
    joint itself is used as parent relative rotation.

    The parent relative rotation is then mapped into the rest frame of the model:

    - root joint: `bind * parent_local * offset`
    - all other joints: `inverse_bind * parent_local * offset`

    The joints are visited in the topological order of the skeleton, so that each parent is updated before its
    children.
    Joints without a global orientation keep their previous local rotation.
    Global orientations of labels without joint in the skeleton are ignored.

    Parameters
    ----------
    skeleton
        The joint tree to retarget onto.
        If None, the reference skeleton (:func:`~posemap.skeleton.ybot_skeleton`) with identity bind orientations is
        used.

    Attributes
    ----------
    local_rotation_array_
        The current local rotation of every joint as array with shape (n_joints, 4) in the joint order of the
        skeleton.
        Before the first update, all joints rest in their bind orientation.
    local_rotations_
        The current local rotations as a :class:`pandas.DataFrame` with one row per joint label
    parent_local_rotations_
        The parent relative rotation of all joints that were updated in the last call to `retarget`
    updated_labels_
        The labels of all joints that were updated in the last call to `retarget` (in visiting order)

    Other Parameters
    ----------------
    global_pose
        The latest corrected global orientation per sensor label

    Notes
    -----
    The local rotations persist between calls.
    This means a joint whose sensor stops sending keeps its last valid rotation (stale but valid).
    Use `reset` to return all joints to their bind orientation.

    Examples
    --------
    >>> retargeter = PoseRetargeter()
    >>> pose = {"RA": np.array([0.7071, 0, 0, 0.7071]), "RFA": np.array([0.7071, 0, 0, 0.7071])}
    >>> retargeter = retargeter.retarget(pose)
    >>> retargeter.local_rotations_.loc["RFA"].round(3).to_list()
    [1.0, 0.0, 0.0, 0.0]

    See Also
    --------
    posemap.skeleton.SkeletonModel: The joint tree including bind orientations and local offsets

    """

    skeleton: Optional[SkeletonModel]

    global_pose: Mapping[str, np.ndarray]

    local_rotation_array_: np.ndarray
    parent_local_rotations_: Dict[str, np.ndarray]
    updated_labels_: List[str]

    def __init__(self, skeleton: Optional[SkeletonModel] = None):
        self.skeleton = skeleton

    def _get_skeleton(self) -> SkeletonModel:
        if self.skeleton is not None:
            return self.skeleton
        # Cached on first use
        # The reference skeleton is immutable, so it is only built once per instance
        if getattr(self, "_default_skeleton", None) is None:
            self._default_skeleton = ybot_skeleton()
        return self._default_skeleton

    @property
    def local_rotations_(self) -> pd.DataFrame:
        """Local rotations as pd.DataFrame."""
        skeleton = self._get_skeleton()
        df = pd.DataFrame(self._get_local_rotation_array(skeleton), columns=QUAT_COLS, index=list(skeleton.labels))
        df.index.name = "label"
        return df

    def _get_local_rotation_array(self, skeleton: SkeletonModel) -> np.ndarray:
        if not hasattr(self, "local_rotation_array_") or len(self.local_rotation_array_) != len(skeleton):
            return skeleton.bind_orientations
        return self.local_rotation_array_

    def reset(self) -> Self:
        """Return all joints to their bind orientation."""
        self.local_rotation_array_ = self._get_skeleton().bind_orientations
        self.parent_local_rotations_ = {}
        self.updated_labels_ = []
        return self

    def retarget(self, global_pose: Mapping[str, np.ndarray]) -> Self:
        """Update the local rotations of all joints from the latest global orientations.

        Parameters
        ----------
        global_pose
            The latest (calibration corrected) global orientation per sensor label in scalar-first order

        Returns
        -------
        self
            The class instance with all result attributes populated

        """
        self.global_pose = global_pose
        skeleton = self._get_skeleton()

        local_rotations = self._get_local_rotation_array(skeleton).copy()
        parent_local_rotations = {}
        updated = []
        joints = skeleton.joints
        for idx in skeleton.topological_order:
            joint = joints[idx]
            if joint.label not in global_pose:
                continue
            has_parent = joint.parent_label is not None and joint.parent_label in global_pose
            parent_orientation = (
                np.asarray(global_pose[joint.parent_label], dtype=float) if has_parent else joint.bind_orientation
            )
            bind_term = joint.bind_orientation if joint.parent_label is None else joint.inverse_bind_orientation
            local_rotations[idx], parent_local_rotations[joint.label] = _joint_local_rotation(
                np.asarray(global_pose[joint.label], dtype=float),
                np.asarray(parent_orientation, dtype=float),
                has_parent,
                np.asarray(bind_term, dtype=float),
                np.asarray(joint.local_offset, dtype=float),
            )
            updated.append(joint.label)

        self.local_rotation_array_ = local_rotations
        self.parent_local_rotations_ = parent_local_rotations
        self.updated_labels_ = updated
        return self
