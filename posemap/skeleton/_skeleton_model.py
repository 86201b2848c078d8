"""The static joint hierarchy the live orientations are retargeted onto."""
from typing import Any, Dict, Iterator, List, Mapping, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from posemap.utils import fast_quaternion_math as fqm
from posemap.utils.consts import IDENTITY_QUAT, NORM_TOLERANCE
from posemap.utils.datatype_helper import as_quaternion
from posemap.utils.exceptions import SkeletonValidationError, ValidationError


class Joint(NamedTuple):
    """A single joint of a skeleton.

    All values are captured once when the skeleton is loaded and are immutable afterwards.
    Use :func:`~posemap.skeleton.make_joint` to create joints with a consistent inverse bind orientation.

    Attributes
    ----------
    label
        The limb label of the joint (e.g. "RA")
    parent_label
        The label of the parent joint. `None` for the root.
    bind_orientation
        The rest orientation of the joint as captured from the model asset (scalar-first quaternion)
    inverse_bind_orientation
        The inverse of `bind_orientation`
    local_offset
        A static correction applied after the live rotation (identity by default)
    bone_name
        The name of the bone in the model asset, if known

    """

    label: str
    parent_label: Optional[str]
    bind_orientation: np.ndarray
    inverse_bind_orientation: np.ndarray
    local_offset: np.ndarray
    bone_name: Optional[str] = None


def _frozen_unit_quaternion(value: Any, what: str, label: str) -> np.ndarray:
    try:
        q = as_quaternion(value)
    except ValidationError as e:
        raise SkeletonValidationError(f"The {what} of joint '{label}' is not a valid quaternion: {e}") from e
    if fqm.norm(q) == 0:
        raise SkeletonValidationError(f"The {what} of joint '{label}' has a norm of 0.")
    q = fqm.normalize(q)
    q.flags.writeable = False
    return q


def make_joint(
    label: str,
    parent_label: Optional[str] = None,
    bind_orientation: Optional[Sequence[float]] = None,
    local_offset: Optional[Sequence[float]] = None,
    bone_name: Optional[str] = None,
) -> Joint:
    """Create a joint and derive its inverse bind orientation.

    Bind orientation and local offset are normalized and default to the identity rotation.

    Examples
    --------
    >>> make_joint("RFA", "RA", bind_orientation=[0.0, 0.0, 0.0, 1.0]).inverse_bind_orientation
    array([ 0., -0., -0., -1.])

    """
    if not isinstance(label, str) or not label:
        raise SkeletonValidationError(f"Joint labels must be non-empty strings. Got {label!r}.")
    bind = _frozen_unit_quaternion(IDENTITY_QUAT if bind_orientation is None else bind_orientation, "bind", label)
    offset = _frozen_unit_quaternion(IDENTITY_QUAT if local_offset is None else local_offset, "local offset", label)
    inverse_bind = fqm.conjugate(bind)
    inverse_bind.flags.writeable = False
    return Joint(label, parent_label, bind, inverse_bind, offset, bone_name)


class SkeletonModel:
    """A validated tree of joints with a precomputed topological visiting order.

    The joints are stored as an arena (a tuple in definition order).
    Parent-child relations are expressed through labels and resolved into index arrays once on creation.
    The model is validated on creation and immutable afterwards.

    A valid skeleton:

    - has unique joint labels
    - has exactly one root joint (`parent_label=None`)
    - only references parent labels that exist in the model
    - contains no cycles (i.e. every joint is reachable from the root)
    - only contains unit-norm bind orientations and local offsets

    Parameters
    ----------
    joints
        The joints of the skeleton (see :func:`~posemap.skeleton.make_joint`)

    Attributes
    ----------
    labels
        The labels of all joints in definition order
    topological_order
        Indices into `joints` such that every joint is listed after its parent (root first).
        Siblings keep their definition order.
    parent_index
        For every joint the index of its parent or -1 for the root

    Raises
    ------
    SkeletonValidationError
        If the joints do not form a single valid tree

    Examples
    --------
    >>> skeleton = SkeletonModel.from_parent_map({"HIPS": None, "SP": "HIPS", "RUL": "HIPS"})
    >>> [j.label for j in skeleton]
    ['HIPS', 'SP', 'RUL']

    """

    def __init__(self, joints: Sequence[Joint]):
        self._joints: Tuple[Joint, ...] = tuple(joints)
        self._index: Dict[str, int] = {}
        for i, joint in enumerate(self._joints):
            if not isinstance(joint, Joint):
                raise SkeletonValidationError(f"All joints must be `Joint` instances. Got {type(joint)}.")
            if joint.label in self._index:
                raise SkeletonValidationError(f"The joint label '{joint.label}' is used more than once.")
            self._index[joint.label] = i
        self._validate_orientations()
        self._parent_index = self._resolve_parents()
        self._order = self._find_topological_order()

    def _validate_orientations(self):
        for joint in self._joints:
            for what, q in (("bind orientation", joint.bind_orientation), ("local offset", joint.local_offset)):
                if abs(fqm.norm(np.asarray(q, dtype=float)) - 1) > NORM_TOLERANCE:
                    raise SkeletonValidationError(f"The {what} of joint '{joint.label}' does not have unit norm.")
            expected_inverse = fqm.conjugate(np.asarray(joint.bind_orientation, dtype=float))
            if not np.allclose(joint.inverse_bind_orientation, expected_inverse, atol=NORM_TOLERANCE):
                raise SkeletonValidationError(
                    f"The inverse bind orientation of joint '{joint.label}' does not match its bind orientation. "
                    "Use `make_joint` to create joints."
                )

    def _resolve_parents(self) -> np.ndarray:
        if len(self._joints) == 0:
            raise SkeletonValidationError("A skeleton needs at least one joint.")
        parent_index = np.full(len(self._joints), -1, dtype=int)
        roots = []
        for i, joint in enumerate(self._joints):
            if joint.parent_label is None:
                roots.append(joint.label)
                continue
            if joint.parent_label not in self._index:
                raise SkeletonValidationError(
                    f"The parent '{joint.parent_label}' of joint '{joint.label}' does not exist in the skeleton."
                )
            parent_index[i] = self._index[joint.parent_label]
        if len(roots) != 1:
            raise SkeletonValidationError(
                f"A skeleton must have exactly one root joint. Found {len(roots)} ({roots}). "
                "A skeleton without root always contains a cycle."
            )
        parent_index.flags.writeable = False
        return parent_index

    def _find_topological_order(self) -> np.ndarray:
        children: List[List[int]] = [[] for _ in self._joints]
        root = -1
        for i, p in enumerate(self._parent_index):
            if p == -1:
                root = i
            else:
                children[p].append(i)

        # Depth first, so that each limb chain is visited in one go
        order = []
        stack = [root]
        while stack:
            current = stack.pop()
            order.append(current)
            stack.extend(reversed(children[current]))

        if len(order) != len(self._joints):
            unreachable = sorted(set(self.labels) - {self._joints[i].label for i in order})
            raise SkeletonValidationError(
                f"The parent chain of the joints {unreachable} contains a cycle. They can not be reached from the root."
            )
        order_array = np.array(order, dtype=int)
        order_array.flags.writeable = False
        return order_array

    @classmethod
    def from_parent_map(
        cls,
        parents: Mapping[str, Optional[str]],
        bind_orientations: Optional[Mapping[str, Sequence[float]]] = None,
        local_offsets: Optional[Mapping[str, Sequence[float]]] = None,
        bone_names: Optional[Mapping[str, str]] = None,
    ) -> "SkeletonModel":
        """Create a skeleton from a label to parent-label mapping.

        Parameters
        ----------
        parents
            Mapping of each joint label to the label of its parent (or None for the root).
            The iteration order of the mapping defines the order of the joints.
        bind_orientations
            Optional bind orientation per label. Missing labels use the identity.
        local_offsets
            Optional static offset per label. Missing labels use the identity.
        bone_names
            Optional name of the bone in the model asset per label.

        """
        bind_orientations = bind_orientations or {}
        local_offsets = local_offsets or {}
        bone_names = bone_names or {}
        unknown = (set(bind_orientations) | set(local_offsets) | set(bone_names)) - set(parents)
        if unknown:
            raise SkeletonValidationError(f"Values were provided for the unknown joints {sorted(unknown)}.")
        return cls(
            [
                make_joint(label, parent, bind_orientations.get(label), local_offsets.get(label), bone_names.get(label))
                for label, parent in parents.items()
            ]
        )

    @classmethod
    def from_definition(cls, definition: Mapping[str, Any]) -> "SkeletonModel":
        """Create a skeleton from its dictionary definition.

        The definition is expected to have the following structure (`parent`, `bone`, `bind`, and `offset` are
        optional):

        .. code-block:: json

            {"joints": [{"label": "HIPS", "parent": null, "bone": "mixamorigHips", "bind": [1, 0, 0, 0],
                         "offset": [1, 0, 0, 0]}, ...]}

        See Also
        --------
        posemap.skeleton.load_skeleton_definition: Load the definition from a json file

        """
        if not isinstance(definition, Mapping) or not isinstance(definition.get("joints"), Sequence):
            raise SkeletonValidationError("A skeleton definition must be a mapping with a list of `joints`.")
        joints = []
        for entry in definition["joints"]:
            if not isinstance(entry, Mapping) or "label" not in entry:
                raise SkeletonValidationError(f"Each joint definition must be a mapping with a `label`. Got {entry!r}")
            joints.append(
                make_joint(
                    entry["label"],
                    entry.get("parent"),
                    bind_orientation=entry.get("bind"),
                    local_offset=entry.get("offset"),
                    bone_name=entry.get("bone"),
                )
            )
        return cls(joints)

    def to_definition(self) -> Dict[str, Any]:
        """Export the skeleton as dictionary that can be loaded again with `from_definition`."""
        return {
            "joints": [
                {
                    "label": j.label,
                    "parent": j.parent_label,
                    "bone": j.bone_name,
                    "bind": j.bind_orientation.tolist(),
                    "offset": j.local_offset.tolist(),
                }
                for j in self._joints
            ]
        }

    def with_local_offset(self, label: str, local_offset: Sequence[float]) -> "SkeletonModel":
        """Create a copy of the skeleton with a new static offset for a single joint."""
        joint = self.joint(label)
        new_joint = make_joint(joint.label, joint.parent_label, joint.bind_orientation, local_offset, joint.bone_name)
        joints = list(self._joints)
        joints[self._index[label]] = new_joint
        return type(self)(joints)

    @property
    def joints(self) -> Tuple[Joint, ...]:
        return self._joints

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(j.label for j in self._joints)

    @property
    def topological_order(self) -> np.ndarray:
        return self._order

    @property
    def parent_index(self) -> np.ndarray:
        return self._parent_index

    @property
    def root(self) -> Joint:
        return self._joints[self._order[0]]

    @property
    def bind_orientations(self) -> np.ndarray:
        """The bind orientations of all joints as array with shape (n_joints, 4) in definition order."""
        return np.array([j.bind_orientation for j in self._joints])

    def index_of(self, label: str) -> int:
        """Get the position of a joint in the arena."""
        try:
            return self._index[label]
        except KeyError as e:
            raise KeyError(f"The skeleton has no joint with the label '{label}'.") from e

    def joint(self, label: str) -> Joint:
        return self._joints[self.index_of(label)]

    def children_of(self, label: str) -> List[str]:
        idx = self.index_of(label)
        return [self._joints[i].label for i, p in enumerate(self._parent_index) if p == idx]

    def __contains__(self, label: object) -> bool:
        return label in self._index

    def __len__(self) -> int:
        return len(self._joints)

    def __iter__(self) -> Iterator[Joint]:
        """Iterate the joints in topological order."""
        return (self._joints[i] for i in self._order)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SkeletonModel):
            return NotImplemented
        return self.to_definition() == other.to_definition()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(root='{self.root.label}', joints={list(self.labels)})"
