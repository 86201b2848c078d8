"""A set of util functions that ease handling rotations.

Quaternions in posemap are plain numpy arrays in scalar-first order (w, x, y, z).
Where the convenience of :class:`scipy.spatial.transform.Rotation` is needed, the functions `to_rotation` and
`from_rotation` convert between the two representations.
"""
from typing import Optional, Sequence, Union

import numpy as np
from scipy.spatial.transform import Rotation

from posemap.utils.vector_math import normalize, row_wise_dot


def to_rotation(q: np.ndarray) -> Rotation:
    """Convert a single or multiple scalar-first quaternions into a scipy rotation object.

    Examples
    --------
    >>> to_rotation(np.array([0.0, 1.0, 0.0, 0.0])).as_quat()
    array([1., 0., 0., 0.])

    """
    return Rotation.from_quat(np.roll(np.asarray(q, dtype=float), -1, axis=-1))


def from_rotation(rot: Rotation) -> np.ndarray:
    """Convert a scipy rotation object into scalar-first quaternion(s).

    Examples
    --------
    >>> from_rotation(Rotation.identity())
    array([1., 0., 0., 0.])

    """
    return np.roll(rot.as_quat(), 1, axis=-1)


def rotation_from_angle(axis: np.ndarray, angle: Union[float, np.ndarray]) -> Rotation:
    """Create a rotation based on a rotation axis and a angle.

    Parameters
    ----------
    axis : array with shape (3,) or (n, 3)
        normalized rotation axis ([x, y ,z]) or array of rotation axis
    angle : float or array with shape (n,)
        rotation angle or array of angeles in rad

    Returns
    -------
    rotation(s) : Rotation object with len n

    Examples
    --------
    Single rotation: 180 deg rotation around the x-axis

    >>> rot = rotation_from_angle(np.array([1, 0, 0]), np.deg2rad(180))
    >>> rot.as_quat().round(decimals=3)
    array([1., 0., 0., 0.])

    """
    angle = np.atleast_2d(angle)
    axis = np.atleast_2d(axis)
    return Rotation.from_rotvec(np.squeeze(axis * angle.T))


def quat_from_angle(axis: np.ndarray, angle: Union[float, np.ndarray]) -> np.ndarray:
    """Create a scalar-first quaternion from a rotation axis and an angle in rad.

    Examples
    --------
    90 deg around the z-axis

    >>> quat_from_angle(np.array([0, 0, 1.0]), np.pi / 2).round(4)
    array([0.7071, 0.    , 0.    , 0.7071])

    """
    return from_rotation(rotation_from_angle(axis, angle))


def hemisphere_align(quats: Sequence[np.ndarray], reference: Optional[np.ndarray] = None) -> np.ndarray:
    """Flip the sign of all quaternions that lie in the opposite hemisphere of a reference.

    `q` and `-q` describe the same rotation.
    Before quaternions can be averaged component-wise, they need to have a consistent sign.
    Every quaternion whose 4D dot product with the reference is negative is replaced by its negative.

    Parameters
    ----------
    quats : array with shape (n, 4)
        The quaternions to align
    reference : array with shape (4,), optional
        The quaternion that defines the hemisphere.
        If None, the first quaternion is used.

    Returns
    -------
    aligned
        A copy of the quaternions with consistent sign

    Examples
    --------
    >>> hemisphere_align(np.array([[1.0, 0, 0, 0], [-1.0, 0, 0, 0]]))
    array([[1., 0., 0., 0.],
           [1., 0., 0., 0.]])

    """
    quats = np.array(quats, dtype=float, ndmin=2)
    if len(quats) == 0:
        return quats
    if reference is None:
        reference = quats[0]
    signs = np.where(row_wise_dot(quats, reference) < 0, -1.0, 1.0)
    return quats * signs[:, None]


def average_quaternions(quats: Sequence[np.ndarray], align_hemisphere: bool = True) -> np.ndarray:
    """Calculate the component-wise mean of a set of quaternions.

    The result is **not** normalized.
    Its norm is a direct measure of how tightly the samples are clustered: for identical samples it is 1, for samples
    that cancel each other out it approaches 0.
    The caller is responsible to check the norm before normalizing.

    .. note:: The component-wise mean is only a valid approximation of the mean rotation, if all samples are close to
              each other (e.g. collected while a static pose is held).

    Parameters
    ----------
    quats : array with shape (n, 4)
        The quaternions to average
    align_hemisphere
        If True, all quaternions are sign aligned to the first one before averaging
        (see :func:`~posemap.utils.rotations.hemisphere_align`).
        Without alignment, `q` and `-q` cancel each other out.

    Examples
    --------
    >>> average_quaternions(np.array([[1.0, 0, 0, 0], [-1.0, 0, 0, 0]]))
    array([1., 0., 0., 0.])
    >>> average_quaternions(np.array([[1.0, 0, 0, 0], [-1.0, 0, 0, 0]]), align_hemisphere=False)
    array([0., 0., 0., 0.])

    """
    quats = np.array(quats, dtype=float, ndmin=2)
    if quats.size == 0:
        raise ValueError("At least one quaternion is required to calculate an average.")
    if align_hemisphere:
        quats = hemisphere_align(quats)
    return quats.mean(axis=0)


def find_angle_between_orientations(q1: np.ndarray, q2: np.ndarray) -> Union[float, np.ndarray]:
    """Get the unsigned angle of the shortest rotation between two orientations.

    Both quaternions are normalized first.
    As `q` and `-q` describe the same orientation, the result is always between 0 and pi.

    Parameters
    ----------
    q1 : array with shape (4,) or (n, 4)
        The first orientation(s)
    q2 : array with shape (4,) or (n, 4)
        The second orientation(s)

    Returns
    -------
    angle
        The angle in rad

    Examples
    --------
    >>> np.round(find_angle_between_orientations(np.array([1.0, 0, 0, 0]), np.array([0.7071, 0, 0, 0.7071])), 4)
    1.5708

    """
    q1 = np.asarray(q1, dtype=float)
    q2 = np.asarray(q2, dtype=float)
    out = 2 * np.arccos(np.clip(np.abs(row_wise_dot(normalize(q1), normalize(q2))), 0.0, 1.0))
    if q1.ndim == 1 and q2.ndim == 1:
        return float(out[0])
    return out
