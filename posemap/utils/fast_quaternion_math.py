"""A set of numba accelerated quaternion functions.

Note that all functions expect quaternions in scalar-first order (w, x, y, z), which is the order the sensors send.
This differs from :class:`~scipy.spatial.transform.Rotation`, which uses (x, y, z, w).
Use the helpers in :mod:`posemap.utils.rotations` to convert between the two.
"""
import numpy as np
from numba import njit


@njit()
def multiply(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Multiply two quaternions (Hamilton product `a * b`).

    The resulting rotation applies `b` first and then `a`.
    """
    aw, ax, ay, az = a
    bw, bx, by, bz = b
    r = np.empty(4)
    r[0] = aw * bw - ax * bx - ay * by - az * bz
    r[1] = aw * bx + ax * bw + ay * bz - az * by
    r[2] = aw * by - ax * bz + ay * bw + az * bx
    r[3] = aw * bz + ax * by - ay * bx + az * bw
    return r


@njit()
def conjugate(q: np.ndarray) -> np.ndarray:
    """Conjugate of a quaternion.

    For unit quaternions this is identical to the inverse.
    """
    r = np.empty(4)
    r[0] = q[0]
    r[1:] = -q[1:]
    return r


@njit()
def norm(q: np.ndarray) -> float:
    """Euclidean norm over all four components."""
    return np.sqrt(np.sum(q**2))


@njit()
def normalize(v: np.ndarray) -> np.ndarray:
    """Normalize a vector or a quaternion.

    In case the vector has a length of 0, the vector is returned without modification.
    """
    length = np.sqrt(np.sum(v**2))
    if length == 0:
        return v
    return v / length


@njit()
def dot(a: np.ndarray, b: np.ndarray) -> float:
    """4D dot product of two quaternions."""
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2] + a[3] * b[3]


@njit()
def rotate_vector(q: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Rotate a vector by a quaternion.

    Formula from chapter 3 of http://graphics.stanford.edu/courses/cs348a-17-winter/Papers/quaternion.pdf
    """
    w = q[0]
    u = q[1:]
    u_dot_v = u[0] * v[0] + u[1] * v[1] + u[2] * v[2]
    u_dot_u = u[0] * u[0] + u[1] * u[1] + u[2] * u[2]
    cross = np.empty(3)
    cross[0] = u[1] * v[2] - u[2] * v[1]
    cross[1] = u[2] * v[0] - u[0] * v[2]
    cross[2] = u[0] * v[1] - u[1] * v[0]
    return 2.0 * (u_dot_v * u + w * cross) + (w**2 - u_dot_u) * v


@njit()
def quat_from_rotvec(sigma: np.ndarray) -> np.ndarray:
    """Construct a quaternion from a rotation vector."""
    angle = np.sqrt(np.sum(sigma**2))
    if angle == 0.0:
        return np.array([1.0, 0.0, 0.0, 0.0])
    a_c = np.cos(angle / 2)
    a_s = np.sin(angle / 2) / angle
    r = np.empty(4)
    r[0] = a_c
    r[1:] = a_s * sigma
    return r
