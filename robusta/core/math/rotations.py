"""SO(3) helpers used to parametrize camera rotations."""

import numpy as np


def skew_symmetric(v: np.ndarray) -> np.ndarray:
    """Create skew-symmetric matrix from 3D vector."""
    if v.shape != (3,):
        raise ValueError(f"v must be 3-element vector, got shape {v.shape}")

    return np.array([
        [0, -v[2], v[1]],
        [v[2], 0, -v[0]],
        [-v[1], v[0], 0]
    ])


def quat_to_matrix(q: np.ndarray) -> np.ndarray:
    """Convert quaternion [w, x, y, z] to rotation matrix."""
    if q.shape != (4,):
        raise ValueError(f"Quaternion must be 4-element vector, got shape {q.shape}")

    norm = np.linalg.norm(q)
    if norm < 1e-12:
        raise ValueError("Cannot normalize zero quaternion")
    w, x, y, z = q / norm

    return np.array([
        [1 - 2*(y**2 + z**2), 2*(x*y - w*z), 2*(x*z + w*y)],
        [2*(x*y + w*z), 1 - 2*(x**2 + z**2), 2*(y*z - w*x)],
        [2*(x*z - w*y), 2*(y*z + w*x), 1 - 2*(x**2 + y**2)]
    ])


def so3_exp(phi: np.ndarray) -> np.ndarray:
    """Rotation matrix from an axis-angle vector."""
    if phi.shape != (3,):
        raise ValueError(f"phi must be 3-element vector, got shape {phi.shape}")

    theta = np.linalg.norm(phi)
    if theta < 1e-10:
        return np.eye(3) + skew_symmetric(phi)

    axis = phi / theta
    half = theta / 2
    q = np.concatenate([[np.cos(half)], np.sin(half) * axis])
    return quat_to_matrix(q)


def so3_log(R: np.ndarray) -> np.ndarray:
    """Axis-angle vector of a rotation matrix."""
    if R.shape != (3, 3):
        raise ValueError(f"R must be 3x3 matrix, got shape {R.shape}")

    trace = np.trace(R)
    theta = np.arccos(np.clip((trace - 1) / 2, -1, 1))
    vee = np.array([R[2, 1] - R[1, 2], R[0, 2] - R[2, 0], R[1, 0] - R[0, 1]])

    if theta < 1e-6:
        return 0.5 * vee

    if np.pi - theta < 1e-6:
        # Near pi the antisymmetric part vanishes, use the symmetric part
        B = (R + np.eye(3)) / 2
        axis = np.sqrt(np.maximum(np.diag(B), 0.0))
        k = int(np.argmax(axis))
        axis = B[k] / np.sqrt(B[k, k])
        return theta * axis / np.linalg.norm(axis)

    return theta / (2 * np.sin(theta)) * vee
