"""SO(3) and so(3) operations in JAX.

Rotation and skew-symmetric matrices used by forward kinematics and by the
angular part of the geometric Jacobian. All functions are pure, JIT-able, and
operate on JAX arrays.
"""

import jax
import jax.numpy as jnp

Array = jax.Array


def rotation_about_axis(axis: Array, angle: Array) -> Array:
    """
    Rotation by ``angle`` about a fixed unit ``axis``.

    No norm of the axis is taken, so derivatives with respect to ``angle``
    are finite everywhere, including angle == 0 and axis == 0 (the
    latter yields the identity, as needed for fixed joints).

    Args:
        axis: (..., 3) unit axis (or zero)
        angle: (...) rotation angle in radians

    Returns:
        (..., 3, 3) rotation matrix
    """
    K = skew_symmetric(axis)
    angle = jnp.asarray(angle)[..., None, None]
    I = jnp.broadcast_to(jnp.eye(3, dtype=K.dtype), K.shape)

    # R = I + sin(θ) K + (1 - cos(θ)) K²
    return I + jnp.sin(angle) * K + (1.0 - jnp.cos(angle)) * jnp.matmul(K, K)


def inverse(R: Array) -> Array:
    """Inverse of a rotation matrix (its transpose)."""
    return jnp.swapaxes(R, -1, -2)


def apply(R: Array, v: Array) -> Array:
    """
    Rotate vector(s).

    Args:
        R: (..., 3, 3) rotation matrix
        v: (..., 3) or (..., N, 3) vector(s) to rotate

    Returns:
        (..., 3) or (..., N, 3) rotated vector(s)
    """
    if v.ndim == R.ndim - 1:
        return jnp.einsum('...ij,...j->...i', R, v)
    return jnp.einsum('...ij,...nj->...ni', R, v)


def skew_symmetric(v: Array) -> Array:
    """
    Convert 3D vector to its cross-product matrix.

    Args:
        v: (..., 3) vector

    Returns:
        (..., 3, 3) skew-symmetric matrix with skew_symmetric(a) @ b == a × b
    """
    zeros = jnp.zeros(v.shape[:-1], dtype=v.dtype)

    return jnp.stack([
        jnp.stack([zeros, -v[..., 2], v[..., 1]], axis=-1),
        jnp.stack([v[..., 2], zeros, -v[..., 0]], axis=-1),
        jnp.stack([-v[..., 1], v[..., 0], zeros], axis=-1)
    ], axis=-2)


def vee(S: Array) -> Array:
    """
    Inverse of skew_symmetric.

    The antisymmetric part is used, so small numerical asymmetry is averaged out.

    Args:
        S: (..., 3, 3) skew-symmetric matrix

    Returns:
        (..., 3) vector
    """
    return 0.5 * jnp.stack([
        S[..., 2, 1] - S[..., 1, 2],
        S[..., 0, 2] - S[..., 2, 0],
        S[..., 1, 0] - S[..., 0, 1]
    ], axis=-1)


def from_rpy(rpy: Array) -> Array:
    """
    Rotation matrix from roll-pitch-yaw angles (URDF convention).

    Args:
        rpy: (3,) array of [roll, pitch, yaw] in radians

    Returns:
        (3, 3) rotation matrix R = Rz(yaw) @ Ry(pitch) @ Rx(roll)
    """
    rpy = jnp.asarray(rpy, dtype=jnp.float64)
    eye = jnp.eye(3, dtype=rpy.dtype)
    R_x = rotation_about_axis(eye[0], rpy[0])
    R_y = rotation_about_axis(eye[1], rpy[1])
    R_z = rotation_about_axis(eye[2], rpy[2])
    return R_z @ R_y @ R_x
