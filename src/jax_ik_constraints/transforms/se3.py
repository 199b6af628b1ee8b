"""SE(3) rigid body transforms in JAX.

Homogeneous 4x4 matrices and 6D joint twists [vx, vy, vz, wx, wy, wz].
All functions are pure, JIT-able, and operate on JAX arrays.
"""


import jax
import jax.numpy as jnp

from . import so3

Array = jax.Array


def from_position_and_rotation(p: Array, R: Array) -> Array:
    """
    Construct SE(3) transform from position and rotation.

    Args:
        p: (..., 3) position vector
        R: (..., 3, 3) rotation matrix

    Returns:
        (..., 4, 4) homogeneous transformation matrix
    """
    batch_shape = jnp.broadcast_shapes(p.shape[:-1], R.shape[:-2])
    p = jnp.broadcast_to(p, batch_shape + (3,))
    R = jnp.broadcast_to(R, batch_shape + (3, 3))

    T = jnp.zeros(batch_shape + (4, 4), dtype=jnp.result_type(p, R))
    T = T.at[..., :3, :3].set(R)
    T = T.at[..., :3, 3].set(p)
    T = T.at[..., 3, 3].set(1.0)

    return T


def joint_motion(axis: Array, q: Array) -> Array:
    """
    Transform produced by moving a single-DOF joint by ``q``.

    ``axis`` is the joint twist: [0, 0, 0, wx, wy, wz] for revolute joints,
    [vx, vy, vz, 0, 0, 0] for prismatic joints and all zeros for fixed ones,
    with the non-zero half of unit length. For such pure twists the screw
    exponential reduces to a rotation about w plus a translation along v,
    which keeps derivatives finite at q == 0.

    Args:
        axis: (..., 6) joint twist
        q: (...) joint value

    Returns:
        (..., 4, 4) transformation matrix
    """
    v, w = axis[..., :3], axis[..., 3:]
    R = so3.rotation_about_axis(w, q)
    t = v * jnp.asarray(q)[..., None]
    return from_position_and_rotation(t, R)


def inverse(T: Array) -> Array:
    """
    Compute inverse of SE(3) transformation matrix.

    T^-1 = [[R^T, -R^T @ t], [0, 1]]

    Args:
        T: (..., 4, 4) transformation matrix

    Returns:
        (..., 4, 4) inverse transformation matrix
    """
    R_inv = so3.inverse(get_rotation(T))
    t_inv = -jnp.einsum("...ij,...j->...i", R_inv, get_position(T))

    return from_position_and_rotation(t_inv, R_inv)


def apply(T: Array, points: Array) -> Array:
    """
    Apply SE(3) transformation to points.

    Args:
        T: (..., 4, 4) transformation matrix
        points: (..., 3) points to transform

    Returns:
        (..., 3) transformed points
    """
    return jnp.einsum("...ij,...j->...i", get_rotation(T), points) + get_position(T)


def get_position(T: Array) -> Array:
    """Position part of a (..., 4, 4) transform."""
    return T[..., :3, 3]


def get_rotation(T: Array) -> Array:
    """Rotation part of a (..., 4, 4) transform."""
    return T[..., :3, :3]
