"""Tests for the transforms module."""

import hypothesis
import jax
import jax.numpy as jnp
import numpy as np
from hypothesis import given, settings
from hypothesis import strategies as st

from jax_ik_constraints.transforms import se3, so3

# Use hypothesis profile for CI
hypothesis.settings.register_profile("ci", max_examples=10, deadline=None)

finite = st.floats(min_value=-10.0, max_value=10.0, allow_nan=False, allow_infinity=False)


Z = jnp.array([0.0, 0.0, 1.0])


def _random_rotation(key):
    axis_key, angle_key = jax.random.split(key)
    axis = jax.random.normal(axis_key, (3,))
    angle = jax.random.uniform(angle_key, minval=-3.0, maxval=3.0)
    return so3.rotation_about_axis(axis / jnp.linalg.norm(axis), angle)


# SO(3)
def test_rotation_about_axis_identity():
    """Zero angle gives the identity."""
    np.testing.assert_allclose(so3.rotation_about_axis(jnp.array([0.6, 0.0, 0.8]), 0.0), jnp.eye(3), atol=1e-12)


def test_rotation_about_axis_quarter_turn():
    """90° about z maps x onto y."""
    R = so3.rotation_about_axis(Z, jnp.pi / 2)
    np.testing.assert_allclose(so3.apply(R, jnp.array([1.0, 0.0, 0.0])), [0.0, 1.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(R @ R.T, jnp.eye(3), atol=1e-12)


def test_rotation_about_axis_zero_axis():
    """A zero axis gives the identity, whatever the angle."""
    np.testing.assert_allclose(so3.rotation_about_axis(jnp.zeros(3), 1.3), jnp.eye(3), atol=1e-12)


def test_rotation_about_axis_derivative_at_zero():
    """d/dθ R(θ) at θ = 0 is the axis' skew matrix, with no NaNs."""
    axis = jnp.array([0.0, 0.6, 0.8])
    dR = jax.jacfwd(lambda a: so3.rotation_about_axis(axis, a))(0.0)
    np.testing.assert_allclose(dR, so3.skew_symmetric(axis), atol=1e-12)


def test_so3_inverse():
    R = _random_rotation(jax.random.PRNGKey(3))
    np.testing.assert_allclose(so3.inverse(R) @ R, jnp.eye(3), atol=1e-12)


def test_so3_apply_multiple_vectors():
    R = so3.rotation_about_axis(Z, jnp.pi)
    v = jnp.array([[1.0, 0.0, 0.0], [0.0, 2.0, 1.0]])
    np.testing.assert_allclose(so3.apply(R, v), [[-1.0, 0.0, 0.0], [0.0, -2.0, 1.0]], atol=1e-12)


@given(finite, finite, finite, finite, finite, finite)
@settings(max_examples=50, deadline=None)
def test_skew_symmetric_is_cross_product(ax, ay, az, bx, by, bz):
    a = jnp.array([ax, ay, az])
    b = jnp.array([bx, by, bz])
    np.testing.assert_allclose(so3.skew_symmetric(a) @ b, jnp.cross(a, b), atol=1e-9)
    np.testing.assert_allclose(so3.vee(so3.skew_symmetric(a)), a, atol=1e-12)


def test_from_rpy():
    # Yaw only
    np.testing.assert_allclose(so3.from_rpy(jnp.array([0.0, 0.0, jnp.pi / 2])),
                               [[0, -1, 0], [1, 0, 0], [0, 0, 1]], atol=1e-12)
    # Roll then pitch: R = Ry(pitch) @ Rx(roll)
    R = so3.from_rpy(jnp.array([0.3, -0.4, 0.0]))
    expected = (so3.rotation_about_axis(jnp.array([0.0, 1.0, 0.0]), -0.4)
                @ so3.rotation_about_axis(jnp.array([1.0, 0.0, 0.0]), 0.3))
    np.testing.assert_allclose(R, expected, atol=1e-12)


# SE(3)
def test_se3_from_position_and_rotation():
    R = so3.rotation_about_axis(Z, jnp.pi / 2)
    T = se3.from_position_and_rotation(jnp.array([1.0, 2.0, 3.0]), R)
    np.testing.assert_allclose(se3.get_position(T), [1.0, 2.0, 3.0])
    np.testing.assert_allclose(se3.get_rotation(T), R)
    np.testing.assert_allclose(T[3], [0, 0, 0, 1])


def test_se3_apply():
    T = se3.from_position_and_rotation(jnp.array([1.0, 0.0, 0.0]),
                                       so3.rotation_about_axis(Z, jnp.pi / 2))
    np.testing.assert_allclose(se3.apply(T, jnp.array([1.0, 0.0, 0.0])), [1.0, 1.0, 0.0], atol=1e-12)
    points = jnp.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
    np.testing.assert_allclose(se3.apply(T, points), [[1.0, 1.0, 0.0], [0.0, 0.0, 0.0]], atol=1e-12)


def test_se3_joint_motion():
    revolute = jnp.array([0.0, 0.0, 0.0, 0.0, 0.0, 1.0])
    T = se3.joint_motion(revolute, jnp.pi / 2)
    np.testing.assert_allclose(se3.get_position(T), jnp.zeros(3), atol=1e-12)
    np.testing.assert_allclose(se3.get_rotation(T), so3.rotation_about_axis(Z, jnp.pi / 2), atol=1e-12)

    prismatic = jnp.array([0.0, 1.0, 0.0, 0.0, 0.0, 0.0])
    T = se3.joint_motion(prismatic, 0.25)
    np.testing.assert_allclose(T, se3.from_position_and_rotation(jnp.array([0.0, 0.25, 0.0]), jnp.eye(3)))

    np.testing.assert_allclose(se3.joint_motion(jnp.zeros(6), 2.0), jnp.eye(4))


@given(st.integers(min_value=0, max_value=100))
@settings(deadline=None)
def test_transform_inverse_property(seed):
    """Test that T^-1 undoes T, with explicit key generation."""
    key1, key2, key3 = jax.random.split(jax.random.PRNGKey(seed), 3)

    T = se3.from_position_and_rotation(jax.random.uniform(key1, (3,), minval=-5.0, maxval=5.0),
                                       _random_rotation(key2))
    points = jax.random.uniform(key3, (10, 3), minval=-10.0, maxval=10.0)

    np.testing.assert_allclose(se3.inverse(T) @ T, jnp.eye(4), atol=1e-10)
    np.testing.assert_allclose(se3.apply(se3.inverse(T), se3.apply(T, points)), points, atol=1e-10)


def test_se3_jit_compatibility():
    T = se3.from_position_and_rotation(jnp.array([0.5, -1.0, 2.0]), _random_rotation(jax.random.PRNGKey(7)))
    np.testing.assert_allclose(jax.jit(se3.inverse)(T), se3.inverse(T), atol=1e-12)
