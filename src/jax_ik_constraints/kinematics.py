"""Forward kinematics and differential kinematics.

Forward kinematics runs as a single ``jax.lax.scan`` over the parent-ordered
links; the geometric Jacobian is obtained by forward-mode differentiation of
the link pose, so both are JIT-compilable and exact up to float precision.
All quantities are expressed in the root (base) link frame.
"""

from typing import Dict

import jax
import jax.numpy as jnp
from jax import Array

from .core import RobotModel, SubChain
from .transforms import se3, so3


def forward_kinematics(robot: RobotModel, q: Array) -> Dict[str, Array]:
    """Compute forward kinematics for all links in the robot.

    Args:
        robot: RobotModel containing the robot's kinematic structure
        q: Joint values of shape (num_dof,) for actuated joints only

    Returns:
        Dictionary mapping link names to their 4x4 SE(3) poses in the base frame
    """
    world_transforms = forward_kinematics_world(robot, q)
    return {name: world_transforms[i] for i, name in enumerate(robot.link_names)}


def forward_kinematics_world(robot: RobotModel, q: Array) -> Array:
    """FK returning an array of link poses, for internal use and differentiation.

    Args:
        robot: RobotModel containing the robot's kinematic structure
        q: Joint values of shape (num_dof,) for actuated joints only

    Returns:
        Array of shape (num_links, 4, 4) with base-frame poses for all links
    """
    q = jnp.asarray(q, dtype=jnp.float64)
    num_links = len(robot.link_names)

    # Scatter actuated joint values onto the links they move; fixed joints stay at zero
    q_full = jnp.zeros(num_links, dtype=q.dtype).at[robot.actuated_joint_to_link_idx].set(q)

    transforms = jnp.broadcast_to(jnp.eye(4, dtype=q.dtype), (num_links, 4, 4))

    def scan_body(carry, i):
        """Processes link `i` using its parent's pose from `carry`."""
        T_base_to_parent = carry[robot.parent_indices[i]]
        T_parent_to_child = robot.joint_transforms[i] @ se3.joint_motion(robot.joint_axes[i], q_full[i])
        return carry.at[i].set(T_base_to_parent @ T_parent_to_child), None

    # Root (index 0) is the base case
    final_transforms, _ = jax.lax.scan(scan_body, transforms, jnp.arange(1, num_links))

    return final_transforms


def jacobian(robot: RobotModel, q: Array, link_name: str) -> Array:
    """Compute the 6D geometric Jacobian of a link w.r.t. joint values.

    Rows 0-2 map joint velocities to the linear velocity of the link frame
    origin, rows 3-5 to the angular velocity of the link, both expressed in
    the base frame.

    Args:
        robot: RobotModel containing the robot's kinematic structure
        q: Joint values of shape (num_dof,) for actuated joints only
        link_name: Name of the target link

    Returns:
        6x(num_dof) Jacobian matrix
    """
    link_idx = robot.link_index(link_name)

    def link_pose(joint_values: Array) -> Array:
        return forward_kinematics_world(robot, joint_values)[link_idx]

    q = jnp.asarray(q, dtype=jnp.float64)
    T = link_pose(q)
    dT = jax.jacfwd(link_pose)(q)  # (4, 4, num_dof)

    J_linear = dT[:3, 3, :]

    # ω_i = vee(∂R/∂q_i Rᵀ)
    dR = jnp.moveaxis(dT[:3, :3, :], -1, 0)
    J_angular = so3.vee(dR @ T[:3, :3].T).T

    return jnp.concatenate([J_linear, J_angular], axis=0)


def change_reference_point(J: Array, offset: Array) -> Array:
    """Move the reference point of a 6xN Jacobian by ``offset``.

    The linear velocity of a rigid body at point p + offset is
    v + ω × offset; the angular rows are unchanged.

    Args:
        J: (6, N) Jacobian with linear rows first
        offset: (3,) vector from the old to the new reference point, in the
            frame the Jacobian is expressed in

    Returns:
        (6, N) Jacobian referenced at the new point
    """
    J_linear = J[:3] - so3.skew_symmetric(jnp.asarray(offset, dtype=J.dtype)) @ J[3:]
    return jnp.concatenate([J_linear, J[3:]], axis=0)


class ChainJacobianSolver:
    """Evaluates pose and Jacobian of the tip link of a SubChain.

    The chain's functions are JIT-compiled once at construction, so one solver
    per monitored link is built at setup time and reused every iteration.
    """

    def __init__(self, chain: SubChain):
        self.chain = chain
        robot = chain.robot
        tip = chain.link_name
        if chain.num_joints:
            self._jacobian = jax.jit(lambda q: jacobian(robot, q, tip))
            self._tip_pose = jax.jit(lambda q: forward_kinematics_world(robot, q)[-1])
        else:
            # Nothing moves this link: constant pose, empty Jacobian
            pose = forward_kinematics_world(robot, jnp.zeros(0))[-1]
            self._jacobian = lambda q: jnp.zeros((6, 0))
            self._tip_pose = lambda q: pose

    @property
    def num_joints(self) -> int:
        return self.chain.num_joints

    def _check(self, q: Array) -> Array:
        q = jnp.asarray(q, dtype=jnp.float64)
        if q.shape != (self.num_joints,):
            raise ValueError(
                f"Expected {self.num_joints} joint values for chain to '{self.chain.link_name}', got shape {q.shape}"
            )
        return q

    def jnt_to_jac(self, q: Array) -> Array:
        """6xk Jacobian of the tip link at inboard joint values ``q``."""
        return self._jacobian(self._check(q))

    def tip_pose(self, q: Array) -> Array:
        """4x4 base-frame pose of the tip link at inboard joint values ``q``."""
        return self._tip_pose(self._check(q))
