"""Kinematic model: a RobotModel placed in the world by a fixed base transform."""

from typing import Optional, Tuple

import jax.numpy as jnp
from jax import Array
from flax import struct

from .robot_model import RobotModel
from .sub_chain import SubChain, extract_sub_chain


@struct.dataclass
class KinematicModel:
    """Robot kinematics as seen by constraints.

    All kinematic quantities (link poses, Jacobians) are expressed in the
    frame of the root ("base") link. ``base_in_world`` places that frame in
    the world frame used by collision queries.

    Attributes:
        robot: Full robot model.
        base_in_world: (4, 4) pose of the base link in the world frame.
    """
    robot: RobotModel
    base_in_world: Array

    @classmethod
    def from_robot(cls, robot: RobotModel, base_in_world: Optional[Array] = None) -> "KinematicModel":
        if base_in_world is None:
            base_in_world = jnp.eye(4)
        base_in_world = jnp.asarray(base_in_world, dtype=jnp.float64)
        if base_in_world.shape != (4, 4):
            raise ValueError(f"base_in_world must have shape (4, 4), got {base_in_world.shape}")
        return cls(robot=robot, base_in_world=base_in_world)

    @property
    def link_names(self) -> Tuple[str, ...]:
        return self.robot.link_names

    @property
    def joint_names(self) -> Tuple[str, ...]:
        return self.robot.joint_names

    @property
    def base_link_name(self) -> str:
        return self.robot.root_link_name

    @property
    def num_joints(self) -> int:
        return self.robot.num_dof

    def get_sub_chain(self, link_name: str) -> SubChain:
        """Chain from the base link to ``link_name``; raises SubChainError."""
        return extract_sub_chain(self.robot, link_name)
