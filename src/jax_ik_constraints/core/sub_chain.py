"""Extraction of the kinematic sub-chain from the root link to a given link."""

from typing import Tuple

import jax.numpy as jnp
import numpy as np
from flax import struct

from ..errors import SubChainError
from .robot_model import RobotModel


@struct.dataclass
class SubChain:
    """Serial chain from the root link of a robot to ``link_name``.

    Attributes:
        link_name: Tip link of the chain.
        joint_indices: For each joint of the chain (root to tip), its index in
            the full robot joint vector. Static for JIT compilation.
        robot: The chain itself as a RobotModel, whose last link is the tip
            and whose joint vector only contains the inboard joints.
    """
    link_name: str = struct.field(pytree_node=False)
    joint_indices: Tuple[int, ...] = struct.field(pytree_node=False)
    robot: RobotModel

    @property
    def num_joints(self) -> int:
        return len(self.joint_indices)


def extract_sub_chain(robot: RobotModel, link_name: str) -> SubChain:
    """Build the chain of links and joints between the root and ``link_name``.

    Args:
        robot: Full robot model.
        link_name: Tip link of the requested chain.

    Returns:
        SubChain whose joints are the inboard joints of ``link_name``.

    Raises:
        SubChainError: if ``link_name`` is not part of the model.
    """
    if link_name not in robot.link_names:
        raise SubChainError(
            f"Cannot build a chain between '{robot.root_link_name}' and '{link_name}': "
            f"link '{link_name}' not found in robot model"
        )

    parents = np.asarray(robot.parent_indices)
    idx = robot.link_names.index(link_name)

    # Walk up to the root, which parents itself
    path = [idx]
    while parents[path[-1]] != path[-1]:
        path.append(int(parents[path[-1]]))
    path.reverse()

    link_to_joint = {int(link): j for j, link in enumerate(np.asarray(robot.actuated_joint_to_link_idx))}
    joint_indices = tuple(link_to_joint[link] for link in path if link in link_to_joint)
    chain_joint_links = [pos for pos, link in enumerate(path) if link in link_to_joint]

    path_idx = jnp.array(path, dtype=jnp.int32)
    chain = RobotModel(
        link_names=tuple(robot.link_names[i] for i in path),
        joint_names=tuple(robot.joint_names[j] for j in joint_indices),
        parent_indices=jnp.maximum(jnp.arange(len(path), dtype=jnp.int32) - 1, 0),
        joint_transforms=robot.joint_transforms[path_idx],
        joint_axes=robot.joint_axes[path_idx],
        actuated_joint_to_link_idx=jnp.array(chain_joint_links, dtype=jnp.int32),
    )
    return SubChain(link_name=link_name, joint_indices=joint_indices, robot=chain)
