"""RobotModel PyTree data structure for JAX-native robot representation.

This module defines the core data structure for representing robots in a
stateless, immutable format that is fully compatible with JAX transformations.
"""

from jax import Array
from flax import struct
from typing import Tuple


@struct.dataclass
class RobotModel:
    """Immutable PyTree representation of a robot's kinematic structure.

    Links are stored as a flattened tree using integer indices for
    parent-child relationships, ordered so that every parent precedes its
    children.

    Attributes:
        link_names: Tuple of all link names. Index corresponds to link ID.
                    Static for JIT compilation.
        joint_names: Tuple of all actuated (non-fixed) joint names, in the
                     order of the joint vector q. Static for JIT compilation.
        parent_indices: Array of shape (num_links,) where parent_indices[i]
                       is the parent link index of link i. Root link parents itself.
        joint_transforms: Array of shape (num_links, 4, 4) containing the SE(3)
                         origin of the joint that attaches each link to its parent.
        joint_axes: Array of shape (num_links, 6) containing 6D twist vectors
                   [vx,vy,vz,wx,wy,wz] of each link's joint; zero for fixed joints.
        actuated_joint_to_link_idx: Array of shape (num_dof,) where entry j is
                   the index of the child link moved by actuated joint j.
    """
    link_names: Tuple[str, ...] = struct.field(pytree_node=False)
    joint_names: Tuple[str, ...] = struct.field(pytree_node=False)
    parent_indices: Array
    joint_transforms: Array
    joint_axes: Array
    actuated_joint_to_link_idx: Array

    @property
    def num_dof(self) -> int:
        return len(self.joint_names)

    @property
    def root_link_name(self) -> str:
        return self.link_names[0]

    def link_index(self, link_name: str) -> int:
        """Index of ``link_name``; raises ValueError for unknown links."""
        try:
            return self.link_names.index(link_name)
        except ValueError:
            raise ValueError(f"Link '{link_name}' not found in robot model")
