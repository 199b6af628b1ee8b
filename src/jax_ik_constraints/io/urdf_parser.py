"""URDF parser for loading robot models into JAX-native data structures.

This module parses URDF kinematics (links, joints, origins and axes) into
RobotModel PyTrees. Visual, collision and inertial elements are ignored.
"""

import jax.numpy as jnp
from lxml import etree
from typing import Dict, List, Optional, Union
import numpy as np
from collections import deque

from jax_ik_constraints.core.kinematic_model import KinematicModel
from jax_ik_constraints.core.robot_model import RobotModel
from jax_ik_constraints.transforms import se3, so3

SINGLE_DOF_JOINT_TYPES = ("revolute", "continuous", "prismatic")


def load_urdf(urdf_path: str) -> RobotModel:
    """Load a URDF file and convert it to a RobotModel PyTree.

    Args:
        urdf_path: Path to the URDF file to load.

    Returns:
        RobotModel: A JAX-native robot representation.
    """
    tree = etree.parse(str(urdf_path))
    return _parse_robot(tree.getroot())


def load_urdf_string(urdf_xml: Union[str, bytes]) -> RobotModel:
    """Parse URDF XML text into a RobotModel PyTree."""
    if isinstance(urdf_xml, str):
        urdf_xml = urdf_xml.encode("utf-8")
    return _parse_robot(etree.fromstring(urdf_xml))


def load_kinematic_model(urdf_path: str, base_in_world: Optional[np.ndarray] = None) -> KinematicModel:
    """Load a URDF file as a KinematicModel placed at ``base_in_world``."""
    return KinematicModel.from_robot(load_urdf(urdf_path), base_in_world)


def _parse_robot(root) -> RobotModel:
    # First pass: topology
    all_links = [link.get('name') for link in root.findall('.//link')]
    joints_info: List[Dict] = []
    for joint in root.findall('.//joint'):
        parent_elem = joint.find('parent')
        child_elem = joint.find('child')
        if parent_elem is None or child_elem is None:
            continue
        joints_info.append({
            'name': joint.get('name'),
            'type': joint.get('type'),
            'parent': parent_elem.get('link'),
            'child': child_elem.get('link'),
            'joint_elem': joint,
        })

    joint_by_child = {info['child']: info for info in joints_info}
    root_links = set(all_links) - set(joint_by_child)
    if len(root_links) != 1:
        raise ValueError(f"Expected exactly one root link, found: {root_links}")
    root_link = root_links.pop()

    # Breadth-first order guarantees parents precede children
    ordered_links = []
    queue = deque([root_link])
    visited = set()
    while queue:
        current_link = queue.popleft()
        if current_link in visited:
            continue
        visited.add(current_link)
        ordered_links.append(current_link)
        for info in joints_info:
            if info['parent'] == current_link and info['child'] not in visited:
                queue.append(info['child'])

    link_map = {name: i for i, name in enumerate(ordered_links)}

    # Actuated joints follow the link order, so a serial chain is numbered root to tip
    actuated_joint_names = []
    actuated_joint_to_link_idx = []

    parent_indices_list = []
    joint_transforms_list = []
    joint_axes_list = []

    for i, link_name in enumerate(ordered_links):
        info = joint_by_child.get(link_name)
        if info is None:
            # Root link parents itself, with identity transform and zero axis
            parent_indices_list.append(i)
            joint_transforms_list.append(jnp.eye(4))
            joint_axes_list.append(jnp.zeros(6))
            continue

        parent_indices_list.append(link_map[info['parent']])
        joint_transforms_list.append(_parse_origin(info['joint_elem'].find('origin')))

        joint_type = info['type']
        if joint_type == 'fixed':
            joint_axes_list.append(jnp.zeros(6))
            continue
        if joint_type not in SINGLE_DOF_JOINT_TYPES:
            raise ValueError(f"Unsupported joint type '{joint_type}' for joint '{info['name']}'")

        axis_elem = info['joint_elem'].find('axis')
        axis_xyz = _parse_vector(axis_elem.get('xyz') if axis_elem is not None else None, '1 0 0')
        axis_norm = np.linalg.norm(axis_xyz)
        if axis_norm < 1e-12:
            raise ValueError(f"Zero-length axis for {joint_type} joint '{info['name']}'")
        axis_xyz = axis_xyz / axis_norm

        if joint_type == 'prismatic':
            # Prismatic: [vx, vy, vz, 0, 0, 0]
            axis = np.concatenate([axis_xyz, np.zeros(3)])
        else:
            # Revolute: [0, 0, 0, wx, wy, wz]
            axis = np.concatenate([np.zeros(3), axis_xyz])
        joint_axes_list.append(jnp.array(axis))
        actuated_joint_names.append(info['name'])
        actuated_joint_to_link_idx.append(i)

    return RobotModel(
        link_names=tuple(ordered_links),
        joint_names=tuple(actuated_joint_names),
        parent_indices=jnp.array(parent_indices_list, dtype=jnp.int32),
        joint_transforms=jnp.stack(joint_transforms_list),
        joint_axes=jnp.stack(joint_axes_list),
        actuated_joint_to_link_idx=jnp.array(actuated_joint_to_link_idx, dtype=jnp.int32),
    )


def _parse_vector(text: Optional[str], default: str) -> np.ndarray:
    return np.array([float(x) for x in (text or default).split()])


def _parse_origin(origin_elem):
    if origin_elem is None:
        return jnp.eye(4)
    xyz = _parse_vector(origin_elem.get('xyz'), '0 0 0')
    rpy = _parse_vector(origin_elem.get('rpy'), '0 0 0')
    return se3.from_position_and_rotation(jnp.array(xyz), so3.from_rpy(jnp.array(rpy)))
