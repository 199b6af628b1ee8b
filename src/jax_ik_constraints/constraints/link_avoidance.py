"""Per-link obstacle-avoidance parameters and kinematic handles."""

from typing import Optional

from ..config import AvoidanceDefaults
from ..core import SubChain
from ..kinematics import ChainJacobianSolver


class LinkAvoidance:
    """Avoidance settings for one monitored link.

    Tunables start at the values of an AvoidanceDefaults instance and may be
    changed until the owning constraint is initialized. Initialization binds
    the root-to-link sub-chain and its Jacobian solver, which belong to this
    entry alone and are dropped by release().
    """

    def __init__(self, link_name: str, defaults: Optional[AvoidanceDefaults] = None):
        if defaults is None:
            defaults = AvoidanceDefaults()
        self.link_name = link_name
        self.weight = defaults.weight
        self.min_distance = defaults.min_distance
        self.avoidance_distance = defaults.avoidance_distance
        self.amplitude = defaults.amplitude
        self.num_robot_joints = 0
        self.num_inboard_joints = 0
        self.sub_chain: Optional[SubChain] = None
        self.jac_solver: Optional[ChainJacobianSolver] = None

    def __repr__(self):
        return (f"LinkAvoidance(link_name={self.link_name!r}, weight={self.weight}, "
                f"min_distance={self.min_distance}, avoidance_distance={self.avoidance_distance}, "
                f"amplitude={self.amplitude})")

    @property
    def bound(self) -> bool:
        return self.jac_solver is not None

    def bind(self, sub_chain: SubChain, num_robot_joints: int) -> None:
        """Take ownership of ``sub_chain`` and build its Jacobian solver."""
        if sub_chain.num_joints > num_robot_joints:
            raise ValueError(
                f"Sub-chain to '{self.link_name}' has {sub_chain.num_joints} joints, "
                f"more than the robot's {num_robot_joints}"
            )
        self.release()
        self.num_robot_joints = num_robot_joints
        self.num_inboard_joints = sub_chain.num_joints
        self.sub_chain = sub_chain
        self.jac_solver = ChainJacobianSolver(sub_chain)

    def release(self) -> None:
        self.sub_chain = None
        self.jac_solver = None
        self.num_inboard_joints = 0
