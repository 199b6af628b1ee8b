"""Core robot model data structures.

This module provides the data structures for representing robots, their
root-to-link sub-chains and their placement in the world in a JAX-native,
immutable format.
"""

from .robot_model import RobotModel
from .sub_chain import SubChain, extract_sub_chain
from .kinematic_model import KinematicModel

__all__ = ["RobotModel", "SubChain", "extract_sub_chain", "KinematicModel"]
