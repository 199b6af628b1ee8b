"""
JAX IK Constraints: obstacle-avoidance constraints for velocity-level IK.

This library turns nearest-obstacle distance queries for selected robot links
into the error vectors, Jacobian rows and satisfaction flags consumed by a
weighted least-squares IK solve. Kinematics are JIT-compilable JAX functions
operating on an immutable RobotModel PyTree.
"""

import jax
jax.config.update("jax_enable_x64", True)

# Import core modules
from . import transforms
from . import core
from . import io
from . import kinematics
from . import collision
from . import constraints
from .config import AvoidanceDefaults, load_constraint_config, constraint_params
from .errors import ConfigError, ConstraintError, InitializationError, SubChainError

__version__ = "0.1.0"
__all__ = [
    "transforms",
    "core",
    "io",
    "kinematics",
    "collision",
    "constraints",
    "AvoidanceDefaults",
    "load_constraint_config",
    "constraint_params",
    "ConfigError",
    "ConstraintError",
    "InitializationError",
    "SubChainError",
]
