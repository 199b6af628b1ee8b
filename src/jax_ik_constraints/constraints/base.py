"""Constraint interface shared by every IK constraint type."""

import abc
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import jax.numpy as jnp
from jax import Array
from flax import struct

from ..collision import AllowedCollisionMatrix, CollisionWorld
from ..core import KinematicModel


@struct.dataclass
class ConstraintResults:
    """Stacked output of a constraint for one solver iteration.

    Attributes:
        error: (m,) error values, one per constraint row.
        jacobian: (m, num_joints) Jacobian, one row per error value.
        status: True when every row is satisfied.
    """
    error: Array
    jacobian: Array
    status: bool = True

    @classmethod
    def empty(cls, num_joints: int) -> "ConstraintResults":
        return cls(error=jnp.zeros(0), jacobian=jnp.zeros((0, num_joints)), status=True)

    def append(self, other: "ConstraintResults") -> "ConstraintResults":
        """Rows of ``self`` followed by rows of ``other``; statuses are AND-ed."""
        if self.jacobian.shape[1] != other.jacobian.shape[1]:
            raise ValueError(
                f"Cannot stack Jacobians with {self.jacobian.shape[1]} and "
                f"{other.jacobian.shape[1]} columns"
            )
        return ConstraintResults(
            error=jnp.concatenate([self.error, other.error]),
            jacobian=jnp.concatenate([self.jacobian, other.jacobian], axis=0),
            status=bool(self.status and other.status),
        )

    @property
    def num_rows(self) -> int:
        return self.error.shape[0]


@dataclass
class SolverState:
    """Solver iteration state handed to constraints.

    Constraints only read from it; the solver owns it.
    """
    joints: Array
    collision_world: Optional[CollisionWorld] = None
    allowed_collisions: AllowedCollisionMatrix = field(default_factory=AllowedCollisionMatrix)
    iteration: int = 0


class Constraint(abc.ABC):
    """Abstract base class for IK constraints.

    Subclasses are configured (``load_parameters`` and setters), bound once to
    a kinematic model with ``initialize`` and then evaluated every solver
    iteration with ``evaluate``.
    """

    def __init__(self):
        self._model: Optional[KinematicModel] = None
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def model(self) -> Optional[KinematicModel]:
        return self._model

    def initialize(self, model: KinematicModel) -> bool:
        """Bind the constraint to ``model``.

        Returns:
            True on success. On failure the constraint stays uninitialized and
            must not be evaluated.
        """
        self._model = model
        self._initialized = True
        return True

    @abc.abstractmethod
    def load_parameters(self, params: Mapping[str, Any]) -> None:
        """Configure the constraint from a parameter mapping."""
        raise NotImplementedError

    @abc.abstractmethod
    def evaluate(self, state: SolverState) -> ConstraintResults:
        """Error, Jacobian and status of the constraint at ``state``."""
        raise NotImplementedError
