"""Obstacle-avoidance constraint.

Each monitored link contributes one row to the constraint output:

* an error that ramps up as the link approaches its nearest obstacle,
* the Jacobian of the link's closest point, projected onto the direction
  pointing away from that obstacle,
* a status that is False while the link is closer than its minimum distance.

Rows are ordered by link name. Links for which the collision world reports no
nearby obstacle contribute a zero error, a zero Jacobian row and a satisfied
status.
"""

import math
from dataclasses import dataclass
from logging import getLogger
from typing import Any, Dict, Mapping, Optional, Tuple

import jax.numpy as jnp
from jax import Array

from ..collision import DistanceInfo
from ..config import AvoidanceDefaults
from ..core import KinematicModel
from ..errors import ConfigError, InitializationError, SubChainError
from ..kinematics import change_reference_point
from ..transforms import se3, so3
from .base import Constraint, ConstraintResults, SolverState
from .link_avoidance import LinkAvoidance

logger = getLogger(__name__)

# Parameter-file key -> LinkAvoidance attribute
PARAMETER_KEYS = (
    ('amplitude', 'amplitude'),
    ('minimum_distance', 'min_distance'),
    ('avoidance_distance', 'avoidance_distance'),
    ('weight', 'weight'),
)


def avoidance_error(distance, avoidance_distance, amplitude,
                    shift=AvoidanceDefaults.shift, zero_point=AvoidanceDefaults.zero_point) -> Array:
    """Sigmoid push-away magnitude for a link at ``distance`` from an obstacle.

    error = amplitude / (1 + exp(distance / scale - shift)) with
    scale = avoidance_distance / (zero_point + shift). The error is close to
    ``amplitude`` at contact and negligible beyond ``avoidance_distance``.
    """
    scale = avoidance_distance / (zero_point + shift)
    return amplitude / (1.0 + jnp.exp(jnp.asarray(distance, dtype=jnp.float64) / scale - shift))


def avoidance_jacobian(link: LinkAvoidance, q_inboard: Array, sample: DistanceInfo) -> Array:
    """Row of length ``num_robot_joints`` mapping joint velocities to the
    velocity of the link's closest point along the avoidance direction.

    Args:
        link: Bound link entry.
        q_inboard: Values of the link's inboard joints, root to link.
        sample: Distance information in the base frame.
    """
    J = link.jac_solver.jnt_to_jac(q_inboard)
    origin = se3.get_position(link.jac_solver.tip_pose(q_inboard))

    # Velocity of the closest point rather than of the link frame origin
    J = change_reference_point(J, jnp.asarray(sample.link_point) - origin)

    # Only the component along the avoidance direction matters
    projected = jnp.asarray(sample.avoidance_vector) @ J[:3]

    columns = jnp.array(link.sub_chain.joint_indices, dtype=jnp.int32)
    return jnp.zeros(link.num_robot_joints).at[columns].set(projected)


def avoidance_satisfied(sample: Optional[DistanceInfo], min_distance: float) -> bool:
    """False only when a sample exists and is strictly closer than ``min_distance``."""
    if sample is None:
        return True
    return not float(sample.distance) < min_distance


def transform_distance_info(info: DistanceInfo, T: Array) -> DistanceInfo:
    """Express ``info`` in another frame; ``T`` maps the current frame into it."""
    return info.replace(
        link_point=se3.apply(T, jnp.asarray(info.link_point, dtype=jnp.float64)),
        avoidance_vector=so3.apply(se3.get_rotation(T), jnp.asarray(info.avoidance_vector, dtype=jnp.float64)),
    )


@dataclass(frozen=True)
class AvoidanceSnapshot:
    """Distance data for every monitored link, for one solver iteration.

    Attributes:
        joint_state: Solver joint vector (not copied).
        distance_samples: Base-frame distance information keyed by link name;
            links without data this iteration are absent.
    """
    joint_state: Array
    distance_samples: Dict[str, DistanceInfo]

    @classmethod
    def capture(cls, state: SolverState, link_models: Tuple[str, ...], world_to_base: Array) -> "AvoidanceSnapshot":
        """Query the collision world once for all ``link_models``."""
        if state.collision_world is None or not link_models:
            logger.debug('No collision world or no links to query, no distance data this iteration')
            return cls(joint_state=state.joints, distance_samples={})

        world_samples = state.collision_world.distance_detailed(
            state.joints, state.allowed_collisions, link_models)
        samples = {name: transform_distance_info(info, world_to_base)
                   for name, info in world_samples.items() if name in link_models}
        return cls(joint_state=state.joints, distance_samples=samples)

    def sample(self, link_name: str) -> Optional[DistanceInfo]:
        return self.distance_samples.get(link_name)


class AvoidObstacles(Constraint):
    """Pushes selected links away from their nearest obstacles.

    Args:
        defaults: Parameter values given to newly registered links.
    """

    def __init__(self, defaults: Optional[AvoidanceDefaults] = None):
        super().__init__()
        self.defaults = defaults if defaults is not None else AvoidanceDefaults()
        self._links: Dict[str, LinkAvoidance] = {}
        self._link_models: Tuple[str, ...] = ()
        self._world_to_base: Optional[Array] = None

    # Registration

    @property
    def link_names(self) -> Tuple[str, ...]:
        """Registered links, in output row order."""
        return tuple(sorted(self._links))

    @property
    def link_models(self) -> Tuple[str, ...]:
        """Links passed to every collision query, in kinematic model order."""
        return self._link_models

    def add_link(self, link_name: str) -> None:
        """Register ``link_name`` with default parameters; no-op if already registered."""
        self._check_unlocked()
        if link_name not in self._links:
            self._links[link_name] = LinkAvoidance(link_name, self.defaults)

    def get_link(self, link_name: str) -> LinkAvoidance:
        try:
            return self._links[link_name]
        except KeyError:
            raise ConfigError(f"Link '{link_name}' is not registered with the Avoid Obstacles constraint")

    def set_weight(self, link_name: str, weight: float) -> None:
        self._set_parameter(link_name, 'weight', weight)

    def set_min_distance(self, link_name: str, min_distance: float) -> None:
        self._set_parameter(link_name, 'min_distance', min_distance)

    def set_avoidance_distance(self, link_name: str, avoidance_distance: float) -> None:
        self._set_parameter(link_name, 'avoidance_distance', avoidance_distance)

    def set_amplitude(self, link_name: str, amplitude: float) -> None:
        self._set_parameter(link_name, 'amplitude', amplitude)

    def get_weight(self, link_name: str) -> float:
        return self.get_link(link_name).weight

    def get_min_distance(self, link_name: str) -> float:
        return self.get_link(link_name).min_distance

    def get_avoidance_distance(self, link_name: str) -> float:
        return self.get_link(link_name).avoidance_distance

    def get_amplitude(self, link_name: str) -> float:
        return self.get_link(link_name).amplitude

    @property
    def weights(self) -> Array:
        """Per-row weights, in output row order."""
        return jnp.array([self._links[name].weight for name in self.link_names])

    def _check_unlocked(self):
        if self._initialized:
            raise ConfigError('Avoid Obstacles constraint is already initialized, parameters are locked')

    def _set_parameter(self, link_name, attribute, value):
        self._check_unlocked()
        link = self.get_link(link_name)
        try:
            value = float(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{attribute} for link '{link_name}' must be a number, got {value!r}")
        if not math.isfinite(value) or value < 0:
            raise ConfigError(f"{attribute} for link '{link_name}' must be finite and non-negative, got {value}")
        # Used as a divisor by the error ramp
        if attribute == 'avoidance_distance' and value == 0:
            raise ConfigError(f"avoidance_distance for link '{link_name}' must be positive")
        setattr(link, attribute, value)

    def load_parameters(self, params: Mapping[str, Any]) -> None:
        """Register links and their parameters from a parameter block.

        ``link_names`` lists the links; ``amplitude``, ``minimum_distance``,
        ``avoidance_distance`` and ``weight`` are optional arrays parallel to
        it. A missing or mismatched array is ignored as a whole (with a
        warning) and the defaults are used for every link.
        """
        self._check_unlocked()
        link_names = params.get('link_names')
        if not isinstance(link_names, (list, tuple)):
            logger.warning('Avoid Obstacles: unable to retrieve link_names member, default parameters will be used.')
            return

        overrides = {}
        for key, attribute in PARAMETER_KEYS:
            values = params.get(key)
            if values is None:
                logger.warning('Avoid Obstacles: unable to retrieve %s member, default parameter will be used.', key)
            elif not isinstance(values, (list, tuple)) or len(values) != len(link_names):
                logger.warning('Avoid Obstacles: %s member must be same size array as link_names member, '
                               'default parameters will be used.', key)
            else:
                overrides[attribute] = values

        setters = {
            'amplitude': self.set_amplitude,
            'min_distance': self.set_min_distance,
            'avoidance_distance': self.set_avoidance_distance,
            'weight': self.set_weight,
        }
        for i, link_name in enumerate(link_names):
            self.add_link(link_name)
            for attribute, values in overrides.items():
                try:
                    setters[attribute](link_name, values[i])
                except (ConfigError, TypeError, ValueError) as e:
                    logger.warning('Avoid Obstacles: ignoring %s for link %s: %s', attribute, link_name, e)

    # Setup

    def initialize(self, model: KinematicModel) -> bool:
        """Build the sub-chain and Jacobian solver of every registered link.

        With no registered link, every link of the model except its base is
        monitored. Any link whose chain cannot be built fails the whole
        constraint.
        """
        self._initialized = False
        self._release_links()

        if not self._links:
            logger.warning('Avoid Obstacles: no links were specified therefore using all links in kinematic chain.')
            for link_name in model.link_names:
                if link_name != model.base_link_name:
                    self._links[link_name] = LinkAvoidance(link_name, self.defaults)

        for link_name in self.link_names:
            try:
                sub_chain = model.get_sub_chain(link_name)
            except SubChainError as e:
                logger.error("Failed to initialize Avoid Obstacles constraint because it failed to create "
                             "a chain between links '%s' and '%s': %s", model.base_link_name, link_name, e)
                self._release_links()
                return False
            self._links[link_name].bind(sub_chain, model.num_joints)

        self._link_models = tuple(name for name in model.link_names if name in self._links)
        self._world_to_base = se3.inverse(model.base_in_world)
        return super().initialize(model)

    def release(self) -> None:
        """Drop every kinematic handle; the constraint can be reconfigured afterwards."""
        self._release_links()
        self._initialized = False

    def _release_links(self):
        for link in self._links.values():
            link.release()
        self._link_models = ()
        self._world_to_base = None

    # Evaluation

    def evaluate(self, state: SolverState) -> ConstraintResults:
        """Stacked error, Jacobian and status of every monitored link."""
        if not self._initialized:
            raise InitializationError('Avoid Obstacles constraint evaluated before successful initialization')
        num_joints = self._model.num_joints
        if jnp.shape(state.joints) != (num_joints,):
            raise ValueError(f"Expected {num_joints} joint values, got shape {jnp.shape(state.joints)}")

        snapshot = AvoidanceSnapshot.capture(state, self._link_models, self._world_to_base)

        output = ConstraintResults.empty(num_joints)
        for link_name in self.link_names:
            link = self._links[link_name]
            output = output.append(ConstraintResults(
                error=jnp.reshape(self.calc_error(snapshot, link), (1,)),
                jacobian=jnp.reshape(self.calc_jacobian(snapshot, link), (1, num_joints)),
                status=self.check_status(snapshot, link),
            ))
        return output

    def calc_error(self, snapshot: AvoidanceSnapshot, link: LinkAvoidance) -> Array:
        sample = snapshot.sample(link.link_name)
        if sample is None:
            logger.debug('Unable to retrieve distance info for link %s', link.link_name)
            return jnp.zeros(())
        return avoidance_error(sample.distance, link.avoidance_distance, link.amplitude,
                               self.defaults.shift, self.defaults.zero_point)

    def calc_jacobian(self, snapshot: AvoidanceSnapshot, link: LinkAvoidance) -> Array:
        sample = snapshot.sample(link.link_name)
        if sample is None:
            logger.debug('Unable to retrieve distance info for link %s', link.link_name)
            return jnp.zeros(link.num_robot_joints)
        joints = jnp.asarray(snapshot.joint_state, dtype=jnp.float64)
        q_inboard = joints[jnp.array(link.sub_chain.joint_indices, dtype=jnp.int32)]
        return avoidance_jacobian(link, q_inboard, sample)

    def check_status(self, snapshot: AvoidanceSnapshot, link: LinkAvoidance) -> bool:
        """True when it is ok to stop with the current joint values."""
        sample = snapshot.sample(link.link_name)
        if sample is None:
            logger.debug('Unable to retrieve distance info for link %s', link.link_name)
        return avoidance_satisfied(sample, link.min_distance)
