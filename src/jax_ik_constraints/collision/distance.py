"""Batched nearest-obstacle distance queries.

A collision world answers one question per IK iteration: for each link of a
given set, how far is the nearest obstacle, which point of the link is
closest to it, and along which direction should the link move to get away
from it. Results are reported in the world frame and omit links for which
no meaningful contact exists.

Example
-------
>>> world = SphereCollisionWorld(
...     model,
...     link_spheres={"link2": [Sphere(center=jnp.zeros(3), radius=0.05)]},
...     obstacles={"box": Sphere(center=jnp.array([0.5, 0.3, 0.0]), radius=0.1)},
... )
>>> infos = world.distance_detailed(q, AllowedCollisionMatrix(), ["link2"])
"""

import abc
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

import jax.numpy as jnp
import numpy as np
from jax import Array
from flax import struct

from ..core import KinematicModel
from ..kinematics import forward_kinematics
from ..transforms import se3


@struct.dataclass
class Sphere:
    """Sphere collision primitive.

    Attributes:
        center: (3,) center, in the frame of whatever owns the sphere.
        radius: Sphere radius.
    """
    center: Array
    radius: float


@struct.dataclass
class DistanceInfo:
    """Nearest-obstacle result for one link.

    Attributes:
        distance: Signed distance to the nearest obstacle; negative when the
            link penetrates it.
        link_point: (3,) point on the link closest to the obstacle.
        avoidance_vector: (3,) unit vector pointing from the obstacle toward
            the link.
        obstacle_name: Name of the nearest obstacle.
    """
    distance: float
    link_point: Array
    avoidance_vector: Array
    obstacle_name: str = struct.field(pytree_node=False, default="")


def sphere_sphere_distance(s1: Sphere, s2: Sphere) -> float:
    """Signed distance between two spheres. Positive = separation, negative = penetration."""
    return float(jnp.linalg.norm(s1.center - s2.center) - s1.radius - s2.radius)


class AllowedCollisionMatrix:
    """Set of (link, obstacle) pairs excluded from distance queries."""

    def __init__(self, allowed: Iterable[Tuple[str, str]] = ()):
        self._allowed = set()
        for link_name, obstacle_name in allowed:
            self.allow(link_name, obstacle_name)

    def allow(self, link_name: str, obstacle_name: str) -> None:
        self._allowed.add((link_name, obstacle_name))

    def disallow(self, link_name: str, obstacle_name: str) -> None:
        self._allowed.discard((link_name, obstacle_name))

    def is_allowed(self, link_name: str, obstacle_name: str) -> bool:
        return (link_name, obstacle_name) in self._allowed

    def __len__(self) -> int:
        return len(self._allowed)


class CollisionWorld(abc.ABC):
    """Abstract batched distance query used by obstacle-avoidance constraints."""

    @abc.abstractmethod
    def distance_detailed(
        self,
        joints: Array,
        allowed_collisions: AllowedCollisionMatrix,
        link_names: Sequence[str],
    ) -> Dict[str, DistanceInfo]:
        """Nearest-obstacle information for every link in ``link_names``.

        Args:
            joints: Full robot joint vector.
            allowed_collisions: Pairs to ignore.
            link_names: Links to query, all at once.

        Returns:
            Mapping from link name to DistanceInfo, in the world frame. Links
            without a meaningful contact are omitted.
        """
        raise NotImplementedError


class SphereCollisionWorld(CollisionWorld):
    """Robot links approximated by spheres, checked against spherical obstacles.

    Args:
        model: Kinematic model used to place the link spheres.
        link_spheres: Spheres attached to each link, centers in the link frame.
        obstacles: Named obstacle spheres, centers in the world frame.
        max_distance: Contacts farther than this are not reported.
    """

    def __init__(
        self,
        model: KinematicModel,
        link_spheres: Mapping[str, Sequence[Sphere]],
        obstacles: Optional[Mapping[str, Sphere]] = None,
        max_distance: float = 1.0,
    ):
        unknown = set(link_spheres) - set(model.link_names)
        if unknown:
            raise ValueError(f"Collision spheres given for unknown links: {sorted(unknown)}")
        self.model = model
        self.link_spheres = {name: list(spheres) for name, spheres in link_spheres.items()}
        self.obstacles = dict(obstacles or {})
        self.max_distance = max_distance

    def add_obstacle(self, name: str, sphere: Sphere) -> None:
        self.obstacles[name] = sphere

    def remove_obstacle(self, name: str) -> None:
        self.obstacles.pop(name, None)

    def distance_detailed(self, joints, allowed_collisions, link_names):
        poses = forward_kinematics(self.model.robot, joints)
        result = {}
        for link_name in link_names:
            spheres = self.link_spheres.get(link_name)
            if not spheres or link_name not in poses:
                continue
            T_world_link = self.model.base_in_world @ poses[link_name]

            best = None
            for sphere in spheres:
                link_sphere = Sphere(center=se3.apply(T_world_link, jnp.asarray(sphere.center)),
                                     radius=sphere.radius)
                for obstacle_name, obstacle in self.obstacles.items():
                    if allowed_collisions.is_allowed(link_name, obstacle_name):
                        continue
                    d = sphere_sphere_distance(link_sphere, obstacle)
                    if best is None or d < best[0]:
                        best = (d, link_sphere, obstacle, obstacle_name)

            if best is None or best[0] > self.max_distance:
                continue
            d, link_sphere, obstacle, obstacle_name = best
            result[link_name] = _sphere_contact(d, link_sphere, obstacle, obstacle_name)
        return result


def _sphere_contact(distance, link_sphere, obstacle, obstacle_name):
    offset = np.asarray(link_sphere.center - obstacle.center, dtype=np.float64)
    norm = np.linalg.norm(offset)
    # Concentric spheres have no preferred direction; push along +z
    direction = offset / norm if norm > 1e-12 else np.array([0.0, 0.0, 1.0])
    link_point = np.asarray(link_sphere.center) - link_sphere.radius * direction
    return DistanceInfo(
        distance=distance,
        link_point=jnp.asarray(link_point),
        avoidance_vector=jnp.asarray(direction),
        obstacle_name=obstacle_name,
    )
