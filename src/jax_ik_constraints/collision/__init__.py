"""Nearest-obstacle distance queries consumed by avoidance constraints."""

from .distance import (
    AllowedCollisionMatrix,
    CollisionWorld,
    DistanceInfo,
    Sphere,
    SphereCollisionWorld,
    sphere_sphere_distance,
)

__all__ = [
    "AllowedCollisionMatrix",
    "CollisionWorld",
    "DistanceInfo",
    "Sphere",
    "SphereCollisionWorld",
    "sphere_sphere_distance",
]
