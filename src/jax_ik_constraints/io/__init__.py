"""I/O utilities for loading robot models from URDF.

This module provides functions for parsing URDF robot descriptions and
converting them to JAX-native data structures.
"""

from .urdf_parser import load_urdf, load_urdf_string, load_kinematic_model

__all__ = ["load_urdf", "load_urdf_string", "load_kinematic_model"]
