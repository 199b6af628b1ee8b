"""Constraint parameter defaults and YAML parameter files.

A parameter file lists constraints under a ``constraints`` key, each block
naming its class and carrying per-link parameters as parallel arrays::

    constraints:
      - class: AvoidObstacles
        link_names: [link2, link3]
        amplitude: [0.3, 0.2]
        minimum_distance: [0.1, 0.1]
        avoidance_distance: [0.3, 0.3]
        weight: [1.0, 1.0]
"""

from dataclasses import dataclass
from logging import getLogger
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = getLogger(__name__)


@dataclass(frozen=True)
class AvoidanceDefaults:
    """Named defaults for per-link obstacle-avoidance parameters.

    ``shift`` and ``zero_point`` shape the sigmoid error ramp: the ramp is
    centered at avoidance_distance * shift / (zero_point + shift) and is
    negligible at avoidance_distance.
    """
    weight: float = 1.0
    min_distance: float = 0.1
    avoidance_distance: float = 0.3
    amplitude: float = 0.3
    shift: float = 5.0
    zero_point: float = 10.0


def load_constraint_config(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a constraint parameter file.

    Returns:
        The parsed mapping; an empty file yields an empty dict.

    Raises:
        ValueError: if the top level of the file is not a mapping.
    """
    with open(path, 'r') as f:
        config = yaml.safe_load(f)
    if config is None:
        logger.warning('Constraint parameter file %s is empty', path)
        return {}
    if not isinstance(config, dict):
        raise ValueError(f"Constraint parameter file {path} must contain a mapping, "
                         f"got {type(config).__name__}")
    return config


def constraint_params(config: Dict[str, Any], class_name: str) -> Optional[Dict[str, Any]]:
    """Parameter block of the first constraint of type ``class_name``, if any."""
    for block in config.get('constraints') or []:
        if isinstance(block, dict) and block.get('class') == class_name:
            return block
    logger.warning('No parameters found for constraint %s', class_name)
    return None
