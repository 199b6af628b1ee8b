"""Tests for YAML constraint parameter files."""

import logging
from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest
import yaml

from jax_ik_constraints.config import AvoidanceDefaults, constraint_params, load_constraint_config
from jax_ik_constraints.constraints import AvoidObstacles
from jax_ik_constraints.io import load_kinematic_model

FIXTURES = Path(__file__).parent / "fixtures"

PARAMETERS = {
    "constraints": [
        {"class": "GoalPosition", "weight": 1.0},
        {
            "class": "AvoidObstacles",
            "link_names": ["link2", "link3"],
            "amplitude": [0.2, 0.25],
            "minimum_distance": [0.05, 0.08],
            "avoidance_distance": [0.4, 0.35],
            "weight": [1.0, 2.0],
        },
    ]
}


def test_load_and_apply(tmp_path):
    path = tmp_path / "constraints.yaml"
    path.write_text(yaml.safe_dump(PARAMETERS))

    config = load_constraint_config(path)
    params = constraint_params(config, "AvoidObstacles")
    assert params["link_names"] == ["link2", "link3"]

    constraint = AvoidObstacles()
    constraint.load_parameters(params)
    assert constraint.link_names == ("link2", "link3")
    assert constraint.get_amplitude("link3") == 0.25
    assert constraint.get_min_distance("link2") == 0.05
    assert constraint.get_avoidance_distance("link3") == 0.35
    assert constraint.get_weight("link3") == 2.0

    assert constraint.initialize(load_kinematic_model(str(FIXTURES / "planar_arm.urdf")))
    assert constraint.link_models == ("link2", "link3")


def test_empty_file(tmp_path, caplog):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    with caplog.at_level(logging.WARNING, logger="jax_ik_constraints.config"):
        assert load_constraint_config(str(path)) == {}
    assert any("is empty" in r.getMessage() for r in caplog.records)


def test_non_mapping_file(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ValueError, match="must contain a mapping"):
        load_constraint_config(path)


def test_missing_constraint_block(caplog):
    with caplog.at_level(logging.WARNING, logger="jax_ik_constraints.config"):
        assert constraint_params(PARAMETERS, "AvoidJointLimits") is None
        assert constraint_params({}, "AvoidObstacles") is None
    assert any("AvoidJointLimits" in r.getMessage() for r in caplog.records)


def test_defaults():
    defaults = AvoidanceDefaults()
    assert (defaults.weight, defaults.min_distance, defaults.avoidance_distance, defaults.amplitude) == \
        (1.0, 0.1, 0.3, 0.3)
    assert (defaults.shift, defaults.zero_point) == (5.0, 10.0)

    with pytest.raises(FrozenInstanceError):
        defaults.amplitude = 1.0
