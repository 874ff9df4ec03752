"""Tests for package root public API imports."""

from __future__ import annotations

import tomllib
from pathlib import Path

import travel_policy_compliance as tpc
from travel_policy_compliance import (
    PolicyVersionStore,
    __version__,
    evaluate_trip_policy,
    get_policy_recommendations,
    simulate_policy_change,
    validate_policy_config,
)


def test_public_api_exports() -> None:
    """Core API symbols should be importable from the package root."""
    required_exports = {
        "__version__",
        "PolicyVersionStore",
        "evaluate_trip_policy",
        "get_policy_recommendations",
        "simulate_policy_change",
        "validate_policy_config",
    }

    assert required_exports.issubset(set(tpc.__all__))
    assert all(hasattr(tpc, name) for name in tpc.__all__)
    assert callable(evaluate_trip_policy)
    assert callable(get_policy_recommendations)
    assert callable(simulate_policy_change)
    assert callable(validate_policy_config)
    assert PolicyVersionStore is not None


def test_version_matches_pyproject() -> None:
    """Package __version__ should align with pyproject.toml."""
    pyproject_path = Path(__file__).resolve().parents[2] / "pyproject.toml"
    pyproject_data = tomllib.loads(pyproject_path.read_text(encoding="utf-8"))
    assert __version__ == pyproject_data["project"]["version"]
