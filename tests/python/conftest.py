"""Test configuration for adding src to the import path."""

from __future__ import annotations

import sys
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from travel_policy_compliance import (
    DEFAULT_POLICY_CONFIG,
    PolicyConfig,
    PolicyVersionStore,
    TripPolicyInput,
)

NOW = datetime(2026, 3, 10, 9, 30, tzinfo=UTC)


class FrozenClock:
    """Controllable clock injected into the store."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def store(clock: FrozenClock) -> PolicyVersionStore:
    return PolicyVersionStore(clock=clock)


@pytest.fixture()
def seeded_store(clock: FrozenClock) -> PolicyVersionStore:
    return PolicyVersionStore(clock=clock, seed_baseline=True)


@pytest.fixture()
def config_factory() -> Callable[..., PolicyConfig]:
    def _factory(**overrides: object) -> PolicyConfig:
        data = DEFAULT_POLICY_CONFIG.editable()
        data.update(overrides)
        return PolicyConfig.model_validate(data)

    return _factory


@pytest.fixture()
def trip_factory() -> Callable[..., TripPolicyInput]:
    def _factory(**overrides: object) -> TripPolicyInput:
        data = {
            "employee_grade": "staff",
            "trip_type": "domestic",
            "departure_date": "2026-03-20",
            "return_date": "2026-03-24",
            "travel_class": "economy",
            "estimated_cost": 1000.0,
            "currency": "SAR",
        }
        data.update(overrides)
        return TripPolicyInput.model_validate(data)

    return _factory
