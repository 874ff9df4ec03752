"""Tests for policy configuration validation and parsing helpers."""

from __future__ import annotations

from datetime import UTC, date, datetime

import pytest
from pydantic import ValidationError

from travel_policy_compliance import DEFAULT_POLICY_CONFIG, validate_policy_config
from travel_policy_compliance.validation import (
    is_non_empty_text,
    parse_instant,
    parse_trip_date,
)


def _classes(staff: str, manager: str, director: str, executive: str) -> dict[str, str]:
    return {
        "staff": staff,
        "manager": manager,
        "director": director,
        "executive": executive,
    }


class TestValidatePolicyConfig:
    def test_default_config_is_valid(self) -> None:
        assert validate_policy_config(DEFAULT_POLICY_CONFIG) is None

    @pytest.mark.parametrize(
        "classes",
        [
            _classes("business", "economy", "business", "first"),
            _classes("economy", "business", "premium_economy", "first"),
            _classes("economy", "economy", "first", "business"),
        ],
    )
    def test_rejects_decreasing_class_ceilings(self, config_factory, classes) -> None:
        config = config_factory(max_travel_class_by_grade=classes)

        assert validate_policy_config(config) == "max_travel_class_by_grade must be non-decreasing."

    def test_accepts_flat_class_ceilings(self, config_factory) -> None:
        config = config_factory(
            max_travel_class_by_grade=_classes("economy", "economy", "economy", "economy")
        )

        assert validate_policy_config(config) is None

    @pytest.mark.parametrize("threshold", [0, -0.2, 1, 1.5])
    def test_rejects_threshold_outside_open_interval(self, config_factory, threshold) -> None:
        config = config_factory(budget_warning_threshold=threshold)

        assert validate_policy_config(config) == "budget_warning_threshold must be between 0 and 1."

    def test_rejects_non_finite_threshold(self, config_factory) -> None:
        config = config_factory(budget_warning_threshold=float("nan"))

        assert validate_policy_config(config) == "budget_warning_threshold must be finite."

    def test_names_first_failing_field(self, config_factory) -> None:
        config = config_factory(
            min_advance_days_by_trip_type={"domestic": -1, "international": 7},
            max_trip_length_days=0,
        )

        assert validate_policy_config(config) == "min_advance_days_by_trip_type.domestic must be >= 0."

    def test_rejects_budget_below_one(self, config_factory) -> None:
        config = config_factory(
            max_budget_by_grade={"staff": 3500, "manager": 0.5, "director": 14000, "executive": 30000}
        )

        assert validate_policy_config(config) == "max_budget_by_grade.manager must be >= 1."

    def test_rejects_missing_grade(self, config_factory) -> None:
        with pytest.raises(ValidationError, match="max_budget_by_grade.executive is required"):
            config_factory(max_budget_by_grade={"staff": 3500, "manager": 7500, "director": 14000})

    def test_rejects_missing_trip_type(self, config_factory) -> None:
        with pytest.raises(
            ValidationError, match="min_advance_days_by_trip_type.international is required"
        ):
            config_factory(min_advance_days_by_trip_type={"domestic": 2})

    def test_rejects_missing_class_ceiling(self, config_factory) -> None:
        with pytest.raises(ValidationError, match="max_travel_class_by_grade.manager is required"):
            config_factory(
                max_travel_class_by_grade={
                    "staff": "economy",
                    "director": "business",
                    "executive": "first",
                }
            )

    def test_rejects_zero_trip_length(self, config_factory) -> None:
        config = config_factory(max_trip_length_days=0)

        assert validate_policy_config(config) == "max_trip_length_days must be >= 1."


class TestParsing:
    def test_is_non_empty_text(self) -> None:
        assert is_non_empty_text("Alex") is True
        assert is_non_empty_text("   ") is False
        assert is_non_empty_text(None) is False
        assert is_non_empty_text(42) is False

    def test_parse_instant_defaults_naive_to_utc(self) -> None:
        assert parse_instant("2026-03-11T08:00:00") == datetime(2026, 3, 11, 8, tzinfo=UTC)

    def test_parse_instant_keeps_offsets(self) -> None:
        parsed = parse_instant("2026-03-11T08:00:00Z")

        assert parsed == datetime(2026, 3, 11, 8, tzinfo=UTC)

    def test_parse_instant_rejects_garbage(self) -> None:
        assert parse_instant("next tuesday") is None
        assert parse_instant("") is None

    def test_parse_trip_date(self) -> None:
        assert parse_trip_date("2026-03-20") == date(2026, 3, 20)
        assert parse_trip_date("2026-03-20T23:00:00") == date(2026, 3, 20)
        assert parse_trip_date("20/03/2026") is None
        assert parse_trip_date("") is None
