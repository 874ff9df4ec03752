"""Input validation shared by the evaluator, store and service surface."""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import UTC, date, datetime

from pydantic import ValidationError

from .models import GRADE_SENIORITY, PolicyConfig, TripType

# Each entry: (field path, attribute, mapping key or None, inclusive minimum or None).
_NUMERIC_FIELDS: tuple[tuple[str, str, object, float | None], ...] = (
    (
        "min_advance_days_by_trip_type.domestic",
        "min_advance_days_by_trip_type",
        TripType.DOMESTIC,
        0,
    ),
    (
        "min_advance_days_by_trip_type.international",
        "min_advance_days_by_trip_type",
        TripType.INTERNATIONAL,
        0,
    ),
    *(
        (f"max_budget_by_grade.{grade.value}", "max_budget_by_grade", grade, 1)
        for grade in GRADE_SENIORITY
    ),
    ("budget_warning_threshold", "budget_warning_threshold", None, None),
    ("max_trip_length_days", "max_trip_length_days", None, 1),
)


def is_non_empty_text(value: object) -> bool:
    """Return True for strings containing at least one non-space character."""

    return isinstance(value, str) and bool(value.strip())


def _numeric_value(config: PolicyConfig, attribute: str, key: object) -> object:
    value = getattr(config, attribute)
    if key is None:
        return value
    return value.get(key)


def validate_policy_config(config: PolicyConfig) -> str | None:
    """Return a message naming the first invalid field, or None when valid."""

    for field_path, attribute, key, minimum in _NUMERIC_FIELDS:
        value = _numeric_value(config, attribute, key)
        if value is None:
            return f"{field_path} is required."
        if not isinstance(value, (int, float)) or not math.isfinite(value):
            return f"{field_path} must be finite."
        if minimum is not None and value < minimum:
            return f"{field_path} must be >= {minimum}."

    if not 0 < config.budget_warning_threshold < 1:
        return "budget_warning_threshold must be between 0 and 1."

    previous_rank = 0
    for grade in GRADE_SENIORITY:
        travel_class = config.max_travel_class_by_grade.get(grade)
        if travel_class is None:
            return f"max_travel_class_by_grade.{grade.value} is required."
        if travel_class.rank < previous_rank:
            return "max_travel_class_by_grade must be non-decreasing."
        previous_rank = travel_class.rank
    return None


def describe_validation_error(exc: ValidationError) -> str:
    """Summarize the first pydantic error as ``field.path: message``."""

    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


def coerce_policy_config(value: PolicyConfig | Mapping[str, object]) -> PolicyConfig:
    """Return a PolicyConfig, validating raw mappings structurally."""

    if isinstance(value, PolicyConfig):
        return value
    return PolicyConfig.model_validate(dict(value))


def parse_instant(value: str | datetime | None) -> datetime | None:
    """Parse an ISO 8601 instant; naive values are treated as UTC."""

    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def parse_trip_date(value: str | date | None) -> date | None:
    """Parse a calendar date from a date or date-time string."""

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None
