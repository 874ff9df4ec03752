"""Pre-submission guidance derived from the policy in force."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from enum import Enum

from .models import DEFAULT_POLICY_CONFIG, EmployeeGrade, PolicyConfig, TravelClass, TripType
from .validation import parse_trip_date


class RecommendationType(str, Enum):
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"
    DANGER = "danger"


@dataclass(frozen=True)
class PolicyRecommendation:
    """Single piece of guidance shown while a trip request is drafted."""

    type: RecommendationType
    title: str
    message: str
    actionable: str | None = None


CLASS_LABELS: dict[TravelClass, str] = {
    TravelClass.ECONOMY: "Economy",
    TravelClass.PREMIUM_ECONOMY: "Premium Economy",
    TravelClass.BUSINESS: "Business",
    TravelClass.FIRST: "First Class",
}


def _grade_recommendations(
    grade: EmployeeGrade, estimated_cost: float | None, config: PolicyConfig
) -> list[PolicyRecommendation]:
    max_class = config.max_travel_class_by_grade[grade]
    max_budget = config.max_budget_by_grade[grade]
    recommendations = [
        PolicyRecommendation(
            type=RecommendationType.INFO,
            title="Allowed Travel Class",
            message=f'Based on your grade, your maximum allowed travel class is "{CLASS_LABELS[max_class]}".',
            actionable=max_class.value,
        )
    ]

    if estimated_cost is None or estimated_cost <= 0:
        recommendations.append(
            PolicyRecommendation(
                type=RecommendationType.INFO,
                title="Budget Guidelines",
                message=(
                    f"Your maximum allowed trip budget is {max_budget:g}. "
                    "Try to stay within this limit for quick approval."
                ),
            )
        )
        return recommendations

    ratio = estimated_cost / max_budget
    if ratio > 1:
        recommendations.append(
            PolicyRecommendation(
                type=RecommendationType.DANGER,
                title="Budget Exceeded",
                message=f"Estimated cost exceeds your grade's maximum budget ({max_budget:g}).",
                actionable="Please select lower-cost options to avoid rejection.",
            )
        )
    elif ratio >= config.budget_warning_threshold:
        percent = round(config.budget_warning_threshold * 100)
        recommendations.append(
            PolicyRecommendation(
                type=RecommendationType.WARNING,
                title="Approaching Budget Cap",
                message=f"You have consumed more than {percent}% of your allocated budget cap.",
            )
        )
    else:
        recommendations.append(
            PolicyRecommendation(
                type=RecommendationType.SUCCESS,
                title="Budget within limits",
                message="Estimated cost is well within policy limits and likely to be auto-approved.",
            )
        )
    return recommendations


def _advance_booking_recommendation(
    trip_type: TripType,
    departure: date | None,
    departure_supplied: bool,
    today: date,
    config: PolicyConfig,
) -> PolicyRecommendation | None:
    min_days = config.min_advance_days_by_trip_type[trip_type]
    if not departure_supplied:
        earliest = today + timedelta(days=min_days)
        return PolicyRecommendation(
            type=RecommendationType.INFO,
            title="Advance Booking Rules",
            message=(
                f"Please note this trip type requires booking at least {min_days} days"
                " in advance to avoid exceptions."
            ),
            actionable=f"Earliest compliant departure date is: {earliest.isoformat()}",
        )
    if departure is None:
        return None

    lead_days = (departure - today).days
    if lead_days < min_days:
        return PolicyRecommendation(
            type=RecommendationType.DANGER,
            title="Advance Booking Violation",
            message=f"Trips of type ({trip_type.value}) require at least {min_days} days advance booking.",
            actionable=f"Please delay departure date beyond {min_days} days to avoid rejection.",
        )
    return PolicyRecommendation(
        type=RecommendationType.SUCCESS,
        title="Excellent Booking Timing",
        message=f"You have met the advance booking requirements ({lead_days} days ahead).",
    )


def get_policy_recommendations(
    *,
    employee_grade: EmployeeGrade | None = None,
    trip_type: TripType | None = None,
    departure_date: str | date | None = None,
    estimated_cost: float | None = None,
    config: PolicyConfig = DEFAULT_POLICY_CONFIG,
    now: datetime | None = None,
) -> list[PolicyRecommendation]:
    """Return guidance for a partially filled trip request.

    Every argument is optional; guidance is only produced for the parts of
    the request that are already known. A departure date that cannot be
    parsed yields no advance booking guidance.
    """

    today = (now or datetime.now(UTC)).date()
    recommendations: list[PolicyRecommendation] = []

    if employee_grade is not None:
        recommendations.extend(_grade_recommendations(employee_grade, estimated_cost, config))

    if trip_type is not None:
        departure_supplied = departure_date not in (None, "")
        recommendation = _advance_booking_recommendation(
            trip_type,
            parse_trip_date(departure_date) if departure_supplied else None,
            departure_supplied,
            today,
            config,
        )
        if recommendation is not None:
            recommendations.append(recommendation)

    return recommendations
