"""Travel policy rule evaluation for proposed trips.

This module implements a pure evaluator that checks a trip against a single
policy configuration. Each rule inspects the trip independently and returns
at most one finding that captures the rule code, the severity (blocked vs
warning) and a message including the relevant threshold. A blocked finding
from one rule never prevents the other rules from running.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime

from .models import (
    DEFAULT_POLICY_CONFIG,
    ComplianceLevel,
    FindingContextValue,
    FindingLevel,
    PolicyConfig,
    PolicyEvaluationResult,
    PolicyFinding,
    TripPolicyInput,
)
from .validation import parse_trip_date

COMPLIANT_CODE = "policy_compliant"


@dataclass(frozen=True)
class EvaluationContext:
    """Trip, configuration and parsed dates shared by every rule."""

    trip: TripPolicyInput
    config: PolicyConfig
    today: date
    departure: date | None
    return_date: date | None

    @property
    def dates_valid(self) -> bool:
        return self.departure is not None and self.return_date is not None

    @property
    def cost_valid(self) -> bool:
        cost = self.trip.estimated_cost
        return math.isfinite(cost) and cost > 0


def _days_between(later: date, earlier: date) -> int:
    return (later - earlier).days


class PolicyRule(ABC):
    """Base class for travel policy rules."""

    rule_id: str
    level: FindingLevel

    @abstractmethod
    def evaluate(self, context: EvaluationContext) -> PolicyFinding | None:
        """Return a finding when the rule fires, otherwise None."""

    def _finding(
        self,
        message: str,
        context: dict[str, FindingContextValue] | None = None,
        *,
        code: str | None = None,
        level: FindingLevel | None = None,
    ) -> PolicyFinding:
        return PolicyFinding(
            code=code or self.rule_id,
            level=level or self.level,
            message=message,
            context=context,
        )


class DateValidityRule(PolicyRule):
    rule_id = "invalid_dates"
    level = FindingLevel.BLOCKED

    def evaluate(self, context: EvaluationContext) -> PolicyFinding | None:
        if context.dates_valid:
            return None
        return self._finding("Departure and return dates must be valid.")


class AdvanceBookingRule(PolicyRule):
    rule_id = "insufficient_advance_booking"
    level = FindingLevel.BLOCKED

    def evaluate(self, context: EvaluationContext) -> PolicyFinding | None:
        if context.departure is None or context.return_date is None:
            return None

        lead_days = _days_between(context.departure, context.today)
        required = context.config.min_advance_days_by_trip_type[context.trip.trip_type]
        if lead_days >= required:
            return None
        return self._finding(
            f"Trip requires at least {required} day(s) advance booking; only {lead_days} day(s) provided.",
            {"days_provided": lead_days, "days_required": required},
        )


class TripWindowRule(PolicyRule):
    rule_id = "invalid_trip_window"
    level = FindingLevel.BLOCKED

    def evaluate(self, context: EvaluationContext) -> PolicyFinding | None:
        if context.departure is None or context.return_date is None:
            return None
        if context.return_date >= context.departure:
            return None
        return self._finding("Return date cannot be earlier than departure date.")


class TripLengthRule(PolicyRule):
    rule_id = "extended_trip_window"
    level = FindingLevel.WARNING

    def evaluate(self, context: EvaluationContext) -> PolicyFinding | None:
        if context.departure is None or context.return_date is None:
            return None

        trip_length = max(0, _days_between(context.return_date, context.departure))
        maximum = context.config.max_trip_length_days
        if trip_length <= maximum:
            return None
        return self._finding(
            f"Trip length exceeds {maximum} days and may require extra justification.",
            {"trip_length_days": trip_length, "max_trip_length_days": maximum},
        )


class EstimatedCostRule(PolicyRule):
    rule_id = "invalid_estimated_cost"
    level = FindingLevel.BLOCKED

    def evaluate(self, context: EvaluationContext) -> PolicyFinding | None:
        if context.cost_valid:
            return None
        return self._finding("Estimated cost must be greater than zero.")


class BudgetCapRule(PolicyRule):
    rule_id = "budget_cap_exceeded"
    level = FindingLevel.BLOCKED
    near_cap_code = "budget_near_cap"

    def evaluate(self, context: EvaluationContext) -> PolicyFinding | None:
        if not context.cost_valid:
            return None

        trip = context.trip
        grade = trip.employee_grade
        budget_cap = context.config.max_budget_by_grade[grade]
        cost = trip.estimated_cost
        if cost > budget_cap:
            return self._finding(
                f"Estimated cost exceeds allowed budget cap for {grade.value}.",
                {
                    "currency": trip.currency,
                    "estimated_cost": round(cost, 2),
                    "budget_cap": round(budget_cap, 2),
                },
            )

        ratio = cost / budget_cap
        if ratio >= context.config.budget_warning_threshold:
            return self._finding(
                "Estimated cost is close to budget cap.",
                {"percent_used": round(ratio * 100)},
                code=self.near_cap_code,
                level=FindingLevel.WARNING,
            )
        return None


class TravelClassRule(PolicyRule):
    rule_id = "travel_class_not_allowed"
    level = FindingLevel.BLOCKED

    def evaluate(self, context: EvaluationContext) -> PolicyFinding | None:
        grade = context.trip.employee_grade
        requested = context.trip.travel_class
        allowed = context.config.max_travel_class_by_grade[grade]
        if requested.rank <= allowed.rank:
            return None
        return self._finding(
            f"Requested travel class is above allowed class ({allowed.value}) for {grade.value}.",
            {"requested_class": requested.value, "allowed_class": allowed.value},
        )


DEFAULT_RULES: tuple[PolicyRule, ...] = (
    DateValidityRule(),
    AdvanceBookingRule(),
    TripWindowRule(),
    TripLengthRule(),
    EstimatedCostRule(),
    BudgetCapRule(),
    TravelClassRule(),
)


def overall_level(findings: Iterable[PolicyFinding]) -> ComplianceLevel:
    """Return the most severe level present among the findings."""

    levels = {finding.level for finding in findings}
    if FindingLevel.BLOCKED in levels:
        return ComplianceLevel.BLOCKED
    if FindingLevel.WARNING in levels:
        return ComplianceLevel.WARNING
    return ComplianceLevel.COMPLIANT


def _as_utc(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(UTC)
    if now.tzinfo is None:
        return now.replace(tzinfo=UTC)
    return now


class PolicyEvaluator:
    """Run every travel policy rule and aggregate the verdict."""

    def __init__(self, rules: Iterable[PolicyRule] | None = None):
        self.rules = list(rules) if rules is not None else list(DEFAULT_RULES)

    def evaluate(
        self,
        trip: TripPolicyInput,
        config: PolicyConfig = DEFAULT_POLICY_CONFIG,
        now: datetime | None = None,
    ) -> PolicyEvaluationResult:
        evaluated_at = _as_utc(now)
        context = EvaluationContext(
            trip=trip,
            config=config,
            today=evaluated_at.date(),
            departure=parse_trip_date(trip.departure_date),
            return_date=parse_trip_date(trip.return_date),
        )

        findings: list[PolicyFinding] = []
        for rule in self.rules:
            finding = rule.evaluate(context)
            if finding is not None:
                findings.append(finding)

        if not findings:
            findings.append(
                PolicyFinding(
                    code=COMPLIANT_CODE,
                    level=FindingLevel.INFO,
                    message="Request complies with active travel policy.",
                )
            )

        return PolicyEvaluationResult(
            policy_version=config.version or "unversioned",
            level=overall_level(findings),
            findings=findings,
            evaluated_at=evaluated_at,
        )

    def blocking_findings(
        self,
        trip: TripPolicyInput,
        config: PolicyConfig = DEFAULT_POLICY_CONFIG,
        now: datetime | None = None,
    ) -> list[PolicyFinding]:
        return [
            finding
            for finding in self.evaluate(trip, config, now).findings
            if finding.level == FindingLevel.BLOCKED
        ]

    def can_submit(
        self,
        trip: TripPolicyInput,
        config: PolicyConfig = DEFAULT_POLICY_CONFIG,
        now: datetime | None = None,
    ) -> bool:
        """Return False when any blocked finding would stop submission."""

        return not self.blocking_findings(trip, config, now)


_DEFAULT_EVALUATOR = PolicyEvaluator()


def evaluate_trip_policy(
    trip: TripPolicyInput,
    config: PolicyConfig = DEFAULT_POLICY_CONFIG,
    now: datetime | None = None,
) -> PolicyEvaluationResult:
    """Evaluate a trip against a configuration using the default rules."""

    return _DEFAULT_EVALUATOR.evaluate(trip, config, now)
