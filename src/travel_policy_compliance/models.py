"""Core models for travel policy configurations, versions and verdicts."""

from __future__ import annotations

from datetime import UTC, date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

FindingContextValue = str | int | float | bool | None


class EmployeeGrade(str, Enum):
    """Employee seniority tier used to look up budget and class ceilings."""

    STAFF = "staff"
    MANAGER = "manager"
    DIRECTOR = "director"
    EXECUTIVE = "executive"


GRADE_SENIORITY: tuple[EmployeeGrade, ...] = (
    EmployeeGrade.STAFF,
    EmployeeGrade.MANAGER,
    EmployeeGrade.DIRECTOR,
    EmployeeGrade.EXECUTIVE,
)


class TripType(str, Enum):
    """Trip category used to look up minimum advance booking."""

    DOMESTIC = "domestic"
    INTERNATIONAL = "international"


class TravelClass(str, Enum):
    """Fare class, totally ordered from economy to first."""

    ECONOMY = "economy"
    PREMIUM_ECONOMY = "premium_economy"
    BUSINESS = "business"
    FIRST = "first"

    @property
    def rank(self) -> int:
        return _TRAVEL_CLASS_RANK[self]


_TRAVEL_CLASS_RANK: dict[TravelClass, int] = {
    TravelClass.ECONOMY: 1,
    TravelClass.PREMIUM_ECONOMY: 2,
    TravelClass.BUSINESS: 3,
    TravelClass.FIRST: 4,
}


class PolicyVersionStatus(str, Enum):
    """Lifecycle state of a stored policy version."""

    DRAFT = "draft"
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    RETIRED = "retired"


class PolicyAuditAction(str, Enum):
    """Lifecycle transitions recorded in the audit trail."""

    CREATE_DRAFT = "create_draft"
    ACTIVATE_POLICY = "activate_policy"


class FindingLevel(str, Enum):
    """Severity of a single rule outcome."""

    INFO = "info"
    WARNING = "warning"
    BLOCKED = "blocked"


class ComplianceLevel(str, Enum):
    """Overall verdict of an evaluation."""

    COMPLIANT = "compliant"
    WARNING = "warning"
    BLOCKED = "blocked"


class PolicyConfig(BaseModel):
    """Budget, timing and class constraints for one policy version.

    Structural typing and a key for every trip type and grade are enforced
    here. Range and monotonicity invariants are checked by
    :func:`travel_policy_compliance.validation.validate_policy_config` so the
    store can report them as a typed failure instead of an exception.
    """

    model_config = ConfigDict(frozen=True)

    version: str | None = Field(
        default=None, description="Identifier of the version this config belongs to"
    )
    min_advance_days_by_trip_type: dict[TripType, int] = Field(
        ..., description="Minimum days between booking and departure per trip type"
    )
    max_budget_by_grade: dict[EmployeeGrade, float] = Field(
        ..., description="Maximum estimated trip cost per employee grade"
    )
    max_travel_class_by_grade: dict[EmployeeGrade, TravelClass] = Field(
        ..., description="Highest fare class allowed per employee grade"
    )
    budget_warning_threshold: float = Field(
        ..., description="Fraction of the budget ceiling that triggers a warning"
    )
    max_trip_length_days: int = Field(
        ..., description="Trip length beyond which a warning is raised"
    )

    @model_validator(mode="after")
    def _require_every_key(self) -> PolicyConfig:
        required = (
            ("min_advance_days_by_trip_type", self.min_advance_days_by_trip_type, tuple(TripType)),
            ("max_budget_by_grade", self.max_budget_by_grade, GRADE_SENIORITY),
            ("max_travel_class_by_grade", self.max_travel_class_by_grade, GRADE_SENIORITY),
        )
        for field_name, mapping, keys in required:
            for key in keys:
                if key not in mapping:
                    raise ValueError(f"{field_name}.{key.value} is required.")
        return self

    def editable(self) -> dict[str, object]:
        """Return the config payload without the version label."""

        return self.model_dump(mode="json", exclude={"version"})


DEFAULT_POLICY_VERSION = "policy-v1.0.0"

DEFAULT_POLICY_CONFIG = PolicyConfig(
    version=DEFAULT_POLICY_VERSION,
    min_advance_days_by_trip_type={
        TripType.DOMESTIC: 2,
        TripType.INTERNATIONAL: 7,
    },
    max_budget_by_grade={
        EmployeeGrade.STAFF: 3500,
        EmployeeGrade.MANAGER: 7500,
        EmployeeGrade.DIRECTOR: 14000,
        EmployeeGrade.EXECUTIVE: 30000,
    },
    max_travel_class_by_grade={
        EmployeeGrade.STAFF: TravelClass.ECONOMY,
        EmployeeGrade.MANAGER: TravelClass.PREMIUM_ECONOMY,
        EmployeeGrade.DIRECTOR: TravelClass.BUSINESS,
        EmployeeGrade.EXECUTIVE: TravelClass.FIRST,
    },
    budget_warning_threshold=0.85,
    max_trip_length_days=14,
)


class PolicyVersionRecord(BaseModel):
    """A policy configuration together with its lifecycle metadata."""

    version_id: str = Field(..., description="Identifier shaped policy-vMAJOR.MINOR.PATCH")
    status: PolicyVersionStatus = Field(..., description="Current lifecycle state")
    created_at: datetime = Field(..., description="When the draft was created")
    created_by: str = Field(..., description="Actor that created the draft")
    effective_from: datetime = Field(
        ..., description="Instant from which the version is authoritative"
    )
    activated_at: datetime | None = Field(
        default=None, description="When the version was activated or scheduled"
    )
    activated_by: str | None = Field(
        default=None, description="Actor that activated the version"
    )
    note: str | None = Field(default=None, description="Free-form change note")
    config: PolicyConfig = Field(..., description="Attached policy configuration")


class PolicyAuditEvent(BaseModel):
    """Immutable audit record for a single lifecycle transition."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Sequential audit identifier")
    at: datetime = Field(..., description="When the transition happened")
    actor_name: str = Field(..., description="Actor responsible for the transition")
    action: PolicyAuditAction = Field(..., description="Transition performed")
    version_id: str = Field(..., description="Version affected by the transition")
    note: str | None = Field(default=None, description="Transition details")


class TripPolicyInput(BaseModel):
    """Trip parameters evaluated against a policy configuration.

    Dates are kept as text so that malformed values reach the evaluator and
    produce a blocked finding rather than a parsing error.
    """

    employee_grade: EmployeeGrade = Field(..., description="Traveler grade")
    trip_type: TripType = Field(..., description="Domestic or international")
    departure_date: str = Field(..., description="Departure date (ISO 8601)")
    return_date: str = Field(..., description="Return date (ISO 8601)")
    travel_class: TravelClass = Field(..., description="Requested fare class")
    estimated_cost: float = Field(..., description="Estimated total trip cost")
    currency: str = Field(default="SAR", description="Display currency of the cost")

    @field_validator("departure_date", "return_date", mode="before")
    @classmethod
    def _coerce_date(cls, value: object) -> object:
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, date):
            return value.isoformat()
        return value


class PolicyFinding(BaseModel):
    """Labeled outcome of a single rule check."""

    code: str = Field(..., description="Stable machine-readable rule code")
    level: FindingLevel = Field(..., description="Severity of the finding")
    message: str = Field(..., description="Human-readable explanation")
    context: dict[str, FindingContextValue] | None = Field(
        default=None, description="Values that produced the finding"
    )


class PolicyEvaluationResult(BaseModel):
    """Compliance verdict for one trip against one configuration."""

    policy_version: str = Field(..., description="Version of the evaluated config")
    level: ComplianceLevel = Field(..., description="Most severe finding level")
    findings: list[PolicyFinding] = Field(
        default_factory=list, description="Outcome of each rule that fired"
    )
    evaluated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Evaluation instant",
    )

    @property
    def is_blocked(self) -> bool:
        return self.level == ComplianceLevel.BLOCKED

    def codes(self) -> list[str]:
        """Return the finding codes in evaluation order."""

        return [finding.code for finding in self.findings]


class StoreErrorCode(str, Enum):
    """Caller-correctable failure outcomes of store mutations."""

    VALIDATION_FAILED = "validation_failed"
    VERSION_NOT_FOUND = "version_not_found"


class StoreError(BaseModel):
    """Failure detail returned instead of raising."""

    code: StoreErrorCode
    message: str


class StoreResult(BaseModel):
    """Outcome of a store mutation: either a record or a typed error."""

    ok: bool
    result: PolicyVersionRecord | None = None
    error: StoreError | None = None

    @classmethod
    def success(cls, record: PolicyVersionRecord) -> StoreResult:
        return cls(ok=True, result=record)

    @classmethod
    def failure(cls, code: StoreErrorCode, message: str) -> StoreResult:
        return cls(ok=False, error=StoreError(code=code, message=message))

