"""Travel Policy Compliance - rule evaluation and versioned policy storage."""

from .advisor import PolicyRecommendation, RecommendationType, get_policy_recommendations
from .config import (
    StoreSettings,
    build_store,
    load_policy_config_environment,
    load_policy_config_file,
    load_policy_config_yaml,
)
from .evaluator import (
    AdvanceBookingRule,
    BudgetCapRule,
    DateValidityRule,
    EstimatedCostRule,
    PolicyEvaluator,
    PolicyRule,
    TravelClassRule,
    TripLengthRule,
    TripWindowRule,
    evaluate_trip_policy,
)
from .models import (
    DEFAULT_POLICY_CONFIG,
    ComplianceLevel,
    EmployeeGrade,
    FindingLevel,
    PolicyAuditAction,
    PolicyAuditEvent,
    PolicyConfig,
    PolicyEvaluationResult,
    PolicyFinding,
    PolicyVersionRecord,
    PolicyVersionStatus,
    StoreError,
    StoreErrorCode,
    StoreResult,
    TravelClass,
    TripPolicyInput,
    TripType,
)
from .repository import InMemoryPolicyRepository, JsonFilePolicyRepository, PolicyRepository
from .store import PolicyVersionStore, resolve_active_version
from .validation import validate_policy_config
from .versioning import PolicyVersionId, next_version_id, simulate_policy_change

__all__ = [
    "AdvanceBookingRule",
    "BudgetCapRule",
    "ComplianceLevel",
    "DEFAULT_POLICY_CONFIG",
    "DateValidityRule",
    "EmployeeGrade",
    "EstimatedCostRule",
    "FindingLevel",
    "InMemoryPolicyRepository",
    "JsonFilePolicyRepository",
    "PolicyAuditAction",
    "PolicyAuditEvent",
    "PolicyConfig",
    "PolicyEvaluationResult",
    "PolicyEvaluator",
    "PolicyFinding",
    "PolicyRecommendation",
    "PolicyRepository",
    "PolicyRule",
    "PolicyVersionId",
    "PolicyVersionRecord",
    "PolicyVersionStatus",
    "PolicyVersionStore",
    "RecommendationType",
    "StoreError",
    "StoreErrorCode",
    "StoreResult",
    "StoreSettings",
    "TravelClass",
    "TravelClassRule",
    "TripLengthRule",
    "TripPolicyInput",
    "TripType",
    "TripWindowRule",
    "build_store",
    "evaluate_trip_policy",
    "get_policy_recommendations",
    "load_policy_config_environment",
    "load_policy_config_file",
    "load_policy_config_yaml",
    "next_version_id",
    "resolve_active_version",
    "simulate_policy_change",
    "validate_policy_config",
    "__version__",
]
__version__ = "0.1.0"
