from __future__ import annotations

from datetime import UTC, datetime

from travel_policy_compliance import (
    DEFAULT_POLICY_CONFIG,
    ComplianceLevel,
    PolicyVersionId,
    TripPolicyInput,
    next_version_id,
    simulate_policy_change,
)
from travel_policy_compliance.versioning import (
    audit_sequence,
    config_fingerprint,
    next_audit_id,
    version_sort_key,
)

NOW = datetime(2026, 3, 10, 9, 30, tzinfo=UTC)


def test_version_id_parse_and_label() -> None:
    version = PolicyVersionId.parse(" POLICY-v2.3.14 ")

    assert version == PolicyVersionId(2, 3, 14)
    assert version.label == "policy-v2.3.14"
    assert version.bump_patch().label == "policy-v2.3.15"
    assert PolicyVersionId.parse("policy-2.3.14") is None
    assert PolicyVersionId.parse("policy-v2.3") is None


def test_ordering_is_numeric() -> None:
    ids = ["policy-v1.0.10", "legacy", "policy-v1.0.9", "policy-v1.1.0"]

    assert sorted(ids, key=version_sort_key) == [
        "legacy",
        "policy-v1.0.9",
        "policy-v1.0.10",
        "policy-v1.1.0",
    ]


def test_next_version_id() -> None:
    assert next_version_id(["policy-v1.0.0", "policy-v1.0.9", "policy-v1.0.10"]) == "policy-v1.0.11"
    assert next_version_id(["policy-v2.1.0", "policy-v1.9.9"]) == "policy-v2.1.1"
    # Without a well-formed id the baseline is assumed.
    assert next_version_id([]) == "policy-v1.0.1"
    assert next_version_id(["draft-7", ""]) == "policy-v1.0.1"


def test_next_audit_id_is_sequential() -> None:
    assert next_audit_id(0) == "POL-AUD-0001"
    assert next_audit_id(41) == "POL-AUD-0042"


def test_audit_sequence_is_numeric() -> None:
    assert audit_sequence("POL-AUD-10000") > audit_sequence("POL-AUD-9999")
    assert audit_sequence("POL-AUD-0007") == 7
    assert audit_sequence("manual-entry") == -1


def test_config_fingerprint_ignores_version_label() -> None:
    relabeled = DEFAULT_POLICY_CONFIG.model_copy(update={"version": "policy-v9.9.9"})
    changed = DEFAULT_POLICY_CONFIG.model_copy(update={"max_trip_length_days": 10})

    assert config_fingerprint(relabeled) == config_fingerprint(DEFAULT_POLICY_CONFIG)
    assert config_fingerprint(changed) != config_fingerprint(DEFAULT_POLICY_CONFIG)


def test_simulate_policy_change_flags_newly_blocked_trips() -> None:
    proposed = DEFAULT_POLICY_CONFIG.model_copy(
        update={
            "version": "policy-v1.0.1",
            "max_budget_by_grade": {**DEFAULT_POLICY_CONFIG.max_budget_by_grade, "staff": 2000},
        }
    )
    trips = [
        TripPolicyInput(
            employee_grade="staff",
            trip_type="domestic",
            departure_date="2026-03-20",
            return_date="2026-03-22",
            travel_class="economy",
            estimated_cost=cost,
        )
        for cost in (1000, 2500)
    ]

    results = simulate_policy_change(DEFAULT_POLICY_CONFIG, proposed, trips, now=NOW)

    assert [result.level_changed for result in results] == [False, True]
    assert [result.newly_blocked for result in results] == [False, True]
    assert results[1].current.level == ComplianceLevel.COMPLIANT
    assert results[1].proposed.policy_version == "policy-v1.0.1"
