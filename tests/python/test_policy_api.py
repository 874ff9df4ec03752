"""Tests for the transport-agnostic policy handlers."""

from __future__ import annotations

from datetime import timedelta

import pytest

from travel_policy_compliance import DEFAULT_POLICY_CONFIG
from travel_policy_compliance.policy_api import (
    activate_policy_version,
    create_policy_version,
    get_active_policy,
    list_policy_audit,
    list_policy_versions,
    simulate_policy,
)


@pytest.fixture()
def trip_payload() -> dict[str, object]:
    return {
        "employee_grade": "staff",
        "trip_type": "domestic",
        "departure_date": "2026-03-20",
        "return_date": "2026-03-24",
        "travel_class": "economy",
        "estimated_cost": 1000,
        "now": "2026-03-10T09:30:00Z",
    }


class TestSimulatePolicy:
    def test_evaluates_against_active_policy(self, seeded_store, trip_payload) -> None:
        response = simulate_policy(seeded_store, trip_payload)

        assert response.status_code == 200
        assert response.body["level"] == "compliant"
        assert response.body["policy_version"] == "policy-v1.0.0"
        assert response.body["findings"][0]["code"] == "policy_compliant"

    def test_does_not_modify_store(self, seeded_store, trip_payload) -> None:
        simulate_policy(seeded_store, trip_payload)

        assert len(seeded_store.list_versions()) == 1
        assert len(seeded_store.list_audit_events()) == 1

    def test_evaluates_against_requested_draft(
        self, seeded_store, config_factory, trip_payload
    ) -> None:
        strict = config_factory(
            max_budget_by_grade={"staff": 800, "manager": 7500, "director": 14000, "executive": 30000}
        )
        version_id = seeded_store.create_draft("Policy Admin", strict).result.version_id

        response = simulate_policy(seeded_store, {**trip_payload, "policy_version_id": version_id})

        assert response.body["level"] == "blocked"
        assert response.body["policy_version"] == version_id
        assert [finding["code"] for finding in response.body["findings"]] == [
            "budget_cap_exceeded"
        ]

    @pytest.mark.parametrize(
        ("override", "message"),
        [
            ({"employee_grade": "intern"}, "employee_grade is invalid."),
            ({"employee_grade": None}, "employee_grade is invalid."),
            ({"trip_type": "orbital"}, "trip_type is invalid."),
            ({"travel_class": "cargo"}, "travel_class is invalid."),
            ({"estimated_cost": 0}, "estimated_cost must be greater than zero."),
            ({"estimated_cost": None}, "estimated_cost must be greater than zero."),
            ({"return_date": ""}, "departure_date and return_date are required."),
            ({"policy_version_id": "policy-v7.0.0"}, "policy_version_id is invalid."),
        ],
    )
    def test_rejects_invalid_requests(self, seeded_store, trip_payload, override, message) -> None:
        response = simulate_policy(seeded_store, {**trip_payload, **override})

        assert response.status_code == 422
        assert response.body == {"code": "validation_failed", "message": message}

    def test_malformed_dates_are_findings_not_errors(self, seeded_store, trip_payload) -> None:
        response = simulate_policy(seeded_store, {**trip_payload, "departure_date": "soon"})

        assert response.status_code == 200
        assert response.body["findings"][0]["code"] == "invalid_dates"


class TestVersionHandlers:
    def test_create_returns_201(self, seeded_store) -> None:
        response = create_policy_version(
            seeded_store,
            "Policy Admin",
            {"config": DEFAULT_POLICY_CONFIG.editable(), "note": "Refresh"},
        )

        assert response.status_code == 201
        assert response.body["version_id"] == "policy-v1.0.1"
        assert response.body["status"] == "draft"
        assert response.body["note"] == "Refresh"

    def test_create_requires_config(self, seeded_store) -> None:
        response = create_policy_version(seeded_store, "Policy Admin", {"note": "no config"})

        assert response.status_code == 422
        assert response.body["message"] == "config is required."

    def test_create_maps_validation_failure(self, seeded_store) -> None:
        config = {**DEFAULT_POLICY_CONFIG.editable(), "budget_warning_threshold": 1.5}

        response = create_policy_version(seeded_store, "Policy Admin", {"config": config})

        assert response.status_code == 422
        assert response.body["code"] == "validation_failed"

    def test_activate_returns_200(self, seeded_store, clock) -> None:
        created = create_policy_version(
            seeded_store, "Policy Admin", {"config": DEFAULT_POLICY_CONFIG.editable()}
        )
        effective = (clock.now + timedelta(days=1)).isoformat()

        response = activate_policy_version(
            seeded_store,
            created.body["version_id"],
            "Approver",
            {"effective_from": effective},
        )

        assert response.status_code == 200
        assert response.body["status"] == "scheduled"

    def test_activate_unknown_version_returns_404(self, seeded_store) -> None:
        response = activate_policy_version(seeded_store, "policy-v3.0.0", "Approver")

        assert response.status_code == 404
        assert response.body["code"] == "version_not_found"

    def test_activate_blank_id_returns_422(self, seeded_store) -> None:
        response = activate_policy_version(seeded_store, "  ", "Approver")

        assert response.status_code == 422
        assert response.body == {
            "code": "validation_failed",
            "message": "version_id is required.",
        }

    def test_activate_rejects_non_text_effective_from(self, seeded_store) -> None:
        response = activate_policy_version(
            seeded_store, "policy-v1.0.0", "Approver", {"effective_from": 12}
        )

        assert response.status_code == 422
        assert response.body["message"] == "effective_from is invalid."


class TestReadHandlers:
    def test_list_versions_and_audit(self, seeded_store) -> None:
        assert list_policy_versions(seeded_store).body[0]["version_id"] == "policy-v1.0.0"
        assert list_policy_audit(seeded_store).body[0]["id"] == "POL-AUD-0001"

    def test_active_policy_at_instant(self, seeded_store) -> None:
        response = get_active_policy(seeded_store, "2026-02-15T00:00:00Z")

        assert response.status_code == 200
        assert response.body["version_id"] == "policy-v1.0.0"

    def test_active_policy_rejects_bad_instant(self, seeded_store) -> None:
        response = get_active_policy(seeded_store, "yesterday-ish")

        assert response.status_code == 422
        assert response.body["message"] == "at is invalid."
