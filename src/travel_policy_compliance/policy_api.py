"""Transport-agnostic handlers for policy administration and simulation.

Each handler takes the store plus a decoded request payload and returns an
:class:`ApiResponse` holding the status code and JSON-ready body, so any web
framework can mount them without this package depending on one.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from .evaluator import evaluate_trip_policy
from .models import (
    EmployeeGrade,
    StoreErrorCode,
    StoreResult,
    TravelClass,
    TripPolicyInput,
    TripType,
)
from .store import PolicyVersionStore
from .validation import describe_validation_error, is_non_empty_text, parse_instant

__all__ = [
    "ApiResponse",
    "PolicySimulationRequest",
    "activate_policy_version",
    "create_policy_version",
    "get_active_policy",
    "list_policy_audit",
    "list_policy_versions",
    "simulate_policy",
]

_STATUS_BY_ERROR = {
    StoreErrorCode.VALIDATION_FAILED: 422,
    StoreErrorCode.VERSION_NOT_FOUND: 404,
}


class ApiResponse(BaseModel):
    """Status code and JSON-ready body returned by every handler."""

    status_code: int = Field(..., description="HTTP-equivalent status code")
    body: Any = Field(..., description="JSON-serializable response body")


class PolicySimulationRequest(BaseModel):
    """Hypothetical trip parameters for a what-if evaluation."""

    employee_grade: str | None = None
    trip_type: str | None = None
    departure_date: str | None = None
    return_date: str | None = None
    travel_class: str | None = None
    estimated_cost: float | None = None
    currency: str = "SAR"
    policy_version_id: str | None = None
    now: datetime | None = None


def _error(status_code: int, code: str, message: str) -> ApiResponse:
    return ApiResponse(status_code=status_code, body={"code": code, "message": message})


def _validation_error(message: str) -> ApiResponse:
    return _error(422, StoreErrorCode.VALIDATION_FAILED.value, message)


def _store_response(result: StoreResult, success_status: int) -> ApiResponse:
    if result.error is not None:
        status = _STATUS_BY_ERROR.get(result.error.code, 400)
        return _error(status, result.error.code.value, result.error.message)
    record = result.result.model_dump(mode="json") if result.result is not None else None
    return ApiResponse(status_code=success_status, body=record)


def _valid_choice(value: str | None, choices: type[Enum]) -> bool:
    return value is not None and value in {member.value for member in choices}


def simulate_policy(store: PolicyVersionStore, payload: Mapping[str, object]) -> ApiResponse:
    """Evaluate hypothetical trip parameters without touching the store."""

    try:
        request = PolicySimulationRequest.model_validate(dict(payload))
    except ValidationError as exc:
        return _validation_error(describe_validation_error(exc))

    if not _valid_choice(request.employee_grade, EmployeeGrade):
        return _validation_error("employee_grade is invalid.")
    if not _valid_choice(request.trip_type, TripType):
        return _validation_error("trip_type is invalid.")
    if not _valid_choice(request.travel_class, TravelClass):
        return _validation_error("travel_class is invalid.")
    cost = request.estimated_cost
    if cost is None or not math.isfinite(cost) or cost <= 0:
        return _validation_error("estimated_cost must be greater than zero.")
    if not request.departure_date or not request.return_date:
        return _validation_error("departure_date and return_date are required.")

    if is_non_empty_text(request.policy_version_id):
        record = store.get_version(request.policy_version_id or "")
        if record is None:
            return _validation_error("policy_version_id is invalid.")
        config = record.config
    else:
        config = store.get_active_config_at(request.now)

    trip = TripPolicyInput(
        employee_grade=EmployeeGrade(request.employee_grade),
        trip_type=TripType(request.trip_type),
        departure_date=request.departure_date,
        return_date=request.return_date,
        travel_class=TravelClass(request.travel_class),
        estimated_cost=cost,
        currency=request.currency,
    )
    evaluation = evaluate_trip_policy(trip, config, request.now)
    return ApiResponse(status_code=200, body=evaluation.model_dump(mode="json"))


def list_policy_versions(store: PolicyVersionStore) -> ApiResponse:
    versions = [record.model_dump(mode="json") for record in store.list_versions()]
    return ApiResponse(status_code=200, body=versions)


def list_policy_audit(store: PolicyVersionStore) -> ApiResponse:
    events = [event.model_dump(mode="json") for event in store.list_audit_events()]
    return ApiResponse(status_code=200, body=events)


def get_active_policy(store: PolicyVersionStore, at: str | datetime | None = None) -> ApiResponse:
    instant = None
    if at is not None:
        instant = parse_instant(at)
        if instant is None:
            return _validation_error("at is invalid.")
    record = store.get_active_version_at(instant)
    return ApiResponse(status_code=200, body=record.model_dump(mode="json"))


def create_policy_version(
    store: PolicyVersionStore, actor_name: str, payload: Mapping[str, object]
) -> ApiResponse:
    """Create a draft from ``{"config": {...}, "note": "..."}``."""

    config = payload.get("config")
    if not isinstance(config, Mapping):
        return _validation_error("config is required.")
    note = payload.get("note")
    result = store.create_draft(
        actor_name, config, note=note if isinstance(note, str) else None
    )
    return _store_response(result, success_status=201)


def activate_policy_version(
    store: PolicyVersionStore,
    version_id: str,
    actor_name: str,
    payload: Mapping[str, object] | None = None,
) -> ApiResponse:
    """Activate or schedule a version from ``{"effective_from": ..., "note": ...}``."""

    if not is_non_empty_text(version_id):
        return _validation_error("version_id is required.")

    body = payload or {}
    effective_from = body.get("effective_from")
    if effective_from is not None and not isinstance(effective_from, (str, datetime)):
        return _validation_error("effective_from is invalid.")
    note = body.get("note")
    result = store.activate_version(
        version_id,
        actor_name,
        effective_from=effective_from,
        note=note if isinstance(note, str) else None,
    )
    return _store_response(result, success_status=200)
