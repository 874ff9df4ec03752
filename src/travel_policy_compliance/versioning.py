"""Identifier and change-impact helpers for policy versions.

The helpers in this module cover the policy-as-code lifecycle concerns that
sit beside the store:

* Parsing and incrementing ``policy-vMAJOR.MINOR.PATCH`` identifiers
* Sequential audit identifiers
* Deterministic configuration fingerprints
* Simulation helpers to replay hypothetical trips against a prospective
  configuration before it is activated
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from hashlib import sha256

from .evaluator import evaluate_trip_policy
from .models import ComplianceLevel, PolicyConfig, PolicyEvaluationResult, TripPolicyInput

_VERSION_PATTERN = re.compile(r"^policy-v(\d+)\.(\d+)\.(\d+)$", re.IGNORECASE)


@dataclass(frozen=True, order=True)
class PolicyVersionId:
    """Semantic policy identifier ordered numerically by its triple."""

    major: int
    minor: int
    patch: int

    @classmethod
    def parse(cls, version_id: str) -> PolicyVersionId | None:
        match = _VERSION_PATTERN.match(version_id.strip())
        if match is None:
            return None
        major, minor, patch = (int(part) for part in match.groups())
        return cls(major=major, minor=minor, patch=patch)

    @property
    def label(self) -> str:
        return f"policy-v{self.major}.{self.minor}.{self.patch}"

    def bump_patch(self) -> PolicyVersionId:
        return PolicyVersionId(self.major, self.minor, self.patch + 1)


_BASELINE_VERSION = PolicyVersionId(1, 0, 0)


def version_sort_key(version_id: str) -> tuple[int, int, int]:
    """Sort key placing malformed identifiers below every well-formed one."""

    parsed = PolicyVersionId.parse(version_id)
    if parsed is None:
        return (-1, -1, -1)
    return (parsed.major, parsed.minor, parsed.patch)


def next_version_id(existing_ids: Iterable[str]) -> str:
    """Return the identifier following the greatest well-formed existing id.

    Malformed identifiers are ignored. Without any well-formed identifier the
    baseline ``policy-v1.0.0`` is assumed to exist.
    """

    parsed = [PolicyVersionId.parse(version_id) for version_id in existing_ids]
    candidates = [version for version in parsed if version is not None]
    latest = max(candidates, default=_BASELINE_VERSION)
    return latest.bump_patch().label


def next_audit_id(existing_count: int) -> str:
    return f"POL-AUD-{existing_count + 1:04d}"


def audit_sequence(audit_id: str) -> int:
    """Return the numeric suffix of an audit id, or -1 when it has none."""

    _, _, suffix = audit_id.rpartition("-")
    return int(suffix) if suffix.isdigit() else -1


def config_fingerprint(config: PolicyConfig) -> str:
    """Return a deterministic hash of the editable configuration fields."""

    normalized = json.dumps(
        config.editable(), sort_keys=True, separators=(",", ":"), default=str
    ).encode("utf-8")
    return sha256(normalized).hexdigest()


@dataclass
class PolicyChangeSimulationResult:
    trip: TripPolicyInput
    current: PolicyEvaluationResult
    proposed: PolicyEvaluationResult

    @property
    def level_changed(self) -> bool:
        return self.current.level != self.proposed.level

    @property
    def newly_blocked(self) -> bool:
        return (
            self.proposed.level == ComplianceLevel.BLOCKED
            and self.current.level != ComplianceLevel.BLOCKED
        )


def simulate_policy_change(
    current: PolicyConfig,
    proposed: PolicyConfig,
    trips: Iterable[TripPolicyInput],
    *,
    now: datetime | None = None,
) -> list[PolicyChangeSimulationResult]:
    """Replay trips against two configurations to preview a policy change."""

    simulations: list[PolicyChangeSimulationResult] = []
    for trip in trips:
        simulations.append(
            PolicyChangeSimulationResult(
                trip=trip,
                current=evaluate_trip_policy(trip, current, now=now),
                proposed=evaluate_trip_policy(trip, proposed, now=now),
            )
        )
    return simulations
