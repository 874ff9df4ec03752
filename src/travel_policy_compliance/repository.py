"""Backing storage for policy versions and their audit trail.

Repositories only persist what the store hands them; lifecycle rules and
locking live in :mod:`travel_policy_compliance.store`. Every read returns
copies so callers can never mutate stored state in place.
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from .models import PolicyAuditEvent, PolicyVersionRecord


class PolicyRepository(Protocol):
    """Persistence interface used by the policy version store."""

    def list_versions(self) -> list[PolicyVersionRecord]: ...

    def get_version(self, version_id: str) -> PolicyVersionRecord | None: ...

    def save_versions(self, records: Iterable[PolicyVersionRecord]) -> None: ...

    def list_audit_events(self) -> list[PolicyAuditEvent]: ...

    def append_audit_event(self, event: PolicyAuditEvent) -> None: ...


class InMemoryPolicyRepository:
    """Process-local repository backed by a dict and a list."""

    def __init__(self) -> None:
        self._versions: dict[str, PolicyVersionRecord] = {}
        self._audit_events: list[PolicyAuditEvent] = []

    def list_versions(self) -> list[PolicyVersionRecord]:
        return [record.model_copy(deep=True) for record in self._versions.values()]

    def get_version(self, version_id: str) -> PolicyVersionRecord | None:
        record = self._versions.get(version_id)
        return record.model_copy(deep=True) if record is not None else None

    def save_versions(self, records: Iterable[PolicyVersionRecord]) -> None:
        for record in records:
            self._versions[record.version_id] = record.model_copy(deep=True)

    def list_audit_events(self) -> list[PolicyAuditEvent]:
        return list(self._audit_events)

    def append_audit_event(self, event: PolicyAuditEvent) -> None:
        self._audit_events.append(event)


class JsonFilePolicyRepository:
    """Directory-backed repository.

    Versions live in ``versions.json`` and are rewritten atomically on every
    save. Audit events are appended one per line to ``audit.jsonl`` and the
    file is never rewritten.
    """

    VERSIONS_FILENAME = "versions.json"
    AUDIT_FILENAME = "audit.jsonl"

    def __init__(self, base_path: str | Path | None = None):
        default_root = Path(os.getenv("TRAVEL_POLICY_STORE_DIR", Path.cwd() / "policy_store"))
        self.base_path = Path(base_path) if base_path is not None else default_root
        self.base_path.mkdir(parents=True, exist_ok=True)

    @property
    def versions_path(self) -> Path:
        return self.base_path / self.VERSIONS_FILENAME

    @property
    def audit_path(self) -> Path:
        return self.base_path / self.AUDIT_FILENAME

    def _read_versions(self) -> dict[str, PolicyVersionRecord]:
        if not self.versions_path.exists():
            return {}
        payload = json.loads(self.versions_path.read_text(encoding="utf-8"))
        records = [PolicyVersionRecord.model_validate(item) for item in payload]
        return {record.version_id: record for record in records}

    def list_versions(self) -> list[PolicyVersionRecord]:
        return list(self._read_versions().values())

    def get_version(self, version_id: str) -> PolicyVersionRecord | None:
        return self._read_versions().get(version_id)

    def save_versions(self, records: Iterable[PolicyVersionRecord]) -> None:
        current = self._read_versions()
        for record in records:
            current[record.version_id] = record
        serialized = [record.model_dump(mode="json") for record in current.values()]
        payload = json.dumps(serialized, indent=2, sort_keys=True)
        temp_path = self.versions_path.with_suffix(".json.tmp")
        temp_path.write_text(payload, encoding="utf-8")
        os.replace(temp_path, self.versions_path)

    def list_audit_events(self) -> list[PolicyAuditEvent]:
        if not self.audit_path.exists():
            return []
        events: list[PolicyAuditEvent] = []
        with self.audit_path.open(encoding="utf-8") as handle:
            for line in handle:
                if line.strip():
                    events.append(PolicyAuditEvent.model_validate_json(line))
        return events

    def append_audit_event(self, event: PolicyAuditEvent) -> None:
        line = json.dumps(event.model_dump(mode="json"), separators=(",", ":"), sort_keys=True)
        with self.audit_path.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")
