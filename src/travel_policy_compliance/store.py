"""Temporally versioned store for travel policy configurations.

The store is the single source of truth for every policy configuration over
time. It resolves which configuration is in force at a given instant, moves
versions through their lifecycle and appends one audit event per successful
transition.

Supersession is applied eagerly only for immediate activations: every other
active version (and every scheduled version already due) is retired at write
time. A scheduled activation leaves the currently active version untouched;
once its effective instant arrives, :meth:`PolicyVersionStore.get_active_version_at`
prefers it because the latest ``effective_from`` wins. A stored ``active``
status therefore does not by itself mean "in force now".
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime

from pydantic import ValidationError

from .locking import ReadWriteLock
from .logging import bind_context
from .models import (
    DEFAULT_POLICY_CONFIG,
    DEFAULT_POLICY_VERSION,
    PolicyAuditAction,
    PolicyAuditEvent,
    PolicyConfig,
    PolicyVersionRecord,
    PolicyVersionStatus,
    StoreErrorCode,
    StoreResult,
)
from .repository import InMemoryPolicyRepository, PolicyRepository
from .validation import (
    coerce_policy_config,
    describe_validation_error,
    is_non_empty_text,
    parse_instant,
    validate_policy_config,
)
from .versioning import audit_sequence, next_audit_id, next_version_id, version_sort_key

SYSTEM_ACTOR = "System"
BASELINE_CREATED_AT = datetime(2026, 2, 1, tzinfo=UTC)

_IN_FORCE_STATUSES = {PolicyVersionStatus.ACTIVE, PolicyVersionStatus.SCHEDULED}

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _clean_note(note: str | None) -> str | None:
    return note.strip() if is_non_empty_text(note) else None


def _effective_key(record: PolicyVersionRecord) -> tuple[datetime, tuple[int, int, int]]:
    # Equal effective instants resolve to the numerically higher version id.
    return (record.effective_from, version_sort_key(record.version_id))


def baseline_record(at: datetime, *, note: str = "Fallback baseline policy.") -> PolicyVersionRecord:
    """Build an active record carrying the built-in baseline configuration."""

    return PolicyVersionRecord(
        version_id=DEFAULT_POLICY_VERSION,
        status=PolicyVersionStatus.ACTIVE,
        created_at=at,
        created_by=SYSTEM_ACTOR,
        effective_from=at,
        activated_at=at,
        activated_by=SYSTEM_ACTOR,
        note=note,
        config=DEFAULT_POLICY_CONFIG.model_copy(deep=True),
    )


def resolve_active_version(
    records: Iterable[PolicyVersionRecord], instant: datetime
) -> PolicyVersionRecord:
    """Return the version in force at ``instant``.

    Among active or scheduled versions already effective, the latest
    ``effective_from`` wins. Otherwise fall back to a version flagged active,
    then to the oldest version, then to the built-in baseline.
    """

    records = list(records)
    candidates = [
        record
        for record in records
        if record.status in _IN_FORCE_STATUSES and record.effective_from <= instant
    ]
    if candidates:
        return max(candidates, key=_effective_key)

    flagged = [record for record in records if record.status == PolicyVersionStatus.ACTIVE]
    if flagged:
        return max(flagged, key=_effective_key)

    if records:
        return min(
            records,
            key=lambda record: (record.created_at, version_sort_key(record.version_id)),
        )

    return baseline_record(instant)


class PolicyVersionStore:
    """Lock-guarded lifecycle operations over a policy repository."""

    def __init__(
        self,
        repository: PolicyRepository | None = None,
        *,
        clock: Clock | None = None,
        seed_baseline: bool = False,
    ) -> None:
        self.repository: PolicyRepository = repository or InMemoryPolicyRepository()
        self._clock = clock or _utc_now
        self._lock = ReadWriteLock()
        self._log = bind_context(component="policy_store")
        if seed_baseline:
            self._seed_baseline()

    def _now(self) -> datetime:
        now = self._clock()
        return now if now.tzinfo is not None else now.replace(tzinfo=UTC)

    def _seed_baseline(self) -> None:
        with self._lock.write_locked():
            if self.repository.list_versions():
                return
            record = baseline_record(BASELINE_CREATED_AT, note="Initial baseline policy.")
            self.repository.save_versions([record])
            self._append_audit(
                at=BASELINE_CREATED_AT,
                actor_name=SYSTEM_ACTOR,
                action=PolicyAuditAction.ACTIVATE_POLICY,
                version_id=record.version_id,
                note=record.note,
            )
            self._log.info("policy_baseline_seeded", version_id=record.version_id)

    def _append_audit(
        self,
        *,
        at: datetime,
        actor_name: str,
        action: PolicyAuditAction,
        version_id: str,
        note: str | None,
    ) -> PolicyAuditEvent:
        event = PolicyAuditEvent(
            id=next_audit_id(len(self.repository.list_audit_events())),
            at=at,
            actor_name=actor_name,
            action=action,
            version_id=version_id,
            note=note,
        )
        self.repository.append_audit_event(event)
        return event

    # Reads

    def list_versions(self) -> list[PolicyVersionRecord]:
        """Return every version, newest ``created_at`` first."""

        with self._lock.read_locked():
            records = self.repository.list_versions()
        return sorted(
            records,
            key=lambda record: (record.created_at, version_sort_key(record.version_id)),
            reverse=True,
        )

    def list_audit_events(self) -> list[PolicyAuditEvent]:
        """Return every audit event, newest first."""

        with self._lock.read_locked():
            events = self.repository.list_audit_events()
        return sorted(
            events, key=lambda event: (event.at, audit_sequence(event.id)), reverse=True
        )

    def get_version(self, version_id: str) -> PolicyVersionRecord | None:
        if not is_non_empty_text(version_id):
            return None
        with self._lock.read_locked():
            return self.repository.get_version(version_id.strip())

    def get_active_version_at(self, instant: datetime | None = None) -> PolicyVersionRecord:
        """Resolve the version in force at ``instant`` (defaults to now)."""

        at = parse_instant(instant) if instant is not None else self._now()
        if at is None:
            at = self._now()
        with self._lock.read_locked():
            records = self.repository.list_versions()
        return resolve_active_version(records, at)

    def get_active_config_at(self, instant: datetime | None = None) -> PolicyConfig:
        return self.get_active_version_at(instant).config

    # Writes

    def create_draft(
        self,
        actor_name: str,
        config: PolicyConfig | Mapping[str, object],
        note: str | None = None,
    ) -> StoreResult:
        """Validate and store a new draft version."""

        if not is_non_empty_text(actor_name):
            return self._reject_draft("actor_name is required.")
        try:
            policy_config = coerce_policy_config(config)
        except ValidationError as exc:
            return self._reject_draft(describe_validation_error(exc))
        problem = validate_policy_config(policy_config)
        if problem is not None:
            return self._reject_draft(problem)

        actor = actor_name.strip()
        cleaned_note = _clean_note(note)
        with self._lock.write_locked():
            existing_ids = [record.version_id for record in self.repository.list_versions()]
            version_id = next_version_id(existing_ids)
            now = self._now()
            record = PolicyVersionRecord(
                version_id=version_id,
                status=PolicyVersionStatus.DRAFT,
                created_at=now,
                created_by=actor,
                effective_from=now,
                note=cleaned_note,
                config=policy_config.model_copy(update={"version": version_id}),
            )
            self.repository.save_versions([record])
            self._append_audit(
                at=now,
                actor_name=actor,
                action=PolicyAuditAction.CREATE_DRAFT,
                version_id=version_id,
                note=cleaned_note,
            )

        self._log.info("policy_draft_created", version_id=version_id, actor=actor)
        return StoreResult.success(record)

    def _reject_draft(self, message: str) -> StoreResult:
        self._log.info("policy_draft_rejected", reason=message)
        return StoreResult.failure(StoreErrorCode.VALIDATION_FAILED, message)

    def activate_version(
        self,
        version_id: str,
        actor_name: str,
        effective_from: str | datetime | None = None,
        note: str | None = None,
    ) -> StoreResult:
        """Activate a version now or schedule it for a future instant."""

        if not is_non_empty_text(version_id):
            return self._reject_activation(
                StoreErrorCode.VALIDATION_FAILED, "version_id is required.", version_id
            )
        if not is_non_empty_text(actor_name):
            return self._reject_activation(
                StoreErrorCode.VALIDATION_FAILED, "actor_name is required.", version_id
            )
        requested_from: datetime | None = None
        if effective_from is not None:
            requested_from = parse_instant(effective_from)
            if requested_from is None:
                return self._reject_activation(
                    StoreErrorCode.VALIDATION_FAILED, "effective_from is invalid.", version_id
                )

        target_id = version_id.strip()
        actor = actor_name.strip()
        cleaned_note = _clean_note(note)
        with self._lock.write_locked():
            target = self.repository.get_version(target_id)
            if target is None:
                return self._reject_activation(
                    StoreErrorCode.VERSION_NOT_FOUND,
                    f"Policy version '{target_id}' not found.",
                    target_id,
                )
            if target.status == PolicyVersionStatus.RETIRED:
                return self._reject_activation(
                    StoreErrorCode.VALIDATION_FAILED,
                    "Retired versions cannot be reactivated; create a new draft instead.",
                    target_id,
                )

            now = self._now()
            effective_at = requested_from or now
            immediate = effective_at <= now

            retired: list[PolicyVersionRecord] = []
            if immediate:
                for record in self.repository.list_versions():
                    if record.version_id == target_id:
                        continue
                    superseded = record.status == PolicyVersionStatus.ACTIVE or (
                        record.status == PolicyVersionStatus.SCHEDULED
                        and record.effective_from <= effective_at
                    )
                    if superseded:
                        record.status = PolicyVersionStatus.RETIRED
                        retired.append(record)
                target.status = PolicyVersionStatus.ACTIVE
            else:
                target.status = PolicyVersionStatus.SCHEDULED

            target.effective_from = effective_at
            target.activated_at = now
            target.activated_by = actor
            if cleaned_note is not None:
                target.note = cleaned_note

            self.repository.save_versions([*retired, target])
            audit_note = f"effectiveFrom={effective_at.isoformat()}"
            if cleaned_note is not None:
                audit_note = f"{audit_note}; {cleaned_note}"
            self._append_audit(
                at=now,
                actor_name=actor,
                action=PolicyAuditAction.ACTIVATE_POLICY,
                version_id=target_id,
                note=audit_note,
            )

        for record in retired:
            self._log.info(
                "policy_version_retired",
                version_id=record.version_id,
                superseded_by=target_id,
            )
        self._log.info(
            "policy_version_activated" if immediate else "policy_version_scheduled",
            version_id=target_id,
            actor=actor,
            effective_from=effective_at.isoformat(),
        )
        return StoreResult.success(target)

    def _reject_activation(
        self, code: StoreErrorCode, message: str, version_id: object
    ) -> StoreResult:
        self._log.info(
            "policy_activation_rejected",
            code=code.value,
            version_id=version_id,
            reason=message,
        )
        return StoreResult.failure(code, message)
