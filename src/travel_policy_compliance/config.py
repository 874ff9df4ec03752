"""Configuration loading for policy configs and store settings."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from .models import PolicyConfig
from .repository import InMemoryPolicyRepository, JsonFilePolicyRepository, PolicyRepository
from .store import PolicyVersionStore

POLICY_CONFIG_ENV = "TRAVEL_POLICY_CONFIG"
STORE_DIR_ENV = "TRAVEL_POLICY_STORE_DIR"
SEED_BASELINE_ENV = "TRAVEL_POLICY_SEED_BASELINE"
LOG_LEVEL_ENV = "TRAVEL_POLICY_LOG_LEVEL"

_TRUTHY = {"1", "true", "yes", "on"}


def _default_policy_path() -> Path | None:
    for parent in Path(__file__).resolve().parents:
        candidate = parent / "config" / "travel_policy.yaml"
        if candidate.exists():
            return candidate
    return None


def load_policy_config_yaml(content: str) -> PolicyConfig:
    """Parse a policy configuration from YAML.

    The document may hold the config fields at the top level or under a
    ``policy`` key.
    """

    data = yaml.safe_load(content) or {}
    if not isinstance(data, dict):
        raise ValueError("Policy configuration must be a mapping")
    payload = data.get("policy", data)
    return PolicyConfig.model_validate(payload)


def load_policy_config_file(path: str | Path | None = None) -> PolicyConfig:
    target_path = Path(path) if path is not None else _default_policy_path()
    if target_path is None:
        raise FileNotFoundError("No travel_policy.yaml configuration file found")
    return load_policy_config_yaml(target_path.read_text(encoding="utf-8"))


def load_policy_config_environment(env_var: str = POLICY_CONFIG_ENV) -> PolicyConfig:
    content = os.getenv(env_var)
    if not content:
        raise ValueError(f"Environment variable '{env_var}' is not set or empty")
    return load_policy_config_yaml(content)


class StoreSettings(BaseModel):
    """Runtime settings for building a policy version store."""

    store_dir: Path | None = Field(
        default=None, description="Directory for the JSON repository; None keeps state in memory"
    )
    seed_baseline: bool = Field(
        default=True, description="Seed the built-in baseline into an empty store"
    )
    log_level: str = Field(default="INFO", description="Standard logging level name")

    @classmethod
    def from_environment(cls) -> StoreSettings:
        store_dir = os.getenv(STORE_DIR_ENV)
        seed_raw = os.getenv(SEED_BASELINE_ENV)
        return cls(
            store_dir=Path(store_dir) if store_dir else None,
            seed_baseline=seed_raw.strip().lower() in _TRUTHY if seed_raw else True,
            log_level=os.getenv(LOG_LEVEL_ENV, "INFO").upper(),
        )


def build_store(settings: StoreSettings | None = None) -> PolicyVersionStore:
    """Create a store on the repository selected by the settings."""

    resolved = settings or StoreSettings.from_environment()
    repository: PolicyRepository
    if resolved.store_dir is not None:
        repository = JsonFilePolicyRepository(resolved.store_dir)
    else:
        repository = InMemoryPolicyRepository()
    return PolicyVersionStore(repository, seed_baseline=resolved.seed_baseline)
