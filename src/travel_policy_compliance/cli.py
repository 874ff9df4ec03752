"""Command-line interface for managing and simulating travel policies."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable
from pathlib import Path

from pydantic import ValidationError

from . import policy_api
from .config import StoreSettings, build_store, load_policy_config_file
from .logging import configure_logging
from .policy_api import ApiResponse
from .store import PolicyVersionStore

_ACTOR_HELP = "Name recorded in the audit trail."


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="travel-policy",
        description="Manage versioned travel policies and simulate trip compliance.",
    )
    parser.add_argument(
        "--store-dir",
        type=Path,
        default=None,
        help="Directory holding the policy store (defaults to TRAVEL_POLICY_STORE_DIR).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("versions", help="List policy versions, newest first.")
    subparsers.add_parser("audit", help="List policy audit events, newest first.")

    active = subparsers.add_parser("active", help="Show the version in force.")
    active.add_argument("--at", default=None, help="ISO 8601 instant to resolve at.")

    create = subparsers.add_parser("create-draft", help="Create a draft from a YAML config.")
    create.add_argument("config_yaml", type=Path, help="Path to the policy YAML file.")
    create.add_argument("--actor", required=True, help=_ACTOR_HELP)
    create.add_argument("--note", default=None, help="Optional change note.")

    activate = subparsers.add_parser("activate", help="Activate or schedule a version.")
    activate.add_argument("version_id", help="Version identifier, e.g. policy-v1.0.1.")
    activate.add_argument("--actor", required=True, help=_ACTOR_HELP)
    activate.add_argument(
        "--effective-from", default=None, help="ISO 8601 instant; defaults to now."
    )
    activate.add_argument("--note", default=None, help="Optional change note.")

    simulate = subparsers.add_parser("simulate", help="Evaluate a trip JSON file.")
    simulate.add_argument("trip_json", type=Path, help="Path to the trip parameters JSON.")
    simulate.add_argument(
        "--version-id", default=None, help="Evaluate against this version instead of the active one."
    )
    simulate.add_argument("--now", default=None, help="ISO 8601 evaluation instant.")
    return parser


def _load_json(path: Path) -> dict[str, object]:
    try:
        raw_data = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        msg = f"Input file not found: {path}"
        raise FileNotFoundError(msg) from exc
    except OSError as exc:
        msg = f"Unable to read input file: {path}"
        raise OSError(msg) from exc

    try:
        payload = json.loads(raw_data)
    except json.JSONDecodeError as exc:
        msg = f"Invalid JSON in input file: {path}"
        raise ValueError(msg) from exc
    if not isinstance(payload, dict):
        raise ValueError(f"Expected a JSON object in input file: {path}")
    return payload


def _create_draft(store: PolicyVersionStore, args: argparse.Namespace) -> ApiResponse:
    if not args.config_yaml.exists():
        raise FileNotFoundError(f"Input file not found: {args.config_yaml}")
    config = load_policy_config_file(args.config_yaml)
    payload = {"config": config.editable(), "note": args.note}
    return policy_api.create_policy_version(store, args.actor, payload)


def _simulate(store: PolicyVersionStore, args: argparse.Namespace) -> ApiResponse:
    payload = _load_json(args.trip_json)
    if args.version_id:
        payload["policy_version_id"] = args.version_id
    if args.now:
        payload["now"] = args.now
    return policy_api.simulate_policy(store, payload)


_COMMANDS: dict[str, Callable[[PolicyVersionStore, argparse.Namespace], ApiResponse]] = {
    "versions": lambda store, args: policy_api.list_policy_versions(store),
    "audit": lambda store, args: policy_api.list_policy_audit(store),
    "active": lambda store, args: policy_api.get_active_policy(store, args.at),
    "create-draft": _create_draft,
    "activate": lambda store, args: policy_api.activate_policy_version(
        store,
        args.version_id,
        args.actor,
        {"effective_from": args.effective_from, "note": args.note},
    ),
    "simulate": _simulate,
}


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    settings = StoreSettings.from_environment()
    if args.store_dir is not None:
        settings = settings.model_copy(update={"store_dir": args.store_dir})
    configure_logging(settings.log_level)

    try:
        store = build_store(settings)
        response = _COMMANDS[args.command](store, args)
    except ValidationError as exc:
        print("Error: policy configuration validation failed.", file=sys.stderr)
        print(str(exc), file=sys.stderr)
        return 1
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    rendered = json.dumps(response.body, indent=2, sort_keys=True)
    if response.status_code >= 400:
        print(f"Error: {rendered}", file=sys.stderr)
        return 1
    print(rendered)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
