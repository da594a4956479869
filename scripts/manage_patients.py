"""Command-line access to the patient registry backed by the JSON file store."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Sequence

from repositories.patient_store import StorageError
from services.patient_registry.factory import build_store
from services.patient_registry.observability import cli_request_context, scrub_for_logging
from services.patient_registry.seeding import seed_registry
from services.patient_registry.service import PatientRegistryService
from shared.config.settings import get_settings
from shared.models.result import Err, Result
from shared.observability.logger import configure_logging, get_logger

logger = get_logger("scripts.manage_patients")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Add, inspect, update and delete patient records."
    )
    parser.add_argument(
        "--storage-path",
        dest="storage_path",
        default=None,
        help="JSON file holding the patient records (default: PATIENT_REGISTRY_STORAGE_PATH).",
    )
    subcommands = parser.add_subparsers(dest="command", required=True)

    add = subcommands.add_parser("add", help="Add a new active patient.")
    add.add_argument("first_name")
    add.add_argument("last_name")
    add.add_argument("birth_date", type=int)

    get = subcommands.add_parser("get", help="Show a single patient.")
    get.add_argument("patient_id")

    listing = subcommands.add_parser("list", help="List patients.")
    listing.add_argument("--status", default=None, help="Only list patients with this status.")

    update = subcommands.add_parser("update", help="Replace a patient's name and birth date.")
    update.add_argument("patient_id")
    update.add_argument("first_name")
    update.add_argument("last_name")
    update.add_argument("birth_date", type=int)

    set_status = subcommands.add_parser("set-status", help="Change a patient's status.")
    set_status.add_argument("patient_id")
    set_status.add_argument("status")

    delete = subcommands.add_parser("delete", help="Delete a patient.")
    delete.add_argument("patient_id")

    seed = subcommands.add_parser("seed", help="Add synthetic patients generated with Faker.")
    seed.add_argument("--count", type=int, default=10)
    seed.add_argument("--seed", type=int, default=None, help="Seed for reproducible output.")
    seed.add_argument(
        "--inactive-ratio",
        dest="inactive_ratio",
        type=float,
        default=0.0,
        help="Fraction of seeded patients switched to inactive.",
    )
    return parser


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, list):
        return [_to_jsonable(item) for item in value]
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json", by_alias=True)
    return value


def _dispatch(service: PatientRegistryService, args: argparse.Namespace) -> Result[Any]:
    command = args.command
    if command == "add":
        return service.add_patient(args.first_name, args.last_name, args.birth_date)
    if command == "get":
        return service.get_patient(args.patient_id)
    if command == "list":
        if args.status is None:
            return service.get_patients()
        return service.get_patients_by_status(args.status)
    if command == "update":
        return service.update_patient(
            args.patient_id, args.first_name, args.last_name, args.birth_date
        )
    if command == "set-status":
        return service.update_patient_status(args.patient_id, args.status)
    if command == "delete":
        return service.delete_patient(args.patient_id)
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(service_name=settings.service_name, level=settings.log_level, sink=sys.stderr)

    overrides: dict[str, Any] = {"storage_backend": "json"}
    if args.storage_path:
        overrides["storage_path"] = args.storage_path
    try:
        store = build_store(settings.model_copy(update=overrides))
    except StorageError as exc:
        print(json.dumps({"error": "storage", "message": str(exc)}), file=sys.stderr)
        return 1
    service = PatientRegistryService(store)

    with cli_request_context(command=args.command):
        logger.info("cli_command", arguments=scrub_for_logging(vars(args)))

        if args.command == "seed":
            try:
                created = seed_registry(
                    service, args.count, seed=args.seed, inactive_ratio=args.inactive_ratio
                )
            except ValueError as exc:
                print(json.dumps({"error": "seed_failed", "message": str(exc)}), file=sys.stderr)
                return 1
            print(json.dumps(_to_jsonable(created), indent=2))
            return 0

        result = _dispatch(service, args)

    if isinstance(result, Err):
        print(
            json.dumps({"error": result.kind.value, "message": result.message}),
            file=sys.stderr,
        )
        return 1

    print(json.dumps(_to_jsonable(result.value), indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
