"""
Seed script for the RoadBlock Alerts incident store.

Usage:
  - Dry run (default): python scripts/seed_db.py
  - Apply to configured backend: python scripts/seed_db.py --apply
  - Use a different seed file: python scripts/seed_db.py --apply --file demo.json

Behavior:
  - Loads `db_seed.json` from the working directory (a list of incident
    objects in the POST /api/incidents shape, each with a "userId").
  - Validates every entry with IncidentCreate and reports it through
    IncidentService, so seeded incidents start active with zero votes.

NOTE: When applying to real Firestore, ensure `FIREBASE_CREDENTIALS_PATH` is set
and `STORAGE_BACKEND=firestore`.
"""

import argparse
import asyncio
import json
import os

from pydantic import ValidationError

from roadblock.models.incident import IncidentCreate
from roadblock.services.incident_service import IncidentService
from roadblock.services.storage import get_repository


def load_seed(path: str) -> list:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


async def write_to_store(seed: list, apply: bool = False) -> int:
    service = IncidentService(get_repository()) if apply else None
    written = 0
    for index, entry in enumerate(seed):
        user_id = entry.get("userId") or "seed"
        try:
            payload = IncidentCreate.model_validate(entry)
        except ValidationError as e:
            print(f"Skipping entry {index}: {e.error_count()} validation error(s)")
            continue
        print(f"Preparing: {payload.type.value} at ({payload.latitude}, {payload.longitude}) by {user_id}")
        if not apply:
            continue
        incident = await service.report_incident(user_id, payload)
        print(f"Wrote: incidents/{incident.id}")
        written += 1
    return written


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write seed to the store instead of dry-run")
    parser.add_argument("--file", default="db_seed.json", help="Seed file path")
    args = parser.parse_args()

    seed_path = os.path.join(os.getcwd(), args.file)
    if not os.path.exists(seed_path):
        print(f"Seed file not found: {seed_path}")
        return

    written = asyncio.run(write_to_store(load_seed(seed_path), apply=args.apply))

    if args.apply:
        print(f"Seeding completed: {written} incident(s).")
    else:
        print("Dry run complete. Re-run with --apply to write to the store.")


if __name__ == "__main__":
    main()
