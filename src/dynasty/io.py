from __future__ import annotations

import logging
import random
from collections import deque
from dataclasses import asdict
from pathlib import Path
from typing import Dict

import yaml

from .constants import MAX_EVENT_LOG
from .engine import build_job_manager
from .models import Building, ConstructionSite, Village, Worker

logger = logging.getLogger(__name__)


def _worker_to_dict(worker: Worker) -> Dict:
    data = asdict(worker)
    # Assignments live in the saved ledger and are restored from it
    data.pop("job_assignment", None)
    if data.get("status") == "working":
        data["status"] = "idle"
    return data


def village_to_dict(village: Village) -> Dict:
    """Plain-data snapshot of the village, ready for YAML."""
    if village.jobs is not None:
        ledger = village.jobs.ledger.to_dict()
    else:
        ledger = {}
        for worker in village.population:
            a = worker.job_assignment
            if a is not None:
                ledger.setdefault(a.building_id, {}).setdefault(a.job_type.value, []).append(worker.id)

    return {
        "schema_version": village.schema_version,
        "day": village.day,
        "season": village.season,
        "resources": dict(village.resources),
        "buildings": [asdict(b) for b in village.buildings],
        "population": [_worker_to_dict(w) for w in village.population],
        "construction_sites": [asdict(s) for s in village.construction_sites],
        "governing_leader_id": village.governing_leader_id,
        "rng_seed": village.rng_seed,
        "jobs": ledger,
        "event_log": list(village.event_log),
    }


def save_state(village: Village, path: Path) -> None:
    """Save the village to a YAML file, excluding runtime-only fields."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        yaml.safe_dump(village_to_dict(village), default_flow_style=False, sort_keys=True), encoding="utf-8"
    )


def load_state(path: Path) -> Village:
    """Load a village from YAML and re-synchronise every worker's job assignment."""
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))

    village = Village(schema_version=raw.get("schema_version", 1))
    village.day = int(raw.get("day", 1))
    village.season = raw.get("season", village.season)
    village.resources = {k: float(v) for k, v in (raw.get("resources") or {}).items()}
    village.buildings = [Building(**b) for b in raw.get("buildings") or []]
    village.population = [Worker(**w) for w in raw.get("population") or []]
    village.construction_sites = [ConstructionSite(**s) for s in raw.get("construction_sites") or []]
    village.governing_leader_id = raw.get("governing_leader_id")
    village.rng_seed = raw.get("rng_seed", 0)
    village.rng = random.Random(village.rng_seed)
    village.event_log = deque(raw.get("event_log") or [], maxlen=MAX_EVENT_LOG)

    jobs = build_job_manager(village)
    restored = jobs.ledger.load_dict(raw.get("jobs") or {}, village.day)
    released = jobs.refresh(village.buildings)
    if released:
        logger.warning(f"Released {released} saved assignments that no longer fit the village")
    logger.info(f"Loaded day {village.day} with {restored} job assignments")
    return village
