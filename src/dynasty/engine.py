from __future__ import annotations

import logging
import math
import random
from typing import Dict, Optional

from .allocator import AllocationContext
from .catalog import coerce_job_type
from .constants import (
    DAILY_FOOD_UPKEEP,
    DEFAULT_RESOURCE_CAP,
    FOREMAN_BOOST,
    STARTING_BUILDINGS,
    STARTING_RESOURCES,
    STARTING_SKILLS,
    STARTING_VILLAGERS,
    TRACKED_RESOURCES,
    VILLAGER_NAMES,
    JobType,
)
from .content_specs import GameConfig, SeasonTable, load_config
from .manager import JobManager
from .models import Building, ConstructionSite, Village, Worker, generate_id
from .workforce import WorkerPool

logger = logging.getLogger(__name__)

# Content tables are read-only; load them once per process
_CONFIG: Optional[GameConfig] = None


def get_config() -> GameConfig:
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = load_config()
        logger.info(
            f"Loaded content: {len(_CONFIG.jobs)} jobs, {len(_CONFIG.buildings)} buildings, "
            f"{len(_CONFIG.seasons.progression)} seasons"
        )
    return _CONFIG


def _log(village: Village, event_id: str, **params: object) -> None:
    """Log an event to the bounded event log (automatically trims via deque maxlen)."""
    village.event_log.append({"event_id": event_id, "params": params})


def season_for_day(day: int, seasons: SeasonTable) -> str:
    """Season name for a 1-based day; the calendar wraps every year."""
    offset = (max(1, day) - 1) % seasons.year_length
    for name in seasons.progression:
        if offset < seasons.durations[name]:
            return name
        offset -= seasons.durations[name]
    return seasons.progression[-1]


def storage_caps(village: Village, config: Optional[GameConfig] = None) -> Dict[str, float]:
    """Base caps plus storage bonuses of every finished building.

    A building's bonus grows 10% per level above the first. ``all`` bonuses
    apply to every capped resource. Uncapped resources stay infinite.
    """
    config = config or get_config()
    caps: Dict[str, float] = {}
    for resource in TRACKED_RESOURCES:
        base = config.resource_caps.get(resource, DEFAULT_RESOURCE_CAP)
        if math.isinf(base):
            caps[resource] = base
            continue
        bonus = 0
        for building in village.buildings:
            if not building.built or building.level < 1:
                continue
            spec = config.buildings.get(building.type)
            if spec is None:
                continue
            level_mult = 1 + (building.level - 1) * 0.1
            for key in ("all", resource):
                if key in spec.storage:
                    bonus += math.floor(spec.storage[key] * level_mult)
        caps[resource] = math.floor(base + bonus)
    return caps


def build_job_manager(village: Village, config: Optional[GameConfig] = None) -> JobManager:
    """Create the village's job engine and restore any assignments its workers hold."""
    config = config or get_config()
    pool = WorkerPool(village.population, leader_id=village.governing_leader_id)
    jobs = JobManager(config, pool, rng=village.rng)
    jobs.slots.refresh(village.buildings)

    # Workers may carry assignments from a previous manager or a save file
    saved = {}
    for worker in village.population:
        if worker.job_assignment is not None:
            a = worker.job_assignment
            saved.setdefault(a.building_id, {}).setdefault(a.job_type.value, []).append(worker.id)
    if saved:
        jobs.ledger.load_dict(saved)
        jobs.refresh(village.buildings)

    village.jobs = jobs
    return jobs


def ensure_jobs(village: Village) -> JobManager:
    if village.jobs is None:
        return build_job_manager(village)
    return village.jobs


def allocation_context(village: Village, caps: Optional[Dict[str, float]] = None) -> AllocationContext:
    caps = caps if caps is not None else storage_caps(village)
    return AllocationContext(
        resources=dict(village.resources),
        # Uncapped resources fall back to the default urgency caps
        caps={k: v for k, v in caps.items() if not math.isinf(v)},
        population=len(village.living_population()),
        construction_sites=tuple(village.construction_sites),
    )


def _make_villager(rng: random.Random, name: str, id_rng: Optional[random.Random]) -> Worker:
    skills = {}
    for skill in rng.sample(STARTING_SKILLS, 2):
        skills[skill] = rng.randint(0, 400)
    return Worker(
        id=generate_id("p", id_rng),
        name=name,
        age=rng.randint(17, 55),
        health=rng.randint(70, 100),
        happiness=rng.randint(60, 100),
        skills=skills,
    )


def new_game(seed: Optional[int] = None) -> Village:
    """Create a new village.

    Args:
        seed: Optional seed for deterministic villagers and ids.
              If provided, the same seed produces the same village.

    Returns:
        A new village with starter buildings, villagers and a monarch.
    """
    config = get_config()
    village = Village()
    village.rng_seed = seed if seed is not None else 0
    village.rng = random.Random(seed)

    # Create RNG for deterministic ID generation if seed provided
    id_rng = village.rng if seed is not None else None

    village.resources = {k: float(v) for k, v in STARTING_RESOURCES.items()}
    for building_type in STARTING_BUILDINGS:
        if building_type not in config.buildings:
            raise ValueError(f"Starter building '{building_type}' is not defined in buildings.yaml")
        village.buildings.append(Building(id=generate_id("b", id_rng), type=building_type))

    monarch = Worker(id=generate_id("p", id_rng), name="Queen Aveline", age=34, role="monarch")
    village.population.append(monarch)
    village.governing_leader_id = monarch.id

    names = village.rng.sample(VILLAGER_NAMES, STARTING_VILLAGERS)
    for name in names:
        village.population.append(_make_villager(village.rng, name, id_rng))

    village.season = season_for_day(village.day, config.seasons)
    build_job_manager(village, config)
    _log(village, "game.start", day=village.day, season=village.season)
    return village


def start_construction(village: Village, building_type: str) -> ConstructionSite:
    """Place an unbuilt building and open a construction site for it.

    Raises:
        ValueError: If the building type is unknown
    """
    config = get_config()
    spec = config.buildings.get(building_type)
    if spec is None:
        raise ValueError(f"Unknown building type '{building_type}'")

    building = Building(id=generate_id("b", village.rng), type=building_type, level=0, built=False)
    site = ConstructionSite(
        id=generate_id("c", village.rng),
        building_id=building.id,
        building_type=building_type,
        points_required=spec.construction_points,
        points_remaining=spec.construction_points,
    )
    village.buildings.append(building)
    village.construction_sites.append(site)
    _log(village, "construction.start", building_type=building_type, points=spec.construction_points)
    logger.info(f"Started construction of {spec.name} ({spec.construction_points} points)")
    return site


def _progress_construction(village: Village, points: float) -> Optional[ConstructionSite]:
    """Spend work points on the first active site. Returns it if it finished."""
    sites = village.active_sites()
    if not sites or points <= 0:
        return None
    site = sites[0]
    site.points_remaining = max(0.0, site.points_remaining - points)
    if site.points_remaining > 0:
        return None

    building = village.get_building(site.building_id)
    if building is None:
        logger.warning(f"Construction site {site.id} finished but building {site.building_id} is missing")
    else:
        building.built = True
        building.level = max(1, building.level)
    village.construction_sites.remove(site)
    _log(village, "construction.complete", building_type=site.building_type, building_id=site.building_id)
    logger.info(f"Construction of {site.building_type} complete")
    return site


def _apply_deltas(village: Village, deltas: Dict[str, float], caps: Dict[str, float]) -> Dict[str, float]:
    applied = {}
    for resource, delta in deltas.items():
        before = village.resources.get(resource, 0.0)
        cap = caps.get(resource, DEFAULT_RESOURCE_CAP)
        after = min(cap, max(0.0, before + delta))
        village.resources[resource] = after
        applied[resource] = after - before
    return applied


def advance_day(village: Village) -> Dict[str, float]:
    """Run one simulated day.

    Refreshes job slots, re-allocates workers, applies production and food
    upkeep (clamped to storage caps), spends construction work and moves the
    calendar forward.

    Returns:
        Resource deltas actually applied after clamping.
    """
    config = get_config()
    jobs = ensure_jobs(village)
    jobs.refresh(village.buildings)

    caps = storage_caps(village, config)
    ctx = allocation_context(village, caps)
    assigned = jobs.auto_assign(ctx, village.day)
    if assigned:
        _log(village, "jobs.assigned", count=assigned)

    deltas = jobs.daily_production(village.season)
    work_points = deltas.pop("construction", 0.0)
    if jobs.foreman_assigned():
        work_points *= FOREMAN_BOOST
    finished = _progress_construction(village, work_points)
    if finished is not None:
        jobs.refresh(village.buildings)
        caps = storage_caps(village, config)

    population = len(village.living_population())
    deltas["food"] = deltas.get("food", 0.0) - population * DAILY_FOOD_UPKEEP
    applied = _apply_deltas(village, deltas, caps)
    if village.resources.get("food", 0) <= 0 and population > 0:
        _log(village, "food.shortage", day=village.day)
        logger.warning(f"Day {village.day}: food stores are empty")

    village.day += 1
    previous = village.season
    village.season = season_for_day(village.day, config.seasons)
    if village.season != previous:
        _log(village, "season.change", season=village.season)
    _log(village, "day.advance", day=village.day, season=village.season)
    return applied


def assign_worker(village: Village, worker_id: str, building_id: str, job_type: str | JobType) -> bool:
    jobs = ensure_jobs(village)
    jobs.refresh(village.buildings)
    ok = jobs.assign(worker_id, building_id, job_type, village.day)
    # Event params are saved as plain YAML
    jt = coerce_job_type(job_type)
    job_type = jt.value if jt is not None else str(job_type)
    if ok:
        _log(village, "jobs.assign", worker_id=worker_id, building_id=building_id, job_type=job_type)
    else:
        _log(village, "jobs.assign_failed", worker_id=worker_id, building_id=building_id, job_type=job_type)
    return ok


def release_worker(village: Village, worker_id: str) -> bool:
    ok = ensure_jobs(village).release(worker_id)
    _log(village, "jobs.release" if ok else "jobs.release_failed", worker_id=worker_id)
    return ok
