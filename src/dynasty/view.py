from __future__ import annotations

import math
from typing import Dict, List

from .constants import EXCLUDED_ROLES, SKILL_LEVELS
from .engine import allocation_context, ensure_jobs, get_config, storage_caps
from .manager import JobManager
from .models import Village


def skill_level(xp: int) -> str:
    """Experience level name for an XP total."""
    for threshold, name in SKILL_LEVELS:
        if xp >= threshold:
            return name
    return SKILL_LEVELS[-1][1]


def job_summary(jobs: JobManager) -> Dict:
    """Capacity and fill per job type and per building."""
    summary = {"total_jobs": 0, "total_workers": 0, "job_types": {}, "buildings": {}}
    for building_id, job_type, capacity in jobs.slots.entries():
        filled = len(jobs.ledger.workers_in(building_id, job_type))
        summary["total_jobs"] += capacity
        summary["total_workers"] += filled

        by_type = summary["job_types"].setdefault(job_type.value, {"available": 0, "filled": 0})
        by_type["available"] += capacity
        by_type["filled"] += filled

        building = summary["buildings"].setdefault(
            building_id, {"type": jobs.slots.building_type(building_id), "jobs": {}}
        )
        building["jobs"][job_type.value] = {"current": filled, "max": capacity}
    return summary


def worker_stats(village: Village) -> Dict[str, int]:
    """Working-age villagers outside the ruling family, split into assigned and idle."""
    jobs = ensure_jobs(village)
    eligible = [
        w for w in village.living_population()
        if w.age >= jobs.pool.min_age and w.role not in EXCLUDED_ROLES
    ]
    total = len(eligible)
    assigned = min(jobs.ledger.total_assigned(), total)
    return {"total": total, "assigned": assigned, "idle": max(0, total - assigned)}


def job_distribution(jobs: JobManager) -> Dict:
    """Worker counts per job type, bucketed by best relevant skill level."""
    stats = {"job_counts": {}, "experience_levels": {}, "total_workers": 0}
    for _, job_type, worker_ids in jobs.ledger.entries():
        key = job_type.value
        if key not in stats["job_counts"]:
            stats["job_counts"][key] = 0
            stats["experience_levels"][key] = {name: 0 for _, name in reversed(SKILL_LEVELS)}
        skills = jobs.catalog.relevant_skills(job_type)
        for worker_id in worker_ids:
            worker = jobs.pool.get(worker_id)
            if worker is None:
                continue
            stats["job_counts"][key] += 1
            stats["total_workers"] += 1
            best_xp = max((worker.skills.get(s, 0) for s in skills), default=0)
            stats["experience_levels"][key][skill_level(best_xp)] += 1
    return stats


def _format_cap(cap: float):
    return None if math.isinf(cap) else int(cap)


def build_view_model(village: Village) -> Dict:
    """Build the status view-model shown by the CLI."""
    jobs = ensure_jobs(village)
    jobs.refresh(village.buildings)
    config = get_config()
    caps = storage_caps(village, config)
    report = jobs.detailed_production(village.season, len(village.living_population()))
    ctx = allocation_context(village, caps)

    workers: List[Dict] = []
    for w in village.population:
        a = w.job_assignment
        workers.append({
            "id": w.id,
            "name": w.name,
            "age": w.age,
            "status": w.status,
            "role": w.role,
            "job": a.job_type.value if a else None,
            "building_id": a.building_id if a else None,
        })

    return {
        "time": {"day": village.day, "season": village.season},
        "resources": {
            name: {"amount": round(amount, 2), "cap": _format_cap(caps.get(name, math.inf))}
            for name, amount in sorted(village.resources.items())
        },
        "buildings": [
            {
                "id": b.id,
                "type": b.type,
                "name": config.buildings[b.type].name if b.type in config.buildings else b.type,
                "level": b.level,
                "built": b.built,
            }
            for b in village.buildings
        ],
        "construction": [
            {
                "building_type": s.building_type,
                "points_remaining": round(s.points_remaining, 2),
                "points_required": s.points_required,
            }
            for s in village.construction_sites
        ],
        "desired_builders": jobs.allocator.compute_desired_builders(ctx),
        "workers": workers,
        "worker_stats": worker_stats(village),
        "job_summary": job_summary(jobs),
        "job_distribution": job_distribution(jobs),
        "production": {k: round(v, 2) for k, v in sorted(report.totals.items())},
        "breakdown": {
            resource: {
                "income": [{"label": l.label, "amount": l.amount} for l in entry.income],
                "expense": [{"label": l.label, "amount": l.amount} for l in entry.expense],
            }
            for resource, entry in sorted(report.breakdown.items())
        },
        "recent_events": list(village.event_log)[-6:],
    }
