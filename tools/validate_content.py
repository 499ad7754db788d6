#!/usr/bin/env python3
"""Content validation tool for Dynasty.

This tool validates that:
1. Every job type can actually be staffed (some building or the village offers slots)
2. Job host buildings agree with the buildings that offer the job
3. Every consumed resource is produced by some job
4. A few archetype villages survive a month of simulated days

Usage:
    python tools/validate_content.py [--days N]
"""

import sys
from pathlib import Path
from typing import Any, Dict

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dynasty import engine
from dynasty.constants import JobType
from dynasty.content_specs import GameConfig
from dynasty.models import Building, Village


def create_archetype_villages() -> Dict[str, Village]:
    """Create several archetype villages representing typical play states.

    Returns:
        Dict mapping archetype name to Village
    """
    archetypes = {}

    # Archetype 1: Fresh start (default new game)
    archetypes["fresh_start"] = engine.new_game(seed=123)

    # Archetype 2: Established village with processing buildings
    established = engine.new_game(seed=456)
    for building_type in ("woodcutter_lodge", "lumber_mill", "quarry", "builders_hut", "storehouse"):
        established.buildings.append(Building(id=f"b_{building_type}", type=building_type))
    established.resources.update({"wood": 80, "stone": 40})
    archetypes["established"] = established

    # Archetype 3: Starving village in winter
    starving = engine.new_game(seed=789)
    starving.resources["food"] = 2
    starving.day = 141
    starving.season = engine.season_for_day(starving.day, engine.get_config().seasons)
    archetypes["starving"] = starving

    # Archetype 4: Village with a construction project underway
    building = engine.new_game(seed=999)
    engine.start_construction(building, "builders_hut")
    archetypes["building"] = building

    return archetypes


def check_staffable(config: GameConfig) -> Dict[str, Any]:
    """Job types with no slot source anywhere, and hosts that offer no slots."""
    offered: Dict[JobType, list] = {jt: [] for jt in JobType}
    for jt, count in config.global_jobs.items():
        if count > 0:
            offered[jt].append("global")
    for spec in config.buildings.values():
        for jt, count in spec.jobs.items():
            if count > 0:
                offered[jt].append(spec.id)

    unstaffable = sorted(jt.value for jt, sources in offered.items() if not sources)
    host_mismatch = []
    for job in config.jobs.values():
        if job.building is not None and job.building not in offered[job.id]:
            host_mismatch.append(f"{job.id.value} (host {job.building} offers no slots)")
    return {"unstaffable": unstaffable, "host_mismatch": host_mismatch}


def check_inputs_produced(config: GameConfig) -> list:
    """Resources some job consumes but no job produces."""
    produced = set()
    consumed = set()
    for job in config.jobs.values():
        produced.update(job.gathers)
        for resource, amount in job.yields.items():
            (produced if amount > 0 else consumed).add(resource)
    return sorted(consumed - produced)


def simulate(village: Village, days: int) -> Dict[str, Any]:
    start_food = village.resources.get("food", 0)
    shortages = 0
    for _ in range(days):
        engine.advance_day(village)
        if village.resources.get("food", 0) <= 0:
            shortages += 1
    return {
        "start_food": start_food,
        "end_food": round(village.resources.get("food", 0), 2),
        "shortage_days": shortages,
        "assigned": village.jobs.ledger.total_assigned() if village.jobs else 0,
        "sites_left": len(village.active_sites()),
    }


def validate_content(days: int = 30) -> Dict[str, Any]:
    """Run all content validation checks.

    Returns:
        Dict with validation results and metrics
    """
    config = engine.get_config()
    staffing = check_staffable(config)
    results = {
        "total_jobs": len(config.jobs),
        "total_buildings": len(config.buildings),
        "unstaffable": staffing["unstaffable"],
        "host_mismatch": staffing["host_mismatch"],
        "unproduced_inputs": check_inputs_produced(config),
        "simulations": {},
    }

    for name, village in create_archetype_villages().items():
        results["simulations"][name] = simulate(village, days)

    return results


def print_report(results: Dict[str, Any]) -> None:
    print("=" * 70)
    print("DYNASTY CONTENT VALIDATION REPORT")
    print("=" * 70)
    print()
    print(f"Job types: {results['total_jobs']}")
    print(f"Building types: {results['total_buildings']}")
    print()

    for key, title in (
        ("unstaffable", "JOBS WITHOUT SLOTS"),
        ("host_mismatch", "HOST BUILDING MISMATCHES"),
        ("unproduced_inputs", "CONSUMED BUT NEVER PRODUCED"),
    ):
        if results[key]:
            print(f"{title}:")
            print("-" * 70)
            for item in results[key]:
                print(f"  {item}")
            print()

    print("SIMULATIONS:")
    print("-" * 70)
    for name, sim in results["simulations"].items():
        print(
            f"  {name:12} food {sim['start_food']} -> {sim['end_food']}, "
            f"{sim['shortage_days']} shortage days, {sim['assigned']} assigned, "
            f"{sim['sites_left']} sites left"
        )
    print()
    print("=" * 70)


def main() -> int:
    """Main entry point.

    Returns:
        Exit code (0 = pass, 1 = validation failures)
    """
    days = 30
    if "--days" in sys.argv:
        days = int(sys.argv[sys.argv.index("--days") + 1])

    print("Loading content and running validation checks...")
    print()
    try:
        results = validate_content(days)
    except ValueError as exc:
        print(f"FAIL: {exc}")
        return 1
    print_report(results)

    passed = not (results["unstaffable"] or results["host_mismatch"] or results["unproduced_inputs"])
    fresh = results["simulations"]["fresh_start"]
    if fresh["shortage_days"] > 0:
        print(f"FAIL: fresh village ran out of food on {fresh['shortage_days']} days")
        passed = False

    if passed:
        print("PASS: All validation checks passed!")
        return 0
    else:
        print("FAIL: Some validation checks failed.")
        return 1


if __name__ == "__main__":
    sys.exit(main())
