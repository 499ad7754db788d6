#!/usr/bin/env python3
"""Basic library usage example.

This example runs a small village for a couple of weeks and prints how the
job allocator staffs it and what it produces.
"""

from dynasty.engine import advance_day, new_game, start_construction
from dynasty.view import build_view_model


def main():
    print("="*60)
    print("Dynasty - Basic Village Example")
    print("="*60)

    # Create a new village
    print("\n1. Founding village...")
    village = new_game(seed=7)
    vm = build_view_model(village)
    print(f"✓ Day {vm['time']['day']}, {vm['time']['season']}")
    print(f"  Villagers: {vm['worker_stats']['total']}")

    # Queue a building so builders have something to do
    print("\n2. Starting construction of a woodcutter lodge...")
    site = start_construction(village, "woodcutter_lodge")
    print(f"✓ {site.points_required} work points needed")

    # Advance two weeks
    print("\n3. Advancing 14 days...")
    for _ in range(14):
        applied = advance_day(village)
    print(f"✓ Day {village.day}, {village.season}")
    print("  Last day's changes:")
    for resource, delta in sorted(applied.items()):
        print(f"  {resource:12} {delta:+.2f}")

    # Job summary
    print("\n4. Jobs:")
    vm = build_view_model(village)
    for job, info in sorted(vm["job_summary"]["job_types"].items()):
        print(f"  {job:12} {info['filled']}/{info['available']}")

    print("\n5. Food breakdown:")
    food = vm["breakdown"].get("food", {"income": [], "expense": []})
    for line in food["income"] + food["expense"]:
        print(f"  {line['label']:28} {line['amount']:+}")

    print("\n" + "="*60)


if __name__ == "__main__":
    main()
