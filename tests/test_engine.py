"""Tests for the village game loop in engine.py."""

import math
import random

import pytest

from dynasty.constants import JobType
from dynasty.engine import (
    advance_day,
    assign_worker,
    get_config,
    new_game,
    release_worker,
    season_for_day,
    start_construction,
    storage_caps,
)
from dynasty.models import Building, Village, Worker


def _village(workers=(), buildings=(), **resources):
    village = Village(
        resources={k: float(v) for k, v in resources.items()},
        buildings=list(buildings),
        population=list(workers),
        rng=random.Random(5),
    )
    return village


def _worker(worker_id, **kwargs):
    kwargs.setdefault("age", 30)
    kwargs.setdefault("happiness", 100)
    return Worker(id=worker_id, name=worker_id.title(), **kwargs)


def test_season_for_day():
    seasons = get_config().seasons
    assert season_for_day(1, seasons) == "Spring"
    assert season_for_day(30, seasons) == "Spring"
    assert season_for_day(31, seasons) == "Sprummer"
    assert season_for_day(41, seasons) == "Summer"
    assert season_for_day(121, seasons) == "Winter"
    assert season_for_day(160, seasons) == "Winting"
    assert season_for_day(161, seasons) == "Spring"


def test_storage_caps_include_building_bonuses():
    village = _village(buildings=[Building(id="tc", type="town_center")])
    caps = storage_caps(village)
    assert caps["food"] == 300
    assert caps["stone"] == 250
    assert math.isinf(caps["gold"])


def test_storage_bonus_grows_with_level():
    village = _village(buildings=[Building(id="tc", type="town_center", level=2), Building(id="s", type="silo")])
    caps = storage_caps(village)
    # floor(200 * 1.1) from the town center plus 500 from the silo
    assert caps["food"] == 100 + 220 + 500
    assert caps["wood"] == 100 + 220


def test_unbuilt_buildings_add_no_storage():
    village = _village(buildings=[Building(id="s", type="silo", level=0, built=False)])
    assert storage_caps(village)["food"] == 100


def test_new_game_is_deterministic_with_seed():
    first = new_game(seed=5)
    second = new_game(seed=5)
    assert [w.id for w in first.population] == [w.id for w in second.population]
    assert [w.name for w in first.population] == [w.name for w in second.population]
    assert [b.id for b in first.buildings] == [b.id for b in second.buildings]


def test_new_game_has_a_monarch_outside_the_labour_pool():
    village = new_game(seed=2)
    assert village.jobs is not None
    available = {w.id for w in village.jobs.pool.available_workers()}
    assert village.governing_leader_id not in available
    assert len(available) == len(village.population) - 1
    assert village.event_log[-1]["event_id"] == "game.start"


def test_advance_day_pays_food_upkeep():
    """Test that a village with nobody able to work only eats."""
    village = _village([_worker("queen", role="monarch")], food=10)
    applied = advance_day(village)
    assert village.resources["food"] == pytest.approx(9.0)
    assert applied["food"] == pytest.approx(-1.0)
    assert village.day == 2


def test_advance_day_clamps_to_caps_and_zero():
    workers = [_worker("a"), _worker("b")]
    village = _village(workers, [Building(id="farm1", type="farm")], food=99, wood=0)
    advance_day(village)
    assert village.resources["food"] <= storage_caps(village)["food"]

    hungry = _village([_worker("queen", role="monarch")], food=0.5)
    advance_day(hungry)
    assert hungry.resources["food"] == 0.0
    assert any(e["event_id"] == "food.shortage" for e in hungry.event_log)


def test_advance_day_assigns_idle_workers():
    workers = [_worker("a"), _worker("b")]
    village = _village(workers, [Building(id="farm1", type="farm")], food=0)
    advance_day(village)
    assert all(w.job_assignment is not None for w in workers)
    assert village.jobs.ledger.count_of_type(JobType.FARMER) >= 1


def test_construction_completes_and_building_opens_slots():
    workers = [_worker("a"), _worker("b")]
    village = _village(workers, food=100)
    site = start_construction(village, "house")
    assert site.points_remaining == 5

    for _ in range(5):
        advance_day(village)

    assert village.construction_sites == []
    house = village.get_building(site.building_id)
    assert house.built
    assert house.level == 1
    assert any(e["event_id"] == "construction.complete" for e in village.event_log)
    assert village.jobs.slots.capacity(house.id, JobType.GATHERER) == 1


def test_start_construction_rejects_unknown_type():
    village = _village()
    with pytest.raises(ValueError, match="Unknown building type"):
        start_construction(village, "space_elevator")


def test_season_changes_are_logged():
    village = _village([_worker("queen", role="monarch")], food=1000)
    village.day = 30
    advance_day(village)
    assert village.season == "Sprummer"
    assert any(e["event_id"] == "season.change" for e in village.event_log)


def test_manual_assign_and_release_are_logged():
    village = _village([_worker("a")], [Building(id="farm1", type="farm")])
    assert assign_worker(village, "a", "farm1", "farmer")
    assert not assign_worker(village, "a", "farm1", "farmer")
    assert release_worker(village, "a")
    assert not release_worker(village, "a")

    ids = [e["event_id"] for e in village.event_log]
    assert ids == ["jobs.assign", "jobs.assign_failed", "jobs.release", "jobs.release_failed"]
