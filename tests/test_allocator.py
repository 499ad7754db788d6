"""Tests for job scoring, worker fitness and the allocation pass."""

import random

import pytest

from dynasty.allocator import AllocationContext, worker_fitness
from dynasty.constants import NO_PAYOFF_PENALTY, JobType
from dynasty.engine import get_config
from dynasty.manager import JobManager
from dynasty.models import Building, ConstructionSite, Worker
from dynasty.needs import estimate_needs
from dynasty.workforce import WorkerPool


def _worker(worker_id, **kwargs):
    kwargs.setdefault("age", 30)
    kwargs.setdefault("happiness", 100)
    return Worker(id=worker_id, name=worker_id.title(), **kwargs)


def _setup(buildings, workers):
    jobs = JobManager(get_config(), WorkerPool(workers), rng=random.Random(0))
    jobs.refresh(buildings)
    return jobs


def _ctx(resources=None, population=10, sites=(), caps=None):
    return AllocationContext(
        resources=resources or {},
        caps=caps if caps is not None else {"food": 100, "wood": 100},
        population=population,
        construction_sites=tuple(sites),
    )


def _site(points):
    return ConstructionSite(
        id="c1", building_id="b_new", building_type="house", points_required=points, points_remaining=points,
    )


# --- fitness ---------------------------------------------------------------


def test_fitness_baseline_is_one():
    assert worker_fitness(_worker("a"), ("agriculture",)) == pytest.approx(1.0)


def test_fitness_age_steps():
    assert worker_fitness(_worker("a", age=17), ()) == pytest.approx(0.7)
    assert worker_fitness(_worker("a", age=18), ()) == pytest.approx(0.9)
    assert worker_fitness(_worker("a", age=45), ()) == pytest.approx(1.0)
    assert worker_fitness(_worker("a", age=46), ()) == pytest.approx(0.95)
    assert worker_fitness(_worker("a", age=61), ()) == pytest.approx(0.8)


def test_fitness_health_and_happiness_floors():
    assert worker_fitness(_worker("a", health=20), ()) == pytest.approx(0.5)
    assert worker_fitness(_worker("a", health=80), ()) == pytest.approx(0.8)
    assert worker_fitness(_worker("a", happiness=40), ()) == pytest.approx(0.7)


def test_fitness_skill_bonus_is_capped():
    """Test that only the best relevant skill counts, up to +50%."""
    skilled = _worker("a", skills={"agriculture": 500, "mining": 1000})
    assert worker_fitness(skilled, ("agriculture",)) == pytest.approx(1.25)
    assert worker_fitness(_worker("a", skills={"agriculture": 5000}), ("agriculture",)) == pytest.approx(1.5)


# --- scoring ---------------------------------------------------------------


def test_farmer_score_rises_with_food_urgency():
    jobs = _setup([], [])
    ctx = _ctx({"food": 5}, population=10)
    needs = estimate_needs(ctx.resources, ctx.population, ctx.caps)
    # 10 * 2.5 plus the staffing bonus while farmers < ceil(10 / 8)
    assert jobs.allocator.score_slot(JobType.FARMER, needs, ctx) == pytest.approx(40.0)


def test_sawyer_penalised_without_wood():
    jobs = _setup([], [])
    ctx = _ctx({"wood": 2, "planks": 50}, caps={"wood": 100, "planks": 50})
    needs = estimate_needs(ctx.resources, ctx.population, ctx.caps)
    # planks full; only the wood share of planks urgency counts: 3 * (0.4 * 0.98)
    assert jobs.allocator.score_slot(JobType.SAWYER, needs, ctx) == pytest.approx(3 * 0.4 * 0.98 - 15)


def test_sawyer_rewarded_with_healthy_wood():
    jobs = _setup([], [])
    ctx = _ctx({"wood": 50, "planks": 50}, caps={"wood": 100, "planks": 50})
    needs = estimate_needs(ctx.resources, ctx.population, ctx.caps)
    assert jobs.allocator.score_slot(JobType.SAWYER, needs, ctx) == pytest.approx(6 + 2 + 3 * 0.4 * 0.5)


def test_no_payoff_and_unknown_jobs_score_strongly_negative():
    jobs = _setup([], [])
    ctx = _ctx({"food": 100})
    needs = estimate_needs(ctx.resources, ctx.population, ctx.caps)
    assert jobs.allocator.score_slot(JobType.WIZARD, needs, ctx) == NO_PAYOFF_PENALTY
    assert jobs.allocator.score_slot("juggler", needs, ctx) == NO_PAYOFF_PENALTY


def test_builder_score_depends_on_construction():
    jobs = _setup([], [_worker("a"), _worker("b"), _worker("c")])
    needs = estimate_needs({}, 3, {})

    idle = _ctx(population=3)
    assert jobs.allocator.score_slot(JobType.BUILDER, needs, idle) == 3.0

    busy = _ctx(population=3, sites=[_site(14)])
    assert jobs.allocator.score_slot(JobType.BUILDER, needs, busy) == 8.0

    # Desired builders for 14 points is 2; at the target the score drops by 30
    jobs.assign("a", "global", JobType.BUILDER)
    jobs.assign("b", "global", JobType.BUILDER)
    assert jobs.allocator.score_slot(JobType.BUILDER, needs, busy) == 8.0 - 30


def test_desired_builders():
    jobs = _setup([], [])
    assert jobs.allocator.compute_desired_builders(_ctx()) == 0
    assert jobs.allocator.compute_desired_builders(_ctx(sites=[_site(14)])) == 2
    assert jobs.allocator.compute_desired_builders(_ctx(sites=[_site(3)])) == 1
    # Capped by builder capacity (4 global slots)
    assert jobs.allocator.compute_desired_builders(_ctx(sites=[_site(700)])) == 4

    finished = _site(10)
    finished.points_remaining = 0
    assert jobs.allocator.compute_desired_builders(_ctx(sites=[finished, _site(7)])) == 1


def test_desired_foremen():
    jobs = _setup([], [])
    assert jobs.allocator.desired_foremen(0) == 0
    assert jobs.allocator.desired_foremen(3) == 1
    assert jobs.allocator.desired_foremen(8) == 2


# --- allocation ------------------------------------------------------------


def test_best_fit_worker_takes_the_slot():
    """Test that the farming-skilled worker wins the last farmer slot."""
    miner = _worker("miner", skills={"mining": 1000})
    farmer = _worker("farmer", skills={"agriculture": 1000})
    occupant = _worker("occupant")
    jobs = _setup([Building(id="farm1", type="farm")], [miner, farmer, occupant])
    assert jobs.assign("occupant", "farm1", JobType.FARMER)

    jobs.auto_assign(_ctx({"food": 0}, population=3))

    assert farmer.job_assignment.job_type == JobType.FARMER
    assert miner.job_assignment is None or miner.job_assignment.job_type != JobType.FARMER


def test_pick_best_worker_prefers_first_on_tie():
    a, b = _worker("a"), _worker("b")
    jobs = _setup([], [a, b])
    views = jobs.pool.available_workers()
    assert jobs.allocator.pick_best_worker(views, JobType.FARMER).id == "a"
    assert jobs.allocator.pick_best_worker([], JobType.FARMER) is None


def test_sawyers_gated_on_wood():
    """Test that no sawyer is assigned while wood is below the minimum."""
    workers = [_worker(f"w{i}") for i in range(10)]
    jobs = _setup([Building(id="mill1", type="lumber_mill")], workers)

    jobs.auto_assign(_ctx({"food": 100, "wood": 2}))
    assert jobs.ledger.count_of_type(JobType.SAWYER) == 0


def test_sawyers_assigned_with_enough_wood():
    workers = [_worker(f"w{i}") for i in range(10)]
    jobs = _setup([Building(id="mill1", type="lumber_mill")], workers)

    jobs.auto_assign(_ctx({"food": 100, "wood": 10}))
    assert jobs.ledger.count_of_type(JobType.SAWYER) > 0


def test_blacksmiths_gated_on_metal():
    workers = [_worker(f"w{i}") for i in range(10)]
    jobs = _setup([Building(id="smith1", type="blacksmith")], workers)

    jobs.auto_assign(_ctx({"food": 100, "metal": 1}))
    assert jobs.ledger.count_of_type(JobType.BLACKSMITH) == 0


def test_food_shortage_puts_a_farmer_first():
    """Test that a starving village sends its only free worker to the farm."""
    worker = _worker("only")
    jobs = _setup([Building(id="farm1", type="farm"), Building(id="lodge1", type="woodcutter_lodge")], [worker])

    assert jobs.auto_assign(_ctx({"food": 5, "wood": 0}, population=10)) == 1
    assert worker.job_assignment.job_type == JobType.FARMER


def test_optimize_releases_builders_without_construction():
    worker = _worker("a")
    jobs = _setup([], [worker])
    assert jobs.assign("a", "global", JobType.BUILDER)

    assert jobs.optimize(_ctx({"food": 100})) == 1
    assert worker.job_assignment is None
    assert worker.status == "idle"


def test_optimize_releases_starved_processing_jobs():
    worker = _worker("a")
    jobs = _setup([Building(id="mill1", type="lumber_mill")], [worker])
    assert jobs.assign("a", "mill1", JobType.SAWYER)

    jobs.optimize(_ctx({"food": 100, "wood": 1}))
    assert worker.job_assignment is None


def test_optimize_frees_low_priority_workers_when_food_runs_short():
    workers = [_worker(f"w{i}") for i in range(3)]
    jobs = _setup([Building(id="market1", type="market")], workers)
    for w in workers:
        assert jobs.assign(w.id, "market1", JobType.TRADER)

    # Food urgency 1.5 frees ceil(1.5) = 2 traders
    jobs.optimize(_ctx({"food": 15}, population=10))
    assert jobs.ledger.workers_in("market1", JobType.TRADER) == ["w0"]


def test_builders_capped_by_active_site():
    workers = [_worker(f"w{i}") for i in range(6)]
    jobs = _setup([], workers)

    jobs.auto_assign(_ctx({"food": 100}, population=6, sites=[_site(14)]))
    assert jobs.ledger.count_of_type(JobType.BUILDER) == 2
    assert jobs.ledger.count_of_type(JobType.GATHERER) == 2


def test_idle_builder_floor_without_construction():
    workers = [_worker(f"w{i}") for i in range(6)]
    jobs = _setup([], workers)

    jobs.auto_assign(_ctx({"food": 100}, population=6))
    assert jobs.ledger.count_of_type(JobType.BUILDER) == 2


def test_foremen_capped_by_desired():
    workers = [_worker(f"w{i}") for i in range(8)]
    jobs = _setup([Building(id="hut1", type="builders_hut", level=2)], workers)

    jobs.auto_assign(_ctx({"food": 100}, population=8, sites=[_site(14)]))
    assert jobs.ledger.count_of_type(JobType.FOREMAN) == 1


def test_auto_assign_without_workers_returns_zero():
    jobs = _setup([Building(id="farm1", type="farm")], [])
    assert jobs.auto_assign(_ctx({"food": 0})) == 0


def test_fill_all_builders_ignores_ceiling():
    workers = [_worker(f"w{i}") for i in range(6)]
    jobs = _setup([], workers)

    assert jobs.allocator.fill_all_builders() == 4
    assert jobs.ledger.count_of_type(JobType.BUILDER) == 4
    assert jobs.allocator.fill_all_builders() == 0


def test_maximize_builders_pulls_from_low_priority_jobs():
    workers = [_worker(f"w{i}") for i in range(4)]
    jobs = _setup([Building(id="farm1", type="farm")], workers)
    jobs.assign("w0", "farm1", JobType.FARMER)
    jobs.assign("w1", "farm1", JobType.FARMER)
    jobs.assign("w2", "global", JobType.GATHERER)
    jobs.assign("w3", "global", JobType.GATHERER)

    assert jobs.maximize_builders() == 4
    assert jobs.ledger.count_of_type(JobType.BUILDER) == 4
    assert jobs.ledger.count_of_type(JobType.GATHERER) == 0
    assert jobs.ledger.count_of_type(JobType.FARMER) == 0
