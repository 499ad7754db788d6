"""Job scoring and greedy worker allocation.

Each allocation pass:
1. estimates resource needs from the current stockpile,
2. releases workers whose job no longer makes sense (no construction,
   starved processing input, food emergency),
3. scores every open slot against those needs,
4. fills slots highest score first, each with the fittest free worker.

The per-slot best-fit choice is greedy and can lose to an optimal bipartite
matching on adversarial inputs. That trade is accepted.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .catalog import JobCatalog, coerce_job_type
from .constants import (
    BUILDER_RELEASE_ORDER,
    BUILDER_TARGET_DAYS,
    BUILDERS_PER_FOREMAN,
    FARMER_POPULATION_RATIO,
    FOOD_RELEASE_ORDER,
    FOOD_RELEASE_URGENCY,
    IDLE_BUILDER_FLOOR,
    NO_PAYOFF_PENALTY,
    PROCESSING_GATES,
    JobType,
)
from .ledger import AssignmentLedger
from .models import ConstructionSite
from .needs import ResourceNeeds, default_cap, estimate_needs
from .slots import OpenSlot, SlotInventory
from .workforce import WorkerPool, WorkerView

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllocationContext:
    """Village state one allocation pass works against."""
    resources: Mapping[str, float]
    caps: Mapping[str, float]
    population: int
    construction_sites: Tuple[ConstructionSite, ...] = ()

    @property
    def construction_active(self) -> bool:
        return any(site.points_remaining > 0 for site in self.construction_sites)

    def stock(self, resource: str) -> float:
        return float(self.resources.get(resource, 0) or 0)

    def cap(self, resource: str) -> float:
        return float(self.caps.get(resource, default_cap(resource)))


def _age_factor(age: int) -> float:
    if age < 18:
        return 0.7
    if age < 25:
        return 0.9
    if age <= 45:
        return 1.0
    if age <= 60:
        return 0.95
    return 0.8


def worker_fitness(worker, relevant_skills: Sequence[str]) -> float:
    """How well a worker suits a job, as a multiplier around 1.0.

    Works on anything with ``age``, ``health``, ``happiness`` and ``skills``
    (a Worker or a WorkerView). The best relevant skill adds up to +50% at
    1000 XP. Never returns less than 0.1.
    """
    health = max(0.5, worker.health / 100)
    happiness = max(0.7, worker.happiness / 100)

    best_xp = max((worker.skills.get(skill, 0) for skill in relevant_skills), default=0)
    skill = 1.0 + min(0.5, (best_xp / 1000) * 0.5)

    return max(0.1, _age_factor(worker.age) * health * happiness * skill)


class JobAllocator:
    def __init__(
        self,
        catalog: JobCatalog,
        slots: SlotInventory,
        ledger: AssignmentLedger,
        pool: WorkerPool,
        target_days: int = BUILDER_TARGET_DAYS,
    ):
        self.catalog = catalog
        self.slots = slots
        self.ledger = ledger
        self.pool = pool
        self.target_days = target_days
        self._scorers: Dict[JobType, Callable[[ResourceNeeds, AllocationContext], float]] = {
            JobType.FARMER: self._score_farmer,
            JobType.GATHERER: lambda needs, ctx: 3 * needs.basic,
            JobType.WOODCUTTER: lambda needs, ctx: 6 * needs.wood,
            JobType.ROCKCUTTER: lambda needs, ctx: 4 * needs.stone,
            JobType.MINER: lambda needs, ctx: 4 * needs.stone,
            JobType.SAWYER: self._score_sawyer,
            JobType.BLACKSMITH: self._score_blacksmith,
            JobType.TRADER: lambda needs, ctx: 1.5 * needs.gold,
            JobType.ENGINEER: lambda needs, ctx: 1.0 * needs.production,
            JobType.BUILDER: self._score_builder,
            JobType.FOREMAN: self._score_foreman,
        }

    # --- staffing targets -------------------------------------------------

    def compute_desired_builders(self, ctx: AllocationContext) -> int:
        """Builders needed to finish the active site within the target horizon."""
        for site in ctx.construction_sites:
            if site.points_remaining > 0:
                wanted = max(1, math.ceil(site.points_remaining / self.target_days))
                return min(wanted, self.slots.capacity_of_type(JobType.BUILDER))
        return 0

    @staticmethod
    def desired_foremen(desired_builders: int) -> int:
        if desired_builders <= 0:
            return 0
        return max(1, desired_builders // BUILDERS_PER_FOREMAN)

    def builder_ceiling(self, ctx: AllocationContext) -> int:
        if ctx.construction_active:
            return self.compute_desired_builders(ctx)
        return IDLE_BUILDER_FLOOR

    # --- scoring ----------------------------------------------------------

    def score_slot(self, slot: OpenSlot | JobType | str, needs: ResourceNeeds, ctx: AllocationContext) -> float:
        """Score an open slot (or a bare job type). Never raises."""
        job_type = slot.job_type if isinstance(slot, OpenSlot) else coerce_job_type(slot)
        scorer = self._scorers.get(job_type) if job_type is not None else None
        if scorer is None:
            return NO_PAYOFF_PENALTY
        return scorer(needs, ctx)

    def _score_farmer(self, needs: ResourceNeeds, ctx: AllocationContext) -> float:
        score = 10 * needs.food
        farmer_floor = math.ceil(ctx.population / FARMER_POPULATION_RATIO)
        if self.ledger.count_of_type(JobType.FARMER) < farmer_floor:
            score += 15
        return score

    def _score_sawyer(self, needs: ResourceNeeds, ctx: AllocationContext) -> float:
        wood = ctx.stock("wood")
        cap = ctx.cap("wood")
        score = 0.0
        if cap > 0 and wood / cap >= 0.4:
            score += 6
        if wood >= 5:
            score += 2
        score += 3 * needs.planks
        if wood < 3:
            score -= 15
        return score

    def _score_blacksmith(self, needs: ResourceNeeds, ctx: AllocationContext) -> float:
        score = 2 * needs.weapons + 2 * needs.tools
        if ctx.stock("metal") < 2:
            score -= 10
        return score

    def _score_builder(self, needs: ResourceNeeds, ctx: AllocationContext) -> float:
        builders = self.ledger.count_of_type(JobType.BUILDER)
        if ctx.construction_active:
            score = 8.0
        elif builders < IDLE_BUILDER_FLOOR:
            score = 3.0
        else:
            score = -5.0
        desired = self.compute_desired_builders(ctx)
        if desired > 0 and builders >= desired:
            score -= 30
        return score

    def _score_foreman(self, needs: ResourceNeeds, ctx: AllocationContext) -> float:
        score = 6.0 if ctx.construction_active else -20.0
        wanted = self.desired_foremen(self.compute_desired_builders(ctx))
        if self.ledger.count_of_type(JobType.FOREMAN) >= wanted:
            score -= 30
        return score

    def passes_gate(self, job_type: JobType, ctx: AllocationContext) -> bool:
        gate = PROCESSING_GATES.get(job_type)
        if gate is None:
            return True
        resource, minimum = gate
        return ctx.stock(resource) >= minimum

    # --- allocation -------------------------------------------------------

    def optimize(self, ctx: AllocationContext) -> int:
        """Release workers from jobs that no longer pay off. Returns count released."""
        released = 0

        if not ctx.construction_active:
            released += self.ledger.release_all_of_type(JobType.BUILDER)
            released += self.ledger.release_all_of_type(JobType.FOREMAN)

        for job_type, (resource, minimum) in PROCESSING_GATES.items():
            if ctx.stock(resource) < minimum:
                released += self.ledger.release_all_of_type(job_type)

        needs = estimate_needs(ctx.resources, ctx.population, ctx.caps)
        if needs.food > FOOD_RELEASE_URGENCY:
            per_type = math.ceil(needs.food)
            for job_type in FOOD_RELEASE_ORDER:
                released += self.ledger.release_all_of_type(job_type, per_type)

        if released:
            logger.info(f"Optimization released {released} workers for reassignment")
        return released

    def pick_best_worker(self, candidates: Sequence[WorkerView], job_type: JobType) -> Optional[WorkerView]:
        """Fittest candidate for the job; the earliest wins a tie."""
        skills = self.catalog.relevant_skills(job_type)
        best = None
        best_fitness = -1.0
        for worker in candidates:
            fitness = worker_fitness(worker, skills)
            if fitness > best_fitness:
                best = worker
                best_fitness = fitness
        return best

    def ranked_slots(self, ctx: AllocationContext) -> List[Tuple[float, OpenSlot]]:
        """Open slots with their scores, best first and builders first on ties."""
        needs = estimate_needs(ctx.resources, ctx.population, ctx.caps)
        scored = [(self.score_slot(slot, needs, ctx), slot) for slot in self.slots.open_slots(self.ledger)]
        scored.sort(key=lambda item: (-item[0], item[1].job_type != JobType.BUILDER))
        return scored

    def auto_assign(self, ctx: AllocationContext, day: int = 0) -> int:
        """Run one full allocation pass. Returns the number of new assignments."""
        self.optimize(ctx)

        available = self.pool.available_workers()
        if not available:
            logger.debug("No available workers for auto-assignment")
            return 0

        builder_limit = self.builder_ceiling(ctx)
        foreman_limit = self.desired_foremen(self.compute_desired_builders(ctx))

        assigned = 0
        for score, slot in self.ranked_slots(ctx):
            if not available:
                break
            job_type = slot.job_type
            if not self.passes_gate(job_type, ctx):
                logger.debug(f"Skipping {job_type.value} at {slot.building_id}: input below minimum")
                continue

            for _ in range(slot.available):
                if not available:
                    break
                if job_type == JobType.BUILDER and self.ledger.count_of_type(JobType.BUILDER) >= builder_limit:
                    break
                if job_type == JobType.FOREMAN and self.ledger.count_of_type(JobType.FOREMAN) >= foreman_limit:
                    break

                worker = self.pick_best_worker(available, job_type)
                if worker is None or not self.ledger.assign(worker.id, slot.building_id, job_type, day):
                    break
                available.remove(worker)
                assigned += 1
                logger.debug(f"Auto-assigned {worker.name} to {job_type.value} (score {score:.2f})")

        logger.info(f"Auto-assigned {assigned} workers to jobs")
        return assigned

    def missing_builders(self) -> int:
        return max(0, self.slots.capacity_of_type(JobType.BUILDER) - self.ledger.count_of_type(JobType.BUILDER))

    def fill_all_builders(self, day: int = 0) -> int:
        """Put free workers into every open builder slot, ignoring staffing ceilings."""
        missing = self.missing_builders()
        if missing <= 0:
            return 0
        available = self.pool.available_workers()

        assigned = 0
        for slot in self.slots.open_slots(self.ledger):
            if slot.job_type != JobType.BUILDER:
                continue
            for _ in range(slot.available):
                if not available or missing <= 0:
                    break
                worker = self.pick_best_worker(available, JobType.BUILDER)
                available.remove(worker)
                if self.ledger.assign(worker.id, slot.building_id, JobType.BUILDER, day):
                    assigned += 1
                    missing -= 1
            if not available or missing <= 0:
                break

        if assigned:
            logger.info(f"Filled {assigned} builder slot(s)")
        return assigned

    def maximize_builder_assignments(self, day: int = 0) -> int:
        """Pull workers off low-priority jobs and staff every builder slot."""
        missing = self.missing_builders()
        if missing <= 0:
            return 0
        for job_type in BUILDER_RELEASE_ORDER:
            if missing <= 0:
                break
            missing -= self.ledger.release_all_of_type(job_type, missing)
        return self.fill_all_builders(day)
