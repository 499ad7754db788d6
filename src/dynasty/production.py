"""Daily production from the assignment ledger.

Every assigned worker yields its job's base amounts, scaled by the worker's
fitness for the job, the season (positive yields only) and the building's
efficiency multiplier. Amounts stay fractional; rounding is up to the caller.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from .allocator import worker_fitness
from .catalog import JobCatalog
from .constants import DAILY_FOOD_UPKEEP, JobType
from .content_specs import SeasonTable
from .ledger import AssignmentLedger
from .workforce import WorkerPool

logger = logging.getLogger(__name__)


@dataclass
class BreakdownLine:
    label: str
    workers: int
    amount: float


@dataclass
class ResourceBreakdown:
    income: List[BreakdownLine] = field(default_factory=list)
    expense: List[BreakdownLine] = field(default_factory=list)

    @property
    def net(self) -> float:
        return sum(line.amount for line in self.income) + sum(line.amount for line in self.expense)


@dataclass
class ProductionReport:
    totals: Dict[str, float] = field(default_factory=dict)
    worker_counts: Dict[str, int] = field(default_factory=dict)
    breakdown: Dict[str, ResourceBreakdown] = field(default_factory=dict)


class ProductionCalculator:
    def __init__(
        self,
        catalog: JobCatalog,
        ledger: AssignmentLedger,
        pool: WorkerPool,
        seasons: SeasonTable,
        rng: Optional[random.Random] = None,
    ):
        self.catalog = catalog
        self.ledger = ledger
        self.pool = pool
        self.seasons = seasons
        self.rng = rng or random.Random()
        self._building_multipliers: Dict[str, float] = {}

    def set_building_multiplier(self, building_id: str, value: float) -> None:
        """Temporary efficiency boost (or penalty) for one building."""
        self._building_multipliers[building_id] = float(value)

    def clear_building_multiplier(self, building_id: str) -> None:
        self._building_multipliers.pop(building_id, None)

    def building_multiplier(self, building_id: str) -> float:
        return self._building_multipliers.get(building_id, 1.0)

    def _worker_yields(self, season: Optional[str]) -> Iterator[Tuple[JobType, str, float]]:
        """(job type, resource, amount) for every assigned worker's output."""
        for building_id, job_type, worker_ids in self.ledger.entries():
            building_mult = self.building_multiplier(building_id)
            skills = self.catalog.relevant_skills(job_type)
            gathers = bool(self.catalog.gathered_resources(job_type))
            base_yields = self.catalog.yield_for(job_type)

            for worker_id in worker_ids:
                worker = self.pool.get(worker_id)
                if worker is None:
                    logger.warning(f"Worker {worker_id} not found while computing production")
                    continue
                fitness = worker_fitness(worker, skills)

                if gathers:
                    resource = self.catalog.draw_gathered(job_type, self.rng)
                    yields = {resource: 1.0}
                else:
                    yields = base_yields

                for resource, base in yields.items():
                    season_mult = self.seasons.multiplier(season, resource) if base > 0 else 1.0
                    yield job_type, resource, base * fitness * season_mult * building_mult

    def daily_production(self, season: Optional[str] = None) -> Dict[str, float]:
        """Summed resource deltas for one day. Only resources touched appear."""
        production: Dict[str, float] = {}
        for _, resource, amount in self._worker_yields(season):
            production[resource] = production.get(resource, 0.0) + amount
        logger.debug(f"Total daily production: {production}")
        return production

    def detailed_production(self, season: Optional[str] = None, population: int = 0) -> ProductionReport:
        """Daily production plus a per-job income/expense breakdown per resource."""
        report = ProductionReport()
        per_job: Dict[JobType, Dict[str, float]] = {}

        for job_type, resource, amount in self._worker_yields(season):
            report.totals[resource] = report.totals.get(resource, 0.0) + amount
            if amount > 0:
                report.worker_counts[resource] = report.worker_counts.get(resource, 0) + 1
            job_totals = per_job.setdefault(job_type, {})
            job_totals[resource] = job_totals.get(resource, 0.0) + amount

        for job_type, resources in per_job.items():
            workers = self.ledger.count_of_type(job_type)
            label = f"{self.catalog.display_name(job_type)} ({workers} worker{'' if workers == 1 else 's'})"
            for resource, total in resources.items():
                if not total:
                    continue
                line = BreakdownLine(label=label, workers=workers, amount=round(total, 2))
                entry = report.breakdown.setdefault(resource, ResourceBreakdown())
                if total >= 0:
                    entry.income.append(line)
                else:
                    entry.expense.append(line)

        if population > 0:
            upkeep = -population * DAILY_FOOD_UPKEEP
            report.breakdown.setdefault("food", ResourceBreakdown()).expense.append(
                BreakdownLine(label="Population Upkeep", workers=population, amount=upkeep)
            )

        return report
