"""JobManager: one village's job engine wired together.

Owns the slot inventory, assignment ledger, allocator and production
calculator for a single village. Instances share nothing but the read-only
content config.
"""

from __future__ import annotations

import logging
import random
from typing import Dict, Iterable, Optional

from .allocator import AllocationContext, JobAllocator
from .catalog import JobCatalog
from .constants import JobType
from .content_specs import GameConfig
from .ledger import AssignmentLedger
from .models import Building
from .production import ProductionCalculator, ProductionReport
from .slots import SlotInventory
from .workforce import WorkerPool

logger = logging.getLogger(__name__)


class JobManager:
    def __init__(self, config: GameConfig, pool: WorkerPool, rng: Optional[random.Random] = None):
        self.config = config
        self.pool = pool
        self.catalog = JobCatalog(config.jobs)
        self.slots = SlotInventory(config.buildings, config.global_jobs, config.slot_scaling)
        self.ledger = AssignmentLedger(self.slots, pool)
        self.allocator = JobAllocator(self.catalog, self.slots, self.ledger, pool)
        self.production = ProductionCalculator(self.catalog, self.ledger, pool, config.seasons, rng)

    def refresh(self, buildings: Iterable[Building]) -> int:
        """Rebuild slot capacity and release anyone left without a valid slot.

        Returns:
            Number of workers released (orphaned or over capacity).
        """
        buildings = list(buildings)
        self.slots.refresh(buildings)
        released = self.ledger.reconcile_orphans(b.id for b in buildings if b.built and b.level >= 1)
        released += self.ledger.trim_to_capacity()
        if released:
            logger.debug(f"Refresh released {released} workers")
        return released

    def assign(self, worker_id: str, building_id: str, job_type: str | JobType, day: int = 0) -> bool:
        return self.ledger.assign(worker_id, building_id, job_type, day)

    def release(self, worker_id: str) -> bool:
        return self.ledger.release(worker_id)

    def optimize(self, ctx: AllocationContext) -> int:
        return self.allocator.optimize(ctx)

    def auto_assign(self, ctx: AllocationContext, day: int = 0) -> int:
        return self.allocator.auto_assign(ctx, day)

    def maximize_builders(self, day: int = 0) -> int:
        return self.allocator.maximize_builder_assignments(day)

    def daily_production(self, season: Optional[str] = None) -> Dict[str, float]:
        return self.production.daily_production(season)

    def detailed_production(self, season: Optional[str] = None, population: int = 0) -> ProductionReport:
        return self.production.detailed_production(season, population)

    def foreman_assigned(self) -> bool:
        return self.ledger.count_of_type(JobType.FOREMAN) > 0
