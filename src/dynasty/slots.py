from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, List, Set, Tuple

from .catalog import coerce_job_type
from .constants import GLOBAL_BUILDING_ID, GLOBAL_BUILDING_TYPE, JobType
from .content_specs import BuildingSpec
from .models import Building

if TYPE_CHECKING:
    from .ledger import AssignmentLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpenSlot:
    building_id: str
    building_type: str
    job_type: JobType
    capacity: int
    filled: int

    @property
    def available(self) -> int:
        return self.capacity - self.filled


def compute_job_slots(base_slots: int, level: int, strategy: str = "linear") -> int:
    """Scale a building's base slots by its level."""
    level = max(1, level or 1)
    if strategy == "quadratic":
        return max(0, math.floor(base_slots * level * level))
    return max(0, math.floor(base_slots * level))


class SlotInventory:
    """How many workers of each job type every building can hold right now."""

    def __init__(
        self,
        building_specs: Dict[str, BuildingSpec],
        global_jobs: Dict[JobType, int],
        strategy: str = "linear",
    ):
        self.building_specs = building_specs
        self.global_jobs = dict(global_jobs)
        self.strategy = strategy
        self._capacity: Dict[str, Dict[JobType, int]] = {}
        self._types: Dict[str, str] = {}
        self.refresh([])

    def refresh(self, buildings: Iterable[Building]) -> None:
        """Rebuild the capacity table from the current building list."""
        self._capacity = {GLOBAL_BUILDING_ID: {jt: n for jt, n in self.global_jobs.items() if n > 0}}
        self._types = {GLOBAL_BUILDING_ID: GLOBAL_BUILDING_TYPE}

        total = 0
        completed = 0
        for building in buildings:
            total += 1
            if building.level < 1 or not building.built:
                continue
            completed += 1
            spec = self.building_specs.get(building.type)
            if spec is None or not spec.jobs:
                continue
            scaled = {}
            for job_type, base in spec.jobs.items():
                slots = compute_job_slots(base, building.level, self.strategy)
                if slots > 0:
                    scaled[job_type] = slots
            if scaled:
                self._capacity[building.id] = scaled
                self._types[building.id] = building.type

        logger.debug(
            f"Buildings: {total} total, {completed} completed, "
            f"{len(self._capacity)} provide jobs (includes global)"
        )

    def capacity(self, building_id: str, job_type: str | JobType) -> int:
        jt = coerce_job_type(job_type)
        if jt is None:
            return 0
        return self._capacity.get(building_id, {}).get(jt, 0)

    def building_type(self, building_id: str) -> str:
        return self._types.get(building_id, "")

    def building_ids(self) -> Set[str]:
        return set(self._capacity)

    def jobs_at(self, building_id: str) -> Dict[JobType, int]:
        return dict(self._capacity.get(building_id, {}))

    def entries(self) -> Iterator[Tuple[str, JobType, int]]:
        for building_id, jobs in self._capacity.items():
            for job_type, capacity in jobs.items():
                yield building_id, job_type, capacity

    def capacity_of_type(self, job_type: str | JobType) -> int:
        jt = coerce_job_type(job_type)
        return sum(cap for _, j, cap in self.entries() if j == jt)

    def total_capacity(self) -> int:
        return sum(cap for _, _, cap in self.entries())

    def open_slots(self, ledger: "AssignmentLedger") -> List[OpenSlot]:
        """Slots with room left, builder jobs first and then by building type."""
        slots: List[OpenSlot] = []
        for building_id, job_type, capacity in self.entries():
            filled = len(ledger.workers_in(building_id, job_type))
            if capacity - filled > 0:
                slots.append(OpenSlot(
                    building_id=building_id,
                    building_type=self.building_type(building_id),
                    job_type=job_type,
                    capacity=capacity,
                    filled=filled,
                ))
        slots.sort(key=lambda s: (s.job_type != JobType.BUILDER, s.building_type))
        return slots
