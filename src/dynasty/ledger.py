"""Assignment ledger: which worker holds which job at which building.

The ledger is the single source of truth for "who works where". It stores
worker ids only; worker records are updated through the :class:`WorkerPool`.

Invariants kept by every mutation:
- a (building, job type) list never grows beyond the slot inventory's capacity
- a worker id appears in at most one list
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .catalog import coerce_job_type
from .constants import GLOBAL_BUILDING_ID, JobType
from .models import JobAssignment
from .slots import SlotInventory
from .workforce import WorkerPool

logger = logging.getLogger(__name__)


class AssignmentLedger:
    def __init__(self, slots: SlotInventory, pool: WorkerPool):
        self.slots = slots
        self.pool = pool
        self._assignments: Dict[str, Dict[JobType, List[str]]] = {}

    def workers_in(self, building_id: str, job_type: str | JobType) -> List[str]:
        jt = coerce_job_type(job_type)
        if jt is None:
            return []
        return list(self._assignments.get(building_id, {}).get(jt, []))

    def entries(self) -> Iterator[Tuple[str, JobType, List[str]]]:
        for building_id, jobs in self._assignments.items():
            for job_type, worker_ids in jobs.items():
                yield building_id, job_type, list(worker_ids)

    def assignment_of(self, worker_id: str) -> Optional[Tuple[str, JobType]]:
        for building_id, job_type, worker_ids in self.entries():
            if worker_id in worker_ids:
                return building_id, job_type
        return None

    def assign(self, worker_id: str, building_id: str, job_type: str | JobType, day: int = 0) -> bool:
        """Put a worker into a job slot.

        Returns:
            False if the building offers no such job, the slot is full, the
            worker does not exist or already holds a job; True otherwise.
        """
        jt = coerce_job_type(job_type)
        capacity = self.slots.capacity(building_id, jt) if jt is not None else 0
        if capacity <= 0:
            logger.warning(f"Job type {job_type} not available at building {building_id}")
            return False

        current = self._assignments.get(building_id, {}).get(jt, [])
        if len(current) >= capacity:
            logger.debug(f"No available slots for {jt.value} at building {building_id}")
            return False

        worker = self.pool.get(worker_id)
        if worker is None:
            logger.warning(f"Worker {worker_id} not found")
            return False

        if worker.job_assignment is not None or self.assignment_of(worker_id) is not None:
            held = worker.job_assignment.job_type.value if worker.job_assignment else "unknown"
            logger.warning(f"Worker {worker.name} is already assigned to {held}")
            return False

        self._assignments.setdefault(building_id, {}).setdefault(jt, []).append(worker_id)
        self.pool.set_assignment(worker_id, JobAssignment(building_id, jt, day))
        logger.debug(f"Assigned {worker.name} to {jt.value} job at {building_id}")
        return True

    def release(self, worker_id: str) -> bool:
        """Take a worker out of its job. False if it holds none."""
        worker = self.pool.get(worker_id)
        if worker is None or worker.job_assignment is None:
            return False

        assignment = worker.job_assignment
        self._remove_id(assignment.building_id, assignment.job_type, worker_id)
        self.pool.clear_assignment(worker_id)
        logger.debug(f"Removed {worker.name} from {assignment.job_type.value} job")
        return True

    def release_all_of_type(self, job_type: str | JobType, max_count: Optional[int] = None) -> int:
        """Release up to ``max_count`` workers of a job type across all buildings.

        Most recently assigned workers go first. ``None`` releases all of them.
        """
        jt = coerce_job_type(job_type)
        if jt is None:
            return 0
        released = 0
        for building_id in list(self._assignments):
            if max_count is not None and released >= max_count:
                break
            worker_ids = self._assignments[building_id].get(jt)
            if not worker_ids:
                continue
            while worker_ids and (max_count is None or released < max_count):
                worker_id = worker_ids.pop()
                self.pool.clear_assignment(worker_id)
                released += 1
            self._prune(building_id, jt)
        if released > 0:
            logger.debug(f"Released {released} {jt.value} workers for reassignment")
        return released

    def count_of_type(self, job_type: str | JobType) -> int:
        jt = coerce_job_type(job_type)
        return sum(len(ids) for _, j, ids in self.entries() if j == jt)

    def total_assigned(self) -> int:
        return sum(len(ids) for _, _, ids in self.entries())

    def total_capacity(self) -> int:
        return self.slots.total_capacity()

    def reconcile_orphans(self, valid_building_ids: Iterable[str]) -> int:
        """Drop entries pointing at buildings or workers that no longer exist.

        Returns:
            Number of worker ids removed from the ledger.
        """
        valid = set(valid_building_ids) | {GLOBAL_BUILDING_ID}
        removed = 0
        for building_id in list(self._assignments):
            if building_id not in valid:
                jobs = self._assignments.pop(building_id)
                for job_type, worker_ids in jobs.items():
                    logger.warning(
                        f"Pruning {len(worker_ids)} {job_type.value} assignments at missing building {building_id}"
                    )
                    for worker_id in worker_ids:
                        self.pool.clear_assignment(worker_id)
                        removed += 1
                continue

            for job_type in list(self._assignments[building_id]):
                for worker_id in list(self._assignments[building_id][job_type]):
                    worker = self.pool.get(worker_id)
                    if worker is None or worker.status == "dead":
                        logger.warning(f"Pruning assignment of missing worker {worker_id} at {building_id}")
                        self._assignments[building_id][job_type].remove(worker_id)
                        self.pool.clear_assignment(worker_id, keep_status=True)
                        removed += 1
                self._prune(building_id, job_type)
        return removed

    def trim_to_capacity(self) -> int:
        """Release workers beyond each slot's current capacity (newest first)."""
        released = 0
        for building_id in list(self._assignments):
            for job_type in list(self._assignments[building_id]):
                worker_ids = self._assignments[building_id][job_type]
                capacity = self.slots.capacity(building_id, job_type)
                while len(worker_ids) > capacity:
                    self.pool.clear_assignment(worker_ids.pop())
                    released += 1
                self._prune(building_id, job_type)
        if released:
            logger.info(f"Released {released} workers after job capacity shrank")
        return released

    def to_dict(self) -> Dict[str, Dict[str, List[str]]]:
        return {
            building_id: {job_type.value: list(ids) for job_type, ids in jobs.items()}
            for building_id, jobs in self._assignments.items()
        }

    def load_dict(self, data: Dict[str, Any], day: int = 0) -> int:
        """Replace the ledger with a saved ``building -> job -> [ids]`` mapping.

        The slot inventory must already be refreshed: entries are checked
        against its capacity. Worker records are re-synchronised afterwards.
        Unknown job types, unknown or duplicate worker ids, and ids beyond a
        slot's capacity are skipped with a warning.
        """
        self._assignments = {}
        seen: set = set()
        for building_id, jobs in (data or {}).items():
            building_id = str(building_id)
            for job_name, worker_ids in (jobs or {}).items():
                jt = coerce_job_type(job_name)
                if jt is None:
                    logger.warning(f"Skipping unknown job type '{job_name}' at {building_id} in saved ledger")
                    continue
                capacity = self.slots.capacity(building_id, jt)
                for worker_id in worker_ids or []:
                    if worker_id in seen:
                        logger.warning(f"Worker {worker_id} listed twice in saved ledger, keeping first entry")
                        continue
                    seen.add(worker_id)
                    if self.pool.get(worker_id) is None:
                        logger.warning(f"Worker {worker_id} not found, dropping saved {jt.value} assignment")
                        continue
                    current = self._assignments.get(building_id, {}).get(jt, [])
                    if len(current) >= capacity:
                        logger.warning(
                            f"No {jt.value} slot left for {worker_id} at {building_id} "
                            f"(capacity {capacity}), dropping saved assignment"
                        )
                        continue
                    self._assignments.setdefault(building_id, {}).setdefault(jt, []).append(worker_id)
        return self.sync_workers(day)

    def sync_workers(self, day: int = 0) -> int:
        """Make every worker's assignment match the ledger. Returns restored count."""
        self.pool.reset_assignments()
        restored = 0
        for building_id in list(self._assignments):
            for job_type in list(self._assignments[building_id]):
                for worker_id in list(self._assignments[building_id][job_type]):
                    if self.pool.set_assignment(worker_id, JobAssignment(building_id, job_type, day)):
                        restored += 1
                    else:
                        logger.warning(f"Worker {worker_id} not found during job assignment restoration")
                        self._assignments[building_id][job_type].remove(worker_id)
                self._prune(building_id, job_type)
        logger.debug(f"Restored {restored} individual worker job assignments")
        return restored

    def _remove_id(self, building_id: str, job_type: JobType, worker_id: str) -> None:
        worker_ids = self._assignments.get(building_id, {}).get(job_type)
        if worker_ids and worker_id in worker_ids:
            worker_ids.remove(worker_id)
            self._prune(building_id, job_type)

    def _prune(self, building_id: str, job_type: JobType) -> None:
        jobs = self._assignments.get(building_id)
        if jobs is None:
            return
        if not jobs.get(job_type):
            jobs.pop(job_type, None)
        if not jobs:
            del self._assignments[building_id]
