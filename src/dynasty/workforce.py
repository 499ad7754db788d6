"""Worker pool accessor.

The pool owns the population's worker records. Everything else in the engine
refers to workers by id and goes through the pool to read eligibility or to
change a worker's status and job assignment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional

from .constants import (
    EXCLUDED_ROLES,
    MAX_WORK_AGE,
    MIN_WORK_AGE,
    MIN_WORK_HEALTH,
    UNAVAILABLE_STATUSES,
)
from .models import JobAssignment, Worker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkerView:
    """Read-only projection of a worker handed to the allocator."""
    id: str
    name: str
    age: int
    skills: Mapping[str, int]
    health: int
    happiness: int
    job_assignment: Optional[JobAssignment]
    status: str
    role: str


class WorkerPool:
    def __init__(
        self,
        workers: List[Worker],
        leader_id: Optional[str] = None,
        min_age: int = MIN_WORK_AGE,
        max_age: int = MAX_WORK_AGE,
        min_health: int = MIN_WORK_HEALTH,
    ):
        self.workers = workers
        self.leader_id = leader_id
        self.min_age = min_age
        self.max_age = max_age
        self.min_health = min_health

    def __len__(self) -> int:
        return len(self.workers)

    def all(self) -> List[Worker]:
        return list(self.workers)

    def ids(self) -> Iterable[str]:
        return (w.id for w in self.workers)

    def get(self, worker_id: str) -> Optional[Worker]:
        for worker in self.workers:
            if worker.id == worker_id:
                return worker
        return None

    def is_eligible(self, worker: Worker) -> bool:
        """Check every condition for joining the free labour pool."""
        if not (self.min_age <= worker.age <= self.max_age):
            return False
        if worker.health < self.min_health:
            return False
        if worker.job_assignment is not None:
            return False
        if self.leader_id is not None and worker.id == self.leader_id:
            return False
        if worker.role in EXCLUDED_ROLES:
            return False
        if worker.status in UNAVAILABLE_STATUSES or worker.on_expedition:
            return False
        return True

    def available_workers(self) -> List[WorkerView]:
        available = [self.view(w) for w in self.workers if self.is_eligible(w)]
        logger.debug(f"Available workers: {len(available)} of {len(self.workers)}")
        return available

    @staticmethod
    def view(worker: Worker) -> WorkerView:
        return WorkerView(
            id=worker.id,
            name=worker.name,
            age=worker.age,
            skills=MappingProxyType(dict(worker.skills)),
            health=worker.health,
            happiness=worker.happiness,
            job_assignment=worker.job_assignment,
            status=worker.status,
            role=worker.role,
        )

    def set_assignment(self, worker_id: str, assignment: JobAssignment) -> bool:
        worker = self.get(worker_id)
        if worker is None:
            return False
        worker.job_assignment = assignment
        worker.status = "working"
        return True

    def clear_assignment(self, worker_id: str, keep_status: bool = False) -> bool:
        """Drop a worker's job. ``keep_status`` leaves e.g. ``dead`` in place."""
        worker = self.get(worker_id)
        if worker is None:
            return False
        worker.job_assignment = None
        if not keep_status:
            worker.status = "idle"
        return True

    def reset_assignments(self) -> int:
        """Drop every worker's assignment before a ledger restore.

        Workers marked as working go back to idle; other statuses (drafted,
        sick...) are left alone.
        """
        cleared = 0
        for worker in self.workers:
            if worker.job_assignment is not None:
                worker.job_assignment = None
                cleared += 1
            if worker.status == "working":
                worker.status = "idle"
        return cleared
