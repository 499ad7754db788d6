from __future__ import annotations

import random
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Deque, Dict, List, Optional
from uuid import uuid4

from .constants import MAX_EVENT_LOG, JobType

if TYPE_CHECKING:
    from .manager import JobManager


@dataclass
class JobAssignment:
    building_id: str
    job_type: JobType
    assigned_day: int = 0


@dataclass
class Worker:
    """One villager as seen by the job engine.

    Records are owned by the population; the assignment ledger only touches
    ``status`` and ``job_assignment`` through :class:`~dynasty.workforce.WorkerPool`.
    """
    id: str
    name: str
    age: int = 25             # abstract days
    health: int = 100         # 0..100
    happiness: int = 75       # 0..100
    skills: Dict[str, int] = field(default_factory=dict)  # skill name -> XP
    status: str = "idle"      # idle/working/traveling/sick/dead/drafted/away
    role: str = "villager"    # background flavour (villager, monarch, royal...)
    on_expedition: bool = False
    job_assignment: Optional[JobAssignment] = None


@dataclass
class Building:
    id: str
    type: str
    level: int = 1
    built: bool = True


@dataclass
class ConstructionSite:
    id: str
    building_id: str
    building_type: str
    points_required: float
    points_remaining: float

    @property
    def active(self) -> bool:
        return self.points_remaining > 0


@dataclass
class Village:
    schema_version: int = 1
    day: int = 1
    season: str = "Spring"
    resources: Dict[str, float] = field(default_factory=dict)
    buildings: List[Building] = field(default_factory=list)
    population: List[Worker] = field(default_factory=list)
    construction_sites: List[ConstructionSite] = field(default_factory=list)
    governing_leader_id: Optional[str] = None
    rng_seed: int = 0
    rng: random.Random = field(default_factory=random.Random)  # Reusable RNG instance
    event_log: Deque[dict] = field(default_factory=lambda: deque(maxlen=MAX_EVENT_LOG))
    jobs: Optional["JobManager"] = field(default=None, repr=False, compare=False)

    def get_building(self, building_id: str) -> Optional[Building]:
        for building in self.buildings:
            if building.id == building_id:
                return building
        return None

    def active_sites(self) -> List[ConstructionSite]:
        return [site for site in self.construction_sites if site.active]

    def living_population(self) -> List[Worker]:
        return [w for w in self.population if w.status != "dead"]


def generate_id(prefix: str, rng: Optional[random.Random] = None) -> str:
    """Generate a short unique identifier such as ``b_1a2b3c4d``.

    Args:
        prefix: Identifier prefix (``b`` for buildings, ``p`` for people...)
        rng: Optional random number generator for deterministic IDs.
             If None, uses uuid4().
    """
    if rng is not None:
        hex_str = ''.join(rng.choice('0123456789abcdef') for _ in range(8))
        return f"{prefix}_{hex_str}"
    return f"{prefix}_{uuid4().hex[:8]}"
