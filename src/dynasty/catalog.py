from __future__ import annotations

import random
from typing import Dict, Iterator, Optional, Tuple

from .constants import JobType
from .content_specs import JobSpec


def coerce_job_type(job_type: str | JobType) -> Optional[JobType]:
    """Return the JobType for ``job_type`` or None if it names no known job."""
    if isinstance(job_type, JobType):
        return job_type
    try:
        return JobType(job_type)
    except ValueError:
        return None


class JobCatalog:
    """Read-only view over the job specs loaded from jobs.yaml."""

    def __init__(self, specs: Dict[JobType, JobSpec]):
        self.specs = specs

    def __contains__(self, job_type: object) -> bool:
        return isinstance(job_type, str) and coerce_job_type(job_type) in self.specs

    def __iter__(self) -> Iterator[JobSpec]:
        return iter(self.specs.values())

    def get(self, job_type: str | JobType) -> Optional[JobSpec]:
        jt = coerce_job_type(job_type)
        return self.specs.get(jt) if jt is not None else None

    def yield_for(self, job_type: str | JobType) -> Dict[str, float]:
        """Base per-worker daily yield; negative amounts are consumption."""
        spec = self.get(job_type)
        return dict(spec.yields) if spec else {}

    def host_building(self, job_type: str | JobType) -> Optional[str]:
        spec = self.get(job_type)
        return spec.building if spec else None

    def relevant_skills(self, job_type: str | JobType) -> Tuple[str, ...]:
        spec = self.get(job_type)
        return spec.skills if spec else ()

    def gathered_resources(self, job_type: str | JobType) -> Tuple[str, ...]:
        spec = self.get(job_type)
        return spec.gathers if spec else ()

    def draw_gathered(self, job_type: str | JobType, rng: random.Random) -> Optional[str]:
        """Pick one resource uniformly from the job's candidate set."""
        candidates = self.gathered_resources(job_type)
        if not candidates:
            return None
        return rng.choice(candidates)

    def has_payoff(self, job_type: str | JobType) -> bool:
        """True if the job yields any resource at all."""
        spec = self.get(job_type)
        if spec is None:
            return False
        return bool(spec.gathers) or any(amount > 0 for amount in spec.yields.values())

    def display_name(self, job_type: str | JobType) -> str:
        spec = self.get(job_type)
        if spec is not None:
            return spec.name
        raw = job_type.value if isinstance(job_type, JobType) else str(job_type)
        return raw.replace("_", " ").title() if raw else "Job"
