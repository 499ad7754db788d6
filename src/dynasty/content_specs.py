"""Content specification loaders for the data-driven job engine.

This module provides data structures and loaders for:
- JobSpec: Per-worker daily yields, host building and relevant skills of a job
- BuildingSpec: Job slots, storage bonuses and construction cost of a building type
- SeasonTable: Season order, durations and production multipliers
- GameConfig: All of the above plus resource caps, validated together
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import yaml
from yaml.nodes import MappingNode, ScalarNode, SequenceNode

from .constants import SLOT_SCALING_STRATEGIES, JobType

DATA_DIR = Path(__file__).resolve().parents[2] / "data"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobSpec:
    """Specification for one job type.

    Attributes:
        id: Job type
        name: Human-readable job name
        description: Job description for UI
        building: Building type hosting the job, or None for host-independent jobs
        yields: Resource -> signed amount per worker per day (negative = consumption)
        skills: Skill names that make a worker better at this job
        gathers: Candidate resources for jobs yielding one random unit per day
    """
    id: JobType
    name: str
    description: str
    building: Optional[str]
    yields: Dict[str, float]
    skills: Tuple[str, ...] = ()
    gathers: Tuple[str, ...] = ()


@dataclass(frozen=True)
class BuildingSpec:
    """Specification for a building type.

    Attributes:
        id: Building type
        name: Display name
        jobs: Job type -> base slot count at level 1
        storage: Storage bonus per resource (``all`` applies to every resource)
        construction_points: Work points needed to construct it
    """
    id: str
    name: str
    jobs: Dict[JobType, int]
    storage: Dict[str, int]
    construction_points: float


@dataclass(frozen=True)
class SeasonTable:
    progression: Tuple[str, ...]
    durations: Dict[str, int]
    multipliers: Dict[str, Dict[str, float]]

    def multiplier(self, season: Optional[str], resource: str) -> float:
        if season is None:
            return 1.0
        return self.multipliers.get(season, {}).get(resource, 1.0)

    @property
    def year_length(self) -> int:
        return sum(self.durations[s] for s in self.progression)


@dataclass(frozen=True)
class GameConfig:
    jobs: Dict[JobType, JobSpec]
    buildings: Dict[str, BuildingSpec]
    global_jobs: Dict[JobType, int]
    slot_scaling: str
    seasons: SeasonTable
    resource_caps: Dict[str, float]


def load_jobs(path: str | Path) -> Dict[JobType, JobSpec]:
    """Load job specifications from YAML file.

    Args:
        path: Path to jobs.yaml file

    Returns:
        Dict mapping job type to JobSpec

    Raises:
        ValueError: If the file is malformed, repeats a job, names an unknown
            job type or leaves a job type undefined
    """
    file_path = Path(path)
    raw, text = _load_yaml_mapping(file_path)
    out: Dict[JobType, JobSpec] = {}

    jobs = raw.get("jobs", [])
    if not isinstance(jobs, list):
        raise ValueError(f"{file_path}: jobs must be a list")
    index_lines = _entry_lines(text, "jobs")
    seen: Dict[JobType, int] = {}

    for idx, j in enumerate(jobs):
        line = index_lines[idx] if idx < len(index_lines) else None
        if not isinstance(j, dict):
            raise ValueError(_format_entry_error(file_path, line, "job must be a mapping"))
        job_type = _parse_job_type(j.get("id"), file_path, line)
        if job_type in seen:
            raise ValueError(_format_entry_error(
                file_path,
                line,
                f"duplicate job id '{job_type.value}' (first defined at line {seen[job_type]})",
            ))
        seen[job_type] = line if line is not None else -1

        yields = j.get("yields") or {}
        if not isinstance(yields, dict):
            raise ValueError(_format_entry_error(file_path, line, f"{job_type.value}: yields must be a mapping"))
        for resource, amount in yields.items():
            if not isinstance(amount, (int, float)):
                raise ValueError(_format_entry_error(
                    file_path,
                    line,
                    f"{job_type.value}: yields.{resource} must be numeric",
                ))

        out[job_type] = JobSpec(
            id=job_type,
            name=j.get("name", job_type.value.replace("_", " ").title()),
            description=j.get("description", ""),
            building=j.get("building"),
            yields={k: float(v) for k, v in yields.items()},
            skills=tuple(j.get("skills") or ()),
            gathers=tuple(j.get("gathers") or ()),
        )

    missing = [jt.value for jt in JobType if jt not in out]
    if missing:
        raise ValueError(f"{file_path}: job types without a definition: {', '.join(missing)}")
    return out


def load_buildings(path: str | Path) -> Tuple[Dict[str, BuildingSpec], Dict[JobType, int], str]:
    """Load building specifications from YAML file.

    Returns:
        Tuple of (building type -> BuildingSpec, global job slots, slot scaling strategy)
    """
    file_path = Path(path)
    raw, text = _load_yaml_mapping(file_path)
    out: Dict[str, BuildingSpec] = {}

    scaling = raw.get("job_slot_scaling", "linear")
    if scaling not in SLOT_SCALING_STRATEGIES:
        raise ValueError(
            f"{file_path}: unknown job_slot_scaling '{scaling}' "
            f"(expected one of {', '.join(SLOT_SCALING_STRATEGIES)})"
        )

    global_jobs = _parse_job_slots(raw.get("global_jobs") or {}, file_path, None, "global_jobs")

    buildings = raw.get("buildings", [])
    if not isinstance(buildings, list):
        raise ValueError(f"{file_path}: buildings must be a list")
    index_lines = _entry_lines(text, "buildings")

    for idx, b in enumerate(buildings):
        line = index_lines[idx] if idx < len(index_lines) else None
        if not isinstance(b, dict):
            raise ValueError(_format_entry_error(file_path, line, "building must be a mapping"))
        building_id = b.get("id")
        if not isinstance(building_id, str) or not building_id:
            raise ValueError(_format_entry_error(file_path, line, "building id must be a string"))
        if building_id in out:
            raise ValueError(_format_entry_error(file_path, line, f"duplicate building id '{building_id}'"))
        out[building_id] = BuildingSpec(
            id=building_id,
            name=b.get("name", building_id.replace("_", " ").title()),
            jobs=_parse_job_slots(b.get("jobs") or {}, file_path, line, f"{building_id}.jobs"),
            storage=dict(b.get("storage") or {}),
            construction_points=float(b.get("construction_points", 0)),
        )

    return out, global_jobs, scaling


def load_seasons(path: str | Path) -> SeasonTable:
    """Load season order, durations and production multipliers from YAML file."""
    file_path = Path(path)
    raw, _ = _load_yaml_mapping(file_path)

    seasons = raw.get("seasons", [])
    if not isinstance(seasons, list):
        raise ValueError(f"{file_path}: seasons must be a list")

    durations: Dict[str, int] = {}
    multipliers: Dict[str, Dict[str, float]] = {}
    for idx, s in enumerate(seasons):
        if not isinstance(s, dict) or not s.get("id"):
            raise ValueError(f"{file_path}: seasons[{idx}] must be a mapping with an id")
        durations[s["id"]] = int(s.get("days", 30))
        multipliers[s["id"]] = {k: float(v) for k, v in (s.get("multipliers") or {}).items()}

    progression = tuple(raw.get("progression") or durations.keys())
    unknown = [name for name in progression if name not in durations]
    if unknown:
        raise ValueError(f"{file_path}: progression references unknown seasons: {', '.join(unknown)}")
    if not progression:
        raise ValueError(f"{file_path}: at least one season is required")

    return SeasonTable(progression=progression, durations=durations, multipliers=multipliers)


def load_resources(path: str | Path) -> Dict[str, float]:
    """Load base storage caps. A cap of ``null`` means the resource is uncapped."""
    file_path = Path(path)
    raw, _ = _load_yaml_mapping(file_path)

    resources = raw.get("resources", [])
    if not isinstance(resources, list):
        raise ValueError(f"{file_path}: resources must be a list")

    caps: Dict[str, float] = {}
    for idx, r in enumerate(resources):
        if not isinstance(r, dict) or not r.get("id"):
            raise ValueError(f"{file_path}: resources[{idx}] must be a mapping with an id")
        cap = r.get("cap")
        caps[r["id"]] = math.inf if cap is None else float(cap)
    return caps


def load_config(data_dir: str | Path = DATA_DIR) -> GameConfig:
    """Load and cross-validate every content table under ``data_dir``.

    Raises:
        FileNotFoundError: If jobs.yaml or buildings.yaml is missing
        ValueError: If any table is malformed or tables disagree
    """
    data_path = Path(data_dir)
    jobs = load_jobs(data_path / "jobs.yaml")
    buildings, global_jobs, scaling = load_buildings(data_path / "buildings.yaml")

    seasons_path = data_path / "seasons.yaml"
    if seasons_path.exists():
        seasons = load_seasons(seasons_path)
    else:
        logger.warning(f"seasons.yaml not found at {data_path}, using a single 30-day season")
        seasons = SeasonTable(progression=("Spring",), durations={"Spring": 30}, multipliers={})

    resources_path = data_path / "resources.yaml"
    if resources_path.exists():
        caps = load_resources(resources_path)
    else:
        logger.warning(f"resources.yaml not found at {data_path}, using default caps")
        caps = {}

    for job in jobs.values():
        if job.building is not None and job.building not in buildings:
            raise ValueError(
                f"{data_path / 'jobs.yaml'}: {job.id.value} is hosted by unknown building '{job.building}'"
            )

    return GameConfig(
        jobs=jobs,
        buildings=buildings,
        global_jobs=global_jobs,
        slot_scaling=scaling,
        seasons=seasons,
        resource_caps=caps,
    )


def _parse_job_type(value: Any, file_path: Path, line: int | None) -> JobType:
    if not isinstance(value, str) or not value:
        raise ValueError(_format_entry_error(file_path, line, "job id must be a string"))
    try:
        return JobType(value)
    except ValueError:
        raise ValueError(_format_entry_error(file_path, line, f"unknown job type '{value}'")) from None


def _parse_job_slots(raw: Any, file_path: Path, line: int | None, where: str) -> Dict[JobType, int]:
    if not isinstance(raw, dict):
        raise ValueError(_format_entry_error(file_path, line, f"{where} must be a mapping"))
    slots: Dict[JobType, int] = {}
    for job_id, count in raw.items():
        job_type = _parse_job_type(job_id, file_path, line)
        if not isinstance(count, int) or count < 0:
            raise ValueError(_format_entry_error(
                file_path,
                line,
                f"{where}.{job_id} must be a non-negative integer",
            ))
        slots[job_type] = count
    return slots


def _entry_lines(text: str, key: str) -> List[int]:
    """Line numbers (1-based) of each entry of the top-level list ``key``."""
    try:
        root = yaml.compose(text)
    except yaml.YAMLError:
        return []
    if not isinstance(root, MappingNode):
        return []

    for key_node, value_node in root.value:
        if isinstance(key_node, ScalarNode) and key_node.value == key:
            if isinstance(value_node, SequenceNode):
                return [node.start_mark.line + 1 for node in value_node.value]
            break
    return []


def _format_entry_error(file_path: Path, line: int | None, message: str) -> str:
    if line is not None:
        return f"{file_path}:{line}: {message}"
    return f"{file_path}: {message}"


def _format_yaml_error(file_path: Path, error: yaml.YAMLError) -> str:
    mark = getattr(error, "problem_mark", None)
    detail = getattr(error, "problem", None)
    if mark is not None:
        detail = detail or str(error)
        return f"{file_path}:{mark.line + 1}:{mark.column + 1}: {detail}"
    return f"{file_path}: {error}"


def _load_yaml_mapping(file_path: Path) -> tuple[Dict[str, Any], str]:
    text = file_path.read_text(encoding="utf-8")
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(_format_yaml_error(file_path, exc)) from exc
    if raw is None:
        return {}, text
    if not isinstance(raw, dict):
        raise ValueError(f"{file_path}: expected a mapping at document root")
    return raw, text
