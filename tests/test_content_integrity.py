"""
Content integrity tests for YAML data files.

These tests ensure that the data files are internally consistent and catch
silent breakages like duplicate IDs, jobs nobody can staff, and host buildings
that do not offer the job they host.
"""
import tempfile
from pathlib import Path

import pytest
import yaml

from dynasty.constants import JobType
from dynasty.content_specs import load_buildings, load_config, load_jobs, load_seasons

DATA_DIR = Path(__file__).resolve().parents[1] / "data"


def _load_yaml(path: Path):
    """Load a YAML file and return its contents."""
    return yaml.safe_load(path.read_text(encoding="utf-8"))


def test_config_loads_and_defines_every_job_type():
    """Test that the shipped content loads and covers the whole JobType enum."""
    config = load_config(DATA_DIR)
    assert set(config.jobs) == set(JobType)
    assert config.slot_scaling == "linear"


def test_host_buildings_offer_their_jobs():
    """Test that a job's host building actually has slots for it.

    Otherwise the job could never be staffed even after the host is built.
    """
    config = load_config(DATA_DIR)
    broken = []
    for job in config.jobs.values():
        if job.building is None:
            continue
        if config.buildings[job.building].jobs.get(job.id, 0) <= 0:
            broken.append(f"{job.id.value} -> {job.building}")
    assert not broken, "host buildings without slots:\n" + "\n".join(broken)


def test_global_jobs_are_builders_and_gatherers():
    """Test the always-available village slots."""
    config = load_config(DATA_DIR)
    assert config.global_jobs == {JobType.BUILDER: 4, JobType.GATHERER: 2}


def test_gatherer_draws_from_basic_resources():
    config = load_config(DATA_DIR)
    gatherer = config.jobs[JobType.GATHERER]
    assert set(gatherer.gathers) == {"food", "wood", "stone"}
    assert gatherer.yields == {}


def test_base_yields_match_balance_table():
    """Test a handful of yields the allocator heuristics are tuned against."""
    config = load_config(DATA_DIR)
    assert config.jobs[JobType.FARMER].yields == {"food": 3.75}
    assert config.jobs[JobType.SAWYER].yields == {"planks": 2.0, "wood": -2.0}
    assert config.jobs[JobType.BLACKSMITH].yields == {"weapons": 1.0, "tools": 2.0, "metal": -1.0}
    assert config.jobs[JobType.BUILDER].yields == {"construction": 1.0}
    assert config.jobs[JobType.WIZARD].yields == {}


def test_season_progression_is_complete():
    """Test that every season in the progression has a duration and the year adds up."""
    seasons = load_seasons(DATA_DIR / "seasons.yaml")
    raw = _load_yaml(DATA_DIR / "seasons.yaml")
    assert list(seasons.progression) == raw["progression"]
    assert seasons.year_length == 160
    assert seasons.multiplier("Summer", "food") == 1.5
    assert seasons.multiplier("Winter", "food") == 0.7
    assert seasons.multiplier("Summer", "gold") == 1.0


def test_building_ids_are_unique():
    raw = _load_yaml(DATA_DIR / "buildings.yaml")
    ids = [b["id"] for b in raw["buildings"]]
    assert len(ids) == len(set(ids))


def test_duplicate_job_reports_line_number():
    """Test that a repeated job id is rejected with file:line context."""
    content = """
jobs:
  - id: farmer
    yields: {food: 3.75}
  - id: farmer
    yields: {food: 1}
"""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "jobs.yaml"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ValueError) as excinfo:
            load_jobs(path)
    message = str(excinfo.value)
    assert "duplicate job id 'farmer'" in message
    assert "jobs.yaml:5:" in message


def test_unknown_job_type_is_rejected():
    content = """
jobs:
  - id: juggler
    yields: {}
"""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "jobs.yaml"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ValueError, match="unknown job type 'juggler'"):
            load_jobs(path)


def test_missing_job_definitions_are_rejected():
    content = """
jobs:
  - id: farmer
    yields: {food: 3.75}
"""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "jobs.yaml"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ValueError, match="job types without a definition"):
            load_jobs(path)


def test_unknown_slot_scaling_strategy_is_rejected():
    content = """
job_slot_scaling: cubic
buildings: []
"""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "buildings.yaml"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ValueError, match="unknown job_slot_scaling 'cubic'"):
            load_buildings(path)


def test_building_with_unknown_job_is_rejected():
    content = """
buildings:
  - id: circus
    jobs: {juggler: 2}
"""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "buildings.yaml"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ValueError, match="unknown job type 'juggler'"):
            load_buildings(path)


def test_malformed_yaml_reports_position():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "jobs.yaml"
        path.write_text("jobs:\n  - id: farmer\n    yields: {food: [\n", encoding="utf-8")
        with pytest.raises(ValueError) as excinfo:
            load_jobs(path)
    assert str(path) in str(excinfo.value)
