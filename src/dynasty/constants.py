"""Shared constants for the Dynasty job engine."""

from __future__ import annotations

from enum import Enum


class JobType(str, Enum):
    """Every job a worker can hold. Content files must define all of them."""
    FARMER = "farmer"
    WOODCUTTER = "woodcutter"
    BUILDER = "builder"
    GATHERER = "gatherer"
    SAWYER = "sawyer"
    FOREMAN = "foreman"
    MINER = "miner"
    ROCKCUTTER = "rockcutter"
    ENGINEER = "engineer"
    TRADER = "trader"
    BLACKSMITH = "blacksmith"
    DRILL_INSTRUCTOR = "drill_instructor"
    MILITARY_THEORIST = "military_theorist"
    PROFESSOR = "professor"
    SCHOLAR = "scholar"
    WIZARD = "wizard"
    PRIEST = "priest"


# Synthetic building that always offers baseline jobs
GLOBAL_BUILDING_ID = "global"
GLOBAL_BUILDING_TYPE = "village"

# Worker eligibility
MIN_WORK_AGE = 16
MAX_WORK_AGE = 120          # Dynasty game - people can work until very old
MIN_WORK_HEALTH = 30
EXCLUDED_ROLES = ("player", "monarch", "royal")
UNAVAILABLE_STATUSES = ("drafted", "traveling", "away", "dead")

# Resource bookkeeping
DAILY_FOOD_UPKEEP = 1       # food per person per day
DEFAULT_RESOURCE_CAP = 50
DEFAULT_GOLD_CAP = 100
TRACKED_RESOURCES = [
    "food",
    "wood",
    "stone",
    "metal",
    "planks",
    "weapons",
    "tools",
    "production",
    "gold",
]

# Allocation tuning
BUILDER_TARGET_DAYS = 7     # aim to finish the active site in about a week
IDLE_BUILDER_FLOOR = 2      # builders kept desirable with no active site
BUILDERS_PER_FOREMAN = 4
FARMER_POPULATION_RATIO = 8  # one farmer per 8 villagers as a staffing floor
FOOD_RELEASE_URGENCY = 1.0
NO_PAYOFF_PENALTY = -50.0
SLOT_SCALING_STRATEGIES = ("linear", "quadratic")

# Processing jobs need a minimum stock of their input before anyone is assigned
PROCESSING_GATES = {
    JobType.SAWYER: ("wood", 3),
    JobType.BLACKSMITH: ("metal", 2),
}

# Freed when food runs short, in this order
FOOD_RELEASE_ORDER = [
    JobType.TRADER,
    JobType.ROCKCUTTER,
    JobType.MINER,
    JobType.BLACKSMITH,
    JobType.ENGINEER,
]

# Lowest priority first; farmers last to avoid starvation
BUILDER_RELEASE_ORDER = [
    JobType.TRADER,
    JobType.ENGINEER,
    JobType.BLACKSMITH,
    JobType.WIZARD,
    JobType.PROFESSOR,
    JobType.SCHOLAR,
    JobType.DRILL_INSTRUCTOR,
    JobType.MILITARY_THEORIST,
    JobType.PRIEST,
    JobType.SAWYER,
    JobType.GATHERER,
    JobType.MINER,
    JobType.ROCKCUTTER,
    JobType.WOODCUTTER,
    JobType.FARMER,
]

# Construction
FOREMAN_BOOST = 1.2         # +20% builder output while any foreman is on staff

# Experience levels by XP threshold (highest first)
SKILL_LEVELS = [
    (1001, "master"),
    (601, "expert"),
    (301, "journeyman"),
    (101, "apprentice"),
    (0, "novice"),
]

# Maximum event log entries to keep (prevents unbounded growth)
MAX_EVENT_LOG = 100

# New-game village
STARTING_RESOURCES = {
    "food": 60,
    "wood": 30,
    "stone": 15,
    "metal": 0,
    "planks": 0,
    "weapons": 0,
    "tools": 0,
    "production": 0,
    "gold": 100,
}
STARTING_BUILDINGS = ["town_center", "house", "house", "farm"]
STARTING_VILLAGERS = 8
VILLAGER_NAMES = [
    "Aldric", "Berta", "Cedric", "Dagny", "Edmund", "Freya", "Godwin", "Hilde",
    "Ivo", "Jorunn", "Kenric", "Liesel", "Merek", "Nessa", "Osric", "Perrin",
]
STARTING_SKILLS = ["agriculture", "forestry", "masonry", "carpentry", "mining", "hunting", "trade"]
