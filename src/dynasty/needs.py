"""Resource need estimation.

Turns the current stockpile into per-resource urgency figures. Higher means
scarcer. Everything here is a pure function of its inputs.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Dict, Mapping

from .constants import DEFAULT_GOLD_CAP, DEFAULT_RESOURCE_CAP

FOOD_DAYS_TARGET = 3.0  # days of food per person considered comfortable


@dataclass(frozen=True)
class ResourceNeeds:
    food: float = 0.0
    wood: float = 0.0
    stone: float = 0.0
    metal: float = 0.0
    basic: float = 0.0
    planks: float = 0.0
    weapons: float = 0.0
    tools: float = 0.0
    gold: float = 0.0
    production: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def default_cap(resource: str) -> float:
    """Cap assumed for a resource the caller gave no cap for."""
    return DEFAULT_GOLD_CAP if resource == "gold" else DEFAULT_RESOURCE_CAP


def cap_urgency(current: float, cap: float) -> float:
    """How empty a capped store is: 1.0 when empty, 0.0 at or above cap."""
    if cap <= 0:
        return 0.0
    if math.isinf(cap):
        return 1.0
    return max(0.0, 1.0 - current / cap)


def food_urgency(food: float, population: int) -> float:
    if population <= 0:
        return 0.0
    return max(0.0, FOOD_DAYS_TARGET - food / population)


def estimate_needs(
    resources: Mapping[str, float],
    population: int,
    caps: Mapping[str, float],
) -> ResourceNeeds:
    """Estimate how badly the village needs each resource.

    Args:
        resources: Current stock by resource name (missing means 0)
        population: Living villagers, used for food per head
        caps: Storage caps; missing entries fall back to the defaults

    Returns:
        ResourceNeeds with one non-negative urgency per resource
    """
    def stock(name: str) -> float:
        return float(resources.get(name, 0) or 0)

    def cap(name: str) -> float:
        return float(caps.get(name, default_cap(name)))

    food = food_urgency(stock("food"), population)
    wood = cap_urgency(stock("wood"), cap("wood"))
    stone = cap_urgency(stock("stone"), cap("stone"))
    metal = cap_urgency(stock("metal"), cap("metal"))

    return ResourceNeeds(
        food=food,
        wood=wood,
        stone=stone,
        metal=metal,
        basic=0.5 * max(wood, stone) + 0.5 * food,
        planks=0.6 * cap_urgency(stock("planks"), cap("planks")) + 0.4 * wood,
        weapons=0.6 * cap_urgency(stock("weapons"), cap("weapons")) + 0.4 * metal,
        tools=0.5 * cap_urgency(stock("tools"), cap("tools")),
        gold=0.3 * cap_urgency(stock("gold"), cap("gold")),
        production=0.1,
    )
