"""
Home system requirement inference for catalog tasks.

Catalog entries are plain titles, so whether a task applies to a house is
decided by matching the lowercase title against a fixed keyword table. A task
with no matching keyword is ungated and shown to every house.
"""

import re
from typing import List, Optional, Tuple

HEATING_SYSTEMS = ['gas-furnace', 'oil-furnace', 'electric-furnace', 'heat-pump', 'boiler']
COOLING_SYSTEMS = ['central-ac', 'window-ac', 'mini-split']
WATER_HEATERS = [
    'gas-water-heater', 'electric-water-heater', 'tankless-gas', 'tankless-electric', 'solar-water',
]

# Tags a house may list in home_systems
HOME_SYSTEMS = {
    'heating': ['gas-furnace', 'oil-furnace', 'electric-furnace', 'heat-pump', 'boiler',
                'radiant-floor', 'wood-stove'],
    'cooling': ['central-ac', 'window-ac', 'mini-split', 'evaporative'],
    'water': ['gas-water-heater', 'electric-water-heater', 'tankless-gas', 'tankless-electric',
              'solar-water', 'well-water', 'water-softener'],
    'features': ['solar-panels', 'pool', 'spa', 'generator', 'septic', 'sump-pump',
                 'security-system', 'sprinkler-system'],
}

ALL_SYSTEM_TAGS = frozenset(tag for tags in HOME_SYSTEMS.values() for tag in tags)

# Order matters: the result lists tags in the order their rows first match.
SYSTEM_KEYWORDS: List[Tuple[Tuple[str, ...], List[str]]] = [
    (('furnace', 'heating system', 'boiler', 'heat pump'), HEATING_SYSTEMS),
    (('air condition', 'ac'), COOLING_SYSTEMS),
    (('cooling system',), COOLING_SYSTEMS + ['evaporative']),
    (('evaporative cooler', 'swamp cooler'), ['evaporative']),
    (('fireplace', 'chimney', 'wood stove'), ['wood-stove']),
    (('water heater',), WATER_HEATERS),
    (('well water', 'well pump'), ['well-water']),
    (('water softener',), ['water-softener']),
    (('solar panel',), ['solar-panels']),
    (('solar water',), ['solar-water']),
    (('pool',), ['pool']),
    (('spa', 'hot tub'), ['spa']),
    (('generator',), ['generator']),
    (('septic',), ['septic']),
    (('sump pump',), ['sump-pump']),
    (('security system', 'alarm system'), ['security-system']),
    (('irrigation', 'sprinkler'), ['sprinkler-system']),
]


def _keyword_pattern(keyword: str):
    # "air condition" must also catch "air conditioning"/"air conditioner",
    # so only the leading edge is anchored for multi-letter stems.
    if keyword == 'air condition':
        return re.compile(r'\bair condition')
    return re.compile(r'\b' + re.escape(keyword) + r'(s|es)?\b')


_COMPILED_KEYWORDS = [
    ([_keyword_pattern(k) for k in keywords], tags)
    for keywords, tags in SYSTEM_KEYWORDS
]


def infer_system_requirements(title: str) -> Optional[List[str]]:
    """
    Return the system tags a task needs, or None when it applies to every house.

    Args:
        title: Catalog task title

    Returns:
        De-duplicated list of tags in keyword-table order, or None
    """
    if not title:
        return None

    text = title.lower()
    result: List[str] = []
    for patterns, tags in _COMPILED_KEYWORDS:
        if any(p.search(text) for p in patterns):
            for tag in tags:
                if tag not in result:
                    result.append(tag)

    return result or None


def is_system_gate_satisfied(requirements: Optional[List[str]], installed_systems) -> bool:
    """True when a task is ungated or at least one required tag is installed."""
    if not requirements:
        return True
    installed = set(installed_systems or ())
    return any(tag in installed for tag in requirements)


def unknown_system_tags(tags) -> List[str]:
    """Tags not in HOME_SYSTEMS, for request validation."""
    return [t for t in (tags or []) if t not in ALL_SYSTEM_TAGS]
