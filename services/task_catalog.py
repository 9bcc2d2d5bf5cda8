"""
Regional Maintenance Catalog

Loads the static region -> month -> task table shipped in
``services/data/regional_maintenance.json`` and answers lookups for the
task resolution engine.

Each catalog entry carries an explicit ``key`` assigned when the data file was
authored. Keys equal the title slug for every entry that predates explicit
keys, so overrides and completions stored under the old slug scheme still
resolve.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent / 'data' / 'regional_maintenance.json'

DEFAULT_REGION = 'Midwest'

# IECC climate zone number -> catalog region
IECC_ZONE_REGIONS = {
    '1': 'Northeast',
    '2': 'Southeast',
    '3': 'Southeast',
    '4': 'Midwest',
    '5': 'Midwest',
    '6': 'Mountain West',
    '7': 'Southwest',
    '8': 'West Coast',
}

_NON_SLUG_CHARS = re.compile(r'[^a-z0-9\s-]')
_WHITESPACE = re.compile(r'\s+')
_HYPHENS = re.compile(r'-+')
_ZONE_DIGIT = re.compile(r'\b([1-8])[a-c]?\b', re.IGNORECASE)


def slugify(title: str) -> str:
    """
    Lowercase, drop non-alphanumerics (keeping spaces and hyphens), hyphenate.

    >>> slugify("Test smoke & CO detectors")
    'test-smoke-co-detectors'
    """
    if not title:
        return ''
    slug = _NON_SLUG_CHARS.sub('', title.lower()).strip()
    slug = _WHITESPACE.sub('-', slug)
    return _HYPHENS.sub('-', slug)


@dataclass(frozen=True)
class TaskDef:
    """A catalog task as authored."""
    key: str
    title: str
    description: str = ''


@dataclass(frozen=True)
class MonthBucket:
    """Tasks scheduled for one region in one month."""
    priority: str
    seasonal: List[TaskDef] = field(default_factory=list)
    weather_specific: List[TaskDef] = field(default_factory=list)


@dataclass(frozen=True)
class RegionInfo:
    name: str
    climate_zone: str
    year_round_tasks: List[str]
    special_considerations: List[str]

    def to_dict(self) -> Dict:
        return {
            'name': self.name,
            'slug': slugify(self.name),
            'climate_zone': self.climate_zone,
            'year_round_tasks': list(self.year_round_tasks),
            'special_considerations': list(self.special_considerations),
        }


class RegionCatalog:
    """
    Read-only regional maintenance table.

    One instance is created per application (see ``app_init.create_app``) and
    stored on ``app.extensions['maintenance_catalog']``. Tests build their own
    from the bundled file or from a dict.
    """

    def __init__(self, data: Dict):
        self._buckets: Dict[str, Dict[int, MonthBucket]] = {}
        self._regions: Dict[str, RegionInfo] = {}

        for region_name, region_data in (data.get('regions') or {}).items():
            self._regions[region_name] = RegionInfo(
                name=region_name,
                climate_zone=region_data.get('climate_zone', ''),
                year_round_tasks=list(region_data.get('year_round_tasks', [])),
                special_considerations=list(region_data.get('special_considerations', [])),
            )
            months = {}
            for month_str, month_data in (region_data.get('months') or {}).items():
                months[int(month_str)] = MonthBucket(
                    priority=month_data.get('priority', 'medium'),
                    seasonal=[self._task_from_dict(t) for t in month_data.get('seasonal', [])],
                    weather_specific=[self._task_from_dict(t) for t in month_data.get('weather_specific', [])],
                )
            self._buckets[region_name] = months

        logger.debug(f"Maintenance catalog loaded with {len(self._regions)} regions")

    @staticmethod
    def _task_from_dict(entry) -> TaskDef:
        if isinstance(entry, str):
            return TaskDef(key=slugify(entry), title=entry, description=entry)
        title = entry['title']
        return TaskDef(
            key=entry.get('key') or slugify(title),
            title=title,
            description=entry.get('description') or title,
        )

    @classmethod
    def from_file(cls, path=None) -> 'RegionCatalog':
        """Load a catalog from a JSON file (defaults to the bundled data file)."""
        catalog_path = Path(path) if path else DEFAULT_CATALOG_PATH
        with open(catalog_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        logger.info(f"Loaded maintenance catalog from {catalog_path}")
        return cls(data)

    @property
    def regions(self) -> List[str]:
        """Known region names, in authoring order."""
        return list(self._regions.keys())

    def region_info(self, region: str) -> Optional[RegionInfo]:
        name = self.canonical_region(region)
        return self._regions.get(name) if name else None

    def canonical_region(self, region: str) -> Optional[str]:
        """Match a region by exact name, case-insensitive name, or slug."""
        if not region:
            return None
        if region in self._regions:
            return region
        wanted = slugify(region)
        for name in self._regions:
            if slugify(name) == wanted:
                return name
        return None

    def lookup(self, region: str, month: int) -> Optional[MonthBucket]:
        """Bucket for (region, month), or None when either is unknown."""
        months = self._buckets.get(region)
        if months is None:
            return None
        return months.get(month)


def region_for_climate_zone(climate_zone: Optional[str], catalog: Optional[RegionCatalog] = None,
                            default: str = DEFAULT_REGION) -> str:
    """
    Normalize a house's free-text climate zone to a catalog region.

    A region name or slug wins; otherwise the first IECC zone digit (1-8) is
    mapped; anything else falls back to ``default``.
    """
    if not climate_zone:
        return default

    text = climate_zone.strip()
    if catalog is not None:
        name = catalog.canonical_region(text)
        if name:
            return name
    else:
        for region in set(IECC_ZONE_REGIONS.values()) | {'Pacific Northwest'}:
            if slugify(region) == slugify(text):
                return region

    match = _ZONE_DIGIT.search(text)
    if match:
        return IECC_ZONE_REGIONS[match.group(1)]

    return default
