"""
Cost estimates for maintenance tasks.

Category and difficulty are inferred from task text, then a baseline range is
scaled by a difficulty factor and a regional labor multiplier. Figures are
rough national ranges in USD and rounded to the nearest $5.
"""

import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)

# category -> (pro_low, pro_high, materials_low, materials_high) for a moderate task
COST_BASELINES = {
    'hvac': (100, 300, 20, 80),
    'heating': (150, 350, 20, 60),
    'plumbing': (125, 350, 10, 75),
    'water_heater': (100, 250, 10, 50),
    'electrical': (150, 400, 10, 60),
    'roof': (200, 600, 25, 150),
    'gutters': (100, 250, 10, 40),
    'exterior': (150, 500, 25, 150),
    'deck': (200, 600, 50, 200),
    'patio': (150, 450, 30, 120),
    'windows': (100, 350, 15, 60),
    'doors': (100, 300, 15, 60),
    'safety': (50, 150, 15, 60),
    'insulation': (300, 900, 50, 250),
    'ventilation': (100, 300, 15, 75),
    'drainage': (200, 700, 25, 150),
    'lawn': (50, 150, 20, 80),
    'landscaping': (100, 400, 25, 150),
    'appliances': (100, 250, 10, 60),
    'painting': (300, 1000, 50, 200),
    'garage': (100, 300, 10, 60),
    'pool': (100, 300, 30, 120),
    'septic': (250, 600, 0, 50),
    'cleaning': (75, 200, 10, 40),
    'general_maintenance': (100, 250, 15, 60),
}

DIFFICULTY_FACTORS = {
    'easy': 0.5,
    'moderate': 1.0,
    'difficult': 2.0,
}

REGION_MULTIPLIERS = {
    'Northeast': 1.15,
    'West Coast': 1.25,
    'Pacific Northwest': 1.1,
    'Mountain West': 1.0,
    'Midwest': 0.95,
    'Southeast': 0.9,
    'Southwest': 0.95,
}

# Ordered (category, any-of phrases, all-of extra phrases) rules
_CATEGORY_RULES = [
    ('hvac', ('hvac', 'air conditioning', 'furnace', 'heating system', 'thermostat'), ()),
    ('heating', ('fireplace', 'chimney'), ()),
    ('plumbing', ('plumbing', 'pipe', 'faucet', 'drain', 'toilet', 'sink', 'sump pump'), ()),
    ('water_heater', ('water heater',), ()),
    ('electrical', ('electrical', 'outlet', 'gfci', 'afci', 'breaker', 'wiring'), ()),
    ('roof', ('roof', 'shingle', 'flashing'), ()),
    ('gutters', ('gutter', 'downspout'), ()),
    ('roof', ('ice dam',), ()),
    ('exterior', ('siding', 'exterior', 'trim'), ()),
    ('deck', ('deck', 'railing'), ()),
    ('patio', ('patio', 'concrete'), ()),
    ('windows', ('window',), ()),
    ('doors', ('door',), ()),
    ('safety', ('smoke detector', 'carbon monoxide', 'fire extinguisher'), ()),
    ('insulation', ('insulation',), ()),
    ('ventilation', ('ventilation', 'exhaust fan'), ()),
    ('drainage', ('drainage',), ()),
    ('drainage', ('foundation',), ('water',)),
    ('lawn', ('lawn', 'grass', 'mow'), ()),
    ('landscaping', ('landscaping', 'shrub', 'tree', 'garden'), ()),
    ('appliances', ('appliance', 'refrigerator', 'washer', 'dryer', 'dishwasher'), ()),
    ('painting', ('paint',), ()),
    ('painting', ('stain',), ('wood',)),
    ('garage', ('garage opener',), ()),
    ('pool', ('pool', 'spa', 'hot tub'), ()),
    ('septic', ('septic', 'sewer'), ()),
    ('cleaning', ('clean', 'vacuum', 'dust'), ()),
]

_DIFFICULT_INDICATORS = (
    'professional', 'hire', 'contractor', 'licensed', 'certified', 'complex',
    'dangerous', 'electrical panel', 'roof repair', 'structural', 'foundation',
)
_MODERATE_INDICATORS = ('repair', 'replace', 'install', 'service', 'maintenance', 'schedule')


def infer_task_category(title: str, description: str = '') -> str:
    text = f"{title} {description or ''}".lower()
    for category, any_of, all_of in _CATEGORY_RULES:
        if any(p in text for p in any_of) and all(p in text for p in all_of):
            return category
    return 'general_maintenance'


def infer_task_difficulty(title: str, description: str = '') -> str:
    text = f"{title} {description or ''}".lower()
    if any(p in text for p in _DIFFICULT_INDICATORS):
        return 'difficult'
    if any(p in text for p in _MODERATE_INDICATORS):
        return 'moderate'
    if 'inspect' in text and 'visual' not in text:
        return 'moderate'
    return 'easy'


def _round5(value: float) -> int:
    return int(round(value / 5.0) * 5)


def get_cost_estimate(category: str, difficulty: str = 'moderate',
                      region: Optional[str] = None) -> Dict[str, int]:
    """
    Scaled cost range for a task.

    Args:
        category: Category from infer_task_category (unknown -> general_maintenance)
        difficulty: easy, moderate or difficult
        region: Catalog region name (unknown -> no regional adjustment)

    Returns:
        Dict with pro_low, pro_high, materials_low, materials_high
    """
    pro_low, pro_high, mat_low, mat_high = COST_BASELINES.get(
        category, COST_BASELINES['general_maintenance']
    )
    labor = DIFFICULTY_FACTORS.get(difficulty, 1.0) * REGION_MULTIPLIERS.get(region, 1.0)
    return {
        'pro_low': _round5(pro_low * labor),
        'pro_high': _round5(pro_high * labor),
        # Materials don't vary much by region
        'materials_low': _round5(mat_low * DIFFICULTY_FACTORS.get(difficulty, 1.0)),
        'materials_high': _round5(mat_high * DIFFICULTY_FACTORS.get(difficulty, 1.0)),
    }


def enrich_task_with_cost(task: Dict, region: Optional[str] = None) -> Dict:
    """
    Return a copy of ``task`` with category, difficulty and cost_estimate filled in.

    Values already present on the task are kept.
    """
    if task.get('cost_estimate') and task.get('category') and task.get('difficulty'):
        return task

    title = task.get('title', '')
    description = task.get('description') or ''
    enriched = dict(task)
    enriched['category'] = task.get('category') or infer_task_category(title, description)
    enriched['difficulty'] = task.get('difficulty') or infer_task_difficulty(title, description)
    if not task.get('cost_estimate'):
        enriched['cost_estimate'] = get_cost_estimate(enriched['category'], enriched['difficulty'], region)
    return enriched
