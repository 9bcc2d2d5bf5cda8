"""
Task Resolution Engine

Turns (region, month, installed home systems, custom tasks, overrides) into
the ordered list of maintenance tasks a homeowner sees for one house and one
month, then marks which of them are already done.

Everything here is pure: callers fetch houses, custom tasks, overrides,
completion flags and maintenance logs through the repositories and pass plain
dict snapshots in. Unknown regions or months are not errors, they simply
resolve to an empty list.
"""

import logging
from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Set

from services.cost_estimates import enrich_task_with_cost, infer_task_category, infer_task_difficulty
from services.system_requirements import infer_system_requirements, is_system_gate_satisfied
from services.task_catalog import RegionCatalog, TaskDef, region_for_climate_zone, slugify, DEFAULT_REGION
from services.task_content import generate_task_content

logger = logging.getLogger(__name__)

SOURCE_SEASONAL = 'seasonal'
SOURCE_WEATHER = 'weather'
SOURCE_CUSTOM = 'custom'

FREQUENCY_TYPES = ('monthly', 'quarterly', 'biannually', 'annually', 'custom')
COMPLETION_METHODS = ('diy', 'contractor')


@dataclass
class DisplayTask:
    """A task as shown for one house and month."""
    id: str
    key: str
    title: str
    description: str
    month: int
    source: str
    priority: str = 'medium'
    climate_zones: List[str] = field(default_factory=list)
    system_requirements: Optional[List[str]] = None
    category: Optional[str] = None
    difficulty: Optional[str] = None
    estimated_time: Optional[str] = None
    action_summary: Optional[str] = None
    steps: List[str] = field(default_factory=list)
    tools_and_supplies: List[str] = field(default_factory=list)
    cost_estimate: Optional[Dict] = None
    impact: Optional[str] = None
    impact_cost: Optional[str] = None
    frequency_type: Optional[str] = None
    notes: Optional[str] = None
    is_overridden: bool = False
    completed: bool = False

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class MonthlySchedule:
    """Resolved tasks for one house/month plus completion summary."""
    region: str
    month: int
    year: int
    priority: Optional[str]
    tasks: List[DisplayTask]
    completed_count: int
    notification_due: bool

    @property
    def total_count(self) -> int:
        return len(self.tasks)

    def to_dict(self) -> Dict:
        return {
            'region': self.region,
            'month': self.month,
            'year': self.year,
            'priority': self.priority,
            'tasks': [t.to_dict() for t in self.tasks],
            'completed_count': self.completed_count,
            'total_count': self.total_count,
            'notification_due': self.notification_due,
        }


# =============================================================================
# CUSTOM TASK EXPANSION
# =============================================================================

def _parse_months(values) -> List[int]:
    """Month numbers from ints or numeric strings; anything else is ignored."""
    months = []
    for value in values or []:
        try:
            month = int(str(value).strip())
        except (TypeError, ValueError):
            continue
        if 1 <= month <= 12:
            months.append(month)
    return months


def occurs_in_month(frequency_type: str, month: int, specific_months=None) -> bool:
    """
    Whether a recurrence rule includes ``month``.

    ``custom`` has no further structure yet and is treated as every month.
    Unknown frequency types never occur.
    """
    if frequency_type in ('monthly', 'custom'):
        return True
    if frequency_type == 'quarterly':
        return month % 3 == 1
    if frequency_type == 'biannually':
        return month in (1, 7)
    if frequency_type == 'annually':
        months = _parse_months(specific_months)
        return month in months if months else month == 1
    return False


def find_override(key: str, title: str, overrides: Iterable[Dict]) -> Optional[Dict]:
    """Override whose task_id equals the task key, falling back to the title slug."""
    overrides = list(overrides or [])
    for override in overrides:
        if override.get('task_id') == key:
            return override
    slug = slugify(title)
    for override in overrides:
        if override.get('task_id') == slug:
            return override
    return None


def expand_custom_tasks(custom_tasks: Iterable[Dict], month: int,
                        overrides: Iterable[Dict] = None) -> List[Dict]:
    """
    Custom tasks that occur in ``month``, in input order.

    Inactive tasks are dropped. An override for the task's title slug that
    carries a frequency replaces the task's own frequency for this check.
    """
    overrides = list(overrides or [])
    included = []
    for task in custom_tasks or []:
        if task.get('is_active') is False:
            continue

        frequency_type = task.get('frequency_type') or 'monthly'
        specific_months = task.get('specific_months')

        override = find_override(slugify(task.get('title', '')), task.get('title', ''), overrides)
        if override:
            if override.get('frequency_type'):
                frequency_type = override['frequency_type']
            if override.get('specific_months') is not None:
                specific_months = override['specific_months']

        if occurs_in_month(frequency_type, month, specific_months):
            included.append(task)
    return included


# =============================================================================
# DISPLAY TASK CONSTRUCTION
# =============================================================================

def _catalog_display_task(task_def: TaskDef, source: str, month: int, index: int,
                          priority: str, regions: List[str], region: str) -> DisplayTask:
    content = generate_task_content(task_def.title, task_def.description)
    costed = enrich_task_with_cost({'title': task_def.title, 'description': task_def.description}, region)
    return DisplayTask(
        id=f"{source}-{month}-{index}",
        key=task_def.key,
        title=task_def.title,
        description=task_def.description,
        month=month,
        source=source,
        priority=priority,
        climate_zones=list(regions),
        system_requirements=infer_system_requirements(task_def.title),
        category=costed['category'],
        difficulty=costed['difficulty'],
        action_summary=content['action_summary'],
        steps=content['steps'],
        tools_and_supplies=content['tools_and_supplies'],
        cost_estimate=costed['cost_estimate'],
    )


def _custom_cost_estimate(task: Dict) -> Optional[Dict]:
    fields = ('pro_cost_low', 'pro_cost_high', 'materials_cost_low', 'materials_cost_high')
    if all(task.get(f) is None for f in fields):
        return None
    return {
        'pro_low': task.get('pro_cost_low'),
        'pro_high': task.get('pro_cost_high'),
        'materials_low': task.get('materials_cost_low'),
        'materials_high': task.get('materials_cost_high'),
    }


def _custom_display_task(task: Dict, month: int, regions: List[str], region: str) -> DisplayTask:
    title = task.get('title', '')
    description = task.get('description') or title
    content = generate_task_content(title, description)
    costed = enrich_task_with_cost({
        'title': title,
        'description': description,
        'category': task.get('category'),
        'difficulty': task.get('difficulty'),
        'cost_estimate': _custom_cost_estimate(task),
    }, region)
    return DisplayTask(
        id=f"custom-{task.get('id')}",
        key=slugify(title),
        title=title,
        description=description,
        month=month,
        source=SOURCE_CUSTOM,
        priority=task.get('priority') or 'medium',
        climate_zones=list(regions),
        system_requirements=None,
        category=costed['category'],
        difficulty=costed['difficulty'],
        estimated_time=task.get('estimated_time'),
        action_summary=content['action_summary'],
        steps=content['steps'],
        tools_and_supplies=list(task.get('tools') or content['tools_and_supplies']),
        cost_estimate=costed['cost_estimate'],
        frequency_type=task.get('frequency_type'),
    )


def apply_override(task: DisplayTask, overrides: Iterable[Dict]) -> Optional[DisplayTask]:
    """
    Layer a per-house override onto a task.

    Returns None when the override disables the task. A stored frequency is
    surfaced for display only; it never changes which month a catalog task
    falls in.
    """
    override = find_override(task.key, task.title, overrides)
    if override is None:
        return task
    if override.get('is_enabled') is False:
        return None

    if override.get('custom_description') is not None:
        task.description = override['custom_description']
    if override.get('frequency_type'):
        task.frequency_type = override['frequency_type']
    task.notes = override.get('notes')
    task.is_overridden = True
    return task


# =============================================================================
# RESOLUTION
# =============================================================================

def resolve_tasks_for_month(region: str, month: int, installed_systems: Iterable[str] = None,
                            custom_tasks: Iterable[Dict] = None, overrides: Iterable[Dict] = None,
                            catalog: RegionCatalog = None) -> List[DisplayTask]:
    """
    Resolve the visible tasks for one region and month.

    Args:
        region: Catalog region name
        month: Month number (1-12)
        installed_systems: System tags installed in the house
        custom_tasks: Custom task dicts (as returned by MaintenanceRepository)
        overrides: Task override dicts for the house
        catalog: Regional catalog to read from

    Returns:
        Seasonal tasks, then weather-specific tasks, then custom tasks
    """
    if catalog is None:
        return []
    bucket = catalog.lookup(region, month)
    if bucket is None:
        logger.debug(f"No catalog entries for {region!r} month {month}")
        return []

    installed: Set[str] = set(installed_systems or ())
    overrides = list(overrides or [])
    regions = catalog.regions

    candidates: List[DisplayTask] = []
    for index, task_def in enumerate(bucket.seasonal):
        candidates.append(_catalog_display_task(task_def, SOURCE_SEASONAL, month, index,
                                                bucket.priority, regions, region))
    for index, task_def in enumerate(bucket.weather_specific):
        candidates.append(_catalog_display_task(task_def, SOURCE_WEATHER, month, index,
                                                bucket.priority, regions, region))
    for custom in expand_custom_tasks(custom_tasks, month, overrides):
        candidates.append(_custom_display_task(custom, month, regions, region))

    resolved = []
    for task in candidates:
        if region not in task.climate_zones:
            continue
        if not is_system_gate_satisfied(task.system_requirements, installed):
            continue
        task = apply_override(task, overrides)
        if task is not None:
            resolved.append(task)

    logger.debug(
        f"Resolved {len(resolved)} of {len(candidates)} tasks for {region} month {month}"
    )
    return resolved


# =============================================================================
# COMPLETION
# =============================================================================

def completion_key(task_key: str, month: int, year: int) -> str:
    return f"{task_key}-{month}-{year}"


def _as_date(value) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()
    except ValueError:
        return None


def is_task_completed(task, month: int, year: int, completion_keys: Iterable[str] = None,
                      logs: Iterable[Dict] = None) -> bool:
    """
    True if a completion flag exists for the task this month, or a maintenance
    log with the exact task title was recorded this month as DIY or contractor work.
    """
    key = task.key if isinstance(task, DisplayTask) else task.get('key')
    title = task.title if isinstance(task, DisplayTask) else task.get('title')

    if completion_key(key, month, year) in set(completion_keys or ()):
        return True

    for log in logs or []:
        if log.get('service_type') != title:
            continue
        if log.get('completion_method') not in COMPLETION_METHODS:
            continue
        service_date = _as_date(log.get('service_date'))
        if service_date and service_date.month == month and service_date.year == year:
            return True
    return False


def build_monthly_schedule(catalog: RegionCatalog, house: Dict, month: int, year: int,
                           custom_tasks: Iterable[Dict] = None, overrides: Iterable[Dict] = None,
                           completion_keys: Iterable[str] = None, logs: Iterable[Dict] = None,
                           default_region: str = DEFAULT_REGION) -> MonthlySchedule:
    """
    Resolve a house's tasks for a month and mark completions.

    ``notification_due`` is set while any high-priority task is still unfinished.
    """
    region = region_for_climate_zone(house.get('climate_zone'), catalog, default=default_region)
    tasks = resolve_tasks_for_month(
        region,
        month,
        installed_systems=house.get('home_systems') or [],
        custom_tasks=custom_tasks,
        overrides=overrides,
        catalog=catalog,
    )

    keys = set(completion_keys or ())
    logs = list(logs or [])
    for task in tasks:
        task.completed = is_task_completed(task, month, year, keys, logs)

    bucket = catalog.lookup(region, month)
    completed_count = sum(1 for t in tasks if t.completed)
    notification_due = any(t.priority == 'high' and not t.completed for t in tasks)

    return MonthlySchedule(
        region=region,
        month=month,
        year=year,
        priority=bucket.priority if bucket else None,
        tasks=tasks,
        completed_count=completed_count,
        notification_due=notification_due,
    )


def summarize_task(title: str, description: str = '') -> Dict:
    """Category and difficulty for a free-text task, used when authoring custom tasks."""
    return {
        'category': infer_task_category(title, description),
        'difficulty': infer_task_difficulty(title, description),
    }
