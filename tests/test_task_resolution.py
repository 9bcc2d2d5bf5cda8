"""
Tests for the task resolution engine
"""
import pytest
from services.system_requirements import infer_system_requirements
from services.task_catalog import RegionCatalog, region_for_climate_zone, slugify
from services.task_resolution import (
    DisplayTask,
    apply_override,
    build_monthly_schedule,
    completion_key,
    expand_custom_tasks,
    find_override,
    is_task_completed,
    occurs_in_month,
    resolve_tasks_for_month,
)


def custom_task(task_id='c1', title='Flush dehumidifier bucket', frequency_type='monthly', **extra):
    task = {
        'id': task_id,
        'title': title,
        'description': None,
        'priority': 'medium',
        'frequency_type': frequency_type,
        'specific_months': [],
        'tools': [],
        'is_active': True,
    }
    task.update(extra)
    return task


def ungated_titles(catalog, region, month):
    bucket = catalog.lookup(region, month)
    return [
        t.title for t in bucket.seasonal + bucket.weather_specific
        if infer_system_requirements(t.title) is None
    ]


@pytest.mark.unit
class TestUnknownRegionOrMonth:
    """A missing catalog bucket resolves to nothing"""

    def test_unknown_region_returns_empty(self, catalog):
        """Test that an unknown region yields an empty list"""
        assert resolve_tasks_for_month('Atlantis', 7, catalog=catalog) == []

    @pytest.mark.parametrize('month', [0, 13, -1])
    def test_month_outside_catalog_returns_empty(self, catalog, month):
        """Test that months with no bucket yield an empty list"""
        assert resolve_tasks_for_month('Midwest', month, catalog=catalog) == []

    def test_unknown_region_ignores_custom_tasks(self, catalog):
        """Test that custom tasks are not shown when the bucket is missing"""
        tasks = resolve_tasks_for_month('Atlantis', 7, custom_tasks=[custom_task()], catalog=catalog)
        assert tasks == []

    def test_no_catalog_returns_empty(self):
        """Test that resolving without a catalog yields an empty list"""
        assert resolve_tasks_for_month('Midwest', 7) == []


@pytest.mark.unit
class TestCatalogResolution:
    """Tests for catalog-derived display tasks"""

    def test_midwest_july_without_systems(self, catalog):
        """Test Midwest/July with no systems returns exactly the ungated catalog entries"""
        tasks = resolve_tasks_for_month('Midwest', 7, catalog=catalog)
        assert [t.title for t in tasks] == ungated_titles(catalog, 'Midwest', 7)
        assert 'Maintain cooling systems' not in [t.title for t in tasks]
        assert 'Monitor air conditioning during heat waves' not in [t.title for t in tasks]
        assert len(tasks) == 8

    def test_midwest_july_with_central_ac(self, catalog):
        """Test that installing central AC reveals the cooling tasks"""
        bucket = catalog.lookup('Midwest', 7)
        tasks = resolve_tasks_for_month('Midwest', 7, installed_systems=['central-ac'], catalog=catalog)
        assert [t.title for t in tasks] == [t.title for t in bucket.seasonal + bucket.weather_specific]

    def test_cooling_task_excluded_for_furnace_only_house(self, catalog):
        """Test a cooling-gated task is hidden from a house with only a gas furnace"""
        tasks = resolve_tasks_for_month('Midwest', 7, installed_systems=['gas-furnace'], catalog=catalog)
        titles = [t.title for t in tasks]
        assert 'Monitor air conditioning during heat waves' not in titles

    def test_ids_keep_catalog_index(self, catalog):
        """Test that ids use the catalog index even when earlier entries are filtered"""
        tasks = resolve_tasks_for_month('Midwest', 7, catalog=catalog)
        ids = [t.id for t in tasks]
        assert ids[:4] == ['seasonal-7-0', 'seasonal-7-1', 'seasonal-7-3', 'seasonal-7-4']
        assert 'weather-7-0' not in ids
        assert 'weather-7-1' in ids

    def test_catalog_task_fields(self, catalog):
        """Test that catalog tasks carry source, priority, zones and enrichment"""
        task = resolve_tasks_for_month('Midwest', 7, catalog=catalog)[0]
        assert task.source == 'seasonal'
        assert task.priority == catalog.lookup('Midwest', 7).priority
        assert task.climate_zones == catalog.regions
        assert task.system_requirements is None
        assert task.key == 'peak-summer-heat-maintenance'
        assert task.action_summary
        assert task.steps
        assert task.tools_and_supplies
        assert task.cost_estimate is not None
        assert task.completed is False

    def test_stable_order_seasonal_weather_custom(self, catalog):
        """Test that seasonal come before weather-specific, then custom tasks"""
        tasks = resolve_tasks_for_month('Midwest', 7, custom_tasks=[custom_task()], catalog=catalog)
        sources = [t.source for t in tasks]
        assert sources == sorted(sources, key=['seasonal', 'weather', 'custom'].index)
        assert sources[-1] == 'custom'

    def test_every_region_resolves_every_month(self, catalog):
        """Test that the bundled catalog has a bucket for each region and month"""
        for region in catalog.regions:
            for month in range(1, 13):
                assert catalog.lookup(region, month) is not None


@pytest.mark.unit
class TestCustomTaskExpansion:
    """Tests for custom task recurrence"""

    @pytest.mark.parametrize('month', range(1, 13))
    def test_monthly_every_month(self, month):
        """Test that monthly tasks occur every month"""
        assert expand_custom_tasks([custom_task()], month) != []

    @pytest.mark.parametrize('month', range(1, 13))
    def test_quarterly_months(self, month):
        """Test that quarterly tasks occur in January, April, July and October"""
        included = expand_custom_tasks([custom_task(frequency_type='quarterly')], month) != []
        assert included == (month in (1, 4, 7, 10))

    @pytest.mark.parametrize('month', range(1, 13))
    def test_biannual_months(self, month):
        """Test that biannual tasks occur in January and July only"""
        included = expand_custom_tasks([custom_task(frequency_type='biannually')], month) != []
        assert included == (month in (1, 7))

    @pytest.mark.parametrize('month', range(1, 13))
    def test_annual_with_string_months(self, catalog, month):
        """Test that an annual task for ["3", "9"] resolves in March and September only"""
        task = custom_task(frequency_type='annually', specific_months=['3', '9'])
        tasks = resolve_tasks_for_month('Midwest', month, custom_tasks=[task], catalog=catalog)
        present = any(t.source == 'custom' for t in tasks)
        assert present == (month in (3, 9))

    @pytest.mark.parametrize('month', range(1, 13))
    def test_annual_defaults_to_january(self, month):
        """Test that an annual task without months occurs in January"""
        included = expand_custom_tasks([custom_task(frequency_type='annually')], month) != []
        assert included == (month == 1)

    @pytest.mark.parametrize('month', range(1, 13))
    def test_custom_frequency_every_month(self, month):
        """Test that the custom frequency occurs every month"""
        assert expand_custom_tasks([custom_task(frequency_type='custom')], month) != []

    def test_unknown_frequency_never_occurs(self):
        """Test that unknown frequency types are never scheduled"""
        assert all(not occurs_in_month('fortnightly', m) for m in range(1, 13))

    def test_inactive_task_excluded(self):
        """Test that inactive custom tasks are always excluded"""
        assert expand_custom_tasks([custom_task(is_active=False)], 1) == []

    def test_override_frequency_replaces_custom_frequency(self):
        """Test that an override's frequency drives custom task expansion"""
        task = custom_task(title='Clean range hood filter', frequency_type='monthly')
        override = {'task_id': 'clean-range-hood-filter', 'frequency_type': 'annually',
                    'specific_months': [6]}
        assert expand_custom_tasks([task], 6, [override]) == [task]
        assert expand_custom_tasks([task], 7, [override]) == []

    def test_custom_display_task_shape(self, catalog):
        """Test custom display task id, key and gating"""
        tasks = resolve_tasks_for_month('Midwest', 2, custom_tasks=[custom_task(task_id='abc')],
                                        catalog=catalog)
        custom = [t for t in tasks if t.source == 'custom'][0]
        assert custom.id == 'custom-abc'
        assert custom.key == 'flush-dehumidifier-bucket'
        assert custom.system_requirements is None
        assert custom.description == 'Flush dehumidifier bucket'


@pytest.mark.unit
class TestOverrides:
    """Tests for per-house overrides"""

    def test_disabled_catalog_task_never_appears(self, catalog):
        """Test that is_enabled False removes a catalog task"""
        override = {'task_id': 'monitor-energy-efficiency', 'is_enabled': False}
        tasks = resolve_tasks_for_month('Midwest', 7, overrides=[override], catalog=catalog)
        assert 'Monitor energy efficiency' not in [t.title for t in tasks]

    def test_disabled_custom_task_never_appears(self, catalog):
        """Test that is_enabled False removes a custom task"""
        override = {'task_id': 'flush-dehumidifier-bucket', 'is_enabled': False}
        tasks = resolve_tasks_for_month('Midwest', 7, custom_tasks=[custom_task()],
                                        overrides=[override], catalog=catalog)
        assert all(t.source != 'custom' for t in tasks)

    def test_custom_description_replaces_default(self, catalog):
        """Test that custom_description becomes the displayed description"""
        override = {'task_id': 'monitor-energy-efficiency', 'is_enabled': True,
                    'custom_description': 'X', 'notes': 'check the smart meter'}
        tasks = resolve_tasks_for_month('Midwest', 7, overrides=[override], catalog=catalog)
        task = [t for t in tasks if t.key == 'monitor-energy-efficiency'][0]
        assert task.description == 'X'
        assert task.notes == 'check the smart meter'
        assert task.is_overridden is True

    def test_empty_custom_description_is_kept(self, catalog):
        """Test that an empty custom_description blanks the catalog text"""
        override = {'task_id': 'monitor-energy-efficiency', 'is_enabled': True,
                    'custom_description': ''}
        tasks = resolve_tasks_for_month('Midwest', 7, overrides=[override], catalog=catalog)
        task = [t for t in tasks if t.key == 'monitor-energy-efficiency'][0]
        assert task.description == ''

    def test_missing_custom_description_keeps_default(self, catalog):
        """Test that a null custom_description leaves the catalog text alone"""
        default = resolve_tasks_for_month('Midwest', 7, catalog=catalog)
        override = {'task_id': 'monitor-energy-efficiency', 'is_enabled': True,
                    'custom_description': None}
        tasks = resolve_tasks_for_month('Midwest', 7, overrides=[override], catalog=catalog)
        by_key = {t.key: t for t in tasks}
        expected = [t for t in default if t.key == 'monitor-energy-efficiency'][0]
        assert by_key['monitor-energy-efficiency'].description == expected.description

    def test_removing_override_restores_default(self, catalog):
        """Test that dropping an override restores visibility and description"""
        default = resolve_tasks_for_month('Midwest', 7, catalog=catalog)
        override = {'task_id': 'monitor-energy-efficiency', 'is_enabled': False}
        assert len(resolve_tasks_for_month('Midwest', 7, overrides=[override], catalog=catalog)) == 7
        restored = resolve_tasks_for_month('Midwest', 7, overrides=[], catalog=catalog)
        assert [t.to_dict() for t in restored] == [t.to_dict() for t in default]

    def test_catalog_frequency_override_is_display_only(self, catalog):
        """Test that a frequency override does not move a catalog task out of its month"""
        override = {'task_id': 'monitor-energy-efficiency', 'is_enabled': True,
                    'frequency_type': 'annually', 'specific_months': [1]}
        tasks = resolve_tasks_for_month('Midwest', 7, overrides=[override], catalog=catalog)
        task = [t for t in tasks if t.key == 'monitor-energy-efficiency'][0]
        assert task.frequency_type == 'annually'

    def test_override_matches_title_slug_when_key_differs(self):
        """Test that overrides keyed by the title slug still resolve"""
        catalog = RegionCatalog({'regions': {'Midwest': {'months': {'3': {
            'priority': 'medium',
            'seasonal': [{'key': 'gutter-check-v2', 'title': 'Clean gutters'}],
            'weather_specific': []
        }}}}})
        override = {'task_id': 'clean-gutters', 'is_enabled': False}
        assert resolve_tasks_for_month('Midwest', 3, overrides=[override], catalog=catalog) == []

    def test_find_override_prefers_key(self):
        """Test that an override on the key wins over one on the title slug"""
        overrides = [{'task_id': 'clean-gutters', 'notes': 'slug'},
                     {'task_id': 'gutter-check-v2', 'notes': 'key'}]
        assert find_override('gutter-check-v2', 'Clean gutters', overrides)['notes'] == 'key'

    def test_apply_override_without_match_returns_task(self):
        """Test that tasks without an override pass through untouched"""
        task = DisplayTask(id='seasonal-1-0', key='a', title='A', description='d', month=1,
                           source='seasonal')
        assert apply_override(task, []) is task
        assert task.is_overridden is False


@pytest.mark.unit
class TestCompletion:
    """Tests for completion detection"""

    def test_completion_flag(self):
        """Test that a completion flag marks the task done"""
        task = {'key': 'test-smoke-detectors', 'title': 'Test smoke detectors'}
        keys = [completion_key('test-smoke-detectors', 3, 2025)]
        assert is_task_completed(task, 3, 2025, keys, []) is True
        assert is_task_completed(task, 4, 2025, keys, []) is False

    def test_matching_log_without_flag(self):
        """Test that a same-month DIY log with the exact title marks the task done"""
        task = {'key': 'test-smoke-detectors', 'title': 'Test smoke detectors'}
        logs = [{'service_type': 'Test smoke detectors', 'service_date': '2025-03-14',
                 'completion_method': 'diy'}]
        assert is_task_completed(task, 3, 2025, [], logs) is True

    def test_contractor_log_counts(self):
        """Test that contractor logs count as completion"""
        task = {'key': 'k', 'title': 'Service furnace'}
        logs = [{'service_type': 'Service furnace', 'service_date': '2025-10-02',
                 'completion_method': 'contractor'}]
        assert is_task_completed(task, 10, 2025, [], logs) is True

    @pytest.mark.parametrize('log', [
        {'service_type': 'Test smoke detectors', 'service_date': '2025-04-01', 'completion_method': 'diy'},
        {'service_type': 'Test smoke detectors', 'service_date': '2024-03-14', 'completion_method': 'diy'},
        {'service_type': 'test smoke detectors', 'service_date': '2025-03-14', 'completion_method': 'diy'},
        {'service_type': 'Test smoke detectors', 'service_date': '2025-03-14', 'completion_method': None},
    ])
    def test_non_matching_logs(self, log):
        """Test that wrong month, year, title case or method do not complete a task"""
        task = {'key': 'test-smoke-detectors', 'title': 'Test smoke detectors'}
        assert is_task_completed(task, 3, 2025, [], [log]) is False


@pytest.mark.unit
class TestMonthlySchedule:
    """Tests for build_monthly_schedule"""

    def test_schedule_marks_completed_and_notification(self, catalog):
        """Test completed counts and the high-priority notification flag"""
        house = {'id': 'h1', 'climate_zone': 'Midwest', 'home_systems': []}
        schedule = build_monthly_schedule(catalog, house, 7, 2025,
                                          completion_keys=['peak-summer-heat-maintenance-7-2025'])
        assert schedule.region == 'Midwest'
        assert schedule.priority == 'high'
        assert schedule.completed_count == 1
        assert schedule.total_count == 8
        assert schedule.notification_due is True
        assert schedule.tasks[0].completed is True

    def test_no_notification_when_all_done(self, catalog):
        """Test that finishing every task clears the notification flag"""
        house = {'id': 'h1', 'climate_zone': 'Midwest', 'home_systems': []}
        keys = [completion_key(t.key, 7, 2025) for t in resolve_tasks_for_month('Midwest', 7, catalog=catalog)]
        schedule = build_monthly_schedule(catalog, house, 7, 2025, completion_keys=keys)
        assert schedule.completed_count == schedule.total_count
        assert schedule.notification_due is False

    def test_schedule_to_dict(self, catalog):
        """Test that the schedule serializes with counts"""
        house = {'id': 'h1', 'climate_zone': '5A', 'home_systems': []}
        data = build_monthly_schedule(catalog, house, 1, 2025).to_dict()
        assert data['region'] == 'Midwest'
        assert data['total_count'] == len(data['tasks'])
        assert isinstance(data['tasks'][0], dict)


@pytest.mark.unit
class TestRegionNormalization:
    """Tests for free-text climate zone mapping"""

    @pytest.mark.parametrize('text,expected', [
        ('Pacific Northwest', 'Pacific Northwest'),
        ('pacific-northwest', 'Pacific Northwest'),
        ('southeast', 'Southeast'),
        ('Zone 2A', 'Southeast'),
        ('4', 'Midwest'),
        ('6B', 'Mountain West'),
        ('7', 'Southwest'),
        ('8', 'West Coast'),
        ('1', 'Northeast'),
        ('somewhere warm', 'Midwest'),
        ('', 'Midwest'),
        (None, 'Midwest'),
    ])
    def test_region_for_climate_zone(self, catalog, text, expected):
        """Test region names, slugs and IECC digits map to catalog regions"""
        assert region_for_climate_zone(text, catalog) == expected

    def test_slugify(self):
        """Test slug rules"""
        assert slugify('Test smoke & CO detectors') == 'test-smoke-co-detectors'
        assert slugify('Inspect and clean fireplace/chimney') == 'inspect-and-clean-fireplacechimney'
        assert slugify('  Monitor humidity levels (winter air is dry) ') == \
            'monitor-humidity-levels-winter-air-is-dry'
