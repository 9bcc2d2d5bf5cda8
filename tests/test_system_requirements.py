"""
Tests for the home system keyword table
"""
import pytest
from services.system_requirements import (
    COOLING_SYSTEMS,
    HEATING_SYSTEMS,
    WATER_HEATERS,
    ALL_SYSTEM_TAGS,
    infer_system_requirements,
    is_system_gate_satisfied,
    unknown_system_tags,
)


@pytest.mark.unit
class TestKeywordTable:
    """Pins the title -> system tag table"""

    @pytest.mark.parametrize('title,expected', [
        ('Replace furnace filter', HEATING_SYSTEMS),
        ('Check heating system efficiency', HEATING_SYSTEMS),
        ('Bleed boiler radiators', HEATING_SYSTEMS),
        ('Service heat pump', HEATING_SYSTEMS),
        ('Monitor air conditioning during heat waves', COOLING_SYSTEMS),
        ('Clean air conditioner coils', COOLING_SYSTEMS),
        ('Check AC refrigerant lines', COOLING_SYSTEMS),
        ('Maintain cooling systems', COOLING_SYSTEMS + ['evaporative']),
        ('Replace evaporative cooler pads', ['evaporative']),
        ('Service swamp cooler', ['evaporative']),
        ('Inspect and clean fireplace/chimney', ['wood-stove']),
        ('Clean wood stove flue', ['wood-stove']),
        ('Flush water heater', WATER_HEATERS),
        ('Test well water quality', ['well-water']),
        ('Inspect well pump pressure', ['well-water']),
        ('Add salt to water softener', ['water-softener']),
        ('Clean solar panels', ['solar-panels']),
        ('Inspect solar water collectors', ['solar-water']),
        ('Open the pool', ['pool']),
        ('Drain and refill spa', ['spa']),
        ('Clean hot tub filter', ['spa']),
        ('Run generator under load', ['generator']),
        ('Pump septic tank', ['septic']),
        ('Test sump pump', ['sump-pump']),
        ('Test security system sensors', ['security-system']),
        ('Replace alarm system battery', ['security-system']),
        ('Winterize irrigation lines', ['sprinkler-system']),
        ('Adjust sprinkler heads', ['sprinkler-system']),
    ])
    def test_keyword_maps_to_tags(self, title, expected):
        """Test each keyword row maps to its tags"""
        assert infer_system_requirements(title) == expected

    @pytest.mark.parametrize('title', [
        'Clean gutters',
        'Test smoke detectors',
        'Peak summer heat maintenance',
        'Check outdoor space lighting',
        'Back up important documents',
        'Replace caulk around the bathtub',
        '',
    ])
    def test_ungated_titles(self, title):
        """Test that titles without a whole-word keyword are ungated"""
        assert infer_system_requirements(title) is None

    def test_union_preserves_table_order(self):
        """Test that tags from several rows come out in table order, de-duplicated"""
        result = infer_system_requirements('Service furnace and AC before the pool opens')
        assert result == HEATING_SYSTEMS + COOLING_SYSTEMS + ['pool']

    def test_cooling_rows_do_not_duplicate(self):
        """Test overlapping cooling rows list each tag once"""
        result = infer_system_requirements('Check air conditioning and cooling system')
        assert result == COOLING_SYSTEMS + ['evaporative']

    def test_inferred_tags_are_known_home_systems(self):
        """Test every inferred tag is selectable on a house"""
        titles = ['furnace', 'ac', 'cooling system', 'water heater', 'pool', 'septic',
                  'generator', 'sump pump', 'sprinkler', 'solar panel', 'fireplace']
        for title in titles:
            assert set(infer_system_requirements(title)) <= ALL_SYSTEM_TAGS


@pytest.mark.unit
class TestSystemGate:
    """Tests for the installed-system gate"""

    def test_ungated_task_always_allowed(self):
        """Test that None requirements pass with no systems"""
        assert is_system_gate_satisfied(None, []) is True

    def test_any_installed_tag_satisfies(self):
        """Test that one matching tag is enough"""
        assert is_system_gate_satisfied(COOLING_SYSTEMS, ['mini-split']) is True

    def test_cooling_task_excluded_for_furnace_house(self):
        """Test that a furnace-only house fails the cooling gate"""
        assert is_system_gate_satisfied(COOLING_SYSTEMS, {'gas-furnace'}) is False

    def test_unknown_system_tags(self):
        """Test that unknown tags are reported"""
        assert unknown_system_tags(['gas-furnace', 'moat']) == ['moat']
        assert unknown_system_tags(None) == []
