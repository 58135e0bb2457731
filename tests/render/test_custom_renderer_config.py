"""Tests for custom renderer configuration functionality.

This module tests creating custom table renderers from configuration
dictionaries and loading them from a JSON config file.
"""

import pytest
import sys
import os
import json
import tempfile
import shutil
from io import StringIO

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from model.PlanInputs import AccountInputs, PlanInputs
from calc.plan_calculator import PlanCalculator


@pytest.fixture
def plan_result():
    """A short retirement-only plan drawing from all three accounts."""
    inputs = PlanInputs(
        current_age=60,
        years_to_retire=2,
        years_to_plan=6,
        income_annual=50000.0,
        expenses_annual=40000.0,
        tax_deferred=AccountInputs(initial_balance=100000.0, annual_contribution=2000.0, annual_return=0.04),
        tax_free=AccountInputs(initial_balance=50000.0, annual_contribution=1000.0, annual_return=0.03),
        taxable=AccountInputs(initial_balance=20000.0, annual_return=0.02),
    )
    return PlanCalculator().calculate(inputs)


@pytest.fixture
def temp_config_dir():
    """Create a temporary directory for custom renderer configurations."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def sample_config():
    """Create a sample custom renderer configuration."""
    return {
        'title': 'Test Spending Report',
        'fields': ['expense', 'tax_deferred.withdrawal', 'tax_free.closing'],
        'show_totals': True
    }


def render_to_string(renderer, result) -> str:
    output = StringIO()
    old_stdout = sys.stdout
    sys.stdout = output
    try:
        renderer.render(result)
    finally:
        sys.stdout = old_stdout
    return output.getvalue()


class TestCustomRendererClass:
    """Test the CustomRenderer class directly."""

    def test_custom_renderer_init(self):
        from render.renderers import CustomRenderer

        renderer = CustomRenderer(
            title='Test Report',
            fields=['income', 'expense'],
            start_age=60,
            end_age=65,
            show_totals=False
        )

        assert renderer.title == 'Test Report'
        assert renderer.fields == ['income', 'expense']
        assert renderer.start_age == 60
        assert renderer.end_age == 65
        assert renderer.show_totals is False

    def test_custom_renderer_init_defaults(self):
        from render.renderers import CustomRenderer

        renderer = CustomRenderer(title='Test Report', fields=['expense'])

        assert renderer.start_age is None
        assert renderer.end_age is None
        assert renderer.show_totals is True

    def test_custom_renderer_render_output(self, plan_result):
        """Test that CustomRenderer produces expected output."""
        from render.renderers import CustomRenderer

        renderer = CustomRenderer(
            title='Spending Test',
            fields=['income', 'expense', 'tax_deferred.withdrawal'],
            start_age=60,
            end_age=62,
        )
        result = render_to_string(renderer, plan_result)
        lines = result.split('\n')

        assert 'SPENDING TEST' in result
        assert 'Income' in result
        assert 'RRSP' in result
        for age in ('60', '61', '62'):
            assert any(line.strip().startswith(age) for line in lines)
        assert not any(line.strip().startswith('63') for line in lines)

        total_rows = [l for l in lines if l.strip().startswith('TOTAL')]
        assert len(total_rows) == 1
        # Two working years of income
        assert '100,000' in total_rows[0]

    def test_custom_renderer_no_totals(self, plan_result):
        from render.renderers import CustomRenderer

        renderer = CustomRenderer(title='No Summary Row', fields=['expense'], show_totals=False)
        lines = render_to_string(renderer, plan_result).split('\n')

        total_rows = [l for l in lines if l.strip().startswith('TOTAL')]
        assert len(total_rows) == 0, f"Found unexpected TOTAL row: {total_rows}"

    def test_balances_are_not_totalled(self, plan_result):
        """Opening and closing balances leave the totals cell blank."""
        from render.renderers import CustomRenderer

        renderer = CustomRenderer(title='Balances', fields=['tax_free.closing'])
        lines = render_to_string(renderer, plan_result).split('\n')

        total_row = next(l for l in lines if l.strip().startswith('TOTAL'))
        assert '$' not in total_row

    def test_unknown_field_shows_na(self, plan_result):
        from render.renderers import CustomRenderer

        renderer = CustomRenderer(title='Unknown', fields=['not_a_field'], start_age=60, end_age=60)
        output = render_to_string(renderer, plan_result)

        assert 'N/A' in output


class TestCreateCustomRendererFromConfig:
    """Test creating renderers from configuration dictionaries."""

    def test_create_from_config_full(self, sample_config):
        from render.renderers import create_custom_renderer_from_config

        renderer = create_custom_renderer_from_config(
            name='TestRenderer',
            config=sample_config,
            start_age=60,
            end_age=70
        )

        assert renderer.title == 'Test Spending Report'
        assert renderer.fields == ['expense', 'tax_deferred.withdrawal', 'tax_free.closing']
        assert renderer.show_totals is True
        assert renderer.start_age == 60
        assert renderer.end_age == 70

    def test_create_from_config_uses_name_as_fallback_title(self):
        from render.renderers import create_custom_renderer_from_config

        renderer = create_custom_renderer_from_config(name='FallbackName', config={'fields': ['expense']})
        assert renderer.title == 'FallbackName'

    def test_create_from_config_empty_fields(self):
        from render.renderers import create_custom_renderer_from_config

        renderer = create_custom_renderer_from_config(name='EmptyTest', config={'title': 'Empty Fields'})
        assert renderer.fields == []

    def test_create_from_config_show_totals_false(self):
        from render.renderers import create_custom_renderer_from_config

        config = {'title': 'No Totals', 'fields': ['expense'], 'show_totals': False}
        renderer = create_custom_renderer_from_config(name='NoTotalsTest', config=config)

        assert renderer.show_totals is False


class TestGetCustomRendererFactory:
    """Test the factory function generator."""

    def test_factory_creates_renderer(self, sample_config):
        from render.renderers import get_custom_renderer_factory, CustomRenderer

        factory = get_custom_renderer_factory('TestFactory', sample_config)
        renderer = factory()

        assert callable(factory)
        assert isinstance(renderer, CustomRenderer)
        assert renderer.title == 'Test Spending Report'

    def test_factory_accepts_age_range(self, sample_config):
        from render.renderers import get_custom_renderer_factory

        renderer = get_custom_renderer_factory('TestFactory', sample_config)(62, 64)

        assert renderer.start_age == 62
        assert renderer.end_age == 64


class TestLoadCustomRenderers:
    """Test loading renderer configurations from a file."""

    def test_load_missing_file(self, temp_config_dir):
        from render.renderers import load_custom_renderers

        assert load_custom_renderers(os.path.join(temp_config_dir, 'missing.json')) == {}

    def test_load_config_file(self, temp_config_dir, sample_config):
        from render.renderers import load_custom_renderers

        config_path = os.path.join(temp_config_dir, 'custom.json')
        with open(config_path, 'w') as f:
            json.dump({'Spending': sample_config}, f)

        assert load_custom_renderers(config_path) == {'Spending': sample_config}

    def test_load_invalid_json_warns(self, temp_config_dir, capsys):
        from render.renderers import load_custom_renderers

        config_path = os.path.join(temp_config_dir, 'custom.json')
        with open(config_path, 'w') as f:
            f.write('{ not json')

        assert load_custom_renderers(config_path) == {}
        assert 'Warning: Could not load custom renderers' in capsys.readouterr().err

    def test_builtin_configs_reference_known_fields(self):
        from render.renderers import CUSTOM_CONFIG_PATH, load_custom_renderers
        from model.field_metadata import FIELD_METADATA

        configs = load_custom_renderers(CUSTOM_CONFIG_PATH)

        assert configs
        for config in configs.values():
            for field in config['fields']:
                assert field in FIELD_METADATA
