"""Render module for savings projection output display."""

from render.renderers import (
    BaseRenderer,
    ProjectionRenderer,
    BalancesRenderer,
    SummaryRenderer,
    CustomRenderer,
    JsonRenderer,
    create_custom_renderer_from_config,
    get_custom_renderer_factory,
    load_custom_renderers,
    parse_age_range,
    RENDERER_REGISTRY,
    CUSTOM_CONFIG_PATH,
)

__all__ = [
    'BaseRenderer',
    'ProjectionRenderer',
    'BalancesRenderer',
    'SummaryRenderer',
    'CustomRenderer',
    'JsonRenderer',
    'create_custom_renderer_from_config',
    'get_custom_renderer_factory',
    'load_custom_renderers',
    'parse_age_range',
    'RENDERER_REGISTRY',
    'CUSTOM_CONFIG_PATH',
]
