"""Render job configuration.

Components:
    render_config: Reader and writer for plain-text render configuration files
"""

from src.whitted.config.render_config import (
    LightSpec,
    RenderConfig,
    format_render_config,
    parse_render_config,
    read_render_config,
    write_render_config,
)

__all__ = [
    "LightSpec",
    "RenderConfig",
    "parse_render_config",
    "read_render_config",
    "format_render_config",
    "write_render_config",
]
