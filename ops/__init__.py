"""
Operations package for the Mapbox Choropleth Examples

This package centralizes all operational tools including:
- Configuration management
- Example orchestration (CLI)

The Config class is exposed at the package level for convenient imports:
    from ops import Config
"""

from .config_loader import Config

__all__ = ["Config"]
