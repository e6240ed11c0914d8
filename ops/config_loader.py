"""
Configuration Loader for the Mapbox Choropleth Examples

This module provides a centralized way to load and access configuration
settings from the config.yaml file.

Usage:
    from ops import Config

    config = Config()
    counties_url = config.get_dataset_url('counties_geojson')
    output_path = config.get_map_output_path('county-unemployment')
"""

import copy
import os
import pathlib
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml  # type: ignore[import-untyped]
from loguru import logger

BUNDLED_CONFIG_PATH = Path(__file__).parent / "config.yaml"


class Config:
    """Configuration manager for the choropleth examples."""

    # Default values that can be overridden in config
    DEFAULTS: Dict[str, Any] = {
        "project_name": "Mapbox Choropleth Examples",
        "description": "Choropleth maps on mapbox base layers with plotly",
        "datasets": {
            "counties_geojson": "https://raw.githubusercontent.com/plotly/datasets/master/geojson-counties-fips.json",
            "unemployment_csv": "https://raw.githubusercontent.com/plotly/datasets/master/fips-unemp-16.csv",
            "election_geojson": "https://raw.githubusercontent.com/plotly/datasets/master/election.geojson",
            "election_csv": "https://raw.githubusercontent.com/plotly/datasets/master/election.csv",
        },
        "columns": {
            "county_id": "fips",
            "county_value": "unemp",
            "district_id": "district",
            "district_value": "Bergeron",
            "district_winner": "winner",
        },
        "maps": {
            "style": "carto-positron",
            "colorscale": "Viridis",
            "opacity": 0.5,
            "marker_line_width": 0,
            "counties": {
                "center": {"lat": 37.0902, "lon": -95.7129},
                "zoom": 3,
                "range_color": [0, 12],
            },
            "election": {
                "center": {"lat": 45.5517, "lon": -73.7073},
                "zoom": 9,
                "featureidkey": "properties.district",
            },
        },
        "mapbox": {
            "token_file": ".mapbox_token",
            "token_style": "light",
        },
        "system": {"request_timeout": 60},
        "directories": {"html": "html"},
    }

    def __init__(
        self,
        config_file: Optional[Union[str, Path]] = None,
        project_root_override: Optional[Union[str, Path]] = None,
    ):
        """
        Initialize configuration manager.

        Args:
            config_file: Path to config file. If None, looks for:
                        1. Environment variable CHOROPLETH_CONFIG_PATH
                        2. config.yaml in current directory
                        3. the config.yaml bundled with the ops package
            project_root_override: Directory that relative output paths resolve against
                        (defaults to PROJECT_ROOT_OVERRIDE or the current directory)
        """
        if config_file is None:
            # Check environment variable first (for CLI overrides)
            env_config = os.environ.get("CHOROPLETH_CONFIG_PATH")
            if env_config and Path(env_config).exists():
                config_file = env_config
                logger.debug(f"Using config from environment: {config_file}")
            elif Path("config.yaml").exists():
                config_file = "config.yaml"
            else:
                config_file = BUNDLED_CONFIG_PATH
                logger.debug("Using bundled ops/config.yaml")

        self.config_path = Path(config_file).resolve()
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        if project_root_override:
            self.project_root = Path(project_root_override).resolve()
            logger.debug(f"Using project root override: {self.project_root}")
        elif os.environ.get("PROJECT_ROOT_OVERRIDE"):
            self.project_root = Path(os.environ["PROJECT_ROOT_OVERRIDE"]).resolve()
            logger.debug(f"Using project root from environment: {self.project_root}")
        else:
            self.project_root = Path.cwd()

        logger.debug(f"Loading config from: {self.config_path}")

        with open(self.config_path, "r") as f:
            self.data = yaml.safe_load(f) or {}

        if not isinstance(self.data, dict):
            raise ValueError(f"Config file must contain a mapping: {self.config_path}")

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation with intelligent defaults.

        Args:
            key_path: Dot-separated path to the configuration value
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key_path.split(".")

        # Try to get from config first
        value: Any = self.data
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                value = None
                break

        # If not found in config, try defaults
        if value is None:
            value = self.DEFAULTS
            for key in keys:
                if isinstance(value, dict) and key in value:
                    value = value[key]
                else:
                    return default

        return copy.deepcopy(value)

    def set(self, key_path: str, value: Any) -> None:
        """Set a configuration value using dot notation, creating nested sections."""
        keys = key_path.split(".")
        current = self.data
        for key in keys[:-1]:
            if not isinstance(current.get(key), dict):
                current[key] = {}
            current = current[key]
        current[keys[-1]] = value
        logger.debug(f"Added override: {key_path} = {value}")

    def get_dataset_url(self, dataset_key: str) -> str:
        """Get the remote URL for a dataset."""
        url = self.get(f"datasets.{dataset_key}")
        if not isinstance(url, str) or not url:
            raise ValueError(f"Dataset URL '{dataset_key}' not found in config: datasets")
        return url

    def get_column_name(self, column_key: str) -> str:
        """Get column name with intelligent defaults."""
        result = self.get(f"columns.{column_key}")
        if isinstance(result, str):
            return result
        raise ValueError(f"Column name not found or not a string: {column_key}")

    def get_map_setting(self, map_key: str, setting_key: str) -> Any:
        """Get a per-map setting, falling back to the shared maps section."""
        value = self.get(f"maps.{map_key}.{setting_key}")
        if value is None:
            value = self.get(f"maps.{setting_key}")
        return value

    def get_system_setting(self, setting_key: str) -> Any:
        """Get system setting with intelligent defaults."""
        return self.get(f"system.{setting_key}")

    def get_token_path(self) -> pathlib.Path:
        """Get path to the mapbox access token file."""
        token_file = Path(self.get("mapbox.token_file"))
        if token_file.is_absolute():
            return token_file
        return self.project_root / token_file

    def get_html_dir(self) -> pathlib.Path:
        """Get the html output directory path."""
        html_dir = Path(self.get("directories.html"))
        if html_dir.is_absolute():
            return html_dir
        return self.project_root / html_dir

    def get_map_output_path(self, example_name: str) -> pathlib.Path:
        """Get path to the HTML file for an example, creating its directory."""
        html_dir = self.get_html_dir()
        html_dir.mkdir(parents=True, exist_ok=True)
        return html_dir / f"{example_name}.html"

    def print_config_summary(self) -> None:
        """Print a summary of the current configuration."""
        logger.debug("📋 Configuration Summary")
        logger.debug("=" * 50)
        logger.debug(f"Project: {self.get('project_name', 'Unknown')}")
        logger.debug(f"Description: {self.get('description', 'No description')}")
        logger.debug(f"Config file: {self.config_path}")
        logger.debug(f"Project root: {self.project_root}")

        logger.debug("🌐 Datasets:")
        for key, url in self.get("datasets", {}).items():
            logger.debug(f"  {key}: {url}")

        token_path = self.get_token_path()
        status = "✅" if token_path.exists() else "❌"
        logger.debug(f"🔑 Mapbox token file: {status} {token_path}")

