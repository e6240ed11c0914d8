"""
Processing package for the Mapbox Choropleth Examples

This package contains the data fetching utilities shared by every example.
"""

# Import key utilities for easy access
from .data_utils import (
    compute_geojson_center,
    feature_ids,
    fetch_csv,
    fetch_geojson,
    fetch_json,
    read_mapbox_token,
    validate_join_keys,
)

__all__ = [
    "fetch_json",
    "fetch_geojson",
    "fetch_csv",
    "read_mapbox_token",
    "feature_ids",
    "validate_join_keys",
    "compute_geojson_center",
]
