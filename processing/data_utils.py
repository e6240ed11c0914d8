#!/usr/bin/env python3
"""
data_utils.py - Shared Data Fetching Utilities

Fetch-and-parse helpers used by every choropleth example: remote GeoJSON and
CSV downloads, the mapbox token file, and join-key diagnostics between a
feature collection and a table.
"""

import io
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import geopandas as gpd
import pandas as pd
import requests
from loguru import logger

DEFAULT_TIMEOUT = 60
DEFAULT_TOKEN_FILE = ".mapbox_token"
TOKEN_ENV_VAR = "MAPBOX_ACCESS_TOKEN"


def _get(
    url: str, session: Optional[requests.Session] = None, timeout: Optional[float] = None
) -> requests.Response:
    """Perform a GET request and raise for HTTP error statuses."""
    getter = session.get if session is not None else requests.get
    try:
        response = getter(url, timeout=timeout or DEFAULT_TIMEOUT)
        response.raise_for_status()
        return response
    except requests.exceptions.HTTPError as e:
        logger.error(f"HTTP error during GET {url}: {e}")
        raise
    except requests.exceptions.RequestException as e:
        logger.error(f"Request exception during GET {url}: {e}")
        raise


def fetch_json(
    url: str, session: Optional[requests.Session] = None, timeout: Optional[float] = None
) -> Any:
    """Download a URL and decode the body as JSON.

    Args:
        url: Remote JSON resource
        session: Optional requests session to reuse
        timeout: Request timeout in seconds

    Returns:
        The decoded JSON document

    Raises:
        requests.RequestException: on network failure or HTTP error status
        ValueError: if the body is not valid JSON
    """
    logger.debug(f"  🌐 GET {url}")
    response = _get(url, session=session, timeout=timeout)
    try:
        return response.json()
    except ValueError as e:
        logger.error(f"❌ Malformed JSON payload from {url}: {e}")
        raise


def fetch_geojson(
    url: str, session: Optional[requests.Session] = None, timeout: Optional[float] = None
) -> Dict[str, Any]:
    """Download a GeoJSON feature collection.

    The collection is returned unmodified; only its top-level shape is checked.
    """
    logger.info(f"🗺️ Loading GeoJSON from {url}")
    data = fetch_json(url, session=session, timeout=timeout)

    if not isinstance(data, dict) or not isinstance(data.get("features"), list):
        logger.error(f"❌ Invalid GeoJSON structure from {url} - expected a 'features' list")
        raise ValueError(f"Not a GeoJSON feature collection: {url}")

    logger.success(f"  ✅ Loaded {len(data['features']):,} features")
    return data


def fetch_csv(
    url: str,
    dtype: Optional[Dict[str, Any]] = None,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> pd.DataFrame:
    """Download delimited text and parse it into a DataFrame.

    Args:
        url: Remote CSV resource
        dtype: Column types, e.g. {"fips": str} to keep leading zeros
        session: Optional requests session to reuse
        timeout: Request timeout in seconds

    Returns:
        Parsed DataFrame
    """
    logger.info(f"📊 Loading CSV from {url}")
    response = _get(url, session=session, timeout=timeout)
    try:
        df = pd.read_csv(io.StringIO(response.text), dtype=dtype)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logger.error(f"❌ Malformed CSV payload from {url}: {e}")
        raise

    logger.success(f"  ✅ Loaded {len(df):,} rows ({len(df.columns)} columns)")
    return df


def read_mapbox_token(path: Optional[Union[str, Path]] = None) -> str:
    """Read a mapbox access token.

    MAPBOX_ACCESS_TOKEN takes precedence over the token file.

    Raises:
        FileNotFoundError: if there is no env override and the file is missing
        ValueError: if the token is empty
    """
    token = os.environ.get(TOKEN_ENV_VAR)
    if token:
        logger.debug(f"🔑 Using mapbox token from {TOKEN_ENV_VAR}")
    else:
        token_path = Path(path or DEFAULT_TOKEN_FILE)
        if not token_path.is_file():
            logger.error(f"❌ Mapbox token file not found: {token_path}")
            raise FileNotFoundError(f"Mapbox token file not found: {token_path}")
        token = token_path.read_text()
        logger.debug(f"🔑 Read mapbox token from {token_path}")

    token = token.strip()
    if not token:
        raise ValueError("Mapbox access token is empty")
    return token


def _lookup(feature: Dict[str, Any], featureidkey: str) -> Any:
    value: Any = feature
    for key in featureidkey.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def feature_ids(geojson: Dict[str, Any], featureidkey: str = "id") -> List[str]:
    """Return the identifier of every feature, read with a dotted key.

    Features without the key are skipped.
    """
    ids = []
    for feature in geojson.get("features", []):
        value = _lookup(feature, featureidkey)
        if value is not None:
            ids.append(str(value))
    return ids


def validate_join_keys(
    geojson: Dict[str, Any],
    df: pd.DataFrame,
    locations: str,
    featureidkey: str = "id",
) -> Dict[str, int]:
    """Compare table identifiers against feature identifiers.

    Mismatches are only reported; plotly does the actual matching.

    Returns:
        Counts of matched rows, rows without geometry and features without data
    """
    logger.debug(f"  🔍 Validating join keys ({locations} ↔ {featureidkey})...")

    geo_ids = set(feature_ids(geojson, featureidkey))
    if locations not in df.columns:
        logger.warning(f"  ⚠️ Column '{locations}' not found, skipping join key validation")
        return {
            "matched": 0,
            "rows_without_geometry": len(df),
            "features_without_data": len(geo_ids),
        }

    row_ids = df[locations].dropna().astype(str)

    matched = row_ids.isin(geo_ids)
    data_only = sorted(set(row_ids[~matched]))
    geometry_only = geo_ids - set(row_ids)

    counts = {
        "matched": int(matched.sum()),
        "rows_without_geometry": int((~matched).sum()),
        "features_without_data": len(geometry_only),
    }

    logger.debug(f"     Table rows: {len(row_ids):,}")
    logger.debug(f"     Features: {len(geo_ids):,}")
    logger.debug(f"     Matched rows: {counts['matched']:,}")

    if data_only:
        logger.warning(f"  ⚠️ {counts['rows_without_geometry']:,} rows without geometry")
        logger.debug(f"     Example unmatched ids: {data_only[:5]}")
    if geometry_only:
        logger.debug(f"  📍 {len(geometry_only):,} features without data")

    return counts


def compute_geojson_center(geojson: Dict[str, Any]) -> Dict[str, float]:
    """Center of the collection's bounding box as a mapbox {"lat", "lon"} mapping.

    Collections spanning more than 180 degrees of longitude (e.g. the Aleutians
    plus the continental US) are measured across the antimeridian.
    """
    features = geojson.get("features", [])
    if not features:
        raise ValueError("Cannot compute the center of an empty feature collection")

    gdf = gpd.GeoDataFrame.from_features(features, crs="EPSG:4326")
    bounds = gdf.total_bounds
    lon = gdf.get_coordinates()["x"]

    if lon.max() - lon.min() > 180:
        logger.debug("  🌐 Collection crosses the antimeridian, shifting longitudes")
        lon = lon.where(lon >= 0, lon + 360)
    center_lon = (lon.min() + lon.max()) / 2
    if center_lon > 180:
        center_lon -= 360

    center = {
        "lat": float((bounds[1] + bounds[3]) / 2),
        "lon": float(center_lon),
    }
    logger.debug(f"     Map center: {center['lat']:.4f}, {center['lon']:.4f}")
    return center
