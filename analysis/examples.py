#!/usr/bin/env python3
"""
Mapbox Choropleth Examples

Each example fetches public datasets, hands them unmodified to plotly and
returns the figure:

- county-unemployment: US county unemployment, ``go.Choroplethmapbox``
- county-unemployment-express: the same data through ``px.choropleth_mapbox``
- montreal-election: Montreal election by district, GeoJSON passed as a URL
- montreal-election-express: the same through ``px.choropleth_mapbox``
- montreal-election-winner: discrete colors by district winner
- county-unemployment-token: county map on a mapbox-hosted style (needs a token)
"""

import traceback
from pathlib import Path
from typing import Callable, Dict, Optional

import plotly.graph_objects as go
import requests
from loguru import logger

from analysis.map_choropleth_mapbox import (
    create_express_choropleth,
    create_graph_objects_choropleth,
    save_figure,
)
from ops import Config
from processing.data_utils import (
    compute_geojson_center,
    fetch_csv,
    fetch_geojson,
    read_mapbox_token,
    validate_join_keys,
)

ExampleFn = Callable[[Config, Optional[requests.Session]], go.Figure]


def _timeout(config: Config) -> float:
    return config.get_system_setting("request_timeout")


def _center(config: Config, map_key: str, geojson: Optional[dict] = None) -> Optional[Dict[str, float]]:
    """Configured center; "auto" derives it from the GeoJSON bounds when available."""
    center = config.get_map_setting(map_key, "center")
    if center != "auto":
        return center
    if geojson is None:
        return None
    logger.debug("  📍 Using GeoJSON bounds for the map center...")
    return compute_geojson_center(geojson)


def _range(config: Config, map_key: str):
    range_color = config.get_map_setting(map_key, "range_color")
    if range_color is None:
        return None, None
    return range_color[0], range_color[1]


def load_county_data(config: Config, session: Optional[requests.Session] = None):
    """Fetch the county GeoJSON and the unemployment table keyed by FIPS code."""
    county_id = config.get_column_name("county_id")
    counties = fetch_geojson(
        config.get_dataset_url("counties_geojson"), session=session, timeout=_timeout(config)
    )
    df = fetch_csv(
        config.get_dataset_url("unemployment_csv"),
        dtype={county_id: str},
        session=session,
        timeout=_timeout(config),
    )
    validate_join_keys(counties, df, county_id)
    return counties, df


def load_election_data(config: Config, session: Optional[requests.Session] = None):
    """Fetch the Montreal election GeoJSON and results table keyed by district."""
    district_id = config.get_column_name("district_id")
    featureidkey = config.get_map_setting("election", "featureidkey")
    geojson = fetch_geojson(
        config.get_dataset_url("election_geojson"), session=session, timeout=_timeout(config)
    )
    df = fetch_csv(
        config.get_dataset_url("election_csv"),
        dtype={district_id: str},
        session=session,
        timeout=_timeout(config),
    )
    validate_join_keys(geojson, df, district_id, featureidkey)
    return geojson, df


def county_unemployment(config: Config, session: Optional[requests.Session] = None) -> go.Figure:
    """US county unemployment with go.Choroplethmapbox."""
    counties, df = load_county_data(config, session)
    zmin, zmax = _range(config, "counties")
    return create_graph_objects_choropleth(
        geojson=counties,
        locations=df[config.get_column_name("county_id")],
        z=df[config.get_column_name("county_value")],
        colorscale=config.get_map_setting("counties", "colorscale"),
        zmin=zmin,
        zmax=zmax,
        opacity=config.get_map_setting("counties", "opacity"),
        marker_line_width=config.get_map_setting("counties", "marker_line_width"),
        style=config.get_map_setting("counties", "style"),
        center=_center(config, "counties", counties),
        zoom=config.get_map_setting("counties", "zoom"),
    )


def county_unemployment_express(
    config: Config, session: Optional[requests.Session] = None
) -> go.Figure:
    """US county unemployment with px.choropleth_mapbox."""
    counties, df = load_county_data(config, session)
    value = config.get_column_name("county_value")
    zmin, zmax = _range(config, "counties")
    return create_express_choropleth(
        df,
        geojson=counties,
        locations=config.get_column_name("county_id"),
        color=value,
        color_continuous_scale=config.get_map_setting("counties", "colorscale"),
        range_color=(zmin, zmax) if zmin is not None else None,
        labels={value: "unemployment rate"},
        opacity=config.get_map_setting("counties", "opacity"),
        style=config.get_map_setting("counties", "style"),
        center=_center(config, "counties", counties),
        zoom=config.get_map_setting("counties", "zoom"),
    )


def montreal_election(config: Config, session: Optional[requests.Session] = None) -> go.Figure:
    """Graph-objects variant: plotly.js downloads the GeoJSON itself."""
    district_id = config.get_column_name("district_id")
    df = fetch_csv(
        config.get_dataset_url("election_csv"),
        dtype={district_id: str},
        session=session,
        timeout=_timeout(config),
    )
    return create_graph_objects_choropleth(
        geojson=config.get_dataset_url("election_geojson"),
        locations=df[district_id],
        z=df[config.get_column_name("district_value")],
        featureidkey=config.get_map_setting("election", "featureidkey"),
        colorscale=config.get_map_setting("election", "colorscale"),
        opacity=config.get_map_setting("election", "opacity"),
        marker_line_width=config.get_map_setting("election", "marker_line_width"),
        style=config.get_map_setting("election", "style"),
        center=_center(config, "election"),
        zoom=config.get_map_setting("election", "zoom"),
    )


def montreal_election_express(
    config: Config, session: Optional[requests.Session] = None
) -> go.Figure:
    """Bergeron vote share by district, matched on properties.district."""
    geojson, df = load_election_data(config, session)
    return create_express_choropleth(
        df,
        geojson=geojson,
        locations=config.get_column_name("district_id"),
        color=config.get_column_name("district_value"),
        featureidkey=config.get_map_setting("election", "featureidkey"),
        color_continuous_scale=config.get_map_setting("election", "colorscale"),
        opacity=config.get_map_setting("election", "opacity"),
        style=config.get_map_setting("election", "style"),
        center=_center(config, "election", geojson),
        zoom=config.get_map_setting("election", "zoom"),
    )


def montreal_election_winner(
    config: Config, session: Optional[requests.Session] = None
) -> go.Figure:
    """Discrete colors by district winner."""
    geojson, df = load_election_data(config, session)
    return create_express_choropleth(
        df,
        geojson=geojson,
        locations=config.get_column_name("district_id"),
        color=config.get_column_name("district_winner"),
        featureidkey=config.get_map_setting("election", "featureidkey"),
        hover_name=config.get_column_name("district_id"),
        opacity=config.get_map_setting("election", "opacity"),
        style=config.get_map_setting("election", "style"),
        center=_center(config, "election", geojson),
        zoom=config.get_map_setting("election", "zoom"),
    )


def county_unemployment_token(
    config: Config, session: Optional[requests.Session] = None
) -> go.Figure:
    """County map on a mapbox-hosted style; fails without an access token."""
    token = read_mapbox_token(config.get_token_path())
    counties, df = load_county_data(config, session)
    zmin, zmax = _range(config, "counties")
    return create_graph_objects_choropleth(
        geojson=counties,
        locations=df[config.get_column_name("county_id")],
        z=df[config.get_column_name("county_value")],
        colorscale=config.get_map_setting("counties", "colorscale"),
        zmin=zmin,
        zmax=zmax,
        opacity=config.get_map_setting("counties", "opacity"),
        marker_line_width=config.get_map_setting("counties", "marker_line_width"),
        style=config.get("mapbox.token_style"),
        center=_center(config, "counties", counties),
        zoom=config.get_map_setting("counties", "zoom"),
        accesstoken=token,
    )


EXAMPLES: Dict[str, ExampleFn] = {
    "county-unemployment": county_unemployment,
    "county-unemployment-express": county_unemployment_express,
    "montreal-election": montreal_election,
    "montreal-election-express": montreal_election_express,
    "montreal-election-winner": montreal_election_winner,
    "county-unemployment-token": county_unemployment_token,
}


def run_example(
    name: str,
    config: Config,
    show: bool = False,
    session: Optional[requests.Session] = None,
) -> Path:
    """
    Build one example and write it to ``<html_dir>/<name>.html``.

    Errors from fetching, parsing or plotting propagate to the caller.

    Raises:
        KeyError: if no example is registered under ``name``
    """
    if name not in EXAMPLES:
        raise KeyError(f"Unknown example '{name}'. Available: {', '.join(EXAMPLES)}")

    logger.info(f"🗺️ Building example: {name}")
    fig = EXAMPLES[name](config, session)
    return save_figure(fig, config.get_map_output_path(name), show=show)


def run_examples(
    names, config: Config, show: bool = False, session: Optional[requests.Session] = None
) -> Dict[str, Optional[Path]]:
    """
    Run several examples independently.

    A failing example is logged and recorded as None; the rest still run.
    """
    results: Dict[str, Optional[Path]] = {}
    for name in names:
        try:
            results[name] = run_example(name, config, show=show, session=session)
        except Exception as e:
            logger.critical(f"❌ Example '{name}' failed: {e}")
            logger.trace("Detailed example error:")
            logger.trace(traceback.format_exc())
            results[name] = None
    return results
