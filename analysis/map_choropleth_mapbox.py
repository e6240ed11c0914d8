#!/usr/bin/env python3
"""
Choropleth Figure Builders for Mapbox Base Layers

Thin wrappers around the two plotly entry points for mapbox choropleths:

- ``go.Choroplethmapbox`` (graph objects), driven by explicit location and
  value sequences
- ``px.choropleth_mapbox`` (plotly express), driven by DataFrame columns

The GeoJSON and the table are forwarded unmodified. Matching rows to
features is left to plotly through ``locations`` and ``featureidkey``.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple, Union

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
from loguru import logger

DEFAULT_STYLE = "carto-positron"
DEFAULT_COLORSCALE = "Viridis"
ZERO_MARGIN = {"r": 0, "t": 0, "l": 0, "b": 0}


def _layout_mapbox(
    fig: go.Figure,
    style: str,
    center: Optional[Dict[str, float]],
    zoom: Optional[float],
    accesstoken: Optional[str],
) -> go.Figure:
    mapbox: Dict[str, Any] = {"style": style}
    if center is not None:
        mapbox["center"] = center
    if zoom is not None:
        mapbox["zoom"] = zoom
    if accesstoken:
        mapbox["accesstoken"] = accesstoken

    fig.update_layout(mapbox=mapbox, margin=ZERO_MARGIN)
    return fig


def create_graph_objects_choropleth(
    geojson: Union[Dict[str, Any], str],
    locations: Sequence[Any],
    z: Sequence[Any],
    featureidkey: Optional[str] = None,
    colorscale: str = DEFAULT_COLORSCALE,
    zmin: Optional[float] = None,
    zmax: Optional[float] = None,
    opacity: float = 0.5,
    marker_line_width: float = 0,
    style: str = DEFAULT_STYLE,
    center: Optional[Dict[str, float]] = None,
    zoom: Optional[float] = None,
    accesstoken: Optional[str] = None,
) -> go.Figure:
    """
    Create a single-trace ``go.Choroplethmapbox`` figure.

    Args:
        geojson: Feature collection, or a URL plotly.js downloads itself
        locations: Identifiers matched against the features
        z: Values used for the color encoding
        featureidkey: Dotted path to the feature identifier (plotly uses ``id`` when None)
        colorscale: Named or explicit colorscale
        zmin: Lower bound of the color range
        zmax: Upper bound of the color range
        opacity: Fill opacity of the regions
        marker_line_width: Width of region outlines
        style: Mapbox base-map style
        center: {"lat", "lon"} map center
        zoom: Mapbox zoom level
        accesstoken: Mapbox token, needed for mapbox-hosted styles

    Returns:
        The plotly figure
    """
    locations = list(locations)
    z = list(z)
    if len(locations) != len(z):
        raise ValueError(f"locations ({len(locations)}) and z ({len(z)}) differ in length")

    trace_kwargs: Dict[str, Any] = {
        "geojson": geojson,
        "locations": locations,
        "z": z,
        "colorscale": colorscale,
        "marker_opacity": opacity,
        "marker_line_width": marker_line_width,
    }
    if featureidkey:
        trace_kwargs["featureidkey"] = featureidkey
    if zmin is not None:
        trace_kwargs["zmin"] = zmin
    if zmax is not None:
        trace_kwargs["zmax"] = zmax

    logger.debug(f"  🎨 Choroplethmapbox trace: {len(locations):,} locations, colorscale={colorscale}")
    fig = go.Figure(go.Choroplethmapbox(**trace_kwargs))
    return _layout_mapbox(fig, style, center, zoom, accesstoken)


def create_express_choropleth(
    df: pd.DataFrame,
    geojson: Union[Dict[str, Any], str],
    locations: str,
    color: str,
    featureidkey: Optional[str] = None,
    color_continuous_scale: Optional[str] = None,
    range_color: Optional[Tuple[float, float]] = None,
    labels: Optional[Dict[str, str]] = None,
    hover_name: Optional[str] = None,
    opacity: float = 0.5,
    style: str = DEFAULT_STYLE,
    center: Optional[Dict[str, float]] = None,
    zoom: Optional[float] = None,
    accesstoken: Optional[str] = None,
) -> go.Figure:
    """
    Create a ``px.choropleth_mapbox`` figure from DataFrame columns.

    A numeric ``color`` column gives a continuous color axis; a text column
    gives one trace per category.
    """
    for column in (locations, color):
        if column not in df.columns:
            raise KeyError(f"Column '{column}' not found. Available columns: {list(df.columns)}")

    px_kwargs: Dict[str, Any] = {
        "geojson": geojson,
        "locations": locations,
        "color": color,
        "opacity": opacity,
        "mapbox_style": style,
    }
    optional = {
        "featureidkey": featureidkey,
        "color_continuous_scale": color_continuous_scale,
        "range_color": tuple(range_color) if range_color is not None else None,
        "labels": labels,
        "hover_name": hover_name,
        "center": center,
        "zoom": zoom,
    }
    px_kwargs.update({key: value for key, value in optional.items() if value is not None})

    logger.debug(f"  🎨 choropleth_mapbox: {len(df):,} rows, color={color}")
    fig = px.choropleth_mapbox(df, **px_kwargs)
    return _layout_mapbox(fig, style, center, zoom, accesstoken)


def save_figure(fig: go.Figure, output_path: Union[str, Path], show: bool = False) -> Path:
    """Write a figure to standalone HTML and optionally display it."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    logger.debug(f"  💾 Writing HTML: {output_path}")
    fig.write_html(str(output_path))
    logger.success(f"  ✅ Map saved: {output_path}")

    if show:
        fig.show()
    return output_path
