"""Tests for fetching, token reading and join-key diagnostics."""

import pandas as pd
import pytest
import requests

from processing.data_utils import (
    compute_geojson_center,
    feature_ids,
    fetch_csv,
    fetch_geojson,
    fetch_json,
    read_mapbox_token,
    validate_join_keys,
)
from tests.conftest import (
    COUNTIES_URL,
    ELECTION_CSV_URL,
    UNEMPLOYMENT_URL,
    FakeSession,
    _square,
)


def test_fetch_geojson_returns_collection_unmodified(session, counties):
    data = fetch_geojson(COUNTIES_URL, session=session, timeout=5)

    assert data == counties
    assert data["features"][0]["id"] == "01001"
    assert session.requests == [(COUNTIES_URL, 5)]


def test_fetch_json_uses_default_timeout(session):
    fetch_json(COUNTIES_URL, session=session)

    assert session.requests[0][1] == 60


def test_fetch_geojson_rejects_payload_without_features():
    session = FakeSession({COUNTIES_URL: ('{"type": "Feature"}', 200)})

    with pytest.raises(ValueError, match="Not a GeoJSON feature collection"):
        fetch_geojson(COUNTIES_URL, session=session)


def test_fetch_json_malformed_body_propagates():
    session = FakeSession({COUNTIES_URL: ("<html>oops</html>", 200)})

    with pytest.raises(ValueError):
        fetch_json(COUNTIES_URL, session=session)


def test_http_error_status_propagates():
    session = FakeSession({COUNTIES_URL: ("not found", 404)})

    with pytest.raises(requests.exceptions.HTTPError):
        fetch_geojson(COUNTIES_URL, session=session)


def test_network_failure_propagates():
    with pytest.raises(requests.exceptions.ConnectionError):
        fetch_csv("https://example.test/missing.csv", session=FakeSession())


def test_fetch_csv_keeps_fips_leading_zeros(session):
    df = fetch_csv(UNEMPLOYMENT_URL, dtype={"fips": str}, session=session)

    assert list(df.columns) == ["fips", "unemp"]
    assert df["fips"].tolist() == ["01001", "01003", "99999"]
    assert df["unemp"].tolist() == [5.3, 5.4, 1.0]


def test_fetch_csv_without_dtype_infers_numbers(session):
    df = fetch_csv(UNEMPLOYMENT_URL, session=session)

    assert df["fips"].tolist() == [1001, 1003, 99999]


def test_fetch_csv_election_columns(session):
    df = fetch_csv(ELECTION_CSV_URL, session=session)

    assert {"district", "Bergeron", "winner"} <= set(df.columns)
    assert len(df) == 2


def test_read_mapbox_token_from_file(tmp_path):
    token_file = tmp_path / ".mapbox_token"
    token_file.write_text("pk.test-token\n")

    assert read_mapbox_token(token_file) == "pk.test-token"


def test_read_mapbox_token_env_overrides_file(tmp_path, monkeypatch):
    token_file = tmp_path / ".mapbox_token"
    token_file.write_text("pk.from-file")
    monkeypatch.setenv("MAPBOX_ACCESS_TOKEN", "pk.from-env")

    assert read_mapbox_token(token_file) == "pk.from-env"


def test_read_mapbox_token_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_mapbox_token(tmp_path / ".mapbox_token")


def test_read_mapbox_token_empty_file(tmp_path):
    token_file = tmp_path / ".mapbox_token"
    token_file.write_text("  \n")

    with pytest.raises(ValueError, match="empty"):
        read_mapbox_token(token_file)


def test_feature_ids_top_level_and_nested(counties, election):
    assert feature_ids(counties) == ["01001", "01003"]
    assert feature_ids(election, "properties.district") == [
        "101-Bois-de-Liesse",
        "102-Cap-Saint-Jacques",
    ]


def test_feature_ids_skips_features_without_key(counties):
    assert feature_ids(counties, "properties.district") == []


def test_validate_join_keys_reports_mismatches(counties):
    df = pd.DataFrame(
        {"fips": ["01001", "99999", None], "unemp": [5.3, 1.0, 2.0]}, dtype=object
    )

    counts = validate_join_keys(counties, df, "fips")

    assert counts == {
        "matched": 1,
        "rows_without_geometry": 1,
        "features_without_data": 1,
    }
    # diagnostics only
    assert df["fips"].isna().tolist() == [False, False, True]
    assert df["fips"].dropna().tolist() == ["01001", "99999"]


def test_validate_join_keys_with_featureidkey(election):
    df = pd.DataFrame({"district": ["101-Bois-de-Liesse", "102-Cap-Saint-Jacques"]})

    counts = validate_join_keys(election, df, "district", "properties.district")

    assert counts["matched"] == 2
    assert counts["rows_without_geometry"] == 0
    assert counts["features_without_data"] == 0


def test_compute_geojson_center(counties):
    center = compute_geojson_center(counties)

    # bounds are lon -88..-86, lat 30..32
    assert center == pytest.approx({"lat": 31.0, "lon": -87.0})


def test_compute_geojson_center_empty_collection():
    with pytest.raises(ValueError):
        compute_geojson_center({"type": "FeatureCollection", "features": []})


def test_compute_geojson_center_across_antimeridian():
    collection = {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "properties": {"name": "aleutians"}, "geometry": _square(178.0, 50.0)},
            {"type": "Feature", "properties": {"name": "west"}, "geometry": _square(-118.5, 35.0)},
            {"type": "Feature", "properties": {"name": "east"}, "geometry": _square(-74.0, 40.0)},
        ],
    }

    center = compute_geojson_center(collection)

    # longitudes 178..179 and -118.5..-73 measured eastward across 180
    assert center == pytest.approx({"lat": 43.0, "lon": -127.5})


def test_fetch_csv_empty_body_propagates():
    session = FakeSession({UNEMPLOYMENT_URL: ("", 200)})

    with pytest.raises(pd.errors.EmptyDataError):
        fetch_csv(UNEMPLOYMENT_URL, session=session)


def test_fetch_csv_ragged_rows_propagate():
    session = FakeSession({UNEMPLOYMENT_URL: ("fips,unemp\n01001,5.3\n01003,5.4,7,8\n", 200)})

    with pytest.raises(pd.errors.ParserError):
        fetch_csv(UNEMPLOYMENT_URL, session=session)


def test_validate_join_keys_missing_column_does_not_raise(counties):
    df = pd.DataFrame({"county": ["01001"], "unemp": [5.3]})

    counts = validate_join_keys(counties, df, "fips")

    assert counts == {"matched": 0, "rows_without_geometry": 1, "features_without_data": 2}
