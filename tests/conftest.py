"""Shared fixtures: small offline datasets and a fake HTTP session."""

import json

import pytest
import requests
import yaml

from ops import Config

COUNTIES_URL = "https://example.test/geojson-counties-fips.json"
UNEMPLOYMENT_URL = "https://example.test/fips-unemp-16.csv"
ELECTION_GEOJSON_URL = "https://example.test/election.geojson"
ELECTION_CSV_URL = "https://example.test/election.csv"


def _square(lon, lat, size=1.0):
    return {
        "type": "Polygon",
        "coordinates": [
            [
                [lon, lat],
                [lon + size, lat],
                [lon + size, lat + size],
                [lon, lat + size],
                [lon, lat],
            ]
        ],
    }


COUNTIES = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "id": "01001",
            "properties": {"NAME": "Autauga"},
            "geometry": _square(-88.0, 30.0),
        },
        {
            "type": "Feature",
            "id": "01003",
            "properties": {"NAME": "Baldwin"},
            "geometry": _square(-87.0, 31.0),
        },
    ],
}

UNEMPLOYMENT_CSV = "fips,unemp\n01001,5.3\n01003,5.4\n99999,1.0\n"

ELECTION = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "properties": {"district": "101-Bois-de-Liesse"},
            "geometry": _square(-73.9, 45.4, 0.05),
        },
        {
            "type": "Feature",
            "properties": {"district": "102-Cap-Saint-Jacques"},
            "geometry": _square(-73.8, 45.5, 0.05),
        },
    ],
}

ELECTION_CSV = (
    "district,Coderre,Bergeron,Joly,total,winner\n"
    "101-Bois-de-Liesse,2481,1829,3024,7334,Joly\n"
    "102-Cap-Saint-Jacques,2525,1163,2675,6363,Joly\n"
)


class FakeResponse:
    def __init__(self, url, body, status_code=200):
        self.url = url
        self.text = body
        self.status_code = status_code

    def json(self):
        return json.loads(self.text)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error for url: {self.url}")


class FakeSession:
    """Serves canned payloads by URL and records every request."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.requests = []

    def get(self, url, timeout=None):
        self.requests.append((url, timeout))
        if url not in self.routes:
            raise requests.exceptions.ConnectionError(f"No route to {url}")
        body, status_code = self.routes[url]
        return FakeResponse(url, body, status_code)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def routes():
    return {
        COUNTIES_URL: (json.dumps(COUNTIES), 200),
        UNEMPLOYMENT_URL: (UNEMPLOYMENT_CSV, 200),
        ELECTION_GEOJSON_URL: (json.dumps(ELECTION), 200),
        ELECTION_CSV_URL: (ELECTION_CSV, 200),
    }


@pytest.fixture
def session(routes):
    return FakeSession(routes)


@pytest.fixture
def counties():
    return json.loads(json.dumps(COUNTIES))


@pytest.fixture
def election():
    return json.loads(json.dumps(ELECTION))


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    monkeypatch.delenv("MAPBOX_ACCESS_TOKEN", raising=False)
    monkeypatch.delenv("CHOROPLETH_CONFIG_PATH", raising=False)
    monkeypatch.delenv("PROJECT_ROOT_OVERRIDE", raising=False)


@pytest.fixture
def config_data(tmp_path):
    return {
        "project_name": "Test Choropleths",
        "datasets": {
            "counties_geojson": COUNTIES_URL,
            "unemployment_csv": UNEMPLOYMENT_URL,
            "election_geojson": ELECTION_GEOJSON_URL,
            "election_csv": ELECTION_CSV_URL,
        },
        "maps": {
            "counties": {"center": {"lat": 37.0902, "lon": -95.7129}},
            "election": {"center": {"lat": 45.5517, "lon": -73.7073}},
        },
        "mapbox": {"token_file": ".mapbox_token"},
        "directories": {"html": str(tmp_path / "html")},
    }


@pytest.fixture
def config_path(tmp_path, config_data):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(config_data))
    return path


@pytest.fixture
def config(config_path, tmp_path):
    return Config(config_path, project_root_override=tmp_path)
