"""Tests for geojson_getter - loading collections from files and URLs."""

import json
from unittest.mock import MagicMock

import pytest
import requests

import geojson_getter
from geojson_getter import GeoJsonLoader, LoadError, load

COLLECTION = {"type": "FeatureCollection", "features": []}


def _response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    if isinstance(payload, Exception):
        resp.json.side_effect = payload
    else:
        resp.json.return_value = payload
    return resp


@pytest.fixture
def fake_get(monkeypatch):
    mock = MagicMock(return_value=_response(payload=COLLECTION))
    monkeypatch.setattr(geojson_getter.requests, "get", mock)
    return mock


class TestLocalLoad:

    def test_loads_file(self, data_files):
        lines_path, _ = data_files
        collection = load(lines_path)
        assert collection["type"] == "FeatureCollection"
        assert len(collection["features"]) == 4

    def test_missing_file(self, tmp_path):
        missing = tmp_path / "nope.geojson"
        with pytest.raises(LoadError) as exc_info:
            load(missing)
        assert exc_info.value.status == 404
        assert exc_info.value.locator == str(missing)
        assert str(missing) in str(exc_info.value)

    def test_invalid_json(self, tmp_path):
        broken = tmp_path / "broken.geojson"
        broken.write_text("{not json", encoding="utf-8")
        with pytest.raises(LoadError, match="invalid JSON"):
            load(broken)

    @pytest.mark.parametrize("document", [
        [],
        {"type": "Feature", "geometry": None, "properties": {}},
        {"type": "FeatureCollection"},
    ])
    def test_not_a_feature_collection(self, tmp_path, document):
        path = tmp_path / "other.geojson"
        path.write_text(json.dumps(document), encoding="utf-8")
        with pytest.raises(LoadError):
            load(path)


class TestRemoteLoad:

    def test_success(self, fake_get):
        assert load("https://example.org/muretti.geojson", timeout=5) == COLLECTION
        fake_get.assert_called_once_with("https://example.org/muretti.geojson", timeout=5)

    def test_http_error_status(self, fake_get):
        fake_get.return_value = _response(status_code=404)
        with pytest.raises(LoadError) as exc_info:
            load("https://example.org/missing.geojson")
        assert exc_info.value.status == 404
        assert str(exc_info.value) == "Errore caricamento https://example.org/missing.geojson: 404"

    def test_network_error(self, fake_get):
        fake_get.side_effect = requests.ConnectionError("connection refused")
        with pytest.raises(LoadError, match="connection refused") as exc_info:
            load("http://example.org/poi.geojson")
        assert exc_info.value.status is None

    def test_invalid_json_body(self, fake_get):
        fake_get.return_value = _response(payload=ValueError("Expecting value"))
        with pytest.raises(LoadError, match="invalid JSON"):
            load("https://example.org/poi.geojson")


class TestGeoJsonLoader:

    def test_caches_per_locator(self, fake_get):
        loader = GeoJsonLoader(timeout=3)
        first = loader.load("https://example.org/a.geojson")
        second = loader.load("https://example.org/a.geojson")
        assert first is second
        assert fake_get.call_count == 1

    def test_failures_are_not_cached(self, fake_get):
        fake_get.return_value = _response(status_code=500)
        loader = GeoJsonLoader()
        for _ in range(2):
            with pytest.raises(LoadError):
                loader.load("https://example.org/a.geojson")
        assert fake_get.call_count == 2
