import json

import pytest


@pytest.fixture
def line_collection():
    """Wall segments covering every state plus an unknown one."""
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"id": 1, "titolo": "Muretto nord", "stato": "PESSIMO ", "weight": 10},
                "geometry": {"type": "LineString", "coordinates": [[12.0, 41.0], [12.5, 41.5]]},
            },
            {
                "type": "Feature",
                "properties": {"id": 2, "stato": "ottimo"},
                "geometry": {"type": "LineString", "coordinates": [[12.5, 41.5], [13.0, 41.8]]},
            },
            {
                "type": "Feature",
                "properties": {"id": 3, "stato": "Mediocre", "note": "Pietre smosse"},
                "geometry": {"type": "LineString", "coordinates": [[12.2, 41.2], [12.3, 41.3]]},
            },
            {
                "type": "Feature",
                "properties": {"id": 4, "stato": "sconosciuto"},
                "geometry": {"type": "LineString", "coordinates": [[12.1, 41.1], [12.4, 41.4]]},
            },
        ],
    }


@pytest.fixture
def point_collection():
    """POI features, one of them at the north-east corner of the data extent."""
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"titolo": "Fontanile", "size": -5},
                "geometry": {"type": "Point", "coordinates": [13.0, 42.0]},
            },
            {
                "type": "Feature",
                "properties": {"titolo": "Capanna", "color": "#8e44ad", "size": 20},
                "geometry": {"type": "Point", "coordinates": [12.6, 41.6]},
            },
        ],
    }


@pytest.fixture
def data_files(tmp_path, line_collection, point_collection):
    """Write both collections to disk and return their paths."""
    lines_path = tmp_path / "muretti.geojson"
    points_path = tmp_path / "poi.geojson"
    lines_path.write_text(json.dumps(line_collection), encoding="utf-8")
    points_path.write_text(json.dumps(point_collection), encoding="utf-8")
    return lines_path, points_path
