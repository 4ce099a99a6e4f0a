"""
wall_layers.py - Interactive folium layers for walls and POI
=============================================================

Turns the raw feature collections into folium FeatureGroups:

- walls: one GeoJson per segment, styled from its conservation state, with a
  hover highlight and a popup
- POI: one Marker per point, or per member of a MultiPoint, with a custom
  sized/colored dot icon and a popup

Points have no hover highlight. The asymmetry is intentional.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

import folium
import geopandas as gpd
from folium import Element
from shapely.errors import ShapelyError
from shapely.geometry import shape
from shapely.geometry.base import BaseGeometry

from wall_popups import build_line_popup, build_point_popup
from wall_styles import PointStyle, line_style, resolve_point_style

logger = logging.getLogger(__name__)

LINE_GEOMETRIES = ("LineString", "MultiLineString")
POINT_GEOMETRIES = ("Point", "MultiPoint")
POPUP_MAX_WIDTH = 320

Bounds = List[List[float]]

POI_ICON_CSS = """
<style>
.poi-div-icon {
    display: flex;
    align-items: center;
    justify-content: center;
    background: transparent;
    border: none;
}
.poi-div-icon .poi-dot {
    display: block;
    width: var(--poi-size);
    height: var(--poi-size);
    background: var(--poi-color);
    border: 2px solid #ffffff;
    border-radius: 50%;
    box-shadow: 0 1px 4px rgba(0,0,0,0.35);
    box-sizing: border-box;
}
</style>
"""


# ==================== LAYER MODEL ====================

@dataclass
class InteractiveLayer:
    """A rendered feature collection and everything attached to its features."""

    name: str
    group: folium.FeatureGroup
    style_rule: Callable[..., Any]
    features: List[Dict[str, Any]] = field(default_factory=list)
    handles: List[Any] = field(default_factory=list)
    popups: List[str] = field(default_factory=list)
    geometries: List[BaseGeometry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.handles)

    def bounds(self) -> Optional[Bounds]:
        """Geographic extent as [[south, west], [north, east]], or None if empty."""
        return geometry_bounds(self.geometries)


def geometry_bounds(geometries: Sequence[BaseGeometry]) -> Optional[Bounds]:
    series = gpd.GeoSeries(list(geometries), crs="EPSG:4326")
    if series.empty:
        return None
    west, south, east, north = series.total_bounds
    return [[float(south), float(west)], [float(north), float(east)]]


def union_bounds(layers: Sequence[InteractiveLayer]) -> Optional[Bounds]:
    """Combined extent of several layers, or None when they are all empty."""
    geometries = [geom for layer in layers for geom in layer.geometries]
    return geometry_bounds(geometries)


def _feature_geometry(feature: Any, allowed: Sequence[str]) -> Optional[BaseGeometry]:
    """Return the feature's geometry if it is usable for this layer, else None."""
    if not isinstance(feature, dict) or not feature.get("geometry"):
        return None
    try:
        geom = shape(feature["geometry"])
    except (ShapelyError, ValueError, TypeError, KeyError, AttributeError) as e:
        logger.warning(f"⚠️ Skipping feature with malformed geometry: {e}")
        return None
    if geom.is_empty or geom.geom_type not in allowed:
        return None
    return geom


# ==================== LAYER FACTORY ====================

def build_line_layer(collection: Dict[str, Any], name: str = "Muretti a secco") -> InteractiveLayer:
    """Build the wall layer: state-colored segments with hover highlight and popups.

    Args:
        collection: GeoJSON FeatureCollection of LineString features
        name: Layer name shown in the layer control

    Returns:
        InteractiveLayer wrapping a FeatureGroup
    """
    group = folium.FeatureGroup(name=name, show=True)
    layer = InteractiveLayer(name=name, group=group, style_rule=line_style)

    skipped = 0
    for index, feature in enumerate(collection.get("features", [])):
        geom = _feature_geometry(feature, LINE_GEOMETRIES)
        if geom is None:
            skipped += 1
            continue

        feature = dict(feature)
        feature["properties"] = dict(feature.get("properties") or {})
        # folium keys its style mapping on feature.id
        feature.setdefault("id", str(index))
        popup_html = build_line_popup(feature["properties"])

        # Style is recomputed from the feature on every call; mouseout runs
        # resetStyle, which calls style_function again.
        segment = folium.GeoJson(
            feature,
            control=False,
            style_function=lambda feat: line_style(feat.get("properties")),
            highlight_function=lambda feat: line_style(feat.get("properties"), highlighted=True),
        )
        folium.Popup(popup_html, max_width=POPUP_MAX_WIDTH).add_to(segment)
        segment.add_to(group)

        layer.features.append(feature)
        layer.handles.append(segment)
        layer.popups.append(popup_html)
        layer.geometries.append(geom)

    if skipped:
        logger.warning(f"⚠️ {name}: skipped {skipped} features without a line geometry")
    logger.info(f"🧱 Built layer '{name}' with {len(layer)} segments")
    return layer


def poi_icon(style: PointStyle) -> folium.DivIcon:
    """Dot icon whose footprint is the diameter plus fixed padding, centre-anchored."""
    return folium.DivIcon(
        html=(
            f'<span class="poi-dot" '
            f'style="--poi-size:{style.diameter:g}px;--poi-color:{style.color};"></span>'
        ),
        icon_size=style.icon_size,
        icon_anchor=style.icon_anchor,
        popup_anchor=style.popup_anchor,
        class_name="poi-div-icon",
    )


def point_style(properties: Optional[Dict[str, Any]]) -> PointStyle:
    props = properties or {}
    return resolve_point_style(props.get("color"), props.get("size"))


def build_point_layer(collection: Dict[str, Any], name: str = "POI") -> InteractiveLayer:
    """Build the POI layer: custom dot markers with popups, no hover behavior."""
    group = folium.FeatureGroup(name=name, show=True)
    layer = InteractiveLayer(name=name, group=group, style_rule=point_style)

    skipped = 0
    for feature in collection.get("features", []):
        geom = _feature_geometry(feature, POINT_GEOMETRIES)
        if geom is None:
            skipped += 1
            continue

        props = dict(feature.get("properties") or {})
        popup_html = build_point_popup(props)
        style = point_style(props)
        # a MultiPoint gets one marker per member, all sharing the feature's popup
        members = list(geom.geoms) if geom.geom_type == "MultiPoint" else [geom]
        for point in members:
            marker = folium.Marker(
                location=[point.y, point.x],
                icon=poi_icon(style),
                popup=folium.Popup(popup_html, max_width=POPUP_MAX_WIDTH),
            )
            marker.add_to(group)

            layer.features.append(dict(feature, properties=props))
            layer.handles.append(marker)
            layer.popups.append(popup_html)
            layer.geometries.append(point)

    if skipped:
        logger.warning(f"⚠️ {name}: skipped {skipped} features without a point geometry")
    logger.info(f"📍 Built layer '{name}' with {len(layer)} markers")
    return layer


def add_poi_css(m: folium.Map) -> None:
    """Inject the CSS that draws the POI dot from its CSS variables."""
    m.get_root().header.add_child(Element(POI_ICON_CSS))
