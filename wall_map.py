#!/usr/bin/env python3
"""
wall_map.py - Dry-stone wall conservation map generator
========================================================

Features:
---------
🧱 Wall segments colored by conservation state, highlighted on hover
📍 Points of interest with custom dot markers and rich popups
🗺️ OpenStreetMap and Esri satellite base maps
🔍 Initial view fitted to the data, zoomed out for context
🎛️ Layer control with an external show/hide button
📖 Compact/expanded legend toggled by click or keyboard
🔧 Configurable via JSON config file
📝 Logging and error reporting

Both feature collections must load before anything is drawn: a failed load
aborts the build and no partial map is produced.
"""

import json
import logging
import math
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import folium
from branca.element import MacroElement
from jinja2 import Template

from geojson_getter import DEFAULT_TIMEOUT, GeoJsonLoader
from wall_layers import (
    InteractiveLayer,
    add_poi_css,
    build_line_layer,
    build_point_layer,
    union_bounds,
)
from wall_legend import LegendState, WallLegend

logger = logging.getLogger(__name__)


# ==================== CONFIGURATION ====================

@dataclass
class MapConfig:
    """Configuration for map generation."""

    # Data sources (URLs or local paths)
    lines_source: str = "data/muretti.geojson"
    points_source: str = "data/poi.geojson"
    output_path: str = "muretti_map.html"
    request_timeout: float = DEFAULT_TIMEOUT

    # Map settings
    center: List[float] = field(default_factory=lambda: [41.9, 12.5])
    zoom_start: int = 6
    min_zoom: int = 0
    max_zoom: int = 19

    # Initial view fitting
    bounds_padding: float = 0.1
    zoom_offset: int = 3
    viewport_size: List[int] = field(default_factory=lambda: [1024, 768])

    # Layer names
    lines_layer_name: str = "Muretti a secco"
    points_layer_name: str = "POI"

    @classmethod
    def from_json(cls, json_path: str) -> 'MapConfig':
        """Load configuration from JSON file."""
        try:
            with open(json_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return cls(**data)
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"Failed to load config from {json_path}: {e}. Using defaults.")
            return cls()


BASE_MAPS = (
    {
        "name": "OpenStreetMap",
        "tiles": "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
        "attr": "&copy; OpenStreetMap contributors",
    },
    {
        "name": "Satellite (Esri)",
        "tiles": (
            "https://server.arcgisonline.com/ArcGIS/rest/services/"
            "World_Imagery/MapServer/tile/{z}/{y}/{x}"
        ),
        "attr": (
            "Tiles &copy; Esri &mdash; Source: Esri, i-cubed, USDA, USGS, AEX, GeoEye, "
            "Getmapping, Aerogrid, IGN, IGP, UPR-EGP, and the GIS User Community"
        ),
    },
)


# ==================== LOGGING SETUP ====================

LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(message)s'


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """Configure console logging and, optionally, a debug log file."""
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if log_file else level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')

    # Console handler, added once even if called again
    if not any(getattr(h, "stream", None) is sys.stdout for h in root.handlers):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    return root


# ==================== VIEW FITTING ====================

TILE_SIZE = 256
MAX_LATITUDE = 85.0511287798

Bounds = List[List[float]]


@dataclass
class ViewState:
    """Initial map view derived from the data extent."""

    center: Tuple[float, float]
    zoom: int
    fit_zoom: int
    bounds: Bounds


def pad_bounds(bounds: Bounds, fraction: float) -> Bounds:
    """Grow [[south, west], [north, east]] by a fraction of its extent on each side."""
    (south, west), (north, east) = bounds
    lat_buffer = abs(north - south) * fraction
    lng_buffer = abs(east - west) * fraction
    return [[south - lat_buffer, west - lng_buffer], [north + lat_buffer, east + lng_buffer]]


def _project(lat: float, lng: float) -> Tuple[float, float]:
    """Web Mercator pixel coordinates at zoom 0."""
    lat = max(min(lat, MAX_LATITUDE), -MAX_LATITUDE)
    sin = math.sin(math.radians(lat))
    x = TILE_SIZE * (lng + 180.0) / 360.0
    y = TILE_SIZE * (0.5 - math.log((1 + sin) / (1 - sin)) / (4 * math.pi))
    return x, y


def _unproject(x: float, y: float) -> Tuple[float, float]:
    lng = x / TILE_SIZE * 360.0 - 180.0
    merc = (0.5 - y / TILE_SIZE) * 2 * math.pi
    lat = math.degrees(2 * math.atan(math.exp(merc)) - math.pi / 2)
    return lat, lng


def fit_zoom(bounds: Bounds, size: Tuple[int, int], min_zoom: int = 0, max_zoom: int = 19) -> int:
    """Largest whole zoom at which bounds fit in a viewport of the given pixel size."""
    (south, west), (north, east) = bounds
    nw_x, nw_y = _project(north, west)
    se_x, se_y = _project(south, east)
    width, height = size

    span_x, span_y = abs(se_x - nw_x), abs(se_y - nw_y)
    scale_x = width / span_x if span_x else math.inf
    scale_y = height / span_y if span_y else math.inf
    scale = min(scale_x, scale_y)
    if math.isinf(scale):
        return max_zoom

    zoom = round(math.log2(scale) * 100) / 100
    return max(min_zoom, min(max_zoom, math.floor(zoom)))


def pull_back_zoom(zoom: int, offset: int, min_zoom: int = 0) -> int:
    """Zoom out by offset levels without going under min_zoom."""
    return max(zoom - offset, min_zoom)


def compute_initial_view(bounds: Optional[Bounds], config: MapConfig) -> Optional[ViewState]:
    """Fit the padded data extent, then pull the zoom back for context.

    Args:
        bounds: Union extent of the layers, or None when there is no data
        config: Map configuration (padding, offset, zoom limits, viewport)

    Returns:
        ViewState, or None if there is nothing to fit
    """
    if bounds is None:
        return None

    padded = pad_bounds(bounds, config.bounds_padding)
    zoom = fit_zoom(padded, tuple(config.viewport_size), config.min_zoom, config.max_zoom)

    (south, west), (north, east) = padded
    nw_x, nw_y = _project(north, west)
    se_x, se_y = _project(south, east)
    center = _unproject((nw_x + se_x) / 2, (nw_y + se_y) / 2)

    return ViewState(
        center=center,
        zoom=pull_back_zoom(zoom, config.zoom_offset, config.min_zoom),
        fit_zoom=zoom,
        bounds=padded,
    )


class FitDataBounds(MacroElement):
    """Fit the browser viewport to the data, then zoom out by a fixed offset."""

    _template = Template(
        """
        {% macro script(this, kwargs) %}
        (function() {
            var map = {{ this._parent.get_name() }};
            var bounds = L.latLngBounds({{ this.bounds|tojson }});
            if (bounds.isValid()) {
                // one non-animated step, getZoom() reads stale mid-animation
                var padded = bounds.pad({{ this.padding }});
                var zoom = Math.max(map.getBoundsZoom(padded) - {{ this.zoom_offset }}, {{ this.min_zoom }});
                map.setView(padded.getCenter(), zoom, {animate: false});
            }
        })();
        {% endmacro %}
        """
    )

    def __init__(self, bounds: Bounds, padding: float = 0.1, zoom_offset: int = 3, min_zoom: int = 0):
        super().__init__()
        self._name = "FitDataBounds"
        self.bounds = bounds
        self.padding = padding
        self.zoom_offset = zoom_offset
        self.min_zoom = min_zoom


# ==================== LAYER CONTROL TOGGLE ====================

TOGGLE_BUTTON_ID = "layers-toggle-btn"
TOGGLE_TITLES = {True: "Nascondi livelli", False: "Mostra livelli"}


def toggle_button_state(visible: bool) -> Dict[str, str]:
    """Attributes of the toggle button and control container for a visibility."""
    return {
        "aria-pressed": "true" if visible else "false",
        "title": TOGGLE_TITLES[visible],
        "display": "" if visible else "none",
    }


class LayerControlToggle(MacroElement):
    """External button showing/hiding the layer control container."""

    _template = Template(
        """
        {% macro html(this, kwargs) %}
        <button id="{{ this.button_id }}" type="button"
                aria-pressed="{{ this.initial['aria-pressed'] }}"
                title="{{ this.initial['title'] }}"
                style="position: absolute; top: 80px; left: 10px; z-index: 1000;
                       background: white; border: 2px solid rgba(0,0,0,0.2);
                       border-radius: 4px; padding: 6px 10px; cursor: pointer;
                       font-family: sans-serif; font-size: 13px;">
            🗂️ Livelli
        </button>
        {% endmacro %}

        {% macro script(this, kwargs) %}
        (function() {
            var map = {{ this._parent.get_name() }};
            var btn = document.getElementById({{ this.button_id|tojson }});
            if (!btn) { return; }

            var states = {{ this.states|tojson }};
            var visible = true;
            btn.addEventListener('click', function() {
                // Looked up on click: the layer control may be rendered after this script
                var container = map.getContainer().querySelector('.leaflet-control-layers');
                if (!container) { return; }
                visible = !visible;
                var state = states[visible ? 'visible' : 'hidden'];
                container.style.display = state['display'];
                btn.setAttribute('aria-pressed', state['aria-pressed']);
                btn.title = state['title'];
            });
        })();
        {% endmacro %}
        """
    )

    def __init__(self, button_id: str = TOGGLE_BUTTON_ID):
        super().__init__()
        self._name = "LayerControlToggle"
        self.button_id = button_id
        self.initial = toggle_button_state(True)
        self.states = {
            "visible": toggle_button_state(True),
            "hidden": toggle_button_state(False),
        }


# ==================== VIEW COMPOSER ====================

class MapBuilder:
    """Builds the wall conservation map: layers, view, controls and legend."""

    def __init__(self, config: MapConfig, loader: Optional[GeoJsonLoader] = None):
        self.config = config
        self.loader = loader or GeoJsonLoader(timeout=config.request_timeout)
        self.map: Optional[folium.Map] = None
        self.lines_layer: Optional[InteractiveLayer] = None
        self.points_layer: Optional[InteractiveLayer] = None
        self.layer_control: Optional[folium.LayerControl] = None
        self.view: Optional[ViewState] = None
        self.legend_state = LegendState()

    @property
    def layers(self) -> List[InteractiveLayer]:
        return [layer for layer in (self.lines_layer, self.points_layer) if layer is not None]

    def load_collections(self) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """Load both collections; either failure raises LoadError before any layer exists."""
        lines = self.loader.load(self.config.lines_source)
        points = self.loader.load(self.config.points_source)
        return lines, points

    def create_base_map(self, center: List[float], zoom: int) -> folium.Map:
        """Create the map with mutually exclusive base layers.

        Args:
            center: [lat, lon] for map center
            zoom: Initial zoom level

        Returns:
            Folium Map object
        """
        m = folium.Map(
            location=center,
            zoom_start=zoom,
            min_zoom=self.config.min_zoom,
            max_zoom=self.config.max_zoom,
            tiles=None,
        )

        for i, base in enumerate(BASE_MAPS):
            folium.TileLayer(
                tiles=base["tiles"],
                attr=base["attr"],
                name=base["name"],
                max_zoom=self.config.max_zoom,
                overlay=False,
                control=True,
                show=(i == 0),
            ).add_to(m)

        add_poi_css(m)
        logger.info(f"✅ Base map created with {len(BASE_MAPS)} tile layers")
        return m

    def build_layers(self, lines: Dict[str, Any], points: Dict[str, Any]) -> None:
        self.lines_layer = build_line_layer(lines, name=self.config.lines_layer_name)
        self.points_layer = build_point_layer(points, name=self.config.points_layer_name)

    def fit_view(self) -> Tuple[List[float], int]:
        """Compute the initial view from the layers' combined extent."""
        bounds = union_bounds(self.layers)
        self.view = compute_initial_view(bounds, self.config)
        if self.view is None:
            logger.warning("No geometries to fit, keeping the default view")
            return list(self.config.center), self.config.zoom_start

        logger.info(
            f"🔍 View: center {self.view.center[0]:.6f}, {self.view.center[1]:.6f} "
            f"zoom {self.view.zoom} (fit {self.view.fit_zoom})"
        )
        return list(self.view.center), self.view.zoom

    def add_controls(self, bounds: Optional[List[List[float]]]) -> None:
        """Add view fitting, layer control, its toggle button and the legend."""
        if self.map is None:
            raise RuntimeError("Map not initialized. Call create_base_map first.")

        if bounds is not None:
            FitDataBounds(
                bounds,
                padding=self.config.bounds_padding,
                zoom_offset=self.config.zoom_offset,
                min_zoom=self.config.min_zoom,
            ).add_to(self.map)

        self.layer_control = folium.LayerControl(collapsed=False, position='topright')
        self.layer_control.add_to(self.map)
        LayerControlToggle().add_to(self.map)
        WallLegend(self.legend_state, position='bottomleft').add_to(self.map)
        logger.info("✅ Added layer control, toggle button and legend")

    def build(self) -> folium.Map:
        """Build the complete map.

        Returns:
            Complete Folium Map object

        Raises:
            LoadError: if either feature collection cannot be loaded
        """
        logger.info("=" * 60)
        logger.info("🚀 Starting map generation")
        logger.info("=" * 60)

        lines, points = self.load_collections()
        self.build_layers(lines, points)
        center, zoom = self.fit_view()

        self.map = self.create_base_map(center, zoom)
        for layer in self.layers:
            layer.group.add_to(self.map)
        self.add_controls(union_bounds(self.layers))

        logger.info("=" * 60)
        logger.info("✅ Map generation completed successfully")
        logger.info("=" * 60)
        return self.map

    def save(self, output_path: Optional[str] = None) -> Path:
        """Save map to HTML file.

        Args:
            output_path: Output file path (optional, uses config default)

        Returns:
            Path to saved file
        """
        if self.map is None:
            raise RuntimeError("Map not built. Call build() first.")

        output_path = Path(output_path or self.config.output_path)
        self.map.save(str(output_path))
        logger.info(f"💾 Map saved to: {output_path.absolute()}")
        return output_path


# ==================== MAIN FUNCTION ====================

def build_wall_map(lines_source: Optional[str] = None,
                   points_source: Optional[str] = None,
                   output_path: Optional[str] = None,
                   config_file: Optional[str] = None) -> folium.Map:
    """Build the wall map and save it.

    Args:
        lines_source: URL or path of the wall collection (optional)
        points_source: URL or path of the POI collection (optional)
        output_path: Output HTML file path (optional)
        config_file: Optional JSON config file path

    Returns:
        Folium Map object
    """
    config = MapConfig.from_json(config_file) if config_file else MapConfig()

    if lines_source:
        config.lines_source = lines_source
    if points_source:
        config.points_source = points_source
    if output_path:
        config.output_path = output_path

    builder = MapBuilder(config)
    m = builder.build()
    builder.save()
    return m


# ==================== CLI ====================

def main(argv: Optional[List[str]] = None) -> int:
    import argparse

    parser = argparse.ArgumentParser(
        description="🧱 Dry-stone wall conservation map generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s
  %(prog)s --lines data/muretti.geojson --points data/poi.geojson
  %(prog)s --config my_config.json --out my_map.html
        """
    )
    parser.add_argument("--lines", help="URL or path of the wall segments GeoJSON")
    parser.add_argument("--points", help="URL or path of the POI GeoJSON")
    parser.add_argument("--out", "--output", help="Output HTML file path")
    parser.add_argument("--config", help="JSON configuration file path")
    parser.add_argument("--log-file", help="Also write a debug log to this file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.debug else logging.INFO, args.log_file)

    try:
        build_wall_map(args.lines, args.points, args.out, args.config)
    except Exception as e:
        logger.error(f"❌ Fatal error: {e}", exc_info=True)
        print(f"❌ {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
