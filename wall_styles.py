"""
wall_styles.py - Conservation state classification and feature styling
=======================================================================

Maps the raw ``stato`` attribute of a wall segment to one of the four
conservation states and derives the Leaflet style used to draw it.
POI markers are not state driven: they only honour per-feature overrides.
"""

import logging
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

logger = logging.getLogger(__name__)


# ==================== STATES ====================

class WallState(Enum):
    """Conservation state of a dry-stone wall, worst first."""

    CRITICAL = "pessimo"
    POOR = "mediocre"
    GOOD = "buono"
    EXCELLENT = "ottimo"
    UNKNOWN = "unknown"  # rendering fallback only, never shown in the legend


CANONICAL_STATES: Tuple[WallState, ...] = (
    WallState.CRITICAL,
    WallState.POOR,
    WallState.GOOD,
    WallState.EXCELLENT,
)

_STATE_BY_LABEL = {state.value: state for state in CANONICAL_STATES}


def classify(raw: Any) -> WallState:
    """Classify a raw status value, ignoring case and surrounding whitespace.

    Args:
        raw: Value of the ``stato`` attribute (may be None or a non-string)

    Returns:
        The matching WallState, or WallState.UNKNOWN
    """
    label = str(raw if raw is not None else "").strip().lower()
    return _STATE_BY_LABEL.get(label, WallState.UNKNOWN)


# ==================== STYLE TABLES ====================

STATE_COLORS: Dict[WallState, str] = {
    WallState.CRITICAL: "#d7191c",   # red
    WallState.POOR: "#fdae61",       # orange
    WallState.GOOD: "#ffff66",       # yellow
    WallState.EXCELLENT: "#1a9641",  # green
}
FALLBACK_COLOR = "#2b83ba"

BASE_LINE_WEIGHT = 4
STATE_WEIGHTS: Dict[WallState, float] = {
    WallState.CRITICAL: 6,
    WallState.EXCELLENT: 3,
}
HIGHLIGHT_WEIGHT = 7
LINE_OPACITY = 0.95

DEFAULT_POINT_COLOR = "#3388ff"
DEFAULT_POINT_DIAMETER = 14
POINT_ICON_PADDING = 8

_CSS_COLOR_RE = re.compile(
    r"^(#[0-9a-fA-F]{3,4}|#[0-9a-fA-F]{6}|#[0-9a-fA-F]{8}"
    r"|(?:rgb|rgba|hsl|hsla)\([0-9.,%\s/a-z]+\)"
    r"|[a-zA-Z]+)$"
)


@dataclass(frozen=True)
class StyleDescriptor:
    """Concrete style of a wall segment."""

    color: str
    size: float
    opacity: float = LINE_OPACITY

    def as_line(self) -> Dict[str, Any]:
        """Return the Leaflet path options for this style."""
        return {"color": self.color, "weight": self.size, "opacity": self.opacity}


@dataclass(frozen=True)
class PointStyle:
    """Concrete style of a POI dot marker and its icon geometry."""

    color: str
    diameter: float

    @property
    def icon_size(self) -> Tuple[float, float]:
        side = self.diameter + POINT_ICON_PADDING
        return (side, side)

    @property
    def icon_anchor(self) -> Tuple[float, float]:
        width, height = self.icon_size
        return (width / 2, height / 2)

    @property
    def popup_anchor(self) -> Tuple[float, float]:
        return (0, -self.icon_size[1] / 2)


# ==================== RESOLVERS ====================

def parse_positive(value: Any) -> Optional[float]:
    """Parse an override as a finite positive number.

    Numeric strings are accepted. Booleans, NaN, infinities, zero, negatives
    and anything unparsable yield None, which callers treat as "absent".
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def parse_color(value: Any) -> Optional[str]:
    """Return a trimmed CSS color string, or None if empty or malformed."""
    if value is None:
        return None
    color = str(value).strip()
    if not color or not _CSS_COLOR_RE.match(color):
        return None
    return color


def state_color(state: Union[WallState, str, None]) -> str:
    """Return the color for a state, or the neutral fallback color."""
    if not isinstance(state, WallState):
        state = classify(state)
    return STATE_COLORS.get(state, FALLBACK_COLOR)


def resolve_line_style(state: Union[WallState, str, None],
                       override_weight: Any = None) -> StyleDescriptor:
    """Compute the style of a wall segment.

    Args:
        state: WallState, or a raw status string to classify
        override_weight: Optional per-feature ``weight`` attribute

    Returns:
        StyleDescriptor with the state color and the resolved weight
    """
    if not isinstance(state, WallState):
        state = classify(state)

    weight = parse_positive(override_weight)
    if weight is None:
        if override_weight is not None:
            logger.debug(f"Ignoring invalid weight override: {override_weight!r}")
        weight = STATE_WEIGHTS.get(state, BASE_LINE_WEIGHT)

    return StyleDescriptor(color=state_color(state), size=weight, opacity=LINE_OPACITY)


def resolve_point_style(override_color: Any = None, override_size: Any = None) -> PointStyle:
    """Compute the dot style of a POI marker from its optional overrides."""
    color = parse_color(override_color) or DEFAULT_POINT_COLOR
    diameter = parse_positive(override_size) or DEFAULT_POINT_DIAMETER
    return PointStyle(color=color, diameter=diameter)


def line_style(properties: Optional[Dict[str, Any]], highlighted: bool = False) -> Dict[str, Any]:
    """Leaflet style of a wall feature given its live attributes.

    ``highlighted`` is the hover flag: when set the weight is forced to
    HIGHLIGHT_WEIGHT regardless of state or override.
    """
    props = properties or {}
    style = resolve_line_style(props.get("stato"), props.get("weight")).as_line()
    if highlighted:
        style["weight"] = HIGHLIGHT_WEIGHT
    return style
