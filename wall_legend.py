"""
wall_legend.py - Conservation state legend control
===================================================

The legend has two render states, compact and expanded, driven by a single
boolean. ``render_legend`` is a pure function of that boolean; the folium
control ships both renderings to the page and flips between them on click,
Enter or Space.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from branca.element import MacroElement
from jinja2 import Template

from wall_styles import CANONICAL_STATES, WallState, state_color

TOGGLE_KEYS = ("Enter", " ")

COMPACT_FOOTPRINT = ("190px", "160px")
EXPANDED_FOOTPRINT = ("720px", "380px")

SHORT_LABELS: Dict[WallState, str] = {
    WallState.CRITICAL: "Pessimo",
    WallState.POOR: "Mediocre",
    WallState.GOOD: "Buono",
    WallState.EXCELLENT: "Ottimo",
}

LONG_LABELS: Dict[WallState, str] = {
    WallState.CRITICAL: "Stato pessimo/crollato (gravemente compromesso)",
    WallState.POOR: "Stato mediocre/critico (parzialmente compromesso)",
    WallState.GOOD: "Stato buono/discreto (integro con interventi non conformi ai canoni tradizionali)",
    WallState.EXCELLENT: "Stato ottimo (integro o recentemente ristrutturato secondo i canoni tradizionali)",
}

DESCRIPTIONS: Dict[WallState, str] = {
    WallState.CRITICAL: (
        "Struttura gravemente compromessa o totalmente crollata, con perdita della funzione "
        "originaria, frequentemente dovuta a crolli strutturali, interventi incongrui o "
        "abbandono prolungato."
    ),
    WallState.POOR: (
        "Struttura caratterizzata da cedimenti parziali, disallineamenti delle pietre o "
        "perdita locale di ammorsamento, spesso associati a interventi impropri o assenza "
        "di manutenzione."
    ),
    WallState.GOOD: (
        "Struttura integra e stabile, priva di dissesti strutturali significativi, ma "
        "interessata da interventi di ripristino o manutenzione non pienamente conformi ai "
        "canoni costruttivi tradizionali della pietra a secco."
    ),
    WallState.EXCELLENT: (
        "Struttura integra, stabile e correttamente ammorsata, oppure recentemente "
        "ristrutturata secondo i canoni costruttivi tradizionali della pietra a secco e nel "
        "rispetto dei criteri di tutela paesaggistica."
    ),
}


# ==================== STATE ====================

@dataclass
class LegendState:
    """View state of the legend: compact (default) or expanded."""

    expanded: bool = False

    @property
    def name(self) -> str:
        return "expanded" if self.expanded else "compact"

    def toggle(self) -> bool:
        self.expanded = not self.expanded
        return self.expanded

    def handle_key(self, key: str) -> bool:
        """Toggle on Enter or Space. Returns True if the key was handled."""
        if key not in TOGGLE_KEYS:
            return False
        self.toggle()
        return True

    def render(self) -> str:
        return render_legend(self.expanded)


# ==================== RENDERING ====================

def swatch(color: str) -> str:
    return (
        f'<span style="display:inline-block;width:12px;height:12px;background:{color};'
        'margin-right:6px;border:1px solid #999;border-radius:2px;"></span>'
    )


def legend_footprint(expanded: bool) -> Tuple[str, str]:
    """(max-width, max-height) of the legend box in the given state."""
    return EXPANDED_FOOTPRINT if expanded else COMPACT_FOOTPRINT


def _render_compact() -> str:
    rows = "".join(
        f"{swatch(state_color(state))}{SHORT_LABELS[state]}<br>" for state in CANONICAL_STATES
    )
    return (
        '<b>Stato muretto</b> <span style="opacity:.65;font-size:12px;">(clicca)</span><br>'
        + rows
    )


def _render_expanded() -> str:
    paragraphs = []
    for i, state in enumerate(CANONICAL_STATES):
        margin = "" if i == len(CANONICAL_STATES) - 1 else ' style="margin-bottom:8px;"'
        paragraphs.append(
            f'<div{margin}>{swatch(state_color(state))}<b>{LONG_LABELS[state]}</b>'
            f'<div style="opacity:.85;font-size:14px;">{DESCRIPTIONS[state]}</div></div>'
        )
    return (
        '<div style="font-size:15px;line-height:20px;">'
        '<div style="display:flex;align-items:baseline;gap:8px;justify-content:space-between;">'
        '<b>Classificazione dello stato di conservazione delle strutture a secco</b>'
        '<span style="opacity:.65;font-size:13px;">(clicca per chiudere)</span>'
        '</div>'
        f'<div style="margin-top:8px;">{"".join(paragraphs)}</div>'
        '</div>'
    )


def render_legend(expanded: bool) -> str:
    """Legend HTML for the given state."""
    return _render_expanded() if expanded else _render_compact()


# ==================== FOLIUM CONTROL ====================

class WallLegend(MacroElement):
    """Leaflet control holding the legend and its click/keyboard toggle."""

    _template = Template(
        """
        {% macro script(this, kwargs) %}
        (function() {
            var legend = L.control({position: {{ this.position|tojson }}});
            legend.onAdd = function() {
                var div = L.DomUtil.create('div', 'info legend');
                var expanded = {{ this.expanded|tojson }};
                var templates = {{ this.templates|tojson }};
                var footprints = {{ this.footprints|tojson }};

                div.style.background = 'white';
                div.style.padding = '10px';
                div.style.borderRadius = '12px';
                div.style.boxShadow = '0 2px 10px rgba(0,0,0,0.15)';
                div.style.fontFamily = 'sans-serif';
                div.style.fontSize = '14px';
                div.style.lineHeight = '18px';
                div.style.cursor = 'pointer';
                div.style.userSelect = 'none';
                div.style.overflow = 'auto';
                div.style.transition = 'max-width 180ms ease, max-height 180ms ease, padding 180ms ease';
                div.setAttribute('role', 'button');
                div.setAttribute('tabindex', '0');

                function render() {
                    var key = expanded ? 'expanded' : 'compact';
                    div.setAttribute('aria-expanded', String(expanded));
                    div.style.maxWidth = footprints[key][0];
                    div.style.maxHeight = footprints[key][1];
                    div.innerHTML = templates[key];
                }

                render();

                L.DomEvent.disableClickPropagation(div);
                L.DomEvent.disableScrollPropagation(div);

                div.addEventListener('click', function() {
                    expanded = !expanded;
                    render();
                });
                div.addEventListener('keydown', function(e) {
                    if ({{ this.toggle_keys|tojson }}.indexOf(e.key) !== -1) {
                        e.preventDefault();
                        expanded = !expanded;
                        render();
                    }
                });
                return div;
            };
            legend.addTo({{ this._parent.get_name() }});
        })();
        {% endmacro %}
        """
    )

    def __init__(self, state: Optional[LegendState] = None, position: str = "bottomleft"):
        super().__init__()
        self._name = "WallLegend"
        self.state = state if state is not None else LegendState()
        self.position = position
        self.expanded = self.state.expanded
        # both renderings ship to the page, keyed by state name
        views = [LegendState(expanded=False), LegendState(expanded=True)]
        self.templates = {view.name: view.render() for view in views}
        self.footprints = {view.name: list(legend_footprint(view.expanded)) for view in views}
        self.toggle_keys = list(TOGGLE_KEYS)
