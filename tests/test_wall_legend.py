"""Tests for wall_legend - legend state machine, rendering and folium control."""

import folium
import pytest

from wall_legend import (
    LegendState,
    WallLegend,
    legend_footprint,
    render_legend,
)
from wall_styles import FALLBACK_COLOR, STATE_COLORS


class TestLegendState:

    @pytest.mark.unit
    def test_starts_compact(self):
        state = LegendState()
        assert state.expanded is False
        assert state.name == "compact"

    @pytest.mark.unit
    def test_click_toggles(self):
        state = LegendState()
        assert state.toggle() is True
        assert state.name == "expanded"
        assert state.toggle() is False
        assert state.name == "compact"

    @pytest.mark.unit
    @pytest.mark.parametrize("key", ["Enter", " "])
    def test_enter_and_space_toggle(self, key):
        state = LegendState(expanded=True)
        assert state.handle_key(key) is True
        assert state.expanded is False

    @pytest.mark.unit
    @pytest.mark.parametrize("key", ["Escape", "Tab", "a", "Spacebar", ""])
    def test_other_keys_are_ignored(self, key):
        state = LegendState()
        assert state.handle_key(key) is False
        assert state.expanded is False

    @pytest.mark.unit
    def test_render_follows_state(self):
        state = LegendState()
        assert state.render() == render_legend(False)
        state.toggle()
        assert state.render() == render_legend(True)


class TestRenderLegend:

    @pytest.mark.unit
    def test_compact_lists_four_states(self):
        html = render_legend(False)
        for label in ("Pessimo", "Mediocre", "Buono", "Ottimo"):
            assert label in html
        for color in STATE_COLORS.values():
            assert color in html
        assert "(clicca)" in html

    @pytest.mark.unit
    def test_compact_order(self):
        html = render_legend(False)
        positions = [html.index(label) for label in ("Pessimo", "Mediocre", "Buono", "Ottimo")]
        assert positions == sorted(positions)

    @pytest.mark.unit
    def test_expanded_has_descriptions(self):
        html = render_legend(True)
        assert "(clicca per chiudere)" in html
        assert html.count("<b>Stato ") == 4
        assert "totalmente crollata" in html
        assert "tutela paesaggistica" in html

    @pytest.mark.unit
    @pytest.mark.parametrize("expanded", [False, True])
    def test_unknown_is_never_listed(self, expanded):
        assert FALLBACK_COLOR not in render_legend(expanded)

    @pytest.mark.unit
    def test_render_is_pure(self):
        assert render_legend(True) == render_legend(True)
        assert render_legend(False) != render_legend(True)

    @pytest.mark.unit
    def test_footprints(self):
        assert legend_footprint(False) == ("190px", "160px")
        assert legend_footprint(True) == ("720px", "380px")


class TestWallLegendControl:

    def test_rendered_control(self):
        m = folium.Map(location=[41.9, 12.5], zoom_start=6)
        WallLegend().add_to(m)
        html = m.get_root().render()
        assert "L.control(" in html
        assert '"bottomleft"' in html
        assert "disableClickPropagation" in html
        assert "disableScrollPropagation" in html
        assert "aria-expanded" in html
        assert "max-width 180ms" in html

    def test_templates_are_prerendered(self):
        legend = WallLegend()
        assert legend.templates == {"compact": render_legend(False), "expanded": render_legend(True)}
        assert legend.footprints["expanded"] == ["720px", "380px"]

    def test_initial_state_comes_from_legend_state(self):
        m = folium.Map(location=[41.9, 12.5], zoom_start=6)
        legend = WallLegend(LegendState(expanded=True))
        legend.add_to(m)
        assert legend.expanded is True
        assert "var expanded = true;" in m.get_root().render()

    def test_default_state_is_compact(self):
        m = folium.Map(location=[41.9, 12.5], zoom_start=6)
        legend = WallLegend()
        legend.add_to(m)
        assert legend.state == LegendState(expanded=False)
        assert "var expanded = false;" in m.get_root().render()
