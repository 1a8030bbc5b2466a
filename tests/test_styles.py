"""Tests for the styles module."""
import logging

import pytest

from ttmlscene.config import ParseOptions
from ttmlscene.ingest import TTMLIngester
from ttmlscene.models import Color, DisplayAlign, FontWeight, TextAlign
from ttmlscene.styles import StyleResolver, blend_colors

RED = Color(255, 0, 0)
BLUE = Color(0, 0, 255)
CLEAR = Color(0, 0, 0, 0)


def _resolver(data):
    return StyleResolver(TTMLIngester(ParseOptions()).parse_bytes(data))


def _region_head(region_attrs, styles=""):
    return (f'<styling>{styles}</styling>'
            f'<layout><region xml:id="r1" {region_attrs}/></layout>')


def _one_p(p_attrs="", content="x"):
    return f'<p region="r1" begin="00:00:00.000" end="00:00:01.000" {p_attrs}>{content}</p>'


class TestBlendColors:
    """Tests for blend_colors function."""

    def test_opaque_over_wins(self):
        """Test a visible upper color replaces the lower one."""
        assert blend_colors(RED, BLUE) == BLUE

    def test_transparent_over_keeps_under(self):
        """Test a fully transparent upper color leaves the lower one."""
        assert blend_colors(RED, CLEAR) == RED

    def test_partial_alpha_still_wins(self):
        """Test any non-zero alpha counts as visible."""
        half = Color(0, 255, 0, 1)
        assert blend_colors(RED, half) == half


class TestNamedStyles:
    """Tests for style reference chains."""

    def test_chain_expands(self, make_ttml):
        """Test a style referencing another picks up its values."""
        styles = ('<style xml:id="base" tts:color="red" tts:textAlign="center"/>'
                  '<style xml:id="bold" style="base" tts:fontWeight="bold"/>')
        resolver = _resolver(make_ttml(_one_p(), _region_head("", styles)))
        s = resolver.effective_style("bold")
        assert s.color == RED
        assert s.text_align is TextAlign.CENTER
        assert s.font_weight is FontWeight.BOLD

    def test_later_reference_wins(self, make_ttml):
        """Test in style='a b' the second reference overrides the first."""
        styles = '<style xml:id="a" tts:color="red"/><style xml:id="b" tts:color="blue"/>'
        resolver = _resolver(make_ttml(_one_p(), _region_head("", styles)))
        assert resolver.specified(resolver.document.pool[0].paragraph_scope.style_set, ("a", "b")).color == BLUE

    def test_cycle_is_broken(self, make_ttml, caplog):
        """Test circular references terminate with a warning."""
        styles = ('<style xml:id="a" style="b" tts:color="red"/>'
                  '<style xml:id="b" style="a" tts:fontWeight="bold"/>')
        with caplog.at_level(logging.WARNING):
            resolver = _resolver(make_ttml(_one_p(), _region_head("", styles)))
        assert resolver.effective_style("a").color == RED
        assert resolver.effective_style("a").font_weight is FontWeight.BOLD
        assert "cycle" in caplog.text

    def test_unknown_id_is_empty(self, make_ttml):
        """Test an unknown id resolves to an empty set."""
        resolver = _resolver(make_ttml(_one_p(), _region_head("")))
        assert resolver.effective_style("missing").is_empty()


class TestResolveRegion:
    """Tests for region normalization."""

    def test_percentages(self, make_ttml):
        """Test origin and extent percentages become fractions."""
        resolver = _resolver(make_ttml(_one_p(), _region_head('tts:origin="10% 80%" tts:extent="80% 10%"')))
        style = resolver.resolve_region(resolver.document.regions["r1"])
        assert style.origin_x == pytest.approx(0.1)
        assert style.origin_y == pytest.approx(0.8)
        assert style.extent_w == pytest.approx(0.8)
        assert style.extent_h == pytest.approx(0.1)

    def test_extent_is_clamped(self, make_ttml):
        """Test origin + extent never exceeds the root container."""
        resolver = _resolver(make_ttml(_one_p(), _region_head('tts:origin="80% 80%" tts:extent="150% 150%"')))
        style = resolver.resolve_region(resolver.document.regions["r1"])
        assert style.extent_w == pytest.approx(0.2)
        assert style.extent_h == pytest.approx(0.2)

    def test_default_extent(self, make_ttml):
        """Test a region without extent covers the rest of the root."""
        resolver = _resolver(make_ttml(_one_p(), _region_head('tts:origin="25% 50%"')))
        style = resolver.resolve_region(resolver.document.regions["r1"])
        assert style.extent_w == pytest.approx(0.75)
        assert style.extent_h == pytest.approx(0.5)

    def test_cells_and_pixels(self, make_ttml):
        """Test cell lengths divide by the cell grid and pixels by the root extent."""
        data = make_ttml(_one_p(), _region_head('tts:origin="8c 3c" tts:extent="960px 108px"'),
                         root_attrs='tts:extent="1920px 1080px"')
        resolver = _resolver(data)
        style = resolver.resolve_region(resolver.document.regions["r1"])
        assert style.origin_x == pytest.approx(8 / 32)
        assert style.origin_y == pytest.approx(3 / 15)
        assert style.extent_w == pytest.approx(0.5)
        assert style.extent_h == pytest.approx(0.1)

    def test_pixels_without_root_extent(self, make_ttml, caplog):
        """Test pixel lengths are ignored when the root has no pixel size."""
        data = make_ttml(_one_p(), _region_head('tts:origin="100px 100px"'))
        resolver = _resolver(data)
        with caplog.at_level(logging.WARNING):
            style = resolver.resolve_region(resolver.document.regions["r1"])
        assert style.origin_x == 0.0
        assert "pixels" in caplog.text

    def test_padding_relative_to_region(self, make_ttml):
        """Test padding percentages scale with the region extent."""
        data = make_ttml(_one_p(), _region_head('tts:extent="50% 20%" tts:padding="10% 20%"'))
        resolver = _resolver(data)
        style = resolver.resolve_region(resolver.document.regions["r1"])
        assert style.padding_before == pytest.approx(0.02)
        assert style.padding_after == pytest.approx(0.02)
        assert style.padding_start == pytest.approx(0.1)
        assert style.padding_end == pytest.approx(0.1)

    def test_initial_applies_to_region(self, make_ttml):
        """Test <initial> values reach regions that do not override them."""
        data = make_ttml(_one_p(), '<styling><initial tts:displayAlign="after"/></styling>'
                                   '<layout><region xml:id="r1"/></layout>')
        resolver = _resolver(data)
        assert resolver.resolve_region(resolver.document.regions["r1"]).display_align is DisplayAlign.AFTER


class TestCascade:
    """Tests for block and element resolution."""

    def test_span_color_beats_paragraph(self, make_ttml):
        """Test the span's own color wins over its paragraph's."""
        data = make_ttml(_one_p('tts:color="blue"', '<span tts:color="red">x</span>'), _region_head(""))
        resolver = _resolver(data)
        cue = resolver.document.pool[0]
        region = resolver.resolve_region(resolver.document.regions["r1"])
        assert resolver.resolve_element(cue, cue.spans[0], region).color == RED

    def test_color_inherited_from_region(self, make_ttml):
        """Test inheritable properties flow from the region down to spans."""
        data = make_ttml(_one_p(content="<span>x</span>"), _region_head('tts:color="red"'))
        resolver = _resolver(data)
        cue = resolver.document.pool[0]
        region = resolver.resolve_region(resolver.document.regions["r1"])
        assert resolver.resolve_element(cue, cue.spans[0], region).color == RED

    def test_oversized_font_family_falls_back_to_paragraph(self, make_ttml):
        """Test a rejected span font family leaves the inherited one in place."""
        span = f'<span tts:fontFamily="{"x" * 129}">x</span>'
        data = make_ttml(_one_p('tts:fontFamily="Arial"', span), _region_head(""))
        resolver = _resolver(data)
        cue = resolver.document.pool[0]
        region = resolver.resolve_region(resolver.document.regions["r1"])
        assert resolver.resolve_element(cue, cue.spans[0], region).font_family == "Arial"

    def test_inline_beats_referenced_style(self, make_ttml):
        """Test inline attributes override the paragraph's referenced style."""
        styles = '<style xml:id="s1" tts:color="red" tts:textAlign="center"/>'
        data = make_ttml(_one_p('style="s1" tts:color="blue"'), _region_head("", styles))
        resolver = _resolver(data)
        cue = resolver.document.pool[0]
        region = resolver.resolve_region(resolver.document.regions["r1"])
        element = resolver.resolve_element(cue, cue.spans[0], region)
        assert element.color == BLUE
        assert element.text_align is TextAlign.CENTER

    def test_background_not_inherited(self, make_ttml):
        """Test a paragraph background does not become the span background."""
        data = make_ttml(_one_p('tts:backgroundColor="blue"', '<span>x</span>'), _region_head(""))
        resolver = _resolver(data)
        cue = resolver.document.pool[0]
        region = resolver.resolve_region(resolver.document.regions["r1"])
        assert resolver.resolve_element(cue, cue.spans[0], region).background_color.is_transparent
        assert resolver.resolve_block(cue, region).background_color == BLUE

    def test_block_background_blend(self, make_ttml):
        """Test region, div and paragraph backgrounds blend in that order."""
        body = ('<div region="r1" tts:backgroundColor="blue">'
                '<p begin="00:00:00.000" end="00:00:01.000">x</p>'
                '</div>')
        data = make_ttml(body, _region_head('tts:backgroundColor="red"'))
        resolver = _resolver(data)
        cue = resolver.document.pool[0]
        region = resolver.resolve_region(resolver.document.regions["r1"])
        assert region.background_color == RED
        assert resolver.resolve_block(cue, region).background_color == BLUE

    def test_transparent_layers_fall_through(self, make_ttml):
        """Test transparent div and paragraph leave the region color."""
        data = make_ttml(_one_p('tts:backgroundColor="transparent"'), _region_head('tts:backgroundColor="red"'))
        resolver = _resolver(data)
        cue = resolver.document.pool[0]
        region = resolver.resolve_region(resolver.document.regions["r1"])
        assert resolver.resolve_block(cue, region).background_color == RED

    def test_font_size(self, make_ttml):
        """Test font size is normalized against the cell rows."""
        data = make_ttml(_one_p('tts:fontSize="150%"', '<span tts:fontSize="50%">x</span>y'), _region_head(""))
        resolver = _resolver(data)
        cue = resolver.document.pool[0]
        region = resolver.resolve_region(resolver.document.regions["r1"])
        assert resolver.resolve_element(cue, cue.spans[0], region).font_size == pytest.approx(0.75 / 15)
        assert resolver.resolve_element(cue, cue.spans[1], region).font_size == pytest.approx(1.5 / 15)

    def test_unset_font_size_is_one_cell(self, make_ttml):
        """Test the default font size is one cell row."""
        resolver = _resolver(make_ttml(_one_p(), _region_head("")))
        cue = resolver.document.pool[0]
        region = resolver.resolve_region(resolver.document.regions["r1"])
        assert resolver.resolve_block(cue, region).font_size == pytest.approx(1 / 15)

    def test_line_height_and_padding(self, make_ttml):
        """Test lineHeight percentages and linePadding cells."""
        data = make_ttml(_one_p('tts:lineHeight="120%" ebutts:linePadding="0.5c" '
                                'xmlns:ebutts="urn:ebu:tt:style"'), _region_head(""))
        resolver = _resolver(data)
        cue = resolver.document.pool[0]
        region = resolver.resolve_region(resolver.document.regions["r1"])
        block = resolver.resolve_block(cue, region)
        assert block.line_height == pytest.approx(1.2)
        assert block.line_padding == pytest.approx(0.5 / 32)

    def test_line_height_normal(self, make_ttml):
        """Test lineHeight='normal' resolves to 1.25."""
        data = make_ttml(_one_p('tts:lineHeight="normal"'), _region_head(""))
        resolver = _resolver(data)
        cue = resolver.document.pool[0]
        region = resolver.resolve_region(resolver.document.regions["r1"])
        assert resolver.resolve_block(cue, region).line_height == pytest.approx(1.25)
