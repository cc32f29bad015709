"""Tests for markup parsing and text layout."""

import numpy as np
import pytest

from couper.model import Orientation, StringRect, TextAlign
from couper.rendering.text import (
    FixedWidthTextMetrics,
    GlyphMode,
    MplTextMetrics,
    parse_markup,
    split_label,
    strip_markup,
)


def _chars(glyphs):
    return "".join(g.char for g in glyphs)


class TestParseMarkup:
    def test_plain(self):
        glyphs = parse_markup("OH")
        assert _chars(glyphs) == "OH"
        assert all(g.mode == GlyphMode.NORMAL for g in glyphs)

    def test_subscript(self):
        glyphs = parse_markup("NH<sub>2</sub>")
        assert [g.mode for g in glyphs] == [
            GlyphMode.NORMAL, GlyphMode.NORMAL, GlyphMode.SUBSCRIPT,
        ]

    def test_superscript(self):
        glyphs = parse_markup("<sup>13</sup>C")
        assert glyphs[0].mode == GlyphMode.SUPERSCRIPT
        assert glyphs[2].mode == GlyphMode.NORMAL

    def test_lit_tag_has_no_effect(self):
        assert _chars(parse_markup("<lit>a</lit>b")) == "ab"

    def test_strip(self):
        assert strip_markup("NH<sub>4</sub><sup>+</sup>") == "NH4+"


class TestSplitLabel:
    def test_hydrogens_separate_piece(self):
        pieces, charge = split_label(parse_markup("NH<sub>2</sub>"))
        assert [_chars(p) for p in pieces] == ["N", "H2"]
        assert charge == []

    def test_trailing_charge(self):
        pieces, charge = split_label(parse_markup("NH<sub>4</sub><sup>+</sup>"))
        assert [_chars(p) for p in pieces] == ["N", "H4"]
        assert _chars(charge) == "+"

    def test_isotope_stays_with_element(self):
        pieces, charge = split_label(parse_markup("<sup>13</sup>C"))
        assert [_chars(p) for p in pieces] == ["13C"]
        assert charge == []

    def test_multi_digit_charge(self):
        pieces, charge = split_label(parse_markup("O<sup>2-</sup>"))
        assert [_chars(p) for p in pieces] == ["O"]
        assert _chars(charge) == "2-"


class TestFixedWidthMetrics:
    def test_glyph_widths(self):
        m = FixedWidthTextMetrics()
        assert m.glyph_extent("C", 10.0) == pytest.approx((7.0, 10.0))
        assert m.glyph_extent("i", 10.0)[0] < m.glyph_extent("W", 10.0)[0]

    def test_text_size(self):
        assert FixedWidthTextMetrics().text_size("ab", 10.0) == pytest.approx((11.0, 10.0))

    def test_empty_text(self):
        m = FixedWidthTextMetrics()
        assert m.text_size("", 10.0) == (0.0, 0.0)
        assert m.label_rect("", Orientation.E, 1.0) is None

    def test_east_label_element_centred(self):
        rects = FixedWidthTextMetrics().label_rects("OH", Orientation.E, 1.0)
        assert [r.char for r in rects] == ["O", "H"]
        assert rects[0].rect.x == pytest.approx(0.0)
        assert rects[1].rect.x == pytest.approx(0.7)

    def test_west_label_hydrogen_first(self):
        rects = FixedWidthTextMetrics().label_rects("OH", Orientation.W, 1.0)
        assert [r.char for r in rects] == ["H", "O"]
        assert rects[1].rect.x == pytest.approx(0.0)
        assert rects[0].rect.x == pytest.approx(-0.7)

    @pytest.mark.parametrize("orientation, sign", [(Orientation.N, 1.0), (Orientation.S, -1.0)])
    def test_vertical_label_stacks_hydrogens(self, orientation, sign):
        rects = FixedWidthTextMetrics().label_rects("NH<sub>2</sub>", orientation, 1.0)
        n, h = rects[0], rects[1]
        assert n.char == "N" and n.rect.y == pytest.approx(0.0)
        assert h.char == "H" and h.rect.y == pytest.approx(sign)

    def test_script_glyphs_smaller_and_shifted(self):
        rects = FixedWidthTextMetrics().label_rects("NH<sub>2</sub>", Orientation.E, 1.0)
        sub = rects[2]
        assert sub.mode == GlyphMode.SUBSCRIPT
        assert sub.size_factor == 0.75
        assert sub.rect.height == pytest.approx(0.75)
        assert sub.rect.y == pytest.approx(-0.35)

    def test_text_alignment(self):
        m = FixedWidthTextMetrics()
        start = StringRect.bounding([r.rect for r in m.text_rects("ab", 1.0, TextAlign.START)])
        end = StringRect.bounding([r.rect for r in m.text_rects("ab", 1.0, TextAlign.END)])
        middle = StringRect.bounding([r.rect for r in m.text_rects("ab", 1.0)])
        assert start.left == pytest.approx(0.0)
        assert end.right == pytest.approx(0.0)
        assert middle.x == pytest.approx(0.0)

    def test_placed_and_intersections(self):
        m = FixedWidthTextMetrics()
        placed = m.placed(m.text_rects("O", 1.0), np.array([2.0, 3.0]))
        assert placed[0].x == pytest.approx(2.0)
        assert placed[0].y == pytest.approx(3.0)
        assert m.line_intersects(placed, np.array([0.0, 3.0]), np.array([4.0, 3.0]))
        assert not m.line_intersects(placed, np.array([0.0, 0.0]), np.array([4.0, 0.0]))
        assert m.rect_intersects(placed, StringRect(2.5, 3.0, 1.0, 1.0))
        other = m.placed(m.text_rects("O", 1.0), np.array([2.5, 3.0]))
        assert m.strings_intersect(placed, other)


class TestMplMetrics:
    def test_relative_widths(self):
        m = MplTextMetrics()
        wide, height = m.glyph_extent("W", 12.0)
        narrow, _ = m.glyph_extent("i", 12.0)
        assert wide > narrow > 0.0
        assert height == 12.0

    def test_scales_linearly(self):
        m = MplTextMetrics()
        assert m.glyph_extent("C", 20.0)[0] == pytest.approx(2 * m.glyph_extent("C", 10.0)[0])
