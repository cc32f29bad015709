"""Tests for atom and bond highlight geometry."""

import math

import numpy as np
import pytest

from couper.construction.labels import atom_label
from couper.model import DrawOptions, Molecule, RenderContext, ShapeKind
from couper.rendering.highlights import (
    adjust_line_end_for_highlight,
    atom_highlight_shapes,
    bond_highlight_shapes,
    circle_highlight_shapes,
    continuous_highlight_shapes,
    highlight_bond_width,
    highlight_bonds_for_atoms,
    label_ellipse,
)
from couper.rendering.text import FixedWidthTextMetrics

LABEL_FONT = 0.6
RED = (1.0, 0.0, 0.0)
BLUE = (0.0, 0.0, 1.0)


def _context(mol):
    ctx = RenderContext()
    labels = [atom_label(mol, i, mol.coords, DrawOptions()) for i in range(mol.n_atoms)]
    ctx.set_atoms(mol.coords, [a.atomic_num for a in mol.atoms], labels)
    return ctx


class TestHighlightBondsForAtoms:
    def test_bonds_between_selected_atoms(self, kekule_benzene):
        assert highlight_bonds_for_atoms(kekule_benzene, [0, 1, 2]) == [0, 1]

    def test_no_bonds(self, kekule_benzene):
        assert highlight_bonds_for_atoms(kekule_benzene, [0, 3]) == []


class TestLabelEllipse:
    def test_unlabelled_atom_circle(self, ethane):
        centre, xr, yr = label_ellipse(
            _context(ethane), FixedWidthTextMetrics(), 0, DrawOptions(), LABEL_FONT,
        )
        np.testing.assert_allclose(centre, [0.0, 0.0])
        assert xr == yr == pytest.approx(0.3)

    def test_radius_override(self, ethane):
        _, xr, _ = label_ellipse(
            _context(ethane), FixedWidthTextMetrics(), 0, DrawOptions(),
            LABEL_FONT, radii={0: 0.5},
        )
        assert xr == pytest.approx(0.5)

    def test_label_stretches_ellipse(self, ethanol):
        centre, xr, yr = label_ellipse(
            _context(ethanol), FixedWidthTextMetrics(), 2, DrawOptions(), LABEL_FONT,
        )
        # "OH" is 1.4 font sizes wide, centred on the O.
        assert xr == pytest.approx(math.sqrt(2.0) * 0.5 * 1.4 * LABEL_FONT)
        assert yr == pytest.approx(math.sqrt(2.0) * 0.5 * LABEL_FONT)
        assert centre[0] == pytest.approx(2.25 + 0.35 * LABEL_FONT)

    def test_forced_circles(self, ethanol):
        centre, xr, yr = label_ellipse(
            _context(ethanol), FixedWidthTextMetrics(), 2,
            DrawOptions(atom_highlights_are_circles=True), LABEL_FONT,
        )
        np.testing.assert_allclose(centre, [2.25, 1.3])
        assert xr == yr == pytest.approx(0.3)


class TestAdjustLineEnd:
    def test_stops_at_circle(self):
        end = adjust_line_end_for_highlight(
            np.array([-2.0, 0.0]), np.array([0.0, 0.0]), np.zeros(2), 1.0, 1.0,
        )
        np.testing.assert_allclose(end, [-1.0, 0.0])

    def test_stops_at_ellipse(self):
        end = adjust_line_end_for_highlight(
            np.array([0.0, -3.0]), np.array([0.0, 0.0]), np.zeros(2), 2.0, 0.5,
        )
        np.testing.assert_allclose(end, [0.0, -0.5])

    def test_miss_leaves_end(self):
        end = adjust_line_end_for_highlight(
            np.array([-2.0, 2.0]), np.array([0.0, 2.0]), np.zeros(2), 1.0, 1.0,
        )
        np.testing.assert_allclose(end, [0.0, 2.0])

    def test_degenerate_ellipse(self):
        end = adjust_line_end_for_highlight(
            np.array([-2.0, 0.0]), np.array([0.0, 0.0]), np.zeros(2), 0.0, 1.0,
        )
        np.testing.assert_allclose(end, [0.0, 0.0])


class TestHighlightBondWidth:
    def test_default(self):
        assert highlight_bond_width(DrawOptions()) == 16.0

    def test_unfilled_halves_multiplier(self):
        assert highlight_bond_width(DrawOptions(fill_highlights=False)) == 8.0

    def test_unfilled_minimum(self):
        opts = DrawOptions(fill_highlights=False, highlight_bond_width_multiplier=1.0)
        assert highlight_bond_width(opts) == 2.0

    def test_per_bond_multiplier(self):
        assert highlight_bond_width(DrawOptions(), 0, {0: 3.0}) == 6.0
        assert highlight_bond_width(DrawOptions(), 1, {0: 3.0}) == 16.0


class TestAtomHighlightShapes:
    def test_single_colour_ellipse(self, ethane):
        (shape,) = atom_highlight_shapes(
            _context(ethane), FixedWidthTextMetrics(), 0, [RED], DrawOptions(), LABEL_FONT,
        )
        assert shape.kind == ShapeKind.ELLIPSE
        assert shape.fill
        assert shape.atoms == (0,)
        np.testing.assert_allclose(shape.points, [[-0.3, -0.3], [0.3, 0.3]])

    def test_filled_arcs(self, ethane):
        shapes = atom_highlight_shapes(
            _context(ethane), FixedWidthTextMetrics(), 0, [RED, BLUE],
            DrawOptions(), LABEL_FONT,
        )
        assert [s.kind for s in shapes] == [ShapeKind.POLYGON] * 2
        assert [s.colour for s in shapes] == [RED, BLUE]
        np.testing.assert_allclose(shapes[0].points[0], [0.0, 0.0])
        # The first arc starts straight down.
        np.testing.assert_allclose(shapes[0].points[1], [0.0, -0.3], atol=1e-12)

    def test_unfilled_arcs(self, ethane):
        shapes = atom_highlight_shapes(
            _context(ethane), FixedWidthTextMetrics(), 0, [RED, BLUE],
            DrawOptions(fill_highlights=False), LABEL_FONT,
        )
        assert all(s.kind == ShapeKind.POLYLINE for s in shapes)
        assert all(s.line_width == 8.0 and s.scale_line_width for s in shapes)


class TestContinuousHighlights:
    def test_bonds_then_atoms(self, ethane):
        shapes = continuous_highlight_shapes(
            ethane, _context(ethane), FixedWidthTextMetrics(), DrawOptions(),
            LABEL_FONT, atoms=[0, 1], bonds=[0], atom_colours={1: BLUE},
        )
        assert [s.kind for s in shapes] == [
            ShapeKind.POLYLINE, ShapeKind.ELLIPSE, ShapeKind.ELLIPSE,
        ]
        assert shapes[0].line_width == 16.0
        assert shapes[0].colour == DrawOptions().highlight_colour
        assert shapes[2].colour == BLUE

    def test_circles(self, ethane):
        shapes = circle_highlight_shapes(_context(ethane), DrawOptions(), [1, 0, 1])
        assert [s.atoms for s in shapes] == [(0,), (1,)]
        assert all(s.line_width == 2.0 for s in shapes)


class TestBondHighlightShapes:
    def test_filled_band(self, ethane):
        (band,) = bond_highlight_shapes(
            ethane, _context(ethane), FixedWidthTextMetrics(), DrawOptions(),
            LABEL_FONT, {0: [RED]},
        )
        assert band.kind == ShapeKind.POLYGON
        np.testing.assert_allclose(
            sorted(set(np.round(band.points[:, 1], 6))), [-0.21, 0.21],
        )

    def test_filled_stripes(self, ethane):
        shapes = bond_highlight_shapes(
            ethane, _context(ethane), FixedWidthTextMetrics(), DrawOptions(),
            LABEL_FONT, {0: [RED, BLUE]},
        )
        assert [s.colour for s in shapes] == [RED, BLUE]
        widths = [np.ptp(s.points[:, 1]) for s in shapes]
        np.testing.assert_allclose(widths, [0.21, 0.21])

    def test_unfilled_strokes_trimmed(self, ethane):
        shapes = bond_highlight_shapes(
            ethane, _context(ethane), FixedWidthTextMetrics(),
            DrawOptions(fill_highlights=False), LABEL_FONT, {0: [RED]},
        )
        assert len(shapes) == 2
        inset = math.sqrt(0.3 ** 2 - 0.21 ** 2)
        for shape in shapes:
            np.testing.assert_allclose(shape.points[:, 0], [inset, 1.5 - inset])
            assert shape.line_width == 8.0

    def test_zero_length_bond_skipped(self):
        mol = Molecule.build(["C", "C"], [(0, 1)], coords=[[1.0, 1.0], [1.0, 1.0]])
        assert bond_highlight_shapes(
            mol, _context(mol), FixedWidthTextMetrics(), DrawOptions(),
            LABEL_FONT, {0: [RED]},
        ) == []
