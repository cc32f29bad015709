"""Tests for scale fitting and panel layout."""

import numpy as np
import pytest

from couper.construction.labels import atom_label
from couper.model import Atom, DrawOptions, Molecule, RenderContext, ScaleState
from couper.rendering.layout import (
    base_font_size,
    calculate_global_scale,
    calculate_scale,
    fitted_box,
    font_ratio,
    panel_offsets,
    set_scale,
)
from couper.rendering.text import FixedWidthTextMetrics


def _context(mol, labels=True):
    ctx = RenderContext()
    opts = DrawOptions(no_atom_labels=not labels)
    ctx.set_atoms(
        mol.coords, [a.atomic_num for a in mol.atoms],
        [atom_label(mol, i, mol.coords, opts) for i in range(mol.n_atoms)],
    )
    return ctx


def _fit(mol, options=None, width=300.0, height=300.0, labels=True, **kwargs):
    state = ScaleState(width, height)
    calculate_scale(
        state, _context(mol, labels), mol, options or DrawOptions(),
        FixedWidthTextMetrics(), width, height, **kwargs,
    )
    return state


class TestBaseFontSize:
    def test_normal_bonds(self):
        assert base_font_size(1.5, DrawOptions()) == pytest.approx(0.6)

    def test_short_bonds(self):
        assert base_font_size(0.8, DrawOptions()) == pytest.approx(0.45)

    def test_no_bonds(self):
        assert base_font_size(None, DrawOptions()) == pytest.approx(0.6)


class TestFontRatio:
    def test_unclamped(self):
        state = ScaleState(300.0, 300.0, font_scale=20.0)
        assert font_ratio(state, DrawOptions()) == pytest.approx(1.0)

    def test_clamped_to_minimum(self):
        state = ScaleState(300.0, 300.0, font_scale=1.0)
        assert font_ratio(state, DrawOptions()) == pytest.approx(10.0)


class TestCalculateScale:
    def test_two_atoms(self, ethane):
        state = _fit(ethane)
        assert state.scale == pytest.approx(300.0 / 1.65)
        dev = state.to_device(ethane.coords)
        np.testing.assert_allclose(dev[:, 0], [150 - 0.75 * state.scale, 150 + 0.75 * state.scale])
        np.testing.assert_allclose(dev[:, 1], [150.0, 150.0])

    def test_single_atom_centred(self):
        mol = Molecule(atoms=[Atom("C")], coords=np.array([[3.0, -2.0]]))
        state = _fit(mol, labels=False)
        assert state.scale == pytest.approx(300.0 / 1.1)
        np.testing.assert_allclose(state.to_device(mol.coords[0]), [150.0, 150.0])

    def test_idempotent(self, ethanol):
        first = _fit(ethanol)
        second = _fit(ethanol)
        assert first == second

    def test_labels_enlarge_box(self, ethanol):
        plain = _fit(ethanol, labels=False)
        labelled = _fit(ethanol)
        assert labelled.x_range > plain.x_range
        assert labelled.scale < plain.scale

    def test_highlights_enlarge_box(self, ethane):
        plain = _fit(ethane)
        highlighted = _fit(ethane, highlight_atoms=[0, 1])
        assert highlighted.x_range == pytest.approx(plain.x_range + 0.6 * 1.1)

    def test_fixed_scale(self, ethane):
        assert _fit(ethane, DrawOptions(fixed_scale=0.1)).scale == pytest.approx(30.0)

    def test_fixed_bond_length(self, ethane):
        assert _fit(ethane, DrawOptions(fixed_bond_length=20.0)).scale == pytest.approx(20.0)

    def test_fixed_scale_never_enlarges(self, ethane):
        state = _fit(ethane, DrawOptions(fixed_bond_length=1000.0))
        assert state.scale == pytest.approx(300.0 / 1.65)

    def test_font_scale_follows_scale(self, ethane):
        state = _fit(ethane)
        assert state.font_scale == state.scale

    def test_base_font_from_bond_length(self):
        mol = Molecule.build(["C", "C"], [(0, 1)], coords=[[0.0, 0.0], [0.8, 0.0]])
        assert _fit(mol).base_font_size == pytest.approx(0.45)

    def test_bad_area(self, ethane):
        with pytest.raises(ValueError, match="fit area must be positive"):
            _fit(ethane, width=0.0)


class TestSetScale:
    def test_explicit_box(self):
        state = ScaleState(200.0, 100.0)
        set_scale(state, 200.0, 100.0, (0.0, 0.0), (2.0, 1.0), DrawOptions())
        assert state.scale == pytest.approx(200.0 / 2.2)
        np.testing.assert_allclose(state.to_device(np.array([1.0, 0.5])), [100.0, 50.0])

    def test_corners_in_any_order(self):
        a = ScaleState(200.0, 100.0)
        b = ScaleState(200.0, 100.0)
        set_scale(a, 200.0, 100.0, (0.0, 0.0), (2.0, 1.0), DrawOptions())
        set_scale(b, 200.0, 100.0, (2.0, 1.0), (0.0, 0.0), DrawOptions())
        assert a == b

    def test_fitted_box(self):
        state = ScaleState(200.0, 100.0)
        set_scale(state, 200.0, 100.0, (0.0, 0.0), (2.0, 1.0), DrawOptions(padding=0.0))
        lo, hi = fitted_box(state)
        np.testing.assert_allclose(lo, [0.0, 0.0])
        np.testing.assert_allclose(hi, [2.0, 1.0])


class TestGlobalScale:
    def test_union_of_boxes(self):
        state = ScaleState(300.0, 300.0)
        boxes = [
            (np.array([0.0, 0.0]), np.array([1.0, 1.0])),
            (np.array([-1.0, 0.0]), np.array([2.0, 3.0])),
        ]
        calculate_global_scale(state, boxes, 300.0, 300.0)
        assert state.scale == pytest.approx(100.0)
        assert (state.x_min, state.y_min) == (-1.0, 0.0)

    def test_empty(self):
        with pytest.raises(ValueError, match="at least one box"):
            calculate_global_scale(ScaleState(300.0, 300.0), [], 300.0, 300.0)


class TestPanelOffsets:
    def test_grid(self):
        assert panel_offsets(4, 600.0, 600.0, 300.0, 300.0) == [
            (0.0, 0.0), (300.0, 0.0), (0.0, 300.0), (300.0, 300.0),
        ]

    def test_single_row(self):
        assert panel_offsets(3, 900.0, 300.0, 300.0, 300.0) == [
            (0.0, 0.0), (300.0, 0.0), (600.0, 0.0),
        ]

    def test_single_panel(self):
        assert panel_offsets(2, 300.0, 300.0, 300.0, 300.0) == [(0.0, 0.0), (0.0, 0.0)]
