"""Tests for DrawShape, SubstanceGroup and LinkNode."""

import numpy as np
import pytest

from couper.model import DrawShape, LinkNode, ShapeKind, SubstanceGroup


class TestDrawShape:
    def test_points_copied_and_read_only(self):
        pts = np.array([[0.0, 0.0], [1.0, 1.0]])
        shape = DrawShape(ShapeKind.POLYLINE, pts)
        pts[0, 0] = 5.0
        assert shape.points[0, 0] == 0.0
        with pytest.raises(ValueError):
            shape.points[0, 0] = 1.0

    def test_kind_from_string(self):
        shape = DrawShape("polygon", [[0, 0], [1, 0], [0, 1]])
        assert shape.kind is ShapeKind.POLYGON

    def test_ellipse_needs_two_points(self):
        with pytest.raises(ValueError, match="exactly 2"):
            DrawShape(ShapeKind.ELLIPSE, [[0, 0], [1, 0], [0, 1]])

    def test_at_least_two_points(self):
        with pytest.raises(ValueError, match="at least 2"):
            DrawShape(ShapeKind.POLYLINE, [[0, 0]])

    def test_bad_shape(self):
        with pytest.raises(ValueError, match=r"shape \(n, 2\)"):
            DrawShape(ShapeKind.POLYLINE, [0.0, 1.0, 2.0])

    def test_negative_width(self):
        with pytest.raises(ValueError, match="line_width"):
            DrawShape(ShapeKind.POLYLINE, [[0, 0], [1, 0]], line_width=-1.0)


class TestSubstanceGroup:
    def test_sequences_become_tuples(self):
        sg = SubstanceGroup(atoms=[0, 1], bonds=[2], brackets=[([0, 0], [0, 1])])
        assert sg.atoms == (0, 1)
        assert sg.bonds == (2,)
        assert sg.brackets == (((0.0, 0.0), (0.0, 1.0)),)

    def test_data_text(self):
        sg = SubstanceGroup(kind="DAT", data=["pKa", "4.2"])
        assert sg.data_text == "pKa|4.2"


class TestLinkNode:
    def test_label(self):
        assert LinkNode(1, 4, [(0, 1)]).label == "(1-4)"

    def test_negative_minimum(self):
        with pytest.raises(ValueError, match="min_repeat"):
            LinkNode(-1, 2, [(0, 1)])

    def test_maximum_below_minimum(self):
        with pytest.raises(ValueError, match="max_repeat"):
            LinkNode(3, 2, [(0, 1)])
