"""Tests for note, radical and substance-group placement."""

import logging
import math

import numpy as np
import pytest

from couper.construction.labels import atom_label
from couper.model import (
    Annotation,
    Atom,
    Bond,
    ClashSeverity,
    DrawOptions,
    LinkNode,
    Molecule,
    Orientation,
    RadicalMark,
    RenderContext,
    ScaleState,
    StringRect,
    SubstanceGroup,
    TextAlign,
)
from couper.rendering.annotations import (
    MOL_NOTE_FONT_SCALE,
    annotation_footprint,
    extract_annotations,
    extract_brackets,
    extract_link_nodes,
    extract_mol_note,
    extract_sgroup_data,
    extract_variable_bonds,
    note_start_angle,
    place_atom_note,
    place_bond_note,
    place_mol_note,
    place_radical,
    radical_spot_radius,
    radical_spots,
)
from couper.rendering.geometry import DisplayTransform
from couper.rendering.text import FixedWidthTextMetrics

LABEL_FONT = 0.6


def _context(mol, options=None):
    options = options or DrawOptions()
    ctx = RenderContext()
    labels = [atom_label(mol, i, mol.coords, options) for i in range(mol.n_atoms)]
    ctx.set_atoms(mol.coords, [a.atomic_num for a in mol.atoms], labels)
    return ctx


class TestNoteStartAngle:
    def test_isolated_atom_points_up(self):
        mol = Molecule(atoms=[Atom("C")], coords=np.zeros((1, 2)))
        assert note_start_angle(mol, 0, _context(mol)) == pytest.approx(math.pi / 2)

    def test_unlabelled_terminal_atom_turns_off_bond(self, ethane):
        angle = note_start_angle(ethane, 0, _context(ethane))
        assert angle == pytest.approx(-math.pi / 2)

    def test_labelled_terminal_atom_faces_away(self, ethanol):
        angle = note_start_angle(ethanol, 2, _context(ethanol))
        away = ethanol.coords[2] - ethanol.coords[1]
        assert angle == pytest.approx(math.atan2(away[1], away[0]))

    def test_two_bonds_outside_angle(self, ethanol):
        angle = note_start_angle(ethanol, 1, _context(ethanol))
        origin = ethanol.coords[1]
        bisector = sum(
            (ethanol.coords[i] - origin) / np.hypot(*(ethanol.coords[i] - origin))
            for i in (0, 2)
        )
        assert np.dot([math.cos(angle), math.sin(angle)], bisector) < 0.0


class TestPlaceAtomNote:
    def test_first_candidate_below_chain_atom(self, ethane):
        note = place_atom_note(
            ethane, 0, "a", _context(ethane), FixedWidthTextMetrics(),
            DrawOptions(), LABEL_FONT,
        )
        assert (note.x, note.y) == pytest.approx((0.0, -0.25))
        assert note.clash == ClashSeverity.NONE
        assert note.font_scale == 0.5
        assert note.height == pytest.approx(LABEL_FONT * 0.5)

    def test_labelled_atom_skips_inner_circle(self, ethanol):
        note = place_atom_note(
            ethanol, 2, "x", _context(ethanol), FixedWidthTextMetrics(),
            DrawOptions(), LABEL_FONT,
        )
        distance = np.hypot(note.x - 2.25, note.y - 1.3)
        assert distance > 0.3

    def test_no_free_position_logs_warning(self, ethane, caplog):
        with caplog.at_level(logging.WARNING, logger="couper.rendering.annotations"):
            note = place_atom_note(
                ethane, 0, "a", _context(ethane), FixedWidthTextMetrics(),
                DrawOptions(), 10.0,
            )
        assert note.clash == ClashSeverity.BOND
        assert "no clash-free position" in caplog.text

    def test_avoids_unscaled_annotation(self, ethane):
        ctx = _context(ethane)
        ctx.annotations.append(Annotation(
            "ABS", 0.0, -0.25, 0.4, 0.4, scale_text=False,
        ))
        note = place_atom_note(
            ethane, 0, "a", ctx, FixedWidthTextMetrics(), DrawOptions(),
            LABEL_FONT,
        )
        assert (note.x, note.y) != pytest.approx((0.0, -0.25))
        assert note.clash == ClashSeverity.NONE

    def test_alignment_kept(self, ethane):
        note = place_atom_note(
            ethane, 0, "a", _context(ethane), FixedWidthTextMetrics(),
            DrawOptions(), LABEL_FONT, align=TextAlign.START,
        )
        assert note.align == TextAlign.START


class TestPlaceBondNote:
    def test_beside_single_bond(self, ethane):
        note = place_bond_note(
            ethane, 0, "b", _context(ethane), FixedWidthTextMetrics(),
            DrawOptions(), LABEL_FONT,
        )
        assert note.x == pytest.approx(0.75)
        assert note.y == pytest.approx(0.3)
        assert note.clash == ClashSeverity.NONE

    def test_zero_length_bond(self):
        mol = Molecule.build(["C", "C"], [(0, 1)], coords=[[1.0, 1.0], [1.0, 1.0]])
        assert place_bond_note(
            mol, 0, "b", _context(mol), FixedWidthTextMetrics(),
            DrawOptions(), LABEL_FONT,
        ) is None


class TestIndexNotes:
    def test_atom_index_and_note(self, ethane):
        mol = Molecule(
            atoms=[Atom("C", note="x"), Atom("C")], bonds=ethane.bonds,
            coords=ethane.coords,
        )
        ctx = _context(mol)
        extract_annotations(
            mol, ctx, FixedWidthTextMetrics(), DrawOptions(add_atom_indices=True),
            LABEL_FONT,
        )
        assert [a.text for a in ctx.annotations] == ["0,x", "1"]

    def test_bond_indices(self, ethane):
        ctx = _context(ethane)
        extract_annotations(
            ethane, ctx, FixedWidthTextMetrics(),
            DrawOptions(add_bond_indices=True), LABEL_FONT,
        )
        assert [a.text for a in ctx.annotations] == ["0"]

    def test_clash_free_notes_do_not_overlap(self, kekule_benzene):
        ctx = _context(kekule_benzene)
        extract_annotations(
            kekule_benzene, ctx, FixedWidthTextMetrics(),
            DrawOptions(add_atom_indices=True, add_bond_indices=True),
            LABEL_FONT,
        )
        notes = ctx.annotations
        assert len(notes) == 12
        for j, later in enumerate(notes):
            if later.clash != ClashSeverity.NONE:
                continue
            for earlier in notes[:j]:
                assert not later.rect.intersects(earlier.rect)


class TestMolNote:
    def test_placed_towards_top_right(self, ethanol):
        note = place_mol_note("note", _context(ethanol), FixedWidthTextMetrics(), DrawOptions())
        centroid = ethanol.coords.mean(axis=0)
        assert note.x > centroid[0] and note.y > centroid[1]
        assert note.align == TextAlign.START
        assert not note.scale_text
        assert note.font_scale == MOL_NOTE_FONT_SCALE
        # Size in pixels at the legend font size.
        assert note.height == pytest.approx(16.0 * MOL_NOTE_FONT_SCALE)

    def test_chiral_flag(self, ethane):
        mol = Molecule(
            atoms=ethane.atoms, bonds=ethane.bonds, coords=ethane.coords,
            chiral_flag=True,
        )
        ctx = _context(mol)
        extract_mol_note(mol, ctx, FixedWidthTextMetrics(), DrawOptions())
        assert ctx.annotations == []
        extract_mol_note(
            mol, ctx, FixedWidthTextMetrics(),
            DrawOptions(include_chiral_flag_label=True),
        )
        assert [a.text for a in ctx.annotations] == ["ABS"]

    def test_footprint_converted_from_pixels(self):
        note = place_mol_note(
            "ab", _context(Molecule.build(["C"], coords=[[0.0, 0.0]])),
            FixedWidthTextMetrics(), DrawOptions(),
        )
        state = ScaleState(300.0, 300.0, scale=20.0)
        box = annotation_footprint(note, state)
        assert box.width == pytest.approx(note.width / 20.0)
        assert box.left == pytest.approx(note.x)


class TestRadicals:
    def test_spot_radius(self):
        assert radical_spot_radius(DrawOptions()) == pytest.approx(0.03)
        assert radical_spot_radius(DrawOptions(), 2.0) == pytest.approx(0.06)

    def test_isolated_radical_follows_label(self):
        mol = Molecule(atoms=[Atom("C", radical_electrons=1)], coords=np.zeros((1, 2)))
        mark = place_radical(
            mol, 0, _context(mol), FixedWidthTextMetrics(), DrawOptions(),
            LABEL_FONT, 0.03,
        )
        assert mark.orientation == Orientation.E
        assert mark.count == 1
        assert mark.rect.left > 0.0

    def test_spots_horizontal_above(self):
        mark = RadicalMark(0, StringRect(0.0, 1.0, 0.18, 0.09), Orientation.N, 2)
        spots = radical_spots(mark, 0.03)
        np.testing.assert_allclose(spots, [[0.06, 1.0], [-0.06, 1.0]])

    def test_spots_vertical_beside(self):
        mark = RadicalMark(0, StringRect(1.0, 0.0, 0.045, 0.18), Orientation.E, 2)
        spots = radical_spots(mark, 0.03)
        np.testing.assert_allclose(spots[:, 0], 1.0)

    def test_disabled(self):
        mol = Molecule(atoms=[Atom("C", radical_electrons=1)], coords=np.zeros((1, 2)))
        ctx = _context(mol)
        extract_annotations(
            mol, ctx, FixedWidthTextMetrics(), DrawOptions(include_radicals=False),
            LABEL_FONT,
        )
        assert ctx.radicals == []


class TestSubstanceGroups:
    def _with_groups(self, ethane, groups=(), nodes=()):
        return Molecule(
            atoms=ethane.atoms, bonds=ethane.bonds, coords=ethane.coords,
            substance_groups=list(groups), link_nodes=list(nodes),
        )

    def test_relative_data_position(self, ethane):
        sg = SubstanceGroup(
            atoms=[1], kind="DAT", data=["pKa", "4.2"],
            data_position=(0.5, 0.5), data_relative=True,
        )
        mol = self._with_groups(ethane, [sg])
        ctx = _context(mol)
        extract_sgroup_data(
            mol, ctx, FixedWidthTextMetrics(), DrawOptions(), LABEL_FONT,
            DisplayTransform(),
        )
        (note,) = ctx.annotations
        assert note.text == "pKa|4.2"
        assert (note.x, note.y) == pytest.approx((2.0, 0.5))
        assert note.align == TextAlign.START

    def test_absolute_data_position_transformed(self, ethane):
        sg = SubstanceGroup(atoms=[0], kind="DAT", data=["x"], data_position=(1.0, 1.0))
        mol = self._with_groups(ethane, [sg])
        ctx = _context(mol)
        extract_sgroup_data(
            mol, ctx, FixedWidthTextMetrics(), DrawOptions(), LABEL_FONT,
            DisplayTransform(shift=(1.0, -1.0)),
        )
        assert (ctx.annotations[0].x, ctx.annotations[0].y) == pytest.approx((2.0, 0.0))

    def test_relative_without_atoms_skipped(self, ethane, caplog):
        sg = SubstanceGroup(kind="DAT", data=["x"], data_position=(0.5, 0.5), data_relative=True)
        mol = self._with_groups(ethane, [sg])
        ctx = _context(mol)
        with caplog.at_level(logging.WARNING, logger="couper.rendering.annotations"):
            extract_sgroup_data(
                mol, ctx, FixedWidthTextMetrics(), DrawOptions(), LABEL_FONT,
                DisplayTransform(),
            )
        assert ctx.annotations == []
        assert "will not be drawn" in caplog.text

    def test_unpositioned_data_placed_as_note(self, ethane):
        sg = SubstanceGroup(atoms=[0], kind="DAT", data=["x"])
        mol = self._with_groups(ethane, [sg])
        ctx = _context(mol)
        extract_sgroup_data(
            mol, ctx, FixedWidthTextMetrics(), DrawOptions(), LABEL_FONT,
            DisplayTransform(),
        )
        assert ctx.annotations[0].align == TextAlign.START

    def test_brackets_and_labels(self, ethane):
        sg = SubstanceGroup(
            atoms=[0, 1], kind="SRU", connect="ht", label="n",
            brackets=[((-0.5, -0.5), (-0.5, 0.5)), ((2.0, -0.5), (2.0, 0.5))],
        )
        mol = self._with_groups(ethane, [sg])
        ctx = _context(mol)
        extract_brackets(
            mol, ctx, FixedWidthTextMetrics(), DrawOptions(), LABEL_FONT,
            DisplayTransform(),
        )
        assert len(ctx.post_shapes) == 2
        np.testing.assert_allclose(
            ctx.post_shapes[1].points,
            [[1.9, -0.5], [2.0, -0.5], [2.0, 0.5], [1.9, 0.5]],
        )
        connect, label = ctx.annotations
        assert connect.text == "ht"
        assert (connect.x, connect.y) == pytest.approx((2.1, 0.5))
        assert connect.align == TextAlign.START
        assert label.text == "n"
        assert (label.x, label.y) == pytest.approx((2.1, -0.5))

    def test_link_node(self, ethane):
        mol = self._with_groups(ethane, nodes=[LinkNode(1, 4, [(0, 1)])])
        ctx = _context(mol)
        extract_link_nodes(mol, ctx, FixedWidthTextMetrics(), DrawOptions(), LABEL_FONT)
        assert len(ctx.post_shapes) == 1
        (note,) = ctx.annotations
        assert note.text == "(1-4)"
        assert note.align == TextAlign.START
        assert note.x > 0.5


class TestVariableBonds:
    def test_attachment_markers(self):
        mol = Molecule(
            atoms=[Atom("*"), Atom("C"), Atom("C")],
            bonds=[Bond(0, 1, variable_attachments=(1, 2)), Bond(1, 2)],
            coords=np.array([[0.0, 1.0], [-0.75, 0.0], [0.75, 0.0]]),
        )
        ctx = _context(mol)
        assert ctx.atom_labels[0] is not None
        extract_variable_bonds(mol, ctx, DrawOptions())
        ellipses = [s for s in ctx.pre_shapes if s.kind == "ellipse"]
        bands = [s for s in ctx.pre_shapes if s.kind == "polyline"]
        assert [s.atoms for s in ellipses] == [(1,), (2,)]
        assert len(bands) == 1
        assert bands[0].scale_line_width
        assert bands[0].line_width == pytest.approx(2.0 * 16.0)
        assert ctx.atom_labels[0] is None
