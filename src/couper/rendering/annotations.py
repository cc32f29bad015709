"""Annotation placement: atom, bond and molecule notes, radicals, groups.

Notes are placed in molecule space at a scale of one, using the
unclamped base font size, so that their positions do not depend on the
final scale.  Each candidate position is scored with a
:class:`ClashSeverity`; the first clash-free candidate wins.  When
every candidate clashes the least-bad one is kept and a warning is
logged.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

import numpy as np

from couper._constants import (
    BOND_NOTE_FRACTIONS,
    BRACKET_CROSSING_FRACTION,
    NOTE_RADIUS_STEP,
)
from couper.model import (
    Annotation,
    BondType,
    ClashSeverity,
    DrawOptions,
    DrawShape,
    Molecule,
    Orientation,
    RadicalMark,
    RenderContext,
    ScaleState,
    ShapeKind,
    StringRect,
    TextAlign,
)
from couper.rendering.geometry import (
    DisplayTransform,
    Segment,
    bracket_points,
    double_bond_lines,
    rotate_points,
    triple_bond_lines,
)
from couper.rendering.text import TextMetrics, strip_markup

logger = logging.getLogger(__name__)

MOL_NOTE_FONT_SCALE: float = 0.75
"""Molecule-note font size relative to the legend font size."""

# Bond-line padding for note clash tests, in line widths per molecule unit.
_LINE_PAD = 0.02


def note_start_angle(mol: Molecule, idx: int, ctx: RenderContext) -> float:
    """Angle in radians at which to start searching round an atom.

    Points away from the atom's bonds, so the first candidates tried
    are the ones most likely to be clear.
    """
    coords = ctx.atom_coords
    origin = coords[idx]
    vecs = []
    for nbr in mol.neighbours(idx):
        v = coords[nbr] - origin
        n = np.hypot(*v)
        vecs.append(v / n if n > 1e-12 else v)
    if not vecs:
        return math.pi / 2

    if len(vecs) == 1:
        if ctx.atom_labels[idx] is None:
            ret = np.array([vecs[0][1], -vecs[0][0]])
        else:
            ret = -vecs[0]
    elif len(vecs) == 2:
        ret = vecs[0] + vecs[1]
        if np.dot(ret, ret) > 1.0e-6:
            atom = mol.atoms[idx]
            # Inside the angle when hydrogens will be drawn outside it.
            if not atom.num_hs or atom.atomic_num == 6:
                ret = -ret
        else:
            ret = np.array([-vecs[0][1], vecs[0][0]])
    else:
        # Two bonds that are probably adjacent.
        discrim = 4.0 * math.pi / len(vecs)
        found = None
        for i in range(len(vecs) - 1):
            for j in range(i + 1, len(vecs)):
                cos_ang = float(np.clip(np.dot(vecs[i], vecs[j]), -1.0, 1.0))
                if math.acos(cos_ang) < discrim:
                    found = vecs[i] + vecs[j]
                    break
            if found is not None:
                break
        ret = -(vecs[0] + vecs[1]) if found is None else found
    return math.atan2(ret[1], ret[0])


def label_glyphs(
    ctx: RenderContext, metrics: TextMetrics, idx: int, font_size: float,
) -> list[StringRect]:
    """Placed glyph boxes of an atom's label; empty when it has none."""
    label = ctx.atom_labels[idx]
    if label is None:
        return []
    rects = metrics.label_rects(label.text, label.orientation, font_size)
    return metrics.placed(rects, ctx.atom_coords[idx])


def _bond_segments(
    mol: Molecule, ctx: RenderContext, idx: int, options: DrawOptions,
) -> list[Segment]:
    """Every drawn line of the bonds touching an atom."""
    coords = ctx.atom_coords
    segments: list[Segment] = []
    for bi in mol.atom_bonds(idx):
        bond = mol.bonds[bi]
        p1, p2 = coords[bond.begin], coords[bond.end]
        segments.append((p1, p2))
        if bond.bond_type not in (BondType.DOUBLE, BondType.AROMATIC, BondType.TRIPLE):
            continue
        d = p2 - p1
        if float(np.dot(d, d)) < 1e-12:
            continue
        offset = options.multiple_bond_offset
        if float(np.dot(d, d)) < 1.4:
            offset *= 0.6
        if bond.bond_type == BondType.TRIPLE:
            segments.extend(triple_bond_lines(mol, bi, coords, offset))
        else:
            segments.extend(double_bond_lines(mol, bi, coords, offset))
    return segments


def note_clash(
    mol: Molecule,
    ctx: RenderContext,
    metrics: TextMetrics,
    options: DrawOptions,
    glyphs: Sequence[StringRect],
    atoms: Sequence[int],
    label_font: float,
) -> ClashSeverity:
    """Worst collision of placed note glyphs with the drawing so far.

    Checks, in order of severity, the bonds touching *atoms*, every
    atom label (those of *atoms* first) and the annotations already
    placed in *ctx*.
    """
    pad = options.line_width * _LINE_PAD
    for idx in atoms:
        for p1, p2 in _bond_segments(mol, ctx, idx, options):
            if metrics.line_intersects(glyphs, p1, p2, pad):
                return ClashSeverity.BOND

    order = list(atoms) + [i for i in range(ctx.n_atoms) if i not in atoms]
    for idx in order:
        label = label_glyphs(ctx, metrics, idx, label_font)
        if label and metrics.strings_intersect(glyphs, label):
            return ClashSeverity.LABEL

    for annot in ctx.annotations:
        if metrics.rect_intersects(glyphs, annot.rect):
            return ClashSeverity.ANNOTATION
    return ClashSeverity.NONE


def _least_bad(
    candidates: list[tuple[ClashSeverity, np.ndarray]], what: str,
) -> tuple[ClashSeverity, np.ndarray]:
    best = min(candidates, key=lambda c: int(c[0]))
    logger.warning(
        "no clash-free position for %s; using one with %s clash",
        what, best[0].name.lower(),
    )
    return best


def _make_annotation(
    text: str,
    pos: np.ndarray,
    metrics: TextMetrics,
    font_size: float,
    align: TextAlign,
    font_scale: float,
    clash: ClashSeverity = ClashSeverity.NONE,
) -> Annotation:
    width, height = metrics.text_size(text, font_size)
    return Annotation(
        text, float(pos[0]), float(pos[1]), width, height, align=align,
        font_scale=font_scale, clash=clash,
    )


def place_atom_note(
    mol: Molecule,
    idx: int,
    text: str,
    ctx: RenderContext,
    metrics: TextMetrics,
    options: DrawOptions,
    label_font: float,
    align: TextAlign = TextAlign.MIDDLE,
) -> Annotation:
    """Place a note round an atom.

    Candidates lie on circles of radius 0.25, 0.5 and 0.75 at 30
    degree steps from :func:`note_start_angle`.  The innermost circle
    is skipped when the atom shows a symbol, since it would overlap it.

    Args:
        mol: The molecule.
        idx: Atom index.
        text: Note text.
        ctx: Render context holding coordinates, labels and the notes
            placed so far.
        metrics: Text metrics.
        options: Drawing options.
        label_font: Atom-label font size in molecule units.
        align: Alignment of the note text.

    Returns:
        The placed annotation.
    """
    font_scale = options.annotation_font_scale
    font_size = label_font * font_scale
    rects = metrics.text_rects(text, font_size, align)
    centre = ctx.atom_coords[idx]
    start = note_start_angle(mol, idx, ctx)
    has_symbol = ctx.atom_labels[idx] is not None

    candidates: list[tuple[ClashSeverity, np.ndarray]] = []
    for j in range(1, 4):
        if j == 1 and has_symbol:
            continue
        radius = j * NOTE_RADIUS_STEP
        for i in range(12):
            ang = start + math.radians(30.0 * i)
            pos = centre + radius * np.array([math.cos(ang), math.sin(ang)])
            clash = note_clash(
                mol, ctx, metrics, options, metrics.placed(rects, pos),
                (idx,), label_font,
            )
            if clash == ClashSeverity.NONE:
                return _make_annotation(text, pos, metrics, font_size, align, font_scale)
            candidates.append((clash, pos))
    clash, pos = _least_bad(candidates, f"note {strip_markup(text)!r} on atom {idx}")
    return _make_annotation(text, pos, metrics, font_size, align, font_scale, clash)


def place_bond_note(
    mol: Molecule,
    bond_idx: int,
    text: str,
    ctx: RenderContext,
    metrics: TextMetrics,
    options: DrawOptions,
    label_font: float,
) -> Annotation | None:
    """Place a note beside a bond.

    Tries points along the bond at each of :data:`BOND_NOTE_FRACTIONS`,
    stepping out perpendicular to it by multiples of
    ``multiple_bond_offset`` on both sides.  Multiple bonds skip the
    nearest step.  Returns ``None`` for a zero-length bond.
    """
    bond = mol.bonds[bond_idx]
    a1 = ctx.atom_coords[bond.begin]
    a2 = ctx.atom_coords[bond.end]
    bv = a2 - a1
    length = float(np.hypot(*bv))
    if length < 1e-12:
        return None
    perp = np.array([-bv[1], bv[0]]) / length

    font_scale = options.annotation_font_scale
    font_size = label_font * font_scale
    rects = metrics.text_rects(text, font_size)
    candidates: list[tuple[ClashSeverity, np.ndarray]] = []
    for frac in BOND_NOTE_FRACTIONS:
        mid = a1 + bv * frac
        for j in range(1, 6):
            if j == 1 and bond.is_multiple:
                continue
            offset = j * options.multiple_bond_offset
            for pos in (mid + perp * offset, mid - perp * offset):
                clash = note_clash(
                    mol, ctx, metrics, options, metrics.placed(rects, pos),
                    (bond.begin, bond.end), label_font,
                )
                if clash == ClashSeverity.NONE:
                    return _make_annotation(
                        text, pos, metrics, font_size, TextAlign.MIDDLE, font_scale,
                    )
                candidates.append((clash, pos))
    clash, pos = _least_bad(candidates, f"note {strip_markup(text)!r} on bond {bond_idx}")
    return _make_annotation(
        text, pos, metrics, font_size, TextAlign.MIDDLE, font_scale, clash,
    )


def place_mol_note(
    text: str, ctx: RenderContext, metrics: TextMetrics, options: DrawOptions,
) -> Annotation:
    """Place a molecule note towards the top right of the atoms.

    The note is start-aligned at 90% of the way from the centroid to
    the top-right corner of the atom bounding box.  Its font does not
    scale with the drawing, so its size is stored in device pixels.
    """
    coords = ctx.atom_coords
    centroid = coords.mean(axis=0)
    max_pt = coords.max(axis=0)
    pos = centroid + (max_pt - centroid) * 0.9
    px = options.legend_font_size * MOL_NOTE_FONT_SCALE
    width, height = metrics.text_size(text, px)
    return Annotation(
        text, float(pos[0]), float(pos[1]), width, height,
        align=TextAlign.START, scale_text=False, font_scale=MOL_NOTE_FONT_SCALE,
    )


def annotation_footprint(
    annot: Annotation, state: ScaleState,
) -> StringRect:
    """Box an annotation occupies in molecule space at the current scale."""
    if annot.scale_text:
        return annot.rect
    width = annot.width / state.scale
    height = annot.height / state.scale
    return Annotation(
        annot.text, annot.x, annot.y, width, height, align=annot.align,
    ).rect


def _radical_rect(
    orient: Orientation,
    centre: np.ndarray,
    extremes: StringRect,
    spot_rad: float,
    rad_size: float,
) -> StringRect:
    match orient:
        case Orientation.N | Orientation.C:
            h = 3.0 * spot_rad
            return StringRect(float(centre[0]), extremes.top + h / 2, rad_size, h)
        case Orientation.S:
            h = 3.0 * spot_rad
            return StringRect(float(centre[0]), extremes.bottom - h / 2, rad_size, h)
        case Orientation.E:
            return StringRect(
                extremes.right + 3.0 * spot_rad, float(centre[1]),
                1.5 * spot_rad, rad_size,
            )
        case Orientation.W:
            return StringRect(
                extremes.left - 3.0 * spot_rad, float(centre[1]),
                1.5 * spot_rad, rad_size,
            )


def place_radical(
    mol: Molecule,
    idx: int,
    ctx: RenderContext,
    metrics: TextMetrics,
    options: DrawOptions,
    label_font: float,
    spot_rad: float,
) -> RadicalMark:
    """Find a side of an atom for its unpaired-electron dots.

    The label's own orientation is tried first, then N, E, S and W.  A
    side is accepted when the dots miss the atom label and clash with
    nothing else.  With no free side the dots go north and a warning
    is logged.
    """
    count = mol.atoms[idx].radical_electrons
    centre = ctx.atom_coords[idx]
    rad_size = (4 * count - 2) * spot_rad
    own = label_glyphs(ctx, metrics, idx, label_font)
    if own:
        extremes = StringRect.bounding(own)
    else:
        extremes = StringRect(
            float(centre[0]), float(centre[1]), 6.0 * spot_rad, 6.0 * spot_rad,
        )

    label = ctx.atom_labels[idx]
    first = label.orientation if label is not None else Orientation.N
    order = [first] + [
        o for o in (Orientation.N, Orientation.E, Orientation.S, Orientation.W)
        if o != first
    ]
    for orient in order:
        rect = _radical_rect(orient, centre, extremes, spot_rad, rad_size)
        if own and metrics.rect_intersects(own, rect):
            continue
        clash = note_clash(mol, ctx, metrics, options, [rect], (idx,), label_font)
        if clash == ClashSeverity.NONE:
            if orient == Orientation.C:
                orient = Orientation.N
            return RadicalMark(idx, rect, orient, count)
    logger.warning("no free side for radical dots on atom %d", idx)
    rect = _radical_rect(Orientation.N, centre, extremes, spot_rad, rad_size)
    return RadicalMark(idx, rect, Orientation.N, count)


def radical_spots(mark: RadicalMark, spot_rad: float) -> np.ndarray:
    """Centres of the dots of a radical mark, shape ``(count, 2)``.

    Dots run horizontally for marks above or below the atom and
    vertically for marks beside it.
    """
    if mark.orientation in (Orientation.E, Orientation.W):
        axis, extent = np.array([0.0, 1.0]), mark.rect.height
    else:
        axis, extent = np.array([1.0, 0.0]), mark.rect.width
    match mark.count:
        case 1:
            steps = [0.0]
        case 2:
            steps = [2.0 * spot_rad, -2.0 * spot_rad]
        case 3:
            edge = 0.5 * extent - spot_rad
            steps = [0.0, -edge, edge]
        case _:
            steps = [6.0 * spot_rad, -6.0 * spot_rad, 2.0 * spot_rad, -2.0 * spot_rad]
    centre = mark.rect.centre
    return np.array([centre + axis * s for s in steps])


def extract_radicals(
    mol: Molecule,
    ctx: RenderContext,
    metrics: TextMetrics,
    options: DrawOptions,
    label_font: float,
    spot_rad: float,
) -> None:
    """Replace the radical marks of *ctx* with freshly placed ones."""
    ctx.radicals = [
        place_radical(mol, i, ctx, metrics, options, label_font, spot_rad)
        for i, atom in enumerate(mol.atoms)
        if atom.radical_electrons
    ]


def _atom_note_text(mol: Molecule, idx: int, options: DrawOptions) -> str:
    note = mol.atoms[idx].note or ""
    if options.add_atom_indices:
        return f"{idx},{note}" if note else str(idx)
    return note


def _bond_note_text(mol: Molecule, idx: int, options: DrawOptions) -> str:
    note = mol.bonds[idx].note or ""
    if options.add_bond_indices:
        return f"{idx},{note}" if note else str(idx)
    return note


def extract_atom_notes(
    mol: Molecule, ctx: RenderContext, metrics: TextMetrics,
    options: DrawOptions, label_font: float,
) -> None:
    for idx in range(mol.n_atoms):
        text = _atom_note_text(mol, idx, options)
        if text:
            ctx.annotations.append(
                place_atom_note(mol, idx, text, ctx, metrics, options, label_font)
            )


def extract_bond_notes(
    mol: Molecule, ctx: RenderContext, metrics: TextMetrics,
    options: DrawOptions, label_font: float,
) -> None:
    for idx in range(len(mol.bonds)):
        text = _bond_note_text(mol, idx, options)
        if not text:
            continue
        annot = place_bond_note(mol, idx, text, ctx, metrics, options, label_font)
        if annot is None:
            logger.warning("couldn't place note %r for zero-length bond %d", text, idx)
        else:
            ctx.annotations.append(annot)


def extract_mol_note(
    mol: Molecule, ctx: RenderContext, metrics: TextMetrics,
    options: DrawOptions,
) -> None:
    text = mol.note or ""
    if not text and options.include_chiral_flag_label and mol.chiral_flag:
        text = "ABS"
    if text and ctx.n_atoms:
        ctx.annotations.append(place_mol_note(text, ctx, metrics, options))


def extract_sgroup_data(
    mol: Molecule,
    ctx: RenderContext,
    metrics: TextMetrics,
    options: DrawOptions,
    label_font: float,
    transform: DisplayTransform,
) -> None:
    """Add the data text of ``"DAT"`` substance groups.

    A fixed position is used as given, or relative to the first group
    atom.  Groups without a usable fixed position are placed like an
    atom note on their first atom.  Data text is start-aligned.
    """
    font_scale = options.annotation_font_scale
    font_size = label_font * font_scale
    for sg in mol.substance_groups:
        if sg.kind != "DAT":
            continue
        text = sg.data_text
        if not text:
            continue
        first = sg.atoms[0] if sg.atoms else None
        pos = None
        if sg.data_position is not None:
            offset = np.asarray(sg.data_position, dtype=float)
            if sg.data_relative:
                if first is None:
                    logger.warning(
                        "data group %r has a relative position but no atoms; "
                        "it will not be drawn", text,
                    )
                    continue
                if np.abs(offset).max() > 1e-3:
                    pos = ctx.atom_coords[first] + rotate_points(offset, transform.rotation)
            else:
                pos = transform(offset)
        if pos is not None:
            ctx.annotations.append(
                _make_annotation(text, pos, metrics, font_size, TextAlign.START, font_scale)
            )
        elif first is not None:
            ctx.annotations.append(place_atom_note(
                mol, first, text, ctx, metrics, options, label_font,
                align=TextAlign.START,
            ))
        else:
            logger.warning(
                "data group %r has no position and no atoms; "
                "it will not be drawn", text,
            )


def extract_brackets(
    mol: Molecule,
    ctx: RenderContext,
    metrics: TextMetrics,
    options: DrawOptions,
    label_font: float,
    transform: DisplayTransform,
) -> None:
    """Add bracket shapes and their connectivity and label text.

    Bracket ticks point at the mean position of the group's atoms.
    The connectivity text sits beyond the top of the group's last
    bracket and the label beyond its bottom.
    """
    font_scale = options.annotation_font_scale
    font_size = label_font * font_scale
    for sg in mol.substance_groups:
        if not sg.brackets:
            continue
        if sg.atoms:
            ref = ctx.atom_coords[list(sg.atoms)].mean(axis=0)
        else:
            ref = np.zeros(2)
        pts = None
        for p1, p2 in sg.brackets:
            ends = transform(np.array([p1, p2]))
            pts = bracket_points(ends[0], ends[1], ref)
            ctx.post_shapes.append(DrawShape(ShapeKind.POLYLINE, pts))
        if sg.connect:
            top, tick = pts[1], pts[0]
            if pts[2][1] > top[1]:
                top, tick = pts[2], pts[3]
            align = TextAlign.START if tick[0] < top[0] else TextAlign.MIDDLE
            ctx.annotations.append(_make_annotation(
                sg.connect, top + (top - tick), metrics, font_size, align, font_scale,
            ))
        if sg.label:
            bottom, tick = pts[2], pts[3]
            if pts[1][1] < bottom[1]:
                bottom, tick = pts[1], pts[0]
            ctx.annotations.append(_make_annotation(
                sg.label, bottom + (bottom - tick), metrics, font_size,
                TextAlign.MIDDLE, font_scale,
            ))


def extract_link_nodes(
    mol: Molecule,
    ctx: RenderContext,
    metrics: TextMetrics,
    options: DrawOptions,
    label_font: float,
) -> None:
    """Add link-node brackets and their ``(min-max)`` labels.

    A bracket crosses each listed bond a third of the way from the
    repeating atom.  The label goes just beyond the right-most bracket
    end.
    """
    font_scale = options.annotation_font_scale
    font_size = label_font * font_scale
    coords = ctx.atom_coords
    for node in mol.link_nodes:
        label_pt = None
        label_perp = np.zeros(2)
        for inner, outer in node.bond_atoms:
            start = coords[inner]
            vect = coords[outer] - start
            crossing = start + vect * BRACKET_CROSSING_FRACTION
            perp = np.array([vect[1], -vect[0]]) * BRACKET_CROSSING_FRACTION
            p1 = crossing + perp / 2
            p2 = crossing - perp / 2
            ctx.post_shapes.append(
                DrawShape(ShapeKind.POLYLINE, bracket_points(p1, p2, start))
            )
            for p in (p1, p2):
                if label_pt is None or p[0] > label_pt[0]:
                    label_pt = p
                    label_perp = crossing - start
        if label_pt is None:
            continue
        norm = float(np.hypot(*label_perp))
        pos = label_pt + (label_perp / (norm * 5) if norm > 1e-12 else 0.0)
        ctx.annotations.append(_make_annotation(
            node.label, pos, metrics, font_size, TextAlign.START, font_scale,
        ))


def extract_variable_bonds(
    mol: Molecule, ctx: RenderContext, options: DrawOptions,
) -> None:
    """Add the markers of variable attachment points.

    Each possible attachment atom gets a filled ellipse, and bonds
    between two such atoms get a wide band.  The dummy atom the
    variable bond starts from loses its symbol.
    """
    colour = options.variable_attachment_colour
    coords = ctx.atom_coords
    r = np.array([options.variable_atom_radius] * 2)
    for bond in mol.bonds:
        if not bond.variable_attachments:
            continue
        involved = set(bond.variable_attachments)
        for idx in bond.variable_attachments:
            ctx.pre_shapes.append(DrawShape(
                ShapeKind.ELLIPSE, [coords[idx] + r, coords[idx] - r],
                colour=colour, line_width=1.0, fill=True, atoms=(idx,),
            ))
        for other in mol.bonds:
            if other.begin in involved and other.end in involved:
                ctx.pre_shapes.append(DrawShape(
                    ShapeKind.POLYLINE, [coords[other.begin], coords[other.end]],
                    colour=colour,
                    line_width=options.line_width * options.variable_bond_width_multiplier,
                    scale_line_width=True,
                    atoms=(other.begin, other.end),
                ))
        if mol.atoms[bond.begin].atomic_num == 0:
            ctx.set_label(bond.begin, None)


def extract_annotations(
    mol: Molecule,
    ctx: RenderContext,
    metrics: TextMetrics,
    options: DrawOptions,
    label_font: float,
    transform: DisplayTransform | None = None,
) -> None:
    """Run every annotation and shape extraction pass over a molecule.

    Args:
        mol: The molecule.
        ctx: Render context with atoms already set.  Its annotations,
            radicals and shapes are rebuilt.
        metrics: Text metrics.
        options: Drawing options.
        label_font: Atom-label font size in molecule units.
        transform: Transform already applied to the atom coordinates,
            applied here to bracket ends and fixed data positions.
    """
    transform = transform or DisplayTransform()
    ctx.annotations.clear()
    ctx.pre_shapes.clear()
    ctx.post_shapes.clear()
    extract_atom_notes(mol, ctx, metrics, options, label_font)
    extract_bond_notes(mol, ctx, metrics, options, label_font)
    if options.include_radicals:
        extract_radicals(
            mol, ctx, metrics, options, label_font, radical_spot_radius(options),
        )
    else:
        ctx.radicals = []
    extract_sgroup_data(mol, ctx, metrics, options, label_font, transform)
    extract_variable_bonds(mol, ctx, options)
    extract_brackets(mol, ctx, metrics, options, label_font, transform)
    extract_mol_note(mol, ctx, metrics, options)
    extract_link_nodes(mol, ctx, metrics, options, label_font)


def radical_spot_radius(options: DrawOptions, font_ratio: float = 1.0) -> float:
    """Radius of one radical dot in molecule units.

    *font_ratio* is the drawn label font size over the unclamped one;
    it shrinks or grows the dots along with clamped labels.
    """
    return 0.2 * options.multiple_bond_offset * font_ratio
