"""Highlight geometry for atoms and bonds.

Highlights are returned as molecule-space :class:`DrawShape` lists that
the drawer paints before the bonds, so the molecule stays readable on
top of them.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence

import numpy as np

from couper.model import (
    DrawOptions,
    DrawShape,
    Molecule,
    RenderContext,
    ShapeKind,
    StringRect,
)
from couper.model.colour import RGB
from couper.rendering.annotations import label_glyphs
from couper.rendering.geometry import perpendicular
from couper.rendering.text import TextMetrics

_ROOT_2 = math.sqrt(2.0)

# Bond highlight bands are this fraction of the highlight radius wide,
# either side of the bond.
_BAND_FRACTION = 0.7


def highlight_bonds_for_atoms(mol: Molecule, atoms: Iterable[int]) -> list[int]:
    """Indices of the bonds whose two atoms are both in *atoms*."""
    atoms = list(atoms)
    bonds: list[int] = []
    for i, ai in enumerate(atoms):
        for aj in atoms[i + 1:]:
            bi = mol.bond_between(ai, aj)
            if bi is not None:
                bonds.append(bi)
    return bonds


def label_ellipse(
    ctx: RenderContext,
    metrics: TextMetrics,
    idx: int,
    options: DrawOptions,
    label_font: float,
    radii: Mapping[int, float] | None = None,
) -> tuple[np.ndarray, float, float]:
    """Centre and radii of the highlight ellipse of an atom.

    The radius is ``options.highlight_radius`` unless *radii* overrides
    it.  Unless highlights are forced to be circles, an atom with a
    label gets an ellipse centred on the label and stretched to cover
    it.

    Returns:
        ``(centre, x_radius, y_radius)`` in molecule space.
    """
    centre = ctx.atom_coords[idx].copy()
    radius = options.highlight_radius
    if radii is not None and idx in radii:
        radius = float(radii[idx])
    xr = yr = radius
    if options.atom_highlights_are_circles:
        return centre, xr, yr
    glyphs = label_glyphs(ctx, metrics, idx, label_font)
    if not glyphs:
        return centre, xr, yr
    box = StringRect.bounding(glyphs)
    xr = max(xr, _ROOT_2 * 0.5 * box.width)
    yr = max(yr, _ROOT_2 * 0.5 * box.height)
    return box.centre, xr, yr


def adjust_line_end_for_highlight(
    p1: np.ndarray,
    p2: np.ndarray,
    centre: np.ndarray,
    x_radius: float,
    y_radius: float,
) -> np.ndarray:
    """Move *p2* back along p1-p2 to where it meets an ellipse.

    Solves the line/ellipse quadratic in the ellipse's own frame.  With
    no real root, or no root between *p1* and *p2*, *p2* is returned
    unchanged.  A double root is used as is; otherwise the root in
    ``[0, 1]`` nearest *p1* wins.  Ellipses with a radius below 1e-6
    leave the line alone.
    """
    p2 = np.asarray(p2, dtype=float)
    if x_radius < 1.0e-6 or y_radius < 1.0e-6:
        return p2
    q1 = np.asarray(p1, dtype=float) - centre
    q2 = p2 - centre
    d = q2 - q1
    a2 = x_radius * x_radius
    b2 = y_radius * y_radius
    A = d[0] * d[0] / a2 + d[1] * d[1] / b2
    B = 2.0 * q1[0] * d[0] / a2 + 2.0 * q1[1] * d[1] / b2
    C = q1[0] * q1[0] / a2 + q1[1] * q1[1] / b2 - 1.0
    if A < 1e-12:
        return p2

    disc = B * B - 4.0 * A * C
    if disc < 0.0:
        return p2
    if abs(disc) < 1.0e-6:
        t = -B / (2.0 * A)
    else:
        root = math.sqrt(disc)
        ok = [t for t in ((-B + root) / (2.0 * A), (-B - root) / (2.0 * A))
              if 0.0 <= t <= 1.0]
        if not ok:
            return p2
        t = min(ok)
    return q1 + d * t + centre


def highlight_bond_width(
    options: DrawOptions,
    bond_idx: int | None = None,
    multipliers: Mapping[int, float] | None = None,
) -> float:
    """Width in pixels of a highlight stroke.

    Unfilled highlights use half the multiplier (at least 1).  A
    per-bond entry in *multipliers* replaces the multiplier entirely.
    """
    bwm = options.highlight_bond_width_multiplier
    if not options.fill_highlights:
        bwm = max(1.0, bwm // 2)
    if multipliers and bond_idx is not None and bond_idx in multipliers:
        bwm = multipliers[bond_idx]
    return options.line_width * bwm


def _ellipse(centre: np.ndarray, xr: float, yr: float) -> np.ndarray:
    r = np.array([xr, yr])
    return np.array([centre - r, centre + r])


def _arc(
    centre: np.ndarray, xr: float, yr: float, start: float, stop: float,
    n_steps: int = 60,
) -> np.ndarray:
    n = max(2, int(n_steps * abs(stop - start) / 360.0) + 1)
    angles = np.radians(np.linspace(start, stop, n))
    return np.column_stack([
        centre[0] + xr * np.cos(angles),
        centre[1] + yr * np.sin(angles),
    ])


def atom_highlight_shapes(
    ctx: RenderContext,
    metrics: TextMetrics,
    idx: int,
    colours: Sequence[RGB],
    options: DrawOptions,
    label_font: float,
    radii: Mapping[int, float] | None = None,
) -> list[DrawShape]:
    """Ellipse, or one arc per colour, round a highlighted atom.

    With several colours the ellipse is split into equal arcs starting
    at -90 degrees.  Filled highlights become pie slices.
    """
    centre, xr, yr = label_ellipse(ctx, metrics, idx, options, label_font, radii)
    fill = options.fill_highlights
    width = 1.0 if fill else highlight_bond_width(options)
    scaled = not fill and options.scale_highlight_bond_width
    if len(colours) == 1:
        return [DrawShape(
            ShapeKind.ELLIPSE, _ellipse(centre, xr, yr), colour=colours[0],
            line_width=width, scale_line_width=scaled, fill=fill, atoms=(idx,),
        )]
    shapes = []
    arc_size = 360.0 / len(colours)
    start = -90.0
    for colour in colours:
        pts = _arc(centre, xr, yr, start, start + arc_size)
        if fill:
            shapes.append(DrawShape(
                ShapeKind.POLYGON, np.vstack([centre, pts]), colour=colour,
                line_width=width, fill=True, atoms=(idx,),
            ))
        else:
            shapes.append(DrawShape(
                ShapeKind.POLYLINE, pts, colour=colour, line_width=width,
                scale_line_width=scaled, atoms=(idx,),
            ))
        start += arc_size
    return shapes


def continuous_highlight_shapes(
    mol: Molecule,
    ctx: RenderContext,
    metrics: TextMetrics,
    options: DrawOptions,
    label_font: float,
    atoms: Iterable[int] = (),
    bonds: Iterable[int] = (),
    atom_colours: Mapping[int, RGB] | None = None,
    bond_colours: Mapping[int, RGB] | None = None,
    radii: Mapping[int, float] | None = None,
) -> list[DrawShape]:
    """Wide strokes along highlighted bonds followed by atom ellipses.

    Bonds are stroked at the highlight width (at least 2 pixels) from
    atom centre to atom centre; the atom ellipses then cover the
    joints.
    """
    atom_colours = atom_colours or {}
    bond_colours = bond_colours or {}
    width = max(2.0, highlight_bond_width(options))
    shapes: list[DrawShape] = []
    coords = ctx.atom_coords
    for bi in sorted(set(bonds)):
        bond = mol.bonds[bi]
        shapes.append(DrawShape(
            ShapeKind.POLYLINE, [coords[bond.begin], coords[bond.end]],
            colour=bond_colours.get(bi, options.highlight_colour),
            line_width=width,
            scale_line_width=options.scale_highlight_bond_width,
            atoms=(bond.begin, bond.end),
        ))
    for idx in sorted(set(atoms)):
        colour = atom_colours.get(idx, options.highlight_colour)
        shapes.extend(atom_highlight_shapes(
            ctx, metrics, idx, [colour], options, label_font, radii,
        ))
    return shapes


def circle_highlight_shapes(
    ctx: RenderContext,
    options: DrawOptions,
    atoms: Iterable[int],
    atom_colours: Mapping[int, RGB] | None = None,
    radii: Mapping[int, float] | None = None,
) -> list[DrawShape]:
    """Plain circles round highlighted atoms, for non-continuous mode."""
    atom_colours = atom_colours or {}
    shapes = []
    for idx in sorted(set(atoms)):
        r = options.highlight_radius
        if radii is not None and idx in radii:
            r = float(radii[idx])
        shapes.append(DrawShape(
            ShapeKind.ELLIPSE, _ellipse(ctx.atom_coords[idx], r, r),
            colour=atom_colours.get(idx, options.highlight_colour),
            line_width=options.line_width, fill=options.fill_highlights,
            atoms=(idx,),
        ))
    return shapes


def bond_highlight_shapes(
    mol: Molecule,
    ctx: RenderContext,
    metrics: TextMetrics,
    options: DrawOptions,
    label_font: float,
    bond_map: Mapping[int, Sequence[RGB]],
    multipliers: Mapping[int, float] | None = None,
    radii: Mapping[int, float] | None = None,
) -> list[DrawShape]:
    """Bands or parallel strokes along bonds with one or more colours.

    Filled highlights become a band of width ``1.4 * highlight_radius``
    split into equal stripes, one per colour.  Unfilled highlights are
    pairs of strokes at the band edges, or one stroke per colour working
    in from alternate edges, with ends trimmed at the atom ellipses.
    """
    coords = ctx.atom_coords
    rad = _BAND_FRACTION * options.highlight_radius
    shapes: list[DrawShape] = []
    for bi, colours in bond_map.items():
        bond = mol.bonds[bi]
        a1, a2 = coords[bond.begin], coords[bond.end]
        if float(np.dot(a2 - a1, a2 - a1)) < 1e-12:
            continue
        perp = perpendicular(a1, a2)
        colours = list(colours) or [options.highlight_colour]
        width = highlight_bond_width(options, bi, multipliers)
        tag = (bond.begin, bond.end)

        def stroke(p1: np.ndarray, p2: np.ndarray, colour: RGB) -> DrawShape:
            c1, xr1, yr1 = label_ellipse(ctx, metrics, bond.begin, options, label_font, radii)
            c2, xr2, yr2 = label_ellipse(ctx, metrics, bond.end, options, label_font, radii)
            p1 = adjust_line_end_for_highlight(p2, p1, c1, xr1, yr1)
            p2 = adjust_line_end_for_highlight(p1, p2, c2, xr2, yr2)
            return DrawShape(
                ShapeKind.POLYLINE, [p1, p2], colour=colour, line_width=width,
                scale_line_width=options.scale_highlight_bond_width, atoms=tag,
            )

        if len(colours) == 1:
            colour = colours[0]
            if options.fill_highlights:
                shapes.append(DrawShape(
                    ShapeKind.POLYGON,
                    [a1 + perp * rad, a2 + perp * rad,
                     a2 - perp * rad, a1 - perp * rad],
                    colour=colour, fill=True, atoms=tag,
                ))
            else:
                shapes.append(stroke(a1 + perp * rad, a2 + perp * rad, colour))
                shapes.append(stroke(a1 - perp * rad, a2 - perp * rad, colour))
            continue

        col_rad = 2.0 * rad / len(colours)
        if options.fill_highlights:
            p1 = a1 - perp * rad
            p2 = a2 - perp * rad
            for colour in colours:
                step = perp * col_rad
                shapes.append(DrawShape(
                    ShapeKind.POLYGON, [p1, p1 + step, p2 + step, p2],
                    colour=colour, fill=True, atoms=tag,
                ))
                p1 = p1 + step
                p2 = p2 + step
        else:
            step = 0
            for i, colour in enumerate(colours):
                # Even stripes from one edge, odd from the other.
                offset = perp * (rad - step * col_rad)
                if i % 2 == 0:
                    shapes.append(stroke(a1 - offset, a2 - offset, colour))
                else:
                    shapes.append(stroke(a1 + offset, a2 + offset, colour))
                    step += 1
    return shapes
