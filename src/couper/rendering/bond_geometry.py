"""Bond geometry: the lines, wedges, arrows and glyphs that draw one bond.

:func:`bond_primitives` turns a bond into a list of
:class:`BondPrimitive` records in molecule space.  Nothing is drawn
here; the drawer maps the primitives to device space and picks line
widths.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum

import numpy as np

from couper._constants import (
    DASHES,
    DOTS,
    HYDROGEN_BOND_COLOUR,
    QUERY_COLOUR,
    SHORT_DASHES,
    WEDGE_HALF_WIDTH,
)
from couper.model import (
    BondDirection,
    BondQuery,
    BondStereo,
    BondType,
    DrawOptions,
    Molecule,
    QueryKind,
    RenderContext,
)
from couper.model.colour import RGB, normalise_colour
from couper.rendering.annotations import label_glyphs
from couper.rendering.geometry import (
    Segment,
    arrow_head,
    clip_segment_to_rect,
    double_bond_lines,
    perpendicular,
    triple_bond_lines,
)
from couper.rendering.text import TextMetrics

# Bonds shorter than this (squared) get closer multiple-bond lines.
_SHORT_BOND_SQ = 1.4
_SHORT_BOND_OFFSET_FACTOR = 0.6

# Gap between a clipped bond end and the label glyphs, in font sizes.
_LABEL_GAP = 0.1

_DATIVE_HEAD_FRACTION = 0.2
_DATIVE_HEAD_ANGLE = math.pi / 6

# Wedges are narrowed above this scale so they do not grow absurdly wide.
_WIDE_WEDGE_SCALE = 40.0
_WIDE_WEDGE_FACTOR = 0.6


class PrimitiveKind(StrEnum):
    """Kind of a :class:`BondPrimitive`.

    Attributes:
        LINE: Segment between two points.
        POLYGON: Closed polygon through the points.
        ELLIPSE: Ellipse inscribed in the box spanned by two corners.
        WAVY: Wavy line between two points, each half in its own colour.
    """

    LINE = "line"
    POLYGON = "polygon"
    ELLIPSE = "ellipse"
    WAVY = "wavy"


@dataclass(frozen=True, eq=False)
class BondPrimitive:
    """One drawing primitive of a bond, in molecule space.

    Attributes:
        kind: What to draw.
        points: Array of shape ``(n, 2)``.
        colours: Drawing colour; two colours for :attr:`PrimitiveKind.WAVY`.
        dash: Dash pattern in device pixels, empty for solid.
        width_multiplier: Line width as a multiple of the bond width.
        line_width: Fixed width in pixels that never scales, overriding
            the bond width.  ``None`` uses the bond width.
        fill: Whether a polygon or ellipse is filled.
        highlight_scaling: Whether a highlighted bond scales this
            primitive's width by ``scale_highlight_bond_width`` rather
            than ``scale_bond_width``.
        atoms: Atoms the primitive belongs to.
    """

    kind: PrimitiveKind
    points: np.ndarray
    colours: tuple[RGB, ...]
    dash: tuple[float, ...] = ()
    width_multiplier: float = 1.0
    line_width: float | None = None
    fill: bool = False
    highlight_scaling: bool = True
    atoms: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", PrimitiveKind(self.kind))
        pts = np.array(self.points, dtype=float).reshape(-1, 2)
        pts.setflags(write=False)
        object.__setattr__(self, "points", pts)
        if not self.colours:
            raise ValueError("a primitive needs at least one colour")
        if self.kind == PrimitiveKind.WAVY and len(self.colours) != 2:
            raise ValueError(
                f"a wavy line needs 2 colours, got {len(self.colours)}"
            )
        if self.width_multiplier <= 0:
            raise ValueError(
                f"width_multiplier must be positive, got {self.width_multiplier}"
            )

    @property
    def colour(self) -> RGB:
        """The first (usually only) colour."""
        return self.colours[0]


@dataclass(frozen=True)
class BondRenderRequest:
    """Everything needed to draw one bond.

    Attributes:
        bond_idx: Index of the bond.
        begin: Begin atom index.
        end: End atom index.
        bond_type: Bond order.
        direction: Stereo display direction.
        stereo: Double-bond stereo flag.
        query: Query constraint, if any.
        begin_colour: Colour of the begin half.
        end_colour: Colour of the end half.
        highlight: Whether the bond is highlighted.
    """

    bond_idx: int
    begin: int
    end: int
    bond_type: BondType
    direction: BondDirection
    stereo: BondStereo
    query: BondQuery | None
    begin_colour: RGB
    end_colour: RGB
    highlight: bool = False

    @classmethod
    def for_bond(
        cls,
        mol: Molecule,
        bond_idx: int,
        begin_colour: RGB,
        end_colour: RGB,
        highlight: bool = False,
    ) -> BondRenderRequest:
        """Build the request for bond *bond_idx* of *mol*."""
        bond = mol.bonds[bond_idx]
        return cls(
            bond_idx, bond.begin, bond.end, bond.bond_type, bond.direction,
            bond.stereo, bond.query, normalise_colour(begin_colour),
            normalise_colour(end_colour), highlight,
        )


def multiple_bond_offset(
    p1: np.ndarray, p2: np.ndarray, options: DrawOptions,
) -> float:
    """Half the line spacing of a multiple bond between *p1* and *p2*."""
    d = p2 - p1
    if float(np.dot(d, d)) < _SHORT_BOND_SQ:
        return options.multiple_bond_offset * _SHORT_BOND_OFFSET_FACTOR
    return options.multiple_bond_offset


def _clip_at_label(
    ctx: RenderContext,
    metrics: TextMetrics,
    idx: int,
    nbr_pt: np.ndarray,
    pt: np.ndarray,
    label_font: float,
    padding: float,
) -> np.ndarray:
    """Move a bond end *pt* back towards *nbr_pt* until it clears a label."""
    glyphs = label_glyphs(ctx, metrics, idx, label_font)
    if not glyphs:
        return pt
    best = None
    best_d = math.inf
    for rect in glyphs:
        hit = clip_segment_to_rect(nbr_pt, pt, rect.padded(_LABEL_GAP * label_font))
        if hit is None:
            continue
        d = float(np.dot(hit - nbr_pt, hit - nbr_pt))
        if d < best_d:
            best, best_d = hit, d
    if best is not None:
        pt = best
    if padding > 0.0:
        v = nbr_pt - pt
        length = float(np.hypot(*v))
        if length > 1e-12:
            pt = pt + v / length * padding
    return pt


def bond_ends(
    mol: Molecule,
    bond_idx: int,
    ctx: RenderContext,
    metrics: TextMetrics,
    options: DrawOptions,
    label_font: float,
) -> Segment:
    """Drawn ends of a bond, shortened to clear the atom labels.

    Each end that carries a label stops at the edge of the first glyph
    box the bond meets, then a further *additional_atom_label_padding*
    towards the other atom.
    """
    bond = mol.bonds[bond_idx]
    a1 = ctx.atom_coords[bond.begin]
    a2 = ctx.atom_coords[bond.end]
    pad = options.additional_atom_label_padding
    e1 = _clip_at_label(ctx, metrics, bond.begin, a2, a1, label_font, pad)
    e2 = _clip_at_label(ctx, metrics, bond.end, a1, a2, label_font, pad)
    return e1, e2


def query_dash(scale: float) -> tuple[float, ...]:
    """Short-dash pattern for query bonds, shortened at small scales."""
    on, off = SHORT_DASHES
    if scale < 10:
        return (on / 4, off / 3)
    if scale < 20:
        return (on / 2, off / 1.5)
    return (on, off)


def wedge_is_inverted(mol: Molecule, bond_idx: int) -> bool:
    """Whether a wedge's narrow end belongs on its end atom.

    True when the end atom carries the chirality flag and the begin
    atom does not.
    """
    bond = mol.bonds[bond_idx]
    return mol.atoms[bond.end].chiral and not mol.atoms[bond.begin].chiral


def wedge_dash_count(scale: float, length_sq: float) -> int:
    """Number of hash lines in a dashed wedge."""
    factor = scale * length_sq
    if factor < 20:
        return 3
    if factor < 30:
        return 4
    if factor < 45:
        return 5
    return 6


class _Builder:
    """Collects the primitives of one bond with the right atom tags."""

    def __init__(
        self, request: BondRenderRequest, coords: np.ndarray, split: bool,
    ) -> None:
        self.request = request
        self.coords = coords
        self.split = split
        self.prims: list[BondPrimitive] = []

    def tag(self, idx: int) -> tuple[int, ...]:
        """Atoms owning a part of the bond nearer to atom *idx*."""
        if self.split:
            return (idx,)
        return (self.request.begin, self.request.end)

    def add(self, kind: PrimitiveKind, points, colours, **kwargs) -> None:
        self.prims.append(BondPrimitive(kind, points, tuple(colours), **kwargs))

    def segment(
        self, p1: np.ndarray, p2: np.ndarray, colour: RGB,
        atoms: tuple[int, ...], dash: tuple[float, ...] = (), **kwargs,
    ) -> None:
        self.add(PrimitiveKind.LINE, [p1, p2], (colour,), dash=dash,
                 atoms=atoms, **kwargs)

    def line(
        self, p1: np.ndarray, p2: np.ndarray, c1: RGB, c2: RGB,
        dash: tuple[float, ...] = (), **kwargs,
    ) -> None:
        """A bond line, split at its midpoint when colours or tags differ."""
        req = self.request
        if not self.split and c1 == c2:
            self.segment(p1, p2, c1, (req.begin, req.end), dash, **kwargs)
            return
        mid = (p1 + p2) / 2
        self.segment(p1, mid, c1, self.tag(req.begin), dash, **kwargs)
        self.segment(mid, p2, c2, self.tag(req.end), dash, **kwargs)

    def double(
        self, mol: Molecule, ends: Segment, offset: float, c1: RGB, c2: RGB,
        dash: tuple[float, ...] = (),
    ) -> None:
        """Both lines of a double bond, the second with *dash*."""
        l1, l2 = double_bond_lines(
            mol, self.request.bond_idx, self.coords, offset, ends,
        )
        self.line(l1[0], l1[1], c1, c2)
        self.line(l2[0], l2[1], c1, c2, dash)

    def part_double(
        self, mol: Molecule, ends: Segment, offset: float, colour: RGB,
        atoms: tuple[int, ...], dash: tuple[float, ...] = (),
    ) -> None:
        """Double lines over part of a bond, in one colour and tag."""
        l1, l2 = double_bond_lines(
            mol, self.request.bond_idx, self.coords, offset, ends,
        )
        self.segment(l1[0], l1[1], colour, atoms)
        self.segment(l2[0], l2[1], colour, atoms, dash)


def _wedge(
    b: _Builder,
    mol: Molecule,
    ends: Segment,
    c1: RGB,
    c2: RGB,
    scale: float,
    options: DrawOptions,
) -> None:
    req = b.request
    cds1, cds2 = ends
    narrow, wide = req.begin, req.end
    if wedge_is_inverted(mol, req.bond_idx):
        cds1, cds2 = cds2, cds1
        c1, c2 = c2, c1
        narrow, wide = wide, narrow
    if options.single_colour_wedge_bonds:
        c1 = c2 = options.symbol_colour

    disp = perpendicular(cds1, cds2) * WEDGE_HALF_WIDTH
    if scale > _WIDE_WEDGE_SCALE:
        disp = disp * _WIDE_WEDGE_FACTOR
    end1 = cds2 + disp
    end2 = cds2 - disp
    tag1 = (narrow,) if b.split else (narrow, wide)
    tag2 = (wide,) if b.split else (narrow, wide)

    if req.direction == BondDirection.BEGIN_DASH:
        length_sq = float(np.dot(cds1 - cds2, cds1 - cds2))
        n = wedge_dash_count(scale, length_sq)
        e1 = end1 - cds1
        e2 = end2 - cds1
        for i in range(1, n + 1):
            second = i >= n // 2 + 1
            b.segment(
                cds1 + e1 * (i / n), cds1 + e2 * (i / n),
                c2 if second else c1, tag2 if second else tag1,
                line_width=1.0, highlight_scaling=False,
            )
        return

    if c1 == c2 and not b.split:
        b.add(PrimitiveKind.POLYGON, [cds1, end1, end2], (c1,), fill=True,
              highlight_scaling=False, atoms=tag1)
        return
    mid1 = cds1 + (end1 - cds1) * 0.5
    mid2 = cds1 + (end2 - cds1) * 0.5
    b.add(PrimitiveKind.POLYGON, [cds1, mid1, mid2], (c1,), fill=True,
          highlight_scaling=False, atoms=tag1)
    b.add(PrimitiveKind.POLYGON, [mid1, end2, end1], (c2,), fill=True,
          highlight_scaling=False, atoms=tag2)
    b.add(PrimitiveKind.POLYGON, [mid1, mid2, end2], (c2,), fill=True,
          highlight_scaling=False, atoms=tag2)


def _dative(b: _Builder, ends: Segment, c1: RGB, c2: RGB, reverse: bool) -> None:
    req = b.request
    cds1, cds2 = ends
    tail, head = req.begin, req.end
    if reverse:
        cds1, cds2 = cds2, cds1
        c1, c2 = c2, c1
        tail, head = head, tail
    mid = (cds1 + cds2) * 0.5
    tail_tag = (tail,) if b.split else (req.begin, req.end)
    head_tag = (head,) if b.split else (req.begin, req.end)
    b.segment(cds1, mid, c1, tail_tag, highlight_scaling=False)
    tip = cds2 + (mid - cds2) * _DATIVE_HEAD_FRACTION
    b.segment(mid, tip, c2, head_tag, highlight_scaling=False)
    b.add(
        PrimitiveKind.POLYGON,
        arrow_head(mid, tip, _DATIVE_HEAD_FRACTION, _DATIVE_HEAD_ANGLE),
        (c2,), fill=True, highlight_scaling=False, atoms=head_tag,
    )


def _normal_bond(
    b: _Builder,
    mol: Molecule,
    ends: Segment,
    offset: float,
    c1: RGB,
    c2: RGB,
    scale: float,
    options: DrawOptions,
) -> None:
    """Geometry of a bond without a query, dispatched on its order."""
    req = b.request
    a1, a2 = ends
    match req.bond_type:
        case BondType.DOUBLE:
            b.double(mol, ends, offset, c1, c2)
        case BondType.AROMATIC:
            b.double(mol, ends, offset, c1, c2, DASHES)
        case BondType.TRIPLE:
            b.line(a1, a2, c1, c2)
            l1, l2 = triple_bond_lines(mol, req.bond_idx, b.coords, offset, ends)
            b.line(l1[0], l1[1], c1, c2)
            b.line(l2[0], l2[1], c1, c2)
        case BondType.DATIVE | BondType.DATIVE_R:
            _dative(b, ends, c1, c2, reverse=False)
        case BondType.DATIVE_L:
            _dative(b, ends, c1, c2, reverse=True)
        case BondType.ZERO:
            b.line(a1, a2, c1, c2, SHORT_DASHES)
        case BondType.HYDROGEN:
            b.line(a1, a2, HYDROGEN_BOND_COLOUR, HYDROGEN_BOND_COLOUR, DOTS)
        case BondType.SINGLE:
            match req.direction:
                case BondDirection.BEGIN_WEDGE | BondDirection.BEGIN_DASH:
                    _wedge(b, mol, ends, c1, c2, scale, options)
                case BondDirection.UNKNOWN:
                    b.add(PrimitiveKind.WAVY, [a1, a2], (c1, c2),
                          highlight_scaling=False, atoms=(req.begin, req.end))
                case BondDirection.NONE | BondDirection.EITHER_DOUBLE:
                    b.line(a1, a2, c1, c2)
        case BondType.OTHER:
            b.line(a1, a2, c1, c2)


def _ring_glyph(mid: np.ndarray, seg: np.ndarray) -> np.ndarray:
    """Small hexagon centred on *mid*, one vertex along *seg*."""
    s = seg / (np.hypot(*seg) * 6)
    r1 = np.array([0.5 * s[0] - 0.866 * s[1], 0.866 * s[0] + 0.5 * s[1]])
    r2 = np.array([0.5 * r1[0] - 0.866 * r1[1], 0.866 * r1[0] + 0.5 * r1[1]])
    return np.array([
        mid + s, mid + r1, mid + r2, mid - s, mid - r1, mid - r2, mid + s,
    ])


def _query_bond(
    b: _Builder,
    mol: Molecule,
    ends: Segment,
    offset: float,
    scale: float,
    options: DrawOptions,
) -> None:
    """Geometry of a query bond, all in the query colour."""
    req = b.request
    query = req.query
    a1, a2 = ends
    mid = (a1 + a2) / 2
    col = QUERY_COLOUR
    tdash = query_dash(scale)
    first, second = b.tag(req.begin), b.tag(req.end)
    if query.negated:
        b.line(a1, a2, col, col, DOTS)
        return
    match query.kind:
        case QueryKind.SINGLE_OR_DOUBLE:
            third = a1 + (a2 - a1) / 3.0
            b.segment(a1, third, col, first)
            b.part_double(mol, (third, a2), offset, col, second)
        case QueryKind.SINGLE_OR_AROMATIC:
            b.segment(a1, mid, col, first)
            b.part_double(mol, (mid, a2), offset, col, second, tdash)
        case QueryKind.DOUBLE_OR_AROMATIC:
            b.part_double(mol, (a1, mid), offset, col, first)
            b.part_double(mol, (mid, a2), offset, col, second, tdash)
        case QueryKind.ANY:
            b.line(a1, a2, col, col, tdash)
        case QueryKind.ORDER_AND_RING:
            _normal_bond(b, mol, ends, offset, col, col, scale, options)
            b.add(PrimitiveKind.POLYGON, _ring_glyph(mid, a2 - a1), (col,),
                  line_width=1.0, atoms=(req.begin, req.end))
        case QueryKind.ORDER_AND_CHAIN:
            _normal_bond(b, mol, ends, offset, col, col, scale, options)
            seg = a2 - a1
            seg = seg / (np.hypot(*seg) * 10)
            corner = np.full(2, np.hypot(*seg))
            for centre in (mid + seg, mid - seg):
                b.add(PrimitiveKind.ELLIPSE, [centre + corner, centre - corner],
                      (col,), line_width=1.0, atoms=(req.begin, req.end))
        case QueryKind.OTHER:
            b.line(a1, a2, col, col, DOTS)


def bond_primitives(
    mol: Molecule,
    request: BondRenderRequest,
    ctx: RenderContext,
    metrics: TextMetrics,
    options: DrawOptions,
    scale: float,
    label_font: float,
) -> list[BondPrimitive]:
    """Primitives that draw one bond.

    Args:
        mol: The molecule.
        request: The bond and its colours.
        ctx: Render context holding atom coordinates and labels.
        metrics: Text metrics, for shortening bonds at labels.
        options: Drawing options.
        scale: Current device pixels per molecule unit.  Wedge widths,
            hash counts and query dash lengths depend on it.
        label_font: Atom-label font size in molecule units.

    Returns:
        Primitives in drawing order; empty for a zero-length bond.
    """
    coords = ctx.atom_coords
    a1, a2 = coords[request.begin], coords[request.end]
    d = a2 - a1
    if float(np.dot(d, d)) < 1e-12:
        return []
    offset = multiple_bond_offset(a1, a2, options)
    ends = bond_ends(mol, request.bond_idx, ctx, metrics, options, label_font)
    # Labels close enough to swallow the whole bond.
    if float(np.dot(ends[1] - ends[0], d)) <= 1e-12:
        return []

    b = _Builder(request, coords, options.split_bonds)
    if request.query is not None:
        _query_bond(b, mol, ends, offset, scale, options)
    else:
        _normal_bond(
            b, mol, ends, offset, request.begin_colour, request.end_colour,
            scale, options,
        )
    return b.prims
