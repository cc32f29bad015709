"""Geometry primitives: perpendiculars, multiple-bond lines, intersections.

All points are molecule-space ``numpy`` arrays of shape ``(2,)``.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from couper._constants import LINEAR_ATOM_DOT, MULTIPLE_BOND_TRUNCATION
from couper.model import BondDirection, BondStereo, Molecule, StringRect

Segment = tuple[np.ndarray, np.ndarray]


def perpendicular(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Unit vector at 90 degrees to the line from *b* to *a*.

    Raises:
        ValueError: If *a* and *b* coincide.
    """
    bv = np.asarray(a, dtype=float) - np.asarray(b, dtype=float)
    length = np.hypot(bv[0], bv[1])
    if length < 1e-12:
        raise ValueError("perpendicular is undefined for coincident points")
    return np.array([-bv[1], bv[0]]) / length


def inner_perpendicular(
    a: np.ndarray, b: np.ndarray, c: np.ndarray,
) -> np.ndarray:
    """Perpendicular to a-b pointing to the side *c* bends towards.

    The sign is fixed by the dot product of the perpendicular with
    ``(a - b) - (b - c)``.
    """
    perp = perpendicular(a, b)
    obv = (a - b) - (b - c)
    if np.dot(obv, perp) < 0:
        perp = -perp
    return perp


def _ring_perpendicular(
    mol: Molecule,
    bond_idx: int,
    ring: tuple[int, ...],
    a1: np.ndarray,
    a2: np.ndarray,
    coords: np.ndarray,
) -> np.ndarray | None:
    """Inner perpendicular through a ring neighbour of the begin atom."""
    begin = mol.bonds[bond_idx].begin
    for bi in mol.atom_bonds(begin):
        if bi == bond_idx or bi not in ring:
            continue
        third = mol.bonds[bi].other_atom(begin)
        return inner_perpendicular(a1, a2, coords[third])
    return None


def bond_inside_ring(
    mol: Molecule,
    bond_idx: int,
    coords: np.ndarray,
    ends: Segment | None = None,
) -> np.ndarray:
    """Perpendicular pointing into the ring that holds a bond.

    A bond shared by several rings prefers a ring whose bonds all
    match its own aromaticity, so that the inner line of an aromatic
    bond is not drawn into a fused non-aromatic ring.

    Args:
        mol: The molecule.
        bond_idx: Index of the ring bond.
        coords: Atom coordinates, shape ``(n, 2)``.
        ends: Drawn ends of the bond, when shortened for labels.

    Returns:
        Unit perpendicular.  Falls back to the plain perpendicular when
        no ring neighbour is found.
    """
    bond = mol.bonds[bond_idx]
    a1, a2 = ends if ends is not None else (coords[bond.begin], coords[bond.end])
    rings = mol.rings_with_bond(bond_idx)
    if len(rings) > 1:
        for ring in rings:
            if all(mol.bonds[bi].aromatic == bond.aromatic for bi in ring):
                perp = _ring_perpendicular(mol, bond_idx, ring, a1, a2, coords)
                if perp is not None:
                    return perp
    if rings:
        perp = _ring_perpendicular(mol, bond_idx, rings[0], a1, a2, coords)
        if perp is not None:
            return perp
    return perpendicular(a1, a2)


def bond_inside_double_bond(
    mol: Molecule,
    bond_idx: int,
    coords: np.ndarray,
    ends: Segment | None = None,
) -> np.ndarray | None:
    """Perpendicular pointing into the angle made with a neighbour bond.

    The pivot is the begin atom when it has other neighbours, otherwise
    the end atom.  Returns ``None`` if neither atom has a neighbour
    besides the other.
    """
    bond = mol.bonds[bond_idx]
    a1, a2 = ends if ends is not None else (coords[bond.begin], coords[bond.end])
    if mol.degree(bond.begin) > 1:
        pivot, other, pivot_pt, other_pt = bond.begin, bond.end, a1, a2
    else:
        pivot, other, pivot_pt, other_pt = bond.end, bond.begin, a2, a1
    for nbr in mol.neighbours(pivot):
        if nbr != other:
            return inner_perpendicular(other_pt, pivot_pt, coords[nbr])
    return None


def is_linear_atom(mol: Molecule, idx: int, coords: np.ndarray) -> bool:
    """Whether a two-connected atom sits on a straight line of equal bonds."""
    if mol.degree(idx) != 2:
        return False
    b1, b2 = (mol.bonds[bi] for bi in mol.atom_bonds(idx))
    if b1.bond_type != b2.bond_type:
        return False
    v1 = coords[b1.other_atom(idx)] - coords[idx]
    v2 = coords[b2.other_atom(idx)] - coords[idx]
    n1 = np.hypot(*v1)
    n2 = np.hypot(*v2)
    if n1 < 1e-12 or n2 < 1e-12:
        return False
    return float(np.dot(v1 / n1, v2 / n2)) < LINEAR_ATOM_DOT


def double_bond_lines(
    mol: Molecule,
    bond_idx: int,
    coords: np.ndarray,
    offset: float,
    ends: Segment | None = None,
) -> tuple[Segment, Segment]:
    """The two lines of a double bond.

    Terminal and linear bonds get two lines symmetric about the bond
    axis.  Bonds of unknown geometry get a crossed pair.  Otherwise the
    first line is the bond itself and the second lies *2 * offset* to
    the inside (of the ring, or of the angle made with a neighbour
    bond), trimmed by 15% of the bond length at each end.

    Args:
        mol: The molecule.
        bond_idx: Index of the bond.
        coords: Atom coordinates.
        offset: Half the separation of the two lines.
        ends: Drawn ends of the bond, when shortened for labels.

    Returns:
        Two ``(start, end)`` segments.
    """
    bond = mol.bonds[bond_idx]
    a1, a2 = ends if ends is not None else (coords[bond.begin], coords[bond.end])
    if (
        mol.degree(bond.begin) == 1
        or mol.degree(bond.end) == 1
        or is_linear_atom(mol, bond.begin, coords)
        or is_linear_atom(mol, bond.end, coords)
    ):
        perp = perpendicular(a1, a2) * offset
        return (a1 + perp, a2 + perp), (a1 - perp, a2 - perp)

    if (
        bond.direction == BondDirection.EITHER_DOUBLE
        or bond.stereo == BondStereo.ANY
    ):
        perp = perpendicular(a1, a2) * offset
        return (a1 + perp, a2 - perp), (a1 - perp, a2 + perp)

    if mol.is_ring_bond(bond_idx):
        perp = bond_inside_ring(mol, bond_idx, coords, (a1, a2))
    else:
        found = bond_inside_double_bond(mol, bond_idx, coords, (a1, a2))
        perp = found if found is not None else perpendicular(a1, a2)
    bv = a1 - a2
    shift = perp * 2.0 * offset
    inner = (
        a1 - bv * MULTIPLE_BOND_TRUNCATION + shift,
        a2 + bv * MULTIPLE_BOND_TRUNCATION + shift,
    )
    return (a1.copy(), a2.copy()), inner


def triple_bond_lines(
    mol: Molecule,
    bond_idx: int,
    coords: np.ndarray,
    offset: float,
    ends: Segment | None = None,
) -> tuple[Segment, Segment]:
    """The two outer lines of a triple bond.

    Each sits *2 * offset* from the axis and is trimmed by 15% of the
    bond length at ends whose atom has other neighbours.
    """
    bond = mol.bonds[bond_idx]
    a1, a2 = ends if ends is not None else (coords[bond.begin], coords[bond.end])
    perp = perpendicular(a1, a2) * 2.0 * offset
    t1 = 0.0 if mol.degree(bond.begin) == 1 else MULTIPLE_BOND_TRUNCATION
    t2 = 0.0 if mol.degree(bond.end) == 1 else MULTIPLE_BOND_TRUNCATION
    bv = a1 - a2
    start = a1 - bv * t1
    stop = a2 + bv * t2
    return (start + perp, stop + perp), (start - perp, stop - perp)


def lines_intersect(
    p1: np.ndarray, p2: np.ndarray, p3: np.ndarray, p4: np.ndarray,
) -> np.ndarray | None:
    """Intersection of segments p1-p2 and p3-p4, or ``None``.

    Parallel segments never intersect, even when collinear.
    """
    d1 = p2 - p1
    d2 = p4 - p3
    denom = d1[0] * d2[1] - d1[1] * d2[0]
    if abs(denom) < 1e-12:
        return None
    diff = p3 - p1
    s = (diff[0] * d2[1] - diff[1] * d2[0]) / denom
    t = (diff[0] * d1[1] - diff[1] * d1[0]) / denom
    if 0.0 <= s <= 1.0 and 0.0 <= t <= 1.0:
        return p1 + s * d1
    return None


def _rect_edges(rect: StringRect) -> list[Segment]:
    c = rect.corners()
    return [(c[i], c[(i + 1) % 4]) for i in range(4)]


def line_intersects_rect(
    p1: np.ndarray, p2: np.ndarray, rect: StringRect, padding: float = 0.0,
) -> bool:
    """Whether segment p1-p2 touches *rect* grown by *padding*."""
    box = rect.padded(padding) if padding else rect
    if box.contains(p1) or box.contains(p2):
        return True
    return any(
        lines_intersect(p1, p2, e1, e2) is not None
        for e1, e2 in _rect_edges(box)
    )


def clip_segment_to_rect(
    start: np.ndarray, end: np.ndarray, rect: StringRect,
) -> np.ndarray | None:
    """Point where the segment from *start* first meets *rect*.

    Returns ``None`` when the segment misses the box or *start* is
    already inside it.
    """
    if rect.contains(start):
        return None
    best: np.ndarray | None = None
    best_d = np.inf
    for e1, e2 in _rect_edges(rect):
        hit = lines_intersect(start, end, e1, e2)
        if hit is None:
            continue
        d = float(np.dot(hit - start, hit - start))
        if d < best_d:
            best, best_d = hit, d
    return best


def arrow_head(
    begin: np.ndarray, end: np.ndarray, frac: float, angle: float,
) -> np.ndarray:
    """Triangle of an arrowhead at *end* for an arrow from *begin*.

    Args:
        begin: Tail of the arrow.
        end: Tip of the arrow.
        frac: Length of the head sides as a fraction of the arrow.
        angle: Half-angle of the head in radians.

    Returns:
        Array of shape ``(3, 2)``: one barb, the tip, the other barb.
    """
    delta = begin - end
    cos_a, sin_a = np.cos(angle), np.sin(angle)
    p1 = end + frac * np.array([
        delta[0] * cos_a + delta[1] * sin_a,
        delta[1] * cos_a - delta[0] * sin_a,
    ])
    p2 = end + frac * np.array([
        delta[0] * cos_a - delta[1] * sin_a,
        delta[1] * cos_a + delta[0] * sin_a,
    ])
    return np.array([p1, end, p2])


def bracket_points(
    p1: np.ndarray, p2: np.ndarray, ref_pt: np.ndarray,
) -> np.ndarray:
    """Polyline of a bracket along p1-p2 with ticks pointing at *ref_pt*.

    Returns:
        Array of shape ``(4, 2)``: tick end, p1, p2, tick end.
    """
    v = p2 - p1
    tick = np.array([v[1], -v[0]])
    length = np.hypot(*tick)
    if length < 1e-12:
        return np.array([p1, p1, p2, p2])
    tick = tick / length
    if np.dot(ref_pt - p1, tick) < 0:
        tick = -tick
    tick = tick * length * 0.1
    return np.array([p1 + tick, p1, p2, p2 + tick])


def rotate_points(points: np.ndarray, degrees: float) -> np.ndarray:
    """Rotate points clockwise about the origin by *degrees*."""
    pts = np.asarray(points, dtype=float)
    theta = -np.radians(degrees)
    c, s = np.cos(theta), np.sin(theta)
    rot = np.array([[c, -s], [s, c]])
    return pts @ rot.T


@dataclass(frozen=True)
class DisplayTransform:
    """Rotation followed by a shift, applied to input coordinates.

    Atom coordinates, bracket ends and fixed data-label positions all
    pass through the same transform so that they stay aligned.

    Attributes:
        rotation: Clockwise rotation in degrees.
        shift: Translation applied after rotating.
    """

    rotation: float = 0.0
    shift: tuple[float, float] = (0.0, 0.0)

    def __call__(self, points: np.ndarray) -> np.ndarray:
        pts = np.asarray(points, dtype=float)
        if self.rotation:
            pts = rotate_points(pts, self.rotation)
        return pts + np.asarray(self.shift)

    @classmethod
    def for_coords(
        cls, coords: np.ndarray, rotation: float = 0.0, centre: bool = False,
    ) -> DisplayTransform:
        """Transform that rotates *coords* and optionally centres them.

        Centring moves the centroid of the rotated coordinates to the
        origin.
        """
        shift = (0.0, 0.0)
        if centre and len(coords):
            rotated = rotate_points(coords, rotation) if rotation else coords
            mid = np.mean(rotated, axis=0)
            shift = (-float(mid[0]), -float(mid[1]))
        return cls(rotation, shift)
