"""Atom label derivation: which symbol an atom shows and how it is laid out."""

from __future__ import annotations

import math

import numpy as np

from couper.construction.defaults import HYDROGEN_FIRST_ELEMENTS
from couper.model import AtomLabel, DrawOptions, Molecule, Orientation
from couper.rendering.geometry import is_linear_atom

# Neighbour-sum slopes steeper than 70 degrees count as vertical, so the
# NH of an indole in its usual layout is stacked vertically.
_VERT_SLOPE = math.tan(math.radians(70.0))


def atom_orientation(mol: Molecule, idx: int, coords: np.ndarray) -> Orientation:
    """Direction an atom's label should grow, away from its bonds.

    Args:
        mol: The molecule.
        idx: Atom index.
        coords: Molecule-space coordinates.

    Returns:
        ``W`` or ``E`` when the neighbours lie mostly to one side,
        ``N`` or ``S`` when they are mostly above or below.  Terminal
        atoms are always ``E`` or ``W``.  Isolated atoms are ``W`` for
        elements whose hydrides are written hydrogen first, else ``E``.
    """
    degree = mol.degree(idx)
    if degree == 0:
        if mol.atoms[idx].atomic_num in HYDROGEN_FIRST_ELEMENTS:
            return Orientation.W
        return Orientation.E

    origin = coords[idx]
    nbr_sum = np.zeros(2)
    for nbr in mol.neighbours(idx):
        nbr_sum += coords[nbr] - origin

    islope = 1000.0
    if abs(nbr_sum[0]) > 1.0e-4:
        islope = nbr_sum[1] / nbr_sum[0]
    if abs(islope) <= _VERT_SLOPE:
        orient = Orientation.W if nbr_sum[0] > 0.0 else Orientation.E
    else:
        orient = Orientation.S if nbr_sum[1] > 0.0 else Orientation.N

    if orient in (Orientation.N, Orientation.S):
        if degree == 1:
            if abs(islope) > _VERT_SLOPE:
                orient = Orientation.E
            else:
                orient = Orientation.W if nbr_sum[0] > 0.0 else Orientation.E
        elif degree == 3:
            # A near-vertical bond on the growth side would sit under
            # the hydrogens.
            for nbr in mol.neighbours(idx):
                bv = coords[nbr] - origin
                ang = math.degrees(math.atan2(bv[1], bv[0]))
                if 80.0 < ang < 100.0 and orient == Orientation.N:
                    orient = Orientation.S
                    break
                if -100.0 < ang < -80.0 and orient == Orientation.S:
                    orient = Orientation.N
                    break
    return orient


def atom_symbol(
    mol: Molecule, idx: int, coords: np.ndarray, options: DrawOptions,
) -> str:
    """Text drawn for an atom, with ``<sub>``/``<sup>`` markup.

    Carbon atoms are unlabelled unless isolated, linear or decorated
    with a charge, isotope, map number or (with *explicit_methyl*)
    hydrogens.  An empty string means the atom has no label.
    """
    if options.no_atom_labels:
        return ""
    if options.atom_labels is not None and idx in options.atom_labels:
        return options.atom_labels[idx]
    atom = mol.atoms[idx]
    if atom.label is not None:
        return atom.label

    z = atom.atomic_num
    degree = mol.degree(idx)
    if options.dummies_are_attachments and z == 0 and degree == 1:
        return ""
    iso = atom.isotope
    if options.atom_label_deuterium_tritium and z == 1 and iso in (2, 3):
        return "D" if iso == 2 else "T"

    pre: list[str] = []
    post: list[str] = []
    if atom.map_number:
        post.append(f":{atom.map_number}")

    num_h = 0 if (z == 6 and degree > 0) else atom.num_hs
    if options.explicit_methyl and z == 6 and degree == 1:
        num_h = atom.num_hs
    if num_h > 0:
        post.append("H" if num_h == 1 else f"H<sub>{num_h}</sub>")

    if atom.formal_charge:
        sign = "+" if atom.formal_charge > 0 else "-"
        mag = abs(atom.formal_charge)
        post.append(f"<sup>{mag if mag > 1 else ''}{sign}</sup>")

    if iso and (
        (options.isotope_labels and z != 0)
        or (options.dummy_isotope_labels and z == 0)
    ):
        pre.append(f"<sup>{iso}</sup>")

    element = atom.element
    if z == 1 and element in ("D", "T"):
        element = "H"
    show_element = (
        z != 6
        or degree == 0
        or bool(pre)
        or bool(post)
        or is_linear_atom(mol, idx, coords)
    )
    return "".join(pre) + (element if show_element else "") + "".join(post)


def atom_label(
    mol: Molecule, idx: int, coords: np.ndarray, options: DrawOptions,
) -> AtomLabel | None:
    """Resolved label of an atom, or ``None`` when it has no symbol."""
    text = atom_symbol(mol, idx, coords, options)
    if not text:
        return None
    return AtomLabel(text, atom_orientation(mol, idx, coords))
