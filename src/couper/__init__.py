"""Couper: two-dimensional depictions of molecules and reactions.

Couper lays molecules out on a canvas: bonds with stereo wedges and
multiple-bond offsets, atom labels, notes, highlights and legends, with
static output via matplotlib.

Example usage::

    from couper import Molecule, MoleculeDrawer

    mol = Molecule.build(
        ["C", "C", "O"],
        [(0, 1), (1, 2)],
        coords=[[0.0, 0.0], [1.5, 0.0], [2.25, 1.3]],
    )
    drawer = MoleculeDrawer(300, 300)
    drawer.draw_molecule(mol, legend="ethanol")
"""

from couper.model import (
    Atom,
    Bond,
    BondDirection,
    BondQuery,
    BondStereo,
    BondType,
    Colour,
    DrawOptions,
    DrawShape,
    LinkNode,
    Molecule,
    QueryKind,
    Reaction,
    ShapeKind,
    SubstanceGroup,
    normalise_colour,
)
# Rendering before construction: atom labels use the rendering geometry.
from couper.rendering import (
    Canvas,
    DrawStyle,
    FixedWidthTextMetrics,
    MoleculeDrawer,
    MoleculeMetadata,
    MplCanvas,
    MplTextMetrics,
    RecordingCanvas,
    TextMetrics,
    render_mpl,
)
from couper.construction import (
    ATOM_COLOURS,
    default_palette,
    load_options,
    reaction_layout,
    save_options,
)

__all__ = [
    "ATOM_COLOURS",
    "Atom",
    "Bond",
    "BondDirection",
    "BondQuery",
    "BondStereo",
    "BondType",
    "Canvas",
    "Colour",
    "DrawOptions",
    "DrawShape",
    "DrawStyle",
    "FixedWidthTextMetrics",
    "LinkNode",
    "MoleculeDrawer",
    "MoleculeMetadata",
    "Molecule",
    "MplCanvas",
    "MplTextMetrics",
    "QueryKind",
    "Reaction",
    "RecordingCanvas",
    "ShapeKind",
    "SubstanceGroup",
    "TextMetrics",
    "default_palette",
    "load_options",
    "normalise_colour",
    "reaction_layout",
    "render_mpl",
    "save_options",
]
