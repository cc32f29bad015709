"""Core data model for couper: molecules, options, transform and render state.

Everything is re-exported here so that ``from couper.model import
Molecule`` works without knowing the submodule.
"""

from couper.model.annotation import (
    Annotation,
    AtomLabel,
    ClashSeverity,
    Orientation,
    RadicalMark,
    StringRect,
    TextAlign,
)
from couper.model.colour import (
    Colour,
    colours_match,
    normalise_colour,
    palette_colour,
)
from couper.model.draw_options import DrawOptions
from couper.model.elements import ELEMENT_SYMBOLS, atomic_number
from couper.model.molecule import (
    Atom,
    Bond,
    BondDirection,
    BondQuery,
    BondStereo,
    BondType,
    Molecule,
    QueryKind,
    Reaction,
)
from couper.model.render_context import ContextStack, RenderContext
from couper.model.scale_state import ScaleState
from couper.model.sgroup import LinkNode, SubstanceGroup
from couper.model.shapes import DrawShape, ShapeKind

__all__ = [
    "Annotation",
    "Atom",
    "AtomLabel",
    "Bond",
    "BondDirection",
    "BondQuery",
    "BondStereo",
    "BondType",
    "ClashSeverity",
    "Colour",
    "ContextStack",
    "DrawOptions",
    "DrawShape",
    "ELEMENT_SYMBOLS",
    "LinkNode",
    "Molecule",
    "Orientation",
    "QueryKind",
    "RadicalMark",
    "Reaction",
    "RenderContext",
    "ScaleState",
    "ShapeKind",
    "StringRect",
    "SubstanceGroup",
    "TextAlign",
    "atomic_number",
    "colours_match",
    "normalise_colour",
    "palette_colour",
]
