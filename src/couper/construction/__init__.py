"""Depiction construction: default colours, atom labels and reaction layout."""

from couper.construction.defaults import (
    ATOM_COLOURS,
    MONOCHROME_COLOURS,
    default_palette,
)
from couper.construction.labels import atom_label, atom_orientation, atom_symbol
from couper.construction.reaction import ReactionLayout, ReactionRole, reaction_layout
from couper.construction.rings import find_bond_rings
from couper.construction.styles import load_options, save_options

__all__ = [
    "ATOM_COLOURS",
    "MONOCHROME_COLOURS",
    "ReactionLayout",
    "ReactionRole",
    "atom_label",
    "atom_orientation",
    "atom_symbol",
    "default_palette",
    "find_bond_rings",
    "load_options",
    "reaction_layout",
    "save_options",
]
