"""Default atom colours and element groupings used when labelling atoms.

The palette follows the usual depiction conventions: carbon and
hydrogen in black, nitrogen blue, oxygen red, halogens green/brown/
purple, sulfur yellow, phosphorus orange.
"""

from __future__ import annotations

from couper.model import Colour

# Atomic number -> RGB.  Key -1 is the fallback for unlisted elements.
ATOM_COLOURS: dict[int, tuple[float, float, float]] = {
    -1: (0.0, 0.0, 0.0),
    0: (0.1, 0.1, 0.1),    # dummy
    1: (0.0, 0.0, 0.0),    # H
    6: (0.0, 0.0, 0.0),    # C
    7: (0.2, 0.2, 1.0),    # N
    8: (1.0, 0.2, 0.2),    # O
    9: (0.2, 0.8, 0.8),    # F
    15: (1.0, 0.5, 0.0),   # P
    16: (0.8, 0.8, 0.0),   # S
    17: (0.0, 0.802, 0.0),  # Cl
    35: (0.5, 0.3, 0.1),   # Br
    53: (0.63, 0.12, 0.94),  # I
}

MONOCHROME_COLOURS: dict[int, tuple[float, float, float]] = {
    -1: (0.0, 0.0, 0.0),
}

# Elements whose isolated hydrides are written hydrogen first (H2O, HCl).
HYDROGEN_FIRST_ELEMENTS: frozenset[int] = frozenset({
    8, 9, 16, 17, 34, 35, 52, 53, 84, 85,
})


def default_palette(monochrome: bool = False) -> dict[int, Colour]:
    """Return a copy of the default atom palette.

    Args:
        monochrome: Return the all-black palette instead.
    """
    return dict(MONOCHROME_COLOURS if monochrome else ATOM_COLOURS)
