"""Shared constants used across the model and rendering layers."""

MULTIPLE_BOND_TRUNCATION: float = 0.15
"""Fraction of bond length trimmed from each end of an inner double-bond
line and of the outer triple-bond lines."""

LINEAR_ATOM_DOT: float = -0.95
"""Dot product of unit bond vectors below which a two-connected atom is
treated as linear."""

DEGENERATE_SPAN: float = 1e-4
"""Bounding-box extents below this are replaced by a unit span."""

SCALE_TOLERANCE: float = 0.1
"""Scale change below which the label-fitting iteration stops."""

MAX_SCALE_ITERATIONS: int = 50
"""Upper bound on label-fitting iterations."""

WEDGE_HALF_WIDTH: float = 0.15
"""Half-width of the wide end of a wedge, in molecule units."""

QUERY_COLOUR: tuple[float, float, float] = (0.5, 0.5, 0.5)
"""Colour of query-bond glyphs."""

HYDROGEN_BOND_COLOUR: tuple[float, float, float] = (0.2, 0.2, 0.2)
"""Colour of hydrogen-bond stand-in lines."""

CLOSE_CONTACT_COLOUR: tuple[float, float, float] = (1.0, 0.0, 0.0)
"""Colour of the squares flagging atoms drawn too close together."""

DOTS: tuple[float, ...] = (2.0, 6.0)
DASHES: tuple[float, ...] = (6.0, 6.0)
SHORT_DASHES: tuple[float, ...] = (2.0, 2.0)
"""Dash patterns in device pixels (on, off)."""

NOTE_RADIUS_STEP: float = 0.25
"""Radial increment between atom-note candidate rings."""

BOND_NOTE_FRACTIONS: tuple[float, ...] = (0.5, 0.33, 0.66, 0.25, 0.75)
"""Positions along a bond tried, in order, for a bond note."""

BRACKET_CROSSING_FRACTION: float = 0.333
"""Where along a crossed bond a link-node bracket is drawn."""

MIN_LEGEND_HEIGHT: int = 20
"""Smallest legend strip height in device pixels."""
