"""Free-standing shapes drawn before or after the bonds and atoms."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

import numpy as np

from couper.model.colour import BLACK, RGB


class ShapeKind(StrEnum):
    """Kind of a :class:`DrawShape`.

    Attributes:
        POLYLINE: Open line through the points.
        POLYGON: Closed polygon through the points.
        ELLIPSE: Ellipse inscribed in the box spanned by two corner
            points.
    """

    POLYLINE = "polyline"
    POLYGON = "polygon"
    ELLIPSE = "ellipse"


@dataclass(frozen=True, eq=False)
class DrawShape:
    """An ordered point list in molecule space plus its drawing style.

    Attributes:
        kind: How the points are joined.
        points: Array of shape ``(n, 2)``.
        colour: Line and fill colour.
        line_width: Line width in device pixels.
        scale_line_width: Whether *line_width* scales with the drawing.
        fill: Whether closed shapes are filled.
        dash: Dash pattern in device pixels, empty for solid.
        atoms: Atom indices the shape belongs to, for hit-testing.
    """

    kind: ShapeKind
    points: np.ndarray
    colour: RGB = BLACK
    line_width: float = 1.0
    scale_line_width: bool = False
    fill: bool = False
    dash: tuple[float, ...] = ()
    atoms: tuple[int, ...] = field(default=())

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", ShapeKind(self.kind))
        pts = np.array(self.points, dtype=float)
        if pts.ndim != 2 or pts.shape[1] != 2:
            raise ValueError(
                f"points must have shape (n, 2), got {pts.shape}"
            )
        if self.kind == ShapeKind.ELLIPSE and len(pts) != 2:
            raise ValueError(
                f"an ellipse needs exactly 2 corner points, got {len(pts)}"
            )
        if len(pts) < 2:
            raise ValueError(f"a shape needs at least 2 points, got {len(pts)}")
        if self.line_width < 0:
            raise ValueError(
                f"line_width must be non-negative, got {self.line_width}"
            )
        pts.setflags(write=False)
        object.__setattr__(self, "points", pts)
