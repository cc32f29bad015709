"""Text footprints: string rectangles, atom labels and annotations.

All geometry here is in molecule space with y pointing up.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum, StrEnum

import numpy as np


class Orientation(StrEnum):
    """Direction in which a multi-piece atom label grows from the atom.

    ``E`` means the element symbol sits on the atom and any attached
    hydrogens and charges follow to the east (right).  ``N`` and ``S``
    stack the pieces vertically.  ``C`` is a single centred piece.
    """

    N = "N"
    E = "E"
    S = "S"
    W = "W"
    C = "C"


class TextAlign(StrEnum):
    """Horizontal alignment of text relative to its anchor point."""

    START = "start"
    MIDDLE = "middle"
    END = "end"


class ClashSeverity(IntEnum):
    """How badly a candidate annotation position collides.

    Higher is worse.  A position is scored by the worst clash found.
    """

    NONE = 0
    ANNOTATION = 1
    LABEL = 2
    BOND = 3


@dataclass(frozen=True)
class StringRect:
    """Axis-aligned box given by its centre and size.

    Attributes:
        x: Centre x.
        y: Centre y.
        width: Full width.
        height: Full height.
    """

    x: float
    y: float
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(
                f"rect size must be non-negative, "
                f"got {self.width} x {self.height}"
            )

    @property
    def left(self) -> float:
        return self.x - self.width / 2

    @property
    def right(self) -> float:
        return self.x + self.width / 2

    @property
    def bottom(self) -> float:
        return self.y - self.height / 2

    @property
    def top(self) -> float:
        return self.y + self.height / 2

    @property
    def centre(self) -> np.ndarray:
        return np.array([self.x, self.y])

    def translated(self, dx: float, dy: float) -> StringRect:
        """Return a copy moved by ``(dx, dy)``."""
        return replace(self, x=self.x + dx, y=self.y + dy)

    def padded(self, pad: float) -> StringRect:
        """Return a copy grown by *pad* on every side."""
        return replace(
            self, width=self.width + 2 * pad, height=self.height + 2 * pad,
        )

    def corners(self) -> np.ndarray:
        """Corners as a ``(4, 2)`` array, anticlockwise from bottom-left."""
        return np.array([
            [self.left, self.bottom],
            [self.right, self.bottom],
            [self.right, self.top],
            [self.left, self.top],
        ])

    def contains(self, point: np.ndarray) -> bool:
        return bool(
            self.left <= point[0] <= self.right
            and self.bottom <= point[1] <= self.top
        )

    def intersects(self, other: StringRect, padding: float = 0.0) -> bool:
        """Whether the two boxes overlap once each is grown by *padding*."""
        return not (
            self.right + padding < other.left - padding
            or other.right + padding < self.left - padding
            or self.top + padding < other.bottom - padding
            or other.top + padding < self.bottom - padding
        )

    @staticmethod
    def bounding(rects: list[StringRect]) -> StringRect:
        """Smallest box enclosing all of *rects*."""
        if not rects:
            raise ValueError("bounding() needs at least one rect")
        left = min(r.left for r in rects)
        right = max(r.right for r in rects)
        bottom = min(r.bottom for r in rects)
        top = max(r.top for r in rects)
        return StringRect(
            (left + right) / 2, (bottom + top) / 2, right - left, top - bottom,
        )


@dataclass(frozen=True)
class AtomLabel:
    """Resolved symbol of an atom and the way it is laid out.

    Attributes:
        text: Label text, possibly with ``<sub>``/``<sup>`` markup.
        orientation: Direction the label grows from the atom.
    """

    text: str
    orientation: Orientation = Orientation.E

    def __post_init__(self) -> None:
        object.__setattr__(self, "orientation", Orientation(self.orientation))


@dataclass(frozen=True)
class Annotation:
    """A floating text label with a resolved position.

    Attributes:
        text: The text.
        x: Anchor x in molecule space.
        y: Anchor y in molecule space (vertical centre of the text).
        width: Text width in molecule units, or in device pixels when
            *scale_text* is false.
        height: Text height, in the same units as *width*.
        align: How the text sits relative to the anchor.
        scale_text: Whether the font scales with the drawing.  Unscaled
            text uses the annotation font size in device units.
        font_scale: Font size relative to the atom-label font.
        colour: Text colour, or ``None`` for the annotation default.
        clash: Severity of the worst collision at the chosen position.
    """

    text: str
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0
    align: TextAlign = TextAlign.MIDDLE
    scale_text: bool = True
    font_scale: float = 0.5
    colour: tuple[float, float, float] | None = None
    clash: ClashSeverity = ClashSeverity.NONE

    def __post_init__(self) -> None:
        object.__setattr__(self, "align", TextAlign(self.align))

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y])

    @property
    def rect(self) -> StringRect:
        """Footprint of the text, taking alignment into account."""
        if self.align == TextAlign.START:
            cx = self.x + self.width / 2
        elif self.align == TextAlign.END:
            cx = self.x - self.width / 2
        else:
            cx = self.x
        return StringRect(cx, self.y, self.width, self.height)


@dataclass(frozen=True)
class RadicalMark:
    """Footprint of the unpaired-electron dots of one atom.

    Attributes:
        atom: Atom index.
        rect: Box the dots are drawn in.
        orientation: Side of the atom the dots are on.
        count: Number of unpaired electrons.
    """

    atom: int
    rect: StringRect
    orientation: Orientation
    count: int
