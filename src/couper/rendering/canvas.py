"""Canvas interface that the depiction engine draws onto.

Every primitive takes device-space points and an immutable
:class:`DrawStyle`; a canvas keeps no current colour, width, dash or
fill state between calls.  Primitives may also carry the indices of
the atoms they belong to, so interactive backends can map a drawn
segment back to an atom.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import numpy as np

from couper.model.colour import BLACK, RGB


@dataclass(frozen=True)
class DrawStyle:
    """Stroke and fill settings for one primitive.

    Attributes:
        colour: Line and fill colour.
        line_width: Line width in device pixels.
        dash: Dash pattern in device pixels, empty for a solid line.
        fill: Whether closed shapes are filled.
    """

    colour: RGB = BLACK
    line_width: float = 1.0
    dash: tuple[float, ...] = ()
    fill: bool = False

    def __post_init__(self) -> None:
        if self.line_width < 0:
            raise ValueError(
                f"line_width must be non-negative, got {self.line_width}"
            )
        object.__setattr__(self, "dash", tuple(float(d) for d in self.dash))


def arc_points(
    centre: np.ndarray,
    x_radius: float,
    y_radius: float,
    start_angle: float,
    stop_angle: float,
    n_steps: int = 60,
) -> np.ndarray:
    """Points along an elliptical arc in device space.

    Angles are in degrees, anticlockwise as seen on screen, so 90 is
    straight up even though device y points down.
    """
    sweep = stop_angle - start_angle
    n = max(2, int(n_steps * abs(sweep) / 360.0) + 1)
    angles = np.radians(np.linspace(start_angle, stop_angle, n))
    return np.column_stack([
        centre[0] + x_radius * np.cos(angles),
        centre[1] - y_radius * np.sin(angles),
    ])


class Canvas(ABC):
    """A device-space drawing surface.

    Args:
        width: Width in device pixels.
        height: Height in device pixels.

    Raises:
        ValueError: If a dimension is not positive.
    """

    supports_wavy_lines: bool = False

    def __init__(self, width: float, height: float) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(
                f"canvas size must be positive, got {width} x {height}"
            )
        self.width = width
        self.height = height

    @abstractmethod
    def clear(self, colour: RGB) -> None:
        """Fill the whole surface with *colour*."""

    @abstractmethod
    def draw_line(
        self, p1: np.ndarray, p2: np.ndarray, style: DrawStyle,
        atoms: tuple[int, ...] = (),
    ) -> None:
        """Draw a straight segment."""

    @abstractmethod
    def draw_polygon(
        self, points: np.ndarray, style: DrawStyle,
        atoms: tuple[int, ...] = (),
    ) -> None:
        """Draw a closed polygon, filled if ``style.fill``."""

    @abstractmethod
    def draw_ellipse(
        self, p1: np.ndarray, p2: np.ndarray, style: DrawStyle,
        atoms: tuple[int, ...] = (),
    ) -> None:
        """Draw the ellipse inscribed in the box with corners p1 and p2."""

    @abstractmethod
    def draw_text(
        self, text: str, centre: np.ndarray, font_size: float, colour: RGB,
    ) -> None:
        """Draw *text* centred on *centre* at *font_size* pixels."""

    def draw_arc(
        self, centre: np.ndarray, x_radius: float, y_radius: float,
        start_angle: float, stop_angle: float, style: DrawStyle,
        atoms: tuple[int, ...] = (),
    ) -> None:
        """Draw an elliptical arc; a pie slice when ``style.fill``.

        The default builds the arc from :meth:`draw_polygon` and
        :meth:`draw_line` calls.
        """
        pts = arc_points(centre, x_radius, y_radius, start_angle, stop_angle)
        if style.fill:
            self.draw_polygon(np.vstack([centre, pts]), style, atoms)
        else:
            self.draw_polyline(pts, style, atoms)

    def draw_polyline(
        self, points: np.ndarray, style: DrawStyle,
        atoms: tuple[int, ...] = (),
    ) -> None:
        """Draw an open line through *points*."""
        for p1, p2 in zip(points[:-1], points[1:]):
            self.draw_line(p1, p2, style, atoms)

    def draw_wavy_line(
        self, p1: np.ndarray, p2: np.ndarray, colour1: RGB, colour2: RGB,
        style: DrawStyle, atoms: tuple[int, ...] = (), n_segments: int = 16,
    ) -> None:
        """Draw a wavy line, each half in its own colour.

        Canvases without wavy rendering draw two straight halves.
        """
        mid = (p1 + p2) / 2
        self.draw_line(p1, mid, DrawStyle(colour1, style.line_width, style.dash), atoms)
        self.draw_line(mid, p2, DrawStyle(colour2, style.line_width, style.dash), atoms)


@dataclass(frozen=True, eq=False)
class CanvasCall:
    """One recorded primitive call.

    Attributes:
        kind: ``"clear"``, ``"line"``, ``"polygon"``, ``"ellipse"``,
            ``"arc"``, ``"wavy"`` or ``"text"``.
        points: Device-space points of the primitive.
        style: Style it was drawn with.
        atoms: Atom indices the primitive belongs to.
        text: Text of a ``"text"`` call.
        font_size: Font size of a ``"text"`` call.
        params: Extra numeric parameters (arc radii and angles).
        colours: Colours of the two halves of a ``"wavy"`` call.
    """

    kind: str
    points: np.ndarray
    style: DrawStyle = field(default_factory=DrawStyle)
    atoms: tuple[int, ...] = ()
    text: str = ""
    font_size: float = 0.0
    params: tuple[float, ...] = ()
    colours: tuple[RGB, ...] = ()


class RecordingCanvas(Canvas):
    """Canvas that stores every primitive call in order.

    Useful for tests and for backends that replay a drawing later.

    Attributes:
        calls: The recorded calls.
    """

    supports_wavy_lines = True

    def __init__(self, width: float, height: float) -> None:
        super().__init__(width, height)
        self.calls: list[CanvasCall] = []

    def _record(self, kind: str, points: np.ndarray, **kwargs: object) -> None:
        pts = np.array(points, dtype=float).reshape(-1, 2)
        self.calls.append(CanvasCall(kind, pts, **kwargs))

    def clear(self, colour: RGB) -> None:
        self._record("clear", np.zeros((0, 2)), style=DrawStyle(colour, fill=True))

    def draw_line(self, p1, p2, style, atoms=()):
        self._record("line", [p1, p2], style=style, atoms=tuple(atoms))

    def draw_polygon(self, points, style, atoms=()):
        self._record("polygon", points, style=style, atoms=tuple(atoms))

    def draw_ellipse(self, p1, p2, style, atoms=()):
        self._record("ellipse", [p1, p2], style=style, atoms=tuple(atoms))

    def draw_arc(
        self, centre, x_radius, y_radius, start_angle, stop_angle, style,
        atoms=(),
    ):
        self._record(
            "arc", [centre], style=style, atoms=tuple(atoms),
            params=(x_radius, y_radius, start_angle, stop_angle),
        )

    def draw_wavy_line(
        self, p1, p2, colour1, colour2, style, atoms=(), n_segments=16,
    ):
        self._record(
            "wavy", [p1, p2], style=style, atoms=tuple(atoms),
            colours=(colour1, colour2), params=(float(n_segments),),
        )

    def draw_text(self, text, centre, font_size, colour):
        self._record(
            "text", [centre], style=DrawStyle(colour), text=text,
            font_size=font_size,
        )

    def of_kind(self, kind: str) -> list[CanvasCall]:
        """The recorded calls of one kind, in order."""
        return [c for c in self.calls if c.kind == kind]
