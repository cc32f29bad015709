"""Canvas backend drawing onto a matplotlib :class:`~matplotlib.axes.Axes`."""

from __future__ import annotations

import numpy as np
from matplotlib.axes import Axes
from matplotlib.lines import Line2D
from matplotlib.patches import Ellipse, Polygon, Rectangle

from couper.model.colour import RGB
from couper.rendering.canvas import Canvas, DrawStyle

# Points along each half-wave of a wavy line.
_WAVE_RESOLUTION = 8


class MplCanvas(Canvas):
    """Draws device-space primitives into a matplotlib axes.

    The axes are set up so that one data unit is one device pixel, with
    y pointing down.  Line widths, dash lengths and font sizes given in
    device pixels are converted to points from the axes' size on the
    figure.  Every primitive gets a higher ``zorder`` than the last, so
    matplotlib paints them in call order.

    Args:
        ax: Axes to draw into.
        width: Width in device pixels.
        height: Height in device pixels.

    Raises:
        ValueError: If a dimension is not positive.
    """

    supports_wavy_lines = True

    def __init__(self, ax: Axes, width: float, height: float) -> None:
        super().__init__(width, height)
        self.ax = ax
        ax.set_xlim(0, width)
        ax.set_ylim(height, 0)
        ax.set_aspect("equal")
        ax.axis("off")
        fig = ax.get_figure()
        box = ax.get_position()
        fig_w, fig_h = fig.get_size_inches()
        # Points per device pixel along the limiting axes direction.
        self.pt_per_px = 72.0 * min(
            box.width * fig_w / width, box.height * fig_h / height,
        )
        self._zorder = 1.0

    def _next_z(self) -> float:
        self._zorder += 1.0
        return self._zorder

    def _line_kwargs(self, style: DrawStyle) -> dict:
        kwargs = {
            "color": style.colour,
            "linewidth": style.line_width * self.pt_per_px,
        }
        if style.dash:
            # matplotlib scales dash lengths by the line width.
            lw = max(style.line_width, 1e-6)
            kwargs["linestyle"] = (0, tuple(d / lw for d in style.dash))
        return kwargs

    def clear(self, colour: RGB) -> None:
        self.ax.add_patch(Rectangle(
            (0, 0), self.width, self.height, facecolor=colour,
            edgecolor="none", zorder=self._next_z(),
        ))

    def draw_line(self, p1, p2, style, atoms=()):
        self.ax.add_line(Line2D(
            [p1[0], p2[0]], [p1[1], p2[1]], solid_capstyle="round",
            zorder=self._next_z(), **self._line_kwargs(style),
        ))

    def draw_polyline(self, points, style, atoms=()):
        pts = np.asarray(points, dtype=float)
        self.ax.add_line(Line2D(
            pts[:, 0], pts[:, 1], solid_capstyle="round",
            solid_joinstyle="round", zorder=self._next_z(),
            **self._line_kwargs(style),
        ))

    def draw_polygon(self, points, style, atoms=()):
        self.ax.add_patch(Polygon(
            np.asarray(points, dtype=float), closed=True,
            facecolor=style.colour if style.fill else "none",
            edgecolor=style.colour,
            linewidth=style.line_width * self.pt_per_px,
            joinstyle="round",
            zorder=self._next_z(),
        ))

    def draw_ellipse(self, p1, p2, style, atoms=()):
        p1 = np.asarray(p1, dtype=float)
        p2 = np.asarray(p2, dtype=float)
        width, height = np.abs(p2 - p1)
        self.ax.add_patch(Ellipse(
            (p1 + p2) / 2, width, height,
            facecolor=style.colour if style.fill else "none",
            edgecolor=style.colour,
            linewidth=style.line_width * self.pt_per_px,
            zorder=self._next_z(),
        ))

    def draw_wavy_line(
        self, p1, p2, colour1, colour2, style, atoms=(), n_segments=16,
    ):
        """Draw a sine wave of *n_segments* half-waves from p1 to p2."""
        p1 = np.asarray(p1, dtype=float)
        p2 = np.asarray(p2, dtype=float)
        delta = p2 - p1
        length = np.hypot(*delta)
        if length < 1e-12 or n_segments < 1:
            return
        perp = np.array([-delta[1], delta[0]]) / length
        amplitude = length / n_segments / 2
        t = np.linspace(0.0, 1.0, n_segments * _WAVE_RESOLUTION + 1)
        offsets = amplitude * np.sin(np.pi * n_segments * t)
        pts = p1 + np.outer(t, delta) + np.outer(offsets, perp)
        half = len(pts) // 2
        self.draw_polyline(
            pts[:half + 1], DrawStyle(colour1, style.line_width, style.dash),
        )
        self.draw_polyline(
            pts[half:], DrawStyle(colour2, style.line_width, style.dash),
        )

    def draw_text(self, text, centre, font_size, colour):
        self.ax.text(
            centre[0], centre[1], text,
            fontsize=font_size * self.pt_per_px,
            color=colour,
            ha="center",
            va="center",
            zorder=self._next_z(),
        )
