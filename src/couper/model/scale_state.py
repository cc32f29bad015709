from __future__ import annotations

import dataclasses
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

import numpy as np


@dataclass
class ScaleState:
    """Transform between molecule space and device space for one panel.

    Molecule space has y pointing up; device space has y pointing
    down with the origin at the top-left corner of the drawing
    surface.  A point is mapped by::

        x_dev = scale * (x - x_min + x_trans) + x_offset
        y_dev = panel_height - legend_height
                - (scale * (y - y_min + y_trans) - y_offset)

    Device coordinates depend on every field, so they must be
    recomputed after any change of scale or translation.

    Attributes:
        panel_width: Width of one panel in device pixels.
        panel_height: Height of one panel in device pixels.
        scale: Device pixels per molecule unit.
        x_min: Left edge of the fitted box in molecule space.
        y_min: Bottom edge of the fitted box in molecule space.
        x_range: Width of the fitted box in molecule space.
        y_range: Height of the fitted box in molecule space.
        x_trans: Horizontal centring translation, molecule units.
        y_trans: Vertical centring translation, molecule units.
        x_offset: Horizontal pixel offset of the current panel.
        y_offset: Vertical pixel offset of the current panel.
        legend_height: Height of the legend strip at the bottom of the
            panel, in device pixels.
        font_scale: Scale the text engine currently draws at.
        base_font_size: Atom-label font size in molecule units at
            scale 1.

    Raises:
        ValueError: If a panel dimension is not positive.
    """

    panel_width: float
    panel_height: float
    scale: float = 1.0
    x_min: float = 0.0
    y_min: float = 0.0
    x_range: float = 1.0
    y_range: float = 1.0
    x_trans: float = 0.0
    y_trans: float = 0.0
    x_offset: float = 0.0
    y_offset: float = 0.0
    legend_height: float = 0.0
    font_scale: float = 1.0
    base_font_size: float = 0.6

    def __post_init__(self) -> None:
        if self.panel_width <= 0:
            raise ValueError(
                f"panel_width must be positive, got {self.panel_width}"
            )
        if self.panel_height <= 0:
            raise ValueError(
                f"panel_height must be positive, got {self.panel_height}"
            )

    @property
    def draw_height(self) -> float:
        """Panel height left for the molecule once the legend is removed."""
        return self.panel_height - self.legend_height

    def to_device(self, points: np.ndarray) -> np.ndarray:
        """Map molecule-space points to device space.

        Args:
            points: A point of shape ``(2,)`` or points of shape
                ``(n, 2)``.

        Returns:
            Device coordinates with the same shape.
        """
        pts = np.asarray(points, dtype=float)
        x = self.scale * (pts[..., 0] - self.x_min + self.x_trans) + self.x_offset
        y = self.scale * (pts[..., 1] - self.y_min + self.y_trans) - self.y_offset
        y = self.panel_height - self.legend_height - y
        return np.stack([x, y], axis=-1)

    def to_molecule(self, points: np.ndarray) -> np.ndarray:
        """Map device-space points back to molecule space.

        Exact inverse of :meth:`to_device`.
        """
        pts = np.asarray(points, dtype=float)
        sx = pts[..., 0] - self.x_offset
        sy = pts[..., 1] - self.y_offset
        x = sx / self.scale + self.x_min - self.x_trans
        y = (
            self.y_min - self.y_trans
            - (sy - self.panel_height + self.legend_height) / self.scale
        )
        return np.stack([x, y], axis=-1)

    def to_device_length(self, length: float) -> float:
        """Convert a molecule-space length to device pixels."""
        return length * self.scale

    def label_font_px(self, min_size: float, max_size: float) -> float:
        """Atom-label font size in pixels, clamped to ``[min_size, max_size]``."""
        return min(max(self.base_font_size * self.font_scale, min_size), max_size)

    def label_font_size(self, min_size: float, max_size: float) -> float:
        """Atom-label font size in molecule units at the current scale."""
        return self.label_font_px(min_size, max_size) / self.scale

    def tabula_rasa(self) -> None:
        """Reset scale, translation, offsets and font scale to identity."""
        self.scale = 1.0
        self.x_trans = 0.0
        self.y_trans = 0.0
        self.x_offset = 0.0
        self.y_offset = 0.0
        self.font_scale = 1.0

    def snapshot(self) -> ScaleState:
        """Return an independent copy of the current state."""
        return dataclasses.replace(self)

    def restore(self, saved: ScaleState) -> None:
        """Copy every field of *saved* back into this state."""
        for f in dataclasses.fields(self):
            setattr(self, f.name, getattr(saved, f.name))

    @contextmanager
    def preserved(self) -> Iterator[ScaleState]:
        """Save all fields on entry and restore them on exit.

        Used around nested layout passes so that they cannot leak a
        different scale into the drawing in progress::

            with state.preserved():
                state.tabula_rasa()
                ...  # layout another molecule
        """
        saved = self.snapshot()
        try:
            yield self
        finally:
            self.restore(saved)
