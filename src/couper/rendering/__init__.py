"""Rendering: geometry, scale fitting and drawing onto canvases."""

from couper.rendering.canvas import Canvas, CanvasCall, DrawStyle, RecordingCanvas
from couper.rendering.drawer import MoleculeDrawer, MoleculeMetadata
from couper.rendering.mpl_canvas import MplCanvas
from couper.rendering.static import render_mpl
from couper.rendering.text import FixedWidthTextMetrics, MplTextMetrics, TextMetrics

__all__ = [
    "Canvas",
    "CanvasCall",
    "DrawStyle",
    "FixedWidthTextMetrics",
    "MoleculeDrawer",
    "MoleculeMetadata",
    "MplCanvas",
    "MplTextMetrics",
    "RecordingCanvas",
    "TextMetrics",
    "render_mpl",
]
