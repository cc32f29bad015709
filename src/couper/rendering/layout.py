"""Scale fitting: choose the molecule-to-device transform for a panel.

The fit starts from the bounding box of the atoms and any extra shapes,
then grows the box iteratively for everything drawn around the atoms:
labels, highlight ellipses, radical dots and notes.  Label sizes in
molecule space depend on the scale, so the loop runs until the scale
settles.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence

import numpy as np

from couper._constants import (
    DEGENERATE_SPAN,
    MAX_SCALE_ITERATIONS,
    SCALE_TOLERANCE,
)
from couper.model import DrawOptions, Molecule, RenderContext, ScaleState
from couper.rendering.annotations import (
    annotation_footprint,
    extract_radicals,
    label_glyphs,
    radical_spot_radius,
)
from couper.rendering.highlights import label_ellipse
from couper.rendering.text import TextMetrics

logger = logging.getLogger(__name__)

# Below this mean bond length, coordinates come from a tool that uses
# unit bonds and the default font would be too large.
_SHORT_BOND_LENGTH = 1.0
_SHORT_BOND_FONT_FACTOR = 0.75


def base_font_size(mean_bond_length: float | None, options: DrawOptions) -> float:
    """Atom-label font size in molecule units for a given bond length."""
    if mean_bond_length is not None and mean_bond_length < _SHORT_BOND_LENGTH:
        return options.base_font_size * _SHORT_BOND_FONT_FACTOR
    return options.base_font_size


def label_font_size(state: ScaleState, options: DrawOptions) -> float:
    """Atom-label font size in molecule units at the current scale."""
    return state.label_font_size(options.min_font_size, options.max_font_size)


def font_ratio(state: ScaleState, options: DrawOptions) -> float:
    """Drawn label font size over the unclamped one.

    1 unless the label font has hit the minimum or maximum size.
    """
    unclamped = state.base_font_size * state.font_scale
    if unclamped <= 0:
        return 1.0
    return state.label_font_px(options.min_font_size, options.max_font_size) / unclamped


def centre_picture(state: ScaleState, width: float, height: float) -> None:
    """Set the translation that puts the fitted box centre mid-panel."""
    state.x_trans = (width / 2 - state.scale * 0.5 * state.x_range) / state.scale
    state.y_trans = (height / 2 - state.scale * 0.5 * state.y_range) / state.scale


def _unit_span(lo: float, hi: float) -> tuple[float, float]:
    if hi - lo < DEGENERATE_SPAN:
        mid = 0.5 * (lo + hi)
        return mid - 0.5, mid + 0.5
    return lo, hi


def _set_box(state: ScaleState, lo: np.ndarray, hi: np.ndarray) -> None:
    state.x_min, state.y_min = float(lo[0]), float(lo[1])
    state.x_range = float(hi[0] - lo[0])
    state.y_range = float(hi[1] - lo[1])


def _fit(state: ScaleState, width: float, height: float) -> float:
    return min(width / state.x_range, height / state.y_range)


def _finish_scale(
    state: ScaleState, width: float, height: float, options: DrawOptions,
) -> None:
    """Pad the box, apply any fixed scale and centre the picture."""
    pad = options.padding
    state.x_min -= pad * state.x_range
    state.x_range *= 1 + 2 * pad
    state.y_min -= pad * state.y_range
    state.y_range *= 1 + 2 * pad

    state.scale = _fit(state, width, height)
    fixed = state.scale
    if options.fixed_bond_length is not None:
        fixed = options.fixed_bond_length
    if options.fixed_scale is not None:
        fixed = width * options.fixed_scale
    state.scale = min(state.scale, fixed)
    centre_picture(state, width, height)
    state.font_scale = state.scale


def _extent_points(
    mol: Molecule,
    ctx: RenderContext,
    metrics: TextMetrics,
    state: ScaleState,
    options: DrawOptions,
    highlight_atoms: Sequence[int],
    highlight_radii: Mapping[int, float] | None,
) -> Iterable[tuple[float, float, float, float]]:
    """Boxes ``(left, bottom, right, top)`` drawn round the atoms."""
    font = label_font_size(state, options)
    for idx in range(ctx.n_atoms):
        glyphs = label_glyphs(ctx, metrics, idx, font)
        for r in glyphs:
            yield r.left, r.bottom, r.right, r.top
    for idx in highlight_atoms:
        centre, xr, yr = label_ellipse(
            ctx, metrics, idx, options, font, highlight_radii,
        )
        yield centre[0] - xr, centre[1] - yr, centre[0] + xr, centre[1] + yr
    if options.include_radicals and any(a.radical_electrons for a in mol.atoms):
        spot = radical_spot_radius(options, font_ratio(state, options))
        extract_radicals(mol, ctx, metrics, options, font, spot)
        for mark in ctx.radicals:
            r = mark.rect
            yield r.left, r.bottom, r.right, r.top
    for annot in ctx.annotations:
        r = annotation_footprint(annot, state)
        yield r.left, r.bottom, r.right, r.top


def calculate_scale(
    state: ScaleState,
    ctx: RenderContext,
    mol: Molecule,
    options: DrawOptions,
    metrics: TextMetrics,
    width: float,
    height: float,
    highlight_atoms: Sequence[int] | None = None,
    highlight_radii: Mapping[int, float] | None = None,
) -> None:
    """Fit the molecule in *ctx* to a ``width`` by ``height`` area.

    Fills in the scale, box and centring translation of *state*.
    Calling it again with the same inputs gives the same result.

    Args:
        state: Transform to update.
        ctx: Render context with atoms, labels, notes and shapes.
        mol: The molecule the context was extracted from.
        options: Drawing options.
        metrics: Text metrics for label footprints.
        width: Available width in pixels.
        height: Available height in pixels.
        highlight_atoms: Atoms that will get highlight ellipses.
        highlight_radii: Per-atom highlight radius overrides.

    Raises:
        ValueError: If *width* or *height* is not positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"fit area must be positive, got {width} x {height}")
    state.base_font_size = base_font_size(mol.mean_bond_length(), options)
    highlight_atoms = list(highlight_atoms or ())

    pts = [ctx.atom_coords]
    pts.extend(s.points for s in ctx.pre_shapes)
    pts.extend(s.points for s in ctx.post_shapes)
    all_pts = np.vstack(pts) if ctx.n_atoms or len(pts) > 1 else np.zeros((1, 2))
    lo = all_pts.min(axis=0)
    hi = all_pts.max(axis=0)
    lo[0], hi[0] = _unit_span(lo[0], hi[0])
    lo[1], hi[1] = _unit_span(lo[1], hi[1])
    _set_box(state, lo, hi)

    scale = _fit(state, width, height)
    n_iter = 0
    while scale > 1e-4 and n_iter < MAX_SCALE_ITERATIONS:
        n_iter += 1
        state.scale = scale
        state.font_scale = scale
        for left, bottom, right, top in _extent_points(
            mol, ctx, metrics, state, options, highlight_atoms, highlight_radii,
        ):
            lo = np.minimum(lo, (left, bottom))
            hi = np.maximum(hi, (right, top))
        _set_box(state, lo, hi)
        old_scale = scale
        scale = _fit(state, width, height)
        if abs(scale - old_scale) < SCALE_TOLERANCE:
            break
    logger.debug("scale fit settled at %.4g after %d iteration(s)", scale, n_iter)

    _finish_scale(state, width, height, options)


def set_scale(
    state: ScaleState,
    width: float,
    height: float,
    min_pt: Sequence[float],
    max_pt: Sequence[float],
    options: DrawOptions,
) -> None:
    """Fit an explicit molecule-space box to the drawing area.

    Uses the same degenerate-span, padding, fixed-scale and centring
    rules as :func:`calculate_scale`.

    Raises:
        ValueError: If *width* or *height* is not positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"fit area must be positive, got {width} x {height}")
    lo = np.minimum(np.asarray(min_pt, dtype=float), np.asarray(max_pt, dtype=float))
    hi = np.maximum(np.asarray(min_pt, dtype=float), np.asarray(max_pt, dtype=float))
    lo[0], hi[0] = _unit_span(lo[0], hi[0])
    lo[1], hi[1] = _unit_span(lo[1], hi[1])
    _set_box(state, lo, hi)
    _finish_scale(state, width, height, options)


def fitted_box(state: ScaleState) -> tuple[np.ndarray, np.ndarray]:
    """Lower-left and upper-right corners of the current fitted box."""
    lo = np.array([state.x_min, state.y_min])
    return lo, lo + np.array([state.x_range, state.y_range])


def calculate_global_scale(
    state: ScaleState,
    boxes: Sequence[tuple[np.ndarray, np.ndarray]],
    width: float,
    height: float,
) -> None:
    """Fit the union of several fitted boxes, for a grid of panels.

    Raises:
        ValueError: If *boxes* is empty.
    """
    if not boxes:
        raise ValueError("calculate_global_scale() needs at least one box")
    lo = np.min([b[0] for b in boxes], axis=0)
    hi = np.max([b[1] for b in boxes], axis=0)
    _set_box(state, lo, hi)
    state.scale = _fit(state, width, height)
    state.font_scale = state.scale
    centre_picture(state, width, height)


def panel_offsets(
    n_panels: int,
    width: float,
    height: float,
    panel_width: float,
    panel_height: float,
) -> list[tuple[float, float]]:
    """Pixel offsets of panels laid out row by row.

    Panels fill ``width // panel_width`` columns and
    ``height // panel_height`` rows; a single row or column never
    advances in that direction.
    """
    n_cols = max(1, int(width // panel_width))
    n_rows = max(1, int(height // panel_height))
    offsets = []
    for i in range(n_panels):
        row = i // n_cols if n_rows > 1 else 0
        col = i % n_cols if n_cols > 1 else 0
        offsets.append((col * panel_width, row * panel_height))
    return offsets
