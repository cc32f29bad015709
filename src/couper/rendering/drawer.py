"""Draw orchestration: :class:`MoleculeDrawer` turns molecules into canvas calls.

A drawer owns one canvas, a :class:`ScaleState` and a stack of render
contexts.  Each molecule is extracted into a fresh context at a scale
of one, the scale is fitted once, and the molecule is then drawn in a
fixed order: pre-shapes, highlights, bonds, attachment points, atom
labels, notes, radicals, post-shapes and close-contact flags.
"""

from __future__ import annotations

import dataclasses
import logging
import types
import typing
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from couper._constants import CLOSE_CONTACT_COLOUR, MIN_LEGEND_HEIGHT
from couper.construction.defaults import default_palette
from couper.construction.labels import atom_label
from couper.construction.reaction import reaction_layout
from couper.model import (
    Annotation,
    Atom,
    Colour,
    ContextStack,
    DrawOptions,
    DrawShape,
    Molecule,
    Reaction,
    RenderContext,
    ScaleState,
    ShapeKind,
    normalise_colour,
    palette_colour,
)
from couper.model.colour import BLACK, RGB
from couper.rendering.annotations import (
    extract_annotations,
    extract_radicals,
    radical_spot_radius,
    radical_spots,
)
from couper.rendering.bond_geometry import (
    BondPrimitive,
    BondRenderRequest,
    PrimitiveKind,
    bond_primitives,
)
from couper.rendering.canvas import Canvas, DrawStyle, RecordingCanvas
from couper.rendering.geometry import DisplayTransform, arrow_head, perpendicular
from couper.rendering.highlights import (
    atom_highlight_shapes,
    bond_highlight_shapes,
    circle_highlight_shapes,
    continuous_highlight_shapes,
    highlight_bond_width,
    highlight_bonds_for_atoms,
)
from couper.rendering.layout import (
    base_font_size,
    calculate_global_scale,
    calculate_scale,
    fitted_box,
    font_ratio,
    label_font_size,
    panel_offsets,
    set_scale,
)
from couper.rendering.text import FixedWidthTextMetrics, GlyphRect, TextMetrics

logger = logging.getLogger(__name__)

_OPTION_FIELDS = frozenset(f.name for f in dataclasses.fields(DrawOptions))
_DEFAULT_OPTIONS = DrawOptions()

# Fields where ``None`` is a meaningful value (not just "unset").
_NULLABLE_OPTION_FIELDS = frozenset(
    name for name, tp in typing.get_type_hints(DrawOptions).items()
    if typing.get_origin(tp) is types.UnionType
    and type(None) in typing.get_args(tp)
)

# Line widths scale as ``width * scale * _WIDTH_PER_SCALE`` when scaled.
_WIDTH_PER_SCALE = 0.02

_ATTACHMENT_COLOUR: RGB = (0.5, 0.5, 0.5)
_ATTACHMENT_LENGTH = 1.0
_WAVY_SEGMENTS = 16

# Half-size of the square drawn round atoms that are too close.
_CLOSE_CONTACT_HALF_SIZE = 0.1

_REACTION_ARROW_FRACTION = 0.05
_REACTION_ARROW_ANGLE = np.pi / 6
_LEGEND_FRACTION = 0.05


def _resolve_options(
    options: DrawOptions | None,
    **kwargs: Any,
) -> DrawOptions:
    """Build a :class:`DrawOptions` from an optional base plus overrides.

    Any kwarg whose name matches a ``DrawOptions`` field replaces that
    field's value.  For most fields, passing ``None`` is treated as
    "not provided" and preserves the base value.  For fields that
    accept ``None`` as a meaningful value (e.g. ``fixed_scale``),
    ``None`` is passed through as an explicit override.

    Raises:
        TypeError: If a kwarg name does not match any ``DrawOptions`` field.
    """
    unknown = kwargs.keys() - _OPTION_FIELDS
    if unknown:
        raise TypeError(
            f"Unknown option keyword argument(s): {', '.join(sorted(unknown))}"
        )

    o = options if options is not None else _DEFAULT_OPTIONS
    overrides = {
        k: v for k, v in kwargs.items()
        if v is not None or k in _NULLABLE_OPTION_FIELDS
    }
    if overrides:
        o = dataclasses.replace(o, **overrides)
    return o


@dataclass(frozen=True, eq=False)
class MoleculeMetadata:
    """Where the atoms of one drawn molecule ended up.

    Attributes:
        index: Position of the molecule in drawing order.
        atom_positions: Device coordinates of every atom, shape
            ``(n_atoms, 2)``.
        legend: Legend drawn under the molecule.
    """

    index: int
    atom_positions: np.ndarray
    legend: str = ""


def _check_atoms(mol: Molecule, atoms: Sequence[int], what: str) -> None:
    for idx in atoms:
        if not 0 <= idx < mol.n_atoms:
            raise ValueError(
                f"{what} atom {idx} out of range for molecule with "
                f"{mol.n_atoms} atom(s)"
            )


def _check_bonds(mol: Molecule, bonds: Sequence[int], what: str) -> None:
    for idx in bonds:
        if not 0 <= idx < len(mol.bonds):
            raise ValueError(
                f"{what} bond {idx} out of range for molecule with "
                f"{len(mol.bonds)} bond(s)"
            )


def _colour_map(colours: Mapping[int, Colour] | None) -> dict[int, RGB]:
    if not colours:
        return {}
    return {int(k): normalise_colour(v) for k, v in colours.items()}


def _check_length(name: str, values: Sequence | None, n: int) -> None:
    if values is not None and len(values) != n:
        raise ValueError(
            f"{name} must have one entry per molecule ({n}), got {len(values)}"
        )


class MoleculeDrawer:
    """Lays out and draws molecules onto a :class:`Canvas`.

    The drawing surface is split into panels of ``panel_width`` by
    ``panel_height`` pixels.  :meth:`draw_molecule` draws one molecule
    into the current panel; :meth:`draw_molecules` fills a grid of
    panels with a common scale.

    Example usage::

        drawer = MoleculeDrawer(300, 300, include_radicals=False)
        drawer.draw_molecule(mol, legend="ethanol")
        calls = drawer.canvas.calls

    Args:
        width: Width of the drawing surface in pixels.
        height: Height of the drawing surface in pixels.
        panel_width: Width of one panel; defaults to *width*.
        panel_height: Height of one panel; defaults to *height*.
        canvas: Canvas to draw on.  Defaults to a
            :class:`RecordingCanvas` of the surface size.
        text_metrics: Text measurement service.  Defaults to
            :class:`FixedWidthTextMetrics`.
        options: Base drawing options.
        **option_kwargs: Any :class:`DrawOptions` field name, overriding
            the base options.  Unknown names raise :class:`TypeError`.

    Raises:
        ValueError: If a size is not positive.
        TypeError: If an option keyword is unknown.
    """

    def __init__(
        self,
        width: float,
        height: float,
        panel_width: float | None = None,
        panel_height: float | None = None,
        *,
        canvas: Canvas | None = None,
        text_metrics: TextMetrics | None = None,
        options: DrawOptions | None = None,
        **option_kwargs: Any,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(
                f"drawing size must be positive, got {width} x {height}"
            )
        self.options = _resolve_options(options, **option_kwargs)
        self.width = width
        self.height = height
        self.state = ScaleState(
            width if panel_width is None else panel_width,
            height if panel_height is None else panel_height,
        )
        self.canvas = canvas if canvas is not None else RecordingCanvas(width, height)
        self.metrics = text_metrics if text_metrics is not None else FixedWidthTextMetrics()
        self.contexts = ContextStack()
        self.needs_scale = True
        self.metadata: list[MoleculeMetadata] = []
        self._cleared = False

    @property
    def panel_width(self) -> float:
        return self.state.panel_width

    @property
    def panel_height(self) -> float:
        return self.state.panel_height

    @property
    def scale(self) -> float:
        """Device pixels per molecule unit."""
        return self.state.scale

    # -- set-up ------------------------------------------------------------

    def _palette(self) -> Mapping[int, Colour]:
        if self.options.atom_palette is not None:
            return self.options.atom_palette
        return default_palette(self.options.monochrome)

    def atom_colour(
        self,
        ctx: RenderContext,
        idx: int,
        highlight_atoms: Sequence[int] | None = None,
        highlight_colours: Mapping[int, RGB] | None = None,
    ) -> RGB:
        """Drawing colour of an atom.

        Highlighted atoms take the highlight colour only when neither
        circles nor continuous highlights show the highlight.
        """
        colour = palette_colour(ctx.atomic_nums[idx], self._palette())
        opts = self.options
        if not opts.circle_atoms and not opts.continuous_highlight:
            if highlight_atoms and idx in highlight_atoms:
                colour = opts.highlight_colour
            if highlight_colours and idx in highlight_colours:
                colour = highlight_colours[idx]
        return colour

    def _clear(self) -> None:
        if self.options.clear_background and not self._cleared:
            self.canvas.clear(self.options.background_colour)
        self._cleared = True

    def _extract(self, mol: Molecule, ctx: RenderContext) -> None:
        """Fill *ctx* with atoms, labels, notes and shapes at scale one."""
        opts = self.options
        transform = DisplayTransform.for_coords(
            mol.coords, opts.rotate, opts.centre_molecules_before_drawing,
        )
        coords = transform(mol.coords)
        labels = [atom_label(mol, i, coords, opts) for i in range(mol.n_atoms)]
        ctx.set_atoms(coords, [a.atomic_num for a in mol.atoms], labels)
        label_font = base_font_size(mol.mean_bond_length(), opts)
        extract_annotations(mol, ctx, self.metrics, opts, label_font, transform)

    def _setup(
        self,
        mol: Molecule,
        ctx: RenderContext,
        highlight_atoms: Sequence[int] | None = None,
        highlight_radii: Mapping[int, float] | None = None,
    ) -> bool:
        """Extract *mol* into *ctx* and fit the scale if needed.

        Returns ``False`` when the molecule has no coordinates.
        """
        if not mol.has_coords:
            logger.debug(
                "molecule with %d atom(s) has no coordinates; not drawn",
                mol.n_atoms,
            )
            return False
        self._extract(mol, ctx)
        self._clear()
        if self.needs_scale:
            calculate_scale(
                self.state, ctx, mol, self.options, self.metrics,
                self.state.panel_width, self.state.draw_height,
                highlight_atoms, highlight_radii,
            )
            self.needs_scale = False
        return True

    def set_scale(
        self, min_pt: Sequence[float], max_pt: Sequence[float],
    ) -> None:
        """Fit an explicit molecule-space box instead of the next molecule."""
        set_scale(
            self.state, self.state.panel_width, self.state.draw_height,
            min_pt, max_pt, self.options,
        )
        self.needs_scale = False

    # -- primitive emission ------------------------------------------------

    def _width(self, width: float, scaled: bool) -> float:
        if scaled:
            width = width * self.state.scale * _WIDTH_PER_SCALE
        return max(width, 0.0)

    def _label_font(self) -> float:
        return label_font_size(self.state, self.options)

    def _label_px(self) -> float:
        return self.state.label_font_px(
            self.options.min_font_size, self.options.max_font_size,
        )

    def draw_shape(self, shape: DrawShape) -> None:
        """Draw a molecule-space shape."""
        pts = self.state.to_device(shape.points)
        style = DrawStyle(
            shape.colour, self._width(shape.line_width, shape.scale_line_width),
            shape.dash, shape.fill,
        )
        match shape.kind:
            case ShapeKind.POLYLINE:
                if len(pts) == 2:
                    self.canvas.draw_line(pts[0], pts[1], style, shape.atoms)
                else:
                    self.canvas.draw_polyline(pts, style, shape.atoms)
            case ShapeKind.POLYGON:
                self.canvas.draw_polygon(pts, style, shape.atoms)
            case ShapeKind.ELLIPSE:
                self.canvas.draw_ellipse(pts[0], pts[1], style, shape.atoms)

    def _primitive_width(
        self, prim: BondPrimitive, request: BondRenderRequest,
    ) -> float:
        if prim.line_width is not None:
            return prim.line_width
        opts = self.options
        width = opts.line_width
        scaled = opts.scale_bond_width
        if request.highlight:
            width = highlight_bond_width(opts, request.bond_idx)
            if not opts.continuous_highlight:
                width /= 4
            if prim.highlight_scaling:
                scaled = opts.scale_highlight_bond_width
        return self._width(width * prim.width_multiplier, scaled)

    def draw_primitive(
        self, prim: BondPrimitive, request: BondRenderRequest,
    ) -> None:
        """Draw one bond primitive."""
        pts = self.state.to_device(prim.points)
        style = DrawStyle(
            prim.colour, self._primitive_width(prim, request), prim.dash,
            prim.fill,
        )
        match prim.kind:
            case PrimitiveKind.LINE:
                self.canvas.draw_line(pts[0], pts[1], style, prim.atoms)
            case PrimitiveKind.POLYGON:
                self.canvas.draw_polygon(pts, style, prim.atoms)
            case PrimitiveKind.ELLIPSE:
                self.canvas.draw_ellipse(pts[0], pts[1], style, prim.atoms)
            case PrimitiveKind.WAVY:
                self.canvas.draw_wavy_line(
                    pts[0], pts[1], prim.colours[0], prim.colours[1], style,
                    prim.atoms, _WAVY_SEGMENTS,
                )

    def _draw_text(
        self,
        anchor: np.ndarray,
        rects: Sequence[GlyphRect],
        font_px: float,
        colour: RGB,
    ) -> None:
        """Draw laid-out glyphs; glyph offsets are in pixels, y up."""
        for g in rects:
            centre = anchor + np.array([g.rect.x, -g.rect.y])
            self.canvas.draw_text(g.char, centre, font_px * g.size_factor, colour)

    # -- molecule parts ----------------------------------------------------

    def draw_bonds(
        self,
        mol: Molecule,
        ctx: RenderContext,
        highlight_bonds: Sequence[int] | None = None,
        highlight_bond_colours: Mapping[int, RGB] | None = None,
        bond_colours: Sequence[tuple[RGB, RGB]] | None = None,
    ) -> None:
        """Draw every bond of the molecule in *ctx*.

        Args:
            mol: The molecule.
            ctx: Its render context.
            highlight_bonds: Bonds drawn in a highlight colour.
            highlight_bond_colours: Per-bond highlight colours.
            bond_colours: Explicit ``(begin, end)`` colours per bond,
                overriding atom and highlight colours.
        """
        label_font = self._label_font()
        highlight_bonds = set(highlight_bonds or ())
        for idx in range(ctx.n_atoms):
            for bi in mol.atom_bonds(idx):
                if mol.bonds[bi].other_atom(idx) <= idx:
                    continue
                bond = mol.bonds[bi]
                highlight = False
                if bond_colours is not None:
                    c1, c2 = bond_colours[bi]
                elif bi in highlight_bonds:
                    highlight = True
                    c1 = c2 = (highlight_bond_colours or {}).get(
                        bi, self.options.highlight_colour,
                    )
                else:
                    c1 = self.atom_colour(ctx, bond.begin)
                    c2 = self.atom_colour(ctx, bond.end)
                request = BondRenderRequest.for_bond(mol, bi, c1, c2, highlight)
                for prim in bond_primitives(
                    mol, request, ctx, self.metrics, self.options,
                    self.state.scale, label_font,
                ):
                    self.draw_primitive(prim, request)

    def _draw_attachments(self, mol: Molecule, ctx: RenderContext) -> None:
        opts = self.options
        explicit = opts.atom_labels or {}
        style = DrawStyle(
            _ATTACHMENT_COLOUR, self._width(opts.line_width, opts.scale_bond_width),
        )
        for idx, atom in enumerate(mol.atoms):
            if atom.label is not None or idx in explicit:
                continue
            if atom.atomic_num != 0 or mol.degree(idx) != 1:
                continue
            nbr = mol.neighbours(idx)[0]
            here = ctx.atom_coords[idx]
            perp = perpendicular(ctx.atom_coords[nbr], here)
            half = perp * _ATTACHMENT_LENGTH / 2
            p1, p2 = self.state.to_device(np.array([here - half, here + half]))
            self.canvas.draw_wavy_line(
                p1, p2, _ATTACHMENT_COLOUR, _ATTACHMENT_COLOUR, style, (idx,),
                _WAVY_SEGMENTS,
            )

    def draw_atom_label(self, ctx: RenderContext, idx: int, colour: RGB) -> None:
        """Draw the label of atom *idx*, if it has one."""
        label = ctx.atom_labels[idx]
        if label is None:
            return
        px = self._label_px()
        rects = self.metrics.label_rects(label.text, label.orientation, px)
        anchor = self.state.to_device(ctx.atom_coords[idx])
        self._draw_text(anchor, rects, px, colour)

    def draw_annotation(self, annot: Annotation) -> None:
        """Draw a placed note.

        Scaled notes are drawn at their font scale times the atom-label
        size, even below the minimum font size.  Unscaled notes use the
        legend font size.
        """
        if annot.scale_text:
            px = self._label_px() * annot.font_scale
        else:
            px = self.options.legend_font_size * annot.font_scale
        rects = self.metrics.text_rects(annot.text, px, annot.align)
        anchor = self.state.to_device(annot.position)
        colour = annot.colour if annot.colour is not None else self.options.annotation_colour
        self._draw_text(anchor, rects, px, colour)

    def _draw_radicals(self, mol: Molecule, ctx: RenderContext) -> None:
        spot = radical_spot_radius(self.options, font_ratio(self.state, self.options))
        extract_radicals(
            mol, ctx, self.metrics, self.options, self._label_font(), spot,
        )
        r_px = self.state.to_device_length(spot)
        style = DrawStyle(BLACK, 0.0, fill=True)
        for mark in ctx.radicals:
            for centre in radical_spots(mark, spot):
                self.canvas.draw_arc(
                    self.state.to_device(centre), r_px, r_px, 0.0, 360.0,
                    style, (mark.atom,),
                )

    def _flag_close_contacts(self, ctx: RenderContext) -> None:
        dist = self.options.flag_close_contacts_dist
        if dist is None:
            return
        tol = dist * dist
        dev = self.state.to_device(ctx.atom_coords)
        flagged = [False] * ctx.n_atoms
        style = DrawStyle(CLOSE_CONTACT_COLOUR, self.options.line_width)
        off = np.array([_CLOSE_CONTACT_HALF_SIZE, _CLOSE_CONTACT_HALF_SIZE])
        for i in range(ctx.n_atoms):
            if flagged[i]:
                continue
            for j in range(i + 1, ctx.n_atoms):
                if flagged[j]:
                    continue
                d = dev[j] - dev[i]
                if float(np.dot(d, d)) <= tol:
                    flagged[i] = flagged[j] = True
                    break
            if flagged[i]:
                p1 = ctx.atom_coords[i] - off
                p2 = ctx.atom_coords[i] + off
                corners = np.array([p1, [p1[0], p2[1]], p2, [p2[0], p1[1]]])
                self.canvas.draw_polygon(self.state.to_device(corners), style, (i,))

    def _finish(
        self, mol: Molecule, ctx: RenderContext, atom_colours: Sequence[RGB],
    ) -> None:
        """Everything drawn on top of the bonds."""
        if self.options.dummies_are_attachments:
            self._draw_attachments(mol, ctx)
        for idx in range(ctx.n_atoms):
            self.draw_atom_label(ctx, idx, atom_colours[idx])
        for annot in ctx.annotations:
            self.draw_annotation(annot)
        if self.options.include_radicals:
            self._draw_radicals(mol, ctx)
        for shape in ctx.post_shapes:
            self.draw_shape(shape)
        self._flag_close_contacts(ctx)

    def _record_metadata(self, ctx: RenderContext, legend: str) -> None:
        if self.options.include_metadata:
            self.metadata.append(MoleculeMetadata(
                len(self.metadata), self.state.to_device(ctx.atom_coords), legend,
            ))

    # -- legend ------------------------------------------------------------

    def _legend_size(self, pieces: Sequence[str], px: float) -> tuple[float, float]:
        sizes = [self.metrics.text_size(p, px) for p in pieces]
        return max(w for w, _ in sizes), sum(h for _, h in sizes)

    def draw_legend(self, legend: str) -> None:
        """Draw a legend, one line per newline-separated piece.

        The font starts at ``legend_font_size`` and shrinks until the
        text fits the legend strip and the panel width.  The text sits
        centred at the bottom of the panel.
        """
        pieces = [p for p in legend.split("\n") if p]
        if not pieces:
            return
        strip = self.state.legend_height
        px = self.options.legend_font_size
        width, height = self._legend_size(pieces, px)
        if height > strip > 0:
            px *= strip / height
            width, height = self._legend_size(pieces, px)
        if width > self.state.panel_width:
            px *= self.state.panel_width / width
            width, height = self._legend_size(pieces, px)

        x = self.state.x_offset + self.state.panel_width / 2
        y = self.state.y_offset + self.state.panel_height - height
        colour = self.options.legend_colour
        for piece in pieces:
            h = self.metrics.text_size(piece, px)[1]
            rects = self.metrics.text_rects(piece, px)
            self._draw_text(np.array([x, y + h / 2]), rects, px, colour)
            y += h

    def _set_legend_height(self, legend: str, minimum: int) -> None:
        if legend:
            height = int(_LEGEND_FRACTION * self.state.panel_height)
            self.state.legend_height = max(minimum, height)
        else:
            self.state.legend_height = 0

    # -- public drawing entry points ----------------------------------------

    def draw_molecule(
        self,
        mol: Molecule,
        legend: str = "",
        highlight_atoms: Sequence[int] | None = None,
        highlight_bonds: Sequence[int] | None = None,
        highlight_atom_colours: Mapping[int, Colour] | None = None,
        highlight_bond_colours: Mapping[int, Colour] | None = None,
        highlight_radii: Mapping[int, float] | None = None,
    ) -> None:
        """Draw one molecule in the current panel.

        Args:
            mol: The molecule; must carry coordinates to be drawn.
            legend: Text drawn beneath the molecule.  Newlines start
                new lines.
            highlight_atoms: Atoms to highlight.
            highlight_bonds: Bonds to highlight.  Defaults to the bonds
                joining two highlighted atoms.
            highlight_atom_colours: Per-atom highlight colours.
            highlight_bond_colours: Per-bond highlight colours.
            highlight_radii: Per-atom highlight radii.

        Raises:
            ValueError: If a highlight index is out of range.
        """
        self._set_legend_height(legend, MIN_LEGEND_HEIGHT)
        self._draw_highlighted(
            mol, legend, highlight_atoms, highlight_bonds,
            highlight_atom_colours, highlight_bond_colours, highlight_radii,
        )

    def _draw_highlighted(
        self,
        mol: Molecule,
        legend: str,
        highlight_atoms: Sequence[int] | None,
        highlight_bonds: Sequence[int] | None,
        highlight_atom_colours: Mapping[int, Colour] | None,
        highlight_bond_colours: Mapping[int, Colour] | None,
        highlight_radii: Mapping[int, float] | None,
    ) -> None:
        """Draw one molecule into a panel whose legend strip is already set."""
        highlight_atoms = list(highlight_atoms or ())
        _check_atoms(mol, highlight_atoms, "highlight")
        if highlight_bonds is None:
            highlight_bonds = highlight_bonds_for_atoms(mol, highlight_atoms)
        highlight_bonds = list(highlight_bonds)
        _check_bonds(mol, highlight_bonds, "highlight")

        self._draw_molecule(
            mol, legend, highlight_atoms, highlight_bonds,
            _colour_map(highlight_atom_colours),
            _colour_map(highlight_bond_colours),
            dict(highlight_radii or {}),
        )
        self.draw_legend(legend)

    def _draw_molecule(
        self,
        mol: Molecule,
        legend: str,
        highlight_atoms: list[int],
        highlight_bonds: list[int],
        atom_colours: dict[int, RGB],
        bond_colours: dict[int, RGB],
        radii: dict[int, float],
    ) -> None:
        opts = self.options
        with self.contexts.push() as ctx:
            if not self._setup(mol, ctx, highlight_atoms, radii):
                return
            for shape in ctx.pre_shapes:
                self.draw_shape(shape)

            label_font = self._label_font()
            if opts.continuous_highlight:
                for shape in continuous_highlight_shapes(
                    mol, ctx, self.metrics, opts, label_font, highlight_atoms,
                    highlight_bonds, atom_colours, bond_colours, radii,
                ):
                    self.draw_shape(shape)
                # The highlights are drawn; the bonds and labels are not
                # recoloured.
                highlight_atoms, highlight_bonds = [], []
            elif opts.circle_atoms and highlight_atoms:
                for shape in circle_highlight_shapes(
                    ctx, opts, highlight_atoms, atom_colours, radii,
                ):
                    self.draw_shape(shape)

            self.draw_bonds(mol, ctx, highlight_bonds, bond_colours)
            colours = [
                self.atom_colour(ctx, i, highlight_atoms, atom_colours)
                for i in range(ctx.n_atoms)
            ]
            self._finish(mol, ctx, colours)
            self._record_metadata(ctx, legend)

    def draw_molecule_with_highlights(
        self,
        mol: Molecule,
        legend: str = "",
        highlight_atom_map: Mapping[int, Sequence[Colour]] | None = None,
        highlight_bond_map: Mapping[int, Sequence[Colour]] | None = None,
        highlight_radii: Mapping[int, float] | None = None,
        highlight_linewidth_multipliers: Mapping[int, float] | None = None,
    ) -> None:
        """Draw a molecule with several highlight colours per atom or bond.

        Atoms with several colours get a pie of equal arcs; bonds get
        parallel stripes.  Bonds are drawn in black on top of a
        highlight unless its colours include both atom colours, and
        labels turn black when their colour is one of the atom's
        highlight colours.

        Raises:
            ValueError: If a highlight index is out of range.
        """
        atom_map = {
            int(k): [normalise_colour(c) for c in v]
            for k, v in (highlight_atom_map or {}).items()
        }
        bond_map = {
            int(k): [normalise_colour(c) for c in v]
            for k, v in (highlight_bond_map or {}).items()
        }
        _check_atoms(mol, list(atom_map), "highlight")
        _check_bonds(mol, list(bond_map), "highlight")
        radii = dict(highlight_radii or {})
        opts = self.options

        self._set_legend_height(legend, 0)
        with self.contexts.push() as ctx:
            if not self._setup(mol, ctx, list(atom_map), radii):
                return
            for shape in ctx.pre_shapes:
                self.draw_shape(shape)

            label_font = self._label_font()
            for shape in bond_highlight_shapes(
                mol, ctx, self.metrics, opts, label_font, bond_map,
                highlight_linewidth_multipliers, radii,
            ):
                self.draw_shape(shape)
            for idx, colours in atom_map.items():
                for shape in atom_highlight_shapes(
                    ctx, self.metrics, idx, colours, opts, label_font, radii,
                ):
                    self.draw_shape(shape)

            bond_colours = []
            for bi, bond in enumerate(mol.bonds):
                c1 = self.atom_colour(ctx, bond.begin)
                c2 = self.atom_colour(ctx, bond.end)
                cols = bond_map.get(bi)
                if cols is not None and (c1 not in cols or c2 not in cols):
                    c1 = c2 = BLACK
                bond_colours.append((c1, c2))
            self.draw_bonds(mol, ctx, bond_colours=bond_colours)

            atom_colours = []
            for idx in range(ctx.n_atoms):
                colour = palette_colour(ctx.atomic_nums[idx], self._palette())
                if colour in atom_map.get(idx, ()):
                    colour = BLACK
                atom_colours.append(colour)
            self._finish(mol, ctx, atom_colours)
            self._record_metadata(ctx, legend)
            self.draw_legend(legend)

    def draw_molecules(
        self,
        mols: Sequence[Molecule | None],
        legends: Sequence[str] | None = None,
        highlight_atoms: Sequence[Sequence[int]] | None = None,
        highlight_bonds: Sequence[Sequence[int]] | None = None,
        highlight_atom_maps: Sequence[Mapping[int, Colour]] | None = None,
        highlight_bond_maps: Sequence[Mapping[int, Colour]] | None = None,
        highlight_radii: Sequence[Mapping[int, float]] | None = None,
    ) -> None:
        """Draw a grid of molecules, one per panel, at a common scale.

        Panels are filled row by row.  ``None`` entries leave their
        panel empty.  Every per-molecule list must match *mols* in
        length.

        Raises:
            ValueError: If a per-molecule list has the wrong length.
        """
        n = len(mols)
        _check_length("legends", legends, n)
        _check_length("highlight_atoms", highlight_atoms, n)
        _check_length("highlight_bonds", highlight_bonds, n)
        _check_length("highlight_atom_maps", highlight_atom_maps, n)
        _check_length("highlight_bond_maps", highlight_bond_maps, n)
        _check_length("highlight_radii", highlight_radii, n)
        if not n:
            return

        # One legend strip for every panel, sized before the common scale.
        self._set_legend_height(
            next((lg for lg in legends or () if lg), ""), MIN_LEGEND_HEIGHT,
        )
        boxes = []
        lengths = []
        for i, mol in enumerate(mols):
            if mol is None or not mol.has_coords:
                continue
            self.state.tabula_rasa()
            self.needs_scale = True
            with self.contexts.push() as ctx:
                self._setup(
                    mol, ctx,
                    highlight_atoms[i] if highlight_atoms else None,
                    highlight_radii[i] if highlight_radii else None,
                )
            boxes.append(fitted_box(self.state))
            lengths.extend(
                np.hypot(*(mol.coords[b.begin] - mol.coords[b.end]))
                for b in mol.bonds
            )
        if boxes:
            mean = float(np.mean(lengths)) if lengths else None
            self.state.base_font_size = base_font_size(mean, self.options)
            calculate_global_scale(
                self.state, boxes, self.state.panel_width, self.state.draw_height,
            )
        self.needs_scale = False

        offsets = panel_offsets(
            n, self.width, self.height, self.state.panel_width,
            self.state.panel_height,
        )
        for i, mol in enumerate(mols):
            if mol is None:
                continue
            self.state.x_offset, self.state.y_offset = offsets[i]
            atoms = list(highlight_atoms[i]) if highlight_atoms else None
            bonds = list(highlight_bonds[i]) if highlight_bonds else None
            if bonds is None and not self.options.continuous_highlight:
                bonds = []
            self._draw_highlighted(
                mol,
                legends[i] if legends else "",
                atoms,
                bonds,
                highlight_atom_maps[i] if highlight_atom_maps else None,
                highlight_bond_maps[i] if highlight_bond_maps else None,
                highlight_radii[i] if highlight_radii else None,
            )

    def draw_reaction(self, reaction: Reaction) -> None:
        """Draw a reaction: components left to right, arrow, plus signs.

        Args:
            reaction: The reaction.  Every component needs coordinates.

        Raises:
            ValueError: If a component has no coordinates.
        """
        layout = reaction_layout(reaction, self.metrics, self.options)
        mol = layout.molecule

        if self.needs_scale and (not reaction.reactants or not reaction.products):
            # Make room for the arrow when there is nothing beyond it.
            ends = np.array([layout.arrow_begin, layout.arrow_end])
            framed = Molecule(
                atoms=list(mol.atoms) + [Atom("*"), Atom("*")],
                bonds=list(mol.bonds),
                coords=np.vstack([mol.coords, ends]),
            )
            with self.contexts.push() as ctx:
                self._setup(framed, ctx)

        saved = self.options
        self.options = dataclasses.replace(saved, include_metadata=False)
        try:
            self.draw_molecule(mol)
        finally:
            self.options = saved

        colour = self.options.symbol_colour
        px = 2.0 * self.options.legend_font_size
        for x in layout.plus_positions:
            centre = self.state.to_device(np.array([x, layout.arrow_begin[1]]))
            rects = self.metrics.text_rects("+", px)
            self._draw_text(centre, rects, px, colour)

        begin, end = self.state.to_device(
            np.array([layout.arrow_begin, layout.arrow_end]),
        )
        style = DrawStyle(colour, self.options.line_width)
        self.canvas.draw_line(begin, end, style)
        barb1, tip, barb2 = arrow_head(
            begin, end, _REACTION_ARROW_FRACTION, _REACTION_ARROW_ANGLE,
        )
        self.canvas.draw_line(tip, barb1, style)
        self.canvas.draw_line(tip, barb2, style)
