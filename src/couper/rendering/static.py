"""Static matplotlib renderer: :func:`render_mpl` entry point."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.figure import Figure

from couper.model import Colour, DrawOptions, Molecule, Reaction, normalise_colour
from couper.rendering.drawer import MoleculeDrawer, _resolve_options
from couper.rendering.mpl_canvas import MplCanvas
from couper.rendering.text import MplTextMetrics


def render_mpl(
    depiction: Molecule | Reaction,
    output: str | Path | None = None,
    *,
    ax: Axes | None = None,
    options: DrawOptions | None = None,
    legend: str = "",
    highlight_atoms: Sequence[int] | None = None,
    highlight_bonds: Sequence[int] | None = None,
    size: tuple[int, int] = (300, 300),
    figsize: tuple[float, float] = (5.0, 5.0),
    dpi: int = 150,
    background: Colour = "white",
    show: bool | None = None,
    **option_kwargs: object,
) -> Figure:
    """Render a molecule or reaction as a static matplotlib figure.

    Example usage::

        mol = Molecule.build(["C", "O"], [(0, 1)], coords=[[0, 0], [1.5, 0]])

        # Save to file (no interactive window):
        render_mpl(mol, "methanol.png")

        # Vector output with a legend and custom options:
        render_mpl(mol, "methanol.svg", legend="methanol",
                   highlight_atoms=[1], add_atom_indices=True)

        # Render into an existing axes for multi-panel figures:
        fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(10, 5))
        render_mpl(mol, ax=ax2)
        fig.savefig("panel.pdf", bbox_inches="tight")

    Args:
        depiction: The :class:`Molecule` or :class:`Reaction` to draw.
        output: Optional file path to save the figure.  The format is
            inferred from the extension (e.g. ``.svg``, ``.pdf``,
            ``.png``).  Ignored when *ax* is provided.
        ax: Optional matplotlib :class:`~matplotlib.axes.Axes` to draw
            into.  The caller is responsible for saving and closing the
            figure.  The *output*, *figsize*, *dpi*, *background*, and
            *show* parameters are ignored.
        options: A :class:`DrawOptions` controlling appearance.  If
            ``None``, defaults are used.  Any :class:`DrawOptions` field
            name may also be passed as a keyword argument.
        legend: Legend drawn under a molecule.
        highlight_atoms: Atoms of a molecule to highlight.
        highlight_bonds: Bonds of a molecule to highlight.
        size: Drawing size in device pixels ``(width, height)``.
        figsize: Figure size in inches ``(width, height)``.
        dpi: Resolution for raster output formats.
        background: Figure background colour (CSS name, hex string, grey
            float, or RGB tuple).
        show: Whether to call ``plt.show()``.  Defaults to ``True`` when
            *output* is ``None``, ``False`` when saving to a file.
        **option_kwargs: Any :class:`DrawOptions` field name as a
            keyword argument.  Unknown names raise :class:`TypeError`.

    Returns:
        The matplotlib :class:`~matplotlib.figure.Figure` object.
    """
    resolved = _resolve_options(options, **option_kwargs)
    width, height = size

    def draw(target: Axes) -> None:
        drawer = MoleculeDrawer(
            width, height,
            canvas=MplCanvas(target, width, height),
            text_metrics=MplTextMetrics(),
            options=resolved,
        )
        if isinstance(depiction, Reaction):
            drawer.draw_reaction(depiction)
        else:
            drawer.draw_molecule(
                depiction, legend, highlight_atoms, highlight_bonds,
            )

    if ax is not None:
        fig = ax.get_figure()
        if not isinstance(fig, Figure):
            raise ValueError("ax is not attached to a Figure")
        draw(ax)
        return fig

    bg_rgb = normalise_colour(background)
    fig, ax = plt.subplots(1, 1, figsize=figsize, dpi=dpi)
    fig.set_facecolor(bg_rgb)
    draw(ax)

    fig.tight_layout()

    if output is not None:
        fig.savefig(str(output), dpi=dpi, bbox_inches="tight")

    if show is None:
        show = output is None
    if show:
        plt.show()
    else:
        plt.close(fig)

    return fig
