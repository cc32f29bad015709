"""Tests for render_mpl, the static matplotlib entry point."""

import matplotlib.pyplot as plt
import pytest
from matplotlib.figure import Figure

from couper.model import DrawOptions, Reaction
from couper.rendering.static import render_mpl


class TestRenderMpl:
    def test_returns_figure(self, ethanol):
        fig = render_mpl(ethanol, show=False)
        assert isinstance(fig, Figure)

    def test_saves_to_file(self, tmp_path, ethanol):
        out = tmp_path / "ethanol.png"
        render_mpl(ethanol, output=out)
        assert out.exists()
        assert out.stat().st_size > 0

    def test_saves_svg(self, tmp_path, kekule_benzene):
        out = tmp_path / "benzene.svg"
        render_mpl(kekule_benzene, out, legend="benzene", highlight_atoms=[0, 1])
        assert out.exists()

    def test_reaction(self, tmp_path, ethane, ethanol):
        out = tmp_path / "reaction.png"
        render_mpl(
            Reaction(reactants=[ethane], products=[ethanol]), out, size=(600, 200),
        )
        assert out.exists()

    def test_draws_into_existing_axes(self, ethanol):
        fig, (ax1, ax2) = plt.subplots(1, 2)
        try:
            result = render_mpl(ethanol, ax=ax2)
            assert result is fig
            assert len(ax1.lines) == 0
            assert len(ax2.lines) == 3
            assert {t.get_text() for t in ax2.texts} == {"O", "H"}
        finally:
            plt.close(fig)

    def test_option_kwargs(self, ethane):
        fig, ax = plt.subplots()
        try:
            render_mpl(ethane, ax=ax, options=DrawOptions(line_width=4.0),
                       clear_background=False)
            assert len(ax.patches) == 0
            assert len(ax.lines) == 1
        finally:
            plt.close(fig)

    def test_unknown_option(self, ethane):
        with pytest.raises(TypeError, match="Unknown option keyword"):
            render_mpl(ethane, show=False, bond_colour="red")
