"""Tests for laying reactions out along a line."""

import numpy as np
import pytest

from couper.construction.reaction import ReactionRole, reaction_layout
from couper.model import DrawOptions, Molecule, Reaction
from couper.rendering.text import FixedWidthTextMetrics


def _layout(reaction):
    return reaction_layout(reaction, FixedWidthTextMetrics(), DrawOptions())


class TestReactionLayout:
    def test_two_reactants_one_product(self, ethane):
        layout = _layout(Reaction(reactants=[ethane, ethane], products=[ethane]))
        assert layout.plus_positions == [pytest.approx(2.5)]
        np.testing.assert_allclose(layout.arrow_begin, [6.0, 0.0])
        np.testing.assert_allclose(layout.arrow_end, [10.0, 0.0])
        coords = layout.molecule.coords
        np.testing.assert_allclose(coords[:, 0], [0.0, 1.5, 3.5, 5.0, 11.5, 13.0])
        np.testing.assert_allclose(coords[:, 1], 0.0)

    def test_bonds_renumbered(self, ethane):
        layout = _layout(Reaction(reactants=[ethane, ethane], products=[ethane]))
        mol = layout.molecule
        assert mol.n_atoms == 6
        assert [(b.begin, b.end) for b in mol.bonds] == [(0, 1), (2, 3), (4, 5)]

    def test_roles(self, ethane):
        layout = _layout(
            Reaction(reactants=[ethane], products=[ethane], agents=[ethane])
        )
        assert layout.roles == (
            ReactionRole.REACTANT, ReactionRole.REACTANT,
            ReactionRole.AGENT, ReactionRole.AGENT,
            ReactionRole.PRODUCT, ReactionRole.PRODUCT,
        )

    def test_agents_shrunk_over_arrow(self, ethane):
        layout = _layout(
            Reaction(reactants=[ethane], products=[ethane], agents=[ethane])
        )
        agent = layout.molecule.coords[2:4]
        np.testing.assert_allclose(agent[:, 0], [3.5, 4.175])
        np.testing.assert_allclose(layout.arrow_begin, [2.5, 0.0])
        np.testing.assert_allclose(layout.arrow_end, [5.175, 0.0])
        np.testing.assert_allclose(layout.molecule.coords[4:, 0], [6.675, 8.175])

    def test_agents_lifted_by_height(self, ethane):
        tall = Molecule.build(["C", "C"], [(0, 1)], coords=[[0.0, 0.0], [0.0, 2.0]])
        layout = _layout(Reaction(reactants=[tall], products=[ethane], agents=[ethane]))
        agent = layout.molecule.coords[2:4]
        np.testing.assert_allclose(agent[:, 1], 1.1)
        assert layout.arrow_begin[1] == pytest.approx(1.0)

    def test_product_plus_follows_arrow(self, ethane):
        layout = _layout(Reaction(reactants=[ethane], products=[ethane, ethane]))
        # The arrow runs from 2.5 to 6.5 and products start 1.5 after it.
        assert layout.plus_positions == [pytest.approx(8.0 + 2.5)]

    def test_label_width_moves_next_component(self, ethane, ethanol):
        plain = _layout(Reaction(reactants=[ethane, ethane]))
        labelled = _layout(Reaction(reactants=[ethanol, ethane]))
        assert labelled.plus_positions[0] > plain.plus_positions[0] + 0.75

    def test_missing_coordinates(self):
        bare = Molecule.build(["C"])
        with pytest.raises(ValueError, match="reactant 0 has no coordinates"):
            _layout(Reaction(reactants=[bare]))

    def test_missing_product_coordinates(self, ethane):
        bare = Molecule.build(["C"])
        with pytest.raises(ValueError, match="product 1 has no coordinates"):
            _layout(Reaction(reactants=[ethane], products=[ethane, bare]))
