"""Shared test fixtures for couper."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from couper.model import Atom, Bond, BondDirection, Molecule


def hexagon(radius=1.5):
    """Corners of a regular hexagon with a vertex at the top."""
    angles = np.radians(90.0 + 60.0 * np.arange(6))
    return np.column_stack([radius * np.cos(angles), radius * np.sin(angles)])


@pytest.fixture
def ethane():
    """Two carbons 1.5 apart along x."""
    return Molecule.build(["C", "C"], [(0, 1)], coords=[[0.0, 0.0], [1.5, 0.0]])


@pytest.fixture
def ethanol():
    """C-C-OH with the hydroxyl up and to the right."""
    return Molecule(
        atoms=[Atom("C"), Atom("C"), Atom("O", num_hs=1)],
        bonds=[Bond(0, 1), Bond(1, 2)],
        coords=np.array([[0.0, 0.0], [1.5, 0.0], [2.25, 1.3]]),
    )


@pytest.fixture
def kekule_benzene():
    """Benzene with alternating single and double bonds."""
    bonds = [
        (i, (i + 1) % 6, "double" if i % 2 == 0 else "single")
        for i in range(6)
    ]
    return Molecule.build(["C"] * 6, bonds, coords=hexagon())


@pytest.fixture
def aromatic_benzene():
    """Benzene with six aromatic bonds."""
    bonds = [(i, (i + 1) % 6, "aromatic") for i in range(6)]
    return Molecule.build(["C"] * 6, bonds, coords=hexagon())


@pytest.fixture
def wedged():
    """A stereocentre with a wedge to a methyl group."""
    return Molecule(
        atoms=[Atom("C", chiral=True), Atom("C"), Atom("C"), Atom("O")],
        bonds=[
            Bond(0, 1, direction=BondDirection.BEGIN_WEDGE),
            Bond(0, 2),
            Bond(0, 3),
        ],
        coords=np.array([[0.0, 0.0], [0.0, 1.5], [-1.3, -0.75], [1.3, -0.75]]),
    )
