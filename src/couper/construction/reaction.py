"""Reaction layout: place reactants, agents and products along one line."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import StrEnum

import numpy as np

from couper.construction.labels import atom_label
from couper.model import DrawOptions, Molecule, Orientation, Reaction
from couper.rendering.text import TextMetrics

REACTION_SPACING: float = 1.0
"""Gap between neighbouring components, in molecule units."""

AGENT_SCALE: float = 0.45
"""Coordinate scale of agents drawn over the arrow."""

# Agents sit this fraction of the way up the top half of the reaction.
_AGENT_LIFT = 1.1


class ReactionRole(StrEnum):
    """Which part of a reaction an atom came from."""

    REACTANT = "reactant"
    AGENT = "agent"
    PRODUCT = "product"


@dataclass(frozen=True, eq=False)
class ReactionLayout:
    """A reaction merged into one molecule with its arrow and plus signs.

    Attributes:
        molecule: All components in one molecule, in reactant, agent,
            product order, with placed coordinates.
        arrow_begin: Tail of the reaction arrow.
        arrow_end: Tip of the reaction arrow.
        plus_positions: x positions of the plus signs, which sit at the
            arrow's height.
        roles: Role of each atom of *molecule*.
    """

    molecule: Molecule
    arrow_begin: np.ndarray
    arrow_end: np.ndarray
    plus_positions: list[float]
    roles: tuple[ReactionRole, ...]


@dataclass
class _Extent:
    min_y: float = np.inf
    max_y: float = -np.inf


def _label_sizes(
    mol: Molecule, metrics: TextMetrics, options: DrawOptions,
) -> list[tuple[float, float, Orientation]]:
    sizes = []
    for idx in range(mol.n_atoms):
        label = atom_label(mol, idx, mol.coords, options)
        if label is None:
            sizes.append((0.0, 0.0, Orientation.E))
            continue
        rect = metrics.label_rect(label.text, label.orientation, options.base_font_size)
        if rect is None:
            sizes.append((0.0, 0.0, label.orientation))
        else:
            sizes.append((rect.width, rect.height, label.orientation))
    return sizes


def _place(
    mol: Molecule,
    metrics: TextMetrics,
    options: DrawOptions,
    offset: float,
    extent: _Extent,
    coord_scale: float = 1.0,
    v_shift: float | None = None,
) -> tuple[np.ndarray, float]:
    """Coordinates of *mol* starting at *offset*, and the next free x.

    The leftmost label edge lands on *offset*.  Unless *v_shift* is
    given, the vertical extent of the atoms and labels grows *extent*.
    """
    if not mol.n_atoms:
        return np.zeros((0, 2)), offset + REACTION_SPACING
    coords = mol.coords
    sizes = _label_sizes(mol, metrics, options)

    min_x = np.inf
    for (x, _), (width, _, orient) in zip(coords, sizes):
        x -= width if orient == Orientation.W else width / 2
        min_x = min(min_x, x * coord_scale)
    offset += abs(min_x)

    placed = np.empty_like(coords)
    max_x = -np.inf
    for i, ((x, y), (width, height, orient)) in enumerate(zip(coords, sizes)):
        px = x * coord_scale + offset
        py = y * coord_scale + (v_shift or 0.0)
        if orient != Orientation.E:
            width /= 2
        if v_shift is None:
            extent.max_y = max(extent.max_y, py + height / 2)
            extent.min_y = min(extent.min_y, py - height / 2)
        max_x = max(max_x, px + width)
        placed[i] = (px, py)
    return placed, max_x + REACTION_SPACING


def _merge(parts: list[tuple[Molecule, np.ndarray]]) -> Molecule:
    atoms = []
    bonds = []
    coords = []
    for mol, placed in parts:
        base = len(atoms)
        atoms.extend(mol.atoms)
        bonds.extend(
            dataclasses.replace(
                b, begin=b.begin + base, end=b.end + base,
                variable_attachments=tuple(i + base for i in b.variable_attachments),
            )
            for b in mol.bonds
        )
        coords.append(placed)
    arr = np.vstack(coords) if coords else np.zeros((0, 2))
    return Molecule(atoms=atoms, bonds=bonds, coords=arr)


def reaction_layout(
    reaction: Reaction,
    metrics: TextMetrics,
    options: DrawOptions,
) -> ReactionLayout:
    """Lay a reaction out left to right: reactants, arrow, products.

    Components are separated by :data:`REACTION_SPACING`, with a plus
    sign in the gap between two reactants or two products.  Agents are
    shrunk by :data:`AGENT_SCALE` and lifted above the arrow; without
    agents the arrow is three spacings long.

    Args:
        reaction: The reaction.  Every component must have coordinates.
        metrics: Text metrics used to allow for label widths.
        options: Drawing options used to derive atom labels.

    Raises:
        ValueError: If a component has no coordinates.
    """
    for kind, mols in (
        ("reactant", reaction.reactants),
        ("agent", reaction.agents),
        ("product", reaction.products),
    ):
        for i, mol in enumerate(mols):
            if not mol.has_coords:
                raise ValueError(f"{kind} {i} has no coordinates")

    extent = _Extent()
    plus: list[float] = []
    offset = 0.0
    reactants = []
    for i, mol in enumerate(reaction.reactants):
        if i:
            plus.append(offset)
            offset += REACTION_SPACING
        placed, offset = _place(mol, metrics, options, offset, extent)
        reactants.append((mol, placed))
    arrow_x = offset
    agent_offset = offset + REACTION_SPACING

    # Products go first from zero so the full height is known for the
    # agents, then move right of the arrow.
    n_reactant_plus = len(plus)
    offset = 0.0
    products = []
    for i, mol in enumerate(reaction.products):
        if i:
            plus.append(offset)
            offset += REACTION_SPACING
        placed, offset = _place(mol, metrics, options, offset, extent)
        products.append((mol, placed))

    if not np.isfinite(extent.max_y):
        extent.min_y = extent.max_y = 0.0
    v_shift = _AGENT_LIFT * extent.max_y / 2
    offset = agent_offset
    agents = []
    for mol in reaction.agents:
        placed, offset = _place(
            mol, metrics, options, offset, extent, AGENT_SCALE, v_shift,
        )
        agents.append((mol, placed))
    arrow_end_x = offset if reaction.agents else offset + 3 * REACTION_SPACING

    shift = arrow_end_x + 1.5 * REACTION_SPACING
    products = [(mol, placed + (shift, 0.0)) for mol, placed in products]
    plus[n_reactant_plus:] = [x + shift for x in plus[n_reactant_plus:]]

    arrow_y = extent.min_y + (extent.max_y - extent.min_y) / 2
    roles = (
        [ReactionRole.REACTANT] * sum(m.n_atoms for m, _ in reactants)
        + [ReactionRole.AGENT] * sum(m.n_atoms for m, _ in agents)
        + [ReactionRole.PRODUCT] * sum(m.n_atoms for m, _ in products)
    )
    return ReactionLayout(
        molecule=_merge(reactants + agents + products),
        arrow_begin=np.array([arrow_x, arrow_y]),
        arrow_end=np.array([arrow_end_x, arrow_y]),
        plus_positions=plus,
        roles=tuple(roles),
    )
