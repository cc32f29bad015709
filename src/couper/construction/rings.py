"""Ring perception: a smallest set of smallest rings from a bond graph."""

from __future__ import annotations

from collections.abc import Sequence

import networkx as nx


def _bond_graph(n_atoms: int, edges: Sequence[tuple[int, int]]) -> nx.Graph:
    """Atoms as nodes, bonds as edges carrying their bond index.

    Of several bonds joining the same two atoms, the first is kept.
    """
    graph = nx.Graph()
    graph.add_nodes_from(range(n_atoms))
    for bi, (a, b) in enumerate(edges):
        if a != b and not graph.has_edge(a, b):
            graph.add_edge(a, b, bond=bi)
    return graph


def _ring_bonds(graph: nx.Graph, atoms: Sequence[int]) -> tuple[int, ...]:
    """Bond indices round the ring through *atoms*, in path order.

    The walk starts at the lowest atom index and leaves along its
    lower-numbered ring bond.  Rings of a minimum cycle basis have no
    chords, so every ring atom has exactly two ring neighbours.
    """
    members = set(atoms)
    start = min(members)
    ring_nbrs = {
        a: sorted(
            (graph.edges[a, n]["bond"], n)
            for n in graph.neighbors(a) if n in members
        )
        for a in members
    }
    bonds: list[int] = []
    prev, atom = None, start
    while True:
        for bi, nbr in ring_nbrs[atom]:
            if nbr != prev:
                break
        bonds.append(bi)
        prev, atom = atom, nbr
        if atom == start:
            return tuple(bonds)


def find_bond_rings(
    n_atoms: int, edges: Sequence[tuple[int, int]],
) -> list[tuple[int, ...]]:
    """Find a smallest set of smallest rings.

    The rings are a minimum cycle basis of the bond graph, found with
    :func:`networkx.minimum_cycle_basis`.

    Args:
        n_atoms: Number of atoms.
        edges: ``(begin, end)`` atom pairs, one per bond.

    Returns:
        Rings as tuples of bond indices in path order, smallest ring
        first.  Ties are broken by the lowest bond index.
    """
    graph = _bond_graph(n_atoms, edges)
    rings = [_ring_bonds(graph, cycle) for cycle in nx.minimum_cycle_basis(graph)]
    return sorted(rings, key=lambda r: (len(r), sorted(r)))
