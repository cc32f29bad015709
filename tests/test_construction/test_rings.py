"""Tests for smallest-set-of-smallest-rings perception."""

from couper.construction.rings import find_bond_rings


class TestFindBondRings:
    def test_chain_has_no_rings(self):
        assert find_bond_rings(4, [(0, 1), (1, 2), (2, 3)]) == []

    def test_triangle(self):
        rings = find_bond_rings(3, [(0, 1), (1, 2), (2, 0)])
        assert len(rings) == 1
        assert set(rings[0]) == {0, 1, 2}

    def test_fused_squares(self):
        edges = [(0, 1), (1, 2), (2, 3), (3, 0), (1, 4), (4, 5), (5, 2)]
        rings = find_bond_rings(6, edges)
        assert sorted(set(r) for r in rings) == [{0, 1, 2, 3}, {1, 4, 5, 6}]

    def test_outer_cycle_not_chosen(self):
        # Naphthalene-like: the 10-ring is a combination of the two 6-rings.
        edges = [(i, (i + 1) % 6) for i in range(6)]
        edges += [(1, 6), (6, 7), (7, 8), (8, 9), (9, 0)]
        rings = find_bond_rings(10, edges)
        assert [len(r) for r in rings] == [6, 6]

    def test_disconnected_rings(self):
        edges = [(0, 1), (1, 2), (2, 0), (3, 4), (4, 5), (5, 3)]
        rings = find_bond_rings(6, edges)
        assert sorted(set(r) for r in rings) == [{0, 1, 2}, {3, 4, 5}]

    def test_smallest_first(self):
        # A square sharing an edge with a triangle.
        edges = [(0, 1), (1, 2), (2, 3), (3, 0), (0, 4), (4, 1)]
        rings = find_bond_rings(5, edges)
        assert [len(r) for r in rings] == [3, 4]

    def test_ring_is_in_path_order(self):
        edges = [(0, 1), (1, 2), (2, 3), (3, 0)]
        (ring,) = find_bond_rings(4, edges)
        for a, b in zip(ring, ring[1:]):
            assert set(edges[a]) & set(edges[b])

    def test_walk_starts_at_lowest_atom(self):
        edges = [(0, 1), (1, 2), (2, 3), (3, 0)]
        assert find_bond_rings(4, edges) == [(0, 1, 2, 3)]

    def test_repeated_bond_ignored(self):
        edges = [(0, 1), (1, 2), (2, 0), (0, 1)]
        rings = find_bond_rings(3, edges)
        assert [set(r) for r in rings] == [{0, 1, 2}]


class TestMoleculeRings:
    def test_ring_bond(self, kekule_benzene, ethane):
        assert kekule_benzene.is_ring_bond(0)
        assert not ethane.is_ring_bond(0)

    def test_rings_with_bond(self, kekule_benzene):
        assert len(kekule_benzene.rings_with_bond(3)) == 1
