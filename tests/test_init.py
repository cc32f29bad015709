"""Tests for the couper public API."""

import couper


class TestPublicAPI:
    def test_all_names_importable(self):
        for name in couper.__all__:
            assert hasattr(couper, name), f"{name} not importable from couper"

    def test_end_to_end_molecule_to_png(self, tmp_path):
        mol = couper.Molecule.build(
            ["C", "C", "O"], [(0, 1), (1, 2)],
            coords=[[0.0, 0.0], [1.5, 0.0], [2.25, 1.3]],
        )
        out = tmp_path / "ethanol.png"
        couper.render_mpl(mol, out, legend="ethanol")
        assert out.exists()
        assert out.stat().st_size > 0
