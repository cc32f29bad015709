"""Demo script: draw ethanol and a small reaction with matplotlib."""

from pathlib import Path

from couper import Molecule, MoleculeDrawer, Reaction, render_mpl

OUTPUT = Path(__file__).resolve().parent


def main():
    ethanol = Molecule.build(
        ["C", "C", "O"],
        [(0, 1), (1, 2)],
        coords=[[0.0, 0.0], [1.5, 0.0], [2.25, 1.3]],
    )
    ethene = Molecule.build(
        ["C", "C"], [(0, 1, "double")], coords=[[0.0, 0.0], [1.5, 0.0]],
    )
    water = Molecule.build(["O"], [], coords=[[0.0, 0.0]])

    drawer = MoleculeDrawer(300, 300)
    drawer.draw_molecule(ethanol, legend="ethanol", highlight_atoms=[2])
    print(f"Recorded {len(drawer.canvas.calls)} canvas call(s)")
    for meta in drawer.metadata:
        print(f"Atom positions:\n{meta.atom_positions}")

    render_mpl(ethanol, OUTPUT / "ethanol.pdf", legend="ethanol",
               add_atom_indices=True)
    print(f"Rendered to {OUTPUT / 'ethanol.pdf'}")

    reaction = Reaction(reactants=[ethene, water], products=[ethanol])
    render_mpl(reaction, OUTPUT / "hydration.pdf", size=(600, 200),
               figsize=(9.0, 3.0))
    print(f"Rendered to {OUTPUT / 'hydration.pdf'}")


if __name__ == "__main__":
    main()
