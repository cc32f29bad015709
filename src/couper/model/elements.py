"""Element symbols indexed by atomic number."""

from __future__ import annotations

ELEMENT_SYMBOLS: tuple[str, ...] = (
    "*",
    "H", "He",
    "Li", "Be", "B", "C", "N", "O", "F", "Ne",
    "Na", "Mg", "Al", "Si", "P", "S", "Cl", "Ar",
    "K", "Ca", "Sc", "Ti", "V", "Cr", "Mn", "Fe", "Co", "Ni", "Cu", "Zn",
    "Ga", "Ge", "As", "Se", "Br", "Kr",
    "Rb", "Sr", "Y", "Zr", "Nb", "Mo", "Tc", "Ru", "Rh", "Pd", "Ag", "Cd",
    "In", "Sn", "Sb", "Te", "I", "Xe",
    "Cs", "Ba", "La", "Ce", "Pr", "Nd", "Pm", "Sm", "Eu", "Gd", "Tb", "Dy",
    "Ho", "Er", "Tm", "Yb", "Lu", "Hf", "Ta", "W", "Re", "Os", "Ir", "Pt",
    "Au", "Hg", "Tl", "Pb", "Bi", "Po", "At", "Rn",
    "Fr", "Ra", "Ac", "Th", "Pa", "U", "Np", "Pu", "Am", "Cm", "Bk", "Cf",
    "Es", "Fm", "Md", "No", "Lr", "Rf", "Db", "Sg", "Bh", "Hs", "Mt", "Ds",
    "Rg", "Cn", "Nh", "Fl", "Mc", "Lv", "Ts", "Og",
)

_NUMBERS: dict[str, int] = {sym: z for z, sym in enumerate(ELEMENT_SYMBOLS)}
# Common spellings of the dummy atom and hydrogen isotopes.
_NUMBERS.update({"R": 0, "A": 0, "Q": 0, "X": 0, "D": 1, "T": 1})


def atomic_number(symbol: str) -> int:
    """Return the atomic number for an element symbol.

    Dummy-atom symbols (``*``, ``R``, ``A``, ``Q``, ``X``) map to 0 and
    the hydrogen isotopes ``D`` and ``T`` map to 1.

    Raises:
        ValueError: If *symbol* is not a recognised element.
    """
    try:
        return _NUMBERS[symbol]
    except KeyError:
        raise ValueError(f"unknown element symbol: {symbol!r}") from None
