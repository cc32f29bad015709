"""Molecular graph types consumed by the depiction engine."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from functools import cached_property
from typing import TYPE_CHECKING

import numpy as np

from couper.model.elements import atomic_number

if TYPE_CHECKING:
    from couper.model.sgroup import LinkNode, SubstanceGroup


class BondType(StrEnum):
    """Bond order as it affects drawing.

    Attributes:
        SINGLE: One line.
        DOUBLE: Two lines.
        TRIPLE: Three lines.
        AROMATIC: Two lines, the second dashed.
        DATIVE: Half line plus arrowhead pointing at the end atom.
        DATIVE_L: Dative bond pointing at the begin atom.
        DATIVE_R: Synonym of :attr:`DATIVE`.
        ZERO: Zero-order bond, short dashes.
        HYDROGEN: Hydrogen bond, grey dots.
        OTHER: Anything else; drawn as a single line.
    """

    SINGLE = "single"
    DOUBLE = "double"
    TRIPLE = "triple"
    AROMATIC = "aromatic"
    DATIVE = "dative"
    DATIVE_L = "dative_l"
    DATIVE_R = "dative_r"
    ZERO = "zero"
    HYDROGEN = "hydrogen"
    OTHER = "other"


class BondDirection(StrEnum):
    """Stereo display direction of a bond.

    Attributes:
        NONE: No stereo display.
        BEGIN_WEDGE: Solid wedge, narrow at the stereocentre.
        BEGIN_DASH: Hashed wedge, narrow at the stereocentre.
        UNKNOWN: Unspecified stereo, drawn wavy.
        EITHER_DOUBLE: Double bond of unknown geometry, drawn crossed.
    """

    NONE = "none"
    BEGIN_WEDGE = "begin_wedge"
    BEGIN_DASH = "begin_dash"
    UNKNOWN = "unknown"
    EITHER_DOUBLE = "either_double"


class BondStereo(StrEnum):
    """Double-bond stereo flag.  Only :attr:`ANY` changes the drawing."""

    NONE = "none"
    ANY = "any"
    CIS = "cis"
    TRANS = "trans"


class QueryKind(StrEnum):
    """Closed set of query-bond variants with a dedicated glyph.

    Attributes:
        SINGLE_OR_DOUBLE: Matches single or double bonds.
        SINGLE_OR_AROMATIC: Matches single or aromatic bonds.
        DOUBLE_OR_AROMATIC: Matches double or aromatic bonds.
        ANY: Matches any bond.
        ORDER_AND_RING: A bond order constraint that must be in a ring.
        ORDER_AND_CHAIN: A bond order constraint that must not be in a
            ring.
        OTHER: Any other query; drawn dotted.
    """

    SINGLE_OR_DOUBLE = "single_or_double"
    SINGLE_OR_AROMATIC = "single_or_aromatic"
    DOUBLE_OR_AROMATIC = "double_or_aromatic"
    ANY = "any"
    ORDER_AND_RING = "order_and_ring"
    ORDER_AND_CHAIN = "order_and_chain"
    OTHER = "other"


@dataclass(frozen=True)
class BondQuery:
    """Query attached to a bond.

    Attributes:
        kind: Which query variant this is.
        negated: Whether the query is negated.  Negated queries are
            always drawn as a dotted line.
        description: Free-text description, kept for display only.
    """

    kind: QueryKind
    negated: bool = False
    description: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.kind, str):
            object.__setattr__(self, "kind", QueryKind(self.kind))


@dataclass
class Atom:
    """One atom of a depiction.

    Attributes:
        element: Element symbol (``"C"``, ``"N"``, ``"*"`` for a dummy).
        formal_charge: Formal charge.
        isotope: Mass number, or 0 when unspecified.
        num_hs: Total number of attached hydrogens not drawn as atoms.
        radical_electrons: Number of unpaired electrons.
        chiral: Whether the atom carries a tetrahedral stereo flag.
        label: Explicit display label overriding the derived symbol.
            May contain ``<sub>``/``<sup>`` markup.
        note: Free text drawn next to the atom.
        map_number: Atom-map number, or 0.
    """

    element: str
    formal_charge: int = 0
    isotope: int = 0
    num_hs: int = 0
    radical_electrons: int = 0
    chiral: bool = False
    label: str | None = None
    note: str | None = None
    map_number: int = 0

    def __post_init__(self) -> None:
        # Validates the symbol.
        atomic_number(self.element)
        if self.num_hs < 0:
            raise ValueError(f"num_hs must be non-negative, got {self.num_hs}")
        if self.isotope < 0:
            raise ValueError(
                f"isotope must be non-negative, got {self.isotope}"
            )
        if self.radical_electrons < 0:
            raise ValueError(
                "radical_electrons must be non-negative, "
                f"got {self.radical_electrons}"
            )

    @property
    def atomic_num(self) -> int:
        """Atomic number (0 for dummy atoms)."""
        return atomic_number(self.element)


@dataclass
class Bond:
    """A bond between two atoms.

    Attributes:
        begin: Index of the begin atom.
        end: Index of the end atom.
        bond_type: Bond order.
        direction: Stereo display direction.
        stereo: Double-bond stereo flag.
        aromatic: Aromaticity flag.  Defaults to ``True`` for
            :attr:`BondType.AROMATIC` bonds, ``False`` otherwise; set it
            explicitly on the double and single bonds of a Kekule form.
        query: Optional query constraint.
        note: Free text drawn next to the bond.
        variable_attachments: Atom indices of a variable attachment
            point.  Non-empty only for the bond from a dummy atom to a
            set of possible attachment atoms.
    """

    begin: int
    end: int
    bond_type: BondType = BondType.SINGLE
    direction: BondDirection = BondDirection.NONE
    stereo: BondStereo = BondStereo.NONE
    aromatic: bool | None = None
    query: BondQuery | None = None
    note: str | None = None
    variable_attachments: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        self.bond_type = BondType(self.bond_type)
        self.direction = BondDirection(self.direction)
        self.stereo = BondStereo(self.stereo)
        if self.aromatic is None:
            self.aromatic = self.bond_type == BondType.AROMATIC
        self.variable_attachments = tuple(self.variable_attachments)
        if self.begin < 0 or self.end < 0:
            raise ValueError(
                f"bond atom indices must be non-negative, "
                f"got ({self.begin}, {self.end})"
            )
        if self.begin == self.end:
            raise ValueError(f"bond joins atom {self.begin} to itself")

    def other_atom(self, idx: int) -> int:
        """Return the atom at the other end from *idx*."""
        if idx == self.begin:
            return self.end
        if idx == self.end:
            return self.begin
        raise ValueError(f"atom {idx} is not in bond {self.begin}-{self.end}")

    @property
    def is_multiple(self) -> bool:
        """Whether the bond is drawn with more than one line."""
        return self.bond_type in (
            BondType.DOUBLE, BondType.TRIPLE, BondType.AROMATIC,
        )


BondInput = Bond | tuple[int, int] | tuple[int, int, str]


@dataclass
class Molecule:
    """A molecular graph with optional 2D coordinates.

    Ring membership is perceived from the graph the first time it is
    needed unless *rings* is supplied.

    Example usage::

        mol = Molecule.build(
            ["C", "C", "O"],
            [(0, 1), (1, 2, "double")],
            coords=[[0.0, 0.0], [1.5, 0.0], [2.25, 1.3]],
        )

    Attributes:
        atoms: The atoms.
        bonds: The bonds.
        coords: Molecule-space coordinates, shape ``(n_atoms, 2)``, or
            ``None`` when the molecule has not been laid out.
        note: Free text drawn near the molecule.
        chiral_flag: Whether the structure is flagged as absolute
            stereochemistry.
        substance_groups: Bracketed and data substance groups.
        link_nodes: Repeating link-node definitions.
        rings: Rings as tuples of bond indices, or ``None`` to perceive
            them from the graph.

    Raises:
        ValueError: If *coords* has the wrong shape or a bond refers to
            a missing atom.
    """

    atoms: list[Atom]
    bonds: list[Bond] = field(default_factory=list)
    coords: np.ndarray | None = None
    note: str | None = None
    chiral_flag: bool = False
    substance_groups: list[SubstanceGroup] = field(default_factory=list)
    link_nodes: list[LinkNode] = field(default_factory=list)
    rings: list[tuple[int, ...]] | None = None

    def __post_init__(self) -> None:
        n = len(self.atoms)
        if self.coords is not None:
            self.coords = np.asarray(self.coords, dtype=float)
            if self.coords.ndim != 2 or self.coords.shape != (n, 2):
                raise ValueError(
                    f"coords must have shape ({n}, 2), "
                    f"got {self.coords.shape}"
                )
        self._atom_bonds: list[list[int]] = [[] for _ in range(n)]
        for bi, bond in enumerate(self.bonds):
            if bond.begin >= n or bond.end >= n:
                raise ValueError(
                    f"bond {bi} refers to atom out of range for "
                    f"molecule with {n} atom(s)"
                )
            self._atom_bonds[bond.begin].append(bi)
            self._atom_bonds[bond.end].append(bi)
            for idx in bond.variable_attachments:
                if not 0 <= idx < n:
                    raise ValueError(
                        f"variable attachment atom {idx} out of range"
                    )

    @classmethod
    def build(
        cls,
        elements: Sequence[str],
        bonds: Sequence[BondInput] = (),
        coords: np.ndarray | Sequence[Sequence[float]] | None = None,
        **kwargs: object,
    ) -> Molecule:
        """Build a molecule from element symbols and bond tuples.

        Args:
            elements: One symbol per atom.
            bonds: :class:`Bond` objects or ``(begin, end)`` /
                ``(begin, end, bond_type)`` tuples.
            coords: Optional ``(n_atoms, 2)`` coordinates.
            **kwargs: Passed to the :class:`Molecule` constructor.
        """
        atoms = [Atom(el) for el in elements]
        bond_objs = []
        for b in bonds:
            if isinstance(b, Bond):
                bond_objs.append(b)
            elif len(b) == 2:
                bond_objs.append(Bond(b[0], b[1]))
            else:
                bond_objs.append(Bond(b[0], b[1], BondType(b[2])))
        arr = None if coords is None else np.asarray(coords, dtype=float)
        return cls(atoms=atoms, bonds=bond_objs, coords=arr, **kwargs)

    @property
    def n_atoms(self) -> int:
        """Number of atoms."""
        return len(self.atoms)

    @property
    def has_coords(self) -> bool:
        """Whether the molecule carries 2D coordinates."""
        return self.coords is not None

    def atom_bonds(self, idx: int) -> list[int]:
        """Indices of the bonds touching atom *idx*, in bond order."""
        return self._atom_bonds[idx]

    def neighbours(self, idx: int) -> list[int]:
        """Indices of the atoms bonded to atom *idx*, in bond order."""
        return [self.bonds[bi].other_atom(idx) for bi in self._atom_bonds[idx]]

    def degree(self, idx: int) -> int:
        """Number of bonds touching atom *idx*."""
        return len(self._atom_bonds[idx])

    def bond_between(self, i: int, j: int) -> int | None:
        """Index of the bond joining atoms *i* and *j*, or ``None``."""
        for bi in self._atom_bonds[i]:
            if self.bonds[bi].other_atom(i) == j:
                return bi
        return None

    @cached_property
    def bond_rings(self) -> list[tuple[int, ...]]:
        """Smallest set of smallest rings, as tuples of bond indices."""
        if self.rings is not None:
            return [tuple(r) for r in self.rings]
        from couper.construction.rings import find_bond_rings

        edges = [(b.begin, b.end) for b in self.bonds]
        return find_bond_rings(self.n_atoms, edges)

    def rings_with_bond(self, bond_idx: int) -> list[tuple[int, ...]]:
        """Rings (bond-index tuples) containing bond *bond_idx*."""
        return [r for r in self.bond_rings if bond_idx in r]

    def is_ring_bond(self, bond_idx: int) -> bool:
        """Whether bond *bond_idx* is in any ring."""
        return any(bond_idx in r for r in self.bond_rings)

    def mean_bond_length(self) -> float | None:
        """Mean bond length in molecule units, or ``None`` if undefined."""
        if self.coords is None or not self.bonds:
            return None
        idx = np.array([(b.begin, b.end) for b in self.bonds])
        diffs = self.coords[idx[:, 0]] - self.coords[idx[:, 1]]
        return float(np.mean(np.linalg.norm(diffs, axis=1)))


@dataclass
class Reaction:
    """Reactants, agents and products of a reaction.

    Attributes:
        reactants: Molecules left of the arrow.
        products: Molecules right of the arrow.
        agents: Molecules drawn above the arrow.
    """

    reactants: list[Molecule] = field(default_factory=list)
    products: list[Molecule] = field(default_factory=list)
    agents: list[Molecule] = field(default_factory=list)
