"""Substance groups and link nodes."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SubstanceGroup:
    """A substance group: bracketed repeat unit or attached data.

    Attributes:
        atoms: Atom indices inside the group.
        bonds: Indices of bonds crossing the group boundary.
        brackets: Bracket segments as ``((x1, y1), (x2, y2))`` pairs in
            molecule space.
        kind: Group type, e.g. ``"SRU"`` or ``"DAT"``.
        connect: Connectivity label drawn at the top of the last
            bracket (``"ht"``, ``"hh"``, ``"eu"``).
        label: Label drawn at the bottom of the last bracket
            (e.g. ``"n"``).
        data: Data field values of a ``"DAT"`` group, joined with
            ``"|"`` for display.
        data_position: Fixed display position of the data text.  Absolute
            molecule-space coordinates unless *data_relative* is set,
            in which case it is an offset from the first group atom.
            ``None`` places the text like an atom note.
        data_relative: See *data_position*.
    """

    atoms: tuple[int, ...] = ()
    bonds: tuple[int, ...] = ()
    brackets: tuple[tuple[tuple[float, float], tuple[float, float]], ...] = ()
    kind: str = ""
    connect: str = ""
    label: str = ""
    data: tuple[str, ...] = ()
    data_position: tuple[float, float] | None = None
    data_relative: bool = False

    def __post_init__(self) -> None:
        for name in ("atoms", "bonds", "data"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        object.__setattr__(
            self, "brackets",
            tuple(
                (tuple(map(float, p1)), tuple(map(float, p2)))
                for p1, p2 in self.brackets
            ),
        )

    @property
    def data_text(self) -> str:
        """Display text of the data fields."""
        return "|".join(self.data)


@dataclass(frozen=True)
class LinkNode:
    """A repeating atom with the bonds its brackets cross.

    Attributes:
        min_repeat: Minimum repeat count.
        max_repeat: Maximum repeat count.
        bond_atoms: ``(inner, outer)`` atom index pairs, one per bond
            crossed by a bracket.  The inner atom is the repeating one.
    """

    min_repeat: int
    max_repeat: int
    bond_atoms: tuple[tuple[int, int], ...]

    def __post_init__(self) -> None:
        if self.min_repeat < 0:
            raise ValueError(
                f"min_repeat must be non-negative, got {self.min_repeat}"
            )
        if self.max_repeat < self.min_repeat:
            raise ValueError(
                f"max_repeat must be at least min_repeat, "
                f"got {self.max_repeat} < {self.min_repeat}"
            )
        object.__setattr__(
            self, "bond_atoms",
            tuple((int(a), int(b)) for a, b in self.bond_atoms),
        )

    @property
    def label(self) -> str:
        """The ``(min-max)`` repeat label."""
        return f"({self.min_repeat}-{self.max_repeat})"
