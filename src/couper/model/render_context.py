"""Per-molecule render state and the stack that owns it."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field

import numpy as np

from couper.model.annotation import Annotation, AtomLabel, RadicalMark
from couper.model.shapes import DrawShape


@dataclass
class RenderContext:
    """Everything extracted from one molecule for one drawing pass.

    Atom arrays are set together by :meth:`set_atoms` so that they
    always hold one entry per atom.

    Attributes:
        atom_coords: Molecule-space coordinates, shape ``(n, 2)``.
        atomic_nums: Atomic number of each atom.
        atom_labels: Resolved label of each atom, ``None`` where the
            atom is drawn without a symbol.
        annotations: Placed notes, in placement order.
        radicals: Radical-dot footprints.
        pre_shapes: Shapes drawn before the bonds.
        post_shapes: Shapes drawn after the atom labels.
    """

    atom_coords: np.ndarray = field(
        default_factory=lambda: np.zeros((0, 2), dtype=float)
    )
    atomic_nums: list[int] = field(default_factory=list)
    atom_labels: list[AtomLabel | None] = field(default_factory=list)
    annotations: list[Annotation] = field(default_factory=list)
    radicals: list[RadicalMark] = field(default_factory=list)
    pre_shapes: list[DrawShape] = field(default_factory=list)
    post_shapes: list[DrawShape] = field(default_factory=list)

    @property
    def n_atoms(self) -> int:
        return len(self.atomic_nums)

    def set_atoms(
        self,
        coords: np.ndarray,
        atomic_nums: Sequence[int],
        labels: Sequence[AtomLabel | None],
    ) -> None:
        """Replace the per-atom arrays in one step.

        Raises:
            ValueError: If the three inputs differ in length.
        """
        coords = np.asarray(coords, dtype=float).reshape(-1, 2)
        if not len(coords) == len(atomic_nums) == len(labels):
            raise ValueError(
                "atom arrays must have equal length, got "
                f"{len(coords)} coords, {len(atomic_nums)} atomic numbers "
                f"and {len(labels)} labels"
            )
        self.atom_coords = coords
        self.atomic_nums = list(atomic_nums)
        self.atom_labels = list(labels)

    def set_label(self, idx: int, label: AtomLabel | None) -> None:
        """Replace the label of a single atom."""
        self.atom_labels[idx] = label


class ContextStack:
    """Stack of :class:`RenderContext` objects owned by one drawer.

    Contexts are only created through :meth:`push`, which guarantees
    the matching pop::

        with stack.push() as ctx:
            ctx.set_atoms(...)
    """

    def __init__(self) -> None:
        self._contexts: list[RenderContext] = []

    def __len__(self) -> int:
        return len(self._contexts)

    @property
    def depth(self) -> int:
        """Index of the active context, ``-1`` when the stack is empty."""
        return len(self._contexts) - 1

    @property
    def active(self) -> RenderContext:
        """The context on top of the stack.

        Raises:
            RuntimeError: If no context is active.
        """
        if not self._contexts:
            raise RuntimeError("no active render context")
        return self._contexts[-1]

    @contextmanager
    def push(self) -> Iterator[RenderContext]:
        """Push a fresh context and pop it when the block exits."""
        ctx = RenderContext()
        self._contexts.append(ctx)
        try:
            yield ctx
        finally:
            if self._contexts.pop() is not ctx:
                raise RuntimeError("render contexts popped out of order")
