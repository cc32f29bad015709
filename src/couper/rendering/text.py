"""Text metrics: glyph sizes, label layout and text collision queries.

Text is measured in the same units as the font size it is given, with
y pointing up.  Callers pass a font size in molecule units to get
footprints in molecule space, or in pixels to get device sizes.

Labels may contain ``<sub>``, ``<sup>`` and ``<lit>`` markup.  Atom
labels are split into pieces (element symbol, attached hydrogens,
charge) and laid out according to an :class:`Orientation`; the element
piece is always centred on the anchor.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

import numpy as np

from couper.model import Orientation, StringRect, TextAlign
from couper.rendering.geometry import line_intersects_rect

_TAG = re.compile(r"<(/?)(sub|sup|lit)>")

SCRIPT_SIZE: float = 0.75
"""Size of sub- and superscript glyphs relative to normal glyphs."""

SCRIPT_SHIFT: float = 0.35
"""Vertical shift of sub- and superscript centres, in font sizes."""


class GlyphMode(StrEnum):
    NORMAL = "normal"
    SUBSCRIPT = "sub"
    SUPERSCRIPT = "sup"


@dataclass(frozen=True)
class Glyph:
    char: str
    mode: GlyphMode = GlyphMode.NORMAL


@dataclass(frozen=True)
class GlyphRect:
    """One glyph and the box it occupies relative to the text anchor.

    Attributes:
        char: The character.
        mode: Normal, subscript or superscript.
        rect: Glyph box.
    """

    char: str
    mode: GlyphMode
    rect: StringRect

    @property
    def size_factor(self) -> float:
        """Font size of this glyph relative to the nominal size."""
        return 1.0 if self.mode == GlyphMode.NORMAL else SCRIPT_SIZE


def parse_markup(text: str) -> list[Glyph]:
    """Split marked-up text into glyphs with their script mode."""
    glyphs: list[Glyph] = []
    mode = GlyphMode.NORMAL
    pos = 0
    for m in _TAG.finditer(text):
        glyphs.extend(Glyph(c, mode) for c in text[pos:m.start()])
        closing, tag = m.groups()
        if tag != "lit":
            if closing:
                mode = GlyphMode.NORMAL
            elif tag == "sub":
                mode = GlyphMode.SUBSCRIPT
            else:
                mode = GlyphMode.SUPERSCRIPT
        pos = m.end()
    glyphs.extend(Glyph(c, mode) for c in text[pos:])
    return glyphs


def strip_markup(text: str) -> str:
    """Remove markup tags, keeping the characters."""
    return _TAG.sub("", text)


def _is_charge(g: Glyph) -> bool:
    return g.mode == GlyphMode.SUPERSCRIPT and (g.char in "+-" or g.char.isdigit())


def split_label(glyphs: Sequence[Glyph]) -> tuple[list[list[Glyph]], list[Glyph]]:
    """Split an atom label into pieces plus a trailing charge.

    A new piece starts at every normal-size capital letter once the
    current piece already holds a letter, so ``NH<sub>2</sub>`` gives
    ``N`` and ``H2``.  A leading isotope superscript stays with the
    element.

    Returns:
        ``(pieces, charge)`` where *charge* is the trailing run of
        superscript sign/digit glyphs (empty when there is none or when
        it is the whole label).
    """
    pieces: list[list[Glyph]] = []
    current: list[Glyph] = []
    for g in glyphs:
        if (
            g.mode == GlyphMode.NORMAL
            and g.char.isupper()
            and any(x.mode == GlyphMode.NORMAL and x.char.isalpha() for x in current)
        ):
            pieces.append(current)
            current = []
        current.append(g)
    pieces.append(current)

    last = pieces[-1]
    cut = len(last)
    while cut > 0 and _is_charge(last[cut - 1]):
        cut -= 1
    charge: list[Glyph] = []
    if 0 < cut < len(last):
        charge = last[cut:]
        pieces[-1] = last[:cut]
    return pieces, charge


class TextMetrics(ABC):
    """Measures glyphs and lays out text for collision testing.

    Subclasses provide :meth:`glyph_extent`; everything else is built
    on top of it.
    """

    @abstractmethod
    def glyph_extent(self, char: str, font_size: float) -> tuple[float, float]:
        """Advance width and height of one glyph at *font_size*."""

    def _layout_line(
        self, glyphs: Sequence[Glyph], font_size: float, x0: float = 0.0,
        y0: float = 0.0,
    ) -> list[GlyphRect]:
        rects: list[GlyphRect] = []
        x = x0
        for g in glyphs:
            if g.mode == GlyphMode.NORMAL:
                w, h = self.glyph_extent(g.char, font_size)
                y = y0
            else:
                w, h = self.glyph_extent(g.char, font_size * SCRIPT_SIZE)
                shift = SCRIPT_SHIFT * font_size
                y = y0 + (shift if g.mode == GlyphMode.SUPERSCRIPT else -shift)
            rects.append(GlyphRect(g.char, g.mode, StringRect(x + w / 2, y, w, h)))
            x += w
        return rects

    @staticmethod
    def _shifted(rects: list[GlyphRect], dx: float, dy: float = 0.0) -> list[GlyphRect]:
        return [
            GlyphRect(r.char, r.mode, r.rect.translated(dx, dy)) for r in rects
        ]

    def _centre_on(self, rects: list[GlyphRect], element: list[GlyphRect]) -> list[GlyphRect]:
        normal = [r.rect for r in element if r.mode == GlyphMode.NORMAL]
        anchor = StringRect.bounding(normal or [r.rect for r in element])
        return self._shifted(rects, -anchor.x)

    def label_rects(
        self, text: str, orientation: Orientation, font_size: float,
    ) -> list[GlyphRect]:
        """Glyph boxes of an atom label anchored on its atom.

        Args:
            text: Label text with optional markup.
            orientation: Direction the label grows from the atom.
            font_size: Nominal font size.

        Returns:
            One :class:`GlyphRect` per visible character, in drawing
            order.
        """
        glyphs = parse_markup(text)
        if not glyphs:
            return []
        pieces, charge = split_label(glyphs)
        first, rest = pieces[0], pieces[1:]

        if orientation in (Orientation.N, Orientation.S) and rest:
            base = self._layout_line(first + charge, font_size)
            out = self._centre_on(base, base[:len(first)])
            step = font_size if orientation == Orientation.N else -font_size
            for k, piece in enumerate(rest, start=1):
                line = self._layout_line(piece, font_size, y0=k * step)
                width = sum(r.rect.width for r in line)
                out.extend(self._shifted(line, -width / 2))
            return out

        if orientation == Orientation.W:
            ordered = [g for piece in reversed(rest) for g in piece]
            start = len(ordered)
            line = self._layout_line(ordered + first + charge, font_size)
            return self._centre_on(line, line[start:start + len(first)])

        ordered = first + [g for piece in rest for g in piece] + charge
        line = self._layout_line(ordered, font_size)
        return self._centre_on(line, line[:len(first)])

    def text_rects(
        self, text: str, font_size: float, align: TextAlign = TextAlign.MIDDLE,
    ) -> list[GlyphRect]:
        """Glyph boxes of single-line text relative to its anchor.

        Start-aligned text extends right of the anchor, end-aligned
        text left of it, and middle-aligned text equally both ways.
        """
        line = self._layout_line(parse_markup(text), font_size)
        if not line:
            return []
        width = sum(r.rect.width for r in line)
        if align == TextAlign.START:
            return line
        if align == TextAlign.END:
            return self._shifted(line, -width)
        return self._shifted(line, -width / 2)

    def label_rect(
        self, text: str, orientation: Orientation, font_size: float,
    ) -> StringRect | None:
        """Bounding box of an atom label, or ``None`` for empty text."""
        rects = self.label_rects(text, orientation, font_size)
        if not rects:
            return None
        return StringRect.bounding([r.rect for r in rects])

    def text_size(self, text: str, font_size: float) -> tuple[float, float]:
        """Width and height of single-line text."""
        rects = self.text_rects(text, font_size)
        if not rects:
            return 0.0, 0.0
        box = StringRect.bounding([r.rect for r in rects])
        return box.width, box.height

    @staticmethod
    def placed(rects: Sequence[GlyphRect], anchor: np.ndarray) -> list[StringRect]:
        """Glyph boxes moved to an absolute anchor position."""
        return [r.rect.translated(float(anchor[0]), float(anchor[1])) for r in rects]

    @staticmethod
    def line_intersects(
        rects: Sequence[StringRect], p1: np.ndarray, p2: np.ndarray,
        padding: float = 0.0,
    ) -> bool:
        """Whether segment p1-p2 touches any of the placed glyph boxes."""
        return any(line_intersects_rect(p1, p2, r, padding) for r in rects)

    @staticmethod
    def rect_intersects(
        rects: Sequence[StringRect], rect: StringRect, padding: float = 0.0,
    ) -> bool:
        """Whether *rect* overlaps any of the placed glyph boxes."""
        return any(r.intersects(rect, padding) for r in rects)

    @staticmethod
    def strings_intersect(
        rects1: Sequence[StringRect], rects2: Sequence[StringRect],
        padding: float = 0.0,
    ) -> bool:
        """Whether two placed strings overlap."""
        return any(a.intersects(b, padding) for a in rects1 for b in rects2)


# Advance widths in font sizes for the fixed-width estimator.
_NARROW = frozenset("iljtfI|!.,:;'")
_WIDE = frozenset("MWmw@")
_PUNCT = frozenset("()[]{}")


class FixedWidthTextMetrics(TextMetrics):
    """Deterministic glyph metrics from a small table of advance widths.

    Independent of installed fonts, so layouts are reproducible across
    machines.
    """

    def glyph_extent(self, char: str, font_size: float) -> tuple[float, float]:
        if char in _NARROW:
            w = 0.3
        elif char in _WIDE:
            w = 0.9
        elif char in _PUNCT:
            w = 0.35
        elif char == " ":
            w = 0.3
        elif char.isupper():
            w = 0.7
        elif char in "+-=":
            w = 0.6
        else:
            w = 0.55
        return w * font_size, font_size


class MplTextMetrics(TextMetrics):
    """Glyph metrics measured from a matplotlib font.

    Glyphs are measured once at a reference size and scaled linearly.

    Args:
        family: Font family passed to
            :class:`~matplotlib.font_manager.FontProperties`.
    """

    _REFERENCE_SIZE = 100.0

    def __init__(self, family: str = "sans-serif") -> None:
        from matplotlib.font_manager import FontProperties

        self._prop = FontProperties(family=family, size=self._REFERENCE_SIZE)
        self._cache: dict[str, float] = {}

    def glyph_extent(self, char: str, font_size: float) -> tuple[float, float]:
        if char not in self._cache:
            from matplotlib.textpath import text_to_path

            width, _height, _descent = text_to_path.get_text_width_height_descent(
                char, self._prop, ismath=False,
            )
            self._cache[char] = width / self._REFERENCE_SIZE
        return self._cache[char] * font_size, font_size
