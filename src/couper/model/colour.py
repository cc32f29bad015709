"""Colour specifications and the atom palette lookup."""

from __future__ import annotations

from collections.abc import Mapping

#: A colour specification accepted throughout couper.
#:
#: Can be any of:
#:
#: - A CSS colour name or hex string (e.g. ``"blue"``, ``"#3333ff"``).
#: - A single float for grey (``0.0`` = black, ``1.0`` = white).
#: - An RGB tuple or list with values in ``[0, 1]``.
#:
#: See :func:`normalise_colour` for conversion to a normalised RGB tuple.
Colour = str | float | tuple[float, float, float] | list[float]

RGB = tuple[float, float, float]

BLACK: RGB = (0.0, 0.0, 0.0)


def normalise_colour(colour: Colour) -> RGB:
    """Convert a colour specification to a normalised ``(r, g, b)`` tuple.

    Args:
        colour: A CSS name, hex string, grey float or RGB sequence.

    Returns:
        A tuple of three floats in [0, 1].

    Raises:
        ValueError: If the colour cannot be interpreted.
    """
    if isinstance(colour, bool):
        raise ValueError(f"Cannot interpret colour: {colour!r}")

    if isinstance(colour, (int, float)):
        grey = float(colour)
        if not 0.0 <= grey <= 1.0:
            raise ValueError(f"Grey value must be in [0, 1], got {grey}")
        return (grey, grey, grey)

    if isinstance(colour, (tuple, list)):
        if len(colour) != 3:
            raise ValueError(
                f"RGB sequence must have 3 elements, got {len(colour)}"
            )
        rgb = tuple(float(c) for c in colour)
        for name, val in zip("rgb", rgb):
            if not 0.0 <= val <= 1.0:
                raise ValueError(
                    f"RGB component {name} must be in [0, 1], got {val}"
                )
        return rgb  # type: ignore[return-value]

    if isinstance(colour, str):
        from matplotlib.colors import to_rgb

        try:
            return to_rgb(colour)
        except ValueError:
            raise ValueError(f"Unrecognised colour name: {colour!r}")

    raise ValueError(f"Cannot interpret colour: {colour!r}")


def colours_match(a: Colour, b: Colour, tol: float = 1e-3) -> bool:
    """Return ``True`` if two colours are the same to within *tol*."""
    ca = normalise_colour(a)
    cb = normalise_colour(b)
    return all(abs(x - y) <= tol for x, y in zip(ca, cb))


def palette_colour(atomic_num: int, palette: Mapping[int, Colour]) -> RGB:
    """Look up the drawing colour for an element.

    Elements missing from *palette* use the ``-1`` entry, or black
    when the palette has none.
    """
    if atomic_num in palette:
        return normalise_colour(palette[atomic_num])
    if -1 in palette:
        return normalise_colour(palette[-1])
    return BLACK
