"""Serialisation helpers shared by the option dataclasses."""

from __future__ import annotations

import dataclasses
import functools


@functools.cache
def _field_defaults(cls: type) -> dict:
    """Return ``{field_name: default}`` for the fields of *cls* with a plain default.

    Fields built with ``default_factory`` or without a default are
    left out.  ``to_dict()`` compares against this to write only the
    values that changed.
    """
    return {
        f.name: f.default
        for f in dataclasses.fields(cls)
        if f.default is not dataclasses.MISSING
    }


def _tuple_or_value(val: object) -> object:
    """Turn JSON lists back into tuples, recursively.

    JSON has no tuple type, so colours and dash patterns come back
    from a round trip as lists.
    """
    if isinstance(val, list):
        return tuple(_tuple_or_value(v) for v in val)
    return val
