"""Drawing options save/load for JSON files."""

from __future__ import annotations

import json
from pathlib import Path

from couper.model import DrawOptions

_VALID_SECTIONS = frozenset({"draw_options"})


def save_options(path: str | Path, options: DrawOptions) -> None:
    """Save drawing options to a JSON file.

    Only options that differ from their defaults are written, under a
    ``"draw_options"`` section.  The file is human-readable with
    two-space indentation.

    Args:
        path: Destination file path.
        options: The options to save.
    """
    data = {"draw_options": options.to_dict()}
    Path(path).write_text(json.dumps(data, indent=2) + "\n")


def load_options(path: str | Path) -> DrawOptions:
    """Load drawing options from a JSON file.

    A file without a ``"draw_options"`` section gives the default
    options.

    Args:
        path: Source file path.

    Returns:
        The parsed :class:`DrawOptions`.

    Raises:
        ValueError: If the file contains unknown top-level keys or
            unknown option names.
    """
    data = json.loads(Path(path).read_text())

    unknown = set(data) - _VALID_SECTIONS
    if unknown:
        raise ValueError(
            f"unknown top-level keys in options file: {sorted(unknown)}"
        )
    return DrawOptions.from_dict(data.get("draw_options", {}))
