from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields

from couper.model._util import _field_defaults, _tuple_or_value
from couper.model.colour import Colour, normalise_colour

_COLOUR_FIELDS = frozenset({
    "highlight_colour",
    "symbol_colour",
    "annotation_colour",
    "legend_colour",
    "background_colour",
    "variable_attachment_colour",
})

_MAPPING_FIELDS = frozenset({"atom_palette", "atom_labels"})


@dataclass(frozen=True)
class DrawOptions:
    """Parameters controlling depiction layout and appearance.

    Lengths are in molecule units unless noted otherwise; line widths,
    font limits and dash patterns are in device pixels.

    Attributes:
        padding: Fraction of the fitted box added on every side.
        multiple_bond_offset: Half the spacing between the lines of a
            double bond, in molecule units.
        line_width: Bond line width in pixels.
        scale_bond_width: Scale bond line widths with the drawing.
        scale_highlight_bond_width: Scale highlight line widths with
            the drawing.
        highlight_colour: Default highlight colour.
        highlight_radius: Default radius of atom highlight ellipses.
        highlight_bond_width_multiplier: Highlight stroke width as a
            multiple of *line_width*.
        fill_highlights: Fill highlight ellipses and bond bands.
        continuous_highlight: Draw highlights underneath the molecule
            as joined strokes rather than recolouring bonds.
        circle_atoms: Draw ellipses round highlighted atoms.
        atom_highlights_are_circles: Keep highlight ellipses circular
            instead of stretching them to cover the label.
        fixed_scale: Scale as a fraction of the panel width; overrides
            fitting when smaller.  ``None`` disables.
        fixed_bond_length: Pixels per molecule unit; overrides fitting
            when smaller.  ``None`` disables.
        base_font_size: Atom-label font size in molecule units.
        min_font_size: Smallest atom-label font size in pixels.
        max_font_size: Largest atom-label font size in pixels.
        annotation_font_scale: Note font size relative to atom labels.
        legend_font_size: Legend font size in pixels.
        symbol_colour: Colour of non-atom symbols (reaction arrows,
            plus signs).
        annotation_colour: Colour of notes.
        legend_colour: Colour of the legend text.
        background_colour: Colour the canvas is cleared to.
        clear_background: Clear the panel before drawing.
        atom_palette: Atomic number to colour; ``None`` uses the
            default palette.  Key ``-1`` is the fallback colour.
        monochrome: Draw every atom in black.
        atom_labels: Atom index to explicit label.
        no_atom_labels: Suppress every atom label.
        explicit_methyl: Label terminal carbons as ``CH3``.
        isotope_labels: Show isotope mass numbers.
        dummy_isotope_labels: Show isotope numbers on dummy atoms.
        atom_label_deuterium_tritium: Write ``D``/``T`` for hydrogen
            isotopes 2 and 3.
        dummies_are_attachments: Draw dummy atoms as wavy attachment
            points.
        include_radicals: Draw unpaired-electron dots.
        add_atom_indices: Add atom indices as atom notes.
        add_bond_indices: Add bond indices as bond notes.
        include_chiral_flag_label: Add an ``ABS`` note to molecules with
            the chiral flag.
        rotate: Rotation applied to the coordinates, in degrees.
        centre_molecules_before_drawing: Move the centroid to the
            origin before drawing.
        split_bonds: Draw each bond as two halves tagged with their
            nearer atom.
        single_colour_wedge_bonds: Draw wedges in a single colour.
        additional_atom_label_padding: Extra gap between a label and
            the bonds that end at it.
        flag_close_contacts_dist: Draw a red box round atoms closer
            than this many pixels.  ``None`` disables.
        include_metadata: Record device positions of drawn atoms.
        variable_atom_radius: Radius of variable-attachment markers.
        variable_bond_width_multiplier: Variable-attachment band width
            as a multiple of *line_width*.
        variable_attachment_colour: Colour of variable-attachment
            markers.

    Raises:
        ValueError: If a value is out of range.
    """

    padding: float = 0.05
    multiple_bond_offset: float = 0.15
    line_width: float = 2.0
    scale_bond_width: bool = False
    scale_highlight_bond_width: bool = True
    highlight_colour: Colour = (1.0, 0.5, 0.5)
    highlight_radius: float = 0.3
    highlight_bond_width_multiplier: float = 8.0
    fill_highlights: bool = True
    continuous_highlight: bool = True
    circle_atoms: bool = True
    atom_highlights_are_circles: bool = False
    fixed_scale: float | None = None
    fixed_bond_length: float | None = None
    base_font_size: float = 0.6
    min_font_size: float = 6.0
    max_font_size: float = 40.0
    annotation_font_scale: float = 0.5
    legend_font_size: float = 16.0
    symbol_colour: Colour = (0.0, 0.0, 0.0)
    annotation_colour: Colour = (0.0, 0.0, 0.0)
    legend_colour: Colour = (0.0, 0.0, 0.0)
    background_colour: Colour = (1.0, 1.0, 1.0)
    clear_background: bool = True
    atom_palette: Mapping[int, Colour] | None = None
    monochrome: bool = False
    atom_labels: Mapping[int, str] | None = None
    no_atom_labels: bool = False
    explicit_methyl: bool = False
    isotope_labels: bool = True
    dummy_isotope_labels: bool = True
    atom_label_deuterium_tritium: bool = False
    dummies_are_attachments: bool = False
    include_radicals: bool = True
    add_atom_indices: bool = False
    add_bond_indices: bool = False
    include_chiral_flag_label: bool = False
    rotate: float = 0.0
    centre_molecules_before_drawing: bool = False
    split_bonds: bool = False
    single_colour_wedge_bonds: bool = False
    additional_atom_label_padding: float = 0.0
    flag_close_contacts_dist: float | None = 3.0
    include_metadata: bool = True
    variable_atom_radius: float = 0.4
    variable_bond_width_multiplier: float = 16.0
    variable_attachment_colour: Colour = (0.8, 0.8, 0.8)

    def __post_init__(self) -> None:
        if not 0.0 <= self.padding < 0.5:
            raise ValueError(
                f"padding must be in [0, 0.5), got {self.padding}"
            )
        for name in (
            "multiple_bond_offset", "highlight_radius",
            "highlight_bond_width_multiplier", "base_font_size",
            "min_font_size", "max_font_size", "annotation_font_scale",
            "legend_font_size", "variable_atom_radius",
            "variable_bond_width_multiplier",
        ):
            val = getattr(self, name)
            if val <= 0:
                raise ValueError(f"{name} must be positive, got {val}")
        for name in ("line_width", "additional_atom_label_padding"):
            val = getattr(self, name)
            if val < 0:
                raise ValueError(f"{name} must be non-negative, got {val}")
        for name in ("fixed_scale", "fixed_bond_length",
                     "flag_close_contacts_dist"):
            val = getattr(self, name)
            if val is not None and val <= 0:
                raise ValueError(
                    f"{name} must be positive or None, got {val}"
                )
        if self.min_font_size > self.max_font_size:
            raise ValueError(
                f"min_font_size ({self.min_font_size}) exceeds "
                f"max_font_size ({self.max_font_size})"
            )
        for name in _COLOUR_FIELDS:
            object.__setattr__(
                self, name, normalise_colour(getattr(self, name)),
            )
        if self.atom_palette is not None:
            object.__setattr__(
                self, "atom_palette",
                {int(k): normalise_colour(v)
                 for k, v in self.atom_palette.items()},
            )
        if self.atom_labels is not None:
            object.__setattr__(
                self, "atom_labels",
                {int(k): str(v) for k, v in self.atom_labels.items()},
            )

    def to_dict(self) -> dict:
        """Serialise to a JSON-compatible dictionary.

        Fields at their default values are omitted.  Mapping keys are
        written as strings.
        """
        defaults = _field_defaults(type(self))
        d: dict = {}
        for name, default in defaults.items():
            val = getattr(self, name)
            if name in _COLOUR_FIELDS:
                if val != normalise_colour(default):
                    d[name] = list(val)
            elif name in _MAPPING_FIELDS:
                if val is not None:
                    d[name] = {
                        str(k): list(v) if isinstance(v, tuple) else v
                        for k, v in val.items()
                    }
            elif val != default:
                d[name] = val
        return d

    @classmethod
    def from_dict(cls, d: dict) -> DrawOptions:
        """Deserialise from a dictionary.

        Raises:
            ValueError: If *d* has keys that are not option names.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(d) - known
        if unknown:
            raise ValueError(f"unknown draw options: {sorted(unknown)}")
        kwargs: dict = {}
        for key, val in d.items():
            if key in _MAPPING_FIELDS and val is not None:
                val = {int(k): _tuple_or_value(v) for k, v in val.items()}
            else:
                val = _tuple_or_value(val)
            kwargs[key] = val
        return cls(**kwargs)
