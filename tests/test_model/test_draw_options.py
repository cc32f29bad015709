"""Tests for DrawOptions validation and dict round-trips."""

import dataclasses

import pytest

from couper.model import DrawOptions


class TestDrawOptionsDefaults:
    def test_colour_fields_normalised(self):
        opts = DrawOptions()
        assert opts.highlight_colour == (1.0, 0.5, 0.5)
        assert opts.background_colour == (1.0, 1.0, 1.0)

    def test_colour_string_normalised(self):
        opts = DrawOptions(legend_colour="blue")
        assert opts.legend_colour == (0.0, 0.0, 1.0)

    def test_palette_colours_normalised(self):
        opts = DrawOptions(atom_palette={8: "red", "7": 0.5})
        assert opts.atom_palette == {8: (1.0, 0.0, 0.0), 7: (0.5, 0.5, 0.5)}

    def test_frozen(self):
        opts = DrawOptions()
        with pytest.raises(dataclasses.FrozenInstanceError):
            opts.line_width = 3.0


class TestDrawOptionsValidation:
    def test_padding_upper_bound(self):
        with pytest.raises(ValueError, match="padding"):
            DrawOptions(padding=0.5)

    def test_padding_negative(self):
        with pytest.raises(ValueError, match="padding"):
            DrawOptions(padding=-0.1)

    def test_positive_fields(self):
        with pytest.raises(ValueError, match="multiple_bond_offset must be positive"):
            DrawOptions(multiple_bond_offset=0.0)

    def test_negative_line_width(self):
        with pytest.raises(ValueError, match="line_width must be non-negative"):
            DrawOptions(line_width=-1.0)

    def test_zero_line_width_allowed(self):
        assert DrawOptions(line_width=0.0).line_width == 0.0

    def test_fixed_scale_must_be_positive(self):
        with pytest.raises(ValueError, match="positive or None"):
            DrawOptions(fixed_scale=0.0)

    def test_close_contacts_can_be_disabled(self):
        assert DrawOptions(flag_close_contacts_dist=None).flag_close_contacts_dist is None

    def test_font_limits_ordered(self):
        with pytest.raises(ValueError, match="exceeds max_font_size"):
            DrawOptions(min_font_size=20.0, max_font_size=10.0)

    def test_bad_colour(self):
        with pytest.raises(ValueError):
            DrawOptions(symbol_colour="nonsense")


class TestDrawOptionsDict:
    def test_defaults_give_empty_dict(self):
        assert DrawOptions().to_dict() == {}

    def test_changed_fields_only(self):
        d = DrawOptions(line_width=3.0, monochrome=True).to_dict()
        assert d == {"line_width": 3.0, "monochrome": True}

    def test_colour_written_as_list(self):
        d = DrawOptions(legend_colour="red").to_dict()
        assert d == {"legend_colour": [1.0, 0.0, 0.0]}

    def test_palette_keys_written_as_strings(self):
        d = DrawOptions(atom_palette={8: "red"}).to_dict()
        assert d == {"atom_palette": {"8": [1.0, 0.0, 0.0]}}

    def test_round_trip(self):
        opts = DrawOptions(
            padding=0.1,
            fixed_bond_length=30.0,
            legend_colour=(0.2, 0.3, 0.4),
            atom_palette={8: (1.0, 0.0, 0.0), -1: (0.0, 0.0, 0.0)},
            atom_labels={0: "R<sub>1</sub>"},
            flag_close_contacts_dist=None,
        )
        restored = DrawOptions.from_dict(opts.to_dict())
        assert restored == opts

    def test_from_dict_converts_lists(self):
        opts = DrawOptions.from_dict({"highlight_colour": [0.0, 1.0, 0.0]})
        assert opts.highlight_colour == (0.0, 1.0, 0.0)

    def test_from_dict_unknown_key(self):
        with pytest.raises(ValueError, match="unknown draw options"):
            DrawOptions.from_dict({"bond_colour": [0, 0, 0]})
