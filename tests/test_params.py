"""Tests for ParameterSet and the uniform layout."""

import copy

import numpy as np
import pytest

from cinegrade import ParameterSet, pack_uniforms
from cinegrade.constants import (
    U_BACKGROUND_CRUSH,
    U_EXPOSURE,
    U_GAIN,
    U_HIGHLIGHT_TINT,
    U_LIFT,
    UI_RANGES,
    UNIFORM_COUNT,
    UNIFORM_LAYOUT,
)
from cinegrade.params import FIELD_NAMES, VECTOR_FIELDS, with_component


@pytest.fixture
def graded_params():
    """Non-neutral parameter set touching every field kind."""
    return ParameterSet(
        exposure=0.25,
        contrast=1.1,
        lift=(0.01, 0.02, 0.03),
        gain=(1.05, 1.0, 0.9),
        highlight_tint=(1.0, 0.8, 0.6),
        background_crush=0.4,
    )


class TestParameterSetDefaults:
    """Test the neutral parameter set."""

    def test_has_seventeen_fields(self):
        """Test the field count matches the uniform layout."""
        assert len(FIELD_NAMES) == 17
        assert FIELD_NAMES == tuple(name for name, _ in UNIFORM_LAYOUT)

    def test_defaults_are_neutral(self):
        """Test default values describe the Original grade."""
        params = ParameterSet()

        assert params.exposure == 0.0
        assert params.contrast == 1.0
        assert params.saturation == 1.0
        assert params.lift == (0.0, 0.0, 0.0)
        assert params.gamma == (1.0, 1.0, 1.0)
        assert params.gain == (1.0, 1.0, 1.0)
        assert params.shadow_tint == (0.0, 0.0, 0.0)
        assert params.highlight_tint == (1.0, 1.0, 1.0)
        assert params.flash_threshold == 0.5
        assert params.is_identity()

    def test_vectors_normalized_to_tuples(self):
        """Test color fields accept any 3-sequence and store float tuples."""
        params = ParameterSet(lift=[0, 0.1, 0.2], gain=np.array([1.0, 1.1, 1.2]))

        assert params.lift == (0.0, 0.1, 0.2)
        assert isinstance(params.gain, tuple)
        assert all(isinstance(c, float) for c in params.gain)

    def test_vector_wrong_length_raises(self):
        """Test a color field with the wrong component count is rejected."""
        with pytest.raises(ValueError, match="exactly 3 components"):
            ParameterSet(lift=(0.0, 0.1))

    def test_vector_not_iterable_raises(self):
        """Test a scalar passed to a color field is rejected."""
        with pytest.raises(TypeError, match="sequence of 3 numbers"):
            ParameterSet(gain=1.0)

    def test_ui_defaults_match(self):
        """Test slider defaults agree with the neutral set and their own bounds."""
        params = ParameterSet()
        for name, slider in UI_RANGES.items():
            assert slider["default"] == getattr(params, name)
            assert slider["min"] <= slider["default"] <= slider["max"]

    def test_out_of_range_values_are_kept(self):
        """Test values outside the documented ranges are stored unchanged."""
        params = ParameterSet(exposure=5.0, contrast=0.1)

        assert params.exposure == 5.0
        assert params.out_of_range_fields() == ["exposure", "contrast"]


class TestParameterSetCopying:
    """Test copy and freeze semantics."""

    def test_copy_is_independent(self, graded_params):
        """Test edits to a copy never reach the original."""
        clone = graded_params.copy()
        clone.exposure = 1.5
        clone.lift = (0.0, 0.0, 0.0)

        assert graded_params.exposure == 0.25
        assert graded_params.lift == (0.01, 0.02, 0.03)
        assert clone != graded_params

    def test_copy_equals_original(self, graded_params):
        """Test a copy compares equal field by field."""
        assert graded_params.copy() == graded_params
        assert copy.copy(graded_params) == graded_params
        assert copy.deepcopy(graded_params) == graded_params

    def test_freeze_rejects_assignment(self, graded_params):
        """Test a frozen set cannot be mutated."""
        frozen = graded_params.freeze()

        assert frozen.is_frozen
        assert not graded_params.is_frozen
        with pytest.raises(AttributeError, match="frozen"):
            frozen.exposure = 2.0

    def test_copy_of_frozen_is_editable(self, graded_params):
        """Test copy() always yields an editable set."""
        editable = graded_params.freeze().copy()
        editable.exposure = -1.0

        assert not editable.is_frozen
        assert editable.exposure == -1.0

    def test_with_component(self):
        """Test replacing one channel of a color tuple."""
        assert with_component((1.0, 1.0, 1.0), 1, 0.5) == (1.0, 0.5, 1.0)


class TestParameterSetSerialization:
    """Test dict conversion."""

    def test_to_dict_round_trip(self, graded_params):
        """Test to_dict/from_dict preserves every field."""
        data = graded_params.to_dict()

        assert set(data) == set(FIELD_NAMES)
        for name in VECTOR_FIELDS:
            assert isinstance(data[name], list)
        assert ParameterSet.from_dict(data) == graded_params

    def test_from_dict_partial(self):
        """Test missing fields take defaults."""
        params = ParameterSet.from_dict({"saturation": 0.0})

        assert params.saturation == 0.0
        assert params.contrast == 1.0

    def test_from_dict_unknown_field(self):
        """Test unknown fields are reported."""
        with pytest.raises(ValueError, match="Unknown parameter fields"):
            ParameterSet.from_dict({"brightness": 1.2})


class TestIdentity:
    """Test identity detection."""

    def test_inactive_targets_ignored(self):
        """Test tint targets and flash settings do not matter at zero strength."""
        params = ParameterSet(
            shadow_tint=(0.5, 0.2, 0.1), flash_threshold=0.9, background_crush=0.8
        )
        assert params.is_identity()

    @pytest.mark.parametrize(
        "field_name,value",
        [("exposure", 0.1), ("vignette", 0.2), ("grain", 0.1), ("flash_strength", 0.5)],
    )
    def test_non_identity(self, field_name, value):
        """Test any active adjustment breaks identity."""
        assert not ParameterSet(**{field_name: value}).is_identity()


class TestPackUniforms:
    """Test the fixed uniform layout."""

    def test_slots(self, graded_params):
        """Test fields land in their documented slots."""
        buf = pack_uniforms(graded_params)

        assert buf.shape == (UNIFORM_COUNT,)
        assert buf[U_EXPOSURE] == 0.25
        np.testing.assert_array_equal(buf[U_LIFT : U_LIFT + 3], [0.01, 0.02, 0.03])
        np.testing.assert_array_equal(buf[U_GAIN : U_GAIN + 3], [1.05, 1.0, 0.9])
        np.testing.assert_array_equal(buf[U_HIGHLIGHT_TINT : U_HIGHLIGHT_TINT + 3], [1.0, 0.8, 0.6])
        assert buf[U_BACKGROUND_CRUSH] == 0.4

    def test_layout_width_sums_to_count(self):
        """Test the layout covers every slot exactly once."""
        assert sum(width for _, width in UNIFORM_LAYOUT) == UNIFORM_COUNT

    def test_out_buffer_reused(self, graded_params):
        """Test packing into a preallocated buffer."""
        out = np.zeros(UNIFORM_COUNT, dtype=np.float32)
        result = pack_uniforms(graded_params, out=out)

        assert result is out
        assert out[U_EXPOSURE] == np.float32(0.25)

    def test_out_buffer_wrong_shape(self, graded_params):
        """Test a mis-sized buffer is rejected."""
        with pytest.raises(ValueError, match="Uniform buffer"):
            pack_uniforms(graded_params, out=np.zeros(10))
