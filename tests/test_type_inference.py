# tests/test_type_inference.py

import pytest

from batch_table_upgrade.core.type_inference import (
    CompatibleTypes,
    find_compatible_types,
    infer_type,
    is_lossless_float32,
    select_type,
)


@pytest.mark.parametrize(
    "values",
    [
        [0],
        [-128, 127],
        [1, 2, 3],
        [-5, 0, 100, -100],
    ],
)
def test_small_signed_integers_are_int8(values):
    assert infer_type(values) == "INT8"


@pytest.mark.parametrize(
    "values, expected",
    [
        ([0, 255], "UINT8"),
        ([-1, 200], "INT16"),
        ([1, 2, 300], "INT16"),
        ([0, 40000], "UINT16"),
        ([-40000, 1], "INT32"),
        ([0, 3000000000], "UINT32"),
        ([-3000000000, 3000000000], "INT64"),
        ([2 ** 63 - 1], "INT64"),
        ([-(2 ** 63)], "INT64"),
    ],
)
def test_integer_widening_prefers_signed_then_unsigned(values, expected):
    assert infer_type(values) == expected


def test_uint64_only_value_leaves_only_uint64_flag():
    for values in ([2 ** 63], [1, 2 ** 63], [2 ** 64 - 1, 7]):
        result = find_compatible_types(values)
        assert result.compatible() == ["is_uint64"]
        assert select_type(result) == "UINT64"


def test_negative_value_after_uint64_only_value_clears_everything():
    assert find_compatible_types([2 ** 63, -1]).compatible() == []
    assert infer_type([2 ** 63, -1]) == "STRING"


def test_booleans_select_boolean():
    assert infer_type([True, False, True]) == "BOOLEAN"


@pytest.mark.parametrize("values", [[True, 1], [1, True], [False, 0.5], [0.5, False]])
def test_mixing_boolean_and_numeric_clears_every_flag(values):
    result = find_compatible_types(values)
    for name in ("is_int8", "is_uint8", "is_int16", "is_uint16", "is_int32",
                 "is_uint32", "is_int64", "is_uint64", "is_float32", "is_float64"):
        assert getattr(result, name) is False
    assert result.is_bool is False
    assert select_type(result) == "STRING"


def test_single_precision_floats_prefer_float32():
    assert infer_type([0.5, 1.25, -2.0]) == "FLOAT32"
    assert infer_type([1, 2, 0.5]) == "FLOAT32"


def test_double_precision_float_selects_float64():
    assert infer_type([0.1]) == "FLOAT64"
    assert infer_type([1, 0.1]) == "FLOAT64"


def test_float_flags_are_monotonic():
    # A later float32-exact value must not re-enable float32.
    assert infer_type([0.1, 0.5]) == "FLOAT64"
    assert infer_type([0.5, 0.1]) == "FLOAT64"


def test_float32_eligibility_of_integers_uses_magnitude_bound():
    # Both are below the 2e24 bound, so both are float32-eligible even
    # though only 16777216 (2**24) is exactly representable.
    assert find_compatible_types([16777216, 0.5]).is_float32
    assert find_compatible_types([16777217, 0.5]).is_float32
    assert infer_type([16777217, 0.5]) == "FLOAT32"


def test_integer_above_uint64_range_is_treated_as_float():
    result = find_compatible_types([2 ** 64])
    assert result.compatible() == ["is_float32", "is_float64"]


def test_integer_beyond_double_range_clears_everything():
    assert find_compatible_types([10 ** 400]).compatible() == []


@pytest.mark.parametrize("other", ["a", None, [1], {"x": 1}])
def test_non_numeric_elements_clear_every_flag(other):
    result = find_compatible_types([1, other])
    assert result.compatible() == []
    assert select_type(result) == "STRING"


def test_empty_array_keeps_all_flags():
    assert len(find_compatible_types([]).compatible()) == 11


def test_is_lossless_float32():
    assert is_lossless_float32(0.5)
    assert is_lossless_float32(16777216.0)
    assert not is_lossless_float32(16777217.0)
    assert not is_lossless_float32(0.1)
    assert not is_lossless_float32(1e300)


def test_compatible_types_to_dict_has_eleven_flags():
    d = CompatibleTypes().to_dict()
    assert len(d) == 11
    assert all(d.values())
