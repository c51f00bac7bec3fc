"""
Numeric type inference for batch table JSON arrays.

Each element of a property array narrows a set of eleven compatibility flags
(int8 .. uint64, float32, float64, bool). Flags start True and are only ever
cleared, so the result after the scan is the set of representations that can
hold every element. select_type() then picks one by a fixed preference:
bool, the narrowest signed integer, the narrowest unsigned integer, float32,
float64, and finally the STRING fallback.

JSON values arrive as Python objects from the json module:
    bool        -> boolean element
    int         -> integer element (int64 range, uint64-only range, or beyond)
    float       -> floating-point element
    anything else (str, None, list, dict) clears every flag

Float eligibility of integers uses magnitude bounds (2e24 for float32, 2e53
for float64), not a mantissa-exact test. Integers between 2**24 and 2e24 are
therefore float32-eligible even though float32 cannot hold them exactly.
"""

import struct

from .feature_metadata import (
    TYPE_BOOLEAN,
    TYPE_FLOAT32,
    TYPE_FLOAT64,
    TYPE_INT8,
    TYPE_INT16,
    TYPE_INT32,
    TYPE_INT64,
    TYPE_STRING,
    TYPE_UINT8,
    TYPE_UINT16,
    TYPE_UINT32,
    TYPE_UINT64,
)

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1
UINT64_MAX = 2 ** 64 - 1

FLOAT32_INTEGER_BOUND = 2e24
FLOAT64_INTEGER_BOUND = 2e53

# flag attribute -> inclusive native range
INTEGER_RANGES = (
    ("is_int8", -(2 ** 7), 2 ** 7 - 1),
    ("is_uint8", 0, 2 ** 8 - 1),
    ("is_int16", -(2 ** 15), 2 ** 15 - 1),
    ("is_uint16", 0, 2 ** 16 - 1),
    ("is_int32", -(2 ** 31), 2 ** 31 - 1),
    ("is_uint32", 0, 2 ** 32 - 1),
    ("is_int64", INT64_MIN, INT64_MAX),
    ("is_uint64", 0, UINT64_MAX),
)

INTEGER_FLAGS = tuple(name for name, _lo, _hi in INTEGER_RANGES)
FLOAT_FLAGS = ("is_float32", "is_float64")
NUMERIC_FLAGS = INTEGER_FLAGS + FLOAT_FLAGS
ALL_FLAGS = NUMERIC_FLAGS + ("is_bool",)

# First match wins.
PREFERENCE_ORDER = (
    ("is_bool", TYPE_BOOLEAN),
    ("is_int8", TYPE_INT8),
    ("is_uint8", TYPE_UINT8),
    ("is_int16", TYPE_INT16),
    ("is_uint16", TYPE_UINT16),
    ("is_int32", TYPE_INT32),
    ("is_uint32", TYPE_UINT32),
    ("is_int64", TYPE_INT64),
    ("is_uint64", TYPE_UINT64),
    ("is_float32", TYPE_FLOAT32),
    ("is_float64", TYPE_FLOAT64),
)


class CompatibleTypes(object):
    """Eleven monotonic compatibility flags for one property array."""

    def __init__(self):
        for name in ALL_FLAGS:
            setattr(self, name, True)

    def clear(self, *names):
        for name in names:
            setattr(self, name, False)

    def narrow(self, name, ok):
        if not ok:
            setattr(self, name, False)

    def compatible(self):
        """Names of the flags still set, in ALL_FLAGS order."""
        return [name for name in ALL_FLAGS if getattr(self, name)]

    def to_dict(self):
        return dict((name, getattr(self, name)) for name in ALL_FLAGS)

    def __repr__(self):
        return "CompatibleTypes({0})".format(", ".join(self.compatible()) or "none")


def is_lossless_float32(value):
    """True if value survives a round trip through IEEE single precision."""
    try:
        packed = struct.pack("<f", value)
    except (OverflowError, struct.error):
        return False
    return struct.unpack("<f", packed)[0] == value


def _apply_signed_integer(result, value):
    for name, lo, hi in INTEGER_RANGES:
        result.narrow(name, lo <= value <= hi)
    result.narrow("is_float32", -FLOAT32_INTEGER_BOUND <= value <= FLOAT32_INTEGER_BOUND)
    result.narrow("is_float64", -FLOAT64_INTEGER_BOUND <= value <= FLOAT64_INTEGER_BOUND)
    result.clear("is_bool")


def _apply_float(result, value):
    result.clear(*INTEGER_FLAGS)
    result.clear("is_bool")
    result.narrow("is_float32", is_lossless_float32(value))


def _as_float(value):
    try:
        return float(value)
    except OverflowError:
        return None


def find_compatible_types(values):
    """Scan a JSON array and return its CompatibleTypes.

    Example:
        >>> find_compatible_types([1, 2, 300]).compatible()
        ['is_int16', 'is_uint16', 'is_int32', 'is_uint32', 'is_int64', 'is_uint64', 'is_float32', 'is_float64']
    """
    result = CompatibleTypes()

    for value in values:
        if isinstance(value, bool):
            # Booleans are never coerced to 0/1.
            result.clear(*NUMERIC_FLAGS)
        elif isinstance(value, int):
            if INT64_MIN <= value <= INT64_MAX:
                _apply_signed_integer(result, value)
            elif 0 <= value <= UINT64_MAX:
                # Only uint64 can hold a value above the int64 range.
                result.clear(*(n for n in ALL_FLAGS if n != "is_uint64"))
            else:
                as_float = _as_float(value)
                if as_float is None:
                    result.clear(*ALL_FLAGS)
                else:
                    _apply_float(result, as_float)
        elif isinstance(value, float):
            _apply_float(result, value)
        else:
            # A string, null, object or array.
            result.clear(*ALL_FLAGS)

    return result


def select_type(compatible):
    """Pick the preferred type name for a CompatibleTypes result.

    Returns one of the numeric type names, BOOLEAN, or STRING when no flag
    survived the scan.
    """
    for name, type_name in PREFERENCE_ORDER:
        if getattr(compatible, name):
            return type_name
    return TYPE_STRING


def infer_type(values):
    """find_compatible_types() followed by select_type()."""
    return select_type(find_compatible_types(values))
