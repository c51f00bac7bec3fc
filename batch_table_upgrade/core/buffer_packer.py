"""
Buffer allocation and packing for upgraded batch table columns.

Every numeric property gets its own dedicated buffer and one buffer view
over it (byte_offset 0, byte_stride = element size). Elements are packed
native-endian with standard sizes and no padding between them.
"""

import struct

from .feature_metadata import (
    TYPE_FLOAT32,
    TYPE_FLOAT64,
    TYPE_INT8,
    TYPE_INT16,
    TYPE_INT32,
    TYPE_INT64,
    TYPE_UINT8,
    TYPE_UINT16,
    TYPE_UINT32,
    TYPE_UINT64,
)
from .gltf import Buffer, BufferView

# type name -> struct code ("=" prefix gives native order, standard size)
STRUCT_CODES = {
    TYPE_INT8: "b",
    TYPE_UINT8: "B",
    TYPE_INT16: "h",
    TYPE_UINT16: "H",
    TYPE_INT32: "i",
    TYPE_UINT32: "I",
    TYPE_INT64: "q",
    TYPE_UINT64: "Q",
    TYPE_FLOAT32: "f",
    TYPE_FLOAT64: "d",
}

FLOAT_TYPES = (TYPE_FLOAT32, TYPE_FLOAT64)


def element_size(type_name):
    """Size in bytes of one element of a numeric type name."""
    return struct.calcsize("=" + STRUCT_CODES[type_name])


def _cast(type_name, value):
    if type_name in FLOAT_TYPES:
        return float(value)
    return int(value)


def pack_values(type_name, values):
    """Pack values contiguously as native-endian elements of type_name."""
    code = STRUCT_CODES[type_name]
    casted = [_cast(type_name, v) for v in values]
    return struct.pack("={0}{1}".format(len(casted), code), *casted)


def unpack_values(type_name, data):
    """Inverse of pack_values for a whole buffer."""
    code = STRUCT_CODES[type_name]
    count = len(data) // element_size(type_name)
    return list(struct.unpack("={0}{1}".format(count, code), bytes(data[:count * element_size(type_name)])))


def pack_numeric_property(model, type_name, values, count):
    """Append a buffer + buffer view holding `count` elements of values.

    Args:
        model: target Model (mutated)
        type_name: one of the numeric type names
        values: JSON array elements, at least `count` of them
        count: feature count

    Returns:
        Index of the new buffer view.
    """
    stride = element_size(type_name)
    data = pack_values(type_name, values[:count])

    buffer_index = model.append_buffer(Buffer(data=data, byte_length=stride * count))
    return model.append_buffer_view(
        BufferView(
            buffer=buffer_index,
            byte_offset=0,
            byte_length=stride * count,
            byte_stride=stride,
        )
    )


def embed_binary_blob(model, data):
    """Append the batch table binary body as a buffer, verbatim.

    Returns the new buffer index, or None when data is empty. No buffer view
    is created; binary-encoded properties are not decoded.
    """
    if not data:
        return None
    return model.append_buffer(Buffer(data=bytes(data), byte_length=len(data)))
