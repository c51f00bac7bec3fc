# tests/test_buffer_packer.py

import struct

import pytest

from batch_table_upgrade.core.buffer_packer import (
    element_size,
    embed_binary_blob,
    pack_numeric_property,
    pack_values,
    unpack_values,
)
from batch_table_upgrade.core.gltf import Buffer, Model


@pytest.mark.parametrize(
    "type_name, size",
    [
        ("INT8", 1),
        ("UINT8", 1),
        ("INT16", 2),
        ("UINT16", 2),
        ("INT32", 4),
        ("UINT32", 4),
        ("INT64", 8),
        ("UINT64", 8),
        ("FLOAT32", 4),
        ("FLOAT64", 8),
    ],
)
def test_element_size(type_name, size):
    assert element_size(type_name) == size


def test_pack_values_is_native_endian_and_tight():
    assert pack_values("INT16", [1, 2, 300]) == struct.pack("=3h", 1, 2, 300)
    assert len(pack_values("UINT32", [1, 2, 3])) == 12


@pytest.mark.parametrize(
    "type_name, values",
    [
        ("INT8", [-128, 0, 127]),
        ("UINT16", [0, 65535]),
        ("INT64", [-(2 ** 63), 2 ** 63 - 1]),
        ("UINT64", [0, 2 ** 64 - 1]),
        ("FLOAT32", [0.5, -1.25, 16777216]),
        ("FLOAT64", [0.1, 1e300]),
    ],
)
def test_unpack_reproduces_values(type_name, values):
    assert unpack_values(type_name, pack_values(type_name, values)) == values


def test_pack_numeric_property_appends_dedicated_buffer_and_view():
    model = Model()
    model.append_buffer(Buffer(data=b"\x00" * 4))

    view_index = pack_numeric_property(model, "INT16", [1, 2, 300], 3)

    assert view_index == 0
    assert len(model.buffers) == 2
    view = model.buffer_views[view_index]
    assert view.buffer == 1
    assert view.byte_offset == 0
    assert view.byte_stride == 2
    assert view.byte_length == 6
    assert model.buffers[1].byte_length == 6
    assert bytes(model.buffers[1].data) == struct.pack("=3h", 1, 2, 300)


def test_pack_numeric_property_indices_are_append_only():
    model = Model()
    first = pack_numeric_property(model, "UINT8", [1, 2], 2)
    second = pack_numeric_property(model, "FLOAT64", [0.1, 0.2], 2)

    assert (first, second) == (0, 1)
    assert model.buffer_views[0].buffer == 0
    assert model.buffer_views[1].buffer == 1
    assert model.buffer_views[1].byte_stride == 8


def test_pack_numeric_property_packs_only_count_elements():
    model = Model()
    idx = pack_numeric_property(model, "UINT8", [1, 2, 3, 4], 2)
    assert model.buffer_view_bytes(idx) == bytes([1, 2])


def test_embed_binary_blob_empty_creates_nothing():
    model = Model()
    assert embed_binary_blob(model, b"") is None
    assert model.buffers == []


def test_embed_binary_blob_copies_bytes_without_buffer_view():
    model = Model()
    model.append_buffer(Buffer(data=b"abcd"))
    payload = bytearray(b"\x01\x02\x03")

    idx = embed_binary_blob(model, payload)
    payload[0] = 0xFF

    assert idx == 1
    assert bytes(model.buffers[1].data) == b"\x01\x02\x03"
    assert model.buffers[1].byte_length == 3
    assert model.buffer_views == []
