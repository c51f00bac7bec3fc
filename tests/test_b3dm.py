# tests/test_b3dm.py

import json
import struct

import pytest

from batch_table_upgrade.config import Config
from batch_table_upgrade.core.feature_metadata import ModelFeatureMetadata, PrimitiveFeatureMetadata
from batch_table_upgrade.io.b3dm import B3dmFormatError, parse_b3dm, upgrade_b3dm
from batch_table_upgrade.io.glb import build_glb


GLTF = {
    "asset": {"version": "2.0"},
    "meshes": [{"primitives": [{"attributes": {"POSITION": 0, "_BATCHID": 1}}]}],
    "accessors": [
        {"bufferView": 0, "componentType": 5126, "count": 1, "type": "VEC3"},
        {"bufferView": 1, "componentType": 5126, "count": 1, "type": "SCALAR"},
    ],
    "bufferViews": [{"buffer": 0, "byteLength": 12}, {"buffer": 0, "byteOffset": 12, "byteLength": 4}],
    "buffers": [{"byteLength": 16}],
}


def test_parse_b3dm_splits_sections(make_b3dm):
    data = make_b3dm({"BATCH_LENGTH": 2}, {"h": [1, 2]}, b"\xAA\xBB", GLTF, b"\x00" * 16)

    tile = parse_b3dm(data)

    assert tile.version == 1
    assert tile.feature_table_json == {"BATCH_LENGTH": 2}
    assert json.loads(tile.batch_table_json.decode("utf-8")) == {"h": [1, 2]}
    assert tile.batch_table_binary == b"\xAA\xBB"
    assert tile.glb[:4] == b"glTF"
    assert tile.has_batch_table
    assert tile.legacy_header is None


def test_upgrade_b3dm_end_to_end(make_b3dm, diag):
    data = make_b3dm({"BATCH_LENGTH": 2}, {"h": [1, 300], "name": ["a", "b"]}, b"", GLTF, b"\x00" * 16)

    model, result = upgrade_b3dm(data, diag=diag, config=Config())

    assert result.upgraded == {"h": "INT16"}
    assert result.unsupported == {"name": "string"}
    assert result.binary_buffer_index is None
    ext = model.get_extension(ModelFeatureMetadata)
    view = model.buffer_views[ext.feature_tables["default"].properties["h"].buffer_view]
    assert view.buffer == 1
    assert bytes(model.buffers[1].data) == struct.pack("=2h", 1, 300)

    prim = model.meshes[0].primitives[0]
    assert prim.attributes == {"POSITION": 0, "_FEATURE_ID_0": 1}
    assert prim.get_extension(PrimitiveFeatureMetadata) is not None


def test_upgrade_b3dm_without_batch_table_is_a_no_op(make_b3dm, diag):
    model, result = upgrade_b3dm(make_b3dm({"BATCH_LENGTH": 0}, None, b"", GLTF, b"\x00" * 16), diag=diag)

    assert result is None
    assert model.extensions == {}
    assert "_BATCHID" in model.meshes[0].primitives[0].attributes


def test_upgrade_b3dm_malformed_batch_table_json(make_b3dm, diag):
    model, result = upgrade_b3dm(make_b3dm({"BATCH_LENGTH": 2}, b'{"h":[1,}', b"", GLTF, b"\x00" * 16), diag=diag)

    assert result is None
    assert len(diag.errors()) == 1
    assert len(model.buffers) == 1


def _legacy1(batch_length, batch_table):
    bt = json.dumps(batch_table).encode("utf-8")
    glb = build_glb({"asset": {"version": "2.0"}})
    body = bt + glb
    header = struct.pack("<4s4I", b"b3dm", 1, 20 + len(body), batch_length, len(bt))
    return header + body


def _legacy2(batch_length, batch_table, batch_binary):
    bt = json.dumps(batch_table).encode("utf-8")
    glb = build_glb({"asset": {"version": "2.0"}})
    body = bt + batch_binary + glb
    header = struct.pack("<4s5I", b"b3dm", 1, 24 + len(body), len(bt), len(batch_binary), batch_length)
    return header + body


def test_legacy_header_without_binary_length(diag):
    tile = parse_b3dm(_legacy1(3, {"h": [1, 2, 3]}), diag=diag)

    assert tile.legacy_header == "legacy1"
    assert tile.feature_table_json == {"BATCH_LENGTH": 3}
    assert json.loads(tile.batch_table_json.decode("utf-8")) == {"h": [1, 2, 3]}
    assert tile.batch_table_binary == b""
    assert tile.glb[:4] == b"glTF"
    assert len(diag.warnings()) == 1


def test_legacy_header_with_binary_length(diag):
    tile = parse_b3dm(_legacy2(2, {"h": [1, 2]}, b"\x01\x02\x03\x04"), diag=diag)

    assert tile.legacy_header == "legacy2"
    assert tile.feature_table_json == {"BATCH_LENGTH": 2}
    assert tile.batch_table_binary == b"\x01\x02\x03\x04"
    assert tile.glb[:4] == b"glTF"


@pytest.mark.parametrize(
    "data",
    [
        b"b3dm",
        struct.pack("<4s6I", b"i3dm", 1, 28, 0, 0, 0, 0),
        struct.pack("<4s6I", b"b3dm", 2, 28, 0, 0, 0, 0),
        struct.pack("<4s6I", b"b3dm", 1, 500, 0, 0, 0, 0),
        struct.pack("<4s6I", b"b3dm", 1, 28, 64, 0, 0, 0),
        struct.pack("<4s6I", b"b3dm", 1, 32, 4, 0, 0, 0) + b"{{{{",
    ],
)
def test_parse_b3dm_rejects_bad_containers(data):
    with pytest.raises(B3dmFormatError):
        parse_b3dm(data)


def _without_feature_table(batch_table):
    bt = json.dumps(batch_table).encode("utf-8")
    glb = build_glb(GLTF, b"\x00" * 16)
    body = bt + glb
    header = struct.pack("<4s6I", b"b3dm", 1, 28 + len(body), 0, 0, len(bt), 0)
    return header + body


def test_modern_header_without_feature_table_is_not_upgraded(diag):
    data = _without_feature_table({"h": [1, 2, 3]})

    tile = parse_b3dm(data, diag=diag)
    assert tile.legacy_header is None
    assert tile.feature_table_json == {}

    model, result = upgrade_b3dm(data, diag=diag)

    assert result is None
    assert model.extensions == {}
    assert model.extensions_used == []
    assert len(model.buffers) == 1
    assert model.meshes[0].primitives[0].attributes == {"POSITION": 0, "_BATCHID": 1}
    warnings = diag.warnings()
    assert len(warnings) == 1
    assert "BATCH_LENGTH" in warnings[0]["message"]
