# tests/conftest.py

import json
import struct

import pytest

from batch_table_upgrade.core.diagnostics import Diagnostics
from batch_table_upgrade.core.gltf import Buffer, BufferView, Mesh, MeshPrimitive, Model
from batch_table_upgrade.io.glb import build_glb


@pytest.fixture
def diag():
    return Diagnostics(max_events=50)


@pytest.fixture
def model():
    """Two meshes: one primitive with _BATCHID -> accessor 4, one without."""
    m = Model()
    m.append_buffer(Buffer(data=b"\x00" * 16))
    m.append_buffer_view(BufferView(buffer=0, byte_length=16))
    m.accessors = [{"bufferView": 0, "componentType": 5126, "count": 1, "type": "VEC3"} for _ in range(5)]
    m.meshes = [
        Mesh(primitives=[MeshPrimitive(attributes={"POSITION": 0, "_BATCHID": 4}, indices=3)]),
        Mesh(primitives=[MeshPrimitive(attributes={"POSITION": 1})]),
    ]
    return m


def _pad8(data, fill):
    rem = len(data) % 8
    return data if rem == 0 else data + fill * (8 - rem)


@pytest.fixture
def make_b3dm():
    """Build b3dm bytes from table dicts/bytes and a glTF dict."""

    def _make(feature_table, batch_table=None, batch_binary=b"", gltf=None, gltf_bin=None):
        ft_json = _pad8(json.dumps(feature_table).encode("utf-8"), b" ")
        if batch_table is None:
            bt_json = b""
        elif isinstance(batch_table, bytes):
            bt_json = batch_table
        else:
            bt_json = _pad8(json.dumps(batch_table).encode("utf-8"), b" ")
        glb = build_glb(gltf or {"asset": {"version": "2.0"}}, gltf_bin)

        body = ft_json + bt_json + batch_binary + glb
        header = struct.pack(
            "<4s6I",
            b"b3dm",
            1,
            28 + len(body),
            len(ft_json),
            0,
            len(bt_json),
            len(batch_binary),
        )
        return header + body

    return _make
