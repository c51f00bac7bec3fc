"""
Model <-> glTF JSON.

Reads and writes the subset of glTF the upgrade touches (buffers, buffer
views, accessors, meshes, extensions) and carries every other top-level or
per-object member through unchanged.

Writer conventions:
- empty arrays and unset (None) indices are omitted
- buffers with resolved data are written as base64 data URIs when
  embed_buffers is True; otherwise only byteLength (and any external uri)
- extensions with a registered class are written via their to_dict()
"""

import base64
import json
from pathlib import Path

from ..core import feature_metadata  # noqa: F401  registers EXT_feature_metadata
from ..core.gltf import (
    OWNER_MODEL,
    OWNER_PRIMITIVE,
    Buffer,
    BufferView,
    Mesh,
    MeshPrimitive,
    Model,
    lookup_extension,
)
from .glb import GlbFormatError, build_glb, parse_glb

DATA_URI_PREFIX = "data:application/octet-stream;base64,"
_DATA_URI_PREFIXES = (DATA_URI_PREFIX, "data:application/gltf-buffer;base64,")

_MODEL_KEYS = {
    "asset",
    "buffers",
    "bufferViews",
    "accessors",
    "meshes",
    "extensionsUsed",
    "extensionsRequired",
    "extensions",
    "extras",
}
_MESH_KEYS = {"primitives", "name", "extensions", "extras"}
_PRIMITIVE_KEYS = {"attributes", "indices", "material", "mode", "extensions", "extras"}


# ────────────────────────────────────────────────────────────────────────────
# Reading
# ────────────────────────────────────────────────────────────────────────────


def _read_extensions(target, obj, owner):
    for name, value in (obj.get("extensions") or {}).items():
        cls = lookup_extension(owner, name)
        target.extensions[name] = cls.from_dict(value) if cls is not None else value
    if "extras" in obj:
        target.extras = obj["extras"]


def _decode_data_uri(uri):
    for prefix in _DATA_URI_PREFIXES:
        if uri.startswith(prefix):
            return base64.b64decode(uri[len(prefix):])
    return None


def _read_buffer(obj):
    uri = obj.get("uri")
    data = _decode_data_uri(uri) if uri else None
    buffer = Buffer(data=data, byte_length=obj.get("byteLength", 0), uri=None if data is not None else uri)
    buffer.name = obj.get("name")
    _read_extensions(buffer, obj, "buffer")
    return buffer


def _read_buffer_view(obj):
    view = BufferView(
        buffer=obj["buffer"],
        byte_length=obj.get("byteLength", 0),
        byte_offset=obj.get("byteOffset", 0),
        byte_stride=obj.get("byteStride"),
        target=obj.get("target"),
        name=obj.get("name"),
    )
    _read_extensions(view, obj, "bufferView")
    return view


def _read_primitive(obj):
    primitive = MeshPrimitive(
        attributes=obj.get("attributes"),
        indices=obj.get("indices"),
        material=obj.get("material"),
        mode=obj.get("mode"),
    )
    primitive.passthrough = dict((k, v) for k, v in obj.items() if k not in _PRIMITIVE_KEYS)
    _read_extensions(primitive, obj, OWNER_PRIMITIVE)
    return primitive


def _read_mesh(obj):
    mesh = Mesh(primitives=[_read_primitive(p) for p in obj.get("primitives") or []], name=obj.get("name"))
    mesh.passthrough = dict((k, v) for k, v in obj.items() if k not in _MESH_KEYS)
    _read_extensions(mesh, obj, "mesh")
    return mesh


def model_from_dict(obj, bin_chunk=None):
    """Build a Model from glTF JSON.

    Args:
        obj: parsed glTF JSON dict
        bin_chunk: GLB BIN payload; becomes the data of the first buffer
            that has no uri
    """
    model = Model()
    model.asset = dict(obj.get("asset") or model.asset)
    model.buffers = [_read_buffer(b) for b in obj.get("buffers") or []]
    model.buffer_views = [_read_buffer_view(v) for v in obj.get("bufferViews") or []]
    model.accessors = [dict(a) for a in obj.get("accessors") or []]
    model.meshes = [_read_mesh(m) for m in obj.get("meshes") or []]
    model.extensions_used = list(obj.get("extensionsUsed") or [])
    model.extensions_required = list(obj.get("extensionsRequired") or [])
    model.passthrough = dict((k, v) for k, v in obj.items() if k not in _MODEL_KEYS)
    _read_extensions(model, obj, OWNER_MODEL)

    if bin_chunk is not None:
        for buffer in model.buffers:
            if buffer.uri is None and not buffer.data:
                if len(bin_chunk) < buffer.byte_length:
                    raise GlbFormatError(
                        "BIN chunk holds {0} bytes but buffer byteLength is {1}".format(
                            len(bin_chunk), buffer.byte_length
                        )
                    )
                buffer.data = bytearray(bin_chunk[:buffer.byte_length])
                break
    return model


def read_gltf(path):
    """Read a .gltf (JSON) or .glb file into a Model."""
    path = Path(path)
    data = path.read_bytes()
    if data[:4] == b"glTF":
        gltf, bin_chunk = parse_glb(data)
        return model_from_dict(gltf, bin_chunk)
    return model_from_dict(json.loads(data.decode("utf-8")))


# ────────────────────────────────────────────────────────────────────────────
# Writing
# ────────────────────────────────────────────────────────────────────────────


def _write_extensions(out, source):
    if source.extensions:
        out["extensions"] = dict(
            (name, ext.to_dict() if hasattr(ext, "to_dict") else ext) for name, ext in source.extensions.items()
        )
    if source.extras is not None:
        out["extras"] = source.extras


def _buffer_to_dict(buffer, embed_buffers):
    out = {"byteLength": buffer.byte_length}
    if buffer.uri is not None:
        out["uri"] = buffer.uri
    elif embed_buffers and buffer.data:
        out["uri"] = DATA_URI_PREFIX + base64.b64encode(bytes(buffer.data)).decode("ascii")
    if buffer.name is not None:
        out["name"] = buffer.name
    _write_extensions(out, buffer)
    return out


def _buffer_view_to_dict(view):
    out = {"buffer": view.buffer, "byteLength": view.byte_length}
    if view.byte_offset:
        out["byteOffset"] = view.byte_offset
    if view.byte_stride is not None:
        out["byteStride"] = view.byte_stride
    if view.target is not None:
        out["target"] = view.target
    if view.name is not None:
        out["name"] = view.name
    _write_extensions(out, view)
    return out


def _primitive_to_dict(primitive):
    out = {"attributes": dict(primitive.attributes)}
    if primitive.indices is not None:
        out["indices"] = primitive.indices
    if primitive.material is not None:
        out["material"] = primitive.material
    if primitive.mode is not None:
        out["mode"] = primitive.mode
    out.update(primitive.passthrough)
    _write_extensions(out, primitive)
    return out


def _mesh_to_dict(mesh):
    out = {"primitives": [_primitive_to_dict(p) for p in mesh.primitives]}
    if mesh.name is not None:
        out["name"] = mesh.name
    out.update(mesh.passthrough)
    _write_extensions(out, mesh)
    return out


def model_to_dict(model, embed_buffers=True):
    """Serialize a Model to a glTF JSON dict."""
    out = {"asset": dict(model.asset)}
    if model.extensions_used:
        out["extensionsUsed"] = list(model.extensions_used)
    if model.extensions_required:
        out["extensionsRequired"] = list(model.extensions_required)
    out.update(model.passthrough)
    if model.meshes:
        out["meshes"] = [_mesh_to_dict(m) for m in model.meshes]
    if model.accessors:
        out["accessors"] = [dict(a) for a in model.accessors]
    if model.buffer_views:
        out["bufferViews"] = [_buffer_view_to_dict(v) for v in model.buffer_views]
    if model.buffers:
        out["buffers"] = [_buffer_to_dict(b, embed_buffers) for b in model.buffers]
    _write_extensions(out, model)
    return out


def write_gltf(model, path, embed_buffers=True):
    """Write a Model as .gltf JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(model_to_dict(model, embed_buffers=embed_buffers), f, indent=2)


def model_to_glb(model):
    """Serialize a Model as GLB bytes.

    Buffer 0 goes into the BIN chunk (its uri is dropped); every other buffer
    is embedded as a data URI so buffer indices are unchanged.
    """
    gltf = model_to_dict(model, embed_buffers=True)
    bin_chunk = None
    if model.buffers and model.buffers[0].uri is None:
        bin_chunk = bytes(model.buffers[0].data)
        gltf["buffers"][0].pop("uri", None)
    return build_glb(gltf, bin_chunk)


def write_glb(model, path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(model_to_glb(model))
