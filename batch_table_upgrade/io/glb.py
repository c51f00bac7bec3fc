"""
GLB (binary glTF) container.

Layout (little-endian):
    header   magic "glTF", version 2, total length            (12 bytes)
    chunk 0  length, type "JSON", UTF-8 JSON padded with spaces
    chunk 1  length, type "BIN\\0", payload padded with zeros  (optional)

Chunks are 4-byte aligned.
"""

import json
import struct

GLB_MAGIC = b"glTF"
GLB_VERSION = 2
CHUNK_JSON = 0x4E4F534A
CHUNK_BIN = 0x004E4942

HEADER_SIZE = 12
CHUNK_HEADER_SIZE = 8


class GlbFormatError(ValueError):
    """Raised for structurally invalid GLB data."""


def _pad(data, fill):
    rem = len(data) % 4
    if rem == 0:
        return data
    return data + fill * (4 - rem)


def parse_glb(data):
    """Split GLB bytes into (json_dict, bin_bytes or None)."""
    data = bytes(data)
    if len(data) < HEADER_SIZE:
        raise GlbFormatError("GLB is too short for its header ({0} bytes)".format(len(data)))

    magic, version, length = struct.unpack_from("<4sII", data, 0)
    if magic != GLB_MAGIC:
        raise GlbFormatError("Bad GLB magic {0!r}".format(magic))
    if version != GLB_VERSION:
        raise GlbFormatError("Unsupported GLB version {0}".format(version))
    if length > len(data):
        raise GlbFormatError("GLB length {0} exceeds available {1} bytes".format(length, len(data)))

    offset = HEADER_SIZE
    json_chunk = None
    bin_chunk = None
    while offset + CHUNK_HEADER_SIZE <= length:
        chunk_length, chunk_type = struct.unpack_from("<II", data, offset)
        start = offset + CHUNK_HEADER_SIZE
        end = start + chunk_length
        if end > length:
            raise GlbFormatError("GLB chunk at {0} overruns the container".format(offset))
        if chunk_type == CHUNK_JSON and json_chunk is None:
            json_chunk = data[start:end]
        elif chunk_type == CHUNK_BIN and bin_chunk is None:
            bin_chunk = data[start:end]
        offset = end

    if json_chunk is None:
        raise GlbFormatError("GLB has no JSON chunk")

    try:
        gltf = json.loads(json_chunk.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise GlbFormatError("GLB JSON chunk is invalid: {0}".format(e)) from e
    return gltf, bin_chunk


def build_glb(gltf, bin_chunk=None):
    """Assemble GLB bytes from a glTF dict and an optional BIN payload."""
    json_bytes = _pad(json.dumps(gltf, separators=(",", ":")).encode("utf-8"), b" ")
    parts = [struct.pack("<II", len(json_bytes), CHUNK_JSON), json_bytes]
    if bin_chunk:
        bin_bytes = _pad(bytes(bin_chunk), b"\x00")
        parts.append(struct.pack("<II", len(bin_bytes), CHUNK_BIN))
        parts.append(bin_bytes)

    body = b"".join(parts)
    return struct.pack("<4sII", GLB_MAGIC, GLB_VERSION, HEADER_SIZE + len(body)) + body
