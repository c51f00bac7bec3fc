"""
Batched 3D Model (b3dm) container.

Header (28 bytes, little-endian uint32 after the magic):
    magic "b3dm", version (1), byteLength,
    featureTableJSONByteLength, featureTableBinaryByteLength,
    batchTableJSONByteLength, batchTableBinaryByteLength
followed by the four table sections and the embedded GLB.

Two legacy header layouts written by early tilers are recognised the usual
way: a length field large enough to be the start of JSON text / GLB magic
means the header is shorter than 28 bytes.
    legacy 1 (20 bytes): batchLength, batchTableByteLength
    legacy 2 (24 bytes): batchTableJSONByteLength, batchTableBinaryByteLength, batchLength
For both, the feature table is synthesized as {"BATCH_LENGTH": batchLength}.
"""

import json
import struct

from ..core.upgrade import BATCH_LENGTH, upgrade_batch_table_to_feature_metadata
from .glb import parse_glb
from .gltf_json import model_from_dict

B3DM_MAGIC = b"b3dm"
HEADER_SIZE = 28

# A length this large is really the first bytes of the following section.
LEGACY_LENGTH_THRESHOLD = 570425344

PHASE = "b3dm"


class B3dmFormatError(ValueError):
    """Raised for structurally invalid b3dm data."""


class B3dm(object):
    """Sections of a parsed b3dm tile."""

    def __init__(
        self,
        version,
        feature_table_json,
        feature_table_binary,
        batch_table_json,
        batch_table_binary,
        glb,
        legacy_header=None,
    ):
        self.version = version
        self.feature_table_json = feature_table_json
        self.feature_table_binary = feature_table_binary
        self.batch_table_json = batch_table_json
        self.batch_table_binary = batch_table_binary
        self.glb = glb
        self.legacy_header = legacy_header

    @property
    def has_batch_table(self):
        return len(self.batch_table_json) > 0


def _slice(data, offset, length, what):
    end = offset + length
    if end > len(data):
        raise B3dmFormatError(
            "{0} ({1} bytes at offset {2}) overruns the tile ({3} bytes)".format(what, length, offset, len(data))
        )
    return data[offset:end], end


def parse_b3dm(data, diag=None):
    """Split b3dm bytes into a B3dm. Raises B3dmFormatError on bad structure."""
    data = bytes(data)
    if len(data) < HEADER_SIZE:
        raise B3dmFormatError("b3dm is too short for its header ({0} bytes)".format(len(data)))

    magic, version, byte_length, ft_json_len, ft_bin_len, bt_json_len, bt_bin_len = struct.unpack_from(
        "<4s6I", data, 0
    )
    if magic != B3DM_MAGIC:
        raise B3dmFormatError("Bad b3dm magic {0!r}".format(magic))
    if version != 1:
        raise B3dmFormatError("Unsupported b3dm version {0}".format(version))
    if byte_length > len(data):
        raise B3dmFormatError("b3dm byteLength {0} exceeds available {1} bytes".format(byte_length, len(data)))

    offset = HEADER_SIZE
    legacy = None
    batch_length = None
    if bt_json_len >= LEGACY_LENGTH_THRESHOLD:
        legacy = "legacy1"
        offset -= 8
        batch_length = ft_json_len
        bt_json_len = ft_bin_len
        bt_bin_len = 0
        ft_json_len = ft_bin_len = 0
    elif bt_bin_len >= LEGACY_LENGTH_THRESHOLD:
        legacy = "legacy2"
        offset -= 4
        batch_length = bt_json_len
        bt_json_len = ft_json_len
        bt_bin_len = ft_bin_len
        ft_json_len = ft_bin_len = 0

    if legacy is not None and diag is not None:
        diag.warn(
            phase=PHASE,
            callsite="parse_b3dm",
            message="b3dm uses a deprecated header layout; feature table synthesized from batchLength",
            extra={"layout": legacy, "batch_length": batch_length},
        )

    data = data[:byte_length]
    ft_json_bytes, offset = _slice(data, offset, ft_json_len, "feature table JSON")
    ft_bin, offset = _slice(data, offset, ft_bin_len, "feature table binary")
    bt_json, offset = _slice(data, offset, bt_json_len, "batch table JSON")
    bt_bin, offset = _slice(data, offset, bt_bin_len, "batch table binary")
    glb = data[offset:]

    if ft_json_len > 0:
        try:
            feature_table_json = json.loads(ft_json_bytes.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise B3dmFormatError("Feature table JSON is invalid: {0}".format(e)) from e
    elif legacy is not None:
        feature_table_json = {BATCH_LENGTH: batch_length}
    else:
        feature_table_json = {}

    return B3dm(
        version=version,
        feature_table_json=feature_table_json,
        feature_table_binary=ft_bin,
        batch_table_json=bt_json,
        batch_table_binary=bt_bin,
        glb=glb,
        legacy_header=legacy,
    )


def upgrade_b3dm(data, diag=None, config=None):
    """Parse a b3dm tile and upgrade its batch table onto the embedded glTF.

    Returns:
        (model, UpgradeResult or None). The result is None when the tile has
        no batch table or a gate check aborted the upgrade.
    """
    tile = parse_b3dm(data, diag)
    gltf, bin_chunk = parse_glb(tile.glb)
    model = model_from_dict(gltf, bin_chunk)

    if not tile.has_batch_table:
        if diag is not None:
            diag.info(phase=PHASE, callsite="upgrade_b3dm", message="b3dm has no batch table; nothing to upgrade")
        return model, None

    result = upgrade_batch_table_to_feature_metadata(
        diag,
        model,
        tile.feature_table_json,
        tile.batch_table_json,
        tile.batch_table_binary,
        config=config,
    )
    return model, result
