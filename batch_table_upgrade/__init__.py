"""
Batch table upgrade for legacy 3D Tiles content.

Converts the per-feature batch table of a b3dm tile (JSON property map plus
optional binary body) into the EXT_feature_metadata representation on the
tile's glTF: one typed buffer per numeric column, a "default" schema class
and feature table, and _BATCHID vertex attributes renamed to _FEATURE_ID_0.

Modules:
- config: Config knobs for the pipeline and writers
- debug: timestamped Logger
- core: document model, type inference, packing and the upgrade pipeline
- io: glTF JSON, GLB and b3dm containers
- cli: command line entry point
"""

__version__ = "1.0.0"

from .config import Config

__all__ = ["Config"]
