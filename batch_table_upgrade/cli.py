"""
Command line entry point: upgrade the batch table of a .b3dm tile.

    batch-table-upgrade tile.b3dm -o tile.gltf [--diagnostics diag.json] [-v]

With --diagnostics, the log lines are also written beside the report with a
.log suffix.

The output format follows the output suffix (.glb => binary, otherwise glTF
JSON). Exit status is 0 when the tile was read and written (WARN/ERROR
diagnostics from the upgrade itself do not change it) and 2 when the input
container is malformed or unreadable.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import Config
from .core.diagnostics import Diagnostics
from .core.safe_api import safe_call
from .debug import Logger
from .io.b3dm import B3dmFormatError, upgrade_b3dm
from .io.glb import GlbFormatError
from .io.gltf_json import write_glb, write_gltf


def _event_cap(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError("not an integer: {0!r}".format(text))
    if value < 0:
        raise argparse.ArgumentTypeError("must be >= 0, got {0}".format(value))
    return value


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="batch-table-upgrade",
        description="Convert a b3dm batch table into EXT_feature_metadata on its glTF.",
    )
    ap.add_argument("input", help="Input .b3dm tile")
    ap.add_argument("-o", "--output", required=True, help="Output .gltf or .glb path")
    ap.add_argument("--diagnostics", default=None, help="Write diagnostics JSON to this path")
    ap.add_argument("--no-embed", action="store_true", help="Do not embed buffers as data URIs (.gltf only)")
    ap.add_argument(
        "--lenient-length",
        action="store_true",
        help="Pack the first BATCH_LENGTH elements of over-long property arrays instead of skipping them",
    )
    ap.add_argument("--max-events", type=_event_cap, default=200, help="Diagnostics event cap (default: 200)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Echo log lines to the console")
    ap.add_argument("--version", action="version", version="%(prog)s " + __version__)
    return ap


def _write_diagnostics(path: Path, diag: Diagnostics, summary: dict) -> None:
    payload = {"summary": summary, "diagnostics": diag.to_dict()}
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = Config(
        strict_array_length=not args.lenient_length,
        max_diagnostic_events=args.max_events,
        embed_buffers=not args.no_embed,
        echo_log=args.verbose,
    )
    in_path = Path(args.input)
    out_path = Path(args.output)

    logger = Logger(enabled=config.echo_log, prefix=in_path.name)
    diag = Diagnostics(max_events=config.max_diagnostic_events, logger=logger)

    try:
        data = in_path.read_bytes()
        model, result = upgrade_b3dm(data, diag=diag, config=config)
    except (OSError, B3dmFormatError, GlbFormatError) as e:
        logger.error("Cannot read {0}: {1}".format(in_path, e))
        print("ERROR: {0}".format(e), file=sys.stderr)
        return 2

    if out_path.suffix.lower() == ".glb":
        write_glb(model, out_path)
    else:
        write_gltf(model, out_path, embed_buffers=config.embed_buffers)

    summary = result.to_dict() if result is not None else {"upgraded": False}
    if result is not None:
        logger.info(
            "Upgraded {0} properties ({1} unsupported), rewrote {2} primitives".format(
                len(result.upgraded), len(result.unsupported), result.primitives_rewritten
            )
        )
    else:
        logger.info("Batch table not upgraded")

    if args.diagnostics:
        safe_call(
            diag,
            phase="cli",
            callsite="write_diagnostics",
            fn=lambda: _write_diagnostics(Path(args.diagnostics), diag, summary),
            default=None,
            context={"path": args.diagnostics},
        )
        log_path = Path(args.diagnostics).with_suffix(".log")
        safe_call(
            diag,
            phase="cli",
            callsite="write_log",
            fn=lambda: logger.write(log_path),
            default=None,
            context={"path": str(log_path)},
        )

    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
