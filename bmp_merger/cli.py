"""Command line interface for merging monochrome bitmaps."""

from __future__ import annotations

import argparse
import dataclasses
import logging
from pathlib import Path

from .errors import BmpMergerError
from .parameters import POLICIES, load_parameters
from .pipeline import merge_files, preview_pixels

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Merge a body and a border image into a 1-bit BMP")
    parser.add_argument("body", type=Path, help="Path to the body image")
    parser.add_argument("border", type=Path, help="Path to the border image")
    parser.add_argument("output", type=Path, help="Where the merged 1-bit BMP is written")
    parser.add_argument(
        "--policy",
        choices=POLICIES,
        default=None,
        help="Merge policy (default: taken from --params, else 'overlay')",
    )
    parser.add_argument(
        "--params",
        type=Path,
        default=None,
        help="Optional JSON file overriding the default merge parameters",
    )
    parser.add_argument(
        "--preview",
        type=Path,
        default=None,
        help="Also write a PNG preview of the merged pixels to this path",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Check the written BMP header and log any anomalies",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress messages")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        params = load_parameters(args.params)
        if args.verify:
            params = dataclasses.replace(params, verify_output=True)
        merged = merge_files(args.body, args.border, args.output, args.policy, params)
        if args.preview is not None:
            preview_pixels(merged).save(args.preview, format="PNG")
    except (BmpMergerError, ValueError) as exc:
        logger.error("%s", exc)
        return 1
    except OSError as exc:
        logger.error("I/O error: %s", exc)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
