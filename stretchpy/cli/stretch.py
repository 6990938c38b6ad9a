"""stretchpy command line: develop a RAW (or any image) and auto-stretch it."""

import os

os.environ.setdefault("NUMBA_THREADING_LAYER", "workqueue")

import argparse
import logging
import sys
from typing import List, Optional

from stretchpy.domain.errors import StretchPyError
from stretchpy.domain.models import Rotation, Settings
from stretchpy.kernel.system.config import APP_CONFIG
from stretchpy.kernel.system.logging import setup_logging
from stretchpy.services.export.service import ExportService

ROTATION_CHOICES = (0, 90, 180, 270)
BIT_DEPTH_CHOICES = (8, 16, 32)


def default_output_path(input_path: str) -> str:
    stem = os.path.splitext(os.path.basename(input_path))[0]
    return os.path.join(os.path.dirname(input_path) or ".", f"{stem}_stretched.tif")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stretchpy",
        description="stretchpy -- develop an image and apply an automatic tone stretch",
        epilog="Example: stretchpy --max-width 2048 --rotate 90 -o out.jpg photo.dng",
    )

    parser.add_argument("input", metavar="FILE", help="RAW file or decoded image")

    parser.add_argument(
        "-o",
        "--output",
        default=None,
        metavar="PATH",
        help="Output file (.jpg, .tif or .exr) or directory (default: <input>_stretched.tif)",
    )

    parser.add_argument("--max-width", type=int, default=0, metavar="PX", help="Bound output width (0 = none)")
    parser.add_argument("--max-height", type=int, default=0, metavar="PX", help="Bound output height (0 = none)")

    parser.add_argument(
        "--rotate",
        type=int,
        choices=ROTATION_CHOICES,
        default=0,
        help="Clockwise rotation in degrees (default: 0)",
    )

    parser.add_argument(
        "--crop",
        type=int,
        nargs=4,
        default=None,
        metavar=("TOP", "BOTTOM", "LEFT", "RIGHT"),
        help="Pixels removed from each edge before scaling",
    )

    parser.add_argument(
        "--fast",
        action="store_true",
        help="Use the fast preview path (same size, lower fidelity)",
    )

    parser.add_argument(
        "--exposure",
        type=float,
        default=None,
        metavar="EV",
        help="Exposure compensation applied through the base curve",
    )

    parser.add_argument("--no-stretch", action="store_true", help="Skip the automatic tone stretch")

    parser.add_argument(
        "--bit-depth",
        type=int,
        choices=BIT_DEPTH_CHOICES,
        default=None,
        help="TIFF sample depth, 32 = float (default: follows the source)",
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    return parser


def build_settings(args: argparse.Namespace) -> Settings:
    crop = args.crop or (0, 0, 0, 0)
    return Settings(
        max_width=args.max_width,
        max_height=args.max_height,
        use_fastpath=args.fast,
        crop_top=crop[0],
        crop_bottom=crop[1],
        crop_left=crop[2],
        crop_right=crop[3],
        rotation=Rotation.from_degrees(args.rotate),
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logger = setup_logging(logging.DEBUG if args.verbose else APP_CONFIG.log_level)

    output = args.output or default_output_path(args.input)
    try:
        written = ExportService().export(
            args.input,
            output,
            settings=build_settings(args),
            exposure=args.exposure,
            stretch=not args.no_stretch,
            bit_depth=args.bit_depth,
        )
    except StretchPyError as e:
        logger.error(f"Failed: {e}")
        print(f"Error ({e.stage}): {e}", file=sys.stderr)
        return 1

    print(written)
    return 0


if __name__ == "__main__":
    sys.exit(main())
