"""
chroma_key_cli.py

Headless host for the dominant-color chroma key compositor

Author: Anelia Gaydardzhieva (https://github.com/anphiriel)
(c) 2025, MIT License

Loads a foreground and a background image, reports the key color found in the
foreground, composites at one tolerance and writes the overlay to disk.
"""

import argparse
import logging
import sys

import chroma_key_config as config
from chroma_key_core import CHANNEL_LEVELS, ChromaKeySession, report_key_color
from chroma_key_io import load_image, save_image

logger = logging.getLogger(__name__)


def _bucket_count(value):
    count = int(value)
    if not 1 <= count <= CHANNEL_LEVELS:
        raise argparse.ArgumentTypeError(f"buckets must be in [1, {CHANNEL_LEVELS}], got {count}")
    return count


def build_parser():
    parser = argparse.ArgumentParser(
        prog="chroma-key",
        description="Replace the most common foreground color with a tiled background image."
    )
    parser.add_argument("--foreground", default=config.FOREGROUND_PATH, help="foreground image path")
    parser.add_argument("--background", default=config.BACKGROUND_PATH, help="background image path")
    parser.add_argument("--output", default=config.OVERLAY_PATH, help="where to write the composited image")
    parser.add_argument("--buckets", type=_bucket_count, default=config.BUCKETS,
                        help="histogram buckets per channel (default: %(default)s)")
    parser.add_argument("--tolerance", type=int, default=None,
                        help="max per-channel distance to the key color (default: half a bucket)")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    config.configure_logging()

    try:
        fg = load_image(args.foreground)
        bg = load_image(args.background)
    except FileNotFoundError as err:
        logger.error("Error: Could not load '%s' and '%s' (%s)", args.foreground, args.background, err)
        return 1

    session = ChromaKeySession.from_images(fg, bg, args.buckets)
    report_key_color(session)

    tolerance = session.default_tolerance if args.tolerance is None else session.clamp_tolerance(args.tolerance)
    logger.info("Tolerance: %d", tolerance)
    result = session.set_tolerance(tolerance)

    try:
        out_path = save_image(args.output, result)
    except OSError as err:
        logger.error("%s", err)
        return 1
    logger.info("Overlay saved to %s", out_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
