"""
chroma_key_config.py

Environment-driven settings for the chroma key hosts

Author: Anelia Gaydardzhieva (https://github.com/anphiriel)
(c) 2025, MIT License

Values come from the process environment or a local .env file.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()

FOREGROUND_PATH  = os.getenv("CHROMA_KEY_FOREGROUND", "foreground.jpg")
BACKGROUND_PATH  = os.getenv("CHROMA_KEY_BACKGROUND", "background.jpg")
OVERLAY_PATH     = os.getenv("CHROMA_KEY_OVERLAY", "overlay.jpg")
BUCKETS          = int(os.getenv("CHROMA_KEY_BUCKETS", "4"))
DISPLAY_MAX_SIDE = int(os.getenv("CHROMA_KEY_DISPLAY_MAX_SIDE", "1400"))
LOG_LEVEL        = os.getenv("CHROMA_KEY_LOG_LEVEL", "INFO")


def configure_logging(level=LOG_LEVEL):
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )
