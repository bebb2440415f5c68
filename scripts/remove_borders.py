#!/usr/bin/env python3
"""
Remove scan borders from a newspaper page image.

Usage:
    python remove_borders.py <image-or-loc-url> [-o output.png] [--mode both]
    python remove_borders.py <image-or-loc-url> --detect
    python remove_borders.py <loc-iiif-url> --width 800

SOURCE may be a local file or a loc.gov image URL. Thresholds are
auto-detected from the edge pixels unless given explicitly.
If -o is not specified, writes <input>_borderless.png next to the input
(or into the configured output folder for URLs).
"""

import argparse
import json
import logging
import re
import sys
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

sys.path.insert(0, str(Path(__file__).parent.parent))

from clipping_tools.api.loc_client import DisallowedURLError, ImageFetchError, LocImageClient
from clipping_tools.config.manager import ConfigManager
from clipping_tools.image.border_remover import MODES, BorderRemover, parse_threshold
from clipping_tools.image.codec import DecodeError

logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False):
    """Setup logging configuration."""
    log_level = logging.DEBUG if debug else logging.INFO
    
    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()
    
    # Console handler - simple format (no timestamp/level)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter('%(message)s'))
    root.addHandler(console_handler)


def is_url(source: str) -> bool:
    return urlparse(source).scheme in ('http', 'https')


def load_source(source: str, config: ConfigManager, width: Optional[int] = None) -> bytes:
    """Read image bytes from a file path or a loc.gov URL.

    URLs are fetched as given unless a IIIF width is requested here or in
    the config (iiif_width, 0 = unchanged).
    """
    if is_url(source):
        client = LocImageClient(
            timeout=config.get_float('LOC', 'timeout', 30),
            user_agent=config.get('LOC', 'user_agent'),
        )
        width = width or config.get_int('LOC', 'iiif_width', 0) or None
        return client.fetch_image(source, width=width)
    return Path(source).read_bytes()


def default_output_path(source: str, config: ConfigManager) -> Path:
    if is_url(source):
        folder = Path(config.get_path('output_folder') or '.')
        folder.mkdir(parents=True, exist_ok=True)
        # IIIF: .../{identifier}/full/{size}/{rotation}/default.jpg
        parts = [p for p in urlparse(source).path.split('/') if p]
        name = parts[-5] if len(parts) >= 5 and parts[-4] == 'full' else (parts[-1] if parts else '')
        stem = re.sub(r'[^A-Za-z0-9_-]+', '_', Path(name).stem).strip('_') or 'clipping'
        return folder / f"{stem}_borderless.png"
    src = Path(source)
    return src.with_name(f"{src.stem}_borderless.png")


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Remove black/white scan borders from a newspaper image.")
    parser.add_argument("source", help="Image file or loc.gov image URL")
    parser.add_argument("-o", "--output", type=Path, help="Output PNG path")
    parser.add_argument("--mode", choices=MODES, default=None,
                        help="Which borders to remove (default from config, else both)")
    parser.add_argument("--black-threshold", help="Max R/G/B for black (0-255, omit to auto-detect)")
    parser.add_argument("--white-threshold", help="Min R/G/B for white (0-255, omit to auto-detect)")
    parser.add_argument("--width", type=int, default=None,
                        help="Fetch loc.gov IIIF images at this width instead of the URL's size")
    parser.add_argument("--detect", action="store_true",
                        help="Only print the auto-detected thresholds as JSON")
    parser.add_argument("--config", help="Path to config.conf")
    parser.add_argument("--debug", action="store_true", help="Enable verbose logging")
    return parser.parse_args(argv)


def main(argv: Optional[list] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.debug)
    config = ConfigManager(args.config)
    remover = BorderRemover(config.border_remover_config())

    try:
        data = load_source(args.source, config, args.width)
        if args.detect:
            thresholds = remover.detect_border_thresholds(data)
            print(json.dumps(thresholds.to_dict()))
            return 0

        mode = args.mode or config.get('BORDERS', 'default_mode', 'both')
        result = remover.process(
            data,
            mode,
            black_threshold=parse_threshold(args.black_threshold),
            white_threshold=parse_threshold(args.white_threshold),
        )
        output = args.output or default_output_path(args.source, config)
        output.write_bytes(result.png)
    except (DisallowedURLError, ImageFetchError, DecodeError, OSError, ValueError) as e:
        logger.error(f"❌ {e}")
        return 1

    logger.info(f"✅ Saved {output} (black<={result.black_threshold}, white>={result.white_threshold})")
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n❌ Operation cancelled by user.")
        sys.exit(1)
