#!/usr/bin/env python3
# ascii_mosaic/cli.py
"""
Entry point for ASCII Mosaic.
Loads configuration, applies command line overrides, converts one image file
and writes the result.
"""

import argparse
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from PIL import Image

from ascii_mosaic.config import SUBSET_PRESETS, Config
from ascii_mosaic.errors import MosaicError
from ascii_mosaic.glyphs import RenderingParams
from ascii_mosaic.logging_conf import setup_logging
from ascii_mosaic.raster import Rect
from ascii_mosaic.rendering.renderer import ConversionRequest, ConversionService, Mode
from ascii_mosaic.version import version_info

log = logging.getLogger("ascii_mosaic.cli")

SAVE_FORMATS = {
    ".bmp": "BMP",
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ascii-mosaic",
        description="Turn an image into an ASCII-art or pixelization mosaic.",
    )
    p.add_argument("input", help="source image (BMP, JPG, PNG, ...)")
    p.add_argument("output", help="destination image; format follows the extension")
    p.add_argument("-m", "--mode", choices=[m.value for m in Mode], help="conversion mode")
    p.add_argument("-c", "--color", action="store_true", default=None,
                   help="tint glyphs with each block's average color")
    p.add_argument("--mono", dest="color", action="store_false",
                   help="draw glyphs in their own gray levels")
    chars = p.add_mutually_exclusive_group()
    chars.add_argument("-s", "--subset", help="characters to use, lightest first")
    chars.add_argument("-p", "--preset", choices=sorted(SUBSET_PRESETS), help="named character subset")
    chars.add_argument("--all-chars", action="store_true", help="use every printable ASCII character")
    p.add_argument("-f", "--font", help="TrueType font file (default: Pillow's bundled font)")
    p.add_argument("--size", type=int, help="font size; also the pixelization block size")
    p.add_argument("--glyph-width", type=int, help="override glyph box width")
    p.add_argument("--glyph-height", type=int, help="override glyph box height")
    p.add_argument("-r", "--region", type=int, nargs=4, metavar=("X", "Y", "W", "H"),
                   help="convert only this rectangle of the image")
    p.add_argument("-j", "--workers", type=int, help="threads used for block scoring")
    p.add_argument("--config", help="config file (default: per-user JSON)")
    p.add_argument("--save-config", action="store_true", help="persist the effective settings")
    p.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="log verbosity")
    p.add_argument("--version", action="version", version=version_info())
    p.set_defaults(color=None)
    return p


def _overrides(args: argparse.Namespace) -> Dict[str, Any]:
    convert: Dict[str, Any] = {}
    font: Dict[str, Any] = {}
    if args.mode:
        convert["mode"] = args.mode
    if args.color is not None:
        convert["color"] = args.color
    if args.subset:
        convert["subset"] = args.subset
    elif args.preset:
        convert["subset"] = SUBSET_PRESETS[args.preset]
    elif args.all_chars:
        convert["subset"] = None
    if args.workers is not None:
        convert["workers"] = args.workers
    if args.font:
        font["path"] = args.font
    if args.size is not None:
        font["size"] = args.size
    if args.glyph_width is not None:
        font["glyph_width"] = args.glyph_width
    if args.glyph_height is not None:
        font["glyph_height"] = args.glyph_height
    return {"convert": convert, "font": font}


def _request_from_config(cfg: Config, region: Optional[List[int]]) -> ConversionRequest:
    ft = cfg["font"]
    params = RenderingParams.for_font(ft["path"], ft["size"], ft["glyph_width"], ft["glyph_height"])
    cv = cfg["convert"]
    return ConversionRequest(
        mode=Mode.parse(cv["mode"]),
        params=params,
        subset=cv["subset"],
        color_mode=cv["color"],
        target=Rect(*region) if region else None,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    cfg = Config.load(args.config, create_if_missing=False)
    cfg.update(_overrides(args))
    setup_logging(cfg, args.log_level)

    try:
        request = _request_from_config(cfg, args.region)
    except OSError as exc:
        log.error("Cannot load font %r: %s", cfg["font"]["path"], exc)
        return 1
    log.debug("Request: %s", request)

    try:
        with Image.open(args.input) as src:
            src.load()
            service = ConversionService(workers=cfg["convert"]["workers"])
            result = service.convert_image(request, src)
    except OSError as exc:
        log.error("Image loading failed: %s", exc)
        return 1
    except MosaicError as exc:
        log.error("Image conversion failed: %s", exc)
        return 1

    ext = os.path.splitext(args.output)[1].lower()
    try:
        result.save(args.output, SAVE_FORMATS.get(ext, "PNG"))
    except OSError as exc:
        log.error("Image saving failed: %s", exc)
        return 1
    log.info("Wrote %s (%dx%d, %s)", args.output, result.width, result.height, request.mode.value)

    if args.save_config:
        cfg.save()
        log.info("Saved settings to %s", cfg.path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
