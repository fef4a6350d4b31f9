"""
Batch command line interface for the ASCII / Braille renderer.

Each input image is rasterized to the requested column count and rendered
to a ``<stem>.txt`` file.  Options can come from a JSON file (``--config``);
explicit flags override it.

Usage examples
--------------

Render every image in ``input/`` to ``output/`` with the detailed glyph set::

    python -m ascii_world.cli input --output-dir output --glyph-set detailed

Print a compact Braille rendering of one file::

    python -m ascii_world.cli photo.png --glyph-set braille --compact --stdout
"""

from __future__ import annotations

import argparse
import csv
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .config import GlyphSet, RenderOptions, SegmentationMode
from .raster import DEFAULT_CHAR_HEIGHT, DEFAULT_CHAR_WIDTH, DEFAULT_COLUMNS, load_pixels
from .renderer import render_ascii

logger = logging.getLogger("ascii_world")

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tif", ".tiff", ".webp"}


def _setup_logging(debug: bool = False):
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _gather_images(sources: Sequence[Path], recursive: bool) -> List[Path]:
    """Collect candidate image files from the provided locations."""
    seen: set[Path] = set()
    images: List[Path] = []

    for source in sources:
        if source.is_dir():
            iterator: Iterable[Path]
            iterator = source.rglob("*") if recursive else source.iterdir()
            candidates = [c for c in iterator if c.is_file()]
        elif source.is_file():
            candidates = [source]
        else:
            logger.warning("Input path not found: %s", source)
            continue

        for candidate in candidates:
            if candidate.suffix.lower() not in IMAGE_EXTENSIONS:
                if candidate == source:
                    logger.warning("Skipping unsupported file: %s", source)
                continue
            resolved = candidate.resolve()
            if resolved not in seen:
                seen.add(resolved)
                images.append(resolved)

    images.sort()
    return images


def _load_config(path: Optional[Path]) -> dict:
    if path is None:
        return {}
    with path.open() as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")
    return data


def build_options(args: argparse.Namespace) -> RenderOptions:
    """Merge the JSON config with explicit command line flags."""
    data = RenderOptions.from_dict(_load_config(args.config)).to_dict()
    overrides = {
        "glyph_set": args.glyph_set,
        "gamma": args.gamma,
        "invert_colors": args.invert,
        "dithering": args.dither,
        "compact_mode": args.compact,
        "preprocess": args.preprocess,
        "preprocess_strength": args.strength,
        "segmentation": args.segmentation,
    }
    for key, value in overrides.items():
        if value is not None:
            data[key] = value
    if args.glyph_set is not None and args.glyphs is None:
        # a new set name brings its own glyph list
        data.pop("glyphs", None)
    if args.glyphs is not None:
        data["glyphs"] = list(args.glyphs)
    return RenderOptions.from_dict(data)


def _render_single_image(
    image_path: Path,
    options: RenderOptions,
    args: argparse.Namespace,
) -> Optional[dict]:
    """Rasterize and render one image; returns a summary record or None."""
    try:
        pixels, width, height = load_pixels(
            image_path,
            columns=args.cols,
            braille=options.is_braille,
            char_width=args.char_width,
            char_height=args.char_height,
        )
        text = render_ascii(pixels, width, height, options)
    except Exception as exc:  # pylint: disable=broad-except
        logger.error("Failed to render %s: %s", image_path.name, exc)
        return None

    lines = text.split("\n")
    if args.stdout:
        sys.stdout.write(text + "\n")
        output_path = ""
    else:
        target = args.output_dir / f"{image_path.stem}.txt"
        target.write_text(text + "\n", encoding="utf-8")
        output_path = str(target)
        logger.info("%s -> %s (%dx%d chars)", image_path.name, target.name, len(lines[0]), len(lines))

    return {
        "image": image_path.name,
        "pixel_width": width,
        "pixel_height": height,
        "columns": len(lines[0]) if lines else 0,
        "rows": len(lines),
        "glyph_set": options.glyph_set.value,
        "segmentation": options.segmentation.value,
        "output_path": output_path,
    }


def _write_summary_csv(records: List[dict], path: Path) -> None:
    fieldnames = [
        "image",
        "pixel_width",
        "pixel_height",
        "columns",
        "rows",
        "glyph_set",
        "segmentation",
        "output_path",
    ]
    with path.open("w", newline="") as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(records)
    logger.info("Summary written to %s", path)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render images as ASCII or Braille text.")
    parser.add_argument(
        "inputs",
        nargs="+",
        type=Path,
        help="Image files or directories to render.",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        type=Path,
        default=Path("output"),
        help="Directory for rendered text files (default: ./output).",
    )
    parser.add_argument(
        "--cols",
        type=int,
        default=DEFAULT_COLUMNS,
        help=f"Characters per row (default: {DEFAULT_COLUMNS}).",
    )
    parser.add_argument(
        "--glyph-set",
        choices=[g.value for g in GlyphSet],
        help="Named glyph set (default: standard).",
    )
    parser.add_argument(
        "--glyphs",
        help="Custom glyph ramp, darkest first. Overrides the set's list.",
    )
    parser.add_argument("--gamma", type=float, help="Tone curve exponent (default: 1.0).")
    parser.add_argument(
        "--invert",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Invert colours before rendering (default: on).",
    )
    parser.add_argument(
        "--dither",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Floyd-Steinberg dithering for glyph sets (default: on).",
    )
    parser.add_argument(
        "--compact",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Render the full frame without cropping to the foreground.",
    )
    parser.add_argument(
        "--preprocess",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Posterize and median-filter before rendering.",
    )
    parser.add_argument(
        "--strength",
        type=int,
        help="Preprocess detail blend, 0 (simplified) to 10 (original).",
    )
    parser.add_argument(
        "--segmentation",
        choices=[m.value for m in SegmentationMode],
        help="Background classifier (default: heuristic).",
    )
    parser.add_argument("--config", type=Path, help="JSON file with render options.")
    parser.add_argument(
        "--char-width",
        type=float,
        default=DEFAULT_CHAR_WIDTH,
        help="Display character cell width in pixels, for aspect correction.",
    )
    parser.add_argument(
        "--char-height",
        type=float,
        default=DEFAULT_CHAR_HEIGHT,
        help="Display character cell height in pixels, for aspect correction.",
    )
    parser.add_argument(
        "--recursive",
        action="store_true",
        help="When inputs include directories, walk them recursively.",
    )
    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print renderings instead of writing text files.",
    )
    parser.add_argument(
        "--summary-path",
        type=Path,
        help="Write a CSV summary of rendered images to this path.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    _setup_logging(args.debug)

    try:
        options = build_options(args)
    except (OSError, ValueError) as exc:
        logger.error("Invalid render options: %s", exc)
        return 2

    images = _gather_images(args.inputs, recursive=args.recursive)
    if not images:
        logger.error("No matching images found.")
        return 1

    if not args.stdout:
        args.output_dir = args.output_dir.resolve()
        args.output_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Found %d image(s) to render -> %s", len(images), args.output_dir)

    records: List[dict] = []
    for image_path in images:
        record = _render_single_image(image_path, options, args)
        if record is not None:
            records.append(record)

    if records and args.summary_path:
        _write_summary_csv(records, args.summary_path)

    return 0 if records else 1


if __name__ == "__main__":
    sys.exit(main())
