"""
Example: grade a photo with a catalog preset and save a snapshot.

Decodes an image, fits it to the working resolution, renders one frame with
the chosen preset on the best available device and writes the PNG snapshot.

Usage:
    python examples/grade_image.py beach.jpg --preset apple_cinematic
    python examples/grade_image.py beach.jpg --preset royy_flash --time 1200 --output out.png
    python examples/grade_image.py --list
"""

import argparse
import logging
from pathlib import Path

from cinegrade import (
    DEFAULT_CATALOG,
    EngineConfig,
    GradeSession,
    RenderEngine,
    Surface,
    decode_image,
    prepare_source,
    snapshot_filename,
)

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger("grade_image")


def list_presets() -> None:
    """Print the catalog grouped by category."""
    for category in DEFAULT_CATALOG.categories():
        print(f"\n{category.value.upper()}")
        for preset in DEFAULT_CATALOG.by_category(category):
            print(f"  {preset.icon} {preset.id:<22} {preset.name:<16} {preset.description}")


def main():
    parser = argparse.ArgumentParser(description="Grade a photo with a cinematic preset")
    parser.add_argument("input", nargs="?", help="Image file to grade")
    parser.add_argument("--preset", default="apple_cinematic", help="Preset id (see --list)")
    parser.add_argument("--output", help="Output PNG path (default: graded_<name>.png)")
    parser.add_argument("--time", type=float, default=0.0, help="Grain time in milliseconds")
    parser.add_argument(
        "--device", default="auto", choices=["auto", "cuda", "mps", "cpu"], help="Rendering device"
    )
    parser.add_argument("--list", action="store_true", help="List presets and exit")
    args = parser.parse_args()

    if args.list:
        list_presets()
        return
    if args.input is None:
        parser.error("input is required unless --list is given")

    session = GradeSession().apply_preset(args.preset)
    pixels = prepare_source(decode_image(args.input))

    with RenderEngine.create(Surface.for_image(pixels), EngineConfig(device=args.device)) as engine:
        engine.load_image(pixels)
        engine.render(session.params, time=args.time)
        png = engine.export_snapshot()

    output = Path(args.output) if args.output else Path(snapshot_filename(Path(args.input).name))
    output.write_bytes(png)
    logger.info("Saved %s (%s, %dx%d)", output, session.label, pixels.shape[1], pixels.shape[0])


if __name__ == "__main__":
    main()
