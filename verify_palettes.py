#!/usr/bin/env python3
"""
Verify all scalar palettes are properly configured
Optionally writes a stacked preview strip of every palette
"""
import argparse
import logging
import sys
from typing import List

import cv2
import numpy as np

from config import Config
from palette_manager import PaletteBuildError, PaletteRegistry, PaletteType, TABLE_SIZE
from colour_mapper import ColourMapper

logger = logging.getLogger(__name__)


def check_registry(registry: PaletteRegistry) -> List[str]:
    """
    Check every palette table

    Returns:
        List of problems (empty if all palettes are valid)
    """
    problems = []
    for palette in PaletteType:
        if palette not in registry:
            problems.append(f"{palette.value}: missing")
            continue

        table = registry.table_for(palette)
        colours = table.colours
        if len(table.entries) != TABLE_SIZE:
            problems.append(f"{palette.value}: {len(table.entries)} entries")
        if np.any(colours[:, 3] != 1.0):
            problems.append(f"{palette.value}: not fully opaque")
        if colours.min() < 0.0 or colours.max() > 1.0:
            problems.append(f"{palette.value}: channels outside [0, 1]")
    return problems


def build_preview(mapper: ColourMapper, width: int = 512, band_height: int = 40) -> np.ndarray:
    """Stack one preview band per palette (BGR)"""
    bands = [mapper.create_palette_preview(p, width=width, height=band_height) for p in PaletteType]
    return np.vstack(bands)


def main() -> int:
    parser = argparse.ArgumentParser(
        description='Verify scalar colour palettes',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument('--config', type=str, default=None, help='JSON config file')
    parser.add_argument('--swatches', type=int, default=6, help='Legend colours per palette')
    parser.add_argument('--preview', type=str, default=None,
                        help='Write a stacked preview image to this path')
    parser.add_argument('--width', type=int, default=512, help='Preview width')
    args = parser.parse_args()

    config = Config(args.config)
    logging.basicConfig(level=config.log_level())

    try:
        registry = PaletteRegistry()
    except PaletteBuildError as e:
        logger.error(f"Palette build failed: {e}")
        return 1

    mapper = config.create_mapper(registry)

    print(f"✓ Total palettes: {len(registry.palettes())}")
    print(f"  Active palette: {mapper.active_palette.value}\n")
    print("=" * 60)

    for palette in PaletteType:
        swatches = mapper.sample(args.swatches, palette)
        hexes = " ".join("#%02x%02x%02x" % c.to_rgb8() for c in swatches)
        print(f"  {palette.value:<8} {hexes}")

    problems = check_registry(registry)
    print("\n" + "=" * 60)
    if problems:
        print(f"✗ ERROR: {len(problems)} problem(s)")
        for problem in problems:
            print(f"  {problem}")
        return 1
    print(f"✓✓✓ SUCCESS: All {len(registry.palettes())} palettes properly configured ✓✓✓")

    if args.preview:
        if not cv2.imwrite(args.preview, build_preview(mapper, width=args.width)):
            logger.error(f"Could not write preview to {args.preview}")
            return 1
        print(f"Preview written to {args.preview}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
