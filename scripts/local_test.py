"""
Quick local test helper: segments a local image and writes the RGBA cutout
(and optionally the mask) to disk. This bypasses the API and R2 upload layers.
"""

from __future__ import annotations

import argparse
from pathlib import Path

# Ensure project root is importable when running from scripts/
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from PIL import Image

from peelforge_service.compositing import composite, encode_png
from peelforge_service.pipeline import run_segmentation
from peelforge_service.preprocessing import load_image_from_bytes


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Remove the background of a local image")
    parser.add_argument("--input", required=True, help="Path to the input image")
    parser.add_argument("--output", required=True, help="Path to write the RGBA PNG")
    parser.add_argument("--mask-output", help="Optional path to write the grayscale mask PNG")
    parser.add_argument(
        "--strategy",
        default=None,
        choices=["edge_flood_fill", "heuristic_scored"],
        help="Background classifier (defaults to CLASSIFIER_STRATEGY)",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    input_path = Path(args.input)
    output_path = Path(args.output)
    if not input_path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")

    image = load_image_from_bytes(input_path.read_bytes())
    result = run_segmentation(image, strategy=args.strategy)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(encode_png(composite(image, result.mask)))
    print(f"Wrote RGBA output to {output_path} (background {tuple(result.background)})")

    if args.mask_output:
        mask_path = Path(args.mask_output)
        mask_path.parent.mkdir(parents=True, exist_ok=True)
        Image.fromarray(result.mask.values).save(mask_path)
        print(f"Wrote mask to {mask_path}")


if __name__ == "__main__":
    main()
