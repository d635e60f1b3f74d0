#!/usr/bin/env python3
"""
Generate a spot-the-difference puzzle from one image and export it.

Writes into the output directory:
    original.png   the (downscaled) source image
    modified.png   the same image with the differences applied
    answers.png    modified image with every difference circled
    regions.json   bounding boxes of the differences
"""
import os
import sys
import json
import logging
import argparse
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

# --- Centralized Logging Configuration ---
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
    datefmt='%H:%M:%S'
)

from pipeline.puzzle_generator import generate_puzzle, make_rng, NUM_DIFFERENCES
from models.errors import InvalidInputError
from services.image_service import ImageService
from services.overlay_service import OverlayService

logger = logging.getLogger(__name__)

OUTPUT_DIR = os.getenv("OUTPUT_DIR", "data/puzzles")


def export_puzzle(session, output_dir: Path, image_service: ImageService, overlay_service: OverlayService) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)

    session.original.path = output_dir / "original.png"
    session.modified.path = output_dir / "modified.png"
    image_service.save(session.original)
    image_service.save(session.modified)

    answers = overlay_service.draw_markers(session.modified, session.regions, only_found=False)
    answers.path = output_dir / "answers.png"
    image_service.save(answers)

    with open(output_dir / "regions.json", "w", encoding="utf-8") as fh:
        json.dump({
            "width": session.original.width,
            "height": session.original.height,
            "regions": [region.bbox.as_dict() for region in session.regions],
        }, fh, indent=2)


def non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value}")
    return number


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Create a spot-the-difference puzzle from an image.")
    ap.add_argument("image", help="path of the source image")
    ap.add_argument("--output-dir", default=OUTPUT_DIR,
                    help="directory for original.png, modified.png, answers.png, regions.json")
    ap.add_argument("--seed", type=non_negative_int, default=None, help="seed for a repeatable puzzle")
    ap.add_argument("--differences", type=non_negative_int, default=NUM_DIFFERENCES,
                    help="number of differences to create")
    args = ap.parse_args(argv)

    image_service = ImageService()
    overlay_service = OverlayService()

    try:
        image = image_service.load(args.image)
        session = generate_puzzle(image, rng=make_rng(args.seed), num_differences=args.differences)
    except (FileNotFoundError, InvalidInputError) as err:
        logger.error(str(err))
        return 1

    output_dir = Path(args.output_dir)
    export_puzzle(session, output_dir, image_service, overlay_service)

    print(session.status_message())
    print(f"Puzzle with {len(session.regions)} difference(s) written to {output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
