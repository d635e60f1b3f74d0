"""
Puzzle Generator Pipeline
Turns one decoded image into a playable spot-the-difference session.

grayscale -> Sobel edges -> region sampling -> selection -> modification
"""

import os
import logging
from typing import Optional

import numpy as np
from dotenv import load_dotenv

from models.errors import InvalidInputError
from models.image import Image
from services.image_service import ImageService
from services.edge_service import EdgeService
from services.region_service import RegionService
from services.modification_service import ModificationService
from services.game_session import GameSession

# Load environment variables
load_dotenv()

NUM_DIFFERENCES = int(os.getenv("NUM_DIFFERENCES", "5"))

logger = logging.getLogger(__name__)


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Seeded generator when a seed is given (or RANDOM_SEED is set), OS entropy otherwise."""
    if seed is None and os.getenv("RANDOM_SEED"):
        seed = int(os.getenv("RANDOM_SEED"))
    if seed is not None and seed < 0:
        raise InvalidInputError(f"Seed must be a non-negative integer, got {seed}")
    return np.random.default_rng(seed)


def generate_puzzle(
    image: Image,
    *,
    rng: Optional[np.random.Generator] = None,
    num_differences: int = NUM_DIFFERENCES,
    image_service: ImageService = None,
    edge_service: EdgeService = None,
    region_service: RegionService = None,
    modification_service: ModificationService = None,
    session_id: Optional[str] = None,
) -> GameSession:
    """
    Run the full analysis and modification pipeline.

    The input image is never written to: the session gets two fresh copies,
    ``original`` and ``modified``, which differ only inside the selected regions.

    Args:
        image: decoded RGB(A) image, at least 3x3.
        rng: source for every random choice; pass a seeded one for repeatable puzzles.
        num_differences: how many regions to modify.

    Returns:
        GameSession: ready to play. Zero regions is a valid (already complete) session.

    Raises:
        InvalidInputError: if the image is not an RGB(A) buffer of at least 3x3,
            or num_differences is negative.
    """
    image_service = image_service or ImageService()
    edge_service = edge_service or EdgeService()
    region_service = region_service or RegionService()
    modification_service = modification_service or ModificationService()
    rng = rng if rng is not None else make_rng()

    if num_differences < 0:
        raise InvalidInputError(f"Number of differences must be non-negative, got {num_differences}")
    image_service.validate(image)
    height, width = image_service.get_image_dimensions(image)
    logger.info(f"Generating differences for a {width}x{height} image")

    original = image_service.copy(image)
    modified = image_service.copy(image)

    # Step 1: analysis (edge map is dropped once regions are known)
    gray = image_service.to_grayscale(original)
    edge_map = edge_service.detect_edges(gray)
    candidates = region_service.sample_regions(edge_map, rng)
    del edge_map, gray

    # Step 2: pick and modify
    selected = region_service.select_regions(candidates, num_differences, rng)
    applied = modification_service.apply_all(original, modified, selected, rng)
    logger.info(f"Selected {len(selected)} of {len(candidates)} candidate regions: {', '.join(applied) or 'none'}")

    if not selected:
        logger.warning("No region satisfied the size band; puzzle has no differences")

    return GameSession(original, modified, selected, session_id=session_id)
