# services/region_service.py
import os
import logging
from typing import List

import numpy as np
from dotenv import load_dotenv

from models.edge_map import EdgeMap
from models.errors import InvalidInputError
from models.region import Region
from repositories.region_repository import RegionRepository

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class RegionService:
    """
    Business logic for finding and picking paintable regions.

    • sample_regions: random seeds + constrained flood fill, size-banded.
    • select_regions: shuffle, keep a prefix.
    """

    def __init__(
        self,
        seed_threshold: int = None,
        grow_threshold: int = None,
        min_size: int = None,
        max_size: int = None,
        max_attempts: int = None,
        max_regions: int = None,
    ):
        self.repository = RegionRepository()

        def _setting(value, key, default):
            return value if value is not None else int(os.getenv(key, default))

        # Seeds above this are too close to a strong edge
        self.seed_threshold = _setting(seed_threshold, "SEED_EDGE_THRESHOLD", "125")
        # Neighbours above this stop the fill
        self.grow_threshold = _setting(grow_threshold, "GROW_EDGE_THRESHOLD", "50")
        self.min_size = _setting(min_size, "MIN_REGION_SIZE", "500")
        self.max_size = _setting(max_size, "MAX_REGION_SIZE", "1000")
        self.max_attempts = _setting(max_attempts, "MAX_SAMPLING_ATTEMPTS", "3000")
        self.max_regions = _setting(max_regions, "MAX_REGIONS", "50")

    def is_acceptable_size(self, region: Region) -> bool:
        return self.min_size <= region.size <= self.max_size

    def sample_regions(
        self,
        edge_map: EdgeMap,
        rng: np.random.Generator,
        visited: np.ndarray = None,
    ) -> List[Region]:
        """
        Discover up to ``max_regions`` low-edge blobs, in discovery order.

        Args:
            edge_map: Sobel intensities of the source image.
            rng: source of the seed coordinates.
            visited: optional (H, W) bool mask, updated in place; a fresh one is used otherwise.

        Returns:
            List[Region]: possibly empty, which callers must treat as a valid result.
        """
        width, height = edge_map.width, edge_map.height
        if visited is None:
            visited = self.repository.new_visited_mask(width, height)
        edge = self.repository.intensity_rows(edge_map.intensity)

        regions: List[Region] = []
        fills = 0
        attempts = 0
        while attempts < self.max_attempts and len(regions) < self.max_regions:
            attempts += 1
            x = int(rng.integers(0, width))
            y = int(rng.integers(0, height))
            if visited[y, x]:
                continue
            if edge[y][x] > self.seed_threshold:
                # rejected seeds stay unvisited
                continue

            fills += 1
            region = self.repository.flood_fill(edge, visited, x, y, self.grow_threshold)
            if region is not None and self.is_acceptable_size(region):
                regions.append(region)

        logger.info(f"Region sampling: {len(regions)} regions from {fills} fills in {attempts} attempts")
        return regions

    @staticmethod
    def select_regions(regions: List[Region], count: int, rng: np.random.Generator) -> List[Region]:
        """Uniform random subset of at most ``count`` distinct regions."""
        if count < 0:
            raise InvalidInputError(f"Number of differences must be non-negative, got {count}")
        order = rng.permutation(len(regions))
        return [regions[i] for i in order[:count]]
