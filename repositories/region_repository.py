# repositories/region_repository.py
from typing import List, Optional, Sequence
import numpy as np

from models.region import Region, BoundingBox

_NEIGHBOURS = ((1, 0), (-1, 0), (0, 1), (0, -1))


class RegionRepository:
    """
    Low-level region growing over an edge-intensity array.

    • Explicit work-list (no recursion), 4-connected.
    • ``visited`` is shared across fills and mutated in place.
    """

    @staticmethod
    def new_visited_mask(width: int, height: int) -> np.ndarray:
        return np.zeros((height, width), dtype=bool)

    @staticmethod
    def intensity_rows(intensity: np.ndarray) -> List[List[int]]:
        """Plain nested lists: far cheaper to index per pixel than numpy scalars."""
        return intensity.tolist()

    @staticmethod
    def flood_fill(
        edge: Sequence[Sequence[int]],
        visited: np.ndarray,
        start_x: int,
        start_y: int,
        grow_threshold: int,
    ) -> Optional[Region]:
        """
        Grow a blob from (start_x, start_y) through pixels whose intensity is
        <= grow_threshold. Every pixel examined is marked visited, admitted or not.

        Args
        ----
        edge : rows of intensities, ``edge[y][x]`` (nested lists or a 2-D array)
        visited : (H, W) bool mask, updated in place

        Returns None when the seed was already visited or is not admissible.
        """
        h, w = visited.shape
        if visited[start_y, start_x]:
            return None
        visited[start_y, start_x] = True
        if edge[start_y][start_x] > grow_threshold:
            return None

        stack = [(start_x, start_y)]
        pixels = []
        min_x, min_y, max_x, max_y = start_x, start_y, start_x, start_y
        while stack:
            x, y = stack.pop()
            pixels.append((x, y))
            if x < min_x:
                min_x = x
            elif x > max_x:
                max_x = x
            if y < min_y:
                min_y = y
            elif y > max_y:
                max_y = y
            for dx, dy in _NEIGHBOURS:
                nx = x + dx
                ny = y + dy
                if 0 <= nx < w and 0 <= ny < h and not visited[ny, nx]:
                    visited[ny, nx] = True
                    if edge[ny][nx] <= grow_threshold:
                        stack.append((nx, ny))

        return Region(
            pixels=frozenset(pixels),
            bbox=BoundingBox(min_x, min_y, max_x - min_x + 1, max_y - min_y + 1),
        )
