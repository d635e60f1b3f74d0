from __future__ import annotations
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Tuple

import numpy as np

MARKER_MARGIN = 10


@dataclass(frozen=True)
class BoundingBox:
    x: int
    y: int
    width: int
    height: int

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2

    @property
    def hit_tolerance(self) -> float:
        """Radius of the circle around the centre that counts as a hit."""
        return (self.width + self.height) / 3

    def marker_radius(self, margin: float = MARKER_MARGIN) -> float:
        return max(self.width, self.height) / 2 + margin

    def contains(self, x: int, y: int) -> bool:
        return self.x <= x < self.x + self.width and self.y <= y < self.y + self.height

    def as_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(eq=False)
class Region:
    """
    A flood-filled blob of low edge intensity.

    Only ``found`` changes after construction; identity (not value) equality,
    so two blobs with the same pixels are still distinct regions.
    """
    pixels: FrozenSet[Tuple[int, int]]
    bbox: BoundingBox
    found: bool = field(default=False)

    @classmethod
    def from_pixels(cls, pixels: Iterable[Tuple[int, int]]) -> "Region":
        pixels = frozenset(pixels)
        if not pixels:
            raise ValueError("A region needs at least one pixel")
        xs = [p[0] for p in pixels]
        ys = [p[1] for p in pixels]
        x1, x2 = min(xs), max(xs)
        y1, y2 = min(ys), max(ys)
        return cls(pixels=pixels, bbox=BoundingBox(x1, y1, x2 - x1 + 1, y2 - y1 + 1))

    @property
    def size(self) -> int:
        return len(self.pixels)

    def coordinates(self) -> Tuple[np.ndarray, np.ndarray]:
        """(ys, xs) index arrays, ready for numpy fancy indexing."""
        coords = np.array(sorted(self.pixels), dtype=np.intp)
        return coords[:, 1], coords[:, 0]

    def as_dict(self) -> dict:
        return {"bbox": self.bbox.as_dict(), "size": self.size, "found": self.found}
