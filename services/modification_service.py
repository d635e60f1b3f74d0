from __future__ import annotations

import os
import logging
from typing import Callable, List, Tuple

import numpy as np
from dotenv import load_dotenv

from models.image import Image
from models.region import Region

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class ModificationService:
    """
    Applies the visible differences.

    *   ``original`` is only read, ``modified`` is written in place.
    *   Removal and flip work on the region's bbox, colour shift on its exact pixels.
    *   Strategies rotate over the selected regions: removal, flip, colour shift, removal, ...
    """

    def __init__(self, color_shift_max: int = None):
        self.color_shift_max = color_shift_max if color_shift_max is not None \
            else int(os.getenv("COLOR_SHIFT_MAX", "50"))
        self.strategies: List[Tuple[str, Callable]] = [
            ("removal", self.apply_removal),
            ("flip", self.apply_flip),
            ("color_shift", self.apply_color_shift),
        ]

    # ─── Strategies ────────────────────────────────────────────────
    @staticmethod
    def removal_source_x(region: Region, image_width: int) -> int:
        """
        Left edge of the patch pasted over the region: one bbox-width to the right,
        or one bbox-width to the left when the right-hand patch would not fit.
        """
        bbox = region.bbox
        source_x = bbox.x + bbox.width
        if source_x + bbox.width > image_width:
            source_x = bbox.x - bbox.width
        # bboxes wider than half the image fit on neither side
        return min(max(source_x, 0), image_width - bbox.width)

    def apply_removal(self, original: Image, modified: Image, region: Region, rng=None) -> None:
        """Paint over the region with the neighbouring patch of the original."""
        bbox = region.bbox
        source_x = self.removal_source_x(region, original.width)
        patch = original.pixels[bbox.y:bbox.y + bbox.height, source_x:source_x + bbox.width]
        modified.pixels[bbox.y:bbox.y + bbox.height, bbox.x:bbox.x + bbox.width] = patch

    @staticmethod
    def apply_flip(original: Image, modified: Image, region: Region, rng=None) -> None:
        bbox = region.bbox
        patch = original.pixels[bbox.y:bbox.y + bbox.height, bbox.x:bbox.x + bbox.width]
        modified.pixels[bbox.y:bbox.y + bbox.height, bbox.x:bbox.x + bbox.width] = patch[:, ::-1]

    def color_shift_offsets(self, rng: np.random.Generator) -> Tuple[int, int, int]:
        """(red gain, green loss, blue loss), each in [0, color_shift_max]."""
        r, g, b = rng.integers(0, self.color_shift_max + 1, size=3)
        return int(r), int(g), int(b)

    def apply_color_shift(self, original: Image, modified: Image, region: Region,
                          rng: np.random.Generator = None, offsets: Tuple[int, int, int] = None) -> None:
        """
        Tint the region's pixels towards red by one offset triple shared by the
        whole region. Reads the current ``modified`` pixels, so it stacks on
        any earlier edit of the same area.
        """
        if offsets is None:
            offsets = self.color_shift_offsets(rng if rng is not None else np.random.default_rng())
        r, g, b = offsets
        ys, xs = region.coordinates()
        rgb = modified.pixels[ys, xs, :3].astype(np.int16)
        rgb[:, 0] = np.minimum(255, rgb[:, 0] + r)
        rgb[:, 1] = np.maximum(0, rgb[:, 1] - g)
        rgb[:, 2] = np.maximum(0, rgb[:, 2] - b)
        modified.pixels[ys, xs, :3] = rgb.astype(np.uint8)

    # ─── Public API ────────────────────────────────────────────────
    def strategy_name(self, index: int) -> str:
        return self.strategies[index % len(self.strategies)][0]

    def apply_all(self, original: Image, modified: Image, regions: List[Region],
                  rng: np.random.Generator) -> List[str]:
        """
        Apply one strategy per region, strictly in order.

        Returns:
            List[str]: the strategy name used for each region.
        """
        if np.may_share_memory(original.pixels, modified.pixels):
            raise ValueError("original and modified must be independent buffers")

        applied = []
        for i, region in enumerate(regions):
            name, strategy = self.strategies[i % len(self.strategies)]
            strategy(original, modified, region, rng=rng)
            applied.append(name)
            logger.debug(f"Applied {name} to region at {region.bbox.as_dict()}")
        return applied
