import os
from typing import Iterable, Tuple

import cv2
import numpy as np
from dotenv import load_dotenv

from models.image import Image
from models.region import Region

# Load environment variables
load_dotenv()

MARKER_COLOR: Tuple[int, int, int, int] = (255, 0, 0, 255)   # opaque red, RGBA
MARKER_THICKNESS = 3


class OverlayService:
    """
    Draws the "found it" circles.
    Always returns a **new** Image; the puzzle buffers are never drawn on.
    """

    def __init__(self):
        self.margin = float(os.getenv("MARKER_MARGIN", "10"))

    def marker_circle(self, region: Region) -> Tuple[int, int, int]:
        """(cx, cy, radius) of the marker, rounded to whole pixels."""
        cx, cy = region.bbox.center
        radius = region.bbox.marker_radius(self.margin)
        return int(round(cx)), int(round(cy)), int(round(radius))

    def draw_markers(self, img: Image, regions: Iterable[Region], only_found: bool = True) -> Image:
        canvas = np.ascontiguousarray(img.pixels).copy()
        color = MARKER_COLOR if canvas.shape[2] == 4 else MARKER_COLOR[:3]
        for region in regions:
            if only_found and not region.found:
                continue
            cx, cy, radius = self.marker_circle(region)
            cv2.circle(canvas, (cx, cy), radius, color, thickness=MARKER_THICKNESS)
        return Image(pixels=canvas, path=img.path)
