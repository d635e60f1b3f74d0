"""
Sobel edge detection.

Intensity is the clipped gradient magnitude of the grayscale image; the
1-pixel border has no full 3x3 neighbourhood and is left at zero.
"""
import logging

import cv2
import numpy as np

from models.edge_map import EdgeMap
from models.errors import InvalidInputError

logger = logging.getLogger(__name__)

SOBEL_X = np.array([[-1, 0, 1],
                    [-2, 0, 2],
                    [-1, 0, 1]], dtype=np.float64)
SOBEL_Y = np.array([[-1, -2, -1],
                    [0, 0, 0],
                    [1, 2, 1]], dtype=np.float64)


class EdgeService:

    @staticmethod
    def _gradients(gray: np.ndarray):
        # filter2D correlates (no kernel flip), matching the kernels as written
        src = gray.astype(np.float64)
        gx = cv2.filter2D(src, cv2.CV_64F, SOBEL_X)
        gy = cv2.filter2D(src, cv2.CV_64F, SOBEL_Y)
        return gx, gy

    def detect_edges(self, gray: np.ndarray) -> EdgeMap:
        """
        Args
        ----
        gray : np.ndarray  (H, W)  grayscale, H >= 3 and W >= 3

        Returns
        -------
        EdgeMap with uint8 intensities in [0, 255]
        """
        if gray.ndim != 2:
            raise InvalidInputError(f"Expected a single-channel (H, W) buffer, got shape {gray.shape}")
        height, width = gray.shape
        if width < 3 or height < 3:
            raise InvalidInputError(f"Edge detection needs at least 3x3 pixels, got {width}x{height}")

        gx, gy = self._gradients(gray)
        magnitude = np.minimum(255.0, np.hypot(gx, gy))

        intensity = np.zeros((height, width), dtype=np.uint8)
        intensity[1:-1, 1:-1] = np.rint(magnitude[1:-1, 1:-1]).astype(np.uint8)

        logger.debug(f"Edge map {width}x{height}: mean intensity {intensity.mean():.1f}")
        return EdgeMap(intensity=intensity)
