from __future__ import annotations
from dataclasses import dataclass
import numpy as np


@dataclass(frozen=True)
class EdgeMap:
    """
    Per-pixel edge intensity in [0, 255], same dimensions as the source image.
    The 1-pixel border is always zero.
    """
    intensity: np.ndarray  # Shape (H, W), dtype uint8

    @property
    def width(self) -> int:
        return self.intensity.shape[1]

    @property
    def height(self) -> int:
        return self.intensity.shape[0]

    def as_rgba(self) -> np.ndarray:
        """Intensity replicated over R, G and B with an opaque alpha channel."""
        rgba = np.empty((self.height, self.width, 4), dtype=np.uint8)
        rgba[..., :3] = self.intensity[..., None]
        rgba[..., 3] = 255
        return rgba
