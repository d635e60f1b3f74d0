from pathlib import Path
from typing import Union
import os
import numpy as np
from dotenv import load_dotenv
from models.image import Image
from models.errors import InvalidInputError
from repositories.image_repository import ImageRepository

# Load environment variables
load_dotenv()

# ITU-R BT.601 luma weights, R/G/B order
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])


class ImageService:
    """I/O helpers and pixel-level conversions. No region logic here."""
    def __init__(self, max_dim: int = None):
        self.MAX_IMAGE_DIM = max_dim or int(os.getenv("MAX_IMAGE_DIM", "800"))
        self.image_repository = ImageRepository()

    def create_image(self, pixels: np.ndarray, path: Union[str, Path] = None) -> Image:
        return self.image_repository.create_image(pixels, path)

    def load(self, path: Union[str, Path]) -> Image:
        """Load a single image from disk and scale it down to the playing size."""
        return self.fit_to_max_dim(self.image_repository.load(path))

    def decode(self, data: bytes) -> Image:
        """Decode uploaded bytes and scale them down to the playing size."""
        return self.fit_to_max_dim(self.image_repository.decode(data))

    def fit_to_max_dim(self, img: Image) -> Image:
        """
        Keep the aspect ratio; the longer side ends up <= MAX_IMAGE_DIM.
        Images that already fit are returned untouched.
        """
        height, width = self.get_image_dimensions(img)
        max_dim = self.MAX_IMAGE_DIM
        if width > height:
            if width <= max_dim:
                return img
            new_w, new_h = max_dim, self._round_half_up(height * max_dim / width)
        else:
            if height <= max_dim:
                return img
            new_w, new_h = self._round_half_up(width * max_dim / height), max_dim
        return self.image_repository.resize(img, max(new_w, 1), max(new_h, 1))

    @staticmethod
    def _round_half_up(value: float) -> int:
        return int(np.floor(value + 0.5))

    @staticmethod
    def validate(img: Image) -> None:
        """
        The analysis needs an RGB(A) buffer with at least a 1-pixel interior.

        Raises:
            InvalidInputError: for any other shape.
        """
        pixels = img.pixels
        if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
            raise InvalidInputError(f"Expected an (H, W, 3|4) pixel buffer, got shape {pixels.shape}")
        height, width = pixels.shape[:2]
        if width < 3 or height < 3:
            raise InvalidInputError(f"Image must be at least 3x3 pixels, got {width}x{height}")

    @staticmethod
    def to_grayscale(img: Image) -> np.ndarray:
        """
        Luma transform, alpha ignored.

        Args:
            img (Image): RGB or RGBA image.

        Returns:
            np.ndarray: (H, W) uint8, rounded to nearest and clamped to [0, 255].
        """
        pixels = img.pixels
        if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
            raise InvalidInputError(f"Expected an (H, W, 3|4) pixel buffer, got shape {pixels.shape}")
        luma = pixels[..., :3].astype(np.float64) @ LUMA_WEIGHTS
        return np.clip(np.rint(luma), 0, 255).astype(np.uint8)

    def copy(self, img: Image) -> Image:
        """Independent buffer; writes to the copy never reach ``img``."""
        return self.image_repository.copy(img)

    def get_image_dimensions(self, img: Image):
        return self.image_repository.retrieve_image_dimensions(img)

    def save(self, image: Image) -> None:
        """
        Business-level method to save the image to its path.
        """
        self.image_repository.save(image)

    def to_png_bytes(self, image: Image) -> bytes:
        return self.image_repository.to_png_bytes(image)

    def to_base64(self, image: Image) -> str:
        """PNG data URI, lossless so both halves of the puzzle stay pixel-exact."""
        return self.image_repository.to_base64(image)
