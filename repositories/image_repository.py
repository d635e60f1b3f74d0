from pathlib import Path
from typing import Union
from io import BytesIO
import base64
import numpy as np
import cv2
from PIL import Image as PILImage
from models.image import Image


class ImageRepository:
    """
    Handles file I/O, decoding and pixel-buffer conversions for Image entities.
    Every Image leaving this class holds an (H, W, 4) uint8 RGBA array.
    """

    @staticmethod
    def create_image(pixels: np.ndarray, path: Union[str, Path] = None) -> Image:
        if path is None:
            return Image(pixels)
        return Image(pixels=pixels, path=Path(path))

    @staticmethod
    def _to_rgba(arr: np.ndarray) -> np.ndarray:
        """OpenCV decodes to GRAY / BGR / BGRA depending on the file; normalise to RGBA."""
        if arr.dtype != np.uint8:
            # 16-bit PNG / TIFF
            arr = (arr / 257).astype(np.uint8)
        if arr.ndim == 2:
            return cv2.cvtColor(arr, cv2.COLOR_GRAY2RGBA)
        if arr.shape[2] == 4:
            return cv2.cvtColor(arr, cv2.COLOR_BGRA2RGBA)
        return cv2.cvtColor(arr, cv2.COLOR_BGR2RGBA)

    def load(self, path: Union[str, Path]) -> Image:
        path = Path(path)
        arr = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if arr is None:
            raise FileNotFoundError(f"Image not found or unreadable: {path}")
        return Image(pixels=self._to_rgba(arr), path=path)

    def decode(self, data: bytes) -> Image:
        """Decode an in-memory encoded image (PNG, JPEG, ...)."""
        buf = np.frombuffer(data, dtype=np.uint8)
        arr = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED) if buf.size else None
        if arr is None:
            raise ValueError("Uploaded data is not a decodable image")
        return Image(pixels=self._to_rgba(arr))

    @staticmethod
    def resize(image: Image, width: int, height: int) -> Image:
        pixels = cv2.resize(image.pixels, (width, height), interpolation=cv2.INTER_AREA)
        return Image(pixels=pixels, path=image.path)

    @staticmethod
    def copy(image: Image) -> Image:
        return Image(pixels=image.pixels.copy(), path=image.path)

    @staticmethod
    def to_pil(image: Image) -> PILImage.Image:
        np_img = image.pixels
        if not np_img.flags['C_CONTIGUOUS']:
            np_img = np.ascontiguousarray(np_img)
        return PILImage.fromarray(np_img)

    def to_png_bytes(self, image: Image) -> bytes:
        buffer = BytesIO()
        self.to_pil(image).save(buffer, format='PNG')
        return buffer.getvalue()

    def to_base64(self, image: Image) -> str:
        base64_string = base64.b64encode(self.to_png_bytes(image)).decode('utf-8')
        return f"data:image/png;base64,{base64_string}"

    def save(self, image: Image) -> None:
        if image.path is None:
            raise ValueError("Image has no path to save to")
        Path(image.path).parent.mkdir(parents=True, exist_ok=True)
        self.to_pil(image).save(image.path)

    @staticmethod
    def retrieve_image_dimensions(img: Image):
        return img.pixels.shape[:2]
