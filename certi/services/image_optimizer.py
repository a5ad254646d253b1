"""
Image Optimization
Downscale oversized template backgrounds and strip metadata
"""

import logging
from io import BytesIO
from typing import Tuple

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


class ImageOptimizer:
    """Keeps template images at a size the renderer handles quickly"""

    MAX_DIMENSION = 3508  # A4 long edge at 300 dpi

    @staticmethod
    def optimize(image_bytes: bytes, extension: str) -> Tuple[bytes, str, str]:
        """
        Resize (keeping aspect ratio) and re-encode an uploaded background.

        PDFs and files Pillow cannot open are returned untouched.

        Returns:
            Tuple of (bytes, extension, mime type)
        """
        if extension == "pdf":
            return image_bytes, "pdf", "application/pdf"

        try:
            img = Image.open(BytesIO(image_bytes))
            img.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise ValueError(f"The template file is not a valid image: {exc}")

        width, height = img.size
        longest = max(width, height)
        if longest > ImageOptimizer.MAX_DIMENSION:
            scale = ImageOptimizer.MAX_DIMENSION / longest
            img = img.resize((int(width * scale), int(height * scale)), Image.Resampling.LANCZOS)
            logger.info("Template image resized from %sx%s to %sx%s", width, height, *img.size)

        output = BytesIO()
        has_transparency = img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info)
        if has_transparency or extension == "png":
            img.save(output, format="PNG", optimize=True)
            return output.getvalue(), "png", "image/png"

        if img.mode != "RGB":
            img = img.convert("RGB")
        img.save(output, format="JPEG", quality=92, optimize=True)
        return output.getvalue(), "jpg", "image/jpeg"


# Singleton
image_optimizer = ImageOptimizer()
