"""
Image handling for receipt uploads.

Detects the real image format from magic bytes and prepares images for the
vision model (base64 data URLs, optional downscaling with Pillow).
"""

import base64
import io
import logging

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

PNG_MIME = "image/png"
JPEG_MIME = "image/jpeg"
GIF_MIME = "image/gif"
DEFAULT_MIME = JPEG_MIME

# Checked in order; the first matching signature wins.
IMAGE_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG", PNG_MIME),
    (b"\xff\xd8\xff", JPEG_MIME),
    (b"GIF", GIF_MIME),
)

PIL_FORMATS = {
    PNG_MIME: "PNG",
    JPEG_MIME: "JPEG",
    GIF_MIME: "GIF",
}


def sniff_image_type(data: bytes) -> str:
    """
    Return the MIME type of an image by inspecting its leading bytes.

    Recognizes PNG, JPEG and GIF. Anything else, including empty or
    too-short input, is reported as image/jpeg.
    """
    for signature, mime_type in IMAGE_SIGNATURES:
        if data[: len(signature)] == signature:
            logger.debug("Detected %s image format", mime_type)
            return mime_type

    logger.debug("Image format not recognized, defaulting to %s", DEFAULT_MIME)
    return DEFAULT_MIME


class ImageService:
    """
    Service for preparing uploaded images for the vision model.

    Large images are downscaled so the longest side is at most
    ``max_dimension`` pixels. The declared content type of the upload is
    never trusted; the format always comes from ``sniff_image_type``.
    """

    def __init__(self, max_dimension: int = 2048, jpeg_quality: int = 90):
        """
        Initialize the image service.

        Args:
            max_dimension: Longest side (pixels) before an image is downscaled.
            jpeg_quality: Quality used when re-encoding downscaled JPEGs.
        """
        self.max_dimension = max_dimension
        self.jpeg_quality = jpeg_quality

    def resize_if_needed(self, data: bytes, mime_type: str) -> bytes:
        """
        Downscale an image whose longest side exceeds ``max_dimension``.

        Images Pillow cannot decode are returned unchanged; the model may
        still be able to read them.
        """
        try:
            with Image.open(io.BytesIO(data)) as image:
                if max(image.size) <= self.max_dimension:
                    return data

                ratio = self.max_dimension / max(image.size)
                new_size = (
                    max(1, int(image.size[0] * ratio)),
                    max(1, int(image.size[1] * ratio)),
                )
                pil_format = PIL_FORMATS.get(mime_type, "JPEG")
                resized = image.resize(new_size, Image.Resampling.LANCZOS)
                if pil_format == "JPEG" and resized.mode not in ("RGB", "L"):
                    resized = resized.convert("RGB")

                buffer = io.BytesIO()
                if pil_format == "JPEG":
                    resized.save(buffer, format=pil_format, quality=self.jpeg_quality)
                else:
                    resized.save(buffer, format=pil_format)

                logger.info(
                    "Downscaled %s image from %s to %s",
                    mime_type,
                    image.size,
                    new_size,
                )
                return buffer.getvalue()
        except (UnidentifiedImageError, OSError) as e:
            logger.warning("Could not decode image for resizing, sending as-is: %s", e)
            return data

    def to_data_url(self, data: bytes, mime_type: str | None = None) -> str:
        """
        Build a base64 data URL for the image.

        Args:
            data: Raw image bytes.
            mime_type: Sniffed MIME type. Detected from ``data`` if omitted.

        Returns:
            A ``data:<mime>;base64,...`` URL.
        """
        mime_type = mime_type or sniff_image_type(data)
        payload = self.resize_if_needed(data, mime_type)
        encoded = base64.b64encode(payload).decode("utf-8")
        return f"data:{mime_type};base64,{encoded}"
