"""Image decoding and re-encoding helpers (Pillow)."""

import io

from PIL import Image

from foodlens.domain.shared.errors import InvalidImageError
from foodlens.domain.shared.inference import ImageInput

JPEG_QUALITY = 80


def load_image(image: ImageInput) -> Image.Image:
    """Decode encoded bytes into a Pillow image; images pass through.

    Raises:
        InvalidImageError: If the bytes are not a known image format, are
            truncated, or exceed Image.MAX_IMAGE_PIXELS
    """
    if isinstance(image, Image.Image):
        return image

    try:
        decoded = Image.open(io.BytesIO(image))
        decoded.load()
    except Image.DecompressionBombError as e:
        raise InvalidImageError(f"Image too large to decode: {e}") from e
    except (OSError, ValueError) as e:
        raise InvalidImageError(f"Image could not be decoded: {e}") from e
    return decoded


def encode_jpeg(image: ImageInput, quality: int = JPEG_QUALITY) -> bytes:
    """Re-encode as baseline RGB JPEG.

    Raises:
        InvalidImageError: If the image cannot be decoded or encoded
    """
    decoded = load_image(image)

    buffer = io.BytesIO()
    try:
        if decoded.mode != "RGB":
            decoded = decoded.convert("RGB")
        decoded.save(buffer, format="JPEG", quality=quality)
    except (OSError, ValueError) as e:
        raise InvalidImageError(f"Image could not be encoded as JPEG: {e}") from e
    return buffer.getvalue()
