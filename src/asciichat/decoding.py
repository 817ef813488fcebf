import io
import logging

from PIL import Image

from asciichat.errors import DecodeError, DimensionError

logger = logging.getLogger(__name__)

PRIMARY_FORMATS = ("PNG", "JPEG", "GIF", "BMP")
FALLBACK_FORMAT = "WEBP"

# Modes holding samples wider than 8 bits; scaled down before colour conversion
WIDE_MODES = ("I", "I;16", "I;16B", "I;16L", "I;16N")


def check_dimensions(image: Image.Image) -> None:
    if image.width == 0 or image.height == 0:
        raise DimensionError(f"empty image ({image.width}x{image.height})")


def to_8bit(image: Image.Image) -> Image.Image:
    """Rescale 16-bit grayscale to 8-bit; converting it directly would clip at 255."""
    if image.mode not in WIDE_MODES:
        return image
    return image.convert("I").point(lambda v: v * (1 / 257)).convert("L")


def _open(data: bytes, formats) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data), formats=formats)
    except Image.DecompressionBombError as e:
        raise DimensionError(f"image too large: {e}") from e
    return image


def decode(data: bytes) -> tuple[Image.Image, str]:
    """Decode still-image bytes. Returns (image, lower-case format name).

    The common formats are tried first; WEBP is only attempted when none of
    them accept the data. Multi-frame images yield their first frame.
    Images whose pixel count exceeds Pillow's decompression bomb limit raise
    DimensionError.
    """
    format = ""
    try:
        image = _open(data, PRIMARY_FORMATS)
        format = (image.format or "").lower()
        image.load()
    except (OSError, SyntaxError, ValueError) as e:
        try:
            image = _open(data, [FALLBACK_FORMAT])
            image.load()
        except (OSError, SyntaxError, ValueError):
            raise DecodeError(format, e) from e
        format = FALLBACK_FORMAT.lower()
        logger.debug("Decoded with %s fallback", FALLBACK_FORMAT)

    check_dimensions(image)
    return to_8bit(image), format
