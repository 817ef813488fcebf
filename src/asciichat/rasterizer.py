import math

import numpy as np
from PIL import Image

from asciichat.charsets import normalize_ramp
from asciichat.config import CELL_ASPECT

MIN_WIDTH = 8
MAX_WIDTH = 400

# Rec. 709 luma weights
LUMA_WEIGHTS = np.array([0.2126, 0.7152, 0.0722])

RESET = "\033[0m"


def clamp_width(width: int) -> int:
    return max(MIN_WIDTH, min(MAX_WIDTH, width))


def output_size(orig_width: int, orig_height: int, width: int, cell_aspect: float = CELL_ASPECT) -> tuple[int, int]:
    """Character grid (columns, rows) for an image of the given pixel size."""
    width = clamp_width(width)
    # Terminal characters are taller than wide; compensate so output isn't stretched
    height = math.floor(width * orig_height / orig_width * cell_aspect + 0.5)
    return width, max(1, height)


def unpremultiply(rgba: np.ndarray) -> np.ndarray:
    """Scale colour channels by alpha against a black background. Returns (h, w, 3) uint8."""
    rgba = rgba.astype(np.uint32)
    alpha = rgba[:, :, 3:4]
    return (rgba[:, :, :3] * alpha // 255).astype(np.uint8)


def luminance(rgb: np.ndarray, invert: bool = False) -> np.ndarray:
    lum = rgb.astype(np.float64) @ LUMA_WEIGHTS
    if invert:
        lum = 255.0 - lum
    return lum


def ramp_indices(lum: np.ndarray, ramp_length: int) -> np.ndarray:
    # Epsilon absorbs float error so pure white reaches the last index
    idx = np.floor(lum * (ramp_length - 1) / 255.0 + 1e-9).astype(np.int64)
    return np.clip(idx, 0, ramp_length - 1)


def _format_colour(row: str, colours: np.ndarray) -> str:
    """Prefix each character with an ANSI truecolor foreground escape."""
    parts = [f"\033[38;2;{r};{g};{b}m{char}" for char, (r, g, b) in zip(row, colours.tolist())]
    parts.append(RESET)
    return "".join(parts)


def raster_to_text(
    image: Image.Image,
    colorize: bool = False,
    invert: bool = False,
    charset: str | None = None,
) -> str:
    """Map every pixel of an already scaled image to one ramp character.

    Each row is newline terminated. With colorize, every character carries its
    pixel colour and each row ends with a reset.
    """
    if image.width == 0 or image.height == 0:
        return ""
    ramp = np.array(list(normalize_ramp(charset)))
    rgb = unpremultiply(np.asarray(image.convert("RGBA")))
    chars = ramp[ramp_indices(luminance(rgb, invert), len(ramp))]

    lines = []
    for y, row in enumerate(chars):
        line = "".join(row)
        if colorize:
            line = _format_colour(line, rgb[y])
        lines.append(line + "\n")
    return "".join(lines)


def image_to_text(
    image: Image.Image,
    width: int,
    colorize: bool = False,
    invert: bool = False,
    charset: str | None = None,
    cell_aspect: float = CELL_ASPECT,
) -> tuple[str, tuple[int, int]]:
    """Scale an image to a character grid and render it. Returns (text, (columns, rows))."""
    size = output_size(image.width, image.height, width, cell_aspect)
    scaled = image.convert("RGBA").resize(size, Image.BILINEAR)
    return raster_to_text(scaled, colorize=colorize, invert=invert, charset=charset), size
