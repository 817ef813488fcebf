from dataclasses import dataclass

from asciichat.acquisition import load
from asciichat.config import Settings
from asciichat.decoding import decode
from asciichat.rasterizer import clamp_width, image_to_text

FIT_MAX_WIDTH = 200


@dataclass(frozen=True)
class RenderRequest:
    source: str
    width: int = 80
    colorize: bool = False
    invert: bool = False
    charset: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "width", clamp_width(self.width))


@dataclass(frozen=True)
class RenderResult:
    text: str
    source: str
    original_width: int
    original_height: int
    width: int
    height: int


def render(request: RenderRequest, settings: Settings | None = None) -> RenderResult:
    """Load, decode and rasterize one image source.

    Raises AcquisitionError, DecodeError or DimensionError.
    """
    settings = settings or Settings()
    data, label = load(
        request.source,
        max_bytes=settings.max_image_bytes,
        timeout=settings.http_timeout,
        user_agent=settings.user_agent,
    )
    image, _ = decode(data)
    text, (width, height) = image_to_text(
        image,
        request.width,
        colorize=request.colorize,
        invert=request.invert,
        charset=request.charset,
        cell_aspect=settings.cell_aspect,
    )
    return RenderResult(
        text=text,
        source=label,
        original_width=image.width,
        original_height=image.height,
        width=width,
        height=height,
    )


def resolve_width(width: int, fit: bool = False, display_width: int = 0, default_width: int = 80) -> int:
    """Pick the output width for a display of the given width (0 if unknown).

    The default width, or an explicit fit, follows the display (capped at
    FIT_MAX_WIDTH). The result always leaves a small margin so rows don't wrap.
    """
    if (fit or width == default_width) and display_width > 0:
        width = min(display_width, FIT_MAX_WIDTH)
    if display_width > 0:
        width = min(width, max(8, display_width - 2))
    return clamp_width(width)


def _flag(value: bool) -> str:
    return "true" if value else "false"


def format_header(result: RenderResult, request: RenderRequest) -> str:
    return (
        f"* {result.source}  ({result.original_width}x{result.original_height} → {result.width}x{result.height}, "
        f"color:{_flag(request.colorize)}, invert:{_flag(request.invert)})"
    )
