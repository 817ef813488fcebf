import argparse
import logging
import sys

from asciichat.charsets import RAMPS
from asciichat.config import Settings
from asciichat.errors import RenderError
from asciichat.render import RenderRequest, format_header, render, resolve_width
from asciichat.terminal import display_width

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Render an image file or URL as character art")
    parser.add_argument("source", help="Path or http(s) URL of the image")
    parser.add_argument(
        "-s", "--size", type=int, default=None, help="Output width in columns, 8-400 (default: terminal width)"
    )
    parser.add_argument("-c", "--colour", action="store_true", default=False, help="Enable truecolor ANSI output")
    parser.add_argument("-i", "--invert", action="store_true", default=False, help="Invert luminance")
    parser.add_argument(
        "-r", "--ramp", default="default", choices=sorted(RAMPS), help="Named character ramp (default: default)"
    )
    parser.add_argument("--charset", default=None, help="Literal character ramp, darkest first; overrides --ramp")
    parser.add_argument("--header", action="store_true", default=False, help="Print the source/size summary line")
    parser.add_argument("-v", "--verbose", action="store_true", default=False, help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(e, file=sys.stderr)
        return 1

    if args.size is not None:
        width = args.size
    else:
        width = resolve_width(settings.default_width, fit=True, display_width=display_width())
    charset = args.charset if args.charset is not None else RAMPS[args.ramp]
    request = RenderRequest(source=args.source, width=width, colorize=args.colour, invert=args.invert, charset=charset)

    try:
        result = render(request, settings)
    except RenderError as e:
        logger.debug("Render failed", exc_info=True)
        print(f"asciichat: {e}", file=sys.stderr)
        return 1

    if args.header:
        print(format_header(result, request))
    sys.stdout.write(result.text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
