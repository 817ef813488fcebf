# Ramps run from the character drawn for luminance 0 to the one drawn for 255.

DEFAULT_RAMP = "@%#*+=-:. "

# Used when a caller-supplied ramp has fewer than two distinct characters
MINIMAL_RAMP = "# "

# Block elements: full block down to space
BLOCKS = "█▓▒░ "

# Longer ASCII gradient for wide renders
DETAILED = "$@B%8&WM#*oahkbdpqwmZO0QLCJUYXzcvunxrjft/\\|()1{}[]?-_+~<>i!lI;:,\"^`'. "

RAMPS = {
    "default": DEFAULT_RAMP,
    "blocks": BLOCKS,
    "detailed": DETAILED,
    "minimal": MINIMAL_RAMP,
}


def normalize_ramp(charset: str | None) -> str:
    """Return the ramp to render with.

    None selects the default ramp. A ramp with fewer than two distinct
    characters cannot express any gradient and is replaced by MINIMAL_RAMP.
    """
    if charset is None:
        return DEFAULT_RAMP
    if len(set(charset)) < 2:
        return MINIMAL_RAMP
    return charset
