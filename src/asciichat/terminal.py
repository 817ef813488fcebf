import os
import sys


def display_width(default: int = 0) -> int:
    """Columns of the attached terminal, or default when stdout is not a tty."""
    if not sys.stdout.isatty():
        return default
    try:
        return os.get_terminal_size().columns
    except OSError:
        return default
