import os
from dataclasses import dataclass, fields

ENV_PREFIX = "ASCIICHAT_"

MAX_IMAGE_BYTES = 15 << 20
HTTP_TIMEOUT = 12.0
CELL_ASPECT = 0.5
USER_AGENT = "asciichat/0.1 (+https://pypi.org/project/asciichat/)"


@dataclass(frozen=True)
class Settings:
    bus_capacity: int = 256
    inbox_capacity: int = 256
    max_image_bytes: int = MAX_IMAGE_BYTES
    http_timeout: float = HTTP_TIMEOUT
    cell_aspect: float = CELL_ASPECT
    user_agent: str = USER_AGENT
    render_workers: int = 4
    default_width: int = 80

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """Build settings, overriding defaults with ASCIICHAT_<FIELD> variables."""
        if environ is None:
            environ = dict(os.environ)
        values = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None or raw == "":
                continue
            try:
                values[f.name] = type(f.default)(raw)
            except ValueError:
                raise ValueError(f"Invalid value for {ENV_PREFIX}{f.name.upper()}: {raw!r}") from None
        settings = cls(**values)
        for name in ("bus_capacity", "inbox_capacity", "max_image_bytes", "render_workers"):
            if getattr(settings, name) < 1:
                raise ValueError(f"{name} must be positive")
        return settings
