class AsciiChatError(Exception):
    pass


class RenderError(AsciiChatError):
    """Base for failures while turning an image source into text."""


class AcquisitionError(RenderError):
    pass


class SizeLimitExceeded(AcquisitionError):
    pass


class DecodeError(RenderError):
    def __init__(self, format: str, cause: BaseException):
        self.format = format
        self.cause = cause
        super().__init__(f"decode error ({format}): {cause}")


class DimensionError(RenderError):
    pass


class RegistryInvariantViolation(AsciiChatError):
    """Raised when the registry would hold two participants under one name."""


class InboxClosed(AsciiChatError):
    pass
