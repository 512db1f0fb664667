"""Error taxonomy shared by the pipeline stages and the HTTP layer."""

MISSING_IMAGE_MESSAGE = "Please upload an image first."
INVALID_IMAGE_MESSAGE = "Invalid image format."
INTERNAL_ERROR_MESSAGE = "Internal Server Error"


class LookalikeError(Exception):
    """Base class for all errors raised by this package."""
    pass


class ConfigError(LookalikeError):
    """Raised when required environment configuration is missing or invalid."""
    pass


class ValidationError(LookalikeError):
    """Raised when the submitted image is missing or malformed.

    The message is shown to the user verbatim.
    """

    def __init__(self, message: str = INVALID_IMAGE_MESSAGE):
        super().__init__(message)
        self.message = message


class DecodeError(ValidationError):
    """Raised when the decoded bytes are not a readable image."""

    def __init__(self, message: str = INVALID_IMAGE_MESSAGE):
        super().__init__(message)


class UpstreamError(LookalikeError):
    """Raised when the embedding, search or generation backend fails."""
    pass
