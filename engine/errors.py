"""Error types shared by the engine and the HTTP gateway."""


class InvalidParameter(ValueError):
    """Audio parameters that cannot describe a valid WAV header."""


class UpstreamError(RuntimeError):
    """The generative-language API failed or returned no usable content."""

    def __init__(self, message: str, status: int | None = None, details: str = ""):
        super().__init__(message)
        self.status = status
        self.details = details or message


class MissingField(ValueError):
    """A required request field is absent or empty."""


class UnknownPromptType(ValueError):
    """No prompt template exists for the requested kind."""
