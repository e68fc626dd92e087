"""Errors raised while analysing struct definitions."""


class ConfigError(RuntimeError):
    """Raised when a struct definition cannot be laid out.

    Every structural or semantic problem found during analysis ends up here,
    so callers only need to handle a single error type.
    """

    def __init__(self, message: str, location: str | None = None):
        self.message = message
        self.location = location
        super().__init__(f"{location}: {message}" if location else message)
