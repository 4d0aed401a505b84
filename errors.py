# errors.py
class CsimError(Exception):
    """Base class for every fatal condition raised by the simulator."""


class ConfigurationError(CsimError, ValueError):
    """Invalid cache geometry or benchmark configuration."""


class TraceFormatError(CsimError, ValueError):
    """A trace line failed validation; processing stops at this line."""

    def __init__(self, message, line_number=None, line=None):
        self.line_number = line_number
        self.line = line
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class ResourceError(CsimError, OSError):
    """A trace or config file could not be opened."""
