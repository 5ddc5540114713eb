class AuthenticationError(Exception):
    """Raised when the bearer credential is missing, expired or revoked."""


class IntegrationError(Exception):
    """Raised when a Sheets API call fails or returns an unexpected envelope."""


class RateLimitError(Exception):
    """Raised when the Sheets API rate limit is hit."""


class InvalidArgumentError(ValueError):
    """Raised for a bad spreadsheet id/URL, a missing sheet name or malformed options."""


class ParseError(ValueError):
    """Raised when a JSON response or a cell cannot be parsed."""


class TypeMismatchError(ParseError):
    """Raised when a cell value does not match its column type."""


class InvalidRangeError(ParseError):
    """Raised when a values response is not a list of rows."""


class SessionStateError(RuntimeError):
    """Raised when a write session is used out of order (e.g. after finalize)."""
