"""Error taxonomy for the khairat service.

Every error carries a user-facing message in Malay and the HTTP status the
API layer should answer with. ``CryptoError`` lives with the field codec and
is re-exported here so callers have a single import point.
"""

from libs.common.field_crypto import CryptoError


class KhairatError(Exception):
    """Base exception for khairat domain errors."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(KhairatError):
    """Bad input shape, enum value or missing required field."""

    status_code = 400


class NotFoundError(KhairatError):
    status_code = 404


class InvalidStateError(KhairatError):
    """Operation is not legal in the record's current lifecycle state."""

    status_code = 409


class HeaderNotFoundError(KhairatError):
    """The import sheet has no recognisable header row."""

    status_code = 400


class SheetNotFoundError(KhairatError):
    """The workbook has no member worksheet to import."""

    status_code = 400


class PersistenceError(KhairatError):
    """Storage failure; the enclosing transaction has been rolled back."""

    status_code = 500


__all__ = [
    "CryptoError",
    "HeaderNotFoundError",
    "InvalidStateError",
    "KhairatError",
    "NotFoundError",
    "PersistenceError",
    "SheetNotFoundError",
    "ValidationError",
]
