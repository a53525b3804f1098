"""Error taxonomy shared by the decoder, generation client, relay and storage.

Every error carries the HTTP status it maps to at the request boundary.
Failures raised after an SSE stream has started are reported in-band instead
(see backend.app.api.sse).
"""


class LegalEaseError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(LegalEaseError):
    """Malformed or missing request fields; the user must correct the input."""

    status_code = 400


class UnsupportedTypeError(LegalEaseError):
    """Unrecognized file format; the user must convert or choose another file."""

    status_code = 415


class ExtractionEmptyError(LegalEaseError):
    """The decoder ran but produced nothing usable."""

    status_code = 422


class GenerationError(LegalEaseError):
    """Remote AI call failed or returned unparseable output."""

    status_code = 502


class AuthenticationError(LegalEaseError):
    """No valid session for a privileged operation."""

    status_code = 401


class StorageError(LegalEaseError):
    """Persistence layer failure."""

    status_code = 500

    def __init__(self, message: str, *, missing_table: bool = False) -> None:
        super().__init__(message)
        self.missing_table = missing_table
