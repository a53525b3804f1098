"""Data URI decoding - ``data:<mime-type>;base64,<payload>``."""

import base64
import binascii
import re
from dataclasses import dataclass

from backend.app.errors import InvalidInputError

_DATA_URI = re.compile(r"^data:(?P<header>[^,]*?);base64,(?P<body>.*)$", re.DOTALL)


@dataclass(frozen=True)
class DecodedPayload:
    """A decoded data URI."""

    mime_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def decode_data_uri(data_uri: str, *, max_bytes: int | None = None) -> DecodedPayload:
    """Decode a Base64 data URI.

    The media type is lowercased and stripped of parameters
    (``data:image/png;name=scan.png;base64,...`` -> ``image/png``).

    Raises:
        InvalidInputError: If the type tag or body is missing, the body is not
            valid Base64, or the payload exceeds ``max_bytes``
    """
    match = _DATA_URI.match(data_uri.strip()) if isinstance(data_uri, str) else None
    if match is None:
        raise InvalidInputError("Invalid file data URI.")

    mime_type = match.group("header").split(";", 1)[0].strip().lower()
    body = "".join(match.group("body").split())

    if not mime_type:
        raise InvalidInputError("File data URI is missing a media type.")
    if not body:
        raise InvalidInputError("File data URI has an empty body.")

    if max_bytes is not None and len(body) * 3 // 4 > max_bytes:
        raise InvalidInputError(f"File exceeds the upload limit of {max_bytes} bytes.")

    try:
        data = base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInputError("File data URI body is not valid Base64.") from e

    return DecodedPayload(mime_type=mime_type, data=data)


def encode_data_uri(mime_type: str, data: bytes) -> str:
    """Build a Base64 data URI."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
