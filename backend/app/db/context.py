"""Request context for per-user data access."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RequestContext:
    """Authenticated caller identity.

    Used to scope every history read and write to the session's user.
    """

    user_id: str
    email: str | None = None
    access_token: str | None = None
