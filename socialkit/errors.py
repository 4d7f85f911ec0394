"""Exception hierarchy shared by the Bluesky and Reddit clients."""

from typing import Optional


class SocialKitError(Exception):
    """Base exception for provider API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None, error_code: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(self.message)


class AuthError(SocialKitError):
    """Bad credentials, or an operation called before login()."""

    pass


class ValidationError(SocialKitError):
    """An argument is outside the accepted set (e.g. unsupported sort)."""

    pass


class NotFoundError(SocialKitError):
    """A referenced post or profile does not exist."""

    pass


class NetworkError(SocialKitError):
    """Transport or provider failure passed through from the SDK / httpx."""

    pass
