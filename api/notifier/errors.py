"""Error hierarchy for provider construction and event delivery."""

from typing import Optional

# Longest response body excerpt kept on a DeliveryError
BODY_EXCERPT_LIMIT = 512


class NotifierError(Exception):
    """Base error for all notifier exceptions."""

    code = "NOTIFIER_ERROR"

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(NotifierError, ValueError):
    """Invalid provider configuration, raised while constructing a provider."""

    code = "CONFIGURATION_ERROR"


class AuthenticationError(NotifierError):
    """Exchanging GitHub App credentials for an access token failed."""

    code = "AUTHENTICATION_ERROR"


class DeliveryError(NotifierError):
    """The request could not be sent or the remote end rejected it."""

    code = "DELIVERY_ERROR"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: str = "",
    ):
        body = body[:BODY_EXCERPT_LIMIT]
        super().__init__(message, {"status_code": status_code, "body": body})
        self.status_code = status_code
        self.body = body


class CancellationError(DeliveryError):
    """The request deadline passed before a response arrived."""

    code = "CANCELLED"
