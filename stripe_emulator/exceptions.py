"""
Emulator exceptions.

API-shaped errors mirror the public Stripe error contract (HTTP status,
machine code, raw error body) so client error handling written against the
real API behaves the same against the emulator.
"""

from typing import Any

DOC_URL_BASE = "https://stripe.com/docs/error-codes"


def doc_url_for(code: str | None) -> str | None:
    """Return the Stripe documentation URL for an error code."""
    if not code:
        return None
    return f"{DOC_URL_BASE}/{code.replace('_', '-')}"


class StripeError(Exception):
    """Base exception for all emulator errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, details={self.details})"


class StripeAPIError(StripeError):
    """Error shaped like a Stripe API error response.

    ``type`` is the client-side error class name (as the stripe SDK raises
    it), ``raw_type`` the ``error.type`` field of the response body, and
    ``raw`` the response body's ``error`` object itself.
    """

    status_code: int = 500
    type: str = "APIError"
    raw_type: str = "api_error"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        param: str | None = None,
        decline_code: str | None = None,
        charge: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details=details)
        self.code = code
        self.param = param
        self.decline_code = decline_code
        self.charge = charge
        self.doc_url = doc_url_for(code)

    @property
    def raw(self) -> dict[str, Any]:
        """The ``error`` body a live API response would carry."""
        body = {
            "code": self.code,
            "charge": self.charge,
            "decline_code": self.decline_code,
            "doc_url": self.doc_url,
            "message": self.message,
            "param": self.param,
            "type": self.raw_type,
        }
        return {key: value for key, value in body.items() if value is not None}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.raw}

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.message!r}, "
            f"status_code={self.status_code}, code={self.code!r}, param={self.param!r})"
        )


class InvalidRequestError(StripeAPIError):
    """The request had invalid or missing parameters."""

    status_code = 400
    type = "InvalidRequestError"
    raw_type = "invalid_request_error"


class ResourceAlreadyExistsError(InvalidRequestError):
    """A caller-supplied id collides with an existing object."""

    def __init__(self, message: str, param: str | None = None):
        super().__init__(message, code="resource_already_exists", param=param)


class ResourceMissingError(InvalidRequestError):
    """The referenced object does not exist in this account."""

    status_code = 404

    def __init__(self, message: str, param: str | None = None):
        super().__init__(message, code="resource_missing", param=param)


class CardError(StripeAPIError):
    """The card was declined."""

    status_code = 402
    type = "CardError"
    raw_type = "card_error"

    def __init__(
        self,
        message: str,
        decline_code: str,
        charge: str | None = None,
        code: str = "card_declined",
    ):
        super().__init__(message, code=code, decline_code=decline_code, charge=charge)


class UnsupportedObjectError(StripeError):
    """An object kind outside the supported set reached a dispatch point.

    This is a contract violation inside the emulator or its test helpers,
    not a simulated API error.
    """

    pass


class StripeConfigError(StripeError):
    """Invalid configuration provided."""

    pass
