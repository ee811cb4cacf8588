from typing import Any, Optional


class BillingClientError(Exception):
    """Base class for every error raised by hospital_billing."""


class ApiError(BillingClientError):
    """A call to the billing API did not produce a usable result."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, status_code={self.status_code!r})"


class TransportError(ApiError):
    """No response was received (DNS, connection refused, timeout...)."""


class AuthenticationError(ApiError):
    """The server rejected the session (HTTP 401)."""


class ResponseValidationError(ApiError):
    """A 2xx response whose body does not match the expected shape."""


class InvalidStatusTransition(BillingClientError):
    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Invoice cannot move from '{current}' to '{target}'.")
        self.current = current
        self.target = target


class DiscountNotAllowed(BillingClientError):
    pass
