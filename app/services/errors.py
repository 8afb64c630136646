from __future__ import annotations


class LoyaltyError(Exception):
    """Base class for errors raised by the customer and admin services."""

    message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidInput(LoyaltyError):
    message = "Please enter your name and a valid phone number"


class NotFound(LoyaltyError):
    message = "Not found"


class Conflict(LoyaltyError):
    message = "Please retry"


class InvalidCredentials(LoyaltyError):
    # Same text for a wrong password and a throttled client.
    message = "Invalid credentials"


class StoreUnavailable(LoyaltyError):
    message = "Service temporarily unavailable"


class StoreTimeout(StoreUnavailable):
    pass
