"""
GymPro error taxonomy.

Every failure the client can surface maps onto one of these classes:

    TransportError      network failure, request never got a response
    HttpError           non-2xx response, carries the server detail
    UnauthorizedError   401, credentials already wiped and login forced
    ValidationError     client-side check failed, nothing was sent
    PaymentError        gateway start, dismissal, unreadable confirmation,
                        post-charge verification
    ExportError         PDF report generation or save failed

Screens catch these at their boundary and turn them into Result values
and notices. Nothing here retries.
"""


class GymProError(Exception):
    """Base class for all GymPro client errors."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


# ---------------------------------------------------------------------------
# API failures
# ---------------------------------------------------------------------------

class ApiError(GymProError):
    """Base class for failures talking to the backend."""


class TransportError(ApiError):
    """The request could not be delivered (DNS, refused, reset...)."""


class HttpError(ApiError):
    """The backend answered with a non-2xx status."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status

    def __repr__(self) -> str:
        return f"HttpError(status={self.status}, message={self.message!r})"


class UnauthorizedError(HttpError):
    """401 response. Stored credentials are cleared before this is raised."""

    def __init__(self, message: str = "Session expired"):
        super().__init__(401, message)


# ---------------------------------------------------------------------------
# Client-side validation
# ---------------------------------------------------------------------------

class ValidationError(GymProError):
    """One or more form checks failed before any request was issued."""

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


# ---------------------------------------------------------------------------
# Payment gateway
# ---------------------------------------------------------------------------

class PaymentError(GymProError):
    """Base class for payment gateway failures."""


class CheckoutStartError(PaymentError):
    """Checkout could not be opened. No charge was made."""


class CheckoutDismissed(PaymentError):
    """The member closed the checkout without paying. No charge was made."""


class ConfirmationUnreadable(PaymentError):
    """Checkout returned something, but not a usable signed confirmation.

    The gateway may already have charged the member, so this is never
    reported as a dismissal.
    """


class VerificationError(PaymentError):
    """The gateway charged the member but backend verification failed.

    Needs manual follow-up by support: the money moved, the record did not.
    """


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

class ExportError(GymProError):
    """The analytics PDF could not be produced."""
