"""Error taxonomy for the bid/booking core.

Services raise these; `app.main` turns them into JSON bodies with the matching
HTTP status.
"""


class RentalError(Exception):
    status_code = 500
    code = "RentalError"
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidArgument(RentalError):
    status_code = 400
    code = "InvalidArgument"
    default_message = "Invalid argument"


class PolicyViolation(RentalError):
    status_code = 400
    code = "PolicyViolation"
    default_message = "Request violates booking policy"


class Unauthorized(RentalError):
    status_code = 401
    code = "Unauthorized"
    default_message = "Not authenticated"


class Forbidden(RentalError):
    status_code = 403
    code = "Forbidden"
    default_message = "Forbidden"


class NotFound(RentalError):
    status_code = 404
    code = "NotFound"
    default_message = "Not found"


class InvalidStateTransition(RentalError):
    status_code = 409
    code = "InvalidStateTransition"
    default_message = "Invalid state transition"


class AlreadyConverted(RentalError):
    status_code = 409
    code = "AlreadyConverted"
    default_message = "Bid has already been converted to a booking"


class TransactionFailed(RentalError):
    """Conversion was rolled back. Callers may retry."""
    status_code = 500
    code = "TransactionFailed"
    default_message = "Transaction failed, please retry"
