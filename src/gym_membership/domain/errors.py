"""Domain exceptions surfaced to the HTTP boundary."""


class GymMembershipError(Exception):
    """Base class for application errors."""

    status_code = 400


class NotInitializedError(GymMembershipError):
    """Raised when the messaging session is used before it was initialized."""

    status_code = 503


class TransportClosedError(GymMembershipError):
    """Raised when sending while the messaging session is not open."""

    status_code = 503


class NoPendingRequestError(GymMembershipError):
    """Raised when there is no live OTP for the requester."""


class OtpExpiredError(NoPendingRequestError):
    """Raised when the stored OTP is past its expiry."""


class InvalidCodeError(GymMembershipError):
    """Raised when the submitted OTP does not match."""


class DuplicateIdentityError(GymMembershipError):
    """Raised when a contact value already belongs to another account."""

    status_code = 409


class InvalidCredentialsError(GymMembershipError):
    """Raised on failed login or password checks."""

    status_code = 401


class NotFoundError(GymMembershipError):
    """Raised when a requested record does not exist."""

    status_code = 404


class ValidationFailedError(GymMembershipError):
    """Raised when request data fails business validation."""


class UpdateFailedError(GymMembershipError):
    """Raised when a verified change could not be written to the database."""

    status_code = 503
