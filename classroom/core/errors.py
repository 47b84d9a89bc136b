class ServiceError(Exception):
    """Base class for failures raised by the classroom services."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Missing or malformed input."""


class NotFoundError(ServiceError):
    pass


class NotFoundOrUnauthorizedError(ServiceError):
    """Assignment is absent or owned by someone else.

    The two cases are deliberately indistinguishable so non-owners learn
    nothing about which assignment ids exist.
    """


class NotAssignedError(ServiceError):
    """Student is not on the assignment's roster."""


class DuplicateSubmissionError(ServiceError):
    pass


class AuthorizationError(ServiceError):
    """Caller's role does not allow the operation."""
