"""
Domain errors for the Classroom Solutions workflow.

Claim conflicts are not errors: a claim that finds the row already taken
returns ``None``. Everything here is mapped to an HTTP status in ``main.py``.
"""


class Concern2CareError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(Concern2CareError):
    status_code = 404


class LimitExceededError(Concern2CareError):
    status_code = 429

    def __init__(self, message: str, *, used: int | None = None, limit: int | None = None):
        super().__init__(message)
        self.used = used
        self.limit = limit


class ConflictError(Concern2CareError):
    status_code = 409


class SubmissionConflictError(ConflictError):
    """Admin action hit a submission that is being sent or already finished."""


class SendFailure(Concern2CareError):
    status_code = 502


class AIServiceError(Concern2CareError):
    status_code = 502
