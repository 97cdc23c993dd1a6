"""API exceptions raised by service functions.

DRF renders every one of them as ``{"detail": "<message>"}`` with the status
code declared on the class.
"""
from rest_framework import exceptions, status


class ValidationError(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request."
    default_code = "invalid"


class DuplicateSubmissionError(ValidationError):
    default_detail = "You have already submitted this assignment"
    default_code = "duplicate_submission"


class DeadlinePassedError(ValidationError):
    default_detail = "Submission deadline has passed, late submissions are not accepted"
    default_code = "deadline_passed"


class DeadlineClosedError(ValidationError):
    default_code = "deadline_closed"

    def __init__(self, cutoff_days: int):
        self.cutoff_days = cutoff_days
        super().__init__(f"Submission window closed ({cutoff_days} days past deadline)")


class AlreadyGradedError(ValidationError):
    default_detail = "Submission has already been graded"
    default_code = "already_graded"


class NotFoundError(exceptions.NotFound):
    pass


class DependencyFailure(exceptions.APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "An internal service is unavailable. Try again later."
    default_code = "dependency_failure"
