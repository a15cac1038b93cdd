"""Exceptions raised for misuse of the assessment domain.

Transport problems never show up here: those travel as Result values.
"""


class AssessmentError(Exception):
    """Base class for assessment domain errors."""


class WizardError(AssessmentError):
    """Raised when a wizard operation is attempted in the wrong state."""


class MemberLimitError(AssessmentError):
    """Raised when every family role is already taken."""


class HeadOfFamilyRemovalError(AssessmentError):
    """Raised when removing the head of family is attempted."""


class UnknownMemberError(AssessmentError):
    """Raised when a member id is not part of the family."""


class UnknownMatrixItemError(AssessmentError):
    """Raised when a matrix row is not in the section's fixed row set."""


class RemoteUnavailable(Exception):
    """The remote record store could not serve a request.

    Covers network errors, timeouts, non-2xx responses and undecodable bodies.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
