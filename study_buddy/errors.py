"""Exceptions raised by the store and the matching/session rules."""


class StudyBuddyError(Exception):
    """Base class for recoverable study-buddy errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class InvalidRange(StudyBuddyError):
    """Raised when a time slot does not end after it starts."""


class FormatError(StudyBuddyError):
    """Raised when a time, weekday, slot or status literal cannot be parsed."""


class NotFound(StudyBuddyError):
    """Raised when a student or session id is unknown."""


class ValidationError(StudyBuddyError):
    """Raised when a business rule rejects the request."""
