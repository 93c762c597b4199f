class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class TenantRequiredError(DomainError):
    """Raised when a workflow is entered without an established school session."""


class CollisionError(DomainError):
    """Raised when a new record collides with an existing one (e.g. login handle)."""


class DuplicateStudentError(CollisionError):
    """Raised when enrollment finds the captured face already registered."""

    def __init__(self, student):
        super().__init__(f"This individual is already registered as {student.full_name} ({student.student_id})")
        self.student = student


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""


class IntegrityError(DomainError):
    """Raised when an operation would leave dangling references."""


class StoreUnavailableError(DomainError):
    """Raised when the record store cannot be reached. Safe to retry."""


class CaptureSourceError(DomainError):
    """Raised when the camera cannot be acquired or stops delivering frames."""
