"""
Club Errors

Exception hierarchy for the membership and invitation lifecycle.
Every error carries the HTTP status the envelope should answer with.
"""

from typing import List, Optional


class ClubError(Exception):
    """Base error for club operations"""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        self.cleanup_errors: List["CleanupError"] = []
        super().__init__(self.message)


# =============================================
# 400 - Bad input
# =============================================

class ValidationError(ClubError):
    """Malformed or missing input"""
    status_code = 400
    default_message = "Invalid request"


class MissingFieldError(ValidationError):
    """A required field is absent or empty"""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Missing required field: {field}")


class InvalidEmailError(ValidationError):
    default_message = "Invalid email format"


class ExpiredError(ClubError):
    """Invite is past its expiry"""
    status_code = 400
    default_message = "Invite has expired"


class EmailMismatchError(ClubError):
    """Invite belongs to a different email than the caller's"""
    status_code = 400
    default_message = "Email mismatch. Please use the same email the invite was sent to."


# =============================================
# 401 / 403 / 404
# =============================================

class AuthenticationError(ClubError):
    status_code = 401
    default_message = "Authentication required"


class ForbiddenError(ClubError):
    status_code = 403
    default_message = "You do not have access to this club"


class NotFoundError(ClubError):
    status_code = 404
    default_message = "Not found"


# =============================================
# 409 - Uniqueness / state conflicts
# =============================================

class ConflictError(ClubError):
    status_code = 409
    default_message = "Resource already exists"


class AlreadyMemberError(ConflictError):
    """Email (or user) already has a membership row in the club"""

    def __init__(self, status: str, message: Optional[str] = None):
        self.membership_status = status
        super().__init__(message or f"This email is already a {status} member of this club")


class AlreadyActiveError(ConflictError):
    default_message = "Membership is already active"


class MembershipClosedError(ConflictError):
    """Member was moved out of pending (suspended, inactive, cancelled)"""

    def __init__(self, status: str):
        self.membership_status = status
        super().__init__(f"Membership is {status} and cannot be confirmed")


# =============================================
# 500 - Downstream failures
# =============================================

class PersistenceError(ClubError):
    """Database call failed"""
    default_message = "Database operation failed"


class DependencyError(ClubError):
    """Identity provider (or other external service) call failed"""
    default_message = "External service call failed"


class AccountCreationError(DependencyError):
    default_message = "Failed to create user account"


class EmailDispatchError(DependencyError):
    default_message = "Failed to send invite email"


class CleanupError(ClubError):
    """
    A compensating action failed.

    Only ever logged and attached to the original error; never returned in
    place of it.
    """

    def __init__(self, step: str, cause: BaseException):
        self.step = step
        self.cause = cause
        super().__init__(f"Cleanup step '{step}' failed: {cause}")
