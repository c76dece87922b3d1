"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Authentication errors (401)
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"
    INVALID_REFRESH_TOKEN = "INVALID_REFRESH_TOKEN"

    # Authorization errors (403)
    FORBIDDEN = "FORBIDDEN"
    ADMIN_REQUIRED = "ADMIN_REQUIRED"
    OWNER_REQUIRED = "OWNER_REQUIRED"
    CROSS_GROUP_ACCESS = "CROSS_GROUP_ACCESS"
    NOT_A_MEMBER = "NOT_A_MEMBER"
    OWNER_PROTECTED = "OWNER_PROTECTED"

    # Not found errors (404)
    USER_NOT_FOUND = "USER_NOT_FOUND"
    GROUP_NOT_FOUND = "GROUP_NOT_FOUND"
    MEMBERSHIP_NOT_FOUND = "MEMBERSHIP_NOT_FOUND"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_ROLE = "INVALID_ROLE"
    MAGIC_LINK_INVALID = "MAGIC_LINK_INVALID"
    MAGIC_LINK_EXPIRED = "MAGIC_LINK_EXPIRED"
    MAGIC_LINK_USED = "MAGIC_LINK_USED"
    USER_ALREADY_EXISTS = "USER_ALREADY_EXISTS"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class ValidationError(AppException):
    """Malformed request input."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=400,
        )


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Unauthorized",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


class AuthorizationError(AppException):
    """Authorization failed."""

    def __init__(
        self,
        message: str = "Access denied",
        error_code: ErrorCode = ErrorCode.FORBIDDEN,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=403,
        )


class AdminRequiredError(AuthorizationError):
    """Caller's live membership role is not admin."""

    def __init__(self) -> None:
        super().__init__(
            message="Admin access required",
            error_code=ErrorCode.ADMIN_REQUIRED,
        )


class OwnerRequiredError(AuthorizationError):
    """Caller does not own the group (or the group is gone)."""

    def __init__(self) -> None:
        super().__init__(
            message="Only the group owner can perform this action",
            error_code=ErrorCode.OWNER_REQUIRED,
        )


class CrossGroupAccessError(AuthorizationError):
    """Path group does not match the session's active group."""

    def __init__(self, message: str = "Cannot access a different group") -> None:
        super().__init__(
            message=message,
            error_code=ErrorCode.CROSS_GROUP_ACCESS,
        )


class NotAGroupMemberError(AppException):
    """User has no membership in the requested group."""

    def __init__(self, group_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.NOT_A_MEMBER,
            message="You are not a member of this group",
            status_code=403,
            details={"group_id": group_id},
        )


class OwnerProtectedError(AppException):
    """Attempt to alter the group owner's role or membership."""

    def __init__(self, message: str = "Cannot change owner's role") -> None:
        super().__init__(
            error_code=ErrorCode.OWNER_PROTECTED,
            message=message,
            status_code=403,
        )


class UserNotFoundError(AppException):
    """User not found."""

    def __init__(self, user_id: str = "") -> None:
        super().__init__(
            error_code=ErrorCode.USER_NOT_FOUND,
            message="User not found",
            status_code=404,
            details={"user_id": user_id} if user_id else None,
        )


class GroupNotFoundError(AppException):
    """Group not found."""

    def __init__(self, group_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.GROUP_NOT_FOUND,
            message="Group not found",
            status_code=404,
            details={"group_id": group_id},
        )


class MembershipNotFoundError(AppException):
    """Target user is not a member of the group."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.MEMBERSHIP_NOT_FOUND,
            message="User is not a member of this group",
            status_code=404,
            details={"user_id": user_id},
        )


class UserAlreadyExistsError(AppException):
    """Invitee already belongs to the group."""

    def __init__(self, email: str) -> None:
        super().__init__(
            error_code=ErrorCode.USER_ALREADY_EXISTS,
            message="User with this email is already a member of this group",
            status_code=400,
            details={"email": email},
        )


class MagicLinkError(AppException):
    """Magic link could not be redeemed.

    Carries the store's failure reason so the client can offer a new link.
    """

    _MESSAGES = {
        "not_found": (ErrorCode.MAGIC_LINK_INVALID, "Invalid token"),
        "expired": (ErrorCode.MAGIC_LINK_EXPIRED, "Token has expired"),
        "already_used": (ErrorCode.MAGIC_LINK_USED, "Token has already been used"),
    }

    def __init__(self, reason: str = "not_found") -> None:
        error_code, message = self._MESSAGES.get(
            reason, (ErrorCode.MAGIC_LINK_INVALID, "Invalid token")
        )
        self.reason = reason
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=400,
        )
