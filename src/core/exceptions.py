"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Authorization errors (403)
    FORBIDDEN = "FORBIDDEN"
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    GROUP_NOT_VISIBLE = "GROUP_NOT_VISIBLE"
    GROUP_NOT_JOINABLE = "GROUP_NOT_JOINABLE"
    NOT_A_GROUP_MEMBER = "NOT_A_GROUP_MEMBER"
    NOT_A_GROUP_ADMIN = "NOT_A_GROUP_ADMIN"

    # Not found errors (404)
    GROUP_NOT_FOUND = "GROUP_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    FREET_NOT_FOUND = "FREET_NOT_FOUND"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_IDENTIFIER = "INVALID_IDENTIFIER"
    MISSING_IDENTIFIER = "MISSING_IDENTIFIER"
    INVALID_GROUP_NAME = "INVALID_GROUP_NAME"
    MISSING_PRIVACY_SETTING = "MISSING_PRIVACY_SETTING"

    # Conflict errors (409)
    GROUP_NAME_TAKEN = "GROUP_NAME_TAKEN"
    ALREADY_A_GROUP_MEMBER = "ALREADY_A_GROUP_MEMBER"
    ALREADY_A_GROUP_ADMIN = "ALREADY_A_GROUP_ADMIN"
    FREET_ALREADY_IN_GROUP = "FREET_ALREADY_IN_GROUP"
    FREET_IN_ANOTHER_GROUP = "FREET_IN_ANOTHER_GROUP"
    FREET_NOT_IN_GROUP = "FREET_NOT_IN_GROUP"

    # Precondition errors (412)
    INVALID_PRIVACY_SETTING = "INVALID_PRIVACY_SETTING"

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


# --- 403 ---


class AuthorizationError(AppException):
    """Authorization failed."""

    def __init__(
        self,
        message: str = "Access denied",
        error_code: ErrorCode = ErrorCode.FORBIDDEN,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=403,
            details=details,
        )


class NotAuthenticatedError(AuthorizationError):
    """No signed-in caller."""

    def __init__(self) -> None:
        super().__init__(
            message="You must be logged in to perform this action",
            error_code=ErrorCode.NOT_AUTHENTICATED,
        )


class GroupNotVisibleError(AuthorizationError):
    """Private group viewed by a non-member."""

    def __init__(self, group_id: str) -> None:
        super().__init__(
            message="This group is private to its members",
            error_code=ErrorCode.GROUP_NOT_VISIBLE,
            details={"group_id": group_id},
        )


class GroupNotJoinableError(AuthorizationError):
    """Caller may not add members to this group."""

    def __init__(self, group_id: str) -> None:
        super().__init__(
            message="Only administrators can add members to a private group",
            error_code=ErrorCode.GROUP_NOT_JOINABLE,
            details={"group_id": group_id},
        )


class NotAGroupMemberError(AuthorizationError):
    """User is not a member of the group."""

    def __init__(self, group_id: str, user_id: str | None = None) -> None:
        super().__init__(
            message="User must be a member of the group",
            error_code=ErrorCode.NOT_A_GROUP_MEMBER,
            details={"group_id": group_id, "user_id": user_id},
        )


class NotAGroupAdminError(AuthorizationError):
    """Caller is not an administrator of the group."""

    def __init__(self, group_id: str) -> None:
        super().__init__(
            message="User must be an admin of the group",
            error_code=ErrorCode.NOT_A_GROUP_ADMIN,
            details={"group_id": group_id},
        )


# --- 404 ---


class GroupNotFoundError(AppException):
    """Group not found."""

    def __init__(self, group_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.GROUP_NOT_FOUND,
            message=f"Group not found: {group_id}",
            status_code=404,
            details={"group_id": group_id},
        )


class UserNotFoundError(AppException):
    """User not found."""

    def __init__(self, user_ref: str) -> None:
        super().__init__(
            error_code=ErrorCode.USER_NOT_FOUND,
            message=f"User not found: {user_ref}",
            status_code=404,
            details={"user": user_ref},
        )


class FreetNotFoundError(AppException):
    """Freet not found."""

    def __init__(self, freet_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.FREET_NOT_FOUND,
            message=f"Freet not found: {freet_id}",
            status_code=404,
            details={"freet_id": freet_id},
        )


# --- 400 ---


class InvalidIdentifierError(AppException):
    """Identifier is not a well-formed id."""

    def __init__(self, field: str, value: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_IDENTIFIER,
            message=f"Not a valid {field} format",
            status_code=400,
            details={"field": field, "value": value},
        )


class MissingIdentifierError(AppException):
    """Required identifier missing from the request."""

    def __init__(self, field: str) -> None:
        super().__init__(
            error_code=ErrorCode.MISSING_IDENTIFIER,
            message=f"Missing {field}",
            status_code=400,
            details={"field": field},
        )


class InvalidGroupNameError(AppException):
    """Group name is empty or too long."""

    def __init__(self, message: str = "Group name must be nonempty") -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_GROUP_NAME,
            message=message,
            status_code=400,
        )


class MissingPrivacySettingError(AppException):
    """Privacy flag absent from a privacy update."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.MISSING_PRIVACY_SETTING,
            message="Privacy setting must be present",
            status_code=400,
        )


# --- 409 ---


class GroupNameTakenError(AppException):
    """Group name already in use (case-insensitive)."""

    def __init__(self, name: str) -> None:
        super().__init__(
            error_code=ErrorCode.GROUP_NAME_TAKEN,
            message=f"Group name already taken: {name}",
            status_code=409,
            details={"name": name},
        )


class AlreadyAGroupMemberError(AppException):
    """User is already a member of the group."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.ALREADY_A_GROUP_MEMBER,
            message="User is already a member of this group",
            status_code=409,
            details={"user_id": user_id},
        )


class AlreadyAGroupAdminError(AppException):
    """User is already an administrator of the group."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.ALREADY_A_GROUP_ADMIN,
            message="User is already an admin of this group",
            status_code=409,
            details={"user_id": user_id},
        )


class FreetAlreadyInGroupError(AppException):
    """Freet is already part of this group."""

    def __init__(self, freet_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.FREET_ALREADY_IN_GROUP,
            message=f"Freet {freet_id} already exists in group",
            status_code=409,
            details={"freet_id": freet_id},
        )


class FreetInAnotherGroupError(AppException):
    """Freet is already shared into a different group."""

    def __init__(self, freet_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.FREET_IN_ANOTHER_GROUP,
            message=f"Freet {freet_id} already belongs to another group",
            status_code=409,
            details={"freet_id": freet_id},
        )


class FreetNotInGroupError(AppException):
    """Freet is not part of this group."""

    def __init__(self, freet_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.FREET_NOT_IN_GROUP,
            message=f"Freet {freet_id} is not in this group",
            status_code=409,
            details={"freet_id": freet_id},
        )


# --- 412 ---


class InvalidPrivacySettingError(AppException):
    """Privacy flag is not "true", "false" or blank."""

    def __init__(self, value: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_PRIVACY_SETTING,
            message="Privacy setting must be a boolean value true or false",
            status_code=412,
            details={"value": value},
        )
