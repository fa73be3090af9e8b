from abc import ABC
from enum import StrEnum
from typing import ClassVar


class ErrorCode(StrEnum):
    """Machine-readable error codes returned to API clients."""

    INVALID_REQUEST = "invalid_request"
    INVALID_TITLE = "invalid_title"
    NOT_FOUND = "not_found"
    FOLDER_NOT_FOUND = "folder_not_found"
    FORBIDDEN = "forbidden"
    FORBIDDEN_FOLDER = "forbidden_folder"
    DUPLICATE_NAME = "duplicate_name"
    INVALID_HIERARCHY = "invalid_hierarchy"
    MISSING_PARENT = "missing_parent"
    SELF_PARENT = "self_parent"
    CYCLIC_MOVE = "cyclic_move"
    CSRF_MISMATCH = "csrf_mismatch"
    STATE_EXPIRED = "state_expired"
    TOKEN_EXCHANGE_ERROR = "token_exchange_error"
    PROFILE_FETCH_ERROR = "profile_fetch_error"
    SESSION_PERSIST_ERROR = "session_persist_error"
    UNAUTHORIZED = "unauthorized"
    SESSION_EXPIRED = "session_expired"
    STORAGE_ERROR = "storage_error"


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """

    code: ClassVar[ErrorCode]
    status_code: ClassVar[int]

    @property
    def http_status(self) -> int:
        return self.status_code


class ValidationError(UserError):
    """Raised when user input fails validation."""

    code = ErrorCode.INVALID_REQUEST
    status_code = 400


class InvalidTitleError(ValidationError):
    """Raised when a bookmark title is blank."""

    code = ErrorCode.INVALID_TITLE

    def __init__(self, message: str = "Title cannot be empty") -> None:
        super().__init__(message)


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    code = ErrorCode.NOT_FOUND
    status_code = 404

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class FolderNotFoundError(NotFoundError):
    """Raised when a referenced folder (parent or target) does not exist."""

    code = ErrorCode.FOLDER_NOT_FOUND

    def __init__(self, message: str = "Folder not found") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when a user tries to access a resource they do not own."""

    code = ErrorCode.FORBIDDEN
    status_code = 403

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(message)


class ForbiddenFolderError(AccessDeniedError):
    """Raised when a referenced folder belongs to a different user."""

    code = ErrorCode.FORBIDDEN_FOLDER

    def __init__(self, message: str = "Folder belongs to a different user") -> None:
        super().__init__(message)


class DuplicateNameError(UserError):
    """Raised when a sibling folder already has the requested name."""

    code = ErrorCode.DUPLICATE_NAME
    status_code = 409

    def __init__(self, message: str = "A folder with this name already exists") -> None:
        super().__init__(message)


class InvalidHierarchyError(UserError):
    """Raised when root flag and parent reference contradict each other."""

    code = ErrorCode.INVALID_HIERARCHY
    status_code = 400


class MissingParentError(InvalidHierarchyError):
    code = ErrorCode.MISSING_PARENT

    def __init__(self, message: str = "Non-root folders must have a parent folder") -> None:
        super().__init__(message)


class CyclicMoveError(UserError):
    code = ErrorCode.CYCLIC_MOVE
    status_code = 400

    def __init__(self, message: str = "A folder cannot be moved inside its own subfolder") -> None:
        super().__init__(message)


class SelfParentError(CyclicMoveError):
    """The degenerate cycle: a folder as its own parent."""

    code = ErrorCode.SELF_PARENT

    def __init__(self, message: str = "A folder cannot be moved into itself") -> None:
        super().__init__(message)


class CsrfMismatchError(UserError):
    """Raised when the callback state does not match a pending login."""

    code = ErrorCode.CSRF_MISMATCH
    status_code = 400

    def __init__(self, message: str = "Invalid state: possible CSRF attack") -> None:
        super().__init__(message)


class StateExpiredError(UserError):
    code = ErrorCode.STATE_EXPIRED
    status_code = 400

    def __init__(self, message: str = "Login attempt expired, please start again") -> None:
        super().__init__(message)


class TokenExchangeError(UserError):
    """Raised when the identity provider refuses or fails the code exchange.

    The HTTP status depends on the provider's answer: 403 when the client
    identity is rejected, 400 when the code is invalid or expired, 500 otherwise.
    """

    code = ErrorCode.TOKEN_EXCHANGE_ERROR
    status_code = 500

    def __init__(self, message: str = "Server error during authentication", status_code: int = 500) -> None:
        super().__init__(message)
        self._status_code = status_code

    @property
    def http_status(self) -> int:
        return self._status_code


class ProfileFetchError(UserError):
    code = ErrorCode.PROFILE_FETCH_ERROR
    status_code = 502

    def __init__(self, message: str = "Failed to fetch user profile from identity provider") -> None:
        super().__init__(message)


class SessionPersistError(UserError):
    code = ErrorCode.SESSION_PERSIST_ERROR
    status_code = 500

    def __init__(self, message: str = "Failed to save session") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when the session carries no authenticated user."""

    code = ErrorCode.UNAUTHORIZED
    status_code = 401

    def __init__(self, message: str = "Unauthorized: please login") -> None:
        super().__init__(message)


class SessionExpiredError(AuthenticationError):
    code = ErrorCode.SESSION_EXPIRED

    def __init__(self, message: str = "Session expired: please login again") -> None:
        super().__init__(message)


class StorageError(UserError):
    """Raised when the underlying record store fails. Carries no driver details."""

    code = ErrorCode.STORAGE_ERROR
    status_code = 500

    def __init__(self, message: str = "Storage failure") -> None:
        super().__init__(message)
