"""
Error taxonomy of the data-access core.

Every error is an HTTPException so services can raise it directly and the API
returns it untouched. Callers tell the kinds apart by class.
"""
from fastapi import HTTPException, status


class ValidationFailed(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class NotFound(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class PermissionDenied(HTTPException):
    def __init__(self, detail: str = "Not authorized to perform this action"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class AuthenticationFailed(HTTPException):
    def __init__(self, detail: str = "Invalid email or password"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class CompensatedTransactionError(HTTPException):
    """A dependent write failed and the primary write was undone."""

    def __init__(self, intent: str, rollback: str, cause: Exception):
        self.intent = intent
        self.rollback = rollback
        self.cause = cause
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"{intent} failed: {_describe(cause)}. {rollback}",
        )


class StorageQuotaExceeded(HTTPException):
    def __init__(self, size_bytes: int, quota_bytes: int):
        self.size_bytes = size_bytes
        self.quota_bytes = quota_bytes
        super().__init__(
            status_code=status.HTTP_507_INSUFFICIENT_STORAGE,
            detail=(
                "Local storage is full "
                f"({size_bytes} of {quota_bytes} bytes). "
                "Remove large attachments such as exam files or clinic logos and try again."
            ),
        )


class RemoteSyncError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)


class InitializationError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


def _describe(error: Exception) -> str:
    if isinstance(error, HTTPException):
        return str(error.detail)
    return str(error) or error.__class__.__name__
