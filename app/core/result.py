import enum
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from fastapi import HTTPException, status

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    FORBIDDEN = "forbidden"
    EXPIRED = "expired"
    CONFLICT = "conflict"
    UNSCOREABLE = "unscoreable"


ERROR_STATUS_CODES = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_STATE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.EXPIRED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.UNSCOREABLE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@dataclass
class ServiceResult(Generic[T]):
    """
    Outcome of a service operation. Expected failures (missing rows, wrong
    lifecycle state) come back as ``success=False`` instead of being raised.
    """

    success: bool
    data: Optional[T] = None
    message: str = ""
    status_code: int = status.HTTP_200_OK
    error: Optional[ErrorKind] = None

    @classmethod
    def ok(
        cls, data: Any = None, message: str = "", status_code: int = status.HTTP_200_OK
    ) -> "ServiceResult":
        return cls(success=True, data=data, message=message, status_code=status_code)

    @classmethod
    def fail(cls, error: ErrorKind, message: str) -> "ServiceResult":
        return cls(
            success=False,
            message=message,
            status_code=ERROR_STATUS_CODES[error],
            error=error,
        )

    def unwrap(self) -> T:
        """Return ``data`` or raise the matching HTTPException."""
        if not self.success:
            raise HTTPException(status_code=self.status_code, detail=self.message)
        return self.data
