from typing import Generic, Literal, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope returned by every JSON endpoint."""

    status: Literal["success", "error"] = "success"
    message: str
    data: Optional[T] = None


def success(message: str, data=None) -> ApiResponse:
    return ApiResponse(status="success", message=message, data=data)
