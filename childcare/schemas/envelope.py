"""
Standard response envelope.

Every route answers with {"success": true, "data": ..., "message": ...};
errors are rendered as {"success": false, "error": ...} by the handlers in
childcare.core.errors.
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


def success_response(data: Any = None, message: Optional[str] = None) -> dict:
    return {"success": True, "data": data, "message": message}


def error_response(error: str) -> dict:
    return {"success": False, "error": error}
