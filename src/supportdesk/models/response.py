"""Common response wrapper."""

from typing import Any, Optional
from pydantic import BaseModel


class ApiResponse(BaseModel):
    """Generic acknowledgement body for mutations."""

    ok: bool = True
    message: Optional[str] = None
    data: Optional[Any] = None
