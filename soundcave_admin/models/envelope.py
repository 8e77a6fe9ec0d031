"""Wire format of the SoundCave backend: {success, data, pagination?, message?}."""
from typing import Any, Optional

from pydantic import BaseModel


class PaginationInfo(BaseModel):
    page: Optional[int] = None
    limit: Optional[int] = None
    total: Optional[int] = None
    pages: Optional[int] = None


class Envelope(BaseModel):
    success: bool = False
    data: Any = None
    pagination: Optional[PaginationInfo] = None
    message: Optional[str] = None
    error: Any = None
