# PQRS intake / lookup schemas
from typing import Any, List, Optional

from pydantic import BaseModel


class PqrsCreate(BaseModel):
    """
    Public intake form body.
    Fields are optional at the schema level; the service reports the
    missing one with its own message.
    """
    branch_id: Optional[Any] = None
    company_id: Optional[Any] = None
    type: Optional[Any] = None
    message: Optional[Any] = None
    first_name: Optional[Any] = None
    middle_name: Optional[str] = None
    last_name: Optional[Any] = None
    second_last_name: Optional[str] = None
    email: Optional[Any] = None
    phone: Optional[str] = None
    national_id: Optional[str] = None


class PqrsByCode(BaseModel):
    id: str
    created_at: str
    type: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    message: str
    company_id: str
    branch_id: str
    company_name: Optional[str] = None
    branch_name: Optional[str] = None
    code: str


class PqrsByCodeResponse(BaseModel):
    ok: bool = True
    data: PqrsByCode


class PqrsListResponse(BaseModel):
    ok: bool = True
    data: List[dict]
    count: int
