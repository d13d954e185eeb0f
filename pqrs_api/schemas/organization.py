# Companies / branches request bodies
from typing import Optional

from pydantic import BaseModel


class CompanyCreate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    is_active: bool = True
    logo_url: Optional[str] = None


class CompanyUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    is_active: Optional[bool] = None
    logo_url: Optional[str] = None


class BranchCreate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    is_active: bool = True
    company_id: Optional[str] = None
    logo_url: Optional[str] = None
    slug: Optional[str] = None


class BranchUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    is_active: Optional[bool] = None
    company_id: Optional[str] = None
    logo_url: Optional[str] = None
    slug: Optional[str] = None
