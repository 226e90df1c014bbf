"""User DTOs for API layer"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from uuid import UUID


class OwnedProductDto(BaseModel):
    product_id: UUID
    acquired_at: datetime
    source: str


class MembershipPlanDto(BaseModel):
    key: str
    name: str
    max_downloads_per_month: Optional[int] = None
    allowed_formats: List[str] = Field(default_factory=list)
    commercial_use: bool = False
    remix_requests_per_month: int = 0


class MembershipDto(BaseModel):
    plan_key: Optional[str] = None
    status: str
    started_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    is_active: bool = False
    plan: Optional[MembershipPlanDto] = None


class UsageDto(BaseModel):
    period_start: Optional[datetime] = None
    downloads_used: int = 0
    remix_requests_used: int = 0


class EntitlementsDto(BaseModel):
    """Everything the user currently has access to"""
    user_id: UUID
    owned_products: List[OwnedProductDto] = Field(default_factory=list)
    membership: MembershipDto
    usage: UsageDto
