"""JWT Payload Models"""
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field
from datetime import datetime


class JWTPayload(BaseModel):
    """Caller identity extracted from the identity provider's token"""
    user_id: UUID = Field(..., alias="sub")
    roles: list[str] = []
    permissions: list[str] = []
    iat: Optional[datetime] = None
    exp: Optional[datetime] = None

    class Config:
        populate_by_name = True
