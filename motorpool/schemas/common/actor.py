"""
Acting user identity passed into every workflow operation.
"""

from typing import Optional

from pydantic import Field, field_validator

from motorpool.models.base.enums import Department, UserRole
from motorpool.schemas.common.base import BaseSchema

__all__ = ["ActorContext"]


class ActorContext(BaseSchema):
    """
    Authenticated caller. Authorization by role and department happens
    before a workflow is invoked; workflows only check ownership.
    """

    user_id: str = Field(..., min_length=1, description="Acting user id")
    role: UserRole = Field(UserRole.EMPLOYEE, description="User role")
    department: Optional[Department] = Field(None, description="User department")

    @field_validator("user_id", mode="before")
    @classmethod
    def coerce_user_id(cls, v):
        return str(v) if v is not None else v
