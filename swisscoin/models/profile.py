from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PhoneStatus(str, Enum):
    """Phone verification state of a profile."""
    UNVERIFIED = "unverified"
    VERIFYING = "verifying"
    VERIFIED = "verified"
    MERGED = "merged"


class ProfileInDB(BaseModel):
    """Profile database schema. `_id` is the identity provider's subject id."""
    id: str = Field(alias="_id")
    display_name: Optional[str] = None
    phone_number: Optional[str] = None
    phone_hash: Optional[str] = None
    phone_verified: bool = False
    phone_status: PhoneStatus = PhoneStatus.UNVERIFIED
    pending_phone: Optional[str] = None
    avatar_url: Optional[str] = None
    is_active: bool = True
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
