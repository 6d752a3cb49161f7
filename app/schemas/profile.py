"""Pydantic schemas for the profile endpoint."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Plan = Literal["free", "full_app_purchase"]


class ProfileOverrides(BaseModel):
    """Fields a caller may set on a profile. Unset fields are left alone."""

    model_config = ConfigDict(extra="ignore")

    credits: int | None = Field(default=None, ge=0)
    current_plan: Plan | None = None
    has_purchased_app: bool | None = None
    cloud_sync_enabled: bool | None = None
    auto_cloud_sync: bool | None = None
    deletion_policy_days: int | None = Field(default=None, ge=0)
    plan_selected: bool | None = None

    def as_updates(self) -> dict:
        """Only the fields the caller actually sent with a value."""
        return {key: value for key, value in self.model_dump(exclude_unset=True).items() if value is not None}


class ProfileUpsertRequest(ProfileOverrides):
    """Body of ``POST /api/profile``: identity plus optional overrides."""

    userId: str | None = None
    userEmail: str | None = None

    def overrides(self) -> ProfileOverrides:
        data = self.model_dump(exclude_unset=True, exclude={"userId", "userEmail"})
        return ProfileOverrides(**data)


class ProfileResponse(BaseModel):
    id: str
    email: str
    credits: int
    current_plan: Plan
    has_purchased_app: bool
    cloud_sync_enabled: bool
    auto_cloud_sync: bool
    deletion_policy_days: int
    plan_selected: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ProfileEnvelope(BaseModel):
    success: bool = True
    profile: ProfileResponse
