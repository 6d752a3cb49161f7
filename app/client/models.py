"""Client-side data models."""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Plan = Literal["free", "full_app_purchase"]
Priority = Literal["low", "medium", "high"]


@dataclass
class SessionUser:
    """Identity carried by an authenticated session."""

    id: str
    email: str


@dataclass
class AuthSession:
    access_token: str
    user: SessionUser


class UserProfile(BaseModel):
    """Server-persisted plan, credits and preferences for the current user."""

    id: str
    email: str
    credits: int = Field(ge=0)
    current_plan: Plan = "free"
    has_purchased_app: bool = False
    cloud_sync_enabled: bool = False
    auto_cloud_sync: bool = False
    deletion_policy_days: int = Field(default=0, ge=0)
    plan_selected: bool = False
    created_at: datetime | None = None

    @property
    def is_pro(self) -> bool:
        return self.has_purchased_app or self.current_plan == "full_app_purchase"


class AudioRecording(BaseModel):
    """One captured voice note as kept on the device.

    Serialized with camelCase keys (``audioDataUri``, ``isArchived``...).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    audio_data_uri: str
    duration: int = Field(ge=0)
    date: str
    transcription: str | None = None
    summary: str | None = None
    expanded_transcription: str | None = None
    project_plan: str | None = None
    action_items: str | None = None
    tags: list[str] | None = None
    is_archived: bool = False
    priority: Priority = "medium"

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True)
