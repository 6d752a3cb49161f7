"""Plan selection, credit pricing, gift codes and pro-gated settings."""

import logging
import math

from app.client.api_client import ApiClient
from app.client.models import UserProfile
from app.client.session import SessionStore
from app.client.storage import LocalRecordingStore
from app.errors import AuthenticationError, IdeaSaverError, ProfileUnavailableError, ResourceError, ValidationError

logger = logging.getLogger("idea_saver.client")

FREE_PLAN_CREDITS = 25
DELETION_POLICY_CHOICES = (0, 7, 15, 30)


def transcription_cost(duration_seconds: int) -> int:
    """One credit per started minute (minimum one) plus one for the title."""
    minutes = max(1, math.ceil(duration_seconds / 60))
    return minutes + 1


def is_pro(profile: UserProfile | None) -> bool:
    return profile is not None and profile.is_pro


def _require_profile(session: SessionStore) -> UserProfile:
    if session.user is None:
        raise AuthenticationError("Please log in to continue.")
    if session.profile is None:
        raise ProfileUnavailableError()
    return session.profile


async def select_free_plan(session: SessionStore) -> bool:
    """Finish onboarding on the free plan. Returns False when a plan was already chosen.

    Checking ``plan_selected`` first is the only guard against a double submit.
    """
    profile = _require_profile(session)
    if profile.plan_selected:
        return False
    await session.refetch_profile({"current_plan": "free", "plan_selected": True, "credits": FREE_PLAN_CREDITS})
    if session.profile is None or not session.profile.plan_selected:
        raise IdeaSaverError("Could not select the free plan. Please try again.")
    logger.info("Free plan selected for %s", profile.id)
    return True


async def redeem_gift_code(session: SessionStore, api: ApiClient, code: str) -> int:
    """Redeem ``code`` and sync the new balance. Returns the new credit count.

    A rejected code raises and leaves local state untouched.
    """
    code = (code or "").strip()
    if not code:
        raise ValidationError("Please enter a gift code.", details="Missing: code")
    profile = _require_profile(session)

    new_credits = await api.redeem_gift_code(code, profile.id)
    await session.refetch_profile({"credits": new_credits})
    logger.info("Gift code redeemed for %s; balance now %d", profile.id, new_credits)
    return new_credits


async def save_settings(
    session: SessionStore,
    cloud_sync_enabled: bool,
    auto_cloud_sync: bool,
    deletion_policy_days: int,
    store: LocalRecordingStore | None = None,
) -> UserProfile:
    """Commit sync and retention preferences, mirroring them in local settings.

    Cloud options need pro entitlement, checked against the profile at call time.
    """
    profile = _require_profile(session)
    if deletion_policy_days not in DELETION_POLICY_CHOICES:
        raise ValidationError(
            "Deletion policy must be never, 7, 15 or 30 days",
            details=f"deletion_policy_days={deletion_policy_days}",
        )
    if (cloud_sync_enabled or auto_cloud_sync) and not is_pro(profile):
        raise ResourceError("Cloud sync is available with the full app purchase.")

    overrides = {
        "cloud_sync_enabled": cloud_sync_enabled,
        "auto_cloud_sync": auto_cloud_sync and cloud_sync_enabled,
        "deletion_policy_days": deletion_policy_days,
    }
    if not await session.update_profile(overrides):
        raise IdeaSaverError("Failed to save settings.")

    if store is not None:
        local = store.load_settings(profile.id) or {}
        store.save_settings(profile.id, {**local, **overrides})
    updated = session.profile
    if updated is None:
        raise ProfileUnavailableError()
    return updated
