"""Profile service: fetch-or-create and field-level merge of user profiles."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.errors import IdeaSaverError, ResourceError
from app.models.profile import PLAN_FREE, Profile
from app.schemas.profile import ProfileOverrides

logger = logging.getLogger("idea_saver")

CLOUD_FIELDS = ("cloud_sync_enabled", "auto_cloud_sync")


class ProfileService:
    """Single mutation path for user profiles."""

    def default_fields(self) -> dict:
        """Field values for a profile created on first contact."""
        return {
            "credits": get_settings().DEFAULT_CREDITS,
            "current_plan": PLAN_FREE,
            "has_purchased_app": False,
            "cloud_sync_enabled": False,
            "auto_cloud_sync": False,
            "deletion_policy_days": 0,
            "plan_selected": False,
        }

    def get_profile(self, db: Session, user_id: str) -> Profile | None:
        return db.query(Profile).filter(Profile.id == user_id).first()

    def upsert_profile(
        self,
        db: Session,
        user_id: str,
        email: str,
        overrides: ProfileOverrides | None = None,
    ) -> Profile:
        """Create the profile with defaults, or merge overrides onto the existing one.

        Overrides win field by field; anything not present in ``overrides`` keeps
        its stored value. Calling this with no overrides is a fetch-or-create and
        changes nothing on an existing profile.

        Raises ResourceError when the merged result would enable cloud sync
        without pro entitlement.
        """
        updates = overrides.as_updates() if overrides else {}

        try:
            profile = self.get_profile(db, user_id)
            if profile is None:
                operation = "INSERT"
                profile = Profile(id=user_id, email=email, **{**self.default_fields(), **updates})
                db.add(profile)
            else:
                operation = "UPDATE" if updates else "FETCH"
                for field, value in updates.items():
                    setattr(profile, field, value)

            self._check_cloud_entitlement(profile, updates)

            if operation != "FETCH":
                db.commit()
                db.refresh(profile)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Profile upsert failed for %s: %s", user_id, e)
            raise IdeaSaverError("Failed to save profile", details=str(e)) from e
        except ResourceError:
            db.rollback()
            raise

        logger.info(
            "Profile %s for %s (credits=%s, plan_selected=%s)",
            operation,
            user_id,
            profile.credits,
            profile.plan_selected,
        )
        return profile

    def _check_cloud_entitlement(self, profile: Profile, updates: dict) -> None:
        enabling = [field for field in CLOUD_FIELDS if updates.get(field)]
        if enabling and not profile.is_pro:
            raise ResourceError(
                "Cloud sync requires the full app purchase",
                details={"fields": enabling},
            )


_profile_service: ProfileService | None = None


def get_profile_service() -> ProfileService:
    """Get singleton profile service instance."""
    global _profile_service
    if _profile_service is None:
        _profile_service = ProfileService()
    return _profile_service
