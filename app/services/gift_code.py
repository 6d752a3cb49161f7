"""Gift code service: atomic credit grants."""

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import IdeaSaverError, ValidationError
from app.models.gift_code import GiftCode
from app.models.profile import Profile

logger = logging.getLogger("idea_saver")

INVALID_CODE = "Invalid or already used gift code."
PROFILE_MISSING = "User profile not found. Please log in again."


class GiftCodeService:
    """Issues and redeems single-use gift codes."""

    def create_gift_code(self, db: Session, code: str, credits: int) -> GiftCode:
        if credits <= 0:
            raise ValidationError("Gift code credits must be positive", details={"credits": credits})
        gift = GiftCode(code=code.strip().upper(), credits=credits)
        db.add(gift)
        db.commit()
        db.refresh(gift)
        return gift

    def redeem(self, db: Session, code: str, user_id: str) -> int:
        """Mark the code used and add its credits to the user's profile.

        Both writes commit together or not at all. Returns the new balance.
        """
        normalized = code.strip().upper()
        try:
            gift = (
                db.query(GiftCode)
                .filter(GiftCode.code == normalized, GiftCode.redeemed_by.is_(None))
                .with_for_update()
                .first()
            )
            if gift is None:
                logger.info("Gift code rejected for %s: %s", user_id, normalized)
                raise ValidationError(INVALID_CODE)

            profile = db.query(Profile).filter(Profile.id == user_id).with_for_update().first()
            if profile is None:
                raise ValidationError(PROFILE_MISSING)

            gift.redeemed_by = user_id
            gift.redeemed_at = datetime.utcnow()
            profile.credits = profile.credits + gift.credits
            db.commit()
        except ValidationError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Gift code redemption failed for %s: %s", user_id, e)
            raise IdeaSaverError("Failed to redeem code. Please try again.", details=str(e)) from e

        logger.info("Gift code %s redeemed by %s (+%d credits)", normalized, user_id, gift.credits)
        return profile.credits


_gift_code_service: GiftCodeService | None = None


def get_gift_code_service() -> GiftCodeService:
    """Get singleton gift code service instance."""
    global _gift_code_service
    if _gift_code_service is None:
        _gift_code_service = GiftCodeService()
    return _gift_code_service
