"""Profile API endpoint."""

import logging

from fastapi import APIRouter, Body, Depends
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import CurrentUser, get_current_user
from app.errors import ValidationError
from app.schemas.profile import ProfileEnvelope, ProfileResponse, ProfileUpsertRequest
from app.services.profile import get_profile_service

logger = logging.getLogger("idea_saver")

router = APIRouter(prefix="/api/profile", tags=["Profile"])


@router.post("", response_model=ProfileEnvelope)
def upsert_profile(
    payload: dict = Body(...),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProfileEnvelope:
    """Fetch-or-create the caller's profile, merging any supplied field overrides."""
    try:
        body = ProfileUpsertRequest.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError("Invalid profile fields", details=e.errors(include_url=False)) from None

    if not body.userId or not body.userEmail:
        raise ValidationError("Missing userId or userEmail")
    user.require_same_user(body.userId)

    profile = get_profile_service().upsert_profile(db, body.userId, body.userEmail, body.overrides())
    return ProfileEnvelope(profile=ProfileResponse.model_validate(profile))
