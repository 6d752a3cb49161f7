"""Collaborator function endpoints: transcription, titles and gift codes."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import CurrentUser, get_current_user
from app.errors import ValidationError
from app.rate_limit import limiter
from app.schemas.functions import (
    GenerateTitleRequest,
    GenerateTitleResponse,
    RedeemGiftCodeRequest,
    RedeemGiftCodeResponse,
    TranscribeAudioRequest,
    TranscribeAudioResponse,
)
from app.services.gift_code import get_gift_code_service
from app.services.title import get_title_service
from app.services.transcription import get_transcription_service

router = APIRouter(prefix="/api/v1/functions", tags=["Functions"])


@router.post("/transcribe-audio", response_model=TranscribeAudioResponse)
@limiter.limit("20/minute")
def transcribe_audio(
    request: Request,
    body: TranscribeAudioRequest,
    user: CurrentUser = Depends(get_current_user),
) -> TranscribeAudioResponse:
    """Transcribe a recorded voice note."""
    if not body.audioDataUri or body.durationSeconds is None or not body.userId:
        raise ValidationError("Missing audioDataUri, durationSeconds, or userId")
    user.require_same_user(body.userId)

    text = get_transcription_service().transcribe(body.audioDataUri, body.durationSeconds, body.userId)
    return TranscribeAudioResponse(transcription=text)


@router.post("/generate-title", response_model=GenerateTitleResponse)
async def generate_title(
    body: GenerateTitleRequest,
    user: CurrentUser = Depends(get_current_user),
) -> GenerateTitleResponse:
    """Generate a short title for a transcription."""
    if not body.transcriptionText or not body.transcriptionText.strip():
        raise ValidationError("Missing transcriptionText")

    title = await get_title_service().generate_title(body.transcriptionText)
    return GenerateTitleResponse(title=title)


@router.post("/redeem-gift-code", response_model=RedeemGiftCodeResponse)
@limiter.limit("10/minute")
def redeem_gift_code(
    request: Request,
    body: RedeemGiftCodeRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> RedeemGiftCodeResponse:
    """Redeem a gift code for credits."""
    if not body.code or not body.code.strip() or not body.userId:
        raise ValidationError("Missing code or userId")
    user.require_same_user(body.userId)

    new_credits = get_gift_code_service().redeem(db, body.code, body.userId)
    return RedeemGiftCodeResponse(newCredits=new_credits)
