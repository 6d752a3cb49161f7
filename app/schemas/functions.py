"""Pydantic schemas for the collaborator function endpoints."""

from pydantic import BaseModel


class TranscribeAudioRequest(BaseModel):
    audioDataUri: str | None = None
    durationSeconds: float | None = None
    userId: str | None = None


class TranscribeAudioResponse(BaseModel):
    transcription: str


class GenerateTitleRequest(BaseModel):
    transcriptionText: str | None = None


class GenerateTitleResponse(BaseModel):
    title: str


class RedeemGiftCodeRequest(BaseModel):
    code: str | None = None
    userId: str | None = None


class RedeemGiftCodeResponse(BaseModel):
    success: bool = True
    newCredits: int
