"""Transcription service using faster-whisper."""

import logging
import os
import tempfile
import time

from app.config import get_settings
from app.data_uri import decode_data_uri
from app.errors import CollaboratorError, ValidationError

logger = logging.getLogger("idea_saver")


class TranscriptionService:
    """Turns a self-contained audio data URI into text with faster-whisper."""

    def __init__(self) -> None:
        self._model = None

    def _get_model(self):
        """Lazy-load the whisper model."""
        if self._model is None:
            from faster_whisper import WhisperModel

            settings = get_settings()
            self._model = WhisperModel(settings.WHISPER_MODEL_SIZE, device="cpu", compute_type="int8")
        return self._model

    def transcribe(self, audio_data_uri: str, duration_seconds: float, user_id: str) -> str:
        """Transcribe the audio payload. Returns the full text.

        Raises ValidationError for a malformed or oversized payload and
        CollaboratorError when the model fails or hears nothing.
        """
        settings = get_settings()
        try:
            audio = decode_data_uri(audio_data_uri)
        except ValueError as e:
            raise ValidationError("Invalid audio data format", details=str(e)) from None

        max_bytes = settings.MAX_AUDIO_SIZE_MB * 1024 * 1024
        if len(audio.data) > max_bytes:
            raise ValidationError(
                f"Audio too large ({len(audio.data) // (1024 * 1024)}MB). Maximum: {settings.MAX_AUDIO_SIZE_MB}MB"
            )

        # faster-whisper decodes from a path, so spill the payload to a temp file
        fd, path = tempfile.mkstemp(suffix=audio.extension)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(audio.data)

            start_time = time.time()
            model = self._get_model()
            segments_iter, info = model.transcribe(path, beam_size=5)
            text = " ".join(seg.text.strip() for seg in segments_iter).strip()
            processing_time = time.time() - start_time
        except Exception as e:
            logger.error("Transcription failed for %s: %s", user_id, e)
            raise CollaboratorError(f"AI transcription failed: {e}") from e
        finally:
            os.remove(path)

        if not text:
            raise CollaboratorError("No transcription received from AI")

        logger.info(
            "Transcribed %.0fs of audio for %s in %.2fs (language=%s)",
            duration_seconds,
            user_id,
            processing_time,
            getattr(info, "language", None),
        )
        return text


_transcription_service: TranscriptionService | None = None


def get_transcription_service() -> TranscriptionService:
    """Get singleton transcription service instance."""
    global _transcription_service
    if _transcription_service is None:
        _transcription_service = TranscriptionService()
    return _transcription_service
