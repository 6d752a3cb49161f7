"""
Voice note capture: microphone permission, recording, transcription and save.

The controller walks ``IDLE -> RECORDING -> REVIEW -> (TRANSCRIBING) -> REVIEW``
and leaves ``REVIEW`` either by saving to the local store or discarding. Audio
hardware sits behind ``AudioInput`` so any capture backend (a websocket feed,
a desktop recording library, a test double) can drive it.
"""

import asyncio
import contextlib
import logging
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from app.client.api_client import ApiClient
from app.client.billing import is_pro, transcription_cost
from app.client.events import EventEmitter
from app.client.models import AudioRecording
from app.client.session import SessionStore
from app.client.storage import LocalRecordingStore
from app.data_uri import DEFAULT_AUDIO_MIME, encode_data_uri
from app.errors import (
    AuthenticationError,
    IdeaSaverError,
    InsufficientCreditsError,
    PermissionDeniedError,
    ProfileUnavailableError,
)
from app.services.title import UNTITLED

logger = logging.getLogger("idea_saver.client")


class CaptureState(str, Enum):
    IDLE = "IDLE"
    RECORDING = "RECORDING"
    REVIEW = "REVIEW"
    TRANSCRIBING = "TRANSCRIBING"


class CaptureOutcome(str, Enum):
    SAVED = "SAVED"
    DISCARDED = "DISCARDED"


class CaptureStateError(IdeaSaverError):
    """Action not allowed in the controller's current state."""

    status_code = 409


@dataclass
class CapturedAudio:
    data: bytes
    mime_type: str = DEFAULT_AUDIO_MIME


@dataclass
class TranscriptionOutcome:
    transcription: str
    title: str
    credits_charged: int
    credits_remaining: int


class AudioInput(ABC):
    """Source of recorded audio."""

    @abstractmethod
    async def request_permission(self) -> bool:
        """Ask for microphone access. Returns True when granted."""

    @abstractmethod
    async def start(self) -> None:
        """Begin capturing."""

    @abstractmethod
    async def stop(self) -> CapturedAudio:
        """Stop capturing and return everything recorded since ``start``."""

    async def release(self) -> None:
        """Free any device handles. Default: nothing to free."""


class BufferedAudioInput(AudioInput):
    """Collects audio chunks pushed in by another producer."""

    def __init__(self, permission_granted: bool = True, mime_type: str = DEFAULT_AUDIO_MIME) -> None:
        self.permission_granted = permission_granted
        self.mime_type = mime_type
        self._chunks: list[bytes] = []
        self._capturing = False

    async def request_permission(self) -> bool:
        return self.permission_granted

    async def start(self) -> None:
        if not self.permission_granted:
            raise PermissionDeniedError()
        self._chunks = []
        self._capturing = True

    def feed(self, chunk: bytes) -> None:
        if self._capturing and chunk:
            self._chunks.append(chunk)

    async def stop(self) -> CapturedAudio:
        self._capturing = False
        return CapturedAudio(data=b"".join(self._chunks), mime_type=self.mime_type)

    async def release(self) -> None:
        self._chunks = []


class RecordingCaptureController:
    """Drives one recording at a time from microphone to saved note."""

    def __init__(
        self,
        session: SessionStore,
        api: ApiClient,
        store: LocalRecordingStore,
        audio_input: AudioInput,
        events: EventEmitter | None = None,
        tick_interval: float = 1.0,
    ) -> None:
        self._session = session
        self._api = api
        self._store = store
        self._input = audio_input
        self._events = events or EventEmitter()
        self._tick_interval = tick_interval
        self._timer: asyncio.Task | None = None

        self.state = CaptureState.IDLE
        self.permission_granted = False
        self.elapsed_seconds = 0
        self.audio_data_uri: str | None = None
        self.transcription: str | None = None
        self.title: str | None = None
        self.last_outcome: CaptureOutcome | None = None

    # --- Lifecycle ---

    async def mount(self) -> bool:
        """Check microphone permission once."""
        try:
            self.permission_granted = await self._input.request_permission()
        except Exception as e:
            logger.error("Microphone permission check failed: %s", e)
            self.permission_granted = False
        if not self.permission_granted:
            logger.info("Microphone permission denied")
        return self.permission_granted

    async def close(self) -> None:
        await self._stop_timer()

    # --- Timer ---

    def tick(self) -> None:
        if self.state is CaptureState.RECORDING:
            self.elapsed_seconds += 1

    async def _run_timer(self) -> None:
        while True:
            await asyncio.sleep(self._tick_interval)
            self.tick()

    async def _stop_timer(self) -> None:
        if self._timer is None:
            return
        self._timer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._timer
        self._timer = None

    # --- Recording ---

    def _require(self, *states: CaptureState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise CaptureStateError(f"Cannot do that while {self.state.value}", details={"allowed": allowed})

    async def start(self) -> None:
        self._require(CaptureState.IDLE)
        if not self.permission_granted:
            raise PermissionDeniedError("Microphone access is required to record. Please allow it and try again.")
        try:
            await self._input.start()
        except Exception as e:
            logger.error("Error starting recording: %s", e)
            self.permission_granted = False
            raise PermissionDeniedError(f"Could not start recording: {e}") from e

        self._reset()
        self.state = CaptureState.RECORDING
        self._timer = asyncio.create_task(self._run_timer())

    async def stop(self) -> None:
        self._require(CaptureState.RECORDING)
        await self._stop_timer()
        audio = await self._input.stop()
        self.audio_data_uri = encode_data_uri(audio.data, audio.mime_type)
        self.state = CaptureState.REVIEW

    async def transcribe(self) -> TranscriptionOutcome:
        """Transcribe the reviewed recording, title it and charge credits.

        Raises InsufficientCreditsError before any call when a free user cannot
        pay. A failed transcription leaves the recording in review with no
        credits charged.
        """
        self._require(CaptureState.REVIEW)
        user = self._session.user
        if user is None or self._session.is_loading:
            raise AuthenticationError("Please log in to use AI transcription.")

        # Entitlement can change mid-session; check it against a fresh profile
        await self._session.refetch_profile()
        profile = self._session.profile
        if profile is None:
            raise ProfileUnavailableError()

        duration = self.elapsed_seconds
        cost = transcription_cost(duration)
        if not is_pro(profile) and profile.credits < cost:
            raise InsufficientCreditsError(required=cost, available=profile.credits)

        self.state = CaptureState.TRANSCRIBING
        async with self._events.operation("recording.transcribe", user_id=user.id, duration=duration) as event:
            try:
                text = await self._api.transcribe_audio(self.audio_data_uri or "", duration, user.id)
            except IdeaSaverError:
                self.state = CaptureState.REVIEW
                raise

            title = await self._generate_title(text)
            new_credits = max(0, profile.credits - cost)
            self._session.update_credits(new_credits)
            await self._session.refetch_profile({"credits": new_credits})
            event.update(cost=cost, credits_remaining=new_credits)

        self.transcription = text
        self.title = title
        self.state = CaptureState.REVIEW
        return TranscriptionOutcome(
            transcription=text,
            title=title,
            credits_charged=profile.credits - new_credits,
            credits_remaining=new_credits,
        )

    async def _generate_title(self, text: str) -> str:
        try:
            return await self._api.generate_title(text) or UNTITLED
        except IdeaSaverError as e:
            logger.warning("Title generation failed, using fallback: %s", e.message)
            return UNTITLED

    async def save(self) -> AudioRecording:
        """Persist the reviewed recording locally and return to idle."""
        self._require(CaptureState.REVIEW)
        user = self._session.user
        if user is None:
            raise AuthenticationError("Please log in to save recordings.")

        now = datetime.now(timezone.utc)
        recording = AudioRecording(
            id=f"recording_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}",
            name=self.title or f"Recording {now:%Y-%m-%d}",
            transcription=self.transcription,
            audio_data_uri=self.audio_data_uri or "",
            duration=self.elapsed_seconds,
            date=now.isoformat(),
        )
        self._store.save(user.id, recording)
        await self._input.release()
        self._reset()
        self.state = CaptureState.IDLE
        self.last_outcome = CaptureOutcome.SAVED
        return recording

    async def discard(self) -> None:
        """Drop the current recording without saving."""
        self._require(CaptureState.RECORDING, CaptureState.REVIEW)
        if self.state is CaptureState.RECORDING:
            await self._stop_timer()
            await self._input.stop()
        await self._input.release()
        self._reset()
        self.state = CaptureState.IDLE
        self.last_outcome = CaptureOutcome.DISCARDED

    def _reset(self) -> None:
        self.elapsed_seconds = 0
        self.audio_data_uri = None
        self.transcription = None
        self.title = None
