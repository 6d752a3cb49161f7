"""
Local persistence for voice notes and settings.

Each user gets their own JSON documents under the storage directory
(``recordings_<userId>.json`` and ``settings_<userId>.json``); nothing is
shared between users. Missing documents read as empty. A document that exists
but cannot be parsed raises ``DataCorruptionError`` so callers never mistake
corruption for "no notes yet".
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from app.client.models import AudioRecording
from app.config import get_settings
from app.errors import DataCorruptionError

logger = logging.getLogger("idea_saver.client")


def _recorded_at(recording: AudioRecording) -> datetime:
    try:
        when = datetime.fromisoformat(recording.date.replace("Z", "+00:00"))
    except ValueError:
        return datetime.min.replace(tzinfo=timezone.utc)
    return when if when.tzinfo else when.replace(tzinfo=timezone.utc)


class LocalRecordingStore:
    """Per-user recording and settings storage on the local device."""

    def __init__(self, root: str | Path | None = None) -> None:
        self.root = Path(root or get_settings().LOCAL_STORAGE_DIR)

    def _path(self, prefix: str, user_id: str) -> Path:
        if not user_id or "/" in user_id or "\\" in user_id or user_id in (".", ".."):
            raise ValueError(f"Invalid user id for local storage: {user_id!r}")
        return self.root / f"{prefix}_{user_id}.json"

    def _read(self, path: Path) -> Any | None:
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        if not raw.strip():
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("Corrupted local data in %s: %s", path.name, e)
            raise DataCorruptionError(f"Stored data in {path.name} could not be read", details=str(e)) from e

    def _write(self, path: Path, data: Any) -> None:
        """Replace the document atomically so a crash never leaves half a file."""
        self.root.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.root, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise

    # --- Recordings ---

    def load_all(self, user_id: str) -> list[AudioRecording]:
        """All recordings for the user in stored order; empty when none exist."""
        path = self._path("recordings", user_id)
        data = self._read(path)
        if data is None:
            return []
        if not isinstance(data, list):
            raise DataCorruptionError(f"Stored data in {path.name} is not a list of recordings")
        try:
            return [AudioRecording.model_validate(item) for item in data]
        except PydanticValidationError as e:
            raise DataCorruptionError(
                f"Stored data in {path.name} contains an invalid recording",
                details=e.errors(include_url=False),
            ) from e

    def _write_recordings(self, user_id: str, recordings: list[AudioRecording]) -> None:
        self._write(self._path("recordings", user_id), [rec.to_storage() for rec in recordings])

    def save(self, user_id: str, recording: AudioRecording) -> None:
        recordings = self.load_all(user_id)
        recordings.append(recording)
        self._write_recordings(user_id, recordings)
        logger.info("Saved recording %s locally for %s", recording.id, user_id)

    def delete(self, user_id: str, recording_id: str) -> None:
        recordings = self.load_all(user_id)
        remaining = [rec for rec in recordings if rec.id != recording_id]
        if len(remaining) == len(recordings):
            return
        self._write_recordings(user_id, remaining)

    def update(self, user_id: str, recording_id: str, fields: dict[str, Any]) -> AudioRecording | None:
        """Merge ``fields`` (snake_case or camelCase keys) into a recording.

        Returns the updated recording, or None when no recording has that id.
        """
        recordings = self.load_all(user_id)
        for index, rec in enumerate(recordings):
            if rec.id == recording_id:
                merged = {**rec.model_dump(), **self._normalize(fields), "id": rec.id}
                recordings[index] = AudioRecording.model_validate(merged)
                self._write_recordings(user_id, recordings)
                return recordings[index]
        return None

    def list_history(self, user_id: str, search: str | None = None) -> list[AudioRecording]:
        """Recordings newest first, optionally filtered by a case-insensitive search.

        The search matches the name, transcription or summary. Recordings whose
        date cannot be parsed sort last.
        """
        recordings = sorted(self.load_all(user_id), key=_recorded_at, reverse=True)
        term = (search or "").strip().lower()
        if not term:
            return recordings
        return [
            rec
            for rec in recordings
            if any(term in (text or "").lower() for text in (rec.name, rec.transcription, rec.summary))
        ]

    @staticmethod
    def _normalize(fields: dict[str, Any]) -> dict[str, Any]:
        aliases = {info.alias: name for name, info in AudioRecording.model_fields.items() if info.alias}
        return {aliases.get(key, key): value for key, value in fields.items()}

    # --- Settings ---

    def save_settings(self, user_id: str, settings: dict[str, Any]) -> None:
        self._write(self._path("settings", user_id), settings)

    def load_settings(self, user_id: str) -> dict[str, Any] | None:
        path = self._path("settings", user_id)
        data = self._read(path)
        if data is not None and not isinstance(data, dict):
            raise DataCorruptionError(f"Stored data in {path.name} is not a settings object")
        return data
