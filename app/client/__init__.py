"""Client core: session, profile, billing and recording workflows."""

from app.client.api_client import ApiClient
from app.client.auth import AuthClient, AuthEvent
from app.client.events import EventEmitter, OperationEvent
from app.client.models import AudioRecording, AuthSession, SessionUser, UserProfile
from app.client.recorder import BufferedAudioInput, CaptureState, RecordingCaptureController
from app.client.session import MemoryNavigator, SessionState, SessionStore
from app.client.storage import LocalRecordingStore

__all__ = [
    "ApiClient",
    "AudioRecording",
    "AuthClient",
    "AuthEvent",
    "AuthSession",
    "BufferedAudioInput",
    "CaptureState",
    "EventEmitter",
    "LocalRecordingStore",
    "MemoryNavigator",
    "OperationEvent",
    "RecordingCaptureController",
    "SessionState",
    "SessionStore",
    "SessionUser",
    "UserProfile",
]
