"""Client-side authentication: session tracking and sign-in/out notifications."""

import logging
import re
from collections.abc import Awaitable, Callable
from enum import Enum

from app.client.api_client import ApiClient
from app.client.models import AuthSession, SessionUser
from app.config import Settings, get_settings
from app.errors import (
    AuthenticationError,
    ConfigurationError,
    IdeaSaverError,
    TransientError,
    ValidationError,
)
from app.schemas.auth import EMAIL_REGEX, MIN_PASSWORD_LENGTH

logger = logging.getLogger("idea_saver.client")

EMAIL_PATTERN = re.compile(EMAIL_REGEX)


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


AuthListener = Callable[[AuthEvent, AuthSession | None], Awaitable[None]]


class Subscription:
    """Handle returned by ``on_auth_state_change``."""

    def __init__(self, listeners: list[AuthListener], listener: AuthListener) -> None:
        self._listeners = listeners
        self._listener = listener

    def unsubscribe(self) -> None:
        if self._listener in self._listeners:
            self._listeners.remove(self._listener)


def validate_credentials(email: str, password: str) -> None:
    """Reject malformed input before any network call."""
    if not email or not password:
        missing = [name for name, value in (("email", email), ("password", password)) if not value]
        raise ValidationError("Please fill in all fields", details=f"Missing: {', '.join(missing)}")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            details=f"Current password length: {len(password)}",
        )
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Please enter a valid email address", details=f"Invalid email format: {email}")


def _status(error: IdeaSaverError) -> int | None:
    return error.details.get("status") if isinstance(error.details, dict) else None


class AuthClient:
    """Holds the current session and notifies listeners when it changes."""

    def __init__(
        self,
        api: ApiClient,
        access_token: str | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._api = api
        self._settings = settings or get_settings()
        self._session: AuthSession | None = None
        self._stored_token = access_token
        self._listeners: list[AuthListener] = []

    @property
    def session(self) -> AuthSession | None:
        return self._session

    def ensure_configured(self) -> None:
        if not self._settings.is_backend_configured():
            raise ConfigurationError(
                "Backend is not configured. Please check your environment variables.",
                details={"API_BASE_URL": self._settings.API_BASE_URL},
            )

    def on_auth_state_change(self, listener: AuthListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self._listeners, listener)

    async def _notify(self, event: AuthEvent) -> None:
        for listener in list(self._listeners):
            await listener(event, self._session)

    def _adopt(self, token: str, user_id: str, email: str) -> AuthSession:
        self._session = AuthSession(access_token=token, user=SessionUser(id=user_id, email=email))
        self._stored_token = token
        self._api.set_access_token(token)
        return self._session

    async def get_session(self) -> AuthSession | None:
        """Return the current session, restoring it from a stored token if needed.

        An invalid or expired token means no session. Network failures are raised.
        """
        self.ensure_configured()
        if self._session is not None:
            return self._session
        if not self._stored_token:
            return None
        try:
            payload = await self._api.verify_token(self._stored_token)
        except AuthenticationError:
            logger.info("Stored session token is no longer valid")
            self._stored_token = None
            return None
        return self._adopt(self._stored_token, payload["user_id"], payload["email"])

    async def sign_up(self, email: str, password: str) -> AuthSession:
        self.ensure_configured()
        validate_credentials(email, password)
        try:
            result = await self._api.sign_up(email, password)
        except IdeaSaverError as e:
            raise self._friendly(e, email, action="sign up") from e
        session = self._adopt(result["token"], result["user_id"], result["email"])
        await self._notify(AuthEvent.SIGNED_IN)
        return session

    async def sign_in(self, email: str, password: str) -> AuthSession:
        self.ensure_configured()
        validate_credentials(email, password)
        try:
            result = await self._api.sign_in(email, password)
        except IdeaSaverError as e:
            raise self._friendly(e, email, action="sign in") from e
        session = self._adopt(result["token"], result["user_id"], result["email"])
        await self._notify(AuthEvent.SIGNED_IN)
        return session

    async def sign_out(self) -> None:
        self._session = None
        self._stored_token = None
        self._api.set_access_token(None)
        await self._notify(AuthEvent.SIGNED_OUT)

    def _friendly(self, error: IdeaSaverError, email: str, action: str) -> IdeaSaverError:
        """Map backend auth failures to user-facing messages, logged by how expected they are."""
        status = _status(error)
        raw = error.message

        if status == 429:
            logger.warning("Rate limit exceeded for %s: %s", action, email)
            return AuthenticationError("Too many attempts. Please wait a moment and try again.", raw)
        if "Invalid login credentials" in raw:
            logger.info("%s attempt with invalid credentials: %s", action.capitalize(), email)
            return AuthenticationError("Invalid email or password. Please try again.", raw)
        if "already registered" in raw:
            logger.info("%s attempt for existing account: %s", action.capitalize(), email)
            return AuthenticationError("An account with this email already exists. Please sign in instead.", raw)
        if "deactivated" in raw:
            logger.info("%s attempt for deactivated account: %s", action.capitalize(), email)
            return AuthenticationError("This account has been deactivated.", raw)
        if isinstance(error, TransientError):
            logger.error("Unexpected %s failure for %s: %s", action, email, raw)
            return error

        logger.error("Unexpected %s failure for %s: %s", action, email, raw)
        return AuthenticationError(f"An unexpected error occurred during {action}.", raw)
