"""
Asynchronous HTTP client for the Idea Saver backend.

Uses ``httpx.AsyncClient``. Every call is a single in-flight request; the only
automatic retry is for connection failures where the request never left the
device, and it is off unless ``CLIENT_RETRY_ATTEMPTS`` is raised above 1.
"""

import logging
from typing import Any

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.config import get_settings
from app.errors import (
    AuthenticationError,
    IdeaSaverError,
    ResourceError,
    TransientError,
    ValidationError,
)

logger = logging.getLogger("idea_saver.client")

# Failures where the request was never delivered, so resending is safe
_RETRYABLE = (httpx.ConnectError, httpx.ConnectTimeout)


def error_from_response(response: httpx.Response) -> IdeaSaverError:
    """Translate a failed backend response into the error taxonomy."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = body.get("error") or body.get("detail") or response.reason_phrase or "Request failed"
    if not isinstance(message, str):
        message = str(message)
    details = {"status": response.status_code, "details": body.get("details")}

    status = response.status_code
    if status in (400, 404, 409, 413, 422):
        return ValidationError(message, details)
    if status == 401:
        return AuthenticationError(message, details)
    if status == 403:
        return ResourceError(message, details)
    if status == 429 or status >= 500:
        return TransientError(message, details)
    return IdeaSaverError(message, details)


class ApiClient:
    """Thin wrapper around httpx for calling the FastAPI backend."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        retry_attempts: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self._retry_attempts = max(1, retry_attempts or settings.CLIENT_RETRY_ATTEMPTS)
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or settings.CLIENT_TIMEOUT_SECONDS,
            transport=transport,
        )
        self._access_token: str | None = None

    def set_access_token(self, token: str | None) -> None:
        self._access_token = token

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Send a request and return the parsed JSON body.

        Raises:
            TransientError: the backend could not be reached.
            IdeaSaverError: the backend answered with an error status.
        """
        headers = kwargs.pop("headers", {})
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._retry_attempts),
                wait=wait_exponential(multiplier=0.5, max=8),
                retry=retry_if_exception_type(_RETRYABLE),
                reraise=True,
            ):
                with attempt:
                    response = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("Timeout calling %s %s: %s", method, path, e)
            raise TransientError("The server took too long to respond. Please try again.", str(e)) from e
        except httpx.TransportError as e:
            logger.warning("Network error calling %s %s: %s", method, path, e)
            raise TransientError("Could not reach the server. Please try again.", str(e)) from e

        if response.is_error:
            raise error_from_response(response)
        try:
            return response.json()
        except ValueError as e:
            raise TransientError("The server sent an unreadable response.", response.text[:200]) from e

    # --- Authentication ---

    async def sign_up(self, email: str, password: str) -> dict[str, Any]:
        return await self._request("POST", "/api/v1/auth/register", json={"email": email, "password": password})

    async def sign_in(self, email: str, password: str) -> dict[str, Any]:
        return await self._request("POST", "/api/v1/auth/login", json={"email": email, "password": password})

    async def verify_token(self, token: str) -> dict[str, Any]:
        return await self._request("GET", "/api/v1/auth/verify", params={"token": token})

    # --- Profile ---

    async def upsert_profile(self, user_id: str, email: str, overrides: dict[str, Any] | None = None) -> dict:
        """Fetch-or-create the profile, merging ``overrides``. Returns the profile dict."""
        body = {"userId": user_id, "userEmail": email, **(overrides or {})}
        result = await self._request("POST", "/api/profile", json=body)
        if not result.get("success") or "profile" not in result:
            raise TransientError(result.get("error") or "Unknown profile API error", result)
        return result["profile"]

    # --- Collaborators ---

    async def transcribe_audio(self, audio_data_uri: str, duration_seconds: int, user_id: str) -> str:
        result = await self._request(
            "POST",
            "/api/v1/functions/transcribe-audio",
            json={"audioDataUri": audio_data_uri, "durationSeconds": duration_seconds, "userId": user_id},
        )
        return result["transcription"]

    async def generate_title(self, transcription_text: str) -> str:
        result = await self._request(
            "POST",
            "/api/v1/functions/generate-title",
            json={"transcriptionText": transcription_text},
        )
        return result["title"]

    async def redeem_gift_code(self, code: str, user_id: str) -> int:
        result = await self._request(
            "POST",
            "/api/v1/functions/redeem-gift-code",
            json={"code": code, "userId": user_id},
        )
        return int(result["newCredits"])
