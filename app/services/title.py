"""
Title generation for transcriptions.

Uses the Anthropic Python SDK (``anthropic.AsyncAnthropic``) to ask for a
short title. Transient API failures are retried with exponential backoff.
"""

import logging
import re

from anthropic import APIConnectionError, APITimeoutError, AsyncAnthropic, RateLimitError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.config import get_settings
from app.errors import CollaboratorError, ConfigurationError

logger = logging.getLogger("idea_saver")

UNTITLED = "Untitled Note"
MAX_TITLE_LENGTH = 50

TITLE_PROMPT = (
    "Generate a concise, descriptive title (3-7 words) for the following text. "
    "The title should be in the same language as the text. "
    "Only provide the title, no extra text or quotes.\n\n"
    'Text: "{text}"\n\n'
    "Title:"
)

_QUOTES = re.compile(r"^[\"']|[\"']$")


def clean_title(raw: str | None) -> str:
    """Strip surrounding quotes and cap length; empty becomes the untitled fallback."""
    title = _QUOTES.sub("", (raw or "").strip()).strip()
    if not title:
        return UNTITLED
    if len(title) > MAX_TITLE_LENGTH:
        title = title[: MAX_TITLE_LENGTH - 3] + "..."
    return title


class TitleService:
    """Generates note titles with Claude."""

    def __init__(self, api_key: str | None = None, model: str | None = None) -> None:
        settings = get_settings()
        self._api_key = api_key if api_key is not None else settings.ANTHROPIC_API_KEY
        self._model = model or settings.TITLE_MODEL
        self._client: AsyncAnthropic | None = None

    def _get_client(self) -> AsyncAnthropic:
        if not self._api_key:
            raise ConfigurationError("Title generation API key not configured.")
        if self._client is None:
            self._client = AsyncAnthropic(api_key=self._api_key)
        return self._client

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type((ConnectionError, TimeoutError)),
        reraise=True,
    )
    async def _call_api(self, prompt: str) -> str:
        client = self._get_client()
        try:
            response = await client.messages.create(
                model=self._model,
                max_tokens=50,
                temperature=0.2,
                messages=[{"role": "user", "content": prompt}],
            )
            return response.content[0].text
        except APITimeoutError as exc:
            logger.warning("Title API timeout: %s", exc)
            raise TimeoutError(f"Title API request timed out: {exc}") from exc
        except (APIConnectionError, RateLimitError) as exc:
            logger.warning("Title API connection error: %s", exc)
            raise ConnectionError(f"Failed to reach title API: {exc}") from exc

    async def generate_title(self, transcription_text: str) -> str:
        """Return a cleaned title for the text.

        Raises ConfigurationError without an API key and CollaboratorError when
        the API keeps failing.
        """
        try:
            raw = await self._call_api(TITLE_PROMPT.format(text=transcription_text))
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error("AI title generation failed: %s", e)
            raise CollaboratorError(f"AI title generation failed: {e}") from e
        return clean_title(raw)


_title_service: TitleService | None = None


def get_title_service() -> TitleService:
    """Get singleton title service instance."""
    global _title_service
    if _title_service is None:
        _title_service = TitleService()
    return _title_service
