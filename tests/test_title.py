"""Tests for title generation with a mocked Anthropic client."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from app.errors import CollaboratorError, ConfigurationError
from app.services.title import UNTITLED, TitleService, clean_title


class TestCleanTitle:
    def test_strips_quotes(self):
        assert clean_title('"Weekly Planning Ideas"') == "Weekly Planning Ideas"
        assert clean_title("'Garden Notes'") == "Garden Notes"

    def test_truncates_long_titles(self):
        title = clean_title("A" * 80)
        assert len(title) == 50
        assert title.endswith("...")
        assert title[:47] == "A" * 47

    def test_fifty_chars_kept(self):
        assert clean_title("B" * 50) == "B" * 50

    def test_empty_falls_back(self):
        assert clean_title("") == UNTITLED
        assert clean_title('""') == UNTITLED
        assert clean_title(None) == UNTITLED


class TestTitleService:
    """Tests for TitleService directly."""

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        service = TitleService(api_key="")
        with pytest.raises(ConfigurationError, match="API key not configured"):
            await service.generate_title("some text")

    @pytest.mark.asyncio
    async def test_prompt_includes_text(self):
        service = TitleService(api_key="test-key")
        with patch.object(TitleService, "_call_api", new_callable=AsyncMock) as mock_call:
            mock_call.return_value = "Shopping List"
            title = await service.generate_title("eggs, flour, sugar")

        assert title == "Shopping List"
        prompt = mock_call.call_args.args[0]
        assert 'Text: "eggs, flour, sugar"' in prompt
        assert "3-7 words" in prompt

    @pytest.mark.asyncio
    async def test_api_response_text_is_used(self):
        service = TitleService(api_key="test-key", model="claude-test")
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=MagicMock(content=[MagicMock(text="'Trip Plan'")]))
        with patch.object(service, "_get_client", return_value=client):
            title = await service.generate_title("we should visit the lake")

        assert title == "Trip Plan"
        assert client.messages.create.call_args.kwargs["model"] == "claude-test"

    @pytest.mark.asyncio
    async def test_api_failure_is_collaborator_error(self):
        service = TitleService(api_key="test-key")
        client = MagicMock()
        client.messages.create = AsyncMock(side_effect=ValueError("bad response"))
        with patch.object(service, "_get_client", return_value=client):
            with pytest.raises(CollaboratorError, match="AI title generation failed"):
                await service.generate_title("text")


class TestGenerateTitleEndpoint:
    """Tests for POST /api/v1/functions/generate-title."""

    def test_success(self, client: TestClient, test_user: dict, title_api: AsyncMock):
        response = client.post(
            "/api/v1/functions/generate-title",
            json={"transcriptionText": "Buy milk and call the plumber"},
            headers=test_user["headers"],
        )
        assert response.status_code == 200
        assert response.json() == {"title": "Errands For Today"}

    @pytest.mark.parametrize("body", [{}, {"transcriptionText": ""}, {"transcriptionText": "   "}])
    def test_missing_text(self, client: TestClient, test_user: dict, body: dict):
        response = client.post("/api/v1/functions/generate-title", json=body, headers=test_user["headers"])
        assert response.status_code == 400
        assert response.json()["error"] == "Missing transcriptionText"

    def test_requires_token(self, client: TestClient):
        response = client.post("/api/v1/functions/generate-title", json={"transcriptionText": "hello"})
        assert response.status_code == 401

    def test_failure_is_json_error(self, client: TestClient, test_user: dict, title_api: AsyncMock):
        title_api.side_effect = ConnectionError("unreachable")
        response = client.post(
            "/api/v1/functions/generate-title",
            json={"transcriptionText": "hello"},
            headers=test_user["headers"],
        )
        assert response.status_code == 500
        assert response.json()["error"].startswith("AI title generation failed")
