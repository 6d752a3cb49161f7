"""Tests for plan selection, pricing, gift codes and settings."""

from unittest.mock import patch

import pytest
from sqlalchemy.orm import Session

from app.client.api_client import ApiClient
from app.client.auth import AuthClient
from app.client.billing import (
    FREE_PLAN_CREDITS,
    is_pro,
    redeem_gift_code,
    save_settings,
    select_free_plan,
    transcription_cost,
)
from app.client.models import UserProfile
from app.client.session import MemoryNavigator, SessionStore
from app.client.storage import LocalRecordingStore
from app.errors import AuthenticationError, IdeaSaverError, ResourceError, TransientError, ValidationError
from app.services.gift_code import INVALID_CODE, GiftCodeService


@pytest.mark.parametrize(
    "seconds,cost",
    [(0, 2), (1, 2), (59, 2), (60, 2), (61, 3), (90, 3), (120, 3), (121, 4), (3600, 61)],
)
def test_transcription_cost(seconds: int, cost: int):
    assert transcription_cost(seconds) == cost


def test_is_pro():
    assert is_pro(None) is False
    assert is_pro(UserProfile(id="u", email="e@x.io", credits=0)) is False
    assert is_pro(UserProfile(id="u", email="e@x.io", credits=0, has_purchased_app=True)) is True
    assert is_pro(UserProfile(id="u", email="e@x.io", credits=0, current_plan="full_app_purchase")) is True


class TestSelectFreePlan:
    @pytest.mark.asyncio
    async def test_selects_plan_and_moves_on(self, session: SessionStore):
        await session.refetch_profile({"credits": 3})
        assert await select_free_plan(session) is True

        assert session.profile.plan_selected is True
        assert session.profile.current_plan == "free"
        assert session.profile.credits == FREE_PLAN_CREDITS
        assert session.pathname == "/record"

    @pytest.mark.asyncio
    async def test_second_submit_is_noop(self, session: SessionStore):
        await select_free_plan(session)
        with patch.object(ApiClient, "upsert_profile") as mock_upsert:
            assert await select_free_plan(session) is False
        mock_upsert.assert_not_called()

    @pytest.mark.asyncio
    async def test_requires_sign_in(self, api: ApiClient):
        store = SessionStore(AuthClient(api), api, MemoryNavigator("/"))
        await store.start()
        with pytest.raises(AuthenticationError):
            await select_free_plan(store)


class TestRedeemGiftCode:
    @pytest.mark.asyncio
    async def test_valid_code(self, session: SessionStore, api: ApiClient, db_session: Session):
        await session.refetch_profile({"credits": 10})
        GiftCodeService().create_gift_code(db_session, "BONUS20", 20)

        new_credits = await redeem_gift_code(session, api, " bonus20 ")
        assert new_credits == 30
        assert session.profile.credits == 30

    @pytest.mark.asyncio
    async def test_invalid_code_changes_nothing(self, session: SessionStore, api: ApiClient, test_user: dict):
        await session.refetch_profile({"credits": 10})

        with pytest.raises(ValidationError) as exc:
            await redeem_gift_code(session, api, "BOGUS")
        assert exc.value.message == INVALID_CODE
        assert session.profile.credits == 10

        server = await api.upsert_profile(test_user["user_id"], test_user["email"])
        assert server["credits"] == 10

    @pytest.mark.asyncio
    async def test_empty_code_rejected_locally(self, session: SessionStore, api: ApiClient):
        with patch.object(ApiClient, "redeem_gift_code") as mock_redeem:
            with pytest.raises(ValidationError, match="Please enter a gift code"):
                await redeem_gift_code(session, api, "   ")
        mock_redeem.assert_not_called()


class TestSaveSettings:
    @pytest.mark.asyncio
    async def test_retention_saved_and_mirrored(self, session: SessionStore, store: LocalRecordingStore):
        store.save_settings(session.user.id, {"theme": "dark"})
        profile = await save_settings(session, False, False, 30, store=store)

        assert profile.deletion_policy_days == 30
        assert store.load_settings(session.user.id) == {
            "theme": "dark",
            "cloud_sync_enabled": False,
            "auto_cloud_sync": False,
            "deletion_policy_days": 30,
        }

    @pytest.mark.asyncio
    async def test_invalid_retention(self, session: SessionStore):
        with pytest.raises(ValidationError, match="Deletion policy"):
            await save_settings(session, False, False, 10)

    @pytest.mark.asyncio
    async def test_cloud_sync_needs_pro(self, session: SessionStore):
        with patch.object(ApiClient, "upsert_profile") as mock_upsert:
            with pytest.raises(ResourceError, match="full app purchase"):
                await save_settings(session, True, False, 0)
        mock_upsert.assert_not_called()

    @pytest.mark.asyncio
    async def test_cloud_sync_for_pro(self, session: SessionStore):
        await session.refetch_profile({"has_purchased_app": True})
        profile = await save_settings(session, True, True, 7)
        assert profile.cloud_sync_enabled is True
        assert profile.auto_cloud_sync is True

    @pytest.mark.asyncio
    async def test_auto_sync_requires_sync(self, session: SessionStore):
        await session.refetch_profile({"has_purchased_app": True})
        profile = await save_settings(session, False, True, 0)
        assert profile.auto_cloud_sync is False

    @pytest.mark.asyncio
    async def test_returns_the_session_profile(self, session: SessionStore):
        profile = await save_settings(session, False, False, 15)
        assert profile is session.profile
        assert profile.deletion_policy_days == 15

    @pytest.mark.asyncio
    async def test_failed_save_keeps_profile(self, session: SessionStore):
        before = session.profile
        with patch.object(ApiClient, "upsert_profile", side_effect=TransientError("db down")):
            with pytest.raises(IdeaSaverError, match="Failed to save settings"):
                await save_settings(session, False, False, 7)
        assert session.profile is before
