"""Tests for the navigation policy."""

from dataclasses import dataclass

import pytest

from app.redirects import LOGIN_ROUTE, MAIN_ROUTE, PLAN_SELECTION_ROUTE, resolve_redirect

ALL_ROUTES = ["/", "/login", "/pricing", "/record", "/settings", "/history", "/about"]


@dataclass
class FakeProfile:
    plan_selected: bool


class TestResolveRedirect:
    @pytest.mark.parametrize("path", [p for p in ALL_ROUTES if p != "/pricing"])
    def test_no_plan_goes_to_pricing(self, path: str):
        assert resolve_redirect(True, FakeProfile(plan_selected=False), path) == PLAN_SELECTION_ROUTE

    def test_no_plan_stays_on_pricing(self):
        assert resolve_redirect(True, FakeProfile(plan_selected=False), "/pricing") is None

    @pytest.mark.parametrize("path", ["/", "/login", "/pricing"])
    def test_onboarded_bounced_to_record(self, path: str):
        assert resolve_redirect(True, FakeProfile(plan_selected=True), path) == MAIN_ROUTE

    @pytest.mark.parametrize("path", ["/record", "/settings", "/history", "/about"])
    def test_onboarded_stays(self, path: str):
        assert resolve_redirect(True, FakeProfile(plan_selected=True), path) is None

    @pytest.mark.parametrize("path", ["/record", "/settings", "/history", "/pricing"])
    def test_anonymous_protected_goes_to_login(self, path: str):
        assert resolve_redirect(False, None, path) == LOGIN_ROUTE

    @pytest.mark.parametrize("path", ["/", "/login", "/about"])
    def test_anonymous_public_stays(self, path: str):
        assert resolve_redirect(False, None, path) is None

    @pytest.mark.parametrize("path", ALL_ROUTES)
    def test_authenticated_without_profile_stays(self, path: str):
        assert resolve_redirect(True, None, path) is None

    @pytest.mark.parametrize("path", ALL_ROUTES)
    def test_deterministic(self, path: str):
        for profile in (None, FakeProfile(True), FakeProfile(False)):
            for authed in (True, False):
                assert resolve_redirect(authed, profile, path) == resolve_redirect(authed, profile, path)
