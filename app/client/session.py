"""
Session and profile state for the client.

``SessionStore`` is the one authority for "who is signed in and what should
they see". It combines the auth session, the server profile and the current
route into an explicit ``SessionState`` and a navigation decision.

Lifecycle::

    store = SessionStore(auth, api, navigator)
    await store.start()      # INITIALIZING -> ANONYMOUS / AUTHENTICATED_*
    ...
    await store.close()      # drops the auth subscription

Profile changes made on the server reach the client only through
``refetch_profile``; ``update_credits`` is a local optimistic write that the
caller must follow with ``refetch_profile({"credits": ...})`` to persist.
"""

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any, Protocol

from pydantic import ValidationError as PydanticValidationError

from app.client.api_client import ApiClient
from app.client.auth import AuthClient, AuthEvent, Subscription
from app.client.events import EventEmitter
from app.client.models import AuthSession, SessionUser, UserProfile
from app.errors import IdeaSaverError
from app.redirects import HOME_ROUTE, resolve_redirect

logger = logging.getLogger("idea_saver.client")


class SessionState(str, Enum):
    INITIALIZING = "INITIALIZING"
    ANONYMOUS = "ANONYMOUS"
    AUTHENTICATED_PROFILE_PENDING = "AUTHENTICATED_PROFILE_PENDING"
    AUTHENTICATED_PROFILE_UNAVAILABLE = "AUTHENTICATED_PROFILE_UNAVAILABLE"
    AUTHENTICATED_NO_PLAN = "AUTHENTICATED_NO_PLAN"
    AUTHENTICATED_WITH_PLAN = "AUTHENTICATED_WITH_PLAN"
    SIGNING_OUT = "SIGNING_OUT"


class Navigator(Protocol):
    """Router the store drives. ``pathname`` must reflect the current route."""

    @property
    def pathname(self) -> str: ...

    def push(self, path: str) -> None: ...


class MemoryNavigator:
    """Navigator that keeps the route and history in memory."""

    def __init__(self, pathname: str = HOME_ROUTE) -> None:
        self._pathname = pathname
        self.history: list[str] = []

    @property
    def pathname(self) -> str:
        return self._pathname

    def push(self, path: str) -> None:
        self.history.append(path)
        self._pathname = path


SessionListener = Callable[["SessionStore"], None]


class SessionStore:
    """Single source of truth for the signed-in user, their profile and redirects."""

    def __init__(
        self,
        auth: AuthClient,
        api: ApiClient,
        navigator: Navigator,
        events: EventEmitter | None = None,
    ) -> None:
        self._auth = auth
        self._api = api
        self._navigator = navigator
        self._events = events or EventEmitter()

        self.user: SessionUser | None = None
        self.profile: UserProfile | None = None
        self.is_loading = True
        self._profile_pending = False
        self._signing_out = False

        self._listeners: list[SessionListener] = []
        self._auth_subscription: Subscription | None = None
        self._last_redirect_inputs: tuple | None = None

    # --- Read side ---

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def pathname(self) -> str:
        return self._navigator.pathname

    @property
    def state(self) -> SessionState:
        if self._signing_out:
            return SessionState.SIGNING_OUT
        if self.is_loading and self.user is None:
            return SessionState.INITIALIZING
        if self.user is None:
            return SessionState.ANONYMOUS
        if self._profile_pending:
            return SessionState.AUTHENTICATED_PROFILE_PENDING
        if self.profile is None:
            return SessionState.AUTHENTICATED_PROFILE_UNAVAILABLE
        if not self.profile.plan_selected:
            return SessionState.AUTHENTICATED_NO_PLAN
        return SessionState.AUTHENTICATED_WITH_PLAN

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call ``listener`` after every settled change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Lifecycle ---

    async def start(self) -> None:
        """Resolve the initial session and profile, then follow auth changes."""
        self.is_loading = True
        self._auth_subscription = self._auth.on_auth_state_change(self._on_auth_change)

        async with self._events.operation("session.initialize") as event:
            session: AuthSession | None = None
            try:
                session = await self._auth.get_session()
            except IdeaSaverError as e:
                logger.error("Error getting initial session: %s", e.message)

            if session is not None:
                self.user = session.user
                await self._load_profile(self.user)
            else:
                self.user = None
                self.profile = None
            event["state"] = self.state.value

        self.is_loading = False
        self._settle()

    async def close(self) -> None:
        if self._auth_subscription is not None:
            self._auth_subscription.unsubscribe()
            self._auth_subscription = None
        self._listeners.clear()

    async def _on_auth_change(self, event: AuthEvent, session: AuthSession | None) -> None:
        if event is AuthEvent.SIGNED_IN and session is not None:
            logger.info("User signed in: %s", session.user.id)
            self.user = session.user
            await self._load_profile(self.user)
            self.is_loading = False
            self._settle()
        elif event is AuthEvent.SIGNED_OUT:
            logger.info("User signed out")
            self.user = None
            self.profile = None
            self.is_loading = False
            self._settle()

    # --- Profile ---

    async def _upsert(self, user: SessionUser, overrides: dict[str, Any] | None) -> UserProfile | None:
        """Call the profile endpoint. Failures are logged and yield None."""
        async with self._events.operation("profile.upsert", user_id=user.id, overrides=overrides or {}) as event:
            try:
                data = await self._api.upsert_profile(user.id, user.email, overrides)
                profile = UserProfile.model_validate(data)
            except (IdeaSaverError, PydanticValidationError) as e:
                event["failed"] = True
                logger.error("Profile fetch/upsert failed for %s: %s", user.id, e)
                return None
            event["credits"] = profile.credits
            return profile

    async def _load_profile(self, user: SessionUser, overrides: dict[str, Any] | None = None) -> None:
        self._profile_pending = True
        self._notify()
        try:
            self.profile = await self._upsert(user, overrides)
        finally:
            self._profile_pending = False

    async def refetch_profile(self, overrides: dict[str, Any] | None = None) -> None:
        """Re-read the profile, committing ``overrides`` server-side first.

        The server's answer replaces local state; a failure leaves ``profile``
        as None until the next successful fetch.
        """
        if self.user is None:
            logger.info("Cannot refetch profile: no user signed in")
            return
        await self._load_profile(self.user, overrides)
        self._settle()

    async def update_profile(self, overrides: dict[str, Any]) -> bool:
        """Commit ``overrides``; keeps the current profile if the call fails. Returns success."""
        if self.user is None:
            logger.info("Cannot update profile: no user signed in")
            return False
        updated = await self._upsert(self.user, overrides)
        if updated is None:
            return False
        self.profile = updated
        self._settle()
        return True

    def update_credits(self, new_credits: int) -> None:
        """Optimistically set the local credit balance. Does not persist."""
        if self.profile is None:
            return
        self.profile = self.profile.model_copy(update={"credits": new_credits})
        self._settle()

    async def sign_out(self) -> None:
        self.is_loading = True
        self._signing_out = True
        # Leave protected pages first so the sign-out event does not bounce to /login
        if self.pathname != HOME_ROUTE:
            self._navigator.push(HOME_ROUTE)
        try:
            await self._auth.sign_out()
        finally:
            self._signing_out = False
            self.is_loading = False
        self._settle()

    # --- Navigation ---

    def set_pathname(self, pathname: str) -> None:
        """Record a route change made outside the store and re-apply the policy."""
        if pathname != self._navigator.pathname:
            self._navigator.push(pathname)
        # Routers may move before reporting, so every report counts as a fresh route change
        self._last_redirect_inputs = None
        self._settle()

    def evaluate_redirect(self) -> str | None:
        """Apply the navigation policy once. Returns the route navigated to, if any.

        Nothing happens while loading, when the target is the current route, or
        when the inputs are unchanged since the last navigation was issued.
        """
        if self.is_loading or self._profile_pending:
            return None
        pathname = self._navigator.pathname
        plan_selected = self.profile.plan_selected if self.profile is not None else None
        inputs = (self.is_authenticated, plan_selected, pathname)
        if inputs == self._last_redirect_inputs:
            return None

        target = resolve_redirect(self.is_authenticated, self.profile, pathname)
        if target is None or target == pathname:
            return None

        self._last_redirect_inputs = inputs
        logger.info("Redirecting from %s to %s (%s)", pathname, target, self.state.value)
        self._navigator.push(target)
        return target

    def _settle(self) -> None:
        self.evaluate_redirect()
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
