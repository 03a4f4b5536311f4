"""Session reconciler: optimistic UI state over server-verified truth

Two views are kept:

- ``authoritative``: only changed by confirmed outcomes (revalidation,
  completed login, logout).
- ``optimistic``: ``authoritative`` with the pending optimistic patches
  applied, which is what a UI renders.

Committing a new authoritative state drops all pending patches, so a
confirmed result always replaces an earlier guess. Every asynchronous
operation captures a generation number when it starts; if the reconciler
is closed or a newer operation supersedes it, its result is discarded.
"""

import asyncio
import itertools
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from .api_client import AuthApiClient
from .callback import CallbackCoordinator
from .models import LOGGED_OUT, AuthState, Session, SessionUser
from .result import AuthErrorCode, Result, err, ok, to_auth_error
from .session_store import SessionStorageError, SessionStore

logger = logging.getLogger(__name__)

Listener = Callable[[AuthState], None]


def merge(authoritative: AuthState, patch: Dict[str, Any]) -> AuthState:
    """Apply one optimistic patch over a state"""
    return authoritative.model_copy(update=patch)


def logged_in_state(user: SessionUser, token: str) -> AuthState:
    return AuthState(user=user, token=token, is_authenticated=True, is_loading=False)


class SessionReconciler:
    """Holds the UI-facing projection of the stored session"""

    def __init__(
        self,
        store: SessionStore,
        api: AuthApiClient,
        coordinator: Optional[CallbackCoordinator] = None,
    ):
        self.store = store
        self.api = api
        self.coordinator = coordinator or CallbackCoordinator(api, store)
        self.authoritative = AuthState(is_loading=True)
        self._patches: List[Tuple[int, Dict[str, Any]]] = []
        self._patch_ids = itertools.count()
        self._generation = 0
        self._closed = False
        self._listeners: List[Listener] = []
        self.revalidation: Optional[asyncio.Task] = None

    # --- state ---

    @property
    def optimistic(self) -> AuthState:
        state = self.authoritative
        for _, patch in self._patches:
            state = merge(state, patch)
        return state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with the optimistic state on every change"""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify(self):
        state = self.optimistic
        for listener in list(self._listeners):
            listener(state)

    def _apply_patch(self, patch: Dict[str, Any]) -> int:
        patch_id = next(self._patch_ids)
        self._patches.append((patch_id, patch))
        self._notify()
        return patch_id

    def _rollback_patch(self, patch_id: int):
        self._patches = [(pid, p) for pid, p in self._patches if pid != patch_id]
        self._notify()

    def _commit(self, state: AuthState):
        self.authoritative = state
        self._patches = []
        self._notify()

    def _begin(self) -> int:
        """Start an operation, superseding any in flight"""
        self._generation += 1
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    def _current_token(self) -> Optional[str]:
        if self.optimistic.token:
            return self.optimistic.token
        stored = self.store.load()
        return stored.token if stored else None

    # --- operations ---

    async def initialize(self) -> AuthState:
        """Project the stored session immediately and revalidate it in the background

        Returns:
            The optimistic state right after projection
        """
        generation = self._begin()

        try:
            session = self.store.load()
        except (OSError, SessionStorageError) as e:
            logger.error(f"Session storage unreadable, treating as logged out: {e}")
            session = None

        if session is None:
            logger.info("No stored session")
            self._commit(LOGGED_OUT)
            return self.optimistic

        logger.info(f"Restoring stored session for {session.user.email}")
        self._apply_patch({
            "user": session.user,
            "token": session.token,
            "is_authenticated": True,
            "is_loading": False,
        })

        self.revalidation = asyncio.create_task(self._revalidate(session, generation))
        return self.optimistic

    async def wait_revalidated(self) -> AuthState:
        """Wait for a pending background revalidation, if any"""
        if self.revalidation is not None:
            await asyncio.shield(self.revalidation)
        return self.optimistic

    async def _revalidate(self, session: Session, generation: int):
        result = await self.api.get_current_user(session.token)

        if not self._is_current(generation):
            logger.debug("Discarding stale revalidation result")
            return

        if not result.ok:
            logger.info(f"Stored session rejected ({result.error.code.value}), logging out")
            self.store.clear()
            self._commit(LOGGED_OUT)
            return

        fresh = result.value
        # /auth/me carries no avatar; keep the one from sign-in
        user = session.user.model_copy(update={
            "name": fresh.name or session.user.name,
            "email": fresh.email,
            "googleId": fresh.googleId or session.user.googleId,
        })
        try:
            self.store.save(Session(user=user, token=session.token, expires_at=session.expires_at))
        except SessionStorageError as e:
            logger.error(f"Could not persist revalidated user: {e}")

        logger.info(f"Session revalidated for {user.email}")
        self._commit(logged_in_state(user, session.token))

    async def login(self, callback_url: str) -> Result[Session]:
        """Complete a login from the provider callback URL

        The loading flag is shown optimistically and rolled back on failure;
        the error is returned to the caller.
        """
        return await self._run_login(lambda: self.coordinator.handle(callback_url))

    async def login_with_credential(self, credential: str) -> Result[Session]:
        """Log in with a Google ID token obtained by the client"""
        return await self._run_login(lambda: self._sign_in_with_credential(credential))

    async def _sign_in_with_credential(self, credential: str) -> Result[Session]:
        result = await self.api.authenticate_with_google(credential)
        if not result.ok:
            return result

        try:
            self.store.save(result.value)
        except SessionStorageError as e:
            return err(to_auth_error(AuthErrorCode.UNKNOWN, str(e), e))
        return result

    async def _run_login(self, sign_in: Callable[[], Awaitable[Result[Session]]]) -> Result[Session]:
        generation = self._begin()
        patch_id = self._apply_patch({"is_loading": True})

        result = await sign_in()

        if not self._is_current(generation):
            logger.debug("Discarding login result for a closed or superseded session")
            self._rollback_patch(patch_id)
            return err(to_auth_error(AuthErrorCode.UNKNOWN, "login superseded"))

        if not result.ok:
            logger.warning(f"Login failed: {result.error.code.value} {result.error.message}")
            self._rollback_patch(patch_id)
            return result

        session = result.value
        self._commit(logged_in_state(session.user, session.token))
        return ok(session)

    async def logout(self) -> None:
        """Log out locally at once, then tell the server (best effort)"""
        token = self._current_token()
        self._begin()

        self.store.clear()
        self._commit(LOGGED_OUT)
        logger.info("Logged out locally")

        if token:
            result = await self.api.logout(token)
            if not result.ok:
                logger.debug(f"Server logout failed (ignored): {result.error.message}")

    def update_user(self, user: SessionUser) -> None:
        """Replace the current user, e.g. after a profile change"""
        stored = self.store.load()
        token = self.optimistic.token or (stored.token if stored else None)
        if not token:
            logger.warning("update_user called without a session, ignoring")
            return

        expires_at = stored.expires_at if stored else None
        try:
            self.store.save(Session(user=user, token=token, expires_at=expires_at))
        except SessionStorageError as e:
            logger.error(f"Could not persist updated user: {e}")

        self._commit(merge(self.authoritative, {
            "user": user,
            "token": token,
            "is_authenticated": True,
            "is_loading": False,
        }))

    def close(self) -> None:
        """Tear down: results of in-flight operations will be discarded"""
        self._closed = True
        self._generation += 1
        if self.revalidation is not None and not self.revalidation.done():
            self.revalidation.cancel()
