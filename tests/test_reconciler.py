"""Tests for the session reconciler."""
import asyncio

import pytest

from client.models import LOGGED_OUT, AuthState, Session, SessionUser
from client.reconciler import SessionReconciler, merge
from client.session_store import FileBackend, SessionStore
from client.result import AuthErrorCode, err, ok, to_auth_error

STORED_USER = SessionUser(id="user-1", email="alice@example.com", name="Alice", picture="https://pic")
STORED = Session(user=STORED_USER, token="stored-token", expires_at=2_000_000_000)


class FakeApi:
    """get_current_user waits on ``release`` so tests can look at state before it resolves"""

    def __init__(self, me_result=None, sign_in_result=None):
        self.me_result = me_result or ok(SessionUser(
            id="user-1", email="alice@example.com", name="Alice Fresh", googleId="sub",
        ))
        self.sign_in_result = sign_in_result or ok(Session(user=STORED_USER, token="credential-token"))
        self.release = asyncio.Event()
        self.me_calls = []
        self.logout_calls = []
        self.credentials = []

    async def get_current_user(self, token):
        self.me_calls.append(token)
        await self.release.wait()
        return self.me_result

    async def authenticate_with_google(self, credential):
        self.credentials.append(credential)
        return self.sign_in_result

    async def logout(self, token):
        self.logout_calls.append(token)
        return err(to_auth_error(AuthErrorCode.NETWORK_ERROR, "offline"))


class FakeCoordinator:
    def __init__(self, result):
        self.result = result
        self.release = asyncio.Event()
        self.release.set()

    async def handle(self, callback_url):
        await self.release.wait()
        return self.result


def _reconciler(store, api=None, coordinator=None):
    return SessionReconciler(store, api or FakeApi(), coordinator=coordinator or FakeCoordinator(None))


def test_merge_is_pure():
    base = AuthState(is_loading=False)
    merged = merge(base, {"is_loading": True})

    assert merged.is_loading is True
    assert base.is_loading is False


class TestInitialize:
    @pytest.mark.asyncio
    async def test_no_stored_session(self, store):
        api = FakeApi()
        reconciler = _reconciler(store, api)

        state = await reconciler.initialize()

        assert state == LOGGED_OUT
        assert reconciler.revalidation is None
        assert api.me_calls == []

    @pytest.mark.asyncio
    async def test_projects_stored_session_before_network(self, store):
        store.save(STORED)
        api = FakeApi()
        reconciler = _reconciler(store, api)

        state = await reconciler.initialize()

        assert state.is_authenticated
        assert state.user == STORED_USER
        assert not state.is_loading
        # nothing confirmed yet
        assert not reconciler.authoritative.is_authenticated

        api.release.set()
        final = await reconciler.wait_revalidated()

        assert final.is_authenticated
        assert final.user.name == "Alice Fresh"
        assert final.user.picture == "https://pic"
        assert reconciler.authoritative == final
        assert store.load().user.name == "Alice Fresh"

    @pytest.mark.asyncio
    async def test_rejected_session_logs_out(self, store):
        store.save(STORED)
        api = FakeApi(me_result=err(to_auth_error(AuthErrorCode.INVALID_TOKEN, "Token invalid")))
        api.release.set()
        reconciler = _reconciler(store, api)

        await reconciler.initialize()
        state = await reconciler.wait_revalidated()

        assert state == LOGGED_OUT
        assert reconciler.authoritative == LOGGED_OUT
        assert store.load() is None

    @pytest.mark.asyncio
    async def test_result_discarded_after_close(self, store):
        store.save(STORED)
        api = FakeApi(me_result=err(to_auth_error(AuthErrorCode.TOKEN_EXPIRED, "Token expired")))
        reconciler = _reconciler(store, api)

        await reconciler.initialize()
        await asyncio.sleep(0)
        reconciler.close()
        api.release.set()
        await asyncio.sleep(0)

        assert store.load() is not None

    @pytest.mark.asyncio
    async def test_undecodable_session_file_is_logged_out(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_bytes(b'{"auth_token": "\xff\xfe"}')
        api = FakeApi()
        reconciler = _reconciler(SessionStore(FileBackend(str(path))), api)

        state = await reconciler.initialize()

        assert state == LOGGED_OUT
        assert api.me_calls == []
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_logout_wins_over_pending_revalidation(self, store):
        store.save(STORED)
        api = FakeApi()
        reconciler = _reconciler(store, api)

        await reconciler.initialize()
        await asyncio.sleep(0)
        await reconciler.logout()
        api.release.set()
        await reconciler.wait_revalidated()

        assert reconciler.optimistic == LOGGED_OUT
        assert store.load() is None


class TestLogin:
    @pytest.mark.asyncio
    async def test_success(self, store):
        session = Session(user=STORED_USER, token="new-token")
        coordinator = FakeCoordinator(ok(session))
        coordinator.release.clear()
        reconciler = _reconciler(store, coordinator=coordinator)
        await reconciler.initialize()

        pending = asyncio.ensure_future(reconciler.login("http://localhost:3000/auth/callback?code=x&state=login"))
        await asyncio.sleep(0)
        assert reconciler.optimistic.is_loading
        assert not reconciler.authoritative.is_loading

        coordinator.release.set()
        result = await pending

        assert result.ok
        assert reconciler.optimistic.is_authenticated
        assert reconciler.optimistic.token == "new-token"
        assert not reconciler.optimistic.is_loading

    @pytest.mark.asyncio
    async def test_failure_rolls_back_and_returns_error(self, store):
        failure = err(to_auth_error(AuthErrorCode.STATE_MISMATCH, "state mismatch"))
        reconciler = _reconciler(store, coordinator=FakeCoordinator(failure))
        before = await reconciler.initialize()

        result = await reconciler.login("http://localhost:3000/auth/callback?code=x&state=bad")

        assert result.error.code == AuthErrorCode.STATE_MISMATCH
        assert reconciler.optimistic == before

    @pytest.mark.asyncio
    async def test_result_discarded_after_close(self, store):
        coordinator = FakeCoordinator(ok(Session(user=STORED_USER, token="new-token")))
        coordinator.release.clear()
        reconciler = _reconciler(store, coordinator=coordinator)
        await reconciler.initialize()

        pending = asyncio.ensure_future(reconciler.login("http://localhost:3000/auth/callback?code=x"))
        await asyncio.sleep(0)
        reconciler.close()
        coordinator.release.set()
        result = await pending

        assert not result.ok
        assert not reconciler.authoritative.is_authenticated

    @pytest.mark.asyncio
    async def test_discarded_login_drops_loading_flag(self, store):
        coordinator = FakeCoordinator(ok(Session(user=STORED_USER, token="new-token")))
        coordinator.release.clear()
        reconciler = _reconciler(store, coordinator=coordinator)
        await reconciler.initialize()

        pending = asyncio.ensure_future(reconciler.login("http://localhost:3000/auth/callback?code=x&state=login"))
        await asyncio.sleep(0)
        assert reconciler.optimistic.is_loading

        reconciler.close()
        coordinator.release.set()
        result = await pending

        assert result.error.message == "login superseded"
        assert reconciler.optimistic == reconciler.authoritative == LOGGED_OUT


class TestLoginWithCredential:
    @pytest.mark.asyncio
    async def test_success_saves_and_commits(self, store):
        api = FakeApi()
        reconciler = _reconciler(store, api)
        await reconciler.initialize()

        result = await reconciler.login_with_credential("google-id-token")

        assert result.ok
        assert api.credentials == ["google-id-token"]
        assert reconciler.authoritative.is_authenticated
        assert reconciler.optimistic.token == "credential-token"
        assert store.load().token == "credential-token"

    @pytest.mark.asyncio
    async def test_rejection_rolls_back(self, store):
        failure = err(to_auth_error(AuthErrorCode.CODE_EXCHANGE_FAILED, "Invalid Google authentication"))
        reconciler = _reconciler(store, FakeApi(sign_in_result=failure))
        before = await reconciler.initialize()

        result = await reconciler.login_with_credential("bad-token")

        assert result.error.message == "Invalid Google authentication"
        assert reconciler.optimistic == before
        assert store.load() is None


class TestLogout:
    @pytest.mark.asyncio
    async def test_clears_before_server_call(self, store):
        store.save(STORED)
        api = FakeApi()
        reconciler = _reconciler(store, api)

        await reconciler.logout()

        assert store.load() is None
        assert reconciler.optimistic == LOGGED_OUT
        assert api.logout_calls == ["stored-token"]

    @pytest.mark.asyncio
    async def test_without_session_skips_server(self, store):
        api = FakeApi()
        await _reconciler(store, api).logout()
        assert api.logout_calls == []


def test_update_user(store):
    store.save(STORED)
    reconciler = _reconciler(store)

    reconciler.update_user(STORED_USER.model_copy(update={"name": "Ally"}))

    assert reconciler.optimistic.user.name == "Ally"
    assert reconciler.authoritative.is_authenticated
    stored = store.load()
    assert stored.user.name == "Ally"
    assert stored.expires_at == STORED.expires_at


def test_listeners_see_changes(store):
    reconciler = _reconciler(store)
    seen = []
    unsubscribe = reconciler.subscribe(seen.append)

    store.save(STORED)
    reconciler.update_user(STORED_USER)
    unsubscribe()
    reconciler.update_user(STORED_USER)

    assert len(seen) == 1
    assert seen[0].is_authenticated
