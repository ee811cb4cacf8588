import httpx
import pytest

from hospital_billing.audit import AuditLogger
from hospital_billing.auth import AuthManager
from hospital_billing.client import ApiClient
from hospital_billing.exceptions import ApiError, AuthenticationError
from hospital_billing.schemas import UserRole
from hospital_billing.session import Session, SessionState

from helpers import BASE_URL, user_payload


@pytest.fixture
def auth(client) -> AuthManager:
    return AuthManager(client)


# --- restore ---

@pytest.mark.asyncio
async def test_restore_without_token_stays_anonymous(auth, fake_api):
    assert await auth.restore() is None
    assert auth.session.state is SessionState.ANONYMOUS
    assert fake_api.requests == []


@pytest.mark.asyncio
async def test_restore_with_valid_token_authenticates(store, fake_api):
    store.set("token", "persisted")
    fake_api.add("GET", "/auth/profile", json_body=user_payload("admin"))
    client = ApiClient(session=Session(store=store), base_url=BASE_URL, transport=httpx.MockTransport(fake_api))
    auth = AuthManager(client)

    user = await auth.restore()

    assert user.role is UserRole.ADMIN
    assert auth.session.state is SessionState.AUTHENTICATED
    assert fake_api.last.headers["authorization"] == "Bearer persisted"


@pytest.mark.asyncio
async def test_restore_with_rejected_token_clears_it_silently(store, fake_api):
    store.set("token", "stale")
    fake_api.add("GET", "/auth/profile", status_code=401, json_body={"error": "Invalid or expired token"})
    client = ApiClient(session=Session(store=store), base_url=BASE_URL, transport=httpx.MockTransport(fake_api))
    auth = AuthManager(client)

    assert await auth.restore() is None
    assert auth.session.state is SessionState.ANONYMOUS
    assert store.get("token") is None
    # a later restart has nothing to restore
    assert Session(store=store).begin_restore() is False


@pytest.mark.asyncio
async def test_restore_network_failure_also_discards_token(store, fake_api):
    store.set("token", "persisted")
    fake_api.fail("GET", "/auth/profile", httpx.ConnectTimeout("timed out"))
    client = ApiClient(session=Session(store=store), base_url=BASE_URL, transport=httpx.MockTransport(fake_api))

    assert await AuthManager(client).restore() is None
    assert store.get("token") is None


@pytest.mark.asyncio
async def test_restore_unexpected_failure_leaves_session_anonymous(store, fake_api):
    store.set("token", "persisted")
    fake_api.fail("GET", "/auth/profile", RuntimeError("profile handler crashed"))
    client = ApiClient(session=Session(store=store), base_url=BASE_URL, transport=httpx.MockTransport(fake_api))
    auth = AuthManager(client)

    with pytest.raises(RuntimeError):
        await auth.restore()

    assert auth.session.state is SessionState.ANONYMOUS
    assert store.get("token") is None


# --- sign in / sign up / sign out ---

@pytest.mark.asyncio
async def test_sign_in_stores_token_and_identity(auth, fake_api, store):
    fake_api.add("POST", "/auth/login", json_body={"user": user_payload("billing_clerk"), "token": "fresh"})
    fake_api.add("GET", "/patients", json_body=[])

    user = await auth.sign_in("billing_clerk@stlukes.ng", "secret")

    assert user.role is UserRole.BILLING_CLERK
    assert auth.role is UserRole.BILLING_CLERK
    assert store.get("token") == "fresh"
    await auth.client.get_patients()
    assert fake_api.last.headers["authorization"] == "Bearer fresh"


@pytest.mark.asyncio
async def test_failed_sign_in_stays_anonymous(auth, fake_api, store):
    fake_api.add("POST", "/auth/login", status_code=401, json_body={"error": "Invalid credentials"})
    with pytest.raises(AuthenticationError, match="Invalid credentials"):
        await auth.sign_in("nobody@stlukes.ng", "wrong")
    assert auth.session.state is SessionState.ANONYMOUS
    assert store.get("token") is None


@pytest.mark.asyncio
async def test_sign_up_does_not_sign_in(auth, fake_api):
    fake_api.add("POST", "/auth/register", status_code=201, json_body=user_payload("doctor", "doc-9"))
    user = await auth.sign_up("doctor@stlukes.ng", "pw", UserRole.DOCTOR)
    assert user.id == "doc-9"
    assert auth.session.state is SessionState.ANONYMOUS


@pytest.mark.asyncio
async def test_sign_up_failure_propagates(auth, fake_api):
    fake_api.add("POST", "/auth/register", status_code=409, json_body={"error": "Email already registered"})
    with pytest.raises(ApiError) as exc_info:
        await auth.sign_up("doctor@stlukes.ng", "pw", "doctor")
    assert exc_info.value.status_code == 409


@pytest.mark.asyncio
async def test_sign_out_clears_everything(auth, fake_api, store):
    fake_api.add("POST", "/auth/login", json_body={"user": user_payload("admin"), "token": "t"})
    fake_api.add("GET", "/doctors", json_body=[])
    await auth.sign_in("admin@stlukes.ng", "secret")

    await auth.sign_out()

    assert auth.user is None
    assert store.get("token") is None
    await auth.client.get_doctors()
    assert "authorization" not in fake_api.last.headers


# --- audit ---

@pytest.mark.asyncio
async def test_audit_logger_posts_entry(client, fake_api):
    fake_api.add("POST", "/audit/log", status_code=201, json_body={"id": "a-1"})
    ok = await AuditLogger(client).log("update", "invoice", "inv-1", {"status": "draft"}, {"status": "paid"})
    assert ok is True
    assert fake_api.last_json()["new_values"] == {"status": "paid"}


@pytest.mark.asyncio
async def test_audit_logger_swallows_api_failures(client, fake_api):
    fake_api.add("POST", "/audit/log", status_code=500, json_body={"error": "boom"})
    assert await AuditLogger(client).log("delete", "patient", "p-1") is False


@pytest.mark.asyncio
async def test_audit_logger_reports_invalid_entry(client, fake_api):
    ok = await AuditLogger(client).log("update", "invoice", "inv-1", old_values=["draft"])
    assert ok is False
    assert fake_api.requests == []
