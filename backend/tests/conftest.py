from __future__ import annotations

import base64
import time
from datetime import date

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient
from jose import jwt
from starlette.testclient import TestClient

from staff_directory.core.dependencies import get_current_user, get_employee_store, get_optional_user
from staff_directory.main import app
from staff_directory.models.auth import UserInfo
from staff_directory.models.employee import Account
from staff_directory.models.profile import Profile, SocialPlatform
from staff_directory.services.department_cache import department_cache
from staff_directory.services.memory_store import InMemoryEmployeeStore

TEST_TENANT_ID = "test-tenant-00000000-0000-0000-0000-000000000000"
TEST_CLIENT_ID = "test-client-00000000-0000-0000-0000-000000000000"
TEST_KID = "test-kid-1"
TEST_LOCK_KEY = "test-lock-signing-key"

TODAY = date(2024, 5, 1)


def _int_to_base64url(value: int) -> str:
    byte_length = (value.bit_length() + 7) // 8
    return base64.urlsafe_b64encode(value.to_bytes(byte_length, byteorder="big")).rstrip(b"=").decode("ascii")


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _auth_settings():
    from staff_directory.core.config import settings

    original = (settings.AUTH_TENANT_ID, settings.AUTH_CLIENT_ID, settings.LOCK_SIGNING_KEY)
    settings.AUTH_TENANT_ID = TEST_TENANT_ID
    settings.AUTH_CLIENT_ID = TEST_CLIENT_ID
    settings.LOCK_SIGNING_KEY = TEST_LOCK_KEY
    yield
    settings.AUTH_TENANT_ID, settings.AUTH_CLIENT_ID, settings.LOCK_SIGNING_KEY = original


@pytest.fixture(autouse=True)
def _fresh_department_cache():
    department_cache.invalidate()
    yield
    department_cache.invalidate()


def make_accounts() -> list[Account]:
    return [
        Account(id="u1", login="alice", email="alice@example.com", display_name="Alice Archer",
                first_name="Alice", last_name="Archer", slug="alice", roles=["employee"]),
        Account(id="u2", login="bob", email="bob@example.com", display_name="bob baker",
                first_name="Bob", last_name="Baker", slug="bob", roles=["contractor"]),
        Account(id="u3", login="carol", email="carol@example.com", display_name="Carol Chen",
                first_name="Carol", last_name="Chen", slug="carol", roles=["employee", "hr"]),
        Account(id="u4", login="dave", email="dave@example.com", display_name="Dave Dunn",
                first_name="Dave", last_name="Dunn", slug="dave", roles=["employee"], listed=False),
    ]


def make_profiles() -> dict[str, Profile]:
    return {
        "u1": Profile(
            department="Engineering",
            job_title="Engineer",
            phone="+1 (555) 010-2000",
            start_date="2022-03",
            social={SocialPlatform.TELEGRAM: "@alice", SocialPlatform.DISCORD: "alice#1"},
            hidden_social_fields=[SocialPlatform.DISCORD],
        ),
        "u2": Profile(department="Sales", job_title="Account Manager", start_date="2024-04"),
        "u3": Profile(department="Engineering", job_title="Lead", office="Berlin"),
        "u4": Profile(department="Finance", start_date="2024-04"),
    }


@pytest.fixture
def memory_store() -> InMemoryEmployeeStore:
    return InMemoryEmployeeStore(make_accounts(), make_profiles())


@pytest.fixture
def client(memory_store):
    app.dependency_overrides[get_employee_store] = lambda: memory_store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(memory_store):
    app.dependency_overrides[get_employee_store] = lambda: memory_store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def rsa_test_keys():
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode("utf-8")

    pub = private_key.public_key().public_numbers()
    jwk_dict = {
        "kty": "RSA",
        "kid": TEST_KID,
        "use": "sig",
        "alg": "RS256",
        "n": _int_to_base64url(pub.n),
        "e": _int_to_base64url(pub.e),
    }
    return private_pem, {"keys": [jwk_dict]}


def _make_token(
    private_pem: str,
    *,
    oid: str = "test-oid-123",
    name: str = "Test User",
    email: str = "test@example.com",
    roles: list[str] | None = None,
    expired: bool = False,
    audience: str = TEST_CLIENT_ID,
) -> str:
    now = int(time.time())
    claims = {
        "oid": oid,
        "name": name,
        "preferred_username": email,
        "roles": roles or [],
        "iss": f"https://login.microsoftonline.com/{TEST_TENANT_ID}/v2.0",
        "aud": audience,
        "exp": now - 3600 if expired else now + 3600,
        "iat": now - 60,
        "nbf": now - 60,
    }
    return jwt.encode(claims, private_pem, algorithm="RS256", headers={"kid": TEST_KID})


@pytest.fixture
def make_token():
    return _make_token


@pytest.fixture
def mock_user_viewer():
    return UserInfo(id="viewer-1", name="Viewer User", email="viewer@example.com", roles=["employee"])


@pytest.fixture
def mock_user_hr():
    return UserInfo(id="hr-1", name="HR User", email="hr@example.com", roles=["hr"])


@pytest.fixture
def viewer_client(client, mock_user_viewer):
    app.dependency_overrides[get_current_user] = lambda: mock_user_viewer
    app.dependency_overrides[get_optional_user] = lambda: mock_user_viewer
    return client


@pytest.fixture
def hr_client(client, mock_user_hr):
    app.dependency_overrides[get_current_user] = lambda: mock_user_hr
    app.dependency_overrides[get_optional_user] = lambda: mock_user_hr
    return client
