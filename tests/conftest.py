import pytest
from fastapi.testclient import TestClient

from apps.api.main import create_app
from auth.session import AuthConfig, create_access_token
from tenancy.config import TenancyConfig
from tenancy.database import DatabaseConfig, DatabaseManager
from tenancy.repository import MembershipRepository, TenantRepository, TranslationStore

TENANT_A = "123e4567-e89b-12d3-a456-426614174000"
TENANT_B = "22222222-2222-4222-8222-222222222222"
PEER_A = "store_01HQWE1234567890"

ALICE = "aaaaaaaa-0000-4000-8000-000000000001"   # active owner of A
BOB = "bbbbbbbb-0000-4000-8000-000000000002"     # active editor of B only
CAROL = "cccccccc-0000-4000-8000-000000000003"   # revoked member of A
ADMIN = "dddddddd-0000-4000-8000-000000000004"   # platform admin, no memberships

TEST_SECRET = "test-secret-key-with-at-least-32-bytes!!"


@pytest.fixture
def db_manager():
    manager = DatabaseManager(DatabaseConfig("sqlite:///:memory:"))
    manager.create_tables()
    yield manager
    manager.dispose()


@pytest.fixture
def db(db_manager):
    session = db_manager.SessionLocal()
    yield session
    session.close()


@pytest.fixture
def seeded(db_manager):
    """Two tenants, A linked to PEER_A and B unlinked, with memberships"""
    session = db_manager.SessionLocal()
    try:
        TenantRepository.create(session, subdomain="acme", name="Acme", tenant_id=TENANT_A)
        TenantRepository.create(session, subdomain="globex", name="Globex", tenant_id=TENANT_B)
        TranslationStore(session).create_mapping(TENANT_A, PEER_A)

        members = MembershipRepository(session)
        members.grant(ALICE, TENANT_A, role="owner")
        members.grant(BOB, TENANT_B, role="editor")
        members.grant(CAROL, TENANT_A, role="viewer")
        members.revoke(CAROL, TENANT_A)
    finally:
        session.close()
    return db_manager


@pytest.fixture
def auth_config():
    return AuthConfig(secret_key=TEST_SECRET)


@pytest.fixture
def app(seeded, auth_config):
    return create_app(
        tenancy_config=TenancyConfig(),
        auth_config=auth_config,
        db_manager=seeded,
    )


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers(auth_config):
    """Build request headers for a user and an optional store id"""

    def _headers(user_id=None, store_id=None, roles=()):
        headers = {}
        if user_id is not None:
            token = create_access_token(auth_config, user_id, roles=roles)
            headers["Authorization"] = f"Bearer {token}"
        if store_id is not None:
            headers["x-store-id"] = store_id
        return headers

    return _headers
