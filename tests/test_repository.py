import pytest

from tenancy.errors import ErrorKind, TenancyError
from tenancy.models import StoreMember, TenantRecord
from tenancy.repository import MembershipRepository, TenantRepository, TranslationStore
from tests.conftest import ALICE, BOB, CAROL, PEER_A, TENANT_A, TENANT_B


def _tenant(db, tenant_id):
    db.expire_all()
    return db.query(TenantRecord).filter(TenantRecord.id == tenant_id).one()


# ============ Translation store ============

def test_forward_and_reverse_round_trip(seeded, db):
    store = TranslationStore(db)

    assert store.forward(TENANT_A) == PEER_A
    assert store.reverse(PEER_A) == TENANT_A
    assert store.reverse(store.forward(TENANT_A)) == TENANT_A
    assert store.forward(store.reverse(PEER_A)) == PEER_A


def test_round_trip_survives_unrelated_mappings(seeded, db):
    store = TranslationStore(db)
    other = TenantRepository.create(db, subdomain="initech", name="Initech")
    store.create_mapping(TENANT_B, "store_B2")
    store.create_mapping(other.id, "store_C3")

    assert store.reverse(store.forward(TENANT_A)) == TENANT_A
    assert store.forward(store.reverse(PEER_A)) == PEER_A
    assert store.reverse("store_C3") == other.id


def test_absent_lookups_return_none(seeded, db):
    store = TranslationStore(db)

    assert store.forward(TENANT_B) is None
    assert store.forward("99999999-9999-4999-8999-999999999999") is None
    assert store.reverse("store_nothinghere") is None
    assert store.reverse("not-a-peer-id") is None


def test_forward_accepts_upper_case_uuid(seeded, db):
    assert TranslationStore(db).forward(TENANT_A.upper()) == PEER_A


def test_create_mapping_is_idempotent(seeded, db):
    store = TranslationStore(db)
    linked_at = _tenant(db, TENANT_A).linked_at

    store.create_mapping(TENANT_A, PEER_A)
    store.create_mapping(TENANT_A, PEER_A)

    assert db.query(TenantRecord).filter(TenantRecord.peer_system_id == PEER_A).count() == 1
    assert _tenant(db, TENANT_A).linked_at == linked_at


def test_create_mapping_conflicts_on_foreign_peer_id(seeded, db):
    store = TranslationStore(db)

    with pytest.raises(TenancyError) as excinfo:
        store.create_mapping(TENANT_B, PEER_A)

    assert excinfo.value.kind is ErrorKind.CONFLICT
    assert store.reverse(PEER_A) == TENANT_A
    assert store.forward(TENANT_B) is None


def test_create_mapping_replaces_previous_link(seeded, db):
    store = TranslationStore(db)

    tenant = store.create_mapping(TENANT_A, "store_NEW123")

    assert tenant.peer_system_id == "store_NEW123"
    assert tenant.linked_at is not None
    assert store.reverse(PEER_A) is None
    assert store.reverse("store_NEW123") == TENANT_A


@pytest.mark.parametrize(
    "tenant_id, peer_id",
    [
        ("not-a-uuid", "store_abc"),
        (TENANT_B, "shop_abc"),
        (TENANT_B, "store_"),
    ],
)
def test_create_mapping_rejects_malformed_ids(seeded, db, tenant_id, peer_id):
    with pytest.raises(TenancyError) as excinfo:
        TranslationStore(db).create_mapping(tenant_id, peer_id)
    assert excinfo.value.kind is ErrorKind.INVALID_SCOPE_ID_FORMAT


def test_create_mapping_for_unknown_tenant(seeded, db):
    with pytest.raises(TenancyError) as excinfo:
        TranslationStore(db).create_mapping("99999999-9999-4999-8999-999999999999", "store_x1")
    assert excinfo.value.kind is ErrorKind.STORE_NOT_FOUND


def test_remove_mapping_is_idempotent(seeded, db):
    store = TranslationStore(db)

    assert store.remove_mapping(TENANT_A) is True
    unlinked_at = _tenant(db, TENANT_A).unlinked_at
    assert unlinked_at is not None

    assert store.remove_mapping(TENANT_A) is False
    assert _tenant(db, TENANT_A).unlinked_at == unlinked_at
    assert store.forward(TENANT_A) is None
    assert store.reverse(PEER_A) is None


def test_removed_peer_id_can_be_relinked_elsewhere(seeded, db):
    store = TranslationStore(db)
    store.remove_mapping(TENANT_A)

    store.create_mapping(TENANT_B, PEER_A)

    assert store.reverse(PEER_A) == TENANT_B


def test_soft_deleted_tenant_is_invisible(seeded, db):
    from tenancy.models import utcnow

    _tenant(db, TENANT_A).deleted_at = utcnow()
    db.commit()

    store = TranslationStore(db)
    assert store.forward(TENANT_A) is None
    assert store.reverse(PEER_A) is None
    assert TenantRepository.get(db, TENANT_A) is None


# ============ Tenants ============

def test_create_tenant_with_duplicate_subdomain(seeded, db):
    with pytest.raises(TenancyError) as excinfo:
        TenantRepository.create(db, subdomain="acme", name="Other Acme")
    assert excinfo.value.kind is ErrorKind.CONFLICT


def test_create_tenant_generates_uuid(db):
    tenant = TenantRepository.create(db, subdomain="newco", name="NewCo")
    assert TenantRepository.get(db, tenant.id).name == "NewCo"


def test_create_tenant_with_peer_link(seeded, db):
    tenant = TenantRepository.create(
        db, subdomain="initech", name="Initech", peer_system_id="store_INI42"
    )

    assert tenant.linked_at is not None
    assert TranslationStore(db).reverse("store_INI42") == tenant.id


def test_failed_onboarding_leaves_no_tenant(seeded, db):
    with pytest.raises(TenancyError) as excinfo:
        TenantRepository.create(db, subdomain="copycat", name="Copycat", peer_system_id=PEER_A)
    assert excinfo.value.kind is ErrorKind.CONFLICT

    # Subdomain clash is only detected at commit, after the link was staged
    with pytest.raises(TenancyError) as excinfo:
        TenantRepository.create(db, subdomain="acme", name="Acme 2", peer_system_id="store_FRESH1")
    assert excinfo.value.kind is ErrorKind.CONFLICT

    assert db.query(TenantRecord).filter(TenantRecord.subdomain == "copycat").count() == 0
    assert TranslationStore(db).reverse("store_FRESH1") is None
    assert db.query(TenantRecord).count() == 2


# ============ Memberships ============

def test_active_membership(seeded, db):
    members = MembershipRepository(db)

    assert members.has_active_membership(ALICE, TENANT_A) is True
    assert members.has_active_membership(ALICE, TENANT_B) is False
    assert members.has_active_membership(BOB, TENANT_A) is False
    assert members.has_active_membership(CAROL, TENANT_A) is False


def test_grant_reactivates_revoked_membership(seeded, db):
    members = MembershipRepository(db)

    member = members.grant(CAROL, TENANT_A, role="editor")

    assert member.is_active is True
    assert member.role == "editor"
    assert db.query(StoreMember).filter(StoreMember.user_id == CAROL).count() == 1


def test_grant_rejects_unknown_role_and_tenant(seeded, db):
    members = MembershipRepository(db)

    with pytest.raises(TenancyError) as excinfo:
        members.grant(BOB, TENANT_A, role="superuser")
    assert excinfo.value.kind is ErrorKind.INVALID_INPUT

    with pytest.raises(TenancyError) as excinfo:
        members.grant(BOB, "99999999-9999-4999-8999-999999999999")
    assert excinfo.value.kind is ErrorKind.STORE_NOT_FOUND


def test_change_role_and_revoke(seeded, db):
    members = MembershipRepository(db)

    assert members.change_role(ALICE, TENANT_A, "admin").role == "admin"
    assert members.revoke(ALICE, TENANT_A) is True
    assert members.revoke(ALICE, TENANT_A) is False
    assert members.has_active_membership(ALICE, TENANT_A) is False

    with pytest.raises(TenancyError) as excinfo:
        members.change_role(BOB, TENANT_A, "viewer")
    assert excinfo.value.kind is ErrorKind.STORE_NOT_FOUND


def test_list_for_user_only_returns_active(seeded, db):
    members = MembershipRepository(db)

    assert [m.tenant_id for m in members.list_for_user(ALICE)] == [TENANT_A]
    assert members.list_for_user(CAROL) == []
