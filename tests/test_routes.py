"""HTTP surface: admin tenancy endpoints and store-scoped commerce endpoints"""

import pytest

from tests.conftest import ADMIN, ALICE, BOB, PEER_A, TENANT_A, TENANT_B


@pytest.fixture
def admin(auth_headers):
    return auth_headers(ADMIN, roles=["admin"])


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


# ============ Admin: access ============

def test_admin_routes_require_admin_role(client, auth_headers):
    assert client.get(f"/api/admin/tenants/{TENANT_A}").status_code == 401

    response = client.get(f"/api/admin/tenants/{TENANT_A}", headers=auth_headers(ALICE))
    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "FORBIDDEN_ROLE"


# ============ Admin: tenants and mappings ============

def test_onboard_tenant_with_peer_link(client, admin, auth_headers):
    response = client.post(
        "/api/admin/tenants",
        json={"subdomain": "initech", "name": "Initech", "peer_system_id": "store_INI42"},
        headers=admin,
    )

    assert response.status_code == 201
    tenant = response.json()
    assert tenant["peer_system_id"] == "store_INI42"
    assert tenant["linked_at"] is not None

    lookup = client.get("/api/admin/mappings/store_INI42", headers=admin)
    assert lookup.json()["tenant_id"] == tenant["id"]


def test_onboard_tenant_with_taken_peer_id(client, admin):
    response = client.post(
        "/api/admin/tenants",
        json={"subdomain": "copycat", "name": "Copycat", "peer_system_id": PEER_A},
        headers=admin,
    )

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "CONFLICT"

    # Nothing was written, so the subdomain is still free
    retry = client.post(
        "/api/admin/tenants",
        json={"subdomain": "copycat", "name": "Copycat"},
        headers=admin,
    )
    assert retry.status_code == 201
    assert retry.json()["peer_system_id"] is None


def test_get_tenant(client, admin):
    response = client.get(f"/api/admin/tenants/{TENANT_A.upper()}", headers=admin)

    assert response.status_code == 200
    assert response.json()["id"] == TENANT_A
    assert response.json()["subdomain"] == "acme"

    missing = client.get("/api/admin/tenants/99999999-9999-4999-8999-999999999999", headers=admin)
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "STORE_NOT_FOUND"

    malformed = client.get("/api/admin/tenants/acme", headers=admin)
    assert malformed.status_code == 400
    assert malformed.json()["detail"]["code"] == "INVALID_SCOPE_ID_FORMAT"


def test_mapping_lifecycle(client, admin, auth_headers):
    url = f"/api/admin/tenants/{TENANT_B}/mapping"

    assert client.get(url, headers=admin).json()["peer_system_id"] is None

    first = client.put(url, json={"peer_system_id": "store_GLOBEX1"}, headers=admin)
    again = client.put(url, json={"peer_system_id": "store_GLOBEX1"}, headers=admin)
    assert first.status_code == again.status_code == 200
    assert first.json()["linked_at"] == again.json()["linked_at"]

    # Bob can now use the peer id
    context = client.get("/api/stores/context", headers=auth_headers(BOB, "store_GLOBEX1"))
    assert context.json()["tenant_id"] == TENANT_B

    removed = client.delete(url, headers=admin)
    removed_again = client.delete(url, headers=admin)
    assert removed.json()["removed"] is True
    assert removed_again.json()["removed"] is False

    context = client.get("/api/stores/context", headers=auth_headers(BOB, "store_GLOBEX1"))
    assert context.status_code == 404
    assert context.json()["detail"]["code"] == "NO_PEER_MAPPING"


def test_mapping_conflict(client, admin):
    response = client.put(
        f"/api/admin/tenants/{TENANT_B}/mapping",
        json={"peer_system_id": PEER_A},
        headers=admin,
    )

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "CONFLICT"


def test_reverse_lookup(client, admin):
    found = client.get(f"/api/admin/mappings/{PEER_A}", headers=admin)
    missing = client.get("/api/admin/mappings/store_NOPE", headers=admin)
    malformed = client.get("/api/admin/mappings/nope", headers=admin)

    assert found.json() == {"tenant_id": TENANT_A, "peer_system_id": PEER_A, "linked_at": None}
    assert missing.json()["detail"]["code"] == "NO_PEER_MAPPING"
    assert malformed.json()["detail"]["code"] == "INVALID_SCOPE_ID_FORMAT"


# ============ Admin: memberships ============

def test_membership_grant_change_revoke(client, admin, auth_headers):
    members_url = f"/api/admin/tenants/{TENANT_A}/members"

    granted = client.post(members_url, json={"user_id": BOB, "role": "viewer"}, headers=admin)
    assert granted.status_code == 201
    assert granted.json()["invited_by"] == ADMIN
    assert client.get("/api/stores/context", headers=auth_headers(BOB, PEER_A)).status_code == 200

    changed = client.patch(f"{members_url}/{BOB}", json={"role": "editor"}, headers=admin)
    assert changed.json()["role"] == "editor"

    revoked = client.delete(f"{members_url}/{BOB}", headers=admin)
    assert revoked.json()["revoked"] is True
    denied = client.get("/api/stores/context", headers=auth_headers(BOB, PEER_A))
    assert denied.json()["detail"]["code"] == "NO_STORE_ACCESS"


def test_grant_rejects_unknown_role(client, admin):
    response = client.post(
        f"/api/admin/tenants/{TENANT_A}/members",
        json={"user_id": BOB, "role": "superuser"},
        headers=admin,
    )

    assert response.status_code == 422


def test_my_stores(client, auth_headers):
    response = client.get("/api/stores/mine", headers=auth_headers(ALICE))

    assert response.status_code == 200
    assert response.json()["count"] == 1
    assert response.json()["stores"][0]["tenant_id"] == TENANT_A
    assert response.json()["stores"][0]["role"] == "owner"

    assert client.get("/api/stores/mine").status_code == 401


# ============ Commerce ============

def test_product_crud_through_either_identifier(client, auth_headers):
    created = client.post(
        "/api/products",
        json={"title": "Blue Shirt", "slug": "blue-shirt", "status": "published", "price_amount": 2500},
        headers=auth_headers(ALICE, PEER_A),
    )
    assert created.status_code == 201
    product_id = created.json()["id"]
    assert created.json()["tenant_id"] == TENANT_A

    fetched = client.get(f"/api/products/{product_id}", headers=auth_headers(ALICE, TENANT_A))
    assert fetched.json()["title"] == "Blue Shirt"

    listing = client.get("/api/products?status=published", headers=auth_headers(ALICE, PEER_A))
    assert listing.json()["count"] == 1
    assert listing.json()["limit"] == 15
    assert listing.json()["has_more"] is False

    deleted = client.delete(f"/api/products/{product_id}", headers=auth_headers(ALICE, TENANT_A))
    assert deleted.json()["success"] is True
    gone = client.get(f"/api/products/{product_id}", headers=auth_headers(ALICE, TENANT_A))
    assert gone.status_code == 404


def test_cross_tenant_product_is_not_found(client, auth_headers):
    created = client.post(
        "/api/products",
        json={"title": "Secret", "slug": "secret"},
        headers=auth_headers(BOB, TENANT_B),
    )
    product_id = created.json()["id"]

    response = client.get(f"/api/products/{product_id}", headers=auth_headers(ALICE, TENANT_A))

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "STORE_NOT_FOUND"


def test_invalid_record_id(client, auth_headers):
    response = client.get("/api/orders/ord_123", headers=auth_headers(ALICE, TENANT_A))

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "INVALID_RECORD_ID"


def test_order_routes(client, auth_headers):
    headers = auth_headers(ALICE, PEER_A)
    created = client.post(
        "/api/orders",
        json={"order_number": "1001", "customer_email": "a@example.com",
              "customer_id": "cust-9", "subtotal_amount": 4000, "tax_amount": 400},
        headers=headers,
    )
    assert created.status_code == 201
    order_id = created.json()["id"]
    assert created.json()["total_amount"] == 4400

    by_number = client.get("/api/orders/by-number/1001", headers=headers)
    assert by_number.json()["id"] == order_id

    updated = client.patch(f"/api/orders/{order_id}/status", json={"status": "shipped"}, headers=headers)
    assert updated.json()["status"] == "shipped"

    bad = client.patch(f"/api/orders/{order_id}/status", json={"status": "lost"}, headers=headers)
    assert bad.status_code == 400
    assert bad.json()["detail"]["code"] == "INVALID_INPUT"

    listing = client.get("/api/orders?status=shipped", headers=headers)
    assert listing.json()["count"] == 1

    unknown = client.get("/api/orders?status=bogus", headers=headers)
    assert unknown.status_code == 400
    assert unknown.json()["detail"]["code"] == "INVALID_INPUT"

    customer = client.get("/api/orders/customer/cust-9", headers=headers)
    assert customer.json()["orders"][0]["id"] == order_id

    stats = client.get("/api/orders/stats", headers=headers)
    assert stats.json()["total_orders"] == 1
    assert stats.json()["by_status"]["shipped"] == 1


def test_store_config_routes(client, auth_headers):
    headers = auth_headers(ALICE, TENANT_A)

    assert client.get("/api/store/config", headers=headers).status_code == 404

    created = client.post("/api/store/config", json={"theme": {"color": "blue"}}, headers=headers)
    assert created.status_code == 201
    assert created.json()["store_id"] == TENANT_A

    duplicate = client.post("/api/store/config", json={}, headers=headers)
    assert duplicate.status_code == 409

    mismatch = client.put("/api/store/config", json={"store_id": TENANT_B}, headers=headers)
    assert mismatch.status_code == 400
    assert mismatch.json()["detail"]["code"] == "STORE_ID_MISMATCH"

    updated = client.put(
        "/api/store/config",
        json={"store_id": PEER_A, "features": {"reviews": True}},
        headers=headers,
    )
    assert updated.json()["features"] == {"reviews": True}

    assert client.delete("/api/store/config", headers=headers).json()["success"] is True
    assert client.delete("/api/store/config", headers=headers).status_code == 404


def test_validate_store_config(client, auth_headers):
    headers = auth_headers(ALICE, PEER_A)

    valid = client.post(
        "/api/store/config/validate",
        json={"theme": {"colors": {"primary": "#1A2B3C"}}, "features": {"reviews": True}},
        headers=headers,
    )
    assert valid.status_code == 200
    assert valid.json() == {"is_valid": True, "errors": [], "warnings": []}

    invalid = client.post(
        "/api/store/config/validate",
        json={"theme": {"colors": {"primary": "blue"}}, "layout": {"grid": {"columns": 20}}},
        headers=headers,
    )
    assert invalid.status_code == 200
    body = invalid.json()
    assert body["is_valid"] is False
    assert {e["path"] for e in body["errors"]} == {"theme.colors.primary", "layout.grid.columns"}
    assert all(e["message"] and e["code"] for e in body["errors"])

    # Validation never stores anything
    assert client.get("/api/store/config", headers=headers).status_code == 404


def test_validate_store_config_requires_store_access(client, auth_headers):
    response = client.post(
        "/api/store/config/validate",
        json={},
        headers=auth_headers(BOB, TENANT_A),
    )

    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "NO_STORE_ACCESS"
