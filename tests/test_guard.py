"""Store guard behaviour through the HTTP surface"""

from tests.conftest import ALICE, BOB, CAROL, PEER_A, TENANT_A, TENANT_B


def _context(client, headers):
    return client.get("/api/stores/context", headers=headers)


def test_uuid_header_without_peer_link(client, auth_headers):
    response = _context(client, auth_headers(BOB, TENANT_B))

    assert response.status_code == 200
    assert response.json() == {
        "tenant_id": TENANT_B,
        "peer_system_id": None,
        "user_id": BOB,
    }


def test_uuid_header_with_peer_link(client, auth_headers):
    response = _context(client, auth_headers(ALICE, TENANT_A))

    assert response.status_code == 200
    assert response.json()["tenant_id"] == TENANT_A
    assert response.json()["peer_system_id"] == PEER_A


def test_peer_header_resolves_to_tenant(client, auth_headers):
    response = _context(client, auth_headers(ALICE, PEER_A))

    assert response.status_code == 200
    assert response.json() == {
        "tenant_id": TENANT_A,
        "peer_system_id": PEER_A,
        "user_id": ALICE,
    }


def test_malformed_header(client, auth_headers):
    response = _context(client, auth_headers(ALICE, "not-a-valid-id"))

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "INVALID_SCOPE_ID_FORMAT"


def test_missing_header(client, auth_headers):
    response = _context(client, auth_headers(ALICE))

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "MISSING_SCOPE_ID"


def test_empty_header_counts_as_missing(client, auth_headers):
    headers = auth_headers(ALICE)
    headers["x-store-id"] = ""

    response = _context(client, headers)

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "MISSING_SCOPE_ID"


def test_no_membership(client, auth_headers):
    response = _context(client, auth_headers(BOB, TENANT_A))

    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "NO_STORE_ACCESS"


def test_revoked_membership(client, auth_headers):
    response = _context(client, auth_headers(CAROL, PEER_A))

    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "NO_STORE_ACCESS"


def test_unlinked_peer_id(client, auth_headers):
    response = _context(client, auth_headers(ALICE, "store_01HQWEUNLINKED"))

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "NO_PEER_MAPPING"


def test_anonymous_request(client, auth_headers):
    for store_id in (TENANT_A, PEER_A, "store_01HQWEUNLINKED"):
        response = _context(client, auth_headers(None, store_id))

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "UNAUTHENTICATED"


def test_invalid_token_is_treated_as_anonymous(client):
    response = _context(
        client,
        {"Authorization": "Bearer not.a.jwt", "x-store-id": TENANT_A},
    )

    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "UNAUTHENTICATED"


def test_format_is_checked_before_authentication(client):
    response = _context(client, {"x-store-id": "bogus"})

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "INVALID_SCOPE_ID_FORMAT"


def test_guard_runs_before_body_validation(client, auth_headers):
    response = client.post(
        "/api/products",
        json={"title": ""},
        headers=auth_headers(BOB, TENANT_A),
    )

    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "NO_STORE_ACCESS"


def test_responses_carry_request_id_and_security_headers(client, auth_headers):
    response = _context(client, auth_headers(ALICE, TENANT_A))

    assert response.headers["X-Request-ID"]
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["Cache-Control"] == "no-store"
