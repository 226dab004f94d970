"""Tests for the promo code endpoints: public validation and admin CRUD."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.models.promo_code import DiscountType, PromoCode

ITEMS = [
    {"product_id": 1, "unit_price": "200.00", "quantity": 2},
    {"product_id": 2, "unit_price": "100.00", "quantity": 1},
]


def future(days: int = 30) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


# === Public validation ===

def test_validate_percentage_with_cap(client, make_promo):
    make_promo(code="BIG50", discount_value=Decimal("50"), max_discount_amount=Decimal("100"))

    response = client.post("/api/promo-codes/validate", json={
        "code": "big50", "items": ITEMS, "items_total": 500,
    })

    assert response.status_code == 200
    body = response.json()
    assert body["valid"] is True
    assert Decimal(body["discount_amount"]) == Decimal("100")
    assert Decimal(body["applicable_items_total"]) == Decimal("500")
    assert body["is_store_wide"] is True
    assert body["promo_code"]["code"] == "BIG50"
    assert body["promo_code"]["discount_type"] == "percentage"


def test_validate_scoped_fixed(client, make_promo):
    make_promo(
        code="TEDDY", discount_type=DiscountType.FIXED, discount_value=Decimal("1000"),
        is_store_wide=False, applicable_products=[1],
    )

    body = client.post("/api/promo-codes/validate", json={
        "code": "TEDDY", "items": ITEMS, "items_total": 500,
    }).json()

    assert body["valid"] is True
    assert Decimal(body["discount_amount"]) == Decimal("400")
    assert body["is_store_wide"] is False


def test_validate_unknown_code(client):
    response = client.post("/api/promo-codes/validate", json={
        "code": "GHOST", "items": ITEMS, "items_total": 500,
    })

    assert response.status_code == 400
    body = response.json()
    assert body["valid"] is False
    assert body["error_kind"] == "NOT_FOUND"
    assert body["error"] == "Promo code not found"
    assert "discount_amount" not in body


def test_validate_expired_code(client, make_promo):
    make_promo(code="OLD", expires_at=datetime.now(timezone.utc) - timedelta(days=1))

    body = client.post("/api/promo-codes/validate", json={
        "code": "OLD", "items": ITEMS, "items_total": 500,
    }).json()

    assert body["valid"] is False
    assert body["error_kind"] == "EXPIRED"


def test_validate_not_applicable(client, make_promo):
    make_promo(code="ONLY9", is_store_wide=False, applicable_products=[9])

    response = client.post("/api/promo-codes/validate", json={
        "code": "ONLY9", "items": ITEMS, "items_total": 500,
    })

    assert response.status_code == 400
    assert response.json()["error_kind"] == "NOT_APPLICABLE"


@pytest.mark.parametrize("payload", [
    {"code": "SAVE10", "items": [{"product_id": 1, "unit_price": "abc", "quantity": 1}], "items_total": 10},
    {"code": "SAVE10", "items": [], "items_total": 10},
    {"code": "", "items": ITEMS, "items_total": 500},
    {"code": "   ", "items": ITEMS, "items_total": 500},
    {"items": ITEMS, "items_total": 500},
    {"code": "SAVE10", "items": ITEMS, "items_total": -1},
    {"code": "SAVE10", "items": [{"product_id": 1, "unit_price": "10", "quantity": 0}], "items_total": 10},
    None,
])
def test_validate_malformed_input(client, make_promo, payload):
    make_promo(code="SAVE10")

    response = client.post("/api/promo-codes/validate", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["valid"] is False
    assert body["error_kind"] == "VALIDATION_ERROR"
    assert body["details"]


@pytest.mark.parametrize("body", [b"{not json", b"", b"[1, 2"])
def test_validate_unparseable_body(client, body):
    response = client.post(
        "/api/promo-codes/validate", content=body, headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    payload = response.json()
    assert payload["valid"] is False
    assert payload["error_kind"] == "VALIDATION_ERROR"
    assert payload["error"] == "Invalid request data"
    assert payload["details"]


def test_other_routes_keep_default_validation_status(client):
    response = client.post("/api/shipping/quote", content=b"{not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 422
    assert "error_kind" not in response.json()


def test_validate_expiry_survives_storage(client, session, make_promo):
    # Stored as aware UTC; SQLite reads it back naive
    stored = make_promo(code="SOON", expires_at=datetime.now(timezone.utc) + timedelta(hours=1))
    session.expire_all()

    response = client.post("/api/promo-codes/validate", json={
        "code": "SOON", "items": ITEMS, "items_total": 500,
    })

    assert response.status_code == 200
    assert session.get(PromoCode, stored.id).expires_at is not None


def test_validate_does_not_consume_the_code(client, session, make_promo):
    stored = make_promo(code="ONCE", is_one_time_use=True)

    for _ in range(2):
        response = client.post("/api/promo-codes/validate", json={
            "code": "ONCE", "items": ITEMS, "items_total": 500,
        })
        assert response.status_code == 200

    session.refresh(stored)
    assert stored.used_count == 0


# === Admin CRUD ===

def test_admin_routes_require_auth(client):
    assert client.get("/api/admin/promo-codes").status_code == 401
    assert client.post("/api/admin/promo-codes", json={}).status_code in (401, 422)


def test_create_uppercases_code(client, admin_headers):
    response = client.post("/api/admin/promo-codes", headers=admin_headers, json={
        "name": "Eid sale",
        "code": "eid-2026",
        "discount_type": "percentage",
        "discount_value": "15",
        "max_discount_amount": "200",
        "usage_limit": 100,
        "expires_at": future(),
    })

    assert response.status_code == 201
    body = response.json()
    assert body["code"] == "EID-2026"
    assert body["used_count"] == 0
    assert body["usage_limit"] == 100
    assert body["is_store_wide"] is True


def test_create_duplicate_code_case_insensitive(client, admin_headers, make_promo):
    make_promo(code="WINTER")

    response = client.post("/api/admin/promo-codes", headers=admin_headers, json={
        "name": "Again", "code": "winter", "discount_type": "fixed", "discount_value": "50",
    })

    assert response.status_code == 400
    assert response.json()["detail"] == "Promo code already exists"


@pytest.mark.parametrize("payload", [
    {"name": "Too much", "code": "P101", "discount_type": "percentage", "discount_value": "101"},
    {"name": "Zero", "code": "ZERO", "discount_type": "fixed", "discount_value": "0"},
    {"name": "Bad chars", "code": "HELLO WORLD", "discount_type": "fixed", "discount_value": "10"},
    {"name": "Scoped", "code": "SCOPED", "discount_type": "fixed", "discount_value": "10",
     "is_store_wide": False, "applicable_products": []},
    {"name": "Past", "code": "PAST", "discount_type": "fixed", "discount_value": "10",
     "expires_at": "2001-01-01T00:00:00"},
    {"name": "Limit", "code": "LIMIT0", "discount_type": "fixed", "discount_value": "10", "usage_limit": 0},
    {"name": "", "code": "NONAME", "discount_type": "fixed", "discount_value": "10"},
])
def test_create_rejects_invalid_codes(client, admin_headers, payload):
    response = client.post("/api/admin/promo-codes", headers=admin_headers, json=payload)

    assert response.status_code == 422


def test_get_and_delete(client, admin_headers, make_promo):
    stored = make_promo(code="GONE")

    assert client.get(f"/api/admin/promo-codes/{stored.id}", headers=admin_headers).json()["code"] == "GONE"

    response = client.delete(f"/api/admin/promo-codes/{stored.id}", headers=admin_headers)
    assert response.status_code == 200

    assert client.get(f"/api/admin/promo-codes/{stored.id}", headers=admin_headers).status_code == 404
    assert client.delete(f"/api/admin/promo-codes/{stored.id}", headers=admin_headers).status_code == 404


def test_list_search_sort_and_paginate(client, admin_headers, make_promo):
    for i, code in enumerate(["ALPHA", "BRAVO", "CHARLIE", "DELTA"]):
        make_promo(code=code, name=f"Promo {code.title()}", discount_value=Decimal(10 + i))

    page = client.get(
        "/api/admin/promo-codes",
        headers=admin_headers,
        params={"page": 2, "page_size": 3, "sort_by": "code", "sort_order": "asc"},
    ).json()

    assert page["total"] == 4
    assert page["pages"] == 2
    assert [p["code"] for p in page["items"]] == ["DELTA"]

    found = client.get("/api/admin/promo-codes", headers=admin_headers, params={"search": "rav"}).json()
    assert [p["code"] for p in found["items"]] == ["BRAVO"]
    assert found["total"] == 1


def test_list_rejects_unknown_sort_column(client, admin_headers):
    response = client.get("/api/admin/promo-codes", headers=admin_headers, params={"sort_by": "password"})

    assert response.status_code == 422


def test_check_code(client, admin_headers, make_promo):
    make_promo(code="TAKEN")

    taken = client.get("/api/admin/promo-codes/check-code", headers=admin_headers, params={"code": "taken"}).json()
    free = client.get("/api/admin/promo-codes/check-code", headers=admin_headers, params={"code": "free-1"}).json()

    assert taken == {"available": False, "code": "TAKEN"}
    assert free == {"available": True, "code": "FREE-1"}


def test_update_fields(client, admin_headers, make_promo):
    stored = make_promo(code="SUMMER", discount_value=Decimal("10"))

    response = client.patch(f"/api/admin/promo-codes/{stored.id}", headers=admin_headers, json={
        "code": "summer-2026", "discount_value": "25", "is_active": False,
    })

    assert response.status_code == 200
    body = response.json()
    assert body["code"] == "SUMMER-2026"
    assert Decimal(body["discount_value"]) == 25
    assert body["is_active"] is False


def test_update_checks_merged_percentage(client, admin_headers, make_promo):
    stored = make_promo(code="FLAT", discount_type=DiscountType.FIXED, discount_value=Decimal("500"))

    response = client.patch(f"/api/admin/promo-codes/{stored.id}", headers=admin_headers, json={
        "discount_type": "percentage",
    })

    assert response.status_code == 400


def test_update_scoped_needs_products(client, admin_headers, make_promo):
    stored = make_promo(code="ALL")

    response = client.patch(f"/api/admin/promo-codes/{stored.id}", headers=admin_headers, json={
        "is_store_wide": False,
    })
    assert response.status_code == 400

    response = client.patch(f"/api/admin/promo-codes/{stored.id}", headers=admin_headers, json={
        "is_store_wide": False, "applicable_products": [3, 4],
    })
    assert response.status_code == 200
    assert response.json()["applicable_products"] == [3, 4]


def test_update_rejects_taken_code_and_nulls(client, admin_headers, make_promo):
    make_promo(code="FIRST")
    second = make_promo(code="SECOND")

    taken = client.patch(f"/api/admin/promo-codes/{second.id}", headers=admin_headers, json={"code": "first"})
    nulled = client.patch(f"/api/admin/promo-codes/{second.id}", headers=admin_headers, json={"name": None})

    assert taken.status_code == 400
    assert nulled.status_code == 400


def test_update_can_clear_optional_limits(client, admin_headers, make_promo):
    stored = make_promo(code="CAPPED", max_discount_amount=Decimal("50"), usage_limit=10)

    body = client.patch(f"/api/admin/promo-codes/{stored.id}", headers=admin_headers, json={
        "max_discount_amount": None, "usage_limit": None,
    }).json()

    assert body["max_discount_amount"] is None
    assert body["usage_limit"] is None


def test_bulk_delete(client, session, admin_headers, make_promo):
    ids = [make_promo(code=code).id for code in ["ONE", "TWO", "THREE"]]

    response = client.request("DELETE", "/api/admin/promo-codes/bulk", headers=admin_headers, json={
        "ids": ids[:2] + [9999],
    })

    assert response.status_code == 200
    body = response.json()
    assert body["deleted_count"] == 2
    assert body["requested_count"] == 3
    assert session.get(PromoCode, ids[2]) is not None


def test_bulk_delete_nothing_found(client, admin_headers):
    response = client.request("DELETE", "/api/admin/promo-codes/bulk", headers=admin_headers, json={"ids": [1, 2]})

    assert response.status_code == 404


def test_bulk_delete_requires_ids(client, admin_headers):
    response = client.request("DELETE", "/api/admin/promo-codes/bulk", headers=admin_headers, json={"ids": []})

    assert response.status_code == 422
