"""Tests fuer Holdings: CRUD, Owner-Scope, Zusammenfassung, Performance"""
import models
import price_service

GOLD_COIN = {
    "metal_type": "gold",
    "weight_oz": 1.0,
    "form_type": "coin",
    "denomination": "1oz Kangaroo",
    "quantity": 2,
    "purchase_price_aud": 2500.0,
}

SILVER_BAR = {
    "metal_type": "silver",
    "weight_oz": 10.0,
    "form_type": "bar",
    "denomination": "10oz Perth Mint",
    "quantity": 1,
}


def seed_prices(db, gold=3000.0, silver=40.0):
    now = price_service.utcnow()
    db.add(models.PriceCache(metal_type="gold", price_aud=gold, updated_at=now))
    db.add(models.PriceCache(metal_type="silver", price_aud=silver, updated_at=now))
    db.commit()


def create(client, headers, payload):
    response = client.post("/api/holdings", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_requires_auth(client):
    assert client.get("/api/holdings").status_code == 401
    assert client.post("/api/holdings", json=GOLD_COIN).status_code == 401


def test_create_and_list(client, auth_headers):
    first = create(client, auth_headers, GOLD_COIN)
    second = create(client, auth_headers, SILVER_BAR)

    data = client.get("/api/holdings", headers=auth_headers).json()

    assert [h["id"] for h in data] == [second["id"], first["id"]]
    assert data[1]["purchase_price_aud"] == 2500.0
    assert data[0]["purchase_price_aud"] is None


def test_filter_by_metal(client, auth_headers):
    create(client, auth_headers, GOLD_COIN)
    create(client, auth_headers, SILVER_BAR)

    data = client.get("/api/holdings", params={"metal_type": "silver"}, headers=auth_headers).json()

    assert [h["metal_type"] for h in data] == ["silver"]


def test_validation(client, auth_headers):
    bad = dict(GOLD_COIN, weight_oz=0)
    assert client.post("/api/holdings", json=bad, headers=auth_headers).status_code == 422
    bad = dict(GOLD_COIN, form_type="round")
    assert client.post("/api/holdings", json=bad, headers=auth_headers).status_code == 422


def test_update_own_holding(client, auth_headers):
    holding = create(client, auth_headers, GOLD_COIN)

    response = client.put(
        f"/api/holdings/{holding['id']}",
        json={"quantity": 5, "notes": "Tresor", "metal_type": None},
        headers=auth_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["quantity"] == 5
    assert data["notes"] == "Tresor"
    assert data["metal_type"] == "gold"


def test_other_user_cannot_touch_holding(client, auth_headers, other_auth_headers):
    holding = create(client, auth_headers, GOLD_COIN)

    assert client.get("/api/holdings", headers=other_auth_headers).json() == []
    assert client.put(
        f"/api/holdings/{holding['id']}", json={"quantity": 9}, headers=other_auth_headers
    ).status_code == 404
    assert client.delete(f"/api/holdings/{holding['id']}", headers=other_auth_headers).status_code == 404


def test_delete(client, auth_headers):
    holding = create(client, auth_headers, GOLD_COIN)

    response = client.delete(f"/api/holdings/{holding['id']}", headers=auth_headers)

    assert response.json() == {"success": True, "id": holding["id"]}
    assert client.get("/api/holdings", headers=auth_headers).json() == []


def test_summary_uses_cached_prices(client, db, auth_headers):
    seed_prices(db)
    create(client, auth_headers, GOLD_COIN)
    create(client, auth_headers, SILVER_BAR)

    data = client.get("/api/holdings/summary", headers=auth_headers).json()

    assert data["total_gold_oz"] == 2.0
    assert data["total_silver_oz"] == 10.0
    assert data["gold_value"] == 6000.0
    assert data["silver_value"] == 400.0
    assert data["total_value"] == 6400.0
    assert data["total_holdings"] == 2
    assert data["gold_allocation_percent"] == 93.75
    assert data["silver_allocation_percent"] == 6.25


def test_summary_without_cached_prices_is_zero(client, auth_headers):
    create(client, auth_headers, GOLD_COIN)

    data = client.get("/api/holdings/summary", headers=auth_headers).json()

    assert data["gold_price"] == 0
    assert data["total_value"] == 0
    assert data["gold_allocation_percent"] == 0


def test_performance(client, db, auth_headers):
    seed_prices(db)
    create(client, auth_headers, GOLD_COIN)
    create(client, auth_headers, SILVER_BAR)

    data = client.get("/api/holdings/performance", headers=auth_headers).json()
    by_metal = {row["metal_type"]: row for row in data}

    assert by_metal["gold"]["current_value_aud"] == 6000.0
    assert by_metal["gold"]["invested_value_aud"] == 5000.0
    assert by_metal["gold"]["profit_loss_aud"] == 1000.0
    assert by_metal["gold"]["profit_loss_percent"] == 20.0
    assert by_metal["silver"]["invested_value_aud"] == 0
    assert by_metal["silver"]["profit_loss_percent"] == 0
