from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from encounter_pricing.api import state
from encounter_pricing.api.main import app
from encounter_pricing.data.catalog import Catalog


@pytest.fixture
def client():
    return TestClient(app)


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "online"


def test_single_code_endpoint(client):
    response = client.get("/code")
    assert response.status_code == 200
    assert response.json()["code"] == "99213"


def test_single_code_endpoint_empty_catalog(client, monkeypatch):
    monkeypatch.setattr(state, "catalog", Catalog())
    assert client.get("/code").status_code == 404
    assert client.get("/codes").json() == []


def test_list_codes(client):
    codes = client.get("/codes").json()
    assert [c["id"] for c in codes] == [1, 2, 3]


def test_unknown_code(client):
    assert client.get("/codes/999").status_code == 404
    assert client.post("/price", json={"code_id": 999}).status_code == 404


def test_modifiers_endpoint_hides_lmts_and_disabled_slots(client):
    first = client.get("/codes/1/modifiers", params={"slot": 0}).json()
    assert first["enabled"] is True
    assert 105 not in [m["id"] for m in first["modifiers"]]

    second = client.get("/codes/1/modifiers", params={"slot": 1}).json()
    assert second["enabled"] is False
    assert second["modifiers"] == []

    second = client.get("/codes/1/modifiers", params={"slot": 1, "selected": "101"}).json()
    assert second["enabled"] is True

    assert client.get("/codes/1/modifiers", params={"slot": 3}).status_code == 400


def test_price_with_modifiers(client):
    response = client.post("/price", json={"code_id": 1, "modifier_ids": [101, 102]})
    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["price"]) == Decimal("95")
    assert Decimal(body["base_price"]) == Decimal("100")
    assert body["modifier_ids"] == [101, 102]
    assert body["warnings"] == []


def test_price_rejects_invalid_selections(client):
    # LMTS
    assert client.post("/price", json={"code_id": 1, "modifier_ids": [105]}).status_code == 400
    # duplicate
    assert client.post("/price", json={"code_id": 1, "modifier_ids": [101, 101]}).status_code == 400
    # modifier from another code
    assert client.post("/price", json={"code_id": 1, "modifier_ids": [201]}).status_code == 400
    # more than three slots
    response = client.post("/price", json={"code_id": 1, "modifier_ids": [101, 102, 103, 104]})
    assert response.status_code == 422


def test_encounter_price(client):
    response = client.post("/encounter/price", json={"lines": [
        {"code_id": 1, "modifier_ids": [101]},
        {"code_id": 2, "modifier_ids": []},
    ]})
    assert response.status_code == 200
    body = response.json()
    assert [Decimal(line["price"]) for line in body["lines"]] == [Decimal("90"), Decimal("40")]
    assert Decimal(body["total"]) == Decimal("130")


def test_empty_encounter(client):
    body = client.post("/encounter/price", json={"lines": []}).json()
    assert Decimal(body["total"]) == Decimal("0")


def test_expired_modifier_not_offered_or_priced(client):
    """Modifier 106 ended 2023-12-31: hidden and rejected today, usable on an earlier date."""
    offered = client.get("/codes/1/modifiers", params={"slot": 0}).json()
    assert [m["id"] for m in offered["modifiers"]] == [101, 102, 103, 104]

    response = client.post("/price", json={"code_id": 1, "modifier_ids": [106]})
    assert response.status_code == 400
    assert "not valid" in response.json()["detail"]

    response = client.post("/price", params={"as_of": "2023-06-01"}, json={"code_id": 1, "modifier_ids": [106]})
    assert response.status_code == 200
    assert Decimal(response.json()["price"]) == Decimal("112.50")

    dated = client.get("/codes/1/modifiers", params={"slot": 0, "as_of": "2023-06-01"}).json()
    assert 106 in [m["id"] for m in dated["modifiers"]]
    assert dated["as_of"] == "2023-06-01"


def test_expired_modifier_rejected_in_encounter(client):
    response = client.post("/encounter/price", json={"lines": [{"code_id": 1, "modifier_ids": [106]}]})
    assert response.status_code == 400


def test_later_slot_leaves_out_earlier_picks(client):
    body = client.get("/codes/1/modifiers", params={"slot": 1, "selected": "101"}).json()
    ids = [m["id"] for m in body["modifiers"]]
    assert 101 not in ids
    assert ids == [102, 103, 104]
