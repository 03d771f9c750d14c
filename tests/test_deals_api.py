from unittest.mock import MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from localdeals.api.dependencies import get_deal_service
from localdeals.main import app, lifespan

DEAL_PAYLOAD = {
    "storeName": "H-E-B",
    "product": "Coffee beans",
    "originalPrice": 10.0,
    "salePrice": 5.0,
    "postalCode": "78701",
    "description": "Whole bean, 12oz",
}


@pytest.fixture
async def client(service):
    app.dependency_overrides[get_deal_service] = lambda: service
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test_list_deals_empty(client):
    resp = await client.get("/api/deals")
    assert resp.status_code == 200
    assert resp.json() == []


async def test_create_deal(client):
    resp = await client.post("/api/deals", json=DEAL_PAYLOAD)
    assert resp.status_code == 201
    data = resp.json()
    assert data["id"] == 1
    assert data["storeName"] == "H-E-B"
    assert data["location"] == "Austin, TX"
    assert data["savingsPercent"] == 50
    assert data["upvoteCount"] == 0
    assert data["reportCount"] == 0
    assert data["distance"] is None
    assert data["createdAt"].startswith("2026-03-01T12:00:00")


async def test_create_deal_accepts_zipcode_alias(client):
    payload = {k: v for k, v in DEAL_PAYLOAD.items() if k != "postalCode"}
    payload["zipCode"] = "75201"
    resp = await client.post("/api/deals", json=payload)
    assert resp.status_code == 201
    assert resp.json()["location"] == "Dallas, TX"


async def test_create_deal_missing_fields(client):
    resp = await client.post("/api/deals", json={"storeName": "H-E-B"})
    assert resp.status_code == 400
    assert "required" in resp.json()["detail"]


async def test_create_deal_invalid_zip(client):
    resp = await client.post("/api/deals", json={**DEAL_PAYLOAD, "postalCode": "00000"})
    assert resp.status_code == 400
    assert "zip code" in resp.json()["detail"].lower()

    resp = await client.get("/api/deals")
    assert resp.json() == []


async def test_get_deal(client):
    await client.post("/api/deals", json=DEAL_PAYLOAD)
    resp = await client.get("/api/deals/1")
    assert resp.status_code == 200
    assert resp.json()["product"] == "Coffee beans"


async def test_get_deal_not_found(client):
    resp = await client.get("/api/deals/999")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Deal not found"


async def test_list_deals_with_location(client):
    await client.post("/api/deals", json=DEAL_PAYLOAD)
    await client.post("/api/deals", json={**DEAL_PAYLOAD, "postalCode": "75201"})

    resp = await client.get(
        "/api/deals", params={"lat": 30.2672, "lng": -97.7431, "radius": 30}
    )
    assert resp.status_code == 200
    data = resp.json()
    assert len(data) == 1
    assert data[0]["location"] == "Austin, TX"
    assert 0 <= data[0]["distance"] < 1


async def test_list_deals_invalid_sort(client):
    resp = await client.get("/api/deals", params={"sort": "cheapest"})
    assert resp.status_code == 400


async def test_upvote_and_popular_sort(client):
    await client.post("/api/deals", json={**DEAL_PAYLOAD, "product": "plain"})
    await client.post("/api/deals", json={**DEAL_PAYLOAD, "product": "liked"})

    resp = await client.patch("/api/deals/2/upvote")
    assert resp.status_code == 200
    assert resp.json()["upvoteCount"] == 1

    resp = await client.get("/api/deals", params={"sort": "popular"})
    assert [d["product"] for d in resp.json()] == ["liked", "plain"]


async def test_report_kills_deal(client):
    await client.post("/api/deals", json=DEAL_PAYLOAD)

    resp = await client.patch("/api/deals/1/report")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Report submitted", "killed": False, "reportCount": 1}

    resp = await client.patch("/api/deals/1/report")
    data = resp.json()
    assert data["killed"] is True
    assert data["reportCount"] == 2

    assert (await client.get("/api/deals")).json() == []
    assert (await client.get("/api/deals/1")).status_code == 404


async def test_mutations_not_found(client):
    assert (await client.patch("/api/deals/5/upvote")).status_code == 404
    assert (await client.patch("/api/deals/5/report")).status_code == 404
    assert (await client.delete("/api/deals/5")).status_code == 404


async def test_delete_deal(client):
    await client.post("/api/deals", json=DEAL_PAYLOAD)
    resp = await client.delete("/api/deals/1")
    assert resp.status_code == 204
    assert (await client.get("/api/deals/1")).status_code == 404


async def test_geocode(client):
    resp = await client.get("/api/geocode/78701")
    assert resp.status_code == 200
    assert resp.json() == {
        "latitude": 30.2711,
        "longitude": -97.7437,
        "city": "Austin",
        "state": "TX",
    }


async def test_geocode_not_found(client):
    resp = await client.get("/api/geocode/00000")
    assert resp.status_code == 404


async def test_error_body_uses_detail_key(client):
    resp = await client.get("/api/deals/999")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Deal not found"}

    resp = await client.post("/api/deals", json={**DEAL_PAYLOAD, "salePrice": 0})
    assert resp.status_code == 400
    assert resp.json() == {"detail": "salePrice must be greater than 0"}


async def test_create_deal_accepts_numeric_zipcode(client, geocoder):
    payload = {k: v for k, v in DEAL_PAYLOAD.items() if k != "postalCode"}
    payload["zipCode"] = 78701
    resp = await client.post("/api/deals", json=payload)
    assert resp.status_code == 201
    assert resp.json()["postalCode"] == "78701"
    assert geocoder.calls == ["78701"]


async def test_shutdown_closes_geocoder():
    service = MagicMock()
    with patch("localdeals.main.get_deal_service") as mock_get_service:
        mock_get_service.cache_info.return_value = MagicMock(currsize=1)
        mock_get_service.return_value = service
        async with lifespan(app):
            pass
    service.geocoder.close.assert_called_once()


async def test_shutdown_without_service_builds_nothing():
    with patch("localdeals.main.get_deal_service") as mock_get_service:
        mock_get_service.cache_info.return_value = MagicMock(currsize=0)
        async with lifespan(app):
            pass
    mock_get_service.assert_not_called()
