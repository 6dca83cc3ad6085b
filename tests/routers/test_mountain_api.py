"""
API tests for the /montana endpoints.
"""
import asyncio
import json
from datetime import date, timedelta

from elurinfo.cache.store import StoredRecord


def put(store, key, payload, last_update, valid_date):
    asyncio.run(store.upsert_by_key(StoredRecord(
        category="mountain-forecast",
        key=key,
        payload=json.dumps(payload),
        last_update=last_update,
        valid_date=valid_date,
    )))


class TestMountainForecasts:
    """Tests for the forecast endpoints."""

    def test_zone_forecast_from_stub(self, stub_client):
        """It should return the forecast for today's local date."""
        body = stub_client.get("/montana/zone/Pirineo Navarro").json()

        assert body["data"]["zone"] == "Pirineo Navarro"
        assert body["data"]["valid_date"] == "2026-01-15"
        assert body["data"]["forecast_data"]["cota_nieve"] == 1600
        assert body["source"] == "mock-data"

    def test_recent_forecast_is_a_hit(self, client, store, provider, clock):
        """It should serve a 30 minute old forecast without calling upstream."""
        put(store, "Pirineo Aragonés", {"cielo": "Despejado"}, clock.now - timedelta(minutes=30), date(2026, 1, 15))

        body = client.get("/montana/zone/Pirineo Aragonés").json()

        assert body["cached"] is True
        assert body["valid"] is True
        assert body["data"]["forecast_data"] == {"cielo": "Despejado"}
        assert provider.calls == []

    def test_yesterdays_forecast_is_refetched(self, client, store, provider, clock):
        """It should not serve a forecast whose valid date has passed."""
        put(store, "Pirineo Aragonés", {"cielo": "Despejado"}, clock.now - timedelta(minutes=5), date(2026, 1, 14))

        body = client.get("/montana/zone/Pirineo Aragonés").json()

        assert body["cached"] is False
        assert body["data"]["valid_date"] == "2026-01-15"
        assert len(provider.calls) == 1

    def test_all_zones(self, client):
        """It should list the three Pyrenean zones."""
        body = client.get("/montana").json()

        assert body["count"] == 3
        assert {item["zone"] for item in body["data"]} == {"Pirineo Aragonés", "Pirineo Navarro", "Pirineo Catalán"}


class TestMountainZonesAndStats:
    """Tests for /montana/zones and /montana/stats."""

    def test_zones_report_stored_data(self, client, store, clock):
        """It should flag which zones have stored forecasts."""
        put(store, "Pirineo Catalán", {}, clock.now, date(2026, 1, 15))

        body = client.get("/montana/zones").json()

        by_zone = {item["zone"]: item for item in body["data"]}
        assert body["count"] == 3
        assert by_zone["Pirineo Catalán"]["hasData"] is True
        assert by_zone["Pirineo Catalán"]["aemetArea"] == "cat1"
        assert by_zone["Pirineo Catalán"]["latestForecast"] == "2026-01-15"
        assert by_zone["Pirineo Navarro"]["hasData"] is False
        assert by_zone["Pirineo Navarro"]["forecastCount"] == 0

    def test_stats(self, client, store, clock):
        """It should count forecasts per zone."""
        put(store, "Pirineo Catalán", {}, clock.now, date(2026, 1, 15))
        put(store, "Pirineo Catalán", {}, clock.now, date(2026, 1, 16))

        body = client.get("/montana/stats").json()

        assert body["summary"] == {"totalZones": 1, "totalForecasts": 2}
        assert body["data"][0]["latest_valid_date"] == "2026-01-16"

    def test_refresh_zone(self, client, provider):
        """It should refetch the requested zone."""
        body = client.post("/montana/refresh", json={"key": "pirineo catalán"}).json()

        assert body["data"]["zone"] == "Pirineo Catalán"
        assert provider.calls == [("mountain-forecast", "Pirineo Catalán")]
