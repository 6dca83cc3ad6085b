"""
API tests for the /municipio endpoints.
"""
import asyncio
import json

from elurinfo.cache.store import StoredRecord


def put(store, municipality_id, payload, last_update):
    asyncio.run(store.upsert_by_key(StoredRecord(
        category="municipal-forecast",
        key=municipality_id,
        payload=json.dumps(payload),
        last_update=last_update,
        valid_date=last_update.date(),
    )))


class TestMunicipalForecasts:
    """Tests for the municipal forecast endpoints."""

    def test_forecast_for_municipality(self, stub_client):
        """It should return the forecast with the municipality details."""
        response = stub_client.get("/municipio/22015")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["municipality_id"] == "22015"
        assert data["municipality_name"] == "Benasque"
        assert data["municipality_info"] == {"name": "Benasque", "zone": "Pirineo Aragonés", "province": "Huesca"}
        assert data["valid_date"] == "2026-01-15"
        assert data["forecast_data"]["nombre"] == "Benasque"

    def test_unknown_municipality(self, client, provider):
        """It should answer 404 for municipalities outside the catalog."""
        response = client.get("/municipio/28079")

        assert response.status_code == 404
        assert response.json()["message"] == "No se encontró información para municipal-forecast: 28079"
        assert provider.calls == []

    def test_all_municipalities(self, client):
        """It should return the eight configured municipalities."""
        body = client.get("/municipio").json()

        assert body["count"] == 8
        assert body["source"] == "live"

    def test_second_request_is_cached(self, client, provider):
        """It should not call upstream twice within the freshness window."""
        client.get("/municipio/31246")
        body = client.get("/municipio/31246").json()

        assert body["cached"] is True
        assert provider.calls == [("municipal-forecast", "31246")]

    def test_expired_forecast_is_refetched(self, client, provider, clock):
        """It should call upstream again after an hour."""
        client.get("/municipio/31246")
        clock.advance(hours=1, seconds=1)

        body = client.get("/municipio/31246").json()

        assert body["cached"] is False
        assert len(provider.calls) == 2

    def test_refresh_one(self, client, provider):
        """It should refresh the municipality given in the body."""
        body = client.post("/municipio/refresh", json={"key": "31269"}).json()

        assert body["data"]["municipality_name"] == "Burguete"
        assert provider.calls == [("municipal-forecast", "31269")]


class TestMunicipalZones:
    """Tests for /municipio/zone/{zone}."""

    def test_zone_lists_municipalities_and_stored_forecasts(self, client, store, provider, clock):
        """It should return the zone's municipalities with the forecasts already stored."""
        put(store, "22015", {"nombre": "Benasque"}, clock.now)
        put(store, "31246", {"nombre": "Roncal"}, clock.now)

        response = client.get("/municipio/zone/Pirineo%20Aragon%C3%A9s")

        assert response.status_code == 200
        body = response.json()
        assert body["source"] == "database"
        assert body["data"]["zone"] == "Pirineo Aragonés"
        assert [m["id"] for m in body["data"]["municipalities"]] == ["22015", "22040", "22178", "22242"]
        assert [f["municipality_id"] for f in body["data"]["forecasts"]] == ["22015"]
        assert body["data"]["forecasts"][0]["forecast_data"] == {"nombre": "Benasque"}
        assert body["summary"] == {"municipalityCount": 4, "forecastCount": 1}
        assert provider.calls == []

    def test_zone_is_case_insensitive(self, client):
        """It should match the zone name regardless of case."""
        body = client.get("/municipio/zone/pirineo navarro").json()

        assert body["data"]["zone"] == "Pirineo Navarro"
        assert body["summary"]["municipalityCount"] == 4

    def test_unknown_zone(self, client):
        """It should answer 404 for zones without municipalities."""
        response = client.get("/municipio/zone/Sierra Nevada")

        assert response.status_code == 404
        assert response.json()["message"] == "No se encontraron municipios para la zona: Sierra Nevada"


class TestMunicipalStats:
    """Tests for /municipio/stats."""

    def test_stats_with_coverage_by_zone(self, client, store, provider, clock):
        """It should count forecasts per municipality and summarize coverage by zone."""
        put(store, "31246", {"nombre": "Roncal"}, clock.now)
        put(store, "22015", {"nombre": "Benasque"}, clock.now)

        response = client.get("/municipio/stats")

        assert response.status_code == 200
        body = response.json()
        assert [item["municipality_name"] for item in body["data"]] == ["Benasque", "Roncal"]
        assert body["data"][0]["count"] == 1
        assert body["summary"] == {
            "totalMunicipalities": 2,
            "configuredMunicipalities": 8,
            "coverage": 25,
            "byZone": {"Pirineo Aragonés": 1, "Pirineo Navarro": 1},
        }
        assert provider.calls == []

    def test_stats_without_forecasts(self, client):
        """It should report zero coverage on an empty store."""
        body = client.get("/municipio/stats").json()

        assert body["data"] == []
        assert body["summary"]["coverage"] == 0
