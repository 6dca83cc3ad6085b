"""
Tests for the elurinfo command line.
"""
from unittest.mock import patch

import httpx
from typer.testing import CliRunner

from elurinfo.cli.main import app

runner = CliRunner()


def api_response(body, status_code=200, method="GET", url="http://localhost:3000/"):
    return httpx.Response(status_code, json=body, request=httpx.Request(method, url))


class TestCliCommands:
    """Tests for the API-backed commands."""

    def test_status(self):
        """It should print the API health."""
        body = {"status": "OK", "version": "1.0.0", "database": "connected", "uptime": 12.5}
        with patch("elurinfo.cli.main.httpx.request", return_value=api_response(body)) as request:
            result = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert "connected" in result.output
        assert request.call_args[0][1].endswith("/health")

    def test_avalanche_zone(self):
        """It should print the bulletin of one zone."""
        body = {
            "success": True,
            "data": {"zone": "Pirineo Navarro", "risk_level": 1, "description": "Riesgo débil"},
            "cached": True,
            "valid": True,
            "lastUpdate": "2026-01-15T10:00:00+00:00",
            "source": "database",
        }
        with patch("elurinfo.cli.main.httpx.request", return_value=api_response(body)) as request:
            result = runner.invoke(app, ["avalanche", "Pirineo Navarro"])

        assert result.exit_code == 0
        assert "Pirineo Navarro" in result.output
        assert request.call_args[0][1].endswith("/avalancha/zone/Pirineo Navarro")

    def test_http_error_exits_with_status_1(self):
        """It should print the API error message and exit with 1."""
        body = {"success": False, "message": "No se encontró información para municipal-forecast: 1"}
        with patch("elurinfo.cli.main.httpx.request", return_value=api_response(body, status_code=404)):
            result = runner.invoke(app, ["municipal", "1"])

        assert result.exit_code == 1
        assert "404" in result.output

    def test_connection_error_exits_with_status_1(self):
        """It should report an unreachable API."""
        error = httpx.ConnectError("refused", request=httpx.Request("GET", "http://localhost:3000/health"))
        with patch("elurinfo.cli.main.httpx.request", side_effect=error):
            result = runner.invoke(app, ["status"])

        assert result.exit_code == 1

    def test_refresh_rejects_unknown_category(self):
        """It should refuse categories the API does not expose."""
        result = runner.invoke(app, ["refresh", "tiempo"])

        assert result.exit_code == 1

    def test_snow_history_requires_area(self):
        """It should require an area for --history."""
        result = runner.invoke(app, ["snow", "--history"])

        assert result.exit_code == 1
