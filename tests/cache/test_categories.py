"""
Tests for category policies.
"""

from datetime import timedelta

from elurinfo.cache.categories import DataCategory, build_policies
from elurinfo.config.settings import Settings


class TestBuildPolicies:
    """Tests for build_policies."""

    def test_defaults(self, settings):
        """It should apply the default windows per category."""
        policies = build_policies(settings)

        assert set(policies) == set(DataCategory)

        avalanche = policies[DataCategory.AVALANCHE_REPORT]
        assert avalanche.ttl == timedelta(hours=24)
        assert avalanche.retention == timedelta(days=30)
        assert not avalanche.has_valid_date

        mountain = policies[DataCategory.MOUNTAIN_FORECAST]
        assert mountain.ttl == timedelta(hours=1)
        assert mountain.retention == timedelta(days=7)
        assert mountain.has_valid_date

        municipal = policies[DataCategory.MUNICIPAL_FORECAST]
        assert municipal.ttl == timedelta(hours=1)
        assert municipal.has_valid_date

        snow = policies[DataCategory.SNOW_SCIENCE_REPORT]
        assert snow.ttl == timedelta(hours=12)
        assert snow.front_ttl == timedelta(hours=6)
        assert snow.append_only

        generic = policies[DataCategory.API_RESPONSE]
        assert generic.ttl == timedelta(hours=1)
        assert generic.expires_explicitly
        assert generic.retention is None

    def test_windows_come_from_settings(self):
        """It should read freshness and retention windows from configuration."""
        settings = Settings(
            _env_file=None,
            CACHE_AVALANCHE_HOURS=6,
            RETENTION_AVALANCHE_DAYS=90,
            CACHE_SNOW_SCIENCE_FRONT_HOURS=0.5,
        )

        policies = build_policies(settings)

        assert policies[DataCategory.AVALANCHE_REPORT].ttl == timedelta(hours=6)
        assert policies[DataCategory.AVALANCHE_REPORT].retention == timedelta(days=90)
        assert policies[DataCategory.SNOW_SCIENCE_REPORT].front_ttl == timedelta(minutes=30)

    def test_category_values(self):
        """It should expose the category names used in storage."""
        assert DataCategory("avalanche-report") is DataCategory.AVALANCHE_REPORT
        assert DataCategory.API_RESPONSE.value == "generic-api-response"
