"""
Data categories and their freshness policies.

Every category shares one cache mechanism; only the policy differs.
"""
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Dict, Optional

from elurinfo.config.settings import Settings


class DataCategory(str, Enum):
    AVALANCHE_REPORT = "avalanche-report"
    MOUNTAIN_FORECAST = "mountain-forecast"
    MUNICIPAL_FORECAST = "municipal-forecast"
    SNOW_SCIENCE_REPORT = "snow-science-report"
    API_RESPONSE = "generic-api-response"


@dataclass(frozen=True)
class CategoryPolicy:
    """
    Freshness and storage policy of one category.

    Attributes:
        category: The category this policy applies to
        ttl: Maximum age of a record before it is considered stale
        retention: Maximum age before the sweep deletes a record
        has_valid_date: Records expire once their valid_date is in the past
        append_only: New fetches append a row instead of replacing by key
        front_ttl: Lifetime of the front-tier entry (snow-science only)
        expires_explicitly: Records carry an absolute expires_at
    """
    category: DataCategory
    ttl: timedelta
    retention: Optional[timedelta] = None
    has_valid_date: bool = False
    append_only: bool = False
    front_ttl: Optional[timedelta] = None
    expires_explicitly: bool = False


def build_policies(settings: Settings) -> Dict[DataCategory, CategoryPolicy]:
    """Build the policy table from configuration."""
    return {
        DataCategory.AVALANCHE_REPORT: CategoryPolicy(
            category=DataCategory.AVALANCHE_REPORT,
            ttl=timedelta(hours=settings.cache_avalanche_hours),
            retention=timedelta(days=settings.retention_avalanche_days),
        ),
        DataCategory.MOUNTAIN_FORECAST: CategoryPolicy(
            category=DataCategory.MOUNTAIN_FORECAST,
            ttl=timedelta(hours=settings.cache_mountain_hours),
            retention=timedelta(days=settings.retention_mountain_days),
            has_valid_date=True,
        ),
        DataCategory.MUNICIPAL_FORECAST: CategoryPolicy(
            category=DataCategory.MUNICIPAL_FORECAST,
            ttl=timedelta(hours=settings.cache_municipal_hours),
            retention=timedelta(days=settings.retention_municipal_days),
            has_valid_date=True,
        ),
        DataCategory.SNOW_SCIENCE_REPORT: CategoryPolicy(
            category=DataCategory.SNOW_SCIENCE_REPORT,
            ttl=timedelta(hours=settings.cache_snow_science_hours),
            retention=timedelta(days=settings.retention_snow_science_days),
            append_only=True,
            front_ttl=timedelta(hours=settings.cache_snow_science_front_hours),
        ),
        DataCategory.API_RESPONSE: CategoryPolicy(
            category=DataCategory.API_RESPONSE,
            ttl=timedelta(hours=settings.cache_api_response_hours),
            expires_explicitly=True,
        ),
    }
