"""
Shared dependencies and helpers for the category routers.
"""
from typing import Optional

from fastapi import HTTPException, Request, status

from elurinfo.cache.freshness import CacheLookup, FreshnessCache


def get_cache(request: Request) -> FreshnessCache:
    """FastAPI dependency returning the cache built at startup."""
    return request.app.state.cache


def require_lookup(lookup: Optional[CacheLookup], what: str) -> CacheLookup:
    """Turn a missing result into a 404 response."""
    if lookup is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No hay datos disponibles para {what}",
        )
    return lookup


def isoformat(value) -> Optional[str]:
    return value.isoformat() if value is not None else None
