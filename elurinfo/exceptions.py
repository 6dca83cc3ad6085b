"""
Error taxonomy for ElurInfo.

Upstream and corrupt-entry errors are recovered inside the freshness cache;
unknown keys and storage failures reach the HTTP layer.
"""
from enum import Enum
from typing import Optional


class ElurInfoError(Exception):
    """Base class for all ElurInfo errors."""

    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UpstreamReason(str, Enum):
    """Why an upstream call failed. Kept for logging only."""
    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    NETWORK = "network"
    BAD_STATUS = "bad_status"
    MALFORMED = "malformed"
    UNSUPPORTED = "unsupported"


class UpstreamUnavailable(ElurInfoError):
    """The upstream provider could not produce a payload."""

    status_code = 503

    def __init__(
        self,
        message: str,
        reason: UpstreamReason = UpstreamReason.NETWORK,
        upstream_status: Optional[int] = None,
    ):
        self.reason = reason
        self.upstream_status = upstream_status
        super().__init__(message)


class UpstreamAuthError(UpstreamUnavailable):
    """Upstream rejected our credentials."""

    def __init__(self, message: str = "Upstream authentication failed", upstream_status: Optional[int] = 401):
        super().__init__(message, UpstreamReason.AUTHENTICATION, upstream_status)


class UpstreamNotFound(UpstreamUnavailable):
    """Upstream has no data for the requested key."""

    def __init__(self, message: str = "Upstream has no data for this key", upstream_status: Optional[int] = 404):
        super().__init__(message, UpstreamReason.NOT_FOUND, upstream_status)


class UpstreamRateLimited(UpstreamUnavailable):
    """Upstream throttled the request."""

    def __init__(self, message: str = "Upstream rate limit exceeded", upstream_status: Optional[int] = 429):
        super().__init__(message, UpstreamReason.RATE_LIMITED, upstream_status)


class CorruptCacheEntry(ElurInfoError):
    """A stored payload could not be deserialized."""

    def __init__(self, category: str, key: str, record_id: Optional[int] = None):
        self.category = category
        self.key = key
        self.record_id = record_id
        super().__init__(f"Corrupt cache entry for {category}/{key}")


class UnknownKey(ElurInfoError):
    """The key is not part of the configured catalog for its category."""

    status_code = 404

    def __init__(self, category: str, key: str):
        self.category = category
        self.key = key
        super().__init__(f"No se encontró información para {category}: {key}")


class StorageFailure(ElurInfoError):
    """The persisted store failed. Fatal to the request."""

    status_code = 500
