"""
Key generation for generic API response entries.
"""
import hashlib
import json
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class CacheKey:
    """Structure for generating consistent keys for (endpoint, params) pairs."""
    endpoint: str
    params: Dict[str, Any] = field(default_factory=dict)

    def generate_key(self) -> str:
        """Generate a unique key based on endpoint and parameters."""
        # Normalize parameters to ensure consistency
        normalized_params = self._normalize_params(self.params)
        params_json = json.dumps(normalized_params, sort_keys=True, ensure_ascii=False)
        param_hash = hashlib.md5(params_json.encode('utf-8')).hexdigest()

        return f"{self.endpoint.strip('/')}:{param_hash}"

    def _normalize_params(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Normalize parameters for consistent hashing."""
        normalized = {}

        for key, value in params.items():
            if value is None:
                continue
            if isinstance(value, str):
                # Normalize strings: lowercase, remove extra spaces
                normalized[key] = ' '.join(value.lower().split())
            elif isinstance(value, list):
                # Sort lists for consistency
                normalized[key] = sorted(value) if value else []
            else:
                normalized[key] = value

        return normalized


def snow_science_front_key(area: str) -> str:
    """Key of the short-lived front entry for a snow-science area."""
    return CacheKey("snow-science", {"area": area}).generate_key()
