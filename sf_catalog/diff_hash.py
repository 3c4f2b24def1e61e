"""Content hashing for catalog documents."""
import hashlib
import json
from typing import Any, Dict


class DiffHashService:
    """Hashes documents while ignoring volatile bookkeeping keys."""

    EXCLUDED_FIELDS = {'generated', 'lastUpdatedAt'}

    @staticmethod
    def generate_hash(data: Dict[str, Any]) -> str:
        """Generate SHA-512 hash for data."""
        normalized = DiffHashService._normalize_data(data)
        json_str = json.dumps(normalized, sort_keys=True, separators=(',', ':'), default=str)
        return hashlib.sha512(json_str.encode('utf-8')).hexdigest()

    @staticmethod
    def same_content(a: Any, b: Any) -> bool:
        if a is None or b is None:
            return a is b
        return DiffHashService.generate_hash(a) == DiffHashService.generate_hash(b)

    @staticmethod
    def _normalize_data(data: Any) -> Any:
        """Normalize data by removing excluded fields."""
        if isinstance(data, dict):
            return {
                k: DiffHashService._normalize_data(v)
                for k, v in data.items()
                if k not in DiffHashService.EXCLUDED_FIELDS
            }
        elif isinstance(data, list):
            return [DiffHashService._normalize_data(item) for item in data]
        else:
            return data
