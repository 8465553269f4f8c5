import hashlib
import json


def cache_key(namespace: str, payload: dict) -> str:
    """Stable cache key for a request payload"""
    s = json.dumps(payload, sort_keys=True, default=str)
    return f"{namespace}:{hashlib.sha256(s.encode()).hexdigest()}"
