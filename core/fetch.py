# core/fetch.py
import math
from typing import Optional

import requests

from .errors import NetworkError, ParseError


_HTTP = requests.Session()


def get_json(url: str, headers: dict, timeout: float, http: Optional[requests.Session] = None):
    session = http or _HTTP
    try:
        r = session.get(url, headers=headers, timeout=timeout)
        r.raise_for_status()
    except requests.RequestException as e:
        raise NetworkError(str(e)) from e

    try:
        return r.json()
    except ValueError as e:
        raise ParseError(f"invalid JSON from {url}") from e


def percent(position, duration) -> Optional[int]:
    # Only when duration is non-zero; half-up rounding, clamped to 0..100.
    if not duration:
        return None
    value = math.floor((position or 0) / duration * 100 + 0.5)
    return max(0, min(100, value))
