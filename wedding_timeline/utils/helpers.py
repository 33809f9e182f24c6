"""
General helper utilities
"""
import json
import math
from datetime import date
from typing import Any, Optional


def percent(part: int, whole: int) -> int:
    """Whole-number percentage, rounded half up; 0 when there is nothing to measure"""
    if whole <= 0:
        return 0
    return int(math.floor(100 * part / whole + 0.5))


def days_until(target: Optional[date], today: date) -> Optional[int]:
    """Signed day distance from today to target (negative when in the past)"""
    if target is None:
        return None
    return (target - today).days


def safe_json_parse(text: str, default: Any = None) -> Any:
    """Safely parse JSON string"""
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return default
