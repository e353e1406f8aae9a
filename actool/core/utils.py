"""Core utility functions shared across modules."""

from __future__ import annotations

import copy
from typing import Any, Dict


def deep_merge(target: Dict[str, Any], updates: Dict[str, Any]) -> None:
    """Recursively merge ``updates`` into ``target`` in place.

    Nested dicts are merged key by key; any other value replaces the existing
    one with a deep copy. Used to lay command fields over a fetched device
    payload without dropping the fields the client does not model.

    Examples:
        >>> target = {"commandKey": "", "deviceFan": {"fanStatus": 0, "windSpeed": 2}}
        >>> deep_merge(target, {"commandKey": "AirOpen", "deviceFan": {"fanStatus": 1}})
        >>> target
        {'commandKey': 'AirOpen', 'deviceFan': {'fanStatus': 1, 'windSpeed': 2}}
    """
    for key, value in updates.items():
        existing = target.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            deep_merge(existing, value)
        else:
            target[key] = copy.deepcopy(value)
