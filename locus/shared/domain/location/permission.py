"""Permission evaluation for location access.

Pure functions; the live permission set and the rationale query are passed in
on every call so OS-side changes are always picked up.
"""

from __future__ import annotations

from typing import AbstractSet, Callable, Mapping, Union

from .models import LOCATION_PERMISSIONS, PermissionKind, PermissionStatus

RationaleQuery = Callable[[PermissionKind], bool]


def rationale_required(can_show_rationale: RationaleQuery) -> bool:
    """True if the OS allows a rationale for fine or coarse location."""
    return any(can_show_rationale(kind) for kind in LOCATION_PERMISSIONS)


def evaluate(
    granted_permissions: AbstractSet[PermissionKind],
    can_show_rationale: RationaleQuery,
) -> PermissionStatus:
    """Classify location access from the granted permission set.

    Args:
        granted_permissions: Permissions the OS currently reports as granted
        can_show_rationale: OS query for "should show request rationale"

    Returns:
        GRANTED when both fine and coarse location are granted, otherwise
        DENIED_WITH_RATIONALE or DENIED_HARD depending on the rationale query.
    """
    if all(kind in granted_permissions for kind in LOCATION_PERMISSIONS):
        return PermissionStatus.GRANTED
    if rationale_required(can_show_rationale):
        return PermissionStatus.DENIED_WITH_RATIONALE
    return PermissionStatus.DENIED_HARD


def normalize_result(result: Mapping[Union[PermissionKind, str], bool]) -> dict[PermissionKind, bool]:
    """Coerce a permission result mapping to PermissionKind keys.

    Keys that do not name a known permission are dropped, and so are values
    that are not real booleans ("false", 1, None).
    """
    normalized: dict[PermissionKind, bool] = {}
    for key, value in result.items():
        try:
            kind = PermissionKind(key)
        except ValueError:
            continue
        if isinstance(value, bool):
            normalized[kind] = value
    return normalized


def is_granted(result: Mapping[Union[PermissionKind, str], bool]) -> bool:
    """True if a permission result grants both fine and coarse location."""
    normalized = normalize_result(result)
    return all(normalized.get(kind) is True for kind in LOCATION_PERMISSIONS)
