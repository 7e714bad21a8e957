from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .config import ANY_TIME, EXCLUDED_GROUP_LABEL
from .filters import platform_groups
from .models import PermissionApp, PermissionGroup, UsageRecord, UsageSnapshot

logger = logging.getLogger(__name__)


@dataclass
class AppUsageBucket:
    app: PermissionApp
    usages: List[UsageRecord] = field(default_factory=list)
    # Ordered set of matched groups (dict keys keep insertion order)
    groups: Dict[PermissionGroup, None] = field(default_factory=dict)

    def add(self, group: PermissionGroup, usage: UsageRecord) -> None:
        self.usages.append(usage)
        self.groups.setdefault(group, None)


@dataclass
class AggregateResult:
    buckets: Dict[str, AppUsageBucket] = field(default_factory=dict)
    has_system_apps: bool = False


def is_system_app(app: PermissionApp, snapshot: UsageSnapshot) -> bool:
    """An app is user facing if it can be launched or is not part of the system image."""
    if snapshot.is_launcher_package(app):
        return False
    return app.system


def check_record(record: UsageRecord, app: PermissionApp, group: PermissionGroup) -> int:
    """Return the record's access time, raising ValueError if the record is unusable."""
    access_time = record.access_time
    if isinstance(access_time, bool) or not isinstance(access_time, int):
        raise ValueError(f"access time {access_time!r} is not an integer")
    if access_time < 0:
        raise ValueError(f"negative access time {access_time}")
    if record.app_key != app.key or record.group_name != group.name:
        raise ValueError(f"record {record.key} listed under {app.key},{group.name}")
    return access_time


def is_within_window(access_time: int, now: int, threshold_seconds: int) -> bool:
    if threshold_seconds >= ANY_TIME:
        return True
    return (now - access_time) // 1000 <= threshold_seconds


def aggregate_usages(
    snapshot: UsageSnapshot,
    group_filter: Optional[str],
    time_filter: int,
    show_system: bool,
    now: int,
) -> AggregateResult:
    """
    Collect the usage records that pass every filter, bucketed by app key.

    group_filter is a group label (None for any permission), time_filter a
    window in seconds and now the current time in epoch millis. Buckets keep
    the order in which apps were first seen.
    """
    result = AggregateResult()
    for group in platform_groups(snapshot.get_groups()):
        if group_filter is not None and group.label != group_filter:
            continue
        if group.label == EXCLUDED_GROUP_LABEL:
            continue
        for app in snapshot.get_apps(group):
            for usage in snapshot.get_usages(app, group):
                try:
                    access_time = check_record(usage, app, group)
                except ValueError as exc:
                    logger.warning("Skipping malformed usage record: %s", exc)
                    continue
                if access_time == 0:
                    continue
                if not is_within_window(access_time, now, time_filter):
                    continue

                system_app = is_system_app(app, snapshot)
                if system_app and not result.has_system_apps:
                    result.has_system_apps = True

                if system_app and not show_system:
                    continue
                bucket = result.buckets.get(app.key)
                if bucket is None:
                    bucket = result.buckets[app.key] = AppUsageBucket(app)
                bucket.add(group, usage)
    return result
