from __future__ import annotations

from typing import Dict, List, Set, Tuple

from .aggregator import AggregateResult, AppUsageBucket
from .config import DEFAULT_STRINGS, DisplayStrings
from .models import DisplayEntry, GroupedUsageEntry, PermissionGroup, UsageEntry, UsageRecord


def format_time_diff(time_diff_ms: int, strings: DisplayStrings = DEFAULT_STRINGS) -> str:
    """Render an elapsed time in the largest whole unit, e.g. "3 hours"."""
    seconds = max(0, time_diff_ms) // 1000
    if seconds < 60:
        value, one, many = seconds, strings.second, strings.seconds
    elif seconds < 60 * 60:
        value, one, many = seconds // 60, strings.minute, strings.minutes
    elif seconds < 60 * 60 * 24:
        value, one, many = seconds // (60 * 60), strings.hour, strings.hours
    else:
        value, one, many = seconds // (60 * 60 * 24), strings.day, strings.days
    return (one if value == 1 else many).format(n=value)


def latest_usages(bucket: AppUsageBucket) -> Dict[str, UsageRecord]:
    """Most recent matched record per group name."""
    latest: Dict[str, UsageRecord] = {}
    for usage in bucket.usages:
        current = latest.get(usage.group_name)
        if current is None or usage.access_time > current.access_time:
            latest[usage.group_name] = usage
    return latest


def _app_sort_key(bucket: AppUsageBucket) -> Tuple[int, int]:
    group_count = len({group.name for group in bucket.groups})
    last_access = max(usage.access_time for usage in bucket.usages)
    # sorted() is stable, equal keys keep aggregation order
    return -group_count, -last_access


def sort_buckets(result: AggregateResult) -> List[AppUsageBucket]:
    """Apps with more permission groups first, then by most recent access."""
    return sorted(result.buckets.values(), key=_app_sort_key)


def _usage_entry(
    bucket: AppUsageBucket,
    group: PermissionGroup,
    usage: UsageRecord,
    now: int,
    strings: DisplayStrings,
) -> UsageEntry:
    app = bucket.app
    summary = strings.usage_summary.format(
        group=usage.group_label, time=format_time_diff(now - usage.access_time, strings)
    )
    return UsageEntry(
        key=f"{app.key},{group.name}",
        app_key=app.key,
        group_name=group.name,
        title=app.label,
        summary=summary,
        access_time=usage.access_time,
        summary_icons=[group.icon],
    )


def build_app_entries(
    bucket: AppUsageBucket,
    now: int,
    added: Set[str],
    strings: DisplayStrings = DEFAULT_STRINGS,
) -> List[DisplayEntry]:
    latest = latest_usages(bucket)
    groups = sorted(bucket.groups, key=lambda g: -latest[g.name].access_time)

    children: List[Tuple[PermissionGroup, UsageEntry]] = []
    for group in groups:
        entry = _usage_entry(bucket, group, latest[group.name], now, strings)
        # Filter out entries we've seen before.
        if entry.key in added:
            continue
        added.add(entry.key)
        children.append((group, entry))

    if not children:
        return []
    if len(children) == 1:
        entry = children[0][1]
        entry.icon = bucket.app.icon
        return [entry]
    return [
        GroupedUsageEntry(
            app_key=bucket.app.key,
            title=bucket.app.label,
            icon=bucket.app.icon,
            group_icons=[group.icon for group, _ in children],
            children=[entry for _, entry in children],
        )
    ]


def build_entries(
    result: AggregateResult,
    now: int,
    strings: DisplayStrings = DEFAULT_STRINGS,
) -> List[DisplayEntry]:
    """
    Turn aggregated buckets into the ordered display tree. An app with a single
    permission group becomes a flat entry, otherwise an expandable entry whose
    children are ordered by most recent access.
    """
    added: Set[str] = set()
    entries: List[DisplayEntry] = []
    for bucket in sort_buckets(result):
        entries.extend(build_app_entries(bucket, now, added, strings))
    return entries
