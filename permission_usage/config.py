from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, List, Optional, Tuple

# Groups declared by this package are platform groups; everything else is third party.
PLATFORM_PACKAGE = "android"

# {READ,WRITE}_EXTERNAL_STORAGE are going away, never show them.
EXCLUDED_GROUP_LABEL = "Storage"

ANY_TIME = sys.maxsize

# (seconds, DisplayStrings attribute) from most to least permissive
TIME_WINDOWS: List[Tuple[int, str]] = [
    (ANY_TIME, "any_time"),
    (60 * 60 * 24 * 7, "last_7_days"),
    (60 * 60 * 24, "last_day"),
    (60 * 60, "last_hour"),
    (60 * 15, "last_15_minutes"),
]

PLATFORM_PERMISSION_GROUPS = {
    "android.permission.READ_CALENDAR": "android.permission-group.CALENDAR",
    "android.permission.WRITE_CALENDAR": "android.permission-group.CALENDAR",
    "android.permission.CAMERA": "android.permission-group.CAMERA",
    "android.permission.READ_CONTACTS": "android.permission-group.CONTACTS",
    "android.permission.WRITE_CONTACTS": "android.permission-group.CONTACTS",
    "android.permission.GET_ACCOUNTS": "android.permission-group.CONTACTS",
    "android.permission.ACCESS_FINE_LOCATION": "android.permission-group.LOCATION",
    "android.permission.ACCESS_COARSE_LOCATION": "android.permission-group.LOCATION",
    "android.permission.ACCESS_BACKGROUND_LOCATION": "android.permission-group.LOCATION",
    "android.permission.RECORD_AUDIO": "android.permission-group.MICROPHONE",
    "android.permission.READ_PHONE_STATE": "android.permission-group.PHONE",
    "android.permission.CALL_PHONE": "android.permission-group.PHONE",
    "android.permission.READ_CALL_LOG": "android.permission-group.CALL_LOG",
    "android.permission.WRITE_CALL_LOG": "android.permission-group.CALL_LOG",
    "android.permission.BODY_SENSORS": "android.permission-group.SENSORS",
    "android.permission.ACTIVITY_RECOGNITION": "android.permission-group.ACTIVITY_RECOGNITION",
    "android.permission.SEND_SMS": "android.permission-group.SMS",
    "android.permission.RECEIVE_SMS": "android.permission-group.SMS",
    "android.permission.READ_SMS": "android.permission-group.SMS",
    "android.permission.READ_EXTERNAL_STORAGE": "android.permission-group.STORAGE",
    "android.permission.WRITE_EXTERNAL_STORAGE": "android.permission-group.STORAGE",
}


@dataclass(frozen=True)
class DisplayStrings:
    any_permission: str = "Any permission"
    any_time: str = "Any time"
    last_7_days: str = "Last 7 days"
    last_day: str = "Last 24 hours"
    last_hour: str = "Last hour"
    last_15_minutes: str = "Last 15 minutes"
    usage_summary: str = "Accessed {group}, {time} ago"
    no_usages: str = "No apps used permissions"
    second: str = "{n} second"
    seconds: str = "{n} seconds"
    minute: str = "{n} minute"
    minutes: str = "{n} minutes"
    hour: str = "{n} hour"
    hours: str = "{n} hours"
    day: str = "{n} day"
    days: str = "{n} days"


DEFAULT_STRINGS = DisplayStrings()


@dataclass(frozen=True)
class UsagePaths:
    db_file: Path = Path.home() / ".permission_usage" / "permission_usage.db"
    launcher_file: Path = Path.home() / ".permission_usage" / "launcher_packages.txt"


def group_of_platform_permission(permission_name: Optional[str]) -> Optional[str]:
    """Return the platform group a permission belongs to, None if unknown."""
    if permission_name is None:
        return None
    return PLATFORM_PERMISSION_GROUPS.get(permission_name)


def load_launcher_packages(paths: UsagePaths) -> FrozenSet[str]:
    """
    Parse a one-package-per-line list of user launchable packages.
    Unknown or unreadable files return an empty set.
    """
    packages = set()
    try:
        with paths.launcher_file.open("r", encoding="utf-8") as handle:
            for line in handle:
                stripped = line.strip()
                if not stripped or stripped.startswith("#"):
                    continue
                packages.add(stripped.split()[0])
    except FileNotFoundError:
        # Every app is then classified by its own system flag
        return frozenset()
    except OSError:
        return frozenset()
    return frozenset(packages)


def ensure_parent(path: Path) -> None:
    """Create the parent directory for a file if needed."""
    os.makedirs(path.parent, exist_ok=True)
