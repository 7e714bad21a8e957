"""
Shared builders for usage snapshots.
"""

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from permission_usage.config import PLATFORM_PACKAGE  # noqa: E402
from permission_usage.models import (  # noqa: E402
    PermissionApp,
    PermissionGroup,
    UsageRecord,
    UsageSnapshot,
)

NOW = 10_000_000_000  # epoch millis
MINUTE = 60 * 1000


def make_group(label, declaring_package=PLATFORM_PACKAGE, name=None, icon=None):
    return PermissionGroup(
        name=name or f"android.permission-group.{label.upper()}",
        label=label,
        declaring_package=declaring_package,
        icon=icon or f"ic_{label.lower()}",
    )


class SnapshotBuilder:
    """Accumulates groups, grants and usages, then freezes them into a snapshot."""

    def __init__(self):
        self.snapshot = UsageSnapshot()
        self._groups = {}
        self._apps = {}

    def group(self, label, **kwargs):
        if label not in self._groups:
            group = make_group(label, **kwargs)
            self._groups[label] = group
            self.snapshot.groups.append(group)
        return self._groups[label]

    def app(self, key, system=False, label=None):
        if key not in self._apps:
            self._apps[key] = PermissionApp(
                key=key, label=label or key.split(".")[-1].title(), icon=f"icon:{key}", system=system
            )
        return self._apps[key]

    def use(self, app_key, group_label, *access_times, system=False):
        group = self.group(group_label)
        app = self.app(app_key, system=system)
        apps = self.snapshot.apps_by_group.setdefault(group.name, [])
        if app not in apps:
            apps.append(app)
        records = self.snapshot.usages.setdefault((app.key, group.name), [])
        for access_time in access_times:
            records.append(UsageRecord(app.key, group.name, group.label, access_time))
        return self

    def launcher(self, *keys):
        self.snapshot.launcher_packages = self.snapshot.launcher_packages | frozenset(keys)
        return self

    def build(self):
        return self.snapshot


@pytest.fixture
def builder():
    return SnapshotBuilder()


@pytest.fixture
def label_key():
    """Collation independent of the process locale."""
    return str.casefold
