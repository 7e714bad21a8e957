from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple, Union


@dataclass(frozen=True)
class PermissionGroup:
    name: str  # e.g. android.permission-group.CAMERA
    label: str
    declaring_package: str
    icon: Optional[str] = None


@dataclass(frozen=True)
class PermissionApp:
    key: str  # package name
    label: str
    icon: Optional[str] = None
    system: bool = True  # installed as part of the system image


@dataclass(frozen=True)
class UsageRecord:
    app_key: str
    group_name: str
    group_label: str
    access_time: int  # epoch millis, 0 = never accessed

    @property
    def key(self) -> str:
        return f"{self.app_key},{self.group_name}"


UsageKey = Tuple[str, str]  # (app_key, group_name)


@dataclass
class UsageSnapshot:
    """
    Everything one recomputation pass reads. Treated as read-only once built.
    """

    groups: List[PermissionGroup] = field(default_factory=list)
    apps_by_group: Dict[str, List[PermissionApp]] = field(default_factory=dict)
    usages: Dict[UsageKey, List[UsageRecord]] = field(default_factory=dict)
    launcher_packages: FrozenSet[str] = frozenset()

    def get_groups(self) -> List[PermissionGroup]:
        return self.groups

    def get_apps(self, group: PermissionGroup) -> List[PermissionApp]:
        return self.apps_by_group.get(group.name, [])

    def get_usages(self, app: PermissionApp, group: PermissionGroup) -> List[UsageRecord]:
        return self.usages.get((app.key, group.name), [])

    def is_launcher_package(self, app: PermissionApp) -> bool:
        return app.key in self.launcher_packages


@dataclass(frozen=True)
class GroupFilter:
    label: str
    group: Optional[PermissionGroup] = None  # None = any permission

    @property
    def group_label(self) -> Optional[str]:
        return self.group.label if self.group else None


@dataclass(frozen=True)
class TimeFilter:
    label: str
    seconds: int


@dataclass(frozen=True)
class FilterOptions:
    group_options: List[GroupFilter]
    time_options: List[TimeFilter]


@dataclass(frozen=True)
class FilterSelection:
    """
    Filter state owned by the caller and carried across passes.

    group_label is the label of the selected group option; None means the
    user has not selected anything yet, in which case group_index is only a
    hint restored from persisted state.
    """

    group_label: Optional[str] = None
    group_index: int = 0
    time_index: int = 0
    show_system: bool = False


@dataclass
class UsageEntry:
    key: str  # app_key,group_name
    app_key: str
    group_name: str
    title: str
    summary: str
    access_time: int
    icon: Optional[str] = None  # app icon, only set for flat entries
    summary_icons: List[Optional[str]] = field(default_factory=list)


@dataclass
class GroupedUsageEntry:
    app_key: str
    title: str
    icon: Optional[str] = None
    group_icons: List[Optional[str]] = field(default_factory=list)
    children: List[UsageEntry] = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.app_key


DisplayEntry = Union[UsageEntry, GroupedUsageEntry]


@dataclass(frozen=True)
class UsageView:
    options: FilterOptions
    entries: List[DisplayEntry]
    has_system_apps: bool
    selection: FilterSelection
