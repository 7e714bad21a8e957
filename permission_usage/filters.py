from __future__ import annotations

import locale
import logging
from dataclasses import replace
from typing import Callable, Iterable, List, Optional

from .config import DEFAULT_STRINGS, PLATFORM_PACKAGE, TIME_WINDOWS, DisplayStrings
from .models import FilterOptions, FilterSelection, GroupFilter, PermissionGroup, TimeFilter

logger = logging.getLogger(__name__)

SortKey = Callable[[str], object]


def platform_groups(groups: Iterable[PermissionGroup]) -> List[PermissionGroup]:
    """Drop groups declared by third party packages."""
    return [g for g in groups if g.declaring_package == PLATFORM_PACKAGE]


def build_group_options(
    groups: Iterable[PermissionGroup],
    strings: DisplayStrings = DEFAULT_STRINGS,
    sort_key: Optional[SortKey] = None,
) -> List[GroupFilter]:
    """
    "Any permission" followed by one option per distinct platform group label,
    ordered by the collation of the current locale.
    """
    sort_key = sort_key or locale.strxfrm
    by_label = {}
    for group in platform_groups(groups):
        by_label.setdefault(group.label, group)
    ordered = sorted(by_label.values(), key=lambda g: sort_key(g.label))

    options = [GroupFilter(strings.any_permission)]
    options.extend(GroupFilter(g.label, g) for g in ordered)
    return options


def build_time_options(strings: DisplayStrings = DEFAULT_STRINGS) -> List[TimeFilter]:
    return [TimeFilter(getattr(strings, attr), seconds) for seconds, attr in TIME_WINDOWS]


def restore_group_index(
    options: List[GroupFilter],
    selection: FilterSelection,
    target_group_name: Optional[str] = None,
) -> int:
    if selection.group_label is None:
        # Nothing selected yet: the deep link wins, then the persisted position.
        if target_group_name is not None:
            for index, option in enumerate(options):
                if option.group is not None and option.group.name == target_group_name:
                    return index
            logger.warning("Target permission group %s not found", target_group_name)
        if 0 <= selection.group_index < len(options):
            return selection.group_index
        return 0
    for index, option in enumerate(options):
        if option.label == selection.group_label:
            return index
    # The previously selected value no longer exists, so use "any permission".
    return 0


def restore_selection(
    options: FilterOptions,
    selection: FilterSelection,
    target_group_name: Optional[str] = None,
) -> FilterSelection:
    """
    Re-validate a selection against freshly built options. Applying it to its
    own result yields the same selection.
    """
    group_index = restore_group_index(options.group_options, selection, target_group_name)
    time_index = selection.time_index
    if not 0 <= time_index < len(options.time_options):
        time_index = 0
    return replace(
        selection,
        group_label=options.group_options[group_index].label,
        group_index=group_index,
        time_index=time_index,
    )


def build_filter_options(
    groups: Iterable[PermissionGroup],
    strings: DisplayStrings = DEFAULT_STRINGS,
    sort_key: Optional[SortKey] = None,
) -> FilterOptions:
    return FilterOptions(
        group_options=build_group_options(groups, strings, sort_key),
        time_options=build_time_options(strings),
    )
