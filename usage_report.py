#!/usr/bin/env python
"""
Permission usage report.

Loads the usage snapshot from the shared DB, applies the requested filters and
prints which apps accessed which permission groups and when. The filter state
is saved so the next run starts where this one left off.
"""
from __future__ import annotations

import argparse
import locale
import logging
from dataclasses import replace
from pathlib import Path

from permission_usage.config import DEFAULT_STRINGS, UsagePaths, load_launcher_packages
from permission_usage.database import UsageStore
from permission_usage.models import GroupedUsageEntry, UsageView
from permission_usage.pipeline import UsageController

DEFAULT_SCREEN = "permission_usage"

try:
    locale.setlocale(locale.LC_COLLATE, "")
except locale.Error:
    pass


def print_view(view: UsageView) -> None:
    selection = view.selection
    print("Permissions:")
    for index, option in enumerate(view.options.group_options):
        marker = "*" if index == selection.group_index else " "
        print(f"  {marker} [{index}] {option.label}")
    print("Time:")
    for index, option in enumerate(view.options.time_options):
        marker = "*" if index == selection.time_index else " "
        print(f"  {marker} [{index}] {option.label}")
    if view.has_system_apps:
        print(f"System apps: {'shown' if selection.show_system else 'hidden'}")
    print()

    if not view.entries:
        print(DEFAULT_STRINGS.no_usages)
        return
    for entry in view.entries:
        if isinstance(entry, GroupedUsageEntry):
            print(f"{entry.title} ({len(entry.children)} permissions)")
            for child in entry.children:
                print(f"    {child.summary}")
        else:
            print(f"{entry.title}: {entry.summary}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Show recent permission usage by app.")
    parser.add_argument("--db", type=Path, help="Path to the usage database.")
    parser.add_argument("--launcher-file", type=Path, help="File listing launchable packages.")
    parser.add_argument("--permission", help="Platform permission to filter on, e.g. android.permission.CAMERA.")
    parser.add_argument("--group", help="Permission group label to filter on.")
    parser.add_argument("--time", type=int, help="Index of the time filter (0 = any time).")
    system = parser.add_mutually_exclusive_group()
    system.add_argument("--show-system", dest="show_system", action="store_true", default=None)
    system.add_argument("--hide-system", dest="show_system", action="store_false", default=None)
    parser.add_argument("--screen", default=DEFAULT_SCREEN, help="Name the filter state is saved under.")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    defaults = UsagePaths()
    paths = UsagePaths(
        db_file=args.db or defaults.db_file,
        launcher_file=args.launcher_file or defaults.launcher_file,
    )
    store = UsageStore(paths.db_file)

    selection = store.load_ui_state(args.screen)
    if args.permission:
        # A deep link only applies when nothing is selected yet.
        selection = replace(selection, group_label=None)
    if args.group is not None:
        selection = replace(selection, group_label=args.group)
    if args.time is not None:
        selection = replace(selection, time_index=args.time)
    if args.show_system is not None:
        selection = replace(selection, show_system=args.show_system)

    controller = UsageController(
        listener=print_view, selection=selection, target_permission=args.permission
    )
    snapshot = store.load_snapshot()
    launcher_packages = load_launcher_packages(paths)
    if launcher_packages:
        snapshot.launcher_packages = snapshot.launcher_packages | launcher_packages
    controller.on_snapshot_changed(snapshot)
    store.save_ui_state(args.screen, controller.selection)


if __name__ == "__main__":
    main()
