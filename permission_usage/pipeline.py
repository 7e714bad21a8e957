from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from typing import Callable, Optional

from .aggregator import aggregate_usages
from .config import DEFAULT_STRINGS, DisplayStrings, group_of_platform_permission
from .filters import SortKey, build_filter_options, restore_selection
from .models import FilterSelection, UsageSnapshot, UsageView
from .presentation import build_entries

logger = logging.getLogger(__name__)


def current_time_millis() -> int:
    return int(time.time() * 1000)


def compute_display_tree(
    snapshot: UsageSnapshot,
    selection: FilterSelection,
    now: int,
    target_group_name: Optional[str] = None,
    sort_key: Optional[SortKey] = None,
    strings: DisplayStrings = DEFAULT_STRINGS,
) -> UsageView:
    """
    Run one full pass: rebuild the filter options, re-validate the selection
    against them, aggregate and build the ordered entries.

    Pure with respect to its arguments; the returned view carries the restored
    selection the caller should keep for the next pass.
    """
    options = build_filter_options(snapshot.get_groups(), strings, sort_key)
    selection = restore_selection(options, selection, target_group_name)

    group_filter = options.group_options[selection.group_index].group_label
    time_filter = options.time_options[selection.time_index].seconds
    result = aggregate_usages(snapshot, group_filter, time_filter, selection.show_system, now)
    return UsageView(
        options=options,
        entries=build_entries(result, now, strings),
        has_system_apps=result.has_system_apps,
        selection=selection,
    )


class UsageController:
    """
    Owns the filter selection for one usage screen and recomputes the view
    whenever the data or the filters change.

    Recomputations are serialized; the listener only ever sees complete views.
    """

    def __init__(
        self,
        listener: Callable[[UsageView], None],
        selection: Optional[FilterSelection] = None,
        target_permission: Optional[str] = None,
        clock: Callable[[], int] = current_time_millis,
        sort_key: Optional[SortKey] = None,
        strings: DisplayStrings = DEFAULT_STRINGS,
    ):
        self.listener = listener
        self.selection = selection or FilterSelection()
        self.clock = clock
        self.sort_key = sort_key
        self.strings = strings
        self.snapshot: Optional[UsageSnapshot] = None
        self.view: Optional[UsageView] = None
        self.attached = True
        # Reentrant so a listener may fire another trigger from inside a pass.
        self._lock = threading.RLock()

        self.target_group_name = group_of_platform_permission(target_permission)
        if target_permission is not None and self.target_group_name is None:
            logger.warning("Invalid platform permission: %s", target_permission)

    def detach(self) -> None:
        """The hosting surface is gone; later triggers become no-ops."""
        self.attached = False

    def on_snapshot_changed(self, snapshot: UsageSnapshot) -> Optional[UsageView]:
        with self._lock:
            self.snapshot = snapshot
            return self._recompute()

    def select_group(self, index: int) -> Optional[UsageView]:
        with self._lock:
            if self.view is None:
                self.selection = replace(self.selection, group_index=index)
            else:
                options = self.view.options.group_options
                if not 0 <= index < len(options):
                    index = 0
                self.selection = replace(
                    self.selection, group_label=options[index].label, group_index=index
                )
            return self._recompute()

    def select_time(self, index: int) -> Optional[UsageView]:
        return self._update(time_index=index)

    def set_show_system(self, show_system: bool) -> Optional[UsageView]:
        return self._update(show_system=show_system)

    def recompute(self) -> Optional[UsageView]:
        with self._lock:
            return self._recompute()

    def _update(self, **changes) -> Optional[UsageView]:
        # Apply and recompute under one lock so a concurrent trigger never
        # works from a selection that a running pass is about to replace.
        with self._lock:
            self.selection = replace(self.selection, **changes)
            return self._recompute()

    def _recompute(self) -> Optional[UsageView]:
        if not self.attached:
            logger.debug("Screen detached, skipping recomputation")
            return None
        if self.snapshot is None:
            logger.debug("No data loaded yet, skipping recomputation")
            return None
        view = compute_display_tree(
            self.snapshot,
            self.selection,
            self.clock(),
            target_group_name=self.target_group_name,
            sort_key=self.sort_key,
            strings=self.strings,
        )
        # The deep link only applies to the first population.
        self.target_group_name = None
        self.selection = view.selection
        self.view = view
        self.listener(view)
        return self.view
