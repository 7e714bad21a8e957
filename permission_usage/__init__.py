"""
Aggregation of per-app permission usage into a filterable, ordered list.

The filters, aggregator and presentation modules form a pure pipeline so any
UI layer can drive it; the store and the report script are thin adapters.
"""

from .models import FilterSelection, UsageSnapshot, UsageView
from .pipeline import UsageController, compute_display_tree

__all__ = [
    "FilterSelection",
    "UsageController",
    "UsageSnapshot",
    "UsageView",
    "compute_display_tree",
]
