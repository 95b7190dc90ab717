"""
Item status reconciliation: merging item sources, department aggregation
and order status promotion. Pure functions, no database access.
"""

from .materializer import (
    EmptyMergeError,
    ItemSource,
    LegacyItem,
    MergedItem,
    merge,
    normalize_name,
    parse_snapshot,
    synthesize_snapshot,
)
from .aggregator import department_status
from .promoter import promote, is_promotion

__all__ = [
    "EmptyMergeError",
    "ItemSource",
    "LegacyItem",
    "MergedItem",
    "merge",
    "normalize_name",
    "parse_snapshot",
    "synthesize_snapshot",
    "department_status",
    "promote",
    "is_promotion",
]
