"""
Merge Engine do Atlas Compose.
"""

from .engine import PRIORITY_TIE, MergeWarning, ResolvedTree, merge, unknown_key

__all__ = ["PRIORITY_TIE", "MergeWarning", "ResolvedTree", "merge", "unknown_key"]
