"""
Conditional Evaluator do Atlas Compose.
"""

from .evaluator import ConditionalResolution, RoundSummary, resolve

__all__ = ["ConditionalResolution", "RoundSummary", "resolve"]
