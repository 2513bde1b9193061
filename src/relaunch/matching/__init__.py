"""
Relevance matching of changed paths against include/exclude globs and the
fallback regular expression.
"""

from .matcher import PatternMatcher, matches_any

__all__ = [
    "PatternMatcher",
    "matches_any",
]
