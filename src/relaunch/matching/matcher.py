"""
Path relevance classification.

This module decides whether a filesystem change is worth a restart by applying
the configured pattern set to the changed path. Decisions are cached per path
because editors tend to touch the same handful of files over and over.
"""

import fnmatch
import logging
import os
from typing import Dict, Iterable

from ..models.config import PatternSet

logger = logging.getLogger(__name__)

_CACHE_LIMIT = 4096


def matches_any(name: str, globs: Iterable[str]) -> bool:
    """Case-sensitive shell-style match of *name* against any of *globs*."""
    return any(fnmatch.fnmatchcase(name, glob) for glob in globs)


class PatternMatcher:
    """
    Applies a ``PatternSet`` to changed paths.

    Precedence, where later checks never override earlier rejections:

    1. Excluded directories are pruned while enumerating the watch tree, so
       their files never reach this class (see ``is_excluded_dir``).
    2. A file is a candidate if its base name matches an included glob or its
       full path matches the fallback regular expression.
    3. A candidate whose base name matches an excluded glob is rejected.
    """

    def __init__(self, patterns: PatternSet):
        self.patterns = patterns
        self._cache: Dict[str, bool] = {}

    def is_excluded_dir(self, name: str) -> bool:
        """True if a directory with base name *name* must not be watched."""
        return matches_any(name, self.patterns.exclude_dirs)

    def is_candidate(self, path: str) -> bool:
        name = os.path.basename(path)
        if matches_any(name, self.patterns.include_files):
            return True
        fallback = self.patterns.fallback
        return fallback is not None and fallback.search(path) is not None

    def is_relevant(self, path: str) -> bool:
        """
        Return True if a change to *path* should trigger a restart.

        An empty path, which some notifiers report on internal errors, is
        never relevant.
        """
        if not path:
            return False

        cached = self._cache.get(path)
        if cached is not None:
            return cached

        relevant = self.is_candidate(path) and not matches_any(
            os.path.basename(path), self.patterns.exclude_files
        )

        if len(self._cache) >= _CACHE_LIMIT:
            self._cache.clear()
        self._cache[path] = relevant

        logger.debug(f"Relevance of {path}: {relevant}")
        return relevant
