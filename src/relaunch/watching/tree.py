"""
Watch tree enumeration.

Walks the watch root top-down and returns every directory that must be
watched. Excluded directories are pruned in place so nothing below them is
ever visited, let alone watched.
"""

import logging
import os
from pathlib import Path
from typing import Callable, List

from ..validation import WatchSetupError

logger = logging.getLogger(__name__)


def enumerate_watch_targets(
    root: Path,
    recursive: bool = True,
    is_excluded_dir: Callable[[str], bool] = lambda name: False,
) -> List[Path]:
    """
    Return the directories to watch under *root*.

    Args:
        root: Watch root; always part of the result.
        recursive: Descend into subdirectories.
        is_excluded_dir: Predicate on a directory base name; a True result
            skips that directory and its whole subtree.

    Returns:
        Watch targets in walk order, root first.

    Raises:
        WatchSetupError: If the root or any subdirectory cannot be listed.
    """
    root = Path(root)
    if not root.is_dir():
        raise WatchSetupError(f"Watch root is not a directory: {root}")

    if not recursive:
        return [root]

    def _on_walk_error(error: OSError) -> None:
        raise WatchSetupError(f"Cannot enumerate {error.filename}: {error.strerror or error}") from error

    targets: List[Path] = []
    for dirpath, dirnames, _ in os.walk(root, topdown=True, onerror=_on_walk_error):
        targets.append(Path(dirpath))
        skipped = [d for d in dirnames if is_excluded_dir(d)]
        for name in skipped:
            logger.debug(f"Skipping excluded directory: {os.path.join(dirpath, name)}")
        dirnames[:] = sorted(d for d in dirnames if d not in skipped)

    logger.info(f"Enumerated {len(targets)} directories under {root}")
    return targets
