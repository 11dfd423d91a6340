import os
import logging
from pathlib import Path
from typing import Iterator, Set, Optional, List, Iterable

from .. import config
from ..exceptions import AnalysisError


class DiskScanner:
    """
    Walks a footage tree and yields candidate files by extension.
    Unreadable directories are logged and skipped; the rest of the tree is still scanned.
    """

    def __init__(self, skip_dirs: Optional[Set[Path]] = None):
        self.skip_dirs = skip_dirs or set()

    def ensure_readable(self, root: Path):
        """Raises AnalysisError if root is missing, not a directory or cannot be listed."""
        if not root.exists():
            raise AnalysisError(f"Source path {root} does not exist.")
        if not root.is_dir():
            raise AnalysisError(f"Source path {root} is not a directory.")
        try:
            with os.scandir(root) as it:
                next(it, None)
        except OSError as e:
            raise AnalysisError(f"Cannot read source path {root}: {e}") from e

    def find_sidecars(self, root: Path) -> List[Path]:
        return list(self.iter_files(root, config.SIDECAR_EXTS))

    def find_videos(self, root: Path) -> List[Path]:
        return list(self.iter_files(root, config.VIDEO_EXTS))

    def iter_files(self, root: Path, exts: Iterable[str]) -> Iterator[Path]:
        wanted = {e.lower() for e in exts}
        for path in self._iter_files(root):
            # AppleDouble resource forks share the extension but hold no media
            if path.name.startswith("._"):
                continue
            if path.suffix.lower() in wanted:
                yield path

    def _iter_files(self, root: Path) -> Iterator[Path]:
        """Depth-first walker using os.scandir for speed."""
        stack = [root]
        while stack:
            current = stack.pop()
            if self.skip_dirs and any(sd == current or sd in current.parents for sd in self.skip_dirs):
                continue

            try:
                with os.scandir(current) as it:
                    entries = list(it)
            except OSError as e:
                logging.warning(f"Skipping unreadable directory {current}: {e}")
                continue

            # Sort for stable traversal order
            entries.sort(key=lambda e: e.name.lower())

            dirs = []
            files = []
            for e in entries:
                try:
                    if e.is_dir(follow_symlinks=False):
                        dirs.append(Path(e.path))
                    elif e.is_file(follow_symlinks=False):
                        files.append(Path(e.path))
                except OSError as err:
                    logging.warning(f"Cannot stat {e.path}: {err}")

            # Push dirs to stack (reversed so we process A before Z)
            for d in reversed(dirs):
                stack.append(d)

            for f in files:
                yield f
