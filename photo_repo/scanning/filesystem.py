import os
import logging
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..exceptions import FilesystemError
from ..metadata.naming import extract_tags, parse_entry_name
from ..models import PhotoRecord


class LocalFilesystem:
    """
    Thin wrapper over the OS primitives the repository needs.
    Swappable in tests; every method raises OSError on failure.
    """
    def list_dir(self, path: str) -> List[str]:
        return os.listdir(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def creation_time(self, path: str) -> float:
        try:
            st = os.stat(path)
        except FileNotFoundError:
            # Dangling symlink: use the link itself
            st = os.lstat(path)
        # Birth time where the platform records it, inode change time otherwise
        return getattr(st, 'st_birthtime', st.st_ctime)

    def symlink(self, source: str, dest: str):
        os.symlink(source, dest)

    def hard_link(self, source: str, dest: str):
        os.link(source, dest)

    def remove(self, path: str):
        os.unlink(path)


class PhotoScanner:
    """
    Builds the path -> PhotoRecord mapping for a set of ingest directories.
    Tags of every enclosing directory below the ingest root are inherited
    by the files beneath it.
    """
    def __init__(self, fs: Optional[LocalFilesystem] = None):
        self.fs = fs or LocalFilesystem()

    def rebuild(self,
                ingest_dirs: Iterable[str],
                skip_dirs: Optional[Iterable[str]] = None) -> Dict[str, PhotoRecord]:
        """
        Walks every ingest directory from scratch.
        Directories in skip_dirs (e.g. the output directory) are pruned with
        everything below them.
        Raises FilesystemError if any directory cannot be listed.
        """
        skip = {os.path.realpath(str(d)) for d in (skip_dirs or ())}
        photos: Dict[str, PhotoRecord] = {}
        for root in ingest_dirs:
            before = len(photos)
            logging.info(f"Ingest dir: {root}")
            self._walk(os.path.abspath(root), photos, skip)
            logging.info(f"Found {len(photos) - before} files under {root}")
        return photos

    def _walk(self, root: str, photos: Dict[str, PhotoRecord], skip: Set[str]):
        """Depth-first walk with an explicit stack of (dir, inherited tags)."""
        stack: List[Tuple[str, Set[str]]] = [(root, set())]
        while stack:
            current, inherited = stack.pop()
            if skip and os.path.realpath(current) in skip:
                logging.debug(f"Skipping {current}")
                continue

            try:
                names = self.fs.list_dir(current)
            except OSError as e:
                raise FilesystemError(f"Cannot read directory {current}: {e}") from e

            logging.debug(f"Scanning {current} ({len(names)} entries, tags={sorted(inherited)})")

            subdirs = []
            for name in names:
                path = os.path.join(current, name)
                if self.fs.is_dir(path):
                    subdirs.append((path, inherited | extract_tags(name)))
                    continue

                photos[path] = self._make_record(path, name, inherited)

            # Reversed so that siblings are visited in listing order
            stack.extend(reversed(subdirs))

    def _make_record(self, path: str, name: str, inherited: Set[str]) -> PhotoRecord:
        info = parse_entry_name(name)
        taken = info.date
        if taken is None:
            # No date in the filename? Get it from file metadata.
            try:
                taken = date.fromtimestamp(self.fs.creation_time(path))
            except OSError as e:
                raise FilesystemError(f"Cannot stat {path}: {e}") from e

        return PhotoRecord(
            basename=Path(path).name,
            tags=sorted(inherited | info.tags),
            date=taken,
        )
