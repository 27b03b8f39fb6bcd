import os
import logging
from pathlib import Path
from typing import Dict, Optional, Sequence

from tqdm import tqdm

from .. import config
from ..exceptions import FilesystemError
from ..scanning.filesystem import LocalFilesystem


class LinkReconciler:
    """
    Materializes the ordered photo list as photo_<i><ext> entries in the
    output directory.

    Every run is a full wipe followed by a full rebuild; there is no diffing
    against the previous link set and no rollback on failure.
    """
    def __init__(self, fs: Optional[LocalFilesystem] = None):
        self.fs = fs or LocalFilesystem()

    def reconcile(self, output_dir: Path, link_type: str, sources: Sequence[str]) -> Dict[str, str]:
        """
        Returns the link map (source path -> link path). The map describes the
        intended links even for the 'test' and 'none' link types.
        """
        if link_type not in config.LINK_TYPES:
            # Setters only ever store canonical values
            raise ValueError(f"Unknown link type {link_type!r}")

        output_dir = str(output_dir)

        # 1. Old links must be gone before new ones are created
        removed = self.remove_managed_links(output_dir)
        logging.info(f"Removed {removed} old links from {output_dir}")

        # 2. Create
        links: Dict[str, str] = {}
        for index, source in enumerate(tqdm(sources, desc="Linking", unit="photo")):
            dest = os.path.join(output_dir, link_name(index, source))
            links[source] = dest

            if link_type in (config.LINK_TEST, config.LINK_NONE):
                if link_type == config.LINK_TEST:
                    logging.debug(f"[TEST] {source} -> {dest}")
                continue

            try:
                if link_type == config.LINK_SYMBOLIC:
                    self.fs.symlink(source, dest)
                else:
                    self.fs.hard_link(source, dest)
            except OSError as e:
                raise FilesystemError(f"Failed to link {source} -> {dest}: {e}") from e

        logging.info(f"Reconciled {len(links)} links in {output_dir} (link_type={link_type})")
        return links

    def remove_managed_links(self, output_dir: str) -> int:
        try:
            names = self.fs.list_dir(output_dir)
        except OSError as e:
            raise FilesystemError(f"Cannot read output directory {output_dir}: {e}") from e

        count = 0
        for name in names:
            if not config.MANAGED_LINK_PATTERN.match(name):
                continue
            path = os.path.join(output_dir, name)
            try:
                self.fs.remove(path)
            except OSError as e:
                raise FilesystemError(f"Failed to remove {path}: {e}") from e
            count += 1
        return count


def link_name(index: int, source: str) -> str:
    """photo_<index> plus the source's original extension (case preserved)."""
    return f"{config.LINK_PREFIX}{index}{Path(source).suffix}"
