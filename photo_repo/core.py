import os
import logging
import random
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from . import config
from .exceptions import CacheLoadError, ConfigurationError, FilesystemError
from .models import PhotoRecord, RepositoryState
from .organization.linker import LinkReconciler
from .organization.ordering import order_photos, validate_order
from .scanning.filesystem import LocalFilesystem, PhotoScanner
from .storage.cache import CacheStore


class PhotoRepository:
    """
    A filtered, linked view of a photo collection, rooted at an output
    directory that holds the managed links and the cache document.

    Typical cycle:
        repo = PhotoRepository(out_dir)
        repo.add_ingest_dir(src)
        repo.add_filter(required=["beach"])
        repo.update()   # rebuild -> filter -> order -> link -> save
    """
    def __init__(self,
                 output_dir: Path,
                 fs: Optional[LocalFilesystem] = None,
                 rng: Optional[random.Random] = None):
        self.output_dir = Path(output_dir).resolve()
        if not self.output_dir.is_dir():
            raise FilesystemError(f"Output directory does not exist: {self.output_dir}")

        self.fs = fs or LocalFilesystem()
        self.rng = rng or random.Random()
        self.scanner = PhotoScanner(self.fs)
        self.linker = LinkReconciler(self.fs)
        self.cache = CacheStore(self.output_dir / config.CACHE_FILENAME)

        self.state = RepositoryState()
        self.links: Dict[str, str] = {}
        self.load_error: Optional[CacheLoadError] = None

        if self.cache.exists():
            try:
                self.cache.load(self.state)
            except CacheLoadError as e:
                # Keep defaults, and never overwrite the (possibly good) cache with them
                logging.error(f"{e}. Using defaults; saving is disabled until the error is dismissed.")
                self.load_error = e

    # --- State access ---

    @property
    def ingest_dirs(self) -> List[str]:
        return list(self.state.ingest_dirs)

    @property
    def photos(self) -> Dict[str, PhotoRecord]:
        return self.state.photos

    @property
    def filter(self):
        return self.state.filter

    @property
    def order(self) -> str:
        return self.state.order

    @property
    def link_type(self) -> str:
        return self.state.link_type

    @property
    def safe_to_save(self) -> bool:
        return self.load_error is None

    def dismiss_load_error(self):
        """Accepts the defaults after a failed cache load and re-enables saving."""
        if self.load_error is not None:
            logging.warning(f"Dismissed cache load error: {self.load_error}")
        self.load_error = None

    # --- Mutators ---

    def add_ingest_dir(self, path: Path):
        """Registers a directory for scanning. Callers validate that it exists."""
        abs_path = os.path.abspath(str(path))
        if abs_path not in self.state.ingest_dirs:
            self.state.ingest_dirs.append(abs_path)

    def remove_ingest_dir(self, path: Path):
        abs_path = os.path.abspath(str(path))
        if abs_path in self.state.ingest_dirs:
            self.state.ingest_dirs.remove(abs_path)

    def add_filter(self,
                   required: Iterable[str] = (),
                   disallowed: Iterable[str] = (),
                   bool_expr: Iterable[str] = ()):
        self.state.filter.add(required=required, disallowed=disallowed, bool_expr=bool_expr)

    def set_required(self, tags: Iterable[str]):
        self.state.filter.set_required(tags)

    def set_disallowed(self, tags: Iterable[str]):
        self.state.filter.set_disallowed(tags)

    def set_bool_expr(self, exprs: Iterable[str]):
        self.state.filter.set_bool_expr(exprs)

    def set_order(self, order: str):
        self.state.order = validate_order(order)

    def set_link_type(self, alias: str):
        link_type = config.LINK_TYPE_ALIASES.get(alias)
        if link_type is None:
            allowed = ', '.join(config.LINK_TYPE_ALIASES)
            raise ConfigurationError(f"Invalid link type {alias!r}; expected one of: {allowed}")
        self.state.link_type = link_type

    # --- Pipeline ---

    def rebuild(self):
        """Discards all photo metadata and re-walks every ingest directory."""
        self.state.photos = {}
        # The output dir may live inside an ingest dir; never ingest our own links
        self.state.photos = self.scanner.rebuild(self.state.ingest_dirs, skip_dirs=[self.output_dir])

    def each_photo(self) -> Iterator[Tuple[str, PhotoRecord]]:
        """Yields (path, record) for every photo passing the filter, in store order."""
        for path, record in self.state.photos.items():
            if self.state.filter.matches(set(record.tags)):
                yield path, record

    def selected_photos(self) -> List[str]:
        """The filtered photo paths in link order."""
        return order_photos([path for path, _ in self.each_photo()], self.state.order, self.rng)

    def reconcile_links(self) -> Dict[str, str]:
        self.links = self.linker.reconcile(self.output_dir, self.state.link_type, self.selected_photos())
        return self.links

    def update(self) -> Dict[str, str]:
        """
        Full update cycle. Any failure propagates before the save, leaving the
        previous cache document untouched.
        """
        self.rebuild()
        links = self.reconcile_links()
        logging.info(f"{len(links)} of {len(self.state.photos)} photos selected")
        self.save()
        return links

    def save(self):
        if not self.safe_to_save:
            logging.debug(f"Not saving {self.cache.path}: previous load failed ({self.load_error})")
            return
        self.cache.save(self.state)
