from dataclasses import dataclass, field
import datetime
from typing import Dict, List, Optional

from . import config
from .filtering.tags import TagFilter


@dataclass
class PhotoRecord:
    """
    Metadata derived for a single source file.
    Keyed by absolute source path in RepositoryState.photos.
    """
    basename: str
    tags: List[str] = field(default_factory=list)   # lowercase, sorted
    date: Optional[datetime.date] = None


@dataclass
class RepositoryState:
    """
    Everything that is persisted to the cache document.
    """
    ingest_dirs: List[str] = field(default_factory=list)
    photos: Dict[str, PhotoRecord] = field(default_factory=dict)
    filter: TagFilter = field(default_factory=TagFilter)
    order: str = config.DEFAULT_ORDER
    link_type: str = config.DEFAULT_LINK_TYPE
