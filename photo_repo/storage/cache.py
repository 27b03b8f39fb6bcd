"""
JSON persistence for the repository state.

One document per output directory (config.CACHE_FILENAME):

    {
      "ingest_dirs": ["/abs/dir", ...],
      "photos": {"/abs/dir/a.jpg": {"tags": [...], "date": "2021-05-04", "basename": "a.jpg"}},
      "filter": {"required": [...], "disallowed": [...], "bool_expr": [...]},
      "order": "any",
      "link_type": "symbolic"
    }

Loading overlays only the fields that are present and non-null; an empty
list in the document is a real value and replaces the default.
"""
import json
import logging
import os
from datetime import date
from pathlib import Path
from typing import Any, Dict, List

from .. import config
from ..exceptions import CacheLoadError, ConfigurationError
from ..filtering.tags import TagFilter
from ..models import PhotoRecord, RepositoryState


class CacheStore:
    def __init__(self, path: Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self, state: RepositoryState):
        """
        Overlays the persisted document onto state.
        Raises CacheLoadError without modifying state if the document is
        unreadable or invalid.
        """
        try:
            with self.path.open('r', encoding='utf-8') as f:
                doc = json.load(f)
        except (OSError, ValueError) as e:
            raise CacheLoadError(f"Cannot read cache {self.path}: {e}") from e

        # Validate everything into a scratch state first, then copy across
        loaded = state_from_document(doc, self.path)

        if doc.get('ingest_dirs') is not None:
            state.ingest_dirs = loaded.ingest_dirs
        if doc.get('photos') is not None:
            state.photos = loaded.photos
        if doc.get('order') is not None:
            state.order = loaded.order
        if doc.get('link_type') is not None:
            state.link_type = loaded.link_type

        filt = doc.get('filter')
        if filt is not None:
            if filt.get('required') is not None:
                state.filter.set_required(loaded.filter.required)
            if filt.get('disallowed') is not None:
                state.filter.set_disallowed(loaded.filter.disallowed)
            if filt.get('bool_expr') is not None:
                state.filter.set_bool_expr(loaded.filter.bool_expr)

        logging.info(f"Loaded cache {self.path} ({len(state.photos)} photos)")

    def save(self, state: RepositoryState):
        """Writes the complete state, replacing the previous document."""
        doc = state_to_document(state)
        tmp_path = self.path.with_name(self.path.name + '.tmp')
        with tmp_path.open('w', encoding='utf-8') as f:
            json.dump(doc, f, indent=2, sort_keys=True)
            f.write('\n')
        os.replace(tmp_path, self.path)
        logging.info(f"Saved cache {self.path} ({len(state.photos)} photos)")


def state_to_document(state: RepositoryState) -> Dict[str, Any]:
    return {
        'ingest_dirs': list(state.ingest_dirs),
        'photos': {
            path: {
                'tags': sorted(rec.tags),
                'date': rec.date.isoformat() if rec.date else None,
                'basename': rec.basename,
            }
            for path, rec in state.photos.items()
        },
        'filter': {
            'required': sorted(state.filter.required),
            'disallowed': sorted(state.filter.disallowed),
            'bool_expr': state.filter.bool_expr,
        },
        'order': state.order,
        'link_type': state.link_type,
    }


def state_from_document(doc: Any, source: Path) -> RepositoryState:
    """
    Builds a fresh RepositoryState from a parsed document.
    Absent/null fields are left at their defaults.
    """
    if not isinstance(doc, dict):
        raise CacheLoadError(f"Cache {source} is not a JSON object")

    state = RepositoryState()
    try:
        if doc.get('ingest_dirs') is not None:
            state.ingest_dirs = _unique(_str_list(doc['ingest_dirs'], 'ingest_dirs'))

        if doc.get('photos') is not None:
            state.photos = _parse_photos(doc['photos'])

        filt = doc.get('filter')
        if filt is not None:
            if not isinstance(filt, dict):
                raise ValueError("'filter' must be an object")
            state.filter = TagFilter(
                required=_str_list(filt.get('required') or [], 'filter.required'),
                disallowed=_str_list(filt.get('disallowed') or [], 'filter.disallowed'),
                bool_expr=_str_list(filt.get('bool_expr') or [], 'filter.bool_expr'),
            )

        if doc.get('order') is not None:
            if doc['order'] not in config.ORDER_VALUES:
                raise ValueError(f"unknown order {doc['order']!r}")
            state.order = doc['order']

        if doc.get('link_type') is not None:
            if doc['link_type'] not in config.LINK_TYPES:
                raise ValueError(f"unknown link_type {doc['link_type']!r}")
            state.link_type = doc['link_type']

    except (ValueError, TypeError, ConfigurationError) as e:
        raise CacheLoadError(f"Corrupt cache {source}: {e}") from e

    return state


def _parse_photos(raw: Any) -> Dict[str, PhotoRecord]:
    if not isinstance(raw, dict):
        raise ValueError("'photos' must be an object")

    photos = {}
    for path, info in raw.items():
        if not isinstance(info, dict):
            raise ValueError(f"photo entry for {path!r} must be an object")
        raw_date = info.get('date')
        photos[path] = PhotoRecord(
            basename=str(info.get('basename') or Path(path).name),
            tags=sorted(set(_str_list(info.get('tags') or [], f"tags of {path}"))),
            date=date.fromisoformat(raw_date) if raw_date else None,
        )
    return photos


def _str_list(value: Any, field_name: str) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"'{field_name}' must be a list of strings")
    return value


def _unique(items: List[str]) -> List[str]:
    return list(dict.fromkeys(items))
