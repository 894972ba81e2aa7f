"""
Snapshot persistence.

The catalog is stored wholesale as three JSON arrays (photos, photographers,
brands). Dates are ISO-8601 strings and absent optional values are null.
"""

import datetime
import json
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .errors import PersistenceError
from .logging_setup import get_logger
from .models import Brand, CatalogSnapshot, Photo, Photographer, Priority

logger = get_logger(__name__)

PHOTOS_FILE = "photos.json"
PHOTOGRAPHERS_FILE = "photographers.json"
BRANDS_FILE = "brands.json"


def _parse_datetime(value: Optional[str]) -> Optional[datetime.datetime]:
    if value is None:
        return None
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    return datetime.datetime.fromisoformat(text)


def _parse_date(value: Optional[str]) -> Optional[datetime.date]:
    if value is None:
        return None
    text = value.strip()
    if len(text) == 10:
        return datetime.date.fromisoformat(text)
    # Older snapshots stored a full timestamp for the publish day
    return _parse_datetime(text).date()


def photo_to_dict(photo: Photo) -> Dict[str, Any]:
    return {
        'id': photo.id,
        'name': photo.name,
        'originalUrl': photo.original_url,
        'thumbnail': photo.thumbnail,
        'size': photo.size_bytes,
        'type': photo.mime_type,
        'photographer': photo.photographer,
        'brands': list(photo.brands),
        'description': photo.description,
        'hashtags': photo.hashtags,
        'location': photo.location,
        'priority': photo.priority.value,
        'scheduledDate': photo.scheduled_date.isoformat() if photo.scheduled_date else None,
        'scheduledTime': photo.scheduled_time,
        'createdAt': photo.created_at.isoformat(),
        'updatedAt': photo.updated_at.isoformat(),
    }


def photo_from_dict(data: Dict[str, Any]) -> Photo:
    """
    Rehydrate a photo record.

    Raises:
        KeyError: If a required field is missing
        ValueError: If a date or priority is malformed
    """
    return Photo(
        id=data['id'],
        name=data['name'],
        original_url=data.get('originalUrl', ''),
        thumbnail=data.get('thumbnail'),
        size_bytes=int(data.get('size') or 0),
        mime_type=data.get('type') or '',
        photographer=data.get('photographer'),
        brands=tuple(data.get('brands') or ()),
        description=data.get('description'),
        hashtags=data.get('hashtags'),
        location=data.get('location'),
        priority=Priority.parse(data.get('priority') or Priority.MEDIUM.value),
        scheduled_date=_parse_date(data.get('scheduledDate')),
        scheduled_time=data.get('scheduledTime'),
        created_at=_parse_datetime(data['createdAt']),
        updated_at=_parse_datetime(data['updatedAt']),
    )


def named_to_dict(entity) -> Dict[str, str]:
    return {'id': entity.id, 'name': entity.name}


def snapshot_to_documents(snapshot: CatalogSnapshot) -> Dict[str, List[Dict[str, Any]]]:
    """Serialise a snapshot into the three independent arrays."""
    return {
        PHOTOS_FILE: [photo_to_dict(photo) for photo in snapshot.photos],
        PHOTOGRAPHERS_FILE: [named_to_dict(p) for p in snapshot.photographers],
        BRANDS_FILE: [named_to_dict(b) for b in snapshot.brands],
    }


def snapshot_from_documents(documents: Dict[str, Optional[List[Dict[str, Any]]]]) -> CatalogSnapshot:
    """
    Rebuild a snapshot from the three arrays; a missing array is treated as empty.

    Raises:
        PersistenceError: If a record is malformed
    """
    try:
        photos = tuple(photo_from_dict(item) for item in documents.get(PHOTOS_FILE) or [])
        photographers = tuple(Photographer(id=item['id'], name=item['name'])
                              for item in documents.get(PHOTOGRAPHERS_FILE) or [])
        brands = tuple(Brand(id=item['id'], name=item['name'])
                       for item in documents.get(BRANDS_FILE) or [])
    except (KeyError, TypeError, ValueError) as e:
        raise PersistenceError(f"Malformed catalog data: {str(e)}") from e
    return CatalogSnapshot(photos=photos, photographers=photographers, brands=brands)


class SnapshotStore(ABC):
    """Port through which the catalog service loads and saves snapshots."""

    @abstractmethod
    def load(self) -> CatalogSnapshot:
        """Read the stored catalog. Raises PersistenceError."""

    @abstractmethod
    def save(self, snapshot: CatalogSnapshot) -> None:
        """Replace the stored catalog. Raises PersistenceError."""


class JsonFileSnapshotStore(SnapshotStore):
    """Stores each collection as a JSON file inside a directory."""

    def __init__(self, directory: str):
        """
        Initialize the store.

        Args:
            directory: Directory holding photos.json, photographers.json and brands.json
        """
        self.directory = os.path.abspath(os.path.expanduser(directory))

    def _path(self, name: str) -> str:
        return os.path.join(self.directory, name)

    def load(self) -> CatalogSnapshot:
        documents = {}
        for name in (PHOTOS_FILE, PHOTOGRAPHERS_FILE, BRANDS_FILE):
            path = self._path(name)
            if not os.path.exists(path):
                documents[name] = []
                continue
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    documents[name] = json.load(f)
            except (IOError, json.JSONDecodeError) as e:
                logger.error(f"Error loading {path}: {str(e)}")
                raise PersistenceError(f"Failed to load saved data from {path}: {str(e)}") from e

        snapshot = snapshot_from_documents(documents)
        logger.debug(f"Loaded {len(snapshot.photos)} photos, {len(snapshot.photographers)} photographers, "
                     f"{len(snapshot.brands)} brands from {self.directory}")
        return snapshot

    def save(self, snapshot: CatalogSnapshot) -> None:
        try:
            os.makedirs(self.directory, exist_ok=True)
            for name, document in snapshot_to_documents(snapshot).items():
                self._write_atomic(self._path(name), document)
        except (IOError, OSError, TypeError) as e:
            logger.error(f"Error saving catalog to {self.directory}: {str(e)}")
            raise PersistenceError(f"Failed to save catalog: {str(e)}") from e

    def _write_atomic(self, path: str, document: List[Dict[str, Any]]) -> None:
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix='.', suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise


class InMemorySnapshotStore(SnapshotStore):
    """Keeps serialised documents in memory; used for tests and dry runs."""

    def __init__(self):
        self.documents: Dict[str, str] = {}
        self.save_count = 0

    def load(self) -> CatalogSnapshot:
        return snapshot_from_documents({name: json.loads(text) for name, text in self.documents.items()})

    def save(self, snapshot: CatalogSnapshot) -> None:
        self.documents = {name: json.dumps(document)
                          for name, document in snapshot_to_documents(snapshot).items()}
        self.save_count += 1
