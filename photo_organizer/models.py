"""
Entity model for the photo catalog.

Records are frozen dataclasses; every mutation produces a new record and a
new CatalogSnapshot via dataclasses.replace.
"""

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class Priority(Enum):
    """Editorial priority of a photo."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @classmethod
    def parse(cls, value) -> 'Priority':
        """Accept a Priority or its name in any case."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Invalid priority: {value!r} (expected LOW, MEDIUM or HIGH)")


@dataclass(frozen=True)
class Photo:
    """A catalogued photographic asset."""
    id: str
    name: str
    original_url: str
    size_bytes: int
    mime_type: str
    created_at: datetime.datetime
    updated_at: datetime.datetime
    thumbnail: Optional[str] = None
    photographer: Optional[str] = None  # soft reference by name
    brands: Tuple[str, ...] = ()  # soft references, duplicates allowed
    description: Optional[str] = None
    hashtags: Optional[str] = None
    location: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    scheduled_date: Optional[datetime.date] = None
    scheduled_time: Optional[str] = None  # "HH:MM"

    def __post_init__(self):
        # Normalise list input so snapshots stay hashable and immutable
        if isinstance(self.brands, str):
            raise ValueError(f"Brands must be a list of names, not a string: {self.brands!r}")
        if not isinstance(self.brands, tuple):
            object.__setattr__(self, 'brands', tuple(self.brands))
        if not isinstance(self.priority, Priority):
            object.__setattr__(self, 'priority', Priority.parse(self.priority))

    @property
    def display_url(self) -> str:
        """Thumbnail when available, otherwise the original asset."""
        return self.thumbnail or self.original_url

    @property
    def is_scheduled(self) -> bool:
        return self.scheduled_date is not None

    @property
    def is_tagged(self) -> bool:
        return bool(self.photographer) or len(self.brands) > 0


@dataclass(frozen=True)
class Photographer:
    id: str
    name: str


@dataclass(frozen=True)
class Brand:
    id: str
    name: str


# Photo attributes that edit and bulk operations are allowed to change
EDITABLE_PHOTO_FIELDS = frozenset({
    'name', 'original_url', 'thumbnail', 'size_bytes', 'mime_type',
    'photographer', 'brands', 'description', 'hashtags', 'location',
    'priority', 'scheduled_date', 'scheduled_time',
})


@dataclass(frozen=True)
class CatalogSnapshot:
    """Complete, immutable state of the catalog at one revision."""
    photos: Tuple[Photo, ...] = ()
    photographers: Tuple[Photographer, ...] = ()
    brands: Tuple[Brand, ...] = ()
    revision: int = field(default=0, compare=False)

    def get_photo(self, photo_id: str) -> Optional[Photo]:
        for photo in self.photos:
            if photo.id == photo_id:
                return photo
        return None

    def photo_ids(self) -> Tuple[str, ...]:
        return tuple(photo.id for photo in self.photos)
