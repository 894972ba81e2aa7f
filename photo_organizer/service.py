"""
Catalog service: owns the current snapshot and exposes every catalog operation.
"""

import base64
import datetime
import os
import threading
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from tqdm import tqdm

from . import bulk_actions, catalog_store, scheduling, tabular
from .caption_providers import CaptionProvider
from .captions import CaptionRequest, build_caption_prompt
from .catalog_store import BRAND, PHOTOGRAPHER, CatalogStatistics
from .config import AppConfig
from .errors import NotFoundError, PersistenceError, ThumbnailError
from .filter_engine import FilteredView, PhotoFilter
from .logging_setup import get_logger
from .models import Brand, CatalogSnapshot, Photo, Photographer
from .persistence import SnapshotStore
from .thumbnails import ThumbnailPipeline, create_test_image
from .utils import guess_mime_type, is_image_mime_type, new_id, now

logger = get_logger(__name__)

SAMPLE_PHOTOGRAPHERS = [
    'Alex Rodriguez',
    'Maria Santos',
    'David Chen',
    'Sarah Johnson',
    'Carlos Mendez',
]

SAMPLE_BRANDS = [
    'Fashion Nova',
    'Pretty Little Thing',
    'Shein',
    'Zara',
    'H&M',
    'Nike',
    'Adidas',
    'Revolve',
]


class CatalogService:
    """
    Single owner of the catalog.

    Every mutation computes a complete new snapshot and swaps it in under a
    lock; if the computation raises, the current snapshot is kept. Saving is
    explicit through the injected SnapshotStore.
    """

    def __init__(self, store: SnapshotStore, config: Optional[AppConfig] = None,
                 pipeline: Optional[ThumbnailPipeline] = None,
                 caption_provider: Optional[CaptionProvider] = None,
                 clock: Callable[[], datetime.datetime] = now):
        """
        Initialize the service with an empty catalog.

        Args:
            store: Persistence port for load/save
            config: Application configuration
            pipeline: Thumbnail pipeline (built from config when omitted)
            caption_provider: Text-generation collaborator (optional)
            clock: Source of timestamps for created_at/updated_at
        """
        self.store = store
        self.config = config or AppConfig()
        self.pipeline = pipeline or ThumbnailPipeline(self.config)
        self.caption_provider = caption_provider
        self.clock = clock
        self._snapshot = CatalogSnapshot()
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Snapshot handling
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> CatalogSnapshot:
        return self._snapshot

    def _commit(self, operation: Callable[[CatalogSnapshot], CatalogSnapshot]) -> CatalogSnapshot:
        with self._lock:
            updated = operation(self._snapshot)
            self._snapshot = updated
            return updated

    def load(self) -> bool:
        """
        Replace the in-memory catalog with the stored one.

        Returns:
            True if loaded, False if the store failed (catalog left unchanged)
        """
        try:
            loaded = self.store.load()
        except PersistenceError as e:
            logger.error(f"Failed to load saved data: {str(e)}")
            return False
        with self._lock:
            self._snapshot = loaded
        logger.info(f"Loaded catalog: {len(loaded.photos)} photos, "
                    f"{len(loaded.photographers)} photographers, {len(loaded.brands)} brands")
        return True

    def save(self) -> bool:
        """
        Write the current snapshot to the store.

        Failures are logged and reported; the in-memory catalog stays
        authoritative and the next successful save supersedes the failed one.

        Returns:
            True if saved, False otherwise
        """
        snapshot = self._snapshot
        try:
            self.store.save(snapshot)
        except PersistenceError as e:
            logger.error(f"Error saving catalog (revision {snapshot.revision}): {str(e)}")
            return False
        logger.debug(f"Saved catalog revision {snapshot.revision}")
        return True

    def close(self) -> None:
        """Release the thumbnail worker pool."""
        self.pipeline.close()

    # ------------------------------------------------------------------
    # Photos
    # ------------------------------------------------------------------

    def get_photo(self, photo_id: str) -> Photo:
        photo = self._snapshot.get_photo(photo_id)
        if photo is None:
            raise NotFoundError("photo", photo_id)
        return photo

    def new_photo(self, name: str, original_url: str, size_bytes: int, mime_type: str,
                  thumbnail: Optional[str] = None) -> Photo:
        """Build a photo record with a fresh id and creation timestamps."""
        stamp = self.clock()
        return Photo(id=new_id("photo"), name=name, original_url=original_url,
                     thumbnail=thumbnail, size_bytes=size_bytes, mime_type=mime_type,
                     created_at=stamp, updated_at=stamp)

    def add_photo(self, photo: Photo) -> Photo:
        self._commit(lambda snap: catalog_store.add_photo(snap, photo))
        return photo

    def add_photos_from_files(self, paths: Sequence[str], show_progress: bool = False) -> Tuple[List[Photo], List[str]]:
        """
        Catalog image files, generating a thumbnail for each.

        Non-image files are skipped. Thumbnails are produced on the pipeline's
        worker pool; a failed thumbnail leaves the photo without one.

        Args:
            paths: Files to add
            show_progress: Display a tqdm progress bar

        Returns:
            Tuple of (added photos, skipped paths)
        """
        accepted = []
        skipped = []
        for path in paths:
            mime_type = guess_mime_type(path)
            if not os.path.isfile(path) or not is_image_mime_type(mime_type):
                logger.warning(f"Skipping non-image file: {path}")
                skipped.append(path)
                continue
            accepted.append((os.path.abspath(path), mime_type))

        pending = [(path, mime_type, self.pipeline.submit(path)) for path, mime_type in accepted]

        photos = []
        for path, mime_type, future in tqdm(pending, desc="Adding photos", unit="photo",
                                            disable=not show_progress):
            try:
                thumbnail = future.result().to_data_url()
            except (ThumbnailError, ValueError) as e:
                logger.warning(f"Thumbnail generation failed for {path}, using original: {str(e)}")
                thumbnail = None
            photos.append(self.new_photo(
                name=os.path.basename(path),
                original_url=path,
                size_bytes=os.path.getsize(path),
                mime_type=mime_type,
                thumbnail=thumbnail,
            ))

        self._commit(lambda snap: catalog_store.add_photos(snap, photos))
        logger.info(f"Uploaded {len(photos)} photo{'s' if len(photos) != 1 else ''}")
        return photos, skipped

    def add_test_image(self) -> Photo:
        """Add a generated gradient image so the catalog can be tried without real photos."""
        stamp = self.clock()
        data = create_test_image(timestamp=stamp)
        thumbnail = self.pipeline.thumbnail_or_original(data)
        original = f"data:image/png;base64,{base64.b64encode(data).decode('utf-8')}"
        photo = self.new_photo(
            name=f"test-image-{int(stamp.timestamp() * 1000)}.png",
            original_url=original,
            size_bytes=len(data),
            mime_type='image/png',
            thumbnail=thumbnail,
        )
        return self.add_photo(photo)

    def update_photo(self, photo_id: str, **fields) -> Photo:
        """
        Edit one photo.

        Raises:
            NotFoundError: If no photo has this id
            ValueError: If a field is not editable
        """
        stamp = self.clock()
        snapshot = self._commit(lambda snap: catalog_store.update_photo(snap, photo_id, fields, stamp))
        return snapshot.get_photo(photo_id)

    def remove_photos(self, photo_ids: Iterable[str]) -> int:
        """Delete photos; unknown ids are ignored. Returns the number removed."""
        photo_ids = list(photo_ids)
        before = len(self._snapshot.photos)
        snapshot = self._commit(lambda snap: catalog_store.remove_photos(snap, photo_ids))
        removed = before - len(snapshot.photos)
        logger.info(f"Deleted {removed} photo{'s' if removed != 1 else ''}")
        return removed

    # ------------------------------------------------------------------
    # Photographers and brands
    # ------------------------------------------------------------------

    def add_photographer(self, name: str) -> Photographer:
        created = []

        def operation(snap):
            snap, record = catalog_store.add_photographer(snap, name)
            created.append(record)
            return snap

        self._commit(operation)
        logger.info(f"Photographer added: {created[0].name}")
        return created[0]

    def add_brand(self, name: str) -> Brand:
        created = []

        def operation(snap):
            snap, record = catalog_store.add_brand(snap, name)
            created.append(record)
            return snap

        self._commit(operation)
        logger.info(f"Brand added: {created[0].name}")
        return created[0]

    def remove_photographer(self, photographer_id: str) -> None:
        self._commit(lambda snap: catalog_store.remove_photographer(snap, photographer_id))

    def remove_brand(self, brand_id: str) -> None:
        self._commit(lambda snap: catalog_store.remove_brand(snap, brand_id))

    def import_names(self, kind: str, text: str) -> int:
        """Import a newline separated name list; returns how many were new."""
        names = tabular.parse_names(text)
        counts = []

        def operation(snap):
            snap, added = catalog_store.import_names(snap, kind, names)
            counts.append(added)
            return snap

        self._commit(operation)
        return counts[0]

    def export_names(self, kind: str) -> str:
        records = self._snapshot.photographers if kind == PHOTOGRAPHER else self._snapshot.brands
        return tabular.export_names(record.name for record in records)

    def load_sample_data(self) -> Tuple[int, int]:
        """
        Add the sample photographers and brands, skipping names already present.

        Returns:
            Tuple of (photographers added, brands added)
        """
        counts: Dict[str, int] = {}

        def operation(snap):
            snap, counts[PHOTOGRAPHER] = catalog_store.import_names(snap, PHOTOGRAPHER, SAMPLE_PHOTOGRAPHERS)
            snap, counts[BRAND] = catalog_store.import_names(snap, BRAND, SAMPLE_BRANDS)
            return snap

        self._commit(operation)
        logger.info(f"Loaded {counts[PHOTOGRAPHER]} photographers and {counts[BRAND]} brands")
        return counts[PHOTOGRAPHER], counts[BRAND]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def filtered_view(self, photo_filter: PhotoFilter = PhotoFilter()) -> FilteredView:
        return FilteredView(lambda: self._snapshot, photo_filter)

    def statistics(self) -> CatalogStatistics:
        return catalog_store.catalog_statistics(self._snapshot)

    def export_csv(self, photo_filter: PhotoFilter = PhotoFilter()) -> str:
        return tabular.export_photos_csv(self.filtered_view(photo_filter))

    def export_html(self, photo_filter: PhotoFilter = PhotoFilter()) -> str:
        return tabular.export_photos_html(self.filtered_view(photo_filter))

    # ------------------------------------------------------------------
    # Quick actions
    # ------------------------------------------------------------------

    def apply_quick_action(self, photo_ids: Iterable[str], template: bulk_actions.BulkUpdate) -> int:
        """
        Apply a bulk update to the selection.

        Returns:
            Number of selected photos found in the catalog

        Raises:
            EmptySelectionError: If nothing is selected
        """
        selection = set(photo_ids)
        stamp = self.clock()
        snapshot = self._commit(lambda snap: bulk_actions.apply_bulk_update(snap, selection, template, stamp))
        return sum(1 for photo in snapshot.photos if photo.id in selection)

    # ------------------------------------------------------------------
    # Calendar
    # ------------------------------------------------------------------

    def assign(self, photo_id: str, date: datetime.date) -> Photo:
        stamp = self.clock()
        snapshot = self._commit(lambda snap: scheduling.assign(
            snap, photo_id, date, stamp, clear_time=self.config.clear_time_on_reassign))
        return snapshot.get_photo(photo_id)

    def unassign(self, photo_id: str) -> Photo:
        stamp = self.clock()
        snapshot = self._commit(lambda snap: scheduling.unassign(snap, photo_id, stamp))
        return snapshot.get_photo(photo_id)

    def month_grid(self, year: int, month: int,
                   today: Optional[datetime.date] = None) -> List[scheduling.CalendarCell]:
        return scheduling.build_month_grid(self._snapshot.photos, year, month, today)

    def unscheduled_photos(self) -> List[Photo]:
        return scheduling.unscheduled_photos(self._snapshot.photos)

    def scheduled_photos_for_month(self, year: int, month: int) -> List[Photo]:
        return scheduling.scheduled_photos_for_month(self._snapshot.photos, year, month)

    # ------------------------------------------------------------------
    # Captions
    # ------------------------------------------------------------------

    def caption_request(self, photo_id: Optional[str] = None, **overrides) -> CaptionRequest:
        if photo_id is None:
            return CaptionRequest(**overrides)
        return CaptionRequest.from_photo(self.get_photo(photo_id), **overrides)

    def caption_prompt(self, photo_id: Optional[str] = None, **overrides) -> str:
        return build_caption_prompt(self.caption_request(photo_id, **overrides))

    def generate_caption(self, prompt: str) -> Optional[str]:
        """
        Hand a prompt to the caption collaborator and return its text as-is.

        Returns:
            Caption text, or None when no provider is configured or the call failed
        """
        if self.caption_provider is None:
            logger.warning("No caption provider configured; returning prompt only")
            return None
        return self.caption_provider.generate_caption(prompt)
