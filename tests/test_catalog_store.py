"""
Tests for the catalog store module.
"""
import datetime
import unittest

from photo_organizer import catalog_store
from photo_organizer.catalog_store import BRAND, PHOTOGRAPHER
from photo_organizer.errors import DuplicateNameError, InvalidNameError, NotFoundError
from photo_organizer.models import CatalogSnapshot, Photo, Priority

CREATED = datetime.datetime(2024, 3, 1, 9, 30)


def make_photo(photo_id, **fields):
    values = dict(id=photo_id, name=f"{photo_id}.jpg", original_url=f"/photos/{photo_id}.jpg",
                  size_bytes=2048, mime_type="image/jpeg", created_at=CREATED, updated_at=CREATED)
    values.update(fields)
    return Photo(**values)


class TestPhotoOperations(unittest.TestCase):
    """Test cases for photo CRUD."""

    def setUp(self):
        """Set up test fixtures."""
        self.snapshot = catalog_store.add_photos(CatalogSnapshot(), [make_photo("p1"), make_photo("p2")])

    def test_add_photo_appends_and_bumps_revision(self):
        """Test that adding a photo appends it to the end."""
        updated = catalog_store.add_photo(self.snapshot, make_photo("p3"))

        self.assertEqual(updated.photo_ids(), ("p1", "p2", "p3"))
        self.assertEqual(updated.revision, self.snapshot.revision + 1)
        self.assertEqual(self.snapshot.photo_ids(), ("p1", "p2"))

    def test_add_photos_empty_is_noop(self):
        """Test that adding no photos returns the same snapshot."""
        self.assertIs(catalog_store.add_photos(self.snapshot, []), self.snapshot)

    def test_update_photo_changes_only_given_fields(self):
        """Test a partial update keeps untouched fields."""
        stamp = datetime.datetime(2024, 3, 2, 12, 0)
        updated = catalog_store.update_photo(
            self.snapshot, "p1", {'photographer': "Maria Santos", 'priority': "high"}, stamp)

        photo = updated.get_photo("p1")
        self.assertEqual(photo.photographer, "Maria Santos")
        self.assertEqual(photo.priority, Priority.HIGH)
        self.assertEqual(photo.name, "p1.jpg")
        self.assertEqual(photo.updated_at, stamp)
        self.assertEqual(photo.created_at, CREATED)
        # Input snapshot untouched
        self.assertIsNone(self.snapshot.get_photo("p1").photographer)

    def test_update_photo_converts_brand_list(self):
        """Test that brands are stored as a tuple."""
        updated = catalog_store.update_photo(self.snapshot, "p2", {'brands': ["Nike", "Zara"]})
        self.assertEqual(updated.get_photo("p2").brands, ("Nike", "Zara"))

    def test_update_photo_unknown_id(self):
        """Test updating a missing photo raises NotFoundError."""
        with self.assertRaises(NotFoundError) as ctx:
            catalog_store.update_photo(self.snapshot, "missing", {'name': "x"})
        self.assertEqual(str(ctx.exception), "Photo not found: missing")

    def test_update_photo_rejects_unknown_field(self):
        """Test that non-editable fields are rejected."""
        with self.assertRaises(ValueError):
            catalog_store.update_photo(self.snapshot, "p1", {'id': "other"})
        with self.assertRaises(ValueError):
            catalog_store.update_photo(self.snapshot, "p1", {'created_at': CREATED})

    def test_update_photo_rejects_cleared_priority(self):
        """Test that priority cannot be set to None."""
        with self.assertRaises(ValueError):
            catalog_store.update_photo(self.snapshot, "p1", {'priority': None})

    def test_duplicate_photo_id_rejected(self):
        """Test that single and batch adds both reject an id already present."""
        with self.assertRaises(ValueError):
            catalog_store.add_photo(self.snapshot, make_photo("p1"))
        with self.assertRaises(ValueError):
            catalog_store.add_photos(self.snapshot, [make_photo("p3"), make_photo("p2")])
        with self.assertRaises(ValueError):
            catalog_store.add_photos(self.snapshot, [make_photo("p3"), make_photo("p3")])
        self.assertEqual(self.snapshot.photo_ids(), ("p1", "p2"))

    def test_update_photo_rejects_bare_brand_string(self):
        """Test that a single brand name is not split into characters."""
        with self.assertRaises(ValueError):
            catalog_store.update_photo(self.snapshot, "p1", {'brands': "Nike"})
        with self.assertRaises(ValueError):
            make_photo("p9", brands="Nike")
        self.assertEqual(self.snapshot.get_photo("p1").brands, ())

    def test_update_photo_parses_schedule_strings(self):
        """Test that ISO date and HH:MM strings are stored as typed values."""
        updated = catalog_store.update_photo(
            self.snapshot, "p1", {'scheduled_date': "2024-03-15", 'scheduled_time': " 09:30 "})

        photo = updated.get_photo("p1")
        self.assertEqual(photo.scheduled_date, datetime.date(2024, 3, 15))
        self.assertEqual(photo.scheduled_time, "09:30")

        updated = catalog_store.update_photo(
            updated, "p1", {'scheduled_date': datetime.datetime(2024, 4, 1, 8, 0)})
        self.assertEqual(updated.get_photo("p1").scheduled_date, datetime.date(2024, 4, 1))

    def test_update_photo_rejects_invalid_schedule(self):
        """Test that bad dates and times raise ValueError."""
        for fields in ({'scheduled_date': "15/03/2024"}, {'scheduled_date': 20240315},
                       {'scheduled_time': "25:00"}, {'scheduled_time': 930}):
            with self.assertRaises(ValueError):
                catalog_store.update_photo(self.snapshot, "p1", fields)

    def test_remove_photos(self):
        """Test removing several photos at once, ignoring unknown ids."""
        updated = catalog_store.remove_photos(self.snapshot, ["p1", "nope"])
        self.assertEqual(updated.photo_ids(), ("p2",))

    def test_remove_photos_nothing_matched(self):
        """Test that removing only unknown ids leaves the snapshot as is."""
        self.assertIs(catalog_store.remove_photos(self.snapshot, ["nope"]), self.snapshot)


class TestNamedEntities(unittest.TestCase):
    """Test cases for photographer and brand records."""

    def test_add_photographer_trims_name(self):
        """Test that names are trimmed and get an id."""
        snapshot, record = catalog_store.add_photographer(CatalogSnapshot(), "  Alex Rodriguez ")

        self.assertEqual(record.name, "Alex Rodriguez")
        self.assertTrue(record.id.startswith("photographer_"))
        self.assertEqual(snapshot.photographers, (record,))

    def test_add_rejects_blank_name(self):
        """Test that blank names are rejected."""
        for name in ("", "   ", None):
            with self.assertRaises(InvalidNameError):
                catalog_store.add_brand(CatalogSnapshot(), name)

    def test_add_rejects_case_insensitive_duplicate(self):
        """Test that duplicates are detected regardless of case."""
        snapshot, _ = catalog_store.add_brand(CatalogSnapshot(), "Nike")

        with self.assertRaises(DuplicateNameError) as ctx:
            catalog_store.add_brand(snapshot, " nike ")
        self.assertEqual(str(ctx.exception), "Brand already exists: nike")

    def test_same_name_allowed_across_kinds(self):
        """Test that photographer and brand names are independent."""
        snapshot, _ = catalog_store.add_photographer(CatalogSnapshot(), "Zara")
        snapshot, brand = catalog_store.add_brand(snapshot, "Zara")
        self.assertEqual(brand.name, "Zara")

    def test_remove_keeps_soft_references(self):
        """Test that photos keep a deleted photographer's name."""
        snapshot, record = catalog_store.add_photographer(CatalogSnapshot(), "David Chen")
        snapshot = catalog_store.add_photo(snapshot, make_photo("p1", photographer="David Chen"))

        snapshot = catalog_store.remove_photographer(snapshot, record.id)

        self.assertEqual(snapshot.photographers, ())
        self.assertEqual(snapshot.get_photo("p1").photographer, "David Chen")

    def test_remove_unknown_id_is_noop(self):
        """Test removing an unknown brand id."""
        snapshot, _ = catalog_store.add_brand(CatalogSnapshot(), "Shein")
        self.assertIs(catalog_store.remove_brand(snapshot, "brand_missing"), snapshot)

    def test_import_names_skips_blanks_and_duplicates(self):
        """Test bulk import de-duplication."""
        snapshot, _ = catalog_store.add_brand(CatalogSnapshot(), "Nike")

        snapshot, added = catalog_store.import_names(
            snapshot, BRAND, ["Adidas", "", "  ", "NIKE", "adidas", " Zara "])

        self.assertEqual(added, 2)
        self.assertEqual([b.name for b in snapshot.brands], ["Nike", "Adidas", "Zara"])

    def test_import_names_nothing_new(self):
        """Test that an import adding nothing returns the same snapshot."""
        snapshot = CatalogSnapshot()
        result, added = catalog_store.import_names(snapshot, PHOTOGRAPHER, ["", " "])
        self.assertIs(result, snapshot)
        self.assertEqual(added, 0)

    def test_unknown_kind(self):
        """Test that an unknown collection kind is rejected."""
        with self.assertRaises(ValueError):
            catalog_store.add_named(CatalogSnapshot(), "model", "Someone")


class TestStatistics(unittest.TestCase):
    """Test cases for dashboard counts."""

    def test_catalog_statistics(self):
        """Test tagged and scheduled counts."""
        snapshot = catalog_store.add_photos(CatalogSnapshot(), [
            make_photo("p1", photographer="Maria Santos"),
            make_photo("p2", brands=("Nike",), scheduled_date=datetime.date(2024, 3, 5)),
            make_photo("p3", photographer=""),
        ])
        snapshot, _ = catalog_store.add_photographer(snapshot, "Maria Santos")
        snapshot, _ = catalog_store.add_brand(snapshot, "Nike")
        snapshot, _ = catalog_store.add_brand(snapshot, "Zara")

        stats = catalog_store.catalog_statistics(snapshot)

        self.assertEqual(stats.total_photos, 3)
        self.assertEqual(stats.tagged_photos, 2)
        self.assertEqual(stats.scheduled_photos, 1)
        self.assertEqual(stats.total_contacts, 3)


if __name__ == '__main__':
    unittest.main()
