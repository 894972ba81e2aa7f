"""
Tests for CSV/HTML export and name-list import.
"""
import datetime
import unittest

from photo_organizer.models import Photo, Priority
from photo_organizer.tabular import export_names, export_photos_csv, export_photos_html, parse_names

CREATED = datetime.datetime(2024, 3, 1, 9, 30)


def make_photo(photo_id, **fields):
    values = dict(id=photo_id, name=f"{photo_id}.jpg", original_url=f"/photos/{photo_id}.jpg",
                  size_bytes=1024, mime_type="image/jpeg", created_at=CREATED, updated_at=CREATED)
    values.update(fields)
    return Photo(**values)


class TestCsvExport(unittest.TestCase):
    """Test cases for export_photos_csv."""

    def test_header_only_for_no_photos(self):
        """Test the bare header line."""
        self.assertEqual(export_photos_csv([]),
                         "Name,Photographer,Brands,Scheduled Date,Description,Hashtags,Location,Priority")

    def test_rows_fully_quoted(self):
        """Test quoting, brand joining and empty fields."""
        photos = [
            make_photo("a", name="Beach.jpg", photographer="Maria Santos", brands=("Nike", "Zara"),
                       scheduled_date=datetime.date(2024, 3, 15), priority=Priority.HIGH),
            make_photo("b", name='Say "cheese".jpg', description="line one, two"),
        ]

        lines = export_photos_csv(photos).split('\n')

        self.assertEqual(len(lines), 3)
        self.assertEqual(lines[1], '"Beach.jpg","Maria Santos","Nike, Zara","2024-03-15","","","","HIGH"')
        self.assertEqual(lines[2], '"Say ""cheese"".jpg","","","","line one, two","","","MEDIUM"')


class TestNameLists(unittest.TestCase):
    """Test cases for name export/import."""

    def test_export_names(self):
        self.assertEqual(export_names(["Nike", "Zara"]), "Nike\nZara")
        self.assertEqual(export_names([]), "")

    def test_parse_names_trims_and_drops_blanks(self):
        text = "  Nike \r\n\nZara\n   \nH&M"
        self.assertEqual(parse_names(text), ["Nike", "Zara", "H&M"])


class TestHtmlExport(unittest.TestCase):
    """Test cases for export_photos_html."""

    def test_table_escapes_values_and_uses_preview(self):
        """Test the image column and escaping."""
        photos = [
            make_photo("a", name="<b>bold</b>.jpg", thumbnail="data:image/jpeg;base64,AAA"),
            make_photo("b", brands=("H&M",)),
        ]

        markup = export_photos_html(photos)

        self.assertTrue(markup.startswith("<table"))
        self.assertIn("<th>Image</th><th>Name</th>", markup)
        self.assertIn('src="data:image/jpeg;base64,AAA"', markup)
        self.assertIn('src="/photos/b.jpg"', markup)
        self.assertIn("&lt;b&gt;bold&lt;/b&gt;.jpg", markup)
        self.assertIn("<td>H&amp;M</td>", markup)
        self.assertEqual(markup.count("<tr>"), 3)


if __name__ == '__main__':
    unittest.main()
