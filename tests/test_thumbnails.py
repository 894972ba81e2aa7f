"""
Tests for the thumbnail pipeline.
"""
import io
import os
import shutil
import tempfile
import unittest
from unittest.mock import MagicMock, patch

from PIL import Image

from photo_organizer.config import AppConfig
from photo_organizer.errors import DecodeError, EncodeError
from photo_organizer.thumbnails import (
    ImageCodec, PillowCodec, ThumbnailPipeline, compute_thumbnail_size, create_test_image,
)


def image_bytes(width, height, fmt='PNG', mode='RGB', color='red'):
    buffer = io.BytesIO()
    Image.new(mode, (width, height), color).save(buffer, format=fmt)
    return buffer.getvalue()


class TestComputeThumbnailSize(unittest.TestCase):
    """Test cases for the scaling rule."""

    def test_landscape_scaled_to_width(self):
        self.assertEqual(compute_thumbnail_size(800, 600, 200, 200), (200, 150))

    def test_portrait_scaled_to_height(self):
        self.assertEqual(compute_thumbnail_size(600, 1200, 200, 200), (100, 200))

    def test_small_image_not_upscaled(self):
        self.assertEqual(compute_thumbnail_size(100, 50, 200, 200), (100, 50))

    def test_extreme_aspect_ratio_keeps_one_pixel(self):
        self.assertEqual(compute_thumbnail_size(10000, 10, 200, 200), (200, 1))

    def test_invalid_dimensions(self):
        with self.assertRaises(ValueError):
            compute_thumbnail_size(0, 100, 200, 200)
        with self.assertRaises(ValueError):
            compute_thumbnail_size(100, 100, 0, 200)


class TestThumbnailPipeline(unittest.TestCase):
    """Test cases for ThumbnailPipeline with the Pillow codec."""

    def setUp(self):
        """Set up test fixtures."""
        self.pipeline = ThumbnailPipeline(AppConfig())

    def tearDown(self):
        """Tear down test fixtures."""
        self.pipeline.close()

    def test_resize_default_jpeg(self):
        """Test scaling and JPEG output with default settings."""
        result = self.pipeline.resize(image_bytes(800, 600))

        self.assertEqual((result.width, result.height), (200, 150))
        self.assertEqual(result.mime_type, 'image/jpeg')
        with Image.open(io.BytesIO(result.data)) as img:
            self.assertEqual(img.format, 'JPEG')
            self.assertEqual(img.size, (200, 150))

    def test_resize_png_with_alpha(self):
        """Test PNG output keeps the requested format."""
        result = self.pipeline.resize(image_bytes(300, 300, mode='RGBA', color=(0, 0, 255, 128)),
                                      max_width=100, max_height=100, fmt='image/png')

        with Image.open(io.BytesIO(result.data)) as img:
            self.assertEqual(img.format, 'PNG')
            self.assertEqual(img.size, (100, 100))

    def test_resize_rgba_to_jpeg(self):
        """Test that images with alpha can still be encoded as JPEG."""
        result = self.pipeline.resize(image_bytes(400, 200, mode='RGBA', color=(0, 255, 0, 255)))
        self.assertEqual((result.width, result.height), (200, 100))

    def test_small_image_keeps_size(self):
        """Test that images inside the bounds are not upscaled."""
        result = self.pipeline.resize(image_bytes(100, 50))
        self.assertEqual((result.width, result.height), (100, 50))

    def test_resize_from_path(self):
        """Test decoding from a file path."""
        temp_dir = tempfile.mkdtemp()
        try:
            path = os.path.join(temp_dir, "photo.png")
            with open(path, 'wb') as f:
                f.write(image_bytes(640, 480))
            result = self.pipeline.resize(path)
            self.assertEqual((result.width, result.height), (200, 150))
        finally:
            shutil.rmtree(temp_dir)

    def test_undecodable_source(self):
        """Test that garbage input raises DecodeError."""
        with self.assertRaises(DecodeError):
            self.pipeline.resize(b"definitely not an image")

    def test_unsupported_format(self):
        """Test that an unknown output format raises EncodeError."""
        with self.assertRaises(EncodeError):
            self.pipeline.resize(image_bytes(50, 50), fmt='image/gif')

    def test_invalid_quality(self):
        """Test that quality outside 0..1 raises EncodeError."""
        with self.assertRaises(EncodeError):
            self.pipeline.resize(image_bytes(50, 50), quality=1.5)

    def test_data_url(self):
        """Test data URL encoding of the result."""
        result = self.pipeline.resize(image_bytes(50, 50), fmt='image/webp')
        self.assertTrue(result.to_data_url().startswith("data:image/webp;base64,"))
        self.assertEqual(result.size_bytes, len(result.data))

    def test_submit_returns_future(self):
        """Test running resize on the worker pool."""
        future = self.pipeline.submit(image_bytes(800, 600), max_width=80, max_height=80)
        result = future.result(timeout=30)
        self.assertEqual((result.width, result.height), (80, 60))

    def test_thumbnail_or_original_falls_back(self):
        """Test that a failed thumbnail yields the original reference."""
        self.assertEqual(self.pipeline.thumbnail_or_original(b"broken", "/photos/a.jpg"), "/photos/a.jpg")
        self.assertIsNone(self.pipeline.thumbnail_or_original(b"broken"))

    def test_explicit_zero_bound_is_rejected(self):
        """Test that a zero bound is not replaced by the config default."""
        with self.assertRaises(ValueError):
            self.pipeline.resize(image_bytes(50, 50), max_width=0)
        with self.assertRaises(ValueError):
            self.pipeline.resize(image_bytes(50, 50), max_height=0)

    def test_oversized_image_falls_back(self):
        """Test that Pillow's decompression bomb guard becomes a DecodeError."""
        data = image_bytes(100, 100)
        with patch.object(Image, 'MAX_IMAGE_PIXELS', 1000):
            with self.assertRaises(DecodeError):
                self.pipeline.resize(data)
            self.assertEqual(self.pipeline.thumbnail_or_original(data, original_ref="orig"), "orig")

    def test_surfaces_released_when_encoding_fails(self):
        """Test that decode and render surfaces are released on failure."""
        codec = MagicMock(spec=ImageCodec)
        handle, surface = object(), object()
        codec.decode.return_value = handle
        codec.decode_dimensions.return_value = (800, 600)
        codec.render_scaled.return_value = surface
        codec.encode.side_effect = EncodeError("boom")
        pipeline = ThumbnailPipeline(AppConfig(), codec=codec)

        with self.assertRaises(EncodeError):
            pipeline.resize(b"data")

        codec.render_scaled.assert_called_once_with(handle, 200, 150)
        released = [call.args[0] for call in codec.release.call_args_list]
        self.assertIn(surface, released)
        self.assertIn(handle, released)

    def test_config_defaults_are_used(self):
        """Test that the pipeline bounds come from config."""
        config = AppConfig()
        config.thumbnail_max_width = 64
        config.thumbnail_max_height = 64
        config.thumbnail_format = 'image/png'
        pipeline = ThumbnailPipeline(config, codec=PillowCodec())

        result = pipeline.resize(image_bytes(128, 32))

        self.assertEqual((result.width, result.height), (64, 16))
        self.assertEqual(result.mime_type, 'image/png')


class TestPillowCodec(unittest.TestCase):
    """Test cases for PillowCodec decoding failures."""

    def setUp(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()
        self.codec = PillowCodec()

    def tearDown(self):
        """Clean up after tests."""
        shutil.rmtree(self.temp_dir)

    def test_truncated_file_raises_decode_error(self):
        """Test that a JPEG cut short on disk fails to decode."""
        buffer = io.BytesIO()
        Image.effect_noise((400, 300), 64).convert('RGB').save(buffer, format='JPEG', quality=95)
        data = buffer.getvalue()
        path = os.path.join(self.temp_dir, "truncated.jpg")
        with open(path, 'wb') as f:
            f.write(data[:len(data) // 2])

        with self.assertRaises(DecodeError):
            self.codec.decode(path)

    def test_image_closed_when_load_fails(self):
        """Test that an opened image is closed when reading its pixels fails."""
        img = MagicMock()
        img.load.side_effect = OSError("image file is truncated")

        with patch('photo_organizer.thumbnails.Image.open', return_value=img):
            with self.assertRaises(DecodeError):
                self.codec.decode("/photos/truncated.jpg")

        img.close.assert_called_once_with()


class TestCreateTestImage(unittest.TestCase):
    """Test cases for the generated test image."""

    def test_creates_png_of_requested_size(self):
        data = create_test_image(width=320, height=240)
        with Image.open(io.BytesIO(data)) as img:
            self.assertEqual(img.format, 'PNG')
            self.assertEqual(img.size, (320, 240))
            # Top-left is the gradient start colour, bottom-right the end colour
            for actual, expected in zip(img.getpixel((0, 0)), (0x66, 0x7e, 0xea)):
                self.assertAlmostEqual(actual, expected, delta=3)
            for actual, expected in zip(img.getpixel((319, 239)), (0x76, 0x4b, 0xa2)):
                self.assertAlmostEqual(actual, expected, delta=3)


if __name__ == '__main__':
    unittest.main()
