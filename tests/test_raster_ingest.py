"""Tests for raster ingestion."""
import numpy as np
import pytest
from PIL import Image

from lowpoly.raster_ingest import (
    fit_to_pixel_limit,
    ingest,
    ingest_from_array,
    save_png,
)
from lowpoly.types import InvalidInputError


class TestFitToPixelLimit:
    """Test source downscaling dimensions."""

    def test_within_limit_unchanged(self):
        assert fit_to_pixel_limit(640, 480, 8_000_000) == (640, 480)
        assert fit_to_pixel_limit(100, 100, 10_000) == (100, 100)

    def test_scaled_and_truncated(self):
        """12 MP at an 8 MP limit scales by sqrt(2/3) and truncates."""
        assert fit_to_pixel_limit(4000, 3000, 8_000_000) == (3265, 2449)

    def test_result_within_limit(self):
        for width, height in [(5000, 5000), (9999, 170), (3000, 4000)]:
            w, h = fit_to_pixel_limit(width, height, 1_000_000)
            assert w * h <= 1_000_000
            assert w >= 1 and h >= 1


class TestIngest:
    """Test loading image files."""

    def test_ingest_rgb_png(self, circle_png):
        buffer = ingest(circle_png)

        assert (buffer.width, buffer.height) == (64, 64)
        assert buffer.data.shape == (64, 64, 4)
        assert np.all(buffer.data[..., 3] == 255)
        assert buffer.rgb_at(32, 32) == (255, 100, 100)
        assert buffer.rgb_at(0, 0) == (255, 255, 255)

    def test_ingest_downscales(self, circle_png):
        buffer = ingest(circle_png, pixel_limit=1024)
        assert (buffer.width, buffer.height) == (32, 32)

    def test_ingest_grayscale_file(self, tmp_path):
        path = tmp_path / "gray.png"
        Image.fromarray(np.full((5, 6), 90, dtype=np.uint8)).save(path)

        buffer = ingest(path)

        assert buffer.data.shape == (5, 6, 4)
        assert buffer.rgb_at(2, 2) == (90, 90, 90)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ingest(tmp_path / "nope.png")

    def test_directory(self, tmp_path):
        with pytest.raises(InvalidInputError):
            ingest(tmp_path)

    def test_not_an_image(self, tmp_path):
        path = tmp_path / "fake.png"
        path.write_text("not an image")

        with pytest.raises(InvalidInputError):
            ingest(path)


class TestIngestFromArray:
    """Test in-memory ingestion."""

    def test_rgb_gets_opaque_alpha(self):
        rgb = np.zeros((3, 4, 3), dtype=np.uint8)
        rgb[..., 1] = 200

        buffer = ingest_from_array(rgb)

        assert buffer.data.shape == (3, 4, 4)
        assert np.all(buffer.data[..., 3] == 255)
        assert buffer.rgb_at(0, 0) == (0, 200, 0)

    def test_alpha_is_kept(self):
        rgba = np.full((2, 2, 4), 10, dtype=np.uint8)
        buffer = ingest_from_array(rgba)
        np.testing.assert_array_equal(buffer.data, rgba)

    def test_gray_is_expanded(self):
        buffer = ingest_from_array(np.full((4, 4), 33, dtype=np.uint8))
        assert buffer.rgb_at(1, 1) == (33, 33, 33)

    def test_float_image_converted(self):
        image = np.ones((4, 4, 3), dtype=np.float64)
        image[0, 0] = 0.0

        buffer = ingest_from_array(image)

        assert buffer.data.dtype == np.uint8
        assert buffer.rgb_at(0, 0) == (0, 0, 0)
        assert buffer.rgb_at(3, 3) == (255, 255, 255)

    def test_array_downscaled(self):
        buffer = ingest_from_array(np.zeros((40, 40, 3), dtype=np.uint8), pixel_limit=400)
        assert (buffer.width, buffer.height) == (20, 20)

    @pytest.mark.parametrize("shape", [(0, 5, 3), (5, 0, 3), (4, 4, 2), (4, 4, 3, 1)])
    def test_rejects_bad_shapes(self, shape):
        with pytest.raises(InvalidInputError):
            ingest_from_array(np.zeros(shape, dtype=np.uint8))

    def test_rejects_non_array(self):
        with pytest.raises(InvalidInputError):
            ingest_from_array([[1, 2], [3, 4]])


class TestSavePng:
    """Test PNG output."""

    def test_save_png(self, tmp_path, circle_buffer):
        path = save_png(circle_buffer, tmp_path / "out.png")

        with Image.open(path) as img:
            assert img.mode == 'RGBA'
            assert img.size == (64, 64)
            np.testing.assert_array_equal(np.array(img), circle_buffer.data)
