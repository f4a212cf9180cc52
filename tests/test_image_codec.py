"""Unit tests for the image codec."""

import base64
import io

import numpy as np
import pytest
from PIL import Image

from fit_vton.errors import InvalidImageFormat
from fit_vton.services import image_codec

from conftest import data_url, png_bytes


class TestDecode:
    """Tests for payload decoding."""

    def test_decode_data_url(self, person_png):
        """Data URLs are stripped and decoded."""
        assert image_codec.decode(data_url(person_png)) == person_png

    def test_decode_raw_base64(self, person_png):
        """Raw base64 is decoded."""
        assert image_codec.decode(base64.b64encode(person_png).decode()) == person_png

    def test_decode_jpeg_data_url(self):
        """Other image subtypes are accepted."""
        buffer = io.BytesIO()
        Image.new("RGB", (8, 8), (10, 20, 30)).save(buffer, format="JPEG")
        payload = f"data:image/jpeg;base64,{base64.b64encode(buffer.getvalue()).decode()}"
        assert image_codec.decode(payload) == buffer.getvalue()

    @pytest.mark.parametrize("payload", [
        "",
        "not base64 at all!",
        "data:text/plain;base64,aGVsbG8=",
        base64.b64encode(b"hello, not an image").decode(),
    ])
    def test_decode_rejects_invalid(self, payload):
        """Non-image payloads raise InvalidImageFormat."""
        with pytest.raises(InvalidImageFormat):
            image_codec.decode(payload)

    def test_oversized_image_is_invalid(self, monkeypatch, person_png):
        """Decompression-bomb sized images are rejected as bad input."""
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)

        with pytest.raises(InvalidImageFormat):
            image_codec.decode(data_url(person_png))
        with pytest.raises(InvalidImageFormat):
            image_codec.image_size(person_png)
        with pytest.raises(InvalidImageFormat):
            image_codec.open_image(person_png)


class TestResize:
    """Tests for cover/contain resizing."""

    def test_cover_fills_exact_size(self, person_png):
        out = image_codec.resize(person_png, 64, 32, mode="cover")
        with Image.open(io.BytesIO(out)) as img:
            assert img.size == (64, 32)

    def test_contain_pads_transparently(self):
        """A wide image in a square canvas keeps its aspect and gets transparent bars."""
        wide = png_bytes(Image.new("RGB", (200, 100), (0, 255, 0)))
        out = image_codec.resize(wide, 100, 100, mode="contain")
        with Image.open(io.BytesIO(out)) as img:
            assert img.size == (100, 100)
            assert img.mode == "RGBA"
            assert img.getpixel((50, 5))[3] == 0
            assert img.getpixel((50, 50))[3] == 255

    def test_resize_does_not_mutate_input(self, person_png):
        original = bytes(person_png)
        image_codec.resize(person_png, 10, 10, mode="contain")
        assert person_png == original

    def test_unknown_mode(self, person_png):
        with pytest.raises(ValueError):
            image_codec.resize(person_png, 10, 10, mode="stretch")


class TestTensor:
    """Tests for model-input conversion."""

    def test_tensor_shape_and_range(self, person_png):
        tensor = image_codec.to_tensor(person_png, size=256)
        assert tensor.shape == (256, 256, 3)
        assert tensor.dtype == np.float32
        assert tensor.min() >= 0.0
        assert tensor.max() <= 1.0

    def test_image_size(self, blank_png):
        assert image_codec.image_size(blank_png) == (128, 128)

    def test_encode_data_url(self, blank_png):
        url = image_codec.encode_data_url(blank_png)
        assert url.startswith("data:image/png;base64,")
        assert image_codec.decode(url) == blank_png

    def test_image_size_follows_exif_rotation(self):
        """A quarter-turn EXIF orientation reports the upright size, as open_image does."""
        exif = Image.Exif()
        exif[0x0112] = 6
        buffer = io.BytesIO()
        Image.new("RGB", (40, 20), (10, 20, 30)).save(buffer, format="JPEG", exif=exif)
        data = buffer.getvalue()

        assert image_codec.image_size(data) == (20, 40)
        assert image_codec.open_image(data).size == (20, 40)

    def test_portrait_tensor_keeps_whole_photo(self):
        """Letterboxing pads with the backdrop instead of cropping."""
        img = Image.new("RGB", (100, 200), (255, 255, 255))
        img.paste((0, 0, 0), (0, 0, 100, 10))  # dark band along the top edge
        img.paste((0, 0, 0), (0, 190, 100, 200))

        tensor = image_codec.to_tensor(png_bytes(img), size=64)

        assert tensor[0, 32].max() < 0.1
        assert tensor[63, 32].max() < 0.1
