# Test fixtures and configuration
import base64
import io
import sys
from pathlib import Path

import numpy as np
import pytest
from PIL import Image, ImageDraw

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fit_vton.config import EngineConfig
from fit_vton.inference import LandmarkEstimator, RegionSegmenter
from fit_vton.models import Landmark


def png_bytes(img: Image.Image) -> bytes:
    output = io.BytesIO()
    img.save(output, format="PNG")
    return output.getvalue()


def data_url(data: bytes) -> str:
    return f"data:image/png;base64,{base64.b64encode(data).decode()}"


def coco_landmarks(confidence: float = 0.9) -> list[Landmark]:
    """A plausible standing pose in normalized coordinates, COCO-17 order."""
    points = [
        (0.50, 0.10), (0.52, 0.08), (0.48, 0.08), (0.54, 0.09), (0.46, 0.09),
        (0.60, 0.20), (0.40, 0.20),
        (0.65, 0.35), (0.35, 0.35),
        (0.68, 0.48), (0.32, 0.48),
        (0.56, 0.52), (0.44, 0.52),
        (0.55, 0.72), (0.45, 0.72),
        (0.55, 0.90), (0.45, 0.90),
    ]
    return [Landmark(index=i, x=x, y=y, confidence=confidence) for i, (x, y) in enumerate(points)]


class FakeEstimator(LandmarkEstimator):
    """Returns a fixed landmark list and counts calls."""

    def __init__(self, landmarks=None):
        self.landmarks = coco_landmarks() if landmarks is None else landmarks
        self.calls = 0

    def estimate(self, tensor):
        self.calls += 1
        return list(self.landmarks)


class FakeSegmenter(RegionSegmenter):

    def __init__(self, present: bool = True):
        self.present = present
        self.calls = 0

    def segment(self, tensor):
        self.calls += 1
        if not self.present:
            return None
        return np.ones(tensor.shape[:2], dtype=np.float32)


@pytest.fixture
def person_png():
    """256x256 white backdrop with a dark standing figure."""
    img = Image.new("RGB", (256, 256), (255, 255, 255))
    draw = ImageDraw.Draw(img)
    draw.rectangle((96, 20, 160, 240), fill=(30, 40, 90))
    return png_bytes(img)


@pytest.fixture
def blank_png():
    """Uniform backdrop with nobody in frame."""
    return png_bytes(Image.new("RGB", (128, 128), (255, 255, 255)))


@pytest.fixture
def garment_png():
    """Red shirt-like shape on a transparent 100x120 canvas."""
    img = Image.new("RGBA", (100, 120), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.rectangle((20, 10, 80, 110), fill=(200, 30, 30, 255))
    draw.rectangle((0, 10, 20, 50), fill=(200, 30, 30, 255))
    draw.rectangle((80, 10, 100, 50), fill=(200, 30, 30, 255))
    return png_bytes(img)


@pytest.fixture
def person_data_url(person_png):
    return data_url(person_png)


@pytest.fixture
def garment_data_url(garment_png):
    return data_url(garment_png)


@pytest.fixture
def engine_config():
    return EngineConfig(_env_file=None)


@pytest.fixture
def tryon_payload(person_data_url, garment_data_url):
    return {
        "userImage": person_data_url,
        "garmentImage": garment_data_url,
        "garmentType": "top",
        "userId": "user-123",
        "autoDelete": True,
    }
