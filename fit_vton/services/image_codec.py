"""Image codec: transfer-encoded payloads <-> raw image bytes <-> model tensors."""

import base64
import binascii
import io
import re
from typing import NamedTuple

import numpy as np
from PIL import ExifTags, Image, ImageOps, UnidentifiedImageError

from ..errors import InvalidImageFormat

DATA_URL_RE = re.compile(r"^data:image/[a-zA-Z0-9.+-]+;base64,", re.IGNORECASE)

RESIZE_MODES = ("cover", "contain")

# Pillow raises DecompressionBombError (not an OSError) for oversized images
UNREADABLE_IMAGE_ERRORS = (UnidentifiedImageError, OSError, Image.DecompressionBombError)


class ContentBox(NamedTuple):
    """Where a letterboxed photo sits inside the square model input, in tensor pixels."""
    left: int
    top: int
    width: int
    height: int


def decode(payload: str | bytes) -> bytes:
    """Decode a base64 image payload (data URL or raw base64) into image bytes.

    Raises:
        InvalidImageFormat: if the payload is not base64 or not an image.
    """
    if isinstance(payload, bytes):
        payload = payload.decode("ascii", errors="strict") if payload.isascii() else ""
    if not payload:
        raise InvalidImageFormat()

    if payload.startswith("data:"):
        if not DATA_URL_RE.match(payload):
            raise InvalidImageFormat()
        _, payload = payload.split(",", 1)

    try:
        raw_bytes = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageFormat() from e

    _verify(raw_bytes)
    return raw_bytes


def _verify(data: bytes) -> None:
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
    except UNREADABLE_IMAGE_ERRORS + (SyntaxError,) as e:
        raise InvalidImageFormat() from e


def open_image(data: bytes, mode: str = "RGB") -> Image.Image:
    """Open image bytes as a fully loaded PIL image in the given mode."""
    try:
        img = Image.open(io.BytesIO(data))
        img = ImageOps.exif_transpose(img)
        return img.convert(mode)
    except UNREADABLE_IMAGE_ERRORS as e:
        raise InvalidImageFormat() from e


def image_size(data: bytes) -> tuple[int, int]:
    """Return the upright (width, height), as open_image sees it, without decoding pixels."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
            # EXIF orientations 5-8 are quarter turns
            if img.getexif().get(ExifTags.Base.Orientation, 1) in (5, 6, 7, 8):
                return height, width
            return width, height
    except UNREADABLE_IMAGE_ERRORS as e:
        raise InvalidImageFormat() from e


def to_png(img: Image.Image) -> bytes:
    output = io.BytesIO()
    img.save(output, format="PNG")
    return output.getvalue()


def resize(data: bytes, width: int, height: int, mode: str = "cover") -> bytes:
    """Resize image bytes to exactly width x height, returning new PNG bytes.

    ``cover`` scales to fill and centre-crops the overflow. ``contain`` scales
    to fit and pads the remainder with transparent pixels, so nothing is lost.
    """
    if mode not in RESIZE_MODES:
        raise ValueError(f"Unknown resize mode: {mode!r} (expected one of {RESIZE_MODES})")

    if mode == "cover":
        img = open_image(data, "RGB")
        fitted = ImageOps.fit(img, (width, height), method=Image.Resampling.BILINEAR)
        return to_png(fitted)

    img = open_image(data, "RGBA")
    ratio = min(width / img.width, height / img.height)
    new_size = (
        min(width, max(1, round(img.width * ratio))),
        min(height, max(1, round(img.height * ratio))),
    )
    img = img.resize(new_size, Image.Resampling.BILINEAR)
    canvas = Image.new("RGBA", (width, height), (255, 255, 255, 0))
    canvas.paste(img, ((width - img.width) // 2, (height - img.height) // 2))
    return to_png(canvas)


def letterbox_box(width: int, height: int, size: int = 256) -> ContentBox:
    """Placement of a width x height photo scaled to fit, centred, in a size x size square."""
    ratio = size / max(width, height)
    fitted_w = min(size, max(1, round(width * ratio)))
    fitted_h = min(size, max(1, round(height * ratio)))
    return ContentBox((size - fitted_w) // 2, (size - fitted_h) // 2, fitted_w, fitted_h)


def border_colour(img: Image.Image) -> tuple[int, int, int]:
    """Median RGB of the outermost pixel ring."""
    pixels = np.asarray(img.convert("RGB"))
    ring = np.concatenate([pixels[0], pixels[-1], pixels[:, 0], pixels[:, -1]])
    return tuple(int(c) for c in np.median(ring, axis=0))


def to_tensor(data: bytes, size: int = 256) -> np.ndarray:
    """Letterbox to size x size and return a float32 HxWx3 array in [0, 1].

    The whole photo is kept (see ``letterbox_box`` for where it lands); the
    padding takes the photo's border colour so the backdrop stays uniform.
    """
    img = open_image(data, "RGB")
    box = letterbox_box(img.width, img.height, size)
    canvas = Image.new("RGB", (size, size), border_colour(img))
    canvas.paste(img.resize((box.width, box.height), Image.Resampling.BILINEAR), (box.left, box.top))
    return np.asarray(canvas, dtype=np.float32) / 255.0


def encode_data_url(data: bytes, fmt: str = "png") -> str:
    """Encode image bytes as a data URL."""
    return f"data:image/{fmt};base64,{base64.b64encode(data).decode('utf-8')}"
