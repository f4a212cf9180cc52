"""Overlay a placed garment onto the subject photo."""

from PIL import Image, ImageChops

from ..models import Placement
from . import image_codec


def composite(subject_bytes: bytes, garment_bytes: bytes, placement: Placement) -> str:
    """Blend the garment onto the subject at the placement and return a PNG data URL.

    The garment is overlay-blended with the underlying pixels (not pasted), and
    its own alpha channel limits the blend to the garment's footprint.
    """
    subject = image_codec.open_image(subject_bytes, "RGB")
    garment = image_codec.open_image(garment_bytes, "RGBA")

    size = placement.garment_size(subject.width, subject.height)
    garment = garment.resize(size, Image.Resampling.BILINEAR)
    left, top = round(placement.x), round(placement.y)

    # crop() pads out-of-bounds areas; paste() clips them again
    region = subject.crop((left, top, left + size[0], top + size[1]))
    blended = ImageChops.overlay(region, garment.convert("RGB"))
    subject.paste(blended, (left, top), mask=garment.getchannel("A"))

    return image_codec.encode_data_url(image_codec.to_png(subject))
