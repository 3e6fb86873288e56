"""Geometry pipeline: pure Pillow transforms around the remote call.

Two transforms reconcile the service's native aspect ratios with the sizes
the user asked for:

cover_fit
    Pre-process for background templates.  The image is scaled by
    ``max(target_w / w, target_h / h)`` so that it covers the target frame,
    then the overflow is cropped symmetrically on both axes, the same
    result as CSS ``object-fit: cover``.

center_crop
    Post-process for every generated image.  The source is trimmed
    symmetrically on the one axis that is relatively too long, and the crop
    region is mapped onto an exact ``target_w x target_h`` raster.  An image
    that already has the target size passes through unchanged.

Both transforms are deterministic and never touch the network; the byte
helpers are the only places where image data is decoded or encoded.
"""

from __future__ import annotations

import io
import logging

from PIL import Image, UnidentifiedImageError

from mockstudio.core.errors import ImageProcessingError

logger = logging.getLogger(__name__)

_RESAMPLE = Image.Resampling.LANCZOS


def _check_target(target_w: int, target_h: int) -> None:
    if target_w <= 0 or target_h <= 0:
        raise ValueError(f"Target size must be positive, got {target_w}x{target_h}")


def cover_fit(image: Image.Image, target_w: int, target_h: int) -> Image.Image:
    """Scale and crop *image* so it exactly fills ``target_w x target_h``.

    Args:
        image: Source image of any size.
        target_w: Width of the output raster.
        target_h: Height of the output raster.

    Returns:
        A new image of exactly ``target_w x target_h`` pixels.
    """
    _check_target(target_w, target_h)
    src_w, src_h = image.size
    scale = max(target_w / src_w, target_h / src_h)

    # Region of the source that remains visible once the scaled image is
    # centred in the target frame.
    visible_w = target_w / scale
    visible_h = target_h / scale
    left = (src_w - visible_w) / 2
    top = (src_h - visible_h) / 2
    box = (left, top, left + visible_w, top + visible_h)

    return image.resize((target_w, target_h), resample=_RESAMPLE, box=box)


def center_crop(image: Image.Image, target_w: int, target_h: int) -> Image.Image:
    """Crop *image* symmetrically to the target ratio and emit the target size.

    Args:
        image: Source image, typically the raster returned by the service.
        target_w: Width of the output raster.
        target_h: Height of the output raster.

    Returns:
        A new image of exactly ``target_w x target_h`` pixels.
    """
    _check_target(target_w, target_h)
    src_w, src_h = image.size

    if (src_w, src_h) == (target_w, target_h):
        return image.copy()

    source_ratio = src_w / src_h
    target_ratio = target_w / target_h

    if source_ratio > target_ratio:
        crop_w = src_h * target_ratio
        left = (src_w - crop_w) / 2
        box = (left, 0.0, left + crop_w, float(src_h))
    else:
        crop_h = src_w / target_ratio
        top = (src_h - crop_h) / 2
        box = (0.0, top, float(src_w), top + crop_h)

    return image.resize((target_w, target_h), resample=_RESAMPLE, box=box)


# ---------------------------------------------------------------------------
# Byte-level helpers.
# ---------------------------------------------------------------------------


def load_image(data: bytes) -> Image.Image:
    """Decode raw image bytes into a fully loaded Pillow image.

    Raises:
        ImageProcessingError: If the bytes are not a readable image.
    """
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise ImageProcessingError(f"Could not decode image data: {exc}") from exc
    return image


def encode_image(image: Image.Image, format: str = "PNG") -> bytes:
    """Encode *image* into bytes in the given Pillow format."""
    if image.mode in ("CMYK", "YCbCr") or (
        format.upper() == "JPEG" and image.mode not in ("RGB", "L")
    ):
        image = image.convert("RGB")
    buffer = io.BytesIO()
    try:
        image.save(buffer, format=format)
    except (OSError, ValueError, KeyError) as exc:
        raise ImageProcessingError(f"Could not encode image as {format}: {exc}") from exc
    return buffer.getvalue()


def sniff_mime_type(data: bytes, default: str = "image/png") -> str:
    """Return the MIME type of encoded image bytes.

    Raises:
        ImageProcessingError: If the bytes are not a readable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            fmt = image.format
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise ImageProcessingError(f"Could not identify image data: {exc}") from exc
    if fmt == "MPO":
        # Multi-picture phone JPEGs; the primary frame is a plain JPEG.
        return "image/jpeg"
    return Image.MIME.get(fmt or "", default)


def cover_fit_bytes(data: bytes, target_w: int, target_h: int) -> bytes:
    """Cover-fit encoded image bytes and return PNG bytes."""
    image = load_image(data)
    fitted = cover_fit(image, target_w, target_h)
    logger.debug("Cover-fit %dx%d -> %dx%d.", image.width, image.height, target_w, target_h)
    return encode_image(fitted)


def center_crop_bytes(data: bytes, target_w: int, target_h: int) -> bytes:
    """Centre-crop encoded image bytes and return PNG bytes."""
    image = load_image(data)
    cropped = center_crop(image, target_w, target_h)
    logger.debug("Centre-crop %dx%d -> %dx%d.", image.width, image.height, target_w, target_h)
    return encode_image(cropped)
