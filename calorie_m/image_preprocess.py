"""Image normalization for food photo analysis.

Goals:
- Reject oversized or non-image uploads before any decoding
- Bound the image to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT with a uniform scale
  (never upscale)
- Re-encode as JPEG at JPEG_QUALITY and return a transport-ready payload
- Log input/output resolution and timings in ms
"""

import base64
import logging
import time
from io import BytesIO
from typing import Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from calorie_m.config import (
    JPEG_QUALITY,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    MAX_UPLOAD_BYTES,
)
from calorie_m.errors import ValidationError
from calorie_m.models import ImagePayload

logger = logging.getLogger(__name__)

# -----------------------------------
# Validation
# -----------------------------------


def validate_upload(size: int, content_type: Optional[str], max_bytes: int = MAX_UPLOAD_BYTES):
    """Check the raw upload; raises ValidationError without touching the bytes."""
    if size > max_bytes:
        raise ValidationError(
            "file_too_large",
            f"File is {size} bytes, limit is {max_bytes} bytes",
        )
    if not (content_type or "").startswith("image/"):
        raise ValidationError(
            "not_an_image",
            f"Unsupported content type: {content_type!r}",
        )


# -----------------------------------
# Low-level helpers
# -----------------------------------


def target_size(
    width: int,
    height: int,
    max_width: int = MAX_IMAGE_WIDTH,
    max_height: int = MAX_IMAGE_HEIGHT,
) -> Tuple[int, int]:
    """Return (width, height) fitted into the bounding box, keeping aspect ratio."""
    if width <= max_width and height <= max_height:
        return width, height

    ratio = min(max_width / width, max_height / height)
    # Truncate like a canvas does when given fractional dimensions.
    return max(1, int(width * ratio)), max(1, int(height * ratio))


def _open_image(data: bytes) -> Image.Image:
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError("unreadable_image", f"Cannot decode image: {e}") from e
    except Image.DecompressionBombError as e:
        # Small file, huge canvas.
        raise ValidationError("unreadable_image", str(e)) from e
    # Phone photos carry rotation in EXIF; bake it in before measuring.
    return ImageOps.exif_transpose(img)


def encode_jpeg(img: Image.Image, quality: int = JPEG_QUALITY) -> bytes:
    buf = BytesIO()
    img.convert("RGB").save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


# -----------------------------------
# Public entry point
# -----------------------------------


def normalize_image(
    data: bytes,
    content_type: Optional[str],
    max_width: int = MAX_IMAGE_WIDTH,
    max_height: int = MAX_IMAGE_HEIGHT,
    quality: int = JPEG_QUALITY,
) -> ImagePayload:
    """
    Validate, resize and re-encode an uploaded image.

    Returns an ImagePayload holding raw base64 JPEG bytes (no data-URI prefix)
    and the output resolution.
    """
    validate_upload(len(data), content_type)

    t = time.time()
    img = _open_image(data)
    in_w, in_h = img.size
    out_w, out_h = target_size(in_w, in_h, max_width, max_height)

    if (out_w, out_h) != (in_w, in_h):
        img = img.resize((out_w, out_h), Image.LANCZOS)

    encoded = encode_jpeg(img, quality)
    logger.info(
        "Normalized image in %sms: in_res=%sx%s, out_res=%sx%s, in_bytes=%s, out_bytes=%s",
        round((time.time() - t) * 1000, 2),
        in_w,
        in_h,
        out_w,
        out_h,
        len(data),
        len(encoded),
    )

    return ImagePayload(
        data=base64.b64encode(encoded).decode("utf-8"),
        mime_type="image/jpeg",
        width=out_w,
        height=out_h,
    )


def payload_from_data_uri(uri: str) -> ImagePayload:
    """Accept an already-encoded ``data:image/...;base64,`` string."""
    try:
        payload = ImagePayload.from_data_uri(uri)
    except ValueError as e:
        raise ValidationError("not_an_image", str(e)) from e
    if not payload.mime_type.startswith("image/"):
        raise ValidationError("not_an_image", f"Unsupported content type: {payload.mime_type!r}")
    return payload
