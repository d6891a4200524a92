import io

from flask import current_app
from PIL import Image as PILImage, UnidentifiedImageError


ALLOWED_FORMATS = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
    "GIF": "image/gif",
}


def validate_image(image_bytes, max_size=None):
    """Check an uploaded product image and strip its metadata.

    Returns ``(bytes, content_type)``. JPEG and WebP are re-encoded to drop
    EXIF; PNG and GIF keep their format so transparency survives.

    Raises:
        ValueError on invalid input
    """
    if max_size is None:
        max_size = current_app.config["MAX_UPLOAD_SIZE"]
    if not image_bytes:
        raise ValueError("No image file provided")
    if len(image_bytes) > max_size:
        raise ValueError(
            f"File too large. Maximum file size is {max_size // (1024 * 1024)}MB."
        )

    try:
        img = PILImage.open(io.BytesIO(image_bytes))
        img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        raise ValueError("Invalid image file")

    fmt = img.format
    if fmt not in ALLOWED_FORMATS:
        raise ValueError("Invalid file type. Only JPEG, PNG, GIF, and WebP are allowed.")

    # verify() leaves the image unusable; reopen to re-encode
    img = PILImage.open(io.BytesIO(image_bytes))
    if fmt == "GIF":
        return image_bytes, ALLOWED_FORMATS[fmt]
    if fmt == "JPEG" and img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    buffer = io.BytesIO()
    save_kwargs = {"quality": 90} if fmt in ("JPEG", "WEBP") else {}
    img.save(buffer, format=fmt, **save_kwargs)
    return buffer.getvalue(), ALLOWED_FORMATS[fmt]
