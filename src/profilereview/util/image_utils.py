"""Scratch-file and image normalisation helpers for the photo review stage.

Every function here blocks the calling thread; callers run them through
``asyncio.to_thread``.
"""

import shutil
import tempfile
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError
from pillow_heif import register_heif_opener

from profilereview.util.errors import TempFileError
from profilereview.util.logger import get_logger

logger = get_logger("image_utils")

register_heif_opener()

JPEG_QUALITY = 90


def create_user_temp_dir(user_id: int, parent: Path | None = None) -> Path:
    """
    Create a private scratch directory for one user's review pass.

    Args:
        user_id: Owner of the photos that will be written into the directory.
        parent: Directory to create it in; the system temp dir when None.

    Raises:
        TempFileError: If the directory cannot be created.
    """
    try:
        if parent is not None:
            parent.mkdir(parents=True, exist_ok=True)
        return Path(tempfile.mkdtemp(prefix=f"review_{user_id}_", dir=parent))
    except OSError as exc:
        raise TempFileError(f"Could not create temp directory: {exc}", user_id=user_id) from exc


def write_temp_image(directory: Path, index: int, data: bytes, user_id: int | None = None) -> Path:
    """Write downloaded photo bytes to ``<directory>/photo_<index>``."""
    target = directory / f"photo_{index}"
    try:
        target.write_bytes(data)
    except OSError as exc:
        raise TempFileError(f"Could not write photo {index} to {directory}: {exc}", user_id=user_id) from exc
    return target


def normalize_image(path: Path) -> Path | None:
    """
    Re-encode a downloaded photo as an upright JPEG.

    EXIF orientation is applied and the result is written next to the
    source as ``<name>.jpg`` with quality 90.

    Returns:
        Path | None: Path of the normalised JPEG, or None if the file cannot
            be decoded (corrupt or unsupported image).
    """
    target = path.with_suffix(".jpg")
    try:
        with Image.open(path) as img:
            img = ImageOps.exif_transpose(img)
            img.convert("RGB").save(target, format="JPEG", quality=JPEG_QUALITY)
        return target
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        logger.warning("[IMAGE] Could not decode %s: %s", path.name, exc)
        return None


def cleanup_temp_dir(directory: Path | None) -> None:
    """Remove a scratch directory. Failures are logged, never raised."""
    if directory is None:
        return
    try:
        shutil.rmtree(directory)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("[IMAGE] Failed to remove temp directory %s: %s", directory, exc)
