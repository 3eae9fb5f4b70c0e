"""
Thumbnail storage on the local filesystem.

Files land in ``Settings.UPLOAD_DIR`` under a generated name and are
served back by the ``StaticFiles`` mount at ``Settings.UPLOAD_URL_PREFIX``.
"""
import logging
import uuid
from pathlib import Path

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from blogapi.config import Settings
from blogapi.errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS: frozenset[str] = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp"})


def _write(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)


async def save_thumbnail(upload: UploadFile | None, settings: Settings) -> str:
    """
    Validate and store *upload*, returning its public URL path
    (e.g. ``/uploads/3f2a...png``).
    """
    if upload is None or not upload.filename:
        raise ValidationError("Thumbnail image is required", status_code=400)

    ext = Path(upload.filename).suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationError(
            f"Unsupported thumbnail type '{ext or upload.filename}'", status_code=400
        )

    # Read one byte past the limit so oversize files are detected without
    # buffering them whole.
    content = await upload.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(content) > settings.MAX_UPLOAD_BYTES:
        limit_mb = settings.MAX_UPLOAD_BYTES / (1024 * 1024)
        raise ValidationError(f"File size exceeds the {limit_mb:g}MB limit", status_code=413)
    if not content:
        raise ValidationError("Thumbnail image is empty", status_code=400)

    file_name = f"{uuid.uuid4().hex}{ext}"
    await run_in_threadpool(_write, Path(settings.UPLOAD_DIR) / file_name, content)
    logger.info("Stored thumbnail %s (%d bytes)", file_name, len(content))
    return f"{settings.UPLOAD_URL_PREFIX.rstrip('/')}/{file_name}"


def _unlink(path: Path) -> None:
    path.unlink(missing_ok=True)


async def delete_thumbnail(url: str | None, settings: Settings) -> None:
    """
    Remove the file behind a public thumbnail path returned by
    ``save_thumbnail``.  Paths outside ``UPLOAD_URL_PREFIX`` are ignored.
    """
    prefix = settings.UPLOAD_URL_PREFIX.rstrip("/") + "/"
    if not url or not url.startswith(prefix):
        return
    # Only the bare generated name is accepted, never a nested path.
    file_name = Path(url[len(prefix):]).name
    if not file_name:
        return
    await run_in_threadpool(_unlink, Path(settings.UPLOAD_DIR) / file_name)
    logger.info("Removed thumbnail %s", file_name)
