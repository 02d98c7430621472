import io
import logging
import uuid
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .errors import UploadFailure

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}
UPLOAD_URL_PREFIX = "/static/uploads/"


def allowed_file(filename):
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_EXTENSIONS


def compress_image(data: bytes, max_size_mb: float = 0.3, max_edge: int = 800) -> bytes:
    """Shrink an image to fit within ``max_edge`` pixels and ``max_size_mb``.

    The result is always re-encoded as JPEG. Quality is stepped down until the
    encoded size fits; if even the lowest quality is too large the smallest
    encoding is returned.
    """
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise UploadFailure("not a readable image") from e

    if img.mode != "RGB":
        img = img.convert("RGB")
    img.thumbnail((max_edge, max_edge))

    limit = int(max_size_mb * 1024 * 1024)
    out = b""
    for quality in range(85, 9, -10):
        buf = io.BytesIO()
        img.save(buf, format="JPEG", quality=quality, optimize=True)
        out = buf.getvalue()
        if len(out) <= limit:
            break
    logger.debug("Compressed image %d -> %d bytes", len(data), len(out))
    return out


def save_upload(data: bytes, filename: str, upload_dir: Path) -> str:
    """Write an uploaded image under a fresh name and return its public URL."""
    if not allowed_file(filename):
        raise UploadFailure(f"file type not allowed: {filename}")
    ext = filename.rsplit(".", 1)[1].lower()
    name = f"{uuid.uuid4().hex}.{ext}"
    try:
        upload_dir.mkdir(parents=True, exist_ok=True)
        (upload_dir / name).write_bytes(data)
    except OSError as e:
        raise UploadFailure("could not store image") from e
    return UPLOAD_URL_PREFIX + name


def remove_upload(url, upload_dir: Path) -> bool:
    """Delete a previously stored upload; URLs we did not issue are ignored."""
    if not url or not url.startswith(UPLOAD_URL_PREFIX):
        return False
    name = Path(url[len(UPLOAD_URL_PREFIX):]).name
    path = upload_dir / name
    if not path.is_file():
        return False
    path.unlink()
    logger.info("Removed previous upload %s", name)
    return True
