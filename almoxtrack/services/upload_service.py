import pathlib
import re
import uuid

from almoxtrack.config import settings

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _safe_filename(filename: str) -> str:
    name = _UNSAFE_CHARS.sub("_", pathlib.Path(filename or "").name).strip("._")
    return name or "image"


def upload(content: bytes, filename: str, content_type: str) -> str:
    """Store an image and return the URL it is served from.

    Content and size are not checked; content_type is accepted for callers that
    forward it but the file is stored as given.
    """
    upload_dir = pathlib.Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    stored_name = f"{uuid.uuid4().hex[:12]}_{_safe_filename(filename)}"
    (upload_dir / stored_name).write_bytes(content)
    return f"/uploads/{stored_name}"
