import mimetypes
from pathlib import Path

import duckdb

from .config import CFG
from .schemas import ImageInput

IMAGE_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".heic": "image/heic",
}


def connect(path: str | None = None) -> duckdb.DuckDBPyConnection:
    """Open the warehouse; ':memory:' gives a throwaway database."""
    db_path = path or CFG.duckdb_path
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(db_path)


def guess_mime_type(path: str | Path) -> str:
    p = Path(path)
    mime = IMAGE_MIME_TYPES.get(p.suffix.lower())
    if mime is None:
        mime, _ = mimetypes.guess_type(p.name)
    return mime or "application/octet-stream"


def load_image(path: str | Path) -> ImageInput:
    p = Path(path)
    return ImageInput(name=p.name, mime_type=guess_mime_type(p), data=p.read_bytes())


def list_images(directory: str | Path) -> list[Path]:
    """Image files of a directory, sorted by name."""
    d = Path(directory)
    return sorted(p for p in d.iterdir() if p.is_file() and p.suffix.lower() in IMAGE_MIME_TYPES)
