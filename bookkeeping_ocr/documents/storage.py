"""On-disk storage for uploaded document files."""

import uuid
from pathlib import Path

from bookkeeping_ocr.utils.logger import get_logger

logger = get_logger(__name__)


class FileStorage:
    """Stores uploads under a directory with random file names.

    Args:
        upload_dir: Target directory, created on first write.
    """

    def __init__(self, upload_dir: Path | str) -> None:
        self.upload_dir = Path(upload_dir)

    def save(self, content: bytes, filename: str | None) -> Path:
        """Write bytes to a new file, keeping the original extension.

        Returns:
            Path of the stored file.
        """
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        extension = Path(filename).suffix if filename else ""
        path = self.upload_dir / f"{uuid.uuid4()}{extension}"
        path.write_bytes(content)
        logger.debug("Stored %d bytes at %s", len(content), path)
        return path

    def delete(self, path: Path | str | None) -> None:
        """Remove a stored file; a missing file is only logged."""
        if not path:
            return
        try:
            Path(path).unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Failed to delete file from disk: %s (%s)", path, exc)
