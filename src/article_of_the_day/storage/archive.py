"""Durable, newest-first archive of accepted articles.

The archive is a single JSON array. Every accepted append loads the
whole array, re-checks link uniqueness, prepends the article, and
rewrites the file through a temp file and os.replace, so the previous
file stays readable until the replace completes.
"""

import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from ..errors import PersistenceError
from ..news.dedup import is_duplicate
from ..news.models import Article

logger = logging.getLogger(__name__)

# One lock per archive file, shared by every ArchiveStore in the process
_file_locks: dict[Path, threading.Lock] = {}
_file_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    key = path.resolve()
    with _file_locks_guard:
        return _file_locks.setdefault(key, threading.Lock())


class AppendStatus(str, Enum):
    SUCCESS = "success"
    DUPLICATE = "duplicate"
    PERSISTENCE_ERROR = "persistence_error"


@dataclass
class AppendResult:
    """Outcome of ArchiveStore.append()."""

    status: AppendStatus
    entries: list[Article] = field(default_factory=list)
    error: Optional[str] = None


class ArchiveStore:
    """File-backed archive. Read-modify-write cycles on one file never interleave."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = _lock_for(self.path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> list[Article]:
        """
        Read the full archive.

        Returns:
            Articles newest first, or [] if the file does not exist yet

        Raises:
            PersistenceError: If the file can't be read or isn't a valid archive
        """
        if not self.path.exists():
            return []

        try:
            with open(self.path, encoding="utf-8") as f:
                records = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Failed to read archive {self.path}: {e}") from e

        if not isinstance(records, list):
            raise PersistenceError(f"Archive {self.path} is not a JSON array")

        try:
            return [Article.from_record(r) for r in records]
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Malformed record in archive {self.path}: {e}") from e

    def head(self) -> Optional[Article]:
        """Return the most recently appended article, if any."""
        entries = self.load()
        return entries[0] if entries else None

    def append(self, article: Article) -> AppendResult:
        """
        Prepend an article unless its link is already archived.

        Returns:
            AppendResult with SUCCESS and the new entries, DUPLICATE with
            the unchanged entries, or PERSISTENCE_ERROR with the error message
        """
        with self._lock:
            try:
                entries = self.load()
            except PersistenceError as e:
                logger.error("[ARCHIVE] %s", e)
                return AppendResult(status=AppendStatus.PERSISTENCE_ERROR, error=str(e))

            if is_duplicate(article, entries):
                logger.info("[ARCHIVE] Already archived: %s", article.link)
                return AppendResult(status=AppendStatus.DUPLICATE, entries=entries)

            updated = [article] + entries
            try:
                self._write_atomic(updated)
            except PersistenceError as e:
                logger.error("[ARCHIVE] %s", e)
                return AppendResult(status=AppendStatus.PERSISTENCE_ERROR, error=str(e))

            logger.info("[ARCHIVE] Appended %s (%d entries)", article.link, len(updated))
            return AppendResult(status=AppendStatus.SUCCESS, entries=updated)

    def _write_atomic(self, entries: list[Article]) -> None:
        """Write entries to a temp file beside the archive, then replace it."""
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump([a.to_record() for a in entries], f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise PersistenceError(f"Failed to write archive {self.path}: {e}") from e
