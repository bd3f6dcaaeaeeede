"""
File store infrastructure for bpindex.

Serves a checked-out registry index directory as a content store, with the
same contract as the GitHub contents API:
- Atomic writes (write to temp, then rename)
- Git blob SHA-1 tokens for compare-and-swap updates
- Thread-safe operations
- Automatic parent directory creation
"""

import hashlib
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional
import logging

from ..exit_codes import ContentNotFound, StoreUnavailable, WriteConflict
from .github_client import StoredFile

logger = logging.getLogger(__name__)


def blob_sha(data: bytes) -> str:
    """Compute the git blob sha of ``data``, as GitHub reports it."""
    header = f"blob {len(data)}\0".encode('ascii')
    return hashlib.sha1(header + data).hexdigest()


class LocalContentStore:
    """
    Registry index stored in a local directory.

    Example:
        store = LocalContentStore(Path("~/src/registry-index"))
        shard = store.get_file("ja/va/heroku_java")
        store.put_file(shard.path, new_content, "ADD heroku/java@0.0.1", shard.sha)
    """

    def __init__(self, root: Path, auto_create: bool = True):
        """
        Initialize LocalContentStore.

        Args:
            root: Directory holding the index
            auto_create: Create the directory if it doesn't exist
        """
        self.root = Path(root).expanduser().resolve()
        self._lock = threading.Lock()

        if auto_create and not self.root.exists():
            self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        """Map a store path to a file under root, refusing escapes."""
        target = (self.root / path).resolve()
        if target != self.root and self.root not in target.parents:
            raise StoreUnavailable(f"{path} is outside the store")
        return target

    def _write_atomic(self, target: Path, data: bytes) -> None:
        """Write data atomically using temp file and rename."""
        target.parent.mkdir(parents=True, exist_ok=True)

        # Write to temp file in same directory
        fd, temp_path = tempfile.mkstemp(
            dir=target.parent,
            prefix=f".{target.name}.",
            suffix=".tmp"
        )

        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(data)

            # Atomic rename
            os.replace(temp_path, target)

        except Exception:
            # Clean up temp file on error
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def _read_bytes(self, path: str) -> Optional[bytes]:
        target = self._resolve(path)
        try:
            return target.read_bytes()
        except FileNotFoundError:
            return None
        except (IsADirectoryError, PermissionError) as e:
            raise StoreUnavailable(f"could not read {path}: {e}") from e

    def get_file(self, path: str) -> StoredFile:
        """
        Read a file and its blob sha.

        Raises:
            ContentNotFound: If the file does not exist
        """
        with self._lock:
            data = self._read_bytes(path)
        if data is None:
            raise ContentNotFound(path)
        return StoredFile(path=path, content=data.decode('utf-8'), sha=blob_sha(data))

    def put_file(
        self,
        path: str,
        content: str,
        message: str,
        expected_sha: Optional[str] = None
    ) -> str:
        """
        Create or update a file.

        With ``expected_sha`` the current content must hash to it; without
        it the file must not exist yet.

        Returns:
            Blob sha of the written file

        Raises:
            WriteConflict: If the precondition did not hold
        """
        data = content.encode('utf-8')

        with self._lock:
            current = self._read_bytes(path)
            if expected_sha is None and current is not None:
                raise WriteConflict(f"{path} already exists")
            if expected_sha is not None:
                if current is None or blob_sha(current) != expected_sha:
                    raise WriteConflict(f"{path} changed since it was read")

            try:
                self._write_atomic(self._resolve(path), data)
            except OSError as e:
                raise StoreUnavailable(f"could not write {path}: {e}") from e

        logger.info(f"{message}: wrote {path}")
        return blob_sha(data)
