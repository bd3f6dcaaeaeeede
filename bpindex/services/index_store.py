"""
Sharded index store for bpindex.

Every buildpack has one shard file holding all of its versions, one JSON
record per line. Shards are spread over directories by name:

    name "j"       -> 1/heroku_j
    name "ru"      -> 2/heroku_ru
    name "sca"     -> 3/sc/heroku_sca
    name "java"    -> ja/va/heroku_java

Shards are append-only. A new version is merged by reading the shard,
checking for the version, and writing it back with the sha that was read,
so a concurrent change makes the write fail instead of being lost.
"""

import json
import logging
import posixpath
from typing import Any, List

from ..domain import BuildpackRecord
from ..exit_codes import ContentNotFound, DuplicateVersion, InvalidRecord, StoreUnavailable

logger = logging.getLogger(__name__)


def shard_path(namespace: str, name: str) -> str:
    """
    Derive the shard path for a buildpack.

    Raises:
        InvalidRecord: If the name is empty
    """
    if not name:
        raise InvalidRecord("buildpack name cannot be empty")

    length = len(name)
    if length == 1:
        directory = '1'
    elif length == 2:
        directory = '2'
    elif length == 3:
        directory = posixpath.join('3', name[:2])
    else:
        directory = posixpath.join(name[:2], name[2:4])

    return posixpath.join(directory, f"{namespace}_{name}")


def decode_shard(path: str, content: str) -> List[BuildpackRecord]:
    """
    Decode shard content into records, skipping blank lines.

    Raises:
        StoreUnavailable: If a line is not a valid record
    """
    records = []
    for lineno, line in enumerate(content.split('\n'), 1):
        if not line.strip():
            continue
        try:
            records.append(BuildpackRecord.from_dict(json.loads(line)))
        except (ValueError, KeyError, TypeError) as e:
            raise StoreUnavailable(f"corrupt index shard {path} at line {lineno}: {e}") from e
    return records


class IndexStore:
    """
    Reads and appends buildpack index shards.

    Args:
        store: Content store with ``get_file``/``put_file`` (GitHubClient or
            LocalContentStore)
    """

    def __init__(self, store: Any):
        self.store = store

    def read(self, namespace: str, name: str) -> List[BuildpackRecord]:
        """All recorded versions of a buildpack, oldest first."""
        path = shard_path(namespace, name)
        try:
            stored = self.store.get_file(path)
        except ContentNotFound:
            return []
        return decode_shard(path, stored.content)

    def upsert(self, record: BuildpackRecord, message: str) -> str:
        """
        Add a record to its shard, creating the shard if needed.

        Existing lines are kept byte for byte; the new record is appended
        as one more line.

        Args:
            record: Record to add
            message: Commit message (the submission title)

        Returns:
            Path of the shard written

        Raises:
            InvalidRecord: If the record's name is empty
            DuplicateVersion: If the version is already in the shard
            WriteConflict: If the shard changed between read and write
            StoreUnavailable: For other store failures
        """
        path = shard_path(record.namespace, record.name)
        line = record.to_jsonl() + '\n'

        try:
            stored = self.store.get_file(path)
        except ContentNotFound:
            self.store.put_file(path, line, message)
            logger.info(f"Created index shard {path} with {record}")
            return path

        existing = decode_shard(path, stored.content)
        if any(entry.version == record.version for entry in existing):
            raise DuplicateVersion(f"duplicate version: {record} is already registered")

        content = stored.content
        if content and not content.endswith('\n'):
            content += '\n'

        self.store.put_file(path, content + line, message, stored.sha)
        logger.info(f"Appended {record} to index shard {path}")
        return path
