"""
Owner directory service for bpindex.

Each namespace's owners live in ``<version_tag>/<namespace>.json`` in the
registry repository. The first submission into a namespace creates that
document and makes the submitter its only owner.
"""

from typing import Any, FrozenSet, Optional
import logging

from ..domain import OwnerRecord, Submitter, decode_owners, encode_owners
from ..exit_codes import ContentNotFound, StoreUnavailable

logger = logging.getLogger(__name__)

BOOTSTRAP_MESSAGE = 'initial commit'


def owners_path(namespace: str, version_tag: str) -> str:
    """Path of a namespace's owners document."""
    return f"{version_tag}/{namespace}.json"


class OwnerDirectory:
    """
    Reads and bootstraps namespace owners documents.

    Args:
        store: Content store with ``get_file``/``put_file`` (GitHubClient or
            LocalContentStore)
        version_tag: Directory holding the owners documents
    """

    def __init__(self, store: Any, version_tag: str = 'v1'):
        self.store = store
        self.version_tag = version_tag

    def _decode(self, path: str, text: str) -> FrozenSet[OwnerRecord]:
        try:
            return decode_owners(text)
        except ValueError as e:
            raise StoreUnavailable(f"malformed owners document {path}: {e}") from e

    def get(self, namespace: str) -> Optional[FrozenSet[OwnerRecord]]:
        """
        Read a namespace's owners without creating anything.

        Returns:
            The owner set, or None if the namespace has no owners document
        """
        path = owners_path(namespace, self.version_tag)
        try:
            stored = self.store.get_file(path)
        except ContentNotFound:
            return None
        return self._decode(path, stored.content)

    def get_or_create(self, namespace: str, submitter: Submitter) -> FrozenSet[OwnerRecord]:
        """
        Read a namespace's owners, bootstrapping the document if absent.

        Side effect: when the namespace has no owners document yet, one is
        committed naming ``submitter`` as the sole individual owner. The
        create carries no sha, so a concurrent bootstrap that got there
        first makes this one fail with WriteConflict.

        Raises:
            StoreUnavailable: If the store cannot be read or written
        """
        path = owners_path(namespace, self.version_tag)
        try:
            stored = self.store.get_file(path)
        except ContentNotFound:
            logger.info(f"Creating {path} since it does not exist")
            owners = frozenset([OwnerRecord.individual(submitter.id)])
            self.store.put_file(path, encode_owners(owners), BOOTSTRAP_MESSAGE)
            return owners

        return self._decode(path, stored.content)
