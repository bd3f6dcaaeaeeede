"""
Infrastructure layer for bpindex.

Contains abstractions for external systems:
- GitHubClient: GitHub API access (contents, issues, org membership)
- LocalContentStore: Registry index checked out on disk

These provide clean interfaces that can be mocked for testing.
"""

from .github_client import GitHubClient, RateLimitStatus, StoredFile
from .file_store import LocalContentStore, blob_sha

__all__ = [
    'GitHubClient',
    'RateLimitStatus',
    'StoredFile',
    'LocalContentStore',
    'blob_sha',
]
