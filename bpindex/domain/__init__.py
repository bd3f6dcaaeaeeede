"""
Domain layer for bpindex.

Contains pure domain objects with no I/O or side effects:
- BuildpackRecord: One registered buildpack version (an index line)
- OwnerRecord: A user or org allowed to publish into a namespace
- Submission: An ADD request read from a registry issue

These objects are immutable where possible and provide
serialization methods for the registry's JSON formats.
"""

from .buildpack import BuildpackRecord
from .owner import OwnerRecord, OwnerType, decode_owners, encode_owners
from .submission import Submission, SubmissionOutcome, Submitter, ACCEPTED, REJECTED

__all__ = [
    'BuildpackRecord',
    'OwnerRecord',
    'OwnerType',
    'decode_owners',
    'encode_owners',
    'Submission',
    'SubmissionOutcome',
    'Submitter',
    'ACCEPTED',
    'REJECTED',
]
