"""
Service layer for bpindex.

Contains the registry's business logic, built on domain objects and
infrastructure:
- SubmissionValidator: Issue title/body to BuildpackRecord
- OwnerDirectory: Namespace owners, bootstrapped on first use
- Authorizer: User and org ownership checks
- IndexStore: Sharded, append-only version index
- SubmissionProcessor: Runs a submission end to end

Services are the primary API for commands to use.
"""

from .validator import SubmissionValidator, ValidationResult, FieldError
from .owner_directory import OwnerDirectory, owners_path
from .authorization import Authorizer
from .index_store import IndexStore, shard_path, decode_shard
from .lifecycle import SubmissionProcessor

__all__ = [
    'SubmissionValidator',
    'ValidationResult',
    'FieldError',
    'OwnerDirectory',
    'owners_path',
    'Authorizer',
    'IndexStore',
    'shard_path',
    'decode_shard',
    'SubmissionProcessor',
]
