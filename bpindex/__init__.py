"""
bpindex - Acceptance and indexing pipeline for a buildpack registry.

Buildpack authors open an issue on the registry repository titled
``ADD <namespace>/<name>@<version>`` whose body is a small TOML document:

    id = "heroku/java"
    version = "0.0.0"
    addr = "gcr.io/heroku/java@sha256:9d88...e21d"

bpindex validates the submission, checks that the sender owns the
namespace (creating the owners document on first use), appends the record
to the buildpack's index shard, and closes the issue.

Quick Start:
    from bpindex import GitHubClient, Submission, SubmissionProcessor, load_config

    config = load_config()
    github = GitHubClient.from_config(config)
    processor = SubmissionProcessor.from_config(config, github, github, github)
    outcome = processor.process(Submission.from_event(payload))

Domain Objects:
    BuildpackRecord - One registered version (an index line)
    OwnerRecord - A user or org allowed to publish into a namespace
    Submission - An ADD request read from an issue

Services:
    SubmissionValidator - Issue title/body to record
    OwnerDirectory - Namespace owners, bootstrapped on first use
    Authorizer - User and org ownership checks
    IndexStore - Sharded, append-only index
    SubmissionProcessor - End-to-end submission handling
"""

__version__ = "0.3.0"

# Domain objects
from .domain import (
    BuildpackRecord,
    OwnerRecord,
    OwnerType,
    Submission,
    SubmissionOutcome,
    Submitter,
)

# Services
from .services import (
    SubmissionValidator,
    OwnerDirectory,
    Authorizer,
    IndexStore,
    SubmissionProcessor,
    shard_path,
)

# Infrastructure
from .infra import GitHubClient, LocalContentStore

# Configuration
from .config import load_config

__all__ = [
    # Version
    "__version__",
    # Domain objects
    "BuildpackRecord",
    "OwnerRecord",
    "OwnerType",
    "Submission",
    "SubmissionOutcome",
    "Submitter",
    # Services
    "SubmissionValidator",
    "OwnerDirectory",
    "Authorizer",
    "IndexStore",
    "SubmissionProcessor",
    "shard_path",
    # Infrastructure
    "GitHubClient",
    "LocalContentStore",
    # Configuration
    "load_config",
]
