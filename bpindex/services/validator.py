"""
Submission validation for bpindex.

Turns an issue title and TOML body into a BuildpackRecord, or explains
exactly why it can't:

    title: ADD heroku/java@0.0.0
    body:  id = "heroku/java"
           version = "0.0.0"
           addr = "gcr.io/heroku/java@sha256:9d88...e21d"

Schema problems are collected per field into a ValidationResult so callers
can report all of them at once; ``validate`` raises the matching error.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
import logging
import re
import tomllib

from ..domain import BuildpackRecord
from ..exit_codes import ConfigError, MalformedSubmission, RestrictedNamespace, SchemaViolation

logger = logging.getLogger(__name__)

ADD_VERB = 'ADD'

# semver.org's suggested expression
SEMVER_PATTERN = re.compile(
    r'(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)'
    r'(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?'
    r'(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?'
)

# host(:port)/path@sha256:digest, with no tag between path and digest
ADDRESS_PATTERN = re.compile(
    r'(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+'
    r'[a-z0-9][a-z0-9-]{0,61}[a-z0-9]'
    r'(?::[0-9]+)?'
    r'/[^:]+'
    r'@sha256:[A-Fa-f0-9]{64}'
)


@dataclass(frozen=True)
class FieldError:
    """A required field that is missing or has the wrong shape."""
    field: str
    message: str


@dataclass
class ValidationResult:
    """Either a record or the field errors that prevented one."""
    record: Optional[BuildpackRecord] = None
    errors: List[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.record is not None and not self.errors

    def raise_for_errors(self) -> BuildpackRecord:
        """Return the record, or raise SchemaViolation naming the bad fields."""
        if self.errors:
            raise SchemaViolation(
                [e.field for e in self.errors],
                ", ".join(e.message for e in self.errors),
            )
        return self.record


def _check_id(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not value or '/' not in value:
        return 'invalid id'
    namespace = value.split('/', 1)[0]
    if not namespace:
        return 'invalid id'
    return None


def _check_version(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not SEMVER_PATTERN.fullmatch(value):
        return 'invalid semver'
    return None


def _check_address(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not ADDRESS_PATTERN.fullmatch(value):
        return 'invalid addr'
    return None


FIELD_CHECKS = (
    ('id', _check_id),
    ('version', _check_version),
    ('addr', _check_address),
)


class SubmissionValidator:
    """
    Validates registry submissions.

    The restricted namespaces are fixed at construction so tests and
    alternate registries can supply their own list.

    Example:
        validator = SubmissionValidator(["official", "example"])
        record = validator.validate(issue_title, issue_body)
    """

    def __init__(self, restricted_namespaces: Iterable[str] = ()):
        self.restricted_namespaces = frozenset(restricted_namespaces)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'SubmissionValidator':
        """
        Build from ``registry.restricted_namespaces``.

        A string (as set through BPINDEX_REGISTRY_RESTRICTED_NAMESPACES) is
        read as a comma-separated list.

        Raises:
            ConfigError: If the value is neither a list nor a string
        """
        value = config.get('registry', {}).get('restricted_namespaces', [])
        if isinstance(value, str):
            value = [name.strip() for name in value.split(',') if name.strip()]
        if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
            raise ConfigError(
                f"registry.restricted_namespaces must be a list of names, got {value!r}"
            )
        return cls(value)

    def check(self, title: str, body: str) -> ValidationResult:
        """
        Parse and validate a submission without raising for schema errors.

        Raises:
            MalformedSubmission: If the title lacks ADD or the body isn't TOML
        """
        if not title:
            raise MalformedSubmission("issue title is missing")
        if ADD_VERB not in title:
            raise MalformedSubmission(f"issue should contain {ADD_VERB}")

        try:
            data = tomllib.loads(body or '')
        except tomllib.TOMLDecodeError as e:
            raise MalformedSubmission(f"issue with TOML: {e}") from e

        errors = []
        for name, check in FIELD_CHECKS:
            message = check(data.get(name))
            if message:
                errors.append(FieldError(name, message))

        if errors:
            return ValidationResult(errors=errors)

        namespace, name = data['id'].split('/', 1)
        record = BuildpackRecord(
            namespace=namespace,
            name=name,
            version=data['version'],
            address=data['addr'],
        )
        return ValidationResult(record=record)

    def validate(self, title: str, body: str) -> BuildpackRecord:
        """
        Validate a submission and return its record.

        Raises:
            MalformedSubmission: Title or body unreadable
            SchemaViolation: id, version or addr invalid
            RestrictedNamespace: Namespace is reserved
        """
        record = self.check(title, body).raise_for_errors()

        if record.namespace in self.restricted_namespaces:
            raise RestrictedNamespace(record.namespace)

        logger.debug(f"Validated submission {record}")
        return record
