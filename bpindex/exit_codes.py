"""
Standard exit codes and error taxonomy for bpindex.

Following Unix/POSIX conventions for command-line tools. Every registry
error carries the exit code the CLI reports for it, plus a ``user_error``
flag separating problems with a submission (reported back on the issue)
from operational failures (left for a retry).
"""
from typing import List, Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
API_ERROR = 65           # External API call failed (GitHub contents, issues, orgs)
CONFIG_ERROR = 66        # Configuration file error
AUTH_ERROR = 69          # Submitter not authorized for the namespace
DATA_ERROR = 70          # Submission format or validation error
CONFLICT_ERROR = 72      # Duplicate version or concurrent modification
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': GENERAL_ERROR,
    'ConnectionError': API_ERROR,
    'TimeoutError': API_ERROR,
    'ValueError': DATA_ERROR,
    'JSONDecodeError': DATA_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: Exception) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    if isinstance(exc, CommandError):
        return exc.exit_code
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class RegistryError(CommandError):
    """
    Base class for failures while accepting a submission.

    Subclasses set ``user_error`` and ``default_exit_code``. User errors are
    the submitter's to fix; everything else is operational.
    """
    user_error = False
    default_exit_code = GENERAL_ERROR

    def __init__(self, message: str):
        super().__init__(message, self.default_exit_code)

    @property
    def error_type(self) -> str:
        return self.__class__.__name__


# User errors: reported on the issue, never retried.

class MalformedSubmission(RegistryError):
    """Issue title or body cannot be read as a submission."""
    user_error = True
    default_exit_code = DATA_ERROR


class SchemaViolation(RegistryError):
    """One or more required fields have the wrong shape."""
    user_error = True
    default_exit_code = DATA_ERROR

    def __init__(self, fields: List[str], message: Optional[str] = None):
        self.fields = list(fields)
        super().__init__(message or ", ".join(f"invalid {f}" for f in self.fields))


class RestrictedNamespace(RegistryError):
    """Namespace is on the reserved list."""
    user_error = True
    default_exit_code = DATA_ERROR

    def __init__(self, namespace: str):
        self.namespace = namespace
        super().__init__(f'"{namespace}" is a restricted namespace')


class InvalidRecord(RegistryError):
    """Record cannot be placed in the index (e.g. empty name)."""
    user_error = True
    default_exit_code = DATA_ERROR


class DuplicateVersion(RegistryError):
    """Version already present in the buildpack's index shard."""
    user_error = True
    default_exit_code = CONFLICT_ERROR


class NotAuthorized(RegistryError):
    """Submitter is neither an owner nor a member of an owning org."""
    user_error = True
    default_exit_code = AUTH_ERROR


# Operational errors: propagate, ticket is left open.

class StoreUnavailable(RegistryError):
    """Content store read or write failed."""
    default_exit_code = API_ERROR


class WriteConflict(StoreUnavailable):
    """Compare-and-swap write rejected: the file changed since it was read."""
    default_exit_code = CONFLICT_ERROR


class ContentNotFound(RegistryError):
    """Requested path does not exist in the content store."""
    default_exit_code = API_ERROR

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"{path} not found")


class IdentityProviderError(RegistryError):
    """Org membership lookup failed."""
    default_exit_code = API_ERROR


class TicketingError(RegistryError):
    """Commenting on or closing the submission issue failed."""
    default_exit_code = API_ERROR
