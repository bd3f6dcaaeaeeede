"""
GitHub API client infrastructure for bpindex.

Provides a clean abstraction over the parts of the GitHub API the registry
needs:
- Repository contents: read a file with its blob sha, write a file with an
  optional sha precondition (compare-and-swap)
- Issues: comment on and close submission issues
- Users: list the orgs a user belongs to

Authenticates with a token, falling back to the `gh` CLI's stored token.
Rate-limited reads are retried with exponential backoff.
"""

import base64
import binascii
import logging
import os
import subprocess
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Set

import requests

from ..exit_codes import (
    ContentNotFound,
    IdentityProviderError,
    StoreUnavailable,
    TicketingError,
    WriteConflict,
)

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"

DEFAULT_COMMITTER_EMAIL = "cncf-buildpacks-maintainers@lists.cncf.io"

# GitHub caps per_page at 100
ORGS_PAGE_SIZE = 100


@dataclass
class RateLimitStatus:
    """GitHub API rate limit status."""
    remaining: int
    limit: int
    reset_time: int  # Unix timestamp
    used: int

    @property
    def reset_datetime(self) -> datetime:
        """Get reset time as datetime."""
        return datetime.fromtimestamp(self.reset_time)

    @property
    def minutes_until_reset(self) -> int:
        """Minutes until rate limit resets."""
        now = int(time.time())
        return max(0, (self.reset_time - now) // 60)

    @property
    def is_low(self) -> bool:
        """Check if rate limit is getting low (< 100 remaining)."""
        return self.remaining < 100


@dataclass(frozen=True)
class StoredFile:
    """A file read from the registry repository."""
    path: str
    content: str
    sha: str


class GitHubClient:
    """
    GitHub API client bound to one registry repository.

    Serves as the content store, the ticketing system and the identity
    provider for submission processing.

    Example:
        client = GitHubClient("buildpacks", "registry-index")
        shard = client.get_file("ja/va/heroku_java")
        client.put_file(shard.path, shard.content + line, "ADD ...", shard.sha)
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        token: Optional[str] = None,
        committer_name: Optional[str] = None,
        committer_email: str = DEFAULT_COMMITTER_EMAIL,
        api_url: str = GITHUB_API_URL,
        timeout: int = 30,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0
    ):
        """
        Initialize GitHubClient.

        Args:
            owner: Registry repository owner
            repo: Registry repository name
            token: GitHub token (defaults to BPINDEX_GITHUB_TOKEN, GITHUB_TOKEN,
                then `gh auth token`)
            committer_name: Name on index commits (defaults to ``owner``)
            committer_email: Email on index commits
            api_url: API base URL (for GitHub Enterprise)
            timeout: Per-request timeout in seconds
            max_retries: Maximum attempts for rate-limited or failed reads
            base_delay: Base delay for exponential backoff
            max_delay: Maximum delay between retries
        """
        self.owner = owner
        self.repo = repo
        self.token = (
            token
            or os.environ.get('BPINDEX_GITHUB_TOKEN')
            or os.environ.get('GITHUB_TOKEN')
            or self._token_from_gh_cli()
        )
        self.committer = {
            'name': committer_name or owner,
            'email': committer_email,
        }
        self.api_url = api_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._rate_limit_status: Optional[RateLimitStatus] = None

        self.session = requests.Session()
        self.session.headers.update({
            'Accept': 'application/vnd.github.v3+json',
            'User-Agent': 'bpindex',
        })
        if self.token:
            self.session.headers['Authorization'] = f'token {self.token}'

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'GitHubClient':
        """Create a client from the loaded configuration."""
        registry = config.get('registry', {})
        github = config.get('github', {})
        rate_limit = github.get('rate_limit', {})
        return cls(
            owner=registry.get('owner', ''),
            repo=registry.get('repo', ''),
            token=github.get('token') or None,
            committer_name=github.get('committer_name') or None,
            committer_email=github.get('committer_email') or DEFAULT_COMMITTER_EMAIL,
            api_url=github.get('api_url') or GITHUB_API_URL,
            timeout=github.get('timeout_seconds', 30),
            max_retries=rate_limit.get('max_retries', 3),
            max_delay=rate_limit.get('max_delay_seconds', 60.0),
        )

    @staticmethod
    def _token_from_gh_cli() -> Optional[str]:
        """Read the token the gh CLI is logged in with, if any."""
        try:
            result = subprocess.run(
                ['gh', 'auth', 'token'],
                capture_output=True,
                text=True,
                timeout=10
            )
        except (subprocess.TimeoutExpired, FileNotFoundError):
            return None
        if result.returncode == 0 and result.stdout.strip():
            return result.stdout.strip()
        return None

    def _update_rate_limit_from_headers(self, headers) -> None:
        """Update rate limit status from response headers."""
        try:
            remaining = int(headers.get('X-RateLimit-Remaining', -1))
            limit = int(headers.get('X-RateLimit-Limit', -1))
            reset_time = int(headers.get('X-RateLimit-Reset', 0))
            used = int(headers.get('X-RateLimit-Used', 0))

            if remaining >= 0 and limit >= 0:
                self._rate_limit_status = RateLimitStatus(
                    remaining=remaining,
                    limit=limit,
                    reset_time=reset_time,
                    used=used
                )

                if self._rate_limit_status.is_low:
                    logger.warning(
                        f"GitHub API rate limit low: {remaining}/{limit} remaining, "
                        f"resets in {self._rate_limit_status.minutes_until_reset} minutes"
                    )
        except (ValueError, TypeError):
            pass  # Ignore parsing errors

    def get_rate_limit_status(self) -> Optional[RateLimitStatus]:
        """Rate limit status seen on the last API response, if any."""
        return self._rate_limit_status

    @staticmethod
    def _is_rate_limited(response: requests.Response) -> bool:
        if response.status_code == 429:
            return True
        return (
            response.status_code == 403
            and response.headers.get('X-RateLimit-Remaining') == '0'
        )

    def _backoff_delay(self, response: Optional[requests.Response], attempt: int) -> float:
        """Seconds to wait before the next attempt."""
        if response is not None:
            reset_time = response.headers.get('X-RateLimit-Reset')
            try:
                wait_time = int(reset_time) - int(time.time()) if reset_time else 0
            except (ValueError, TypeError):
                wait_time = 0  # Ignore parsing errors
            if 0 < wait_time < self.max_delay:
                return wait_time
        return min(self.base_delay * (2 ** attempt), self.max_delay)

    def _request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        """
        Send a request to the GitHub API.

        Only GET requests are retried; a write is attempted exactly once so a
        lost response can never be replayed over a newer revision.

        Raises:
            requests.RequestException: If the request could not be completed
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        attempts = self.max_retries if method == 'GET' else 1

        for attempt in range(attempts):
            last_attempt = attempt == attempts - 1
            try:
                response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            except requests.RequestException as e:
                logger.warning(f"GitHub API request failed: {method} {endpoint}: {e}")
                if last_attempt:
                    raise
                time.sleep(self._backoff_delay(None, attempt))
                continue

            self._update_rate_limit_from_headers(response.headers)

            if self._is_rate_limited(response) and not last_attempt:
                delay = self._backoff_delay(response, attempt)
                logger.info(f"Rate limited, waiting {delay}s (attempt {attempt + 1})")
                time.sleep(delay)
                continue

            return response

        # Unreachable: the last attempt always returns or raises
        raise requests.RequestException(f"no response for {method} {endpoint}")

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            return response.json().get('message', '') or response.reason
        except ValueError:
            return response.text or response.reason

    def _contents_endpoint(self, path: str) -> str:
        return f"repos/{self.owner}/{self.repo}/contents/{path}"

    def _issue_endpoint(self, ticket_id: int) -> str:
        return f"repos/{self.owner}/{self.repo}/issues/{ticket_id}"

    # Content store

    def get_file(self, path: str) -> StoredFile:
        """
        Read a file and its blob sha.

        Args:
            path: Path within the registry repository

        Returns:
            StoredFile with decoded UTF-8 content

        Raises:
            ContentNotFound: If the file does not exist
            StoreUnavailable: For any other failure
        """
        try:
            response = self._request('GET', self._contents_endpoint(path))
        except requests.RequestException as e:
            raise StoreUnavailable(f"could not read {path}: {e}") from e

        if response.status_code == 404:
            raise ContentNotFound(path)
        if response.status_code != 200:
            raise StoreUnavailable(
                f"GitHub API error {response.status_code} reading {path}: "
                f"{self._error_message(response)}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise StoreUnavailable(f"GitHub API returned invalid JSON for {path}: {e}") from e
        if not isinstance(data, dict) or data.get('type', 'file') != 'file':
            raise StoreUnavailable(f"{path} is not a file")

        # Files over 1 MB come back with encoding "none" and empty content
        if data.get('encoding') != 'base64':
            raise StoreUnavailable(
                f"{path} has no inline content (encoding {data.get('encoding')!r}, "
                f"size {data.get('size')})"
            )

        try:
            content = base64.b64decode(data.get('content', '')).decode('utf-8')
            sha = data['sha']
        except (binascii.Error, UnicodeDecodeError, KeyError) as e:
            raise StoreUnavailable(f"GitHub API returned unreadable content for {path}: {e}") from e
        return StoredFile(path=path, content=content, sha=sha)

    def put_file(
        self,
        path: str,
        content: str,
        message: str,
        expected_sha: Optional[str] = None
    ) -> str:
        """
        Create or update a file.

        With ``expected_sha`` the write only succeeds if the file's current
        blob sha still matches. Without it the file must not exist yet.

        Args:
            path: Path within the registry repository
            content: New file content
            message: Commit message
            expected_sha: Blob sha read before modifying the file

        Returns:
            Blob sha of the written file

        Raises:
            WriteConflict: If the precondition did not hold
            StoreUnavailable: For any other failure
        """
        payload = {
            'message': message,
            'content': base64.b64encode(content.encode('utf-8')).decode('ascii'),
            'committer': dict(self.committer),
            'author': dict(self.committer),
        }
        if expected_sha:
            payload['sha'] = expected_sha

        try:
            response = self._request('PUT', self._contents_endpoint(path), json=payload)
        except requests.RequestException as e:
            raise StoreUnavailable(f"could not write {path}: {e}") from e

        if response.status_code in (200, 201):
            # The commit has landed; an unreadable body only loses the new sha
            try:
                new_sha = response.json().get('content', {}).get('sha', '')
            except (ValueError, AttributeError) as e:
                logger.warning(f"Wrote {path} but could not read the new sha: {e}")
                return ''
            logger.debug(f"Wrote {path} ({new_sha})")
            return new_sha

        if response.status_code == 409:
            raise WriteConflict(f"{path} changed since it was read")
        if response.status_code == 422 and not expected_sha:
            raise WriteConflict(f"{path} already exists")

        raise StoreUnavailable(
            f"GitHub API error {response.status_code} writing {path}: "
            f"{self._error_message(response)}"
        )

    # Identity provider

    def list_groups_for_user(self, login: str) -> Set[Any]:
        """
        List the ids of the public orgs a user belongs to.

        Raises:
            IdentityProviderError: If the lookup fails
        """
        org_ids: Set[Any] = set()
        page = 1

        while True:
            endpoint = f"users/{login}/orgs?per_page={ORGS_PAGE_SIZE}&page={page}"
            try:
                response = self._request('GET', endpoint)
            except requests.RequestException as e:
                raise IdentityProviderError(f"could not list orgs for {login}: {e}") from e

            if response.status_code != 200:
                raise IdentityProviderError(
                    f"GitHub API error {response.status_code} listing orgs for {login}: "
                    f"{self._error_message(response)}"
                )

            orgs = response.json()
            org_ids.update(org['id'] for org in orgs)

            if len(orgs) < ORGS_PAGE_SIZE:
                break
            page += 1

        return org_ids

    # Ticketing

    def add_comment(self, ticket_id: int, text: str) -> None:
        """Post a comment on a submission issue."""
        try:
            response = self._request(
                'POST', f"{self._issue_endpoint(ticket_id)}/comments", json={'body': text}
            )
        except requests.RequestException as e:
            raise TicketingError(f"could not comment on issue #{ticket_id}: {e}") from e

        if response.status_code != 201:
            raise TicketingError(
                f"GitHub API error {response.status_code} commenting on issue #{ticket_id}: "
                f"{self._error_message(response)}"
            )

    def set_labels_and_close(self, ticket_id: int, labels) -> None:
        """Replace an issue's labels and close it."""
        try:
            response = self._request(
                'PATCH',
                self._issue_endpoint(ticket_id),
                json={'labels': list(labels), 'state': 'closed'},
            )
        except requests.RequestException as e:
            raise TicketingError(f"could not close issue #{ticket_id}: {e}") from e

        if response.status_code != 200:
            raise TicketingError(
                f"GitHub API error {response.status_code} closing issue #{ticket_id}: "
                f"{self._error_message(response)}"
            )
        logger.info(f"Closed issue #{ticket_id} with labels {list(labels)}")
