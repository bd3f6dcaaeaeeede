"""
Submission domain objects for bpindex.

A submission is a registry issue: its title carries the ``ADD`` verb, its
body is a small TOML document, and its sender is the identity being
authorized. The outcome of processing one is returned as a value.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
import json

from .buildpack import BuildpackRecord


ACCEPTED = "accepted"
REJECTED = "rejected"


@dataclass(frozen=True)
class Submitter:
    """GitHub user who opened the issue."""
    id: Any
    login: str


@dataclass(frozen=True)
class Submission:
    """
    A request to add a buildpack version.

    Attributes:
        title: Issue title, also used as the index commit message
        body: Issue body (TOML with id, version, addr)
        submitter: Issue sender
        ticket_id: Issue number, used to comment on and close it
    """

    title: str
    body: str
    submitter: Submitter
    ticket_id: int

    @classmethod
    def from_event(cls, payload: Dict[str, Any]) -> 'Submission':
        """
        Create from a GitHub ``issues`` webhook payload.

        Raises:
            KeyError: If the payload has no issue or sender
        """
        issue = payload['issue']
        sender = payload['sender']
        return cls(
            title=issue.get('title') or '',
            body=issue.get('body') or '',
            submitter=Submitter(id=sender['id'], login=sender.get('login', '')),
            ticket_id=issue['number'],
        )


@dataclass
class SubmissionOutcome:
    """Result of processing a submission that did not fail operationally."""

    status: str
    ticket_id: int
    record: Optional[BuildpackRecord] = None
    shard_path: Optional[str] = None
    error_type: Optional[str] = None
    reason: Optional[str] = None
    exit_code: int = 0

    @property
    def accepted(self) -> bool:
        return self.status == ACCEPTED

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'status': self.status, 'ticket': self.ticket_id}
        if self.record is not None:
            data['record'] = self.record.to_dict()
        if self.shard_path is not None:
            data['path'] = self.shard_path
        if self.error_type is not None:
            data['error_type'] = self.error_type
            data['reason'] = self.reason
        return data

    def to_jsonl(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)
