"""
Submission lifecycle for bpindex.

Runs one registry issue through validation, ownership, authorization and
indexing, then closes the issue. Problems with the submission itself close
the issue with a failure label and a comment saying what was wrong.
Operational failures (GitHub down, a concurrent write) propagate and leave
the issue open so the run can be retried.
"""

from typing import Any, Dict
import logging

from ..domain import ACCEPTED, REJECTED, Submission, SubmissionOutcome
from ..exit_codes import NotAuthorized, RegistryError
from .authorization import Authorizer
from .index_store import IndexStore, shard_path
from .owner_directory import OwnerDirectory
from .validator import SubmissionValidator

logger = logging.getLogger(__name__)


class SubmissionProcessor:
    """
    Accepts or rejects registry submissions.

    Example:
        github = GitHubClient.from_config(config)
        processor = SubmissionProcessor.from_config(config, github, github, github)
        outcome = processor.process(Submission.from_event(payload))
    """

    def __init__(
        self,
        validator: SubmissionValidator,
        owners: OwnerDirectory,
        authorizer: Authorizer,
        index: IndexStore,
        tickets: Any,
        accepted_label: str = 'succeeded',
        rejected_label: str = 'failure'
    ):
        """
        Initialize SubmissionProcessor.

        Args:
            validator: Parses the issue into a record
            owners: Looks up (and bootstraps) namespace owners
            authorizer: Decides whether the submitter may publish
            index: Merges the record into its shard
            tickets: Has ``add_comment`` and ``set_labels_and_close``
            accepted_label: Label set on accepted issues
            rejected_label: Label set on rejected issues
        """
        self.validator = validator
        self.owners = owners
        self.authorizer = authorizer
        self.index = index
        self.tickets = tickets
        self.accepted_label = accepted_label
        self.rejected_label = rejected_label

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        store: Any,
        identity_provider: Any,
        tickets: Any
    ) -> 'SubmissionProcessor':
        """Wire a processor from configuration and its collaborators."""
        registry = config.get('registry', {})
        labels = config.get('labels', {})
        return cls(
            validator=SubmissionValidator.from_config(config),
            owners=OwnerDirectory(store, registry.get('version_tag', 'v1')),
            authorizer=Authorizer(identity_provider),
            index=IndexStore(store),
            tickets=tickets,
            accepted_label=labels.get('accepted', 'succeeded'),
            rejected_label=labels.get('rejected', 'failure'),
        )

    def process(self, submission: Submission) -> SubmissionOutcome:
        """
        Process one submission to completion.

        Returns:
            Accepted or rejected outcome; the issue has been closed either way

        Raises:
            RegistryError: Operational failures (StoreUnavailable,
                IdentityProviderError, TicketingError); the issue is untouched
        """
        try:
            record = self.validator.validate(submission.title, submission.body)
            # An unplaceable record must not claim its namespace
            shard_path(record.namespace, record.name)

            owners = self.owners.get_or_create(record.namespace, submission.submitter)
            if not self.authorizer.is_authorized(submission.submitter, owners):
                raise NotAuthorized(
                    f"{submission.submitter.login} is not authorized to publish "
                    f"to namespace \"{record.namespace}\""
                )

            path = self.index.upsert(record, submission.title)
        except RegistryError as e:
            if not e.user_error:
                logger.error(f"Issue #{submission.ticket_id} left open: {e}")
                raise
            return self._reject(submission, e)

        self.tickets.set_labels_and_close(submission.ticket_id, [self.accepted_label])
        logger.info(f"Accepted {record} from issue #{submission.ticket_id}")
        return SubmissionOutcome(
            status=ACCEPTED,
            ticket_id=submission.ticket_id,
            record=record,
            shard_path=path,
        )

    def _reject(self, submission: Submission, error: RegistryError) -> SubmissionOutcome:
        reason = str(error)
        logger.info(f"Rejected issue #{submission.ticket_id}: {reason}")
        self.tickets.add_comment(submission.ticket_id, reason)
        self.tickets.set_labels_and_close(submission.ticket_id, [self.rejected_label])
        return SubmissionOutcome(
            status=REJECTED,
            ticket_id=submission.ticket_id,
            error_type=error.error_type,
            reason=reason,
            exit_code=error.exit_code,
        )
