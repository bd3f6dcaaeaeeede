"""
Authorization for bpindex: may a submitter publish into a namespace?
"""

from typing import Any, Iterable
import logging

from ..domain import OwnerRecord, OwnerType, Submitter

logger = logging.getLogger(__name__)


class Authorizer:
    """
    Checks a submitter against a namespace's owners.

    Individual owners are matched by user id. Org owners are matched
    against the submitter's org memberships, which costs one identity
    provider call and is only made when no individual entry matches.
    """

    def __init__(self, identity_provider: Any):
        self.identity = identity_provider

    def is_authorized(self, submitter: Submitter, owners: Iterable[OwnerRecord]) -> bool:
        """
        Raises:
            IdentityProviderError: If org memberships cannot be listed
        """
        owners = list(owners)

        if any(o.type is OwnerType.INDIVIDUAL and o.id == submitter.id for o in owners):
            logger.info(f"{submitter.login} authorized via {OwnerType.INDIVIDUAL.value}")
            return True

        group_ids = self.identity.list_groups_for_user(submitter.login)
        if any(o.type is OwnerType.GROUP and o.id in group_ids for o in owners):
            logger.info(f"{submitter.login} authorized via {OwnerType.GROUP.value}")
            return True

        logger.info(f"{submitter.login} is not an owner")
        return False
