"""
Owner domain objects for bpindex.

Each namespace has an owners document listing the GitHub users and
organizations allowed to publish into it:

    {"owners": [{"id": 11111, "type": "github_user"}]}
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable
import json


class OwnerType(Enum):
    """Kind of identity an owner entry refers to."""
    INDIVIDUAL = "github_user"
    GROUP = "github_org"

    @classmethod
    def parse(cls, value: str) -> 'OwnerType':
        """Parse a wire value, accepting the generic spellings too."""
        aliases = {'individual': cls.INDIVIDUAL, 'group': cls.GROUP}
        if value in aliases:
            return aliases[value]
        return cls(value)


@dataclass(frozen=True)
class OwnerRecord:
    """
    One user or org authorized for a namespace.

    Attributes:
        id: Opaque identifier from GitHub (numeric user or org id)
        type: Whether ``id`` names a user or an org
    """

    id: Any
    type: OwnerType = OwnerType.INDIVIDUAL

    @classmethod
    def individual(cls, identity: Any) -> 'OwnerRecord':
        return cls(id=identity, type=OwnerType.INDIVIDUAL)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OwnerRecord':
        return cls(id=data['id'], type=OwnerType.parse(data['type']))

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'type': self.type.value}


def decode_owners(text: str) -> FrozenSet[OwnerRecord]:
    """
    Decode an owners document.

    Raises:
        ValueError: If the document is not valid JSON or lacks ``owners``
    """
    data = json.loads(text)
    if not isinstance(data, dict) or not isinstance(data.get('owners'), list):
        raise ValueError("owners document must be an object with an 'owners' list")
    try:
        return frozenset(OwnerRecord.from_dict(entry) for entry in data['owners'])
    except (KeyError, TypeError) as e:
        raise ValueError(f"malformed owner entry: {e}") from e


def encode_owners(owners: Iterable[OwnerRecord]) -> str:
    """Encode owners in the compact form used by the registry."""
    content = {'owners': [owner.to_dict() for owner in owners]}
    return json.dumps(content, separators=(',', ':'))
