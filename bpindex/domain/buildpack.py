"""
BuildpackRecord domain object for bpindex.

A record is one registered version of a buildpack. Records are stored one
per line in an index shard as compact JSON:

    {"ns":"heroku","name":"java","version":"0.0.0","yanked":false,"addr":"gcr.io/..."}

The ``yanked`` flag is only ever written as ``false`` here; revocation
happens out of band.
"""

from dataclasses import dataclass
from typing import Dict, Any
import json


@dataclass(frozen=True)
class BuildpackRecord:
    """
    One version of a buildpack in the registry index.

    Attributes:
        namespace: Owning namespace (first segment of the id)
        name: Buildpack name (remainder of the id)
        version: Semantic version string, compared verbatim for duplicates
        address: Image reference pinned by digest (host/path@sha256:...)
        yanked: Whether the version has been revoked
    """

    namespace: str
    name: str
    version: str
    address: str
    yanked: bool = False

    @property
    def id(self) -> str:
        """Registry id in ``namespace/name`` form."""
        return f"{self.namespace}/{self.name}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BuildpackRecord':
        """Create from a decoded index line."""
        return cls(
            namespace=data['ns'],
            name=data['name'],
            version=data['version'],
            address=data['addr'],
            yanked=bool(data.get('yanked', False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the index wire format."""
        return {
            'ns': self.namespace,
            'name': self.name,
            'version': self.version,
            'yanked': self.yanked,
            'addr': self.address,
        }

    def to_jsonl(self) -> str:
        """Encode as a single compact index line (no trailing newline)."""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(',', ':'))

    def __str__(self) -> str:
        return f"{self.id}@{self.version}"
