"""Shared data type definitions (Fragment, SplitPayload, CredentialRecord, StoredCredential)."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class Fragment:
    """
    One bounded piece of a transport message.

    Invariant: 0 <= index < total_count and total_count >= 1.
    """
    index: int
    total_count: int
    message_id: str
    encoding: str
    data: str

    @property
    def is_last(self) -> bool:
        return self.index == self.total_count - 1


@dataclass(frozen=True)
class SplitPayload:
    """Transcoded payload cut into ordered pieces."""
    encoding: str
    chunks: List[str]

    @property
    def total_count(self) -> int:
        return len(self.chunks)


@dataclass(frozen=True)
class CredentialRecord:
    """
    A credential as handed to the record store: opaque payload plus format tag.
    """
    credential: str
    format: str

    def to_json(self) -> str:
        """Serialize to the compact JSON string that gets chunked."""
        return json.dumps(
            {'credential': self.credential, 'format': self.format},
            separators=(',', ':'),
            ensure_ascii=False,
        )

    @classmethod
    def from_json(cls, data: str) -> 'CredentialRecord':
        """Deserialize from the JSON string produced by to_json."""
        obj = json.loads(data)
        return cls(credential=obj['credential'], format=obj['format'])


@dataclass
class StoredCredential:
    """
    A stored record reconstructed during listing, with decoded claims.
    """
    id: str
    format: str
    credential: str
    claims: Dict[str, Any] = field(default_factory=dict)

    def as_candidate(self) -> Dict[str, Any]:
        """Flatten into the claim dict handed to query matchers."""
        return {'raw': self.credential, **self.claims}
