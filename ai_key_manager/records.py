"""
Records Module - The stored API key record and import assembly helpers.

Defines the ApiKey record persisted in key files, creates fresh records
from classified key/value pairs and flags name conflicts when importing
into an existing set.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


def now_iso() -> str:
    """Current local time as an ISO-8601 string."""
    return datetime.now().isoformat()


@dataclass
class ApiKey:
    """Represents a stored API key."""

    id: str
    name: str
    value: str
    provider: str
    description: str = ""
    date_added: str = field(default_factory=now_iso)
    last_used: Optional[str] = None

    def __repr__(self) -> str:
        # Don't expose the full key in repr for security
        masked = self.value[:4] + "..." + self.value[-4:] if len(self.value) > 8 else "***"
        return f"ApiKey(name={self.name}, provider={self.provider}, value={masked})"

    def to_dict(self) -> dict:
        """Convert to the on-disk (camelCase) representation."""
        data = {
            "id": self.id,
            "name": self.name,
            "value": self.value,
            "provider": self.provider,
            "description": self.description,
            "dateAdded": self.date_added,
        }
        if self.last_used is not None:
            data["lastUsed"] = self.last_used
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ApiKey":
        """
        Build a record from its on-disk representation.

        Raises:
            ValueError: If the name or value is missing, null or empty
        """
        name = data.get("name")
        value = data.get("value")
        if name is None or value is None or name == "" or value == "":
            raise ValueError("Key record needs a name and a value")

        return cls(
            id=str(data.get("id") or new_key_id()),
            name=str(name),
            value=str(value),
            provider=str(data.get("provider") or "Other"),
            description=data.get("description") or "",
            date_added=data.get("dateAdded") or now_iso(),
            last_used=data.get("lastUsed"),
        )


def new_key_id() -> str:
    """Allocate a fresh record identifier."""
    return str(uuid.uuid4())


def create_key(
    name: str,
    value: str,
    provider: str,
    description: str = "",
    key_id: Optional[str] = None,
    date_added: Optional[str] = None,
    last_used: Optional[str] = None
) -> ApiKey:
    """
    Wrap a classified key/value pair into a new record.

    Args:
        name: Key name
        value: Key value
        provider: Provider the pair was classified as
        description: Optional free text
        key_id: Existing identifier to keep (a new one is allocated if None)
        date_added: Existing creation timestamp to keep
        last_used: Existing last-used timestamp to keep

    Returns:
        The assembled ApiKey
    """
    return ApiKey(
        id=key_id or new_key_id(),
        name=name,
        value=value,
        provider=provider,
        description=description or "",
        date_added=date_added or now_iso(),
        last_used=last_used,
    )


def find_conflicts(candidates: list[ApiKey], existing: list[ApiKey]) -> list[ApiKey]:
    """Return the candidates whose name is already used by an existing record."""
    existing_names = {key.name for key in existing}
    return [key for key in candidates if key.name in existing_names]


@dataclass
class ImportPreview:
    """Keys about to be imported, with the ones that clash by name."""

    keys: list[ApiKey]
    conflicts: list[ApiKey]
    format_name: str

    @classmethod
    def build(cls, candidates: list[ApiKey], existing: list[ApiKey], format_name: str) -> "ImportPreview":
        return cls(
            keys=list(candidates),
            conflicts=find_conflicts(candidates, existing),
            format_name=format_name,
        )

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def keys_to_import(self, skip_conflicts: bool = True) -> list[ApiKey]:
        """Keys to add, leaving out conflicting names when skip_conflicts is set."""
        if not skip_conflicts:
            return list(self.keys)
        conflict_names = {key.name for key in self.conflicts}
        return [key for key in self.keys if key.name not in conflict_names]
