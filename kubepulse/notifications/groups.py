"""Recipient groups resolved by id."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Protocol


@dataclass(frozen=True)
class RecipientGroup:
    group_id: str
    recipients: tuple[str, ...]
    enabled: bool = True


class RecipientLookup(Protocol):
    def resolve(self, group_id: str) -> list[str]: ...


def parse_groups(value: str) -> dict[str, RecipientGroup]:
    """Parse ``ops=a@x.io,b@x.io;dev=c@x.io`` into groups.

    Blank addresses are dropped.  Later definitions of the same id win.
    """
    groups: dict[str, RecipientGroup] = {}
    for chunk in filter(None, (part.strip() for part in value.split(";"))):
        group_id, sep, addresses = chunk.partition("=")
        group_id = group_id.strip()
        if not sep or not group_id:
            raise ValueError(f"Invalid recipient group definition: {chunk!r}")
        recipients = tuple(addr.strip() for addr in addresses.split(",") if addr.strip())
        if not recipients:
            raise ValueError(f"Recipient group {group_id!r} has no addresses")
        groups[group_id] = RecipientGroup(group_id=group_id, recipients=recipients)
    return groups


class StaticGroupLookup:
    """In-memory group table; disabled or unknown groups resolve to ``[]``."""

    def __init__(self, groups: dict[str, RecipientGroup] | None = None) -> None:
        self._groups = dict(groups or {})

    @classmethod
    def from_string(cls, value: str) -> StaticGroupLookup:
        return cls(parse_groups(value))

    def __contains__(self, group_id: object) -> bool:
        return group_id in self._groups

    def resolve(self, group_id: str) -> list[str]:
        group = self._groups.get(group_id)
        if group is None or not group.enabled:
            return []
        return list(group.recipients)

    def put(self, group: RecipientGroup) -> None:
        self._groups[group.group_id] = group

    def remove(self, group_id: str) -> bool:
        return self._groups.pop(group_id, None) is not None

    def set_enabled(self, group_id: str, enabled: bool) -> bool:
        group = self._groups.get(group_id)
        if group is None:
            return False
        self._groups[group_id] = replace(group, enabled=enabled)
        return True
