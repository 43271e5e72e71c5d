"""
Deletion Policies

How each entity is removed, declared in one place instead of being implied
by individual code paths:

- Review:  SoftDelete(status="hidden")  the row stays, so its (user, book)
           slot stays taken and likes/favorites/comments survive
- Book:    HardDelete(cascade=True)     reviews and everything below them go
- Comment: HardDelete(cascade=False)    refused while replies exist

Services look the policy up with policy_for() and branch on its type.
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class SoftDelete:
    """Move the row to `status` instead of deleting it."""

    status: str


@dataclass(frozen=True)
class HardDelete:
    """
    Physically delete the row.

    cascade=True removes dependents along with it; cascade=False means the
    delete is refused while dependents exist.
    """

    cascade: bool


DeletionPolicy = Union[SoftDelete, HardDelete]

DELETION_POLICIES: dict[str, DeletionPolicy] = {
    "review": SoftDelete(status="hidden"),
    "book": HardDelete(cascade=True),
    "comment": HardDelete(cascade=False),
}


def policy_for(entity: str) -> DeletionPolicy:
    """Return the deletion policy for an entity name ("review", "book", "comment")."""
    return DELETION_POLICIES[entity]
