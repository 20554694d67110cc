"""Domain exceptions surfaced to the API layer."""

from __future__ import annotations


class MembershipError(Exception):
    """Base class for errors raised by the membership domain."""


class ResourceNotFoundError(MembershipError):
    """Raised when a referenced user or account does not exist."""

    def __init__(self, resource: str, resource_id: int) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} {resource_id} not found")
