from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class UserEntity:
    """Row of the ``users`` table; owning side of the user/account association."""

    id: int | None
    email: str
    name: str
    surname: str
    account_ids: set[int] = field(default_factory=set)
