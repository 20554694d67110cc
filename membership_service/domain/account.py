from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class AccountEntity:
    """Row of the ``accounts`` table; inverse side of the user/account association."""

    id: int | None
    name: str
    industry: str | None = None
    user_ids: set[int] = field(default_factory=set)
