"""Conversions between persistence entities and wire models."""

from __future__ import annotations

from .domain.account import AccountEntity
from .domain.user import UserEntity
from .schemas import Account, User


def user_to_model(entity: UserEntity) -> User:
    return User(
        id=entity.id,
        email=entity.email,
        name=entity.name,
        surname=entity.surname,
        account_ids=sorted(entity.account_ids),
    )


def user_to_entity(model: User) -> UserEntity:
    """Build a fresh entity from a wire model.

    The model's ``id`` and ``accountIds`` are discarded: identity is assigned
    by the database and memberships change only through link/unlink.
    """
    return UserEntity(id=None, email=model.email, name=model.name, surname=model.surname)


def account_to_model(entity: AccountEntity) -> Account:
    return Account(
        id=entity.id,
        name=entity.name,
        industry=entity.industry,
        user_ids=sorted(entity.user_ids),
    )


def account_to_entity(model: Account) -> AccountEntity:
    """Build a fresh entity from a wire model, ignoring ``id`` and ``userIds``."""
    return AccountEntity(id=None, name=model.name, industry=model.industry)
