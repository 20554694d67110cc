"""User and account services maintaining the two-sided membership association."""

from __future__ import annotations

import logging

from .account import AccountEntity
from .errors import ResourceNotFoundError
from .user import UserEntity
from ..database import Database
from ..mapping import account_to_entity, account_to_model, user_to_entity, user_to_model
from ..repository import AccountRepository, UserRepository
from ..schemas import Account, User

logger = logging.getLogger(__name__)


class AccountService:
    """Account workflows backed by Postgres storage."""

    def __init__(self, accounts: AccountRepository) -> None:
        self._accounts = accounts

    def get_accounts(self) -> list[Account]:
        """Return every account with its member user ids."""
        return [account_to_model(entity) for entity in self._accounts.find_all()]

    def get_account(self, account_id: int) -> Account:
        entity = self._accounts.find_by_id(account_id)
        if entity is None:
            raise ResourceNotFoundError("account", account_id)
        return account_to_model(entity)

    def create_account(self, account: Account) -> Account:
        """Persist a new account; any client supplied ``id`` or ``userIds`` are ignored."""
        saved = self._accounts.save(account_to_entity(account))
        logger.info("created account %s", saved.id)
        return account_to_model(saved)


class UserService:
    """User workflows and the owner of user/account membership changes.

    The repositories persist whatever they are handed. Keeping
    ``UserEntity.account_ids`` and ``AccountEntity.user_ids`` in step is the
    job of this class, and every membership change runs inside a single
    transaction with both rows locked.
    """

    def __init__(self, users: UserRepository, accounts: AccountRepository, db: Database) -> None:
        self._users = users
        self._accounts = accounts
        self._db = db

    def get_users(self) -> list[User]:
        """Return every user with its account ids."""
        return [user_to_model(entity) for entity in self._users.find_all()]

    def get_user(self, user_id: int) -> User:
        entity = self._users.find_by_id(user_id)
        if entity is None:
            raise ResourceNotFoundError("user", user_id)
        return user_to_model(entity)

    def create_user(self, user: User) -> User:
        """Persist a new user; any client supplied ``id`` or ``accountIds`` are ignored."""
        saved = self._users.save(user_to_entity(user))
        logger.info("created user %s", saved.id)
        return user_to_model(saved)

    def link_user_to_account_with_membership(self, user_id: int, account_id: int) -> None:
        """Add the membership on both sides. Linking an existing pair is a no-op.

        Raises
        ------
        ResourceNotFoundError
            If either the user or the account does not exist.
        """
        with self._db.transaction():
            user, account = self._lock_pair(user_id, account_id)
            if account_id in user.account_ids and user_id in account.user_ids:
                logger.debug("user %s already linked to account %s", user_id, account_id)
                return

            user.account_ids.add(account_id)
            account.user_ids.add(user_id)
            self._users.save(user)
            self._accounts.save(account)
        logger.info("linked user %s to account %s", user_id, account_id)

    def unlink_user_from_account_with_membership(self, user_id: int, account_id: int) -> None:
        """Remove the membership from both sides. Unlinking a non-member is a no-op.

        Raises
        ------
        ResourceNotFoundError
            If either the user or the account does not exist.
        """
        with self._db.transaction():
            user, account = self._lock_pair(user_id, account_id)
            if account_id not in user.account_ids and user_id not in account.user_ids:
                logger.debug("user %s not linked to account %s", user_id, account_id)
                return

            user.account_ids.discard(account_id)
            account.user_ids.discard(user_id)
            self._users.save(user)
            self._accounts.save(account)
        logger.info("unlinked user %s from account %s", user_id, account_id)

    def _lock_pair(self, user_id: int, account_id: int) -> tuple[UserEntity, AccountEntity]:
        # user row first, then account row: a fixed order for every caller
        user = self._users.find_by_id(user_id, for_update=True)
        if user is None:
            logger.warning("membership change for unknown user %s", user_id)
            raise ResourceNotFoundError("user", user_id)
        account = self._accounts.find_by_id(account_id, for_update=True)
        if account is None:
            logger.warning("membership change for unknown account %s", account_id)
            raise ResourceNotFoundError("account", account_id)
        return user, account
