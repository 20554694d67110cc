from __future__ import annotations

import copy
from contextlib import contextmanager
from dataclasses import dataclass, field

import pytest
from fastapi.testclient import TestClient

from membership_service.domain.account import AccountEntity
from membership_service.domain.service import AccountService, UserService
from membership_service.domain.user import UserEntity
from membership_service.health import HealthService
from membership_service.main import build_app
from membership_service.security.tokens import issue_access_token


@dataclass
class FakeStore:
    """In-memory stand-in for the users, accounts and user_accounts tables."""

    users: dict[int, tuple[str, str, str]] = field(default_factory=dict)
    accounts: dict[int, tuple[str, str | None]] = field(default_factory=dict)
    links: set[tuple[int, int]] = field(default_factory=set)
    next_user_id: int = 1
    next_account_id: int = 1


class FakeDatabase:
    """Transaction scope that restores the store when the block raises."""

    def __init__(self, store: FakeStore) -> None:
        self._store = store
        self._depth = 0
        self.transactions = 0

    @contextmanager
    def transaction(self):
        if self._depth:
            yield None
            return
        self.transactions += 1
        snapshot = copy.deepcopy(self._store.__dict__)
        self._depth += 1
        try:
            yield None
        except BaseException:
            self._store.__dict__.update(snapshot)
            raise
        finally:
            self._depth -= 1

    def ping(self) -> bool:
        return True


class FakeUserRepository:
    """In-memory repository mimicking the Postgres owning-side behavior."""

    def __init__(self, store: FakeStore, db: FakeDatabase) -> None:
        self._store = store
        self._db = db
        self.locked: list[tuple[str, int]] = []

    def find_all(self) -> list[UserEntity]:
        return [self._load(user_id) for user_id in sorted(self._store.users)]

    def find_by_id(self, user_id: int, *, for_update: bool = False) -> UserEntity | None:
        if user_id not in self._store.users:
            return None
        if for_update:
            self.locked.append(("user", user_id))
        return self._load(user_id)

    def save(self, user: UserEntity) -> UserEntity:
        with self._db.transaction():
            if user.id is None:
                user.id = self._store.next_user_id
                self._store.next_user_id += 1
            self._store.users[user.id] = (user.email, user.name, user.surname)
            for account_id in user.account_ids:
                if account_id not in self._store.accounts:
                    raise RuntimeError(f"foreign key violation: account {account_id}")
            self._store.links = {link for link in self._store.links if link[0] != user.id}
            self._store.links |= {(user.id, account_id) for account_id in user.account_ids}
        return user

    def _load(self, user_id: int) -> UserEntity:
        email, name, surname = self._store.users[user_id]
        return UserEntity(
            id=user_id,
            email=email,
            name=name,
            surname=surname,
            account_ids={a for (u, a) in self._store.links if u == user_id},
        )


class FakeAccountRepository:
    """In-memory repository; ``save`` never writes memberships (inverse side)."""

    def __init__(self, store: FakeStore, db: FakeDatabase, locked: list[tuple[str, int]]) -> None:
        self._store = store
        self._db = db
        self.locked = locked
        self.fail_with: Exception | None = None

    def find_all(self) -> list[AccountEntity]:
        if self.fail_with is not None:
            raise self.fail_with
        return [self._load(account_id) for account_id in sorted(self._store.accounts)]

    def find_by_id(self, account_id: int, *, for_update: bool = False) -> AccountEntity | None:
        if account_id not in self._store.accounts:
            return None
        if for_update:
            self.locked.append(("account", account_id))
        return self._load(account_id)

    def save(self, account: AccountEntity) -> AccountEntity:
        if self.fail_with is not None:
            raise self.fail_with
        with self._db.transaction():
            if account.id is None:
                account.id = self._store.next_account_id
                self._store.next_account_id += 1
            self._store.accounts[account.id] = (account.name, account.industry)
        return account

    def _load(self, account_id: int) -> AccountEntity:
        name, industry = self._store.accounts[account_id]
        return AccountEntity(
            id=account_id,
            name=name,
            industry=industry,
            user_ids={u for (u, a) in self._store.links if a == account_id},
        )


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def db(store) -> FakeDatabase:
    return FakeDatabase(store)


@pytest.fixture
def user_repository(store, db) -> FakeUserRepository:
    return FakeUserRepository(store, db)


@pytest.fixture
def account_repository(store, db, user_repository) -> FakeAccountRepository:
    return FakeAccountRepository(store, db, user_repository.locked)


@pytest.fixture
def user_service(user_repository, account_repository, db) -> UserService:
    return UserService(user_repository, account_repository, db)


@pytest.fixture
def account_service(account_repository) -> AccountService:
    return AccountService(account_repository)


@pytest.fixture
def app(user_service, account_service, db):
    """Provide an application wired to the in-memory repositories."""
    application = build_app()
    application.state.user_service = user_service
    application.state.account_service = account_service
    application.state.health_service = HealthService({"db": db.ping})
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def bearer():
    """Return a factory producing Authorization headers for the given roles."""

    def make(*roles: str) -> dict[str, str]:
        token, _ = issue_access_token(subject="tester", roles=roles)
        return {"Authorization": f"Bearer {token}"}

    return make
