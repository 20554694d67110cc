"""Postgres repositories for users, accounts and their memberships."""

from __future__ import annotations

from psycopg.rows import tuple_row

from .database import Database
from .domain.account import AccountEntity
from .domain.user import UserEntity

_SELECT_USERS = """
    SELECT u.id, u.email, u.name, u.surname,
           COALESCE(
               array_agg(ua.account_id ORDER BY ua.account_id)
                   FILTER (WHERE ua.account_id IS NOT NULL),
               '{}'
           )
    FROM users u
    LEFT JOIN user_accounts ua ON ua.user_id = u.id
"""

_SELECT_ACCOUNTS = """
    SELECT a.id, a.name, a.industry,
           COALESCE(
               array_agg(ua.user_id ORDER BY ua.user_id)
                   FILTER (WHERE ua.user_id IS NOT NULL),
               '{}'
           )
    FROM accounts a
    LEFT JOIN user_accounts ua ON ua.account_id = a.id
"""


class UserRepository:
    """Persistence for ``users``; writes the ``user_accounts`` join table as the owning side."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def find_all(self) -> list[UserEntity]:
        with self._db.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(_SELECT_USERS + " GROUP BY u.id ORDER BY u.id")
                return [self._map_record(row) for row in cur.fetchall()]

    def find_by_id(self, user_id: int, *, for_update: bool = False) -> UserEntity | None:
        """Fetch a user with its account ids, or ``None``.

        With ``for_update`` the user row stays locked until the surrounding
        transaction ends.
        """
        with self._db.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                if for_update:
                    cur.execute("SELECT id FROM users WHERE id = %s FOR UPDATE", (user_id,))
                    if cur.fetchone() is None:
                        return None
                cur.execute(_SELECT_USERS + " WHERE u.id = %s GROUP BY u.id", (user_id,))
                row = cur.fetchone()
                if not row:
                    return None
        return self._map_record(row)

    def save(self, user: UserEntity) -> UserEntity:
        """Insert or update the user row and sync its memberships to ``account_ids``."""
        with self._db.transaction() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                if user.id is None:
                    cur.execute(
                        """
                        INSERT INTO users (email, name, surname)
                        VALUES (%s, %s, %s)
                        RETURNING id
                        """,
                        (user.email, user.name, user.surname),
                    )
                    user.id = cur.fetchone()[0]
                else:
                    cur.execute(
                        """
                        UPDATE users
                        SET email = %s, name = %s, surname = %s
                        WHERE id = %s
                        """,
                        (user.email, user.name, user.surname, user.id),
                    )

                account_ids = sorted(user.account_ids)
                cur.execute(
                    """
                    DELETE FROM user_accounts
                    WHERE user_id = %s AND NOT (account_id = ANY(%s::bigint[]))
                    """,
                    (user.id, account_ids),
                )
                if account_ids:
                    cur.execute(
                        """
                        INSERT INTO user_accounts (user_id, account_id)
                        SELECT %s, unnest(%s::bigint[])
                        ON CONFLICT (user_id, account_id) DO NOTHING
                        """,
                        (user.id, account_ids),
                    )
        return user

    def _map_record(self, row: tuple) -> UserEntity:
        """Convert a raw database tuple into a ``UserEntity``."""
        return UserEntity(
            id=row[0],
            email=row[1],
            name=row[2],
            surname=row[3],
            account_ids=set(row[4] or ()),
        )


class AccountRepository:
    """Persistence for ``accounts``.

    Accounts are the inverse side of the membership association: ``save``
    writes scalar columns only and never touches ``user_accounts``.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    def find_all(self) -> list[AccountEntity]:
        with self._db.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(_SELECT_ACCOUNTS + " GROUP BY a.id ORDER BY a.id")
                return [self._map_record(row) for row in cur.fetchall()]

    def find_by_id(self, account_id: int, *, for_update: bool = False) -> AccountEntity | None:
        with self._db.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                if for_update:
                    cur.execute("SELECT id FROM accounts WHERE id = %s FOR UPDATE", (account_id,))
                    if cur.fetchone() is None:
                        return None
                cur.execute(_SELECT_ACCOUNTS + " WHERE a.id = %s GROUP BY a.id", (account_id,))
                row = cur.fetchone()
                if not row:
                    return None
        return self._map_record(row)

    def save(self, account: AccountEntity) -> AccountEntity:
        with self._db.transaction() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                if account.id is None:
                    cur.execute(
                        """
                        INSERT INTO accounts (name, industry)
                        VALUES (%s, %s)
                        RETURNING id
                        """,
                        (account.name, account.industry),
                    )
                    account.id = cur.fetchone()[0]
                else:
                    cur.execute(
                        "UPDATE accounts SET name = %s, industry = %s WHERE id = %s",
                        (account.name, account.industry, account.id),
                    )
        return account

    def _map_record(self, row: tuple) -> AccountEntity:
        return AccountEntity(
            id=row[0],
            name=row[1],
            industry=row[2],
            user_ids=set(row[3] or ()),
        )
