# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Cassandra access for accounts and refresh tokens.

Email uniqueness is enforced by the store: an account is only written after
its ``accounts_by_email`` claim was applied with ``IF NOT EXISTS``. Driver
failures surface as ``StoreUnavailableError``.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from edulearn.auth.models import Account, RefreshToken
from edulearn.core.database.claims import claim_in_flight
from edulearn.core.database.errors import store_errors
from edulearn.core.logging import get_logger


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


class AccountRepository:
    """Reads and writes of the ``accounts`` table and its email claim."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        ks = self.keyspace
        self._get_by_id = self.session.prepare(f"SELECT * FROM {ks}.accounts WHERE id = ?")
        self._get_by_signup_request = self.session.prepare(
            f"SELECT * FROM {ks}.accounts WHERE signup_request_id = ?"
        )
        self._get_claim = self.session.prepare(
            f"SELECT account_id, created_at FROM {ks}.accounts_by_email WHERE email = ?"
        )
        self._claim_email = self.session.prepare(f"""
            INSERT INTO {ks}.accounts_by_email (email, account_id, created_at)
            VALUES (?, ?, ?)
            IF NOT EXISTS
        """)
        self._release_email = self.session.prepare(
            f"DELETE FROM {ks}.accounts_by_email WHERE email = ? IF account_id = ?"
        )
        self._insert = self.session.prepare(f"""
            INSERT INTO {ks}.accounts
            (id, email, name, role, institution, password_hash, online,
             signup_request_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._delete = self.session.prepare(f"DELETE FROM {ks}.accounts WHERE id = ?")
        self._update_password = self.session.prepare(
            f"UPDATE {ks}.accounts SET password_hash = ?, updated_at = ? WHERE id = ?"
        )
        self._update_online = self.session.prepare(
            f"UPDATE {ks}.accounts SET online = ? WHERE id = ?"
        )
        self._list_all = self.session.prepare(f"SELECT * FROM {ks}.accounts")
        self._list_by_role = self.session.prepare(
            f"SELECT * FROM {ks}.accounts WHERE role = ?"
        )
        self._count_by_role = self.session.prepare(
            f"SELECT COUNT(*) FROM {ks}.accounts WHERE role = ?"
        )
        self._count_online_by_role = self.session.prepare(
            f"SELECT COUNT(*) FROM {ks}.accounts WHERE role = ? AND online = true "
            "ALLOW FILTERING"
        )

    # ==========================================================================
    # Lookups
    # ==========================================================================

    async def get_by_id(self, account_id: UUID) -> Account | None:
        with store_errors("get_account", account_id=str(account_id)):
            row = (await self.session.aexecute(self._get_by_id, [account_id])).one()
        return Account.from_row(row) if row else None

    async def get_by_email(self, email: str) -> Account | None:
        """Resolve the email claim, then load the account it points at."""
        with store_errors("get_account_by_email"):
            claim = (await self.session.aexecute(self._get_claim, [email.lower()])).one()
            if not claim:
                return None
            row = (await self.session.aexecute(self._get_by_id, [claim.account_id])).one()
        return Account.from_row(row) if row else None

    async def get_by_signup_request(self, request_id: UUID) -> Account | None:
        with store_errors("get_account_by_signup_request", request_id=str(request_id)):
            row = (
                await self.session.aexecute(self._get_by_signup_request, [request_id])
            ).one()
        return Account.from_row(row) if row else None

    # ==========================================================================
    # Writes
    # ==========================================================================

    async def create(self, account: Account) -> bool:
        """Claim the email and write the account row.

        A claim whose account row never arrived (the writer failed between the
        two statements) is cleared once it is older than ``CLAIM_GRACE`` and
        the claim retried.

        Returns:
            False if the email already belongs to another account
        """
        with store_errors("create_account", email=account.email):
            if not await self._try_claim(account):
                if not await self._clear_orphan_claim(account.email):
                    return False
                if not await self._try_claim(account):
                    return False

            try:
                await self.session.aexecute(
                    self._insert,
                    [
                        account.id,
                        account.email,
                        account.name,
                        account.role,
                        account.institution,
                        account.password_hash,
                        account.online,
                        account.signup_request_id,
                        account.created_at,
                        account.updated_at,
                    ],
                )
            except Exception:
                # Without the row the claim would block the address forever
                await self.session.aexecute(
                    self._release_email, [account.email, account.id]
                )
                raise
        return True

    async def _try_claim(self, account: Account) -> bool:
        result = await self.session.aexecute(
            self._claim_email, [account.email, account.id, account.created_at]
        )
        return bool(result.was_applied)

    async def _clear_orphan_claim(self, email: str) -> bool:
        claim = (await self.session.aexecute(self._get_claim, [email])).one()
        if claim is None:
            return True
        row = (await self.session.aexecute(self._get_by_id, [claim.account_id])).one()
        if row is not None or claim_in_flight(claim.created_at):
            return False
        await self.session.aexecute(self._release_email, [email, claim.account_id])
        logger.warning("orphan_email_claim_cleared", account_id=str(claim.account_id))
        return True

    async def delete(self, account: Account) -> None:
        """Remove the account row and release its email claim."""
        with store_errors("delete_account", account_id=str(account.id)):
            await self.session.aexecute(self._delete, [account.id])
            await self.session.aexecute(self._release_email, [account.email, account.id])

    async def update_password(self, account_id: UUID, password_hash: str) -> None:
        with store_errors("update_password", account_id=str(account_id)):
            await self.session.aexecute(
                self._update_password, [password_hash, datetime.now(UTC), account_id]
            )

    async def set_online(self, account_id: UUID, online: bool) -> None:
        with store_errors("set_online", account_id=str(account_id)):
            await self.session.aexecute(self._update_online, [online, account_id])

    # ==========================================================================
    # Listing and counting
    # ==========================================================================

    async def list_all(self) -> list[Account]:
        with store_errors("list_accounts"):
            rows = await self.session.aexecute(self._list_all)
        return [Account.from_row(row) for row in rows]

    async def list_by_role(self, role: str) -> list[Account]:
        with store_errors("list_accounts_by_role", role=role):
            rows = await self.session.aexecute(self._list_by_role, [role])
        return [Account.from_row(row) for row in rows]

    async def count_by_role(self, role: str) -> int:
        with store_errors("count_accounts", role=role):
            row = (await self.session.aexecute(self._count_by_role, [role])).one()
        return int(row[0]) if row else 0

    async def count_online_by_role(self, role: str) -> int:
        with store_errors("count_online_accounts", role=role):
            row = (await self.session.aexecute(self._count_online_by_role, [role])).one()
        return int(row[0]) if row else 0


class RefreshTokenRepository:
    """Reads and writes of the ``refresh_tokens`` table."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._get = session.prepare(f"SELECT * FROM {keyspace}.refresh_tokens WHERE jti = ?")
        self._insert = session.prepare(f"""
            INSERT INTO {keyspace}.refresh_tokens
            (jti, account_id, expires_at, revoked, revoked_at, created_at,
             user_agent, ip_address)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._revoke = session.prepare(
            f"UPDATE {keyspace}.refresh_tokens SET revoked = true, revoked_at = ? "
            "WHERE jti = ?"
        )

    async def add(self, token: RefreshToken) -> None:
        with store_errors("insert_refresh_token", account_id=str(token.account_id)):
            await self.session.aexecute(
                self._insert,
                [
                    token.jti,
                    token.account_id,
                    token.expires_at,
                    token.revoked,
                    token.revoked_at,
                    token.created_at,
                    token.user_agent,
                    token.ip_address,
                ],
            )

    async def get(self, jti: UUID) -> RefreshToken | None:
        with store_errors("get_refresh_token"):
            row = (await self.session.aexecute(self._get, [jti])).one()
        return RefreshToken.from_row(row) if row else None

    async def revoke(self, jti: UUID) -> None:
        with store_errors("revoke_refresh_token"):
            await self.session.aexecute(self._revoke, [datetime.now(UTC), jti])
