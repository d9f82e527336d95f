# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Cassandra access for signup requests.

Two lightweight transactions carry the workflow's guarantees:
- the pending-email claim (``IF NOT EXISTS``) allows one pending request per
  email;
- the decision update (``IF status = 'pending'``) lets exactly one of several
  concurrent approve/reject calls win.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from edulearn.core.database.claims import claim_in_flight
from edulearn.core.database.errors import store_errors
from edulearn.core.exceptions import StoreUnavailableError
from edulearn.core.logging import get_logger

from .models import RequestStatus, SignupRequest


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


class SignupRequestRepository:
    """Reads and writes of ``signup_requests`` and its email claim."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        ks = self.keyspace
        self._get = self.session.prepare(f"SELECT * FROM {ks}.signup_requests WHERE id = ?")
        self._list_by_status = self.session.prepare(
            f"SELECT * FROM {ks}.signup_requests WHERE status = ?"
        )
        self._insert = self.session.prepare(f"""
            INSERT INTO {ks}.signup_requests
            (id, email, name, role, institution, status, created_at,
             decided_at, decided_by, account_id)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._decide = self.session.prepare(f"""
            UPDATE {ks}.signup_requests
            SET status = ?, decided_at = ?, decided_by = ?, account_id = ?
            WHERE id = ?
            IF status = ?
        """)
        self._get_claim = self.session.prepare(
            f"SELECT request_id, created_at FROM {ks}.pending_signup_by_email WHERE email = ?"
        )
        self._claim = self.session.prepare(f"""
            INSERT INTO {ks}.pending_signup_by_email (email, request_id, created_at)
            VALUES (?, ?, ?)
            IF NOT EXISTS
        """)
        self._release = self.session.prepare(
            f"DELETE FROM {ks}.pending_signup_by_email WHERE email = ? IF request_id = ?"
        )

    async def get(self, request_id: UUID) -> SignupRequest | None:
        with store_errors("get_signup_request", request_id=str(request_id)):
            row = (await self.session.aexecute(self._get, [request_id])).one()
        return SignupRequest.from_row(row) if row else None

    async def list_by_status(self, status: RequestStatus) -> list[SignupRequest]:
        with store_errors("list_signup_requests", status=status.value):
            rows = await self.session.aexecute(self._list_by_status, [status.value])
        return [SignupRequest.from_row(row) for row in rows]

    async def create(self, request: SignupRequest) -> bool:
        """Claim the email for a pending request and persist it.

        A claim left behind by a request that is no longer pending (its
        release failed after the decision), or by a writer that never wrote
        its row, is cleared and the claim retried. A claim younger than
        ``CLAIM_GRACE`` whose row is missing belongs to a submission still in
        flight and is left alone.

        Returns:
            False if another request for the email is still pending
        """
        with store_errors("create_signup_request", request_id=str(request.id)):
            if not await self._try_claim(request):
                if not await self._clear_stale_claim(request.email):
                    return False
                if not await self._try_claim(request):
                    return False

            try:
                await self.session.aexecute(
                    self._insert,
                    [
                        request.id,
                        request.email,
                        request.name,
                        request.role,
                        request.institution,
                        request.status.value,
                        request.created_at,
                        None,
                        None,
                        None,
                    ],
                )
            except Exception:
                await self.session.aexecute(self._release, [request.email, request.id])
                raise
        return True

    async def _try_claim(self, request: SignupRequest) -> bool:
        result = await self.session.aexecute(
            self._claim, [request.email, request.id, request.created_at]
        )
        return bool(result.was_applied)

    async def _clear_stale_claim(self, email: str) -> bool:
        claim = (await self.session.aexecute(self._get_claim, [email])).one()
        if claim is None:
            return True
        row = (await self.session.aexecute(self._get, [claim.request_id])).one()
        if row is None:
            # Holder may not have written its row yet
            if claim_in_flight(claim.created_at):
                return False
        elif row.status == RequestStatus.PENDING.value:
            return False
        # Claim points at a decided request, or at a row that never arrived
        await self.session.aexecute(self._release, [email, claim.request_id])
        logger.warning("stale_signup_claim_cleared", request_id=str(claim.request_id))
        return True

    async def decide(
        self,
        request: SignupRequest,
        status: RequestStatus,
        decided_by: UUID | None = None,
        account_id: UUID | None = None,
    ) -> bool:
        """Move a pending request to a terminal status.

        The update is conditioned on the stored status still being pending;
        when it applies, the email claim is released.

        Returns:
            True if this call made the transition, False if another
            decision got there first
        """
        decided_at = datetime.now(UTC)
        with store_errors("decide_signup_request", request_id=str(request.id)):
            result = await self.session.aexecute(
                self._decide,
                [
                    status.value,
                    decided_at,
                    decided_by,
                    account_id,
                    request.id,
                    RequestStatus.PENDING.value,
                ],
            )
            if not result.was_applied:
                return False

        try:
            with store_errors("release_signup_claim", request_id=str(request.id)):
                await self.session.aexecute(self._release, [request.email, request.id])
        except StoreUnavailableError:
            # The next submission for this email clears the stale claim
            logger.warning("signup_claim_release_deferred", request_id=str(request.id))

        request.status = status
        request.decided_at = decided_at
        request.decided_by = decided_by
        request.account_id = account_id
        return True
