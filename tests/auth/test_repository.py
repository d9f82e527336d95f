"""Tests for AccountRepository email claims against a mocked session."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from edulearn.auth.models import Account
from edulearn.auth.repository import AccountRepository
from edulearn.core.database.claims import CLAIM_GRACE


def _result(applied: bool = True, row: object = None) -> MagicMock:
    return MagicMock(was_applied=applied, one=MagicMock(return_value=row))


@pytest.fixture
def session() -> MagicMock:
    session = MagicMock()
    session.prepare.side_effect = lambda cql: " ".join(cql.split())
    session.aexecute = AsyncMock(return_value=_result())
    return session


@pytest.fixture
def repo(session: MagicMock) -> AccountRepository:
    return AccountRepository(session, "edulearn_test")


@pytest.fixture
def account() -> Account:
    return Account(email="ana@college.edu", name="Ana Silva", password_hash="$argon2id$x")


def _statements(session: MagicMock) -> list[str]:
    return [call.args[0] for call in session.aexecute.await_args_list]


class TestCreate:
    async def test_claims_then_inserts(
        self, repo: AccountRepository, session: MagicMock, account: Account
    ) -> None:
        assert await repo.create(account) is True

        claim, insert = _statements(session)
        assert claim.endswith("IF NOT EXISTS")
        assert insert.startswith("INSERT INTO edulearn_test.accounts ")

    async def test_email_owned_by_existing_account(
        self, repo: AccountRepository, session: MagicMock, account: Account
    ) -> None:
        session.aexecute.side_effect = [
            _result(applied=False),
            _result(row=MagicMock(account_id=uuid4(), created_at=datetime.now(UTC))),
            _result(row=MagicMock()),
        ]

        assert await repo.create(account) is False
        assert not any(s.startswith("DELETE") for s in _statements(session))

    async def test_recent_claim_without_row_is_left_alone(
        self, repo: AccountRepository, session: MagicMock, account: Account
    ) -> None:
        session.aexecute.side_effect = [
            _result(applied=False),
            _result(row=MagicMock(account_id=uuid4(), created_at=datetime.now(UTC))),
            _result(row=None),
        ]

        assert await repo.create(account) is False
        assert len(_statements(session)) == 3

    async def test_abandoned_claim_is_reclaimed(
        self, repo: AccountRepository, session: MagicMock, account: Account
    ) -> None:
        """A claim applied by a call that timed out before writing its row."""
        orphan_id = uuid4()
        abandoned_at = datetime.now(UTC) - CLAIM_GRACE - timedelta(seconds=1)
        session.aexecute.side_effect = [
            _result(applied=False),
            _result(row=MagicMock(account_id=orphan_id, created_at=abandoned_at)),
            _result(row=None),
            _result(),  # release
            _result(),  # claim retry
            _result(),  # insert
        ]

        assert await repo.create(account) is True

        release = session.aexecute.await_args_list[3].args
        assert release[0].startswith("DELETE FROM edulearn_test.accounts_by_email")
        assert release[1] == ["ana@college.edu", orphan_id]
