"""Signup request models and Cassandra schema.

Provides:
- SignupRequest entity and its status lifecycle
- Cassandra table definitions for requests and the pending-email claim
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4


if TYPE_CHECKING:
    from cassandra.cluster import Row


class RequestStatus(str, Enum):
    """Lifecycle of a signup request. Approved and rejected are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

SIGNUP_REQUESTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.signup_requests (
    id UUID PRIMARY KEY,
    email TEXT,
    name TEXT,
    role TEXT,
    institution TEXT,
    status TEXT,
    created_at TIMESTAMP,
    decided_at TIMESTAMP,
    decided_by UUID,
    account_id UUID
)
"""

SIGNUP_REQUESTS_STATUS_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS signup_requests_status_idx
ON {keyspace}.signup_requests (status)
"""

# Exists while a request for the email is pending. Inserted with IF NOT EXISTS
# on submission and removed when the request is decided.
PENDING_SIGNUP_BY_EMAIL_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.pending_signup_by_email (
    email TEXT PRIMARY KEY,
    request_id UUID,
    created_at TIMESTAMP
)
"""

SIGNUP_TABLES_CQL = [
    SIGNUP_REQUESTS_TABLE_CQL,
    SIGNUP_REQUESTS_STATUS_INDEX_CQL,
    PENDING_SIGNUP_BY_EMAIL_TABLE_CQL,
]


# ==============================================================================
# Entity
# ==============================================================================


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


@dataclass
class SignupRequest:
    """A person's application for a teacher or student account."""

    email: str
    name: str
    role: str
    institution: str
    id: UUID = field(default_factory=uuid4)
    status: RequestStatus = RequestStatus.PENDING
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    # Set on decision
    decided_at: datetime | None = None
    decided_by: UUID | None = None
    account_id: UUID | None = None

    @classmethod
    def from_row(cls, row: "Row") -> "SignupRequest":
        """Create instance from Cassandra row."""
        return cls(
            id=row.id,
            email=row.email,
            name=row.name,
            role=row.role,
            institution=row.institution or "",
            status=RequestStatus(row.status),
            created_at=ensure_utc_aware(row.created_at) or datetime.now(UTC),
            decided_at=ensure_utc_aware(row.decided_at),
            decided_by=row.decided_by,
            account_id=row.account_id,
        )

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING
