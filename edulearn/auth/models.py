"""Database models for accounts and sessions.

Cassandra table definitions for:
- Accounts: one row per approved (or bootstrapped) person
- AccountsByEmail: uniqueness claim, written with IF NOT EXISTS
- RefreshTokens: issued sessions, for revocation on logout and rotation

Note: Uses cassandra-driver directly (not ORM). Tables are created from these
CQL templates at startup.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from edulearn.auth.permissions import UserRole


ACCOUNTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.accounts (
    id UUID PRIMARY KEY,
    email TEXT,
    name TEXT,
    role TEXT,
    institution TEXT,
    password_hash TEXT,
    online BOOLEAN,
    signup_request_id UUID,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

ACCOUNTS_ROLE_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS accounts_role_idx ON {keyspace}.accounts (role)
"""

ACCOUNTS_SIGNUP_REQUEST_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS accounts_signup_request_idx
ON {keyspace}.accounts (signup_request_id)
"""

# Email -> account id. Inserted with IF NOT EXISTS so that two concurrent
# creations for the same address cannot both succeed.
ACCOUNTS_BY_EMAIL_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.accounts_by_email (
    email TEXT PRIMARY KEY,
    account_id UUID,
    created_at TIMESTAMP
)
"""

REFRESH_TOKEN_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.refresh_tokens (
    jti UUID PRIMARY KEY,
    account_id UUID,
    expires_at TIMESTAMP,
    revoked BOOLEAN,
    revoked_at TIMESTAMP,
    created_at TIMESTAMP,
    user_agent TEXT,
    ip_address TEXT
)
"""

AUTH_TABLES_CQL = [
    ACCOUNTS_TABLE_CQL,
    ACCOUNTS_ROLE_INDEX_CQL,
    ACCOUNTS_SIGNUP_REQUEST_INDEX_CQL,
    ACCOUNTS_BY_EMAIL_TABLE_CQL,
    REFRESH_TOKEN_TABLE_CQL,
]


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class Account:
    """A person allowed to sign in.

    Attributes:
        id: Unique identifier
        email: Lower-cased, globally unique
        name: Display name
        role: admin, teacher or student (never changes)
        institution: College or school name
        password_hash: Argon2id hash
        online: Best-effort presence flag
        signup_request_id: Request this account was approved from (None for
            bootstrapped admins)
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: UUID | None = None,
        email: str = "",
        name: str = "",
        role: str = UserRole.STUDENT.value,
        institution: str = "",
        password_hash: str = "",
        online: bool = False,
        signup_request_id: UUID | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.email = email.lower().strip()
        self.name = name
        self.role = role
        self.institution = institution
        self.password_hash = password_hash
        self.online = online
        self.signup_request_id = signup_request_id
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "Account":
        """Create Account instance from Cassandra row."""
        return cls(
            id=row.id,
            email=row.email,
            name=row.name,
            role=row.role,
            institution=row.institution or "",
            password_hash=row.password_hash,
            online=bool(row.online),
            signup_request_id=row.signup_request_id,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self, include_password: bool = False) -> dict[str, Any]:
        """Convert to dictionary (excludes password_hash by default)."""
        data = {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "institution": self.institution,
            "online": self.online,
            "signup_request_id": self.signup_request_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        if include_password:
            data["password_hash"] = self.password_hash
        return data

    def __repr__(self) -> str:
        return f"<Account {self.email} ({self.role})>"


class RefreshToken:
    """Server-side record of an issued refresh token.

    Attributes:
        jti: Unique token identifier (JWT ID)
        account_id: Owner account
        expires_at: Expiration timestamp
        revoked: Whether the token was revoked (logout or rotation)
        revoked_at: Revocation timestamp
        created_at: Issue timestamp
        user_agent: Client user agent (audit trail)
        ip_address: Client IP address (audit trail)
    """

    def __init__(
        self,
        jti: UUID,
        account_id: UUID,
        expires_at: datetime,
        revoked: bool = False,
        revoked_at: datetime | None = None,
        created_at: datetime | None = None,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ):
        self.jti = jti
        self.account_id = account_id
        self.expires_at = ensure_utc_aware(expires_at)
        self.revoked = revoked
        self.revoked_at = ensure_utc_aware(revoked_at)
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.user_agent = user_agent
        self.ip_address = ip_address

    @classmethod
    def from_row(cls, row: Any) -> "RefreshToken":
        """Create RefreshToken instance from Cassandra row."""
        return cls(
            jti=row.jti,
            account_id=row.account_id,
            expires_at=row.expires_at,
            revoked=bool(row.revoked),
            revoked_at=row.revoked_at,
            created_at=row.created_at,
            user_agent=row.user_agent,
            ip_address=row.ip_address,
        )

    def is_valid(self) -> bool:
        """Check if token is neither revoked nor expired."""
        if self.revoked or self.expires_at is None:
            return False
        return self.expires_at >= datetime.now(UTC)

    def __repr__(self) -> str:
        status = "revoked" if self.revoked else "active"
        return f"<RefreshToken {self.jti} ({status})>"
