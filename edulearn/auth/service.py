"""Authentication service layer.

Business logic for:
- Account creation (from an approved signup, or admin bootstrap)
- Credential verification and login
- Session tokens: issue, rotate, revoke
- Password change
- Account queries for the admin surface
"""

from datetime import UTC, datetime, timedelta
from uuid import UUID

from edulearn.auth.models import Account, RefreshToken
from edulearn.auth.permissions import UserRole
from edulearn.auth.repository import AccountRepository, RefreshTokenRepository
from edulearn.auth.security import (
    burn_verification,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)
from edulearn.auth.validators import (
    validate_email,
    validate_institution,
    validate_name,
    validate_password,
)
from edulearn.config.settings import get_settings
from edulearn.core.exceptions import (
    AppError,
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from edulearn.core.logging import get_logger


logger = get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class AccountExistsError(ConflictError):
    """An account already uses this email."""

    default_message = "An account with this email already exists"


class AccountNotFoundError(NotFoundError):
    """No account with this id."""

    default_message = "User not found"


class InvalidTokenError(AppError):
    """Refresh token missing, invalid, expired or revoked."""

    code = "invalid_token"
    status_code = 401
    default_message = "Invalid or expired session"


class WrongPasswordError(InvalidCredentialsError):
    """Current password did not match on a password change."""

    default_message = "Current password is incorrect"


# ==============================================================================
# Auth Service
# ==============================================================================


class AuthService:
    """Accounts, credentials and sessions."""

    def __init__(
        self,
        accounts: AccountRepository,
        tokens: RefreshTokenRepository,
    ):
        """Initialize with the account and token repositories.

        Args:
            accounts: Account storage (email claim + rows)
            tokens: Refresh token storage
        """
        self.accounts = accounts
        self.tokens = tokens

    # ==========================================================================
    # Account Operations
    # ==========================================================================

    async def get_account(self, account_id: UUID) -> Account:
        """Fetch an account by id.

        Raises:
            AccountNotFoundError: If no such account exists
        """
        account = await self.accounts.get_by_id(account_id)
        if account is None:
            raise AccountNotFoundError
        return account

    async def find_by_email(self, email: str) -> Account | None:
        return await self.accounts.get_by_email(email.strip().lower())

    async def find_by_signup_request(self, request_id: UUID) -> Account | None:
        """Find the account materialized from a signup request, if any."""
        return await self.accounts.get_by_signup_request(request_id)

    async def create_account(
        self,
        email: str,
        name: str,
        role: UserRole,
        institution: str,
        password: str,
        signup_request_id: UUID | None = None,
        enforce_policy: bool = True,
    ) -> Account:
        """Create an account, claiming its email atomically.

        Args:
            email: Login email (normalized here)
            name: Display name
            role: Account role
            institution: College or school name (may be empty for admins)
            password: Plain credential, stored only as an Argon2id hash
            signup_request_id: Originating signup request
            enforce_policy: When False the password only has to be non-empty
                (credentials an admin assigns on approval)

        Returns:
            Created Account

        Raises:
            ValidationError: If a field or the password policy fails
            AccountExistsError: If the email is already taken
        """
        email_check = validate_email(email)
        if not email_check.valid:
            raise ValidationError(email_check.message)
        name_check = validate_name(name)
        if not name_check.valid:
            raise ValidationError(name_check.message)
        if institution.strip():
            institution_check = validate_institution(institution)
            if not institution_check.valid:
                raise ValidationError(institution_check.message)
        self._check_password(password, enforce_policy)

        account = Account(
            email=email_check.formatted or email,
            name=name_check.formatted or name,
            role=UserRole(role).value,
            institution=institution.strip(),
            password_hash=hash_password(password),
            signup_request_id=signup_request_id,
        )

        if not await self.accounts.create(account):
            logger.info("account_email_taken", role=account.role)
            raise AccountExistsError

        logger.info(
            "account_created",
            account_id=str(account.id),
            role=account.role,
            signup_request_id=str(signup_request_id) if signup_request_id else None,
        )
        return account

    @staticmethod
    def _check_password(password: str, enforce_policy: bool) -> None:
        if not enforce_policy:
            if not password:
                raise ValidationError("Password is required")
            return
        password_check = validate_password(password)
        if not password_check.valid:
            raise ValidationError(password_check.message)

    async def delete_account(self, account: Account) -> None:
        """Remove an account and free its email."""
        await self.accounts.delete(account)
        logger.warning("account_deleted", account_id=str(account.id), role=account.role)

    async def reset_credential(self, account: Account, password: str) -> None:
        """Store a new hash for an admin-issued credential.

        Only a non-empty check applies, as for credentials assigned on approval.
        """
        self._check_password(password, enforce_policy=False)
        await self.accounts.update_password(account.id, hash_password(password))
        logger.info("credential_reissued", account_id=str(account.id))

    async def bootstrap_admin(
        self,
        email: str,
        name: str,
        password: str,
        institution: str = "",
    ) -> Account:
        """Create an admin account directly (seed path).

        Raises:
            AccountExistsError: If the email is already taken
        """
        return await self.create_account(
            email=email,
            name=name,
            role=UserRole.ADMIN,
            institution=institution,
            password=password,
        )

    # ==========================================================================
    # Authentication
    # ==========================================================================

    async def authenticate(
        self,
        email: str,
        password: str,
        required_role: UserRole | None = None,
    ) -> Account:
        """Verify credentials and mark the account online.

        Unknown email, wrong password and role mismatch all raise the same
        error. Unknown emails still pay for one hash verification.

        Raises:
            InvalidCredentialsError: On any mismatch
        """
        account = await self.find_by_email(email)
        if account is None:
            burn_verification(password)
            logger.info("login_failed", reason="unknown_email")
            raise InvalidCredentialsError

        is_valid, new_hash = verify_password(password, account.password_hash)
        if not is_valid:
            logger.info("login_failed", reason="bad_credential", account_id=str(account.id))
            raise InvalidCredentialsError

        if required_role is not None and account.role != UserRole(required_role).value:
            logger.info("login_failed", reason="role_mismatch", account_id=str(account.id))
            raise InvalidCredentialsError

        if new_hash:
            await self.accounts.update_password(account.id, new_hash)
            account.password_hash = new_hash

        await self._set_online(account, True)
        logger.info("login_succeeded", account_id=str(account.id), role=account.role)
        return account

    async def _set_online(self, account: Account, online: bool) -> None:
        """Update presence. Store failures are logged, never raised."""
        try:
            await self.accounts.set_online(account.id, online)
            account.online = online
        except StoreUnavailableError as e:
            logger.warning(
                "online_flag_update_failed",
                account_id=str(account.id),
                online=online,
                error=str(e.original_error or e),
            )

    async def change_password(
        self,
        account_id: UUID,
        current_password: str,
        new_password: str,
    ) -> None:
        """Replace the credential after verifying the current one.

        Raises:
            AccountNotFoundError: If the account does not exist
            WrongPasswordError: If the current password is wrong
            ValidationError: If the new password fails the policy
        """
        account = await self.get_account(account_id)

        is_valid, _ = verify_password(current_password, account.password_hash)
        if not is_valid:
            raise WrongPasswordError

        check = validate_password(new_password)
        if not check.valid:
            raise ValidationError(check.message)

        await self.accounts.update_password(account.id, hash_password(new_password))
        logger.info("password_changed", account_id=str(account.id))

    # ==========================================================================
    # Token Operations
    # ==========================================================================

    async def create_tokens(
        self,
        account: Account,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> tuple[str, str]:
        """Issue an access token and a stored refresh token.

        Returns:
            Tuple of (access_token, refresh_token)
        """
        settings = get_settings()
        payload = {"sub": str(account.id), "email": account.email, "role": account.role}

        access_token = create_access_token(payload)
        refresh_token, jti = create_refresh_token(payload)

        await self.tokens.add(
            RefreshToken(
                jti=UUID(jti),
                account_id=account.id,
                expires_at=datetime.now(UTC)
                + timedelta(days=settings.auth_refresh_token_expire_days),
                user_agent=user_agent,
                ip_address=ip_address,
            )
        )
        return access_token, refresh_token

    async def refresh_tokens(
        self,
        refresh_token: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> tuple[Account, str, str]:
        """Rotate a refresh token: revoke the old one, issue a new pair.

        Returns:
            Tuple of (account, new_access_token, new_refresh_token)

        Raises:
            InvalidTokenError: If the token is invalid, expired or revoked
        """
        stored, account_id = await self._load_refresh_token(refresh_token)
        if not stored.is_valid():
            raise InvalidTokenError

        await self.tokens.revoke(stored.jti)

        account = await self.accounts.get_by_id(account_id)
        if account is None:
            raise InvalidTokenError

        access, refresh = await self.create_tokens(account, user_agent, ip_address)
        return account, access, refresh

    async def logout(self, refresh_token: str) -> None:
        """Revoke the session and mark the account offline.

        Raises:
            InvalidTokenError: If the token cannot be decoded or is unknown
        """
        stored, account_id = await self._load_refresh_token(refresh_token)
        await self.tokens.revoke(stored.jti)

        account = await self.accounts.get_by_id(account_id)
        if account is not None:
            await self._set_online(account, False)
        logger.info("logout", account_id=str(account_id))

    async def _load_refresh_token(self, refresh_token: str) -> tuple[RefreshToken, UUID]:
        try:
            payload = decode_refresh_token(refresh_token)
            jti = UUID(payload["jti"])
            account_id = UUID(payload["sub"])
        except Exception as e:
            raise InvalidTokenError from e

        stored = await self.tokens.get(jti)
        if stored is None or stored.account_id != account_id:
            raise InvalidTokenError
        return stored, account_id

    # ==========================================================================
    # Account Queries
    # ==========================================================================

    async def list_accounts(
        self,
        role: UserRole | None = None,
        online: bool | None = None,
    ) -> list[Account]:
        """List accounts, newest first, optionally filtered.

        Args:
            role: Only accounts with this role
            online: Only accounts whose presence flag matches
        """
        if role is not None:
            accounts = await self.accounts.list_by_role(UserRole(role).value)
        else:
            accounts = await self.accounts.list_all()

        if online is not None:
            accounts = [a for a in accounts if a.online is online]

        return sorted(accounts, key=lambda a: a.created_at, reverse=True)

    async def search_accounts(
        self,
        query: str,
        role: UserRole | None = None,
        limit: int = 50,
    ) -> list[Account]:
        """Case-insensitive substring search over name, email and institution.

        Cassandra has no LIKE, so matching happens in memory over the
        role-filtered listing.
        """
        needle = query.strip().lower()
        accounts = await self.list_accounts(role=role)
        if needle:
            accounts = [
                a
                for a in accounts
                if needle in a.name.lower()
                or needle in a.email.lower()
                or needle in (a.institution or "").lower()
            ]
        return accounts[:limit]

    async def count_by_role(self, role: UserRole) -> int:
        return await self.accounts.count_by_role(UserRole(role).value)

    async def count_online_by_role(self, role: UserRole) -> int:
        return await self.accounts.count_online_by_role(UserRole(role).value)
