"""Credential and token primitives.

Provides:
- Password hashing with Argon2id (salted, constant-time verification)
- Generated temporary passwords for approved signups
- JWT access/refresh tokens with type separation
"""

import secrets
import string
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from jose import JWTError, jwt

from edulearn.config.settings import get_settings


# OWASP parameters for Argon2id
_password_hasher = PasswordHasher(
    time_cost=2,
    memory_cost=19456,
    parallelism=1,
    hash_len=32,
    salt_len=16,
)

# Verified against when the email is unknown, so that a miss costs the same
# as a wrong password.
_DUMMY_HASH = _password_hasher.hash("edulearn-dummy-credential")

# Excludes look-alike characters (0/O, 1/l/I) since admins relay these by hand
TEMPORARY_PASSWORD_ALPHABET = (
    string.ascii_uppercase.replace("O", "").replace("I", "")
    + string.ascii_lowercase.replace("l", "").replace("o", "")
    + string.digits.replace("0", "").replace("1", "")
)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


# ==============================================================================
# Passwords
# ==============================================================================


def hash_password(password: str) -> str:
    """Hash a password using Argon2id.

    The returned string embeds salt and parameters, so it is all that needs
    to be stored.
    """
    return _password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> tuple[bool, str | None]:
    """Verify a password against its stored hash.

    Args:
        password: Plain text password to verify
        password_hash: Stored Argon2id hash

    Returns:
        Tuple of (is_valid, new_hash). ``new_hash`` is set when the stored
        hash was produced with outdated parameters and should be replaced.
    """
    try:
        _password_hasher.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False, None

    if _password_hasher.check_needs_rehash(password_hash):
        return True, hash_password(password)
    return True, None


def burn_verification(password: str) -> None:
    """Spend one verification on a fixed hash.

    Used when no account matches, so response time does not reveal whether
    an email is registered.
    """
    verify_password(password, _DUMMY_HASH)


def generate_temporary_password(length: int | None = None) -> str:
    """Generate a random password that satisfies the password policy.

    Guarantees at least one uppercase letter, one lowercase letter and one
    digit, then fills the rest from the unambiguous alphabet.
    """
    length = length or get_settings().signup_temporary_password_length
    required = [
        secrets.choice([c for c in TEMPORARY_PASSWORD_ALPHABET if c.isupper()]),
        secrets.choice([c for c in TEMPORARY_PASSWORD_ALPHABET if c.islower()]),
        secrets.choice([c for c in TEMPORARY_PASSWORD_ALPHABET if c.isdigit()]),
    ]
    rest = [
        secrets.choice(TEMPORARY_PASSWORD_ALPHABET)
        for _ in range(max(length, len(required)) - len(required))
    ]
    chars = required + rest
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


# ==============================================================================
# Tokens
# ==============================================================================


def _encode(data: dict[str, Any], token_type: str, lifetime: timedelta) -> str:
    settings = get_settings()
    now = datetime.now(UTC)
    payload = {**data, "iat": now, "exp": now + lifetime, "type": token_type}
    return jwt.encode(payload, settings.auth_secret_key, algorithm=settings.auth_algorithm)


def _decode(token: str, expected_type: str) -> dict[str, Any]:
    settings = get_settings()
    payload = jwt.decode(
        token,
        settings.auth_secret_key,
        algorithms=[settings.auth_algorithm],
    )
    if payload.get("type") != expected_type:
        msg = f"Invalid token type: expected '{expected_type}'"
        raise JWTError(msg)
    return payload


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Create a short-lived access token.

    Args:
        data: Claims, typically {"sub": account_id, "email": ..., "role": ...}
        expires_delta: Lifetime (default from settings)
    """
    lifetime = expires_delta or timedelta(
        minutes=get_settings().auth_access_token_expire_minutes
    )
    return _encode(data, ACCESS_TOKEN_TYPE, lifetime)


def create_refresh_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a long-lived refresh token carrying a unique ``jti``.

    Returns:
        Tuple of (token, jti). The jti is stored server-side for revocation.
    """
    jti = str(uuid4())
    lifetime = expires_delta or timedelta(
        days=get_settings().auth_refresh_token_expire_days
    )
    return _encode({**data, "jti": jti}, REFRESH_TOKEN_TYPE, lifetime), jti


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token.

    Raises:
        JWTError: If the signature, expiry or token type is invalid
    """
    return _decode(token, ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str) -> dict[str, Any]:
    """Decode and validate a refresh token.

    Raises:
        JWTError: If invalid, expired, of the wrong type or missing ``jti``
    """
    payload = _decode(token, REFRESH_TOKEN_TYPE)
    if "jti" not in payload:
        msg = "Refresh token missing jti claim"
        raise JWTError(msg)
    return payload
