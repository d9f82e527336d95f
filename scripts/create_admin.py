"""Create the first administrator account.

Admins cannot sign up through the public request flow, so the first one is
seeded from the command line. The password is read from the environment or
prompted for, never passed as an argument.

Usage:
    EDULEARN_ADMIN_PASSWORD=... uv run python -m scripts.create_admin \
        --email admin@example.com --name "Platform Admin"
"""

import argparse
import asyncio
import getpass
import os
import sys
from pathlib import Path

import structlog

from edulearn.auth.repository import AccountRepository, RefreshTokenRepository
from edulearn.auth.service import AuthService
from edulearn.config.settings import get_settings
from edulearn.core.context import RequestContext
from edulearn.core.database import init_async_cassandra, shutdown_async_cassandra
from edulearn.core.exceptions import AppError
from edulearn.core.logging import configure_structlog


logger = structlog.get_logger(__name__)

PASSWORD_ENV = "EDULEARN_ADMIN_PASSWORD"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create an admin account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", required=True)
    parser.add_argument("--institution", default="")
    return parser.parse_args(argv)


async def create_admin(email: str, name: str, password: str, institution: str) -> int:
    """Connect, create the account and report the outcome.

    Returns:
        Process exit code
    """
    settings = get_settings()
    session = await init_async_cassandra()
    keyspace = settings.cassandra_keyspace

    service = AuthService(
        accounts=AccountRepository(session, keyspace),
        tokens=RefreshTokenRepository(session, keyspace),
    )

    try:
        with RequestContext(user_role="system"):
            account = await service.bootstrap_admin(
                email=email, name=name, password=password, institution=institution
            )
    except AppError as e:
        logger.error("admin_bootstrap_failed", code=e.code, error=e.message)
        return 1
    finally:
        await shutdown_async_cassandra()

    logger.info("admin_bootstrapped", account_id=str(account.id), email=account.email)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    configure_structlog(settings, log_dir=Path(settings.log_dir))

    password = os.environ.get(PASSWORD_ENV) or getpass.getpass("Admin password: ")
    return asyncio.run(
        create_admin(args.email, args.name, password, args.institution)
    )


if __name__ == "__main__":
    sys.exit(main())
