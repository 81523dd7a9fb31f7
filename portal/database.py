"""Database connection and session management."""

import ssl
from collections.abc import AsyncGenerator
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from portal.config import settings


def split_ssl_params(url: str) -> tuple[str, dict]:
    """
    Strip sslmode/ssl from the URL (asyncpg rejects them) and return the
    equivalent asyncpg connect_args.
    """
    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    mode = (query.pop("sslmode", None) or query.pop("ssl", None) or [None])[0]
    query.pop("ssl", None)
    connect_args: dict = {}
    if mode is None:
        return url, connect_args
    if mode in ("require", "prefer", "allow", "true"):
        # Managed Postgres poolers present certs the default store can't chain.
        ctx = ssl.create_default_context()
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        connect_args["ssl"] = ctx
    elif mode in ("verify-ca", "verify-full"):
        connect_args["ssl"] = ssl.create_default_context()
    new_query = urlencode(query, doseq=True)
    return urlunparse(parsed._replace(query=new_query)), connect_args


_db_url, _connect_args = split_ssl_params(settings.database_url)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


engine = create_async_engine(
    _db_url,
    echo=settings.log_level == "DEBUG",
    connect_args=_connect_args,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for request-scoped database sessions."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
