from datetime import timedelta
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.utils.auth_gate import Identity, authenticate
from src.app.services.password_hasher import PasswordHasher
from src.app.services.token_codec import TokenCodec


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(db_uri: str, timeout_seconds: float = ApplicationConfig.DB_TIMEOUT_SECONDS) -> AsyncEngine:
    """Async engine; SQLite gets a busy timeout and enforced foreign keys"""
    if db_uri.startswith("sqlite"):
        engine = create_async_engine(
            db_uri, echo=False, future=True, connect_args={"timeout": timeout_seconds}
        )
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_async_engine(
        db_uri,
        echo=False,
        future=True,
        pool_pre_ping=True,
        pool_timeout=timeout_seconds,
    )


engine = build_engine(ApplicationConfig.DB_URI)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session, ApplicationConfig.DB_TIMEOUT_SECONDS)


@lru_cache
def get_token_codec() -> TokenCodec:
    return TokenCodec(
        secret=ApplicationConfig.JWT_SECRET,
        issuer=ApplicationConfig.JWT_ISSUER,
        audience=ApplicationConfig.JWT_AUDIENCE,
        access_ttl=timedelta(minutes=ApplicationConfig.ACCESS_TOKEN_TTL_MINUTES),
        refresh_ttl=timedelta(days=ApplicationConfig.REFRESH_TOKEN_TTL_DAYS),
    )


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(
        memory_kib=ApplicationConfig.PASSWORD_HASH_MEMORY_KIB,
        iterations=ApplicationConfig.PASSWORD_HASH_ITERATIONS,
        parallelism=ApplicationConfig.PASSWORD_HASH_PARALLELISM,
    )


async def get_current_identity(
    request: Request,
    authorization: Optional[str] = Header(None),
    codec: TokenCodec = Depends(get_token_codec),
) -> Identity:
    """
    Dependency to authenticate the Bearer access token.

    Attaches the Identity to request.state.identity and returns it.

    Raises:
        ClientError: 401 UNAUTHORIZED for a missing or malformed header,
            401 TOKEN_INVALID for a rejected token
    """
    identity = authenticate(authorization, codec)
    request.state.identity = identity
    return identity
