# app/core/database.py

import ssl
from dotenv import load_dotenv
from typing import AsyncGenerator

from loguru import logger
from sqlmodel import SQLModel
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine
)
from sqlalchemy.pool import NullPool
from sqlalchemy import text

from app.core.config import settings

# ----------------------------------------------------
# Load environment
# ----------------------------------------------------
load_dotenv()
DATABASE_URL = settings.DATABASE_URL

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set")


# ----------------------------------------------------
# SSL for managed Postgres poolers
# ----------------------------------------------------
def make_ssl():
    ctx = ssl.create_default_context()
    if not settings.DB_SSL_VERIFY:
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
    return ctx


def make_engine(url: str):
    """
    asyncpg behind a pooler needs prepared statements disabled and no local
    pool. SQLite (tests, local dev) opens a connection per checkout too, so
    the engine survives being driven from more than one event loop.
    """
    if url.startswith("postgresql+asyncpg"):
        logger.info("Configuring Database (Pooler Mode)")
        return create_async_engine(
            url,
            echo=False,
            connect_args={
                "ssl": make_ssl(),
                "statement_cache_size": 0,            # disable prepared statements
                "prepared_statement_name_func": None  # prevent SQLAlchemy from naming statements
            },
            pool_pre_ping=True,
            poolclass=NullPool,
        )

    return create_async_engine(url, echo=False, poolclass=NullPool)


# ----------------------------------------------------
# Engine & Sessions
# ----------------------------------------------------
engine = make_engine(DATABASE_URL)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


# ----------------------------------------------------
# Create tables
# ----------------------------------------------------
async def init_db():
    # Register table metadata before create_all
    import app.models.application  # noqa: F401
    import app.models.audit  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


# ----------------------------------------------------
# Test Connection
# ----------------------------------------------------
async def test_connection():
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
        logger.debug("DB Connection OK")
