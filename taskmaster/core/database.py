from typing import AsyncGenerator

from sqlalchemy import BigInteger, DateTime, Integer
from sqlalchemy.dialects.mysql import DATETIME
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from taskmaster.core.config import settings

# SQLite는 INTEGER PRIMARY KEY 만 autoincrement 지원
BigIntId = BigInteger().with_variant(Integer, "sqlite")

# MySQL DATETIME 은 기본적으로 초 단위로 잘림 (updated_at 단조 증가에 마이크로초 필요)
Timestamp = DateTime().with_variant(DATETIME(fsp=6), "mysql")

Base = declarative_base()

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DB_ECHO,
    pool_pre_ping=True,
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """요청 단위 DB 세션"""
    async with AsyncSessionLocal() as session:
        yield session
