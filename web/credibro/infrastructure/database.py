from typing import AsyncGenerator
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncSession, create_async_engine, async_sessionmaker

from credibro.core import get_settings
from credibro.models import Base, REFERRAL_VALIDATION_VIEW_SQL


settings = get_settings()

engine_options = {
    "echo": settings.DB_ECHO,
    "pool_pre_ping": True,  # Enable connection health checks
}
# SQLite (local runs, tests) uses a static/singleton pool without sizing
if not settings.DB_DSN.startswith("sqlite"):
    engine_options["pool_size"] = settings.DB_POOL_SIZE

# Create async engine
engine = create_async_engine(settings.DB_DSN, **engine_options)

# Create async session factory
AsyncSessionFactory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False
)


async def create_schema(conn: AsyncConnection) -> None:
    """Create tables and (re)create the referral_validation view."""
    await conn.run_sync(Base.metadata.create_all)
    await conn.execute(text("DROP VIEW IF EXISTS referral_validation"))
    await conn.execute(text(REFERRAL_VALIDATION_VIEW_SQL))


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session"""
    async with AsyncSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
