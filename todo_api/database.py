from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api.core.config import get_settings

DATABASE_URL = get_settings().database_url

# Create async engine
engine = create_async_engine(
    DATABASE_URL,
    echo=False,
    future=True,
    pool_pre_ping=True,
)

# Create async session factory using async_sessionmaker
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


# Dependency for getting DB session
async def get_db():
    async with async_session() as session:
        yield session
        await session.close()


def import_table_models():
    """Import every table module so that SQLModel.metadata knows all tables."""
    from todo_api.models import (  # noqa: F401
        bucket,
        link_sharing,
        namespace,
        saved_filter,
        sharing,
        task,
        team,
        todo_list,
        user,
    )


# Helper function to create tables (optional, useful for testing)
async def create_db_and_tables(bind=None):
    import_table_models()
    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
