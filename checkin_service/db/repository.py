"""Shared repository base helpers."""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.dialects import postgresql, sqlite


class BaseRepository:
    """Base repository with common DB helpers."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _insert(self, model):
        """Dialect-specific INSERT so callers can use ON CONFLICT clauses."""
        if self.db.get_bind().dialect.name == "sqlite":
            return sqlite.insert(model)
        return postgresql.insert(model)

    async def add(self, instance):
        """Stage a new row and flush it so constraint violations surface here."""
        self.db.add(instance)
        await self.db.flush()
        return instance
