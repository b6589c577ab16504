"""Request-scoped database session.

Route handlers get their session here; CLI commands use
``nested_tree.infra.database.get_async_session`` directly. ``TreeNodeService``
commits after each successful mutation. Anything left uncommitted when the
request ends is rolled back as the session closes.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from nested_tree.infra.database import get_async_session


async def get_db_session() -> AsyncGenerator[AsyncSession]:
    async with get_async_session() as session:
        yield session
