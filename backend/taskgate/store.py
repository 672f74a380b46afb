"""
Entity store over an async SQLAlchemy session.

The governance services only talk to persistence through this class:
lookups by id, filtered finds, bulk conditional updates and
read-modify-write saves. Callers own the transaction; nothing here
commits.
"""

from typing import Any, Sequence, TypeVar

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from taskgate.logging_config import get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)


class EntityStore:
    """Persistence primitives used by the lifecycle managers."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_id(self, model: type[ModelT], entity_id: Any) -> ModelT | None:
        return await self.session.get(model, entity_id)

    async def find(
        self,
        model: type[ModelT],
        *where: Any,
        order_by: Sequence[Any] = (),
    ) -> list[ModelT]:
        """Return every row of ``model`` matching all ``where`` clauses."""
        query = select(model)
        for clause in where:
            query = query.where(clause)
        if order_by:
            query = query.order_by(*order_by)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def find_columns(self, *columns: Any, where: Sequence[Any] = ()) -> list[tuple]:
        """Projection variant of :meth:`find` returning plain row tuples."""
        query = select(*columns)
        for clause in where:
            query = query.where(clause)

        result = await self.session.execute(query)
        return [tuple(row) for row in result.all()]

    async def update_many(self, model: type[SQLModel], *where: Any, values: dict[str, Any]) -> int:
        """
        Bulk conditional update, issued as a single UPDATE statement.

        Instances of ``model`` already loaded in the session are kept in
        sync with the new values.

        Returns:
            Number of matched rows
        """
        statement = update(model).values(**values)
        for clause in where:
            statement = statement.where(clause)

        result = await self.session.execute(statement)
        logger.debug(f"Bulk update on {model.__tablename__}: {result.rowcount} rows -> {values}")
        return result.rowcount

    async def create(self, entity: ModelT) -> ModelT:
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def save(self, entity: ModelT) -> ModelT:
        """Flush pending changes on an already-loaded entity."""
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def delete_by_id(self, model: type[SQLModel], entity_id: Any) -> bool:
        result = await self.session.execute(delete(model).where(model.id == entity_id))
        return result.rowcount > 0
